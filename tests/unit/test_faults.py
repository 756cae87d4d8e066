"""
Unit tests for the FaultController circuit breaker.
"""

import unittest
from unittest.mock import Mock

from movetype.core.errors import Severity
from movetype.engine.faults import FaultController


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class TestFaultController(unittest.TestCase):
    """Test cases for fault counting, log throttling and the breaker."""

    def setUp(self):
        self.clock = FakeClock()
        self.controller = FaultController(error_threshold=3, safe_mode=True,
                                          log_interval_ms=10000.0, clock=self.clock)
        self.controller.logger = Mock()

    def test_every_fault_is_counted(self):
        for i in range(3):
            self.clock.now = i * 100
            self.assertFalse(self.controller.record("analysis", RuntimeError("boom")))

        self.assertEqual(self.controller.state.error_count, 3)
        self.assertEqual(self.controller.state.last_error_time, 200)
        self.assertFalse(self.controller.degraded)

    def test_breaker_opens_past_threshold(self):
        results = [self.controller.record("analysis", RuntimeError("boom")) for _ in range(4)]

        self.assertEqual(results, [False, False, False, True])
        self.assertTrue(self.controller.disabled)
        self.controller.logger.critical.assert_called_once()

    def test_breaker_never_closes(self):
        for _ in range(4):
            self.controller.record("analysis", RuntimeError("boom"))

        self.clock.now = 10 ** 9
        self.assertTrue(self.controller.record("analysis", RuntimeError("again")))
        self.assertEqual(self.controller.state.error_count, 4)
        self.assertTrue(self.controller.disabled)

    def test_without_safe_mode_only_degrades(self):
        controller = FaultController(error_threshold=3, safe_mode=False, clock=self.clock)
        controller.logger = Mock()
        for _ in range(10):
            self.assertFalse(controller.record("analysis", RuntimeError("boom")))

        self.assertTrue(controller.degraded)
        self.assertFalse(controller.disabled)

    def test_logging_is_throttled(self):
        logger = self.controller.logger
        self.controller.record("analysis", RuntimeError("first"))
        self.clock.now = 1000
        self.controller.record("analysis", RuntimeError("second"))

        self.assertEqual(logger.error.call_count, 1)

        self.clock.now = 10001
        self.controller.record("analysis", RuntimeError("third"))

        self.assertEqual(logger.error.call_count, 2)
        self.assertEqual(logger.error.call_args.kwargs["suppressed"], 1)
        self.assertEqual(logger.error.call_args.kwargs["error_count"], 3)

    def test_severity_selects_log_level(self):
        logger = self.controller.logger
        self.controller.record("calibration", ValueError("bad"), severity=Severity.MEDIUM,
                               context={"samples": 12})

        logger.warning.assert_called_once()
        self.assertEqual(logger.warning.call_args.kwargs["stage"], "calibration")
        self.assertEqual(logger.warning.call_args.kwargs["severity"], "medium")
        self.assertEqual(logger.warning.call_args.kwargs["context"], {"samples": 12})


if __name__ == "__main__":
    unittest.main()

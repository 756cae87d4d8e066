"""
Unit tests for the MovementEngine pipeline.
"""

import unittest
from unittest.mock import Mock, patch

from movetype.core.config import EngineConfig
from movetype.engine import MovementEngine
from movetype.engine.classifiers import ClassifierTier, MovementClassifier
from movetype.engine.models import Classification, MovementType
from movetype.engine.smoothing import analyze_movement_sequence

START_MS = 1_700_000_000_000


class FakeClock:
    def __init__(self, now=START_MS):
        self.now = now

    def __call__(self):
        return self.now


class ScriptedClassifier(MovementClassifier):
    """Simple tier returning a fixed sequence of classifications."""

    tier = ClassifierTier.SIMPLE

    def __init__(self, results):
        self.results = list(results)

    def classify(self, samples):
        return self.results.pop(0)


def readings(count, x=0.05, y=0.05, z=0.07, step_ms=50, start=START_MS):
    return [{"x": x, "y": y, "z": z, "timestamp": start + i * step_ms} for i in range(count)]


class TestMovementEngine(unittest.TestCase):
    """Test cases for MovementEngine."""

    def setUp(self):
        self.clock = FakeClock()

    def make_engine(self, **overrides):
        return MovementEngine(EngineConfig(**overrides), clock=self.clock)

    def feed(self, engine, items):
        return [engine.push_sample(item) for item in items]

    def test_initial_state(self):
        engine = self.make_engine()

        self.assertEqual(engine.state.type, MovementType.UNKNOWN)
        self.assertEqual(engine.state.confidence, 0.0)
        self.assertTrue(engine.state.is_supported)
        self.assertTrue(engine.is_running)

    def test_tick_waits_for_enough_samples(self):
        engine = self.make_engine()
        initial = engine.state
        self.feed(engine, readings(14))

        self.assertIs(engine.tick(), initial)

    def test_stationary_window_is_published(self):
        engine = self.make_engine(use_simple_mode=True)
        self.feed(engine, readings(40))

        state = engine.tick()

        self.assertEqual(state.type, MovementType.STATIONARY)
        self.assertEqual(state.confidence, 0.8)
        self.assertTrue(state.is_supported)
        self.assertEqual(state.details.stationary_confidence, 0.8)
        self.assertEqual(state.last_updated.timestamp() * 1000, START_MS)

    def test_enhanced_tier_classifies_still_device(self):
        engine = self.make_engine()
        self.feed(engine, readings(30, x=0.01, y=0.0, z=0.0))

        state = engine.tick()

        self.assertEqual(state.type, MovementType.STATIONARY)
        self.assertGreater(state.confidence, 0.9)

    def test_buffer_capacity_follows_sample_size(self):
        engine = self.make_engine(sample_size=10, max_sample_buffer_size=60)
        self.feed(engine, readings(50))
        self.assertEqual(len(engine.buffer), 20)

    def test_burst_is_rate_limited(self):
        engine = self.make_engine()
        accepted = self.feed(engine, readings(10, step_ms=10))

        self.assertEqual(accepted.count(True), 4)

    def test_malformed_readings_are_skipped(self):
        engine = self.make_engine()
        malformed = [
            None,
            "x=1,y=2,z=3",
            {"x": 0.1, "y": 0.1},
            {"x": None, "y": 0.1, "z": 0.1},
            {"x": "fast", "y": 0.1, "z": 0.1},
            {"x": float("nan"), "y": 0.1, "z": 0.1},
            {"x": 0.1, "y": float("inf"), "z": 0.1},
        ]

        self.assertEqual(self.feed(engine, malformed), [False] * len(malformed))
        self.assertEqual(len(engine.buffer), 0)
        self.assertEqual(engine.fault_state.error_count, 0)

    def test_missing_timestamp_uses_clock(self):
        engine = self.make_engine()
        self.assertTrue(engine.push_sample({"x": 0.1, "y": 0.2, "z": 0.3}))
        self.assertEqual(engine.buffer.last_accepted_at, START_MS)

    def test_calibrates_after_collecting_window(self):
        engine = self.make_engine()
        self.feed(engine, readings(99))
        self.assertFalse(engine.calibration.calibrated)

        self.feed(engine, readings(1, start=START_MS + 99 * 50))

        self.assertTrue(engine.calibration.calibrated)
        self.assertAlmostEqual(engine.calibration.adjusted_walking_threshold, 0.55)

    def test_calibration_disabled_without_adaptive_thresholds(self):
        engine = self.make_engine(adaptive_thresholds=False)
        self.feed(engine, readings(120))
        self.assertFalse(engine.calibration.calibrated)

    def test_calibration_failure_applies_defaults(self):
        engine = self.make_engine()
        with patch.object(engine.calibrator, "calibrate", side_effect=ValueError("bad window")):
            self.feed(engine, readings(100))

        self.assertTrue(engine.calibration.calibrated)
        self.assertEqual(engine.calibration.baseline_noise, 0.1)
        self.assertEqual(engine.fault_state.error_count, 1)
        self.assertTrue(engine.is_running)

    def test_gate_keeps_previous_state(self):
        simple = ScriptedClassifier([
            Classification(type=MovementType.WALKING, confidence=0.7),
            Classification(type=MovementType.VEHICLE, confidence=0.549),
        ])
        engine = MovementEngine(EngineConfig(use_simple_mode=True, temporal_smoothing=False),
                                clock=self.clock, simple=simple)
        self.feed(engine, readings(20))

        walking = engine.tick()
        self.clock.now += 1000
        after = engine.tick()

        self.assertEqual(walking.type, MovementType.WALKING)
        self.assertIs(after, walking)

    def test_simple_mode_keeps_full_sequence_analysis(self):
        engine = self.make_engine(use_simple_mode=True)
        self.assertIs(engine.smoother.analysis, analyze_movement_sequence)

    def test_gate_applies_to_smoothed_classification(self):
        simple = ScriptedClassifier([
            Classification(type=MovementType.WALKING, confidence=0.7),
            Classification(type=MovementType.WALKING, confidence=0.7),
        ])
        engine = MovementEngine(EngineConfig(use_simple_mode=True, temporal_smoothing=True),
                                clock=self.clock, simple=simple)
        self.feed(engine, readings(20))

        walking = engine.tick()
        self.clock.now += 1000
        smoothed = Classification(type=MovementType.VEHICLE, confidence=0.5)
        with patch.object(engine.smoother, "analysis", return_value=smoothed) as analysis:
            after = engine.tick()

        self.assertEqual(walking.type, MovementType.WALKING)
        analysis.assert_called_once()
        self.assertIs(after, walking)

    def test_classifier_exceptions_disable_engine(self):
        engine = self.make_engine(error_threshold=3, safe_mode=True)
        listener = Mock()
        engine.add_disable_listener(listener)
        self.feed(engine, readings(20))

        with patch.object(engine.enhanced, "classify", side_effect=RuntimeError("sensor fault")):
            for _ in range(3):
                state = engine.tick()
                self.assertEqual(state.type, MovementType.STATIONARY)
                self.assertFalse(engine.is_disabled)
            engine.tick()

        self.assertTrue(engine.is_disabled)
        self.assertFalse(engine.is_running)
        self.assertEqual(engine.fault_state.error_count, 4)
        self.assertEqual(engine.state.type, MovementType.UNKNOWN)
        self.assertEqual(engine.state.confidence, 0.0)
        self.assertFalse(engine.state.is_supported)
        listener.assert_called_once_with(engine)

        # Further samples are ignored
        self.assertFalse(engine.push_sample(readings(1, start=START_MS + 10000)[0]))
        self.assertEqual(engine.tick(), engine.state)

    def test_without_safe_mode_engine_degrades_to_simple_chain(self):
        engine = self.make_engine(error_threshold=3, safe_mode=False)
        self.feed(engine, readings(20))

        with patch.object(engine.enhanced, "classify", side_effect=RuntimeError("sensor fault")) as classify:
            for _ in range(6):
                engine.tick()

        self.assertFalse(engine.is_disabled)
        self.assertEqual(classify.call_count, 4)
        self.assertEqual(engine.state.type, MovementType.STATIONARY)

    def test_unsupported_motion(self):
        engine = MovementEngine(EngineConfig(), motion_supported=False, clock=self.clock)

        self.assertFalse(engine.state.is_supported)
        self.assertEqual(engine.state.type, MovementType.UNKNOWN)
        self.assertFalse(engine.push_sample(readings(1)[0]))
        self.assertIs(engine.tick(), engine.state)

    def test_shutdown_is_idempotent(self):
        engine = self.make_engine()
        engine.shutdown()
        engine.shutdown()

        self.assertFalse(engine.is_running)
        self.assertFalse(engine.push_sample(readings(1)[0]))

    def test_diagnostics(self):
        engine = self.make_engine()
        self.feed(engine, readings(15))

        diagnostics = engine.diagnostics()

        self.assertEqual(len(diagnostics["recent_samples"]), 10)
        self.assertEqual(diagnostics["recent_samples"][-1]["timestamp"], START_MS + 14 * 50)
        self.assertFalse(diagnostics["calibration"]["calibrated"])
        self.assertEqual(diagnostics["state"]["type"], "unknown")
        self.assertEqual(diagnostics["config"]["sample_size"], 30)


if __name__ == "__main__":
    unittest.main()

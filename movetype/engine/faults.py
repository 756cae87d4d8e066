"""
Fault accounting and the circuit breaker.

Every pipeline stage reports its failures here. Each fault is counted; log
records are throttled to one per window so a failing sensor cannot flood the
log. With safe mode on, exceeding the error threshold opens the breaker for
good.
"""

import time
from typing import Any, Callable, Dict, Optional

import structlog

from movetype.core.errors import Severity
from .models import FaultState

Clock = Callable[[], float]


def wall_clock_ms() -> float:
    """Default clock: wall time in milliseconds."""
    return time.time() * 1000.0


_LOG_METHODS = {
    Severity.LOW: "info",
    Severity.MEDIUM: "warning",
    Severity.HIGH: "error",
    Severity.CRITICAL: "critical",
}


class FaultController:
    """
    Counts pipeline faults and opens the breaker past the threshold.

    The breaker has two states, active and disabled, and never closes again.
    """

    def __init__(self,
                 error_threshold: int = 3,
                 safe_mode: bool = True,
                 log_interval_ms: float = 10000.0,
                 clock: Optional[Clock] = None):
        """
        Args:
            error_threshold: Faults tolerated before the breaker may open
            safe_mode: Whether exceeding the threshold disables detection
            log_interval_ms: Minimum time between fault log records
            clock: Millisecond clock, wall time by default
        """
        self.error_threshold = error_threshold
        self.safe_mode = safe_mode
        self.log_interval_ms = log_interval_ms
        self.clock = clock or wall_clock_ms
        self.state = FaultState()
        self.logger = structlog.get_logger(component="fault_controller")
        self._last_logged_at: Optional[float] = None
        self._suppressed = 0

    @property
    def disabled(self) -> bool:
        return self.state.disabled

    @property
    def degraded(self) -> bool:
        """True once more faults than the threshold have been counted."""
        return self.state.error_count > self.error_threshold

    def record(self,
               stage: str,
               error: BaseException,
               severity: Severity = Severity.HIGH,
               context: Optional[Dict[str, Any]] = None) -> bool:
        """
        Record one fault.

        Args:
            stage: Pipeline stage that failed
            error: The exception raised
            severity: How serious the failure is
            context: Diagnostic data attached to the log record

        Returns:
            True if detection is disabled after this fault
        """
        if self.state.disabled:
            return True

        now = self.clock()
        self.state.error_count += 1
        self.state.last_error_time = now

        if self._last_logged_at is None or now - self._last_logged_at > self.log_interval_ms:
            log = getattr(self.logger, _LOG_METHODS[severity])
            log("Movement pipeline fault",
                stage=stage,
                severity=severity.value,
                error=str(error),
                error_type=type(error).__name__,
                error_count=self.state.error_count,
                suppressed=self._suppressed,
                context=context or {})
            self._last_logged_at = now
            self._suppressed = 0
        else:
            self._suppressed += 1

        if self.safe_mode and self.degraded:
            self.state.disabled = True
            self.logger.critical("Too many movement detection errors, disabling detection",
                                 error_count=self.state.error_count,
                                 error_threshold=self.error_threshold)
        return self.state.disabled

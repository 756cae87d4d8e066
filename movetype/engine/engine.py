"""
The movement classification engine.

MovementEngine owns the whole pipeline for one detection session:

    push_sample -> SampleBuffer (+ Calibrator)
    tick        -> median filter -> classifier chain -> TemporalSmoother
                -> AdaptiveThresholdGate -> published MovementState

Every stage reports failures to a single FaultController. Once the breaker
opens the engine stops accepting samples and publishes an unsupported state;
a new engine is needed to resume detection.
"""

import dataclasses
import math
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

import structlog

from movetype.core.config import EngineConfig
from movetype.core.errors import CalibrationError, Severity
from .buffer import SampleBuffer
from .calibration import Calibrator
from .classifiers import (
    EnhancedClassifier, FallbackChain, FallbackClassifier, MovementClassifier, SimpleClassifier,
)
from .faults import Clock, FaultController, wall_clock_ms
from .filters import median_filter
from .gate import AdaptiveThresholdGate
from .models import (
    AccelerationSample, CalibrationProfile, Classification, FaultState, MovementState,
)
from .smoothing import TemporalSmoother, analyze_movement_sequence

DisableListener = Callable[["MovementEngine"], None]

DIAGNOSTIC_SAMPLE_COUNT = 10


class MovementEngine:
    """
    Classifies buffered accelerometer samples into a published MovementState.

    The engine is synchronous and never raises from ``push_sample`` or
    ``tick``; a host drives it by pushing readings as they arrive and calling
    ``tick`` every ``update_interval_ms``.
    """

    def __init__(self,
                 config: Optional[EngineConfig] = None,
                 *,
                 motion_supported: bool = True,
                 clock: Optional[Clock] = None,
                 enhanced: Optional[MovementClassifier] = None,
                 simple: Optional[MovementClassifier] = None,
                 fallback: Optional[MovementClassifier] = None):
        """
        Initialize the engine.

        Args:
            config: Engine configuration (defaults to EngineConfig())
            motion_supported: Whether the host can deliver motion readings
            clock: Millisecond clock used for timestamps and fault windows
            enhanced: Replacement for the enhanced classifier tier
            simple: Replacement for the simple classifier tier
            fallback: Replacement for the fallback classifier tier
        """
        self.config = config or EngineConfig()
        self.clock = clock or wall_clock_ms
        self.logger = structlog.get_logger(component="movement_engine")

        self.buffer = SampleBuffer(self.config.buffer_capacity, self.config.min_sample_interval_ms)
        self.calibrator = Calibrator(
            walking_threshold=self.config.walking_threshold,
            vehicle_threshold=self.config.vehicle_threshold,
            sample_count=self.config.calibration_sample_count,
        )
        self.fallback = fallback or FallbackClassifier()
        self.simple = simple or SimpleClassifier(
            self.fallback if isinstance(self.fallback, FallbackClassifier) else None
        )
        self.enhanced = enhanced or EnhancedClassifier()
        self.smoother = TemporalSmoother(
            capacity=self.config.history_size,
            analysis=analyze_movement_sequence,
        )
        self.gate = AdaptiveThresholdGate(self.config.min_confidence)
        self.faults = FaultController(
            error_threshold=self.config.error_threshold,
            safe_mode=self.config.safe_mode,
            log_interval_ms=self.config.error_log_interval_ms,
            clock=self.clock,
        )

        self.motion_supported = motion_supported
        self._running = motion_supported
        self._shut_down = False
        self._disable_listeners: List[DisableListener] = []

        if motion_supported:
            self._state = MovementState(is_supported=True)
        else:
            self._state = MovementState.unsupported(self._now())
            self.logger.warning("Motion sensing not supported, movement detection inactive")

    @property
    def state(self) -> MovementState:
        """The last published movement state."""
        return self._state

    @property
    def calibration(self) -> CalibrationProfile:
        return self.calibrator.profile

    @property
    def fault_state(self) -> FaultState:
        return self.faults.state

    @property
    def is_disabled(self) -> bool:
        """True once the circuit breaker has opened."""
        return self.faults.disabled

    @property
    def is_running(self) -> bool:
        """Whether the engine still accepts samples and analyses them."""
        return self._running

    def add_disable_listener(self, listener: DisableListener) -> None:
        """Register a callback invoked once when the breaker opens."""
        self._disable_listeners.append(listener)

    def push_sample(self, reading: Optional[Mapping[str, Any]]) -> bool:
        """
        Offer one raw reading to the engine.

        Args:
            reading: Mapping with ``x``, ``y``, ``z`` and an optional
                ``timestamp`` in milliseconds

        Returns:
            True if the sample was buffered
        """
        if not self._running:
            return False

        sample = self._parse_reading(reading)
        if sample is None:
            return False

        try:
            if not self.buffer.push(sample):
                return False
            if self.config.adaptive_thresholds and not self.calibrator.is_calibrated:
                window = self.calibrator.collect(sample.magnitude)
                if window is not None:
                    self._calibrate(window)
            return True
        except Exception as e:
            self._fault("ingestion", e, Severity.HIGH)
            return False

    def tick(self) -> MovementState:
        """
        Run one analysis pass over the buffered samples.

        Returns:
            The published state after this pass
        """
        if not self._running:
            return self._state

        try:
            samples = self.buffer.snapshot()
            if len(samples) < self.config.min_analysis_samples:
                return self._state

            filtered = self._filter(samples)
            if not self._running:
                return self._state

            classification = self._classify(filtered)
            if classification is None or not self._running:
                return self._state

            classification = self._smooth(classification)
            if not self._running:
                return self._state

            if self.gate.admits(classification):
                self._publish(classification)
        except Exception as e:
            self._fault("analysis", e, Severity.HIGH)

        return self._state

    def shutdown(self) -> None:
        """Stop accepting samples and analysing. Safe to call more than once."""
        if self._shut_down:
            return
        self._shut_down = True
        self._running = False
        self._disable_listeners.clear()
        self.logger.info("Movement engine shut down",
                         state=self._state.type.value,
                         error_count=self.faults.state.error_count)

    def diagnostics(self) -> Dict[str, Any]:
        """Snapshot of recent samples, calibration, state and options for fault reports."""
        return {
            "recent_samples": [dataclasses.asdict(s) for s in self.buffer.recent(DIAGNOSTIC_SAMPLE_COUNT)],
            "calibration": self.calibrator.profile.model_dump(),
            "state": self._state.model_dump(mode="json"),
            "config": self.config.model_dump(mode="json"),
        }

    def _parse_reading(self, reading) -> Optional[AccelerationSample]:
        if not isinstance(reading, Mapping):
            return None
        try:
            x, y, z = (float(reading[axis]) for axis in ("x", "y", "z"))
            timestamp = reading.get("timestamp")
            timestamp = self.clock() if timestamp is None else float(timestamp)
        except (KeyError, TypeError, ValueError):
            return None
        if not all(math.isfinite(v) for v in (x, y, z, timestamp)):
            return None
        return AccelerationSample.from_axes(x, y, z, timestamp)

    def _calibrate(self, window: Sequence[float]) -> None:
        try:
            self.calibrator.run(window)
        except (CalibrationError, ArithmeticError, ValueError) as e:
            self.calibrator.apply_defaults()
            self._fault("calibration", e, Severity.MEDIUM)

    def _filter(self, samples: List[AccelerationSample]) -> List[AccelerationSample]:
        try:
            return median_filter(samples)
        except Exception as e:
            self._fault("filtering", e, Severity.MEDIUM)
            return samples

    def _classify(self, samples: List[AccelerationSample]) -> Optional[Classification]:
        if self.config.use_simple_mode or self.faults.degraded:
            chain = FallbackChain([self.simple, self.fallback])
        else:
            chain = FallbackChain([self.enhanced, self.simple, self.fallback])

        result = chain.run(samples)
        for failure in result.failures:
            if self._fault(f"classification.{failure.tier.value}", failure.error, failure.severity):
                return None
        if result.exhausted:
            return None
        return result.classification

    def _smooth(self, classification: Classification) -> Classification:
        if not self.config.temporal_smoothing:
            return classification
        smoothed, error = self.smoother.update(classification)
        if error is not None:
            self._fault("smoothing", error, Severity.LOW)
        return smoothed

    def _publish(self, classification: Classification) -> None:
        self._state = MovementState(
            type=classification.type,
            confidence=classification.confidence,
            last_updated=self._now(),
            is_supported=True,
            details=classification.details,
        )

    def _fault(self, stage: str, error: BaseException, severity: Severity) -> bool:
        disabled = self.faults.record(stage, error, severity, context=self.diagnostics())
        if disabled and self._running:
            self._disable()
        return disabled

    def _disable(self) -> None:
        self._running = False
        self._state = MovementState.unsupported(self._now())
        for listener in list(self._disable_listeners):
            try:
                listener(self)
            except Exception as e:
                self.logger.error("Disable listener failed", error=str(e))

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self.clock() / 1000.0, tz=timezone.utc)

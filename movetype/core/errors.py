"""
Error taxonomy for the movement pipeline.

Every stage of the pipeline reports failures with a severity. Severities decide
the log level of a fault record; any fault counts toward the circuit breaker.
"""

from enum import Enum
from typing import Optional


class Severity(str, Enum):
    """How serious a pipeline fault is."""
    LOW = "low"            # smoothing
    MEDIUM = "medium"      # filtering, calibration, simple classifier
    HIGH = "high"          # enhanced classifier, sample and analysis handlers
    CRITICAL = "critical"  # every classifier tier failed


class MovementDetectionError(Exception):
    """Base class for errors raised by the movement pipeline."""

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.stage = stage


class CalibrationError(MovementDetectionError):
    """Raised when calibration samples cannot produce a noise profile."""

    def __init__(self, message: str):
        super().__init__(message, stage="calibration")


class ClassificationError(MovementDetectionError):
    """Raised by a classifier tier that cannot classify its window."""

    def __init__(self, message: str, tier: Optional[str] = None):
        super().__init__(message, stage="classification")
        self.tier = tier

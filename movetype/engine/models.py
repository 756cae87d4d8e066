"""
Data models for the movement pipeline.

Samples are plain frozen dataclasses because the buffer holds many of them;
everything that leaves a pipeline stage is a frozen pydantic model so the
history and the published state can be shared without copies.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class MovementType(str, Enum):
    """Movement classes the engine can report."""
    STATIONARY = "stationary"
    WALKING = "walking"
    VEHICLE = "vehicle"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class AccelerationSample:
    """One accelerometer reading, timestamp in milliseconds."""
    x: float
    y: float
    z: float
    magnitude: float
    timestamp: float

    @classmethod
    def from_axes(cls, x: float, y: float, z: float, timestamp: float) -> "AccelerationSample":
        """Build a sample and compute its Euclidean magnitude."""
        return cls(x=x, y=y, z=z, magnitude=math.sqrt(x * x + y * y + z * z), timestamp=timestamp)


def _clamp_confidence(value) -> float:
    value = float(value)
    if math.isnan(value) or math.isinf(value):
        raise ValueError("confidence must be a finite number")
    return min(1.0, max(0.0, value))


class CalibrationProfile(BaseModel):
    """Device noise profile derived from the first calibration window."""
    model_config = ConfigDict(frozen=True)

    baseline_noise: float = 0.0
    noise_range: float = 0.0
    adjusted_walking_threshold: float
    adjusted_vehicle_threshold: float
    calibrated: bool = False


class FrequencySignature(BaseModel):
    """Frequency-domain summary of a sample window."""
    model_config = ConfigDict(frozen=True)

    peak_frequency: Optional[float] = None
    spectral_energy: float = 0.0
    dominant_frequencies: Tuple[float, ...] = ()
    spectral_centroid: float = 0.0
    walking_signature: Optional[float] = None
    vehicle_signature: Optional[float] = None


class MovementDetails(BaseModel):
    """Per-class confidences and the frequencies behind a decision."""
    model_config = ConfigDict(frozen=True)

    vehicle_confidence: float = 0.0
    walking_confidence: float = 0.0
    stationary_confidence: float = 0.0
    dominant_frequencies: Tuple[float, ...] = ()

    @field_validator("vehicle_confidence", "walking_confidence", "stationary_confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v):
        return _clamp_confidence(v)

    def adjust(self, **changes) -> "MovementDetails":
        """Return a validated copy with the given fields replaced."""
        values = self.model_dump()
        values.update(changes)
        return MovementDetails(**values)


class Classification(BaseModel):
    """Result of one classifier run over the sample window."""
    model_config = ConfigDict(frozen=True)

    type: MovementType
    confidence: float
    details: MovementDetails = MovementDetails()
    signature: Optional[FrequencySignature] = None
    tier: Optional[str] = None

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, v):
        return _clamp_confidence(v)

    @classmethod
    def unknown(cls, confidence: float = 0.5) -> "Classification":
        """Substitute used whenever a stage yields no usable result."""
        return cls(type=MovementType.UNKNOWN, confidence=confidence)

    def evolve(self, **changes) -> "Classification":
        """Return a validated copy with the given fields replaced."""
        values = {
            "type": self.type,
            "confidence": self.confidence,
            "details": self.details,
            "signature": self.signature,
            "tier": self.tier,
        }
        values.update(changes)
        return Classification(**values)


class MovementState(BaseModel):
    """The published movement state. Replaced as a whole, never mutated."""
    model_config = ConfigDict(frozen=True)

    type: MovementType = MovementType.UNKNOWN
    confidence: float = 0.0
    last_updated: Optional[datetime] = None
    is_supported: Optional[bool] = None
    details: Optional[MovementDetails] = None

    @model_validator(mode="after")
    def check_unsupported_is_unknown(self):
        if self.is_supported is False and self.type != MovementType.UNKNOWN:
            raise ValueError("an unsupported state must report an unknown movement type")
        return self

    @classmethod
    def unsupported(cls, last_updated: Optional[datetime] = None) -> "MovementState":
        """State published when motion sensing is unavailable or disabled."""
        return cls(type=MovementType.UNKNOWN, confidence=0.0,
                   last_updated=last_updated, is_supported=False)


@dataclass
class FaultState:
    """Error bookkeeping for the circuit breaker."""
    error_count: int = 0
    last_error_time: float = 0.0
    disabled: bool = False

"""
Movement classification pipeline.

The MovementEngine is the entry point; the other modules are its stages.
"""

from .engine import MovementEngine
from .models import (
    AccelerationSample, CalibrationProfile, Classification, FaultState,
    FrequencySignature, MovementDetails, MovementState, MovementType,
)

__all__ = [
    'MovementEngine',
    'AccelerationSample',
    'CalibrationProfile',
    'Classification',
    'FaultState',
    'FrequencySignature',
    'MovementDetails',
    'MovementState',
    'MovementType',
]

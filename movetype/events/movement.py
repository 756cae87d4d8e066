"""
Movement events for movetype.

This module defines the events the movement service publishes as detection
progresses.
"""

from typing import Literal, Optional
from movetype.core.events import BaseEvent, EventType
from movetype.engine.models import CalibrationProfile, MovementState, MovementType


class MovementStateChangedEvent(BaseEvent):
    """
    Event published when the engine publishes a new movement state.

    Consumers should treat ``state`` as the current truth; ``previous_type``
    is provided to make transitions easy to detect.
    """
    type: Literal[EventType.MOVEMENT_STATE_CHANGED] = EventType.MOVEMENT_STATE_CHANGED
    state: MovementState
    previous_type: Optional[MovementType] = None


class CalibrationCompletedEvent(BaseEvent):
    """Event published once the device noise profile is known."""
    type: Literal[EventType.CALIBRATION_COMPLETED] = EventType.CALIBRATION_COMPLETED
    profile: CalibrationProfile


class MovementDetectionDisabledEvent(BaseEvent):
    """
    Event published when the circuit breaker disables movement detection.

    Detection stays disabled until the service is restarted.
    """
    type: Literal[EventType.MOVEMENT_DETECTION_DISABLED] = EventType.MOVEMENT_DETECTION_DISABLED
    reason: str
    error_count: int

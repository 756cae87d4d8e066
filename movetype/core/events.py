"""
Core event system for movetype.

This module defines the base event model and event type enum that form the foundation
of the typed event system. All events in the system should inherit from BaseEvent.
"""

import time
import uuid
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class EventType(str, Enum):
    """
    Enum defining all event types in the system.

    Using string-based enum to ensure JSON serialization works properly.
    """
    # Movement events
    MOVEMENT_STATE_CHANGED = "movement_state_changed"
    MOVEMENT_DETECTION_DISABLED = "movement_detection_disabled"
    CALIBRATION_COMPLETED = "calibration_completed"

    # System events
    SERVICE_STATE_CHANGED = "service_state_changed"


def generate_trace_id() -> str:
    """Generate a unique trace ID for event tracing."""
    return str(uuid.uuid4())


class BaseEvent(BaseModel):
    """
    Base model for all events with common metadata.

    All events in the system should inherit from this class and specify the event type
    and any additional payload fields required for that event.
    """
    # Allow extra attributes for forward compatibility; keep enum members as values
    model_config = ConfigDict(extra="allow", use_enum_values=True)

    type: EventType
    producer_name: str = ""
    timestamp: float = Field(default_factory=time.time)
    trace_id: Optional[str] = Field(default_factory=generate_trace_id)

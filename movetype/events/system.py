"""
System events for movetype.

This module defines events related to service lifecycle.
"""

from typing import Optional, Literal
from movetype.core.events import BaseEvent, EventType


class ServiceStateChangedEvent(BaseEvent):
    """
    Event published when a service changes state.

    This event is used to communicate service lifecycle changes
    (started, stopping, stopped, disabled, error).
    """
    type: Literal[EventType.SERVICE_STATE_CHANGED] = EventType.SERVICE_STATE_CHANGED
    service_name: str
    state: str
    error: Optional[str] = None  # Present only if state is 'error'

"""
Event definitions for movetype.

This package contains the event types published on the bus, organized by
functional area.
"""

# Re-export core types
from movetype.core.events import EventType, BaseEvent

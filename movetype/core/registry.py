"""
Event registry for movetype.

This module records which event types exist, which schema each one must match,
and which services produce and consume them. The event bus consults it before
delivering anything.
"""

import logging
from typing import Dict, Set, Type, Any, Optional
from .events import EventType, BaseEvent


class EventRegistry:
    """
    Central registry of event types, producers, and consumers.

    The registry maintains:
    - The schema (event class) and description for each event type
    - Which services produce which events
    - Which services consume which events
    """

    def __init__(self):
        self._producers: Dict[EventType, Set[str]] = {}
        self._consumers: Dict[EventType, Set[str]] = {}
        self._event_schemas: Dict[EventType, Dict[str, Any]] = {}
        self._logger = logging.getLogger(__name__)

    def register_event(self, event_type: EventType, event_schema: Type[BaseEvent], description: str):
        """
        Register an event type with its schema and description.

        Registering the same type again replaces the previous schema.

        Args:
            event_type: The type of event being registered
            event_schema: The pydantic model class for this event type
            description: Human-readable description of this event type
        """
        self._event_schemas[event_type] = {
            'schema': event_schema,
            'description': description
        }
        self._logger.debug(f"Registered event type: {event_type}")

    def register_producer(self, service_name: str, event_type: EventType):
        """
        Register a service as an event producer.

        Args:
            service_name: Name of the service producing the event
            event_type: Type of event the service produces
        """
        self._producers.setdefault(event_type, set()).add(service_name)
        self._logger.debug(f"Registered producer {service_name} for {event_type}")

    def register_consumer(self, service_name: str, event_type: EventType):
        """
        Register a service as an event consumer.

        Args:
            service_name: Name of the service consuming the event
            event_type: Type of event the service consumes
        """
        self._consumers.setdefault(event_type, set()).add(service_name)
        self._logger.debug(f"Registered consumer {service_name} for {event_type}")

    def validate_schema(self, event: BaseEvent) -> bool:
        """
        Validate that an event matches its registered schema.

        Args:
            event: The event to validate

        Returns:
            bool: True if validation passes

        Raises:
            ValueError: If event type is unknown
            TypeError: If event doesn't match registered schema
        """
        event_type = event.type
        if event_type not in self._event_schemas:
            raise ValueError(f"Unknown event type: {event_type}")

        schema = self._event_schemas[event_type]['schema']
        if not isinstance(event, schema):
            raise TypeError(f"Event does not match schema for {event_type}")

        return True

    def get_event_flow(self, event_type: EventType) -> Dict[str, Set[str]]:
        """
        Get all producers and consumers for an event type.

        Args:
            event_type: The event type to get flow information for

        Returns:
            Dict containing producers and consumers sets
        """
        return {
            'producers': self._producers.get(event_type, set()),
            'consumers': self._consumers.get(event_type, set())
        }

    def get_event_description(self, event_type: EventType) -> Optional[str]:
        """Get the description for an event type, or None if it is not registered."""
        if event_type in self._event_schemas:
            return self._event_schemas[event_type]['description']
        return None

    def get_all_event_types(self) -> Set[EventType]:
        """Get all registered event types."""
        return set(self._event_schemas.keys())

"""
Core framework for movetype.

This package provides the fundamental components the engine and services share:
- Event system with typed event definitions
- Event registry and bus
- Service lifecycle management
- Configuration management
- Error taxonomy and severities
"""

from .events import EventType, BaseEvent
from .registry import EventRegistry
from .bus import EventBus
from .service import BaseService
from .config import get_config, ApplicationConfig, EngineConfig, ServiceConfig
from .errors import Severity, MovementDetectionError, CalibrationError, ClassificationError

__all__ = [
    'EventType',
    'BaseEvent',
    'EventRegistry',
    'EventBus',
    'BaseService',
    'get_config',
    'ApplicationConfig',
    'EngineConfig',
    'ServiceConfig',
    'Severity',
    'MovementDetectionError',
    'CalibrationError',
    'ClassificationError',
]

"""
Services for movetype.

Services own long-running tasks and publish their results on the event bus.
"""

from .movement import MovementService

__all__ = ['MovementService']

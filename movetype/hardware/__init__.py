"""
Motion sources for movetype.

Each source implements the MotionSource lifecycle and yields raw accelerometer
readings for the movement service.
"""

from .base import MotionSource
from .replay import ReplayMotionSource, load_recording

__all__ = ['MotionSource', 'ReplayMotionSource', 'load_recording']

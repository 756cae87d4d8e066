"""
Motion source abstraction for movetype.

This module provides the MotionSource class that every source of accelerometer
readings inherits from, defining the source lifecycle and the reading stream.
"""

import asyncio
import structlog
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, Mapping, Optional


class MotionSource(ABC):
    """
    Base class for accelerometer reading sources.

    A source is initialized once, reports whether motion sensing is available,
    yields readings as mappings with ``x``, ``y``, ``z`` and ``timestamp``
    (milliseconds), and is shut down when no longer needed.
    """

    def __init__(self, config: Optional[Any] = None, name: Optional[str] = None):
        """
        Initialize the source.

        Args:
            config: Optional source-specific configuration
            name: Optional name for this source instance
        """
        self.config = config
        self.name = name or self.__class__.__name__
        self.logger = structlog.get_logger(hardware=self.name)
        self._initialized = False
        self._lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Prepare the source for reading."""
        async with self._lock:
            if self._initialized:
                self.logger.warning("Motion source already initialized")
                return

            try:
                await self._initialize_impl()
            except Exception as e:
                self.logger.error(f"Error initializing motion source: {e}")
                raise
            self._initialized = True
            self.logger.info("Motion source initialized")

    async def shutdown(self) -> None:
        """Release the source."""
        async with self._lock:
            if not self._initialized:
                self.logger.warning("Motion source not initialized")
                return

            try:
                await self._shutdown_impl()
            except Exception as e:
                self.logger.error(f"Error shutting down motion source: {e}")
                raise
            self._initialized = False
            self.logger.info("Motion source shut down")

    def is_initialized(self) -> bool:
        return self._initialized

    def is_supported(self) -> bool:
        """
        Whether this host can deliver motion readings.

        Queried once when detection starts.
        """
        return True

    @abstractmethod
    def readings(self) -> AsyncIterator[Mapping[str, Any]]:
        """Yield readings until the source is exhausted or shut down."""

    @abstractmethod
    async def _initialize_impl(self) -> None:
        """Source-specific initialization."""

    @abstractmethod
    async def _shutdown_impl(self) -> None:
        """Source-specific cleanup."""

    async def check_health(self) -> Dict[str, Any]:
        """
        Report the health of the source.

        Returns:
            Dictionary with health information
        """
        return {
            "name": self.name,
            "initialized": self._initialized,
            "supported": self.is_supported(),
            "status": "ok" if self._initialized else "idle",
        }

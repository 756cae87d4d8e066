"""
Movement detection service.

Connects a MotionSource to a MovementEngine. Readings travel through a bounded
channel: a pump task submits each reading from the source, and an analysis
task drains the channel into the engine every update interval, runs a tick
and publishes the results on the event bus.
"""

import asyncio
from typing import Any, Mapping, Optional

from movetype.core.bus import EventBus
from movetype.core.config import ApplicationConfig
from movetype.core.events import BaseEvent, EventType
from movetype.core.service import BaseService
from movetype.engine import MovementEngine, MovementState
from movetype.engine.faults import Clock
from movetype.events.movement import (
    CalibrationCompletedEvent, MovementDetectionDisabledEvent, MovementStateChangedEvent,
)
from movetype.hardware.base import MotionSource


class MovementService(BaseService):
    """Runs movement detection for one motion source."""

    PRODUCES_EVENTS = {
        EventType.MOVEMENT_STATE_CHANGED: {
            'schema': MovementStateChangedEvent,
            'description': "The published movement state changed",
        },
        EventType.CALIBRATION_COMPLETED: {
            'schema': CalibrationCompletedEvent,
            'description': "The device noise profile was calibrated",
        },
        EventType.MOVEMENT_DETECTION_DISABLED: {
            'schema': MovementDetectionDisabledEvent,
            'description': "Movement detection was disabled after repeated errors",
        },
    }

    def __init__(self,
                 event_bus: EventBus,
                 source: MotionSource,
                 config: Optional[ApplicationConfig] = None,
                 name: Optional[str] = None,
                 clock: Optional[Clock] = None):
        """
        Initialize the service.

        Args:
            event_bus: The event bus to publish movement events on
            source: Where accelerometer readings come from
            config: Application configuration (defaults to ApplicationConfig())
            name: Optional service name
            clock: Millisecond clock handed to the engine
        """
        super().__init__(event_bus, name=name, config=config or ApplicationConfig())
        self.source = source
        self.clock = clock
        self.engine: Optional[MovementEngine] = None
        self.channel: Optional[asyncio.Queue] = None
        self.dropped_readings = 0
        self._pump_task: Optional[asyncio.Task] = None
        self._analysis_task: Optional[asyncio.Task] = None
        self._published_state: Optional[MovementState] = None
        self._calibration_reported = False

    @property
    def state(self) -> MovementState:
        """The current movement state; unknown before the service starts."""
        if self.engine is None:
            return MovementState()
        return self.engine.state

    async def start(self) -> None:
        """Start the source, the engine and both tasks."""
        await super().start()

        await self.source.initialize()
        supported = self.source.is_supported()
        self.engine = MovementEngine(self.config.engine, motion_supported=supported, clock=self.clock)
        self.engine.add_disable_listener(self._on_engine_disabled)
        self.channel = asyncio.Queue(maxsize=self.config.service.channel_capacity)

        await self._publish_state_change(self.engine.state)
        if not supported:
            self.logger.warning("Motion sensing not supported by source", source=self.source.name)
            return

        self._pump_task = asyncio.create_task(self._pump_source())
        self._analysis_task = asyncio.create_task(self._analysis_loop())

    async def stop(self) -> None:
        """Cancel both tasks, shut the engine down and release the source."""
        for task in (self._pump_task, self._analysis_task):
            if task is not None and not task.done():
                task.cancel()
        for task in (self._pump_task, self._analysis_task):
            if task is not None:
                try:
                    await asyncio.wait_for(task, timeout=self.config.service.service_shutdown_timeout)
                except asyncio.CancelledError:
                    pass
                except asyncio.TimeoutError:
                    self.logger.warning("Task did not stop in time", task=task.get_name())
        self._pump_task = None
        self._analysis_task = None

        if self.engine is not None:
            self.engine.shutdown()
        if self.source.is_initialized():
            await self.source.shutdown()

        await super().stop()

    async def wait_for_source(self) -> None:
        """Wait until the motion source has no more readings."""
        if self._pump_task is not None and not self._pump_task.done():
            await asyncio.wait({self._pump_task})

    def submit(self, reading: Mapping[str, Any]) -> bool:
        """
        Queue one reading for the engine without blocking.

        Returns:
            False if the reading was dropped because the channel is full or
            detection is no longer running
        """
        if self.channel is None or self.engine is None or not self.engine.is_running:
            return False
        try:
            self.channel.put_nowait(reading)
        except asyncio.QueueFull:
            self.dropped_readings += 1
            return False
        return True

    def drain_channel(self) -> int:
        """Move every queued reading into the engine. Returns readings accepted."""
        accepted = 0
        while self.channel is not None and not self.channel.empty():
            reading = self.channel.get_nowait()
            if self.engine.push_sample(reading):
                accepted += 1
        return accepted

    async def handle_event(self, event: BaseEvent) -> None:
        """The movement service consumes no events."""
        return None

    async def _pump_source(self) -> None:
        try:
            async for reading in self.source.readings():
                if not self.engine.is_running:
                    break
                self.submit(reading)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self.logger.error("Motion source failed", error=str(e), exc_info=True)
            await self.publish_service_state('error', error=str(e))
        else:
            self.logger.info("Motion source finished", dropped_readings=self.dropped_readings)

    async def _analysis_loop(self) -> None:
        interval = self.config.engine.update_interval_ms / 1000.0
        while self.engine.is_running:
            await asyncio.sleep(interval)
            self.drain_channel()
            state = self.engine.tick()

            if not self._calibration_reported and self.engine.calibration.calibrated:
                self._calibration_reported = True
                await self.publish(CalibrationCompletedEvent(profile=self.engine.calibration))

            await self._publish_state_change(state)

        if self.engine.is_disabled:
            await self.publish(MovementDetectionDisabledEvent(
                reason="error threshold exceeded",
                error_count=self.engine.fault_state.error_count,
            ))
            await self.publish_service_state('disabled')

    async def _publish_state_change(self, state: MovementState) -> None:
        if state == self._published_state:
            return
        previous = self._published_state
        self._published_state = state
        await self.publish(MovementStateChangedEvent(
            state=state,
            previous_type=previous.type if previous is not None else None,
        ))

    def _on_engine_disabled(self, engine: MovementEngine) -> None:
        self.logger.warning("Movement detection disabled",
                            error_count=engine.fault_state.error_count)
        if self._pump_task is not None and self._pump_task is not asyncio.current_task():
            self._pump_task.cancel()

"""
Unit tests for the MovementService.
"""

import asyncio
import unittest
from unittest.mock import patch

from movetype.core.bus import EventBus
from movetype.core.config import ApplicationConfig, EngineConfig, ServiceConfig
from movetype.core.events import EventType
from movetype.engine.models import MovementType
from movetype.hardware.replay import ReplayMotionSource
from movetype.services.movement import MovementService


def readings(count, x=0.05, y=0.05, z=0.07, step_ms=50):
    return [{"x": x, "y": y, "z": z, "timestamp": i * step_ms} for i in range(count)]


class UnsupportedSource(ReplayMotionSource):
    def is_supported(self):
        return False


class TestMovementService(unittest.IsolatedAsyncioTestCase):
    """Test cases for MovementService."""

    async def asyncSetUp(self):
        self.event_bus = EventBus()
        self.events = []
        self.disabled = asyncio.Event()
        self.event_bus.subscribe(None, self.record_event, "test")

    async def record_event(self, event):
        self.events.append(event)
        if event.type == EventType.MOVEMENT_DETECTION_DISABLED:
            self.disabled.set()

    def make_service(self, source, **engine_options):
        engine = {"update_interval_ms": 10, "sample_size": 10, "use_simple_mode": True}
        engine.update(engine_options)
        config = ApplicationConfig(engine=EngineConfig(**engine), service=ServiceConfig(service_shutdown_timeout=1.0))
        return MovementService(self.event_bus, source, config=config)

    def state_events(self):
        return [e for e in self.events if e.type == EventType.MOVEMENT_STATE_CHANGED]

    async def test_registers_movement_events(self):
        service = self.make_service(ReplayMotionSource(readings=[]))

        registered = self.event_bus.registry.get_all_event_types()
        for event_type in (EventType.MOVEMENT_STATE_CHANGED, EventType.CALIBRATION_COMPLETED,
                           EventType.MOVEMENT_DETECTION_DISABLED, EventType.SERVICE_STATE_CHANGED):
            self.assertIn(event_type, registered)
        flow = self.event_bus.registry.get_event_flow(EventType.MOVEMENT_STATE_CHANGED)
        self.assertIn(service.name, flow['producers'])

    async def test_publishes_stationary_state(self):
        service = self.make_service(ReplayMotionSource(readings=readings(40)))

        await service.start()
        await service.wait_for_source()
        await asyncio.sleep(0.1)
        await service.stop()

        published = self.state_events()
        self.assertIsNone(published[0].previous_type)
        self.assertEqual(published[0].state.type, MovementType.UNKNOWN)
        self.assertTrue(any(e.state.type == MovementType.STATIONARY for e in published))
        self.assertFalse(service.source.is_initialized())
        self.assertFalse(service.is_running)

    async def test_publishes_disabled_event_after_repeated_failures(self):
        service = self.make_service(ReplayMotionSource(readings=readings(40)),
                                    use_simple_mode=False, error_threshold=3)

        with patch("movetype.engine.classifiers.enhanced.EnhancedClassifier.classify",
                   side_effect=RuntimeError("sensor fault")):
            await service.start()
            await asyncio.wait_for(self.disabled.wait(), timeout=5.0)

        disabled = [e for e in self.events if e.type == EventType.MOVEMENT_DETECTION_DISABLED]
        self.assertEqual(len(disabled), 1)
        self.assertEqual(disabled[0].error_count, 4)
        self.assertFalse(service.state.is_supported)
        self.assertEqual(self.state_events()[-1].state.type, MovementType.UNKNOWN)
        self.assertFalse(service.submit(readings(1)[0]))

        await service.stop()

    async def test_submit_drops_when_channel_full(self):
        config = ApplicationConfig(engine=EngineConfig(update_interval_ms=60000),
                                   service=ServiceConfig(channel_capacity=2, service_shutdown_timeout=1.0))
        service = MovementService(self.event_bus, ReplayMotionSource(readings=[]), config=config)
        await service.start()

        results = [service.submit(reading) for reading in readings(3)]

        self.assertEqual(results, [True, True, False])
        self.assertEqual(service.dropped_readings, 1)
        self.assertEqual(service.drain_channel(), 2)
        self.assertEqual(len(service.engine.buffer), 2)

        await service.stop()

    async def test_unsupported_source(self):
        service = self.make_service(UnsupportedSource(readings=readings(40)))

        await service.start()

        self.assertFalse(service.state.is_supported)
        self.assertFalse(self.state_events()[0].state.is_supported)
        self.assertFalse(service.submit(readings(1)[0]))

        await service.stop()

    async def test_service_state_events(self):
        service = self.make_service(ReplayMotionSource(readings=[]))
        await service.start()
        await service.stop()

        states = [e.state for e in self.events if e.type == EventType.SERVICE_STATE_CHANGED]
        self.assertEqual(states[0], 'started')
        self.assertEqual(states[-2:], ['stopping', 'stopped'])


if __name__ == "__main__":
    unittest.main()

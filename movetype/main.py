"""
Command-line entry point for movetype.

Replays a recorded accelerometer CSV through the movement service and logs
every published movement state. It handles signal management, logging setup,
and the application lifecycle.
"""

import argparse
import asyncio
import logging
import signal
import sys
import structlog
from typing import List, Optional

from movetype.core import EventBus, EventRegistry, EventType, get_config
from movetype.core.config import ApplicationConfig
from movetype.events.movement import MovementStateChangedEvent
from movetype.hardware import ReplayMotionSource
from movetype.services import MovementService


def setup_logging(level: str = "INFO"):
    """Configure structured logging for the application."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
        stream=sys.stdout,
    )


class MovetypeApplication:
    """
    Replay application.

    Wires an event bus, a replay motion source and the movement service,
    then runs until the recording is exhausted or a signal arrives.
    """

    def __init__(self, recording: str, speed: float = 1.0, realtime: bool = True,
                 config: Optional[ApplicationConfig] = None):
        """
        Initialize the application.

        Args:
            recording: Path of the CSV recording to replay
            speed: Playback speed multiplier
            realtime: Pace readings by their recorded timestamps
            config: Application configuration (defaults to get_config())
        """
        self.logger = structlog.get_logger(app="movetype")
        self.config = config or get_config()

        self.event_registry = EventRegistry()
        self.event_bus = EventBus(self.event_registry)

        self.source = ReplayMotionSource(path=recording, realtime=realtime, speed=speed)
        self.service = MovementService(self.event_bus, self.source, config=self.config)
        self._running = True

    async def initialize(self):
        """Subscribe to movement events and start the movement service."""
        self.logger.info("Initializing movement detection")
        self.event_bus.subscribe(EventType.MOVEMENT_STATE_CHANGED, self.on_movement_state, "cli")

        try:
            await self.service.start()
        except Exception as e:
            self.logger.error("Failed to start movement service", error=str(e), exc_info=True)
            raise

    async def on_movement_state(self, event: MovementStateChangedEvent):
        state = event.state
        self.logger.info("Movement state",
                         movement=state.type.value,
                         confidence=round(state.confidence, 3),
                         supported=state.is_supported)

    async def run(self):
        """Run until the recording is exhausted, then allow one last analysis pass."""
        try:
            await self.service.wait_for_source()
            if self._running:
                await asyncio.sleep(self.config.engine.update_interval_ms / 1000.0 * 1.5)
        except asyncio.CancelledError:
            self.logger.info("Application task cancelled")
        finally:
            await self.shutdown()

    async def shutdown(self):
        """Stop the movement service."""
        if not self._running:
            return
        self._running = False
        self.logger.info("Shutting down movement detection")

        try:
            await self.service.stop()
        except Exception as e:
            self.logger.error(f"Error stopping movement service: {e}")

        self.logger.info("Final movement state",
                         movement=self.service.state.type.value,
                         confidence=round(self.service.state.confidence, 3),
                         dropped_readings=self.service.dropped_readings)

    def handle_signal(self, sig):
        """
        Handle termination signals.

        Args:
            sig: The signal received
        """
        self.logger.info(f"Received signal {sig.name}, shutting down")
        for task in asyncio.all_tasks():
            if task is not asyncio.current_task():
                task.cancel()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay an accelerometer recording through movetype")
    parser.add_argument("--replay", required=True, help="CSV recording with x,y,z,timestamp columns")
    parser.add_argument("--speed", type=float, default=1.0, help="Playback speed multiplier")
    parser.add_argument("--no-realtime", action="store_true",
                        help="Feed readings as fast as possible instead of pacing them")
    parser.add_argument("--log-level", default=None, help="Override the configured log level")
    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None):
    """Application entry point."""
    args = parse_args(argv)
    config = get_config()
    setup_logging(args.log_level or config.log_level.value)

    app = MovetypeApplication(args.replay, speed=args.speed,
                              realtime=not args.no_realtime, config=config)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, lambda s=sig: app.handle_signal(s))

    await app.initialize()
    await app.run()


def run():
    """Console script entry point."""
    try:
        asyncio.run(main())
    except asyncio.CancelledError:
        logging.info("Application cancelled")
    except Exception as e:
        logging.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    run()

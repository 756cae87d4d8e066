"""
Unit tests for the replay command-line application.
"""

import os
import tempfile
import unittest

from movetype.core.config import ApplicationConfig, EngineConfig
from movetype.engine.models import MovementType
from movetype.main import MovetypeApplication, parse_args


class TestParseArgs(unittest.TestCase):
    """Test cases for argument parsing."""

    def test_defaults(self):
        args = parse_args(["--replay", "walk.csv"])

        self.assertEqual(args.replay, "walk.csv")
        self.assertEqual(args.speed, 1.0)
        self.assertFalse(args.no_realtime)
        self.assertIsNone(args.log_level)

    def test_replay_is_required(self):
        with self.assertRaises(SystemExit):
            parse_args([])


class TestMovetypeApplication(unittest.IsolatedAsyncioTestCase):
    """Test cases for replaying a recording end to end."""

    async def asyncSetUp(self):
        handle = tempfile.NamedTemporaryFile("w", suffix=".csv", delete=False)
        with handle:
            handle.write("timestamp,x,y,z\n")
            for i in range(40):
                handle.write(f"{i * 50},0.05,0.05,0.07\n")
        self.addCleanup(os.unlink, handle.name)
        self.recording = handle.name

    async def test_replays_recording(self):
        config = ApplicationConfig(engine=EngineConfig(update_interval_ms=10, sample_size=10,
                                                       use_simple_mode=True))
        app = MovetypeApplication(self.recording, realtime=False, config=config)

        await app.initialize()
        await app.run()

        self.assertEqual(app.service.state.type, MovementType.STATIONARY)
        self.assertFalse(app.service.is_running)


if __name__ == "__main__":
    unittest.main()

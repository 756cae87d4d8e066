"""
Replay motion source.

Plays back recorded accelerometer readings, either from a CSV file with
``x,y,z,timestamp`` columns or from an in-memory sequence. With ``realtime``
on, readings are paced by their recorded timestamps.
"""

import asyncio
import csv
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Iterable, List, Mapping, Optional, Union

from .base import MotionSource

CSV_COLUMNS = ("x", "y", "z", "timestamp")


def load_recording(path: Union[str, Path]) -> List[Dict[str, Optional[float]]]:
    """
    Read a recording CSV.

    Empty cells become None so the engine can skip the reading.

    Args:
        path: CSV file with a header row naming x, y, z and timestamp

    Returns:
        The readings in file order
    """
    rows = []
    with open(path, newline="") as handle:
        reader = csv.DictReader(handle)
        missing = [column for column in CSV_COLUMNS if column not in (reader.fieldnames or ())]
        if missing:
            raise ValueError(f"Recording {path} is missing columns: {', '.join(missing)}")
        for row in reader:
            rows.append({
                column: float(row[column]) if row[column] not in (None, "") else None
                for column in CSV_COLUMNS
            })
    return rows


class ReplayMotionSource(MotionSource):
    """Motion source that replays recorded readings."""

    def __init__(self,
                 readings: Optional[Iterable[Mapping[str, Any]]] = None,
                 path: Optional[Union[str, Path]] = None,
                 realtime: bool = False,
                 speed: float = 1.0,
                 name: Optional[str] = None):
        """
        Args:
            readings: In-memory readings to replay
            path: CSV recording to replay instead of ``readings``
            realtime: Pace readings by their recorded timestamps
            speed: Playback speed multiplier when pacing
            name: Optional name for this source instance
        """
        super().__init__(name=name)
        if readings is None and path is None:
            raise ValueError("ReplayMotionSource needs readings or a recording path")
        if speed <= 0:
            raise ValueError("Playback speed must be greater than zero")
        self.path = Path(path) if path is not None else None
        self.realtime = realtime
        self.speed = speed
        self._readings: List[Mapping[str, Any]] = list(readings) if readings is not None else []
        self._stopped = asyncio.Event()

    async def _initialize_impl(self) -> None:
        if self.path is not None:
            self._readings = await asyncio.to_thread(load_recording, self.path)
        self._stopped.clear()
        self.logger.info("Loaded recording", readings=len(self._readings))

    async def _shutdown_impl(self) -> None:
        self._stopped.set()

    async def readings(self) -> AsyncIterator[Mapping[str, Any]]:
        previous_timestamp = None
        for reading in self._readings:
            if self._stopped.is_set():
                return
            timestamp = reading.get("timestamp") if isinstance(reading, Mapping) else None
            if self.realtime and previous_timestamp is not None and timestamp is not None:
                delay = max(0.0, (timestamp - previous_timestamp) / 1000.0 / self.speed)
                await asyncio.sleep(delay)
            else:
                await asyncio.sleep(0)
            if timestamp is not None:
                previous_timestamp = timestamp
            yield reading

"""Bounded, rate-limited buffer of recent acceleration samples."""

from collections import deque
from typing import Deque, List, Optional

from .models import AccelerationSample


class SampleBuffer:
    """
    FIFO buffer holding the most recent samples.

    Samples arriving less than ``min_interval_ms`` after the last accepted
    sample are dropped. Once ``capacity`` samples are held, each new sample
    evicts the oldest one.
    """

    def __init__(self, capacity: int, min_interval_ms: float = 25.0):
        if capacity <= 0:
            raise ValueError("Buffer capacity must be greater than zero")
        self.capacity = capacity
        self.min_interval_ms = min_interval_ms
        self._samples: Deque[AccelerationSample] = deque(maxlen=capacity)
        self._last_accepted_at: Optional[float] = None
        self.dropped = 0

    def __len__(self) -> int:
        return len(self._samples)

    @property
    def last_accepted_at(self) -> Optional[float]:
        """Timestamp of the last accepted sample, or None before the first."""
        return self._last_accepted_at

    def push(self, sample: AccelerationSample) -> bool:
        """
        Offer a sample to the buffer.

        Args:
            sample: The sample to append

        Returns:
            True if the sample was accepted, False if it was rate limited
        """
        if (self._last_accepted_at is not None
                and sample.timestamp - self._last_accepted_at < self.min_interval_ms):
            self.dropped += 1
            return False

        self._last_accepted_at = sample.timestamp
        self._samples.append(sample)
        return True

    def snapshot(self) -> List[AccelerationSample]:
        """Copy of the buffered samples, oldest first."""
        return list(self._samples)

    def recent(self, count: int) -> List[AccelerationSample]:
        """The newest ``count`` samples, oldest first."""
        if count <= 0:
            return []
        return list(self._samples)[-count:]

    def clear(self) -> None:
        self._samples.clear()
        self._last_accepted_at = None

"""Median filtering of sample windows."""

from typing import List, Sequence

import structlog

from .models import AccelerationSample

logger = structlog.get_logger(component="noise_filter")

MIN_FILTER_SAMPLES = 5


def _upper_median(values: List[float]) -> float:
    ordered = sorted(values)
    return ordered[len(ordered) // 2]


def median_filter(samples: Sequence[AccelerationSample], half_window: int = 2) -> List[AccelerationSample]:
    """
    Apply a per-axis median filter over a window of ``half_window`` samples
    either side of each sample, clamped at the edges.

    Windows with an even number of samples use the upper median. The magnitude
    of each filtered sample is recomputed from its filtered axes. A sample that
    cannot be filtered is passed through unchanged.

    Args:
        samples: Samples in arrival order
        half_window: Samples taken on each side of the centre

    Returns:
        A new list with the same length as ``samples``
    """
    if len(samples) < MIN_FILTER_SAMPLES:
        return list(samples)

    last = len(samples) - 1
    filtered = []
    for i, sample in enumerate(samples):
        window = samples[max(0, i - half_window):min(last, i + half_window) + 1]
        try:
            filtered.append(AccelerationSample.from_axes(
                _upper_median([s.x for s in window]),
                _upper_median([s.y for s in window]),
                _upper_median([s.z for s in window]),
                sample.timestamp,
            ))
        except (TypeError, ValueError, ArithmeticError) as e:
            logger.debug("Passing sample through unfiltered", index=i, error=str(e))
            filtered.append(sample)
    return filtered

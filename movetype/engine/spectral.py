"""
Frequency-domain analysis of acceleration windows.

Axis convention: ``y`` is vertical (steps), ``x`` horizontal (direction of
travel) and ``z`` lateral.
"""

from typing import List, Sequence, Tuple

import numpy as np

from movetype.core.errors import ClassificationError
from .models import AccelerationSample, FrequencySignature

MIN_SPECTRAL_SAMPLES = 10
DOMINANT_FREQUENCY_COUNT = 5


def count_zero_crossings(values) -> int:
    """
    Count sign changes in a signal.

    Zero values are skipped: they neither count as a crossing nor reset the
    previous sign.
    """
    signs = np.sign(np.asarray(values, dtype=float))
    signs = signs[signs != 0]
    if signs.size < 2:
        return 0
    return int(np.count_nonzero(signs[1:] != signs[:-1]))


def window_duration(samples: Sequence[AccelerationSample]) -> float:
    """Seconds between the first and last sample of a window."""
    if len(samples) < 2:
        return 0.0
    return (samples[-1].timestamp - samples[0].timestamp) / 1000.0


def zero_crossing_frequency(values, duration: float) -> float:
    """Oscillation frequency in Hz estimated from zero crossings."""
    if duration <= 0:
        return 0.0
    return count_zero_crossings(values) / (2.0 * duration)


def moving_average(values, half_window: int = 2) -> np.ndarray:
    """Centred moving average with the window clamped at the edges."""
    values = np.asarray(values, dtype=float)
    kernel = np.ones(2 * half_window + 1)
    sums = np.convolve(values, kernel, mode="same")
    counts = np.convolve(np.ones_like(values), kernel, mode="same")
    return sums / counts


def detect_peaks(signal, min_height: float, min_distance: int = 3) -> List[int]:
    """
    Find indexes of local maxima higher than their two neighbours on each side.

    Peaks closer than ``min_distance`` to the previous peak replace it when taller.
    """
    signal = np.asarray(signal, dtype=float)
    peaks: List[int] = []
    for i in range(2, len(signal) - 2):
        value = signal[i]
        if (value > signal[i - 1] and value > signal[i - 2]
                and value > signal[i + 1] and value > signal[i + 2]
                and value > min_height):
            if not peaks or i - peaks[-1] >= min_distance:
                peaks.append(i)
            elif value > signal[peaks[-1]]:
                peaks[-1] = i
    return peaks


def coefficient_of_variation(values) -> float:
    """Standard deviation over mean; infinite for a zero mean."""
    values = np.asarray(values, dtype=float)
    if values.size == 0:
        return float("inf")
    mean = values.mean()
    if mean == 0:
        return float("inf")
    return float(values.std() / abs(mean))


def _bell(frequency: float, centre: float, low: float, high: float, outside: float = 0.0) -> float:
    if low <= frequency <= high:
        return 1.0 - min(1.0, abs(frequency - centre) / ((high - low) / 2.0))
    return outside


def spectral_peaks(signals: Sequence[np.ndarray], sampling_rate: float,
                   count: int = DOMINANT_FREQUENCY_COUNT) -> Tuple[Tuple[float, ...], float]:
    """
    Find the strongest frequencies across one or more equally long signals.

    Each signal is detrended and Hann windowed before its power spectrum is
    added to the total.

    Returns:
        The ``count`` strongest non-DC frequencies, strongest first, and the
        power-weighted spectral centroid
    """
    size = len(signals[0])
    window = np.hanning(size)
    power = np.zeros(size // 2 + 1)
    for signal in signals:
        detrended = np.asarray(signal, dtype=float) - np.mean(signal)
        power += np.abs(np.fft.rfft(detrended * window)) ** 2

    frequencies = np.fft.rfftfreq(size, d=1.0 / sampling_rate)
    frequencies, power = frequencies[1:], power[1:]
    total = power.sum()
    if total <= 0:
        return (), 0.0

    centroid = float((frequencies * power).sum() / total)
    strongest = np.argsort(power)[::-1][:count]
    dominant = tuple(float(round(frequencies[i], 4)) for i in strongest if power[i] > 0)
    return dominant, centroid


def walking_signature(samples: Sequence[AccelerationSample], vertical_frequency: float) -> float:
    """
    Score in [0, 1] for how much a window looks like walking.

    Combines step regularity, cadence consistency, vertical dominance,
    frequency match, peak regularity and up/down symmetry.
    """
    xs = np.array([s.x for s in samples])
    ys = np.array([s.y for s in samples])
    zs = np.array([s.z for s in samples])
    timestamps = np.array([s.timestamp for s in samples])
    vertical = moving_average(ys)

    # Upward crossings with a clear slope are step candidates
    steps = 0.0
    step_times = []
    for i in range(1, len(vertical)):
        if vertical[i - 1] < 0 <= vertical[i] and vertical[i] - vertical[i - 1] > 0.05:
            steps += 1
            step_times.append(timestamps[i])
        elif abs(vertical[i]) < 0.06 and steps > 0:
            steps = max(0.0, steps - 0.3)
    if steps <= 2:
        step_regularity = steps * 0.3
    else:
        step_regularity = min(1.0, 0.6 + np.log10(steps - 1) * 0.4)

    intervals = np.diff(step_times)
    intervals = intervals[(intervals >= 200) & (intervals <= 1500)]
    cadence_consistency = 0.0
    if intervals.size >= 2:
        cadence_consistency = 1.0 - min(1.0, coefficient_of_variation(intervals) / 0.7)
        if 400 <= intervals.mean() <= 1200:
            cadence_consistency = min(1.0, cadence_consistency * 1.2)

    vertical_sum = np.abs(ys).sum()
    total = vertical_sum + np.abs(xs).sum() + np.abs(zs).sum()
    vertical_dominance = (vertical_sum / total) ** 1.3 if total > 0 else 0.0

    frequency_match = _bell(vertical_frequency, 1.8, 1.0, 2.6,
                            outside=0.3 if 0.7 <= vertical_frequency <= 3.2 else 0.0)

    threshold = max(0.2, float(np.abs(ys).mean()) * 1.5) * 0.8
    peaks = detect_peaks(np.abs(vertical), threshold)
    peak_regularity = min(1.0, len(peaks) / 4.0)
    if len(peaks) >= 3 and coefficient_of_variation(np.diff(peaks)) < 0.4:
        peak_regularity = min(1.0, peak_regularity * 1.2)

    positive = ys[ys > 0]
    negative = -ys[ys < 0]
    symmetry = 0.0
    if positive.size and negative.size:
        pos_mean, neg_mean = positive.mean(), negative.mean()
        symmetry = (min(pos_mean, neg_mean) / max(pos_mean, neg_mean)) ** 0.7

    score = (step_regularity * 0.22 + cadence_consistency * 0.20 + vertical_dominance * 0.22
             + frequency_match * 0.16 + peak_regularity * 0.12 + symmetry * 0.08)
    return float(min(1.0, max(0.0, score)))


def vehicle_signature(samples: Sequence[AccelerationSample],
                      horizontal_frequency: float, lateral_frequency: float) -> float:
    """
    Score in [0, 1] for how much a window looks like vehicle travel.

    Combines horizontal dominance, magnitude consistency, frequency match,
    lateral sway, sustained vibration, absence of steps and engine vibration.
    """
    xs = np.array([s.x for s in samples])
    ys = np.array([s.y for s in samples])
    zs = np.array([s.z for s in samples])
    magnitudes = np.array([s.magnitude for s in samples])

    horizontal_sum = np.abs(xs).sum()
    denominator = horizontal_sum + np.abs(ys).sum()
    horizontal_dominance = (horizontal_sum / denominator) ** 1.2 if denominator > 0 else 0.0

    q1, q3 = np.percentile(magnitudes, [25, 75])
    spread = q3 - q1
    inliers = magnitudes[(magnitudes >= q1 - 1.5 * spread) & (magnitudes <= q3 + 1.5 * spread)]
    magnitude_consistency = 1.0 - min(1.0, coefficient_of_variation(inliers) / 0.5)

    frequency_match = _bell(horizontal_frequency, 0.6, 0.3, 0.9,
                            outside=0.6 if 0.1 < horizontal_frequency < 1.2 else 0.0)

    lateral_peaks = detect_peaks(np.abs(zs), 0.2)
    lateral_movement = min(1.0, len(lateral_peaks) / 3.0) * 0.7 + min(1.0, lateral_frequency / 0.5) * 0.3

    segment_count = 3
    sustained_vibration = 0.0
    if len(magnitudes) >= segment_count * 3:
        segments = np.array_split(magnitudes, segment_count)
        segment_means = np.array([segment.mean() for segment in segments])
        segment_vars = np.array([segment.var() for segment in segments])
        mean_consistency = 1.0 - min(1.0, coefficient_of_variation(segment_means))
        var_consistency = 1.0 - min(1.0, coefficient_of_variation(segment_vars)) if segment_vars.any() else 1.0
        sustained_vibration = (mean_consistency + var_consistency) / 2.0

    vertical_peaks = detect_peaks(np.abs(moving_average(ys)), 0.25)
    not_walking = 1.0 - min(1.0, len(vertical_peaks) / 6.0)

    engine_vibration = 0.0
    if 0.15 < horizontal_frequency < 0.9 and 0.15 < lateral_frequency < 0.9:
        energy = np.abs(xs).sum() + np.abs(zs).sum()
        engine_vibration = min(1.0, energy / (energy + np.abs(ys).sum() + 1e-9) * 1.2)

    score = (horizontal_dominance * 0.15 + magnitude_consistency * 0.15 + frequency_match * 0.15
             + lateral_movement * 0.10 + sustained_vibration * 0.15 + not_walking * 0.15
             + engine_vibration * 0.15)
    return float(min(1.0, max(0.0, score)))


def analyze_frequency_domain(samples: Sequence[AccelerationSample]) -> FrequencySignature:
    """
    Build the frequency signature of a sample window.

    Args:
        samples: Filtered samples in arrival order

    Returns:
        The window's FrequencySignature; an empty signature for fewer than
        ten samples

    Raises:
        ClassificationError: If the window spans no time
    """
    if len(samples) < MIN_SPECTRAL_SAMPLES:
        return FrequencySignature()

    duration = window_duration(samples)
    if duration <= 0:
        raise ClassificationError("Sample window has no duration", tier="enhanced")

    xs = np.array([s.x for s in samples])
    ys = np.array([s.y for s in samples])
    zs = np.array([s.z for s in samples])
    magnitudes = np.array([s.magnitude for s in samples])

    vertical_frequency = zero_crossing_frequency(ys, duration)
    horizontal_frequency = zero_crossing_frequency(xs, duration)
    lateral_frequency = zero_crossing_frequency(zs, duration)

    spectral_energy = float(magnitudes.mean() * (1.0 + np.sqrt(magnitudes.var())))
    sampling_rate = (len(samples) - 1) / duration
    dominant, centroid = spectral_peaks([ys, xs], sampling_rate)

    return FrequencySignature(
        peak_frequency=max(vertical_frequency, horizontal_frequency, lateral_frequency),
        spectral_energy=spectral_energy,
        dominant_frequencies=dominant,
        spectral_centroid=centroid,
        walking_signature=walking_signature(samples, vertical_frequency),
        vehicle_signature=vehicle_signature(samples, horizontal_frequency, lateral_frequency),
    )

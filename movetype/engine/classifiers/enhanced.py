"""
Frequency-domain classifier.

Matches the window's frequency signature against tables of known walking and
vehicle patterns, then applies axis-dominance and step-regularity heuristics
before picking a movement type.
"""

from typing import NamedTuple, Sequence, Tuple

import numpy as np

from ..models import AccelerationSample, Classification, FrequencySignature, MovementDetails, MovementType
from ..spectral import analyze_frequency_domain, coefficient_of_variation, detect_peaks
from .base import ClassifierTier, MovementClassifier


class SpectralPattern(NamedTuple):
    """Frequency (Hz) and energy band describing one kind of movement."""
    min_freq: float
    max_freq: float
    min_energy: float
    max_energy: float
    weight: float


VEHICLE_PATTERNS: Tuple[SpectralPattern, ...] = (
    SpectralPattern(0.1, 0.4, 0.5, 3.0, 0.8),    # engine idle
    SpectralPattern(0.4, 0.8, 0.9, 5.0, 1.0),    # road vibration
    SpectralPattern(0.8, 1.2, 1.5, 8.0, 0.7),    # bumps and acceleration
    SpectralPattern(0.3, 0.7, 1.0, 4.0, 0.9),    # highway
    SpectralPattern(0.2, 0.5, 0.7, 3.5, 0.6),    # stop-and-go
    SpectralPattern(0.5, 1.0, 1.2, 6.0, 0.7),    # rough road
    SpectralPattern(0.2, 0.5, 0.6, 2.5, 0.8),    # smooth highway
    SpectralPattern(0.3, 0.6, 1.0, 4.5, 0.7),    # accelerating
    SpectralPattern(0.2, 0.5, 0.8, 3.0, 0.7),    # braking
    SpectralPattern(0.3, 0.7, 0.9, 3.8, 0.6),    # turning
    SpectralPattern(0.15, 0.4, 0.4, 2.0, 0.6),   # electric vehicle
)

WALKING_PATTERNS: Tuple[SpectralPattern, ...] = (
    SpectralPattern(0.9, 1.7, 0.25, 2.8, 0.8),   # slow
    SpectralPattern(1.5, 2.3, 0.4, 3.8, 1.2),    # normal cadence
    SpectralPattern(1.9, 3.2, 0.7, 5.0, 0.9),    # fast
    SpectralPattern(1.3, 2.6, 0.5, 4.2, 1.0),    # step impact
    SpectralPattern(1.4, 2.4, 0.35, 3.2, 0.8),   # arm swing
    SpectralPattern(1.1, 2.1, 0.3, 3.5, 0.7),    # uneven terrain
    SpectralPattern(0.8, 1.4, 0.2, 2.0, 0.6),    # deliberate steps
    SpectralPattern(1.2, 2.2, 0.3, 2.5, 0.9),    # phone in pocket
    SpectralPattern(1.6, 2.5, 0.8, 5.5, 0.7),    # upstairs
    SpectralPattern(1.4, 2.3, 0.6, 4.8, 0.7),    # downstairs
    SpectralPattern(1.3, 2.0, 0.3, 2.2, 0.6),    # soft surface
    SpectralPattern(1.2, 2.1, 0.4, 3.0, 0.7),    # carrying a bag
    SpectralPattern(1.0, 1.8, 0.3, 2.5, 0.8),    # looking at phone
    SpectralPattern(0.7, 1.2, 0.15, 1.8, 0.6),   # browsing
    SpectralPattern(0.8, 1.6, 0.3, 2.6, 0.5),    # asymmetric gait
)

STATIONARY_MAX_MAGNITUDE = 0.25


def _band_match(value: float, low: float, high: float) -> float:
    if low <= value <= high:
        return 1.0 - min(1.0, abs(value - (low + high) / 2.0) / ((high - low) / 2.0))
    return 0.0


def pattern_match(signature: FrequencySignature, patterns: Sequence[SpectralPattern], vehicle: bool) -> float:
    """
    Weighted similarity in [0, 1] between a signature and a pattern table.

    Each pattern scores 0.4 for the peak frequency, 0.2 for spectral energy,
    0.2 for matching dominant frequencies and 0.2 for the movement signature.
    """
    if not signature.peak_frequency:
        return 0.0

    movement_signature = (signature.vehicle_signature if vehicle else signature.walking_signature) or 0.0
    total_match = 0.0
    total_weight = 0.0
    for pattern in patterns:
        frequency_match = _band_match(signature.peak_frequency, pattern.min_freq, pattern.max_freq)
        energy_match = _band_match(signature.spectral_energy, pattern.min_energy, pattern.max_energy)
        additional = sum(_band_match(f, pattern.min_freq, pattern.max_freq)
                         for f in signature.dominant_frequencies)
        additional = min(1.0, additional / 3.0)

        match = frequency_match * 0.4 + energy_match * 0.2 + additional * 0.2 + movement_signature * 0.2
        total_match += match * pattern.weight
        total_weight += pattern.weight

    return total_match / total_weight if total_weight > 0 else 0.0


class EnhancedClassifier(MovementClassifier):
    """Pattern-matching classifier over the window's frequency signature."""

    tier = ClassifierTier.ENHANCED

    def classify(self, samples: Sequence[AccelerationSample]) -> Classification:
        signature = analyze_frequency_domain(samples)

        vehicle_match = pattern_match(signature, VEHICLE_PATTERNS, vehicle=True)
        walking_match = pattern_match(signature, WALKING_PATTERNS, vehicle=False)
        vehicle = vehicle_match
        walking = walking_match

        average = float(np.mean([s.magnitude for s in samples])) if len(samples) else 0.0
        stationary = 0.0
        if average < STATIONARY_MAX_MAGNITUDE:
            stationary = 1.0 - min(1.0, average / STATIONARY_MAX_MAGNITUDE)

        if signature.walking_signature and signature.walking_signature > 0.65:
            walking = max(walking, signature.walking_signature * 1.1)
        if signature.vehicle_signature and signature.vehicle_signature > 0.75:
            vehicle = max(vehicle, signature.vehicle_signature)

        peak = signature.peak_frequency
        if peak:
            if 1.3 <= peak <= 2.8:
                walking *= 1.3
                vehicle *= 0.7
            elif 0.9 <= peak < 1.3:
                walking *= 1.1
                vehicle *= 0.9
            if 0.2 <= peak <= 0.9 and vehicle > 0.5 and walking < 0.6:
                vehicle *= 1.15

        walking, vehicle = self._apply_axis_heuristics(samples, walking, vehicle)

        # Close calls lean toward walking
        if walking > 0.4 and vehicle > 0.4 and abs(walking - vehicle) < 0.2:
            walking *= 1.15
            vehicle *= 0.9

        if stationary > 0.8:
            movement_type, confidence = MovementType.STATIONARY, stationary
        elif walking > 0.55:
            if vehicle > walking * 1.4 and vehicle > 0.75:
                movement_type, confidence = MovementType.VEHICLE, vehicle
            else:
                movement_type, confidence = MovementType.WALKING, walking
        elif vehicle > 0.7:
            movement_type, confidence = MovementType.VEHICLE, vehicle
        elif walking > 0.45:
            movement_type, confidence = MovementType.WALKING, walking
        else:
            movement_type, confidence = MovementType.UNKNOWN, 0.3

        return Classification(
            type=movement_type,
            confidence=confidence,
            details=MovementDetails(
                vehicle_confidence=vehicle,
                walking_confidence=walking,
                stationary_confidence=stationary,
                dominant_frequencies=signature.dominant_frequencies,
            ),
            signature=signature,
        )

    @staticmethod
    def _apply_axis_heuristics(samples: Sequence[AccelerationSample], walking: float, vehicle: float):
        """Boost walking for vertically dominant, regularly stepping windows."""
        if not samples:
            return walking, vehicle

        vertical = np.abs([s.y for s in samples])
        horizontal = np.abs([s.x for s in samples])
        lateral = np.abs([s.z for s in samples])

        avg_vertical = float(vertical.mean())
        dominance = avg_vertical / (float(horizontal.mean()) + float(lateral.mean()) + 0.01)
        if dominance > 1.3 and avg_vertical > 0.25:
            walking *= 1.4
            vehicle *= 0.6
            if dominance > 2.0:
                walking = min(0.95, walking * 1.2)
                vehicle *= 0.5

        peaks = detect_peaks(vertical, 0.25)
        if len(peaks) >= 3 and coefficient_of_variation(np.diff(peaks)) < 0.4:
            walking = min(0.95, walking * 1.25)
            vehicle *= 0.7

        return walking, vehicle

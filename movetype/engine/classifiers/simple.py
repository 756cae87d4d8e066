"""
Fast heuristic classifier.

Decides from mean magnitude, the share of motion on each axis and the vertical
zero-crossing frequency, checked in a fixed order.
"""

from typing import Optional, Sequence

import numpy as np

from ..models import AccelerationSample, Classification, FrequencySignature, MovementDetails, MovementType
from ..spectral import window_duration, zero_crossing_frequency
from .base import ClassifierTier, MovementClassifier
from .fallback import FallbackClassifier

MIN_SIMPLE_SAMPLES = 5
OTHER_CLASS_CONFIDENCE = 0.1
EVEN_AXIS_RATIO = 0.33


class SimpleClassifier(MovementClassifier):
    """Magnitude, axis-ratio and zero-crossing heuristic."""

    tier = ClassifierTier.SIMPLE

    def __init__(self, fallback: Optional[FallbackClassifier] = None):
        self.fallback = fallback or FallbackClassifier()

    def classify(self, samples: Sequence[AccelerationSample]) -> Classification:
        if len(samples) < MIN_SIMPLE_SAMPLES:
            return self.fallback.classify(samples)

        magnitudes = np.array([s.magnitude for s in samples], dtype=float)
        mean = float(magnitudes.mean())
        std_dev = float(np.sqrt(max(0.0, np.mean(magnitudes ** 2) - mean ** 2)))

        vertical = float(np.abs([s.y for s in samples]).sum())
        horizontal = float(np.abs([s.x for s in samples]).sum())
        lateral = float(np.abs([s.z for s in samples]).sum())
        total = vertical + horizontal + lateral
        vertical_ratio = vertical / total if total > 0 else EVEN_AXIS_RATIO
        horizontal_ratio = horizontal / total if total > 0 else EVEN_AXIS_RATIO

        frequency = zero_crossing_frequency([s.y for s in samples], window_duration(samples))

        if mean < 0.3:
            movement_type, confidence = MovementType.STATIONARY, 0.8
        elif 1.0 < frequency < 3.0 and vertical_ratio > 0.4:
            movement_type, confidence = MovementType.WALKING, 0.7
        elif 0.1 < frequency < 1.0 and horizontal_ratio > 0.4:
            movement_type, confidence = MovementType.VEHICLE, 0.7
        elif mean > 0.5:
            # Step impacts vary far more than road vibration
            if std_dev / mean > 0.7:
                movement_type, confidence = MovementType.WALKING, 0.6
            else:
                movement_type, confidence = MovementType.VEHICLE, 0.6
        else:
            movement_type, confidence = MovementType.UNKNOWN, 0.5

        return Classification(
            type=movement_type,
            confidence=confidence,
            details=MovementDetails(
                vehicle_confidence=confidence if movement_type == MovementType.VEHICLE else OTHER_CLASS_CONFIDENCE,
                walking_confidence=confidence if movement_type == MovementType.WALKING else OTHER_CLASS_CONFIDENCE,
                stationary_confidence=confidence if movement_type == MovementType.STATIONARY else OTHER_CLASS_CONFIDENCE,
                dominant_frequencies=(frequency,),
            ),
            signature=FrequencySignature(
                peak_frequency=frequency,
                spectral_energy=mean,
                dominant_frequencies=(frequency,),
                spectral_centroid=frequency,
            ),
        )

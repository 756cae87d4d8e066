"""Last-resort classifier that thresholds mean magnitude and never raises."""

import math
from typing import Optional, Sequence

from ..models import AccelerationSample, Classification, MovementDetails, MovementType
from .base import ClassifierTier, MovementClassifier

STATIONARY_MAX_MAGNITUDE = 0.2
WALKING_MAX_MAGNITUDE = 0.8
OTHER_CLASS_CONFIDENCE = 0.1


def _mean_magnitude(samples) -> Optional[float]:
    total = 0.0
    count = 0
    for sample in samples:
        try:
            magnitude = float(sample.magnitude)
        except (AttributeError, TypeError, ValueError):
            continue
        if math.isfinite(magnitude):
            total += magnitude
            count += 1
    return total / count if count else None


class FallbackClassifier(MovementClassifier):
    """Classifies on mean magnitude alone."""

    tier = ClassifierTier.FALLBACK

    def classify(self, samples: Optional[Sequence[AccelerationSample]]) -> Classification:
        average = _mean_magnitude(samples or ())
        if average is None:
            return Classification(
                type=MovementType.UNKNOWN,
                confidence=0.5,
                details=MovementDetails(
                    vehicle_confidence=OTHER_CLASS_CONFIDENCE,
                    walking_confidence=OTHER_CLASS_CONFIDENCE,
                    stationary_confidence=OTHER_CLASS_CONFIDENCE,
                ),
            )

        if average < STATIONARY_MAX_MAGNITUDE:
            movement_type, confidence = MovementType.STATIONARY, 0.7
        elif average < WALKING_MAX_MAGNITUDE:
            movement_type, confidence = MovementType.WALKING, 0.6
        else:
            movement_type, confidence = MovementType.VEHICLE, 0.6

        return Classification(
            type=movement_type,
            confidence=confidence,
            details=MovementDetails(
                vehicle_confidence=confidence if movement_type == MovementType.VEHICLE else OTHER_CLASS_CONFIDENCE,
                walking_confidence=confidence if movement_type == MovementType.WALKING else OTHER_CLASS_CONFIDENCE,
                stationary_confidence=confidence if movement_type == MovementType.STATIONARY else OTHER_CLASS_CONFIDENCE,
            ),
        )

"""Per-class confidence gate deciding whether a classification is published."""

from .models import Classification, MovementType

STATIONARY_OVERRIDE_CONFIDENCE = 0.7


def effective_min_confidence(movement_type: MovementType, min_confidence: float) -> float:
    """
    Minimum confidence a classification of ``movement_type`` needs to be published.

    Walking and stationary get slightly lower bars than the global minimum;
    vehicle gets a slightly higher one, capped at 0.55.
    """
    if movement_type == MovementType.WALKING:
        return max(0.45, min_confidence - 0.05)
    if movement_type == MovementType.VEHICLE:
        return min(0.55, min_confidence + 0.05)
    if movement_type == MovementType.STATIONARY:
        return max(0.4, min_confidence - 0.1)
    return min_confidence


class AdaptiveThresholdGate:
    """Admits classifications confident enough for their movement type."""

    def __init__(self, min_confidence: float = 0.5):
        self.min_confidence = min_confidence

    def threshold_for(self, movement_type: MovementType) -> float:
        return effective_min_confidence(movement_type, self.min_confidence)

    def admits(self, classification: Classification) -> bool:
        if classification.confidence >= self.threshold_for(classification.type):
            return True
        return (classification.type == MovementType.STATIONARY
                and classification.confidence >= STATIONARY_OVERRIDE_CONFIDENCE)

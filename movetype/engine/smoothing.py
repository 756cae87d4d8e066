"""
Temporal smoothing over recent classifications.

``analyze_movement_sequence`` weighs history by position, confidence and
movement type, with special handling for walking/vehicle transitions and
flicker.
"""

from collections import deque
from typing import Callable, Deque, Dict, List, Optional, Sequence, Tuple

import structlog

from .models import Classification, MovementType

SequenceAnalysis = Callable[[Sequence[Classification], Classification], Classification]

logger = structlog.get_logger(component="temporal_smoother")

_TYPES = (MovementType.VEHICLE, MovementType.WALKING, MovementType.STATIONARY, MovementType.UNKNOWN)


def _confidence_field(movement_type: MovementType) -> Optional[str]:
    return {
        MovementType.VEHICLE: "vehicle_confidence",
        MovementType.WALKING: "walking_confidence",
        MovementType.STATIONARY: "stationary_confidence",
    }.get(movement_type)


def _history_weight(entry: Classification, index: int) -> float:
    # index 0 is the oldest history entry with weight 1; each newer entry halves it
    recency = 0.5 ** index
    type_weight = 1.0
    if entry.type == MovementType.VEHICLE:
        type_weight = 1.0 if entry.confidence > 0.8 else 0.65
    elif entry.type == MovementType.WALKING:
        type_weight = 1.5 if entry.confidence > 0.75 else 1.3
    return recency * entry.confidence ** 1.5 * type_weight


def _current_weight(current: Classification) -> float:
    if current.type == MovementType.VEHICLE:
        if current.confidence > 0.85:
            type_weight = 1.0
        elif current.confidence > 0.75:
            type_weight = 0.85
        else:
            type_weight = 0.6
    elif current.type == MovementType.WALKING:
        type_weight = 1.2 + current.confidence * 0.3
    elif current.type == MovementType.STATIONARY:
        type_weight = 1.3 if current.confidence > 0.8 else 1.0
    else:
        type_weight = 1.0
    return 2.5 * current.confidence ** 1.3 * type_weight


def analyze_movement_sequence(history: Sequence[Classification], current: Classification) -> Classification:
    """
    Stabilize the current classification against recent history.

    Args:
        history: Earlier classifications, oldest first
        current: The classification produced this tick

    Returns:
        The smoothed classification; ``current`` itself when history is too
        short or no adjustment applies
    """
    if len(history) < 2:
        return current

    counts: Dict[MovementType, float] = {t: 0.0 for t in _TYPES}
    for index, entry in enumerate(history):
        counts[entry.type] += _history_weight(entry, index)
    counts[current.type] += _current_weight(current)

    ranked = sorted(_TYPES, key=lambda t: counts[t], reverse=True)
    dominant, secondary = ranked[0], ranked[1]
    total = sum(counts.values())
    if total <= 0:
        return current
    dominance = counts[dominant] / total
    competition = counts[secondary] / counts[dominant] if counts[secondary] > 0 else 0.0
    details = current.details

    if current.type == MovementType.WALKING and dominant == MovementType.VEHICLE:
        # Walking holds unless vehicle history is overwhelming
        if dominance < 0.7 + current.confidence * 0.1:
            return current.evolve(
                confidence=min(0.95, current.confidence * 1.05),
                details=details.adjust(
                    walking_confidence=min(0.95, details.walking_confidence * 1.1),
                    vehicle_confidence=details.vehicle_confidence * 0.9,
                ),
            )
        if current.confidence > 0.6:
            return current.evolve(
                confidence=max(0.7, current.confidence * 1.1),
                details=details.adjust(
                    vehicle_confidence=details.vehicle_confidence * 0.4,
                    walking_confidence=max(details.walking_confidence, 0.6 + current.confidence * 0.3),
                ),
            )

    if len(history) >= 3 and current.confidence < 0.85:
        first, middle, last = (entry.type for entry in history[-3:])
        if first != middle and first == last and current.type != first:
            oscillating = first
            oscillating_count = sum(1 for entry in history if entry.type == oscillating)
            current_count = sum(1 for entry in history if entry.type == current.type)
            if oscillating_count > current_count:
                return current.evolve(
                    type=oscillating,
                    confidence=0.7,
                    details=details.adjust(
                        vehicle_confidence=0.7 if oscillating == MovementType.VEHICLE else 0.3,
                        walking_confidence=0.7 if oscillating == MovementType.WALKING else 0.3,
                        stationary_confidence=0.7 if oscillating == MovementType.STATIONARY else 0.1,
                    ),
                )

    if dominant != current.type and dominance > 0.6:
        factor = 0.4 if competition > 0.7 else 0.7
        adjusted = min(0.95, current.confidence * (1 - factor) + dominance * factor)

        if current.confidence > 0.75 and dominance < 0.75 + current.confidence * 0.1:
            return current

        if current.type == MovementType.VEHICLE and dominant == MovementType.WALKING:
            walking_evidence = counts[MovementType.WALKING] / total
            if walking_evidence > 0.3 - current.confidence * 0.1:
                return current.evolve(
                    type=MovementType.WALKING,
                    confidence=max(0.75, adjusted * 1.1),
                    details=details.adjust(
                        vehicle_confidence=details.vehicle_confidence * 0.4,
                        walking_confidence=max(details.walking_confidence, 0.75),
                    ),
                )

        if current.type == MovementType.WALKING and dominant == MovementType.VEHICLE:
            if dominance < 0.7 + details.walking_confidence * 0.15 or current.confidence > 0.65:
                return current.evolve(
                    confidence=current.confidence * 0.95,
                    details=details.adjust(vehicle_confidence=details.vehicle_confidence * 0.9),
                )

        scale = {MovementType.VEHICLE: (1.1, 0.35), MovementType.WALKING: (1.15, 0.45),
                 MovementType.STATIONARY: (1.05, 0.4)}
        changes = {}
        for movement_type, (boost, reduction) in scale.items():
            name = _confidence_field(movement_type)
            value = getattr(details, name)
            changes[name] = max(value, adjusted * boost) if movement_type == dominant else value * reduction
        return current.evolve(type=dominant, confidence=adjusted, details=details.adjust(**changes))

    if current.type == MovementType.VEHICLE:
        walking_evidence = counts[MovementType.WALKING] / total
        if walking_evidence > 0.35:
            bias = 0.9 + walking_evidence * 0.2
            return current.evolve(
                confidence=current.confidence * bias,
                details=details.adjust(
                    vehicle_confidence=details.vehicle_confidence * bias,
                    walking_confidence=min(1.0, details.walking_confidence * (2.0 - bias)),
                ),
            )

    if counts[current.type] / total > 0.7:
        name = _confidence_field(current.type)
        changes = {name: min(0.98, getattr(details, name) * 1.05)} if name else {}
        return current.evolve(
            confidence=min(0.98, current.confidence * 1.05),
            details=details.adjust(**changes),
        )

    return current


class TemporalSmoother:
    """
    Keeps the recent classification history and smooths each new result.

    History entries are frozen models and are never modified.
    """

    def __init__(self, capacity: int = 7, analysis: SequenceAnalysis = analyze_movement_sequence):
        self.capacity = capacity
        self.analysis = analysis
        self._history: Deque[Classification] = deque(maxlen=capacity)

    @property
    def history(self) -> List[Classification]:
        return list(self._history)

    def update(self, latest: Classification) -> Tuple[Classification, Optional[Exception]]:
        """
        Record ``latest`` and return the smoothed classification.

        Returns:
            The smoothed classification and None, or ``latest`` and the error
            when the sequence analysis failed
        """
        self._history.append(latest)
        if len(self._history) <= 1:
            return latest, None

        try:
            smoothed = self.analysis(list(self._history)[:-1], latest)
        except Exception as e:
            logger.debug("Sequence analysis failed, keeping latest classification", error=str(e))
            return latest, e
        if not isinstance(smoothed, Classification):
            return latest, None
        return smoothed, None

    def clear(self) -> None:
        self._history.clear()

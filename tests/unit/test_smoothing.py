"""
Unit tests for temporal smoothing.
"""

import unittest
from unittest.mock import Mock

from movetype.engine.models import Classification, MovementDetails, MovementType
from movetype.engine.smoothing import TemporalSmoother, analyze_movement_sequence


def classification(movement_type, confidence):
    return Classification(type=movement_type, confidence=confidence,
                          details=MovementDetails(walking_confidence=0.2, vehicle_confidence=0.2,
                                                  stationary_confidence=0.2))


class TestTemporalSmoother(unittest.TestCase):
    """Test cases for the smoother's history handling."""

    def test_first_classification_is_not_smoothed(self):
        smoother = TemporalSmoother()
        latest = classification(MovementType.WALKING, 0.6)

        smoothed, error = smoother.update(latest)

        self.assertIs(smoothed, latest)
        self.assertIsNone(error)

    def test_history_is_capped(self):
        smoother = TemporalSmoother(capacity=7)
        for _ in range(12):
            smoother.update(classification(MovementType.STATIONARY, 0.8))
        self.assertEqual(len(smoother.history), 7)

    def test_history_keeps_raw_classifications(self):
        smoother = TemporalSmoother()
        entries = [classification(MovementType.VEHICLE, 0.9) for _ in range(4)]
        for entry in entries:
            smoother.update(entry)

        for stored, entry in zip(smoother.history, entries):
            self.assertIs(stored, entry)

    def test_analysis_failure_keeps_latest(self):
        analysis = Mock(side_effect=RuntimeError("bad history"))
        smoother = TemporalSmoother(analysis=analysis)
        smoother.update(classification(MovementType.WALKING, 0.6))
        latest = classification(MovementType.VEHICLE, 0.7)

        smoothed, error = smoother.update(latest)

        self.assertIs(smoothed, latest)
        self.assertIsInstance(error, RuntimeError)
        self.assertEqual(len(smoother.history), 2)

    def test_analysis_receives_history_without_latest(self):
        analysis = Mock(side_effect=lambda history, current: current)
        smoother = TemporalSmoother(analysis=analysis)
        first = classification(MovementType.WALKING, 0.6)
        latest = classification(MovementType.WALKING, 0.7)
        smoother.update(first)
        smoother.update(latest)

        analysis.assert_called_once_with([first], latest)

    def test_clear(self):
        smoother = TemporalSmoother()
        smoother.update(classification(MovementType.WALKING, 0.6))
        smoother.clear()
        self.assertEqual(smoother.history, [])


class TestSequenceAnalysis(unittest.TestCase):
    """Test cases for analyze_movement_sequence."""

    def test_short_history_returns_current(self):
        current = classification(MovementType.WALKING, 0.6)
        self.assertIs(analyze_movement_sequence([], current), current)
        self.assertIs(analyze_movement_sequence([current], current), current)

    def test_flicker_resolves_to_oscillating_type(self):
        history = [
            classification(MovementType.WALKING, 0.8),
            classification(MovementType.VEHICLE, 0.8),
            classification(MovementType.WALKING, 0.8),
        ]
        result = analyze_movement_sequence(history, classification(MovementType.STATIONARY, 0.5))

        self.assertEqual(result.type, MovementType.WALKING)
        self.assertEqual(result.confidence, 0.7)
        self.assertEqual(result.details.walking_confidence, 0.7)
        self.assertEqual(result.details.stationary_confidence, 0.1)

    def test_dominant_history_pulls_weak_classification(self):
        history = [classification(MovementType.VEHICLE, 0.9) for _ in range(6)]
        result = analyze_movement_sequence(history, classification(MovementType.STATIONARY, 0.5))

        self.assertEqual(result.type, MovementType.VEHICLE)
        self.assertGreater(result.confidence, 0.5)
        self.assertLessEqual(result.confidence, 0.95)

    def test_walking_holds_against_vehicle_history(self):
        history = [classification(MovementType.VEHICLE, 0.9) for _ in range(6)]
        result = analyze_movement_sequence(history, classification(MovementType.WALKING, 0.3))

        self.assertEqual(result.type, MovementType.WALKING)
        self.assertAlmostEqual(result.confidence, 0.315)
        self.assertAlmostEqual(result.details.walking_confidence, 0.22)

    def test_oldest_history_entries_weigh_most(self):
        history = [
            classification(MovementType.STATIONARY, 0.8),
            classification(MovementType.STATIONARY, 0.8),
            classification(MovementType.STATIONARY, 0.8),
            classification(MovementType.VEHICLE, 0.8),
        ]
        result = analyze_movement_sequence(history, classification(MovementType.VEHICLE, 0.5))

        self.assertEqual(result.type, MovementType.STATIONARY)
        self.assertAlmostEqual(result.confidence, 0.6067, places=3)

    def test_weak_walking_holds_with_strong_walking_evidence(self):
        history = [classification(MovementType.VEHICLE, 0.9) for _ in range(6)]
        current = Classification(type=MovementType.WALKING, confidence=0.2,
                                 details=MovementDetails(walking_confidence=0.9, vehicle_confidence=0.5))

        result = analyze_movement_sequence(history, current)

        self.assertEqual(result.type, MovementType.WALKING)
        self.assertAlmostEqual(result.confidence, 0.19)
        self.assertAlmostEqual(result.details.vehicle_confidence, 0.45)
        self.assertAlmostEqual(result.details.walking_confidence, 0.9)


if __name__ == "__main__":
    unittest.main()

"""
Classifier tier interface and the fallback chain that composes tiers.

Every tier raises freely from ``classify``; ``attempt`` turns the call into a
ClassificationOutcome so the chain can move on to the next tier without any
exception leaving the classification stage.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

import structlog

from movetype.core.errors import Severity
from ..models import AccelerationSample, Classification


class ClassifierTier(str, Enum):
    """Classifier tiers, most capable first."""
    ENHANCED = "enhanced"
    SIMPLE = "simple"
    FALLBACK = "fallback"


# Severity recorded when a tier fails
TIER_FAILURE_SEVERITY = {
    ClassifierTier.ENHANCED: Severity.HIGH,
    ClassifierTier.SIMPLE: Severity.MEDIUM,
    ClassifierTier.FALLBACK: Severity.CRITICAL,
}


@dataclass(frozen=True)
class ClassificationOutcome:
    """Result of running one tier: a classification or the error it raised."""
    tier: ClassifierTier
    classification: Optional[Classification] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.classification is not None

    @property
    def severity(self) -> Severity:
        return TIER_FAILURE_SEVERITY[self.tier]


class MovementClassifier(ABC):
    """Base class for classifier tiers."""

    tier: ClassifierTier

    @abstractmethod
    def classify(self, samples: Sequence[AccelerationSample]) -> Classification:
        """
        Classify a window of samples.

        Args:
            samples: Filtered samples in arrival order

        Returns:
            The tier's classification of the window
        """

    def attempt(self, samples: Sequence[AccelerationSample]) -> ClassificationOutcome:
        """
        Run ``classify`` and capture its result or error.

        A result that is not a Classification is replaced by an unknown
        classification with confidence 0.5.
        """
        try:
            result = self.classify(samples)
        except Exception as e:
            return ClassificationOutcome(tier=self.tier, error=e)

        if not isinstance(result, Classification):
            result = Classification.unknown(0.5)
        return ClassificationOutcome(tier=self.tier, classification=result.evolve(tier=self.tier.value))


@dataclass
class ChainResult:
    """Every outcome produced while walking a fallback chain."""
    outcomes: List[ClassificationOutcome] = field(default_factory=list)

    @property
    def classification(self) -> Optional[Classification]:
        for outcome in self.outcomes:
            if outcome.ok:
                return outcome.classification
        return None

    @property
    def failures(self) -> List[ClassificationOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def exhausted(self) -> bool:
        """True when no tier produced a classification."""
        return self.classification is None


class FallbackChain:
    """Runs classifier tiers in order until one succeeds."""

    def __init__(self, classifiers: Sequence[MovementClassifier]):
        if not classifiers:
            raise ValueError("A fallback chain needs at least one classifier")
        self.classifiers = list(classifiers)
        self.logger = structlog.get_logger(component="classifier_chain")

    @property
    def tiers(self) -> List[ClassifierTier]:
        return [classifier.tier for classifier in self.classifiers]

    def run(self, samples: Sequence[AccelerationSample]) -> ChainResult:
        result = ChainResult()
        for index, classifier in enumerate(self.classifiers):
            outcome = classifier.attempt(samples)
            result.outcomes.append(outcome)
            if outcome.ok:
                break
            if index + 1 < len(self.classifiers):
                self.logger.debug("Classifier tier failed, falling back",
                                  tier=outcome.tier.value,
                                  next_tier=self.classifiers[index + 1].tier.value,
                                  error=str(outcome.error))
        return result

"""
Classifier tiers.

Tiers are tried most capable first: enhanced, then simple, then fallback.
"""

from .base import (
    ClassifierTier, ClassificationOutcome, ChainResult, FallbackChain, MovementClassifier,
)
from .enhanced import EnhancedClassifier
from .fallback import FallbackClassifier
from .simple import SimpleClassifier

__all__ = [
    'ClassifierTier',
    'ClassificationOutcome',
    'ChainResult',
    'FallbackChain',
    'MovementClassifier',
    'EnhancedClassifier',
    'FallbackClassifier',
    'SimpleClassifier',
]

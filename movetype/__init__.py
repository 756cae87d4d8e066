"""
movetype - on-device movement classification.

This package turns a stream of raw accelerometer readings into a published
movement state (stationary, walking, vehicle or unknown) with a confidence
score.

Features:
- Rate-limited sample buffering and one-shot noise calibration
- Median-filter denoising
- Enhanced (frequency domain), simple and fallback classifier tiers
- Temporal smoothing and adaptive confidence thresholds
- A circuit breaker that disables detection after repeated faults
"""

__version__ = "1.0.0"

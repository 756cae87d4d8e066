"""
One-shot device noise calibration.

The calibrator watches the magnitudes of the first accepted samples, estimates
the device's resting noise floor from them and derives walking and vehicle
thresholds scaled to that floor.
"""

from typing import List, Optional, Sequence

import numpy as np
import structlog

from movetype.core.errors import CalibrationError
from .models import CalibrationProfile

# Percentile positions used to read the sorted, outlier-free magnitudes
LOW_PERCENTILE = 0.12
MEDIAN_PERCENTILE = 0.5
HIGH_PERCENTILE = 0.88

OUTLIER_SIGMA = 3.0
MIN_CALIBRATION_SAMPLES = 10
FALLBACK_BASELINE_NOISE = 0.1


class Calibrator:
    """
    Collects calibration magnitudes and produces the device's CalibrationProfile.

    ``calibrated`` moves from False to True exactly once per calibrator; after
    that ``collect`` and ``run`` leave the profile untouched.
    """

    def __init__(self, walking_threshold: float, vehicle_threshold: float, sample_count: int = 100):
        """
        Args:
            walking_threshold: Configured default walking threshold
            vehicle_threshold: Configured default vehicle threshold
            sample_count: Number of magnitudes gathered before calibrating
        """
        self.walking_threshold = walking_threshold
        self.vehicle_threshold = vehicle_threshold
        self.sample_count = sample_count
        self.logger = structlog.get_logger(component="calibrator")
        self._magnitudes: List[float] = []
        self._profile = CalibrationProfile(
            adjusted_walking_threshold=walking_threshold,
            adjusted_vehicle_threshold=vehicle_threshold,
        )

    @property
    def profile(self) -> CalibrationProfile:
        return self._profile

    @property
    def is_calibrated(self) -> bool:
        return self._profile.calibrated

    @property
    def collected(self) -> int:
        return len(self._magnitudes)

    def collect(self, magnitude: float) -> Optional[List[float]]:
        """
        Record one accepted magnitude.

        Args:
            magnitude: Magnitude of an accepted sample

        Returns:
            The full calibration window once ``sample_count`` magnitudes are
            gathered, otherwise None
        """
        if self._profile.calibrated or len(self._magnitudes) >= self.sample_count:
            return None
        self._magnitudes.append(magnitude)
        if len(self._magnitudes) >= self.sample_count:
            return list(self._magnitudes)
        return None

    def run(self, magnitudes: Sequence[float]) -> CalibrationProfile:
        """
        Calibrate from a window of magnitudes and store the profile.

        Does nothing once calibrated.

        Raises:
            CalibrationError: If the window cannot produce a profile
        """
        if self._profile.calibrated:
            return self._profile
        self._profile = self.calibrate(magnitudes)
        self.logger.info("Calibration complete",
                         baseline_noise=round(self._profile.baseline_noise, 4),
                         noise_range=round(self._profile.noise_range, 4),
                         walking_threshold=round(self._profile.adjusted_walking_threshold, 4),
                         vehicle_threshold=round(self._profile.adjusted_vehicle_threshold, 4))
        return self._profile

    def apply_defaults(self) -> CalibrationProfile:
        """Mark the device calibrated with the configured default thresholds."""
        if not self._profile.calibrated:
            self._profile = CalibrationProfile(
                baseline_noise=FALLBACK_BASELINE_NOISE,
                adjusted_walking_threshold=self.walking_threshold,
                adjusted_vehicle_threshold=self.vehicle_threshold,
                calibrated=True,
            )
        return self._profile

    def calibrate(self, magnitudes: Sequence[float]) -> CalibrationProfile:
        """
        Derive a noise profile from calibration magnitudes.

        Args:
            magnitudes: Magnitudes recorded while calibrating

        Returns:
            A calibrated profile

        Raises:
            CalibrationError: If too few samples survive outlier rejection or
                the magnitudes are not finite
        """
        values = np.asarray(magnitudes, dtype=float)
        if values.size == 0 or not np.all(np.isfinite(values)):
            raise CalibrationError("Calibration magnitudes must be finite")

        mean = values.mean()
        std_dev = values.std()
        filtered = np.sort(values[np.abs(values - mean) <= OUTLIER_SIGMA * std_dev])
        if filtered.size < MIN_CALIBRATION_SAMPLES:
            raise CalibrationError(
                f"Only {filtered.size} calibration samples left after outlier rejection"
            )

        count = filtered.size
        low = filtered[int(count * LOW_PERCENTILE)]
        median = filtered[int(count * MEDIAN_PERCENTILE)]
        high = filtered[int(count * HIGH_PERCENTILE)]

        noise_std_dev = float(np.sqrt(np.mean((filtered - median) ** 2)))
        coefficient_of_variation = noise_std_dev / (median + 0.001)
        noise_factor = min(1.0, max(0.5, 1.0 - coefficient_of_variation))

        # Noisier devices need a wider gap above their floor
        walking_multiplier = 1.4 + (1.0 - noise_factor) * 0.6
        vehicle_multiplier = 2.8 + (1.0 - noise_factor) * 1.2

        noise_floor = max(0.05, float(low))
        walking = max(self.walking_threshold, noise_floor * walking_multiplier)
        vehicle = max(self.vehicle_threshold, noise_floor * vehicle_multiplier, walking * 1.4)

        return CalibrationProfile(
            baseline_noise=noise_floor,
            noise_range=float(high - low),
            adjusted_walking_threshold=min(walking, self.walking_threshold * 1.5),
            adjusted_vehicle_threshold=min(vehicle, self.vehicle_threshold * 1.6),
            calibrated=True,
        )

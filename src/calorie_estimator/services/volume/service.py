"""Main volume estimation service.

Runs pixel sampling and volume estimation for one mask and collapses
every failure into an unavailable estimate.
"""

import logging
from functools import lru_cache

from calorie_estimator.core.config import Settings, get_settings

from .estimator import estimate_volume
from .models import CameraGeometry, HeightCalibration, VolumeError, VolumeEstimate
from .sampling import ImageSource, sample_pixels

logger = logging.getLogger(__name__)


class VolumeEstimationService:
    """Service for estimating food volume from a mask and a depth map."""

    def __init__(
        self,
        geometry: CameraGeometry | None = None,
        calibration: HeightCalibration | None = None,
    ) -> None:
        """
        Initialize the volume estimation service.

        Args:
            geometry: Camera geometry (defaults to the nominal device values)
            calibration: Empirical constants (defaults to the tuned values)
        """
        self.geometry = geometry or CameraGeometry()
        self.calibration = calibration or HeightCalibration()
        logger.info(
            f"VolumeEstimationService initialized: fov={self.geometry.horizontal_fov_deg}°, "
            f"distance={self.geometry.subject_distance_mm}mm"
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "VolumeEstimationService":
        """Create a service configured from application settings."""
        return cls(
            geometry=CameraGeometry(
                horizontal_fov_deg=settings.camera_fov_deg,
                subject_distance_mm=settings.subject_distance_mm,
            ),
            calibration=HeightCalibration(
                max_depth_span_mm=settings.max_depth_span_mm,
                height_damping=settings.height_damping,
                correction_factor=settings.correction_factor,
                min_volume_cm3=settings.min_volume_cm3,
                mask_threshold=settings.mask_threshold,
            ),
        )

    def estimate(self, mask: ImageSource, depth: ImageSource) -> VolumeEstimate:
        """
        Estimate the volume of the food region covered by a mask.

        Args:
            mask: Mask image bytes or array
            depth: Depth map bytes or array, any resolution

        Returns:
            VolumeEstimate with ``volume_cm3`` set, or an unavailable
            estimate carrying the failure code
        """
        try:
            samples = sample_pixels(mask, depth)
            volume_cm3 = estimate_volume(
                samples.mask_intensities,
                samples.depth_intensities,
                samples.width,
                geometry=self.geometry,
                calibration=self.calibration,
            )
        except VolumeError as e:
            logger.warning(f"Volume unavailable ({e.code.value}): {e.message}")
            return VolumeEstimate.unavailable(e.code, e.message)

        return VolumeEstimate(volume_cm3=volume_cm3)


@lru_cache
def get_volume_service() -> VolumeEstimationService:
    """Get a cached volume estimation service instance."""
    return VolumeEstimationService.from_settings(get_settings())

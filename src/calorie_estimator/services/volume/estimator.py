"""Depth-to-volume estimation.

Infers the plate/table depth from the farthest pixel inside the mask,
averages the height of the food surface above it, and scales pixel
counts and heights into cubic centimeters.
"""

import logging
from typing import Sequence

import numpy as np

from .models import CameraGeometry, HeightCalibration, VolumeError, VolumeErrorCode

logger = logging.getLogger(__name__)

DEFAULT_GEOMETRY = CameraGeometry()
DEFAULT_CALIBRATION = HeightCalibration()


def _validate_inputs(
    mask_intensities: np.ndarray,
    depth_intensities: np.ndarray,
    width: int,
) -> None:
    """Check that the sequences are aligned and describe a W-wide grid."""
    if mask_intensities.shape != depth_intensities.shape:
        raise VolumeError(
            code=VolumeErrorCode.INVALID_INPUT,
            message="Mask and depth sequences are not aligned",
            details={
                "mask_length": int(mask_intensities.size),
                "depth_length": int(depth_intensities.size),
            },
        )

    if width <= 0 or mask_intensities.size % width != 0:
        raise VolumeError(
            code=VolumeErrorCode.INVALID_INPUT,
            message=f"Invalid grid width {width} for {mask_intensities.size} pixels",
        )


def estimate_volume(
    mask_intensities: Sequence[float] | np.ndarray,
    depth_intensities: Sequence[float] | np.ndarray,
    width: int,
    geometry: CameraGeometry | None = None,
    calibration: HeightCalibration | None = None,
) -> float:
    """
    Estimate food volume from aligned mask and depth intensities.

    Args:
        mask_intensities: Row-major mask values (0-255)
        depth_intensities: Row-major depth values (0-255, lower = closer)
        width: Grid width in pixels
        geometry: Camera geometry for lateral scaling
        calibration: Empirical height and correction constants

    Returns:
        Volume in cm³, never below ``calibration.min_volume_cm3``

    Raises:
        VolumeError: EMPTY_MASK if no pixel passes the threshold,
            NO_SURFACE if no pixel rises above the reference plane
    """
    geometry = geometry or DEFAULT_GEOMETRY
    calibration = calibration or DEFAULT_CALIBRATION

    mask_values = np.asarray(mask_intensities, dtype=np.float64).reshape(-1)
    depth_values = np.asarray(depth_intensities, dtype=np.float64).reshape(-1)
    _validate_inputs(mask_values, depth_values, width)

    inside_depths = depth_values[mask_values > calibration.mask_threshold]
    if inside_depths.size == 0:
        raise VolumeError(
            code=VolumeErrorCode.EMPTY_MASK,
            message="No food pixels detected in mask",
            details={"threshold": calibration.mask_threshold},
        )

    # Farthest point in the footprint is taken as the plate/table surface
    reference_depth = float(inside_depths.max())

    heights = reference_depth - inside_depths
    surface_heights = heights[heights > 0]
    pixel_count = int(surface_heights.size)

    if pixel_count == 0:
        raise VolumeError(
            code=VolumeErrorCode.NO_SURFACE,
            message="No pixels above the reference plane",
            details={
                "reference_depth": reference_depth,
                "inside_pixels": int(inside_depths.size),
            },
        )

    avg_height = float(surface_heights.sum()) / pixel_count

    pixel_size_mm = geometry.pixel_size_mm(width)
    height_mm = calibration.height_to_mm(avg_height)

    area_mm2 = pixel_count * pixel_size_mm * pixel_size_mm
    volume_cm3 = (area_mm2 * height_mm) / 1000.0
    corrected = volume_cm3 * calibration.correction_factor

    logger.debug(
        f"Volume estimate: reference={reference_depth:.0f}, pixels={pixel_count}, "
        f"avg_height={avg_height:.2f}, pixel_size={pixel_size_mm:.4f}mm, "
        f"height={height_mm:.2f}mm, raw={volume_cm3:.2f}cm³"
    )

    return max(corrected, calibration.min_volume_cm3)

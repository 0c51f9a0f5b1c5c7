"""Data models for the volume estimation service."""

import math
from dataclasses import dataclass
from enum import Enum

import numpy as np
from pydantic import BaseModel, Field


class VolumeErrorCode(str, Enum):
    """Error codes for volume estimation failures."""

    DECODE_FAILURE = "DECODE_FAILURE"  # Image could not be materialized into pixels
    EMPTY_MASK = "EMPTY_MASK"  # No pixels above the mask threshold
    NO_SURFACE = "NO_SURFACE"  # No pixels above the reference plane
    INVALID_INPUT = "INVALID_INPUT"  # Misaligned or malformed pixel sequences


class VolumeError(Exception):
    """Exception raised when volume estimation fails."""

    def __init__(self, code: VolumeErrorCode, message: str, details: dict | None = None) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


@dataclass(frozen=True)
class CameraGeometry:
    """Nominal camera geometry used for lateral pixel-to-mm scaling."""

    horizontal_fov_deg: float = 77.0  # iPhone wide camera
    subject_distance_mm: float = 400.0  # Assumed distance to the food (40cm)

    def pixel_size_mm(self, width: int) -> float:
        """
        Size of one pixel in mm at the assumed subject distance.

        Args:
            width: Image width in pixels

        Returns:
            Millimeters covered by one pixel horizontally
        """
        fov_radians = math.radians(self.horizontal_fov_deg)
        sensor_width_mm = 2.0 * self.subject_distance_mm * math.tan(fov_radians / 2.0)
        return sensor_width_mm / width


@dataclass(frozen=True)
class HeightCalibration:
    """Empirical constants for converting depth intensities into volume."""

    max_depth_span_mm: float = 5000.0  # 0-255 depth range spans ~5m
    height_damping: float = 0.05  # Scales the depth span down to food height
    correction_factor: float = 0.8  # Compensates systematic overestimation
    min_volume_cm3: float = 1.0
    mask_threshold: int = 128

    def height_to_mm(self, normalized_height: float) -> float:
        """Convert a 0-255 height difference to millimeters."""
        return (normalized_height / 255.0) * self.max_depth_span_mm * self.height_damping


@dataclass(frozen=True)
class PixelSamples:
    """Aligned per-pixel intensities at the mask's resolution (row-major)."""

    mask_intensities: np.ndarray  # (W*H,) float64, 0-255
    depth_intensities: np.ndarray  # (W*H,) float64, 0-255
    width: int
    height: int


class VolumeEstimate(BaseModel):
    """Volume estimate for a single food mask, or the reason it is unavailable."""

    volume_cm3: float | None = Field(
        default=None, ge=0, description="Estimated volume in cubic centimeters"
    )
    error_code: VolumeErrorCode | None = Field(
        default=None, description="Failure code when the volume is unavailable"
    )
    message: str | None = Field(default=None, description="Failure details")

    @property
    def is_available(self) -> bool:
        """Check whether a volume was estimated."""
        return self.volume_cm3 is not None

    @classmethod
    def unavailable(cls, code: VolumeErrorCode, message: str) -> "VolumeEstimate":
        """Create an estimate for a failed computation."""
        return cls(error_code=code, message=message)

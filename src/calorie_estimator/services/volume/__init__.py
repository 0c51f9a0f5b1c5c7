"""Volume estimation for segmented food items.

Converts a segmentation mask and a co-registered depth map into a
volume in cubic centimeters.
"""

from .models import (
    CameraGeometry,
    HeightCalibration,
    PixelSamples,
    VolumeError,
    VolumeErrorCode,
    VolumeEstimate,
)
from .estimator import estimate_volume
from .sampling import sample_pixels
from .service import VolumeEstimationService, get_volume_service

__all__ = [
    "CameraGeometry",
    "HeightCalibration",
    "PixelSamples",
    "VolumeError",
    "VolumeErrorCode",
    "VolumeEstimate",
    "estimate_volume",
    "sample_pixels",
    "VolumeEstimationService",
    "get_volume_service",
]

"""Pytest configuration and fixtures."""

import base64
from typing import Callable

import cv2
import numpy as np
import pytest

from calorie_estimator.core.config import get_settings
from calorie_estimator.services.analysis import get_analysis_service
from calorie_estimator.services.volume.service import get_volume_service


def _encode_png(image: np.ndarray) -> bytes:
    ok, buffer = cv2.imencode(".png", image)
    assert ok
    return buffer.tobytes()


@pytest.fixture(autouse=True)
def clear_cached_services():
    """Reset cached settings and services between tests."""
    yield
    get_settings.cache_clear()
    get_volume_service.cache_clear()
    get_analysis_service.cache_clear()


@pytest.fixture
def encode_png() -> Callable[[np.ndarray], bytes]:
    """Encode a numpy image as PNG bytes."""
    return _encode_png


@pytest.fixture
def encode_mask_base64() -> Callable[[np.ndarray], str]:
    """Encode a mask image as base64 PNG, as the segmentation service does."""

    def encode(mask: np.ndarray) -> str:
        return base64.b64encode(_encode_png(mask)).decode("utf-8")

    return encode


@pytest.fixture
def full_mask() -> np.ndarray:
    """10x10 mask with every pixel inside the food region."""
    return np.full((10, 10), 255, dtype=np.uint8)


@pytest.fixture
def empty_mask() -> np.ndarray:
    """10x10 mask with no food pixels."""
    return np.zeros((10, 10), dtype=np.uint8)


@pytest.fixture
def make_plate_depth() -> Callable[[int], np.ndarray]:
    """
    Build a 10x10 depth map: plate at 200 with a 2x2 food block.

    Usage:
        depth = make_plate_depth(150)  # block closer to the camera
    """

    def make(block_value: int = 150) -> np.ndarray:
        depth = np.full((10, 10), 200, dtype=np.uint8)
        depth[4:6, 4:6] = block_value
        return depth

    return make

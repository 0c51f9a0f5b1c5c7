"""Segmentation provider interface."""

from .base import SegmentationError, SegmentationProvider, SegmentationTimeoutError

__all__ = ["SegmentationError", "SegmentationProvider", "SegmentationTimeoutError"]

"""Pydantic models for detections and segmentation results."""

from .detection import BoundingBox, FoodDetection, FrameAnalysis, SegmentationResponse

__all__ = [
    "BoundingBox",
    "FoodDetection",
    "FrameAnalysis",
    "SegmentationResponse",
]

"""Pydantic models for segmentation input and per-detection results.

The segmentation collaborator returns parallel lists (one entry per
detected food). Each entry becomes a FoodDetection carrying an optional
volume estimate.
"""

from typing import Annotated

from pydantic import BaseModel, Field, model_validator

from calorie_estimator.services.volume.models import VolumeErrorCode

# =============================================================================
# Segmentation Contract
# =============================================================================


class SegmentationResponse(BaseModel):
    """Response from the segmentation service (one list entry per detection)."""

    masks: list[str] = Field(description="Base64-encoded mask images")
    food_names: list[str] = Field(description="Food label for each mask")
    boxes: list[Annotated[list[float], Field(min_length=4, max_length=4)]] = Field(
        description="Bounding boxes as [x0, y0, x1, y1]"
    )
    confidences: list[Annotated[float, Field(ge=0.0, le=1.0)]] = Field(
        description="Confidence score for each detection"
    )

    @model_validator(mode="after")
    def check_lengths(self) -> "SegmentationResponse":
        """Require all parallel lists to describe the same detections."""
        lengths = {
            len(self.masks),
            len(self.food_names),
            len(self.boxes),
            len(self.confidences),
        }
        if len(lengths) != 1:
            raise ValueError(
                "masks, food_names, boxes and confidences must have the same length"
            )
        return self

    def __len__(self) -> int:
        return len(self.masks)


# =============================================================================
# Detection Results
# =============================================================================


class BoundingBox(BaseModel):
    """Axis-aligned bounding box in image pixels."""

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_corners(cls, box: list[float]) -> "BoundingBox":
        """Build a box from [x0, y0, x1, y1] corner coordinates."""
        x0, y0, x1, y1 = box
        return cls(x=x0, y=y0, width=x1 - x0, height=y1 - y0)


class FoodDetection(BaseModel):
    """A single detected food item with its estimated volume."""

    name: str = Field(..., description="Food label from segmentation")
    confidence: Annotated[float, Field(ge=0, le=1)] = Field(
        ..., description="Detection confidence (0-1)"
    )
    bounding_box: BoundingBox = Field(..., description="Bounding box of the detection")
    mask_width: int | None = Field(
        default=None, description="Mask width in pixels (None if undecodable)"
    )
    mask_height: int | None = Field(
        default=None, description="Mask height in pixels (None if undecodable)"
    )
    estimated_volume_cm3: float | None = Field(
        default=None, ge=0, description="Estimated volume in cm³ (None if unavailable)"
    )
    volume_error: VolumeErrorCode | None = Field(
        default=None, description="Why the volume is unavailable"
    )


class FrameAnalysis(BaseModel):
    """Volume results for every detection in one captured frame."""

    detections: list[FoodDetection] = Field(default_factory=list)
    total_volume_cm3: float = Field(
        default=0.0, ge=0, description="Sum of the available volumes"
    )
    processing_time_ms: int = Field(default=0, description="Processing time in milliseconds")

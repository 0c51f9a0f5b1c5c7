"""
Base interface for segmentation providers.

The estimator never talks to the network itself. Applications plug in a
provider (HTTP client, on-device model, test double) implementing this
interface; the analysis service bounds each call with a timeout.
"""

from abc import ABC, abstractmethod
from typing import Any

from calorie_estimator.models.detection import SegmentationResponse


class SegmentationError(Exception):
    """Error while obtaining segmentation results."""

    def __init__(
        self,
        message: str,
        error_code: str = "SEGMENTATION_ERROR",
        provider: str = "unknown",
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.provider = provider
        self.details = details or {}


class SegmentationTimeoutError(SegmentationError):
    """The segmentation provider did not answer in time."""

    def __init__(self, provider: str, timeout: float):
        super().__init__(
            message=f"Segmentation provider '{provider}' timed out after {timeout:.1f}s",
            error_code="SEGMENTATION_TIMEOUT",
            provider=provider,
            details={"timeout_s": timeout},
        )


class SegmentationProvider(ABC):
    """
    Abstract base class for segmentation providers.

    Implementations return masks, labels, boxes and confidences for an image.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the name of this provider."""
        ...

    @abstractmethod
    async def segment(self, image_data: bytes) -> SegmentationResponse:
        """
        Segment an RGB image into food regions.

        Args:
            image_data: Raw image bytes (JPEG or PNG)

        Returns:
            SegmentationResponse with one entry per detected food

        Raises:
            SegmentationError: If segmentation fails
        """
        ...

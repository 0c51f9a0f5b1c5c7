"""Per-detection volume analysis for a captured frame.

Takes the segmentation result for one RGB photo plus the depth map
captured with it, and produces one FoodDetection per mask. A detection
whose volume cannot be estimated is still reported with its label,
confidence and bounding box.
"""

import asyncio
import base64
import logging
import time
from functools import lru_cache

import numpy as np

from calorie_estimator.core.config import get_settings
from calorie_estimator.models.detection import (
    BoundingBox,
    FoodDetection,
    FrameAnalysis,
    SegmentationResponse,
)

from .segmentation.base import SegmentationProvider, SegmentationTimeoutError
from .volume.models import VolumeError, VolumeErrorCode, VolumeEstimate
from .volume.sampling import ImageSource, decode_image, to_intensity
from .volume.service import VolumeEstimationService, get_volume_service

logger = logging.getLogger(__name__)


class FoodAnalysisService:
    """
    Orchestrates volume estimation for every detection in a frame.

    The depth map is decoded once and shared read-only between detections,
    which may be processed in parallel worker threads.
    """

    def __init__(
        self,
        volume_service: VolumeEstimationService | None = None,
        segmentation_timeout: float = 30.0,
        parallel: bool = True,
    ) -> None:
        """
        Initialize the analysis service.

        Args:
            volume_service: Volume estimator used for each mask
            segmentation_timeout: Seconds to wait for the segmentation provider
            parallel: Default for processing detections concurrently
        """
        self._volume_service = volume_service or VolumeEstimationService()
        self.segmentation_timeout = segmentation_timeout
        self.parallel = parallel

    async def analyze(
        self,
        segmentation: SegmentationResponse | dict,
        depth: ImageSource,
        parallel: bool | None = None,
    ) -> FrameAnalysis:
        """
        Estimate volumes for all detections in a segmentation result.

        Args:
            segmentation: Segmentation response (model or decoded JSON dict)
            depth: Depth map bytes or array for the captured frame
            parallel: Process detections concurrently (defaults to service setting)

        Returns:
            FrameAnalysis with one detection per mask, in response order

        Raises:
            pydantic.ValidationError: If a dict response is malformed
        """
        start_time = time.time()

        if not isinstance(segmentation, SegmentationResponse):
            segmentation = SegmentationResponse.model_validate(segmentation)

        if parallel is None:
            parallel = self.parallel

        depth_grid: np.ndarray | None = None
        depth_error: VolumeError | None = None
        try:
            depth_grid = to_intensity(decode_image(depth, "depth"), "depth")
        except VolumeError as e:
            logger.warning(f"Depth map unusable, volumes unavailable: {e.message}")
            depth_error = e

        logger.info(f"Analyzing {len(segmentation)} detections (parallel={parallel})")

        if parallel:
            detections = await asyncio.gather(
                *[
                    asyncio.to_thread(
                        self._process_detection, segmentation, i, depth_grid, depth_error
                    )
                    for i in range(len(segmentation))
                ]
            )
        else:
            detections = [
                self._process_detection(segmentation, i, depth_grid, depth_error)
                for i in range(len(segmentation))
            ]

        total_volume = sum(
            d.estimated_volume_cm3 for d in detections if d.estimated_volume_cm3 is not None
        )
        processing_time_ms = int((time.time() - start_time) * 1000)

        logger.info(
            f"Analysis complete: {len(detections)} detections, "
            f"{total_volume:.1f}cm³ total in {processing_time_ms}ms"
        )

        return FrameAnalysis(
            detections=list(detections),
            total_volume_cm3=total_volume,
            processing_time_ms=processing_time_ms,
        )

    async def segment_and_analyze(
        self,
        provider: SegmentationProvider,
        rgb_data: bytes,
        depth: ImageSource,
        timeout: float | None = None,
        parallel: bool | None = None,
    ) -> FrameAnalysis:
        """
        Segment an RGB image with a provider, then analyze the detections.

        Args:
            provider: Segmentation provider to call
            rgb_data: RGB image bytes forwarded to the provider
            depth: Depth map captured with the image
            timeout: Seconds to wait for the provider (defaults to service setting)
            parallel: Process detections concurrently

        Returns:
            FrameAnalysis for the frame

        Raises:
            SegmentationTimeoutError: If the provider does not answer in time
            SegmentationError: If the provider fails
        """
        timeout = self.segmentation_timeout if timeout is None else timeout

        logger.info(f"Requesting segmentation from {provider.provider_name}")
        try:
            segmentation = await asyncio.wait_for(provider.segment(rgb_data), timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Segmentation timed out after {timeout}s")
            raise SegmentationTimeoutError(provider.provider_name, timeout) from e

        logger.info(f"Received {len(segmentation)} detections from {provider.provider_name}")

        return await self.analyze(segmentation, depth, parallel=parallel)

    def _process_detection(
        self,
        segmentation: SegmentationResponse,
        index: int,
        depth_grid: np.ndarray | None,
        depth_error: VolumeError | None,
    ) -> FoodDetection:
        """Build the detection for one mask, estimating its volume when possible."""
        name = segmentation.food_names[index]
        detection = FoodDetection(
            name=name,
            confidence=segmentation.confidences[index],
            bounding_box=BoundingBox.from_corners(segmentation.boxes[index]),
        )

        try:
            mask_bytes = base64.b64decode(segmentation.masks[index], validate=True)
        except ValueError as e:
            logger.warning(f"Detection {index} ({name}): invalid mask base64: {e}")
            detection.volume_error = VolumeErrorCode.DECODE_FAILURE
            return detection

        try:
            mask = decode_image(mask_bytes, "mask")
        except VolumeError as e:
            logger.warning(f"Detection {index} ({name}): {e.message}")
            detection.volume_error = e.code
            return detection

        detection.mask_height, detection.mask_width = mask.shape[:2]

        if depth_grid is None:
            estimate = VolumeEstimate.unavailable(
                VolumeErrorCode.DECODE_FAILURE,
                depth_error.message if depth_error else "No depth map",
            )
        else:
            estimate = self._volume_service.estimate(mask, depth_grid)

        detection.estimated_volume_cm3 = estimate.volume_cm3
        detection.volume_error = estimate.error_code

        if estimate.is_available:
            logger.info(f"Detection {index} ({name}): {estimate.volume_cm3:.2f}cm³")

        return detection


@lru_cache
def get_analysis_service() -> FoodAnalysisService:
    """Get a cached analysis service configured from settings."""
    settings = get_settings()
    return FoodAnalysisService(
        volume_service=get_volume_service(),
        segmentation_timeout=settings.segmentation_timeout,
        parallel=settings.parallel_detections,
    )

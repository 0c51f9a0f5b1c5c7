"""Pixel sampling for volume estimation.

Decodes mask and depth images, normalizes them to 8-bit intensities and
aligns them pixel-for-pixel at the mask's resolution.
"""

import logging

import cv2
import numpy as np

from .models import PixelSamples, VolumeError, VolumeErrorCode

logger = logging.getLogger(__name__)

ImageSource = bytes | np.ndarray


def decode_image(image_data: ImageSource, label: str = "image") -> np.ndarray:
    """
    Decode image bytes (PNG, JPEG, TIFF...) into a numpy array.

    Arrays are passed through unchanged. Decoded color images are returned
    in RGB(A) channel order.

    Args:
        image_data: Raw encoded bytes or an already-decoded array
        label: Name used in error messages ("mask", "depth")

    Returns:
        (H, W) or (H, W, C) array in the source bit depth

    Raises:
        VolumeError: If the image cannot be decoded
    """
    if isinstance(image_data, np.ndarray):
        return image_data

    try:
        nparr = np.frombuffer(image_data, np.uint8)
        image = cv2.imdecode(nparr, cv2.IMREAD_UNCHANGED)
    except (cv2.error, TypeError, ValueError) as e:
        raise VolumeError(
            code=VolumeErrorCode.DECODE_FAILURE,
            message=f"Failed to decode {label}: {e}",
        ) from e

    if image is None:
        raise VolumeError(
            code=VolumeErrorCode.DECODE_FAILURE,
            message=f"Failed to decode {label} image",
            details={"size_bytes": len(image_data)},
        )

    if image.ndim == 3 and image.shape[2] == 3:
        image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    elif image.ndim == 3 and image.shape[2] == 4:
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)

    return image


def _premultiplied_red(image: np.ndarray) -> np.ndarray:
    """Red channel of an RGBA image scaled by its alpha, in the source dtype."""
    if image.dtype == np.bool_:
        return image[:, :, 0] & image[:, :, 3]

    if np.issubdtype(image.dtype, np.integer):
        alpha_max = float(np.iinfo(image.dtype).max) if image.dtype in (np.uint8, np.uint16) else 255.0
    else:
        alpha_max = 1.0

    red = image[:, :, 0].astype(np.float64)
    alpha = np.clip(image[:, :, 3].astype(np.float64), 0.0, alpha_max)
    premultiplied = red * alpha / alpha_max

    if np.issubdtype(image.dtype, np.integer):
        return np.rint(premultiplied).astype(image.dtype)
    return premultiplied


def to_intensity(image: np.ndarray, label: str = "image") -> np.ndarray:
    """
    Normalize an image to a single-channel 8-bit intensity grid.

    Multi-channel images use their first (red) channel; RGBA images are
    premultiplied by alpha, so transparent pixels read as 0. 16-bit images
    are rescaled to 0-255; floating point images are treated as a 0-1 field.

    Args:
        image: (H, W) or (H, W, C) array of any numeric dtype
        label: Name used in error messages

    Returns:
        (H, W) uint8 array

    Raises:
        VolumeError: If the array is empty or not an image
    """
    if image.ndim == 3 and image.shape[2] == 4:
        image = _premultiplied_red(image)
    elif image.ndim == 3:
        image = image[:, :, 0]

    if image.ndim != 2 or image.size == 0:
        raise VolumeError(
            code=VolumeErrorCode.DECODE_FAILURE,
            message=f"{label} is not a 2-D image",
            details={"shape": list(image.shape)},
        )

    if image.dtype == np.uint8:
        return image

    if image.dtype == np.bool_:
        return image.astype(np.uint8) * 255

    if image.dtype == np.uint16:
        scaled = image.astype(np.float64) / 257.0
    elif np.issubdtype(image.dtype, np.integer):
        scaled = image.astype(np.float64)
    elif np.issubdtype(image.dtype, np.floating):
        scaled = np.clip(np.nan_to_num(image.astype(np.float64), nan=0.0), 0.0, 1.0) * 255.0
    else:
        raise VolumeError(
            code=VolumeErrorCode.DECODE_FAILURE,
            message=f"Unsupported {label} dtype: {image.dtype}",
        )

    return np.clip(np.rint(scaled), 0, 255).astype(np.uint8)


def resample_to(depth: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Resample a depth intensity grid to the given resolution.

    Uses bilinear interpolation; a no-op when the size already matches.
    """
    if depth.shape == (height, width):
        return depth

    logger.debug(
        f"Resampling depth map {depth.shape[1]}x{depth.shape[0]} -> {width}x{height}"
    )
    return cv2.resize(depth, (width, height), interpolation=cv2.INTER_LINEAR)


def sample_pixels(mask: ImageSource, depth: ImageSource) -> PixelSamples:
    """
    Extract aligned (mask, depth) intensity pairs at the mask's resolution.

    Args:
        mask: Mask image bytes or array
        depth: Depth image bytes or array (lower value = closer)

    Returns:
        PixelSamples with row-major sequences of length W*H

    Raises:
        VolumeError: If either image cannot be decoded
    """
    mask_grid = to_intensity(decode_image(mask, "mask"), "mask")
    depth_grid = to_intensity(decode_image(depth, "depth"), "depth")

    height, width = mask_grid.shape
    depth_grid = resample_to(depth_grid, width, height)

    return PixelSamples(
        mask_intensities=mask_grid.reshape(-1).astype(np.float64),
        depth_intensities=depth_grid.reshape(-1).astype(np.float64),
        width=width,
        height=height,
    )

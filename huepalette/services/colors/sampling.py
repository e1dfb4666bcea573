"""
Pixel sampling for palette extraction.

Builds a bounded working set from the image with a golden-ratio index
sequence, drops near-black/near-white pixels and reads the foreground mask
at each sampled coordinate. Large images are sampled at several downscales.
"""

from typing import Optional, Tuple

import cv2
import numpy as np
from loguru import logger

from huepalette.config import config
from .models import PixelSplit, SampledPixels

GOLDEN_RATIO_CONJUGATE = 0.618033988749895
MULTI_SCALES = (1.0, 0.5, 0.25)
MASK_FOREGROUND_LEVEL = 128


def generate_sampling_indices(total_pixels: int, target_samples: int) -> np.ndarray:
    """
    Spatially well-spread flat pixel indices.

    Args:
        total_pixels: Number of pixels in the image
        target_samples: Desired sample count

    Returns:
        int64 array of flat indices, length min(total_pixels, target_samples)
    """
    if total_pixels <= 0 or target_samples <= 0:
        return np.zeros(0, dtype=np.int64)
    if total_pixels <= target_samples:
        return np.arange(total_pixels, dtype=np.int64)

    sample_rate = total_pixels / target_samples
    steps = np.arange(target_samples, dtype=np.float64)
    accumulator = np.mod((steps + 1) * GOLDEN_RATIO_CONJUGATE, 1.0)
    indices = np.floor(accumulator * total_pixels + steps * sample_rate).astype(np.int64)
    return indices % total_pixels


def brightness_filter(
    pixels: np.ndarray,
    low: Optional[int] = None,
    high: Optional[int] = None,
) -> np.ndarray:
    """Boolean keep-mask for pixels whose brightness is strictly inside (low, high)."""
    low = config.BRIGHTNESS_MIN if low is None else low
    high = config.BRIGHTNESS_MAX if high is None else high

    channels = pixels.astype(np.int32)
    brightness = (77 * channels[:, 0] + 150 * channels[:, 1] + 29 * channels[:, 2]) >> 8
    return (brightness > low) & (brightness < high)


def _resize_mask(mask: np.ndarray, width: int, height: int) -> np.ndarray:
    if mask.shape[1] == width and mask.shape[0] == height:
        return mask
    return cv2.resize(mask, (width, height), interpolation=cv2.INTER_LINEAR)


def sample_at_scale(
    image_rgb: np.ndarray,
    mask: Optional[np.ndarray],
    target_samples: int,
) -> SampledPixels:
    """Sample one resolution of the image; a missing mask marks everything foreground."""
    height, width = image_rgb.shape[:2]
    total = width * height
    indices = generate_sampling_indices(total, min(total, target_samples))

    flat = image_rgb.reshape(-1, 3)
    pixels = flat[indices]
    keep = brightness_filter(pixels)
    pixels = pixels[keep]

    if mask is None:
        is_foreground = np.ones(pixels.shape[0], dtype=bool)
    else:
        mask_flat = _resize_mask(mask, width, height).reshape(-1)
        is_foreground = mask_flat[indices][keep] > MASK_FOREGROUND_LEVEL

    return SampledPixels(pixels=np.ascontiguousarray(pixels, dtype=np.uint8), is_foreground=is_foreground)


def sample_pixels(
    image_rgb: np.ndarray,
    mask: Optional[np.ndarray] = None,
    max_samples: Optional[int] = None,
) -> SampledPixels:
    """
    Sample the image into a bounded pixel set.

    Args:
        image_rgb: (H, W, 3) uint8 RGB image
        mask: Optional (h, w) uint8 grayscale mask, resized to the image if needed
        max_samples: Sample budget (defaults to config.MAX_SAMPLES)

    Returns:
        SampledPixels with one foreground flag per kept pixel
    """
    max_samples = max_samples or config.MAX_SAMPLES
    height, width = image_rgb.shape[:2]
    total = width * height

    if config.MULTI_SCALE_ENABLED and total > config.MULTI_SCALE_THRESHOLD:
        return sample_multi_scale(image_rgb, mask, max_samples)

    sampled = sample_at_scale(image_rgb, mask, max_samples)
    logger.debug(
        f"Sampled {len(sampled)} pixels from {width}x{height} "
        f"({int(sampled.is_foreground.sum())} foreground)"
    )
    return sampled


def sample_multi_scale(
    image_rgb: np.ndarray,
    mask: Optional[np.ndarray],
    max_samples: int,
) -> SampledPixels:
    """Concatenate samples taken at 1.0, 0.5 and 0.25 scale, budget scaled by scale^2."""
    height, width = image_rgb.shape[:2]
    pixel_parts = []
    flag_parts = []

    for scale in MULTI_SCALES:
        scaled_w = max(1, int(width * scale))
        scaled_h = max(1, int(height * scale))
        samples_at_scale = int(max_samples * scale * scale)
        if samples_at_scale <= 0:
            continue

        if scale == 1.0:
            scaled = image_rgb
        else:
            scaled = cv2.resize(image_rgb, (scaled_w, scaled_h), interpolation=cv2.INTER_AREA)

        result = sample_at_scale(scaled, mask, samples_at_scale)
        pixel_parts.append(result.pixels)
        flag_parts.append(result.is_foreground)
        logger.debug(f"Scale {scale}: {scaled_w}x{scaled_h}, kept {len(result)} pixels")

    if not pixel_parts:
        return SampledPixels(pixels=np.zeros((0, 3), dtype=np.uint8), is_foreground=np.zeros(0, dtype=bool))

    return SampledPixels(
        pixels=np.concatenate(pixel_parts, axis=0),
        is_foreground=np.concatenate(flag_parts, axis=0),
    )


def split_by_luminance(
    pixels: np.ndarray,
    ratio: Optional[float] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Order by luminance descending; the top ``ratio`` share is foreground."""
    ratio = config.LUMINANCE_SPLIT_RATIO if ratio is None else ratio
    if pixels.shape[0] == 0:
        return pixels, pixels

    channels = pixels.astype(np.float64)
    luminance = 0.299 * channels[:, 0] + 0.587 * channels[:, 1] + 0.114 * channels[:, 2]
    order = np.argsort(-luminance, kind="stable")
    split_point = int(pixels.shape[0] * ratio)

    ordered = pixels[order]
    return ordered[:split_point], ordered[split_point:]


def split_pixels(
    sampled: SampledPixels,
    min_foreground_ratio: Optional[float] = None,
) -> PixelSplit:
    """
    Split sampled pixels by their mask reading.

    The mask split is discarded in favour of the luminance split when either
    side is empty or the foreground share is below ``min_foreground_ratio``.
    """
    min_foreground_ratio = (
        config.MIN_FOREGROUND_RATIO if min_foreground_ratio is None else min_foreground_ratio
    )
    foreground = sampled.pixels[sampled.is_foreground]
    background = sampled.pixels[~sampled.is_foreground]
    total = len(sampled)

    if (
        foreground.shape[0] == 0
        or background.shape[0] == 0
        or foreground.shape[0] < total * min_foreground_ratio
    ):
        logger.info(
            f"Using luminance split (mask gave {foreground.shape[0]} fg / {background.shape[0]} bg)"
        )
        foreground, background = split_by_luminance(sampled.pixels)
        return PixelSplit(foreground=foreground, background=background, used_luminance_split=True)

    return PixelSplit(foreground=foreground, background=background, used_luminance_split=False)

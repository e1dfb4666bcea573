"""
huepalette Configuration
Manages environment variables and defaults for the extraction pipeline.
"""
import os
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return bool(int(os.environ.get(name, default)))


class Config:
    """Configuration class for huepalette services."""

    # Input limits
    MAX_IMAGE_MB: int = int(os.environ.get("HUEPALETTE_MAX_IMAGE_MB", "10"))

    # Pixel sampling
    MAX_SAMPLES: int = int(os.environ.get("HUEPALETTE_MAX_SAMPLES", "5000"))
    BRIGHTNESS_MIN: int = int(os.environ.get("HUEPALETTE_BRIGHTNESS_MIN", "15"))
    BRIGHTNESS_MAX: int = int(os.environ.get("HUEPALETTE_BRIGHTNESS_MAX", "240"))
    MULTI_SCALE_ENABLED: bool = _env_bool("HUEPALETTE_MULTI_SCALE_ENABLED", "1")
    MULTI_SCALE_THRESHOLD: int = int(os.environ.get("HUEPALETTE_MULTI_SCALE_THRESHOLD", "10000000"))
    MIN_FOREGROUND_RATIO: float = float(os.environ.get("HUEPALETTE_MIN_FOREGROUND_RATIO", "0.05"))
    LUMINANCE_SPLIT_RATIO: float = float(os.environ.get("HUEPALETTE_LUMINANCE_SPLIT_RATIO", "0.5"))

    # Clustering
    KMEANS_MAX_ITERATIONS: int = int(os.environ.get("HUEPALETTE_KMEANS_MAX_ITERATIONS", "100"))
    KMEANS_EPSILON: float = float(os.environ.get("HUEPALETTE_KMEANS_EPSILON", "0.0001"))
    KMEANS_CHANGE_THRESHOLD: float = float(os.environ.get("HUEPALETTE_KMEANS_CHANGE_THRESHOLD", "0.001"))
    DEDUP_THRESHOLD: float = float(os.environ.get("HUEPALETTE_DEDUP_THRESHOLD", "0.35"))
    FINAL_CLEANUP_THRESHOLD: float = float(os.environ.get("HUEPALETTE_FINAL_CLEANUP_THRESHOLD", "0.35"))
    MIN_HUE_DIFFERENCE: float = float(os.environ.get("HUEPALETTE_MIN_HUE_DIFFERENCE", "35"))
    BACKFILL_DISTANCE: float = float(os.environ.get("HUEPALETTE_BACKFILL_DISTANCE", "0.4"))
    MIN_COLORS_PER_SEGMENT: int = int(os.environ.get("HUEPALETTE_MIN_COLORS_PER_SEGMENT", "2"))

    # Palette output
    PARTIAL_COLOR_COUNT: int = int(os.environ.get("HUEPALETTE_PARTIAL_COLOR_COUNT", "5"))
    TINT_SHADE_COUNT: int = int(os.environ.get("HUEPALETTE_TINT_SHADE_COUNT", "4"))

    # Conversion caches
    OKLAB_CACHE_SIZE: int = int(os.environ.get("HUEPALETTE_OKLAB_CACHE_SIZE", "2000"))
    HSL_CACHE_SIZE: int = int(os.environ.get("HUEPALETTE_HSL_CACHE_SIZE", "2000"))
    OKLCH_CACHE_SIZE: int = int(os.environ.get("HUEPALETTE_OKLCH_CACHE_SIZE", "1000"))

    # Segmentation provider
    HF_API_URL: str = os.environ.get("HUEPALETTE_HF_API_URL", "https://router.huggingface.co/hf-inference/models")
    HF_TOKEN: Optional[str] = os.environ.get("HUEPALETTE_HF_TOKEN")
    HF_FOREGROUND_MODEL: str = os.environ.get(
        "HUEPALETTE_HF_FOREGROUND_MODEL", "facebook/mask2former-swin-base-coco-panoptic"
    )
    HF_SEMANTIC_MODEL: str = os.environ.get(
        "HUEPALETTE_HF_SEMANTIC_MODEL", "nvidia/segformer-b0-finetuned-ade-512-512"
    )
    SEMANTIC_MAX_EDGE: int = int(os.environ.get("HUEPALETTE_SEMANTIC_MAX_EDGE", "640"))

    # Timeouts (milliseconds)
    TIMEOUT_FOREGROUND_MS: int = int(os.environ.get("HUEPALETTE_TIMEOUT_FOREGROUND_MS", "120000"))
    TIMEOUT_SEMANTIC_MS: int = int(os.environ.get("HUEPALETTE_TIMEOUT_SEMANTIC_MS", "60000"))
    TIMEOUT_TOTAL_MS: int = int(os.environ.get("HUEPALETTE_TIMEOUT_TOTAL_MS", "300000"))
    RETRY_DELAY_MS: int = int(os.environ.get("HUEPALETTE_RETRY_DELAY_MS", "20000"))

    # Logging
    LOG_LEVEL: str = os.environ.get("HUEPALETTE_LOG_LEVEL", "INFO")

    # Supported image formats (magic-byte sniffed)
    SUPPORTED_MIME_TYPES = ["image/jpeg", "image/png", "image/webp", "image/gif", "image/bmp"]

    @classmethod
    def validate_num_colors(cls, num_colors: int) -> bool:
        """Validate requested palette size."""
        return 1 <= num_colors <= 30

    @classmethod
    def validate_brightness_band(cls, low: int, high: int) -> bool:
        """Validate brightness filter band."""
        return 0 <= low < high <= 255

    @classmethod
    def validate_dedup_threshold(cls, threshold: float) -> bool:
        """Validate perceptual dedup threshold."""
        return 0.0 < threshold <= 1.0

    @classmethod
    def validate_hue_difference(cls, degrees: float) -> bool:
        """Validate minimum hue separation."""
        return 0.0 <= degrees <= 180.0

    def validate(self) -> List[str]:
        """
        Validate the tunable parameters at startup.

        Returns:
            List of human-readable problems (empty when valid)
        """
        errors = []

        if self.MAX_IMAGE_MB < 1 or self.MAX_IMAGE_MB > 100:
            errors.append(f"MAX_IMAGE_MB must be 1-100, got {self.MAX_IMAGE_MB}")
        if self.MAX_SAMPLES < 1:
            errors.append("MAX_SAMPLES must be at least 1")
        if not self.validate_brightness_band(self.BRIGHTNESS_MIN, self.BRIGHTNESS_MAX):
            errors.append(
                f"Invalid brightness band: {self.BRIGHTNESS_MIN}-{self.BRIGHTNESS_MAX}"
            )
        if self.KMEANS_MAX_ITERATIONS < 1:
            errors.append("KMEANS_MAX_ITERATIONS must be at least 1")
        if self.KMEANS_EPSILON <= 0:
            errors.append("KMEANS_EPSILON must be positive")
        if not self.validate_dedup_threshold(self.DEDUP_THRESHOLD):
            errors.append(f"Invalid DEDUP_THRESHOLD: {self.DEDUP_THRESHOLD}")
        if not self.validate_dedup_threshold(self.FINAL_CLEANUP_THRESHOLD):
            errors.append(f"Invalid FINAL_CLEANUP_THRESHOLD: {self.FINAL_CLEANUP_THRESHOLD}")
        if not self.validate_hue_difference(self.MIN_HUE_DIFFERENCE):
            errors.append(f"Invalid MIN_HUE_DIFFERENCE: {self.MIN_HUE_DIFFERENCE}")
        if not 0.0 < self.LUMINANCE_SPLIT_RATIO < 1.0:
            errors.append("LUMINANCE_SPLIT_RATIO must be between 0 and 1")
        if self.PARTIAL_COLOR_COUNT < 1:
            errors.append("PARTIAL_COLOR_COUNT must be at least 1")
        for name in ("OKLAB_CACHE_SIZE", "HSL_CACHE_SIZE", "OKLCH_CACHE_SIZE"):
            if getattr(self, name) < 1:
                errors.append(f"{name} must be at least 1")
        for name in ("TIMEOUT_FOREGROUND_MS", "TIMEOUT_SEMANTIC_MS", "TIMEOUT_TOTAL_MS"):
            if getattr(self, name) < 1000:
                errors.append(f"{name} must be at least 1000ms")

        return errors


# Global config instance
config = Config()

"""
huepalette Imaging Utilities
Handles buffer validation, decoding, resizing and mask decoding.
"""
import base64
import binascii
import io
from typing import Tuple, Union

import cv2
import numpy as np
from PIL import Image

from huepalette.config import config
from huepalette.errors import ImageDecodeError, ValidationError

MIN_BUFFER_BYTES = 12
MASK_THRESHOLD = 128

_MAGIC_SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
    (b"BM", "image/bmp"),
)


def validate_magic_bytes(file_bytes: bytes) -> str:
    """
    Validate file magic bytes to ensure the buffer is actually an image.

    Args:
        file_bytes: Raw file bytes

    Returns:
        Detected MIME type

    Raises:
        ValidationError: For buffers that match no supported format
    """
    if len(file_bytes) < MIN_BUFFER_BYTES:
        raise ValidationError("Image buffer too small or corrupt", {"size": len(file_bytes)})

    if file_bytes[:4] == b"RIFF" and file_bytes[8:12] == b"WEBP":
        return "image/webp"
    for signature, mime_type in _MAGIC_SIGNATURES:
        if file_bytes.startswith(signature):
            return mime_type

    raise ValidationError(
        "Invalid image buffer. Magic bytes don't match supported formats.",
        {"supported": config.SUPPORTED_MIME_TYPES},
    )


def validate_image_buffer(image_buffer: bytes) -> str:
    """
    Check type, size and format of an input buffer.

    Returns:
        Detected MIME type

    Raises:
        ValidationError: Empty, oversized or unrecognised buffers
    """
    if not isinstance(image_buffer, (bytes, bytearray, memoryview)):
        raise ValidationError(
            "Image buffer must be bytes", {"type": type(image_buffer).__name__}
        )
    if len(image_buffer) == 0:
        raise ValidationError("Image buffer is empty")

    max_bytes = config.MAX_IMAGE_MB * 1024 * 1024
    if len(image_buffer) > max_bytes:
        raise ValidationError(
            f"Image too large. Maximum size: {config.MAX_IMAGE_MB}MB",
            {"size": len(image_buffer)},
        )

    mime_type = validate_magic_bytes(bytes(image_buffer[:16]))
    if mime_type not in config.SUPPORTED_MIME_TYPES:
        raise ValidationError(f"Unsupported image type: {mime_type}")
    return mime_type


def decode_image(image_buffer: bytes) -> np.ndarray:
    """
    Safely decode an image buffer to an RGB uint8 array.

    Args:
        image_buffer: Encoded image bytes

    Returns:
        numpy array of shape (H, W, 3) in RGB order

    Raises:
        ValidationError: Buffer rejected before decoding
        ImageDecodeError: Pillow could not decode the buffer
    """
    validate_image_buffer(image_buffer)

    try:
        # Decode using PIL for safety, palette and alpha modes go through convert
        with Image.open(io.BytesIO(bytes(image_buffer))) as pil_image:
            if pil_image.mode != "RGB":
                pil_image = pil_image.convert("RGB")
            rgb_array = np.array(pil_image, dtype=np.uint8)
    except Exception as e:
        raise ImageDecodeError(f"Failed to decode image: {e}") from e

    if rgb_array.ndim != 3 or rgb_array.shape[0] == 0 or rgb_array.shape[1] == 0:
        raise ImageDecodeError("Decoded image has no pixels", {"shape": rgb_array.shape})

    return rgb_array


def read_image_size(image_buffer: bytes) -> Tuple[int, int]:
    """(width, height) from the image header without a full decode."""
    try:
        with Image.open(io.BytesIO(bytes(image_buffer))) as pil_image:
            return pil_image.size
    except Exception as e:
        raise ImageDecodeError(f"Failed to read image size: {e}") from e


def get_image_dimensions(image: np.ndarray) -> Tuple[int, int]:
    """(width, height) of a decoded image."""
    height, width = image.shape[:2]
    return width, height


def resize_long_edge(image: np.ndarray, max_edge: int) -> np.ndarray:
    """
    Resize so the longest edge is at most ``max_edge`` pixels.

    Images already within bounds are returned unchanged (never enlarged).
    """
    height, width = image.shape[:2]
    current_max = max(height, width)

    if current_max <= max_edge:
        return image

    scale = max_edge / current_max
    new_width = max(1, int(width * scale))
    new_height = max(1, int(height * scale))

    # INTER_AREA for downscaling
    return cv2.resize(image, (new_width, new_height), interpolation=cv2.INTER_AREA)


def encode_png(image_rgb: np.ndarray) -> bytes:
    """Encode an RGB or single-channel array as PNG bytes."""
    if image_rgb.ndim == 3:
        image_rgb = cv2.cvtColor(image_rgb, cv2.COLOR_RGB2BGR)
    success, buffer = cv2.imencode(".png", image_rgb)
    if not success:
        raise ValueError("Failed to encode PNG")
    return buffer.tobytes()


def resize_to_fit(image_buffer: bytes, max_edge: int) -> bytes:
    """Re-encode ``image_buffer`` as PNG fitting inside max_edge x max_edge."""
    return encode_png(resize_long_edge(decode_image(image_buffer), max_edge))


def decode_mask_png(mask_data: Union[str, bytes], size: Tuple[int, int]) -> np.ndarray:
    """
    Decode a grayscale PNG mask and binarise it at the given size.

    Args:
        mask_data: PNG bytes or their base64 text
        size: Target (width, height)

    Returns:
        uint8 array of shape (height, width) with values 0 or 255

    Raises:
        ValueError: Undecodable mask data
    """
    if isinstance(mask_data, str):
        try:
            mask_data = base64.b64decode(mask_data, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Mask is not valid base64: {e}") from e

    try:
        with Image.open(io.BytesIO(mask_data)) as pil_mask:
            mask = np.array(pil_mask.convert("L"), dtype=np.uint8)
    except OSError as e:
        raise ValueError(f"Mask is not a valid image: {e}") from e

    width, height = size
    if mask.shape != (height, width):
        mask = cv2.resize(mask, (width, height), interpolation=cv2.INTER_LINEAR)

    return np.where(mask > MASK_THRESHOLD, 255, 0).astype(np.uint8)

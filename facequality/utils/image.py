"""Image processing utilities.

This module provides utility functions for turning encoded image payloads
into pixel buffers and for mapping face regions onto those buffers.
"""

import base64
import binascii
import math
from typing import Optional, Tuple, Union

import cv2
import numpy as np

from ..models.types import Box, PixelBuffer

class ImageProcessingError(Exception):
    """Base exception for image processing errors."""
    pass

class ImageDecodingError(ImageProcessingError):
    """Exception raised when image decoding fails."""
    pass

class ImageFormatError(ImageProcessingError):
    """Exception raised when image format is invalid."""
    pass

class PixelAccessError(ImageFormatError):
    """Exception raised when pixel samples cannot be read from a buffer."""
    pass

def strip_data_url(payload: str) -> str:
    """Remove a ``data:<mime>;base64,`` prefix if present."""
    if ';base64,' in payload:
        return payload.split(';base64,', 1)[1]
    if payload.startswith('data:') and ',' in payload:
        # Fallback: split by comma if the specific delimiter isn't found
        return payload.split(',', 1)[1]
    return payload

def decode_image_bytes(image_bytes: bytes) -> PixelBuffer:
    """Decode encoded image bytes (PNG, JPEG, ...) into an RGBA pixel buffer.

    Args:
        image_bytes: Raw encoded image file contents.

    Returns:
        Decoded RGBA pixel buffer.

    Raises:
        ImageDecodingError: If no bytes were supplied.
        ImageFormatError: If the bytes cannot be read as an image.
    """
    if not image_bytes:
        raise ImageDecodingError("Empty image payload")

    nparr = np.frombuffer(image_bytes, np.uint8)
    image = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    if image is None:
        raise ImageFormatError("Failed to decode image data")

    rgba = cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)
    return PixelBuffer.from_array(rgba)

def decode_base64_image(base64_string: str) -> PixelBuffer:
    """Decode base64 string to an RGBA pixel buffer.

    Args:
        base64_string: Base64 encoded image string, optionally with data URL prefix.
            Example formats:
            - "data:image/jpeg;base64,/9j/4AAQSkZ..."
            - "/9j/4AAQSkZ..." (without prefix)

    Returns:
        Decoded image as an RGBA pixel buffer.

    Raises:
        ImageDecodingError: If base64 decoding fails.
        ImageFormatError: If decoded data cannot be read as an image.
    """
    if not isinstance(base64_string, str):
        raise ImageDecodingError(f"Expected base64 string, got {type(base64_string).__name__}")

    encoded = strip_data_url(base64_string.strip())
    try:
        image_bytes = base64.b64decode(encoded)
    except (binascii.Error, ValueError) as e:
        raise ImageDecodingError(f"Failed to decode base64 string: {str(e)}")

    return decode_image_bytes(image_bytes)

def load_pixel_buffer(payload: Union[str, bytes, PixelBuffer]) -> PixelBuffer:
    """Accept any supported payload form and return a pixel buffer."""
    if isinstance(payload, PixelBuffer):
        return payload
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return decode_image_bytes(bytes(payload))
    if isinstance(payload, str):
        return decode_base64_image(payload)
    raise ImageDecodingError(f"Unsupported image payload type: {type(payload).__name__}")

def resolve_region(image: PixelBuffer, region: Optional[Box]) -> Tuple[Box, float, float]:
    """Map a face box onto the buffer.

    The pixel box has floored coordinates and is used for slicing samples.
    The face extent is the box's own width and height after clamping to the
    image, without flooring, so a box lying inside the image reports exactly
    its own dimensions. A missing box, or one that is empty or entirely
    outside the image after flooring, resolves to the whole image.

    Args:
        image: Buffer the box refers to.
        region: Face box in the buffer's pixel coordinates, or None.

    Returns:
        Tuple of (integer pixel box, face width, face height).
    """
    whole: Box = {'x': 0, 'y': 0, 'width': image.width, 'height': image.height}
    if region is None:
        return whole, image.width, image.height

    try:
        x, y = region['x'], region['y']
        w, h = region['width'], region['height']
        x0 = max(0, math.floor(x))
        y0 = max(0, math.floor(y))
        x1 = min(image.width, math.floor(x + w))
        y1 = min(image.height, math.floor(y + h))
    except (KeyError, TypeError, ValueError, OverflowError):
        # Malformed or non-finite coordinates
        return whole, image.width, image.height

    if x1 - x0 <= 0 or y1 - y0 <= 0:
        return whole, image.width, image.height

    face_width = w - max(0, -x) - max(0, x + w - image.width)
    face_height = h - max(0, -y) - max(0, y + h - image.height)
    box: Box = {'x': x0, 'y': y0, 'width': x1 - x0, 'height': y1 - y0}
    return box, face_width, face_height

def clamp_region(image: PixelBuffer, region: Optional[Box]) -> Box:
    """Clamp a face box to the buffer bounds as an integer pixel box."""
    box, _, _ = resolve_region(image, region)
    return box

def crop_region(image: PixelBuffer, box: Box) -> np.ndarray:
    """Return the RGBA samples inside an already clamped box."""
    x, y = int(box['x']), int(box['y'])
    w, h = int(box['width']), int(box['height'])
    return image.as_array()[y:y + h, x:x + w]

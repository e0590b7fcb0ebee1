"""Utility functions for image processing and display"""
from .image import (
    decode_base64_image,
    decode_image_bytes,
    clamp_region,
    resolve_region
)
from .display import (
    quality_color,
    quality_icon,
    quality_summary
)

__all__ = [
    'decode_base64_image',
    'decode_image_bytes',
    'clamp_region',
    'resolve_region',
    'quality_color',
    'quality_icon',
    'quality_summary'
]

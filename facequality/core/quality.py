"""Face image quality assessment module.

This module grades a captured frame on three independent heuristics over the
face region (or the whole frame when no region is known):

- Face size: width of the region in pixels
- Sharpness: mean squared Laplacian response of the grayscale region
- Lighting: mean perceptual luminance of the region

Each heuristic is leveled High/Medium/Low against fixed thresholds and the
overall verdict is the worst of the three.
"""

import logging
from typing import Optional, Union

import cv2
import numpy as np

from ..config import LevelThresholds, LightingThresholds, QualityThresholds
from ..models.types import (
    Box,
    FaceSizeMetric,
    LightingMetric,
    PixelBuffer,
    QualityLevel,
    QualityMetrics,
    SharpnessMetric,
)
from ..utils.image import ImageProcessingError, crop_region, load_pixel_buffer, resolve_region

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLDS = QualityThresholds()

# ITU-R BT.601 luma weights for R, G, B
LUMINANCE_WEIGHTS = np.array([0.299, 0.587, 0.114], dtype=np.float64)


def get_quality_level(value: float, thresholds: LevelThresholds) -> QualityLevel:
    """Level a higher-is-better value."""
    if value >= thresholds.high:
        return QualityLevel.HIGH
    if value >= thresholds.medium:
        return QualityLevel.MEDIUM
    return QualityLevel.LOW


def get_lighting_level(brightness: float, thresholds: LightingThresholds) -> QualityLevel:
    """Level a brightness against the ideal and acceptable ranges.

    The medium range contains the high range, so the high range is tested first.
    """
    if brightness in thresholds.high:
        return QualityLevel.HIGH
    if brightness in thresholds.medium:
        return QualityLevel.MEDIUM
    return QualityLevel.LOW


def combine_levels(face_size: QualityLevel,
                   sharpness: QualityLevel,
                   lighting: QualityLevel) -> QualityLevel:
    """Worst-case combination: one Low fails the image, one Medium caps it."""
    levels = (face_size, sharpness, lighting)
    if QualityLevel.LOW in levels:
        return QualityLevel.LOW
    if QualityLevel.MEDIUM in levels:
        return QualityLevel.MEDIUM
    return QualityLevel.HIGH


def to_grayscale(rgba: np.ndarray) -> np.ndarray:
    """Unweighted mean of R, G and B as float64."""
    return rgba[..., :3].astype(np.float64).mean(axis=2)


def laplacian_energy(gray: np.ndarray) -> float:
    """Mean squared Laplacian response over the interior pixels.

    Uses the 4-neighbour kernel ``4*c - t - b - l - r``; the outermost pixel
    ring is excluded, so regions narrower or shorter than 3 pixels give 0.
    This is the sharpness proxy, not a statistical variance.
    """
    height, width = gray.shape[:2]
    if width < 3 or height < 3:
        return 0.0
    # ksize=1 applies [[0, 1, 0], [1, -4, 1], [0, 1, 0]]; the sign vanishes when squared
    response = cv2.Laplacian(gray, cv2.CV_64F, ksize=1)[1:-1, 1:-1]
    return float(np.mean(np.square(response)))


def mean_luminance(rgba: np.ndarray) -> float:
    """Mean of 0.299*R + 0.587*G + 0.114*B, or 0 for an empty region."""
    if rgba.shape[0] == 0 or rgba.shape[1] == 0:
        return 0.0
    luminance = rgba[..., :3].astype(np.float64) @ LUMINANCE_WEIGHTS
    return float(luminance.mean())


class QualityAnalyzer:
    """Computes quality metrics for a pixel buffer with injected thresholds."""

    def __init__(self, thresholds: QualityThresholds = DEFAULT_THRESHOLDS):
        self.thresholds = thresholds

    def analyze(self, image: PixelBuffer, region: Optional[Box] = None) -> QualityMetrics:
        """Grade an image, restricted to the face region when one is given.

        Args:
            image: Decoded RGBA buffer.
            region: Face box in the buffer's pixel coordinates, or None for
                the whole image. Clamped to the image; falls back to the whole
                image when nothing of it remains.

        Returns:
            Fully populated quality metrics.

        Raises:
            PixelAccessError: If the buffer samples cannot be read.
        """
        box, width, height = resolve_region(image, region)
        pixels = crop_region(image, box)

        face_level = get_quality_level(width, self.thresholds.face_size)

        variance = laplacian_energy(to_grayscale(pixels))
        sharpness_level = get_quality_level(variance, self.thresholds.sharpness)

        brightness = mean_luminance(pixels)
        lighting_level = get_lighting_level(brightness, self.thresholds.lighting)

        return QualityMetrics(
            face_size=FaceSizeMetric(width=width, height=height, level=face_level),
            sharpness=SharpnessMetric(variance=variance, level=sharpness_level),
            lighting=LightingMetric(brightness=brightness, level=lighting_level),
            overall=combine_levels(face_level, sharpness_level, lighting_level),
        )

    def analyze_payload(self,
                        payload: Union[str, bytes, PixelBuffer],
                        face_box: Optional[Box] = None) -> QualityMetrics:
        """Decode and grade a payload, returning the all-Low record on any failure.

        Nothing raised while decoding or reading pixels escapes this method.
        """
        try:
            image = load_pixel_buffer(payload)
            return self.analyze(image, face_box)
        except ImageProcessingError as e:
            logger.warning(f"Quality analysis skipped: {str(e)}")
        except Exception:
            logger.exception("Unexpected error analyzing image quality")
        return QualityMetrics.fallback()


# Create global analyzer instance
analyzer = QualityAnalyzer()

def analyze(image: PixelBuffer,
            region: Optional[Box] = None,
            thresholds: Optional[QualityThresholds] = None) -> QualityMetrics:
    """Grade a decoded image.

    Args:
        image: Decoded RGBA buffer.
        region: Optional face box.
        thresholds: Alternate thresholds; the stock ones when omitted.

    Returns:
        Quality metrics.
    """
    if thresholds is None:
        return analyzer.analyze(image, region)
    return QualityAnalyzer(thresholds).analyze(image, region)

def analyze_image_quality(payload: Union[str, bytes, PixelBuffer],
                          face_box: Optional[Box] = None,
                          thresholds: Optional[QualityThresholds] = None) -> QualityMetrics:
    """Decode and grade an image payload. Never raises.

    Args:
        payload: Base64 string (optionally a data URL), encoded bytes, or a buffer.
        face_box: Optional face box.
        thresholds: Alternate thresholds; the stock ones when omitted.

    Returns:
        Quality metrics, or the all-Low fallback if the payload is unusable.
    """
    if thresholds is None:
        return analyzer.analyze_payload(payload, face_box)
    return QualityAnalyzer(thresholds).analyze_payload(payload, face_box)


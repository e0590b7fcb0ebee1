"""Face capture image quality assessment service."""
from .models.types import PixelBuffer, QualityLevel, QualityMetrics
from .core.quality import analyze, analyze_image_quality

__version__ = "0.1.0"

__all__ = [
    'PixelBuffer',
    'QualityLevel',
    'QualityMetrics',
    'analyze',
    'analyze_image_quality'
]

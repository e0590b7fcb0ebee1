"""Core quality analysis functionality

The face detector lives in ``facequality.core.detector`` and is imported
directly by the application, so the analyzer does not depend on the
cascade bindings of the installed OpenCV build.
"""
from .quality import (
    QualityAnalyzer,
    analyze,
    analyze_image_quality,
    combine_levels
)
from .stats import quality_distribution

__all__ = [
    'QualityAnalyzer',
    'analyze',
    'analyze_image_quality',
    'combine_levels',
    'quality_distribution'
]

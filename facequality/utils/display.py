"""Display helpers for quality verdicts.

UI consumers key styling and copy off these strings, so the tokens returned
here are a stable contract.
"""

import math
from typing import Union

from ..models.types import QualityLevel, QualityMetrics

_COLORS = {
    QualityLevel.HIGH: 'text-green-600 bg-green-100',
    QualityLevel.MEDIUM: 'text-yellow-600 bg-yellow-100',
    QualityLevel.LOW: 'text-red-600 bg-red-100',
}
_DEFAULT_COLOR = 'text-gray-600 bg-gray-100'

_ICONS = {
    QualityLevel.HIGH: '✅',
    QualityLevel.MEDIUM: '⚠️',
    QualityLevel.LOW: '❌',
}
_DEFAULT_ICON = '❓'

def quality_color(level: Union[QualityLevel, str]) -> str:
    """CSS class token for a quality level."""
    return _COLORS.get(level, _DEFAULT_COLOR)

def quality_icon(level: Union[QualityLevel, str]) -> str:
    """Icon glyph for a quality level."""
    return _ICONS.get(level, _DEFAULT_ICON)

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))

def quality_summary(metrics: QualityMetrics) -> str:
    """One-line summary of all four levels and their raw values.

    Example:
        ``Overall: High | Face Size: High (200px) | Sharpness: High (1200) | Lighting: High (120)``
    """
    details = [
        f"Face Size: {metrics.face_size.level.value} ({_round_half_up(metrics.face_size.width)}px)",
        f"Sharpness: {metrics.sharpness.level.value} ({_round_half_up(metrics.sharpness.variance)})",
        f"Lighting: {metrics.lighting.level.value} ({_round_half_up(metrics.lighting.brightness)})",
    ]
    return f"Overall: {metrics.overall.value} | {' | '.join(details)}"

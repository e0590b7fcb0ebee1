from typing import Iterable

from ..models.types import QualityDistribution, QualityLevel, QualityMetrics

_BUCKETS = {
    QualityLevel.HIGH: 'high_quality',
    QualityLevel.MEDIUM: 'medium_quality',
    QualityLevel.LOW: 'low_quality',
}

def quality_distribution(results: Iterable[QualityMetrics]) -> QualityDistribution:
    """Count results per overall level."""
    distribution: QualityDistribution = {
        'high_quality': 0,
        'medium_quality': 0,
        'low_quality': 0,
        'total': 0,
    }
    for metrics in results:
        distribution[_BUCKETS[metrics.overall]] += 1
        distribution['total'] += 1
    return distribution

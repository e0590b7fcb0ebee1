"""Data models and type definitions"""
from .types import (
    Box,
    PixelBuffer,
    QualityLevel,
    FaceSizeMetric,
    SharpnessMetric,
    LightingMetric,
    QualityMetrics,
    QualityMetricsDict,
    QualityRecord,
    QualityDistribution,
    QualityRequest,
    BatchQualityRequest,
    QualityResponse,
    BatchQualityResponse,
    HealthResponse,
    ErrorResponse
)

__all__ = [
    'Box',
    'PixelBuffer',
    'QualityLevel',
    'FaceSizeMetric',
    'SharpnessMetric',
    'LightingMetric',
    'QualityMetrics',
    'QualityMetricsDict',
    'QualityRecord',
    'QualityDistribution',
    'QualityRequest',
    'BatchQualityRequest',
    'QualityResponse',
    'BatchQualityResponse',
    'HealthResponse',
    'ErrorResponse'
]

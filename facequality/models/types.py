"""Data models and type definitions"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

import numpy as np
from typing_extensions import NotRequired, TypedDict


class Box(TypedDict):
    x: float
    y: float
    width: float
    height: float


class QualityLevel(str, Enum):
    """Verdict on one dimension of image quality."""

    HIGH = 'High'
    MEDIUM = 'Medium'
    LOW = 'Low'

    @property
    def rank(self) -> int:
        return _LEVEL_RANK[self]

    def __str__(self) -> str:
        return self.value


_LEVEL_RANK: Dict[QualityLevel, int] = {
    QualityLevel.LOW: 0,
    QualityLevel.MEDIUM: 1,
    QualityLevel.HIGH: 2,
}


@dataclass(frozen=True, eq=False)
class PixelBuffer:
    """Decoded raster image.

    ``data`` holds ``width * height * 4`` RGBA samples, 8 bits each, in
    row-major order. The array is made read-only on construction.
    """

    width: int
    height: int
    data: np.ndarray = field(repr=False)

    def __post_init__(self):
        # Imported here to avoid a cycle with utils.image
        from ..utils.image import PixelAccessError

        if self.width < 0 or self.height < 0:
            raise PixelAccessError(f"Invalid dimensions {self.width}x{self.height}")
        if isinstance(self.data, (bytes, bytearray, memoryview)):
            data = np.frombuffer(self.data, dtype=np.uint8)
        else:
            data = np.asarray(self.data, dtype=np.uint8).reshape(-1)
        expected = self.width * self.height * 4
        if data.size != expected:
            raise PixelAccessError(
                f"Expected {expected} RGBA samples for {self.width}x{self.height}, got {data.size}"
            )
        if data.flags.writeable:
            data = data.copy()
            data.flags.writeable = False
        object.__setattr__(self, 'data', data)

    @classmethod
    def from_array(cls, rgba: np.ndarray) -> 'PixelBuffer':
        """Build a buffer from an (height, width, 4) RGBA array."""
        rgba = np.asarray(rgba)
        if rgba.ndim != 3 or rgba.shape[2] != 4:
            from ..utils.image import PixelAccessError
            raise PixelAccessError(f"Expected (h, w, 4) RGBA array, got shape {rgba.shape}")
        height, width = rgba.shape[:2]
        return cls(width=width, height=height, data=rgba)

    def as_array(self) -> np.ndarray:
        """Return the samples as a read-only (height, width, 4) view."""
        return self.data.reshape(self.height, self.width, 4)

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.height, self.width)


@dataclass(frozen=True)
class FaceSizeMetric:
    width: float
    height: float
    level: QualityLevel


@dataclass(frozen=True)
class SharpnessMetric:
    variance: float
    level: QualityLevel


@dataclass(frozen=True)
class LightingMetric:
    brightness: float
    level: QualityLevel


class FaceSizeDict(TypedDict):
    width: float
    height: float
    level: str


class SharpnessDict(TypedDict):
    variance: float
    level: str


class LightingDict(TypedDict):
    brightness: float
    level: str


class QualityMetricsDict(TypedDict):
    faceSize: FaceSizeDict
    sharpness: SharpnessDict
    lighting: LightingDict
    overall: str


class QualityRecord(TypedDict):
    quality_overall: str
    quality_face_size: str
    quality_sharpness: str
    quality_lighting: str
    face_width: int
    face_height: int
    sharpness_variance: float
    brightness: float


@dataclass(frozen=True)
class QualityMetrics:
    """Result of a quality analysis. Never mutated after construction."""

    face_size: FaceSizeMetric
    sharpness: SharpnessMetric
    lighting: LightingMetric
    overall: QualityLevel

    @classmethod
    def fallback(cls) -> 'QualityMetrics':
        """All-Low record returned when an image cannot be analyzed."""
        return cls(
            face_size=FaceSizeMetric(width=0, height=0, level=QualityLevel.LOW),
            sharpness=SharpnessMetric(variance=0.0, level=QualityLevel.LOW),
            lighting=LightingMetric(brightness=0.0, level=QualityLevel.LOW),
            overall=QualityLevel.LOW,
        )

    def to_dict(self) -> QualityMetricsDict:
        return {
            'faceSize': {
                'width': self.face_size.width,
                'height': self.face_size.height,
                'level': self.face_size.level.value,
            },
            'sharpness': {
                'variance': self.sharpness.variance,
                'level': self.sharpness.level.value,
            },
            'lighting': {
                'brightness': self.lighting.brightness,
                'level': self.lighting.level.value,
            },
            'overall': self.overall.value,
        }

    def to_record(self) -> QualityRecord:
        """Flatten into the column layout used by the metadata store."""
        return {
            'quality_overall': self.overall.value,
            'quality_face_size': self.face_size.level.value,
            'quality_sharpness': self.sharpness.level.value,
            'quality_lighting': self.lighting.level.value,
            'face_width': int(self.face_size.width),
            'face_height': int(self.face_size.height),
            'sharpness_variance': float(self.sharpness.variance),
            'brightness': float(self.lighting.brightness),
        }


class QualityDistribution(TypedDict):
    high_quality: int
    medium_quality: int
    low_quality: int
    total: int


class QualityRequest(TypedDict):
    image: str
    faceBox: NotRequired[Optional[Box]]
    detectFace: NotRequired[bool]


class BatchQualityRequest(TypedDict):
    images: List[QualityRequest]


class QualityResponse(TypedDict):
    metrics: QualityMetricsDict
    record: QualityRecord
    summary: str
    color: str
    icon: str


class BatchQualityResponse(TypedDict):
    results: List[QualityResponse]
    distribution: QualityDistribution


class HealthResponse(TypedDict):
    status: str
    detectorLoaded: bool


class ErrorResponse(TypedDict):
    error: str
    traceback: Optional[str]

# facequality/config.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional
import logging
import os

# ── Server ───────────────────────────────────────────────────────────────────
HOST: str = os.getenv("FACEQ_HOST", "0.0.0.0")
PORT: int = int(os.getenv("FACEQ_PORT", "3002"))
LOG_LEVEL: str = os.getenv("FACEQ_LOG_LEVEL", "INFO").upper()

# Comma-separated list, "*" allows any origin (the capture UI is served elsewhere)
ALLOWED_ORIGINS: list[str] = [
    o.strip() for o in os.getenv("FACEQ_ALLOWED_ORIGINS", "*").split(",") if o.strip()
]

# ── Detection ────────────────────────────────────────────────────────────────
# Unset means the frontal-face cascade bundled with opencv-python
CASCADE_PATH: Optional[str] = os.getenv("FACEQ_CASCADE_PATH") or None
DETECT_MIN_FACE_PX: int = int(os.getenv("FACEQ_DETECT_MIN_FACE_PX", "60"))


# ── Quality thresholds ───────────────────────────────────────────────────────
@dataclass(frozen=True)
class LevelThresholds:
    """Minimum values for High and Medium on a higher-is-better metric."""
    high: float
    medium: float


@dataclass(frozen=True)
class BrightnessRange:
    minimum: float
    maximum: float

    def __contains__(self, value: float) -> bool:
        return self.minimum <= value <= self.maximum


@dataclass(frozen=True)
class LightingThresholds:
    high: BrightnessRange
    medium: BrightnessRange


@dataclass(frozen=True)
class QualityThresholds:
    face_size: LevelThresholds = field(
        default_factory=lambda: LevelThresholds(high=200, medium=120)
    )
    sharpness: LevelThresholds = field(
        default_factory=lambda: LevelThresholds(high=1000, medium=500)
    )
    lighting: LightingThresholds = field(
        default_factory=lambda: LightingThresholds(
            high=BrightnessRange(minimum=80, maximum=180),
            medium=BrightnessRange(minimum=50, maximum=220),
        )
    )


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def load_thresholds() -> QualityThresholds:
    """Build thresholds from FACEQ_* env vars, defaulting to the stock values."""
    base = QualityThresholds()
    return QualityThresholds(
        face_size=LevelThresholds(
            high=_env_float("FACEQ_FACE_SIZE_HIGH", base.face_size.high),
            medium=_env_float("FACEQ_FACE_SIZE_MEDIUM", base.face_size.medium),
        ),
        sharpness=LevelThresholds(
            high=_env_float("FACEQ_SHARPNESS_HIGH", base.sharpness.high),
            medium=_env_float("FACEQ_SHARPNESS_MEDIUM", base.sharpness.medium),
        ),
        lighting=LightingThresholds(
            high=BrightnessRange(
                minimum=_env_float("FACEQ_LIGHTING_HIGH_MIN", base.lighting.high.minimum),
                maximum=_env_float("FACEQ_LIGHTING_HIGH_MAX", base.lighting.high.maximum),
            ),
            medium=BrightnessRange(
                minimum=_env_float("FACEQ_LIGHTING_MEDIUM_MIN", base.lighting.medium.minimum),
                maximum=_env_float("FACEQ_LIGHTING_MEDIUM_MAX", base.lighting.medium.maximum),
            ),
        ),
    )


def log_level() -> int:
    level = logging.getLevelName(LOG_LEVEL)
    return level if isinstance(level, int) else logging.INFO

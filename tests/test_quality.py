"""Tests for the quality analyzer."""

import base64
import itertools
import subprocess
import sys
from pathlib import Path

import numpy as np
import pytest

from facequality.config import BrightnessRange, LevelThresholds, LightingThresholds, QualityThresholds
from facequality.core.quality import (
    DEFAULT_THRESHOLDS,
    QualityAnalyzer,
    analyze,
    analyze_image_quality,
    combine_levels,
    get_lighting_level,
    get_quality_level,
    laplacian_energy,
    to_grayscale,
)
from facequality.models.types import PixelBuffer, QualityLevel, QualityMetrics

from helpers import encode_png_base64, gray_rgba

HIGH, MEDIUM, LOW = QualityLevel.HIGH, QualityLevel.MEDIUM, QualityLevel.LOW


class TestLevels:
    @pytest.mark.parametrize("width,expected", [
        (0, LOW), (119, LOW), (120, MEDIUM), (199, MEDIUM), (200, HIGH), (4000, HIGH),
    ])
    def test_face_size_boundaries(self, width, expected):
        """Face size levels switch exactly at 120 and 200 pixels."""
        assert get_quality_level(width, DEFAULT_THRESHOLDS.face_size) == expected

    @pytest.mark.parametrize("variance,expected", [
        (0.0, LOW), (499.99, LOW), (500.0, MEDIUM), (999.99, MEDIUM), (1000.0, HIGH),
    ])
    def test_sharpness_boundaries(self, variance, expected):
        """Sharpness levels switch exactly at 500 and 1000."""
        assert get_quality_level(variance, DEFAULT_THRESHOLDS.sharpness) == expected

    @pytest.mark.parametrize("brightness,expected", [
        (0.0, LOW),
        (49.0, LOW),
        (49.99, LOW),
        (50.0, MEDIUM),
        (79.99, MEDIUM),
        (80.0, HIGH),
        (128.0, HIGH),
        (180.0, HIGH),
        (180.01, MEDIUM),
        (219.0, MEDIUM),
        (220.0, MEDIUM),
        (221.0, LOW),
        (255.0, LOW),
    ])
    def test_lighting_ranges(self, brightness, expected):
        """The ideal range wins over the acceptable range that contains it."""
        assert get_lighting_level(brightness, DEFAULT_THRESHOLDS.lighting) == expected

    def test_face_size_level_is_monotonic(self):
        """Growing the width never lowers the level."""
        ranks = [get_quality_level(w, DEFAULT_THRESHOLDS.face_size).rank for w in range(0, 400)]
        assert ranks == sorted(ranks)


class TestCombineLevels:
    @pytest.mark.parametrize("levels", list(itertools.product([HIGH, MEDIUM, LOW], repeat=3)))
    def test_overall_is_worst_level(self, levels):
        """Overall equals the minimum of the three levels for every combination."""
        expected = min(levels, key=lambda level: level.rank)
        assert combine_levels(*levels) == expected

    def test_rank_order(self):
        assert LOW.rank < MEDIUM.rank < HIGH.rank


class TestSharpness:
    def test_single_bright_pixel(self):
        """Center spike on a 5x5 black image: (16 + 4) * v^2 over 9 interior pixels."""
        gray = np.zeros((5, 5), dtype=np.float64)
        gray[2, 2] = 30.0
        assert laplacian_energy(gray) == pytest.approx(20 * 30.0 ** 2 / 9)

    def test_grayscale_is_unweighted_mean(self):
        """A pure red pixel of 90 becomes gray 30, not its luminance."""
        rgba = gray_rgba(5, 5, 0)
        rgba[2, 2, :3] = (90, 0, 0)
        gray = to_grayscale(rgba)
        assert gray[2, 2] == pytest.approx(30.0)

        metrics = analyze(PixelBuffer.from_array(rgba))
        assert metrics.sharpness.variance == pytest.approx(2000.0)
        assert metrics.sharpness.level == HIGH

    def test_uniform_region_has_zero_response(self):
        gray = np.full((10, 10), 77.0)
        assert laplacian_energy(gray) == 0.0

    @pytest.mark.parametrize("shape", [(2, 2), (2, 10), (10, 2), (1, 1), (0, 0)])
    def test_degenerate_region(self, shape):
        """Regions without interior pixels report zero."""
        assert laplacian_energy(np.full(shape, 200.0)) == 0.0

    def test_stripes_are_sharp(self, stripes_rgba):
        """1-pixel columns alternating 0/255 give a response of 510 everywhere."""
        metrics = analyze(PixelBuffer.from_array(stripes_rgba))
        assert metrics.sharpness.variance == pytest.approx(510.0 ** 2)
        assert metrics.sharpness.level == HIGH
        assert metrics.lighting.brightness == pytest.approx(127.5)


class TestAnalyze:
    def test_uniform_gray_scenario(self, gray_300):
        """300x300 uniform gray: big and well lit, but failed by sharpness."""
        metrics = analyze(gray_300)

        assert metrics.face_size.width == 300
        assert metrics.face_size.height == 300
        assert metrics.face_size.level == HIGH
        assert metrics.sharpness.variance == 0.0
        assert metrics.sharpness.level == LOW
        assert metrics.lighting.brightness == pytest.approx(128.0)
        assert metrics.lighting.level == HIGH
        assert metrics.overall == LOW

    def test_deterministic(self, stripes_rgba):
        """Repeated calls return identical results."""
        image = PixelBuffer.from_array(stripes_rgba)
        region = {'x': 10, 'y': 20, 'width': 150, 'height': 120}
        assert analyze(image, region) == analyze(image, region)

    def test_two_by_two_image(self, make_buffer):
        """A 2x2 image has no interior pixels and must not raise."""
        metrics = analyze(make_buffer(2, 2, 128))
        assert metrics.sharpness.variance == 0.0
        assert metrics.sharpness.level == LOW
        assert metrics.face_size.width == 2
        assert metrics.overall == LOW

    def test_empty_image(self, make_buffer):
        metrics = analyze(make_buffer(0, 0))
        assert metrics.face_size.width == 0
        assert metrics.sharpness.variance == 0.0
        assert metrics.lighting.brightness == 0.0
        assert metrics.overall == LOW

    def test_region_sets_face_size(self, gray_300):
        metrics = analyze(gray_300, {'x': 10, 'y': 10, 'width': 150, 'height': 160})
        assert (metrics.face_size.width, metrics.face_size.height) == (150, 160)
        assert metrics.face_size.level == MEDIUM

    @pytest.mark.parametrize("region,width,level", [
        ({'x': 0.5, 'y': 0.5, 'width': 199.6, 'height': 150}, 199.6, MEDIUM),
        ({'x': 10.6, 'y': 0, 'width': 119.5, 'height': 100}, 119.5, LOW),
    ])
    def test_fractional_region_keeps_its_width(self, gray_300, region, width, level):
        """A fractional box inside the image is graded on its own width."""
        metrics = analyze(gray_300, region)
        assert metrics.face_size.width == width
        assert metrics.face_size.height == region['height']
        assert metrics.face_size.level == level

    def test_region_is_clamped(self, gray_300):
        """A box hanging off the image never reports more than the image."""
        metrics = analyze(gray_300, {'x': 250, 'y': -40, 'width': 200, 'height': 500})
        assert metrics.face_size.width == 50
        assert metrics.face_size.height == 300
        assert metrics.face_size.width <= gray_300.width
        assert metrics.face_size.height <= gray_300.height

    @pytest.mark.parametrize("region", [
        {'x': 400, 'y': 400, 'width': 50, 'height': 50},
        {'x': -100, 'y': 0, 'width': 50, 'height': 50},
        {'x': 10, 'y': 10, 'width': 0, 'height': 50},
        {'x': 10, 'y': 10, 'width': 50, 'height': -5},
    ])
    def test_unusable_region_falls_back_to_whole_image(self, gray_300, region):
        metrics = analyze(gray_300, region)
        assert (metrics.face_size.width, metrics.face_size.height) == (300, 300)

    def test_region_limits_measured_pixels(self):
        """Only pixels inside the region contribute to brightness."""
        rgba = gray_rgba(100, 200, 20)
        rgba[:, 100:, :3] = 150
        image = PixelBuffer.from_array(rgba)

        dark = analyze(image, {'x': 0, 'y': 0, 'width': 100, 'height': 100})
        bright = analyze(image, {'x': 100, 'y': 0, 'width': 100, 'height': 100})

        assert dark.lighting.brightness == pytest.approx(20.0)
        assert dark.lighting.level == LOW
        assert bright.lighting.brightness == pytest.approx(150.0)
        assert bright.lighting.level == HIGH
        # Pixels outside the region are never sampled
        assert dark.sharpness.variance == 0.0
        assert bright.sharpness.variance == 0.0

    def test_luminance_weights(self):
        """Brightness uses 0.299 R + 0.587 G + 0.114 B."""
        rgba = gray_rgba(4, 4, 0)
        rgba[..., :3] = (100, 150, 200)
        metrics = analyze(PixelBuffer.from_array(rgba))
        assert metrics.lighting.brightness == pytest.approx(0.299 * 100 + 0.587 * 150 + 0.114 * 200)

    def test_injected_thresholds(self, gray_300):
        """Alternate thresholds change the verdict without touching the defaults."""
        lenient = QualityThresholds(
            face_size=LevelThresholds(high=10, medium=5),
            sharpness=LevelThresholds(high=0, medium=0),
            lighting=LightingThresholds(
                high=BrightnessRange(minimum=0, maximum=255),
                medium=BrightnessRange(minimum=0, maximum=255),
            ),
        )
        assert analyze(gray_300, thresholds=lenient).overall == HIGH
        assert QualityAnalyzer(lenient).analyze(gray_300).overall == HIGH
        assert analyze(gray_300).overall == LOW

    def test_all_high(self, stripes_rgba):
        rgba = stripes_rgba.copy()
        rgba[:, 0::2, :3] = 60
        rgba[:, 1::2, :3] = 180
        metrics = analyze(PixelBuffer.from_array(rgba))
        assert metrics.lighting.brightness == pytest.approx(120.0)
        assert metrics.sharpness.variance == pytest.approx(240.0 ** 2)
        assert metrics.overall == HIGH


class TestAnalyzeImageQuality:
    def test_decodes_data_url(self, gray_png_payload):
        metrics = analyze_image_quality(gray_png_payload)
        assert metrics.face_size.width == 300
        assert metrics.lighting.brightness == pytest.approx(128.0)
        assert metrics.overall == LOW

    def test_line_wrapped_data_url(self):
        payload = encode_png_base64(gray_rgba(300, 300, 128), wrap=True)
        metrics = analyze_image_quality(payload)
        assert metrics.face_size.width == 300
        assert metrics.lighting.brightness == pytest.approx(128.0)

    def test_plain_base64(self):
        payload = encode_png_base64(gray_rgba(50, 60, 100), data_url=False)
        metrics = analyze_image_quality(payload, {'x': 0, 'y': 0, 'width': 30, 'height': 30})
        assert (metrics.face_size.width, metrics.face_size.height) == (30, 30)

    def test_encoded_bytes(self):
        payload = encode_png_base64(gray_rgba(20, 20, 100), data_url=False)
        metrics = analyze_image_quality(base64.b64decode(payload))
        assert metrics.face_size.width == 20

    @pytest.mark.parametrize("payload", [
        "invalid-base64",
        "data:image/png;base64,bm90IGFuIGltYWdl",
        "",
        b"not an image",
        None,
        12345,
    ])
    def test_bad_payload_returns_fallback(self, payload):
        """Undecodable input yields the all-Low, all-zero record."""
        metrics = analyze_image_quality(payload, {'x': 0, 'y': 0, 'width': 100, 'height': 100})

        assert metrics == QualityMetrics.fallback()
        assert metrics.overall == LOW
        assert metrics.face_size.level == LOW
        assert metrics.sharpness.level == LOW
        assert metrics.lighting.level == LOW
        assert metrics.face_size.width == 0
        assert metrics.face_size.height == 0
        assert metrics.sharpness.variance == 0
        assert metrics.lighting.brightness == 0

    def test_malformed_region_is_ignored(self, gray_300):
        metrics = analyze_image_quality(gray_300, {'x': 'left', 'y': 0, 'width': 10, 'height': 10})
        assert metrics.face_size.width == 300

    def test_unexpected_error_returns_fallback(self, gray_300, monkeypatch):
        def boom(self, image, region=None):
            raise RuntimeError("pixel read failed")

        monkeypatch.setattr(QualityAnalyzer, "analyze", boom)
        assert analyze_image_quality(gray_300) == QualityMetrics.fallback()


class TestPackageImport:
    def test_analyzer_does_not_load_detector(self):
        """Importing the package leaves the cascade detector module unloaded."""
        code = (
            "import sys, facequality, facequality.core; "
            "sys.exit('facequality.core.detector' in sys.modules)"
        )
        result = subprocess.run(
            [sys.executable, "-c", code],
            cwd=Path(__file__).resolve().parents[1],
            capture_output=True,
            text=True,
        )
        assert result.returncode == 0, result.stderr

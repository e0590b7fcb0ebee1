"""Shared test fixtures for facequality tests."""

import pytest

from facequality.models.types import PixelBuffer

from helpers import gray_rgba, encode_png_base64


@pytest.fixture
def make_buffer():
    """Factory for uniform gray pixel buffers."""
    def _make(width, height, value=128):
        return PixelBuffer.from_array(gray_rgba(height, width, value))
    return _make


@pytest.fixture
def gray_300():
    """300x300 uniform (128, 128, 128) image."""
    return PixelBuffer.from_array(gray_rgba(300, 300, 128))


@pytest.fixture
def stripes_rgba():
    """300x300 image of alternating black and white 1-pixel columns."""
    rgba = gray_rgba(300, 300, 0)
    rgba[:, 1::2, :3] = 255
    return rgba


@pytest.fixture
def gray_png_payload():
    """Data URL of a 300x300 uniform gray PNG."""
    return encode_png_base64(gray_rgba(300, 300, 128))

"""Image builders shared by the test modules."""

import base64

import cv2
import numpy as np


def gray_rgba(height, width, value):
    """Uniform gray RGBA array."""
    rgba = np.full((height, width, 4), value, dtype=np.uint8)
    rgba[..., 3] = 255
    return rgba


def encode_png_base64(rgba, data_url=True, wrap=False):
    """Encode an RGBA array as a base64 PNG, optionally as a data URL.

    With ``wrap`` the base64 text is split into 76-character MIME lines.
    """
    bgr = cv2.cvtColor(np.ascontiguousarray(rgba), cv2.COLOR_RGBA2BGR)
    ok, encoded = cv2.imencode(".png", bgr)
    assert ok
    if wrap:
        payload = base64.encodebytes(encoded.tobytes()).decode("ascii")
    else:
        payload = base64.b64encode(encoded.tobytes()).decode("ascii")
    return f"data:image/png;base64,{payload}" if data_url else payload

import cv2
import numpy as np
import pytest


def _encode_png(rgb):
    rgb = np.asarray(rgb, dtype=np.uint8)
    if rgb.ndim == 3 and rgb.shape[2] == 4:
        bgr = cv2.cvtColor(rgb, cv2.COLOR_RGBA2BGRA)
    else:
        bgr = cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)
    ok, buf = cv2.imencode(".png", bgr)
    assert ok
    return buf.tobytes()


def _decode_png(data):
    bgr = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
    if bgr.shape[2] == 4:
        return cv2.cvtColor(bgr, cv2.COLOR_BGRA2RGBA)
    return cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)


@pytest.fixture
def make_png():
    """Encode an RGB(A) uint8 array as PNG bytes."""
    return _encode_png


@pytest.fixture
def read_png():
    """Decode PNG bytes to an RGB(A) uint8 array."""
    return _decode_png


@pytest.fixture
def solid_png(make_png):
    def _solid(width, height, color=(100, 150, 200)):
        image = np.zeros((height, width, 3), dtype=np.uint8)
        image[:] = color
        return make_png(image)

    return _solid

"""
Image container boundary backed by OpenCV.

Decoded images are numpy uint8 arrays in RGB (or RGBA) channel order; OpenCV's
native BGR order never leaves this module.
"""

import logging

import cv2
import numpy as np

from .errors import DecodeError, EncodeError

LOGGER = logging.getLogger(__name__)

_INTERPOLATIONS = {
    "nearest": cv2.INTER_NEAREST,
    "linear": cv2.INTER_LINEAR,
}


def _to_uint8(image):
    if image.dtype == np.uint8:
        return image
    if image.dtype == np.uint16:
        return (image >> 8).astype(np.uint8)
    return np.clip(image, 0, 255).astype(np.uint8)


def decode_image(data, keep_alpha=False):
    """
    Decode compressed image bytes (PNG, JPEG, ...) into a pixel grid.

    Args:
        data: Encoded image bytes
        keep_alpha: Return RGBA when the source carries an alpha channel

    Returns:
        np.ndarray: (H, W, 3) RGB or (H, W, 4) RGBA uint8 array

    Raises:
        DecodeError: If the bytes are empty or not a decodable image
    """
    if data is None or len(data) == 0:
        raise DecodeError("Failed to decode image: empty buffer")

    buf = np.frombuffer(bytes(data), dtype=np.uint8)
    flags = cv2.IMREAD_UNCHANGED if keep_alpha else cv2.IMREAD_COLOR
    try:
        image = cv2.imdecode(buf, flags)
    except cv2.error as exc:
        raise DecodeError(f"Failed to decode image: {exc}") from exc
    if image is None:
        raise DecodeError(f"Failed to decode image ({len(buf)} bytes)")

    image = _to_uint8(image)
    if image.ndim == 2:
        image = cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    elif image.shape[2] == 4:
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
    else:
        image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    return image


def encode_png(image):
    """
    Encode an RGB/RGBA (or single channel) uint8 image as PNG bytes.

    Raises:
        EncodeError: If OpenCV cannot encode the image
    """
    image = np.asarray(image)
    if image.dtype != np.uint8:
        raise EncodeError(f"PNG encoding expects uint8 pixels, got {image.dtype}")
    try:
        if image.ndim == 3 and image.shape[2] == 4:
            image = cv2.cvtColor(image, cv2.COLOR_RGBA2BGRA)
        elif image.ndim == 3 and image.shape[2] == 3:
            image = cv2.cvtColor(image, cv2.COLOR_RGB2BGR)
        ok, encoded = cv2.imencode(".png", image)
    except cv2.error as exc:
        raise EncodeError(f"Failed to encode image: {exc}") from exc
    if not ok:
        raise EncodeError(f"Failed to encode image of shape {image.shape}")
    return encoded.tobytes()


def resize_image(image, width, height, interpolation="nearest"):
    """Resize to exactly width x height (aspect ratio is not preserved)."""
    if (image.shape[1], image.shape[0]) == (width, height):
        return image
    return cv2.resize(image, (int(width), int(height)), interpolation=_INTERPOLATIONS[interpolation])

"""
Image <-> tensor conversion with fixed ImageNet normalization.

encode() produces a [1, 3, H, W] float32 tensor (NCHW, channel-major, row-major
within each channel). decode() inverts the normalization and returns pixels.
"""

import logging

import numpy as np

from .config import IMAGENET_MEAN, IMAGENET_STD, INPUT_SIZE, INTERPOLATIONS
from .errors import ShapeError
from .image_codec import decode_image, encode_png, resize_image
from .tensor import Layout, Tensor

LOGGER = logging.getLogger(__name__)

_MEAN = np.array(IMAGENET_MEAN, dtype=np.float32).reshape(3, 1, 1)
_STD = np.array(IMAGENET_STD, dtype=np.float32).reshape(3, 1, 1)


def encode(image, target_width=INPUT_SIZE, target_height=INPUT_SIZE, interpolation="nearest"):
    """
    Convert an image into a normalized model input tensor.

    Args:
        image: Encoded image bytes, or a decoded (H, W, 3|4) uint8 RGB(A) array
        target_width: Model input width
        target_height: Model input height
        interpolation: 'nearest' or 'linear' resampling

    Returns:
        Tensor: shape [1, 3, target_height, target_width], layout NCHW

    Raises:
        DecodeError: If image bytes cannot be decoded
        ShapeError: If the target size is not positive, or the produced element
            count is not 3 * H * W
        ValueError: If interpolation is not a known mode
    """
    if target_width <= 0 or target_height <= 0:
        raise ShapeError(f"Target size must be positive, got {target_width}x{target_height}")
    if interpolation not in INTERPOLATIONS:
        raise ValueError(
            f"Unknown interpolation {interpolation!r}, expected one of {INTERPOLATIONS}"
        )
    if isinstance(image, (bytes, bytearray, memoryview)):
        image = decode_image(image)
    image = np.asarray(image)
    if image.ndim != 3 or image.shape[2] < 3:
        raise ShapeError(f"Expected an (H, W, 3|4) image, got shape {image.shape}")

    rgb = np.ascontiguousarray(image[..., :3])
    resized = resize_image(rgb, target_width, target_height, interpolation)

    # HWC [0, 255] -> CHW [0, 1] -> ImageNet normalized
    chw = resized.transpose(2, 0, 1).astype(np.float32) / 255.0
    normalized = (chw - _MEAN) / _STD

    expected = 3 * target_height * target_width
    if normalized.size != expected:
        raise ShapeError(f"Incompatible data size: expected {expected}, found {normalized.size}")

    tensor = Tensor(shape=(1, 3, target_height, target_width), data=normalized, layout=Layout.NCHW)
    LOGGER.debug(
        "[Preprocess] %dx%d -> %s, range [%.3f, %.3f]",
        image.shape[1], image.shape[0], list(tensor.shape),
        float(normalized.min()), float(normalized.max()),
    )
    return tensor


def decode(tensor):
    """
    Undo the normalization of a [1, 3, H, W] tensor.

    Each value becomes (v * std[c] + mean[c]) * 255, rounded and clamped to [0, 255].

    Returns:
        np.ndarray: (H, W, 3) uint8 RGB image
    """
    if tensor.rank < 2:
        raise ShapeError(f"Tensor needs height and width dimensions, got shape {list(tensor.shape)}")
    height, width = tensor.shape[-2], tensor.shape[-1]
    if tensor.size != 3 * height * width:
        raise ShapeError(
            f"Tensor of shape {list(tensor.shape)} holds {tensor.size} elements, "
            f"expected 3x{height}x{width}"
        )

    chw = tensor.data.reshape(3, height, width)
    pixels = (chw * _STD + _MEAN) * 255.0
    pixels = np.clip(np.rint(pixels), 0, 255).astype(np.uint8)
    return np.ascontiguousarray(pixels.transpose(1, 2, 0))


def decode_to_png(tensor):
    """Rebuild a PNG from a normalized input tensor."""
    return encode_png(decode(tensor))

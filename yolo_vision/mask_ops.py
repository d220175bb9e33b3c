"""
Small numeric primitives shared by the decoders.

All functions are pure: inputs are never modified in place.
"""

import cv2
import numpy as np

from .errors import ShapeError

# exp() overflows float64 past ~709; sigmoid is saturated long before that
_SIGMOID_CLIP = 500.0

_RESIZE_MODES = {
    "nearest": cv2.INTER_NEAREST,
    "linear": cv2.INTER_LINEAR,
}


def sigmoid(x):
    """
    Logistic sigmoid 1 / (1 + e^-x).

    Returns a Python float for scalar input and a float64 array otherwise.
    """
    x = np.clip(np.asarray(x, dtype=np.float64), -_SIGMOID_CLIP, _SIGMOID_CLIP)
    y = 1.0 / (1.0 + np.exp(-x))
    return float(y) if y.ndim == 0 else y


def argmax_with_value(values):
    """
    Index and value of the strictly greatest positive element.

    Scans left to right with a strict '>' against a running maximum that
    starts at 0.0, so ties keep the earliest index and a vector with no
    positive element (all zero, all negative, or empty) yields (-1, 0.0).

    Args:
        values: 1-D sequence or array of numbers

    Returns:
        (int, float): (index, value)
    """
    arr = np.asarray(values, dtype=np.float64).reshape(-1)
    if arr.size == 0:
        return -1, 0.0
    # NaN never wins a '>' comparison
    arr = np.where(np.isnan(arr), -np.inf, arr)
    index = int(np.argmax(arr))  # first occurrence of the maximum
    value = float(arr[index])
    if value <= 0.0:
        return -1, 0.0
    return index, value


def as_float32(buffer):
    """
    Reinterpret a linear byte buffer as little-endian float32 values.

    The input is copied, so an unaligned view is read safely.
    """
    raw = bytes(buffer)
    if len(raw) % 4:
        raise ShapeError(f"Byte length {len(raw)} is not a multiple of 4 (float32)")
    return np.frombuffer(raw, dtype="<f4").astype(np.float32)


def resize_mask_2d(mask, width, height, mode="linear"):
    """
    Resample a 2-D scalar grid to width x height.

    Args:
        mask: 2-D array (H, W), uint8 or float
        width: Target width in pixels
        height: Target height in pixels
        mode: 'nearest' or 'linear'

    Returns:
        np.ndarray: Resized grid (height, width), same dtype as the input
    """
    mask = np.asarray(mask)
    if mask.ndim != 2:
        raise ShapeError(f"Mask must be 2-D, got shape {mask.shape}")
    if mask.size == 0:
        raise ShapeError(f"Mask is empty, shape {mask.shape}")
    if width <= 0 or height <= 0:
        raise ShapeError(f"Target size must be positive, got {width}x{height}")
    if mode not in _RESIZE_MODES:
        raise ValueError(f"Unknown resize mode {mode!r}, expected one of {sorted(_RESIZE_MODES)}")
    if mask.shape == (height, width):
        return mask.copy()
    if mask.dtype == np.bool_:
        mask = mask.astype(np.uint8)
    return cv2.resize(mask, (int(width), int(height)), interpolation=_RESIZE_MODES[mode])


def composite_mask(image, mask, threshold):
    """
    Zero the color channels of every pixel whose mask value is below threshold.

    Args:
        image: (H, W, C) uint8 image; an alpha channel (C == 4) is left as is
        mask: (H, W) grid aligned with the image
        threshold: Pixels with mask < threshold are blacked out

    Returns:
        np.ndarray: New image; the input is not modified
    """
    image = np.asarray(image)
    mask = np.asarray(mask)
    if image.ndim != 3:
        raise ShapeError(f"Image must be (H, W, C), got shape {image.shape}")
    if mask.shape != image.shape[:2]:
        raise ShapeError(f"Mask shape {mask.shape} does not match image size {image.shape[:2]}")

    out = image.copy()
    out[mask < threshold, :3] = 0
    return out

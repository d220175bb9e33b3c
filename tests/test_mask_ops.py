import math
import struct

import numpy as np
import pytest

from yolo_vision.errors import ShapeError
from yolo_vision.mask_ops import (
    argmax_with_value,
    as_float32,
    composite_mask,
    resize_mask_2d,
    sigmoid,
)


def test_sigmoid_scalar_and_array() -> None:
    assert sigmoid(0.0) == 0.5
    assert isinstance(sigmoid(1.0), float)
    assert sigmoid(2.0) == pytest.approx(1.0 / (1.0 + math.exp(-2.0)))
    values = sigmoid(np.array([-1.0, 0.0, 1.0]))
    assert values.shape == (3,)
    assert values[0] == pytest.approx(1.0 - values[2])


def test_sigmoid_saturates_without_overflow() -> None:
    with np.errstate(over="raise"):
        assert sigmoid(-1000.0) == pytest.approx(0.0)
        assert sigmoid(1000.0) == pytest.approx(1.0)


def test_argmax_all_zero_yields_minus_one() -> None:
    assert argmax_with_value([0.0, 0.0, 0.0]) == (-1, 0.0)


def test_argmax_ties_keep_first_index() -> None:
    index, value = argmax_with_value([0.1, 0.9, 0.9])
    assert index == 1
    assert value == pytest.approx(0.9)


def test_argmax_empty_and_negative() -> None:
    assert argmax_with_value([]) == (-1, 0.0)
    assert argmax_with_value([-0.5, -0.1]) == (-1, 0.0)


def test_argmax_ignores_nan() -> None:
    assert argmax_with_value([float("nan"), 0.3, 0.2]) == (1, pytest.approx(0.3))


def test_as_float32_reads_little_endian() -> None:
    raw = struct.pack("<3f", 1.5, -2.0, 0.25)
    values = as_float32(memoryview(raw)[0:12])
    assert values.dtype == np.float32
    assert values.tolist() == [1.5, -2.0, 0.25]


def test_as_float32_rejects_partial_element() -> None:
    with pytest.raises(ShapeError):
        as_float32(b"\x00" * 6)


def test_resize_mask_nearest_preserves_binary_values() -> None:
    mask = np.array([[0, 255], [255, 0]], dtype=np.uint8)
    resized = resize_mask_2d(mask, 4, 4, mode="nearest")
    assert resized.shape == (4, 4)
    assert set(np.unique(resized)) <= {0, 255}
    assert resized[0, 0] == 0 and resized[0, 3] == 255
    assert resized[3, 0] == 255 and resized[3, 3] == 0


def test_resize_mask_linear_produces_intermediate_values() -> None:
    mask = np.array([[0, 255]], dtype=np.uint8)
    resized = resize_mask_2d(mask, 4, 1, mode="linear")
    assert resized.shape == (1, 4)
    assert 0 < resized[0, 1] < 255


def test_resize_mask_rejects_bad_input() -> None:
    with pytest.raises(ShapeError):
        resize_mask_2d(np.zeros((2, 2, 2)), 4, 4)
    with pytest.raises(ValueError):
        resize_mask_2d(np.zeros((2, 2)), 4, 4, mode="cubic")


def test_composite_mask_zeroes_rgb_below_threshold_and_keeps_alpha() -> None:
    image = np.full((2, 2, 4), 200, dtype=np.uint8)
    mask = np.array([[0, 255], [127, 128]], dtype=np.uint8)
    out = composite_mask(image, mask, 128)
    assert out[0, 0].tolist() == [0, 0, 0, 200]
    assert out[1, 0].tolist() == [0, 0, 0, 200]
    assert out[0, 1].tolist() == [200, 200, 200, 200]
    assert out[1, 1].tolist() == [200, 200, 200, 200]
    # input untouched
    assert (image == 200).all()


def test_composite_mask_requires_matching_size() -> None:
    with pytest.raises(ShapeError):
        composite_mask(np.zeros((2, 2, 3), np.uint8), np.zeros((3, 3), np.uint8), 128)


def test_resize_mask_rejects_empty_mask() -> None:
    with pytest.raises(ShapeError):
        resize_mask_2d(np.zeros((0, 0), dtype=np.uint8), 4, 4)

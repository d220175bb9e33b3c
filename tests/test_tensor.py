import struct

import numpy as np
import pytest

from yolo_vision.errors import ShapeError
from yolo_vision.tensor import Layout, Tensor


def test_tensor_requires_matching_element_count() -> None:
    with pytest.raises(ShapeError):
        Tensor(shape=(1, 3, 2, 2), data=np.zeros(11, dtype=np.float32))


def test_tensor_from_array_keeps_shape() -> None:
    array = np.arange(24, dtype=np.float32).reshape(1, 2, 3, 4)
    tensor = Tensor.from_array(array, layout=Layout.NCHW)
    assert tensor.shape == (1, 2, 3, 4)
    assert tensor.rank == 4
    assert tensor.size == 24
    assert np.array_equal(tensor.as_array(), array)


def test_tensor_buffer_is_private_and_read_only() -> None:
    array = np.zeros(4, dtype=np.float32)
    tensor = Tensor(shape=(1, 4), data=array)
    array[0] = 9.0
    assert tensor.data[0] == 0.0
    with pytest.raises(ValueError):
        tensor.data[0] = 1.0


def test_tensor_from_bytes() -> None:
    raw = struct.pack("<4f", 1.0, 2.0, 3.0, 4.0)
    tensor = Tensor.from_bytes(raw, (1, 2, 2))
    assert tensor.as_array().tolist() == [[[1.0, 2.0], [3.0, 4.0]]]


def test_layout_needs_rank_four() -> None:
    with pytest.raises(ShapeError):
        Tensor(shape=(2, 2), data=np.zeros(4), layout=Layout.NHWC)

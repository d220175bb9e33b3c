"""
Tensor value type exchanged with the inference engine.

A Tensor is a shape, a flat float32 buffer in row-major order, and an
optional layout tag for 4-D tensors. The buffer length always equals the
product of the shape; anything else is a ShapeError at construction.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from .errors import ShapeError
from .mask_ops import as_float32


class Layout(Enum):
    """Axis ordering of a 4-D tensor."""

    NCHW = "NCHW"  # batch, channel, height, width
    NHWC = "NHWC"  # batch, height, width, channel


def _element_count(shape):
    count = 1
    for dim in shape:
        count *= dim
    return count


@dataclass(frozen=True, eq=False)
class Tensor:
    shape: Tuple[int, ...]
    data: np.ndarray
    layout: Optional[Layout] = None

    def __post_init__(self):
        shape = tuple(int(d) for d in self.shape)
        if any(d < 0 for d in shape):
            raise ShapeError(f"Negative dimension in shape {shape}")

        # Private read-only copy so callers cannot alias the buffer
        data = np.array(self.data, dtype=np.float32).reshape(-1)
        expected = _element_count(shape)
        if data.size != expected:
            raise ShapeError(
                f"Buffer holds {data.size} elements, shape {list(shape)} needs {expected}"
            )
        if self.layout is not None and len(shape) != 4:
            raise ShapeError(f"Layout {self.layout.value} requires a 4-D shape, got {list(shape)}")

        data.setflags(write=False)

        object.__setattr__(self, "shape", shape)
        object.__setattr__(self, "data", data)

    @classmethod
    def from_array(cls, array, layout=None):
        """Build a Tensor from an N-D array, keeping its shape."""
        array = np.asarray(array, dtype=np.float32)
        return cls(shape=array.shape, data=array.reshape(-1), layout=layout)

    @classmethod
    def from_bytes(cls, buffer, shape, layout=None):
        """
        Build a Tensor by reinterpreting a raw byte buffer as little-endian float32.

        Args:
            buffer: bytes, bytearray or memoryview as returned by an engine binding
            shape: Sequence of dimension sizes
            layout: Optional Layout tag for 4-D tensors

        Returns:
            Tensor
        """
        return cls(shape=tuple(shape), data=as_float32(buffer), layout=layout)

    @property
    def rank(self):
        return len(self.shape)

    @property
    def size(self):
        return int(self.data.size)

    def as_array(self):
        """Return a read-only view of the buffer with the tensor's shape."""
        return self.data.reshape(self.shape)

    def __repr__(self):
        layout = f", layout={self.layout.value}" if self.layout else ""
        return f"Tensor(shape={list(self.shape)}{layout})"

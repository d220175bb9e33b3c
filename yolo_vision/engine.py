"""
Inference engine boundary.

The decoders never call an engine themselves; the model wrappers do. Any
object with a forward(inputs) -> outputs method over Tensors can be used,
OnnxRuntimeEngine is the bundled implementation.
"""

import logging
from pathlib import Path
from typing import List, Protocol, Sequence

import numpy as np

from .tensor import Tensor

LOGGER = logging.getLogger(__name__)


class InferenceEngine(Protocol):
    def forward(self, inputs: Sequence[Tensor]) -> List[Tensor]:
        ...


class OnnxRuntimeEngine:
    """Run an ONNX model with ONNX Runtime."""

    def __init__(self, model_path, providers=("CPUExecutionProvider",)):
        import onnxruntime as ort

        self.model_path = Path(model_path)
        LOGGER.info("Loading ONNX model: %s", self.model_path)
        self.session = ort.InferenceSession(str(self.model_path), providers=list(providers))
        self.input_names = [i.name for i in self.session.get_inputs()]

    def forward(self, inputs):
        if len(inputs) != len(self.input_names):
            raise ValueError(f"Model expects {len(self.input_names)} inputs, got {len(inputs)}")
        feed = {name: tensor.as_array() for name, tensor in zip(self.input_names, inputs)}
        outputs = self.session.run(None, feed)

        tensors = [Tensor.from_array(np.asarray(output, dtype=np.float32)) for output in outputs]
        for idx, tensor in enumerate(tensors):
            LOGGER.debug(
                "Raw output[%d] shape: %s, first values: %s",
                idx, list(tensor.shape), tensor.data[:10].tolist(),
            )
        return tensors


def load_model(model_path, providers=("CPUExecutionProvider",)):
    """Create an OnnxRuntimeEngine after checking the model file exists."""
    path = Path(model_path)
    if not path.is_file():
        raise FileNotFoundError(f"Model file not found: {path}")
    return OnnxRuntimeEngine(path, providers=providers)

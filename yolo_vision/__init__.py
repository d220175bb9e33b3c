"""
yolo_vision: decode raw on-device vision model outputs.

Turns output tensors into object detections, single-instance segmentation
masks and classification labels. The inference engine and image codec sit
at the boundary; the decoders are pure functions over Tensors.
"""

from .classification import decode_classification
from .config import VisionConfig, load_config
from .detection import decode_detections, non_max_suppression
from .engine import InferenceEngine, OnnxRuntimeEngine, load_model
from .errors import (
    ConfigError,
    DecodeError,
    EncodeError,
    NoResultError,
    NoSegmentationFound,
    ShapeError,
    VisionError,
)
from .labels import load_labels
from .models import ClassifyModel, DetectionModel, SegmentModel
from .results import (
    ClassificationResult,
    DetectionResult,
    Result,
    ResultKind,
    SegmentationResult,
    summarize,
)
from .segmentation import decode_segmentation
from .tensor import Layout, Tensor

__version__ = "0.1.0"

"""
Result values produced by the decoders.

The three variants form a closed set tagged by ResultKind and share a common
header: confidence, timestamp and a reference to the source image bytes.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import ClassVar, Mapping, Optional, Tuple, Union

import numpy as np


class ResultKind(Enum):
    DETECTION = "detection"
    CLASSIFICATION = "classification"
    SEGMENTATION = "segmentation"


def _frozen_array(values, dtype):
    arr = np.array(values, dtype=dtype)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class DetectionResult:
    """
    A single accepted detection.

    Attributes:
        class_id: Index into the label table
        label: Label text, or 'class_<id>' when the id is outside the table
        confidence: objectness * max class probability, in [0, 1]
        bbox: (left, top, right, bottom) in model-input pixels, clamped to the input size
    """

    kind: ClassVar[ResultKind] = ResultKind.DETECTION

    class_id: int
    label: str
    confidence: float
    bbox: Tuple[float, float, float, float]
    timestamp: datetime = field(default_factory=datetime.now)
    original_image: Optional[bytes] = None

    def __post_init__(self):
        object.__setattr__(self, "bbox", tuple(float(v) for v in self.bbox))

    def to_dict(self):
        return {
            "kind": self.kind.value,
            "class_id": self.class_id,
            "label": self.label,
            "confidence": self.confidence,
            "bbox": list(self.bbox),
            "timestamp": self.timestamp.isoformat(),
        }

    def __repr__(self):
        bbox = [round(v, 1) for v in self.bbox]
        return (
            f"DetectionResult(class_id={self.class_id}, label={self.label!r}, "
            f"confidence={self.confidence:.3f}, bbox={bbox})"
        )


@dataclass(frozen=True, eq=False)
class ClassificationResult:
    kind: ClassVar[ResultKind] = ResultKind.CLASSIFICATION

    label: str
    confidence: float
    original_image: bytes
    class_id: int = -1
    # one entry per class, class id order
    all_probabilities: Optional[np.ndarray] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        if self.all_probabilities is not None:
            object.__setattr__(
                self, "all_probabilities", _frozen_array(self.all_probabilities, np.float64)
            )

    def to_dict(self):
        probs = None if self.all_probabilities is None else self.all_probabilities.tolist()
        return {
            "kind": self.kind.value,
            "class_id": self.class_id,
            "label": self.label,
            "confidence": self.confidence,
            "all_probabilities": probs,
            "timestamp": self.timestamp.isoformat(),
        }

    def __repr__(self):
        return f"ClassificationResult(label={self.label!r}, confidence={self.confidence:.3f})"


@dataclass(frozen=True, eq=False)
class SegmentationResult:
    """
    Single-instance segmentation.

    binary_mask is a {0, 255} uint8 grid at prototype resolution; segmented_image
    holds PNG bytes of the original image with everything outside the mask
    blacked out.
    """

    kind: ClassVar[ResultKind] = ResultKind.SEGMENTATION

    confidence: float
    original_image: bytes
    best_segmentation_index: int
    mask_coefficients: np.ndarray
    binary_mask: np.ndarray
    segmented_image: bytes
    metadata: Mapping[str, object] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        object.__setattr__(
            self, "mask_coefficients", _frozen_array(self.mask_coefficients, np.float64)
        )
        object.__setattr__(self, "binary_mask", _frozen_array(self.binary_mask, np.uint8))
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    def to_dict(self):
        return {
            "kind": self.kind.value,
            "confidence": self.confidence,
            "best_segmentation_index": self.best_segmentation_index,
            "mask_coefficients": self.mask_coefficients.tolist(),
            "mask_shape": list(self.binary_mask.shape),
            "mask_area": int(np.count_nonzero(self.binary_mask)),
            "metadata": dict(self.metadata),
            "timestamp": self.timestamp.isoformat(),
        }

    def __repr__(self):
        return (
            f"SegmentationResult(confidence={self.confidence:.3f}, "
            f"index={self.best_segmentation_index}, mask={self.binary_mask.shape})"
        )


Result = Union[DetectionResult, ClassificationResult, SegmentationResult]


def summarize(result):
    """One-line human readable summary, dispatched on the result's kind tag."""
    if result.kind is ResultKind.DETECTION:
        left, top, right, bottom = result.bbox
        return (
            f"{result.label}: {result.confidence:.2f} - "
            f"Position: ({left:.0f}, {top:.0f}) ~ ({right:.0f}, {bottom:.0f})"
        )
    if result.kind is ResultKind.CLASSIFICATION:
        return f"{result.label}: {result.confidence:.2f}"
    if result.kind is ResultKind.SEGMENTATION:
        label = result.metadata.get("label") or f"candidate {result.best_segmentation_index}"
        area = int(np.count_nonzero(result.binary_mask))
        return f"{label}: {result.confidence:.2f} - Mask area: {area} pixels"
    raise ValueError(f"Unknown result kind: {result.kind!r}")

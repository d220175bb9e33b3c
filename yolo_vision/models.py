"""
Model wrappers tying preprocessing, the inference engine and a decoder together.

Each wrapper owns its engine, label table and input resolution; nothing is
global. predict() is the one-shot path. forward() and get_result() are split
out so a host can run inference on a worker and decode afterwards.
"""

import logging

from .classification import decode_classification
from .config import VisionConfig
from .detection import decode_detections
from .segmentation import decode_segmentation
from .tensor_codec import encode

LOGGER = logging.getLogger(__name__)


class _VisionModel:
    def __init__(self, engine, labels, config=None):
        self.engine = engine
        self.labels = tuple(labels)
        self.config = config or VisionConfig()

    @property
    def input_width(self):
        return self.config.target_width

    @property
    def input_height(self):
        return self.config.target_height

    def preprocess(self, image_bytes):
        return encode(
            image_bytes,
            target_width=self.input_width,
            target_height=self.input_height,
            interpolation=self.config.interpolation,
        )

    def forward(self, input_tensor):
        outputs = self.engine.forward([input_tensor])
        LOGGER.debug("%s inference produced %d output(s)", type(self).__name__, len(outputs))
        return outputs

    def __repr__(self):
        return (
            f"{type(self).__name__}(input={self.input_width}x{self.input_height}, "
            f"labels={len(self.labels)})"
        )


class DetectionModel(_VisionModel):
    def predict(self, image_bytes, conf_threshold=None):
        """Return detections sorted by descending confidence."""
        outputs = self.forward(self.preprocess(image_bytes))
        return self.get_result(outputs, image_bytes, conf_threshold=conf_threshold)

    def get_result(self, outputs, image_bytes=None, conf_threshold=None):
        if conf_threshold is None:
            conf_threshold = self.config.conf_threshold
        return decode_detections(
            outputs,
            self.labels,
            self.input_width,
            self.input_height,
            conf_threshold=conf_threshold,
            iou_threshold=self.config.iou_threshold,
            original_image=None if image_bytes is None else bytes(image_bytes),
        )


class SegmentModel(_VisionModel):
    def predict(self, image_bytes):
        outputs = self.forward(self.preprocess(image_bytes))
        return self.get_result(outputs, image_bytes)

    def get_result(self, outputs, image_bytes):
        return decode_segmentation(outputs, image_bytes, self.labels)


class ClassifyModel(_VisionModel):
    def predict(self, image_bytes):
        outputs = self.forward(self.preprocess(image_bytes))
        return self.get_result(outputs, image_bytes)

    def get_result(self, outputs, image_bytes):
        return decode_classification(outputs, self.labels, image_bytes)

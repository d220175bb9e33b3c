import numpy as np
import pytest

from yolo_vision.config import VisionConfig
from yolo_vision.engine import load_model
from yolo_vision.models import ClassifyModel, DetectionModel, SegmentModel
from yolo_vision.tensor import Layout, Tensor


class FakeEngine:
    def __init__(self, outputs):
        self.outputs = outputs
        self.calls = []

    def forward(self, inputs):
        self.calls.append(list(inputs))
        return self.outputs


def _detection_output():
    rows = np.array([[0.5], [0.5], [0.5], [0.5], [3.0], [-3.0]], dtype=np.float32)
    return Tensor.from_array(rows[None])


def test_detection_model_predict(solid_png) -> None:
    engine = FakeEngine([_detection_output()])
    model = DetectionModel(engine, ["person", "car"], VisionConfig(target_width=32, target_height=16))

    image = solid_png(64, 64)
    detections = model.predict(image)

    (inputs,) = engine.calls
    assert inputs[0].shape == (1, 3, 16, 32)
    assert inputs[0].layout is Layout.NCHW
    assert len(detections) == 1
    assert detections[0].label == "person"
    assert detections[0].bbox == pytest.approx((8.0, 4.0, 24.0, 12.0))
    assert detections[0].original_image == image


def test_detection_model_per_call_threshold(solid_png) -> None:
    model = DetectionModel(FakeEngine([_detection_output()]), ["person", "car"])
    assert model.predict(solid_png(8, 8), conf_threshold=0.99) == []


def test_segment_model_predict(solid_png) -> None:
    scores = np.zeros((1, 6, 2), dtype=np.float32)
    scores[0, 4] = [0.2, 0.8]
    scores[0, 5] = [0.0, 1.0]
    protos = np.full((1, 1, 4, 4), 5.0, dtype=np.float32)
    engine = FakeEngine([Tensor.from_array(scores), Tensor.from_array(protos)])
    model = SegmentModel(engine, ["thing"], VisionConfig(target_width=8, target_height=8))

    result = model.predict(solid_png(10, 6))

    assert result.best_segmentation_index == 1
    assert (result.binary_mask == 255).all()
    assert result.metadata["original_image_size"] == "10x6"
    assert result.metadata["label"] is None


def test_classify_model_predict(solid_png) -> None:
    engine = FakeEngine([Tensor.from_array(np.array([[0.2, 0.8]], dtype=np.float32))])
    model = ClassifyModel(engine, ["no", "yes"], VisionConfig(target_width=4, target_height=4))
    image = solid_png(4, 4)

    result = model.predict(image)

    assert result.label == "yes"
    assert result.original_image == image


def test_load_model_requires_existing_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_model(tmp_path / "missing.onnx")

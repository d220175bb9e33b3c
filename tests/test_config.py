import json
from pathlib import Path

import pytest

from yolo_vision.config import VisionConfig, load_config
from yolo_vision.errors import ConfigError


def test_defaults() -> None:
    config = VisionConfig()
    assert (config.target_width, config.target_height) == (640, 640)
    assert config.conf_threshold == 0.25
    assert config.iou_threshold is None


def test_missing_file_yields_defaults(tmp_path: Path) -> None:
    assert load_config(tmp_path / "nope.json") == VisionConfig()


def test_file_values_and_overrides(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"target_width": 320, "conf_threshold": 0.4}))
    config = load_config(path, conf_threshold=0.6, target_height=None)
    assert config.target_width == 320
    assert config.target_height == 640
    assert config.conf_threshold == 0.6


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        json.dumps([1, 2]),
        json.dumps({"unknown_key": 1}),
        json.dumps({"conf_threshold": 1.5}),
        json.dumps({"target_width": 0}),
        json.dumps({"interpolation": "cubic"}),
        json.dumps({"target_width": "wide"}),
    ],
)
def test_invalid_config_files(tmp_path: Path, content: str) -> None:
    path = tmp_path / "config.json"
    path.write_text(content)
    with pytest.raises(ConfigError):
        load_config(path)

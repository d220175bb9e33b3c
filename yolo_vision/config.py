"""
Configuration for yolo_vision.

Fixed constants (normalization, segmentation threshold) are module level and
not configurable. The configurable surface is VisionConfig, which can be read
from a JSON file with load_config().
"""

import json
import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional

from .errors import ConfigError

LOGGER = logging.getLogger(__name__)

# Detection parameters
INPUT_SIZE = 640
CONFIDENCE_THRESHOLD = 0.25

# Segmentation parameters (fixed)
SEGMENTATION_THRESHOLD = 0.5
FIRST_COEFF_INDEX = 5  # rows 0..3 box, row 4 confidence
MASK_MIDPOINT = 128  # binarization midpoint of a {0, 255} mask

# ImageNet normalization, RGB order
IMAGENET_MEAN = (0.485, 0.456, 0.406)
IMAGENET_STD = (0.229, 0.224, 0.225)

INTERPOLATIONS = ("nearest", "linear")


@dataclass(frozen=True)
class VisionConfig:
    target_width: int = INPUT_SIZE
    target_height: int = INPUT_SIZE
    conf_threshold: float = CONFIDENCE_THRESHOLD
    # None disables IoU suppression (the default decode path never suppresses)
    iou_threshold: Optional[float] = None
    interpolation: str = "nearest"

    def __post_init__(self):
        if self.target_width <= 0 or self.target_height <= 0:
            raise ConfigError(
                f"target size must be positive, got {self.target_width}x{self.target_height}"
            )
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ConfigError(f"conf_threshold must be in [0, 1], got {self.conf_threshold}")
        if self.iou_threshold is not None and not 0.0 <= self.iou_threshold <= 1.0:
            raise ConfigError(f"iou_threshold must be in [0, 1], got {self.iou_threshold}")
        if self.interpolation not in INTERPOLATIONS:
            raise ConfigError(
                f"interpolation must be one of {INTERPOLATIONS}, got {self.interpolation!r}"
            )


def load_config(config_path=None, **overrides) -> VisionConfig:
    """
    Load a VisionConfig from a JSON file.

    A missing file (or no path) yields the defaults. Keyword overrides that are
    not None are applied on top of the file values.

    Raises:
        ConfigError: malformed JSON, unknown keys, or out-of-range values.
    """
    values = {}
    if config_path is not None:
        path = Path(config_path)
        if path.exists():
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as exc:
                raise ConfigError(f"Invalid JSON in {path}: {exc}") from exc
            if not isinstance(data, dict):
                raise ConfigError(f"Config file {path} must hold a JSON object")
            known = {f.name for f in fields(VisionConfig)}
            unknown = sorted(set(data) - known)
            if unknown:
                raise ConfigError(f"Unknown config keys in {path}: {unknown}")
            values.update(data)
            LOGGER.info("Loaded config from %s", path)
        else:
            LOGGER.info("Config file %s not found, using defaults", path)

    values.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return replace(VisionConfig(), **values)
    except TypeError as exc:
        raise ConfigError(str(exc)) from exc

"""
Error kinds raised by the decode pipeline.

Every error is raised eagerly where the problem is detected and is never
retried or recovered from inside the package.
"""


class VisionError(Exception):
    """Base class for all yolo_vision errors."""


class DecodeError(VisionError, ValueError):
    """Source bytes could not be decoded as an image."""


class EncodeError(VisionError, ValueError):
    """An image could not be re-encoded to the container format."""


class ShapeError(VisionError, ValueError):
    """Tensor rank, dimension or element count does not match what a decode step expects."""


class NoSegmentationFound(VisionError, LookupError):
    """No segmentation candidate cleared the confidence floor."""


class NoResultError(VisionError, LookupError):
    """A classification vector has no positive maximum."""


class ConfigError(VisionError, ValueError):
    """A configuration file is malformed or holds invalid values."""

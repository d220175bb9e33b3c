"""Classification decoding: top label from a flat score vector."""

import logging

from .errors import NoResultError, ShapeError
from .mask_ops import argmax_with_value
from .results import ClassificationResult

LOGGER = logging.getLogger(__name__)


def decode_classification(outputs, labels, original_image):
    """
    Decode a probability vector into a ClassificationResult.

    Raw buffer values are used as-is (no softmax). The whole buffer of
    outputs[0] is read as one vector, whatever its shape.

    Raises:
        ShapeError: If there is no output tensor
        NoResultError: If no value is positive
    """
    if not outputs:
        raise ShapeError("Classification needs 1 output tensor, got 0")

    probabilities = outputs[0].data.astype(float)
    index, prob = argmax_with_value(probabilities)
    if index == -1:
        raise NoResultError(f"No classification result found among {len(probabilities)} scores")

    label = labels[index] if index < len(labels) else f"class_{index}"
    LOGGER.debug("[Classify] top index %d (%s) prob %.4f", index, label, prob)

    return ClassificationResult(
        label=label,
        confidence=prob,
        original_image=bytes(original_image),
        class_id=index,
        all_probabilities=probabilities,
    )

"""
Detection decoding.

Decodes a single [1, C, N] output tensor laid out contiguously by channel
(value(c, i) = buffer[c * N + i]) where each candidate holds

    [cx, cy, w, h, (objectness)?, class_score_0 ... class_score_{K-1}]

Objectness is present when C == K + 5 and absent when C == K + 4. Class
scores are logits passed through sigmoid independently. Box centers and
sizes are normalized to [0, 1] of the model input.

No IoU suppression is applied unless explicitly requested: overlapping
boxes above the confidence threshold are all returned.
"""

import logging

import numpy as np

from .config import CONFIDENCE_THRESHOLD
from .errors import ShapeError
from .mask_ops import sigmoid
from .results import DetectionResult

LOGGER = logging.getLogger(__name__)

# Offset per class id for class-aware suppression (max box side in pixels)
MAX_WH = 7680


def xywh2xyxy(x):
    """
    Convert boxes from center format to corner format.

    Args:
        x (np.ndarray): Boxes in xywh format, shape (..., 4)

    Returns:
        (np.ndarray): Boxes in xyxy format, shape (..., 4)
    """
    assert x.shape[-1] == 4, f"input shape last dimension expected 4 but input shape is {x.shape}"
    y = np.empty_like(x, dtype=np.float64)
    xy = x[..., :2]  # centers (cx, cy)
    wh = x[..., 2:] / 2  # half width-height
    y[..., :2] = xy - wh  # top left
    y[..., 2:] = xy + wh  # bottom right
    return y


def box_iou(box1, box2, eps=1e-7):
    """
    IoU matrix between two sets of xyxy boxes.

    Args:
        box1 (np.ndarray): shape (N, 4)
        box2 (np.ndarray): shape (M, 4)

    Returns:
        (np.ndarray): shape (N, M)
    """
    b1_x1, b1_y1, b1_x2, b1_y2 = box1[:, 0], box1[:, 1], box1[:, 2], box1[:, 3]
    b2_x1, b2_y1, b2_x2, b2_y2 = box2[:, 0], box2[:, 1], box2[:, 2], box2[:, 3]

    inter = (np.minimum(b1_x2[:, None], b2_x2) - np.maximum(b1_x1[:, None], b2_x1)).clip(0) * \
            (np.minimum(b1_y2[:, None], b2_y2) - np.maximum(b1_y1[:, None], b2_y1)).clip(0)

    w1, h1 = b1_x2 - b1_x1, b1_y2 - b1_y1
    w2, h2 = b2_x2 - b2_x1, b2_y2 - b2_y1
    union = w1[:, None] * h1[:, None] + w2 * h2 - inter + eps

    return inter / union


def non_max_suppression(boxes, scores, iou_threshold, class_ids=None):
    """
    Greedy IoU suppression.

    Repeatedly keeps the highest scoring remaining box and drops every other
    box whose IoU with it is at or above iou_threshold. With class_ids given,
    boxes of different classes never suppress each other.

    Args:
        boxes (np.ndarray): xyxy boxes, shape (N, 4)
        scores (np.ndarray): shape (N,)
        iou_threshold (float): Overlap at which a box is suppressed
        class_ids (np.ndarray | None): shape (N,)

    Returns:
        (np.ndarray): Indices of kept boxes, highest score first
    """
    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    scores = np.asarray(scores, dtype=np.float64).reshape(-1)
    if len(boxes) == 0:
        return np.zeros(0, dtype=np.int64)

    if class_ids is not None:
        boxes = boxes + np.asarray(class_ids, dtype=np.float64).reshape(-1, 1) * MAX_WH

    indices = np.argsort(-scores, kind="stable")
    keep = []
    while len(indices) > 0:
        current = indices[0]
        keep.append(current)
        if len(indices) == 1:
            break
        ious = box_iou(boxes[current:current + 1], boxes[indices[1:]])[0]
        indices = indices[1:][ious < iou_threshold]

    return np.array(keep, dtype=np.int64)


def decode_detections(
    outputs,
    labels,
    input_width,
    input_height,
    conf_threshold=CONFIDENCE_THRESHOLD,
    iou_threshold=None,
    original_image=None,
):
    """
    Decode a detection model output into DetectionResults.

    Args:
        outputs: Ordered list of output Tensors; only outputs[0] is used
        labels: Label table, index = class id
        input_width: Model input width in pixels
        input_height: Model input height in pixels
        conf_threshold: Candidates with confidence below this are discarded
        iou_threshold: Enables class-aware IoU suppression when not None
        original_image: Source image bytes, attached to every result

    Returns:
        list[DetectionResult]: Sorted by descending confidence (stable)

    Raises:
        ShapeError: If the tensor is not 3-D or C is neither K + 4 nor K + 5
    """
    if not outputs:
        LOGGER.debug("[Postprocess] No output tensors, no detections")
        return []

    out = outputs[0]
    if out.rank != 3:
        raise ShapeError(f"Detection output must be [1, C, N], got shape {list(out.shape)}")
    _, channels, num_boxes = out.shape
    preds = out.as_array()[0].astype(np.float64)  # (C, N)

    label_count = len(labels)
    if channels == label_count + 5:
        has_objectness = True
    elif channels == label_count + 4:
        has_objectness = False
    else:
        raise ShapeError(
            f"Detection output has {channels} channels, expected {label_count + 4} "
            f"or {label_count + 5} for {label_count} labels"
        )
    class_offset = 5 if has_objectness else 4
    class_count = channels - class_offset

    LOGGER.debug(
        "[Postprocess] channels=%d num_boxes=%d has_objectness=%s class_count=%d",
        channels, num_boxes, has_objectness, class_count,
    )
    if num_boxes == 0:
        return []

    if has_objectness:
        objectness = sigmoid(preds[4])
    else:
        objectness = np.ones(num_boxes)

    if class_count > 0:
        class_probs = sigmoid(preds[class_offset:])  # (K, N)
        class_ids = np.argmax(class_probs, axis=0)  # first maximum wins
        max_class_prob = class_probs[class_ids, np.arange(num_boxes)]
    else:
        class_ids = np.full(num_boxes, -1)
        max_class_prob = np.zeros(num_boxes)

    confidence = objectness * max_class_prob
    candidates = np.flatnonzero(confidence >= conf_threshold)
    LOGGER.debug(
        "[Postprocess] %d/%d candidates at conf >= %.2f", len(candidates), num_boxes, conf_threshold
    )

    corners = xywh2xyxy(preds[:4, candidates].T)
    corners[:, [0, 2]] = (corners[:, [0, 2]] * input_width).clip(0, input_width)
    corners[:, [1, 3]] = (corners[:, [1, 3]] * input_height).clip(0, input_height)
    scores = confidence[candidates]

    order = np.argsort(-scores, kind="stable")
    if iou_threshold is not None:
        order = non_max_suppression(corners, scores, iou_threshold, class_ids[candidates])
        LOGGER.debug("[Postprocess] %d boxes after IoU suppression", len(order))

    detections = []
    for k in order:
        class_id = int(class_ids[candidates[k]])
        label = labels[class_id] if 0 <= class_id < label_count else f"class_{class_id}"
        detections.append(
            DetectionResult(
                class_id=class_id,
                label=label,
                confidence=float(scores[k]),
                bbox=tuple(corners[k]),
                original_image=original_image,
            )
        )
    return detections

"""
Single-instance segmentation decoding with prototype masks.

Inputs are the per-candidate score/coefficient tensor [1, C, N] (row 4 is the
confidence row, rows 5..C-1 are mask coefficients) and the shared mask
prototype tensor, in NCHW or NHWC order. The best candidate's coefficients are
combined with the prototypes into one binary mask, which is scaled to the
original image and used to black out everything outside the instance.
"""

import logging

import numpy as np

from .config import FIRST_COEFF_INDEX, MASK_MIDPOINT, SEGMENTATION_THRESHOLD
from .errors import NoSegmentationFound, ShapeError
from .image_codec import decode_image, encode_png
from .mask_ops import composite_mask, resize_mask_2d, sigmoid
from .results import SegmentationResult
from .tensor import Layout

LOGGER = logging.getLogger(__name__)

CONFIDENCE_ROW = 4


def prototypes_to_hwc(tensor):
    """
    Convert a mask prototype tensor to a (H, W, C) grid.

    An explicit layout tag on the tensor is honored. Otherwise the layout is
    inferred from the shape [1, d1, d2, d3]: when size / (d2 * d3) == d1 the
    tensor is read as NCHW, else as NHWC.

    Note: the inference cannot tell the layouts apart for a batch-1 tensor,
    where size / (d2 * d3) is always d1, so untagged NHWC prototypes are read
    as NCHW. Tag such tensors with Layout.NHWC.
    """
    if tensor.rank < 4:
        raise ShapeError(f"Unexpected mask prototype shape {list(tensor.shape)}, need rank 4")

    d1, d2, d3 = tensor.shape[1], tensor.shape[2], tensor.shape[3]
    if min(d1, d2, d3) == 0 or tensor.size < d1 * d2 * d3:
        raise ShapeError(f"Mask prototype tensor {list(tensor.shape)} holds no complete prototype grid")
    layout = tensor.layout
    if layout is None:
        maybe_c = tensor.size // (d2 * d3)
        layout = Layout.NCHW if maybe_c == d1 else Layout.NHWC

    data = tensor.data[:d1 * d2 * d3].reshape(d1, d2, d3)
    if layout is Layout.NCHW:
        protos = data.transpose(1, 2, 0)  # C, H, W -> H, W, C
    else:
        protos = data
    LOGGER.debug("[Segment] prototypes %s read as %s -> HWC %s", list(tensor.shape), layout.value, protos.shape)
    return np.ascontiguousarray(protos, dtype=np.float64)


def get_best_segmentation_index(segmentations, threshold=SEGMENTATION_THRESHOLD):
    """
    Index of the candidate with the highest confidence above threshold.

    Args:
        segmentations: (C, N) array, row 4 holds per-candidate confidence
        threshold: Confidence floor; only values strictly above it qualify

    Returns:
        int: Candidate index, or -1 when no confidence exceeds the threshold
    """
    confidences = np.asarray(segmentations, dtype=np.float64)[CONFIDENCE_ROW]
    best_index = -1
    max_confidence = -1.0
    for i, confidence in enumerate(confidences):
        if confidence > threshold and confidence > max_confidence:
            max_confidence = confidence
            best_index = i
    return best_index


def extract_mask_coefficients(segmentations, index, first_coeff_index=FIRST_COEFF_INDEX):
    """Rows first_coeff_index..C-1 of the selected column."""
    return np.asarray(segmentations, dtype=np.float64)[first_coeff_index:, index].copy()


def build_binary_mask(prototypes, coefficients):
    """
    Combine prototypes with mask coefficients into a {0, 255} mask.

    value(y, x) = sum_i coeff[i] * proto[y, x, i] over i < min(len(coeff), C),
    then sigmoid, then 255 where the result is above 0.5.

    Args:
        prototypes: (H, W, C) grid
        coefficients: 1-D coefficient vector

    Returns:
        np.ndarray: (H, W) uint8 mask
    """
    prototypes = np.asarray(prototypes, dtype=np.float64)
    coefficients = np.asarray(coefficients, dtype=np.float64).reshape(-1)
    num_coeffs = min(len(coefficients), prototypes.shape[2])

    values = prototypes[..., :num_coeffs] @ coefficients[:num_coeffs]
    return np.where(sigmoid(values) > 0.5, 255, 0).astype(np.uint8)


def decode_segmentation(outputs, original_image, labels=()):
    """
    Decode segmentation outputs into a SegmentationResult.

    Args:
        outputs: [scores/coefficients tensor [1, C, N], mask prototype tensor]
        original_image: Encoded bytes of the image before resizing
        labels: Label table; the selected candidate index is looked up in it

    Returns:
        SegmentationResult

    Raises:
        ShapeError: Missing outputs or unexpected tensor shapes
        NoSegmentationFound: No candidate above the confidence floor
        DecodeError / EncodeError: Image container failures
    """
    if len(outputs) < 2:
        raise ShapeError(f"Segmentation needs 2 output tensors, got {len(outputs)}")

    out_seg, out_proto = outputs[0], outputs[1]
    if out_seg.rank < 3:
        raise ShapeError(f"Segmentation output must be [1, C, N], got shape {list(out_seg.shape)}")
    channels, num_det = out_seg.shape[1], out_seg.shape[2]
    if channels <= CONFIDENCE_ROW:
        raise ShapeError(f"Segmentation output has {channels} rows, need at least {CONFIDENCE_ROW + 1}")
    segmentations = out_seg.data[:channels * num_det].reshape(channels, num_det).astype(np.float64)

    prototypes = prototypes_to_hwc(out_proto)

    best_index = get_best_segmentation_index(segmentations, SEGMENTATION_THRESHOLD)
    if best_index == -1:
        raise NoSegmentationFound(
            f"No segmentation above {SEGMENTATION_THRESHOLD} among {num_det} candidates"
        )
    confidence = float(segmentations[CONFIDENCE_ROW, best_index])
    LOGGER.debug("[Segment] best candidate %d, confidence %.3f", best_index, confidence)

    coefficients = extract_mask_coefficients(segmentations, best_index, FIRST_COEFF_INDEX)
    binary_mask = build_binary_mask(prototypes, coefficients)

    image = decode_image(original_image, keep_alpha=True)
    height, width = image.shape[:2]
    resized_mask = resize_mask_2d(binary_mask, width, height, mode="linear")
    masked_image = composite_mask(image, resized_mask, MASK_MIDPOINT)
    segmented_image = encode_png(masked_image)
    LOGGER.debug(
        "[Segment] mask %s -> %dx%d, %d pixels kept",
        binary_mask.shape, width, height, int(np.count_nonzero(resized_mask >= MASK_MIDPOINT)),
    )

    label = labels[best_index] if 0 <= best_index < len(labels) else None

    return SegmentationResult(
        confidence=confidence,
        original_image=bytes(original_image),
        best_segmentation_index=best_index,
        mask_coefficients=coefficients,
        binary_mask=binary_mask,
        segmented_image=segmented_image,
        metadata={
            "threshold": SEGMENTATION_THRESHOLD,
            "first_coeff_index": FIRST_COEFF_INDEX,
            "original_image_size": f"{width}x{height}",
            "label": label,
        },
    )

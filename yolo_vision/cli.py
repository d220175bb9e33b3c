"""
Command line entry point.

    yolo-vision detect   --model m.onnx --labels coco.txt assets/
    yolo-vision segment  --model m-seg.onnx --labels coco.txt image.png
    yolo-vision classify --model cls.onnx --labels imagenet.txt image.jpg
    yolo-vision compare  raw_a.npy raw_b.npy --tolerance 1e-6
"""

import argparse
import json
import logging
import sys
from datetime import datetime
from pathlib import Path

from .config import load_config
from .debug import compare_raw_outputs, format_comparison, save_raw_outputs
from .engine import load_model
from .errors import VisionError
from .labels import load_labels
from .models import ClassifyModel, DetectionModel, SegmentModel
from .results import summarize

LOGGER = logging.getLogger("yolo_vision")

IMAGE_EXTENSIONS = ("*.jpg", "*.jpeg", "*.png", "*.bmp")

MODEL_TYPES = {
    "detect": DetectionModel,
    "segment": SegmentModel,
    "classify": ClassifyModel,
}


def collect_images(source):
    """A single image file, or every image in a directory (sorted)."""
    source = Path(source)
    if source.is_file():
        return [source]
    if source.is_dir():
        images = []
        for ext in IMAGE_EXTENSIONS:
            images.extend(source.glob(ext))
        return sorted(images)
    raise FileNotFoundError(f"{source} is neither a file nor a directory")


def run_inference(model, image_path, output_dir, debug=False):
    """
    Run one image through a model wrapper and write its outputs.

    Returns:
        Path: The JSON report written for the image
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")[:-3]
    stem = image_path.stem
    image_bytes = image_path.read_bytes()

    outputs = model.forward(model.preprocess(image_bytes))
    if debug:
        save_raw_outputs(outputs, output_dir / "debug" / "raw_output", f"{stem}_{timestamp}")

    result = model.get_result(outputs, image_bytes)
    if isinstance(result, list):
        LOGGER.info("[%s] Total %d objects detected.", image_path.name, len(result))
        for idx, detection in enumerate(result, 1):
            LOGGER.info("  %d. %s", idx, summarize(detection))
        report = {"image": str(image_path), "results": [r.to_dict() for r in result]}
    else:
        LOGGER.info("[%s] %s", image_path.name, summarize(result))
        report = {"image": str(image_path), "results": [result.to_dict()]}
        segmented = getattr(result, "segmented_image", None)
        if segmented is not None:
            mask_path = output_dir / f"{stem}_segmented_{timestamp}.png"
            mask_path.write_bytes(segmented)
            report["segmented_image"] = str(mask_path)

    report_path = output_dir / f"{stem}_{timestamp}.json"
    report_path.write_text(json.dumps(report, indent=2), encoding="utf-8")
    return report_path


def _run_model_command(args):
    config = load_config(
        args.config,
        target_width=args.width,
        target_height=args.height,
        conf_threshold=getattr(args, "conf", None),
        iou_threshold=getattr(args, "iou", None),
    )
    labels = load_labels(args.labels)
    model = MODEL_TYPES[args.command](load_model(args.model), labels, config)

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    images = collect_images(args.source)
    if not images:
        LOGGER.warning("No image files found in %s", args.source)
        return 0
    LOGGER.info("Found %d image(s), results will be saved in '%s'", len(images), output_dir)

    saved, failed = [], 0
    for idx, image_path in enumerate(images, 1):
        LOGGER.info("[%d/%d] Processing: %s", idx, len(images), image_path.name)
        try:
            saved.append(run_inference(model, image_path, output_dir, debug=args.debug))
        except (VisionError, OSError) as exc:
            failed += 1
            LOGGER.error("[%s] Error occurred during processing: %s", image_path.name, exc)

    LOGGER.info("Total images processed: %d, failed: %d", len(saved), failed)
    for idx, path in enumerate(saved, 1):
        LOGGER.info("  %d. %s", idx, path)
    return 1 if failed else 0


def _run_compare(args):
    results = compare_raw_outputs(args.file1, args.file2, tolerance=args.tolerance)
    for line in format_comparison(results):
        print(line)
    return 0 if results["identical"] else 1


def build_parser():
    parser = argparse.ArgumentParser(
        prog="yolo-vision",
        description="Decode on-device vision model outputs into detections, masks and labels",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (
        ("detect", "Object detection"),
        ("segment", "Single-instance segmentation"),
        ("classify", "Image classification"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("source", help="Image file or directory of images")
        sub.add_argument("--model", "-m", required=True, help="Path to the ONNX model")
        sub.add_argument("--labels", "-l", required=True, help="Label file, one label per line")
        sub.add_argument("--output-dir", "-o", default="runs/predict", help="Directory for results")
        sub.add_argument("--config", "-c", help="JSON config file")
        sub.add_argument("--width", type=int, help="Model input width (default: 640)")
        sub.add_argument("--height", type=int, help="Model input height (default: 640)")
        sub.add_argument("--debug", action="store_true", help="Save raw outputs as .npy")
        if name == "detect":
            sub.add_argument("--conf", type=float, help="Confidence threshold (default: 0.25)")
            sub.add_argument("--iou", type=float, help="Enable IoU suppression at this threshold")
        sub.set_defaults(handler=_run_model_command)

    compare = subparsers.add_parser("compare", help="Compare two saved raw outputs")
    compare.add_argument("file1", help="Path to first .npy file")
    compare.add_argument("file2", help="Path to second .npy file")
    compare.add_argument("--tolerance", "-t", type=float, default=1e-6,
                         help="Numerical tolerance for comparison (default: 1e-6)")
    compare.set_defaults(handler=_run_compare)
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return args.handler(args)
    except (VisionError, OSError) as exc:
        LOGGER.error("%s", exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())

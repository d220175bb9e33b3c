"""
Raw output debugging helpers.

Engine outputs can be saved as .npy files and compared across runs or
backends (e.g. ONNX Runtime on a workstation vs. the on-device runtime).
"""

import logging
from pathlib import Path

import numpy as np

LOGGER = logging.getLogger(__name__)


def save_raw_outputs(outputs, directory, stem):
    """
    Save each output tensor as <directory>/raw_output<idx>_<stem>.npy.

    Returns:
        list[Path]: Written files, in output order
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    paths = []
    for idx, tensor in enumerate(outputs):
        path = directory / f"raw_output{idx}_{stem}.npy"
        np.save(str(path), tensor.as_array())
        LOGGER.debug("Raw output[%d] saved to: %s", idx, path)
        paths.append(path)
    return paths


def compare_raw_outputs(file1_path, file2_path, tolerance=1e-6):
    """
    Compare two numpy arrays from saved .npy files.

    Args:
        file1_path: Path to first .npy file
        file2_path: Path to second .npy file
        tolerance: Numerical tolerance for comparison (default: 1e-6)

    Returns:
        dict: Comparison results with detailed statistics
    """
    for path in (file1_path, file2_path):
        if not Path(path).exists():
            raise FileNotFoundError(f"File not found: {path}")

    array1 = np.load(file1_path)
    array2 = np.load(file2_path)

    shape_match = array1.shape == array2.shape
    results = {
        "file1": str(file1_path),
        "file2": str(file2_path),
        "file1_shape": tuple(array1.shape),
        "file2_shape": tuple(array2.shape),
        "shape_match": shape_match,
        "file1_dtype": str(array1.dtype),
        "file2_dtype": str(array2.dtype),
        "file1_size": int(array1.size),
        "file2_size": int(array2.size),
    }

    if not shape_match:
        results["identical"] = False
        results["status"] = "DIFFERENT"
        results["reason"] = "Shapes do not match"
        return results

    if array1.size == 0:
        results.update({"exact_equal": True, "close_equal": True, "tolerance": tolerance})
        results["identical"] = True
        results["status"] = "IDENTICAL"
        return results

    results.update({
        "file1_min": float(np.min(array1)),
        "file1_max": float(np.max(array1)),
        "file1_mean": float(np.mean(array1)),
        "file1_std": float(np.std(array1)),
        "file2_min": float(np.min(array2)),
        "file2_max": float(np.max(array2)),
        "file2_mean": float(np.mean(array2)),
        "file2_std": float(np.std(array2)),
    })

    exact_equal = bool(np.array_equal(array1, array2))
    close_equal = bool(np.allclose(array1, array2, rtol=tolerance, atol=tolerance))
    results["exact_equal"] = exact_equal
    results["close_equal"] = close_equal
    results["tolerance"] = tolerance

    diff = np.abs(array1.astype(np.float64) - array2.astype(np.float64))
    results.update({
        "max_absolute_diff": float(np.max(diff)),
        "mean_absolute_diff": float(np.mean(diff)),
        "num_different_elements": int(np.sum(diff > tolerance)),
        "percent_different": float(np.sum(diff > tolerance) / array1.size * 100),
    })

    # Relative differences (avoid division by zero)
    mask = np.abs(array2) > 1e-10
    if np.any(mask):
        rel_diff = diff[mask] / np.abs(array2[mask])
        results["max_relative_diff"] = float(np.max(rel_diff))
        results["mean_relative_diff"] = float(np.mean(rel_diff))

    if exact_equal:
        results["identical"] = True
        results["status"] = "IDENTICAL"
    elif close_equal:
        results["identical"] = True
        results["status"] = f"NEARLY_IDENTICAL (within tolerance {tolerance})"
    else:
        results["identical"] = False
        results["status"] = "DIFFERENT"
        max_idx = np.unravel_index(np.argmax(diff), diff.shape)
        results["max_diff_location"] = tuple(int(i) for i in max_idx)

    return results


def format_comparison(results):
    """Render compare_raw_outputs() results as text lines."""
    lines = [
        "=" * 80,
        "RAW OUTPUT COMPARISON RESULTS",
        "=" * 80,
        f"File 1: {Path(results['file1']).name} {results['file1_shape']} {results['file1_dtype']}",
        f"File 2: {Path(results['file2']).name} {results['file2_shape']} {results['file2_dtype']}",
    ]
    if not results["shape_match"]:
        lines.append("Files have different shapes - cannot compare values")
    elif "max_absolute_diff" in results:
        lines.append(f"Max Absolute Difference: {results['max_absolute_diff']:.10f}")
        lines.append(f"Mean Absolute Difference: {results['mean_absolute_diff']:.10f}")
        if "max_relative_diff" in results:
            lines.append(f"Max Relative Difference: {results['max_relative_diff']:.10f}")
        lines.append(
            f"Different Elements: {results['num_different_elements']:,} "
            f"({results['percent_different']:.4f}%)"
        )
        if "max_diff_location" in results:
            lines.append(f"Location of max difference: {results['max_diff_location']}")
    lines.append(f"RESULT: {results['status']}")
    lines.append("=" * 80)
    return lines

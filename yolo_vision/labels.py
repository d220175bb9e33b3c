"""Label table loading."""

import logging
from pathlib import Path

LOGGER = logging.getLogger(__name__)


def load_labels(labels_path):
    """
    Read a label table, one label per line; index = class id.

    Returns:
        tuple[str, ...]
    """
    path = Path(labels_path)
    labels = tuple(path.read_text(encoding="utf-8").splitlines())
    LOGGER.info("Loaded %d labels from %s", len(labels), path)
    return labels

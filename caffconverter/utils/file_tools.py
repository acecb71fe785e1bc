"""Filesystem helpers."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


def ensure_directory(path: Path) -> Path:
    """Create a directory if it does not exist."""

    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Ensured directory exists: %s", path)
    return path


def default_output_path(input_path: Path, suffix: str = ".jpg", output_dir: Optional[Path] = None) -> Path:
    """Return the export path: the input's extension replaced by ``suffix``.

    The file lands next to the input unless ``output_dir`` is given.
    """

    if not suffix.startswith("."):
        suffix = "." + suffix
    output_path = input_path.with_suffix(suffix)
    if output_dir is not None:
        output_path = Path(output_dir) / output_path.name
    return output_path

"""Programmatic entry point for the CIFF/CAFF converter."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any

from .config import load_settings
from .core import ConversionMode
from .core.converter import convert
from .core.errors import DecodeError, ExportError, ValidationError

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )


def run(path: Path, mode: ConversionMode | str, **overrides: Any) -> int:
    """Convert one file and report the outcome; returns the process exit status.

    ``overrides`` are passed to ``load_settings`` (e.g. ``jpeg_quality``).
    """

    try:
        settings = load_settings(**overrides)
        outcome = convert(path, mode, settings)
    except (DecodeError, ExportError, ValidationError) as exc:
        logger.debug("Conversion of %s failed", path, exc_info=True)
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    logger.info("Created %s (%sx%s)", outcome.output_path, outcome.width, outcome.height)
    print(outcome.output_path)
    return 0

"""Mode dispatch between standalone CIFF images and CAFF containers."""

from __future__ import annotations

import logging
from pathlib import Path

from . import ConversionMode, ConversionOutcome
from .caff_reader import convert_caff_file
from .ciff_decoder import convert_ciff_file
from ..config import ConversionSettings
from ..utils import validators

logger = logging.getLogger(__name__)


def convert(
    path: Path,
    mode: ConversionMode | str,
    settings: ConversionSettings | None = None,
) -> ConversionOutcome:
    """Convert ``path`` to JPEG according to ``mode``.

    Raises DecodeError, ExportError or ValidationError; no output file exists
    afterwards when an error is raised.
    """

    selected = validators.parse_mode(mode)
    path = Path(path)
    logger.info("Converting %s as %s", path, selected.value.upper())
    if selected is ConversionMode.CIFF:
        return convert_ciff_file(path, settings)
    return convert_caff_file(path, settings)

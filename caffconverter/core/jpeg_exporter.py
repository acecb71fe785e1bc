"""JPEG export of decoded pixel planes using Pillow."""

from __future__ import annotations

import io
import logging
from pathlib import Path

import numpy as np
from PIL import Image

from .errors import ErrorKind, ExportError
from ..utils import file_tools

logger = logging.getLogger(__name__)

JPEG_MAX_DIMENSION = 65535


def encode_jpeg(
    pixels: bytes,
    width: int,
    height: int,
    sink: io.BufferedIOBase,
    quality: int = 90,
    comment: str | None = None,
    path: Path = Path("<memory>"),
) -> None:
    """Encode an RGB row-major pixel plane as JPEG into ``sink``."""

    if width <= 0 or height <= 0:
        raise ExportError(ErrorKind.ENCODE_FAILED, path, reason=f"cannot encode a {width}x{height} image")
    if width > JPEG_MAX_DIMENSION or height > JPEG_MAX_DIMENSION:
        raise ExportError(
            ErrorKind.ENCODE_FAILED,
            path,
            reason=f"{width}x{height} exceeds the JPEG limit of {JPEG_MAX_DIMENSION} pixels per side",
        )
    if len(pixels) != width * height * 3:
        raise ExportError(
            ErrorKind.ENCODE_FAILED,
            path,
            reason=f"expected {width * height * 3} pixel bytes, got {len(pixels)}",
        )

    frame_array = np.frombuffer(pixels, dtype=np.uint8).reshape(height, width, 3)
    save_kwargs: dict[str, object] = {"format": "JPEG", "quality": quality}
    if comment:
        save_kwargs["comment"] = comment.encode("utf-8")
    try:
        image = Image.fromarray(frame_array)
        image.save(sink, **save_kwargs)
    except (OSError, ValueError) as exc:
        raise ExportError(ErrorKind.ENCODE_FAILED, path, reason=str(exc)) from exc


def export_jpeg(
    pixels: bytes,
    width: int,
    height: int,
    output_path: Path,
    quality: int = 90,
    comment: str | None = None,
) -> Path:
    """Encode a pixel plane and persist it to ``output_path``.

    The image is encoded fully in memory before the destination is opened, and
    a partially written file is removed, so a failed export leaves no output.
    """

    sink = io.BytesIO()
    encode_jpeg(pixels, width, height, sink, quality=quality, comment=comment, path=output_path)

    try:
        file_tools.ensure_directory(output_path.parent)
        handle = output_path.open("wb")
    except OSError as exc:
        raise ExportError(ErrorKind.OUTPUT_OPEN_FAILED, output_path, reason=str(exc)) from exc

    try:
        with handle:
            handle.write(sink.getbuffer())
    except OSError as exc:
        output_path.unlink(missing_ok=True)
        raise ExportError(ErrorKind.OUTPUT_OPEN_FAILED, output_path, reason=f"write failed: {exc}") from exc

    logger.info("Wrote %sx%s JPEG to %s", width, height, output_path)
    return output_path

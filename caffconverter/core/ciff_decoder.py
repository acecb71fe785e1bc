"""CIFF still-image decoding.

Layout (little-endian)::

    "CIFF" | header_size u64 | content_size u64 | width u64 | height u64
    | caption ... '\\n' | tag '\\0' tag '\\0' ... | pixels (content_size bytes)

``header_size`` covers everything up to and including the last tag terminator
and must match the bytes actually read exactly.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import BinaryIO, Optional

from . import CiffImage, ConversionMode, ConversionOutcome
from .errors import DecodeError, ErrorKind
from .jpeg_exporter import export_jpeg
from .safe_io import ByteCounter
from ..config import ConversionSettings
from ..utils import file_tools, validators

logger = logging.getLogger(__name__)

CIFF_MAGIC = b"CIFF"
NEWLINE = 0x0A
NUL = 0x00


def decode_ciff(stream: Optional[BinaryIO], settings: ConversionSettings | None = None) -> tuple[CiffImage, int]:
    """Decode one CIFF image starting at the current stream position.

    Returns the image and the number of bytes consumed, which callers use to
    check the length of an enclosing CAFF block.
    """

    settings = settings or ConversionSettings()
    reader = ByteCounter(stream)

    magic = reader.read_exact(len(CIFF_MAGIC), "CIFF magic")
    if magic != CIFF_MAGIC:
        raise DecodeError(ErrorKind.BAD_MAGIC, f"expected {CIFF_MAGIC!r}, got {magic!r}")

    header_size = reader.read_u64("CIFF header size")
    content_size = reader.read_u64("CIFF content size")
    width = reader.read_u64("CIFF width")
    height = reader.read_u64("CIFF height")
    logger.debug(
        "CIFF header: header_size=%s content_size=%s width=%s height=%s",
        header_size,
        content_size,
        width,
        height,
    )

    if content_size != width * height * 3:
        raise DecodeError(
            ErrorKind.SIZE_MISMATCH,
            f"content size {content_size} != {width}x{height}x3",
        )
    if content_size > settings.max_content_bytes:
        raise DecodeError(
            ErrorKind.CAPACITY_EXCEEDED,
            f"content size {content_size} exceeds limit of {settings.max_content_bytes} bytes",
        )

    caption = _read_caption(reader)
    tags = _read_tags(reader, header_size)
    if reader.count != header_size:
        raise DecodeError(
            ErrorKind.HEADER_LENGTH_MISMATCH,
            f"declared header size {header_size}, read {reader.count} bytes",
        )

    pixels = reader.read_plane(content_size)
    image = CiffImage(
        header_size=header_size,
        content_size=content_size,
        width=width,
        height=height,
        caption=caption,
        tags=tags,
        pixels=bytes(pixels),
    )
    logger.info("Decoded CIFF %sx%s, caption %r, %s tag(s)", width, height, caption, len(tags))
    return image, reader.count


def _read_caption(reader: ByteCounter) -> str:
    """Read bytes up to the terminating newline (not included)."""

    buffer = bytearray()
    while True:
        value = reader.read_byte("CIFF caption")
        if value == NEWLINE:
            break
        buffer.append(value)
    return _to_text(buffer)


def _read_tags(reader: ByteCounter, header_size: int) -> list[str]:
    """Read NUL-terminated tags until the header byte count is reached."""

    tags: list[str] = []
    while reader.count < header_size:
        buffer = bytearray()
        while True:
            value = reader.read_byte("CIFF tag")
            if value == NEWLINE:
                raise DecodeError(ErrorKind.MULTILINE_TAG, f"tag {len(tags) + 1} contains a newline")
            if value == NUL:
                break
            buffer.append(value)
        tag = _to_text(buffer)
        logger.debug("CIFF tag: %s", tag)
        tags.append(tag)
    return tags


def _to_text(raw: bytearray) -> str:
    return raw.decode("utf-8", errors="replace")


def convert_ciff_file(path: Path, settings: ConversionSettings | None = None) -> ConversionOutcome:
    """Decode a standalone .ciff file and write it next to the input as JPEG."""

    settings = settings or ConversionSettings()
    validated_path = validators.validate_input_path(path, ConversionMode.CIFF)
    output_path = file_tools.default_output_path(validated_path, settings.output_suffix, settings.output_dir)

    try:
        with validated_path.open("rb") as handle:
            image, consumed = decode_ciff(handle, settings)
    except OSError as exc:
        raise DecodeError(ErrorKind.IO_FAILURE, f"could not read {validated_path}: {exc}") from exc
    logger.debug("Consumed %s bytes from %s", consumed, validated_path)

    export_jpeg(
        image.pixels,
        image.width,
        image.height,
        output_path,
        quality=settings.jpeg_quality,
        comment=settings.jpeg_comment,
    )
    return ConversionOutcome(
        source_path=validated_path,
        output_path=output_path,
        width=image.width,
        height=image.height,
        caption=image.caption,
    )

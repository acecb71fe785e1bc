"""CAFF container reading.

A CAFF file is a sequence of ``id u8 | length u64 | payload`` blocks. The
header block must come first; credits blocks are validated and dropped; the
first animation block's CIFF image is what gets exported. Later blocks are not
read.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Optional

from . import (
    BlockId,
    CaffAnimation,
    CaffCredits,
    CaffDocument,
    CaffHeader,
    ConversionMode,
    ConversionOutcome,
)
from .ciff_decoder import decode_ciff
from .errors import DecodeError, ErrorKind
from .jpeg_exporter import export_jpeg
from .safe_io import ByteCounter, checked_add
from ..config import ConversionSettings
from ..utils import file_tools, validators

logger = logging.getLogger(__name__)

CAFF_MAGIC = b"CAFF"
DURATION_FIELD_SIZE = 8


class ReaderState(Enum):
    EXPECT_FIRST_BLOCK = "expect_first_block"
    READING = "reading"
    DONE = "done"
    FAILED = "failed"


class CaffReader:
    """Walks the blocks of a CAFF stream in a single linear pass."""

    def __init__(self, stream: Optional[BinaryIO], settings: ConversionSettings | None = None):
        self._reader = ByteCounter(stream)
        self._settings = settings or ConversionSettings()
        self.state = ReaderState.EXPECT_FIRST_BLOCK
        self.header: Optional[CaffHeader] = None
        self.animation: Optional[CaffAnimation] = None
        self.credits_seen = 0

    @property
    def bytes_read(self) -> int:
        return self._reader.count

    def read(self) -> CaffDocument:
        """Read blocks until the first animation block has been decoded."""

        try:
            while self.state is not ReaderState.DONE:
                block = self._read_block_header()
                if block is None:
                    break
                block_id, declared_length = block
                self._dispatch(block_id, declared_length)
        except DecodeError:
            self.state = ReaderState.FAILED
            raise

        if self.header is None or self.animation is None:
            self.state = ReaderState.FAILED
            what = "header block" if self.header is None else "animation block"
            raise DecodeError(ErrorKind.NO_ANIMATION_FOUND, f"end of input reached without a {what}")

        return CaffDocument(
            header=self.header,
            animation=self.animation,
            credits_seen=self.credits_seen,
            bytes_read=self.bytes_read,
        )

    def _read_block_header(self) -> Optional[tuple[BlockId, int]]:
        """Return (id, declared length), or None at a clean end of input."""

        id_buffer = bytearray(1)
        if self._reader.read_into(id_buffer, 1) == 0:
            logger.debug("End of CAFF input after %s bytes", self.bytes_read)
            return None
        raw_id = id_buffer[0]
        try:
            block_id = BlockId(raw_id)
        except ValueError as exc:
            raise DecodeError(ErrorKind.UNKNOWN_BLOCK_ID, f"block id {raw_id} is not 1, 2 or 3") from exc
        declared_length = self._reader.read_u64("CAFF block length")
        logger.debug("CAFF block %s, declared length %s", block_id.name, declared_length)
        return block_id, declared_length

    def _dispatch(self, block_id: BlockId, declared_length: int) -> None:
        if block_id is BlockId.HEADER:
            header = self._read_header(declared_length)
            if self.header is not None:
                logger.warning(
                    "Repeated CAFF header block; animation count %s replaces %s",
                    header.animation_count,
                    self.header.animation_count,
                )
            self.header = header
            self.state = ReaderState.READING
            return

        if self.header is None:
            raise DecodeError(
                ErrorKind.HEADER_NOT_FIRST,
                f"{block_id.name.lower()} block found before the CAFF header",
            )

        if block_id is BlockId.CREDITS:
            credits = self._read_credits(declared_length)
            self.credits_seen += 1
            logger.info(
                "CAFF credits: %s, created %04d-%02d-%02d %02d:%02d",
                credits.creator,
                credits.year,
                credits.month,
                credits.day,
                credits.hour,
                credits.minute,
            )
        else:
            self.animation = self._read_animation(declared_length)
            self.state = ReaderState.DONE

    def _read_header(self, declared_length: int) -> CaffHeader:
        start = self.bytes_read
        magic = self._reader.read_exact(len(CAFF_MAGIC), "CAFF magic")
        if magic != CAFF_MAGIC:
            raise DecodeError(ErrorKind.BAD_MAGIC, f"expected {CAFF_MAGIC!r}, got {magic!r}")
        header_size = self._reader.read_u64("CAFF header size")
        animation_count = self._reader.read_u64("CAFF animation count")
        consumed = self.bytes_read - start

        if not consumed == declared_length == header_size:
            raise DecodeError(
                ErrorKind.BLOCK_LENGTH_MISMATCH,
                f"header block declares {declared_length} bytes and header size {header_size}, read {consumed}",
            )
        logger.debug("CAFF header: header_size=%s animation_count=%s", header_size, animation_count)
        return CaffHeader(header_size=header_size, animation_count=animation_count)

    def _read_credits(self, declared_length: int) -> CaffCredits:
        start = self.bytes_read
        year = self._reader.read_u16("credits year")
        month = self._reader.read_u8("credits month")
        day = self._reader.read_u8("credits day")
        hour = self._reader.read_u8("credits hour")
        minute = self._reader.read_u8("credits minute")
        validators.validate_timestamp(month, day, hour, minute)

        creator_length = self._reader.read_u64("creator name length")
        if creator_length > self._settings.max_creator_bytes:
            raise DecodeError(
                ErrorKind.CAPACITY_EXCEEDED,
                f"creator name length {creator_length} exceeds limit of {self._settings.max_creator_bytes} bytes",
            )
        name_buffer = bytearray(creator_length)
        name_read = self._reader.read_into(name_buffer, creator_length)
        if name_read != creator_length:
            raise DecodeError(
                ErrorKind.NAME_LENGTH_MISMATCH,
                f"creator name declares {creator_length} bytes, only {name_read} available",
            )

        consumed = self.bytes_read - start
        if consumed != declared_length:
            raise DecodeError(
                ErrorKind.BLOCK_LENGTH_MISMATCH,
                f"credits block declares {declared_length} bytes, read {consumed}",
            )
        return CaffCredits(
            year=year,
            month=month,
            day=day,
            hour=hour,
            minute=minute,
            creator=name_buffer.decode("utf-8", errors="replace"),
        )

    def _read_animation(self, declared_length: int) -> CaffAnimation:
        duration_ms = self._reader.read_u64("animation duration")
        image, ciff_bytes = decode_ciff(self._reader.source, self._settings)
        self._reader.count = checked_add(self._reader.count, ciff_bytes)

        consumed = checked_add(DURATION_FIELD_SIZE, ciff_bytes)
        if consumed != declared_length:
            raise DecodeError(
                ErrorKind.BLOCK_LENGTH_MISMATCH,
                f"animation block declares {declared_length} bytes, read {consumed}",
            )
        logger.debug("CAFF animation: duration=%sms, %s CIFF bytes", duration_ms, ciff_bytes)
        return CaffAnimation(duration_ms=duration_ms, image=image)


def read_caff(stream: Optional[BinaryIO], settings: ConversionSettings | None = None) -> CaffDocument:
    """Decode a CAFF stream up to and including its first animation block."""

    return CaffReader(stream, settings).read()


def convert_caff_file(path: Path, settings: ConversionSettings | None = None) -> ConversionOutcome:
    """Decode a .caff file and export its first animation frame as JPEG."""

    settings = settings or ConversionSettings()
    validated_path = validators.validate_input_path(path, ConversionMode.CAFF)
    output_path = file_tools.default_output_path(validated_path, settings.output_suffix, settings.output_dir)

    try:
        with validated_path.open("rb") as handle:
            document = read_caff(handle, settings)
    except OSError as exc:
        raise DecodeError(ErrorKind.IO_FAILURE, f"could not read {validated_path}: {exc}") from exc

    image = document.animation.image
    if document.header.animation_count > 1:
        logger.info(
            "%s declares %s animations; exporting the first one only",
            validated_path,
            document.header.animation_count,
        )
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

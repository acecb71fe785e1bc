"""Domain-specific exceptions for the CIFF/CAFF converter."""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class ErrorKind(Enum):
    """Failure causes surfaced by the decoder and the export step."""

    IO_FAILURE = "io_failure"
    INVALID_HANDLE = "invalid_handle"
    CAPACITY_EXCEEDED = "capacity_exceeded"
    COUNTER_OVERFLOW = "counter_overflow"
    BAD_MAGIC = "bad_magic"
    SIZE_MISMATCH = "size_mismatch"
    HEADER_LENGTH_MISMATCH = "header_length_mismatch"
    MULTILINE_TAG = "multiline_tag"
    UNKNOWN_BLOCK_ID = "unknown_block_id"
    HEADER_NOT_FIRST = "header_not_first"
    BLOCK_LENGTH_MISMATCH = "block_length_mismatch"
    DATE_FIELD_OUT_OF_RANGE = "date_field_out_of_range"
    NAME_LENGTH_MISMATCH = "name_length_mismatch"
    NO_ANIMATION_FOUND = "no_animation_found"
    ENCODE_FAILED = "encode_failed"
    OUTPUT_OPEN_FAILED = "output_open_failed"


class DecodeError(ValueError):
    """Raised when a CIFF or CAFF stream is malformed or cannot be read."""

    def __init__(self, kind: ErrorKind, reason: str | None = None):
        self.kind = kind
        message = kind.value.replace("_", " ")
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ExportError(RuntimeError):
    """Raised when a decoded pixel plane cannot be written as an image."""

    def __init__(self, kind: ErrorKind, path: Path, reason: str | None = None):
        self.kind = kind
        self.path = path
        message = f"Could not export {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ValidationError(ValueError):
    """Raised when user-provided paths or settings fail validation."""

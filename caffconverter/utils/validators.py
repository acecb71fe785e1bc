"""Validation helpers for user inputs and decoded fields."""

from __future__ import annotations

from pathlib import Path

from ..core import ConversionMode
from ..core.errors import DecodeError, ErrorKind, ValidationError

# C's FILENAME_MAX on Linux/glibc
FILENAME_MAX = 4096

DATE_FIELD_RANGES = {
    "month": (1, 12),
    "day": (1, 31),
    "hour": (0, 23),
    "minute": (0, 59),
}


def parse_mode(value: str | ConversionMode) -> ConversionMode:
    """Accept 'ciff', '-ciff', '.ciff' (any case) or a ConversionMode."""

    if isinstance(value, ConversionMode):
        return value
    normalized = value.strip().lstrip("-.").lower()
    try:
        return ConversionMode(normalized)
    except ValueError as exc:
        raise ValidationError("Mode must be -ciff or -caff") from exc


def validate_input_path(path: Path, mode: ConversionMode) -> Path:
    """Ensure the path is usable for the selected mode and exists."""

    if not path or not str(path):
        raise ValidationError("No input path provided")
    if len(str(path)) > FILENAME_MAX:
        raise ValidationError(f"Input path is longer than {FILENAME_MAX} characters")
    if path.suffix.lower() != mode.extension:
        raise ValidationError(f"-{mode.value} parsing requires a {mode.extension} file, got {path.name}")
    if not path.is_file():
        raise DecodeError(ErrorKind.IO_FAILURE, f"cannot open {path}: file not found")
    return path


def validate_date_field(name: str, value: int) -> int:
    """Ensure a credits timestamp field is inside its calendar range."""

    low, high = DATE_FIELD_RANGES[name]
    if value < low or value > high:
        raise DecodeError(
            ErrorKind.DATE_FIELD_OUT_OF_RANGE,
            f"{name} must be between {low} and {high}, got {value}",
        )
    return value


def validate_timestamp(month: int, day: int, hour: int, minute: int) -> None:
    """Check every credits timestamp field; the first offender wins."""

    validate_date_field("month", month)
    validate_date_field("day", day)
    validate_date_field("hour", hour)
    validate_date_field("minute", minute)

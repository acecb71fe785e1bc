"""Core data model for CIFF/CAFF decoding."""

__all__ = [
    "BlockId",
    "ConversionMode",
    "CiffImage",
    "CaffHeader",
    "CaffCredits",
    "CaffAnimation",
    "CaffDocument",
    "ConversionOutcome",
]

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from pathlib import Path
from typing import Optional


class BlockId(IntEnum):
    """Block identifiers of the CAFF container."""

    HEADER = 1
    CREDITS = 2
    ANIMATION = 3


class ConversionMode(Enum):
    """Input format selected by the caller."""

    CIFF = "ciff"
    CAFF = "caff"

    @property
    def extension(self) -> str:
        return f".{self.value}"


@dataclass(frozen=True)
class CiffImage:
    """A decoded CIFF still image."""

    header_size: int
    content_size: int
    width: int
    height: int
    caption: str
    tags: list[str] = field(default_factory=list)
    pixels: bytes = b""


@dataclass(frozen=True)
class CaffHeader:
    """Payload of a CAFF header block."""

    header_size: int
    animation_count: int


@dataclass(frozen=True)
class CaffCredits:
    """Payload of a CAFF credits block."""

    year: int
    month: int
    day: int
    hour: int
    minute: int
    creator: str


@dataclass(frozen=True)
class CaffAnimation:
    """Payload of a CAFF animation block."""

    duration_ms: int
    image: CiffImage


@dataclass
class CaffDocument:
    """What a single pass over a CAFF container produced."""

    header: CaffHeader
    animation: CaffAnimation
    credits_seen: int = 0
    bytes_read: int = 0


@dataclass
class ConversionOutcome:
    """Result of converting one input file."""

    source_path: Path
    output_path: Path
    width: int
    height: int
    caption: Optional[str] = None

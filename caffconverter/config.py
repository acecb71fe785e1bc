"""Conversion settings and their environment overrides."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator

from .core.errors import ValidationError

logger = logging.getLogger(__name__)

DEFAULT_JPEG_QUALITY = 90
DEFAULT_MAX_CONTENT_BYTES = 256 * 1024 * 1024  # 256MB pixel plane guardrail
DEFAULT_MAX_CREATOR_BYTES = 1024 * 1024
ENV_OVERRIDES = {
    "jpeg_quality": "CAFF_JPEG_QUALITY",
    "max_content_bytes": "CAFF_MAX_CONTENT_BYTES",
    "max_creator_bytes": "CAFF_MAX_CREATOR_BYTES",
}


class ConversionSettings(BaseModel):
    """Limits and output options shared by the decoder and the exporter."""

    jpeg_quality: int = Field(DEFAULT_JPEG_QUALITY, ge=1, le=95)
    max_content_bytes: int = Field(DEFAULT_MAX_CONTENT_BYTES, ge=0)
    max_creator_bytes: int = Field(DEFAULT_MAX_CREATOR_BYTES, ge=0)
    output_suffix: str = ".jpg"
    output_dir: Optional[Path] = None
    jpeg_comment: Optional[str] = "created from CIFF content"

    @field_validator("output_suffix")
    @classmethod
    def _normalize_suffix(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Output suffix must not be empty")
        if not value.startswith("."):
            value = "." + value
        return value.lower()


def load_settings(**overrides: Any) -> ConversionSettings:
    """Build settings from CAFF_* environment variables plus explicit overrides."""

    values: dict[str, Any] = {}
    for name, env_var in ENV_OVERRIDES.items():
        raw = os.environ.get(env_var)
        if raw is not None and raw.strip() != "":
            values[name] = raw.strip()
    values.update({key: value for key, value in overrides.items() if value is not None})
    try:
        settings = ConversionSettings.model_validate(values)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid conversion settings: {exc}") from exc
    logger.debug("Loaded settings: %s", settings)
    return settings

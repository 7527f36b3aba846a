"""Source image intake.

Checks an uploaded photo before it reaches the orchestrator: the payload
must fit the configured size bound and decode as one of the accepted
formats. The media type is taken from the decoded content, not the name.
"""

from __future__ import annotations

import logging
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from globalme.core.config.models import IntakeConfig
from globalme.core.generation.models import SourceImage

logger = logging.getLogger(__name__)


class IntakeValidationError(ValueError):
    """Photo rejected before generation."""


def _format_list(media_types: list[str]) -> str:
    return ", ".join(mt.split("/")[-1].upper() for mt in media_types)


def detect_media_type(data: bytes) -> str:
    """Media type of an encoded image, sniffed from its content.

    Raises:
        IntakeValidationError: If the bytes are not a readable image
    """
    try:
        with Image.open(BytesIO(data)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError) as e:
        raise IntakeValidationError("Failed to read file. Not a recognised image.") from e

    media_type = Image.MIME.get(fmt or "")
    if media_type is None:
        raise IntakeValidationError(f"Unrecognised image format: {fmt}")
    return media_type


def validate_source_image(
    data: bytes,
    config: IntakeConfig | None = None,
    *,
    declared_media_type: str | None = None,
) -> SourceImage:
    """Validate raw upload bytes and wrap them as a SourceImage.

    Args:
        data: Encoded image.
        config: Intake rules. Defaults to IntakeConfig().
        declared_media_type: Media type claimed by the uploader, if any.

    Returns:
        SourceImage carrying the detected media type.

    Raises:
        IntakeValidationError: On empty, oversized or unsupported input
    """
    config = config or IntakeConfig()
    allowed = _format_list(config.allowed_media_types)

    if not data:
        raise IntakeValidationError("File is empty.")

    if len(data) > config.max_file_size_bytes:
        raise IntakeValidationError(
            f"File size too large. Maximum {config.max_file_size_mb:g}MB allowed."
        )

    if declared_media_type is not None and declared_media_type not in config.allowed_media_types:
        raise IntakeValidationError(f"Invalid file type. Please upload {allowed}.")

    media_type = detect_media_type(data)
    if media_type not in config.allowed_media_types:
        raise IntakeValidationError(f"Invalid file type. Please upload {allowed}.")

    if declared_media_type is not None and declared_media_type != media_type:
        logger.warning(
            "Declared media type %s differs from content (%s), using content",
            declared_media_type,
            media_type,
        )

    return SourceImage(data=data, media_type=media_type)


def load_source_image(path: str | Path, config: IntakeConfig | None = None) -> SourceImage:
    """Read and validate a photo from disk.

    Raises:
        FileNotFoundError: If the file does not exist
        IntakeValidationError: If the photo is rejected
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Image file not found: {path}")
    return validate_source_image(path.read_bytes(), config)

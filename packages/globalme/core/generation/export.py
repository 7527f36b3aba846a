"""Writing generated variants to disk."""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from globalme.core.generation.models import ItemStatus, StoreSnapshot

logger = logging.getLogger(__name__)

_DATA_URI = re.compile(r"^data:(?P<media_type>[\w/+.-]+);base64,(?P<payload>.*)$", re.DOTALL)


class SavedVariant(BaseModel):
    """A variant written to disk."""

    model_config = ConfigDict(frozen=True)

    target_id: str
    file_path: str
    content_hash: str
    file_size_bytes: int


def decode_data_uri(uri: str) -> tuple[str, bytes]:
    """Split a base64 data URI into (media_type, bytes).

    Raises:
        ValueError: If the string is not a base64 data URI
    """
    match = _DATA_URI.match(uri)
    if match is None:
        raise ValueError("Not a base64 data URI")
    try:
        data = base64.b64decode(match.group("payload"), validate=True)
    except binascii.Error as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e
    return match.group("media_type"), data


def variant_filename(target_id: str) -> str:
    return f"globalme-{target_id}.png"


def save_variants(snapshot: StoreSnapshot, output_dir: Path) -> list[SavedVariant]:
    """Write every succeeded item of a snapshot as a PNG file.

    Args:
        snapshot: Store snapshot to export.
        output_dir: Target directory, created if missing.

    Returns:
        One SavedVariant per written file, in snapshot order.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    saved: list[SavedVariant] = []

    for item in snapshot.items.values():
        if item.status != ItemStatus.SUCCEEDED or item.image is None:
            continue
        _media_type, data = decode_data_uri(item.image)
        path = output_dir / variant_filename(item.target_id)
        path.write_bytes(data)
        saved.append(
            SavedVariant(
                target_id=item.target_id,
                file_path=str(path),
                content_hash=hashlib.sha256(data).hexdigest(),
                file_size_bytes=len(data),
            )
        )
        logger.debug("Saved %s (%d bytes)", path, len(data))

    return saved

"""Protocols for the generation layer."""

from __future__ import annotations

from typing import Protocol

from globalme.core.targets.models import TargetConfig


class VariantGenerator(Protocol):
    """Produces one variant image of the source photo for a target."""

    async def generate(self, image_bytes: bytes, media_type: str, target: TargetConfig) -> str:
        """Generate a variant.

        Args:
            image_bytes: Encoded source photo.
            media_type: Media type of image_bytes (e.g. "image/jpeg").
            target: Target describing the scene.

        Returns:
            Data-URI encoded PNG.

        Raises:
            GenerationError: On any unrecoverable failure.
        """
        ...

"""Test doubles and factories for the generation layer."""

from __future__ import annotations

import asyncio
from io import BytesIO

from PIL import Image

from globalme.core.targets.models import SceneDescription, TargetConfig


def make_image_bytes(fmt: str = "PNG", size: tuple[int, int] = (8, 8)) -> bytes:
    """Encode a small solid image in the given PIL format."""
    img = Image.new("RGB", size, (200, 120, 40))
    buf = BytesIO()
    img.save(buf, fmt)
    return buf.getvalue()


def make_target(target_id: str, name: str | None = None) -> TargetConfig:
    return TargetConfig(
        target_id=target_id,
        name=name or target_id.title(),
        scene=SceneDescription(
            location=f"Main square of {target_id}",
            lighting="Soft morning light",
            mood="Calm",
            attire="Casual",
        ),
    )


def default_image_for(target_id: str, image_bytes: bytes) -> str:
    """Payload ScriptedGenerator returns when no result is scripted."""
    return f"data:image/png;base64,{target_id}-{image_bytes.hex()}"


class ScriptedGenerator:
    """In-memory VariantGenerator with per-target scripted results.

    When ``gated`` is set, every call blocks until released.
    """

    def __init__(
        self,
        results: dict[str, str | Exception] | None = None,
        *,
        gated: bool = False,
    ) -> None:
        self.results: dict[str, str | Exception] = dict(results or {})
        self.calls: list[str] = []
        self.gated = gated
        self._gates: dict[str, asyncio.Event] = {}

    def _gate(self, target_id: str) -> asyncio.Event:
        return self._gates.setdefault(target_id, asyncio.Event())

    def release(self, *target_ids: str) -> None:
        """Let blocked calls finish: the given targets, or all of them."""
        if not target_ids:
            self.gated = False
            target_ids = tuple(self._gates)
        for target_id in target_ids:
            self._gate(target_id).set()

    async def generate(self, image_bytes: bytes, media_type: str, target: TargetConfig) -> str:
        self.calls.append(target.target_id)
        if self.gated:
            await self._gate(target.target_id).wait()
        result = self.results.get(target.target_id)
        if isinstance(result, Exception):
            raise result
        if result is not None:
            return result
        return default_image_for(target.target_id, image_bytes)

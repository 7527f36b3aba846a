"""Shared pytest fixtures for GlobalMe tests."""

from __future__ import annotations

import pytest

from globalme.core.generation.models import SourceImage
from globalme.core.targets.catalog import BUILTIN_TARGETS
from globalme.core.targets.models import TargetConfig
from tests.fixtures.generation import make_image_bytes


@pytest.fixture
def targets() -> tuple[TargetConfig, ...]:
    """The six built-in country targets."""
    return BUILTIN_TARGETS


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes("PNG")


@pytest.fixture
def source_image() -> SourceImage:
    return SourceImage(data=b"\x89PNG-source", media_type="image/png")

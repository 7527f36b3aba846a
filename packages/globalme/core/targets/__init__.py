"""Generation targets: the country contexts a variant is rendered for."""

from globalme.core.targets.catalog import (
    BUILTIN_TARGETS,
    ensure_unique_ids,
    load_targets,
    select_targets,
)
from globalme.core.targets.models import SceneDescription, TargetConfig

__all__ = [
    "BUILTIN_TARGETS",
    "SceneDescription",
    "TargetConfig",
    "ensure_unique_ids",
    "load_targets",
    "select_targets",
]

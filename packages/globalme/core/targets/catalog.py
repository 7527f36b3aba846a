"""Target catalog: the built-in country set and custom target files."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from pydantic import ValidationError

from globalme.core.config.loader import load_config
from globalme.core.targets.models import SceneDescription, TargetConfig

logger = logging.getLogger(__name__)

BUILTIN_TARGETS: tuple[TargetConfig, ...] = (
    TargetConfig(
        target_id="egypt",
        name="Egypt",
        scene=SceneDescription(
            location="Busy street in downtown Cairo or Khan el-Khalili market.",
            lighting="Warm, golden hour sun with long shadows.",
            mood="Authentic, lively, dusty atmosphere.",
            attire="Casual modern outfit mixed with local style.",
        ),
    ),
    TargetConfig(
        target_id="usa",
        name="United States",
        scene=SceneDescription(
            location="New York City Brooklyn brownstone street or Santa Monica pier.",
            lighting="Bright, natural daylight, slightly cool tones.",
            mood="Energetic, urban, candid.",
            attire="Casual American streetwear, denim, relaxed fit.",
        ),
    ),
    TargetConfig(
        target_id="saudi_arabia",
        name="Saudi Arabia",
        scene=SceneDescription(
            location="Modern Riyadh Boulevard or historic Diriyah district.",
            lighting="Soft, diffused sunset light, warm desert hues.",
            mood="Elegant, respectful, high-end.",
            attire=(
                "Wearing a high-quality traditional Thobe (men) or elegant "
                "Abaya/Modest fashion (women)."
            ),
        ),
    ),
    TargetConfig(
        target_id="uae",
        name="United Arab Emirates",
        scene=SceneDescription(
            location="Dubai Marina waterfront with blurred skyscrapers in background.",
            lighting="Crystal clear, bright high-noon sunlight, high contrast.",
            mood="Luxury, futuristic, clean.",
            attire="Smart casual, polished, expensive-looking fabric.",
        ),
    ),
    TargetConfig(
        target_id="germany",
        name="Germany",
        scene=SceneDescription(
            location="Berlin Kreuzberg street art district or Munich Englischer Garten.",
            lighting="Overcast, soft diffuse light (cloudy day), muted colors.",
            mood="Cool, moody, hipster, sharp.",
            attire="Stylish winter coat, scarf, layered European fashion.",
        ),
    ),
    TargetConfig(
        target_id="china",
        name="China",
        scene=SceneDescription(
            location=(
                "Shanghai Bund waterfront at dusk with neon lights reflecting or a Beijing Hutong."
            ),
            lighting="Mixed lighting (natural fading light + city neon), cinematic.",
            mood="Dynamic, bustling.",
            attire="Modern Asian urban fashion, trendy.",
        ),
    ),
)


def ensure_unique_ids(targets: Sequence[TargetConfig]) -> None:
    """Raise ValueError if two targets share an identifier."""
    seen: set[str] = set()
    for target in targets:
        if target.target_id in seen:
            raise ValueError(f"Duplicate target id: {target.target_id}")
        seen.add(target.target_id)


def load_targets(path: str | Path) -> tuple[TargetConfig, ...]:
    """Load a target set from a JSON or YAML file.

    The file holds either a list of targets or a mapping with a
    ``targets`` list.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the content is malformed or ids repeat
    """
    raw = load_config(path)
    if isinstance(raw, dict):
        raw = raw.get("targets")
    if not isinstance(raw, list) or not raw:
        raise ValueError(f"No targets defined in {path}")

    try:
        targets = tuple(TargetConfig.model_validate(item) for item in raw)
    except ValidationError as e:
        raise ValueError(f"Invalid target definition in {path}: {e}") from e

    ensure_unique_ids(targets)
    logger.debug("Loaded %d targets from %s", len(targets), path)
    return targets


def select_targets(
    targets: Sequence[TargetConfig],
    target_ids: Iterable[str] | None,
) -> tuple[TargetConfig, ...]:
    """Restrict a target set to the given ids, keeping catalog order.

    Raises:
        KeyError: If an id is not in the set
    """
    if target_ids is None:
        return tuple(targets)

    wanted = list(dict.fromkeys(target_ids))
    known = {t.target_id for t in targets}
    unknown = [tid for tid in wanted if tid not in known]
    if unknown:
        raise KeyError(f"Unknown target id(s): {', '.join(unknown)}")
    return tuple(t for t in targets if t.target_id in wanted)

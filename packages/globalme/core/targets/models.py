"""Target models.

A target is one country context a variant is rendered for:
- SceneDescription: where the person is placed and how the shot looks
- TargetConfig: identifier, display name and scene
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SceneDescription(BaseModel):
    """Structured scene payload used to build the generation instruction.

    Attributes:
        location: Where the person stands.
        lighting: Light quality and colour.
        mood: Overall vibe of the shot.
        attire: What the person wears.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    location: str = Field(min_length=1)
    lighting: str = Field(min_length=1)
    mood: str = Field(min_length=1)
    attire: str = Field(min_length=1)

    def as_prompt_lines(self) -> list[str]:
        return [
            f"Location: {self.location}",
            f"Lighting: {self.lighting}",
            f"Vibe: {self.mood}",
            f"Clothing: {self.attire}",
        ]


class TargetConfig(BaseModel):
    """Immutable descriptor of one generation target.

    Attributes:
        target_id: Unique, stable key (e.g. "saudi_arabia").
        name: Display name (e.g. "Saudi Arabia").
        scene: Scene description for the instruction.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    target_id: str = Field(min_length=1, pattern=r"^[a-z0-9_]+$")
    name: str = Field(min_length=1)
    scene: SceneDescription

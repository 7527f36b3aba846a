"""Generation instruction builder."""

from __future__ import annotations

from globalme.core.targets.models import TargetConfig

_IDENTITY_DIRECTIVE = """\
CRITICAL INSTRUCTION: IDENTITY PRESERVATION
- You MUST PRESERVE the exact facial features, skin tone, age, gender, and facial proportions of the input image.
- The person in the output MUST be recognizable as the EXACT same person from the source.
- Do not "westernize" or "localize" the person's facial features. Only change the environment and clothing."""

_STYLE_DIRECTIVE = """\
Style:
- Photorealistic, 8k resolution.
- Shot on a 85mm portrait lens.
- Natural skin texture (do not airbrush)."""


def build_instruction(target: TargetConfig) -> str:
    """Combine the identity-preservation directive with the target scene."""
    scene_lines = "\n".join(f"- {line}" for line in target.scene.as_prompt_lines())
    return (
        f"Task: Generate a photo of the SPECIFIC PERSON from the input image "
        f"situated in {target.name}.\n\n"
        f"{_IDENTITY_DIRECTIVE}\n\n"
        f"Scene Description:\n{scene_lines}\n"
        f"- The lighting should be realistic and match the environment.\n\n"
        f"{_STYLE_DIRECTIVE}"
    )

"""Configuration models for GlobalMe."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_IMAGE_MODEL = "gemini-2.5-flash-image"


class GenerationConfig(BaseModel):
    """Settings for the external image-generation call."""

    model: str = Field(default=DEFAULT_IMAGE_MODEL, description="Gemini image model name")

    # Low temperature favours fidelity to the source face over creative variance
    temperature: float = Field(default=0.3, ge=0.0, le=2.0)

    safety_threshold: str = Field(
        default="BLOCK_ONLY_HIGH",
        pattern="^(BLOCK_NONE|BLOCK_ONLY_HIGH|BLOCK_MEDIUM_AND_ABOVE|BLOCK_LOW_AND_ABOVE)$",
        description="Threshold applied to every harm category",
    )

    max_attempts: int = Field(
        default=3, ge=1, description="Total attempts per variant when the provider throttles"
    )

    retry_delay_s: float = Field(
        default=30.0, ge=0.0, description="Fixed wait between throttled attempts"
    )


class IntakeConfig(BaseModel):
    """Source image acceptance rules."""

    max_file_size_mb: float = Field(default=5.0, gt=0)
    allowed_media_types: list[str] = Field(
        default_factory=lambda: ["image/jpeg", "image/png", "image/webp"],
        min_length=1,
    )

    @property
    def max_file_size_bytes(self) -> int:
        return int(self.max_file_size_mb * 1024 * 1024)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    structured: bool = False
    filename: str | None = None


class AppConfig(BaseModel):
    """Application-level configuration."""

    model_config = ConfigDict(extra="ignore")

    api_key: str | None = Field(default=None, repr=False)
    output_dir: str = "variants"
    targets_path: str | None = Field(
        default=None, description="Optional YAML/JSON file replacing the built-in targets"
    )
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    intake: IntakeConfig = Field(default_factory=IntakeConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

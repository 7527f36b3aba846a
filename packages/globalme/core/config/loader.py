"""Configuration loading utilities with JSON and YAML support."""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml

from globalme.core.config.models import AppConfig

logger = logging.getLogger(__name__)

# Checked in order when the config file does not carry a key
API_KEY_ENV_VARS = ("GEMINI_API_KEY", "API_KEY")


def detect_format(file_path: Path | str) -> str:
    """Detect config file format from extension.

    Args:
        file_path: Path to config file

    Returns:
        Format string: "json" or "yaml"

    Raises:
        ValueError: If format cannot be determined

    Example:
        >>> detect_format("config.yml")
        'yaml'
    """
    suffix = Path(file_path).suffix.lower()

    if suffix == ".json":
        return "json"
    elif suffix in [".yaml", ".yml"]:
        return "yaml"
    else:
        raise ValueError(f"Unsupported config format: {suffix}")


def load_config(path: str | Path) -> Any:
    """Load and return the raw content of a JSON or YAML file.

    Args:
        path: Path to config file (.json, .yaml, or .yml)

    Returns:
        Parsed content. Empty YAML files load as an empty dict.

    Raises:
        FileNotFoundError: If config file does not exist
        ValueError: If format is not supported or file content is invalid
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Config file does not exist: {path}")

    fmt = detect_format(path)

    if fmt == "json":
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e

    try:
        with path.open("r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
            # safe_load returns None for empty files
            return content if content is not None else {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e


def get_api_key() -> str | None:
    """Get the Gemini API key from the environment."""
    for name in API_KEY_ENV_VARS:
        value = os.getenv(name)
        if value:
            logger.debug("Loaded API key from %s", name)
            return value
    return None


def load_app_config(path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration.

    A missing file (or no path) yields the defaults. The API key falls back
    to the environment when the file leaves it unset.

    Args:
        path: Path to app config file (.json, .yaml, or .yml)

    Returns:
        Validated AppConfig instance

    Raises:
        ValidationError: If config is invalid
        ValueError: If the file cannot be parsed
    """
    if path is not None and Path(path).exists():
        raw_config = load_config(path)
        config = AppConfig.model_validate(raw_config)
    else:
        if path is not None:
            logger.debug("Config file %s not found, using defaults", path)
        config = AppConfig()

    if config.api_key is None:
        api_key = get_api_key()
        if api_key:
            config = config.model_copy(update={"api_key": api_key})

    return config

"""Shared utilities for GlobalMe."""

from globalme.core.utils.logging import StructuredJSONFormatter, configure_logging

__all__ = [
    "StructuredJSONFormatter",
    "configure_logging",
]

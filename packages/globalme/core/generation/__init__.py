"""Variant generation.

Gemini client with throttling retry, the per-item state store and the
orchestrator that fans out one generation per target.
"""

from globalme.core.generation.errors import (
    GenerationError,
    MalformedResponseError,
    SafetyBlockedError,
    ThrottlingError,
    normalize_error_message,
)
from globalme.core.generation.models import (
    ItemState,
    ItemStatus,
    SessionPhase,
    SourceImage,
    StoreSnapshot,
    VariantOutcome,
)
from globalme.core.generation.orchestrator import GenerationOrchestrator
from globalme.core.generation.store import ItemStateStore

__all__ = [
    "GenerationError",
    "GenerationOrchestrator",
    "ItemState",
    "ItemStateStore",
    "ItemStatus",
    "MalformedResponseError",
    "SafetyBlockedError",
    "SessionPhase",
    "SourceImage",
    "StoreSnapshot",
    "ThrottlingError",
    "VariantOutcome",
    "normalize_error_message",
]

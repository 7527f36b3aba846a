"""Generation session models.

Defines the data models shared by the store and the orchestrator:
- SourceImage: the uploaded photo
- ItemStatus / ItemState: per-target lifecycle record
- VariantOutcome: settlement payload of one invocation
- StoreSnapshot: read view for the presentation layer
- SessionPhase: aggregate session state
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from globalme.core.generation.errors import UNKNOWN_ERROR_MESSAGE


class SourceImage(BaseModel):
    """Encoded photo plus declared media type, held once per session."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(min_length=1, repr=False)
    media_type: str = Field(pattern=r"^image/[a-z0-9.+-]+$")

    @property
    def size_bytes(self) -> int:
        return len(self.data)


class ItemStatus(str, Enum):
    """Lifecycle status of one target's variant.

    Attributes:
        IDLE: Nothing launched since the last full reset.
        PENDING: An invocation is in flight.
        SUCCEEDED: Result image available.
        FAILED: Error message available.
    """

    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ItemState(BaseModel):
    """Per-target status record.

    Invariant: ``image`` is set iff status is SUCCEEDED and ``error`` is
    set iff status is FAILED.

    Attributes:
        target_id: Key into the target set.
        status: Current lifecycle status.
        image: Data-URI encoded PNG (succeeded only).
        error: User-facing error text (failed only).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    target_id: str = Field(min_length=1)
    status: ItemStatus = ItemStatus.IDLE
    image: str | None = Field(default=None, repr=False)
    error: str | None = None

    @model_validator(mode="after")
    def _check_payload_matches_status(self) -> ItemState:
        if (self.image is not None) != (self.status == ItemStatus.SUCCEEDED):
            raise ValueError("image must be set exactly when status is succeeded")
        if (self.error is not None) != (self.status == ItemStatus.FAILED):
            raise ValueError("error must be set exactly when status is failed")
        return self

    @classmethod
    def idle(cls, target_id: str) -> ItemState:
        return cls(target_id=target_id, status=ItemStatus.IDLE)

    @classmethod
    def pending(cls, target_id: str) -> ItemState:
        return cls(target_id=target_id, status=ItemStatus.PENDING)


class VariantOutcome(BaseModel):
    """Settlement of one generation invocation: an image or an error."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    image: str | None = Field(default=None, repr=False)
    error: str | None = None

    @model_validator(mode="after")
    def _check_exactly_one(self) -> VariantOutcome:
        if (self.image is None) == (self.error is None):
            raise ValueError("outcome needs exactly one of image or error")
        return self

    @property
    def succeeded(self) -> bool:
        return self.image is not None

    def to_state(self, target_id: str) -> ItemState:
        if self.image is not None:
            return ItemState(target_id=target_id, status=ItemStatus.SUCCEEDED, image=self.image)
        return ItemState(target_id=target_id, status=ItemStatus.FAILED, error=self.error)


# Helper functions to create outcomes


def success_outcome(image: str) -> VariantOutcome:
    """Outcome for a generated image."""
    return VariantOutcome(image=image)


def failure_outcome(error: str) -> VariantOutcome:
    """Outcome for a failed generation. Empty messages get a generic text."""
    return VariantOutcome(error=error or UNKNOWN_ERROR_MESSAGE)


class StoreSnapshot(BaseModel):
    """Point-in-time copy of every item state.

    Attributes:
        items: Target id -> ItemState, in target order.
        epoch: Store epoch at the time of the snapshot.
        any_pending: Whether any item is still in flight.
    """

    model_config = ConfigDict(frozen=True)

    items: dict[str, ItemState]
    epoch: int = Field(ge=0)
    any_pending: bool

    def with_status(self, status: ItemStatus) -> list[ItemState]:
        return [item for item in self.items.values() if item.status == status]

    @property
    def failed(self) -> list[ItemState]:
        return self.with_status(ItemStatus.FAILED)

    @property
    def succeeded(self) -> list[ItemState]:
        return self.with_status(ItemStatus.SUCCEEDED)


class SessionPhase(str, Enum):
    """Aggregate state of a generation session.

    Attributes:
        EMPTY: No source image.
        GENERATING: At least one item pending.
        SETTLED: Every launched item has succeeded or failed.
    """

    EMPTY = "empty"
    GENERATING = "generating"
    SETTLED = "settled"

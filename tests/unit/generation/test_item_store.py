"""Tests for the epoch-gated item state store."""

from __future__ import annotations

from pydantic import ValidationError
import pytest

from globalme.core.generation.models import (
    ItemState,
    ItemStatus,
    VariantOutcome,
    failure_outcome,
    success_outcome,
)
from globalme.core.generation.store import ItemStateStore

IDS = ["egypt", "usa", "china"]


@pytest.fixture
def store() -> ItemStateStore:
    return ItemStateStore(IDS)


class TestInitialState:
    def test_all_idle_at_epoch_zero(self, store: ItemStateStore) -> None:
        snapshot = store.snapshot()
        assert snapshot.epoch == 0
        assert list(snapshot.items) == IDS
        assert all(item.status == ItemStatus.IDLE for item in snapshot.items.values())
        assert snapshot.any_pending is False


class TestResetAll:
    def test_pending_reset_bumps_epoch(self, store: ItemStateStore) -> None:
        epoch = store.reset_all()
        assert epoch == 1
        snapshot = store.snapshot()
        assert snapshot.any_pending is True
        assert all(item.status == ItemStatus.PENDING for item in snapshot.items.values())

    def test_idle_reset_clears_results(self, store: ItemStateStore) -> None:
        epoch = store.reset_all()
        store.apply_result("egypt", epoch, success_outcome("data:image/png;base64,AA=="))
        store.apply_result("usa", epoch, failure_outcome("boom"))

        store.reset_all(status=ItemStatus.IDLE)

        snapshot = store.snapshot()
        assert snapshot.epoch == 2
        for item in snapshot.items.values():
            assert item == ItemState.idle(item.target_id)

    def test_replaces_target_set(self, store: ItemStateStore) -> None:
        store.reset_all(["germany", "uae"])
        assert store.target_ids == ["germany", "uae"]

    def test_rejects_settled_status(self, store: ItemStateStore) -> None:
        with pytest.raises(ValueError):
            store.reset_all(status=ItemStatus.SUCCEEDED)


class TestResetOne:
    def test_only_target_changes(self, store: ItemStateStore) -> None:
        epoch = store.reset_all()
        store.apply_result("egypt", epoch, failure_outcome("boom"))
        store.apply_result("usa", epoch, success_outcome("img-usa"))
        before = store.snapshot()

        assert store.reset_one("egypt") is True

        after = store.snapshot()
        assert after.epoch == before.epoch
        assert after.items["egypt"] == ItemState.pending("egypt")
        assert after.items["usa"] == before.items["usa"]
        assert after.items["china"] == before.items["china"]

    def test_unknown_target_is_noop(self, store: ItemStateStore) -> None:
        before = store.snapshot()
        assert store.reset_one("atlantis") is False
        assert store.snapshot() == before


class TestApplyResult:
    def test_success_sets_image(self, store: ItemStateStore) -> None:
        epoch = store.reset_all()
        assert store.apply_result("usa", epoch, success_outcome("img")) is True
        item = store.snapshot().items["usa"]
        assert item.status == ItemStatus.SUCCEEDED
        assert item.image == "img"
        assert item.error is None

    def test_failure_sets_error(self, store: ItemStateStore) -> None:
        epoch = store.reset_all()
        store.apply_result("usa", epoch, failure_outcome("Quota exceeded"))
        item = store.snapshot().items["usa"]
        assert item.status == ItemStatus.FAILED
        assert item.error == "Quota exceeded"
        assert item.image is None

    def test_stale_epoch_ignored(self, store: ItemStateStore) -> None:
        stale = store.reset_all()
        store.reset_all(status=ItemStatus.IDLE)

        assert store.apply_result("usa", stale, success_outcome("img")) is False
        assert store.snapshot().items["usa"] == ItemState.idle("usa")

    def test_unknown_target_ignored(self, store: ItemStateStore) -> None:
        epoch = store.reset_all()
        assert store.apply_result("atlantis", epoch, success_outcome("img")) is False
        assert "atlantis" not in store.snapshot().items

    def test_any_pending_clears_when_all_settled(self, store: ItemStateStore) -> None:
        epoch = store.reset_all()
        for target_id in IDS:
            assert store.snapshot().any_pending is True
            store.apply_result(target_id, epoch, success_outcome(f"img-{target_id}"))
        assert store.snapshot().any_pending is False


class TestSnapshotIsolation:
    def test_snapshot_not_affected_by_later_writes(self, store: ItemStateStore) -> None:
        epoch = store.reset_all()
        snapshot = store.snapshot()
        store.apply_result("usa", epoch, success_outcome("img"))
        assert snapshot.items["usa"].status == ItemStatus.PENDING


class TestItemStateInvariant:
    def test_image_requires_succeeded(self) -> None:
        with pytest.raises(ValidationError):
            ItemState(target_id="usa", status=ItemStatus.PENDING, image="img")

    def test_failed_requires_error(self) -> None:
        with pytest.raises(ValidationError):
            ItemState(target_id="usa", status=ItemStatus.FAILED)

    def test_outcome_needs_exactly_one_field(self) -> None:
        with pytest.raises(ValidationError):
            VariantOutcome(image="img", error="boom")
        with pytest.raises(ValidationError):
            VariantOutcome()

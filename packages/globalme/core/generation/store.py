"""Per-item state store with epoch gating.

Holds one ItemState per configured target and the generation epoch. Every
bulk reset bumps the epoch; results carrying an older epoch are dropped.
All operations are total: unknown target ids are ignored.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from globalme.core.generation.models import (
    ItemState,
    ItemStatus,
    StoreSnapshot,
    VariantOutcome,
)

logger = logging.getLogger(__name__)

_RESET_STATUSES = {ItemStatus.IDLE, ItemStatus.PENDING}


class ItemStateStore:
    """Mutable map of target id -> ItemState plus the generation epoch.

    Args:
        target_ids: Targets tracked by the store, in display order.
    """

    def __init__(self, target_ids: Iterable[str]) -> None:
        self._items: dict[str, ItemState] = {tid: ItemState.idle(tid) for tid in target_ids}
        self._epoch = 0

    @property
    def epoch(self) -> int:
        """Current generation epoch."""
        return self._epoch

    @property
    def target_ids(self) -> list[str]:
        return list(self._items)

    def reset_all(
        self,
        target_ids: Iterable[str] | None = None,
        *,
        status: ItemStatus = ItemStatus.PENDING,
    ) -> int:
        """Reset every item and start a new epoch.

        Args:
            target_ids: Replacement target set. Keeps the current set when None.
            status: PENDING when launching a fresh batch, IDLE when clearing.

        Returns:
            The new epoch.
        """
        if status not in _RESET_STATUSES:
            raise ValueError(f"Cannot reset items to {status.value}")

        ids = list(target_ids) if target_ids is not None else list(self._items)
        self._items = {tid: ItemState(target_id=tid, status=status) for tid in ids}
        self._epoch += 1
        logger.debug("Store reset to %s, epoch=%d", status.value, self._epoch)
        return self._epoch

    def reset_one(self, target_id: str) -> bool:
        """Mark a single item pending without touching the epoch or siblings.

        Returns:
            False if the target is unknown.
        """
        if target_id not in self._items:
            return False
        self._items[target_id] = ItemState.pending(target_id)
        return True

    def apply_result(self, target_id: str, epoch: int, outcome: VariantOutcome) -> bool:
        """Record a settlement if it belongs to the current epoch.

        Returns:
            True if applied, False if stale or the target is unknown.
        """
        if epoch != self._epoch:
            logger.debug(
                "Discarding stale result for %s (epoch %d, current %d)",
                target_id,
                epoch,
                self._epoch,
            )
            return False
        if target_id not in self._items:
            return False
        self._items[target_id] = outcome.to_state(target_id)
        return True

    def snapshot(self) -> StoreSnapshot:
        """Copy of all item states plus the derived pending flag."""
        items = dict(self._items)
        return StoreSnapshot(
            items=items,
            epoch=self._epoch,
            any_pending=any(item.status == ItemStatus.PENDING for item in items.values()),
        )

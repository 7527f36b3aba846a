"""Per-item generation orchestrator.

Async implementation that fans out one generation task per target, routes
every settlement through a single-consumer queue into the ItemStateStore,
and discards results from before the latest reset via the store epoch.

Usage:
    >>> async with GenerationOrchestrator(BUILTIN_TARGETS, generator) as orch:
    ...     orch.start(source_image)
    ...     await orch.wait_settled()
    ...     snapshot = orch.snapshot()
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from types import TracebackType

from globalme.core.generation.errors import GenerationError, normalize_error_message
from globalme.core.generation.models import (
    ItemStatus,
    SessionPhase,
    SourceImage,
    StoreSnapshot,
    VariantOutcome,
    failure_outcome,
    success_outcome,
)
from globalme.core.generation.protocols import VariantGenerator
from globalme.core.generation.store import ItemStateStore
from globalme.core.targets.catalog import ensure_unique_ids
from globalme.core.targets.models import TargetConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settlement:
    """Message posted by a finished invocation."""

    target_id: str
    epoch: int
    outcome: VariantOutcome


@dataclass
class GenerationSession:
    """Mutable state of one user session: the photo and the item store."""

    store: ItemStateStore
    source_image: SourceImage | None = None


class GenerationOrchestrator:
    """Launches, tracks and retries variant generation for one session.

    Every public method must be called from the event loop thread. The
    queue consumer is the only writer of item results.

    Args:
        targets: Target set, in display order.
        generator: Variant generator used for every invocation.
    """

    def __init__(self, targets: Sequence[TargetConfig], generator: VariantGenerator) -> None:
        if not targets:
            raise ValueError("At least one target is required")
        ensure_unique_ids(targets)

        self._targets: dict[str, TargetConfig] = {t.target_id: t for t in targets}
        self._generator = generator
        self._session = GenerationSession(store=ItemStateStore(self._targets))
        self._updates: asyncio.Queue[Settlement] = asyncio.Queue()
        self._consumer: asyncio.Task[None] | None = None
        self._in_flight: set[asyncio.Task[None]] = set()

    async def __aenter__(self) -> GenerationOrchestrator:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    # -------------------------------------------------------------------------
    # Read surface
    # -------------------------------------------------------------------------

    @property
    def targets(self) -> list[TargetConfig]:
        return list(self._targets.values())

    @property
    def source_image(self) -> SourceImage | None:
        return self._session.source_image

    @property
    def epoch(self) -> int:
        return self._session.store.epoch

    @property
    def phase(self) -> SessionPhase:
        if self._session.source_image is None:
            return SessionPhase.EMPTY
        if self.snapshot().any_pending:
            return SessionPhase.GENERATING
        return SessionPhase.SETTLED

    def snapshot(self) -> StoreSnapshot:
        return self._session.store.snapshot()

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def start(self, image: SourceImage) -> int:
        """Replace the source image and launch one task per target.

        Returns without waiting for any generation. Results of a previous
        batch still in flight are discarded when they arrive.

        Returns:
            Epoch the new batch is tagged with.

        Raises:
            RuntimeError: If called without a running event loop
        """
        loop = asyncio.get_running_loop()
        self._session.source_image = image
        epoch = self._session.store.reset_all(list(self._targets), status=ItemStatus.PENDING)

        for target in self._targets.values():
            self._launch(loop, target, image, epoch)

        logger.info(
            "Started %d variant generations (epoch %d, %s, %d bytes)",
            len(self._targets),
            epoch,
            image.media_type,
            image.size_bytes,
        )
        return epoch

    def retry(self, target_id: str) -> bool:
        """Re-launch a single target under the current epoch.

        Siblings are left untouched. No-op without a source image or for an
        unknown target.

        Returns:
            True if a generation was launched.

        Raises:
            RuntimeError: If called without a running event loop
        """
        loop = asyncio.get_running_loop()
        image = self._session.source_image
        target = self._targets.get(target_id)
        if image is None or target is None:
            logger.debug("Ignoring retry for %s", target_id)
            return False

        self._session.store.reset_one(target_id)
        epoch = self._session.store.epoch
        self._launch(loop, target, image, epoch)
        logger.info("Retrying %s (epoch %d)", target_id, epoch)
        return True

    def reset(self) -> None:
        """Clear the session: new epoch, no source image, every item idle.

        In-flight calls are not aborted; their results are dropped on arrival.
        """
        self._session.source_image = None
        epoch = self._session.store.reset_all(list(self._targets), status=ItemStatus.IDLE)
        logger.info(
            "Session reset (epoch %d, %d invocation(s) still in flight)",
            epoch,
            len(self._in_flight),
        )

    async def wait_settled(self) -> StoreSnapshot:
        """Wait for every launched invocation and apply all settlements."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)
        await self._updates.join()
        return self.snapshot()

    async def aclose(self) -> None:
        """Cancel in-flight invocations and stop the queue consumer."""
        tasks = list(self._in_flight)
        if self._consumer is not None:
            tasks.append(self._consumer)
            self._consumer = None
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task

        # Settlements left behind by the consumer would block a later join()
        while not self._updates.empty():
            self._apply_settlement(self._updates.get_nowait())

    # -------------------------------------------------------------------------
    # Invocation plumbing
    # -------------------------------------------------------------------------

    def _launch(
        self,
        loop: asyncio.AbstractEventLoop,
        target: TargetConfig,
        image: SourceImage,
        epoch: int,
    ) -> None:
        self._ensure_consumer(loop)
        task = loop.create_task(
            self._run_invocation(target, image, epoch),
            name=f"variant:{target.target_id}:{epoch}",
        )
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    def _ensure_consumer(self, loop: asyncio.AbstractEventLoop) -> None:
        if self._consumer is None or self._consumer.done():
            self._consumer = loop.create_task(
                self._consume_updates(), name="variant-updates"
            )

    async def _run_invocation(self, target: TargetConfig, image: SourceImage, epoch: int) -> None:
        """Run one generation and post its settlement. Never raises."""
        try:
            result = await self._generator.generate(image.data, image.media_type, target)
            outcome = success_outcome(result)
            logger.info("Generated variant for %s", target.target_id)
        except GenerationError as e:
            logger.error("Generation failed for %s: %s", target.target_id, e.message)
            outcome = failure_outcome(e.message)
        except Exception as e:
            logger.exception("Unexpected error generating %s", target.target_id)
            outcome = failure_outcome(normalize_error_message(str(e)))

        self._updates.put_nowait(Settlement(target.target_id, epoch, outcome))

    def _apply_settlement(self, settlement: Settlement) -> None:
        try:
            self._session.store.apply_result(
                settlement.target_id, settlement.epoch, settlement.outcome
            )
        finally:
            self._updates.task_done()

    async def _consume_updates(self) -> None:
        while True:
            self._apply_settlement(await self._updates.get())

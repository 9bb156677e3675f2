"""Batch scheduler for Modrinth bulk lookups.

Keys accumulate in a pending queue. The first key to arrive starts a drain
after a short debounce so that a burst of near-simultaneous requests lands in
one batch. A single drain task owns all network traffic: it sends at most
``batch.size`` keys per call, never overlaps two calls, and waits the longer
cooldown between consecutive batches while keys keep arriving.

A failed batch resolves all of its keys to ``None``. Those keys are not put
back in the queue; a later request for the same key starts over.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import structlog

from modmeta.coalescer import RequestCoalescer
from modmeta.config import BatchSettings
from modmeta.errors import ModMetaError

if TYPE_CHECKING:
    from modmeta.models.registry import ProjectRecord
    from modmeta.registries.modrinth import ModrinthClient

log = structlog.get_logger()

OnResolved = Callable[[str, "ProjectRecord"], Awaitable[None]]


class BatchScheduler:
    def __init__(
        self,
        client: ModrinthClient,
        settings: BatchSettings | None = None,
        on_resolved: OnResolved | None = None,
    ) -> None:
        self._client = client
        self._settings = settings or BatchSettings()
        self._on_resolved = on_resolved
        self._requests: RequestCoalescer[ProjectRecord | None] = RequestCoalescer("modrinth_batch")
        # dict as an insertion-ordered set
        self._queue: dict[str, None] = {}
        self._drain_task: asyncio.Task[None] | None = None
        self._in_flight = False

    @property
    def pending(self) -> list[str]:
        """Keys queued for the next batch (not yet sent)."""
        return list(self._queue)

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def is_waiting(self, key: str) -> bool:
        """True while ``key`` is queued or part of the batch in flight."""
        return key in self._requests

    async def request(self, key: str) -> ProjectRecord | None:
        """Queue ``key`` (unless already pending) and wait for its batch."""
        future, owner = self._requests.join(key)
        if owner:
            self._queue[key] = None
            self._schedule_drain()
        return await asyncio.shield(future)

    def _schedule_drain(self) -> None:
        if self._drain_task is not None:
            # The running drain picks the key up on its next cycle.
            return
        self._drain_task = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        try:
            await asyncio.sleep(self._settings.debounce_seconds)
            while self._queue:
                batch = list(self._queue)[: self._settings.size]
                for key in batch:
                    del self._queue[key]
                await self._dispatch(batch)
                if self._queue:
                    await asyncio.sleep(self._settings.cooldown_seconds)
        finally:
            self._drain_task = None
            # Only reached with keys left when the drain itself was cancelled.
            for key in list(self._queue):
                del self._queue[key]
                self._requests.resolve(key, None)

    async def _dispatch(self, batch: list[str]) -> None:
        self._in_flight = True
        log.debug("batch_dispatched", size=len(batch), pending=len(self._queue))
        try:
            records = await self._client.get_projects(batch)
            for key in batch:
                record = records.get(key)
                if record is None:
                    log.debug("batch_miss", key=key)
                elif self._on_resolved is not None:
                    await self._on_resolved(key, record)
                self._requests.resolve(key, record)
        except ModMetaError as exc:
            log.warning("batch_failed", size=len(batch), code=exc.code, error=exc.message)
        except Exception:
            log.warning("batch_failed", size=len(batch), exc_info=True)
        finally:
            self._in_flight = False
            # Anything not resolved above (failure or cancellation) gets a miss.
            for key in batch:
                self._requests.resolve(key, None)

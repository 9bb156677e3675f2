"""Request coalescing: one in-flight operation per key, shared by all callers.

Every key maps to a single ``asyncio.Future`` while pending. Callers that ask
for a key which is already pending await the same future instead of starting
new work. Awaiting tasks are woken in the order they started waiting, so
results fan out in registration order. The future is removed from the registry
before it is completed, so a key is resolved at most once per pending window
and the next request after completion starts fresh work.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

import structlog

log = structlog.get_logger()

T = TypeVar("T")


class RequestCoalescer(Generic[T]):
    def __init__(self, name: str = "coalescer") -> None:
        self._name = name
        self._pending: dict[str, asyncio.Future[T]] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._pending

    def __len__(self) -> int:
        return len(self._pending)

    def join(self, key: str) -> tuple[asyncio.Future[T], bool]:
        """Return the shared future for ``key`` and whether it was just created.

        The caller that receives ``True`` owns the key and must eventually
        call ``resolve`` or ``fail`` for it.
        """
        future = self._pending.get(key)
        if future is not None:
            log.debug("request_coalesced", coalescer=self._name, key=key)
            return future, False
        future = asyncio.get_running_loop().create_future()
        self._pending[key] = future
        return future, True

    def resolve(self, key: str, result: T) -> None:
        future = self._pending.pop(key, None)
        if future is not None and not future.done():
            future.set_result(result)

    def fail(self, key: str, exc: BaseException) -> None:
        future = self._pending.pop(key, None)
        if future is None or future.done():
            return
        if isinstance(exc, asyncio.CancelledError):
            future.cancel()
            return
        future.set_exception(exc)
        # Mark retrieved: the owner re-raises, waiters may be gone.
        future.exception()

    async def run(self, key: str, operation: Callable[[], Awaitable[T]]) -> T:
        """Run ``operation`` unless ``key`` is already pending, then share its result."""
        future, owner = self.join(key)
        if not owner:
            return await asyncio.shield(future)
        try:
            result = await operation()
        except BaseException as exc:
            self.fail(key, exc)
            raise
        self.resolve(key, result)
        return result

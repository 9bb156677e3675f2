"""Integration test fixtures.

Provides a fully wired AppState over in-memory SQLite and a real
httpx.AsyncClient; HTTP is mocked per test with respx.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import aiosqlite
import httpx
import pytest

from modmeta.cache import Cache
from modmeta.state import AppState, build_state

if TYPE_CHECKING:
    from modmeta.config import Settings


@pytest.fixture()
async def app_state(settings: Settings) -> AppState:
    async with aiosqlite.connect(":memory:") as db:
        cache = Cache(db, settings.cache.version_tag)
        await cache.init_db()
        async with httpx.AsyncClient() as client:
            yield build_state(settings, client, cache)

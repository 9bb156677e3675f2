"""Unit-specific fixtures (no I/O beyond in-memory SQLite)."""

from __future__ import annotations

from typing import TYPE_CHECKING

import aiosqlite
import httpx
import pytest

from modmeta.cache import Cache
from modmeta.registries.curseforge import CurseForgeClient
from modmeta.registries.modrinth import ModrinthClient
from modmeta.resolver import Resolver

if TYPE_CHECKING:
    from modmeta.config import Settings


@pytest.fixture()
async def cache():
    """In-memory SQLite cache for unit tests."""
    async with aiosqlite.connect(":memory:") as db:
        c = Cache(db, "TEST_V1")
        await c.init_db()
        yield c


@pytest.fixture()
async def http_client():
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture()
def resolver(cache: Cache, http_client: httpx.AsyncClient, settings: Settings) -> Resolver:
    return Resolver(
        cache,
        ModrinthClient(http_client, settings.modrinth),
        CurseForgeClient(http_client, settings.curseforge),
        settings,
    )

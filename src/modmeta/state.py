"""Engine wiring: one AppState per running catalog."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

import aiosqlite
import httpx
import structlog

from modmeta.cache import Cache
from modmeta.config import Settings
from modmeta.registries import build_http_client
from modmeta.registries.curseforge import CurseForgeClient
from modmeta.registries.modrinth import ModrinthClient
from modmeta.resolver import Resolver

log = structlog.get_logger()


@dataclass
class AppState:
    settings: Settings
    http_client: httpx.AsyncClient
    cache: Cache
    modrinth: ModrinthClient
    curseforge: CurseForgeClient
    resolver: Resolver


def build_state(settings: Settings, http_client: httpx.AsyncClient, cache: Cache) -> AppState:
    modrinth = ModrinthClient(http_client, settings.modrinth)
    curseforge = CurseForgeClient(http_client, settings.curseforge)
    return AppState(
        settings=settings,
        http_client=http_client,
        cache=cache,
        modrinth=modrinth,
        curseforge=curseforge,
        resolver=Resolver(cache, modrinth, curseforge, settings),
    )


@asynccontextmanager
async def open_state(settings: Settings | None = None) -> AsyncIterator[AppState]:
    """Open the cache database and HTTP client, close both on exit."""
    settings = settings or Settings()
    db_path = settings.cache.db_path
    if db_path != ":memory:":
        db_path = str(Path(db_path).expanduser())
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    async with aiosqlite.connect(db_path) as db:
        cache = Cache(db, settings.cache.version_tag)
        await cache.init_db()
        async with build_http_client(settings.http) as client:
            log.debug("state_opened", db_path=db_path, version_tag=settings.cache.version_tag)
            yield build_state(settings, client, cache)

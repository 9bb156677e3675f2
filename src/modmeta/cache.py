"""SQLite metadata cache under a versioned key namespace.

Keys look like ``{version_tag}_{source_tag}_{slug}`` and map to a single URL.
Only values from successful fetches are stored; misses never are. There is no
TTL: bumping the version tag is the only way entries go stale.

All cache operations catch ``aiosqlite.Error`` internally and degrade
gracefully: every write lands in an in-memory mirror first, so a broken or
full database leaves the engine working in-memory for the rest of the
session. Read failures fall back to the mirror (treated as cache miss when it
has nothing). Infrastructure errors never cross the Cache class boundary.
"""

from __future__ import annotations

from datetime import UTC, datetime

import aiosqlite
import structlog

from modmeta.errors import ErrorCode

log = structlog.get_logger()

MODRINTH_ICON = "mr_icon"
MODRINTH_WIKI = "mr_wiki"
CURSEFORGE_ICON = "cf_icon"
CURSEFORGE_WIKI = "cf_wiki"
# Item name -> Modrinth slug accepted by a previous fuzzy search.
MODRINTH_MATCH = "mr_match"

_CREATE_METADATA_TABLE = """
CREATE TABLE IF NOT EXISTS metadata_cache (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    fetched_at TEXT NOT NULL
)
"""

_CREATE_MARKER_TABLE = """
CREATE TABLE IF NOT EXISTS search_markers (
    key        TEXT PRIMARY KEY,
    created_at TEXT NOT NULL
)
"""


def marker_name(name: str) -> str:
    """Normalize an item name for search-marker keys."""
    return " ".join(name.lower().split())


class Cache:
    """SQLite-backed key/value cache scoped to one version tag."""

    def __init__(self, db: aiosqlite.Connection, version_tag: str) -> None:
        self._db = db
        self._version_tag = version_tag
        self._memory: dict[str, str] = {}
        self._markers: set[str] = set()

    @property
    def version_tag(self) -> str:
        return self._version_tag

    def key(self, source: str, slug: str) -> str:
        return f"{self._version_tag}_{source}_{slug}"

    async def init_db(self) -> None:
        """Create tables and set WAL mode. Called once at startup."""
        try:
            await self._db.execute("PRAGMA journal_mode = WAL")
            await self._db.execute(_CREATE_METADATA_TABLE)
            await self._db.execute(_CREATE_MARKER_TABLE)
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("cache_init_error", code=ErrorCode.STORAGE_ERROR, exc_info=True)

    # ------------------------------------------------------------------
    # Metadata values
    # ------------------------------------------------------------------

    async def get(self, source: str, slug: str) -> str | None:
        """Read one value. Returns ``None`` on cache miss or read failure."""
        key = self.key(source, slug)
        if key in self._memory:
            return self._memory[key]
        try:
            cursor = await self._db.execute(
                "SELECT value FROM metadata_cache WHERE key = ?",
                (key,),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error:
            log.warning("cache_read_error", code=ErrorCode.STORAGE_ERROR, key=key, exc_info=True)
            return None
        if row is None:
            return None
        self._memory[key] = row[0]
        return row[0]

    async def set(self, source: str, slug: str, value: str) -> None:
        """Write one value, overwriting any previous one. Non-fatal on failure."""
        key = self.key(source, slug)
        self._memory[key] = value
        try:
            await self._db.execute(
                "INSERT OR REPLACE INTO metadata_cache (key, value, fetched_at) VALUES (?, ?, ?)",
                (key, value, datetime.now(UTC).isoformat()),
            )
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("cache_write_error", code=ErrorCode.STORAGE_ERROR, key=key, exc_info=True)

    # ------------------------------------------------------------------
    # Search markers
    # ------------------------------------------------------------------

    def _marker_key(self, name: str) -> str:
        return f"{self._version_tag}_search_{marker_name(name)}"

    async def has_search_marker(self, name: str) -> bool:
        """True when a fuzzy search already ran for ``name`` in this generation."""
        key = self._marker_key(name)
        if key in self._markers:
            return True
        try:
            cursor = await self._db.execute(
                "SELECT 1 FROM search_markers WHERE key = ?",
                (key,),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error:
            log.warning("cache_read_error", code=ErrorCode.STORAGE_ERROR, key=key, exc_info=True)
            return False
        if row is None:
            return False
        self._markers.add(key)
        return True

    async def set_search_marker(self, name: str) -> None:
        """Record that a fuzzy search ran for ``name``. Non-fatal on failure."""
        key = self._marker_key(name)
        self._markers.add(key)
        try:
            await self._db.execute(
                "INSERT OR IGNORE INTO search_markers (key, created_at) VALUES (?, ?)",
                (key, datetime.now(UTC).isoformat()),
            )
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("cache_write_error", code=ErrorCode.STORAGE_ERROR, key=key, exc_info=True)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def purge_other_versions(self) -> int:
        """Delete rows written under any other version tag. Non-fatal on failure.

        Returns the number of deleted rows (0 on failure).
        """
        prefix = f"{self._version_tag}_"
        try:
            cursor = await self._db.execute(
                "DELETE FROM metadata_cache WHERE substr(key, 1, ?) != ?",
                (len(prefix), prefix),
            )
            values_deleted = cursor.rowcount
            cursor = await self._db.execute(
                "DELETE FROM search_markers WHERE substr(key, 1, ?) != ?",
                (len(prefix), prefix),
            )
            markers_deleted = cursor.rowcount
            await self._db.commit()
        except aiosqlite.Error:
            log.warning("cache_purge_error", code=ErrorCode.STORAGE_ERROR, exc_info=True)
            return 0
        log.info(
            "cache_purge_complete",
            version_tag=self._version_tag,
            values_deleted=values_deleted,
            markers_deleted=markers_deleted,
        )
        return values_deleted + markers_deleted

"""Resolution orchestrator: icon and documentation URL for one catalog item.

Fallback chain, first tier to produce an icon wins:

1. CurseForge, when the item has a CurseForge slug (explicit or parsed from
   its URL). Cached values first, then a single-slug lookup.
2. Modrinth, when the item has a Modrinth slug. Cached values first, then the
   batch scheduler.
3. Modrinth free-text search on the item name, at most once per cache
   generation per name. A hit accepted by the name matcher is fetched in full
   through tier 2.

Every failure along the way (transport error, 404, empty result, rejected
search hits) only advances the chain. Successful lookups are written through
to the cache; misses are never cached.
"""

from __future__ import annotations

from functools import partial
from typing import TYPE_CHECKING

import structlog

from modmeta.cache import (
    CURSEFORGE_ICON,
    CURSEFORGE_WIKI,
    MODRINTH_ICON,
    MODRINTH_MATCH,
    MODRINTH_WIKI,
    marker_name,
)
from modmeta.coalescer import RequestCoalescer
from modmeta.config import Settings
from modmeta.errors import ErrorCode, ModMetaError
from modmeta.matcher import similar
from modmeta.models.catalog import ResolutionState, ResolvedMetadata
from modmeta.models.registry import ProjectRecord
from modmeta.scheduler import BatchScheduler

if TYPE_CHECKING:
    from modmeta.cache import Cache
    from modmeta.models.catalog import CatalogItem
    from modmeta.registries.curseforge import CurseForgeClient
    from modmeta.registries.modrinth import ModrinthClient

log = structlog.get_logger()


def item_key(item: CatalogItem) -> str:
    """Identity of an item for state tracking and coalescing."""
    return "|".join(
        [item.name, item.modrinth_slug or "", item.curseforge_slug or "", item.wiki or ""]
    )


class Resolver:
    """Engine context owning every queue, registry and in-flight table.

    Instances share nothing, so tests (or several catalogs) can run side by
    side without interfering.
    """

    def __init__(
        self,
        cache: Cache,
        modrinth: ModrinthClient,
        curseforge: CurseForgeClient,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._cache = cache
        self._modrinth = modrinth
        self._curseforge = curseforge
        self.scheduler = BatchScheduler(
            modrinth, self._settings.batch, on_resolved=self._store_modrinth
        )
        self._curseforge_requests: RequestCoalescer[ProjectRecord | None] = RequestCoalescer(
            "curseforge"
        )
        self._search_requests: RequestCoalescer[str | None] = RequestCoalescer("modrinth_search")
        self._item_requests: RequestCoalescer[ResolvedMetadata] = RequestCoalescer("item")
        self._states: dict[str, ResolutionState] = {}

    def state_of(self, item: CatalogItem) -> ResolutionState:
        if item.icon:
            return ResolutionState.RESOLVED
        return self._states.get(item_key(item), ResolutionState.UNSTARTED)

    def _transition(self, item: CatalogItem, state: ResolutionState) -> None:
        key = item_key(item)
        previous = self._states.get(key, ResolutionState.UNSTARTED)
        self._states[key] = state
        log.debug("resolution_state", item=item.name, previous=previous, state=state)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def cached(self, item: CatalogItem) -> ResolvedMetadata:
        """Best answer available without touching the network."""
        if item.icon:
            return ResolvedMetadata(
                icon=item.icon, doc_url=item.wiki, state=ResolutionState.RESOLVED
            )

        candidates: list[tuple[str, str, str]] = []
        if item.curseforge_slug:
            candidates.append((CURSEFORGE_ICON, CURSEFORGE_WIKI, item.curseforge_slug))
        if item.modrinth_slug:
            candidates.append((MODRINTH_ICON, MODRINTH_WIKI, item.modrinth_slug))
        matched = await self._cache.get(MODRINTH_MATCH, marker_name(item.name))
        if matched:
            candidates.append((MODRINTH_ICON, MODRINTH_WIKI, matched))

        doc_url = item.wiki
        for icon_source, wiki_source, slug in candidates:
            icon = await self._cache.get(icon_source, slug)
            wiki = await self._cache.get(wiki_source, slug)
            if icon:
                self._transition(item, ResolutionState.RESOLVED)
                return ResolvedMetadata(
                    icon=icon, doc_url=wiki or item.wiki, state=ResolutionState.RESOLVED
                )
            if wiki and doc_url is None:
                doc_url = wiki
        return ResolvedMetadata(doc_url=doc_url, state=self.state_of(item))

    async def resolve(self, item: CatalogItem) -> ResolvedMetadata:
        """Run the fallback chain for ``item``. Never raises for lookup failures.

        Concurrent calls for the same item share a single run.
        """
        if item.icon:
            self._transition(item, ResolutionState.RESOLVED)
            return ResolvedMetadata(
                icon=item.icon, doc_url=item.wiki, state=ResolutionState.RESOLVED
            )
        return await self._item_requests.run(item_key(item), partial(self._resolve, item))

    # ------------------------------------------------------------------
    # Fallback chain
    # ------------------------------------------------------------------

    async def _resolve(self, item: CatalogItem) -> ResolvedMetadata:
        meta = await self.cached(item)
        if meta.icon:
            return self._finish(item, meta, ResolutionState.RESOLVED)

        modrinth_slug = item.modrinth_slug
        curseforge_slug = item.curseforge_slug

        if curseforge_slug:
            self._transition(item, ResolutionState.AWAITING_SECONDARY)
            meta = self._adopt(meta, await self._lookup_curseforge(curseforge_slug))
            if meta.icon:
                return self._finish(item, meta, ResolutionState.RESOLVED)

        if modrinth_slug:
            self._transition(item, ResolutionState.AWAITING_PRIMARY)
            meta = self._adopt(meta, await self._lookup_modrinth(modrinth_slug))
            if meta.icon:
                return self._finish(item, meta, ResolutionState.RESOLVED)

        if not await self._cache.has_search_marker(item.name):
            self._transition(item, ResolutionState.AWAITING_SEARCH)
            await self._cache.set_search_marker(item.name)
            matched = await self._search_requests.run(
                marker_name(item.name), partial(self._search, item.name)
            )
            if matched and matched != modrinth_slug:
                self._transition(item, ResolutionState.AWAITING_PRIMARY)
                meta = self._adopt(meta, await self._lookup_modrinth(matched))
                if meta.icon:
                    await self._cache.set(MODRINTH_MATCH, marker_name(item.name), matched)
                    return self._finish(item, meta, ResolutionState.RESOLVED)

        return self._finish(item, meta, ResolutionState.EXHAUSTED_NO_ICON)

    def _adopt(self, meta: ResolvedMetadata, record: ProjectRecord | None) -> ResolvedMetadata:
        if record is None:
            return meta
        return ResolvedMetadata(
            icon=record.icon or meta.icon,
            doc_url=record.doc_url or meta.doc_url,
            state=meta.state,
        )

    def _finish(
        self, item: CatalogItem, meta: ResolvedMetadata, state: ResolutionState
    ) -> ResolvedMetadata:
        self._transition(item, state)
        if state is ResolutionState.EXHAUSTED_NO_ICON:
            log.info("resolution_exhausted", item=item.name)
        return meta.model_copy(update={"state": state})

    # ------------------------------------------------------------------
    # Tier lookups
    # ------------------------------------------------------------------

    async def _lookup_curseforge(self, slug: str) -> ProjectRecord | None:
        icon = await self._cache.get(CURSEFORGE_ICON, slug)
        if icon:
            return ProjectRecord(icon=icon, doc_url=await self._cache.get(CURSEFORGE_WIKI, slug))
        return await self._curseforge_requests.run(slug, partial(self._fetch_curseforge, slug))

    async def _fetch_curseforge(self, slug: str) -> ProjectRecord | None:
        try:
            record = await self._curseforge.lookup(slug)
        except ModMetaError as exc:
            log.debug("curseforge_miss", slug=slug, code=exc.code)
            return None
        if record.icon:
            await self._cache.set(CURSEFORGE_ICON, slug, record.icon)
        if record.doc_url:
            await self._cache.set(CURSEFORGE_WIKI, slug, record.doc_url)
        return record

    async def _lookup_modrinth(self, slug: str) -> ProjectRecord | None:
        icon = await self._cache.get(MODRINTH_ICON, slug)
        if icon:
            return ProjectRecord(icon=icon, doc_url=await self._cache.get(MODRINTH_WIKI, slug))
        return await self.scheduler.request(slug)

    async def _store_modrinth(self, slug: str, record: ProjectRecord) -> None:
        if record.icon:
            await self._cache.set(MODRINTH_ICON, slug, record.icon)
        if record.doc_url:
            await self._cache.set(MODRINTH_WIKI, slug, record.doc_url)

    async def _search(self, name: str) -> str | None:
        """Return the slug of the first search hit the matcher accepts.

        The narrowed (faceted) query goes first; the unfiltered query only
        runs when the narrowed one produced no acceptable hit.
        """
        facet_sets: list[list[list[str]] | None] = [None]
        if self._settings.modrinth.search_facets:
            facet_sets.insert(0, self._settings.modrinth.search_facets)

        min_ratio = self._settings.matcher.min_ratio
        rejected = 0
        for facets in facet_sets:
            try:
                hits = await self._modrinth.search(name, facets=facets)
            except ModMetaError as exc:
                log.debug("search_miss", name=name, narrowed=facets is not None, code=exc.code)
                continue
            for hit in hits:
                if similar(name, hit.title, min_ratio) or similar(name, hit.slug, min_ratio):
                    log.info("search_matched", name=name, slug=hit.slug, title=hit.title)
                    return hit.slug
            rejected += len(hits)

        if rejected:
            log.info("search_rejected", name=name, code=ErrorCode.AMBIGUOUS_MATCH, hits=rejected)
        return None

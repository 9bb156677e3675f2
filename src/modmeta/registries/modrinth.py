"""Modrinth client: bulk project lookup and free-text search."""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from modmeta.config import ModrinthSettings
from modmeta.errors import definitive_miss, transport_error
from modmeta.models.registry import ProjectRecord, SearchHit

log = structlog.get_logger()

MAX_BATCH_SIZE = 10


class ModrinthClient:
    def __init__(self, client: httpx.AsyncClient, settings: ModrinthSettings | None = None) -> None:
        self._client = client
        self._settings = settings or ModrinthSettings()

    def normalize(self, project: dict[str, Any]) -> ProjectRecord:
        """Map a raw project payload to icon + documentation URL.

        Documentation prefers the wiki, then the source repository, then the
        project page on modrinth.com.
        """
        slug = project.get("slug") or project.get("id") or ""
        doc_url = (
            project.get("wiki_url")
            or project.get("source_url")
            or self._settings.project_url_template.format(slug=slug)
        )
        return ProjectRecord(icon=project.get("icon_url") or None, doc_url=doc_url)

    async def _get_json(self, path: str, params: dict[str, str]) -> Any:
        url = f"{self._settings.base_url.rstrip('/')}{path}"
        try:
            response = await self._client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise transport_error(f"Modrinth request to {path} failed: {exc}") from exc
        if not response.is_success:
            raise transport_error(f"Modrinth returned HTTP {response.status_code} for {path}")
        try:
            return response.json()
        except ValueError as exc:
            raise transport_error(f"Modrinth returned malformed JSON for {path}") from exc

    async def get_projects(self, ids: Sequence[str]) -> dict[str, ProjectRecord]:
        """Fetch up to ``MAX_BATCH_SIZE`` projects by id or slug in one call.

        The result is keyed by both slug and project id. Ids missing from the
        response are simply absent from the mapping.

        Raises:
            ValueError: More than ``MAX_BATCH_SIZE`` ids were given.
            ModMetaError: TRANSPORT_ERROR on network failure, non-2xx or bad JSON.
        """
        if len(ids) > MAX_BATCH_SIZE:
            raise ValueError(f"at most {MAX_BATCH_SIZE} ids per batch, got {len(ids)}")
        if not ids:
            return {}

        payload = await self._get_json(
            "/projects", {"ids": json.dumps(list(ids), separators=(",", ":"))}
        )
        if not isinstance(payload, list):
            raise transport_error("Modrinth /projects did not return a list")

        results: dict[str, ProjectRecord] = {}
        for project in payload:
            if not isinstance(project, dict):
                continue
            try:
                record = self.normalize(project)
            except ValidationError:
                log.warning("modrinth_project_malformed", slug=project.get("slug"), exc_info=True)
                continue
            for key in (project.get("slug"), project.get("id")):
                if isinstance(key, str) and key:
                    results[key] = record
        log.debug("modrinth_projects_fetched", requested=len(ids), returned=len(payload))
        return results

    async def search(
        self,
        query: str,
        limit: int | None = None,
        facets: list[list[str]] | None = None,
    ) -> list[SearchHit]:
        """Free-text project search, best match first.

        Raises:
            ModMetaError: TRANSPORT_ERROR on failure, DEFINITIVE_MISS on no hits.
        """
        params = {"query": query, "limit": str(limit or self._settings.search_limit)}
        if facets:
            params["facets"] = json.dumps(facets, separators=(",", ":"))

        payload = await self._get_json("/search", params)
        raw_hits = payload.get("hits") if isinstance(payload, dict) else None
        if not isinstance(raw_hits, list):
            raise transport_error("Modrinth /search returned no hits list")

        hits: list[SearchHit] = []
        for hit in raw_hits:
            if not isinstance(hit, dict) or not hit.get("slug"):
                continue
            try:
                hits.append(
                    SearchHit(
                        slug=hit["slug"],
                        title=hit.get("title") or hit["slug"],
                        project_id=hit.get("project_id"),
                    )
                )
            except ValidationError:
                log.warning("modrinth_hit_malformed", query=query, exc_info=True)

        if not hits:
            raise definitive_miss(f"Modrinth search found nothing for {query!r}")
        return hits

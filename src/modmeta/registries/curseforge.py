"""CurseForge client: one project per request, looked up by slug."""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from modmeta.config import CurseForgeSettings
from modmeta.errors import definitive_miss, transport_error
from modmeta.models.registry import ProjectRecord

log = structlog.get_logger()

# The registry has nothing usable for the slug; do not retry it here.
ABSENT_STATUSES = frozenset({403, 404, 429})


def _first_str(*values: Any) -> str | None:
    for value in values:
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class CurseForgeClient:
    def __init__(
        self, client: httpx.AsyncClient, settings: CurseForgeSettings | None = None
    ) -> None:
        self._client = client
        self._settings = settings or CurseForgeSettings()

    def normalize(self, slug: str, payload: dict[str, Any]) -> ProjectRecord:
        logo = payload.get("logo")
        urls = payload.get("urls") if isinstance(payload.get("urls"), dict) else {}
        icon = _first_str(
            payload.get("thumbnail"),
            logo.get("url") if isinstance(logo, dict) else logo,
        )
        doc_url = _first_str(
            urls.get("wiki"),
            urls.get("source"),
            urls.get("curseforge"),
            urls.get("project"),
        ) or self._settings.project_url_template.format(slug=slug)
        return ProjectRecord(icon=icon, doc_url=doc_url)

    async def lookup(self, slug: str) -> ProjectRecord:
        """Fetch a single project.

        Raises:
            ModMetaError: DEFINITIVE_MISS on 403/404/429, TRANSPORT_ERROR on
                any other failure.
        """
        url = f"{self._settings.base_url.rstrip('/')}/{slug}"
        try:
            response = await self._client.get(url)
        except httpx.HTTPError as exc:
            raise transport_error(f"CurseForge request for {slug!r} failed: {exc}") from exc

        if response.status_code in ABSENT_STATUSES:
            raise definitive_miss(f"CurseForge returned HTTP {response.status_code} for {slug!r}")
        if not response.is_success:
            raise transport_error(f"CurseForge returned HTTP {response.status_code} for {slug!r}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise transport_error(f"CurseForge returned malformed JSON for {slug!r}") from exc
        if not isinstance(payload, dict):
            raise transport_error(f"CurseForge payload for {slug!r} is not an object")

        # Some mirrors wrap the project in a "data" envelope.
        if isinstance(payload.get("data"), dict):
            payload = payload["data"]
        try:
            record = self.normalize(slug, payload)
        except ValidationError as exc:
            raise transport_error(f"CurseForge payload for {slug!r} is malformed") from exc
        log.debug("curseforge_project_fetched", slug=slug, has_icon=record.icon is not None)
        return record

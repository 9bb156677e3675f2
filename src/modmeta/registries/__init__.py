"""HTTP clients for the two mod registries."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from modmeta.config import HttpSettings


def build_http_client(settings: HttpSettings | None = None) -> httpx.AsyncClient:
    """Shared AsyncClient for both registries.

    Timeouts are left to httpx; the engine itself never cancels a lookup.
    """
    if settings is None:
        from modmeta.config import HttpSettings

        settings = HttpSettings()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.timeout_seconds),
        headers={"User-Agent": settings.user_agent, "Accept": "application/json"},
        follow_redirects=True,
    )

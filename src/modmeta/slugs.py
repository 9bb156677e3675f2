"""Slug inference from project page URLs."""

from __future__ import annotations

import re

_CURSEFORGE_URL = re.compile(
    r"^https?://(?:www\.)?curseforge\.com/minecraft/mc-mods/(?P<slug>[A-Za-z0-9_-]+)/?",
)
_MODRINTH_URL = re.compile(
    r"^https?://(?:www\.)?modrinth\.com/"
    r"(?:mod|plugin|datapack|resourcepack|shader|modpack)/(?P<slug>[A-Za-z0-9_.-]+)/?",
)


def curseforge_slug_from_url(url: str | None) -> str | None:
    """``https://www.curseforge.com/minecraft/mc-mods/jei`` → ``"jei"``."""
    if not url:
        return None
    match = _CURSEFORGE_URL.match(url.strip())
    return match.group("slug") if match else None


def modrinth_slug_from_url(url: str | None) -> str | None:
    """``https://modrinth.com/mod/lithium`` → ``"lithium"``."""
    if not url:
        return None
    match = _MODRINTH_URL.match(url.strip())
    return match.group("slug") if match else None

"""Shared fixtures: settings tuned for fast tests and sample catalog items."""

from __future__ import annotations

import pytest
import structlog

from modmeta.config import Settings
from modmeta.models.catalog import CatalogItem

MODRINTH = "https://api.modrinth.com/v2"
CURSEFORGE = "https://api.cfwidget.com/minecraft/mc-mods"


@pytest.fixture(autouse=True)
def _reset_structlog():
    """CLI tests point structlog at a short-lived stream; undo that afterwards."""
    yield
    structlog.reset_defaults()


@pytest.fixture()
def settings() -> Settings:
    """No debounce or cooldown so batches go out on the next loop iteration."""
    return Settings(
        batch={"debounce_seconds": 0.0, "cooldown_seconds": 0.0},
        cache={"db_path": ":memory:", "version_tag": "TEST_V1"},
    )


@pytest.fixture()
def sample_items() -> list[CatalogItem]:
    return [
        CatalogItem(name="Lithium", slug="lithium", category="optimization"),
        CatalogItem(name="Sodium", slug="sodium", category="optimization"),
        CatalogItem(name="JustEnoughItems", curse_slug="jei", category="utility"),
        CatalogItem(
            name="Custom Pack",
            icon="https://example.com/custom.png",
            wiki="https://example.com/custom",
        ),
    ]

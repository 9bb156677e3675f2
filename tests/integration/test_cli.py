"""Tests for the modmeta command line."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
import respx
from typer.testing import CliRunner

from modmeta.cli import app

MODRINTH = "https://api.modrinth.com/v2"
CURSEFORGE = "https://api.cfwidget.com/minecraft/mc-mods"

LITHIUM = {
    "id": "gvQqBUqZ",
    "slug": "lithium",
    "title": "Lithium",
    "icon_url": "https://cdn.modrinth.com/data/gvQqBUqZ/icon.png",
}

CATALOG = """\
items:
  - name: Lithium
    slug: lithium
  - name: Custom Pack
    presetIcon: https://example.com/custom.png
    directUrl: https://example.com/custom
"""


@pytest.fixture(autouse=True)
def _quiet_fast_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("MODMETA__LOGGING__LEVEL", "ERROR")
    monkeypatch.setenv("MODMETA__BATCH__DEBOUNCE_SECONDS", "0")
    monkeypatch.setenv("MODMETA__BATCH__COOLDOWN_SECONDS", "0")


def _write_catalog(root: Path) -> Path:
    path = root / "mods.yaml"
    path.write_text(CATALOG, encoding="utf-8")
    return path


def test_resolve_prints_json(tmp_path: Path) -> None:
    catalog = _write_catalog(tmp_path)
    runner = CliRunner()
    with respx.mock:
        route = respx.get(f"{MODRINTH}/projects").mock(
            return_value=httpx.Response(200, json=[LITHIUM])
        )
        result = runner.invoke(
            app, ["resolve", str(catalog), "--db-path", str(tmp_path / "cache.db")]
        )

    assert result.exit_code == 0, result.output
    assert route.call_count == 1
    assert json.loads(result.stdout) == [
        {
            "name": "Lithium",
            "icon": "https://cdn.modrinth.com/data/gvQqBUqZ/icon.png",
            "doc_url": "https://modrinth.com/mod/lithium",
            "state": "resolved",
        },
        {
            "name": "Custom Pack",
            "icon": "https://example.com/custom.png",
            "doc_url": "https://example.com/custom",
            "state": "resolved",
        },
    ]


def test_second_run_is_served_from_cache(tmp_path: Path) -> None:
    catalog = _write_catalog(tmp_path)
    db_path = str(tmp_path / "cache.db")
    runner = CliRunner()
    with respx.mock:
        respx.get(f"{MODRINTH}/projects").mock(return_value=httpx.Response(200, json=[LITHIUM]))
        first = runner.invoke(app, ["resolve", str(catalog), "--db-path", db_path])

    with respx.mock(assert_all_called=False) as router:
        second = runner.invoke(app, ["resolve", str(catalog), "--db-path", db_path])

    assert first.exit_code == 0, first.output
    assert second.exit_code == 0, second.output
    assert router.calls.call_count == 0
    assert json.loads(second.stdout)[0]["icon"] == LITHIUM["icon_url"]


def test_invalid_catalog_exits_with_code_2(tmp_path: Path) -> None:
    catalog = tmp_path / "broken.yaml"
    catalog.write_text("items:\n  - slug: no-name\n", encoding="utf-8")
    runner = CliRunner()

    result = runner.invoke(
        app, ["resolve", str(catalog), "--db-path", str(tmp_path / "cache.db")]
    )

    assert result.exit_code == 2
    assert "error:" in result.output


def test_purge_removes_old_versions(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    catalog = _write_catalog(tmp_path)
    db_path = str(tmp_path / "cache.db")
    runner = CliRunner()

    monkeypatch.setenv("MODMETA__CACHE__VERSION_TAG", "OLD")
    with respx.mock:
        respx.get(f"{MODRINTH}/projects").mock(return_value=httpx.Response(200, json=[LITHIUM]))
        runner.invoke(app, ["resolve", str(catalog), "--db-path", db_path])

    monkeypatch.setenv("MODMETA__CACHE__VERSION_TAG", "NEW")
    result = runner.invoke(app, ["purge", "--db-path", db_path])

    assert result.exit_code == 0, result.output
    # Icon and project-page link for lithium.
    assert "deleted 2 rows" in result.stdout

"""Command line entry point: resolve a catalog file, maintain the cache."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Annotated, Any

import typer

from modmeta.catalog import load_catalog
from modmeta.config import Settings
from modmeta.errors import ModMetaError
from modmeta.log_config import setup_logging
from modmeta.state import open_state
from modmeta.tracker import TrackedItem

app = typer.Typer(
    name="modmeta",
    help="Resolve mod icons and documentation links from Modrinth and CurseForge.",
    no_args_is_help=True,
)

EXIT_INVALID_CATALOG = 2


async def resolve_catalog(path: Path, settings: Settings) -> list[dict[str, Any]]:
    items = load_catalog(path)
    async with open_state(settings) as state:
        tracked = [TrackedItem(state.resolver, item) for item in items]
        for entry in tracked:
            await entry.prime()
        # Everything is "visible" at once on the command line.
        await asyncio.gather(*(entry.visible() for entry in tracked))
        return [
            {
                "name": entry.item.name,
                "icon": entry.view.icon,
                "doc_url": entry.view.doc_url,
                "state": str(state.resolver.state_of(entry.item)),
            }
            for entry in tracked
        ]


async def purge_cache(settings: Settings) -> int:
    async with open_state(settings) as state:
        return await state.cache.purge_other_versions()


@app.command()
def resolve(
    catalog: Annotated[Path, typer.Argument(help="Catalog file (.json, .yaml or .yml).")],
    db_path: Annotated[
        str | None, typer.Option("--db-path", help="Override the cache database path.")
    ] = None,
) -> None:
    """Resolve every catalog item and print the results as JSON."""
    settings = Settings()
    if db_path is not None:
        settings = settings.model_copy(
            update={"cache": settings.cache.model_copy(update={"db_path": db_path})}
        )
    setup_logging(settings.logging)
    try:
        results = asyncio.run(resolve_catalog(catalog, settings))
    except ModMetaError as exc:
        typer.echo(f"error: {exc.message}", err=True)
        raise typer.Exit(code=EXIT_INVALID_CATALOG) from exc
    typer.echo(json.dumps(results, indent=2))


@app.command()
def purge(
    db_path: Annotated[
        str | None, typer.Option("--db-path", help="Override the cache database path.")
    ] = None,
) -> None:
    """Delete cache rows written under older version tags."""
    settings = Settings()
    if db_path is not None:
        settings = settings.model_copy(
            update={"cache": settings.cache.model_copy(update={"db_path": db_path})}
        )
    setup_logging(settings.logging)
    deleted = asyncio.run(purge_cache(settings))
    typer.echo(f"deleted {deleted} rows")

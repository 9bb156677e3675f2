"""Catalog loading from YAML or JSON files."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import TypeAdapter, ValidationError

from modmeta.errors import ErrorCode, ModMetaError
from modmeta.models.catalog import CatalogItem

log = structlog.get_logger()

_ITEMS = TypeAdapter(list[CatalogItem])


def parse_catalog(raw: Any) -> list[CatalogItem]:
    """Validate decoded catalog data.

    Accepts either a bare list of items or a mapping with an ``items`` (or
    ``mods``) list.
    """
    if isinstance(raw, dict):
        raw = raw.get("items", raw.get("mods"))
    if not isinstance(raw, list):
        raise ModMetaError(ErrorCode.INVALID_CATALOG, "catalog must be a list of items")
    try:
        return _ITEMS.validate_python(raw)
    except ValidationError as exc:
        raise ModMetaError(ErrorCode.INVALID_CATALOG, str(exc)) from exc


def load_catalog(path: Path) -> list[CatalogItem]:
    """Read a ``.json``, ``.yaml`` or ``.yml`` catalog file."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ModMetaError(ErrorCode.INVALID_CATALOG, f"cannot read {path}: {exc}") from exc

    try:
        raw = json.loads(text) if path.suffix == ".json" else yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise ModMetaError(ErrorCode.INVALID_CATALOG, f"cannot parse {path}: {exc}") from exc

    items = parse_catalog(raw)
    log.info("catalog_loaded", path=str(path), items=len(items))
    return items

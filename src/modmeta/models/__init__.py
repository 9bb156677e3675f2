from __future__ import annotations

from modmeta.models.catalog import CatalogItem, ItemView, ResolutionState, ResolvedMetadata
from modmeta.models.registry import ProjectRecord, SearchHit

__all__ = [
    # catalog
    "CatalogItem",
    "ItemView",
    "ResolutionState",
    "ResolvedMetadata",
    # registry
    "ProjectRecord",
    "SearchHit",
]

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ProjectRecord(BaseModel):
    """Normalized project metadata from either registry.

    ``icon`` may be absent even for a project that exists; callers treat a
    record without an icon as "documentation only".
    """

    model_config = ConfigDict(frozen=True)

    icon: str | None = None
    doc_url: str | None = None


class SearchHit(BaseModel):
    """Single free-text search result from Modrinth."""

    model_config = ConfigDict(frozen=True)

    slug: str
    title: str
    project_id: str | None = None

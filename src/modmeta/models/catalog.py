from __future__ import annotations

from enum import StrEnum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from modmeta.slugs import curseforge_slug_from_url, modrinth_slug_from_url


class CatalogItem(BaseModel):
    """Single entry of the static mod catalog. Read-only to the engine."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str
    slug: str | None = Field(
        default=None, validation_alias=AliasChoices("slug", "primary_slug", "primarySlug")
    )
    curse_slug: str | None = Field(
        default=None,
        validation_alias=AliasChoices("curse_slug", "curseSlug", "secondary_slug", "secondarySlug"),
    )
    wiki: str | None = Field(
        default=None, validation_alias=AliasChoices("wiki", "direct_url", "directUrl")
    )
    icon: str | None = Field(
        default=None, validation_alias=AliasChoices("icon", "preset_icon", "presetIcon")
    )
    category: str = "misc"
    description: str = ""
    is_library: bool = Field(
        default=False, validation_alias=AliasChoices("is_library", "isLibrary")
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v

    @field_validator("slug", "curse_slug", "wiki", "icon")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @property
    def modrinth_slug(self) -> str | None:
        return self.slug or modrinth_slug_from_url(self.wiki)

    @property
    def curseforge_slug(self) -> str | None:
        return self.curse_slug or curseforge_slug_from_url(self.wiki)


class ResolutionState(StrEnum):
    UNSTARTED = "unstarted"
    AWAITING_PRIMARY = "awaiting_primary"
    AWAITING_SECONDARY = "awaiting_secondary"
    AWAITING_SEARCH = "awaiting_search"
    RESOLVED = "resolved"
    EXHAUSTED_NO_ICON = "exhausted_no_icon"


class ResolvedMetadata(BaseModel):
    """Current best-known icon and documentation link for one item."""

    icon: str | None = None
    doc_url: str | None = None
    state: ResolutionState = ResolutionState.UNSTARTED


class ItemView(BaseModel):
    """Projection handed to the presentation layer."""

    model_config = ConfigDict(frozen=True)

    icon: str | None
    doc_url: str | None
    loading: bool = False

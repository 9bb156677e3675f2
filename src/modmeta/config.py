"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Constructor arguments
  2. Environment variables  (MODMETA__BATCH__SIZE=5)
  3. modmeta.yaml           (searched in cwd, then the platform config dir)
  4. Hardcoded defaults

The config file is optional; every field has a default.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from modmeta import __version__

_DEFAULT_CONFIG_DIR = platformdirs.user_config_dir("modmeta")
_DEFAULT_DATA_DIR = platformdirs.user_data_dir("modmeta")
_DEFAULT_DB_PATH = str(Path(_DEFAULT_DATA_DIR) / "cache.db")


def _find_config_file() -> str | None:
    """Return the path of the first modmeta.yaml found, or None."""
    candidates = [
        Path("modmeta.yaml"),
        Path(_DEFAULT_CONFIG_DIR) / "modmeta.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


class ModrinthSettings(_Section):
    base_url: str = "https://api.modrinth.com/v2"
    project_url_template: str = "https://modrinth.com/mod/{slug}"
    # Facets for the narrowed search; the unfiltered retry sends none.
    search_facets: list[list[str]] = [["project_type:mod"]]
    search_limit: int = Field(default=5, ge=1, le=100)


class CurseForgeSettings(_Section):
    base_url: str = "https://api.cfwidget.com/minecraft/mc-mods"
    project_url_template: str = "https://www.curseforge.com/minecraft/mc-mods/{slug}"


class BatchSettings(_Section):
    size: int = Field(default=10, ge=1, le=10)
    debounce_seconds: float = Field(default=0.1, ge=0)
    cooldown_seconds: float = Field(default=1.0, ge=0)

    @model_validator(mode="after")
    def _cooldown_not_shorter_than_debounce(self) -> BatchSettings:
        if self.cooldown_seconds < self.debounce_seconds:
            raise ValueError("cooldown_seconds must be >= debounce_seconds")
        return self


class HttpSettings(_Section):
    timeout_seconds: float = Field(default=10.0, gt=0)
    user_agent: str = f"modmeta/{__version__}"


class CacheSettings(_Section):
    db_path: str = _DEFAULT_DB_PATH
    # Changing the tag invalidates every stored entry at once.
    version_tag: str = "MNF_MOD_CACHE_V22"


class MatcherSettings(_Section):
    min_ratio: float = Field(default=0.6, gt=0, le=1)


class LoggingSettings(_Section):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: MODMETA__CACHE__DB_PATH=/tmp/x.db
        env_prefix="MODMETA__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    modrinth: ModrinthSettings = ModrinthSettings()
    curseforge: CurseForgeSettings = CurseForgeSettings()
    batch: BatchSettings = BatchSettings()
    http: HttpSettings = HttpSettings()
    cache: CacheSettings = CacheSettings()
    matcher: MatcherSettings = MatcherSettings()
    logging: LoggingSettings = LoggingSettings()

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )

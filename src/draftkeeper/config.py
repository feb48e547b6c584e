"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (DRAFTKEEPER__DRAFTS__DELAY_MS=500)
  2. draftkeeper.yaml       (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional — all fields have sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("draftkeeper")
_DEFAULT_DB_PATH = str(Path(_DEFAULT_DATA_DIR) / "drafts.db")


def _find_config_file() -> str | None:
    """Return the path of the first draftkeeper.yaml found, or None."""
    candidates = [
        Path("draftkeeper.yaml"),
        Path(platformdirs.user_config_dir("draftkeeper")) / "draftkeeper.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class DraftSettings(BaseModel):
    db_path: str = _DEFAULT_DB_PATH
    delay_ms: int = Field(default=1000, ge=0)
    # Added to delay_ms before empty values are allowed to delete a stored draft
    guard_margin_ms: int = Field(default=300, ge=0)
    poll_interval_ms: int | None = Field(default=None, gt=0)


class ApiSettings(BaseModel):
    base_url: str = "http://localhost:3000"
    timeout_seconds: float = Field(default=10.0, gt=0)


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: DRAFTKEEPER__API__BASE_URL=...
        env_prefix="DRAFTKEEPER__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    drafts: DraftSettings = DraftSettings()
    api: ApiSettings = ApiSettings()
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

"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (RECIPESCOUT__CACHE__TTL_SECONDS=600)
  2. recipescout.yaml       (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional; all fields have sensible defaults.
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

# Target sites reject or serve different markup to non-browser clients.
DEFAULT_BROWSER_HEADERS: dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


def _find_config_file() -> str | None:
    """Return the path of the first recipescout.yaml found, or None."""
    candidates = [
        Path("recipescout.yaml"),
        Path(platformdirs.user_config_dir("recipescout")) / "recipescout.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3000
    cors_allow_origins: list[str] = ["*"]
    static_dir: str | None = None


class CacheSettings(BaseModel):
    ttl_seconds: int = Field(default=300, gt=0)
    sweep_interval_seconds: int | None = Field(default=None, gt=0)

    @property
    def effective_sweep_interval(self) -> int:
        """Sweep interval, defaulting to the TTL itself."""
        return self.sweep_interval_seconds or self.ttl_seconds


class FetcherSettings(BaseModel):
    timeout_seconds: float = Field(default=5.0, gt=0)
    max_redirects: int = Field(default=3, ge=0)
    headers: dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_BROWSER_HEADERS))


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: RECIPESCOUT__SERVER__PORT=9090
        env_prefix="RECIPESCOUT__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    cache: CacheSettings = CacheSettings()
    fetcher: FetcherSettings = FetcherSettings()
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

"""Configuration: YAML defaults with environment overrides."""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from councildata.core.errors import ConfigError

DEFAULT_SETTINGS_PATH = Path(__file__).parent.parent / "config" / "settings.yaml"


class Config:
    _config = None

    @classmethod
    def load(cls, path=None):
        if cls._config is None:
            with open(path or DEFAULT_SETTINGS_PATH, "r", encoding="utf-8") as f:
                cls._config = yaml.safe_load(f) or {}
        return cls._config

    @classmethod
    def reset(cls):
        cls._config = None

    @classmethod
    def get(cls, *keys, default=None):
        cfg = cls.load()
        for key in keys:
            if not isinstance(cfg, dict):
                return default
            cfg = cfg.get(key)
        return cfg if cfg is not None else default


def _env_number(var_name: str, fallback: Any, cast, *, section: str) -> Any:
    raw = os.getenv(var_name)
    if raw is None or raw.strip() == "":
        return cast(fallback)
    try:
        value = cast(raw)
    except ValueError as exc:
        raise ConfigError(f"{var_name} must be numeric, got {raw!r}", key=var_name, section=section) from exc
    if value <= 0:
        raise ConfigError(f"{var_name} must be positive, got {raw!r}", key=var_name, section=section)
    return value


def _env_flag(var_name: str, fallback: bool) -> bool:
    raw = os.getenv(var_name)
    if raw is None:
        return bool(fallback)
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    """Runtime-tunable settings for the cache, sources and HTTP client."""

    def __init__(self) -> None:
        self.storage_dir: Path = Path(
            os.getenv("COUNCILDATA_CACHE_DIR") or Config.get("cache", "storage_dir", default="./data/cache")
        )
        self.storage_key: str = Config.get("cache", "storage_key", default="@data_cache")
        self.stale_minutes: float = _env_number(
            "COUNCILDATA_STALE_MINUTES", Config.get("cache", "stale_minutes", default=60), float, section="cache"
        )
        self.max_age_hours: float = _env_number(
            "COUNCILDATA_MAX_AGE_HOURS", Config.get("cache", "max_age_hours", default=24), float, section="cache"
        )
        self.refresh_minutes: float = _env_number(
            "COUNCILDATA_REFRESH_MINUTES", Config.get("cache", "refresh_minutes", default=60), float, section="cache"
        )
        self.default_council: str = os.getenv("COUNCILDATA_DEFAULT_COUNCIL") or Config.get(
            "cache", "default_council", default="Camden"
        )

        self.max_reports: int = int(Config.get("aggregate", "max_reports", default=20))
        self.max_news: int = int(Config.get("aggregate", "max_news", default=10))
        self.max_updates: int = int(Config.get("aggregate", "max_updates", default=5))
        self.recent_reports_limit: int = int(Config.get("aggregate", "recent_reports_limit", default=100))

        self.enable_fixmystreet: bool = _env_flag(
            "COUNCILDATA_ENABLE_FIXMYSTREET", Config.get("sources", "enable_fixmystreet", default=True)
        )
        self.enable_rss: bool = _env_flag("COUNCILDATA_ENABLE_RSS", Config.get("sources", "enable_rss", default=True))
        self.enable_newsapi: bool = _env_flag(
            "COUNCILDATA_ENABLE_NEWSAPI", Config.get("sources", "enable_newsapi", default=True)
        )
        self.directory_file: Optional[str] = os.getenv("COUNCILDATA_DIRECTORY_FILE") or Config.get(
            "sources", "directory_file"
        )
        self.news_api_key: Optional[str] = os.getenv("NEWS_API_KEY") or None

        self.http_timeout: float = _env_number(
            "COUNCILDATA_HTTP_TIMEOUT", Config.get("http", "timeout", default=15.0), float, section="http"
        )
        self.http_max_retries: int = int(Config.get("http", "max_retries", default=3))

    @property
    def stale_after_ms(self) -> int:
        return int(self.stale_minutes * 60 * 1000)

    @property
    def hard_expire_after_ms(self) -> int:
        return int(self.max_age_hours * 60 * 60 * 1000)

    @property
    def refresh_interval_ms(self) -> int:
        return int(self.refresh_minutes * 60 * 1000)

    @property
    def news_api_configured(self) -> bool:
        return bool(self.news_api_key)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance, loading ``.env`` first."""

    load_dotenv()
    return Settings()


__all__ = ["Config", "Settings", "get_settings"]

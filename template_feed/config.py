"""
Runtime configuration for the template fetcher.

Values come from the environment (a .env file is loaded by main.py).
SUPABASE_DB_URL is preferred over DATABASE_URL for the cache table; without
either, the in-memory cache store is used.
"""
import logging
import os
from typing import Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

DEFAULT_UA = "CodeCraft-Template-Fetcher/1.0"
DEFAULT_CACHE_TABLE = "project_templates_cache"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"[config] Invalid value for {name}: {raw!r}, using {default}")
        return default


def _env_int(name: str, default: int) -> int:
    return int(_env_float(name, default))


def mask_db_url(url: str) -> str:
    """Render a connection string with its password replaced by ***"""
    try:
        parsed = urlparse(url.replace("[", "").replace("]", ""))
        if not parsed.password:
            return url
        return f"{parsed.scheme}://{parsed.username}:***@{parsed.hostname}:{parsed.port or 5432}{parsed.path}"
    except ValueError:
        return "<unparseable>"


class FetcherConfig:
    """Template fetcher settings read from the environment"""

    def __init__(self):
        self.db_url: Optional[str] = os.getenv("SUPABASE_DB_URL") or os.getenv("DATABASE_URL")
        self.cache_table = os.getenv("TEMPLATE_CACHE_TABLE", DEFAULT_CACHE_TABLE)
        self.cache_ttl = _env_float("TEMPLATE_CACHE_TTL_SECONDS", 24 * 60 * 60)
        self.cache_cleanup_interval = _env_float("TEMPLATE_CACHE_CLEANUP_INTERVAL", 24 * 60 * 60)

        self.fetch_timeout = _env_float("TEMPLATE_FETCH_TIMEOUT", 30.0)
        self.source_timeout = _env_float("TEMPLATE_SOURCE_TIMEOUT", 10.0)
        self.user_agent = os.getenv("TEMPLATE_FETCHER_UA", DEFAULT_UA)

        self.max_retries = _env_int("TEMPLATE_MAX_RETRIES", 3)
        self.initial_backoff = _env_float("TEMPLATE_INITIAL_BACKOFF", 1.0)
        self.max_backoff = _env_float("TEMPLATE_MAX_BACKOFF", 8.0)
        self.default_retry_after = _env_float("TEMPLATE_DEFAULT_RETRY_AFTER", 60.0)

        self.breaker_threshold = _env_int("TEMPLATE_BREAKER_THRESHOLD", 5)
        self.breaker_cooldown = _env_float("TEMPLATE_BREAKER_COOLDOWN", 5 * 60)

        self.dedup_window = _env_float("TEMPLATE_DEDUP_WINDOW", 5.0)
        self.sweep_interval = _env_float("TEMPLATE_SWEEP_INTERVAL", 60.0)
        self.metrics_history = _env_int("TEMPLATE_METRICS_HISTORY", 100)

        self.background_enabled = os.getenv("TEMPLATE_FEED_DISABLE_BACKGROUND", "false").lower() != "true"

        if self.db_url:
            logger.info(f"[config] Template cache database configured: {mask_db_url(self.db_url)}")
        else:
            logger.warning("[config] SUPABASE_DB_URL/DATABASE_URL not set - using in-memory template cache")

    @property
    def use_database(self) -> bool:
        return bool(self.db_url)

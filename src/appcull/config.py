"""User configuration for appcull."""

import json
import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, model_validator

from appcull.enrichment import MAX_WORKERS, MIN_WORKERS

logger = logging.getLogger(__name__)


def expand_path(path: str) -> Path:
    """Expand ~ and environment variables in path."""
    return Path(os.path.expanduser(os.path.expandvars(path)))


CONFIG_DIR = expand_path("~/.appcull")
CONFIG_FILE = CONFIG_DIR / "config.json"

CACHE_FILE_NAME = "app_scan_cache"


class Settings(BaseModel):
    """Tunable scan settings, persisted as JSON."""

    cache_dir: str = Field("~/.cache/appcull", description="Directory holding the scan cache")
    cache_ttl: int = Field(86400, gt=0, description="Seconds before the cache is stale")
    app_dirs: list[str] = Field(
        default_factory=lambda: ["/Applications", "~/Applications"],
        description="Roots searched for .app bundles",
    )
    max_depth: int = Field(3, ge=1, description="Directory depth searched below each root")
    name_timeout: float = Field(0.05, gt=0, description="Display name lookup timeout (s)")
    last_used_timeout: float = Field(0.1, gt=0, description="Last-used lookup timeout (s)")
    min_workers: int = Field(
        MIN_WORKERS, ge=MIN_WORKERS, le=MAX_WORKERS, description="Lower bound for the worker pool"
    )
    max_workers: int = Field(
        MAX_WORKERS, ge=MIN_WORKERS, le=MAX_WORKERS, description="Upper bound for the worker pool"
    )
    protected_bundle_ids: list[str] = Field(
        default_factory=list,
        description="Extra bundle ids (fnmatch patterns) never offered for removal",
    )

    @property
    def cache_file(self) -> Path:
        return expand_path(self.cache_dir) / CACHE_FILE_NAME

    @property
    def roots(self) -> list[Path]:
        return [expand_path(d) for d in self.app_dirs]

    @model_validator(mode="after")
    def _worker_bounds_ordered(self) -> "Settings":
        if self.min_workers > self.max_workers:
            raise ValueError("min_workers must not exceed max_workers")
        return self


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from disk, falling back to defaults."""
    path = path or CONFIG_FILE
    if not path.exists():
        return Settings()

    try:
        with open(path) as f:
            return Settings(**json.load(f))
    except (json.JSONDecodeError, OSError, TypeError, ValidationError) as e:
        logger.warning("Ignoring unreadable config %s: %s", path, e)
        return Settings()


def save_settings(settings: Settings, path: Path | None = None) -> bool:
    """Save settings to disk."""
    path = path or CONFIG_FILE
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            f.write(settings.model_dump_json(indent=2))
        return True
    except OSError as e:
        logger.warning("Could not save config %s: %s", path, e)
        return False

"""Data models for appcull."""

from enum import Enum
from pathlib import Path
from typing import NamedTuple, Optional

from pydantic import BaseModel, Field, field_validator

# Field separator of the on-disk record format
DELIMITER = "|"

UNKNOWN_BUNDLE_ID = "unknown"
SIZE_UNAVAILABLE = "N/A"
NEVER_USED = "Never"


def sanitize_field(value: str) -> str:
    """Make a value safe for the record format: swap the delimiter, drop tabs and line breaks."""
    value = value.replace(DELIMITER, "-")
    return "".join(c for c in value if c not in "\t\r\n")


class ScanStatus(str, Enum):
    """Outcome of a scan as seen by the caller."""

    OK = "ok"
    NOT_FOUND = "not_found"  # Nothing discovered, cache untouched
    EMPTY_CACHE = "empty_cache"  # Record set empty after dropping stale rows


class Candidate(NamedTuple):
    """An application bundle found by the discovery pass."""

    path: str
    cheap_name: str
    bundle_id: str


class AppRecord(BaseModel):
    """One installed application with its size and recency metadata."""

    last_used_epoch: int = Field(0, description="Last use in epoch seconds, 0 if unknown")
    path: str = Field(..., description="Absolute path to the .app bundle")
    display_name: str = Field(..., description="Sanitized human-readable name")
    bundle_id: str = Field(UNKNOWN_BUNDLE_ID, description="CFBundleIdentifier or 'unknown'")
    size_human: str = Field(SIZE_UNAVAILABLE, description="Formatted size or 'N/A'")
    last_used: str = Field(NEVER_USED, description="Relative last-used label")
    size_kb: int = Field(0, ge=0, description="Bundle size in kilobytes")

    @field_validator("path", "display_name", "bundle_id", "size_human", "last_used")
    @classmethod
    def _no_separators(cls, value: str) -> str:
        if DELIMITER in value or any(c in value for c in "\t\r\n"):
            raise ValueError(f"field must not contain {DELIMITER!r} or line breaks: {value!r}")
        return value

    @property
    def name(self) -> str:
        """Bundle folder name without the .app suffix."""
        return Path(self.path).stem

    @property
    def is_sized(self) -> bool:
        """Whether the size probe produced a measurement."""
        return self.size_human != SIZE_UNAVAILABLE

    @property
    def never_used(self) -> bool:
        return self.last_used_epoch == 0


class ScanOutcome(BaseModel):
    """Result of a full or cached application scan."""

    status: ScanStatus = Field(..., description="OK, NOT_FOUND or EMPTY_CACHE")
    records: list[AppRecord] = Field(default_factory=list)
    from_cache: bool = Field(False, description="Whether records came from the cache")
    cache_written: bool = Field(False, description="Whether a fresh scan updated the cache")
    cache_path: Optional[str] = Field(None, description="Location of the cache file")

    @property
    def ok(self) -> bool:
        return self.status == ScanStatus.OK

    @property
    def total_size_kb(self) -> int:
        """Combined size of all records in kilobytes."""
        return sum(r.size_kb for r in self.records)


class CacheInfo(BaseModel):
    """Snapshot of the cache file state."""

    path: str
    exists: bool = False
    age_seconds: Optional[int] = None
    ttl_seconds: int
    fresh: bool = False
    record_count: int = 0

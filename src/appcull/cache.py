"""Persistent cache of the last full application scan."""

import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Iterable

from appcull.metadata import file_mtime
from appcull.models import AppRecord, CacheInfo
from appcull.records import FORMAT_VERSION, read_format_version, read_records, write_records

logger = logging.getLogger(__name__)

DEFAULT_TTL = 86400  # 24 hours


class CacheStore:
    """
    Single-writer cache file with a time-to-live.

    Writes go to a temporary file in the same directory which then replaces
    the cache, so readers never see a partial file.
    """

    def __init__(self, path: Path, ttl: int = DEFAULT_TTL):
        self.path = Path(path)
        self.ttl = ttl

    def age(self, now: int | None = None) -> int:
        """
        Seconds since the cache was written.

        An unreadable mtime reads as 0, making the age equal to now; that
        reading is reported as ttl + 1 so the cache counts as stale.
        """
        if now is None:
            now = int(time.time())
        age = now - file_mtime(self.path)
        if age == now:
            age = self.ttl + 1
        return age

    def is_fresh(self, max_age: int | None = None, now: int | None = None) -> bool:
        """Whether the cache exists, is younger than max_age and has a readable format."""
        if not self.path.is_file():
            return False
        if now is None:
            now = int(time.time())
        # An unreadable mtime is stale whatever max_age the caller allows
        if file_mtime(self.path) == 0:
            return False
        if max_age is None:
            max_age = self.ttl
        if self.age(now) >= max_age:
            return False

        version = read_format_version(self.path)
        if version is not None and version != FORMAT_VERSION:
            logger.info("Cache %s has format v%s, expected v%s", self.path, version, FORMAT_VERSION)
            return False
        return True

    def load(self) -> Path | None:
        """The cache file if it exists and is non-empty, else None."""
        try:
            if self.path.stat().st_size > 0:
                return self.path
        except OSError:
            pass
        return None

    def save(self, records: Iterable[AppRecord]) -> bool:
        """
        Replace the cache with records.

        Returns:
            False if the cache could not be written; callers keep their
            in-memory records either way
        """
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                count = write_records(tmp, records)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            logger.warning("Could not update scan cache %s: %s", self.path, e)
            if tmp_name:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass
            return False

        logger.debug("Cached %d applications in %s", count, self.path)
        return True

    def clear(self) -> bool:
        """Delete the cache file. Returns True if a file was removed."""
        try:
            self.path.unlink()
            return True
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.warning("Could not remove scan cache %s: %s", self.path, e)
            return False

    def info(self, now: int | None = None) -> CacheInfo:
        """Describe the cache for status output."""
        exists = self.path.is_file()
        return CacheInfo(
            path=str(self.path),
            exists=exists,
            age_seconds=self.age(now) if exists else None,
            ttl_seconds=self.ttl,
            fresh=self.is_fresh(now=now),
            record_count=len(read_records(self.path)) if exists else 0,
        )

"""Application scan pipeline: cache fast path or discover, enrich, aggregate."""

import logging
import time
from contextlib import nullcontext

from rich.console import Console

from appcull.cache import CacheStore
from appcull.config import Settings
from appcull.discovery import discover
from appcull.enrichment import clamp_workers, enrich_all, optimal_parallelism
from appcull.models import AppRecord, ScanOutcome, ScanStatus
from appcull.progress import ProgressReporter
from appcull.protection import protection_policy
from appcull.records import load_applications

logger = logging.getLogger(__name__)

# Above this many records a status line is shown while sorting and saving
PROCESSING_NOTICE_THRESHOLD = 50


def sort_by_last_used(records: list[AppRecord]) -> list[AppRecord]:
    """Oldest (least recently used) first; stable for equal epochs."""
    return sorted(records, key=lambda r: r.last_used_epoch)


def aggregate(records: list[AppRecord], cache: CacheStore) -> tuple[list[AppRecord], bool] | None:
    """
    Sort freshly enriched records and persist them as the new cache.

    Returns:
        (sorted records, whether the cache was written), or None when there
        is nothing to aggregate; the cache is left untouched in that case
    """
    if not records:
        return None

    ordered = sort_by_last_used(records)
    written = cache.save(ordered)
    return ordered, written


def _pool_size(settings: Settings) -> int:
    return clamp_workers(optimal_parallelism(), settings.min_workers, settings.max_workers)


def scan_applications(
    settings: Settings,
    force_rescan: bool = False,
    console: Console | None = None,
) -> ScanOutcome:
    """
    Produce the list of installed applications, oldest use first.

    Uses the cache when it is fresh and force_rescan is False; otherwise
    runs a full scan and refreshes the cache.

    Args:
        settings: Scan settings
        force_rescan: Ignore a fresh cache
        console: Error console for progress feedback (quiet if None)

    Returns:
        ScanOutcome; NOT_FOUND and EMPTY_CACHE are normal outcomes
    """
    console = console or Console(stderr=True, quiet=True)
    cache = CacheStore(settings.cache_file, settings.cache_ttl)

    if not force_rescan and cache.is_fresh():
        logger.debug("Using cached scan %s", cache.path)
        if console.is_terminal:
            console.print("[green]Loading from cache...[/green]")
        cache_file = cache.load()
        records = load_applications(cache_file) if cache_file else []
        return ScanOutcome(
            status=ScanStatus.OK if records else ScanStatus.EMPTY_CACHE,
            records=records,
            from_cache=True,
            cache_path=str(cache.path),
        )

    now = int(time.time())
    candidates = list(
        discover(settings.roots, is_protected=protection_policy(settings), max_depth=settings.max_depth)
    )
    logger.debug("Discovered %d application bundles", len(candidates))

    if not candidates:
        return ScanOutcome(status=ScanStatus.NOT_FOUND, cache_path=str(cache.path))

    with ProgressReporter(len(candidates), console) as reporter:
        records = enrich_all(
            candidates,
            max_workers=_pool_size(settings),
            now=now,
            on_dispatch=reporter.update,
            name_timeout=settings.name_timeout,
            last_used_timeout=settings.last_used_timeout,
        )

    if console.is_terminal and len(records) > PROCESSING_NOTICE_THRESHOLD:
        notice = console.status(f"Processing {len(records)} applications...", spinner="line")
    else:
        notice = nullcontext()
    with notice:
        aggregated = aggregate(records, cache)

    if aggregated is None:
        return ScanOutcome(status=ScanStatus.NOT_FOUND, cache_path=str(cache.path))

    ordered, written = aggregated
    loaded = load_applications(ordered)
    return ScanOutcome(
        status=ScanStatus.OK if loaded else ScanStatus.EMPTY_CACHE,
        records=loaded,
        from_cache=False,
        cache_written=written,
        cache_path=str(cache.path),
    )

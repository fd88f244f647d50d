"""Parallel metadata enrichment of discovered bundles.

The second, expensive phase of a scan. Each candidate is handled by one
task that resolves its display name, size and last-used date; tasks never
share state and always produce a record, falling back to cheap local data
whenever a lookup fails or times out.
"""

import logging
import os
import plistlib
import time
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, Iterable

from appcull.metadata import get_last_used_epoch, get_metadata_display_name, last_used_label
from appcull.models import SIZE_UNAVAILABLE, AppRecord, Candidate, sanitize_field
from appcull.sizing import format_size_kb, get_path_size_kb

logger = logging.getLogger(__name__)

MIN_WORKERS = 8
MAX_WORKERS = 32


def optimal_parallelism() -> int:
    """Preferred worker count for I/O-bound work."""
    return (os.cpu_count() or 1) + 4


def clamp_workers(count: int, lower: int = MIN_WORKERS, upper: int = MAX_WORKERS) -> int:
    """Bound a worker count to [lower, upper]."""
    return max(lower, min(upper, count))


def _is_usable_name(value: str | None) -> bool:
    return bool(value) and value != "(null)" and not value.startswith("/")


def read_bundle_names(bundle: Path) -> tuple[str | None, str | None]:
    """CFBundleDisplayName and CFBundleName from Info.plist."""
    try:
        with open(bundle / "Contents" / "Info.plist", "rb") as f:
            plist = plistlib.load(f)
    except (plistlib.InvalidFileException, OSError, ValueError):
        return None, None
    if not isinstance(plist, dict):
        return None, None

    def _text(key: str) -> str | None:
        value = plist.get(key)
        return sanitize_field(value).strip() if isinstance(value, str) else None

    return _text("CFBundleDisplayName"), _text("CFBundleName")


def resolve_display_name(path: Path | str, cheap_name: str, timeout: float = 0.05) -> str:
    """
    Pick the best human-readable name for a bundle.

    Priority: localized metadata name, CFBundleDisplayName, CFBundleName,
    then the folder name. Path-shaped values are never used, and a metadata
    name equal to the folder name falls through to the manifest names.
    """
    path = Path(path)
    display_name = cheap_name

    if (path / "Contents" / "Info.plist").is_file():
        md_name = get_metadata_display_name(path, timeout) or ""
        md_name = sanitize_field(md_name).strip()
        if md_name.endswith(".app"):
            md_name = md_name[: -len(".app")]

        bundle_display_name, bundle_name = read_bundle_names(path)

        if _is_usable_name(md_name) and md_name != cheap_name:
            display_name = md_name
        elif _is_usable_name(bundle_display_name):
            display_name = bundle_display_name
        elif _is_usable_name(bundle_name):
            display_name = bundle_name

    if display_name.startswith("/"):
        display_name = cheap_name
    return sanitize_field(display_name)


def enrich_candidate(
    candidate: Candidate,
    now: int,
    name_timeout: float = 0.05,
    last_used_timeout: float = 0.1,
) -> AppRecord:
    """Build the full record for one discovered bundle."""
    path = Path(candidate.path)
    display_name = resolve_display_name(path, candidate.cheap_name, name_timeout)

    size_kb = 0
    size_human = SIZE_UNAVAILABLE
    last_used_epoch = 0

    if path.is_dir():
        measured = get_path_size_kb(path)
        if measured is not None:
            size_kb = measured
            size_human = format_size_kb(measured)
        last_used_epoch = get_last_used_epoch(path, last_used_timeout)

    return AppRecord(
        last_used_epoch=last_used_epoch,
        path=candidate.path,
        display_name=display_name,
        bundle_id=candidate.bundle_id,
        size_human=size_human,
        last_used=last_used_label(last_used_epoch, now),
        size_kb=size_kb,
    )


def fallback_record(candidate: Candidate) -> AppRecord:
    """Minimal record used when enrichment fails outright."""
    return AppRecord(
        path=candidate.path,
        display_name=sanitize_field(candidate.cheap_name),
        bundle_id=candidate.bundle_id,
    )


def _collect(future: Future, candidate: Candidate) -> AppRecord:
    try:
        return future.result()
    except Exception as e:
        logger.warning("Could not read metadata for %s: %s", candidate.path, e)
        return fallback_record(candidate)


def enrich_all(
    candidates: Iterable[Candidate],
    max_workers: int | None = None,
    now: int | None = None,
    on_dispatch: Callable[[int, int], None] | None = None,
    name_timeout: float = 0.05,
    last_used_timeout: float = 0.1,
) -> list[AppRecord]:
    """
    Enrich all candidates with a bounded number of concurrent tasks.

    Dispatch is a sliding window: once max_workers tasks are in flight, the
    oldest one is awaited before the next candidate is submitted.

    Args:
        candidates: Output of the discovery pass
        max_workers: Window size (default: clamped optimal_parallelism())
        now: Reference epoch for relative labels
        on_dispatch: Optional callback(dispatched, total) after each submit
        name_timeout: Display name lookup timeout in seconds
        last_used_timeout: Last-used lookup timeout in seconds

    Returns:
        One record per candidate, in completion order of the window
    """
    candidates = list(candidates)
    total = len(candidates)
    if max_workers is None:
        max_workers = clamp_workers(optimal_parallelism())
    if now is None:
        now = int(time.time())

    records: list[AppRecord] = []
    in_flight: deque[tuple[Future, Candidate]] = deque()

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="appcull-enrich") as executor:
        try:
            for dispatched, candidate in enumerate(candidates, 1):
                if len(in_flight) >= max_workers:
                    records.append(_collect(*in_flight.popleft()))

                future = executor.submit(
                    enrich_candidate, candidate, now, name_timeout, last_used_timeout
                )
                in_flight.append((future, candidate))

                if on_dispatch:
                    on_dispatch(dispatched, total)

            while in_flight:
                records.append(_collect(*in_flight.popleft()))
        except BaseException:
            executor.shutdown(wait=False, cancel_futures=True)
            raise

    return records

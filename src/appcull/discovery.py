"""Application bundle discovery.

The first, cheap phase of a scan: walk the application directories, keep
top-level bundles and read their identifiers straight from Info.plist.
Nothing here talks to the metadata server.
"""

import logging
import os
import plistlib
from pathlib import Path
from typing import Callable, Generator, Iterable

from appcull.models import DELIMITER, UNKNOWN_BUNDLE_ID, Candidate, sanitize_field

logger = logging.getLogger(__name__)

BUNDLE_SUFFIX = ".app"


def find_bundles(root: Path, max_depth: int = 3) -> Generator[Path, None, None]:
    """
    Find directories named *.app below root.

    Matches at any depth up to max_depth, including bundles inside other
    bundles; filtering those is up to the caller.

    Args:
        root: Directory to search
        max_depth: Maximum depth below root (1 = direct children only)

    Yields:
        Paths to matching directories
    """
    if max_depth <= 0:
        return

    try:
        with os.scandir(root) as entries:
            for entry in entries:
                try:
                    entry_path = Path(entry.path)

                    if entry.name.endswith(BUNDLE_SUFFIX) and entry.is_dir():
                        yield entry_path

                    # Never descend through symlinks
                    if entry.is_dir(follow_symlinks=False):
                        yield from find_bundles(entry_path, max_depth - 1)

                except OSError:
                    continue

    except OSError:
        return


def is_nested_bundle(path: Path, root: Path) -> bool:
    """
    Check whether a bundle sits inside another bundle.

    Only whole path segments between root and the bundle count:
    Outer.app/Contents/Inner.app is nested, Old.apps/Target.app is not.
    """
    try:
        parts = path.relative_to(root).parts
    except ValueError:
        parts = path.parts
    return any(part.endswith(BUNDLE_SUFFIX) for part in parts[:-1])


def read_bundle_id(bundle: Path) -> str:
    """CFBundleIdentifier from the bundle's Info.plist, or 'unknown'."""
    info_plist = bundle / "Contents" / "Info.plist"
    try:
        with open(info_plist, "rb") as f:
            plist = plistlib.load(f)
    except (plistlib.InvalidFileException, OSError, ValueError) as e:
        logger.debug("No readable Info.plist in %s: %s", bundle, e)
        return UNKNOWN_BUNDLE_ID

    bundle_id = plist.get("CFBundleIdentifier") if isinstance(plist, dict) else None
    if not isinstance(bundle_id, str):
        return UNKNOWN_BUNDLE_ID
    bundle_id = sanitize_field(bundle_id).strip()
    return bundle_id or UNKNOWN_BUNDLE_ID


def _is_serializable_path(path: Path) -> bool:
    text = str(path)
    return DELIMITER not in text and not any(c in text for c in "\t\r\n")


def discover(
    roots: Iterable[Path],
    is_protected: Callable[[str], bool] | None = None,
    max_depth: int = 3,
) -> Generator[Candidate, None, None]:
    """
    Yield uninstall candidates from the given application roots.

    Skips missing roots, bundles that disappear mid-scan, nested bundles,
    paths that cannot be stored in the cache format, and protected bundle ids.

    Args:
        roots: Application directories to walk
        is_protected: Predicate on bundle ids; matching bundles are dropped
        max_depth: Search depth below each root

    Yields:
        Candidate(path, cheap_name, bundle_id)
    """
    for root in roots:
        root = Path(root)
        if not root.is_dir():
            continue

        for bundle in find_bundles(root, max_depth):
            if not bundle.exists():
                continue

            if is_nested_bundle(bundle, root):
                continue

            if not _is_serializable_path(bundle):
                logger.debug("Skipping bundle with unsupported characters in path: %r", str(bundle))
                continue

            bundle_id = read_bundle_id(bundle)
            if is_protected and is_protected(bundle_id):
                logger.debug("Skipping protected bundle %s (%s)", bundle, bundle_id)
                continue

            yield Candidate(
                path=str(bundle),
                cheap_name=bundle.name[: -len(BUNDLE_SUFFIX)],
                bundle_id=bundle_id,
            )

"""Spotlight metadata lookups with bounded latency.

mdls can hang on a busy metadata server or return locale-formatted values,
so every query runs under the C locale with a short timeout and any failure
yields None for the caller to fall back on.
"""

import logging
import os
import subprocess
from datetime import datetime
from pathlib import Path

from appcull.models import NEVER_USED

logger = logging.getLogger(__name__)

MDLS = "mdls"
DISPLAY_NAME_ATTR = "kMDItemDisplayName"
LAST_USED_ATTR = "kMDItemLastUsedDate"
MDLS_DATE_FORMAT = "%Y-%m-%d %H:%M:%S %z"

SECONDS_PER_DAY = 86400


def _c_locale_env() -> dict[str, str]:
    env = dict(os.environ)
    env["LC_ALL"] = "C"
    env["LANG"] = "C"
    return env


def query_metadata(path: Path | str, attribute: str, timeout: float) -> str | None:
    """
    Read one raw metadata attribute for path.

    Returns:
        The attribute value, or None on timeout, error, or "(null)"
    """
    try:
        result = subprocess.run(
            [MDLS, "-name", attribute, "-raw", str(path)],
            capture_output=True,
            text=True,
            timeout=timeout,
            env=_c_locale_env(),
        )
    except subprocess.TimeoutExpired:
        logger.debug("%s lookup timed out after %.2fs for %s", attribute, timeout, path)
        return None
    except (FileNotFoundError, OSError) as e:
        logger.debug("%s lookup failed for %s: %s", attribute, path, e)
        return None

    if result.returncode != 0:
        return None

    value = result.stdout.strip()
    if not value or value == "(null)":
        return None
    return value


def parse_metadata_date(value: str) -> int:
    """Parse an mdls date like '2024-02-15 18:22:33 +0000' to epoch seconds, 0 if unparseable."""
    try:
        return int(datetime.strptime(value.strip(), MDLS_DATE_FORMAT).timestamp())
    except ValueError:
        return 0


def file_mtime(path: Path | str) -> int:
    """Modification time in epoch seconds, 0 if it cannot be read."""
    try:
        return int(os.stat(path).st_mtime)
    except OSError:
        return 0


def get_metadata_display_name(path: Path | str, timeout: float = 0.05) -> str | None:
    return query_metadata(path, DISPLAY_NAME_ATTR, timeout)


def get_last_used_epoch(path: Path | str, timeout: float = 0.1) -> int:
    """
    Last time the application was opened.

    Prefers the metadata server's last-used date and falls back to the
    bundle's modification time.
    """
    epoch = 0
    raw = query_metadata(path, LAST_USED_ATTR, timeout)
    if raw:
        epoch = parse_metadata_date(raw)
        if epoch == 0:
            logger.debug("Unparseable last-used date %r for %s", raw, path)

    if epoch <= 0:
        epoch = file_mtime(path)
    return epoch


def last_used_label(epoch: int, now: int) -> str:
    """
    Relative label for a last-used epoch.

    Day thresholds: 0 today, 1 yesterday, under 7 days, under 30 weeks,
    under 365 months, then years.
    """
    if epoch <= 0:
        return NEVER_USED

    # Timestamps slightly in the future count as today
    days_ago = max(0, (now - epoch) // SECONDS_PER_DAY)

    if days_ago == 0:
        return "Today"
    if days_ago == 1:
        return "Yesterday"
    if days_ago < 7:
        return f"{days_ago} days ago"
    if days_ago < 30:
        weeks = days_ago // 7
        return "1 week ago" if weeks == 1 else f"{weeks} weeks ago"
    if days_ago < 365:
        months = days_ago // 30
        return "1 month ago" if months == 1 else f"{months} months ago"
    years = days_ago // 365
    return "1 year ago" if years == 1 else f"{years} years ago"

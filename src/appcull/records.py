"""On-disk record format and the record loader.

The cache is plain text so other tools can read it directly:

    #appcull-cache v1
    <epoch>|<path>|<display name>|<bundle id>|<size>|<last used>|<size kb>

One record per line, fields in that fixed order. Files written before the
version header existed are read the same way.
"""

import logging
from pathlib import Path
from typing import Iterable, TextIO

from pydantic import ValidationError

from appcull.models import DELIMITER, AppRecord

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1
HEADER_PREFIX = "#appcull-cache v"
HEADER = f"{HEADER_PREFIX}{FORMAT_VERSION}"
FIELD_COUNT = 7


class RecordFormatError(ValueError):
    """A cache line that does not hold a valid record."""


def format_record(record: AppRecord) -> str:
    """Serialize a record to one line (without newline)."""
    return DELIMITER.join(
        [
            str(record.last_used_epoch),
            record.path,
            record.display_name,
            record.bundle_id,
            record.size_human,
            record.last_used,
            str(record.size_kb),
        ]
    )


def parse_record(line: str) -> AppRecord:
    """
    Parse one cache line.

    A missing trailing size_kb field reads as 0.

    Raises:
        RecordFormatError: If the line is malformed
    """
    fields = line.rstrip("\r\n").split(DELIMITER)
    if len(fields) == FIELD_COUNT - 1:
        fields.append("0")
    if len(fields) != FIELD_COUNT:
        raise RecordFormatError(f"expected {FIELD_COUNT} fields, got {len(fields)}")

    epoch, path, name, bundle_id, size_human, last_used, size_kb = fields
    try:
        return AppRecord(
            last_used_epoch=int(epoch),
            path=path,
            display_name=name,
            bundle_id=bundle_id,
            size_human=size_human,
            last_used=last_used,
            size_kb=int(size_kb or 0),
        )
    except (ValueError, ValidationError) as e:
        raise RecordFormatError(str(e)) from e


def parse_header(line: str) -> int | None:
    """Format version from a header line, or None if line is not a header."""
    if not line.startswith(HEADER_PREFIX):
        return None
    try:
        return int(line[len(HEADER_PREFIX) :].strip())
    except ValueError:
        return -1


def read_format_version(path: Path) -> int | None:
    """Version marker of a cache file; None for legacy files without one."""
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            first = f.readline()
    except OSError:
        return None
    return parse_header(first)


def write_records(stream: TextIO, records: Iterable[AppRecord]) -> int:
    """Write the header and one line per record. Returns the record count."""
    stream.write(HEADER + "\n")
    count = 0
    for record in records:
        stream.write(format_record(record) + "\n")
        count += 1
    return count


def read_records(path: Path) -> list[AppRecord]:
    """
    Read every well-formed record from a cache file, in file order.

    Comment lines and malformed rows are skipped. A missing file reads as
    an empty list.
    """
    records: list[AppRecord] = []
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            for lineno, line in enumerate(f, 1):
                if not line.strip() or line.startswith("#"):
                    continue
                try:
                    records.append(parse_record(line))
                except RecordFormatError as e:
                    logger.debug("Skipping malformed cache line %d in %s: %s", lineno, path, e)
    except FileNotFoundError:
        return []
    except OSError as e:
        logger.warning("Could not read %s: %s", path, e)
        return []
    return records


def load_applications(records: Iterable[AppRecord] | Path) -> list[AppRecord]:
    """
    Load the records handed to the selection UI.

    Accepts a cache file or an already sorted record list and drops any
    application whose bundle no longer exists. An empty result means there
    is nothing available to uninstall.
    """
    if isinstance(records, Path):
        records = read_records(records)
    return [r for r in records if Path(r.path).exists()]

"""Bundle size measurement for appcull."""

import os
from pathlib import Path


def get_directory_size_fast(path: Path, max_depth: int = 40) -> int:
    """
    Sum the size of every file below path using os.scandir.

    Unreadable entries below the root are skipped. Symlinks are not followed.

    Args:
        path: Directory to measure
        max_depth: Maximum recursion depth

    Returns:
        Total size in bytes

    Raises:
        OSError: If the root itself cannot be listed
    """
    total_size = 0

    def _scan(p: str, depth: int):
        nonlocal total_size
        if depth > max_depth:
            return
        try:
            with os.scandir(p) as entries:
                for entry in entries:
                    try:
                        if entry.is_file(follow_symlinks=False):
                            total_size += entry.stat(follow_symlinks=False).st_size
                        elif entry.is_dir(follow_symlinks=False):
                            _scan(entry.path, depth + 1)
                    except OSError:
                        continue
        except OSError:
            if depth == 0:
                raise

    _scan(str(path), 0)
    return total_size


def get_path_size_kb(path: Path | str) -> int | None:
    """
    Size of a bundle in kilobytes, rounded up.

    Returns:
        Kilobytes, or None when the path is not a readable directory
    """
    path = Path(path)
    if not path.is_dir():
        return None
    try:
        size = get_directory_size_fast(path)
    except OSError:
        return None
    return (size + 1023) // 1024


def format_size(size_bytes: int) -> str:
    """Format bytes to human-readable string (decimal units like macOS)."""
    if size_bytes >= 1000**3:
        return f"{size_bytes / (1000**3):.1f} GB"
    elif size_bytes >= 1000**2:
        return f"{size_bytes / (1000**2):.1f} MB"
    elif size_bytes >= 1000:
        return f"{size_bytes / 1000:.1f} KB"
    else:
        return f"{size_bytes} B"


def format_size_kb(size_kb: int) -> str:
    """Format a kilobyte count the way bundle sizes are shown."""
    return format_size(size_kb * 1024)

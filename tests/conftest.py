"""Shared fixtures for appcull tests."""

import plistlib
from pathlib import Path

import pytest


def write_bundle(
    parent: Path,
    name: str,
    bundle_id: str | None = "com.example.app",
    display_name: str | None = None,
    bundle_name: str | None = None,
    payload: bytes = b"",
) -> Path:
    """Create a minimal .app bundle under parent."""
    bundle = parent / name
    contents = bundle / "Contents"
    contents.mkdir(parents=True)

    plist = {}
    if bundle_id is not None:
        plist["CFBundleIdentifier"] = bundle_id
    if display_name is not None:
        plist["CFBundleDisplayName"] = display_name
    if bundle_name is not None:
        plist["CFBundleName"] = bundle_name
    with open(contents / "Info.plist", "wb") as f:
        plistlib.dump(plist, f)

    if payload:
        macos = contents / "MacOS"
        macos.mkdir()
        (macos / "binary").write_bytes(payload)
    return bundle


@pytest.fixture
def make_bundle():
    return write_bundle


@pytest.fixture
def no_metadata():
    """Pretend the metadata server never answers."""
    from unittest.mock import patch

    with patch("appcull.metadata.query_metadata", return_value=None) as mock_query:
        yield mock_query

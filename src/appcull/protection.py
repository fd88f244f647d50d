"""Protected application policy.

Bundles matching these patterns are system components or input methods
that should never be offered for uninstallation. Users may extend the list
through the ``protected_bundle_ids`` setting.
"""

from fnmatch import fnmatchcase
from typing import Callable

from appcull.config import Settings, load_settings, save_settings
from appcull.models import UNKNOWN_BUNDLE_ID

SYSTEM_PROTECTED_PATTERNS = (
    "com.apple.*",
    "*.inputmethod.*",
    "*.InputMethod.*",
    "*.inputmethod",
    "*.keylayout.*",
)


def matches_any(bundle_id: str, patterns) -> bool:
    """Case-sensitive fnmatch of bundle_id against any pattern."""
    return any(fnmatchcase(bundle_id, p) for p in patterns)


def is_protected_bundle(bundle_id: str, extra_patterns: list[str] | None = None) -> bool:
    """
    Check if a bundle id is protected from uninstall.

    The "unknown" sentinel is never protected: an unreadable manifest should
    not hide an application from the user.
    """
    if not bundle_id or bundle_id == UNKNOWN_BUNDLE_ID:
        return False
    if matches_any(bundle_id, SYSTEM_PROTECTED_PATTERNS):
        return True
    return matches_any(bundle_id, extra_patterns or [])


def protection_policy(settings: Settings) -> Callable[[str], bool]:
    """Bind the user's extra patterns into a predicate for discovery."""
    extra = list(settings.protected_bundle_ids)
    return lambda bundle_id: is_protected_bundle(bundle_id, extra)


def add_protection(bundle_id: str) -> dict:
    """
    Add a bundle id (or pattern) to the protection list.

    Returns:
        Dict with success status and current protections
    """
    if not bundle_id.strip():
        return {"success": False, "error": "Must specify a bundle id"}

    settings = load_settings()
    if bundle_id not in settings.protected_bundle_ids:
        settings.protected_bundle_ids.append(bundle_id)

    if save_settings(settings):
        return {"success": True, "protected_bundle_ids": settings.protected_bundle_ids}
    return {"success": False, "error": "Failed to save config"}


def remove_protection(bundle_id: str) -> dict:
    """
    Remove a bundle id from the protection list.

    Built-in system patterns cannot be removed.
    """
    settings = load_settings()
    if bundle_id not in settings.protected_bundle_ids:
        if matches_any(bundle_id, SYSTEM_PROTECTED_PATTERNS):
            return {"success": False, "error": f"{bundle_id} is protected by a built-in rule"}
        return {"success": False, "error": f"Not in protection list: {bundle_id}"}
    settings.protected_bundle_ids.remove(bundle_id)

    if save_settings(settings):
        return {"success": True, "protected_bundle_ids": settings.protected_bundle_ids}
    return {"success": False, "error": "Failed to save config"}


def list_protections() -> dict:
    """List built-in and user protection patterns."""
    settings = load_settings()
    return {
        "system_patterns": list(SYSTEM_PROTECTED_PATTERNS),
        "protected_bundle_ids": list(settings.protected_bundle_ids),
    }

"""package.json handling.

Parses and serializes the manifest and rewrites a single dependency entry.
Only the two npm dependency maps are considered:

- "dependencies" (checked first)
- "devDependencies"

Version strings are written verbatim. Ranges ("^1.2.0"), dist-tags
("latest") and git URLs are all legitimate npm specifiers, so nothing is
validated or normalized here.
"""

from __future__ import annotations

import copy
import json
from typing import Any

from .errors import ManifestError

MANIFEST_FILENAME = "package.json"
DEPENDENCY_SECTIONS: tuple[str, ...] = ("dependencies", "devDependencies")


def parse_manifest(text: str) -> dict[str, Any]:
    """Parse package.json text into a dict, preserving key order.

    Raises:
        ManifestError: If the text is not JSON or not a JSON object.
    """
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ManifestError(f"{MANIFEST_FILENAME} is not valid JSON: {exc}") from exc
    if not isinstance(doc, dict):
        raise ManifestError(f"{MANIFEST_FILENAME} must contain a JSON object")
    return doc


def dump_manifest(manifest: dict[str, Any]) -> str:
    """Serialize a manifest the way npm writes it (2-space indent, final newline)."""
    return json.dumps(manifest, indent=2, ensure_ascii=False) + "\n"


def find_dependency(manifest: dict[str, Any], package_name: str) -> str | None:
    """Return the section that declares package_name, or None.

    Sections are checked in priority order, so a package listed in both
    maps resolves to "dependencies".
    """
    for section in DEPENDENCY_SECTIONS:
        deps = manifest.get(section)
        if isinstance(deps, dict) and package_name in deps:
            return section
    return None


def patch_manifest(
    manifest: dict[str, Any], package_name: str, new_version: str
) -> dict[str, Any]:
    """Return a copy of manifest with package_name set to new_version.

    Only the first section that declares the package is touched; the input
    is never modified.

    Examples:
        patch_manifest({"dependencies": {"left-pad": "1.0.0"}}, "left-pad", "1.3.0")
        → {"dependencies": {"left-pad": "1.3.0"}}

    Raises:
        ManifestError: If neither section declares the package. Opening a PR
                       that changes nothing is never useful.
    """
    section = find_dependency(manifest, package_name)
    if section is None:
        raise ManifestError(
            f"package '{package_name}' not found in "
            f"{' or '.join(DEPENDENCY_SECTIONS)} of {MANIFEST_FILENAME}"
        )

    patched = copy.deepcopy(manifest)
    patched[section][package_name] = new_version
    return patched

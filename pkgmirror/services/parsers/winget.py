"""
Parser for winget-pkgs manifests.

A winget package version is described either by one singleton manifest or by
several files: a version manifest, one or more installer manifests, a
defaultLocale manifest and optional locale manifests. Every file carries
``PackageIdentifier`` and ``PackageVersion``, but only singleton, defaultLocale
and merged manifests name the package and its publisher, so those are the
only ones that produce records. Merged manifests keep the name and publisher
under a ``DefaultLocale`` section.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import yaml

from pkgmirror.domain.models import PackageRecord, utcnow
from pkgmirror.services.parsers.base import ManifestParser

logger = logging.getLogger(__name__)

# Partial manifests of a multi-file package version.
SKIPPED_MANIFEST_TYPES = frozenset({"version", "installer", "locale"})


def _as_text(value: Any) -> Optional[str]:
    # YAML loads "1.10" as a float and "2024" as an int; keep them as text.
    if value is None:
        return None
    text = str(value).strip()
    return text or None


class WingetParser(ManifestParser):
    """Reads PackageIdentifier, name, version and publisher from winget YAML."""

    def parse_manifest(self, file_path: str, content: str) -> Optional[PackageRecord]:
        try:
            if not self.is_valid_package_file(file_path) or not content.strip():
                return None

            manifest = yaml.safe_load(content)
            if not isinstance(manifest, dict):
                return None

            manifest_type = (_as_text(manifest.get("ManifestType")) or "").lower()
            if manifest_type in SKIPPED_MANIFEST_TYPES:
                return None

            package_id = _as_text(manifest.get("PackageIdentifier"))
            if not package_id:
                return None

            default_locale = manifest.get("DefaultLocale")
            if not isinstance(default_locale, dict):
                default_locale = {}

            name = _as_text(manifest.get("PackageName")) or _as_text(default_locale.get("PackageName"))
            publisher = _as_text(manifest.get("Publisher")) or _as_text(default_locale.get("Publisher"))

            return PackageRecord(
                id=package_id,
                name=name or package_id,
                version=_as_text(manifest.get("PackageVersion")),
                publisher=publisher,
                last_updated=utcnow(),
            )
        except Exception as e:
            logger.warning(f"Failed to parse manifest {file_path}: {e}")
            return None

    def is_valid_package_file(self, file_path: str) -> bool:
        # Skip schema files and the validation fixtures shipped with winget-pkgs.
        return (
            super().is_valid_package_file(file_path)
            and ".validation" not in file_path
            and "schema" not in file_path
        )

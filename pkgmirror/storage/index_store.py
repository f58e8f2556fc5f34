"""
In-memory index of parsed package records.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from pkgmirror.domain.models import PackageRecord
from pkgmirror.domain.versions import is_older


class IndexStore:
    """
    Mapping from package identifier to PackageRecord.

    One record is kept per identifier: the one with the highest version. A
    record with the same version as the stored one replaces it, so re-parsing
    a manifest refreshes its entry.

    The sync orchestrator is the only writer. Readers may run while a sync is
    in progress: a per-key upsert is a single dict assignment and replace_all()
    swaps the whole backing dict, so a reader sees either the old or the new
    record for a key, never a partial one.
    """

    def __init__(self, records: Optional[Iterable[PackageRecord]] = None):
        self._packages: Dict[str, PackageRecord] = {}
        if records is not None:
            self.replace_all(records)

    def __len__(self) -> int:
        return len(self._packages)

    def __contains__(self, package_id: object) -> bool:
        return package_id in self._packages

    def get(self, package_id: str) -> Optional[PackageRecord]:
        """Get a record by identifier, or None."""
        return self._packages.get(package_id)

    def upsert(self, record: PackageRecord) -> bool:
        """
        Add a record or replace the one with the same identifier.

        Returns False, leaving the store unchanged, when the stored record has
        a higher version.
        """
        return _put(self._packages, record)

    def upsert_many(self, records: Iterable[PackageRecord]) -> int:
        return sum(1 for record in records if self.upsert(record))

    def replace_all(self, records: Iterable[PackageRecord]) -> None:
        """Replace the whole index. Among duplicates the highest version wins."""
        packages: Dict[str, PackageRecord] = {}
        for record in records:
            _put(packages, record)
        self._packages = packages

    def clear(self) -> None:
        self._packages = {}

    def snapshot(self) -> List[PackageRecord]:
        """All records in insertion order, as a list detached from the store."""
        return list(self._packages.values())


def _put(packages: Dict[str, PackageRecord], record: PackageRecord) -> bool:
    current = packages.get(record.id)
    if current is not None and is_older(record.version, current.version):
        return False
    packages[record.id] = record
    return True

"""
Read-only queries over the package index.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from pkgmirror.domain.models import PackageRecord, SearchResult, SyncStats
from pkgmirror.domain.search_utils import matches_query, paginate, rank_key
from pkgmirror.storage.index_store import IndexStore

logger = logging.getLogger(__name__)


class PackageQuery:
    """Lookup, search and listing against an IndexStore."""

    def __init__(self, store: IndexStore, last_sync: Callable[[], Optional[datetime]] = lambda: None):
        self.store = store
        self._last_sync = last_sync

    def get_package(self, package_id: str) -> Optional[PackageRecord]:
        return self.store.get(package_id)

    def search_packages(self, query: str, page: int = 1, limit: int = 20) -> SearchResult:
        """
        Case-insensitive substring search over package names and identifiers.

        Exact name matches rank first, then shorter names. Remaining ties keep
        index order because the sort is stable.
        """
        normalized_query = query.lower()
        matches = [pkg for pkg in self.store.snapshot() if matches_query(pkg, normalized_query)]
        matches.sort(key=lambda pkg: rank_key(pkg, normalized_query))

        logger.debug(f"Search '{query}' matched {len(matches)} packages")
        return SearchResult(
            packages=paginate(matches, page, limit),
            total=len(matches),
            page=page,
            limit=limit,
        )

    def list_packages(self, page: int = 1, limit: int = 20) -> SearchResult:
        """All packages in index order, one page at a time."""
        packages = self.store.snapshot()
        return SearchResult(
            packages=paginate(packages, page, limit),
            total=len(packages),
            page=page,
            limit=limit,
        )

    def get_stats(self) -> SyncStats:
        return SyncStats(total_packages=len(self.store), last_sync=self._last_sync())

"""
Sync orchestration for the package index.

PackageService owns the IndexStore. Each sync asks the mirror what changed
and then either rescans the whole manifest tree or re-parses only the changed
files. Files are parsed concurrently in fixed-size batches; a file that cannot
be read or parsed is logged and skipped without failing the sync.
"""
from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime
from pathlib import Path
from typing import AsyncIterator, List, Optional, Sequence

import aiofiles

from pkgmirror.core.config import RepoConfig
from pkgmirror.domain.models import (
    ChangeKind,
    PackageRecord,
    SearchResult,
    SyncStats,
    utcnow,
)
from pkgmirror.services.mirror import GitMirror, SourceMirror
from pkgmirror.services.parsers import create_parser
from pkgmirror.services.query import PackageQuery
from pkgmirror.storage.index_store import IndexStore

logger = logging.getLogger(__name__)

PARSE_BATCH_SIZE = 500


class PackageService:
    """
    Keeps the in-memory index in step with the mirrored repository and
    answers queries against it.
    """

    def __init__(
        self,
        config: RepoConfig,
        mirror: Optional[SourceMirror] = None,
        batch_size: int = PARSE_BATCH_SIZE,
    ):
        self.config = config
        # Raises ConfigurationError for unknown formats before anything else runs.
        self.parser = create_parser(config.parser)
        self.mirror = mirror or GitMirror(config)
        self.batch_size = max(1, batch_size)
        self.local_path = Path(config.local_path)

        self.store = IndexStore()
        self.last_sync: Optional[datetime] = None
        self.query = PackageQuery(self.store, lambda: self.last_sync)
        self._sync_lock = asyncio.Lock()

    @property
    def is_syncing(self) -> bool:
        return self._sync_lock.locked()

    async def initialize(self) -> None:
        """
        Run the first sync. Any failure propagates so startup can abort.
        """
        logger.info("Initializing package service...")
        await self.sync_repository()
        logger.info(f"Loaded {len(self.store)} packages")

    async def sync_repository(self, force_full_scan: bool = False) -> SyncStats:
        """
        Bring the index up to date with the upstream repository.

        Calls are serialized; a call made while another sync runs waits for it
        and then performs its own (usually no-op) pull. On failure the index
        and last-sync time are left as they were.
        """
        if self._sync_lock.locked():
            logger.info("Sync already in progress, waiting for it to finish")

        async with self._sync_lock:
            try:
                changes = await self.mirror.clone_or_update()
            except Exception as e:
                logger.error(f"Repository sync failed: {e}", exc_info=True)
                raise

            if force_full_scan or changes.kind == ChangeKind.FRESH_CLONE or len(self.store) == 0:
                await self._full_scan()
            elif changes.kind == ChangeKind.NO_CHANGES:
                logger.info("Index is up to date")
            else:
                await self._incremental_update(changes.paths)

            self.last_sync = utcnow()

        return self.get_stats()

    async def _full_scan(self) -> None:
        logger.info("Performing full manifest scan...")
        manifest_root = self.local_path / self.config.manifest_dir
        files = await asyncio.to_thread(self._list_manifest_files, manifest_root)

        records: List[PackageRecord] = []
        async for batch_records in self._parse_batches(files):
            records.extend(batch_records)

        self.store.replace_all(records)
        logger.info(f"Processed {len(files)} files, found {len(self.store)} packages")

    async def _incremental_update(self, changed_paths: Sequence[str]) -> None:
        logger.info(f"Performing incremental update of {len(changed_paths)} changed files...")
        updated = 0
        async for batch_records in self._parse_batches(list(changed_paths)):
            updated += self.store.upsert_many(batch_records)
        logger.info(f"Updated {updated} packages, index holds {len(self.store)} packages")

    def _list_manifest_files(self, manifest_root: Path) -> List[str]:
        """
        Recursively list eligible manifest files under ``manifest_root``.

        Paths are returned relative to the checkout, POSIX-style. Unreadable
        directories are logged and skipped.
        """
        files: List[str] = []
        pending = [manifest_root]

        while pending:
            directory = pending.pop()
            try:
                with os.scandir(directory) as entries:
                    for entry in entries:
                        if entry.is_dir(follow_symlinks=False):
                            if entry.name != ".git":
                                pending.append(Path(entry.path))
                            continue
                        relative = Path(entry.path).relative_to(self.local_path).as_posix()
                        if entry.is_file() and self.parser.is_valid_package_file(relative):
                            files.append(relative)
            except OSError as e:
                logger.warning(f"Could not read directory {directory}: {e}")

        files.sort()
        return files

    async def _parse_batches(self, files: List[str]) -> AsyncIterator[List[PackageRecord]]:
        """Parse files in sequential batches; files within a batch run concurrently."""
        processed = 0
        for start in range(0, len(files), self.batch_size):
            batch = files[start:start + self.batch_size]
            results = await asyncio.gather(*(self._parse_file(f) for f in batch))
            processed += len(batch)
            logger.info(f"Processed {processed}/{len(files)} files...")
            yield [record for record in results if record is not None]

    async def _parse_file(self, relative_path: str) -> Optional[PackageRecord]:
        if not self.parser.is_valid_package_file(relative_path):
            return None

        full_path = self.local_path / relative_path
        try:
            async with aiofiles.open(full_path, "r", encoding="utf-8-sig") as f:
                content = await f.read()
            return self.parser.parse_manifest(relative_path, content)
        except FileNotFoundError:
            # Deleted upstream; the existing index entry is kept.
            logger.debug(f"Manifest no longer exists: {relative_path}")
        except Exception as e:
            logger.warning(f"Failed to process file {relative_path}: {e}")
        return None

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_package(self, package_id: str) -> Optional[PackageRecord]:
        return self.query.get_package(package_id)

    def search_packages(self, query: str, page: int = 1, limit: int = 20) -> SearchResult:
        return self.query.search_packages(query, page, limit)

    def list_packages(self, page: int = 1, limit: int = 20) -> SearchResult:
        return self.query.list_packages(page, limit)

    def get_stats(self) -> SyncStats:
        return self.query.get_stats()

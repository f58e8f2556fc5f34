"""
Background task that keeps the index fresh.
"""
from __future__ import annotations

import asyncio
import logging

from pkgmirror.services.package_service import PackageService

logger = logging.getLogger(__name__)


async def scheduled_sync_loop(service: PackageService, interval_seconds: float) -> None:
    """
    Sync the repository every ``interval_seconds``.

    A failed sync is logged and retried on the next tick; the previously
    served index stays in place.
    """
    logger.info(f"Scheduled sync configured with interval: {interval_seconds}s")
    while True:
        await asyncio.sleep(interval_seconds)
        logger.info("Scheduled repository sync starting...")
        try:
            stats = await service.sync_repository()
            logger.info(f"Scheduled sync completed ({stats.total_packages} packages)")
        except Exception as e:
            logger.error(f"Scheduled sync failed: {e}")

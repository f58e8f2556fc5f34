from __future__ import annotations

from typing import Any, Optional
import logging

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from pkgmirror.core.config import ServerConfig
from pkgmirror.core.dependencies import get_package_service, get_server_config
from pkgmirror.domain.models import ApiResponse
from pkgmirror.domain.search_utils import strip_nulls
from pkgmirror.services.package_service import PackageService

logger = logging.getLogger(__name__)
router = APIRouter()

MIN_QUERY_LENGTH = 2


def _respond(response: ApiResponse, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=strip_nulls(response.model_dump(mode="json")),
    )


def _clamp_limit(limit: Optional[int], server: ServerConfig) -> int:
    if not limit or limit < 1:
        limit = server.default_search_limit
    return min(limit, server.max_search_results)


# ---------------------------------------------------------------------------
# 1. GET /health
# ---------------------------------------------------------------------------

@router.get("/health")
async def health(service: PackageService = Depends(get_package_service)) -> JSONResponse:
    """
    Liveness plus index statistics.
    """
    data: dict[str, Any] = {"status": "healthy", "syncing": service.is_syncing}
    data.update(service.get_stats().model_dump(mode="json"))
    return _respond(ApiResponse.ok(data))


# ---------------------------------------------------------------------------
# 2. GET /api/packages/search
# ---------------------------------------------------------------------------

@router.get("/api/packages/search")
async def search_packages(
    q: Optional[str] = Query(default=None),
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    service: PackageService = Depends(get_package_service),
    server: ServerConfig = Depends(get_server_config),
) -> JSONResponse:
    """
    Ranked substring search over package names and identifiers.
    """
    query = (q or "").strip()
    if len(query) < MIN_QUERY_LENGTH:
        return _respond(
            ApiResponse.fail(f"Query must be at least {MIN_QUERY_LENGTH} characters long"),
            status.HTTP_400_BAD_REQUEST,
        )

    try:
        result = service.search_packages(query, page or 1, _clamp_limit(limit, server))
    except Exception as e:
        logger.error(f"Search for '{query}' failed: {e}", exc_info=True)
        return _respond(ApiResponse.fail("Search failed"), status.HTTP_500_INTERNAL_SERVER_ERROR)

    return _respond(ApiResponse.ok(result))


# ---------------------------------------------------------------------------
# 3. GET /api/packages
# ---------------------------------------------------------------------------

@router.get("/api/packages")
async def list_packages(
    page: Optional[int] = Query(default=None),
    limit: Optional[int] = Query(default=None),
    service: PackageService = Depends(get_package_service),
    server: ServerConfig = Depends(get_server_config),
) -> JSONResponse:
    """
    All packages in index order, paginated.
    """
    result = service.list_packages(page or 1, _clamp_limit(limit, server))
    return _respond(ApiResponse.ok(result))


# ---------------------------------------------------------------------------
# 4. GET /api/packages/{package_id}
# ---------------------------------------------------------------------------

@router.get("/api/packages/{package_id}")
async def get_package(
    package_id: str,
    service: PackageService = Depends(get_package_service),
) -> JSONResponse:
    """
    Exact lookup by package identifier.
    """
    record = service.get_package(package_id)
    if record is None:
        return _respond(ApiResponse.fail("Package not found"), status.HTTP_404_NOT_FOUND)
    return _respond(ApiResponse.ok(record))


# ---------------------------------------------------------------------------
# 5. POST /api/sync
# ---------------------------------------------------------------------------

@router.post("/api/sync")
async def trigger_sync(
    full: bool = Query(default=False),
    service: PackageService = Depends(get_package_service),
) -> JSONResponse:
    """
    Run a sync now. ``full=true`` forces a complete rescan, which also drops
    packages whose manifests were deleted upstream.
    """
    try:
        stats = await service.sync_repository(force_full_scan=full)
    except Exception as e:
        logger.error(f"Manual sync failed: {e}")
        return _respond(ApiResponse.fail("Sync failed"), status.HTTP_500_INTERNAL_SERVER_ERROR)

    data: dict[str, Any] = {"message": "Sync completed"}
    data.update(stats.model_dump(mode="json"))
    return _respond(ApiResponse.ok(data))

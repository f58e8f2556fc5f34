import asyncio
import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pkgmirror.api.packages import router as packages_router
from pkgmirror.core.dependencies import get_package_service, get_repo_config, get_server_config
from pkgmirror.services.scheduler import scheduled_sync_loop

# Configure logging
logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

_SYNC_TASK = None


app = FastAPI(
    title="Package Manifest Mirror",
    version="0.1.0",
    description="Mirrors a git-hosted package manifest repository and serves search over it.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_server_config().cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(packages_router, tags=["packages"])


@app.on_event("startup")
async def startup_event() -> None:
    """
    Run the initial sync and start the periodic refresh.

    A failed initial sync propagates and the application does not start.
    """
    global _SYNC_TASK

    service = get_package_service()
    await service.initialize()

    interval = get_repo_config().refresh_interval_seconds
    if _SYNC_TASK is None:
        _SYNC_TASK = asyncio.create_task(scheduled_sync_loop(service, interval))


@app.on_event("shutdown")
async def shutdown_event() -> None:
    global _SYNC_TASK

    if _SYNC_TASK is not None:
        task, _SYNC_TASK = _SYNC_TASK, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


if __name__ == "__main__":
    """
    Allow running `python -m pkgmirror.main` to start the Uvicorn server.
    """
    import uvicorn

    server = get_server_config()
    uvicorn.run(
        "pkgmirror.main:app",
        host=server.host,
        port=server.port,
    )

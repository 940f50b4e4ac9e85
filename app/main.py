"""FastAPI application for the pingz metrics exporter.

Build the application around an injected `HealthState`: the poller writes
it from a background task started in the lifespan, and the ``/metrics``
route serializes it for Prometheus scrapes. Probes for container
orchestration sit alongside.
"""

import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import httpx
from fastapi import FastAPI, HTTPException, Request, Response, status

from app.api.middleware import RequestCorrelationMiddleware
from app.config import Settings, get_settings
from app.pingz.core.logging_config import get_logger
from app.pingz.core.poller import Poller
from app.pingz.core.state import HealthState
from app.pingz.core.types import PollConfig

logger = get_logger(__name__)


def create_app(
    poll_config: PollConfig,
    state: Optional[HealthState] = None,
    settings: Optional[Settings] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> FastAPI:
    """Create the exporter application.

    Args:
        poll_config: Targets and interval for the background poller.
        state: Health state shared with the poller. A fresh one is created
            when omitted and exposed as ``app.state.health``.
        settings: Process settings; defaults to `get_settings()`.
        client: HTTP client for the poller; the poller opens its own when
            omitted.

    Returns:
        FastAPI: The configured application.
    """
    settings = settings if settings is not None else get_settings()
    health = state if state is not None else HealthState()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Start the poller task on startup and cancel it on shutdown."""
        # === STARTUP SEQUENCE ===
        poller = Poller(
            poll_config,
            health,
            client=client,
            timeout=settings.REQUEST_TIMEOUT,
        )
        task = asyncio.create_task(poller.run(), name="pingz-poller")
        task.add_done_callback(_report_poller_exit)
        app.state.poller = poller
        app.state.poller_task = task
        app.state.is_ready = True
        logger.info("exporter ready", targets=len(poll_config.targets))

        yield

        # === SHUTDOWN SEQUENCE ===
        app.state.is_ready = False
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("poller stopped", cycles=poller.cycles)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description="Polls HTTP endpoints and exports their up/down status",
        lifespan=lifespan,
    )
    app.state.health = health
    app.state.is_ready = False

    app.add_middleware(RequestCorrelationMiddleware)

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        """Serve the current host gauges in the Prometheus text format."""
        return Response(content=health.render(), media_type=health.content_type)

    @app.get("/health/live", status_code=status.HTTP_200_OK)
    async def liveness_probe() -> dict[str, str]:
        """Return 200 while the process is serving requests."""
        return {"status": "alive"}

    @app.get("/health/ready", status_code=status.HTTP_200_OK)
    async def readiness_probe(request: Request) -> dict[str, str]:
        """Return 200 once startup finished and the poller is still running.

        Raises:
            HTTPException: 503 Service Unavailable otherwise.
        """
        task = getattr(request.app.state, "poller_task", None)
        if not request.app.state.is_ready or task is None or task.done():
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Poller is not running",
            )
        return {"status": "ready"}

    return app


def _report_poller_exit(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.critical("poller exited", error=repr(exc), exc_info=exc)

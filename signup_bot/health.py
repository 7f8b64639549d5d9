"""
HTTP health endpoint served by uvicorn next to the Discord client.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from . import __version__
from .config.settings import HealthConfig

logger = logging.getLogger(__name__)

StatusProvider = Callable[[], Dict[str, Any]]


def create_health_app(status: Optional[StatusProvider] = None) -> FastAPI:
    """
    Build the health app.

    Args:
        status: Returns the bot's current status; the app reports
            ``starting`` until one is given

    Returns:
        FastAPI application with ``/health`` and ``/``
    """
    app = FastAPI(title="Signup Bot", version=__version__)

    @app.get("/health")
    async def health():
        details = status() if status else {}
        ready = bool(details.get("ready"))
        return JSONResponse(
            status_code=200 if ready else 503,
            content={
                "status": "healthy" if ready else "starting",
                "version": __version__,
                **details
            }
        )

    @app.get("/")
    async def root():
        return {"name": "Signup Bot", "version": __version__, "health": "/health"}

    return app


class HealthServer:
    """Runs the health app in a background task."""

    def __init__(self, config: HealthConfig, status: Optional[StatusProvider] = None):
        self.config = config
        self.app = create_health_app(status)
        self.server: Optional[uvicorn.Server] = None
        self._server_task: Optional[asyncio.Task] = None

    async def start_server(self) -> None:
        if self._server_task is not None:
            logger.warning("Health server already running")
            return

        server_config = uvicorn.Config(
            app=self.app,
            host=self.config.host,
            port=self.config.port,
            log_level="warning",
            access_log=False,
            loop="asyncio"
        )
        self.server = uvicorn.Server(server_config)
        self._server_task = asyncio.create_task(self.server.serve())
        logger.info(f"Health server started on http://{self.config.host}:{self.config.port}/health")

    async def stop_server(self) -> None:
        if self.server is None:
            return

        self.server.should_exit = True
        if self._server_task:
            try:
                await asyncio.wait_for(self._server_task, timeout=10.0)
            except asyncio.TimeoutError:
                logger.warning("Health server shutdown timed out, cancelling task")
                self._server_task.cancel()
                try:
                    await self._server_task
                except asyncio.CancelledError:
                    pass

        self.server = None
        self._server_task = None
        logger.info("Health server stopped")

"""
Page Server Runner
==================

Runs the page server with uvicorn on the coordinator's event loop for the
duration of one batch.
"""

from typing import Any, Optional
import asyncio
import socket

import uvicorn
from fastapi import FastAPI

from pricetag_renderer.config.logging import get_logger

logger = get_logger(__name__)


class PageServerError(Exception):
    """Exception raised when the page server cannot start."""

    pass


class PageServer:
    """uvicorn server bound to a local port, started and stopped explicitly."""

    def __init__(self, app: FastAPI, host: str = "127.0.0.1", port: int = 3000):
        self.app = app
        self.host = host
        self.port = port
        self.logger: Any = logger.bind(component="page_server")
        self._server: Optional[uvicorn.Server] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    async def start(self) -> None:
        """
        Bind the port and wait until uvicorn accepts connections.

        Raises:
            PageServerError: If the port is unavailable or uvicorn exits during startup
        """
        sock = self._bind()
        config = uvicorn.Config(self.app, log_config=None, access_log=False, lifespan="off")
        self._server = uvicorn.Server(config)
        self._task = asyncio.create_task(self._server.serve(sockets=[sock]))

        while not self._server.started:
            if self._task.done():
                sock.close()
                error = self._task.exception()
                self.logger.error("Server exited during startup", error=str(error))
                raise PageServerError(f"Page server failed to start: {error}")
            await asyncio.sleep(0.05)

        self.logger.info("Server running", url=self.base_url)

    async def stop(self) -> None:
        """Ask uvicorn to exit and wait for it."""
        if self._server is None or self._task is None:
            return
        self._server.should_exit = True
        await self._task
        self._server = None
        self._task = None
        self.logger.info("Server closed")

    def _bind(self) -> socket.socket:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((self.host, self.port))
        except OSError as e:
            sock.close()
            self.logger.error("Port unavailable", host=self.host, port=self.port, error=str(e))
            raise PageServerError(f"Cannot bind {self.host}:{self.port}: {e}")
        # port 0 picks a free port
        self.port = sock.getsockname()[1]
        return sock

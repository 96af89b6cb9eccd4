"""
Prometheus Metrics HTTP Server.

Exposes metrics on /metrics and a liveness probe on /health.

Author: Poker Cashier Team
Version: 1.0.0
"""

import logging
from typing import Optional

from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, generate_latest

logger = logging.getLogger(__name__)


class MetricsServer:
    """
    HTTP server for Prometheus metrics.

    Example:
        server = MetricsServer(port=8000)
        await server.start()

        # Metrics available at http://localhost:8000/metrics

        await server.stop()
    """

    def __init__(self, port: int = 8000, host: str = "0.0.0.0"):
        self.port = port
        self.host = host
        self._runner: Optional[web.AppRunner] = None

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_get("/metrics", self._metrics_handler)
        app.router.add_get("/health", self._health_handler)
        return app

    async def _metrics_handler(self, request: web.Request) -> web.Response:
        response = web.Response(body=generate_latest(REGISTRY))
        response.headers["Content-Type"] = CONTENT_TYPE_LATEST
        return response

    async def _health_handler(self, request: web.Request) -> web.Response:
        return web.Response(text="OK")

    async def start(self):
        """Start the metrics server."""
        runner = web.AppRunner(self.build_app())
        await runner.setup()

        site = web.TCPSite(runner, self.host, self.port)
        try:
            await site.start()
        except OSError as e:
            await runner.cleanup()
            logger.error(f"❌ Failed to start metrics server: {e}")
            raise

        self._runner = runner
        logger.info(f"📊 Metrics server started on http://{self.host}:{self.port}/metrics")

    async def stop(self):
        """Stop the metrics server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            logger.info("🛑 Metrics server stopped")

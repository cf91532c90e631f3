"""HTTP surface for the aggregator using FastAPI."""
from fastapi import FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
import logging
import time

from metrics_aggregator.prom_exporter import create_registry

logger = logging.getLogger(__name__)


class AggregatorAPI:
    """FastAPI app exposing the relabeled metrics and health endpoints."""

    def __init__(self, engine):
        """
        Initialize the API.

        Args:
            engine: Collection engine run on every scrape of the metrics path
        """
        self.engine = engine
        self.config = engine.config
        self.registry = create_registry(engine)
        self.app = FastAPI(
            title="Metrics Aggregator",
            docs_url=None,
            redoc_url=None,
            openapi_url=None
        )

        self._setup_routes()
        logger.info(f"Metrics exposed at {self.config.metrics_path}")

    def _setup_routes(self):
        """Setup API routes."""

        # Plain def: each scrape runs its cycle in the worker threadpool
        @self.app.get(self.config.metrics_path)
        def metrics():
            """Relabeled upstream metrics plus self metrics."""
            return Response(content=generate_latest(self.registry), media_type=CONTENT_TYPE_LATEST)

        @self.app.get("/healthz")
        async def healthz():
            """Health check endpoint."""
            return {"status": "healthy", "timestamp": time.time()}

        @self.app.get("/status")
        async def status():
            """Get current aggregator status."""
            status_info = self.engine.status()
            status_info["config"] = {
                "target_url": self.config.target_url,
                "metrics_path": self.config.metrics_path,
                "aggregate_without_labels": list(self.config.aggregate_without_labels),
                "include_metrics": list(self.config.include_metrics),
                "add_prefix": self.config.add_prefix,
                "add_labels": dict(self.config.add_labels),
                "request_timeout_s": self.config.request_timeout_s,
            }
            return status_info

    def run(self):
        """Run the API server."""
        import uvicorn
        uvicorn.run(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level=self.config.log_level.lower()
        )

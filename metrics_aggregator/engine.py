"""Collection cycle: fetch, decode, relabel and time one upstream scrape."""
import time
import logging
import threading
from typing import Any, Dict, List, Optional

import requests

from metrics_aggregator.config import AggregatorConfig
from metrics_aggregator.decoder import decode_families
from metrics_aggregator.pipeline import RelabelPipeline
from metrics_aggregator.prom_exporter import SelfMetrics
from metrics_aggregator.series import EmittedSeries
from metrics_aggregator.upstream import UpstreamError, fetch_snapshot

logger = logging.getLogger(__name__)


class CollectionEngine:
    """Runs one collection cycle per downstream scrape."""

    def __init__(
        self,
        config: AggregatorConfig,
        self_metrics: SelfMetrics,
        session: Optional[requests.Session] = None
    ):
        self.config = config
        self.self_metrics = self_metrics
        self.pipeline = RelabelPipeline(config)
        self.session = session
        self.start_time = time.time()

        # Status counters shared by concurrent cycles
        self._lock = threading.Lock()
        self.cycle_count = 0
        self.failed_cycles = 0
        self.last_cycle: Dict[str, Any] = {}

        logger.info(
            f"Collection engine initialized for {config.target_url} "
            f"(dropping labels {config.aggregate_without_labels})"
        )

    def collect_cycle(self) -> List[EmittedSeries]:
        """
        Fetch the upstream snapshot and return the relabeled series.

        Never raises for upstream or decode problems: they are logged and the
        cycle returns whatever could be produced, possibly nothing. The cycle
        duration is recorded on every path.
        """
        cycle_start = time.perf_counter()
        series: List[EmittedSeries] = []
        families_count = 0
        failed = False

        try:
            try:
                body = fetch_snapshot(
                    self.config.target_url,
                    self.config.request_timeout_s,
                    session=self.session
                )
            except UpstreamError as e:
                logger.error(f"Error fetching metrics: {e}")
                failed = True
                return series

            families = decode_families(body)
            families_count = len(families)

            for family in families:
                try:
                    series.extend(self.pipeline.process(family))
                except Exception as e:
                    logger.error(f"Error processing family '{family.name}': {e}", exc_info=True)

            return series

        finally:
            duration = time.perf_counter() - cycle_start
            self.self_metrics.record_cycle_duration(self.config.target_url, duration)
            self._record_cycle(duration, families_count, len(series), failed)

    def _record_cycle(self, duration: float, families: int, series: int, failed: bool):
        with self._lock:
            self.cycle_count += 1
            if failed:
                self.failed_cycles += 1
            self.last_cycle = {
                "timestamp": time.time(),
                "duration_seconds": round(duration, 6),
                "families": families,
                "series": series,
                "failed": failed,
            }

        logger.debug(
            f"Cycle {self.cycle_count}: {families} families, {series} series "
            f"in {duration:.3f}s"
        )

    def status(self) -> Dict[str, Any]:
        """Snapshot of the engine counters for the status endpoint."""
        with self._lock:
            return {
                "uptime_seconds": time.time() - self.start_time,
                "cycle_count": self.cycle_count,
                "failed_cycles": self.failed_cycles,
                "last_cycle": dict(self.last_cycle),
            }

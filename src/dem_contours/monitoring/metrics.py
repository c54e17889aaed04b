"""
Metrics Collection

Prometheus metrics for the contour tile server: tile outcomes, neighbor
tile availability and generation latency. Each collector owns a private
registry so several apps (or tests) can live in one process.

Recording a metric never raises; failures are logged and counted.
"""

from typing import Dict, List, Union

import structlog
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)


class MetricsCollector:
    """
    Prometheus metrics collector for contour tile generation.
    """

    def __init__(self):
        self.logger = structlog.get_logger(collector_type="MetricsCollector")
        self.registry = CollectorRegistry()
        self.counters: Dict[str, Counter] = {}
        self.histograms: Dict[str, Histogram] = {}
        self.collection_errors = 0

        self._create_metric(
            'counter', 'contour_tiles_total',
            'Contour tile requests by outcome',
            ['tileset', 'status']
        )

        self._create_metric(
            'counter', 'neighbor_tiles_total',
            'Neighbor DEM tiles fetched for stitching',
            ['status']
        )

        self._create_metric(
            'histogram', 'contour_tile_duration_seconds',
            'Duration of contour tile generation',
            ['tileset']
        )

    def _create_metric(
        self,
        metric_type: str,
        name: str,
        description: str,
        labels: List[str] = None
    ) -> None:
        """Create a Prometheus metric on this collector's registry."""
        if labels is None:
            labels = []

        if metric_type == 'counter':
            self.counters[name] = Counter(
                name, description, labels,
                registry=self.registry
            )
        elif metric_type == 'histogram':
            self.histograms[name] = Histogram(
                name, description, labels,
                registry=self.registry
            )
        else:
            raise ValueError(f"Unsupported metric type: {metric_type}")

    def increment_counter(
        self,
        name: str,
        value: Union[int, float] = 1,
        labels: Dict[str, str] = None
    ) -> None:
        """
        Increment a counter metric.

        Args:
            name: Metric name
            value: Value to increment by
            labels: Metric labels
        """
        try:
            counter = self.counters[name]
            if labels:
                counter.labels(**labels).inc(value)
            else:
                counter.inc(value)
        except Exception as e:
            self.collection_errors += 1
            self.logger.error(
                "Failed to increment counter",
                metric_name=name,
                error=str(e)
            )

    def record_histogram(
        self,
        name: str,
        value: Union[int, float],
        labels: Dict[str, str] = None
    ) -> None:
        """
        Record a histogram observation.

        Args:
            name: Metric name
            value: Value to record
            labels: Metric labels
        """
        try:
            histogram = self.histograms[name]
            if labels:
                histogram.labels(**labels).observe(value)
            else:
                histogram.observe(value)
        except Exception as e:
            self.collection_errors += 1
            self.logger.error(
                "Failed to record histogram",
                metric_name=name,
                error=str(e)
            )

    def get_sample_value(self, name: str, labels: Dict[str, str] = None) -> float:
        """Current value of a sample, 0.0 if it was never recorded."""
        value = self.registry.get_sample_value(name, labels or {})
        return value if value is not None else 0.0

    def export(self) -> bytes:
        """Render all metrics in the Prometheus text exposition format."""
        return generate_latest(self.registry)

    @property
    def content_type(self) -> str:
        return CONTENT_TYPE_LATEST

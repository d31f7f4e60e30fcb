"""
Prometheus Metrics

Counters and histograms for identity reconciliation.
"""

import structlog
from prometheus_client import Counter, Histogram

logger = structlog.get_logger()

# Singleton metrics instance
_metrics: "Metrics | None" = None


class Metrics:
    """
    Prometheus metrics for the reconciliation service.

    Tracks:
    - identify calls by outcome and latency
    - cluster merges
    - single-field observations dropped by the new-information policy
    """

    def __init__(self):
        self.identify_total = Counter(
            "reconciliation_identify_total",
            "Total identify calls",
            ["outcome"],  # created, matched, merged, failed
        )

        self.identify_duration_seconds = Histogram(
            "reconciliation_identify_duration_seconds",
            "Identify duration in seconds",
            ["outcome"],
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
        )

        self.secondaries_created_total = Counter(
            "reconciliation_secondaries_created_total",
            "Secondary contacts appended to an existing cluster",
        )

        self.merged_clusters_total = Counter(
            "reconciliation_merged_clusters_total",
            "Primaries demoted into an older cluster",
        )

        self.dropped_observations_total = Counter(
            "reconciliation_dropped_observations_total",
            "Single-field observations carrying a novel value that created no record",
            ["field"],
        )

        logger.info("Prometheus metrics initialized")

    def track_identify(self, outcome: str, duration: float) -> None:
        self.identify_total.labels(outcome=outcome).inc()
        self.identify_duration_seconds.labels(outcome=outcome).observe(max(duration, 0.0))

    def track_secondary_created(self) -> None:
        self.secondaries_created_total.inc()

    def track_merge(self, demoted_count: int) -> None:
        self.merged_clusters_total.inc(demoted_count)

    def track_dropped_observation(self, field: str) -> None:
        self.dropped_observations_total.labels(field=field).inc()


def get_metrics() -> Metrics:
    """Get or create the singleton metrics instance."""
    global _metrics
    if _metrics is None:
        _metrics = Metrics()
    return _metrics

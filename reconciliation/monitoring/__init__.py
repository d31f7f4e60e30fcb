"""
Monitoring Module

Provides Prometheus metrics for the reconciliation service.
"""

from reconciliation.monitoring.metrics import Metrics, get_metrics

__all__ = [
    "Metrics",
    "get_metrics",
]

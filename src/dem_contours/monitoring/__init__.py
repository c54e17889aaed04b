"""
Monitoring Module

Prometheus metrics for contour tile generation.
"""

from .metrics import MetricsCollector

__all__ = [
    "MetricsCollector"
]

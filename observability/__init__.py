"""
Observability package for the task planner.

Provides structured JSON logging, Prometheus metrics and health checks.
"""

from .metrics import SchedulerMetrics, metrics_registry, planner_metrics
from .logging import StructuredLogger, set_request_context, generate_request_id, configure_logging
from .health import SystemHealthMonitor, HealthStatus, HealthCheck

__all__ = [
    "SchedulerMetrics",
    "metrics_registry",
    "planner_metrics",
    "StructuredLogger",
    "set_request_context",
    "generate_request_id",
    "configure_logging",
    "SystemHealthMonitor",
    "HealthStatus",
    "HealthCheck",
]

"""
Prometheus metrics collection for the task planner.

Provides counters for the task lifecycle and next-date computations and
request latency for the HTTP API.
"""

from typing import Optional
from prometheus_client import (
    Counter, Histogram, Gauge, CollectorRegistry, generate_latest,
    CONTENT_TYPE_LATEST
)

# Global metrics registry
metrics_registry = CollectorRegistry()


class SchedulerMetrics:
    """Metrics for the task planner."""

    def __init__(self, registry: CollectorRegistry = None):
        self.registry = registry or metrics_registry
        self._setup_metrics()

    def _setup_metrics(self):
        self.http_requests_total = Counter(
            'planner_http_requests_total',
            'Total HTTP requests handled',
            ['method', 'path', 'status'],
            registry=self.registry
        )

        self.http_request_duration = Histogram(
            'planner_http_request_duration_seconds',
            'HTTP request duration in seconds',
            ['method', 'path'],
            buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, float('inf')),
            registry=self.registry
        )

        self.tasks_total = Counter(
            'planner_task_operations_total',
            'Task lifecycle operations',
            ['operation', 'rule_kind'],
            registry=self.registry
        )

        self.next_date_total = Counter(
            'planner_next_date_computations_total',
            'Next-date computations by rule kind and outcome',
            ['rule_kind', 'outcome'],
            registry=self.registry
        )

        self.stored_tasks = Gauge(
            'planner_stored_tasks',
            'Number of tasks currently stored',
            registry=self.registry
        )

    def record_http_request(self, method: str, path: str, status_code: int, duration_seconds: float):
        self.http_requests_total.labels(method=method, path=path, status=str(status_code)).inc()
        self.http_request_duration.labels(method=method, path=path).observe(duration_seconds)

    def record_task_operation(self, operation: str, rule_kind: Optional[str]):
        """Record a task operation (created/updated/completed/deleted)."""
        self.tasks_total.labels(operation=operation, rule_kind=rule_kind or "once").inc()

    def record_next_date(self, rule_kind: Optional[str], success: bool):
        self.next_date_total.labels(
            rule_kind=rule_kind or "unknown",
            outcome="ok" if success else "error"
        ).inc()

    def set_stored_tasks(self, count: int):
        self.stored_tasks.set(count)

    def export(self) -> bytes:
        """Render all metrics in the Prometheus text exposition format."""
        return generate_latest(self.registry)


planner_metrics = SchedulerMetrics()

METRICS_CONTENT_TYPE = CONTENT_TYPE_LATEST

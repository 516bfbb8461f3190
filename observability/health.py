"""
System health monitoring for the task planner.

Provides health checks for the API process and the SQLite task database.
"""

import time
import asyncio
from datetime import datetime, timezone
from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import Dict, List, Optional, Any

from sqlalchemy import text
from sqlalchemy.engine import Engine

from observability.logging import health_logger, set_request_context


class HealthStatus(Enum):
    """Health status levels."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class HealthCheck:
    """Individual health check result."""
    name: str
    status: HealthStatus
    message: str
    duration_ms: float
    timestamp: str
    details: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result['status'] = self.status.value
        return result


@dataclass
class SystemHealthReport:
    """Complete system health report."""
    status: HealthStatus
    timestamp: str
    checks: List[HealthCheck]
    summary: Dict[str, Any] = field(default_factory=dict)
    request_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status.value,
            'timestamp': self.timestamp,
            'request_id': self.request_id,
            'checks': {check.name: check.to_dict() for check in self.checks},
            'summary': self.summary,
        }


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class SystemHealthMonitor:
    """Health monitoring for the API and its database."""

    def __init__(self, db_engine: Optional[Engine] = None):
        self.db_engine = db_engine
        self.logger = health_logger
        self.start_time = time.time()

    async def check_database_health(self) -> HealthCheck:
        """Check SQLite connectivity and that the task table is readable."""
        start_time = time.time()
        timestamp = _now_iso()

        if self.db_engine is None:
            return HealthCheck(
                name="database",
                status=HealthStatus.DEGRADED,
                message="Database not configured",
                duration_ms=0,
                timestamp=timestamp
            )

        try:
            with self.db_engine.connect() as conn:
                conn.execute(text("SELECT 1")).scalar()
                task_count = conn.execute(text("SELECT COUNT(*) FROM scheduler")).scalar()

            return HealthCheck(
                name="database",
                status=HealthStatus.HEALTHY,
                message="Database connection successful",
                duration_ms=(time.time() - start_time) * 1000,
                timestamp=timestamp,
                details={"task_count": int(task_count or 0)}
            )
        except Exception as e:
            return HealthCheck(
                name="database",
                status=HealthStatus.UNHEALTHY,
                message="Database health check failed",
                duration_ms=(time.time() - start_time) * 1000,
                timestamp=timestamp,
                error=str(e)
            )

    async def check_api_health(self) -> HealthCheck:
        """The API is healthy whenever it can answer."""
        return HealthCheck(
            name="api",
            status=HealthStatus.HEALTHY,
            message="API responding",
            duration_ms=0,
            timestamp=_now_iso(),
            details={"uptime_seconds": self.get_uptime()}
        )

    async def get_system_health(self, request_id: Optional[str] = None) -> SystemHealthReport:
        """Run every check and derive the overall status."""
        if request_id:
            set_request_context(request_id=request_id)

        start_time = time.time()
        checks = list(await asyncio.gather(
            self.check_api_health(),
            self.check_database_health(),
        ))

        statuses = [check.status for check in checks]
        if all(status == HealthStatus.HEALTHY for status in statuses):
            overall_status = HealthStatus.HEALTHY
        elif any(status == HealthStatus.UNHEALTHY for status in statuses):
            overall_status = HealthStatus.UNHEALTHY
        else:
            overall_status = HealthStatus.DEGRADED

        total_duration = (time.time() - start_time) * 1000
        summary = {
            "total_checks": len(checks),
            "healthy_checks": len([c for c in checks if c.status == HealthStatus.HEALTHY]),
            "total_duration_ms": total_duration,
            "uptime_seconds": self.get_uptime()
        }

        self.logger.info(
            f"System health check completed: {overall_status.value}",
            overall_status=overall_status.value,
            duration_ms=total_duration,
            event_type="system_health_check"
        )

        return SystemHealthReport(
            status=overall_status,
            timestamp=_now_iso(),
            checks=checks,
            summary=summary,
            request_id=request_id
        )

    async def get_quick_health(self) -> Dict[str, bool]:
        """Quick status for readiness probes."""
        database = await self.check_database_health()
        return {
            "api": True,
            "database": database.status == HealthStatus.HEALTHY,
        }

    def get_uptime(self) -> float:
        return time.time() - self.start_time

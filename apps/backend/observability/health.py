"""
Health check utilities for dependency monitoring.

Provides readiness checks for:
- Engine registry (at least one enabled engine)
- Outbound transport (SOCKS proxy reachable when anonymized routing is on)
- System resources (memory, disk)
"""

import time
from datetime import datetime
from typing import Any, Dict, Optional

import psutil

from .logging import get_logger

logger = get_logger(__name__)


class HealthCheckResult:
    """Result of a health check."""

    def __init__(self, name: str, status: str, details: Optional[Dict[str, Any]] = None, error: Optional[str] = None):
        self.name = name
        self.status = status  # "ok", "degraded", "error"
        self.details = details or {}
        self.error = error

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "status": self.status,
            "details": self.details,
        }
        if self.error:
            result["error"] = self.error
        return result

    @property
    def is_healthy(self) -> bool:
        return self.status == "ok"


def check_engines(coordinator) -> HealthCheckResult:
    """
    Check that the registry has engines and config enables at least one.

    Args:
        coordinator: SearchCoordinator built at startup

    Returns:
        HealthCheckResult with engine registry status
    """
    registered = len(coordinator.engines)
    enabled = coordinator.enabled_engine_names()
    open_circuits = sorted(
        name for name, engine in coordinator.engines.items() if engine.breaker.state == "open"
    )
    details = {
        "registered": registered,
        "enabled": len(enabled),
        "open_circuits": open_circuits or None,
    }

    if not enabled:
        return HealthCheckResult(name="engines", status="error", details=details, error="No engines enabled")
    if open_circuits and len(open_circuits) >= len(enabled):
        return HealthCheckResult(name="engines", status="degraded", details=details)
    return HealthCheckResult(name="engines", status="ok", details=details)


async def check_transport(transport, timeout: float = 3.0) -> HealthCheckResult:
    """
    Check outbound transport.

    Direct routing needs no check. With anonymized routing on, the SOCKS
    proxy must accept TCP connections.
    """
    if not transport.is_anonymized():
        return HealthCheckResult(name="transport", status="ok", details={"anonymized": False})

    start_time = time.time()
    reachable = await transport.check_proxy(timeout=timeout)
    latency = time.time() - start_time

    if reachable:
        return HealthCheckResult(
            name="transport",
            status="ok",
            details={"anonymized": True, "latency_ms": round(latency * 1000, 2)},
        )
    return HealthCheckResult(
        name="transport",
        status="error",
        details={"anonymized": True},
        error=f"Proxy unreachable after {timeout}s",
    )


async def check_system_resources() -> HealthCheckResult:
    """
    Check system resources (memory, disk).

    Returns:
        HealthCheckResult with system resource status
    """
    try:
        memory = psutil.virtual_memory()
        memory_percent = memory.percent

        disk = psutil.disk_usage("/")
        disk_percent = disk.percent

        status = "ok"
        warnings = []

        if memory_percent > 95:
            status = "error"
            warnings.append(f"Critical memory usage: {memory_percent}%")
        elif memory_percent > 90:
            status = "degraded"
            warnings.append(f"High memory usage: {memory_percent}%")

        if disk_percent > 95:
            status = "error"
            warnings.append(f"Critical disk usage: {disk_percent}%")
        elif disk_percent > 85 and status != "error":
            status = "degraded"
            warnings.append(f"High disk usage: {disk_percent}%")

        return HealthCheckResult(
            name="system_resources",
            status=status,
            details={
                "memory_percent": round(memory_percent, 1),
                "memory_available_mb": round(memory.available / (1024 * 1024), 1),
                "disk_percent": round(disk_percent, 1),
                "disk_free_gb": round(disk.free / (1024 * 1024 * 1024), 1),
                "warnings": warnings if warnings else None,
            },
        )

    except Exception as e:
        logger.error("System resource check failed", exc_info=True)
        return HealthCheckResult(
            name="system_resources",
            status="error",
            error=str(e)[:200],
        )


async def run_health_checks(coordinator, transport) -> Dict[str, Any]:
    """
    Run all readiness checks and return aggregated results.

    Returns:
        Dictionary with "status" (ready/degraded/unhealthy), "ready" and per-check results
    """
    checks = {
        "engines": check_engines(coordinator),
        "transport": await check_transport(transport),
        "system_resources": await check_system_resources(),
    }

    statuses = [check.status for check in checks.values()]
    if any(status == "error" for status in statuses):
        overall_status = "unhealthy"
    elif any(status == "degraded" for status in statuses):
        overall_status = "degraded"
    else:
        overall_status = "ready"

    return {
        "status": overall_status,
        "ready": overall_status != "unhealthy",
        "timestamp": datetime.utcnow().isoformat(),
        "checks": {name: check.to_dict() for name, check in checks.items()},
    }

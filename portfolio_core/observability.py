"""Observability - Structured logging and metrics"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import wraps
from typing import Callable, Optional

import json

from .errors import EntityNotFound, ReferenceNotFound, ValidationError


# ============ Structured Logging ============

class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add extra fields
        if hasattr(record, "extra"):
            log_data.update(record.extra)

        # Add exception info
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(level: str = "INFO", json_format: bool = True) -> logging.Logger:
    """
    Setup structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: Use JSON format for logs

    Returns:
        Configured logger
    """
    logger = logging.getLogger("portfolio")
    logger.setLevel(getattr(logging, level.upper()))

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler()
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    logger.addHandler(handler)
    return logger


# Global logger
logger = setup_logging()


# ============ Metrics ============

@dataclass
class Metrics:
    """In-memory metrics collector"""

    # Counters
    reconcile_count: int = 0
    activity_count: int = 0
    suppressed_count: int = 0
    page_view_count: int = 0
    query_count: int = 0
    repair_count: int = 0
    error_count: int = 0

    # Latency histograms (simplified as lists)
    reconcile_latencies: list[float] = field(default_factory=list)
    query_latencies: list[float] = field(default_factory=list)
    repair_latencies: list[float] = field(default_factory=list)

    # Gauges
    total_activities: int = 0

    def increment(self, name: str, value: int = 1) -> None:
        """Increment a counter"""
        if hasattr(self, name):
            setattr(self, name, getattr(self, name) + value)

    def record_latency(self, name: str, latency_ms: float) -> None:
        """Record a latency measurement"""
        latency_list = getattr(self, f"{name}_latencies", None)
        if latency_list is not None:
            latency_list.append(latency_ms)
            # Keep last 1000 measurements
            if len(latency_list) > 1000:
                latency_list.pop(0)

    def set_gauge(self, name: str, value: int) -> None:
        """Set a gauge value"""
        if hasattr(self, name):
            setattr(self, name, value)

    def get_percentile(self, name: str, percentile: float) -> Optional[float]:
        """Get percentile from latency histogram"""
        latencies = getattr(self, f"{name}_latencies", [])
        if not latencies:
            return None
        sorted_latencies = sorted(latencies)
        idx = int(len(sorted_latencies) * percentile / 100)
        return sorted_latencies[min(idx, len(sorted_latencies) - 1)]

    def to_dict(self) -> dict:
        """Export metrics as dictionary"""
        return {
            "counters": {
                "reconcile_count": self.reconcile_count,
                "activity_count": self.activity_count,
                "suppressed_count": self.suppressed_count,
                "page_view_count": self.page_view_count,
                "query_count": self.query_count,
                "repair_count": self.repair_count,
                "error_count": self.error_count,
            },
            "latencies": {
                "reconcile_p50": self.get_percentile("reconcile", 50),
                "reconcile_p95": self.get_percentile("reconcile", 95),
                "reconcile_p99": self.get_percentile("reconcile", 99),
                "query_p50": self.get_percentile("query", 50),
                "query_p95": self.get_percentile("query", 95),
                "query_p99": self.get_percentile("query", 99),
                "repair_p50": self.get_percentile("repair", 50),
            },
            "gauges": {
                "total_activities": self.total_activities,
            },
        }

    def reset(self) -> None:
        """Reset all metrics"""
        self.reconcile_count = 0
        self.activity_count = 0
        self.suppressed_count = 0
        self.page_view_count = 0
        self.query_count = 0
        self.repair_count = 0
        self.error_count = 0
        self.reconcile_latencies.clear()
        self.query_latencies.clear()
        self.repair_latencies.clear()
        self.total_activities = 0


# Global metrics instance
metrics = Metrics()


# ============ Decorators ============

def track_latency(operation: str):
    """Decorator to track operation latency and count calls"""
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return await func(*args, **kwargs)
            finally:
                elapsed_ms = (time.perf_counter() - start) * 1000
                metrics.record_latency(operation, elapsed_ms)
                metrics.increment(f"{operation}_count")

        return wrapper

    return decorator


def track_errors(func: Callable):
    """Decorator to count and log errors before re-raising them.

    Rejected input and missing entities are the caller's errors and are
    re-raised without counting.
    """
    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except (ValidationError, EntityNotFound, ReferenceNotFound):
            raise
        except Exception as e:
            metrics.increment("error_count")
            logger.error(f"Error in {func.__qualname__}: {e}", exc_info=True)
            raise

    return wrapper


# ============ Health Check ============

async def get_health_status(uow) -> dict:
    """
    Get comprehensive health status.

    Args:
        uow: Unit of work

    Returns:
        Health status dict
    """
    status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": {},
    }

    # Store probe: one count and one pure read
    try:
        total_activities = await uow.activities.count()
        await uow.page_views.get_count("/")

        metrics.set_gauge("total_activities", total_activities)

        status["checks"]["database"] = {"status": "ok"}
        status["checks"]["data"] = {
            "status": "ok",
            "activities": total_activities,
        }
    except Exception as e:
        logger.warning(f"Health probe failed: {e}")
        status["checks"]["database"] = {"status": "error", "message": str(e)}
        status["checks"]["data"] = {"status": "error", "message": str(e)}
        status["status"] = "unhealthy"

    return status

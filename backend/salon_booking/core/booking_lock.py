from __future__ import annotations

from contextlib import contextmanager
from datetime import date
import logging
import threading
import time
from typing import Iterator, Optional

from redis import Redis

from ..monitoring.prometheus_metrics import prometheus_metrics
from .config import settings
from .constants import ERROR_SLOT_TAKEN
from .exceptions import BookingConflictException

logger = logging.getLogger(__name__)

_SYNC_REDIS: Optional[Redis] = None
_SYNC_REDIS_LOCK = threading.Lock()


def _lock_key(resource_id: str, day: date) -> str:
    return f"booking:{resource_id}:{day.isoformat()}:mutex"


def _namespaced_key(key: str) -> str:
    return f"{settings.lock_namespace}:lock:{key}"


def _get_sync_redis() -> Optional[Redis]:
    global _SYNC_REDIS
    if _SYNC_REDIS is not None:
        return _SYNC_REDIS
    if not settings.redis_url:
        return None
    with _SYNC_REDIS_LOCK:
        if _SYNC_REDIS is not None:
            return _SYNC_REDIS
        try:
            client = Redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            client.ping()
        except Exception as exc:
            logger.warning("booking_lock_sync_redis_unavailable: %s", exc)
            return None
        _SYNC_REDIS = client
        return _SYNC_REDIS


def acquire_resource_lock(resource_id: str, day: date, ttl_s: Optional[int] = None) -> bool:
    """
    Take the advisory lock for one resource's day.

    Returns True when acquired (or when Redis is unavailable and the lock
    degrades open), False when another flow already holds it.
    """
    ttl = ttl_s or settings.booking_lock_ttl_seconds
    client = _get_sync_redis()
    if client is None:
        prometheus_metrics.record_booking_lock("acquire", "redis_unavailable")
        logger.debug(
            "booking_lock_redis_unavailable",
            extra={"resource_id": resource_id, "day": day.isoformat()},
        )
        return True
    try:
        acquired = bool(
            client.set(_namespaced_key(_lock_key(resource_id, day)), str(time.time()), nx=True, ex=ttl)
        )
        prometheus_metrics.record_booking_lock("acquire", "success" if acquired else "blocked")
        return acquired
    except Exception as exc:
        prometheus_metrics.record_booking_lock("acquire", "error")
        logger.warning(
            "booking_lock_acquire_failed",
            extra={
                "resource_id": resource_id,
                "day": day.isoformat(),
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )
        return True


def release_resource_lock(resource_id: str, day: date) -> None:
    client = _get_sync_redis()
    if client is None:
        return
    try:
        deleted = client.delete(_namespaced_key(_lock_key(resource_id, day)))
        prometheus_metrics.record_booking_lock("release", "success" if deleted else "not_found")
    except Exception as exc:
        prometheus_metrics.record_booking_lock("release", "error")
        logger.warning(
            "booking_lock_release_failed",
            extra={
                "resource_id": resource_id,
                "day": day.isoformat(),
                "error": str(exc),
                "error_type": type(exc).__name__,
            },
        )


@contextmanager
def resource_day_lock(resource_id: str, day: date, ttl_s: Optional[int] = None) -> Iterator[None]:
    """
    Hold the (resource, day) lock across a check-and-write.

    Raises BookingConflictException when another booking flow holds it.
    """
    if not acquire_resource_lock(resource_id, day, ttl_s=ttl_s):
        raise BookingConflictException(
            ERROR_SLOT_TAKEN,
            details={"resource_id": resource_id, "date": day.isoformat(), "reason": "locked"},
        )
    try:
        yield
    finally:
        release_resource_lock(resource_id, day)

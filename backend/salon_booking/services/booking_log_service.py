# backend/salon_booking/services/booking_log_service.py
"""
Booking log service.

Every change to a booking group produces a log entry with before/after
snapshots. Writing it is a fire-and-forget side effect: it is queued on a
dedicated executor and the booking flow never waits for it. The outcome
(including writes slower than ``side_effect_timeout_seconds``) is logged and
counted from a completion callback, never raised to the booking flow.
"""

from concurrent.futures import Executor, Future
import logging
import time
from typing import Any, Callable, Dict, List, Optional, Protocol

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.exceptions import RepositoryException, TransientSideEffectError
from ..database import SessionLocal
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_log_repository import BookingLogRepository
from ..repositories.factory import RepositoryFactory
from .base import BaseService
from .executors import SIDE_EFFECT_EXECUTOR

logger = logging.getLogger(__name__)


class BookingLogSink(Protocol):
    def write(self, entry: Dict[str, Any]) -> None:
        ...


class DatabaseBookingLogSink:
    """
    Writes entries through a short-lived session of its own.

    On PostgreSQL the write is bounded by a transaction-local
    ``statement_timeout`` so a stuck insert frees its worker.
    """

    def __init__(
        self,
        session_factory: Optional[Callable[[], Session]] = None,
        timeout_seconds: Optional[float] = None,
    ):
        self.session_factory = session_factory or SessionLocal
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.side_effect_timeout_seconds
        )

    def write(self, entry: Dict[str, Any]) -> None:
        db = self.session_factory()
        try:
            if db.get_bind().dialect.name == "postgresql":
                timeout_ms = int(self.timeout_seconds * 1000)
                db.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))
            BookingLogRepository(db).write(entry)
            db.commit()
        except (SQLAlchemyError, RepositoryException) as exc:
            db.rollback()
            raise TransientSideEffectError(f"Booking log write failed: {exc}") from exc
        finally:
            db.close()


def _actor_ref(actor: Any) -> Optional[str]:
    if actor is None:
        return None
    if isinstance(actor, str):
        return actor
    if isinstance(actor, dict):
        value = actor.get("id") or actor.get("actor_id")
        return str(value) if value is not None else None
    value = getattr(actor, "id", None)
    return str(value) if value is not None else str(actor)


def snapshot_group(rows: List[Any]) -> Optional[Dict[str, Any]]:
    """JSON-safe snapshot of a booking group (segments ordered by start)."""
    if not rows:
        return None
    ordered = sorted(rows, key=lambda row: row.start)
    return {
        "booking_id": ordered[0].booking_id,
        "start": ordered[0].start.isoformat(),
        "end": max(row.end for row in ordered).isoformat(),
        "segments": [row.to_dict() for row in ordered],
    }


class BookingLogService(BaseService):
    def __init__(
        self,
        db: Session,
        sink: Optional[BookingLogSink] = None,
        executor: Optional[Executor] = None,
        timeout_seconds: Optional[float] = None,
    ):
        super().__init__(db)
        self.sink = sink or DatabaseBookingLogSink()
        self.executor = executor or SIDE_EFFECT_EXECUTOR
        self.timeout_seconds = (
            timeout_seconds if timeout_seconds is not None else settings.side_effect_timeout_seconds
        )

    @staticmethod
    def build_entry(
        action: str,
        group_id: Optional[str],
        *,
        actor: Any = None,
        before: Optional[Dict[str, Any]] = None,
        after: Optional[Dict[str, Any]] = None,
        reason: Optional[str] = None,
    ) -> Dict[str, Any]:
        return {
            "action": action,
            "group_id": group_id,
            "actor_ref": _actor_ref(actor),
            "before": before,
            "after": after,
            "reason": reason,
        }

    def record(self, entry: Dict[str, Any]) -> Optional[Future]:
        """
        Queue one entry and return immediately.

        Returns the pending future, or None when logging is disabled or the
        executor refused the job. Never raises.
        """
        if not settings.audit_enabled:
            return None

        context = {"action": entry.get("action"), "group_id": entry.get("group_id")}
        try:
            future = self.executor.submit(self._timed_write, entry)
        except RuntimeError as exc:
            # Executor already shut down (process teardown)
            self.logger.warning(f"Booking log not submitted: {str(exc)}", extra=context)
            prometheus_metrics.record_side_effect("booking_log", "rejected")
            return None

        future.add_done_callback(lambda done: self._on_write_done(done, context))
        return future

    def _timed_write(self, entry: Dict[str, Any]) -> float:
        started = time.monotonic()
        self.sink.write(entry)
        return time.monotonic() - started

    def _on_write_done(self, future: Future, context: Dict[str, Any]) -> None:
        if future.cancelled():
            prometheus_metrics.record_side_effect("booking_log", "cancelled")
            return

        exc = future.exception()
        if exc is None:
            elapsed = future.result()
            if elapsed > self.timeout_seconds:
                self.logger.warning(
                    f"Booking log write took {elapsed:.2f}s (limit {self.timeout_seconds}s)",
                    extra=context,
                )
                prometheus_metrics.record_side_effect("booking_log", "timeout")
            else:
                prometheus_metrics.record_side_effect("booking_log", "success")
        elif isinstance(exc, TransientSideEffectError):
            self.logger.warning(f"Booking log failed: {str(exc)}", extra=context)
            prometheus_metrics.record_side_effect("booking_log", "failed")
        else:
            self.logger.error(
                f"Unexpected booking log error: {str(exc)}",
                extra=context,
                exc_info=(type(exc), exc, exc.__traceback__),
            )
            prometheus_metrics.record_side_effect("booking_log", "error")

    def log_change(
        self,
        action: str,
        group_id: Optional[str],
        *,
        actor: Any = None,
        before: Optional[Dict[str, Any]] = None,
        after: Optional[Dict[str, Any]] = None,
        reason: Optional[str] = None,
    ) -> Optional[Future]:
        return self.record(
            self.build_entry(
                action, group_id, actor=actor, before=before, after=after, reason=reason
            )
        )

    def history(self, group_id: str) -> List[Dict[str, Any]]:
        rows = RepositoryFactory.create_booking_log_repository(self.db).list_for_group(group_id)
        return [
            {
                "action": row.action,
                "actor_ref": row.actor_ref,
                "reason": row.reason,
                "before": row.before_snapshot,
                "after": row.after_snapshot,
                "created_at": row.created_at.isoformat() if row.created_at else None,
            }
            for row in rows
        ]

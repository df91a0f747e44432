# backend/salon_booking/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session, sessionmaker

from ...services.availability_service import AvailabilityService, SlotRequestTracker
from ...services.booking_log_service import BookingLogService, DatabaseBookingLogSink
from ...services.booking_service import BookingService
from ...services.catalog_service import CatalogService
from ...services.conflict_checker import ConflictChecker
from ...services.recurrence_service import RecurrenceService
from ...services.schedule_block_service import ScheduleBlockService
from .database import get_db


@lru_cache(maxsize=1)
def get_slot_request_tracker() -> SlotRequestTracker:
    """Process-wide tracker so a newer slot request supersedes older ones."""
    return SlotRequestTracker()


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


def get_conflict_checker(db: Session = Depends(get_db)) -> ConflictChecker:
    return ConflictChecker(db)


def get_booking_log_service(db: Session = Depends(get_db)) -> BookingLogService:
    # Entries are written through their own sessions on the request's engine.
    sink = DatabaseBookingLogSink(sessionmaker(bind=db.get_bind(), expire_on_commit=False))
    return BookingLogService(db, sink=sink)


def get_availability_service(
    db: Session = Depends(get_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
    conflict_checker: ConflictChecker = Depends(get_conflict_checker),
    tracker: SlotRequestTracker = Depends(get_slot_request_tracker),
) -> AvailabilityService:
    return AvailabilityService(db, catalog_service, conflict_checker, tracker)


def get_booking_service(
    db: Session = Depends(get_db),
    catalog_service: CatalogService = Depends(get_catalog_service),
    conflict_checker: ConflictChecker = Depends(get_conflict_checker),
    log_service: BookingLogService = Depends(get_booking_log_service),
) -> BookingService:
    """
    Get booking service instance with all dependencies.

    Args:
        db: Database session
        catalog_service: Staff and service lookups
        conflict_checker: Overlap checks against bookings and holds
        log_service: Best-effort booking log writer

    Returns:
        BookingService instance
    """
    return BookingService(
        db,
        conflict_checker=conflict_checker,
        catalog_service=catalog_service,
        log_service=log_service,
    )


def get_recurrence_service(
    db: Session = Depends(get_db),
    conflict_checker: ConflictChecker = Depends(get_conflict_checker),
    log_service: BookingLogService = Depends(get_booking_log_service),
) -> RecurrenceService:
    return RecurrenceService(db, conflict_checker=conflict_checker, log_service=log_service)


def get_schedule_block_service(
    db: Session = Depends(get_db),
    conflict_checker: ConflictChecker = Depends(get_conflict_checker),
    catalog_service: CatalogService = Depends(get_catalog_service),
) -> ScheduleBlockService:
    return ScheduleBlockService(
        db, conflict_checker=conflict_checker, catalog_service=catalog_service
    )

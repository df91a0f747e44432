# backend/salon_booking/core/exceptions.py
"""
Domain-specific exceptions for the salon booking engine.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

from .constants import ERROR_CLIENT_AMBIGUOUS, ERROR_SLOT_TAKEN

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails before anything is written."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    status_code = HTTP_422_UNPROCESSABLE


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class BookingConflictException(ConflictException):
    """Raised when a booking conflicts with existing bookings or holds."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or ERROR_SLOT_TAKEN,
            code="BOOKING_CONFLICT",
            details=details or {},
        )


class InsufficientNoticeException(ValidationException):
    """Raised when a booking starts inside the minimum notice window."""

    def __init__(self, required_hours: int, provided_hours: float):
        super().__init__(
            message=(
                f"Bookings must be made at least {required_hours} hours in advance. "
                "Please choose a later time."
            ),
            code="INSUFFICIENT_NOTICE",
            details={
                "required_hours": required_hours,
                "provided_hours": round(max(0.0, provided_hours), 2),
            },
        )


class ClientAmbiguityException(ConflictException):
    """Raised when a same-name client exists and no phone number confirms which one."""

    def __init__(self, first_name: str, last_name: str, candidate_count: int):
        super().__init__(
            message=ERROR_CLIENT_AMBIGUOUS,
            code="CLIENT_AMBIGUOUS",
            details={
                "first_name": first_name,
                "last_name": last_name,
                "candidates": candidate_count,
                "required_field": "mobile",
            },
        )


class PartialPersistenceException(ServiceException):
    """
    Raised when some, but not all, segments of a booking group were stored.

    The stored state is inconsistent and needs manual reconciliation, so this
    must never be reported as a plain validation or conflict failure.
    """

    def __init__(self, group_id: str, written: int, expected: int):
        super().__init__(
            message="The booking was only partially saved. Please contact the salon.",
            code="PARTIAL_PERSISTENCE",
            details={"group_id": group_id, "written": written, "expected": expected},
        )


class TransientSideEffectError(Exception):
    """
    Raised when a best-effort side effect (booking log, notification) fails.

    Never propagated to booking results; the side-effect runner catches it.
    """


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """

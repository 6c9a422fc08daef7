# backend/tutorbook/core/exceptions.py
"""
Domain-specific exceptions for the tutor booking service.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
All of them are local, recoverable validation outcomes.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

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
        """Default conversion to HTTPException (override in subclasses)."""
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class BusinessRuleException(DomainException):
    """Raised when a business rule is violated."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=HTTP_422_UNPROCESSABLE,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Availability exceptions


class CapacityExceededException(BusinessRuleException):
    """Raised when a day already holds the maximum number of windows."""

    def __init__(self, day: str, limit: int):
        super().__init__(
            message=f"{day} already has the maximum of {limit} time windows",
            code="CAPACITY_EXCEEDED",
            details={"day": day, "limit": limit},
        )


class InvalidWindowException(ValidationException):
    """Raised when a time window is zero-length, inverted, malformed or overlapping."""

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="INVALID_WINDOW", details=details or {})


class WindowNotFoundException(NotFoundException):
    """Raised when a window index does not exist for a day."""

    def __init__(self, day: str, index: int, size: int):
        super().__init__(
            message=f"No time window at position {index} on {day}",
            code="WINDOW_NOT_FOUND",
            details={"day": day, "index": index, "window_count": size},
        )


# Booking eligibility exceptions


class ModeUnavailableException(BusinessRuleException):
    """Raised when a teaching mode has no bookable rate."""

    def __init__(self, mode: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"Teaching mode '{mode}' is not available for this subject",
            code="MODE_UNAVAILABLE",
            details={"mode": mode, **(details or {})},
        )


class NoAvailabilityException(BusinessRuleException):
    """Raised when no window on the requested day can host the requested duration."""

    def __init__(self, day: str, duration_hours: Any):
        super().__init__(
            message=f"No time slots on {day} can host a {duration_hours}-hour session",
            code="NO_AVAILABILITY",
            details={"day": day, "duration_hours": str(duration_hours)},
        )


class InvalidSlotException(ValidationException):
    """Raised when the chosen window is not one of the eligible windows."""

    def __init__(self, time_slot: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"Time slot {time_slot} is not available for the requested duration",
            code="INVALID_SLOT",
            details={"time_slot": time_slot, **(details or {})},
        )


class InvalidContactException(ValidationException):
    """Raised when the contact number is not 10-15 digits."""

    def __init__(self, contact_number: str):
        super().__init__(
            message="Contact number must contain 10 to 15 digits",
            code="INVALID_CONTACT",
            details={"length": len(contact_number or "")},
        )


class InvalidTopicException(ValidationException):
    """Raised when requested topics are not among the offering's selected topics."""

    def __init__(self, unknown_topic_ids: list[str]):
        super().__init__(
            message="One or more topics are not offered for this subject",
            code="INVALID_TOPIC",
            details={"unknown_topic_ids": unknown_topic_ids},
        )


class TutorNotVerifiedException(BusinessRuleException):
    """Raised when booking a tutor whose profile has not been verified."""

    def __init__(self, tutor_id: str):
        super().__init__(
            message="Cannot book with unverified tutor",
            code="TUTOR_NOT_VERIFIED",
            details={"tutor_id": tutor_id},
        )


class SlotConflictException(ConflictException):
    """Raised when another active booking already holds the requested slot."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time slot has just been booked by someone else",
            code="SLOT_CONFLICT",
            details={"retryable_with_other_slot": True, **(details or {})},
        )


class InvalidTransitionException(BusinessRuleException):
    """Raised when a booking status change is not permitted."""

    def __init__(self, current: str, target: str):
        super().__init__(
            message=f"Cannot change booking status from {current} to {target}",
            code="INVALID_TRANSITION",
            details={"current_status": current, "requested_status": target},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """

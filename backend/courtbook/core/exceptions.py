# backend/courtbook/core/exceptions.py
"""
Domain-specific exceptions for the court booking service.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    headers: Optional[Dict[str, str]] = None

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
            headers=self.headers,
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

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


class ForbiddenException(DomainException):
    """Raised when user lacks permission for an action."""

    status_code = status.HTTP_403_FORBIDDEN


class UnauthorizedException(DomainException):
    """Raised when the caller is not identified."""

    status_code = status.HTTP_401_UNAUTHORIZED


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


# Specific business exceptions


class CourtNotFoundException(NotFoundException):
    """Raised when the requested court does not exist."""

    def __init__(self, court_id: str):
        super().__init__(
            message="Court not found",
            code="COURT_NOT_FOUND",
            details={"court_id": court_id},
        )


class CourtUnavailableException(ValidationException):
    """Raised when the court exists but is closed for booking."""

    def __init__(self, court_id: str):
        super().__init__(
            message="Court is not available for booking",
            code="COURT_UNAVAILABLE",
            details={"court_id": court_id},
        )


class SlotHeldException(ConflictException):
    """Raised when another request holds the advisory lock for the timeslot."""

    def __init__(
        self, *, details: Optional[Dict[str, Any]] = None, retry_after_seconds: Optional[int] = None
    ):
        super().__init__(
            message=(
                "This timeslot is currently being booked by another user. "
                "Please try again in a moment."
            ),
            code="SLOT_HELD",
            details=details or {},
        )
        if retry_after_seconds is not None:
            self.headers = {"Retry-After": str(max(1, retry_after_seconds))}


class SlotTakenException(ConflictException):
    """Raised when the timeslot overlaps an existing reservation."""

    def __init__(self, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message="The selected time slot is not available",
            code="SLOT_TAKEN",
            details=details or {},
        )


class PromotionInvalidException(ValidationException):
    """Raised when a promotion code cannot be applied to a booking."""

    def __init__(self, reason: str, message: str, *, code_value: Optional[str] = None):
        self.reason = reason
        super().__init__(
            message=message,
            code="PROMOTION_INVALID",
            details={"reason": reason, "promotion_code": code_value},
        )


class JoinRequestInvalidException(ValidationException):
    """Raised when a join request cannot be sent or answered."""

    def __init__(self, reason: str, message: str, *, details: Optional[Dict[str, Any]] = None):
        self.reason = reason
        super().__init__(
            message=message,
            code="JOIN_REQUEST_INVALID",
            details={"reason": reason, **(details or {})},
        )


class InsufficientPointsException(BusinessRuleException):
    """Raised when a redemption exceeds the user's point balance."""

    def __init__(self, required: int, available: int):
        super().__init__(
            message="Insufficient reward points",
            code="INSUFFICIENT_POINTS",
            details={"required": required, "available": available},
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """


class DuplicateEntryException(RepositoryException):
    """Raised when an insert violates a uniqueness constraint."""

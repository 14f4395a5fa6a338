"""
Custom Exceptions for the School Fee Ledger

This module defines custom exception classes used throughout the application
for better error handling and debugging. Every service raises one of these;
the API layer turns them into the JSON error envelope.
"""

from typing import Any, Dict, List, Optional
from enum import Enum

from sqlalchemy.exc import DataError, IntegrityError, OperationalError, SQLAlchemyError


class ErrorCode(str, Enum):
    """Standard error codes for the application"""
    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    NOT_FOUND = "NOT_FOUND"
    INVALID_INPUT = "INVALID_INPUT"
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Authentication & Authorization
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    AUTHORIZATION_FAILED = "AUTHORIZATION_FAILED"

    # Ledger errors
    CONFLICT = "CONFLICT"
    INSUFFICIENT_CONTEXT = "INSUFFICIENT_CONTEXT"
    INTEGRITY_FAILURE = "INTEGRITY_FAILURE"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"


class BaseAppException(Exception):
    """
    Base exception class for all application exceptions.

    Provides consistent error handling across the application with
    structured error information.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
        status_code: int = 500
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format"""
        return {
            "error": {
                "code": self.error_code.value,
                "message": self.message,
                "details": self.details,
            }
        }

    def __str__(self) -> str:
        return f"{self.error_code.value}: {self.message}"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}', error_code='{self.error_code.value}')"


# ========================================
# Not Found Exceptions
# ========================================

class ResourceNotFoundError(BaseAppException):
    """Exception raised when a requested resource is not found"""

    def __init__(
        self,
        resource_type: str = "Resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        if not message:
            message = f"{resource_type} not found"
            if resource_id:
                message += f" (ID: {resource_id})"

        details = {
            "resource_type": resource_type,
            "resource_id": resource_id
        }
        super().__init__(message, ErrorCode.NOT_FOUND, details, 404)


class StudentNotFoundError(ResourceNotFoundError):
    """Exception raised when a student is not found"""

    def __init__(self, student_id: Optional[str] = None, message: Optional[str] = None):
        super().__init__("Student", student_id, message)


class InvoiceNotFoundError(ResourceNotFoundError):
    """Exception raised when an invoice is not found"""

    def __init__(self, invoice_id: Optional[str] = None, message: Optional[str] = None):
        super().__init__("Invoice", invoice_id, message)


class PaymentNotFoundError(ResourceNotFoundError):
    """Exception raised when no payment matches a receipt or transaction reference"""

    def __init__(self, reference: Optional[str] = None, message: Optional[str] = None):
        super().__init__("Payment", reference, message)


class WaiverRequestNotFoundError(ResourceNotFoundError):
    """Exception raised when a waiver request is not found"""

    def __init__(self, request_id: Optional[str] = None, message: Optional[str] = None):
        super().__init__("WaiverRequest", request_id, message)


class FeeStructureNotFoundError(ResourceNotFoundError):
    """
    Exception raised when no active fee structure exists for a cohort.

    Carries the (course, batch, session) tuple that failed to resolve.
    """

    def __init__(
        self,
        course_id: Optional[str] = None,
        batch_id: Optional[str] = None,
        session_id: Optional[str] = None,
        structure_id: Optional[str] = None,
        message: Optional[str] = None
    ):
        if not message:
            if structure_id:
                message = f"Fee structure not found (ID: {structure_id})"
            else:
                message = (
                    "No active fee structure for "
                    f"course={course_id}, batch={batch_id}, session={session_id}"
                )
        super().__init__("FeeStructure", structure_id, message)
        self.details.update({
            "course_id": course_id,
            "batch_id": batch_id,
            "session_id": session_id,
        })


# ========================================
# Input / State Exceptions
# ========================================

class InvalidInputError(BaseAppException):
    """Exception raised when caller supplied data fails a business rule"""

    def __init__(
        self,
        message: str = "Invalid input",
        field: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(message, ErrorCode.INVALID_INPUT, details, 422)


class ConflictError(BaseAppException):
    """Exception raised when an operation conflicts with existing state"""

    def __init__(
        self,
        message: str = "Operation conflicts with existing data",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, ErrorCode.CONFLICT, details, 409)


class WaiverAlreadyProcessedError(ConflictError):
    """Exception raised when a decision is made on a non-pending waiver"""

    def __init__(self, request_id: str, current_status: str):
        super().__init__(
            f"Waiver request {request_id} has already been processed ({current_status})",
            {"request_id": request_id, "status": current_status},
        )


class DuplicateTransactionError(ConflictError):
    """Exception raised when a client payment reference was already used"""

    def __init__(self, reference: str):
        super().__init__(
            f"Payment reference already used: {reference}",
            {"reference": reference},
        )


class InsufficientContextError(BaseAppException):
    """Exception raised when the ledger has nothing to act upon"""

    def __init__(
        self,
        message: str = "Insufficient context for operation",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, ErrorCode.INSUFFICIENT_CONTEXT, details, 422)


class NoOutstandingBalanceError(InsufficientContextError):
    """Exception raised when a collection finds no open invoice to apply to"""

    def __init__(self, student_id: str):
        super().__init__(
            "No outstanding balance to apply payment",
            {"student_id": student_id},
        )


class IntegrityFailureError(BaseAppException):
    """Exception raised when a referenced row does not exist"""

    def __init__(
        self,
        message: str = "Referential integrity violation",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, ErrorCode.INTEGRITY_FAILURE, details, 409)


# ========================================
# Security Exceptions
# ========================================

class AuthenticationError(BaseAppException):
    """Exception raised when authentication fails"""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, ErrorCode.AUTHENTICATION_FAILED, None, 401)


class AuthorizationError(BaseAppException):
    """Exception raised when the caller lacks permission"""

    def __init__(
        self,
        message: str = "Insufficient permissions",
        required_roles: Optional[List[str]] = None
    ):
        details = {"required_roles": required_roles} if required_roles else {}
        super().__init__(message, ErrorCode.AUTHORIZATION_FAILED, details, 403)


# ========================================
# Database Exceptions
# ========================================

class DatabaseError(BaseAppException):
    """Exception raised for database operation errors"""

    def __init__(
        self,
        message: str = "Database operation failed",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, ErrorCode.DATABASE_ERROR, details, 500)


def handle_database_exception(exc: Exception) -> BaseAppException:
    """Convert database exceptions to application exceptions"""
    if isinstance(exc, BaseAppException):
        return exc

    error_message = str(getattr(exc, "orig", None) or exc).lower()

    if isinstance(exc, IntegrityError):
        if "unique" in error_message or "duplicate" in error_message:
            return ConflictError("Duplicate entry violates a unique constraint")
        if "foreign key" in error_message:
            return IntegrityFailureError("Referenced record does not exist")
        return IntegrityFailureError("Data integrity constraint violated")

    if isinstance(exc, DataError):
        return InvalidInputError("Value does not fit the stored field")

    if isinstance(exc, OperationalError):
        return DatabaseError("Database is unavailable")

    if isinstance(exc, SQLAlchemyError):
        return DatabaseError()

    return BaseAppException("Unexpected internal error")


__all__ = [
    'ErrorCode',
    'BaseAppException',
    'ResourceNotFoundError',
    'StudentNotFoundError',
    'InvoiceNotFoundError',
    'PaymentNotFoundError',
    'WaiverRequestNotFoundError',
    'FeeStructureNotFoundError',
    'InvalidInputError',
    'ConflictError',
    'WaiverAlreadyProcessedError',
    'DuplicateTransactionError',
    'InsufficientContextError',
    'NoOutstandingBalanceError',
    'IntegrityFailureError',
    'AuthenticationError',
    'AuthorizationError',
    'DatabaseError',
    'handle_database_exception',
]

"""
Exceptions raised by the service layer.

Each carries the HTTP status and a stable error code; the handlers registered
in main.py turn them into the standard error envelope.
"""
from typing import Any, Dict, Optional
from fastapi import status


class BaseCustomException(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class BusinessLogicError(BaseCustomException):
    """A business rule rejected the request: stock, vouchers, duplicates, transitions."""
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "BUSINESS_RULE_VIOLATION"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details)


class ResourceNotFoundError(BaseCustomException):
    """Missing, or owned by someone else; the two are indistinguishable to callers."""
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"

    def __init__(self, resource: str, identifier: str, details: Optional[Dict[str, Any]] = None):
        self.resource = resource
        self.identifier = identifier
        details = dict(details or {}, identifier=identifier)
        super().__init__(f"{resource} not found", details=details)


class AuthenticationError(BaseCustomException):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "AUTHENTICATION_REQUIRED"

    def __init__(self, message: str = "Authentication required", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details)


class AuthorizationError(BaseCustomException):
    status_code = status.HTTP_403_FORBIDDEN
    error_code = "FORBIDDEN"

    def __init__(self, message: str = "Insufficient permissions", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details)


class ValidationError(BaseCustomException):
    """Input that passed schema validation but is inconsistent with stored state."""
    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        if field:
            details["field"] = field
        super().__init__(message, details=details)

"""Domain-specific exceptions"""

from typing import Optional


class DomainException(Exception):
    """Base exception for domain layer"""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class UnauthorizedError(DomainException):
    """Missing or invalid credentials"""

    status_code = 401


class NotFoundError(DomainException):
    """Resource does not exist or is not owned by the caller"""

    status_code = 404


class ValidationError(DomainException):
    """Input rejected before any store write"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class DataStoreError(DomainException):
    """The data store failed to read or write"""

    status_code = 500

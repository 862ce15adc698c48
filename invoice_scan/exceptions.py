"""
Shared exceptions for the invoice scan service.

Each exception carries the HTTP status and the error code that the
application's exception handlers put into the error envelope.
"""

from fastapi import status


class InvoiceScanError(Exception):
    """Base class for errors surfaced through the API envelope."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str | None = None

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class ValidationError(InvoiceScanError):
    """Raised when a request is missing fields or has malformed input."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class FileTooLargeError(ValidationError):
    """Raised when an upload exceeds the configured size limit."""

    status_code = 413
    code = "FILE_TOO_LARGE"


class NotFoundError(InvoiceScanError):
    """Raised by routers when a referenced id does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ExtractionError(InvoiceScanError):
    """Raised when the AI call or its output fails."""

    code = "EXTRACTION_ERROR"


class PersistenceError(InvoiceScanError):
    """Raised when a store write fails."""

    code = "PERSISTENCE_ERROR"


class ConfigurationError(InvoiceScanError):
    """Raised when a required credential or connection string is missing."""

    code = "CONFIGURATION_ERROR"

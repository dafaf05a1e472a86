"""
Exception hierarchy of the ampet-core package.

Every error carries a machine-readable ``error_code`` and a ``details``
dictionary next to its message. Database errors know whether they may be
retried, and the import pipeline has its own branch rooted at
``ImportException``.
"""

import asyncio
import functools
import logging
import time
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import urlparse


class AmpetCoreException(Exception):
    """Root of every exception raised by ampet-core."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or type(self).__name__
        self.details = dict(details or {})

    def to_dict(self) -> Dict[str, Any]:
        """Serializable form, used as ``extra`` payload when logging."""
        return {
            "error_type": type(self).__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": time.time(),
        }

    def __str__(self) -> str:
        if not self.details:
            return self.message
        return f"{self.message} (Details: {self.details})"


# Database errors


class DatabaseException(AmpetCoreException):
    """
    A failed database operation.

    ``retry_count`` and ``max_retries`` drive ``handle_database_retry``; an
    exception created with ``max_retries=0`` is never retried.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None,
        retry_count: int = 0,
        max_retries: int = 3,
    ):
        super().__init__(message, error_code or "DATABASE_ERROR", details)
        self.original_error = original_error
        self.retry_count = retry_count
        self.max_retries = max_retries

        if original_error is not None:
            self.details.setdefault("original_error", str(original_error))
        self.details["retry_count"] = retry_count
        self.details["max_retries"] = max_retries
        self.details["retryable"] = self.is_retryable()

    def is_retryable(self) -> bool:
        return self.retry_count < self.max_retries


# Driver messages that no amount of retrying will fix
_FATAL_CONNECTION_HINTS = (
    "authentication failed",
    "password authentication",
    "permission denied",
    "does not exist",
)


class ConnectionException(DatabaseException):
    """The database could not be reached, or the connection dropped."""

    def __init__(
        self,
        message: str = "Database connection failed",
        database_url: Optional[str] = None,
        original_error: Optional[Exception] = None,
        retry_count: int = 0,
        max_retries: int = 3,
    ):
        details = {}
        if database_url:
            details["database_url"] = self.redact_url(database_url)
        super().__init__(
            message,
            "DATABASE_CONNECTION_ERROR",
            details,
            original_error=original_error,
            retry_count=retry_count,
            max_retries=max_retries,
        )

    @staticmethod
    def redact_url(url: str) -> str:
        """``url`` with the user and password removed."""
        parsed = urlparse(url)
        if parsed.password is None and parsed.username is None:
            return url
        host = parsed.hostname or ""
        if parsed.port:
            host = f"{host}:{parsed.port}"
        return parsed._replace(netloc=host).geturl()

    def is_retryable(self) -> bool:
        if self.retry_count >= self.max_retries:
            return False
        cause = str(self.original_error or "").lower()
        return not any(hint in cause for hint in _FATAL_CONNECTION_HINTS)


# Validation and configuration errors


class ValidationException(AmpetCoreException):
    """Input rejected before it reached the database."""

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        value: Optional[Any] = None,
        error_code: str = "VALIDATION_ERROR",
    ):
        details: Dict[str, Any] = {}
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)
        super().__init__(message, error_code, details)


class BusinessRuleException(ValidationException):
    """Valid input that breaks a workflow rule."""

    def __init__(
        self,
        message: str,
        rule_name: str,
        context: Optional[Dict[str, Any]] = None,
        error_code: str = "BUSINESS_RULE_ERROR",
    ):
        super().__init__(message, error_code=error_code)
        self.rule_name = rule_name
        self.details["rule_name"] = rule_name
        if context:
            self.details["context"] = context


_SECRET_MARKERS = ("password", "secret", "token", "key", "credential")


class ConfigurationException(AmpetCoreException):
    """A setting is missing or holds an unusable value."""

    def __init__(
        self,
        message: str = "Configuration error",
        config_key: Optional[str] = None,
        config_value: Optional[str] = None,
    ):
        details = {}
        if config_key:
            details["config_key"] = config_key
        if config_value:
            secret = not config_key or any(
                marker in config_key.lower() for marker in _SECRET_MARKERS
            )
            details["config_value"] = "[REDACTED]" if secret else config_value
        super().__init__(message, "CONFIGURATION_ERROR", details)


# Import pipeline errors


class ImportException(AmpetCoreException):
    """Base exception for the CSV bulk-import pipeline."""


class ParseError(ImportException):
    """
    Raised when an uploaded file cannot be turned into a table.

    Fatal to an import run: no mapping or row processing happens after it.
    """

    def __init__(
        self,
        message: str = "Could not read the uploaded file",
        filename: Optional[str] = None,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if filename:
            details["filename"] = filename
        super().__init__(message, error_code or "PARSE_ERROR", details)


class MalformedFileError(ParseError):
    """Raised when the file content cannot be decoded or tokenized."""

    def __init__(
        self,
        message: str = "File is not valid delimited text",
        filename: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details = {}
        if original_error is not None:
            details["original_error"] = str(original_error)
        super().__init__(message, filename, "PARSE_MALFORMED", details)
        self.original_error = original_error


class EmptyFileError(ParseError):
    """Raised when the file has no header line or no data lines."""

    def __init__(
        self,
        message: str = "File must contain a header line and at least one data line",
        filename: Optional[str] = None,
        line_count: int = 0,
    ):
        super().__init__(
            message, filename, "PARSE_TOO_FEW_LINES", {"line_count": line_count}
        )
        self.line_count = line_count


class UnsupportedFileError(ParseError):
    """Raised when the upload has an extension the importer does not read."""

    def __init__(
        self,
        filename: str,
        allowed_extensions: Sequence[str],
    ):
        super().__init__(
            f"Unsupported file type for '{filename}'",
            filename,
            "PARSE_UNSUPPORTED_EXTENSION",
            {"allowed_extensions": list(allowed_extensions)},
        )


class FileTooLargeError(ParseError):
    """Raised when the upload exceeds the configured size ceiling."""

    def __init__(self, filename: Optional[str], size: int, max_bytes: int):
        super().__init__(
            f"File is too large ({size} bytes, maximum {max_bytes})",
            filename,
            "PARSE_FILE_TOO_LARGE",
            {"size": size, "max_bytes": max_bytes},
        )
        self.size = size
        self.max_bytes = max_bytes


class CollaboratorError(ImportException):
    """
    Failure reported by an external account or record collaborator.

    The importer catches it at the row boundary and records ``reason``
    as the row's failure reason.
    """

    def __init__(
        self,
        reason: str,
        operation: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        details: Dict[str, Any] = {}
        if operation:
            details["operation"] = operation
        if original_error is not None:
            details["original_error"] = str(original_error)
        super().__init__(reason, "COLLABORATOR_ERROR", details)
        self.reason = reason
        self.operation = operation
        self.original_error = original_error

    def __str__(self) -> str:
        return self.reason


class MappingIncompleteError(BusinessRuleException):
    """Raised when a mapping is confirmed while required fields are unmapped."""

    def __init__(self, missing_fields: List[str]):
        super().__init__(
            "Required fields are not mapped: " + ", ".join(missing_fields),
            rule_name="required_fields_mapped",
            context={"missing_fields": missing_fields},
            error_code="MAPPING_INCOMPLETE",
        )
        self.missing_fields = missing_fields


class InvalidTransitionError(BusinessRuleException):
    """Raised when the import wizard is asked for a step its state forbids."""

    def __init__(self, current_state: str, action: str):
        super().__init__(
            f"Cannot {action} while the import is in state '{current_state}'",
            rule_name="import_wizard_transition",
            context={"state": current_state, "action": action},
            error_code="INVALID_TRANSITION",
        )
        self.current_state = current_state
        self.action = action


# Helpers


def format_validation_errors(errors: List[Dict[str, Any]]) -> Dict[str, List[str]]:
    """
    Group pydantic ``errors()`` entries by dotted field path.

    Missing values read "This field is required"; value errors keep their
    message and anything else gets its error type appended.
    """
    grouped: Dict[str, List[str]] = {}
    for error in errors:
        path = ".".join(str(part) for part in error.get("loc", ())) or "root"
        kind = error.get("type", "unknown")
        text = error.get("msg", "Validation error")
        if kind == "missing":
            text = "This field is required"
        elif kind != "value_error":
            text = f"{text} (type: {kind})"
        grouped.setdefault(path, []).append(text)
    return grouped


def handle_database_retry(
    operation_name: str,
    max_retries: int = 3,
    base_delay: float = 1.0,
    logger: Optional[logging.Logger] = None,
):
    """
    Retry an async database call with exponential backoff.

    Only ``DatabaseException`` failures that report themselves retryable are
    retried, at most ``max_retries`` times, sleeping ``base_delay * 2**n``
    seconds between attempts. Other exceptions propagate at once.
    """
    log = logger or logging.getLogger(__name__)

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except DatabaseException as e:
                    attempt += 1
                    if attempt > max_retries or not e.is_retryable():
                        log.error(
                            f"'{operation_name}' gave up after {attempt} attempt(s)",
                            extra={"exception_data": e.to_dict()},
                        )
                        raise
                    delay = base_delay * 2 ** (attempt - 1)
                    log.warning(
                        f"'{operation_name}' failed on attempt {attempt}, "
                        f"retrying in {delay}s",
                        extra={"exception_data": e.to_dict()},
                    )
                    await asyncio.sleep(delay)

        return wrapper

    return decorator

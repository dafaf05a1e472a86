"""
Custom exceptions for the ampet core package.
"""

from .core_exceptions import (
    AmpetCoreException,
    BusinessRuleException,
    CollaboratorError,
    ConfigurationException,
    ConnectionException,
    DatabaseException,
    EmptyFileError,
    FileTooLargeError,
    ImportException,
    InvalidTransitionError,
    MalformedFileError,
    MappingIncompleteError,
    ParseError,
    UnsupportedFileError,
    ValidationException,
    format_validation_errors,
    handle_database_retry,
)

__all__ = [
    "AmpetCoreException",
    "DatabaseException",
    "ConnectionException",
    "ValidationException",
    "BusinessRuleException",
    "ConfigurationException",
    # Import pipeline
    "ImportException",
    "ParseError",
    "MalformedFileError",
    "EmptyFileError",
    "UnsupportedFileError",
    "FileTooLargeError",
    "CollaboratorError",
    "MappingIncompleteError",
    "InvalidTransitionError",
    # Helpers
    "format_validation_errors",
    "handle_database_retry",
]

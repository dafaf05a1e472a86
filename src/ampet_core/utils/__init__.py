"""
Utility functions and helper modules.

This module provides common utility functions for validation,
text normalization and configuration management.
"""

from .validation import (
    ValidationError,
    ValidationResult,
    sanitize_string,
    strip_accents,
    normalize_key,
    normalize_email,
    validate_email,
    validate_phone,
)

from .config import (
    ConfigError,
    EnvironmentConfig,
    DatabaseURLValidator,
    LoggingConfigurator,
    ImportSettings,
)

__all__ = [
    # Validation helpers
    "ValidationError",
    "ValidationResult",
    "sanitize_string",
    "strip_accents",
    "normalize_key",
    "normalize_email",
    "validate_email",
    "validate_phone",
    # Configuration utilities
    "ConfigError",
    "EnvironmentConfig",
    "DatabaseURLValidator",
    "LoggingConfigurator",
    "ImportSettings",
]

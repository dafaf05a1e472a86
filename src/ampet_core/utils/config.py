"""
Configuration helpers.

Typed access to environment variables, database URL checks, logging setup,
and the ``ImportSettings`` that govern the CSV bulk-import pipeline.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from ..exceptions import ConfigurationException


class ConfigError(ConfigurationException):
    """A setting read from the environment is missing or invalid."""


_TRUTHY = frozenset({"1", "true", "yes", "on", "enabled"})


class EnvironmentConfig:
    """Environment variable lookups with type conversion."""

    @staticmethod
    def _raw(key: str, required: bool) -> Optional[str]:
        value = os.getenv(key)
        if value is None and required:
            raise ConfigError(
                f"Required environment variable '{key}' is not set", config_key=key
            )
        return value

    @staticmethod
    def get_str(
        key: str, default: Optional[str] = None, required: bool = False
    ) -> Optional[str]:
        value = EnvironmentConfig._raw(key, required)
        return default if value is None else value

    @staticmethod
    def get_int(
        key: str, default: Optional[int] = None, required: bool = False
    ) -> Optional[int]:
        """
        Integer value of ``key``.

        Raises:
            ConfigError: If the variable is required and unset, or is not
                an integer
        """
        value = EnvironmentConfig._raw(key, required)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            raise ConfigError(
                f"Environment variable '{key}' must be an integer, got: {value}",
                config_key=key,
                config_value=value,
            )

    @staticmethod
    def get_bool(
        key: str, default: Optional[bool] = None, required: bool = False
    ) -> Optional[bool]:
        value = EnvironmentConfig._raw(key, required)
        if value is None:
            return default
        return value.strip().lower() in _TRUTHY

    @staticmethod
    def get_list(
        key: str,
        separator: str = ",",
        default: Optional[List[str]] = None,
        required: bool = False,
    ) -> List[str]:
        """Items of a separated list; blank items are dropped."""
        value = EnvironmentConfig._raw(key, required)
        if value is None:
            return list(default or [])
        return [item.strip() for item in value.split(separator) if item.strip()]


class DatabaseURLValidator:
    """Checks that a URL names a database this package can drive."""

    SUPPORTED_SCHEMES = (
        "postgresql",
        "postgresql+asyncpg",
        "sqlite",
        "sqlite+aiosqlite",
    )

    @classmethod
    def validate_url(cls, url: str) -> Dict[str, Any]:
        """
        Parse ``url`` into its components.

        SQLite URLs need neither host nor database name; PostgreSQL URLs
        need both.

        Raises:
            ConfigError: If the URL is empty, unsupported or incomplete
        """
        if not url:
            raise ConfigError("Database URL cannot be empty")

        parsed = urlparse(url)
        if parsed.scheme not in cls.SUPPORTED_SCHEMES:
            raise ConfigError(
                f"Unsupported database URL scheme '{parsed.scheme or url}'. "
                f"Supported: {', '.join(cls.SUPPORTED_SCHEMES)}"
            )

        database = parsed.path.lstrip("/")
        if not parsed.scheme.startswith("sqlite"):
            if not parsed.hostname:
                raise ConfigError("Database URL must include a hostname")
            if not database:
                raise ConfigError("Database URL must include a database name")

        return {
            "valid": True,
            "scheme": parsed.scheme,
            "hostname": parsed.hostname,
            "port": parsed.port,
            "database": database,
        }


class LoggingConfigurator:
    """Process-wide logging setup for command-line entry points."""

    DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

    @staticmethod
    def configure_basic_logging(
        level: str = "INFO",
        format_string: Optional[str] = None,
        log_file: Optional[str] = None,
    ) -> None:
        options: Dict[str, Any] = {
            "level": level.upper(),
            "format": format_string or LoggingConfigurator.DEFAULT_FORMAT,
            "datefmt": "%Y-%m-%d %H:%M:%S",
        }
        if log_file:
            options["filename"] = log_file
        logging.basicConfig(**options)


DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024
DEFAULT_ALLOWED_EXTENSIONS: Tuple[str, ...] = (".csv", ".txt")


@dataclass
class ImportSettings:
    """
    Settings for the CSV bulk-import pipeline.

    ``delimiter`` is ``None`` by default, meaning the parser detects it from
    the file's first lines.
    """

    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    allowed_extensions: Tuple[str, ...] = DEFAULT_ALLOWED_EXTENSIONS
    provenance_tag: str = "CSV Import"
    credential_prefix: str = "Ampet_"
    preview_rows: int = 5
    delimiter: Optional[str] = None

    def __post_init__(self) -> None:
        if self.max_upload_bytes <= 0:
            raise ConfigError(
                "Upload size ceiling must be positive",
                config_key="max_upload_bytes",
                config_value=str(self.max_upload_bytes),
            )
        if self.preview_rows < 0:
            raise ConfigError(
                "Preview row count cannot be negative",
                config_key="preview_rows",
                config_value=str(self.preview_rows),
            )
        if self.delimiter is not None and len(self.delimiter) != 1:
            raise ConfigError(
                "Delimiter must be a single character",
                config_key="delimiter",
                config_value=self.delimiter,
            )
        self.allowed_extensions = tuple(
            "." + ext.lower().lstrip(".") for ext in self.allowed_extensions
        )

    @classmethod
    def from_environment(cls) -> "ImportSettings":
        """Build settings from ``AMPET_IMPORT_*`` environment variables."""
        env = EnvironmentConfig
        delimiter = env.get_str("AMPET_IMPORT_DELIMITER")
        if delimiter == "\\t":
            delimiter = "\t"
        return cls(
            max_upload_bytes=env.get_int(
                "AMPET_IMPORT_MAX_BYTES", DEFAULT_MAX_UPLOAD_BYTES
            ),
            allowed_extensions=tuple(
                env.get_list("AMPET_IMPORT_EXTENSIONS")
                or DEFAULT_ALLOWED_EXTENSIONS
            ),
            provenance_tag=env.get_str("AMPET_IMPORT_PROVENANCE_TAG", "CSV Import"),
            credential_prefix=env.get_str("AMPET_IMPORT_CREDENTIAL_PREFIX", "Ampet_"),
            preview_rows=env.get_int("AMPET_IMPORT_PREVIEW_ROWS", 5),
            delimiter=delimiter or None,
        )

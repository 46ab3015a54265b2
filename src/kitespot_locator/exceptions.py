"""Application exception classes."""

from __future__ import annotations

from typing import Any


class ConfigError(Exception):
    """Raised when configuration is invalid or incomplete."""


class InvalidCoordinateError(ValueError):
    """Raised when a latitude/longitude pair is missing, malformed or out of range."""


class CatalogError(Exception):
    """Raised when a spot catalog cannot be read or contains invalid rows."""


class WeatherSourceError(Exception):
    """Raised when a single weather source cannot produce a usable record."""

    def __init__(
        self,
        message: str,
        *,
        source: str = "unknown",
        payload: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.source = source
        self.payload = payload


class WeatherNormalizationError(WeatherSourceError):
    """Raised when a source payload is malformed or carries out-of-range values."""


class JournalError(Exception):
    """Raised when writing to journal files fails."""

"""Source contract shared by every weather adapter in the escalation chain."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ..models import Coordinate, ForecastPoint, Provenance, WeatherRecord


class WeatherSource(ABC):
    """One upstream able to answer "weather for a coordinate".

    Implementations raise ``WeatherSourceError`` for every non-success outcome
    (transport error, timeout, bad status, malformed or out-of-range payload)
    and never retry internally.
    """

    name: str = "source"
    provenance: Provenance = "internal"

    @abstractmethod
    def fetch_current(self, coordinate: Coordinate, *, timeout: float) -> WeatherRecord:
        """Return current conditions at ``coordinate`` within ``timeout`` seconds."""

    @abstractmethod
    def fetch_forecast(
        self, coordinate: Coordinate, *, hours: int, timeout: float
    ) -> list[ForecastPoint]:
        """Return a non-empty hourly forecast starting now."""

    def close(self) -> None:
        """Release source resources."""

    def __enter__(self) -> WeatherSource:
        return self

    def __exit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        self.close()

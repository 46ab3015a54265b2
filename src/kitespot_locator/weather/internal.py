"""Adapter for the system's own weather data service (the authoritative source)."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime

import httpx

from ..config import Settings
from ..exceptions import WeatherNormalizationError
from ..models import Coordinate, ForecastPoint, Provenance, WeatherRecord
from .http import HttpWeatherSource
from .normalizer import normalize_internal_forecast, normalize_internal_observation


def _utc_now() -> datetime:
    return datetime.now(UTC)


class InternalServiceSource(HttpWeatherSource):
    """Reads the latest stored observation/forecast for a coordinate from the data service."""

    name = "internal"
    provenance: Provenance = "internal"

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger,
        client: httpx.Client | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        headers: dict[str, str] = {}
        if settings.internal_api_token:
            headers["Authorization"] = f"Bearer {settings.internal_api_token}"
        super().__init__(
            logger=logger,
            user_agent=settings.http_user_agent,
            headers=headers,
            client=client,
        )
        self.base_url = str(settings.internal_weather_base_url).rstrip("/")
        self.max_age_seconds = settings.internal_max_age_seconds
        self._clock = clock

    def fetch_current(self, coordinate: Coordinate, *, timeout: float) -> WeatherRecord:
        payload = self._request_json(
            f"{self.base_url}/weather",
            params={"lat": coordinate.latitude, "lng": coordinate.longitude},
            timeout=timeout,
            context="observation fetch",
        )
        return normalize_internal_observation(
            payload,
            now=self._clock(),
            max_age_seconds=self.max_age_seconds,
            provenance=self.provenance,
            source=self.name,
        )

    def fetch_forecast(
        self, coordinate: Coordinate, *, hours: int, timeout: float
    ) -> list[ForecastPoint]:
        payload = self._request_json(
            f"{self.base_url}/forecast",
            params={"lat": coordinate.latitude, "lng": coordinate.longitude, "hours": hours},
            timeout=timeout,
            context="forecast fetch",
        )
        now = self._clock()
        # Stored rows in the past are history, not forecast.
        points = [
            point
            for point in normalize_internal_forecast(payload, source=self.name)
            if point.timestamp >= now.replace(minute=0, second=0, microsecond=0)
        ]
        if not points:
            raise WeatherNormalizationError(
                f"{self.name} forecast has no rows at or after {now.isoformat()}.",
                source=self.name,
                payload=payload,
            )
        return points[:hours]

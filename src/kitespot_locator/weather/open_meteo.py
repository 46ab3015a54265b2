"""Adapter for the public Open-Meteo forecast API."""

from __future__ import annotations

import logging

import httpx

from ..config import Settings
from ..models import Coordinate, ForecastPoint, Provenance, WeatherRecord
from .http import HttpWeatherSource
from .normalizer import normalize_open_meteo_current, normalize_open_meteo_hourly

CURRENT_FIELDS = "temperature_2m,wind_speed_10m,wind_direction_10m,wind_gusts_10m"
HOURLY_FIELDS = CURRENT_FIELDS


class OpenMeteoSource(HttpWeatherSource):
    """Queries Open-Meteo directly, bypassing the internal data service."""

    name = "open-meteo"
    provenance: Provenance = "external-direct"

    def __init__(
        self,
        settings: Settings,
        logger: logging.Logger,
        client: httpx.Client | None = None,
    ) -> None:
        super().__init__(logger=logger, user_agent=settings.http_user_agent, client=client)
        self.url = str(settings.open_meteo_url)

    def _base_params(self, coordinate: Coordinate) -> dict[str, object]:
        return {
            "latitude": f"{coordinate.latitude:.4f}",
            "longitude": f"{coordinate.longitude:.4f}",
            "wind_speed_unit": "kmh",
            "timezone": "GMT",
        }

    def fetch_current(self, coordinate: Coordinate, *, timeout: float) -> WeatherRecord:
        params = self._base_params(coordinate)
        params["current"] = CURRENT_FIELDS
        payload = self._request_json(
            self.url, params=params, timeout=timeout, context="current conditions fetch"
        )
        return normalize_open_meteo_current(
            payload, provenance=self.provenance, source=self.name
        )

    def fetch_forecast(
        self, coordinate: Coordinate, *, hours: int, timeout: float
    ) -> list[ForecastPoint]:
        params = self._base_params(coordinate)
        params["hourly"] = HOURLY_FIELDS
        params["forecast_hours"] = hours
        payload = self._request_json(
            self.url, params=params, timeout=timeout, context="hourly forecast fetch"
        )
        return normalize_open_meteo_hourly(payload, source=self.name)[:hours]

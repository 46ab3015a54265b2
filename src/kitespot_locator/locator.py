"""Caller-facing facade: nearest spot lookup plus weather resolution."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, Field

from .config import Settings
from .geo.catalog import load_catalog, seed_catalog
from .geo.index import CatalogHolder, GeoIndex, SpotIndex
from .models import Coordinate, NearestSpot, SpotRecord, SpotWeather, WeatherRecord
from .weather.internal import InternalServiceSource
from .weather.mock import MockWeatherGenerator
from .weather.open_meteo import OpenMeteoSource
from .weather.pipeline import (
    ForecastResolution,
    StageAttempt,
    WeatherResolution,
    WeatherResolver,
)


class SpotWeatherResolution(BaseModel):
    """Spot weather plus the stage trail that produced its reading."""

    spot_weather: SpotWeather
    attempts: list[StageAttempt] = Field(default_factory=list)


class KiteSpotLocator:
    """Answers "which spot is closest" and "what is the weather there".

    Coordinates are expected to be range-checked already (see
    ``models.validate_coordinate``); surfacing bad input is the caller's job.
    """

    def __init__(
        self,
        *,
        catalog: CatalogHolder,
        resolver: WeatherResolver,
        logger: logging.Logger,
        max_distance_km: float | None = None,
    ) -> None:
        self.catalog = catalog
        self.resolver = resolver
        self.logger = logger
        self.max_distance_km = max_distance_km

    @classmethod
    def from_settings(cls, settings: Settings, logger: logging.Logger) -> KiteSpotLocator:
        """Wire the default sources and catalog described by ``settings``."""
        spots = load_catalog(settings.catalog_path) if settings.catalog_path else seed_catalog()
        resolver = WeatherResolver(
            internal=InternalServiceSource(settings=settings, logger=logger),
            external=OpenMeteoSource(settings=settings, logger=logger),
            synthetic=MockWeatherGenerator.from_seed(settings.mock_seed),
            logger=logger,
            internal_timeout_seconds=settings.internal_timeout_seconds,
            external_timeout_seconds=settings.public_timeout_seconds,
        )
        logger.info("Loaded spot catalog with %d entries", len(spots))
        return cls(
            catalog=CatalogHolder(GeoIndex(spots)),
            resolver=resolver,
            logger=logger,
            max_distance_km=settings.nearest_max_distance_km,
        )

    def __enter__(self) -> KiteSpotLocator:
        return self

    def __exit__(self, exc_type: Any, exc: Any, exc_tb: Any) -> None:
        self.close()

    def close(self) -> None:
        self.resolver.internal.close()
        self.resolver.external.close()

    def find_nearest(self, coordinate: Coordinate) -> NearestSpot | None:
        """Closest catalog spot, or None for an empty catalog or one beyond the cutoff."""
        nearest = self.catalog.find_nearest(coordinate)
        if nearest is None:
            return None
        if self.max_distance_km is not None and nearest.distance_km > self.max_distance_km:
            self.logger.info(
                "Nearest spot %s is %.1f km away, beyond the %.1f km cutoff",
                nearest.spot.name,
                nearest.distance_km,
                self.max_distance_km,
            )
            return None
        return nearest

    def resolve_weather(self, coordinate: Coordinate) -> WeatherRecord:
        return self.resolver.resolve_weather(coordinate)

    def resolve_weather_detailed(self, coordinate: Coordinate) -> WeatherResolution:
        return self.resolver.resolve(coordinate)

    def resolve_forecast(self, coordinate: Coordinate, hours: int) -> ForecastResolution:
        return self.resolver.resolve_forecast(coordinate, hours)

    def resolve_spot_weather(self, coordinate: Coordinate) -> SpotWeather:
        """Weather at the nearest spot, or at the query point when no spot matches."""
        return self.resolve_spot_weather_detailed(coordinate).spot_weather

    def resolve_spot_weather_detailed(self, coordinate: Coordinate) -> SpotWeatherResolution:
        nearest = self.find_nearest(coordinate)
        target = nearest.spot.coordinate if nearest is not None else coordinate
        resolution = self.resolver.resolve(target)
        return SpotWeatherResolution(
            spot_weather=SpotWeather(nearest=nearest, weather=resolution.record),
            attempts=resolution.attempts,
        )

    def reload_catalog(self, spots: Iterable[SpotRecord]) -> SpotIndex:
        """Replace the whole catalog snapshot; returns the previous index."""
        previous = self.catalog.reload(spots)
        self.logger.info("Spot catalog reloaded with %d entries", len(self.catalog.index))
        return previous

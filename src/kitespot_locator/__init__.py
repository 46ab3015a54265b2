"""Kitesurfing spot lookup and fault-tolerant weather resolution."""

from .locator import KiteSpotLocator
from .models import (
    Coordinate,
    ForecastPoint,
    NearestSpot,
    SpotRecord,
    SpotWeather,
    WeatherForecast,
    WeatherRecord,
    validate_coordinate,
)

__all__ = [
    "Coordinate",
    "ForecastPoint",
    "KiteSpotLocator",
    "NearestSpot",
    "SpotRecord",
    "SpotWeather",
    "WeatherForecast",
    "WeatherRecord",
    "validate_coordinate",
]

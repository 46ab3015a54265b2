"""Canonical typed records shared by the geo index and the weather pipeline."""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .exceptions import InvalidCoordinateError

Difficulty = Literal["beginner", "intermediate", "advanced"]
WaterType = Literal["flat", "choppy", "waves"]
Provenance = Literal["internal", "external-direct", "synthetic"]

PROVENANCES: tuple[Provenance, ...] = ("internal", "external-direct", "synthetic")


class Coordinate(BaseModel):
    """Range-checked latitude/longitude pair in decimal degrees."""

    model_config = ConfigDict(frozen=True)

    latitude: float = Field(ge=-90, le=90, allow_inf_nan=False)
    longitude: float = Field(ge=-180, le=180, allow_inf_nan=False)


def _parse_degrees(value: Any, label: str) -> float:
    if value is None or isinstance(value, bool):
        raise InvalidCoordinateError(f"Missing or invalid {label}.")
    if isinstance(value, str):
        value = value.strip()
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidCoordinateError(f"Invalid {label} {value!r}; expected a number.") from exc
    if not math.isfinite(parsed):
        raise InvalidCoordinateError(f"Invalid {label} {value!r}; expected a finite number.")
    return parsed


def validate_coordinate(lat: Any, lng: Any) -> Coordinate:
    """Parse caller input into a Coordinate, raising InvalidCoordinateError on bad input."""
    if lat is None or lng is None:
        raise InvalidCoordinateError("Missing coordinates: provide both latitude and longitude.")
    latitude = _parse_degrees(lat, "latitude")
    longitude = _parse_degrees(lng, "longitude")
    if not (-90 <= latitude <= 90):
        raise InvalidCoordinateError(f"Invalid latitude {latitude}; expected between -90 and 90.")
    if not (-180 <= longitude <= 180):
        raise InvalidCoordinateError(
            f"Invalid longitude {longitude}; expected between -180 and 180."
        )
    return Coordinate(latitude=latitude, longitude=longitude)


class SpotRecord(BaseModel):
    """A named kitesurfing location from the catalog."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    country: str
    location: str
    coordinate: Coordinate
    difficulty: Difficulty
    water_type: WaterType
    description: str | None = None


class NearestSpot(BaseModel):
    """Closest catalog entry to a query coordinate."""

    model_config = ConfigDict(frozen=True)

    spot: SpotRecord
    distance_km: float = Field(ge=0)


class _WindConditions(BaseModel):
    """Shared range constraints for observations and forecast points.

    Units: wind speed and gust in km/h, direction in degrees the wind blows
    from, temperature in Celsius, wave height in metres.
    """

    model_config = ConfigDict(frozen=True)

    wind_speed: float = Field(ge=0, allow_inf_nan=False)
    wind_direction: float = Field(ge=0, lt=360, allow_inf_nan=False)
    wind_gust: float = Field(ge=0, allow_inf_nan=False)
    temperature: float = Field(ge=-90, le=60, allow_inf_nan=False)
    wave_height: float = Field(ge=0, allow_inf_nan=False)
    timestamp: datetime

    @field_validator("timestamp")
    @classmethod
    def timestamp_to_utc(cls, value: datetime) -> datetime:
        return value.astimezone(UTC) if value.tzinfo else value.replace(tzinfo=UTC)

    @model_validator(mode="after")
    def gust_not_below_speed(self) -> _WindConditions:
        if self.wind_gust < self.wind_speed:
            raise ValueError(
                f"wind_gust {self.wind_gust} is below wind_speed {self.wind_speed}."
            )
        return self


class WeatherRecord(_WindConditions):
    """Current conditions at a coordinate, tagged with the source that produced them."""

    provenance: Provenance


class ForecastPoint(_WindConditions):
    """One hourly forecast step."""


class WeatherForecast(BaseModel):
    """Hourly forecast tagged with the source that produced it."""

    model_config = ConfigDict(frozen=True)

    provenance: Provenance
    points: list[ForecastPoint] = Field(default_factory=list)


class SpotWeather(BaseModel):
    """Nearest spot (if any) together with the weather resolved for it."""

    model_config = ConfigDict(frozen=True)

    nearest: NearestSpot | None = None
    weather: WeatherRecord

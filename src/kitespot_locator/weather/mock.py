"""Synthetic weather used as the last stage of the escalation chain."""

from __future__ import annotations

import math
import random
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from ..models import Coordinate, ForecastPoint, Provenance, WeatherRecord


def _utc_now() -> datetime:
    return datetime.now(UTC)


class MockWeatherGenerator:
    """Bounded-random weather that cannot fail.

    Pass a seeded ``random.Random`` (or use ``from_seed``) for reproducible
    output; the default generator is unseeded.
    """

    name = "mock"
    provenance: Provenance = "synthetic"

    WIND_SPEED_RANGE = (10.0, 25.0)
    GUST_MARGIN_RANGE = (2.0, 7.0)
    TEMPERATURE_RANGE = (20.0, 30.0)
    WAVE_HEIGHT_RANGE = (0.5, 2.5)

    def __init__(
        self,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._rng = rng or random.Random()
        self._clock = clock

    @classmethod
    def from_seed(cls, seed: int | None) -> MockWeatherGenerator:
        return cls(rng=random.Random(seed))

    def _direction(self) -> float:
        # round() can land on 360.0; fold it back onto north.
        return round(self._rng.uniform(0.0, 360.0), 1) % 360.0

    def generate_current(self, coordinate: Coordinate) -> WeatherRecord:
        rng = self._rng
        wind_speed = round(rng.uniform(*self.WIND_SPEED_RANGE), 1)
        return WeatherRecord(
            wind_speed=wind_speed,
            wind_direction=self._direction(),
            wind_gust=round(wind_speed + rng.uniform(*self.GUST_MARGIN_RANGE), 1),
            temperature=round(rng.uniform(*self.TEMPERATURE_RANGE), 1),
            wave_height=round(rng.uniform(*self.WAVE_HEIGHT_RANGE), 2),
            timestamp=self._clock(),
            provenance=self.provenance,
        )

    def generate_forecast(self, coordinate: Coordinate, hours: int) -> list[ForecastPoint]:
        """Hourly series with a diurnal wind pattern: stronger 10:00-18:00 UTC."""
        if hours < 1:
            raise ValueError(f"Forecast length must be at least 1 hour, got {hours}.")
        rng = self._rng
        start = self._clock().replace(minute=0, second=0, microsecond=0)
        points: list[ForecastPoint] = []
        for step in range(hours):
            timestamp = start + timedelta(hours=step)
            multiplier = 1.2 if 10 <= timestamp.hour <= 18 else 0.8
            base_speed = (10 + math.sin(step / 6) * 8) * multiplier
            wind_speed = round(max(0.0, base_speed + rng.uniform(-2.0, 2.0)), 1)
            points.append(
                ForecastPoint(
                    wind_speed=wind_speed,
                    wind_direction=self._direction(),
                    wind_gust=round(wind_speed + 2 + rng.uniform(0.0, 5.0), 1),
                    temperature=float(rng.randint(15, 29)),
                    wave_height=round(rng.uniform(0.0, 2.0), 2),
                    timestamp=timestamp,
                )
            )
        return points

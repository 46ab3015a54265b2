"""Escalation chain that always produces exactly one weather answer.

Stages run strictly in order and only after the previous stage has failed:

    try_internal -> try_external -> use_synthetic -> done

A success at any stage jumps straight to ``done``. The synthetic stage cannot
fail, so ``done`` is reached on every call and the caller never sees an error.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Literal, TypeVar

from pydantic import BaseModel, Field

from ..exceptions import WeatherSourceError
from ..models import Coordinate, ForecastPoint, Provenance, WeatherForecast, WeatherRecord
from .base import WeatherSource
from .mock import MockWeatherGenerator

ResolutionStage = Literal["try_internal", "try_external", "use_synthetic", "done"]

_NEXT_ON_FAILURE: dict[ResolutionStage, ResolutionStage] = {
    "try_internal": "try_external",
    "try_external": "use_synthetic",
}
_STAGE_PROVENANCE: dict[ResolutionStage, Provenance] = {
    "try_internal": "internal",
    "try_external": "external-direct",
    "use_synthetic": "synthetic",
}

T = TypeVar("T")


class StageAttempt(BaseModel):
    """What happened at one stage of a resolution."""

    stage: ResolutionStage
    source: str
    succeeded: bool
    elapsed_ms: float
    error: str | None = None
    rejected_payload: dict | None = None


class WeatherResolution(BaseModel):
    """Resolved current conditions plus the trail of stages that led to them."""

    record: WeatherRecord
    attempts: list[StageAttempt] = Field(default_factory=list)


class ForecastResolution(BaseModel):
    """Resolved forecast plus the trail of stages that led to it."""

    forecast: WeatherForecast
    attempts: list[StageAttempt] = Field(default_factory=list)


class WeatherResolver:
    """Runs the internal -> public API -> synthetic escalation for each query.

    Holds no per-query state, so one instance can serve concurrent callers.
    """

    def __init__(
        self,
        *,
        internal: WeatherSource,
        external: WeatherSource,
        synthetic: MockWeatherGenerator,
        logger: logging.Logger,
        internal_timeout_seconds: float = 5.0,
        external_timeout_seconds: float = 5.0,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self.internal = internal
        self.external = external
        self.synthetic = synthetic
        self.logger = logger
        self.internal_timeout_seconds = internal_timeout_seconds
        self.external_timeout_seconds = external_timeout_seconds
        self._timer = timer

    def resolve_weather(self, coordinate: Coordinate) -> WeatherRecord:
        """Return current conditions for ``coordinate``; never raises for a valid coordinate."""
        return self.resolve(coordinate).record

    def resolve(self, coordinate: Coordinate) -> WeatherResolution:
        record, provenance, attempts = self._escalate(
            fetch=lambda source, timeout: source.fetch_current(coordinate, timeout=timeout),
            synthesize=lambda: self.synthetic.generate_current(coordinate),
        )
        if record.provenance != provenance:
            record = record.model_copy(update={"provenance": provenance})
        return WeatherResolution(record=record, attempts=attempts)

    def resolve_forecast(self, coordinate: Coordinate, hours: int) -> ForecastResolution:
        """Return an hourly forecast via the same escalation chain.

        Raises ValueError for ``hours < 1``; otherwise never raises.
        """
        if hours < 1:
            raise ValueError(f"Forecast length must be at least 1 hour, got {hours}.")

        def fetch(source: WeatherSource, timeout: float) -> list[ForecastPoint]:
            points = source.fetch_forecast(coordinate, hours=hours, timeout=timeout)
            if not points:
                raise WeatherSourceError(
                    f"{source.name} returned an empty forecast.", source=source.name
                )
            return points

        points, provenance, attempts = self._escalate(
            fetch=fetch,
            synthesize=lambda: self.synthetic.generate_forecast(coordinate, hours),
        )
        return ForecastResolution(
            forecast=WeatherForecast(provenance=provenance, points=points),
            attempts=attempts,
        )

    def _network_stage(self, stage: ResolutionStage) -> tuple[WeatherSource, float]:
        if stage == "try_internal":
            return self.internal, self.internal_timeout_seconds
        return self.external, self.external_timeout_seconds

    def _escalate(
        self,
        *,
        fetch: Callable[[WeatherSource, float], T],
        synthesize: Callable[[], T],
    ) -> tuple[T, Provenance, list[StageAttempt]]:
        stage: ResolutionStage = "try_internal"
        attempts: list[StageAttempt] = []

        while True:
            started = self._timer()

            if stage == "use_synthetic":
                self.logger.warning("All network weather sources failed; using synthetic data.")
                result = synthesize()
                attempts.append(
                    StageAttempt(
                        stage=stage,
                        source=self.synthetic.name,
                        succeeded=True,
                        elapsed_ms=self._elapsed_ms(started),
                    )
                )
                return result, _STAGE_PROVENANCE[stage], attempts

            source, timeout = self._network_stage(stage)
            try:
                result = fetch(source, timeout)
            except WeatherSourceError as exc:
                self.logger.warning(
                    "Weather source %s failed at %s: %s", source.name, stage, exc,
                    extra={"source": source.name, "stage": stage},
                )
                attempts.append(
                    StageAttempt(
                        stage=stage,
                        source=source.name,
                        succeeded=False,
                        elapsed_ms=self._elapsed_ms(started),
                        error=str(exc),
                        rejected_payload=exc.payload,
                    )
                )
                stage = _NEXT_ON_FAILURE[stage]
                continue

            attempts.append(
                StageAttempt(
                    stage=stage,
                    source=source.name,
                    succeeded=True,
                    elapsed_ms=self._elapsed_ms(started),
                )
            )
            provenance = _STAGE_PROVENANCE[stage]
            self.logger.info(
                "Weather resolved by %s (provenance=%s)", source.name, provenance,
                extra={"source": source.name, "stage": stage, "provenance": provenance},
            )
            return result, provenance, attempts

    def _elapsed_ms(self, started: float) -> float:
        return round((self._timer() - started) * 1000, 3)

"""Map source-specific payloads onto the canonical weather records.

Every function here either returns a fully validated record or raises
``WeatherNormalizationError``. A payload is never partially accepted: one bad
field (or one bad forecast step) rejects the whole response so the pipeline
escalates to the next source instead of surfacing nonsense behind a 200 OK.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from ..exceptions import WeatherNormalizationError
from ..models import ForecastPoint, Provenance, WeatherRecord

# Upstreams without a gust reading get speed * 1.3, the same rule the stored rows use.
GUST_ESTIMATE_FACTOR = 1.3


def parse_timestamp(value: Any) -> datetime | None:
    """Parse ISO-8601 strings (with or without offset / 'Z') into aware UTC datetimes."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.astimezone(UTC) if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            return None
        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(candidate)
            # Offsets on 0001-01-01 or 9999-12-31 can push the UTC value out of range.
            return parsed.astimezone(UTC) if parsed.tzinfo else parsed.replace(tzinfo=UTC)
        except (ValueError, OverflowError):
            return None
    return None


def fold_direction(degrees: float) -> float:
    """Fold exactly 360 onto 0 (same bearing); other values pass through for validation."""
    return 0.0 if degrees == 360.0 else degrees


def estimate_gust(wind_speed: float) -> float:
    return wind_speed * GUST_ESTIMATE_FACTOR


def build_weather_record(
    *,
    source: str,
    provenance: Provenance,
    wind_speed: float,
    wind_direction: float,
    wind_gust: float,
    temperature: float,
    wave_height: float,
    timestamp: datetime,
    payload: Mapping[str, Any] | None = None,
) -> WeatherRecord:
    """Construct a WeatherRecord, converting range violations into normalization errors."""
    try:
        return WeatherRecord(
            wind_speed=wind_speed,
            wind_direction=fold_direction(wind_direction),
            wind_gust=wind_gust,
            temperature=temperature,
            wave_height=wave_height,
            timestamp=timestamp,
            provenance=provenance,
        )
    except ValidationError as exc:
        raise WeatherNormalizationError(
            f"{source} returned out-of-range values: {_summarize(exc)}",
            source=source,
            payload=dict(payload) if payload is not None else None,
        ) from exc


def build_forecast_point(
    *,
    source: str,
    wind_speed: float,
    wind_direction: float,
    wind_gust: float,
    temperature: float,
    wave_height: float,
    timestamp: datetime,
    payload: Mapping[str, Any] | None = None,
) -> ForecastPoint:
    try:
        return ForecastPoint(
            wind_speed=wind_speed,
            wind_direction=fold_direction(wind_direction),
            wind_gust=wind_gust,
            temperature=temperature,
            wave_height=wave_height,
            timestamp=timestamp,
        )
    except ValidationError as exc:
        raise WeatherNormalizationError(
            f"{source} forecast step at {timestamp.isoformat()} is out of range: "
            f"{_summarize(exc)}",
            source=source,
            payload=dict(payload) if payload is not None else None,
        ) from exc


# Internal data service ----------------------------------------------------


def normalize_internal_observation(
    payload: Mapping[str, Any],
    *,
    now: datetime,
    max_age_seconds: float,
    provenance: Provenance = "internal",
    source: str = "internal",
) -> WeatherRecord:
    """Normalize one stored observation row from the internal data service."""
    if payload.get("is_mock") is True:
        raise WeatherNormalizationError(
            f"{source} served a mock observation; refusing to label it authoritative.",
            source=source,
            payload=dict(payload),
        )

    timestamp = _require_timestamp(payload, "timestamp", source=source)
    age_seconds = (now - timestamp).total_seconds()
    if age_seconds > max_age_seconds:
        raise WeatherNormalizationError(
            f"{source} observation is stale ({age_seconds:.0f}s old, "
            f"limit {max_age_seconds:.0f}s).",
            source=source,
            payload=dict(payload),
        )

    wind_speed = _require_number(payload, "wind_speed_10m", source=source)
    wind_gust = _optional_number(payload, "wind_gust", source=source)
    return build_weather_record(
        source=source,
        provenance=provenance,
        wind_speed=wind_speed,
        wind_direction=_require_number(payload, "wind_direction_10m", source=source),
        wind_gust=wind_gust if wind_gust is not None else estimate_gust(wind_speed),
        temperature=_require_number(payload, "temperature", source=source),
        wave_height=_optional_number(payload, "wave_height", source=source) or 0.0,
        timestamp=timestamp,
        payload=payload,
    )


def normalize_internal_forecast(
    payload: Mapping[str, Any], *, source: str = "internal"
) -> list[ForecastPoint]:
    """Normalize the internal service's stored forecast rows."""
    rows = payload.get("forecast")
    if not isinstance(rows, list):
        raise WeatherNormalizationError(
            f"{source} forecast payload missing 'forecast' list.",
            source=source,
            payload=dict(payload),
        )
    if not rows:
        raise WeatherNormalizationError(
            f"{source} forecast payload contained no rows.", source=source, payload=dict(payload)
        )

    points: list[ForecastPoint] = []
    for row in rows:
        if not isinstance(row, Mapping):
            raise WeatherNormalizationError(
                f"{source} forecast row is not an object.", source=source, payload=dict(payload)
            )
        wind_speed = _require_number(row, "wind_speed", source=source)
        wind_gust = _optional_number(row, "wind_gust", source=source)
        points.append(
            build_forecast_point(
                source=source,
                wind_speed=wind_speed,
                wind_direction=_require_number(row, "wind_direction", source=source),
                wind_gust=wind_gust if wind_gust is not None else estimate_gust(wind_speed),
                temperature=_require_number(row, "temperature", source=source),
                wave_height=_optional_number(row, "wave_height", source=source) or 0.0,
                timestamp=_require_timestamp(row, "forecast_time", source=source),
                payload=payload,
            )
        )
    points.sort(key=lambda point: point.timestamp)
    return points


# Open-Meteo ------------------------------------------------------------------

_OM_WIND_SPEED = ("wind_speed_10m", "windspeed_10m")
_OM_WIND_DIRECTION = ("wind_direction_10m", "winddirection_10m")
_OM_WIND_GUST = ("wind_gusts_10m", "windgusts_10m")
_OM_TEMPERATURE = ("temperature_2m",)


def normalize_open_meteo_current(
    payload: Mapping[str, Any],
    *,
    provenance: Provenance = "external-direct",
    source: str = "open-meteo",
) -> WeatherRecord:
    """Normalize an Open-Meteo `current=` response. Wave height is not offered, so 0.0."""
    current = payload.get("current")
    if not isinstance(current, Mapping):
        raise WeatherNormalizationError(
            f"{source} payload missing 'current' object.", source=source, payload=dict(payload)
        )

    wind_speed = _require_number(current, _OM_WIND_SPEED, source=source)
    wind_gust = _optional_number(current, _OM_WIND_GUST, source=source)
    return build_weather_record(
        source=source,
        provenance=provenance,
        wind_speed=wind_speed,
        wind_direction=_require_number(current, _OM_WIND_DIRECTION, source=source),
        wind_gust=wind_gust if wind_gust is not None else estimate_gust(wind_speed),
        temperature=_require_number(current, _OM_TEMPERATURE, source=source),
        wave_height=0.0,
        timestamp=_require_timestamp(current, "time", source=source),
        payload=payload,
    )


def normalize_open_meteo_hourly(
    payload: Mapping[str, Any], *, source: str = "open-meteo"
) -> list[ForecastPoint]:
    """Normalize Open-Meteo `hourly=` parallel arrays into forecast points."""
    hourly = payload.get("hourly")
    if not isinstance(hourly, Mapping):
        raise WeatherNormalizationError(
            f"{source} payload missing 'hourly' object.", source=source, payload=dict(payload)
        )

    times = hourly.get("time")
    if not isinstance(times, list) or not times:
        raise WeatherNormalizationError(
            f"{source} hourly payload has no 'time' entries.", source=source, payload=dict(payload)
        )

    speeds = _require_series(hourly, _OM_WIND_SPEED, len(times), source=source)
    directions = _require_series(hourly, _OM_WIND_DIRECTION, len(times), source=source)
    temperatures = _require_series(hourly, _OM_TEMPERATURE, len(times), source=source)
    gusts = _optional_series(hourly, _OM_WIND_GUST, len(times), source=source)

    points: list[ForecastPoint] = []
    for i, raw_time in enumerate(times):
        timestamp = parse_timestamp(raw_time)
        if timestamp is None:
            raise WeatherNormalizationError(
                f"{source} hourly time {raw_time!r} is not a valid timestamp.",
                source=source,
                payload=dict(payload),
            )
        values = {
            "wind_speed": speeds[i],
            "wind_direction": directions[i],
            "temperature": temperatures[i],
        }
        for label, value in values.items():
            if not _is_number(value):
                raise WeatherNormalizationError(
                    f"{source} hourly {label} at {raw_time} is not numeric.",
                    source=source,
                    payload=dict(payload),
                )
        gust = gusts[i] if gusts is not None and _is_number(gusts[i]) else None
        points.append(
            build_forecast_point(
                source=source,
                wind_speed=float(values["wind_speed"]),
                wind_direction=float(values["wind_direction"]),
                wind_gust=float(gust) if gust is not None else estimate_gust(
                    float(values["wind_speed"])
                ),
                temperature=float(values["temperature"]),
                wave_height=0.0,
                timestamp=timestamp,
                payload=payload,
            )
        )
    return points


# Field helpers -----------------------------------------------------------------


def _is_number(value: Any) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        # JSON integers are unbounded; anything past float range is not a reading.
        return math.isfinite(float(value))
    except OverflowError:
        return False


def _lookup(row: Mapping[str, Any], keys: str | tuple[str, ...]) -> tuple[str, Any]:
    names = (keys,) if isinstance(keys, str) else keys
    for name in names:
        if row.get(name) is not None:
            return name, row[name]
    return names[0], None


def _require_number(
    row: Mapping[str, Any], keys: str | tuple[str, ...], *, source: str
) -> float:
    name, value = _lookup(row, keys)
    if value is None:
        raise WeatherNormalizationError(
            f"{source} payload missing '{name}'.", source=source, payload=dict(row)
        )
    if not _is_number(value):
        raise WeatherNormalizationError(
            f"{source} field '{name}' is not a finite number: {value!r}.",
            source=source,
            payload=dict(row),
        )
    return float(value)


def _optional_number(
    row: Mapping[str, Any], keys: str | tuple[str, ...], *, source: str
) -> float | None:
    _, value = _lookup(row, keys)
    if value is None:
        return None
    return _require_number(row, keys, source=source)


def _require_timestamp(row: Mapping[str, Any], key: str, *, source: str) -> datetime:
    timestamp = parse_timestamp(row.get(key))
    if timestamp is None:
        raise WeatherNormalizationError(
            f"{source} payload missing or invalid '{key}'.", source=source, payload=dict(row)
        )
    return timestamp


def _require_series(
    hourly: Mapping[str, Any], keys: tuple[str, ...], length: int, *, source: str
) -> list[Any]:
    series = _optional_series(hourly, keys, length, source=source)
    if series is None:
        raise WeatherNormalizationError(
            f"{source} hourly payload missing '{keys[0]}'.", source=source, payload=dict(hourly)
        )
    return series


def _optional_series(
    hourly: Mapping[str, Any], keys: tuple[str, ...], length: int, *, source: str
) -> list[Any] | None:
    name, series = _lookup(hourly, keys)
    if series is None:
        return None
    if not isinstance(series, list) or len(series) != length:
        raise WeatherNormalizationError(
            f"{source} hourly '{name}' does not line up with 'time' ({length} entries).",
            source=source,
            payload=dict(hourly),
        )
    return series


def _summarize(exc: ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "record"
        parts.append(f"{location}: {error.get('msg')}")
    return "; ".join(parts)

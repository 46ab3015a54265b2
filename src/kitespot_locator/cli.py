"""Command-line entry point: nearest spot, current weather and forecast lookups."""

from __future__ import annotations

import argparse
import logging
import sys
import uuid
from datetime import UTC
from typing import Any

from rich.console import Console
from rich.table import Table

from .config import Settings, load_settings
from .exceptions import CatalogError, ConfigError, JournalError
from .journal import LookupJournal
from .locator import KiteSpotLocator
from .log_setup import setup_logger
from .models import (
    Coordinate,
    NearestSpot,
    Provenance,
    WeatherForecast,
    WeatherRecord,
    validate_coordinate,
)

EXIT_OK = 0
EXIT_INVALID_INPUT = 2
EXIT_CONFIG = 3
EXIT_JOURNAL = 4
EXIT_CATALOG = 5
EXIT_UNEXPECTED = 99

_PROVENANCE_STYLE = {
    "internal": "green",
    "external-direct": "yellow",
    "synthetic": "red",
}


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="kitespot",
        description="Find the nearest kitesurfing spot and resolve its weather.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_coords(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("--lat", type=str, required=True, help="Latitude in decimal degrees.")
        sub.add_argument("--lng", type=str, required=True, help="Longitude in decimal degrees.")

    add_coords(subparsers.add_parser("nearest", help="Closest catalog spot to a coordinate."))
    add_coords(subparsers.add_parser("weather", help="Current conditions at a coordinate."))
    add_coords(
        subparsers.add_parser(
            "spot-weather", help="Current conditions at the spot closest to a coordinate."
        )
    )
    forecast = subparsers.add_parser("forecast", help="Hourly forecast at a coordinate.")
    add_coords(forecast)
    forecast.add_argument("--hours", type=int, default=None, help="Forecast length in hours.")
    forecast.add_argument(
        "--max-print", type=int, default=None, help="Number of forecast hours to print."
    )
    return parser.parse_args(argv)


def _print_nearest(console: Console, nearest: NearestSpot | None) -> None:
    if nearest is None:
        console.print("No kite spot found for this coordinate.")
        return
    spot = nearest.spot
    table = Table(title="Nearest Kite Spot")
    table.add_column("Name", overflow="fold")
    table.add_column("Country")
    table.add_column("Location", overflow="fold")
    table.add_column("Lat/Lng")
    table.add_column("Difficulty")
    table.add_column("Water")
    table.add_column("Distance (km)", justify="right")
    table.add_row(
        spot.name,
        spot.country or "-",
        spot.location or "-",
        f"{spot.coordinate.latitude:.4f}, {spot.coordinate.longitude:.4f}",
        spot.difficulty,
        spot.water_type,
        f"{nearest.distance_km:.2f}",
    )
    console.print(table)


def _print_weather(console: Console, record: WeatherRecord) -> None:
    style = _PROVENANCE_STYLE.get(record.provenance, "white")
    console.print(f"provenance=[{style}]{record.provenance}[/{style}]")
    table = Table(title="Current Conditions")
    table.add_column("Observed (UTC)")
    table.add_column("Wind km/h", justify="right")
    table.add_column("Gust km/h", justify="right")
    table.add_column("Dir °", justify="right")
    table.add_column("Temp °C", justify="right")
    table.add_column("Waves m", justify="right")
    table.add_row(
        record.timestamp.astimezone(UTC).isoformat(),
        f"{record.wind_speed:.1f}",
        f"{record.wind_gust:.1f}",
        f"{record.wind_direction:.0f}",
        f"{record.temperature:.1f}",
        f"{record.wave_height:.2f}",
    )
    console.print(table)


def _print_forecast(console: Console, forecast: WeatherForecast, max_print: int) -> None:
    style = _PROVENANCE_STYLE.get(forecast.provenance, "white")
    console.print(
        f"provenance=[{style}]{forecast.provenance}[/{style}] hours={len(forecast.points)}"
    )
    table = Table(title="Hourly Forecast")
    table.add_column("Hour (UTC)")
    table.add_column("Wind km/h", justify="right")
    table.add_column("Gust km/h", justify="right")
    table.add_column("Dir °", justify="right")
    table.add_column("Temp °C", justify="right")
    table.add_column("Waves m", justify="right")
    for point in forecast.points[:max_print]:
        table.add_row(
            point.timestamp.astimezone(UTC).isoformat(),
            f"{point.wind_speed:.1f}",
            f"{point.wind_gust:.1f}",
            f"{point.wind_direction:.0f}",
            f"{point.temperature:.1f}",
            f"{point.wave_height:.2f}",
        )
    console.print(table)


def _run_command(
    args: argparse.Namespace,
    coordinate: Coordinate,
    locator: KiteSpotLocator,
    settings: Settings,
    console: Console,
    journal: LookupJournal | None,
) -> tuple[dict[str, Any], Provenance | None]:
    command = args.command
    if command == "nearest":
        nearest = locator.find_nearest(coordinate)
        _print_nearest(console, nearest)
        return {"nearest": nearest.model_dump(mode="json") if nearest else None}, None

    if command == "weather":
        resolution = locator.resolve_weather_detailed(coordinate)
        if journal is not None:
            journal.record_attempts(command, resolution.attempts)
        _print_weather(console, resolution.record)
        return {"weather": resolution.record.model_dump(mode="json")}, resolution.record.provenance

    if command == "spot-weather":
        detailed = locator.resolve_spot_weather_detailed(coordinate)
        if journal is not None:
            journal.record_attempts(command, detailed.attempts)
        spot_weather = detailed.spot_weather
        _print_nearest(console, spot_weather.nearest)
        _print_weather(console, spot_weather.weather)
        return spot_weather.model_dump(mode="json"), spot_weather.weather.provenance

    hours = args.hours if args.hours is not None else settings.forecast_default_hours
    resolution = locator.resolve_forecast(coordinate, hours)
    if journal is not None:
        journal.record_attempts(command, resolution.attempts)
    _print_forecast(console, resolution.forecast, args.max_print or settings.forecast_max_print)
    return {"hours": len(resolution.forecast.points)}, resolution.forecast.provenance


def _validate_cli_input(args: argparse.Namespace) -> Coordinate:
    if getattr(args, "hours", None) is not None and not (1 <= args.hours <= 384):
        raise ValueError("--hours must be between 1 and 384.")
    if getattr(args, "max_print", None) is not None and args.max_print <= 0:
        raise ValueError("--max-print must be > 0 when provided.")
    return validate_coordinate(args.lat, args.lng)


def _record_quietly(
    journal: LookupJournal | None, logger: logging.Logger, event: str, **fields: Any
) -> None:
    """Journal an event on a path that is already failing or shutting down."""
    if journal is None:
        return
    try:
        journal.record(event, **fields)
    except JournalError:
        logger.error("Failed to journal %s event.", event)


def main(argv: list[str] | None = None) -> int:
    """Run one lookup and return the process exit code."""
    args = parse_args(argv)
    session_id = uuid.uuid4().hex[:12]
    logger = setup_logger(session_id=session_id)
    console = Console()
    journal: LookupJournal | None = None

    try:
        coordinate = _validate_cli_input(args)
    except ValueError as exc:
        logger.error("Invalid input: %s", exc, extra={"command": args.command})
        return EXIT_INVALID_INPUT

    try:
        settings = load_settings()
    except ConfigError as exc:
        logger.error("Configuration failure: %s", exc)
        return EXIT_CONFIG
    logger.setLevel(settings.log_level)

    if settings.journal_enabled:
        try:
            journal = LookupJournal(
                journal_dir=settings.journal_dir,
                snapshot_dir=settings.raw_payload_dir,
                session_id=session_id,
            )
            journal.record("startup", command=args.command, settings=settings.safe_summary())
        except JournalError as exc:
            logger.error("Failed to initialize journal: %s", exc)
            return EXIT_JOURNAL

    try:
        locator = KiteSpotLocator.from_settings(settings, logger)
    except CatalogError as exc:
        logger.error("Catalog failure: %s", exc)
        _record_quietly(journal, logger, "catalog_failure", error=str(exc))
        return EXIT_CATALOG

    exit_code = EXIT_OK
    try:
        with locator:
            if journal is not None:
                journal.record_request(args.command, coordinate)
            result, provenance = _run_command(
                args, coordinate, locator, settings, console, journal
            )
            if journal is not None:
                journal.record_result(args.command, result, provenance)
    except JournalError as exc:
        exit_code = EXIT_JOURNAL
        logger.error("Journal failure: %s", exc)
    except Exception as exc:  # pragma: no cover - last-resort catch for CLI runtime
        exit_code = EXIT_UNEXPECTED
        logger.exception("Unexpected failure: %s", exc, extra={"command": args.command})
        _record_quietly(
            journal, logger, "run_failure_unhandled", error=str(exc), type=type(exc).__name__
        )
    finally:
        _record_quietly(journal, logger, "shutdown", exit_code=exit_code)

    return exit_code


if __name__ == "__main__":
    sys.exit(main())

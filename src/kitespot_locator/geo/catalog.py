"""Catalog provider: load spot snapshots from JSON/CSV files or the built-in seed list."""

from __future__ import annotations

import csv
import json
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ..exceptions import CatalogError, InvalidCoordinateError
from ..models import SpotRecord, validate_coordinate

_LATITUDE_KEYS = ("latitude", "lat")
_LONGITUDE_KEYS = ("longitude", "lng", "lon")
_LOCATION_KEYS = ("location", "region")
_WATER_TYPE_KEYS = ("water_type", "waterType")

DEFAULT_DIFFICULTY = "intermediate"
DEFAULT_WATER_TYPE = "flat"

_SEED_ROWS: tuple[dict[str, Any], ...] = (
    {
        "id": "punta-trettu",
        "name": "Punta Trettu",
        "description": "One of the best flat water spots in Europe, located in Sardinia.",
        "latitude": 39.1833,
        "longitude": 8.3167,
        "country": "Italy",
        "location": "Sardinia",
        "difficulty": "beginner",
        "water_type": "flat",
    },
    {
        "id": "dakhla",
        "name": "Dakhla",
        "description": "Famous for its consistent wind and flat lagoon, perfect for freestyle.",
        "latitude": 23.7136,
        "longitude": -15.9355,
        "country": "Morocco",
        "location": "Western Sahara",
        "difficulty": "beginner",
        "water_type": "flat",
    },
    {
        "id": "tarifa",
        "name": "Tarifa",
        "description": "The wind capital of Europe with strong Levante and Poniente winds.",
        "latitude": 36.0143,
        "longitude": -5.6044,
        "country": "Spain",
        "location": "Andalusia",
        "difficulty": "intermediate",
        "water_type": "choppy",
    },
    {
        "id": "jericoacoara",
        "name": "Jericoacoara",
        "description": "Beach destination with consistent trade winds and warm water.",
        "latitude": -2.7975,
        "longitude": -40.5137,
        "country": "Brazil",
        "location": "Ceará",
        "difficulty": "intermediate",
        "water_type": "waves",
    },
    {
        "id": "cabarete",
        "name": "Cabarete",
        "description": "Known for its afternoon thermal winds and kiteboarding community.",
        "latitude": 19.758,
        "longitude": -70.4193,
        "country": "Dominican Republic",
        "location": "Puerto Plata",
        "difficulty": "intermediate",
        "water_type": "waves",
    },
    {
        "id": "cape-town",
        "name": "Cape Town",
        "description": "Home to Big Bay and Blouberg, with strong summer winds.",
        "latitude": -33.9249,
        "longitude": 18.4241,
        "country": "South Africa",
        "location": "Western Cape",
        "difficulty": "advanced",
        "water_type": "waves",
    },
)


def seed_catalog() -> list[SpotRecord]:
    """Return the built-in seed spots used when no catalog file is configured."""
    return parse_catalog_rows(_SEED_ROWS)


def load_catalog(path: Path) -> list[SpotRecord]:
    """Load a complete catalog snapshot from a `.json` or `.csv` file."""
    suffix = path.suffix.lower()
    try:
        if suffix == ".json":
            with path.open("r", encoding="utf-8") as fh:
                payload = json.load(fh)
            rows = payload.get("spots") if isinstance(payload, dict) else payload
            if not isinstance(rows, list):
                raise CatalogError(
                    f"Catalog {path} must hold a JSON array or an object with a 'spots' array."
                )
        elif suffix == ".csv":
            # utf-8-sig strips the BOM spreadsheet exports tend to add.
            with path.open("r", encoding="utf-8-sig", newline="") as fh:
                rows = list(csv.DictReader(fh))
        else:
            raise CatalogError(f"Unsupported catalog format '{suffix}' for {path}.")
    except OSError as exc:
        raise CatalogError(f"Failed reading catalog {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise CatalogError(f"Catalog {path} is not valid JSON: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise CatalogError(f"Catalog {path} is not valid UTF-8: {exc}") from exc
    except csv.Error as exc:
        raise CatalogError(f"Catalog {path} is not valid CSV: {exc}") from exc
    return parse_catalog_rows(rows)


def parse_catalog_rows(rows: Iterable[Any]) -> list[SpotRecord]:
    """Convert raw catalog rows into SpotRecords, failing on the first invalid row."""
    spots: list[SpotRecord] = []
    for position, row in enumerate(rows, start=1):
        if not isinstance(row, Mapping):
            raise CatalogError(f"Catalog row {position} is not an object.")
        spots.append(_parse_row(row, position))
    return spots


def _parse_row(row: Mapping[str, Any], position: int) -> SpotRecord:
    name = _as_text(row.get("name"))
    if name is None:
        raise CatalogError(f"Catalog row {position} is missing 'name'.")

    try:
        coordinate = validate_coordinate(
            _first_present(row, _LATITUDE_KEYS), _first_present(row, _LONGITUDE_KEYS)
        )
    except InvalidCoordinateError as exc:
        raise CatalogError(f"Catalog row {position} ({name}): {exc}") from exc

    spot_id = _as_text(row.get("id")) or str(position)
    difficulty = (_as_text(row.get("difficulty")) or DEFAULT_DIFFICULTY).lower()
    water_type = (_as_text(_first_present(row, _WATER_TYPE_KEYS)) or DEFAULT_WATER_TYPE).lower()

    try:
        return SpotRecord(
            id=spot_id,
            name=name,
            country=_as_text(row.get("country")) or "",
            location=_as_text(_first_present(row, _LOCATION_KEYS)) or "",
            coordinate=coordinate,
            difficulty=difficulty,
            water_type=water_type,
            description=_as_text(row.get("description")),
        )
    except ValidationError as exc:
        raise CatalogError(f"Catalog row {position} ({name}) is invalid: {exc}") from exc


def _first_present(row: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        value = row.get(key)
        if value is not None and value != "":
            return value
    return None


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None

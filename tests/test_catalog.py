"""Catalog loading from seed data, JSON and CSV files."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from kitespot_locator.exceptions import CatalogError
from kitespot_locator.geo.catalog import load_catalog, parse_catalog_rows, seed_catalog


def test_seed_catalog_contains_known_spots() -> None:
    spots = seed_catalog()
    names = [spot.name for spot in spots]
    assert names == [
        "Punta Trettu",
        "Dakhla",
        "Tarifa",
        "Jericoacoara",
        "Cabarete",
        "Cape Town",
    ]
    tarifa = spots[2]
    assert tarifa.coordinate.latitude == 36.0143
    assert tarifa.difficulty == "intermediate"
    assert tarifa.water_type == "choppy"


def test_load_json_array(tmp_path: Path) -> None:
    path = tmp_path / "spots.json"
    path.write_text(
        json.dumps(
            [
                {
                    "id": "1",
                    "name": "Tarifa",
                    "lat": 36.0143,
                    "lng": -5.6044,
                    "country": "Spain",
                    "region": "Andalusia",
                    "difficulty": "intermediate",
                    "waterType": "choppy",
                }
            ]
        ),
        encoding="utf-8",
    )
    spots = load_catalog(path)
    assert len(spots) == 1
    assert spots[0].location == "Andalusia"
    assert spots[0].coordinate.longitude == -5.6044
    assert spots[0].water_type == "choppy"


def test_load_json_object_with_spots_key(tmp_path: Path) -> None:
    path = tmp_path / "spots.json"
    path.write_text(
        json.dumps({"spots": [{"name": "Dakhla", "latitude": 23.7136, "longitude": -15.9355}]}),
        encoding="utf-8",
    )
    spots = load_catalog(path)
    assert spots[0].id == "1"
    assert spots[0].difficulty == "intermediate"
    assert spots[0].water_type == "flat"


def test_load_csv_normalizes_case_and_bom(tmp_path: Path) -> None:
    path = tmp_path / "spots.csv"
    path.write_text(
        "\ufeffname,latitude,longitude,country,location,difficulty,water_type\n"
        "Cabarete,19.758,-70.4193,Dominican Republic,Puerto Plata,Intermediate,Waves\n"
        "Cape Town,-33.9249,18.4241,South Africa,Western Cape,ADVANCED,waves\n",
        encoding="utf-8",
    )
    spots = load_catalog(path)
    assert [spot.name for spot in spots] == ["Cabarete", "Cape Town"]
    assert spots[0].difficulty == "intermediate"
    assert spots[0].water_type == "waves"
    assert spots[1].difficulty == "advanced"
    assert spots[1].id == "2"


def test_invalid_coordinate_row_reports_position() -> None:
    with pytest.raises(CatalogError, match="row 2"):
        parse_catalog_rows(
            [
                {"name": "Ok", "latitude": 1, "longitude": 1},
                {"name": "Broken", "latitude": 95, "longitude": 1},
            ]
        )


def test_unknown_difficulty_is_rejected() -> None:
    with pytest.raises(CatalogError, match="Expert Bay"):
        parse_catalog_rows(
            [{"name": "Expert Bay", "latitude": 1, "longitude": 1, "difficulty": "expert"}]
        )


def test_missing_name_is_rejected() -> None:
    with pytest.raises(CatalogError, match="missing 'name'"):
        parse_catalog_rows([{"latitude": 1, "longitude": 1}])


def test_unsupported_extension_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "spots.xml"
    path.write_text("<spots/>", encoding="utf-8")
    with pytest.raises(CatalogError, match="Unsupported catalog format"):
        load_catalog(path)


def test_missing_file_is_catalog_error(tmp_path: Path) -> None:
    with pytest.raises(CatalogError, match="Failed reading catalog"):
        load_catalog(tmp_path / "nope.json")


def test_invalid_json_is_catalog_error(tmp_path: Path) -> None:
    path = tmp_path / "spots.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(CatalogError, match="not valid JSON"):
        load_catalog(path)


@pytest.mark.parametrize("suffix", [".csv", ".json"])
def test_non_utf8_file_is_catalog_error(tmp_path: Path, suffix: str) -> None:
    path = tmp_path / f"spots{suffix}"
    path.write_bytes(b"\xff\xfename,latitude,longitude\nTarifa,36.0,-5.6\n")
    with pytest.raises(CatalogError, match="not valid UTF-8"):
        load_catalog(path)


def test_oversized_csv_field_is_catalog_error(tmp_path: Path) -> None:
    path = tmp_path / "spots.csv"
    path.write_text(
        "name,latitude,longitude,description\n"
        f'Tarifa,36.0,-5.6,"{"x" * 200_000}"\n',
        encoding="utf-8",
    )
    with pytest.raises(CatalogError, match="not valid CSV"):
        load_catalog(path)

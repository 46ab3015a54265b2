"""CLI offline smoke tests."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

from kitespot_locator.cli import main as cli_main
from kitespot_locator.exceptions import WeatherNormalizationError, WeatherSourceError
from kitespot_locator.weather.internal import InternalServiceSource
from kitespot_locator.weather.open_meteo import OpenMeteoSource


def _set_required_env(monkeypatch: Any, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("JOURNAL_DIR", str(tmp_path / "journal"))
    monkeypatch.setenv("RAW_PAYLOAD_DIR", str(tmp_path / "raw"))
    monkeypatch.setenv("MOCK_SEED", "1234")


def _event_types(tmp_path: Path) -> list[str]:
    journal_files = list((tmp_path / "journal").glob("*.jsonl"))
    assert journal_files
    return [
        json.loads(line)["event"]
        for line in journal_files[0].read_text(encoding="utf-8").strip().splitlines()
    ]


def _fail_network_sources(monkeypatch: Any) -> None:
    def _internal_down(self: Any, coordinate: Any, *, timeout: float) -> Any:
        raise WeatherSourceError(
            "internal observation fetch timed out after 5s.", source="internal"
        )

    def _open_meteo_garbage(self: Any, coordinate: Any, *, timeout: float) -> Any:
        raise WeatherNormalizationError(
            "open-meteo returned out-of-range values: wind_direction",
            source="open-meteo",
            payload={"current": {"wind_direction_10m": 400}},
        )

    monkeypatch.setattr(InternalServiceSource, "fetch_current", _internal_down)
    monkeypatch.setattr(OpenMeteoSource, "fetch_current", _open_meteo_garbage)


def test_nearest_prints_closest_spot(monkeypatch: Any, tmp_path: Path, capsys: Any) -> None:
    _set_required_env(monkeypatch, tmp_path)
    monkeypatch.setattr(sys, "argv", ["kitespot", "nearest", "--lat", "36.01", "--lng", "-5.60"])

    exit_code = cli_main()

    assert exit_code == 0
    output = capsys.readouterr().out
    assert "Nearest Kite Spot" in output
    assert "Tarifa" in output
    event_types = _event_types(tmp_path)
    assert event_types[0] == "startup"
    assert "lookup_request" in event_types
    assert "lookup_result" in event_types
    assert event_types[-1] == "shutdown"


def test_invalid_latitude_exits_with_input_error(
    monkeypatch: Any, tmp_path: Path, capsys: Any
) -> None:
    _set_required_env(monkeypatch, tmp_path)
    exit_code = cli_main(["nearest", "--lat", "95", "--lng", "0"])
    assert exit_code == 2
    assert "Nearest Kite Spot" not in capsys.readouterr().out


def test_non_numeric_longitude_exits_with_input_error(monkeypatch: Any, tmp_path: Path) -> None:
    _set_required_env(monkeypatch, tmp_path)
    assert cli_main(["weather", "--lat", "10", "--lng", "east"]) == 2


def test_bad_config_exits_with_config_error(monkeypatch: Any, tmp_path: Path) -> None:
    _set_required_env(monkeypatch, tmp_path)
    monkeypatch.setenv("PUBLIC_TIMEOUT_SECONDS", "0")
    assert cli_main(["nearest", "--lat", "10", "--lng", "10"]) == 3


def test_missing_catalog_exits_with_catalog_error(monkeypatch: Any, tmp_path: Path) -> None:
    _set_required_env(monkeypatch, tmp_path)
    monkeypatch.setenv("CATALOG_PATH", str(tmp_path / "missing.json"))
    assert cli_main(["nearest", "--lat", "10", "--lng", "10"]) == 5
    assert "catalog_failure" in _event_types(tmp_path)


def test_custom_catalog_file_is_used(monkeypatch: Any, tmp_path: Path, capsys: Any) -> None:
    _set_required_env(monkeypatch, tmp_path)
    catalog = tmp_path / "spots.json"
    catalog.write_text(
        json.dumps(
            [
                {
                    "id": "garda",
                    "name": "Lake Garda",
                    "country": "Italy",
                    "location": "Malcesine",
                    "latitude": 45.76,
                    "longitude": 10.81,
                }
            ]
        ),
        encoding="utf-8",
    )
    monkeypatch.setenv("CATALOG_PATH", str(catalog))

    assert cli_main(["nearest", "--lat", "45.0", "--lng", "10.0"]) == 0
    assert "Lake Garda" in capsys.readouterr().out


def test_weather_falls_back_to_synthetic(monkeypatch: Any, tmp_path: Path, capsys: Any) -> None:
    _set_required_env(monkeypatch, tmp_path)
    _fail_network_sources(monkeypatch)

    exit_code = cli_main(["weather", "--lat", "36.01", "--lng", "-5.60"])

    assert exit_code == 0
    output = capsys.readouterr().out
    assert "provenance=synthetic" in output
    assert "Current Conditions" in output

    event_types = _event_types(tmp_path)
    assert event_types.count("stage_attempt") == 3
    assert "lookup_result" in event_types
    snapshots = list((tmp_path / "raw").glob("*open-meteo_rejected.json"))
    assert len(snapshots) == 1


def test_forecast_prints_limited_rows(monkeypatch: Any, tmp_path: Path, capsys: Any) -> None:
    _set_required_env(monkeypatch, tmp_path)

    def _down(self: Any, coordinate: Any, *, hours: int, timeout: float) -> Any:
        raise WeatherSourceError(f"{self.name} forecast fetch failed.", source=self.name)

    monkeypatch.setattr(InternalServiceSource, "fetch_forecast", _down)
    monkeypatch.setattr(OpenMeteoSource, "fetch_forecast", _down)

    exit_code = cli_main(
        ["forecast", "--lat", "-33.9", "--lng", "18.4", "--hours", "24", "--max-print", "3"]
    )

    assert exit_code == 0
    output = capsys.readouterr().out
    assert "hours=24" in output
    assert "Hourly Forecast" in output


def test_forecast_rejects_out_of_range_hours(monkeypatch: Any, tmp_path: Path) -> None:
    _set_required_env(monkeypatch, tmp_path)
    assert cli_main(["forecast", "--lat", "0", "--lng", "0", "--hours", "0"]) == 2


def test_spot_weather_journals_rejected_payloads(
    monkeypatch: Any, tmp_path: Path, capsys: Any
) -> None:
    _set_required_env(monkeypatch, tmp_path)
    _fail_network_sources(monkeypatch)

    exit_code = cli_main(["spot-weather", "--lat", "-33.9", "--lng", "18.4"])

    assert exit_code == 0
    output = capsys.readouterr().out
    assert "Cape Town" in output
    assert "provenance=synthetic" in output

    journal_file = next((tmp_path / "journal").glob("*.jsonl"))
    lines = [json.loads(line) for line in journal_file.read_text(encoding="utf-8").splitlines()]
    attempts = [line for line in lines if line["event"] == "stage_attempt"]
    assert [line["command"] for line in attempts] == ["spot-weather"] * 3
    assert attempts[1]["snapshot"].endswith("_open-meteo_rejected.json")
    result = next(line for line in lines if line["event"] == "lookup_result")
    assert result["provenance"] == "synthetic"

"""Nearest-spot lookup over the in-memory catalog."""

from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest

from kitespot_locator.geo.distance import haversine_km
from kitespot_locator.geo.index import CatalogHolder, GeoIndex
from kitespot_locator.models import Coordinate, SpotRecord


def _spot(spot_id: str, name: str, lat: float, lon: float) -> SpotRecord:
    return SpotRecord(
        id=spot_id,
        name=name,
        country="",
        location="",
        coordinate=Coordinate(latitude=lat, longitude=lon),
        difficulty="intermediate",
        water_type="flat",
    )


TARIFA = _spot("1", "Tarifa", 36.0143, -5.6044)
DAKHLA = _spot("2", "Dakhla", 23.7136, -15.9355)


def test_empty_catalog_returns_none() -> None:
    index = GeoIndex([])
    assert index.find_nearest(Coordinate(latitude=10.0, longitude=10.0)) is None
    assert index.find_nearest(Coordinate(latitude=-90.0, longitude=180.0)) is None


def test_one_degree_of_longitude_at_equator_is_about_111_km() -> None:
    origin = _spot("origin", "Null Island", 0.0, 0.0)
    nearest = GeoIndex([origin]).find_nearest(Coordinate(latitude=0.0, longitude=1.0))
    assert nearest is not None
    assert nearest.spot == origin
    assert nearest.distance_km == pytest.approx(111.19, abs=0.1)


def test_tarifa_wins_over_dakhla_for_query_near_tarifa() -> None:
    nearest = GeoIndex([TARIFA, DAKHLA]).find_nearest(Coordinate(latitude=36.0, longitude=-5.6))
    assert nearest is not None
    assert nearest.spot.name == "Tarifa"
    assert nearest.distance_km < 2.0


def test_lookup_is_idempotent() -> None:
    index = GeoIndex([DAKHLA, TARIFA])
    query = Coordinate(latitude=30.0, longitude=-10.0)
    first = index.find_nearest(query)
    second = index.find_nearest(query)
    assert first == second


def test_ties_keep_first_catalog_entry() -> None:
    east = _spot("east", "East", 0.0, 1.0)
    west = _spot("west", "West", 0.0, -1.0)
    query = Coordinate(latitude=0.0, longitude=0.0)
    assert GeoIndex([east, west]).find_nearest(query).spot.id == "east"
    assert GeoIndex([west, east]).find_nearest(query).spot.id == "west"


def test_haversine_handles_antimeridian_and_antipodes() -> None:
    a = Coordinate(latitude=0.0, longitude=179.5)
    b = Coordinate(latitude=0.0, longitude=-179.5)
    assert haversine_km(a, b) == pytest.approx(111.19, abs=0.1)
    north = Coordinate(latitude=90.0, longitude=0.0)
    south = Coordinate(latitude=-90.0, longitude=0.0)
    assert haversine_km(north, south) == pytest.approx(20015.1, abs=1.0)


def test_index_is_a_snapshot_of_the_input_list() -> None:
    spots = [TARIFA]
    index = GeoIndex(spots)
    spots.append(DAKHLA)
    assert len(index) == 1


def test_holder_swap_replaces_whole_index() -> None:
    holder = CatalogHolder(GeoIndex([TARIFA]))
    query = Coordinate(latitude=23.0, longitude=-16.0)
    assert holder.find_nearest(query).spot.name == "Tarifa"

    previous = holder.reload([DAKHLA])
    assert len(previous) == 1
    assert holder.find_nearest(query).spot.name == "Dakhla"


def test_holder_defaults_to_empty_catalog() -> None:
    assert CatalogHolder().find_nearest(Coordinate(latitude=0.0, longitude=0.0)) is None


def test_concurrent_readers_see_complete_snapshots_during_reload() -> None:
    holder = CatalogHolder(GeoIndex([TARIFA]))
    query = Coordinate(latitude=30.0, longitude=-10.0)
    stop = threading.Event()

    def swapper() -> None:
        while not stop.is_set():
            holder.reload([DAKHLA])
            holder.reload([TARIFA])

    thread = threading.Thread(target=swapper)
    thread.start()
    try:
        with ThreadPoolExecutor(max_workers=4) as pool:
            results = list(pool.map(lambda _: holder.find_nearest(query), range(200)))
    finally:
        stop.set()
        thread.join()

    assert all(result is not None for result in results)
    assert {result.spot.name for result in results} <= {"Tarifa", "Dakhla"}

"""Nearest-spot lookup over an immutable catalog snapshot."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable

from ..models import Coordinate, NearestSpot, SpotRecord
from .distance import haversine_km


class SpotIndex(ABC):
    """Read-only nearest-neighbour contract; implementations may add a spatial index."""

    @abstractmethod
    def find_nearest(self, coordinate: Coordinate) -> NearestSpot | None:
        """Return the closest spot, or None when the catalog is empty."""

    @abstractmethod
    def __len__(self) -> int:
        """Number of spots in the snapshot."""


class GeoIndex(SpotIndex):
    """Linear haversine scan; adequate for catalogs of a few thousand spots."""

    def __init__(self, spots: Iterable[SpotRecord]) -> None:
        self._spots: tuple[SpotRecord, ...] = tuple(spots)

    def __len__(self) -> int:
        return len(self._spots)

    @property
    def spots(self) -> tuple[SpotRecord, ...]:
        return self._spots

    def find_nearest(self, coordinate: Coordinate) -> NearestSpot | None:
        best: SpotRecord | None = None
        best_distance = 0.0
        for spot in self._spots:
            distance = haversine_km(coordinate, spot.coordinate)
            # Strict comparison keeps the earliest catalog entry on ties.
            if best is None or distance < best_distance:
                best = spot
                best_distance = distance
        if best is None:
            return None
        return NearestSpot(spot=best, distance_km=best_distance)


class CatalogHolder:
    """Publishes one index snapshot at a time; reloads replace it wholesale."""

    def __init__(self, index: SpotIndex | None = None) -> None:
        self._index: SpotIndex = index if index is not None else GeoIndex(())
        self._swap_lock = threading.Lock()

    @property
    def index(self) -> SpotIndex:
        return self._index

    def swap(self, index: SpotIndex) -> SpotIndex:
        """Install a fully built index and return the one it replaced."""
        with self._swap_lock:
            previous = self._index
            self._index = index
        return previous

    def reload(self, spots: Iterable[SpotRecord]) -> SpotIndex:
        """Build a fresh GeoIndex off to the side, then swap it in."""
        return self.swap(GeoIndex(spots))

    def find_nearest(self, coordinate: Coordinate) -> NearestSpot | None:
        # Readers grab the reference once so an in-flight lookup never sees a mix.
        index = self._index
        return index.find_nearest(coordinate)

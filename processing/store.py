"""
In-memory impact store and store selection.

InMemoryStore mirrors PostgresStore (db_writer.py) method for method, keyed on
the same natural keys, so upserts overwrite instead of duplicating.
"""

import logging
import threading
from typing import Iterable, Optional

from processing.airports import Airport, AirportDirectory, get_airport_directory
from processing.config import DATABASE_URL, ZONES_FILE
from processing.estimator import RouteImpactRecord
from processing.heatmap import HeatmapPoint
from processing.periods import Period
from processing.sampling import FlightTrack
from processing.zones import load_zones_geojson

logger = logging.getLogger(__name__)


class InMemoryStore:
    def __init__(self, airports: AirportDirectory, zone_rows: Iterable[dict] = ()):
        self.airports = airports
        self.zone_rows = list(zone_rows)
        self._route_impacts: dict[tuple, RouteImpactRecord] = {}
        self._flight_tracks: list[FlightTrack] = []
        self._heatmap: dict[tuple, HeatmapPoint] = {}
        self._lock = threading.RLock()

    # Reference data

    def list_airports(self) -> list[Airport]:
        return self.airports.list()

    def get_airports(self, codes: Iterable[str]) -> dict[str, Airport]:
        """Known airports among `codes`; unknown codes are omitted."""
        found = {code: self.airports.find(code) for code in codes}
        return {code: airport for code, airport in found.items() if airport is not None}

    def list_zones(self) -> list[dict]:
        return list(self.zone_rows)

    # Route impacts

    def upsert_route_impacts(self, records: Iterable[RouteImpactRecord]):
        with self._lock:
            for record in records:
                self._route_impacts[record.key] = record

    def query_route_impacts(self, origin: str, destination: str) -> list[RouteImpactRecord]:
        with self._lock:
            return [
                r for (o, d, _), r in self._route_impacts.items()
                if o == origin and d == destination
            ]

    def query_route_impacts_by_period(self, period: Period) -> list[RouteImpactRecord]:
        with self._lock:
            return [r for r in self._route_impacts.values() if r.period == period]

    # Flight tracks

    def insert_flight_tracks(self, tracks: Iterable[FlightTrack]):
        with self._lock:
            self._flight_tracks.extend(tracks)

    def query_flight_tracks(self, period: Period) -> list[FlightTrack]:
        with self._lock:
            return [t for t in self._flight_tracks if t.period == period]

    # Heatmap

    def upsert_heatmap_points(self, points: Iterable[HeatmapPoint]):
        with self._lock:
            for point in points:
                self._heatmap[(point.grid_cell, point.period)] = point

    def query_heatmap_points(self, period: Period) -> list[HeatmapPoint]:
        with self._lock:
            return [p for (_, p_period), p in self._heatmap.items() if p_period == period]


# Singleton instance
_store = None

def get_store():
    """PostgresStore when DATABASE_URL is set, otherwise an InMemoryStore seeded from static files."""
    global _store
    if _store is None:
        if DATABASE_URL:
            from processing.db_writer import PostgresStore
            _store = PostgresStore(DATABASE_URL)
            logger.info("Using PostgreSQL impact store")
        else:
            _store = InMemoryStore(get_airport_directory(), load_zones_geojson(ZONES_FILE))
            logger.info("DATABASE_URL not set, using in-memory impact store")
    return _store

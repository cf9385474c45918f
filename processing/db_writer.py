"""
PostgreSQL/PostGIS impact store.

Writes are upserts on natural keys:
- route_statistics: (origin_iata, destination_iata, period)
- heatmap_data: (grid_cell, period)
flight_tracks is append-only.

Each _cursor() borrows its own pooled connection, so concurrent requests
never share a transaction.
"""

import logging
import time
from contextlib import contextmanager
from typing import Iterable

import psycopg
from psycopg.rows import dict_row
from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from processing.airports import Airport
from processing.config import PG_POOL_MIN_CONNECTIONS, PG_POOL_MAX_CONNECTIONS, PG_POOL_TIMEOUT
from processing.errors import UpstreamUnavailable
from processing.estimator import RouteImpactRecord
from processing.heatmap import HeatmapPoint
from processing.metrics import DB_WRITE_LATENCY
from processing.periods import Period
from processing.sampling import FlightTrack

logger = logging.getLogger(__name__)


class PostgresStore:
    def __init__(
        self,
        dsn: str,
        min_size: int = PG_POOL_MIN_CONNECTIONS,
        max_size: int = PG_POOL_MAX_CONNECTIONS,
        timeout: float = PG_POOL_TIMEOUT,
    ):
        self.dsn = dsn
        # Opened on first use so the app starts while the database is still down
        self._pool = ConnectionPool(
            dsn,
            min_size=min_size,
            max_size=max_size,
            timeout=timeout,
            kwargs={"row_factory": dict_row},
            open=False,
        )

    def _ensure_open(self):
        if self._pool.closed:
            self._pool.open()
            logger.info(f"Database pool opened (min={self._pool.min_size}, max={self._pool.max_size})")

    @contextmanager
    def _cursor(self):
        """Cursor on a pooled connection; committed on success, rolled back on error."""
        self._ensure_open()
        try:
            with self._pool.connection() as conn:
                with conn.cursor() as cur:
                    yield cur
        except psycopg.Error as e:
            # PoolTimeout is an OperationalError: no connection could be obtained
            logger.error(f"Database error: {e}", exc_info=True)
            raise UpstreamUnavailable(f"Impact store unavailable: {e}") from e

    def close(self):
        if not self._pool.closed:
            self._pool.close()

    # Reference data

    @staticmethod
    def _airport(row: dict) -> Airport:
        return Airport(
            iata_code=row["iata_code"],
            name=row["name"],
            city=row["city"],
            country=row["country"],
            lat=row["lat"],
            lon=row["lon"],
        )

    _AIRPORT_COLUMNS = """
        iata_code, name, city, country,
        ST_Y(location::geometry) AS lat, ST_X(location::geometry) AS lon
    """

    def list_airports(self) -> list[Airport]:
        with self._cursor() as cur:
            cur.execute(f"SELECT {self._AIRPORT_COLUMNS} FROM airports ORDER BY iata_code")
            return [self._airport(row) for row in cur.fetchall()]

    def get_airports(self, codes: Iterable[str]) -> dict[str, Airport]:
        with self._cursor() as cur:
            cur.execute(
                f"SELECT {self._AIRPORT_COLUMNS} FROM airports WHERE iata_code = ANY(%s)",
                (list(codes),)
            )
            return {row["iata_code"]: self._airport(row) for row in cur.fetchall()}

    def list_zones(self) -> list[dict]:
        with self._cursor() as cur:
            cur.execute("""
                SELECT id, name, severity, start_time, end_time,
                       ST_AsText(geometry) AS geometry, bounding_box, description
                FROM conflict_zones
                ORDER BY id
            """)
            return cur.fetchall()

    # Route impacts

    def upsert_route_impacts(self, records: Iterable[RouteImpactRecord]):
        start_time = time.time()
        with self._cursor() as cur:
            cur.executemany("""
                INSERT INTO route_statistics (
                    origin_iata, destination_iata, period, total_flights,
                    avg_distance_km, avg_flight_time_minutes, avg_detour_km,
                    total_extra_fuel_liters, total_co2_impact_tons
                ) VALUES (
                    %(origin_iata)s, %(destination_iata)s, %(period)s, %(total_flights)s,
                    %(avg_distance_km)s, %(avg_flight_time_minutes)s, %(avg_detour_km)s,
                    %(total_extra_fuel_liters)s, %(total_co2_impact_tons)s
                )
                ON CONFLICT (origin_iata, destination_iata, period) DO UPDATE SET
                    total_flights = EXCLUDED.total_flights,
                    avg_distance_km = EXCLUDED.avg_distance_km,
                    avg_flight_time_minutes = EXCLUDED.avg_flight_time_minutes,
                    avg_detour_km = EXCLUDED.avg_detour_km,
                    total_extra_fuel_liters = EXCLUDED.total_extra_fuel_liters,
                    total_co2_impact_tons = EXCLUDED.total_co2_impact_tons,
                    updated_at = NOW()
            """, [r.to_row() for r in records])
        DB_WRITE_LATENCY.labels(table="route_statistics").observe(time.time() - start_time)

    @staticmethod
    def _route_impact(row: dict) -> RouteImpactRecord:
        return RouteImpactRecord(
            origin_iata=row["origin_iata"],
            destination_iata=row["destination_iata"],
            period=Period(row["period"]),
            avg_distance_km=row["avg_distance_km"],
            avg_flight_time_minutes=row["avg_flight_time_minutes"],
            avg_detour_km=row["avg_detour_km"] or 0,
            total_extra_fuel_liters=row["total_extra_fuel_liters"] or 0,
            total_co2_impact_tons=row["total_co2_impact_tons"] or 0,
            total_flights=row["total_flights"],
        )

    def query_route_impacts(self, origin: str, destination: str) -> list[RouteImpactRecord]:
        with self._cursor() as cur:
            cur.execute("""
                SELECT * FROM route_statistics
                WHERE origin_iata = %s AND destination_iata = %s
            """, (origin, destination))
            return [self._route_impact(row) for row in cur.fetchall()]

    def query_route_impacts_by_period(self, period: Period) -> list[RouteImpactRecord]:
        with self._cursor() as cur:
            cur.execute("""
                SELECT * FROM route_statistics
                WHERE period = %s
                ORDER BY avg_detour_km DESC
            """, (period.value,))
            return [self._route_impact(row) for row in cur.fetchall()]

    # Flight tracks

    def insert_flight_tracks(self, tracks: Iterable[FlightTrack]):
        start_time = time.time()
        with self._cursor() as cur:
            cur.executemany("""
                INSERT INTO flight_tracks (
                    flight_number, origin_iata, destination_iata, departure_time,
                    route_geometry, distance_km, flight_time_minutes, period,
                    detour_km, extra_fuel_liters, co2_impact_tons
                ) VALUES (
                    %s, %s, %s, %s, ST_GeomFromText(%s, 4326), %s, %s, %s, %s, %s, %s
                )
            """, [
                (
                    t.flight_number, t.origin_iata, t.destination_iata, t.departure_time,
                    t.route_wkt(), t.distance_km, t.flight_time_minutes, t.period.value,
                    t.detour_km, t.extra_fuel_liters, t.co2_impact_tons
                )
                for t in tracks
            ])
        DB_WRITE_LATENCY.labels(table="flight_tracks").observe(time.time() - start_time)

    def query_flight_tracks(self, period: Period) -> list[FlightTrack]:
        with self._cursor() as cur:
            cur.execute("""
                SELECT flight_number, origin_iata, destination_iata, departure_time,
                       ST_AsGeoJSON(route_geometry)::json AS route_geometry,
                       distance_km, flight_time_minutes, detour_km,
                       extra_fuel_liters, co2_impact_tons
                FROM flight_tracks
                WHERE period = %s
            """, (period.value,))
            return [
                FlightTrack(
                    flight_number=row["flight_number"],
                    origin_iata=row["origin_iata"],
                    destination_iata=row["destination_iata"],
                    period=period,
                    departure_time=row["departure_time"],
                    route_coords=(row["route_geometry"] or {}).get("coordinates", []),
                    distance_km=row["distance_km"],
                    flight_time_minutes=row["flight_time_minutes"],
                    detour_km=row["detour_km"] or 0,
                    extra_fuel_liters=row["extra_fuel_liters"] or 0,
                    co2_impact_tons=row["co2_impact_tons"] or 0,
                )
                for row in cur.fetchall()
            ]

    # Heatmap

    def upsert_heatmap_points(self, points: Iterable[HeatmapPoint]):
        start_time = time.time()
        with self._cursor() as cur:
            cur.executemany("""
                INSERT INTO heatmap_data (
                    location, period, flight_count, intensity, avg_detour_km, grid_cell
                ) VALUES (
                    ST_MakePoint(%s, %s)::geography, %s, %s, %s, %s, %s
                )
                ON CONFLICT (grid_cell, period) DO UPDATE SET
                    location = EXCLUDED.location,
                    flight_count = EXCLUDED.flight_count,
                    intensity = EXCLUDED.intensity,
                    avg_detour_km = EXCLUDED.avg_detour_km,
                    updated_at = NOW()
            """, [
                (p.lng, p.lat, p.period.value, p.flight_count, p.intensity, p.avg_detour_km, p.grid_cell)
                for p in points
            ])
        DB_WRITE_LATENCY.labels(table="heatmap_data").observe(time.time() - start_time)

    def query_heatmap_points(self, period: Period) -> list[HeatmapPoint]:
        with self._cursor() as cur:
            cur.execute("""
                SELECT ST_Y(location::geometry) AS lat, ST_X(location::geometry) AS lng,
                       flight_count, intensity, avg_detour_km, grid_cell
                FROM heatmap_data
                WHERE period = %s
            """, (period.value,))
            return [
                HeatmapPoint(
                    lat=row["lat"] or 0,
                    lng=row["lng"] or 0,
                    period=period,
                    intensity=row["intensity"] or 0,
                    flight_count=row["flight_count"] or 0,
                    avg_detour_km=row["avg_detour_km"] or 0,
                    grid_cell=row["grid_cell"],
                )
                for row in cur.fetchall()
            ]

    # Seeding

    def upsert_airports(self, airports: Iterable[Airport]):
        with self._cursor() as cur:
            cur.executemany("""
                INSERT INTO airports (iata_code, name, city, country, location)
                VALUES (%s, %s, %s, %s, ST_MakePoint(%s, %s)::geography)
                ON CONFLICT (iata_code) DO UPDATE SET
                    name = EXCLUDED.name,
                    city = EXCLUDED.city,
                    country = EXCLUDED.country,
                    location = EXCLUDED.location
            """, [(a.iata_code, a.name, a.city, a.country, a.lon, a.lat) for a in airports])

    def upsert_zones(self, zones: Iterable):
        """Upsert parsed ConflictZones keyed on name."""
        with self._cursor() as cur:
            cur.executemany("""
                INSERT INTO conflict_zones (
                    name, severity, start_time, end_time, geometry, bounding_box, description
                ) VALUES (
                    %s, %s, %s, %s, ST_GeomFromText(%s, 4326), %s, %s
                )
                ON CONFLICT (name) DO UPDATE SET
                    severity = EXCLUDED.severity,
                    start_time = EXCLUDED.start_time,
                    end_time = EXCLUDED.end_time,
                    geometry = EXCLUDED.geometry,
                    bounding_box = EXCLUDED.bounding_box,
                    description = EXCLUDED.description
            """, [
                (
                    z.name, z.severity, z.start, z.end, z.polygon.wkt,
                    Jsonb({
                        "lat_min": z.bounding_box.lat_min,
                        "lat_max": z.bounding_box.lat_max,
                        "lon_min": z.bounding_box.lon_min,
                        "lon_max": z.bounding_box.lon_max,
                    }),
                    z.description,
                )
                for z in zones
            ])

"""
Sample flight tracks for a cold store.

Produces per-flight tracks on the major routes plus one aggregated
RouteImpactRecord per route, so statistics have real rows on the next request.
"""

import logging
import math
import random
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from processing.airports import Airport
from processing.config import ImpactConfig, get_config
from processing.estimator import RouteImpactRecord
from processing.geomath import great_circle_distance_km, segment_midpoint
from processing.periods import Period
from processing.zones import ZoneRegistry

logger = logging.getLogger(__name__)

SAMPLE_DEPARTURE = {
    Period.BASELINE: datetime(2021, 6, 15, tzinfo=timezone.utc),
    Period.DURING: datetime(2022, 6, 15, tzinfo=timezone.utc),
}


@dataclass
class FlightTrack:
    flight_number: str
    origin_iata: str
    destination_iata: str
    period: Period
    departure_time: datetime
    route_coords: list  # [[lon, lat], ...]
    distance_km: float
    flight_time_minutes: int
    detour_km: float = 0.0
    extra_fuel_liters: float = 0.0
    co2_impact_tons: float = 0.0

    def route_wkt(self) -> str:
        return "LINESTRING(" + ", ".join(f"{lon} {lat}" for lon, lat in self.route_coords) + ")"


class FlightTrackSampler:
    def __init__(
        self,
        registry: ZoneRegistry,
        config: Optional[ImpactConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.registry = registry
        self.config = config or get_config()
        self.rng = rng or random.Random()

    def _minutes(self, km: float) -> int:
        return math.floor(km / self.config.cruise_speed_kmh * 60)

    def _track(self, origin: Airport, dest: Airport, period: Period) -> FlightTrack:
        cfg = self.config
        (olat, olon), (dlat, dlon) = origin.location(), dest.location()
        coords = [[olon, olat], [dlon, dlat]]
        detour = 0

        if period == Period.DURING and self.registry.segment_intersects_active_zone((olat, olon), (dlat, dlon), period):
            detour = self.rng.randrange(*cfg.sample_detour_range)
            mid_lat, mid_lon = segment_midpoint(olat, olon, dlat, dlon)
            spread = cfg.sample_waypoint_spread_deg
            waypoint = [
                mid_lon + (self.rng.random() - 0.5) * spread,
                mid_lat + (self.rng.random() - 0.5) * spread,
            ]
            coords = [coords[0], waypoint, coords[1]]

        base_distance = great_circle_distance_km(olat, olon, dlat, dlon)
        extra_fuel = detour * cfg.fuel_burn_l_per_km

        return FlightTrack(
            flight_number=f"{origin.iata_code}{self.rng.randrange(10000):04d}",
            origin_iata=origin.iata_code,
            destination_iata=dest.iata_code,
            period=period,
            departure_time=SAMPLE_DEPARTURE[period],
            route_coords=coords,
            distance_km=base_distance + detour,
            flight_time_minutes=self._minutes(base_distance) + self._minutes(detour),
            detour_km=detour,
            extra_fuel_liters=extra_fuel,
            co2_impact_tons=extra_fuel * cfg.co2_tons_per_liter,
        )

    def generate(self, period: Period, airports: dict) -> tuple[list[FlightTrack], list[RouteImpactRecord]]:
        """
        Generate tracks for every sample route whose airports are in `airports`
        (IATA code -> Airport).

        Returns:
            (flight_tracks, route_records)
        """
        tracks = []
        route_records = []

        for origin_code, dest_code in self.config.sample_routes:
            origin, dest = airports.get(origin_code), airports.get(dest_code)
            if origin is None or dest is None:
                logger.debug(f"Skipping sample route {origin_code}-{dest_code}: airport missing")
                continue

            count = self.rng.randrange(*self.config.sample_flights_range)
            route_tracks = [self._track(origin, dest, period) for _ in range(count)]
            tracks.extend(route_tracks)

            route_records.append(RouteImpactRecord(
                origin_iata=origin_code,
                destination_iata=dest_code,
                period=period,
                avg_distance_km=sum(t.distance_km for t in route_tracks) / count,
                avg_flight_time_minutes=round(sum(t.flight_time_minutes for t in route_tracks) / count),
                avg_detour_km=sum(t.detour_km for t in route_tracks) / count,
                total_extra_fuel_liters=sum(t.extra_fuel_liters for t in route_tracks),
                total_co2_impact_tons=sum(t.co2_impact_tons for t in route_tracks),
                total_flights=count,
            ))

        logger.info(f"Generated {len(tracks)} sample flights on {len(route_records)} routes for period {period.value}")
        return tracks, route_records

"""
Per-route detour, fuel and CO2 estimation.

Figures are synthetic: a route whose midpoint falls inside an active conflict
zone gets a detour drawn from the range configured for that zone's severity.
"""

import logging
import math
import random
from dataclasses import dataclass, asdict
from typing import Optional

from processing.airports import Airport
from processing.config import ImpactConfig, get_config
from processing.geomath import great_circle_distance_km
from processing.periods import Period
from processing.zones import ZoneRegistry

logger = logging.getLogger(__name__)


@dataclass
class RouteImpactRecord:
    """Averages for one (origin, destination, period) key."""
    origin_iata: str
    destination_iata: str
    period: Period
    avg_distance_km: float
    avg_flight_time_minutes: int
    avg_detour_km: float = 0.0
    total_extra_fuel_liters: float = 0.0
    total_co2_impact_tons: float = 0.0
    total_flights: int = 1

    @property
    def key(self) -> tuple[str, str, Period]:
        return self.origin_iata, self.destination_iata, self.period

    @property
    def detour_km(self) -> float:
        return self.avg_detour_km

    @property
    def co2_impact_tons(self) -> float:
        return self.total_co2_impact_tons

    def to_row(self) -> dict:
        row = asdict(self)
        row["period"] = self.period.value
        return row


class RouteImpactEstimator:
    """Builds RouteImpactRecords from airport coordinates and the zone registry."""

    def __init__(
        self,
        registry: ZoneRegistry,
        config: Optional[ImpactConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.registry = registry
        self.config = config or get_config()
        self.rng = rng or random.Random()

    def minutes_for(self, distance_km: float) -> int:
        return math.floor(distance_km / self.config.cruise_speed_kmh * 60)

    def draw_detour(self, origin: tuple, destination: tuple, period: Period) -> int:
        """Detour in km for the conflict period; 0 for baseline."""
        if period != Period.DURING:
            return 0

        zone = self.registry.zone_for_segment(origin, destination, period)
        if zone is not None:
            low, high = self.config.detour_range(zone.severity)
            logger.debug(f"Route midpoint inside {zone.name}, detour range [{low}, {high})")
            return self.rng.randrange(low, high)

        if self.rng.random() < self.config.minor_detour_probability:
            low, high = self.config.minor_detour_range
            return self.rng.randrange(low, high)
        return 0

    def estimate(self, origin: Airport, destination: Airport, period: Period) -> RouteImpactRecord:
        """
        Estimate distance, time and detour impact of one route in one period.

        Raises InvalidLocation if either airport has no coordinates.
        """
        a = origin.location()
        b = destination.location()

        base_distance = great_circle_distance_km(a[0], a[1], b[0], b[1])
        base_time = self.minutes_for(base_distance)

        detour = self.draw_detour(a, b, period)
        extra_fuel = detour * self.config.fuel_burn_l_per_km
        co2 = extra_fuel * self.config.co2_tons_per_liter

        return RouteImpactRecord(
            origin_iata=origin.iata_code,
            destination_iata=destination.iata_code,
            period=period,
            avg_distance_km=base_distance + detour,
            avg_flight_time_minutes=base_time + self.minutes_for(detour),
            avg_detour_km=detour,
            total_extra_fuel_liters=extra_fuel,
            total_co2_impact_tons=co2,
        )

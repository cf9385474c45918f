"""
Fleet-level statistics over per-flight or per-route impact records.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Iterable, Optional

from contracts.constants import IMPACT_TIER_HIGH, IMPACT_TIER_MEDIUM, IMPACT_TIER_LOW
from processing.config import ImpactConfig, get_config
from processing.periods import Period
from processing.reference_data import ReferenceDataset

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass
class TopAffectedRoute:
    route: str
    detour: int
    impact: str

    def to_dict(self) -> dict:
        return {"route": self.route, "detour": self.detour, "impact": self.impact}


@dataclass
class StatsSummary:
    total_flights: int
    avg_detour: int
    total_extra_km: int
    avg_delay: int
    co2_impact: int
    affected_routes: int
    top_affected_routes: Optional[list[TopAffectedRoute]] = field(default=None)

    def to_dict(self) -> dict:
        data = {
            "totalFlights": self.total_flights,
            "avgDetour": self.avg_detour,
            "totalExtraKm": self.total_extra_km,
            "avgDelay": self.avg_delay,
            "co2Impact": self.co2_impact,
            "affectedRoutes": self.affected_routes,
        }
        if self.top_affected_routes is not None:
            data["topAffectedRoutes"] = [r.to_dict() for r in self.top_affected_routes]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "StatsSummary":
        top = data.get("topAffectedRoutes")
        return cls(
            total_flights=data["totalFlights"],
            avg_detour=data["avgDetour"],
            total_extra_km=data["totalExtraKm"],
            avg_delay=data["avgDelay"],
            co2_impact=data["co2Impact"],
            affected_routes=data["affectedRoutes"],
            top_affected_routes=[TopAffectedRoute(**r) for r in top] if top is not None else None,
        )


def _flights(record) -> int:
    """Flights a record stands for: route records carry a count, flight tracks are one."""
    return getattr(record, "total_flights", 1) or 0


class StatsAggregator:
    """
    Summarises impact records for a period.

    Records need `detour_km` and `co2_impact_tons`; route-level records also
    carry `total_flights` and weight the averages by it.
    """

    def __init__(self, config: Optional[ImpactConfig] = None, reference: Optional[ReferenceDataset] = None):
        self.config = config or get_config()
        self.reference = reference or ReferenceDataset()

    def impact_tier(self, detour_km: float) -> str:
        if detour_km > self.config.high_impact_km:
            return IMPACT_TIER_HIGH
        if detour_km > self.config.medium_impact_km:
            return IMPACT_TIER_MEDIUM
        return IMPACT_TIER_LOW

    def top_affected_routes(self, route_records: Iterable) -> list[TopAffectedRoute]:
        """Highest-detour routes with a detour, at most `top_routes_limit`."""
        affected = [r for r in route_records if (r.detour_km or 0) > 0]
        affected.sort(key=lambda r: r.detour_km, reverse=True)
        return [
            TopAffectedRoute(
                route=f"{r.origin_iata} → {r.destination_iata}",
                detour=round_half_up(r.detour_km),
                impact=self.impact_tier(r.detour_km),
            )
            for r in affected[:self.config.top_routes_limit]
        ]

    def summarize(self, records: Iterable, period: Period, route_records: Optional[Iterable] = None) -> StatsSummary:
        """
        Aggregate `records` for `period`.

        Top routes are ranked from `route_records` when given, otherwise from
        `records`. With no records the reference summary is returned.
        """
        records = list(records)
        if not records:
            logger.info(f"No impact records for period {period.value}, using reference statistics")
            return StatsSummary.from_dict(self.reference.stats(period))

        total_flights = sum(_flights(r) for r in records)
        total_detour = sum((r.detour_km or 0) * _flights(r) for r in records)
        total_co2 = sum(r.co2_impact_tons or 0 for r in records)

        avg_detour = round_half_up(total_detour / total_flights) if total_flights else 0

        summary = StatsSummary(
            total_flights=total_flights,
            avg_detour=avg_detour,
            total_extra_km=round_half_up(total_detour),
            avg_delay=round_half_up(avg_detour * self.config.delay_minutes_per_km),
            co2_impact=round_half_up(total_co2),
            affected_routes=sum(1 for r in records if (r.detour_km or 0) > 0),
        )

        if period == Period.DURING:
            ranked = records if route_records is None else list(route_records)
            summary.top_affected_routes = self.top_affected_routes(ranked)

        return summary

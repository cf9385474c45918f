"""
Reference dataset served when the store is cold or unreachable.

Published figures for the fixture routes and fleet summaries, so the map and
panels always have something to render.
"""

import copy
from typing import Optional

from processing.periods import Period


def _comparison(baseline_distance, during_distance, detour, baseline_time, during_time, fuel, co2):
    return {
        "baselineDistance": baseline_distance,
        "duringDistance": during_distance,
        "detourKm": detour,
        "baselineTime": baseline_time,
        "duringTime": during_time,
        "extraFuel": fuel,
        "co2Impact": co2,
    }


REFERENCE_ROUTES = {
    ("FRA", "LHR"): _comparison(658, 658, 0, 95, 95, 0, 0),
    ("CDG", "WAW"): _comparison(1365, 1520, 155, 130, 148, 1085, 3.4),
    ("VIE", "IST"): _comparison(1048, 1280, 232, 105, 128, 1624, 5.1),
    ("PRG", "ATH"): _comparison(1245, 1580, 335, 125, 158, 2345, 7.4),
}

DEFAULT_ROUTE_COMPARISON = _comparison(1000, 1200, 200, 120, 144, 1400, 4.4)

REFERENCE_STATS = {
    Period.BASELINE: {
        "totalFlights": 45623,
        "avgDetour": 0,
        "totalExtraKm": 0,
        "avgDelay": 0,
        "co2Impact": 0,
        "affectedRoutes": 0,
    },
    Period.DURING: {
        "totalFlights": 41289,
        "avgDetour": 187,
        "totalExtraKm": 2847500,
        "avgDelay": 23,
        "co2Impact": 8942,
        "affectedRoutes": 78,
        "topAffectedRoutes": [
            {"route": "IST → FRA", "detour": 309, "impact": "High"},
            {"route": "VIE → WAW", "detour": 245, "impact": "Medium"},
            {"route": "LHR → BUD", "detour": 198, "impact": "Medium"},
        ],
    },
}


class ReferenceDataset:
    """Lookup over the reference figures. Returned dicts are copies."""

    def __init__(
        self,
        routes: Optional[dict] = None,
        default_route: Optional[dict] = None,
        stats: Optional[dict] = None,
    ):
        self.routes = REFERENCE_ROUTES if routes is None else routes
        self.default_route = DEFAULT_ROUTE_COMPARISON if default_route is None else default_route
        self.stats_by_period = REFERENCE_STATS if stats is None else stats

    def route_comparison(self, origin: str, destination: str) -> Optional[dict]:
        """Reference figures for the pair in either direction, or None."""
        found = self.routes.get((origin, destination)) or self.routes.get((destination, origin))
        return dict(found) if found else None

    def fallback_route_comparison(self, origin: str, destination: str) -> dict:
        return self.route_comparison(origin, destination) or dict(self.default_route)

    def stats(self, period: Period) -> dict:
        return copy.deepcopy(self.stats_by_period[period])

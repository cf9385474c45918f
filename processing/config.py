"""
Configuration for the impact core.

Environment variables set the deployment knobs; the model constants live on
ImpactConfig so tests and callers can override them per instance.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from contracts.constants import SEVERITY_LOW, SEVERITY_MEDIUM, SEVERITY_HIGH
from processing.periods import Period, PeriodWindow, DEFAULT_WINDOWS

STATIC_DIR = Path(__file__).parent.parent / "static"

DATABASE_URL = os.getenv("DATABASE_URL")
PG_POOL_MIN_CONNECTIONS = int(os.getenv("PG_POOL_MIN_CONNECTIONS", "1"))
PG_POOL_MAX_CONNECTIONS = int(os.getenv("PG_POOL_MAX_CONNECTIONS", "10"))
PG_POOL_TIMEOUT = float(os.getenv("PG_POOL_TIMEOUT", "10"))
AIRPORTS_FILE = os.getenv("AIRPORTS_FILE", str(STATIC_DIR / "airports.geojson"))
ZONES_FILE = os.getenv("ZONES_FILE", str(STATIC_DIR / "conflict_zones.geojson"))
SEED_ON_COLD_START = os.getenv("SEED_ON_COLD_START", "true").lower() in ("1", "true", "yes")
HEATMAP_SAMPLES_PER_ANCHOR = int(os.getenv("HEATMAP_SAMPLES_PER_ANCHOR", "30"))


@dataclass(frozen=True)
class CorridorAnchor:
    """Centre of a busy traffic corridor with its base heatmap intensity per period."""
    name: str
    lat: float
    lng: float
    baseline_intensity: float
    during_intensity: float

    def intensity_for(self, period: Period) -> float:
        return self.during_intensity if period == Period.DURING else self.baseline_intensity


DEFAULT_CORRIDOR_ANCHORS = (
    CorridorAnchor("Frankfurt", 50.0, 8.5, 0.8, 0.8),
    CorridorAnchor("Paris", 48.8, 2.3, 0.7, 0.7),
    CorridorAnchor("London", 51.5, -0.1, 0.9, 0.9),
    CorridorAnchor("Warsaw", 52.2, 21.0, 0.6, 0.6),
    CorridorAnchor("Budapest", 47.5, 19.0, 0.5, 0.5),
    CorridorAnchor("Istanbul", 41.0, 29.0, 0.8, 0.8),
    # Southern corridors pick up rerouted traffic once the conflict starts
    CorridorAnchor("Zagreb", 45.8, 15.9, 0.3, 0.9),
    CorridorAnchor("Belgrade", 44.8, 20.4, 0.2, 0.7),
    CorridorAnchor("Sofia", 42.7, 23.3, 0.2, 0.6),
)

DEFAULT_SAMPLE_ROUTES = (
    ("IST", "FRA"),
    ("LHR", "CDG"),
    ("VIE", "WAW"),
    ("FRA", "BUD"),
    ("IST", "VIE"),
    ("LHR", "WAW"),
)


@dataclass
class ImpactConfig:
    """Model constants shared by the estimator, aggregator and synthesizers."""

    # Route estimation
    cruise_speed_kmh: float = 800.0
    fuel_burn_l_per_km: float = 7.0
    co2_tons_per_liter: float = 0.00315
    # Detour range [low, high) in km by zone severity
    detour_ranges: dict = field(default_factory=lambda: {
        SEVERITY_HIGH: (150, 350), SEVERITY_MEDIUM: (50, 150), SEVERITY_LOW: (50, 150),
    })
    minor_detour_probability: float = 0.3
    minor_detour_range: tuple = (20, 70)

    # Statistics
    delay_minutes_per_km: float = 0.12
    high_impact_km: float = 250.0
    medium_impact_km: float = 150.0
    top_routes_limit: int = 3

    # Heatmap
    corridor_anchors: tuple = DEFAULT_CORRIDOR_ANCHORS
    samples_per_anchor: int = HEATMAP_SAMPLES_PER_ANCHOR
    jitter_lat_deg: float = 1.0
    jitter_lng_deg: float = 2.0
    intensity_noise: float = 0.3
    intensity_floor: float = 0.1
    # Traffic multiplier inside an active zone, by severity
    damping_by_severity: dict = field(default_factory=lambda: {
        SEVERITY_HIGH: 0.1, SEVERITY_MEDIUM: 0.3, SEVERITY_LOW: 0.5,
    })
    flights_per_intensity: int = 100
    detour_per_intensity: int = 200
    grid_cell_scale: int = 10

    # Sample flight tracks
    sample_routes: tuple = DEFAULT_SAMPLE_ROUTES
    sample_flights_range: tuple = (10, 30)
    sample_detour_range: tuple = (100, 400)
    sample_waypoint_spread_deg: float = 5.0

    windows: dict = field(default_factory=lambda: dict(DEFAULT_WINDOWS))
    seed_on_cold_start: bool = SEED_ON_COLD_START

    def window(self, period: Period) -> PeriodWindow:
        return self.windows[period]

    def detour_range(self, severity: int) -> tuple:
        """Range for the closest configured severity at or below `severity`."""
        for level in sorted(self.detour_ranges, reverse=True):
            if severity >= level:
                return self.detour_ranges[level]
        return self.minor_detour_range

    def damping(self, severity: int) -> float:
        return self.damping_by_severity.get(severity, 1.0)


_config: Optional[ImpactConfig] = None


def get_config() -> ImpactConfig:
    global _config
    if _config is None:
        _config = ImpactConfig()
    return _config

"""
Synthetic flight-density heatmap around the main traffic corridors.
"""

import logging
import math
import random
from dataclasses import dataclass
from typing import Iterable, Optional

from contracts.constants import FEATURE_COLLECTION, FEATURE, GEOMETRY_POINT
from processing.config import ImpactConfig, get_config
from processing.periods import Period
from processing.zones import ZoneRegistry

logger = logging.getLogger(__name__)


def grid_cell_key(lat: float, lng: float, scale: int = 10) -> str:
    """Stable cell id, 0.1° cells at the default scale."""
    return f"{math.floor(lat * scale)}_{math.floor(lng * scale)}"


@dataclass
class HeatmapPoint:
    lat: float
    lng: float
    period: Period
    intensity: float
    flight_count: int
    avg_detour_km: int
    grid_cell: str

    def to_feature(self) -> dict:
        return {
            "type": FEATURE,
            "properties": {
                "intensity": self.intensity,
                "flightCount": self.flight_count,
                "avgDetour": self.avg_detour_km,
            },
            "geometry": {"type": GEOMETRY_POINT, "coordinates": [self.lng, self.lat]},
        }


def unique_cells(points: Iterable[HeatmapPoint]) -> list[HeatmapPoint]:
    """One point per (grid_cell, period), the later point winning, as the store upserts them."""
    cells = {}
    for point in points:
        cells[(point.grid_cell, point.period)] = point
    return list(cells.values())


def to_feature_collection(points: Iterable[HeatmapPoint]) -> dict:
    return {
        "type": FEATURE_COLLECTION,
        "features": [p.to_feature() for p in points],
    }


class HeatmapSynthesizer:
    """Samples jittered points around each corridor anchor, suppressed inside active zones."""

    def __init__(
        self,
        registry: ZoneRegistry,
        config: Optional[ImpactConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.registry = registry
        self.config = config or get_config()
        self.rng = rng or random.Random()

    def _jitter(self, spread: float) -> float:
        return (self.rng.random() - 0.5) * spread

    def point_intensity(self, lat: float, lng: float, base: float, period: Period) -> float:
        intensity = base
        zone = self.registry.zone_at(lat, lng, period) if period == Period.DURING else None
        if zone is not None:
            intensity *= self.config.damping(zone.severity)

        intensity += self._jitter(self.config.intensity_noise)
        return min(1.0, max(self.config.intensity_floor, intensity))

    def generate(self, period: Period) -> list[HeatmapPoint]:
        cfg = self.config
        points = []

        for anchor in cfg.corridor_anchors:
            base = anchor.intensity_for(period)
            for _ in range(cfg.samples_per_anchor):
                lat = anchor.lat + self._jitter(2 * cfg.jitter_lat_deg)
                lng = anchor.lng + self._jitter(2 * cfg.jitter_lng_deg)
                intensity = self.point_intensity(lat, lng, base, period)

                points.append(HeatmapPoint(
                    lat=lat,
                    lng=lng,
                    period=period,
                    intensity=intensity,
                    flight_count=math.floor(intensity * cfg.flights_per_intensity),
                    avg_detour_km=math.floor(intensity * cfg.detour_per_intensity) if period == Period.DURING else 0,
                    grid_cell=grid_cell_key(lat, lng, cfg.grid_cell_scale),
                ))

        logger.info(f"Generated {len(points)} heatmap points for period {period.value}")
        return points

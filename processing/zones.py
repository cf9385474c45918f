"""
Conflict-zone registry.

Zones are matched against points with an axis-aligned lat/lon bounding box by
default. The box is an approximation of the polygon; PolygonShapeTest gives
exact containment and can be swapped in without touching callers.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from shapely import wkt
from shapely.errors import ShapelyError
from shapely.geometry import Point, Polygon, shape

from contracts.constants import FEATURE_COLLECTION, FEATURE, GEOMETRY_POLYGON, SEVERITY_LOW, SEVERITY_HIGH
from processing.config import ImpactConfig, ZONES_FILE, get_config
from processing.errors import ComputationError
from processing.metrics import ZONES_WITH_FALLBACK_GEOMETRY
from processing.geomath import segment_midpoint
from processing.periods import Period, parse_timestamp

logger = logging.getLogger(__name__)

# Substituted for a zone whose boundary cannot be parsed
FALLBACK_RING = [[30.0, 52.0], [35.0, 52.0], [35.0, 45.0], [30.0, 45.0], [30.0, 52.0]]


@dataclass(frozen=True)
class BoundingBox:
    lat_min: float
    lat_max: float
    lon_min: float
    lon_max: float

    def contains(self, lat: float, lon: float) -> bool:
        # Strict: points on the edge are outside
        return self.lat_min < lat < self.lat_max and self.lon_min < lon < self.lon_max

    @classmethod
    def from_polygon(cls, polygon: Polygon) -> "BoundingBox":
        lon_min, lat_min, lon_max, lat_max = polygon.bounds
        return cls(lat_min, lat_max, lon_min, lon_max)


@dataclass
class ConflictZone:
    id: str
    name: str
    severity: int
    start: datetime
    end: Optional[datetime]
    ring: list
    description: Optional[str] = None
    bounding_box: Optional[BoundingBox] = None
    polygon: Polygon = field(init=False, repr=False)

    def __post_init__(self):
        self.polygon = Polygon(self.ring)
        if self.bounding_box is None:
            self.bounding_box = BoundingBox.from_polygon(self.polygon)


class ZoneShapeTest:
    """Decides whether a point lies inside a zone."""

    def contains(self, zone: ConflictZone, lat: float, lon: float) -> bool:
        raise NotImplementedError


class BoundingBoxShapeTest(ZoneShapeTest):
    def contains(self, zone: ConflictZone, lat: float, lon: float) -> bool:
        return zone.bounding_box.contains(lat, lon)


class PolygonShapeTest(ZoneShapeTest):
    def contains(self, zone: ConflictZone, lat: float, lon: float) -> bool:
        return zone.polygon.contains(Point(lon, lat))


def _parse_ring(geometry) -> list:
    """Return the exterior ring of a GeoJSON mapping or WKT polygon as [[lon, lat], ...]."""
    try:
        if isinstance(geometry, str):
            geom = wkt.loads(geometry)
        else:
            raw = geometry["coordinates"][0]
            if len(raw) < 4 or list(raw[0]) != list(raw[-1]):
                raise ComputationError("Polygon ring must be closed and have at least 4 points")
            geom = shape(geometry)
    except (ShapelyError, KeyError, IndexError, TypeError, ValueError) as e:
        raise ComputationError(f"Unparseable zone boundary: {e}")

    if geom.geom_type != "Polygon" or geom.is_empty:
        raise ComputationError(f"Zone boundary must be a Polygon, got {geom.geom_type}")
    return [[x, y] for x, y in geom.exterior.coords]


def _parse_bbox(value) -> Optional[BoundingBox]:
    if not value:
        return None
    if isinstance(value, BoundingBox):
        return value
    return BoundingBox(
        float(value["lat_min"]), float(value["lat_max"]),
        float(value["lon_min"]), float(value["lon_max"]),
    )


def parse_zone(row: dict, ring: Optional[list] = None) -> ConflictZone:
    """
    Build a ConflictZone from a store row or GeoJSON feature properties.

    Accepts snake_case (store) or camelCase (GeoJSON) time keys. Pass `ring`
    to skip geometry parsing.
    """
    try:
        start = parse_timestamp(row.get("start_time") or row.get("startTime"))
        end = parse_timestamp(row.get("end_time") or row.get("endTime"))
        severity = int(row["severity"])
        name = row["name"]
        bounding_box = _parse_bbox(row.get("bounding_box") or row.get("detourBox"))
    except (KeyError, TypeError, ValueError) as e:
        raise ComputationError(f"Invalid zone record {row.get('id')}: {e}")

    if start is None:
        raise ComputationError(f"Zone {row.get('id')} has no start time")
    if end is not None and start > end:
        raise ComputationError(f"Zone {row.get('id')} starts after it ends")
    if not SEVERITY_LOW <= severity <= SEVERITY_HIGH:
        raise ComputationError(f"Zone {row.get('id')} severity {severity} outside 1-3")

    return ConflictZone(
        id=str(row.get("id")),
        name=name,
        severity=severity,
        start=start,
        end=end,
        ring=ring if ring is not None else _parse_ring(row.get("geometry")),
        description=row.get("description"),
        bounding_box=bounding_box,
    )


def load_zones(rows: Iterable[dict]) -> list[ConflictZone]:
    """Parse zone rows, isolating failures to the offending zone."""
    zones = []
    for row in rows:
        try:
            zones.append(parse_zone(row))
        except ComputationError as e:
            logger.error(f"Zone {row.get('id')}: {e}")
            try:
                zones.append(parse_zone(row, ring=FALLBACK_RING))
                ZONES_WITH_FALLBACK_GEOMETRY.inc()
                logger.warning(f"Zone {row.get('id')} using fallback boundary")
            except ComputationError as e2:
                logger.error(f"Skipping zone {row.get('id')}: {e2}")
    return zones


def load_zones_geojson(path: str = ZONES_FILE) -> list[dict]:
    """Read zone rows from a GeoJSON FeatureCollection."""
    with open(path) as f:
        data = json.load(f)

    return [
        {**feature["properties"], "geometry": feature["geometry"]}
        for feature in data["features"]
    ]


class ZoneRegistry:
    """Answers period and location queries over a fixed set of zones."""

    def __init__(
        self,
        zones: Iterable[ConflictZone],
        shape_test: Optional[ZoneShapeTest] = None,
        config: Optional[ImpactConfig] = None,
    ):
        self.zones = list(zones)
        self.shape_test = shape_test or BoundingBoxShapeTest()
        self.config = config or get_config()

    def is_zone_active(self, zone: ConflictZone, period: Period) -> bool:
        return self.config.window(period).overlaps(zone.start, zone.end)

    def list_active_zones(self, period: Period) -> list[ConflictZone]:
        """Active zones, highest severity first."""
        active = [z for z in self.zones if self.is_zone_active(z, period)]
        return sorted(active, key=lambda z: z.severity, reverse=True)

    def zone_at(self, lat: float, lon: float, period: Period) -> Optional[ConflictZone]:
        """Highest-severity active zone containing the point."""
        for zone in self.list_active_zones(period):
            if self.shape_test.contains(zone, lat, lon):
                return zone
        return None

    def zone_for_segment(self, a: tuple, b: tuple, period: Period) -> Optional[ConflictZone]:
        """Zone hit by the segment a→b, tested at its midpoint. Points are (lat, lon)."""
        lat, lon = segment_midpoint(a[0], a[1], b[0], b[1])
        return self.zone_at(lat, lon, period)

    def segment_intersects_active_zone(self, a: tuple, b: tuple, period: Period) -> bool:
        return self.zone_for_segment(a, b, period) is not None

    def to_feature_collection(self, period: Period) -> dict:
        """GeoJSON polygons of the zones active in `period`."""
        return {
            "type": FEATURE_COLLECTION,
            "features": [
                {
                    "type": FEATURE,
                    "properties": {
                        "id": zone.id,
                        "name": zone.name,
                        "severity": zone.severity,
                        "startTime": _isoformat(zone.start),
                        "endTime": _isoformat(zone.end),
                        "description": zone.description,
                    },
                    "geometry": {"type": GEOMETRY_POLYGON, "coordinates": [zone.ring]},
                }
                for zone in self.list_active_zones(period)
            ],
        }


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat().replace("+00:00", "Z")

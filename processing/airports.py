"""
Airport reference data.
"""

import json
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from shapely.geometry import shape

from processing.config import AIRPORTS_FILE
from processing.errors import NotFound, InvalidLocation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Airport:
    iata_code: str
    name: str
    city: str
    country: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None

    def location(self) -> tuple[float, float]:
        """(lat, lon), or InvalidLocation if the record has no coordinates."""
        if self.lat is None or self.lon is None:
            raise InvalidLocation(f"Airport {self.iata_code} location data missing")
        return self.lat, self.lon

    def summary(self) -> dict:
        return {
            "iata_code": self.iata_code,
            "name": self.name,
            "city": self.city,
            "country": self.country,
        }


def airport_from_feature(feature: dict) -> Airport:
    props = feature["properties"]
    lat = lon = None
    if feature.get("geometry"):
        point = shape(feature["geometry"])
        if point.geom_type == "Point" and not point.is_empty:
            lon, lat = point.x, point.y

    return Airport(
        iata_code=props["iata_code"].upper(),
        name=props["name"],
        city=props["city"],
        country=props.get("country"),
        lat=lat,
        lon=lon,
    )


class AirportDirectory:
    """Read-only IATA lookup."""

    def __init__(self, airports: Iterable[Airport]):
        self._airports = {a.iata_code: a for a in airports}

    @classmethod
    def from_geojson(cls, path: str = AIRPORTS_FILE) -> "AirportDirectory":
        with open(path) as f:
            data = json.load(f)

        airports = [airport_from_feature(feature) for feature in data["features"]]
        logger.info(f"Loaded {len(airports)} airports from {path}")
        return cls(airports)

    def find(self, iata_code: str) -> Optional[Airport]:
        return self._airports.get(iata_code.upper())

    def get(self, iata_code: str) -> Airport:
        airport = self.find(iata_code)
        if airport is None:
            raise NotFound(f"Airport not found: {iata_code}")
        return airport

    def list(self) -> list[Airport]:
        return sorted(self._airports.values(), key=lambda a: a.iata_code)


# Singleton instance
_directory: Optional[AirportDirectory] = None

def get_airport_directory() -> AirportDirectory:
    global _directory
    if _directory is None:
        _directory = AirportDirectory.from_geojson()
    return _directory

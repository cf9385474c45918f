"""
Validation library for FlightImpact response contracts.

Provides Pydantic models matching the payloads served to the map and panel
clients. Services build plain dicts; these models are the runtime check that
those dicts match what the clients expect.
"""

from typing import Optional, Literal, Union
from datetime import datetime
from pydantic import BaseModel, Field, field_validator, model_validator


def _parse_iso(v):
    """Parse ISO 8601 datetime string."""
    if isinstance(v, str):
        return datetime.fromisoformat(v.replace("Z", "+00:00"))
    return v


# ============================================================================
# Airports
# ============================================================================

class AirportSummary(BaseModel):
    """Airport entry as listed for the route picker."""
    iata_code: str = Field(pattern=r"^[A-Z]{3}$")
    name: str
    city: str
    country: Optional[str] = None


# ============================================================================
# Route Comparison
# ============================================================================

class RouteComparisonRequest(BaseModel):
    """Origin/destination pair. Both are checked by the service, not here."""
    origin: Optional[str] = None
    destination: Optional[str] = None


class RouteComparison(BaseModel):
    """Baseline vs during-conflict figures for one route."""
    baselineDistance: int = Field(gt=0, description="Great-circle distance in km")
    duringDistance: int = Field(gt=0)
    detourKm: int = Field(ge=0)
    baselineTime: int = Field(ge=0, description="Minutes at cruise speed")
    duringTime: int = Field(ge=0)
    extraFuel: int = Field(ge=0, description="Liters")
    co2Impact: float = Field(ge=0, description="Tons")

    @model_validator(mode="after")
    def check_consistency(self):
        if self.duringDistance < self.baselineDistance:
            raise ValueError("duringDistance must not be shorter than baselineDistance")
        if self.duringTime < self.baselineTime:
            raise ValueError("duringTime must not be shorter than baselineTime")
        return self


# ============================================================================
# Statistics
# ============================================================================

class TopAffectedRoute(BaseModel):
    """Ranked route entry for the stats panel."""
    route: str
    detour: int = Field(ge=0)
    impact: Literal["High", "Medium", "Low"]


class StatsSummary(BaseModel):
    """Fleet-level summary for one period."""
    totalFlights: int = Field(ge=0)
    avgDetour: int = Field(ge=0)
    totalExtraKm: int = Field(ge=0)
    avgDelay: int = Field(ge=0)
    co2Impact: int = Field(ge=0)
    affectedRoutes: int = Field(ge=0)
    topAffectedRoutes: Optional[list[TopAffectedRoute]] = Field(None, max_length=3)


# ============================================================================
# GeoJSON
# ============================================================================

class PointGeometry(BaseModel):
    type: Literal["Point"] = "Point"
    coordinates: list[float] = Field(min_length=2, max_length=2)

    @field_validator("coordinates")
    @classmethod
    def validate_lon_lat(cls, v: list) -> list:
        lon, lat = v
        if not -180 <= lon <= 180 or not -90 <= lat <= 90:
            raise ValueError(f"Coordinates out of range: {v}")
        return v


class PolygonGeometry(BaseModel):
    type: Literal["Polygon"] = "Polygon"
    coordinates: list[list[list[float]]] = Field(min_length=1)

    @field_validator("coordinates")
    @classmethod
    def validate_rings(cls, v: list) -> list:
        """Every ring must be closed and have at least 4 positions."""
        for ring in v:
            if len(ring) < 4:
                raise ValueError(f"Ring has {len(ring)} positions, need at least 4")
            if ring[0] != ring[-1]:
                raise ValueError("Ring is not closed")
        return v


class HeatmapProperties(BaseModel):
    intensity: float = Field(gt=0, le=1)
    flightCount: int = Field(ge=0)
    avgDetour: int = Field(ge=0)


class HeatmapFeature(BaseModel):
    type: Literal["Feature"] = "Feature"
    properties: HeatmapProperties
    geometry: PointGeometry


class HeatmapFeatureCollection(BaseModel):
    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: list[HeatmapFeature]


class ZoneProperties(BaseModel):
    id: Union[str, int]
    name: str
    severity: int = Field(ge=1, le=3)
    startTime: datetime
    endTime: Optional[datetime] = None
    description: Optional[str] = None

    @field_validator("startTime", "endTime", mode="before")
    @classmethod
    def parse_times(cls, v):
        return _parse_iso(v)

    @model_validator(mode="after")
    def check_window(self):
        if self.endTime is not None and self.startTime > self.endTime:
            raise ValueError("startTime is after endTime")
        return self


class ZoneFeature(BaseModel):
    type: Literal["Feature"] = "Feature"
    properties: ZoneProperties
    geometry: PolygonGeometry


class ZoneFeatureCollection(BaseModel):
    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: list[ZoneFeature]


class ErrorResponse(BaseModel):
    error: str


# ============================================================================
# Validation Functions
# ============================================================================

def _validate(model, data: dict):
    try:
        return True, model(**data), None
    except Exception as e:
        return False, None, str(e)


def validate_route_comparison(data: dict) -> tuple[bool, Optional[RouteComparison], Optional[str]]:
    """
    Validate RouteComparison.
    
    Returns:
        (is_valid, comparison_or_none, error_message_or_none)
    """
    return _validate(RouteComparison, data)


def validate_stats_summary(data: dict) -> tuple[bool, Optional[StatsSummary], Optional[str]]:
    """
    Validate StatsSummary.
    
    Returns:
        (is_valid, summary_or_none, error_message_or_none)
    """
    return _validate(StatsSummary, data)


def validate_heatmap(data: dict) -> tuple[bool, Optional[HeatmapFeatureCollection], Optional[str]]:
    """Validate a heatmap FeatureCollection."""
    return _validate(HeatmapFeatureCollection, data)


def validate_conflict_zones(data: dict) -> tuple[bool, Optional[ZoneFeatureCollection], Optional[str]]:
    """Validate a conflict-zone FeatureCollection."""
    return _validate(ZoneFeatureCollection, data)


def validate_airport(data: dict) -> tuple[bool, Optional[AirportSummary], Optional[str]]:
    return _validate(AirportSummary, data)


def validate_error_response(data: dict) -> tuple[bool, Optional[ErrorResponse], Optional[str]]:
    return _validate(ErrorResponse, data)

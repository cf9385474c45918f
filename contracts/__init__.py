"""
FlightImpact Contracts Package

Provides shared constants and validation for response contracts.
"""

from contracts.constants import *
from contracts.validation import (
    AirportSummary,
    RouteComparisonRequest,
    RouteComparison,
    TopAffectedRoute,
    StatsSummary,
    HeatmapFeatureCollection,
    ZoneFeatureCollection,
    ErrorResponse,
    validate_route_comparison,
    validate_stats_summary,
    validate_heatmap,
    validate_conflict_zones,
    validate_airport,
    validate_error_response,
)

__all__ = [
    # Constants
    "PERIOD_BASELINE",
    "PERIOD_DURING",
    "SEVERITY_LOW",
    "SEVERITY_MEDIUM",
    "SEVERITY_HIGH",
    "IMPACT_TIER_HIGH",
    "IMPACT_TIER_MEDIUM",
    "IMPACT_TIER_LOW",
    "FEATURE_COLLECTION",
    "FEATURE",
    "GEOMETRY_POINT",
    "GEOMETRY_POLYGON",
    "ERROR_KEY",
    # Models
    "AirportSummary",
    "RouteComparisonRequest",
    "RouteComparison",
    "TopAffectedRoute",
    "StatsSummary",
    "HeatmapFeatureCollection",
    "ZoneFeatureCollection",
    "ErrorResponse",
    # Validators
    "validate_route_comparison",
    "validate_stats_summary",
    "validate_heatmap",
    "validate_conflict_zones",
    "validate_airport",
    "validate_error_response",
]

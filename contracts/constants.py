"""
Shared constants for FlightImpact services.

This module provides a single source of truth for:
- Period names and evaluation windows
- Zone severities and impact tiers
- GeoJSON feature types

All services should import from this module to ensure consistency.
"""

# Periods
PERIOD_BASELINE = "baseline"
PERIOD_DURING = "during"

# Period evaluation windows (ISO 8601, UTC). None = open-ended.
BASELINE_WINDOW_START = "2021-01-01T00:00:00Z"
BASELINE_WINDOW_END = "2021-12-31T23:59:59Z"
DURING_WINDOW_START = "2022-01-01T00:00:00Z"
DURING_WINDOW_END = None

# Zone severity (1 lowest, 3 highest)
SEVERITY_LOW = 1
SEVERITY_MEDIUM = 2
SEVERITY_HIGH = 3

# Impact tiers for top affected routes
IMPACT_TIER_HIGH = "High"
IMPACT_TIER_MEDIUM = "Medium"
IMPACT_TIER_LOW = "Low"

# GeoJSON
FEATURE_COLLECTION = "FeatureCollection"
FEATURE = "Feature"
GEOMETRY_POINT = "Point"
GEOMETRY_POLYGON = "Polygon"

# Error response key
ERROR_KEY = "error"

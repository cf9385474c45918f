"""
Prometheus metrics for the impact core.
"""

from prometheus_client import Counter, Histogram

ROUTES_ESTIMATED = Counter(
    'impact_routes_estimated_total',
    'Route impact records computed',
    ['period']
)

FALLBACKS_SERVED = Counter(
    'impact_fallbacks_served_total',
    'Responses answered from the reference dataset',
    ['kind', 'reason']  # kind: route, stats; reason: reference, cold_store, upstream
)

HEATMAP_POINTS_GENERATED = Counter(
    'impact_heatmap_points_generated_total',
    'Heatmap points synthesized',
    ['period']
)

ZONES_WITH_FALLBACK_GEOMETRY = Counter(
    'impact_zones_fallback_geometry_total',
    'Zones served with the fallback boundary after a parse failure'
)

DB_WRITE_LATENCY = Histogram(
    'impact_db_write_latency_seconds',
    'Database write latency',
    ['table'],
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
)

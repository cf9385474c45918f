"""
Request-level operations behind the API.

Each call is independent: it reads what it needs from the store, computes,
and writes back through idempotent upserts. Store outages on read paths are
absorbed with reference data; precondition failures raise.
"""

import logging
import random
import threading
from typing import Optional

from processing.airports import get_airport_directory
from processing.config import ImpactConfig, ZONES_FILE, get_config
from processing.errors import InvalidInput, NotFound, UpstreamUnavailable
from processing.estimator import RouteImpactEstimator, RouteImpactRecord
from processing.heatmap import HeatmapSynthesizer, to_feature_collection, unique_cells
from processing.metrics import ROUTES_ESTIMATED, FALLBACKS_SERVED, HEATMAP_POINTS_GENERATED
from processing.periods import Period, parse_period
from processing.reference_data import ReferenceDataset
from processing.sampling import FlightTrackSampler
from processing.stats import StatsAggregator, round_half_up
from processing.zones import ZoneRegistry, ZoneShapeTest, load_zones, load_zones_geojson

logger = logging.getLogger(__name__)


def route_comparison(baseline: RouteImpactRecord, during: RouteImpactRecord) -> dict:
    """Response shape for a baseline/during record pair."""
    return {
        "baselineDistance": round_half_up(baseline.avg_distance_km or 0),
        "duringDistance": round_half_up(during.avg_distance_km or 0),
        "detourKm": round_half_up(during.avg_detour_km or 0),
        "baselineTime": round_half_up(baseline.avg_flight_time_minutes or 0),
        "duringTime": round_half_up(during.avg_flight_time_minutes or 0),
        "extraFuel": round_half_up(during.total_extra_fuel_liters or 0),
        "co2Impact": round_half_up((during.total_co2_impact_tons or 0) * 100) / 100,
    }


class ImpactService:
    def __init__(
        self,
        store,
        config: Optional[ImpactConfig] = None,
        reference: Optional[ReferenceDataset] = None,
        rng: Optional[random.Random] = None,
        shape_test: Optional[ZoneShapeTest] = None,
    ):
        self.store = store
        self.config = config or get_config()
        self.reference = reference or ReferenceDataset()
        self.rng = rng or random.Random()
        self.shape_test = shape_test
        self.aggregator = StatsAggregator(self.config, self.reference)
        self._seed_lock = threading.Lock()

    def zone_registry(self) -> ZoneRegistry:
        """Registry over the zones in the store, or the static seed zones if it is unreachable."""
        try:
            rows = self.store.list_zones()
        except UpstreamUnavailable as e:
            logger.warning(f"Zone lookup failed, using seed zones from {ZONES_FILE}: {e}")
            rows = load_zones_geojson(ZONES_FILE)
        return ZoneRegistry(load_zones(rows), self.shape_test, self.config)

    # Airports

    def list_airports(self) -> list[dict]:
        try:
            airports = self.store.list_airports()
        except UpstreamUnavailable as e:
            logger.warning(f"Airport lookup failed, using static airport list: {e}")
            airports = get_airport_directory().list()
        logger.info(f"Returning {len(airports)} airports")
        return [a.summary() for a in airports]

    # Conflict zones

    def get_conflict_zones(self, period) -> dict:
        period = parse_period(period)
        collection = self.zone_registry().to_feature_collection(period)
        logger.info(f"Found {len(collection['features'])} conflict zones for period {period.value}")
        return collection

    # Route comparison

    def compare_route(self, origin: Optional[str], destination: Optional[str]) -> dict:
        """
        Baseline vs during comparison for origin → destination.

        Raises:
            InvalidInput: origin or destination missing, or both the same airport
            NotFound: airport code unknown
            InvalidLocation: airport without coordinates
        """
        if not origin or not destination:
            raise InvalidInput("Origin and destination are required")
        origin, destination = origin.strip().upper(), destination.strip().upper()
        if origin == destination:
            raise InvalidInput(f"Origin and destination must differ: {origin}")
        logger.info(f"Comparing route {origin} → {destination}")

        reference = self.reference.route_comparison(origin, destination)
        if reference is not None:
            logger.info(f"Using reference data for route {origin}-{destination}")
            FALLBACKS_SERVED.labels(kind="route", reason="reference").inc()
            return reference

        try:
            stored = {r.period: r for r in self.store.query_route_impacts(origin, destination)}
            if Period.BASELINE in stored and Period.DURING in stored:
                return route_comparison(stored[Period.BASELINE], stored[Period.DURING])

            logger.info("No route statistics found, calculating from airports...")
            airports = self.store.get_airports([origin, destination])
        except UpstreamUnavailable as e:
            logger.warning(f"Route lookup failed, serving fallback comparison: {e}")
            FALLBACKS_SERVED.labels(kind="route", reason="upstream").inc()
            return self.reference.fallback_route_comparison(origin, destination)

        for code in (origin, destination):
            if code not in airports:
                raise NotFound(f"Airport not found: {code}")

        estimator = RouteImpactEstimator(self.zone_registry(), self.config, self.rng)
        baseline = estimator.estimate(airports[origin], airports[destination], Period.BASELINE)
        during = estimator.estimate(airports[origin], airports[destination], Period.DURING)
        ROUTES_ESTIMATED.labels(period=Period.BASELINE.value).inc()
        ROUTES_ESTIMATED.labels(period=Period.DURING.value).inc()

        try:
            self.store.upsert_route_impacts([baseline, during])
        except UpstreamUnavailable as e:
            logger.error(f"Error storing route statistics: {e}")

        result = route_comparison(baseline, during)
        logger.info(f"Route comparison result: {result}")
        return result

    # Statistics

    def get_stats(self, period) -> dict:
        period = parse_period(period)
        logger.info(f"Calculating statistics for period: {period.value}")

        try:
            tracks = self.store.query_flight_tracks(period)
            route_records = self.store.query_route_impacts_by_period(period) if tracks else None
        except UpstreamUnavailable as e:
            logger.warning(f"Statistics lookup failed, serving reference statistics: {e}")
            FALLBACKS_SERVED.labels(kind="stats", reason="upstream").inc()
            return self.aggregator.summarize([], period).to_dict()

        summary = self.aggregator.summarize(tracks, period, route_records)

        if not tracks:
            FALLBACKS_SERVED.labels(kind="stats", reason="cold_store").inc()
            if self.config.seed_on_cold_start:
                self.seed_sample_flights(period)

        return summary.to_dict()

    def seed_sample_flights(self, period: Period) -> int:
        """
        Generate and store sample flight tracks unless the period already has some.

        Returns the number of flights written.
        """
        with self._seed_lock:
            return self._seed_if_empty(period)

    def _seed_if_empty(self, period: Period) -> int:
        try:
            if self.store.query_flight_tracks(period):
                logger.info(f"Sample flights for period {period.value} already present")
                return 0
            airports = self.store.get_airports(
                {code for route in self.config.sample_routes for code in route}
            )
            sampler = FlightTrackSampler(self.zone_registry(), self.config, self.rng)
            tracks, route_records = sampler.generate(period, airports)
            if tracks:
                self.store.insert_flight_tracks(tracks)
                self.store.upsert_route_impacts(route_records)
        except UpstreamUnavailable as e:
            logger.error(f"Error generating sample flight data: {e}")
            return 0
        return len(tracks)

    # Heatmap

    def get_heatmap(self, period) -> dict:
        period = parse_period(period)
        logger.info(f"Fetching heatmap data for period: {period.value}")

        try:
            points = self.store.query_heatmap_points(period)
        except UpstreamUnavailable as e:
            logger.warning(f"Heatmap lookup failed, generating without persisting: {e}")
            points = self._generate_heatmap(period)
            return to_feature_collection(points)

        if not points:
            logger.info("Generating sample heatmap data...")
            points = self._generate_heatmap(period)
            try:
                self.store.upsert_heatmap_points(points)
            except UpstreamUnavailable as e:
                logger.error(f"Error inserting heatmap data: {e}")

        logger.info(f"Returning {len(points)} heatmap points for period {period.value}")
        return to_feature_collection(points)

    def _generate_heatmap(self, period: Period) -> list:
        # One point per grid cell, same as the stored set
        points = unique_cells(HeatmapSynthesizer(self.zone_registry(), self.config, self.rng).generate(period))
        HEATMAP_POINTS_GENERATED.labels(period=period.value).inc(len(points))
        return points

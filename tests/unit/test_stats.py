"""
Unit tests for fleet statistics.
"""

import pytest

from processing.estimator import RouteImpactRecord
from processing.periods import Period
from processing.reference_data import REFERENCE_STATS
from processing.stats import StatsAggregator, round_half_up
from processing.sampling import FlightTrack


def route(origin, dest, detour, flights=1, co2=0.0, period=Period.DURING):
    return RouteImpactRecord(
        origin_iata=origin,
        destination_iata=dest,
        period=period,
        avg_distance_km=1000.0 + detour,
        avg_flight_time_minutes=75,
        avg_detour_km=detour,
        total_co2_impact_tons=co2,
        total_flights=flights,
    )


@pytest.fixture
def aggregator(config):
    return StatsAggregator(config)


@pytest.mark.parametrize("value,expected", [
    (0.5, 1), (1.5, 2), (2.4999, 2), (187.5, 188), (0, 0),
])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected


@pytest.mark.parametrize("detour,tier", [
    (309, "High"), (251, "High"), (250, "Medium"), (151, "Medium"), (150, "Low"), (30, "Low"),
])
def test_impact_tier(aggregator, detour, tier):
    assert aggregator.impact_tier(detour) == tier


def test_empty_during_returns_reference(aggregator):
    summary = aggregator.summarize([], Period.DURING).to_dict()

    assert summary["totalFlights"] == 41289
    assert summary["avgDetour"] == 187
    assert summary["affectedRoutes"] == 78
    assert len(summary["topAffectedRoutes"]) == 3
    assert summary == REFERENCE_STATS[Period.DURING]


def test_empty_baseline_returns_reference(aggregator):
    summary = aggregator.summarize([], Period.BASELINE).to_dict()
    assert summary["totalFlights"] == 45623
    assert "topAffectedRoutes" not in summary


def test_reference_not_mutated(aggregator):
    summary = aggregator.summarize([], Period.DURING)
    summary.top_affected_routes.clear()
    assert len(REFERENCE_STATS[Period.DURING]["topAffectedRoutes"]) == 3


def test_weighted_averages(aggregator):
    records = [
        route("IST", "FRA", 300, flights=10, co2=9.45),
        route("LHR", "CDG", 0, flights=30),
    ]
    summary = aggregator.summarize(records, Period.DURING)

    assert summary.total_flights == 40
    assert summary.avg_detour == 75
    assert summary.total_extra_km == 3000
    assert summary.avg_delay == 9
    assert summary.co2_impact == 9
    assert summary.affected_routes == 1


def test_top_routes_sorted_and_limited(aggregator):
    records = [
        route("LHR", "WAW", 120),
        route("IST", "FRA", 309),
        route("FRA", "BUD", 0),
        route("VIE", "WAW", 245),
        route("IST", "VIE", 198),
    ]
    top = aggregator.summarize(records, Period.DURING).to_dict()["topAffectedRoutes"]

    assert top == [
        {"route": "IST → FRA", "detour": 309, "impact": "High"},
        {"route": "VIE → WAW", "detour": 245, "impact": "Medium"},
        {"route": "IST → VIE", "detour": 198, "impact": "Medium"},
    ]


def test_top_routes_exclude_zero_detour(aggregator):
    records = [route("FRA", "BUD", 0), route("LHR", "CDG", 0)]
    summary = aggregator.summarize(records, Period.DURING)
    assert summary.top_affected_routes == []


def test_baseline_has_no_top_routes(aggregator):
    records = [route("IST", "FRA", 0, flights=5, period=Period.BASELINE)]
    summary = aggregator.summarize(records, Period.BASELINE).to_dict()
    assert "topAffectedRoutes" not in summary
    assert summary["totalFlights"] == 5


def test_flight_tracks_count_one_each(aggregator):
    tracks = [
        FlightTrack(
            flight_number=f"XX{i}",
            origin_iata="IST",
            destination_iata="FRA",
            period=Period.DURING,
            departure_time=None,
            route_coords=[[29.0, 41.0], [8.5, 50.0]],
            distance_km=1500.0 + detour,
            flight_time_minutes=120,
            detour_km=detour,
            co2_impact_tons=1.0,
        )
        for i, detour in enumerate([100, 200, 0])
    ]
    ranked = [route("IST", "FRA", 150, flights=2)]
    summary = aggregator.summarize(tracks, Period.DURING, route_records=ranked)

    assert summary.total_flights == 3
    assert summary.avg_detour == 100
    assert summary.co2_impact == 3
    assert summary.affected_routes == 2
    assert [r.route for r in summary.top_affected_routes] == ["IST → FRA"]

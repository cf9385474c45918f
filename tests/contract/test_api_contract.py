"""
Contract tests for API payloads.

Validates the bundled examples and the payloads the service builds against
the response schemas. These tests run without a database.
"""

import json
import pytest
from pathlib import Path
import sys

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from contracts.validation import (
    validate_route_comparison,
    validate_stats_summary,
    validate_heatmap,
    validate_conflict_zones,
    validate_airport,
    validate_error_response,
)


def load_example(filename: str) -> dict:
    """Load example JSON file."""
    example_path = Path(__file__).parent.parent.parent / "contracts" / "examples" / filename
    with open(example_path) as f:
        return json.load(f)


class TestExamples:
    """Bundled examples must match the schemas."""

    def test_route_comparison_example_validates(self):
        is_valid, comparison, error = validate_route_comparison(load_example("route_comparison.json"))

        assert is_valid, f"Example should validate: {error}"
        assert comparison.detourKm == comparison.duringDistance - comparison.baselineDistance

    def test_stats_example_validates(self):
        is_valid, summary, error = validate_stats_summary(load_example("stats_during.json"))

        assert is_valid, f"Example should validate: {error}"
        assert len(summary.topAffectedRoutes) == 3

    def test_heatmap_example_validates(self):
        is_valid, collection, error = validate_heatmap(load_example("heatmap.json"))

        assert is_valid, f"Example should validate: {error}"
        assert len(collection.features) > 0

    def test_conflict_zones_example_validates(self):
        is_valid, collection, error = validate_conflict_zones(load_example("conflict_zones.json"))

        assert is_valid, f"Example should validate: {error}"
        assert collection.features[0].properties.severity == 3

    def test_error_example_validates(self):
        is_valid, _, error = validate_error_response(load_example("error.json"))
        assert is_valid, f"Example should validate: {error}"


class TestInvalidPayloads:
    def test_route_comparison_shorter_during(self):
        example = load_example("route_comparison.json")
        example["duringDistance"] = example["baselineDistance"] - 1

        is_valid, _, error = validate_route_comparison(example)
        assert not is_valid
        assert "duringDistance" in error

    def test_stats_too_many_top_routes(self):
        example = load_example("stats_during.json")
        example["topAffectedRoutes"].append({"route": "A → B", "detour": 10, "impact": "Low"})

        is_valid, _, _ = validate_stats_summary(example)
        assert not is_valid, "Should fail with more than 3 top routes"

    def test_stats_unknown_impact_tier(self):
        example = load_example("stats_during.json")
        example["topAffectedRoutes"][0]["impact"] = "Severe"

        is_valid, _, _ = validate_stats_summary(example)
        assert not is_valid

    def test_heatmap_zero_intensity(self):
        example = load_example("heatmap.json")
        example["features"][0]["properties"]["intensity"] = 0

        is_valid, _, _ = validate_heatmap(example)
        assert not is_valid, "Intensity must be above zero"

    def test_zone_ring_not_closed(self):
        example = load_example("conflict_zones.json")
        example["features"][0]["geometry"]["coordinates"][0].pop()

        is_valid, _, error = validate_conflict_zones(example)
        assert not is_valid
        assert "closed" in error

    def test_zone_severity_out_of_range(self):
        example = load_example("conflict_zones.json")
        example["features"][0]["properties"]["severity"] = 4

        is_valid, _, _ = validate_conflict_zones(example)
        assert not is_valid

    def test_airport_lowercase_code(self):
        is_valid, _, _ = validate_airport({"iata_code": "fra", "name": "Frankfurt Airport", "city": "Frankfurt"})
        assert not is_valid


class TestServicePayloads:
    """Payloads built by the service must validate."""

    @pytest.mark.parametrize("origin,destination", [
        ("FRA", "LHR"), ("VIE", "IST"), ("WAW", "KBP"), ("TLV", "AMM"), ("HEL", "ATH"),
    ])
    def test_route_comparison(self, service, origin, destination):
        is_valid, _, error = validate_route_comparison(service.compare_route(origin, destination))
        assert is_valid, error

    @pytest.mark.parametrize("period", ["baseline", "during"])
    def test_stats(self, service, config, period):
        config.seed_on_cold_start = True
        for _ in range(2):
            is_valid, _, error = validate_stats_summary(service.get_stats(period))
            assert is_valid, error

    @pytest.mark.parametrize("period", ["baseline", "during"])
    def test_heatmap(self, service, period):
        is_valid, _, error = validate_heatmap(service.get_heatmap(period))
        assert is_valid, error

    @pytest.mark.parametrize("period", ["baseline", "during"])
    def test_conflict_zones(self, service, period):
        is_valid, _, error = validate_conflict_zones(service.get_conflict_zones(period))
        assert is_valid, error

    def test_airports(self, service):
        for airport in service.list_airports():
            is_valid, _, error = validate_airport(airport)
            assert is_valid, error

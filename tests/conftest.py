"""
Shared fixtures: static reference data, an in-memory store and seeded randomness.
"""

import random
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from processing.airports import AirportDirectory
from processing.config import ImpactConfig, AIRPORTS_FILE, ZONES_FILE
from processing.service import ImpactService
from processing.store import InMemoryStore
from processing.zones import ZoneRegistry, load_zones, load_zones_geojson


@pytest.fixture
def config():
    """Fresh config per test so overrides do not leak."""
    return ImpactConfig(seed_on_cold_start=False)


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture(scope="session")
def airports():
    return AirportDirectory.from_geojson(AIRPORTS_FILE)


@pytest.fixture(scope="session")
def zone_rows():
    return load_zones_geojson(ZONES_FILE)


@pytest.fixture
def registry(zone_rows, config):
    return ZoneRegistry(load_zones(zone_rows), config=config)


@pytest.fixture
def store(airports, zone_rows):
    return InMemoryStore(airports, zone_rows)


@pytest.fixture
def service(store, config, rng):
    return ImpactService(store, config=config, rng=rng)

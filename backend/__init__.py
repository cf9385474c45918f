"""FlightImpact HTTP API."""

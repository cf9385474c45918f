"""FlightImpact route-impact core."""

"""
Error taxonomy for the impact core.

Each error carries the HTTP status the API layer answers with.
"""


class ImpactError(Exception):
    """Base class for request-scoped failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(ImpactError):
    """Referenced airport or zone does not exist."""
    status_code = 404


class InvalidInput(ImpactError):
    """Missing or malformed request parameters."""
    status_code = 400


class InvalidLocation(ImpactError):
    """Airport record has no usable coordinates."""
    status_code = 400


class UpstreamUnavailable(ImpactError):
    """Persistent store or reference lookup cannot be reached."""
    status_code = 503


class ComputationError(ImpactError):
    """Malformed geometry or inconsistent zone data."""
    status_code = 500

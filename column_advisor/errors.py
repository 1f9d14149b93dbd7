from __future__ import annotations


class AdvisorError(Exception):
    pass


class ConfigurationError(AdvisorError, ValueError):
    """Raised before any search loop starts when inputs or parameters are invalid."""


class DegenerateNeighborError(AdvisorError, RuntimeError):
    """Raised when no distinct neighbouring layout can be produced."""

"""Exceptions raised before sampling starts."""


class ConfigurationError(ValueError):
    """Raised when the edge index, the prior or the run configuration
    is malformed. Always raised before any sampling begins."""


class DataError(ValueError):
    """Raised when the observation matrix cannot be used,
    e.g., a column has zero variance and cannot be standardized."""

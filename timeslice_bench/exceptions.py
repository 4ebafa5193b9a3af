"""Custom exceptions for the time-slicing benchmark harness."""


class BenchmarkError(Exception):
    """Base class for fatal harness errors."""
    pass


class EnvironmentCheckError(BenchmarkError):
    """Raised when the local environment cannot host a benchmark run."""
    pass


class ConfigurationError(BenchmarkError):
    """Raised when the workload configuration is invalid."""
    pass


class NoActiveEndpointsError(BenchmarkError):
    """Raised when no inference endpoint answered the health probe."""
    pass

"""
Exceptions raised by the differential evolution package.
"""


class TSPDEError(Exception):
    """Base exception for the package."""

    def __init__(self, message: str = "", details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(TSPDEError):
    """Raised for invalid run settings, before any generation is executed."""
    pass


class InstanceFormatError(TSPDEError):
    """Raised when an instance file cannot be turned into a cost matrix."""
    pass


class SubSolverError(TSPDEError):
    """Raised when the exact solver ends without a feasible tour."""

    def __init__(self, message: str = "", status: int = None, runtime: float = None):
        details = {}
        if status is not None:
            details["status"] = status
        if runtime is not None:
            details["runtime"] = round(runtime, 3)
        super().__init__(message, details)
        self.status = status
        self.runtime = runtime

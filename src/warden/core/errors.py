"""
Errors shared across the orchestration core.

Component-specific errors (AdmissionDenied, CapabilityError, ...) live next to
the component that raises them and derive from WardenError.
"""


class WardenError(Exception):
    """Base exception for all WARDEN errors"""
    pass


class ConfigurationError(WardenError):
    """Raised when the scanner is wired or configured incorrectly"""
    pass

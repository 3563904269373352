"""
Error taxonomy for the studio core.

Admission denial, upstream failure and input validation are kept as
distinct exception types so callers can report them separately.
"""

from typing import Optional


class StudioError(Exception):
    """Base class for all studio errors."""


class AdmissionDenied(StudioError):
    """Raised when a client's rate window for a feature is exhausted.

    This is a flow-control signal rather than a failure: ``reset_at`` is the
    epoch millisecond at which the client may retry.
    """
    def __init__(self, feature: str, reset_at: int):
        super().__init__(f"Rate limit exceeded for {feature}; retry after {reset_at}")
        self.feature = feature
        self.reset_at = reset_at


class UpstreamError(StudioError):
    """Raised when a single upstream call fails.

    ``status`` is the upstream HTTP status, or None for transport errors,
    timeouts and unparseable bodies.
    """
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ValidationError(StudioError):
    """Raised for malformed input, before any I/O takes place."""

"""
Error taxonomy for the dispatch core.

Matching errors are recovered by the job-creation flow, claim errors are
surfaced to the requesting contractor, and settlement errors are isolated
per contractor inside the payout batch.
"""


class DispatchError(Exception):
    """Base exception for dispatch and settlement errors."""
    pass


class ValidationError(DispatchError):
    """Missing or invalid coordinates, identifiers or schedule data."""
    pass


class NotFoundError(DispatchError):
    """Referenced job, contractor or offer does not exist."""
    pass


class ConflictError(DispatchError):
    """A state transition lost a race or the offer is no longer valid."""
    pass


class ExternalServiceError(DispatchError):
    """The transfer gateway (or another collaborator) failed."""
    pass


class ConfigurationError(DispatchError):
    """Contractor or system configuration prevents the operation."""
    pass

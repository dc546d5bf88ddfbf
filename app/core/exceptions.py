"""Custom exception hierarchy."""

from typing import Any, Dict, List, Optional


class AppError(Exception):
    """Base exception for application errors."""
    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.original_error = original_error


class DatabaseError(AppError):
    """Raised when a database operation fails."""
    pass


class ValidationError(AppError):
    """Raised when input validation fails.

    ``errors`` carries field-level detail in the same shape FastAPI uses
    for request validation: ``{"loc": [...], "msg": ..., "type": ...}``.
    """
    def __init__(
        self,
        message: str,
        errors: Optional[List[Dict[str, Any]]] = None,
        original_error: Exception = None,
    ):
        super().__init__(message, original_error=original_error)
        self.errors = errors or []

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(
            message,
            errors=[{"loc": ["body", field], "msg": message, "type": "value_error"}],
        )


class ConfigurationError(AppError):
    """Raised when configuration is invalid or missing."""
    pass


class UnauthorizedError(AppError):
    """Raised when no caller identity can be resolved."""
    pass


class ForbiddenError(AppError):
    """Raised when the caller lacks the role an action needs."""
    pass


class NotFoundError(AppError):
    """Base exception for missing resources."""
    pass


class FundingRoundNotFoundError(NotFoundError):
    """Raised when a funding round is not found."""
    pass


class ProposalNotFoundError(NotFoundError):
    """Raised when a proposal is not found."""
    pass


class PhaseNotConfiguredError(NotFoundError):
    """Raised when a funding round lacks the phase record an action needs."""
    pass


class PhaseError(AppError):
    """Base exception for actions not legal in a proposal's current phase."""
    pass


class InvalidTransitionError(PhaseError):
    """Raised when a phase transition is not allowed from the current status."""
    pass


class VoteNotAcceptedError(PhaseError):
    """Raised when a vote is cast in a phase that does not accept it."""
    pass


class PhaseClosedError(PhaseError):
    """Raised when a vote is cast outside the phase window."""
    pass


class UnsupportedPhaseError(PhaseError):
    """Raised when an operation is asked for a phase it does not cover."""
    pass

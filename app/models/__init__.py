"""Domain enums for proposal review."""

from app.models.review import (
    DeliberationMode,
    Phase,
    ProposalStatus,
    ViewerStatus,
    VoteDecision,
)

__all__ = [
    "DeliberationMode",
    "Phase",
    "ProposalStatus",
    "ViewerStatus",
    "VoteDecision",
]

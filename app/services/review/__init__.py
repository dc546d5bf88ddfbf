"""Phase state machine and vote tallying engine."""

from app.services.review.eligibility import EligibilityResolver
from app.services.review.phase_machine import PhaseStateMachine
from app.services.review.tally import VoteTallyService
from app.services.review.view_assembler import ProposalViewAssembler

__all__ = [
    "EligibilityResolver",
    "PhaseStateMachine",
    "VoteTallyService",
    "ProposalViewAssembler",
]

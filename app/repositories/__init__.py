"""Repository layer modules."""

from app.repositories.funding_round_repository import FundingRoundRepository, ReviewerGroupRepository
from app.repositories.proposal_repository import ProposalRepository
from app.repositories.user_repository import UserRepository
from app.repositories.vote_repository import ConsiderationVoteRepository, DeliberationVoteRepository

__all__ = [
    "FundingRoundRepository",
    "ReviewerGroupRepository",
    "ProposalRepository",
    "UserRepository",
    "ConsiderationVoteRepository",
    "DeliberationVoteRepository",
]

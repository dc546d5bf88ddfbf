"""Database module for SQLAlchemy models."""

from app.database.models import (
    ConsiderationPhase,
    ConsiderationVote,
    DeliberationPhase,
    DeliberationVote,
    FundingRound,
    Proposal,
    ReviewerGroup,
    ReviewerGroupMember,
    Topic,
    TopicReviewerGroup,
    User,
    VotingPhase,
)

__all__ = [
    "User",
    "Topic",
    "ReviewerGroup",
    "ReviewerGroupMember",
    "TopicReviewerGroup",
    "FundingRound",
    "ConsiderationPhase",
    "DeliberationPhase",
    "VotingPhase",
    "Proposal",
    "ConsiderationVote",
    "DeliberationVote",
]

"""Enumerations shared by the review phase engine.

Values match the strings stored in the database and returned to clients.
"""

from enum import Enum


class ProposalStatus(str, Enum):
    """Lifecycle status of a proposal."""

    DRAFT = "DRAFT"
    CONSIDERATION = "CONSIDERATION"
    DELIBERATION = "DELIBERATION"
    VOTING = "VOTING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class Phase(str, Enum):
    """Review phases a funding round can configure."""

    CONSIDERATION = "CONSIDERATION"
    DELIBERATION = "DELIBERATION"
    VOTING = "VOTING"


class VoteDecision(str, Enum):
    """Decision carried by a consideration vote."""

    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ViewerStatus(str, Enum):
    """Consideration status as seen by one viewer, from their own vote."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DeliberationMode(str, Enum):
    """Kind of deliberation write, fixed by the voter's role and position."""

    REVIEWER_RECOMMEND = "reviewer_recommend"
    REVIEWER_NOT_RECOMMEND = "reviewer_not_recommend"
    COMMUNITY_COMMENT = "community_comment"


class FundingRoundStatus(str, Enum):
    """Lifecycle status of a funding round."""

    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"

"""Schemas for proposal views returned to the review pages."""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.models.review import DeliberationMode, ProposalStatus, ViewerStatus, VoteDecision


class VoteStats(BaseModel):
    """Aggregate vote counts of one proposal in one phase.

    Every field is always present; ``approved + rejected == total``.
    """

    approved: int = Field(default=0, ge=0, description="Approving votes (or recommendations)")
    rejected: int = Field(default=0, ge=0, description="Rejecting votes (or non-recommendations)")
    total: int = Field(default=0, ge=0, description="All counted votes")


class UserVote(BaseModel):
    """The caller's own consideration vote."""

    decision: VoteDecision = Field(..., description="Caller's decision")
    feedback: str = Field(default="", description="Caller's feedback")


class ConsiderationProposalView(BaseModel):
    """A proposal as seen by one caller on the consideration page."""

    id: int = Field(..., description="Proposal ID")
    proposal_name: str = Field(..., description="Proposal name")
    submitter: Optional[str] = Field(None, description="Submitter username from profile metadata")
    abstract: str = Field(..., description="Proposal abstract")
    status: ViewerStatus = Field(..., description="Status derived from the caller's own vote only")
    user_vote: Optional[UserVote] = Field(None, description="Caller's vote, if any")
    is_reviewer_eligible: bool = Field(..., description="Whether the caller is a reviewer for the round")
    vote_stats: VoteStats = Field(..., description="Cross-voter consideration tally")
    current_phase: ProposalStatus = Field(..., description="Phase the proposal is in")
    created_at: Optional[datetime] = Field(None, description="Proposal creation time")


class ConsiderationProposalList(BaseModel):
    """Ordered consideration page listing."""

    proposals: List[ConsiderationProposalView] = Field(default_factory=list)
    pending_count: int = Field(default=0, description="Consideration proposals the caller has not voted on")
    total_count: int = Field(default=0, description="Proposals listed")


class UserDeliberation(BaseModel):
    """The caller's own deliberation vote."""

    feedback: str = Field(..., description="Caller's feedback")
    recommendation: Optional[bool] = Field(None, description="Reviewer recommendation, absent for community comments")
    created_at: Optional[datetime] = Field(None, description="Last write time")
    is_reviewer_vote: bool = Field(default=False, description="Whether it was cast as a reviewer")


class ReviewerInfo(BaseModel):
    """Public identity of a reviewer."""

    username: Optional[str] = Field(None, description="Reviewer username")


class ReviewerComment(BaseModel):
    """Public reviewer comment; one per reviewer per proposal."""

    id: int = Field(..., description="Storage-assigned comment ID")
    feedback: str = Field(..., description="Reviewer feedback")
    recommendation: bool = Field(..., description="Whether the reviewer recommends the proposal")
    created_at: Optional[datetime] = Field(None, description="Last write time")
    reviewer: ReviewerInfo


class DeliberationProposalView(BaseModel):
    """A proposal as seen by one caller on the deliberation page."""

    id: int = Field(..., description="Proposal ID")
    proposal_name: str = Field(..., description="Proposal name")
    submitter: Optional[str] = Field(None, description="Submitter username from profile metadata")
    abstract: str = Field(..., description="Proposal abstract")
    is_reviewer_eligible: bool = Field(..., description="Whether the caller is a reviewer for the round")
    has_voted: bool = Field(..., description="Whether the caller has deliberated")
    user_deliberation: Optional[UserDeliberation] = Field(None, description="Caller's deliberation, if any")
    vote_mode: Optional[DeliberationMode] = Field(None, description="Mode of the caller's existing deliberation")
    reviewer_comments: List[ReviewerComment] = Field(default_factory=list)
    vote_stats: VoteStats = Field(..., description="Reviewer recommendation tally")
    current_phase: ProposalStatus = Field(..., description="Phase the proposal is in")
    created_at: Optional[datetime] = Field(None, description="Proposal creation time")


class DeliberationProposalList(BaseModel):
    """Ordered deliberation page listing."""

    proposals: List[DeliberationProposalView] = Field(default_factory=list)
    pending_count: int = Field(default=0, description="Proposals the caller has not deliberated on")
    total_count: int = Field(default=0, description="Proposals listed")


class PhaseWindow(BaseModel):
    """Configured window of a phase record."""

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None


class FundingRoundSummary(BaseModel):
    """Funding round with the phases it configures."""

    id: UUID
    name: str
    status: str
    consideration_phase: Optional[PhaseWindow] = None
    deliberation_phase: Optional[PhaseWindow] = None
    voting_phase: Optional[PhaseWindow] = None


class ProposalDetail(BaseModel):
    """Single proposal with access flags for the caller."""

    id: int
    proposal_name: str
    abstract: str
    status: ProposalStatus
    submitter: Optional[str] = None
    funding_round: Optional[FundingRoundSummary] = None
    can_edit: bool = Field(..., description="Caller owns the proposal and it is still a draft")
    can_delete: bool = Field(..., description="Caller owns the proposal and it is still a draft")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ReviewerEligibility(BaseModel):
    """Whether the caller may cast reviewer-class votes in a funding round."""

    funding_round_id: UUID
    is_reviewer: bool

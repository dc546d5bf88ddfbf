"""Request and acknowledgement schemas for vote writes and phase transitions."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from app.models.review import DeliberationMode, ProposalStatus, ViewerStatus, VoteDecision
from app.schemas.proposals import VoteStats


class ConsiderationVoteRequest(BaseModel):
    """Consideration vote payload."""

    decision: VoteDecision = Field(..., description="APPROVED or REJECTED")
    feedback: str = Field(default="", max_length=5000, description="Optional feedback")


class DeliberationVoteRequest(BaseModel):
    """Deliberation vote payload; ``recommendation`` only for reviewers."""

    feedback: str = Field(..., min_length=1, max_length=5000, description="Deliberation feedback")
    recommendation: Optional[bool] = Field(None, description="Reviewer recommendation")

    @field_validator("feedback")
    @classmethod
    def feedback_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("feedback must not be blank")
        return value


class ConsiderationVoteAck(BaseModel):
    """Acknowledgement of a consideration vote."""

    proposal_id: int
    decision: VoteDecision
    feedback: str
    status: ViewerStatus = Field(..., description="Caller's status after the vote")
    vote_stats: VoteStats = Field(..., description="Tally after the vote")


class DeliberationVoteAck(BaseModel):
    """Acknowledgement of a deliberation vote."""

    id: int = Field(..., description="Storage-assigned vote ID (the reviewer comment ID for reviewers)")
    proposal_id: int
    feedback: str
    recommendation: Optional[bool] = None
    is_reviewer_vote: bool
    mode: DeliberationMode
    created_at: Optional[datetime] = None


class PhaseTransitionRequest(BaseModel):
    """Round-lifecycle request to move a proposal to another status."""

    target_status: ProposalStatus = Field(..., description="Status to move the proposal to")


class PhaseTransitionResult(BaseModel):
    """Outcome of a phase transition."""

    proposal_id: int
    from_status: ProposalStatus
    to_status: ProposalStatus

"""Vote write services for the consideration and deliberation phases."""

from typing import Any

from app.core.exceptions import ProposalNotFoundError, ValidationError
from app.models.review import Phase
from app.repositories.proposal_repository import ProposalRepository
from app.repositories.vote_repository import ConsiderationVoteRepository, DeliberationVoteRepository
from app.schemas.auth import CallerIdentity
from app.schemas.votes import (
    ConsiderationVoteAck,
    ConsiderationVoteRequest,
    DeliberationVoteAck,
    DeliberationVoteRequest,
)
from app.services.base_service import BaseService
from app.services.review.eligibility import EligibilityResolver
from app.services.review.phase_machine import PhaseStateMachine
from app.services.review.tally import VoteTallyService, viewer_status


async def load_proposal(proposals: ProposalRepository, proposal_id: int) -> Any:
    proposal = await proposals.get_with_funding_round(proposal_id)
    if proposal is None:
        raise ProposalNotFoundError(f"Proposal {proposal_id} not found")
    return proposal


def validate_proposal_id(proposal_id: int) -> None:
    if proposal_id <= 0:
        raise ValidationError.for_field("proposal_id", "Proposal ID must be a positive integer")


class ConsiderationVoteService(BaseService[ConsiderationVoteRequest, ConsiderationVoteAck]):
    """Records a caller's consideration vote and returns the fresh tally.

    Any authenticated caller may vote in consideration; reviewer
    eligibility is informational here, not a gate.
    """

    def __init__(
        self,
        proposals: ProposalRepository,
        votes: ConsiderationVoteRepository,
        tally: VoteTallyService,
        state_machine: PhaseStateMachine,
    ):
        super().__init__()
        self.proposals = proposals
        self.votes = votes
        self.tally = tally
        self.state_machine = state_machine

    def validate(self, caller: CallerIdentity, proposal_id: int, vote_request: ConsiderationVoteRequest):
        validate_proposal_id(proposal_id)

    async def run(
        self, caller: CallerIdentity, proposal_id: int, vote_request: ConsiderationVoteRequest
    ) -> ConsiderationVoteAck:
        proposal = await load_proposal(self.proposals, proposal_id)
        self.state_machine.ensure_accepts_vote(
            proposal.status, Phase.CONSIDERATION, proposal.funding_round
        )

        vote = await self.votes.upsert(
            proposal_id=proposal_id,
            voter_id=caller.id,
            decision=vote_request.decision.value,
            feedback=vote_request.feedback,
        )
        stats = await self.tally.tally(proposal_id, Phase.CONSIDERATION)

        self.logger.info(
            "Consideration vote cast",
            extra={
                "proposal_id": proposal_id,
                "user_id": str(caller.id),
                "decision": vote.decision,
                "total": stats.total,
            },
        )
        return ConsiderationVoteAck(
            proposal_id=proposal_id,
            decision=vote.decision,
            feedback=vote.feedback or "",
            status=viewer_status(vote),
            vote_stats=stats,
        )


class DeliberationVoteService(BaseService[DeliberationVoteRequest, DeliberationVoteAck]):
    """Records a caller's deliberation vote.

    Reviewers take a position and their vote doubles as their public
    reviewer comment. Everyone else leaves a community comment.
    """

    def __init__(
        self,
        proposals: ProposalRepository,
        votes: DeliberationVoteRepository,
        eligibility: EligibilityResolver,
        state_machine: PhaseStateMachine,
    ):
        super().__init__()
        self.proposals = proposals
        self.votes = votes
        self.eligibility = eligibility
        self.state_machine = state_machine

    def validate(self, caller: CallerIdentity, proposal_id: int, vote_request: DeliberationVoteRequest):
        validate_proposal_id(proposal_id)
        if not vote_request.feedback.strip():
            raise ValidationError.for_field("feedback", "Feedback must not be blank")

    async def run(
        self, caller: CallerIdentity, proposal_id: int, vote_request: DeliberationVoteRequest
    ) -> DeliberationVoteAck:
        proposal = await load_proposal(self.proposals, proposal_id)
        self.state_machine.ensure_accepts_vote(
            proposal.status, Phase.DELIBERATION, proposal.funding_round
        )

        is_reviewer = await self.eligibility.is_reviewer_for_round(
            caller.id, caller.link_id, proposal.funding_round
        )
        mode = self.state_machine.deliberation_mode(is_reviewer, vote_request.recommendation)

        vote = await self.votes.upsert(
            proposal_id=proposal_id,
            voter_id=caller.id,
            feedback=vote_request.feedback,
            recommendation=vote_request.recommendation if is_reviewer else None,
            is_reviewer_vote=is_reviewer,
        )

        self.logger.info(
            "Deliberation vote cast",
            extra={
                "proposal_id": proposal_id,
                "user_id": str(caller.id),
                "mode": mode.value,
                "vote_id": vote.id,
            },
        )
        return DeliberationVoteAck(
            id=vote.id,
            proposal_id=proposal_id,
            feedback=vote.feedback,
            recommendation=vote.recommendation,
            is_reviewer_vote=vote.is_reviewer_vote,
            mode=mode,
            created_at=vote.updated_at or vote.created_at,
        )

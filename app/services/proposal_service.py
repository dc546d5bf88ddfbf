"""Proposal reads and round-lifecycle transitions."""

from typing import Any, Optional

from app.core.exceptions import ForbiddenError, InvalidTransitionError, ValidationError
from app.models.review import Phase, ProposalStatus
from app.repositories.proposal_repository import ProposalRepository
from app.schemas.auth import CallerIdentity
from app.schemas.proposals import FundingRoundSummary, PhaseWindow, ProposalDetail, VoteStats
from app.schemas.votes import PhaseTransitionRequest, PhaseTransitionResult
from app.services.base_service import BaseService
from app.services.review.phase_machine import PhaseStateMachine
from app.services.review.tally import VoteTallyService
from app.services.review.view_assembler import submitter_name
from app.services.vote_service import load_proposal, validate_proposal_id


def phase_window(record: Any) -> Optional[PhaseWindow]:
    if record is None:
        return None
    return PhaseWindow(start_date=record.start_date, end_date=record.end_date)


def summarize_round(funding_round: Any) -> Optional[FundingRoundSummary]:
    if funding_round is None:
        return None
    return FundingRoundSummary(
        id=funding_round.id,
        name=funding_round.name,
        status=funding_round.status,
        consideration_phase=phase_window(funding_round.consideration_phase),
        deliberation_phase=phase_window(funding_round.deliberation_phase),
        voting_phase=phase_window(funding_round.voting_phase),
    )


class ProposalService:
    """Read operations on single proposals."""

    def __init__(self, proposals: ProposalRepository, tally: VoteTallyService):
        self.proposals = proposals
        self.tally = tally

    async def get_detail(self, caller: CallerIdentity, proposal_id: int) -> ProposalDetail:
        """Proposal with its round's phases and the caller's edit rights.

        Only the owner may edit or delete, and only while the proposal is a draft.

        Raises:
            ProposalNotFoundError: If the proposal does not exist
        """
        proposal = await load_proposal(self.proposals, proposal_id)
        editable = proposal.user_id == caller.id and proposal.status == ProposalStatus.DRAFT.value

        return ProposalDetail(
            id=proposal.id,
            proposal_name=proposal.proposal_name,
            abstract=proposal.abstract,
            status=ProposalStatus(proposal.status),
            submitter=submitter_name(proposal),
            funding_round=summarize_round(proposal.funding_round),
            can_edit=editable,
            can_delete=editable,
            created_at=proposal.created_at,
            updated_at=proposal.updated_at,
        )

    async def get_vote_stats(self, proposal_id: int, phase: Phase) -> VoteStats:
        """Current tally of one proposal in a phase.

        Raises:
            ProposalNotFoundError: If the proposal does not exist
            UnsupportedPhaseError: For the voting phase
        """
        await load_proposal(self.proposals, proposal_id)
        return await self.tally.tally(proposal_id, phase)


class PhaseTransitionService(BaseService[PhaseTransitionRequest, PhaseTransitionResult]):
    """Moves a proposal to another status on a round-lifecycle decision."""

    def __init__(self, proposals: ProposalRepository, state_machine: PhaseStateMachine):
        super().__init__()
        self.proposals = proposals
        self.state_machine = state_machine

    def validate(self, caller: CallerIdentity, proposal_id: int, transition: PhaseTransitionRequest):
        validate_proposal_id(proposal_id)
        if not caller.is_admin:
            raise ForbiddenError("Only administrators can move proposals between phases")
        if transition.target_status == ProposalStatus.DRAFT:
            raise ValidationError.for_field("target_status", "Proposals cannot be moved back to DRAFT")

    async def run(
        self, caller: CallerIdentity, proposal_id: int, transition: PhaseTransitionRequest
    ) -> PhaseTransitionResult:
        proposal = await load_proposal(self.proposals, proposal_id)
        current = ProposalStatus(proposal.status)
        target = transition.target_status

        self.state_machine.validate_transition(current, target, proposal.funding_round)

        moved = await self.proposals.transition_status(proposal_id, current.value, target.value)
        if not moved:
            raise InvalidTransitionError(
                f"Proposal {proposal_id} changed status concurrently; expected {current.value}"
            )

        self.logger.info(
            "Proposal moved",
            extra={
                "proposal_id": proposal_id,
                "from_status": current.value,
                "to_status": target.value,
                "user_id": str(caller.id),
            },
        )
        return PhaseTransitionResult(proposal_id=proposal_id, from_status=current, to_status=target)

"""Centralized dependency injection for FastAPI application.

Factory functions for repositories and services, so endpoints and
tests share one wiring (tests swap pieces through ``dependency_overrides``).
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.auth import get_current_user
from app.core.config import settings
from app.core.database import get_async_session
from app.repositories.funding_round_repository import FundingRoundRepository, ReviewerGroupRepository
from app.repositories.proposal_repository import ProposalRepository
from app.repositories.vote_repository import ConsiderationVoteRepository, DeliberationVoteRepository
from app.schemas.auth import CallerIdentity, CurrentUser
from app.services.proposal_service import PhaseTransitionService, ProposalService
from app.services.review import (
    EligibilityResolver,
    PhaseStateMachine,
    ProposalViewAssembler,
    VoteTallyService,
)
from app.services.user_service import UserService
from app.services.vote_service import ConsiderationVoteService, DeliberationVoteService

SessionDep = Annotated[AsyncSession, Depends(get_async_session)]


async def get_user_service(db_session: SessionDep) -> UserService:
    return UserService(db_session)


async def get_caller(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    user_service: Annotated[UserService, Depends(get_user_service)],
) -> CallerIdentity:
    """Resolve the authenticated caller to their stored and linked identities."""
    return await user_service.resolve_caller(current_user)


def get_phase_state_machine() -> PhaseStateMachine:
    return PhaseStateMachine(enforce_phase_windows=settings.review.enforce_phase_windows)


async def get_eligibility_resolver(db_session: SessionDep) -> EligibilityResolver:
    return EligibilityResolver(
        FundingRoundRepository(db_session),
        ReviewerGroupRepository(db_session),
    )


async def get_vote_tally_service(db_session: SessionDep) -> VoteTallyService:
    return VoteTallyService(
        ConsiderationVoteRepository(db_session),
        DeliberationVoteRepository(db_session),
    )


async def get_proposal_view_assembler(
    db_session: SessionDep,
    eligibility: Annotated[EligibilityResolver, Depends(get_eligibility_resolver)],
    tally: Annotated[VoteTallyService, Depends(get_vote_tally_service)],
    state_machine: Annotated[PhaseStateMachine, Depends(get_phase_state_machine)],
) -> ProposalViewAssembler:
    return ProposalViewAssembler(
        ProposalRepository(db_session),
        DeliberationVoteRepository(db_session),
        eligibility,
        tally,
        state_machine,
    )


async def get_consideration_vote_service(
    db_session: SessionDep,
    tally: Annotated[VoteTallyService, Depends(get_vote_tally_service)],
    state_machine: Annotated[PhaseStateMachine, Depends(get_phase_state_machine)],
) -> ConsiderationVoteService:
    return ConsiderationVoteService(
        ProposalRepository(db_session),
        ConsiderationVoteRepository(db_session),
        tally,
        state_machine,
    )


async def get_deliberation_vote_service(
    db_session: SessionDep,
    eligibility: Annotated[EligibilityResolver, Depends(get_eligibility_resolver)],
    state_machine: Annotated[PhaseStateMachine, Depends(get_phase_state_machine)],
) -> DeliberationVoteService:
    return DeliberationVoteService(
        ProposalRepository(db_session),
        DeliberationVoteRepository(db_session),
        eligibility,
        state_machine,
    )


async def get_proposal_service(
    db_session: SessionDep,
    tally: Annotated[VoteTallyService, Depends(get_vote_tally_service)],
) -> ProposalService:
    return ProposalService(ProposalRepository(db_session), tally)


async def get_phase_transition_service(
    db_session: SessionDep,
    state_machine: Annotated[PhaseStateMachine, Depends(get_phase_state_machine)],
) -> PhaseTransitionService:
    return PhaseTransitionService(ProposalRepository(db_session), state_machine)

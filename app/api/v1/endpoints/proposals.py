"""Proposal endpoints: detail, tallies, votes and phase transitions."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status

from app.core.auth import require_admin
from app.core.dependencies import (
    get_caller,
    get_consideration_vote_service,
    get_deliberation_vote_service,
    get_phase_transition_service,
    get_proposal_service,
)
from app.core.exceptions import AppError
from app.models.review import Phase
from app.schemas.auth import CallerIdentity, CurrentUser
from app.schemas.common import ApiResponse
from app.schemas.votes import ConsiderationVoteRequest, DeliberationVoteRequest, PhaseTransitionRequest
from app.services.proposal_service import PhaseTransitionService, ProposalService
from app.services.vote_service import ConsiderationVoteService, DeliberationVoteService
from app.utils.logging import get_logger
from app.utils.responses import create_api_response, http_error_from

LOGGER = get_logger(__name__)

router = APIRouter()


@router.get(
    "/{proposal_id}",
    response_model=ApiResponse,
    summary="Get proposal details",
    description="Proposal with its funding round phases and the caller's edit and delete rights.",
    operation_id="get_proposal",
)
async def get_proposal(
    request: Request,
    proposal_id: int,
    caller: Annotated[CallerIdentity, Depends(get_caller)],
    proposal_service: Annotated[ProposalService, Depends(get_proposal_service)],
) -> ApiResponse:
    try:
        detail = await proposal_service.get_detail(caller, proposal_id)
    except AppError as e:
        raise http_error_from(e, request) from e

    return create_api_response(
        data=detail,
        message="Proposal retrieved successfully",
        request=request,
    )


@router.get(
    "/{proposal_id}/vote-stats",
    response_model=ApiResponse,
    summary="Get proposal vote statistics",
    operation_id="get_proposal_vote_stats",
)
async def get_vote_stats(
    request: Request,
    proposal_id: int,
    caller: Annotated[CallerIdentity, Depends(get_caller)],
    proposal_service: Annotated[ProposalService, Depends(get_proposal_service)],
    phase: Phase = Query(Phase.CONSIDERATION, description="Phase to tally"),
) -> ApiResponse:
    try:
        stats = await proposal_service.get_vote_stats(proposal_id, phase)
    except AppError as e:
        raise http_error_from(e, request) from e

    return create_api_response(
        data={"proposal_id": proposal_id, "phase": phase.value, "vote_stats": stats.model_dump()},
        message="Vote statistics retrieved successfully",
        request=request,
    )


@router.post(
    "/{proposal_id}/consideration-vote",
    response_model=ApiResponse,
    status_code=status.HTTP_200_OK,
    summary="Cast a consideration vote",
    description="Creates or replaces the caller's consideration vote; any authenticated user may vote.",
    operation_id="cast_consideration_vote",
)
async def cast_consideration_vote(
    request: Request,
    proposal_id: int,
    vote_request: ConsiderationVoteRequest,
    caller: Annotated[CallerIdentity, Depends(get_caller)],
    vote_service: Annotated[ConsiderationVoteService, Depends(get_consideration_vote_service)],
) -> ApiResponse:
    try:
        ack = await vote_service.execute(caller, proposal_id, vote_request)
    except AppError as e:
        raise http_error_from(e, request) from e

    return create_api_response(
        data=ack,
        message="Vote recorded successfully",
        request=request,
    )


@router.post(
    "/{proposal_id}/deliberation-vote",
    response_model=ApiResponse,
    status_code=status.HTTP_200_OK,
    summary="Cast a deliberation vote",
    description=(
        "Creates or replaces the caller's deliberation. Reviewers must send a "
        "recommendation, which also becomes their public reviewer comment; other "
        "users leave a community comment without one."
    ),
    operation_id="cast_deliberation_vote",
)
async def cast_deliberation_vote(
    request: Request,
    proposal_id: int,
    vote_request: DeliberationVoteRequest,
    caller: Annotated[CallerIdentity, Depends(get_caller)],
    vote_service: Annotated[DeliberationVoteService, Depends(get_deliberation_vote_service)],
) -> ApiResponse:
    try:
        ack = await vote_service.execute(caller, proposal_id, vote_request)
    except AppError as e:
        raise http_error_from(e, request) from e

    return create_api_response(
        data=ack,
        message="Deliberation recorded successfully",
        request=request,
    )


@router.post(
    "/{proposal_id}/transition",
    response_model=ApiResponse,
    summary="Move a proposal to another phase",
    description="Round-lifecycle transition; administrators only.",
    operation_id="transition_proposal",
)
async def transition_proposal(
    request: Request,
    proposal_id: int,
    transition: PhaseTransitionRequest,
    admin: Annotated[CurrentUser, Depends(require_admin)],
    caller: Annotated[CallerIdentity, Depends(get_caller)],
    transition_service: Annotated[PhaseTransitionService, Depends(get_phase_transition_service)],
) -> ApiResponse:
    try:
        result = await transition_service.execute(caller, proposal_id, transition)
    except AppError as e:
        raise http_error_from(e, request) from e

    return create_api_response(
        data=result,
        message=f"Proposal moved to {result.to_status.value}",
        request=request,
    )

"""Funding round review endpoints: proposal listings and reviewer eligibility."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request

from app.core.dependencies import get_caller, get_eligibility_resolver, get_proposal_view_assembler
from app.core.exceptions import AppError
from app.schemas.auth import CallerIdentity
from app.schemas.common import ApiResponse
from app.schemas.proposals import ReviewerEligibility
from app.services.review import EligibilityResolver, ProposalViewAssembler
from app.utils.logging import get_logger
from app.utils.responses import create_api_response, http_error_from

LOGGER = get_logger(__name__)

router = APIRouter()


@router.get(
    "/{funding_round_id}/consideration-proposals",
    response_model=ApiResponse,
    summary="List consideration proposals",
    description=(
        "Proposals of the round in CONSIDERATION or DELIBERATION, with the caller's own "
        "vote, reviewer eligibility and consideration tallies. Consideration proposals "
        "come first, and within a phase the caller's pending proposals come first."
    ),
    operation_id="list_consideration_proposals",
)
async def list_consideration_proposals(
    request: Request,
    funding_round_id: UUID,
    caller: Annotated[CallerIdentity, Depends(get_caller)],
    assembler: Annotated[ProposalViewAssembler, Depends(get_proposal_view_assembler)],
) -> ApiResponse:
    try:
        result = await assembler.assemble_consideration_list(caller, funding_round_id)
    except AppError as e:
        raise http_error_from(e, request) from e

    return create_api_response(
        data=result,
        message=f"Retrieved {result.total_count} proposals",
        request=request,
    )


@router.get(
    "/{funding_round_id}/deliberation-proposals",
    response_model=ApiResponse,
    summary="List deliberation proposals",
    description=(
        "Proposals of the round in DELIBERATION, with the caller's own deliberation, "
        "reviewer comments and recommendation tallies. Proposals the caller has not "
        "deliberated on come first."
    ),
    operation_id="list_deliberation_proposals",
)
async def list_deliberation_proposals(
    request: Request,
    funding_round_id: UUID,
    caller: Annotated[CallerIdentity, Depends(get_caller)],
    assembler: Annotated[ProposalViewAssembler, Depends(get_proposal_view_assembler)],
) -> ApiResponse:
    try:
        result = await assembler.assemble_deliberation_list(caller, funding_round_id)
    except AppError as e:
        raise http_error_from(e, request) from e

    return create_api_response(
        data=result,
        message=f"Retrieved {result.total_count} proposals",
        request=request,
    )


@router.get(
    "/{funding_round_id}/reviewer-eligibility",
    response_model=ApiResponse,
    summary="Check reviewer eligibility",
    operation_id="get_reviewer_eligibility",
)
async def get_reviewer_eligibility(
    request: Request,
    funding_round_id: UUID,
    caller: Annotated[CallerIdentity, Depends(get_caller)],
    eligibility: Annotated[EligibilityResolver, Depends(get_eligibility_resolver)],
) -> ApiResponse:
    """Whether the caller, by primary or linked identity, reviews this round."""
    try:
        is_reviewer = await eligibility.is_reviewer(caller.id, caller.link_id, funding_round_id)
    except AppError as e:
        raise http_error_from(e, request) from e

    return create_api_response(
        data=ReviewerEligibility(funding_round_id=funding_round_id, is_reviewer=is_reviewer),
        message="Reviewer eligibility resolved",
        request=request,
    )

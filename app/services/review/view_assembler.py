"""Proposal view assembly for the consideration and deliberation pages.

Combines proposals, the caller's eligibility, the caller's own vote and
phase-wide tallies into ordered, client-ready views.
"""

from collections import defaultdict
from typing import Any, Dict, List, Optional
from uuid import UUID

from app.models.review import Phase, ProposalStatus, ViewerStatus
from app.repositories.proposal_repository import ProposalRepository
from app.repositories.vote_repository import DeliberationVoteRepository
from app.schemas.auth import CallerIdentity
from app.schemas.proposals import (
    ConsiderationProposalList,
    ConsiderationProposalView,
    DeliberationProposalList,
    DeliberationProposalView,
    ReviewerComment,
    ReviewerInfo,
    UserDeliberation,
    UserVote,
    VoteStats,
)
from app.services.review.eligibility import EligibilityResolver
from app.services.review.phase_machine import PhaseStateMachine
from app.services.review.tally import VoteTallyService, viewer_status
from app.utils.logging import get_logger

LOGGER = get_logger(__name__)

CONSIDERATION_PAGE_STATUSES = [ProposalStatus.CONSIDERATION.value, ProposalStatus.DELIBERATION.value]
DELIBERATION_PAGE_STATUSES = [ProposalStatus.DELIBERATION.value]

PHASE_ORDER = {
    ProposalStatus.CONSIDERATION: 0,
    ProposalStatus.DELIBERATION: 1,
}


def submitter_name(proposal: Any) -> Optional[str]:
    """Username from the owner's profile metadata, as stored."""
    owner = getattr(proposal, "user", None)
    if owner is None:
        return None
    return (owner.user_metadata or {}).get("username")


def order_consideration_views(views: List[ConsiderationProposalView]) -> List[ConsiderationProposalView]:
    """Consideration before deliberation, then the caller's pending before voted.

    ``sorted`` is stable, so remaining ties keep arrival order.
    """
    return sorted(
        views,
        key=lambda view: (
            PHASE_ORDER.get(view.current_phase, len(PHASE_ORDER)),
            view.status != ViewerStatus.PENDING,
        ),
    )


def order_deliberation_views(views: List[DeliberationProposalView]) -> List[DeliberationProposalView]:
    """Proposals the caller has not deliberated on first, otherwise arrival order."""
    return sorted(views, key=lambda view: view.has_voted)


def build_consideration_view(
    proposal: Any,
    own_vote: Optional[Any],
    is_reviewer: bool,
    stats: VoteStats,
) -> ConsiderationProposalView:
    return ConsiderationProposalView(
        id=proposal.id,
        proposal_name=proposal.proposal_name,
        submitter=submitter_name(proposal),
        abstract=proposal.abstract,
        status=viewer_status(own_vote),
        user_vote=UserVote(decision=own_vote.decision, feedback=own_vote.feedback or "") if own_vote else None,
        is_reviewer_eligible=is_reviewer,
        vote_stats=stats,
        current_phase=ProposalStatus(proposal.status),
        created_at=proposal.created_at,
    )


def build_reviewer_comment(comment: Dict[str, Any]) -> ReviewerComment:
    return ReviewerComment(
        id=comment["id"],
        feedback=comment["feedback"],
        recommendation=comment["recommendation"],
        created_at=comment["created_at"],
        reviewer=ReviewerInfo(username=comment["username"]),
    )


class ProposalViewAssembler:
    """Builds the ordered proposal listings for one caller."""

    def __init__(
        self,
        proposals: ProposalRepository,
        deliberation_votes: DeliberationVoteRepository,
        eligibility: EligibilityResolver,
        tally: VoteTallyService,
        state_machine: PhaseStateMachine,
    ):
        self.proposals = proposals
        self.deliberation_votes = deliberation_votes
        self.eligibility = eligibility
        self.tally = tally
        self.state_machine = state_machine

    async def assemble_consideration_list(
        self, caller: CallerIdentity, funding_round_id: UUID
    ) -> ConsiderationProposalList:
        """Consideration and deliberation proposals of a round, as seen by the caller.

        Raises:
            FundingRoundNotFoundError: If the round does not exist
            PhaseNotConfiguredError: If the round has no consideration phase
        """
        funding_round, is_reviewer = await self.eligibility.resolve(
            caller.id, caller.link_id, funding_round_id
        )
        self.state_machine.ensure_accessible(funding_round)

        rows = await self.proposals.find_with_consideration_vote(
            funding_round_id, CONSIDERATION_PAGE_STATUSES, caller.id
        )
        stats = await self.tally.tally_many([proposal.id for proposal, _ in rows], Phase.CONSIDERATION)

        views = order_consideration_views(
            [
                build_consideration_view(proposal, own_vote, is_reviewer, stats[proposal.id])
                for proposal, own_vote in rows
            ]
        )
        pending_count = sum(
            1
            for view in views
            if view.current_phase == ProposalStatus.CONSIDERATION and view.status == ViewerStatus.PENDING
        )

        LOGGER.info(
            "Assembled consideration proposals",
            extra={
                "funding_round_id": str(funding_round_id),
                "user_id": str(caller.id),
                "count": len(views),
                "pending": pending_count,
            },
        )
        return ConsiderationProposalList(
            proposals=views, pending_count=pending_count, total_count=len(views)
        )

    async def assemble_deliberation_list(
        self, caller: CallerIdentity, funding_round_id: UUID
    ) -> DeliberationProposalList:
        """Deliberation proposals of a round, as seen by the caller.

        Raises:
            FundingRoundNotFoundError: If the round does not exist
            PhaseNotConfiguredError: If the round has no consideration phase
        """
        funding_round, is_reviewer = await self.eligibility.resolve(
            caller.id, caller.link_id, funding_round_id
        )
        self.state_machine.ensure_accessible(funding_round)

        rows = await self.proposals.find_with_deliberation_vote(
            funding_round_id, DELIBERATION_PAGE_STATUSES, caller.id
        )
        proposal_ids = [proposal.id for proposal, _ in rows]
        stats = await self.tally.tally_many(proposal_ids, Phase.DELIBERATION)

        comments_by_proposal: Dict[int, List[ReviewerComment]] = defaultdict(list)
        for comment in await self.deliberation_votes.list_reviewer_comments(proposal_ids):
            comments_by_proposal[comment["proposal_id"]].append(build_reviewer_comment(comment))

        views = []
        for proposal, own_vote in rows:
            user_deliberation = None
            if own_vote is not None:
                user_deliberation = UserDeliberation(
                    feedback=own_vote.feedback,
                    recommendation=own_vote.recommendation,
                    created_at=own_vote.updated_at or own_vote.created_at,
                    is_reviewer_vote=own_vote.is_reviewer_vote,
                )
            views.append(
                DeliberationProposalView(
                    id=proposal.id,
                    proposal_name=proposal.proposal_name,
                    submitter=submitter_name(proposal),
                    abstract=proposal.abstract,
                    is_reviewer_eligible=is_reviewer,
                    has_voted=own_vote is not None,
                    user_deliberation=user_deliberation,
                    vote_mode=self.state_machine.existing_vote_mode(is_reviewer, own_vote),
                    reviewer_comments=comments_by_proposal.get(proposal.id, []),
                    vote_stats=stats[proposal.id],
                    current_phase=ProposalStatus(proposal.status),
                    created_at=proposal.created_at,
                )
            )

        views = order_deliberation_views(views)
        pending_count = sum(1 for view in views if not view.has_voted)

        LOGGER.info(
            "Assembled deliberation proposals",
            extra={
                "funding_round_id": str(funding_round_id),
                "user_id": str(caller.id),
                "count": len(views),
                "pending": pending_count,
            },
        )
        return DeliberationProposalList(
            proposals=views, pending_count=pending_count, total_count=len(views)
        )

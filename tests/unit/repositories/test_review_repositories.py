"""Repository and engine tests against a real async SQLAlchemy session.

Runs on in-memory SQLite; JSONB columns are created as JSON there.
"""

from types import SimpleNamespace
from uuid import uuid4

import pytest
import pytest_asyncio
from sqlalchemy import inspect
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.ext.compiler import compiles

from app.core.database import Base
from app.database.models import (
    ConsiderationPhase,
    DeliberationPhase,
    FundingRound,
    Proposal,
    ReviewerGroup,
    ReviewerGroupMember,
    Topic,
    TopicReviewerGroup,
    User,
)
from app.models.review import DeliberationMode, ViewerStatus
from app.repositories.funding_round_repository import FundingRoundRepository, ReviewerGroupRepository
from app.repositories.proposal_repository import ProposalRepository
from app.repositories.user_repository import UserRepository
from app.repositories.vote_repository import ConsiderationVoteRepository, DeliberationVoteRepository
from app.schemas.auth import CallerIdentity
from app.schemas.proposals import VoteStats
from app.schemas.votes import DeliberationVoteRequest
from app.services.review import (
    EligibilityResolver,
    PhaseStateMachine,
    ProposalViewAssembler,
    VoteTallyService,
)
from app.services.vote_service import DeliberationVoteService


@compiles(JSONB, "sqlite")
def compile_jsonb_for_sqlite(type_, compiler, **kw):
    return "JSON"


@pytest_asyncio.fixture
async def session() -> AsyncSession:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def review_round(session: AsyncSession) -> SimpleNamespace:
    """A round in consideration and deliberation with one reviewer group."""
    owner = User(id=uuid4(), auth_user_id="owner", user_metadata={"username": "owner"})
    reviewer = User(id=uuid4(), auth_user_id="reviewer", user_metadata={"username": "rev"})
    member = User(id=uuid4(), auth_user_id="member", user_metadata={"username": "member"})
    topic = Topic(id=uuid4(), name="Developer tooling")
    group = ReviewerGroup(id=uuid4(), name="Tooling reviewers")
    funding_round = FundingRound(id=uuid4(), name="Spring Round", topic_id=topic.id, status="ACTIVE")
    session.add_all(
        [
            owner,
            reviewer,
            member,
            topic,
            group,
            funding_round,
            TopicReviewerGroup(id=uuid4(), topic_id=topic.id, reviewer_group_id=group.id),
            ReviewerGroupMember(id=uuid4(), reviewer_group_id=group.id, user_id=reviewer.id),
            ConsiderationPhase(id=uuid4(), funding_round_id=funding_round.id),
            DeliberationPhase(id=uuid4(), funding_round_id=funding_round.id),
        ]
    )
    await session.flush()

    proposals = {}
    for name, status in (
        ("considered", "CONSIDERATION"),
        ("pending", "CONSIDERATION"),
        ("deliberated", "DELIBERATION"),
        ("draft", "DRAFT"),
    ):
        proposal = Proposal(
            proposal_name=name,
            abstract="An abstract",
            user_id=owner.id,
            funding_round_id=funding_round.id,
            status=status,
        )
        session.add(proposal)
        await session.flush()
        proposals[name] = proposal
    await session.commit()

    return SimpleNamespace(
        owner=owner,
        reviewer=reviewer,
        member=member,
        topic=topic,
        funding_round=funding_round,
        proposals=proposals,
    )


def caller_for(user: User) -> CallerIdentity:
    return CallerIdentity(id=user.id, username=user.user_metadata.get("username"))


def eligibility_for(session: AsyncSession) -> EligibilityResolver:
    return EligibilityResolver(FundingRoundRepository(session), ReviewerGroupRepository(session))


def tally_for(session: AsyncSession) -> VoteTallyService:
    return VoteTallyService(ConsiderationVoteRepository(session), DeliberationVoteRepository(session))


def deliberation_service_for(session: AsyncSession) -> DeliberationVoteService:
    return DeliberationVoteService(
        ProposalRepository(session),
        DeliberationVoteRepository(session),
        eligibility_for(session),
        PhaseStateMachine(),
    )


class TestProposalRepository:
    """Tests for ProposalRepository."""

    @pytest.mark.asyncio
    async def test_get_with_funding_round_loads_reviewer_groups(self, session, review_round):
        proposal_id = review_round.proposals["deliberated"].id
        session.expunge_all()

        proposal = await ProposalRepository(session).get_with_funding_round(proposal_id)

        funding_round = proposal.funding_round
        assert "topic" not in inspect(funding_round).unloaded
        assert "reviewer_groups" not in inspect(funding_round.topic).unloaded
        assert len(funding_round.topic.reviewer_groups) == 1
        assert funding_round.deliberation_phase is not None
        assert proposal.user.user_metadata["username"] == "owner"

    @pytest.mark.asyncio
    async def test_find_keeps_unvoted_proposals_with_callers_vote(self, session, review_round):
        votes = ConsiderationVoteRepository(session)
        considered = review_round.proposals["considered"]
        pending = review_round.proposals["pending"]
        await votes.upsert(considered.id, review_round.member.id, "APPROVED", "useful")
        await votes.upsert(pending.id, review_round.reviewer.id, "REJECTED", "someone else")

        rows = await ProposalRepository(session).find_with_consideration_vote(
            review_round.funding_round.id,
            ["CONSIDERATION", "DELIBERATION"],
            review_round.member.id,
        )

        assert [proposal.proposal_name for proposal, _ in rows] == ["considered", "pending", "deliberated"]
        assert rows[0][1].voter_id == review_round.member.id
        assert rows[0][1].decision == "APPROVED"
        assert rows[1][1] is None
        assert rows[2][1] is None

    @pytest.mark.asyncio
    async def test_transition_status_is_conditional(self, session, review_round):
        proposals = ProposalRepository(session)
        proposal_id = review_round.proposals["pending"].id

        assert await proposals.transition_status(proposal_id, "CONSIDERATION", "DELIBERATION") is True
        assert await proposals.transition_status(proposal_id, "CONSIDERATION", "REJECTED") is False

        session.expunge_all()
        proposal = await proposals.get_with_funding_round(proposal_id)
        assert proposal.status == "DELIBERATION"


class TestFundingRoundRepository:
    """Tests for FundingRoundRepository and ReviewerGroupRepository."""

    @pytest.mark.asyncio
    async def test_round_with_topic_groups_and_members(self, session, review_round):
        session.expunge_all()

        funding_round = await FundingRoundRepository(session).get_with_topic_and_reviewer_groups(
            review_round.funding_round.id
        )
        group_ids = [link.reviewer_group_id for link in funding_round.topic.reviewer_groups]
        members = await ReviewerGroupRepository(session).get_members(group_ids)

        assert [member.user_id for member in members] == [review_round.reviewer.id]

    @pytest.mark.asyncio
    async def test_unknown_round(self, session):
        assert await FundingRoundRepository(session).get_with_topic_and_reviewer_groups(uuid4()) is None


class TestVoteRepositories:
    """Tests for the keyed vote upserts and aggregates."""

    @pytest.mark.asyncio
    async def test_consideration_upsert_replaces_voters_row(self, session, review_round):
        votes = ConsiderationVoteRepository(session)
        proposal_id = review_round.proposals["considered"].id

        first = await votes.upsert(proposal_id, review_round.member.id, "REJECTED", "unclear budget")
        second = await votes.upsert(proposal_id, review_round.member.id, "REJECTED", "unclear budget")
        third = await votes.upsert(proposal_id, review_round.member.id, "APPROVED", "budget fixed")

        assert first.id == second.id == third.id
        assert third.decision == "APPROVED"
        assert third.feedback == "budget fixed"
        assert await votes.count_by_decision(proposal_id) == {"APPROVED": 1}

    @pytest.mark.asyncio
    async def test_counts_grouped_per_proposal(self, session, review_round):
        votes = ConsiderationVoteRepository(session)
        considered = review_round.proposals["considered"].id
        pending = review_round.proposals["pending"].id
        await votes.upsert(considered, review_round.member.id, "APPROVED", "")
        await votes.upsert(considered, review_round.reviewer.id, "REJECTED", "")
        await votes.upsert(pending, review_round.member.id, "APPROVED", "")

        counts = await votes.count_by_decision_for_proposals([considered, pending, 9999])

        assert counts == {
            considered: {"APPROVED": 1, "REJECTED": 1},
            pending: {"APPROVED": 1},
        }

    @pytest.mark.asyncio
    async def test_reviewer_comments_exclude_community_comments(self, session, review_round):
        votes = DeliberationVoteRepository(session)
        proposal_id = review_round.proposals["deliberated"].id
        await votes.upsert(proposal_id, review_round.reviewer.id, "solid plan", True, True)
        await votes.upsert(proposal_id, review_round.member.id, "interesting", None, False)

        comments = await votes.list_reviewer_comments([proposal_id])

        assert [(comment["username"], comment["recommendation"]) for comment in comments] == [("rev", True)]
        assert await votes.count_by_recommendation(proposal_id) == {True: 1}


class TestDeliberationThroughSession:
    """Deliberation writes from the service down to storage."""

    @pytest.mark.asyncio
    async def test_reviewer_comment_replaced_in_place(self, session, review_round):
        proposal_id = review_round.proposals["deliberated"].id
        caller = caller_for(review_round.reviewer)
        service = deliberation_service_for(session)
        session.expunge_all()

        first = await service.execute(
            caller, proposal_id, DeliberationVoteRequest(feedback="needs more detail", recommendation=False)
        )
        second = await service.execute(
            caller, proposal_id, DeliberationVoteRequest(feedback="much better now", recommendation=True)
        )

        assert first.mode == DeliberationMode.REVIEWER_NOT_RECOMMEND
        assert second.mode == DeliberationMode.REVIEWER_RECOMMEND
        assert second.id == first.id
        comments = await DeliberationVoteRepository(session).list_reviewer_comments([proposal_id])
        assert len(comments) == 1
        assert comments[0]["feedback"] == "much better now"
        assert await tally_for(session).tally(proposal_id, "DELIBERATION") == VoteStats(
            approved=1, rejected=0, total=1
        )

    @pytest.mark.asyncio
    async def test_community_comment(self, session, review_round):
        proposal_id = review_round.proposals["deliberated"].id
        session.expunge_all()

        ack = await deliberation_service_for(session).execute(
            caller_for(review_round.member), proposal_id, DeliberationVoteRequest(feedback="needs more detail")
        )

        assert ack.mode == DeliberationMode.COMMUNITY_COMMENT
        assert ack.is_reviewer_vote is False
        assert ack.recommendation is None


class TestViewAssemblyThroughSession:
    """Listings assembled from the real repositories."""

    @pytest.mark.asyncio
    async def test_consideration_list(self, session, review_round):
        await ConsiderationVoteRepository(session).upsert(
            review_round.proposals["considered"].id, review_round.member.id, "APPROVED", "useful"
        )
        session.expunge_all()
        assembler = ProposalViewAssembler(
            ProposalRepository(session),
            DeliberationVoteRepository(session),
            eligibility_for(session),
            tally_for(session),
            PhaseStateMachine(),
        )

        result = await assembler.assemble_consideration_list(
            caller_for(review_round.member), review_round.funding_round.id
        )

        assert [view.proposal_name for view in result.proposals] == ["pending", "considered", "deliberated"]
        assert [view.status for view in result.proposals[:2]] == [ViewerStatus.PENDING, ViewerStatus.APPROVED]
        assert result.proposals[1].vote_stats == VoteStats(approved=1, rejected=0, total=1)
        assert result.proposals[0].submitter == "owner"
        assert result.pending_count == 1


class TestUserRepository:
    """Tests for UserRepository."""

    @pytest.mark.asyncio
    async def test_get_or_create_is_stable(self, session):
        users = UserRepository(session)

        created = await users.get_or_create_from_claims("auth-1", user_metadata={"username": "rev"})
        again = await users.get_or_create_from_claims("auth-1")

        assert again.id == created.id
        assert again.user_metadata == {"username": "rev"}

    @pytest.mark.asyncio
    async def test_concurrent_first_request_reuses_stored_user(self, session):
        users = UserRepository(session)
        stored_id = (await users.get_or_create_from_claims("auth-1")).id
        stored_lookup = users.get_by_auth_user_id
        lookups = []

        async def lookup_missing_once(auth_user_id):
            # The first lookup misses as if the other request had not committed yet
            lookups.append(auth_user_id)
            if len(lookups) == 1:
                return None
            return await stored_lookup(auth_user_id)

        users.get_by_auth_user_id = lookup_missing_once

        user = await users.get_or_create_from_claims("auth-1")

        assert user.id == stored_id
        assert lookups == ["auth-1", "auth-1"]

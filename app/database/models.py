"""SQLAlchemy models for all database tables."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    TIMESTAMP,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from app.core.database import Base


class User(Base):
    """Authenticated account; ``link_id`` is an optional secondary identity."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    auth_user_id: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    link_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True, index=True
    )
    email: Mapped[str | None] = mapped_column(String, nullable=True)
    role: Mapped[str] = mapped_column(String, nullable=False, default="user")
    user_metadata: Mapped[dict] = mapped_column(JSONB, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    proposals: Mapped[list["Proposal"]] = relationship("Proposal", back_populates="user")


class Topic(Base):
    """Subject area of a funding round; carries the reviewer groups."""

    __tablename__ = "topics"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )

    reviewer_groups: Mapped[list["TopicReviewerGroup"]] = relationship(
        "TopicReviewerGroup", back_populates="topic", cascade="all, delete-orphan"
    )
    funding_rounds: Mapped[list["FundingRound"]] = relationship(
        "FundingRound", back_populates="topic"
    )


class ReviewerGroup(Base):
    """Named set of users with reviewer standing."""

    __tablename__ = "reviewer_groups"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )

    members: Mapped[list["ReviewerGroupMember"]] = relationship(
        "ReviewerGroupMember", back_populates="reviewer_group", cascade="all, delete-orphan"
    )
    topics: Mapped[list["TopicReviewerGroup"]] = relationship(
        "TopicReviewerGroup", back_populates="reviewer_group", cascade="all, delete-orphan"
    )


class ReviewerGroupMember(Base):
    """Membership row; ``user_id`` may hold a primary or a linked identity."""

    __tablename__ = "reviewer_group_members"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    reviewer_group_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("reviewer_groups.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )

    reviewer_group: Mapped["ReviewerGroup"] = relationship(
        "ReviewerGroup", back_populates="members"
    )

    __table_args__ = (
        UniqueConstraint("reviewer_group_id", "user_id", name="uq_reviewer_group_member"),
    )


class TopicReviewerGroup(Base):
    """Attachment of a reviewer group to a topic."""

    __tablename__ = "topic_reviewer_groups"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    topic_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("topics.id", ondelete="CASCADE"), nullable=False
    )
    reviewer_group_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("reviewer_groups.id", ondelete="CASCADE"), nullable=False
    )

    topic: Mapped["Topic"] = relationship("Topic", back_populates="reviewer_groups")
    reviewer_group: Mapped["ReviewerGroup"] = relationship(
        "ReviewerGroup", back_populates="topics"
    )

    __table_args__ = (
        UniqueConstraint("topic_id", "reviewer_group_id", name="uq_topic_reviewer_group"),
    )


class FundingRound(Base):
    """Container of proposals reviewed together."""

    __tablename__ = "funding_rounds"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    topic_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("topics.id"), nullable=False
    )
    status: Mapped[str] = mapped_column(
        String, nullable=False, default="DRAFT"
    )  # DRAFT | ACTIVE | COMPLETED
    start_date: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )

    topic: Mapped["Topic"] = relationship("Topic", back_populates="funding_rounds")
    consideration_phase: Mapped["ConsiderationPhase | None"] = relationship(
        "ConsiderationPhase", back_populates="funding_round", uselist=False, cascade="all, delete-orphan"
    )
    deliberation_phase: Mapped["DeliberationPhase | None"] = relationship(
        "DeliberationPhase", back_populates="funding_round", uselist=False, cascade="all, delete-orphan"
    )
    voting_phase: Mapped["VotingPhase | None"] = relationship(
        "VotingPhase", back_populates="funding_round", uselist=False, cascade="all, delete-orphan"
    )
    proposals: Mapped[list["Proposal"]] = relationship("Proposal", back_populates="funding_round")


class ConsiderationPhase(Base):
    """Consideration window and thresholds of a funding round."""

    __tablename__ = "consideration_phases"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    funding_round_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("funding_rounds.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    start_date: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    min_votes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    approval_threshold: Mapped[Decimal | None] = mapped_column(Numeric(5, 4), nullable=True)

    funding_round: Mapped["FundingRound"] = relationship(
        "FundingRound", back_populates="consideration_phase"
    )


class DeliberationPhase(Base):
    """Deliberation window of a funding round."""

    __tablename__ = "deliberation_phases"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    funding_round_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("funding_rounds.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    start_date: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    funding_round: Mapped["FundingRound"] = relationship(
        "FundingRound", back_populates="deliberation_phase"
    )


class VotingPhase(Base):
    """Voting window and thresholds of a funding round."""

    __tablename__ = "voting_phases"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    funding_round_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("funding_rounds.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    start_date: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    min_votes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    approval_threshold: Mapped[Decimal | None] = mapped_column(Numeric(5, 4), nullable=True)

    funding_round: Mapped["FundingRound"] = relationship(
        "FundingRound", back_populates="voting_phase"
    )


class Proposal(Base):
    """Proposal submitted to a funding round."""

    __tablename__ = "proposals"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    proposal_name: Mapped[str] = mapped_column(String, nullable=False)
    abstract: Mapped[str] = mapped_column(Text, nullable=False, default="")
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )
    funding_round_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("funding_rounds.id"), nullable=True, index=True
    )
    status: Mapped[str] = mapped_column(
        String, nullable=False, default="DRAFT", index=True
    )  # DRAFT | CONSIDERATION | DELIBERATION | VOTING | APPROVED | REJECTED
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    user: Mapped["User"] = relationship("User", back_populates="proposals")
    funding_round: Mapped["FundingRound | None"] = relationship(
        "FundingRound", back_populates="proposals"
    )
    consideration_votes: Mapped[list["ConsiderationVote"]] = relationship(
        "ConsiderationVote", back_populates="proposal", cascade="all, delete-orphan"
    )
    deliberation_votes: Mapped[list["DeliberationVote"]] = relationship(
        "DeliberationVote", back_populates="proposal", cascade="all, delete-orphan"
    )


class ConsiderationVote(Base):
    """One voter's consideration decision on a proposal."""

    __tablename__ = "consideration_votes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    proposal_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False
    )
    voter_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )
    decision: Mapped[str] = mapped_column(String, nullable=False)  # APPROVED | REJECTED
    feedback: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    proposal: Mapped["Proposal"] = relationship("Proposal", back_populates="consideration_votes")
    voter: Mapped["User"] = relationship("User")

    __table_args__ = (
        UniqueConstraint("proposal_id", "voter_id", name="uq_consideration_vote_proposal_voter"),
    )


class DeliberationVote(Base):
    """One voter's deliberation comment; reviewer rows carry a recommendation."""

    __tablename__ = "deliberation_votes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    proposal_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("proposals.id", ondelete="CASCADE"), nullable=False
    )
    voter_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id"), nullable=False
    )
    feedback: Mapped[str] = mapped_column(Text, nullable=False)
    recommendation: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    is_reviewer_vote: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    proposal: Mapped["Proposal"] = relationship("Proposal", back_populates="deliberation_votes")
    voter: Mapped["User"] = relationship("User")

    __table_args__ = (
        UniqueConstraint("proposal_id", "voter_id", name="uq_deliberation_vote_proposal_voter"),
    )

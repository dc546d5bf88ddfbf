"""create review tables

Revision ID: 5c1e8a0f3b27
Revises:
Create Date: 2026-10-18 09:12:41.204118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '5c1e8a0f3b27'
down_revision: Union[str, Sequence[str], None] = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table('users',
    sa.Column('id', sa.UUID(), nullable=False),
    sa.Column('auth_user_id', sa.String(), nullable=False),
    sa.Column('link_id', sa.UUID(), nullable=True),
    sa.Column('email', sa.String(), nullable=True),
    sa.Column('role', sa.String(), nullable=False),
    sa.Column('user_metadata', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('auth_user_id')
    )
    op.create_index(op.f('ix_users_link_id'), 'users', ['link_id'], unique=False)

    op.create_table('topics',
    sa.Column('id', sa.UUID(), nullable=False),
    sa.Column('name', sa.String(), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('name')
    )
    op.create_table('reviewer_groups',
    sa.Column('id', sa.UUID(), nullable=False),
    sa.Column('name', sa.String(), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('name')
    )
    op.create_table('reviewer_group_members',
    sa.Column('id', sa.UUID(), nullable=False),
    sa.Column('reviewer_group_id', sa.UUID(), nullable=False),
    sa.Column('user_id', sa.UUID(), nullable=False, comment='Primary or linked identity'),
    sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.ForeignKeyConstraint(['reviewer_group_id'], ['reviewer_groups.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('reviewer_group_id', 'user_id', name='uq_reviewer_group_member')
    )
    op.create_index(op.f('ix_reviewer_group_members_user_id'), 'reviewer_group_members', ['user_id'], unique=False)

    op.create_table('topic_reviewer_groups',
    sa.Column('id', sa.UUID(), nullable=False),
    sa.Column('topic_id', sa.UUID(), nullable=False),
    sa.Column('reviewer_group_id', sa.UUID(), nullable=False),
    sa.ForeignKeyConstraint(['reviewer_group_id'], ['reviewer_groups.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['topic_id'], ['topics.id'], ondelete='CASCADE'),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('topic_id', 'reviewer_group_id', name='uq_topic_reviewer_group')
    )
    op.create_table('funding_rounds',
    sa.Column('id', sa.UUID(), nullable=False),
    sa.Column('name', sa.String(), nullable=False),
    sa.Column('description', sa.Text(), nullable=True),
    sa.Column('topic_id', sa.UUID(), nullable=False),
    sa.Column('status', sa.String(), nullable=False, comment='DRAFT | ACTIVE | COMPLETED'),
    sa.Column('start_date', sa.TIMESTAMP(timezone=True), nullable=True),
    sa.Column('end_date', sa.TIMESTAMP(timezone=True), nullable=True),
    sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.ForeignKeyConstraint(['topic_id'], ['topics.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    for table, has_thresholds in (
        ('consideration_phases', True),
        ('deliberation_phases', False),
        ('voting_phases', True),
    ):
        columns = [
            sa.Column('id', sa.UUID(), nullable=False),
            sa.Column('funding_round_id', sa.UUID(), nullable=False),
            sa.Column('start_date', sa.TIMESTAMP(timezone=True), nullable=True),
            sa.Column('end_date', sa.TIMESTAMP(timezone=True), nullable=True),
        ]
        if has_thresholds:
            columns += [
                sa.Column('min_votes', sa.Integer(), nullable=True),
                sa.Column('approval_threshold', sa.Numeric(precision=5, scale=4), nullable=True),
            ]
        op.create_table(table,
        *columns,
        sa.ForeignKeyConstraint(['funding_round_id'], ['funding_rounds.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('funding_round_id')
        )

    op.create_table('proposals',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('proposal_name', sa.String(), nullable=False),
    sa.Column('abstract', sa.Text(), nullable=False),
    sa.Column('user_id', sa.UUID(), nullable=False),
    sa.Column('funding_round_id', sa.UUID(), nullable=True),
    sa.Column('status', sa.String(), nullable=False, comment='DRAFT | CONSIDERATION | DELIBERATION | VOTING | APPROVED | REJECTED'),
    sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.ForeignKeyConstraint(['funding_round_id'], ['funding_rounds.id'], ),
    sa.ForeignKeyConstraint(['user_id'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_proposals_funding_round_id'), 'proposals', ['funding_round_id'], unique=False)
    op.create_index(op.f('ix_proposals_status'), 'proposals', ['status'], unique=False)

    op.create_table('consideration_votes',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('proposal_id', sa.Integer(), nullable=False),
    sa.Column('voter_id', sa.UUID(), nullable=False),
    sa.Column('decision', sa.String(), nullable=False, comment='APPROVED | REJECTED'),
    sa.Column('feedback', sa.Text(), nullable=False),
    sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.ForeignKeyConstraint(['proposal_id'], ['proposals.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['voter_id'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('proposal_id', 'voter_id', name='uq_consideration_vote_proposal_voter')
    )
    op.create_table('deliberation_votes',
    sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
    sa.Column('proposal_id', sa.Integer(), nullable=False),
    sa.Column('voter_id', sa.UUID(), nullable=False),
    sa.Column('feedback', sa.Text(), nullable=False),
    sa.Column('recommendation', sa.Boolean(), nullable=True, comment='Reviewer position; NULL for community comments'),
    sa.Column('is_reviewer_vote', sa.Boolean(), nullable=False),
    sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.text('now()'), nullable=True),
    sa.ForeignKeyConstraint(['proposal_id'], ['proposals.id'], ondelete='CASCADE'),
    sa.ForeignKeyConstraint(['voter_id'], ['users.id'], ),
    sa.PrimaryKeyConstraint('id'),
    sa.UniqueConstraint('proposal_id', 'voter_id', name='uq_deliberation_vote_proposal_voter')
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table('deliberation_votes')
    op.drop_table('consideration_votes')
    op.drop_index(op.f('ix_proposals_status'), table_name='proposals')
    op.drop_index(op.f('ix_proposals_funding_round_id'), table_name='proposals')
    op.drop_table('proposals')
    op.drop_table('voting_phases')
    op.drop_table('deliberation_phases')
    op.drop_table('consideration_phases')
    op.drop_table('funding_rounds')
    op.drop_table('topic_reviewer_groups')
    op.drop_index(op.f('ix_reviewer_group_members_user_id'), table_name='reviewer_group_members')
    op.drop_table('reviewer_group_members')
    op.drop_table('reviewer_groups')
    op.drop_table('topics')
    op.drop_index(op.f('ix_users_link_id'), table_name='users')
    op.drop_table('users')

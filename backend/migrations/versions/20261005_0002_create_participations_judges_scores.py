from __future__ import annotations
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers
revision = "20261005_0002"
down_revision = "20261005_0001"
branch_labels = None
depends_on = None

def upgrade() -> None:
    op.create_table(
        "participations",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("hackathon_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("hackathons.id", ondelete="CASCADE"), nullable=False),
        sa.Column("hackathon_name", sa.String(length=120), nullable=False),
        sa.Column("hackathon_url", sa.String(length=80), nullable=False),
        sa.Column("creator_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("creator_name", sa.String(length=120), nullable=False),
        sa.Column("title", sa.String(length=160), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("project_url", sa.String(length=512), nullable=True),
        sa.Column("team_members", postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("is_reviewed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_winner", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_participations_hackathon_id", "participations", ["hackathon_id"])
    op.create_index("ix_participations_hackathon_url", "participations", ["hackathon_url"])
    op.create_index("ix_participations_creator_id", "participations", ["creator_id"])
    op.create_unique_constraint("uq_participation_one_per_user", "participations", ["creator_id", "hackathon_url"])

    op.create_table(
        "judges",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("hackathon_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("hackathons.id", ondelete="CASCADE"), nullable=False),
        sa.Column("invited_by_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("users.id", ondelete="SET NULL"), nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_judges_user_id", "judges", ["user_id"])
    op.create_index("ix_judges_hackathon_id", "judges", ["hackathon_id"])
    op.create_unique_constraint("uq_judge_once_per_hackathon", "judges", ["user_id", "hackathon_id"])

    op.create_table(
        "scores",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("judge_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("judges.id", ondelete="CASCADE"), nullable=False),
        sa.Column("participation_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("participations.id", ondelete="CASCADE"), nullable=False),
        sa.Column("score", sa.Float(), nullable=False),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_scores_judge_id", "scores", ["judge_id"])
    op.create_index("ix_scores_participation_id", "scores", ["participation_id"])
    # Target of ON CONFLICT in record_score
    op.create_unique_constraint("uq_score_once_per_judge", "scores", ["judge_id", "participation_id"])

def downgrade() -> None:
    op.drop_table("scores")
    op.drop_table("judges")
    op.drop_table("participations")

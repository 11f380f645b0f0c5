from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Float, Boolean, DateTime, ForeignKey, Text, Uuid, UniqueConstraint, JSON, func
from sqlalchemy.dialects.postgresql import JSONB
from hackcontrol.db import Base
from hackcontrol.models.user import utcnow


class Participation(Base):
    """
    A project submitted to a hackathon.
    hackathon_name/hackathon_url/creator_name are copies kept in sync on rename.
    """
    __tablename__ = "participations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    hackathon_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("hackathons.id", ondelete="CASCADE"), index=True, nullable=False
    )
    hackathon_name: Mapped[str] = mapped_column(String(120), nullable=False)
    hackathon_url: Mapped[str] = mapped_column(String(80), index=True, nullable=False)

    creator_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    creator_name: Mapped[str] = mapped_column(String(120), nullable=False)

    title: Mapped[str] = mapped_column(String(160), nullable=False)
    description: Mapped[str | None] = mapped_column(Text(), nullable=True)
    project_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    team_members: Mapped[list] = mapped_column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list)

    is_reviewed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_winner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("creator_id", "hackathon_url", name="uq_participation_one_per_user"),
    )


class Score(Base):
    __tablename__ = "scores"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    judge_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("judges.id", ondelete="CASCADE"), index=True, nullable=False
    )
    participation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), ForeignKey("participations.id", ondelete="CASCADE"), index=True, nullable=False
    )
    score: Mapped[float] = mapped_column(Float, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("judge_id", "participation_id", name="uq_score_once_per_judge"),
    )

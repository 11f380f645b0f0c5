from __future__ import annotations
import uuid
from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Integer, Float, Boolean, DateTime, ForeignKey, Text, Uuid, UniqueConstraint, CheckConstraint, func
from hackcontrol.db import Base
from hackcontrol.models.user import utcnow

class Hackathon(Base):
    __tablename__ = "hackathons"
    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    url: Mapped[str] = mapped_column(String(80), unique=True, index=True, nullable=False)  # slug, never changes
    description: Mapped[str | None] = mapped_column(Text())
    rules: Mapped[str | None] = mapped_column(Text())
    criteria: Mapped[str | None] = mapped_column(Text())
    is_finished: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    min_judges_required: Mapped[int] = mapped_column(Integer, nullable=False, default=2)
    score_min: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    score_max: Mapped[float] = mapped_column(Float, nullable=False, default=10)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("owner_id", "url", name="uq_hackathon_owner_url"),
        CheckConstraint("min_judges_required >= 1", name="ck_hackathon_min_judges"),
        CheckConstraint("score_min < score_max", name="ck_hackathon_score_bounds"),
    )

class Judge(Base):
    """Grant for one user to score the participations of one hackathon."""
    __tablename__ = "judges"
    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    hackathon_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("hackathons.id", ondelete="CASCADE"), index=True, nullable=False)
    invited_by_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "hackathon_id", name="uq_judge_once_per_hackathon"),
    )

class Announcement(Base):
    __tablename__ = "announcements"
    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    hackathon_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), ForeignKey("hackathons.id", ondelete="CASCADE"), index=True, nullable=False)
    author_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    title: Mapped[str] = mapped_column(String(160), nullable=False)
    content: Mapped[str] = mapped_column(Text(), nullable=False)
    highlighted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, server_default=func.now(), nullable=False)

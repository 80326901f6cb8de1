"""SQLAlchemy ORM models for PostgreSQL."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


class CharacterRecord(Base):
    """A subject that reference sets are generated for."""

    __tablename__ = "characters"

    id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    traits: Mapped[Optional[str]] = mapped_column(Text)
    personality: Mapped[Optional[str]] = mapped_column(Text)
    master_reference: Mapped[Optional[str]] = mapped_column(Text)  # Asset ref

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationships
    images: Mapped[list["GeneratedImageRecord"]] = relationship(
        back_populates="character", cascade="all, delete-orphan"
    )


class GeneratedImageRecord(Base):
    """An accepted reference image in a character's image pool."""

    __tablename__ = "generated_images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    character_id: Mapped[str] = mapped_column(
        String(100), ForeignKey("characters.id", ondelete="CASCADE"), nullable=False
    )
    shot_template_id: Mapped[str] = mapped_column(String(100), nullable=False)
    asset_ref: Mapped[str] = mapped_column(Text, nullable=False)
    quality_score: Mapped[float] = mapped_column(Float, nullable=False)
    consistency_score: Mapped[Optional[float]] = mapped_column(Float)
    image_json: Mapped[str] = mapped_column(Text, nullable=False)  # Full GeneratedImage

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    # Relationship
    character: Mapped["CharacterRecord"] = relationship(back_populates="images")

    __table_args__ = (
        Index("idx_generated_images_character_id", "character_id"),
    )


class GenerationJobRecord(Base):
    """Reference set generation job."""

    __tablename__ = "generation_jobs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    subject_id: Mapped[str] = mapped_column(String(100), nullable=False)
    job_type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")

    progress_current: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    progress_total: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    progress_percentage: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    current_task: Mapped[Optional[str]] = mapped_column(Text)

    request_json: Mapped[str] = mapped_column(Text, nullable=False)
    results_json: Mapped[Optional[str]] = mapped_column(Text)
    error_message: Mapped[Optional[str]] = mapped_column(Text)
    cancel_requested: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    started_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    __table_args__ = (
        Index("idx_generation_jobs_status", "status"),
        Index("idx_generation_jobs_subject_id", "subject_id"),
        Index("idx_generation_jobs_created_at", "created_at"),
    )

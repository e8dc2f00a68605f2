"""SQLAlchemy ORM models for recruitment forms and their submissions."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    ForeignKey,
    Index,
    Integer,
    String,
    TIMESTAMP,
    Text,
    UniqueConstraint,
    Uuid,
    func,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base, JSONType
from app.db.enums import (
    DEFAULT_FORM_ROLE,
    DEFAULT_SUBMISSION_STATUS,
)


class RecruitmentForm(Base):
    """Recruitment form definition (schema + availability window)."""

    __tablename__ = "recruitment_forms"
    __table_args__ = (
        Index("idx_recruitment_forms_active_role", "is_active", "role"),
        Index("idx_recruitment_forms_window", "start_date", "end_date"),
        Index("idx_recruitment_forms_project", "project_item_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Bilingual text is stored as {"en": ..., "ta": ...}
    title: Mapped[dict] = mapped_column(JSONType, nullable=False)
    description: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    role: Mapped[str] = mapped_column(
        String(20),
        default=DEFAULT_FORM_ROLE.value,
        server_default=text(f"'{DEFAULT_FORM_ROLE.value}'"),
        nullable=False,
    )
    project_item_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Ordered field definitions; validated by form_schema_service before write
    fields_json: Mapped[list[dict]] = mapped_column(JSONType, nullable=False)

    image: Mapped[str | None] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=text("true"), nullable=False
    )
    start_date: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    max_responses: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_responses: Mapped[int] = mapped_column(
        Integer, default=0, server_default=text("0"), nullable=False
    )
    email_notification: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=text("true"), nullable=False
    )

    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    updated_by_user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    submissions: Mapped[list["RecruitmentSubmission"]] = relationship(
        back_populates="form",
        cascade="all, delete-orphan",
    )


class RecruitmentSubmission(Base):
    """One applicant's answers to a recruitment form."""

    __tablename__ = "recruitment_submissions"
    __table_args__ = (
        UniqueConstraint("form_id", "applicant_email", name="uq_recruitment_submission_applicant"),
        Index("idx_recruitment_submissions_form_status", "form_id", "status"),
        Index("idx_recruitment_submissions_created", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    form_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("recruitment_forms.id", ondelete="CASCADE"),
        nullable=False,
    )
    project_item_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    role_applied: Mapped[str] = mapped_column(String(20), nullable=False)

    applicant_name: Mapped[str] = mapped_column(String(100), nullable=False)
    applicant_email: Mapped[str] = mapped_column(String(255), nullable=False)
    applicant_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    status: Mapped[str] = mapped_column(
        String(20),
        default=DEFAULT_SUBMISSION_STATUS.value,
        server_default=text(f"'{DEFAULT_SUBMISSION_STATUS.value}'"),
        nullable=False,
    )
    # Decoded answer map: field_id -> scalar | list[str] | {row_key: value}
    answers_json: Mapped[dict] = mapped_column(JSONType, nullable=False)

    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    reviewed_by_user_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    form: Mapped["RecruitmentForm"] = relationship(back_populates="submissions")

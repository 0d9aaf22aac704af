"""SQLAlchemy 2.0 tables for the remote store.

Three tables, each scoped by user_id:
- applications:   one row per tracked job application
- resumes:        resume metadata (file name only, no content)
- cover_letters:  cover letter metadata

Column names are the wire contract with the hosted store; reads are always
ordered by created_at descending.
"""
from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Index,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Shared declarative base for all tracker tables."""
    pass


class ApplicationRow(Base):
    __tablename__ = "applications"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)

    company_name: Mapped[str] = mapped_column(String(300), nullable=False)
    position: Mapped[str] = mapped_column(String(300), nullable=False)
    job_description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    job_url: Mapped[Optional[str]] = mapped_column(String(1000))
    status: Mapped[str] = mapped_column(String(50), nullable=False)
    date_applied: Mapped[Optional[date]] = mapped_column(Date)
    resume_used: Mapped[Optional[str]] = mapped_column(String(64))
    cover_letter_used: Mapped[Optional[str]] = mapped_column(String(64))
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    salary: Mapped[Optional[str]] = mapped_column(String(100))
    location: Mapped[Optional[str]] = mapped_column(String(300))
    contact_person: Mapped[Optional[str]] = mapped_column(String(200))
    contact_email: Mapped[Optional[str]] = mapped_column(String(200))
    interview_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    follow_up_date: Mapped[Optional[date]] = mapped_column(Date)
    priority: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_applications_user_created", "user_id", "created_at"),
        Index("ix_applications_status", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<ApplicationRow(id={self.id}, user={self.user_id}, "
            f"status='{self.status}', company='{self.company_name[:40]}')>"
        )


class ResumeRow(Base):
    __tablename__ = "resumes"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    file_name: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_resumes_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ResumeRow(id={self.id}, name='{self.name}', default={self.is_default})>"


class CoverLetterRow(Base):
    __tablename__ = "cover_letters"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    file_name: Mapped[str] = mapped_column(String(500), nullable=False, default="")
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_cover_letters_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<CoverLetterRow(id={self.id}, name='{self.name}')>"

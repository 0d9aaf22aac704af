"""Record models for the job tracker.

Fields are snake_case in Python. Serialized (local storage, View Layer) they
use camelCase aliases, so stored JSON keeps the shape the web client writes:
``{"companyName": ..., "updatedAt": ...}``. Input accepts either spelling.
"""
import enum
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class ApplicationStatus(str, enum.Enum):
    """Pipeline states, in board order."""
    INTERESTED = "interested"
    APPLIED = "applied"
    SCREENING = "screening"
    INTERVIEW = "interview"
    FINAL_INTERVIEW = "final_interview"
    OFFER = "offer"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


# Applications in these states are no longer "active"
CLOSED_STATUSES = frozenset({
    ApplicationStatus.OFFER,
    ApplicationStatus.REJECTED,
    ApplicationStatus.WITHDRAWN,
})


class Priority(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize to UTC. Naive values are taken as UTC already.

    SQLite keeps the wall-clock time and drops the offset, so aware values
    must be converted before they are stored.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def normalize_tags(tags: list[str]) -> list[str]:
    """Strip, drop blanks and duplicates; first occurrence wins."""
    seen: set[str] = set()
    result = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in seen:
            seen.add(tag)
            result.append(tag)
    return result


def _blank_to_none(value: Any) -> Any:
    # HTML date inputs submit "" when cleared
    if isinstance(value, str) and not value.strip():
        return None
    return value


class RecordModel(BaseModel):
    """Shared config: camelCase aliases, populate by either name."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_json_dict(self) -> dict[str, Any]:
        """camelCase, JSON-safe dict (enums as values, dates as ISO strings)."""
        return self.model_dump(mode="json", by_alias=True)


_DATE_FIELDS = ("date_applied", "interview_date", "follow_up_date")


# ---------------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------------

class ApplicationDraft(RecordModel):
    """Everything the caller supplies when creating an application."""

    company_name: str
    position: str
    job_description: str = ""
    job_url: Optional[str] = None
    status: ApplicationStatus
    date_applied: Optional[date] = None
    resume_used: Optional[str] = None
    cover_letter_used: Optional[str] = None
    notes: str = ""
    salary: Optional[str] = None
    location: Optional[str] = None
    contact_person: Optional[str] = None
    contact_email: Optional[str] = None
    interview_date: Optional[datetime] = None
    follow_up_date: Optional[date] = None
    priority: Priority = Priority.MEDIUM
    tags: list[str] = Field(default_factory=list)

    _blank_dates = field_validator(*_DATE_FIELDS, mode="before")(_blank_to_none)

    @field_validator("tags")
    @classmethod
    def _tags(cls, value: list[str]) -> list[str]:
        return normalize_tags(value)

    @field_validator("interview_date")
    @classmethod
    def _interview_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)


class Application(ApplicationDraft):
    """A tracked job application."""

    id: str
    created_at: datetime
    updated_at: datetime

    @field_validator("created_at", "updated_at")
    @classmethod
    def _timestamps_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class ApplicationPatch(RecordModel):
    """Partial update for an application.

    Only fields explicitly set are applied; ``changes()`` never contains a
    field the caller did not name. Identity and timestamps are not patchable
    and are silently ignored if present.
    """

    NON_NULLABLE: ClassVar[frozenset[str]] = frozenset({
        "company_name", "position", "job_description", "status",
        "notes", "priority", "tags",
    })

    company_name: Optional[str] = None
    position: Optional[str] = None
    job_description: Optional[str] = None
    job_url: Optional[str] = None
    status: Optional[ApplicationStatus] = None
    date_applied: Optional[date] = None
    resume_used: Optional[str] = None
    cover_letter_used: Optional[str] = None
    notes: Optional[str] = None
    salary: Optional[str] = None
    location: Optional[str] = None
    contact_person: Optional[str] = None
    contact_email: Optional[str] = None
    interview_date: Optional[datetime] = None
    follow_up_date: Optional[date] = None
    priority: Optional[Priority] = None
    tags: Optional[list[str]] = None

    _blank_dates = field_validator(*_DATE_FIELDS, mode="before")(_blank_to_none)

    @field_validator("tags")
    @classmethod
    def _tags(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        return normalize_tags(value) if value is not None else None

    @field_validator("interview_date")
    @classmethod
    def _interview_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)

    @model_validator(mode="after")
    def _reject_null_required(self) -> "ApplicationPatch":
        nulls = sorted(
            name for name in self.model_fields_set & self.NON_NULLABLE
            if getattr(self, name) is None
        )
        if nulls:
            raise ValueError(f"fields cannot be null: {', '.join(nulls)}")
        return self

    def changes(self) -> dict[str, Any]:
        """Field name → value for every field present in the patch."""
        return {name: getattr(self, name) for name in self.model_fields_set}

    def is_empty(self) -> bool:
        return not self.model_fields_set


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

class ResumeDraft(RecordModel):
    name: str
    file_name: str = ""
    tags: list[str] = Field(default_factory=list)
    is_default: bool = False

    @field_validator("tags")
    @classmethod
    def _tags(cls, value: list[str]) -> list[str]:
        return normalize_tags(value)


class Resume(ResumeDraft):
    """Resume metadata. Only the file name is kept, never the content."""

    id: str
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _created_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


class CoverLetterDraft(RecordModel):
    name: str
    file_name: str = ""
    tags: list[str] = Field(default_factory=list)

    @field_validator("tags")
    @classmethod
    def _tags(cls, value: list[str]) -> list[str]:
        return normalize_tags(value)


class CoverLetter(CoverLetterDraft):
    id: str
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _created_utc(cls, value: datetime) -> datetime:
        return as_utc(value)


@dataclass
class Collections:
    """The three record collections, loaded or saved together."""
    applications: list[Application] = field(default_factory=list)
    resumes: list[Resume] = field(default_factory=list)
    cover_letters: list[CoverLetter] = field(default_factory=list)

"""
Unit Tests for Tracker Records

Tests aliases, defaults, tag/date normalization and patch semantics.
"""
from datetime import date, datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from modules.tracker.records import (
    Application,
    ApplicationDraft,
    ApplicationPatch,
    ApplicationStatus,
    Priority,
    Resume,
    normalize_tags,
)


class TestApplicationDraft:
    """Creation input."""

    def test_accepts_camel_case(self, acme_draft):
        draft = ApplicationDraft.model_validate(acme_draft)
        assert draft.company_name == "Acme"
        assert draft.status is ApplicationStatus.APPLIED
        assert draft.date_applied == date(2024, 1, 1)

    def test_accepts_snake_case(self):
        draft = ApplicationDraft(company_name="Acme", position="Engineer", status="interested")
        assert draft.position == "Engineer"

    def test_defaults(self):
        draft = ApplicationDraft(company_name="Acme", position="Engineer", status="applied")
        assert draft.priority is Priority.MEDIUM
        assert draft.tags == []
        assert draft.notes == ""
        assert draft.job_description == ""
        assert draft.job_url is None

    def test_missing_required_fields(self):
        with pytest.raises(ValidationError) as exc:
            ApplicationDraft(position="Engineer")
        missing = {err["loc"][0] for err in exc.value.errors()}
        assert missing == {"companyName", "status"}

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            ApplicationDraft(company_name="Acme", position="Engineer", status="ghosted")

    def test_blank_dates_become_none(self):
        draft = ApplicationDraft(
            company_name="Acme", position="Engineer", status="applied",
            date_applied="", interview_date="  ", follow_up_date="",
        )
        assert draft.date_applied is None
        assert draft.interview_date is None
        assert draft.follow_up_date is None

    def test_naive_interview_date_is_utc(self):
        draft = ApplicationDraft(
            company_name="Acme", position="Engineer", status="interview",
            interview_date="2026-04-01T09:30:00",
        )
        assert draft.interview_date == datetime(2026, 4, 1, 9, 30, tzinfo=timezone.utc)

    def test_offset_interview_date_converted_to_utc(self):
        draft = ApplicationDraft(
            company_name="Acme", position="Engineer", status="interview",
            interview_date="2026-04-01T10:00:00+02:00",
        )
        assert draft.interview_date.utcoffset() == timedelta(0)
        assert draft.interview_date.hour == 8

    def test_unknown_keys_ignored(self):
        draft = ApplicationDraft.model_validate(
            {"companyName": "Acme", "position": "Engineer", "status": "applied", "userId": "x"}
        )
        assert not hasattr(draft, "user_id")


class TestTags:

    def test_normalize_tags(self):
        assert normalize_tags([" python", "remote", "", "python ", "  "]) == ["python", "remote"]

    def test_draft_tags_normalized(self):
        draft = ApplicationDraft(
            company_name="Acme", position="Engineer", status="applied",
            tags=["k8s", "k8s", " aws "],
        )
        assert draft.tags == ["k8s", "aws"]


class TestSerialization:

    def test_json_dict_is_camel_case(self):
        app = Application(
            id="a1", company_name="Acme", position="Engineer", status="applied",
            date_applied=date(2024, 1, 1),
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            updated_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        data = app.to_json_dict()
        assert data["companyName"] == "Acme"
        assert data["dateApplied"] == "2024-01-01"
        assert data["status"] == "applied"
        assert data["priority"] == "medium"
        assert "company_name" not in data

    def test_resume_aliases(self):
        resume = Resume.model_validate({
            "id": "r1", "name": "CV 2026", "fileName": "cv.pdf",
            "isDefault": True, "createdAt": "2026-01-01T00:00:00Z",
        })
        assert resume.is_default is True
        assert resume.to_json_dict()["fileName"] == "cv.pdf"


class TestApplicationPatch:
    """Partial updates carry only the fields the caller named."""

    def test_changes_only_set_fields(self):
        patch = ApplicationPatch(status="offer")
        assert patch.changes() == {"status": ApplicationStatus.OFFER}

    def test_explicit_null_for_optional_field_is_kept(self):
        patch = ApplicationPatch.model_validate({"salary": None})
        assert patch.changes() == {"salary": None}

    def test_null_for_required_field_rejected(self):
        with pytest.raises(ValidationError, match="cannot be null"):
            ApplicationPatch.model_validate({"companyName": None})

    def test_empty_patch(self):
        assert ApplicationPatch().is_empty()
        assert not ApplicationPatch(notes="x").is_empty()

    def test_identity_fields_ignored(self):
        patch = ApplicationPatch.model_validate({"id": "other", "createdAt": "2020-01-01", "notes": "n"})
        assert patch.changes() == {"notes": "n"}

    def test_camel_case_input(self):
        patch = ApplicationPatch.model_validate({"interviewDate": "2026-04-01T10:00:00+02:00"})
        assert patch.changes()["interview_date"] == datetime(2026, 4, 1, 8, 0, tzinfo=timezone.utc)

    def test_invalid_status_rejected(self):
        with pytest.raises(ValidationError):
            ApplicationPatch(status="ghosted")

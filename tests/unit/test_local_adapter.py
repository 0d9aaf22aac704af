"""Tests for the local snapshot adapter."""

import json
from datetime import datetime, timezone

import pytest

from common.storage import MemoryBackend
from modules.tracker.local import LocalAdapter
from modules.tracker.records import Application, CoverLetter, Resume

T0 = datetime(2026, 2, 1, 8, 30, tzinfo=timezone.utc)


@pytest.fixture
def apps():
    return [
        Application(id="a1", company_name="Acme", position="Engineer", status="applied",
                    tags=["python"], created_at=T0, updated_at=T0),
        Application(id="a2", company_name="Globex", position="SRE", status="interview",
                    interview_date="2026-02-10T14:00:00Z", created_at=T0, updated_at=T0),
    ]


class TestKeys:

    def test_default_keys(self, local):
        assert local.keys == ("jobTracker_applications", "jobTracker_resumes", "jobTracker_coverLetters")

    def test_custom_prefix(self, backend):
        adapter = LocalAdapter(backend, key_prefix="demo")
        assert adapter.applications_key == "demo_applications"
        assert adapter.cover_letters_key == "demo_coverLetters"


class TestSaveAndLoad:

    def test_empty_storage(self, local):
        snapshot = local.load()
        assert snapshot.applications is None
        assert snapshot.resumes is None
        assert snapshot.cover_letters is None

    def test_round_trip(self, local, apps):
        resumes = [Resume(id="r1", name="CV", is_default=True, created_at=T0)]
        letters = [CoverLetter(id="c1", name="Generic", file_name="cl.pdf", created_at=T0)]
        assert local.save_applications(apps)
        assert local.save_resumes(resumes)
        assert local.save_cover_letters(letters)

        snapshot = local.load()
        assert snapshot.applications == apps
        assert snapshot.resumes == resumes
        assert snapshot.cover_letters == letters

    def test_stored_json_is_camel_case(self, local, backend, apps):
        local.save_applications(apps)
        stored = json.loads(backend.get("jobTracker_applications"))
        assert stored[0]["companyName"] == "Acme"
        assert stored[0]["createdAt"].startswith("2026-02-01T08:30:00")
        assert stored[1]["interviewDate"].startswith("2026-02-10T14:00:00")

    def test_reads_web_client_payload(self, backend):
        backend.set("jobTracker_applications", json.dumps([{
            "id": "1700000000000",
            "companyName": "Initech",
            "position": "Developer",
            "jobDescription": "",
            "status": "screening",
            "dateApplied": "2024-01-01",
            "notes": "",
            "priority": "low",
            "tags": ["backend"],
            "createdAt": "2024-01-01T10:00:00.000Z",
            "updatedAt": "2024-01-02T10:00:00.000Z",
        }]))
        apps = LocalAdapter(backend).load().applications
        assert apps[0].company_name == "Initech"
        assert apps[0].updated_at == datetime(2024, 1, 2, 10, tzinfo=timezone.utc)

    def test_empty_list_is_not_absent(self, local):
        local.save_applications([])
        assert local.load().applications == []


class TestFailures:

    def test_corrupt_key_is_isolated(self, local, backend):
        resumes = [Resume(id="r1", name="CV", created_at=T0)]
        local.save_resumes(resumes)
        backend.set("jobTracker_applications", "{not json")

        snapshot = local.load()
        assert snapshot.applications is None
        assert snapshot.resumes == resumes

    def test_invalid_record_is_skipped(self, local, backend, apps):
        stored = [app.to_json_dict() for app in apps]
        stored.insert(1, {**stored[0], "id": "bad", "status": "archived"})
        backend.set("jobTracker_applications", json.dumps(stored))

        assert local.load().applications == apps

    def test_non_array_payload_is_absent(self, local, backend):
        backend.set("jobTracker_applications", json.dumps({"companyName": "Acme"}))
        assert local.load().applications is None

    def test_write_failure_reported(self, apps):
        class FullDisk(MemoryBackend):
            def set(self, key, value):
                raise OSError("No space left on device")

        assert LocalAdapter(FullDisk()).save_applications(apps) is False


class TestClear:

    def test_removes_all_keys(self, local, backend, apps):
        local.save_applications(apps)
        local.save_resumes([])
        backend.set("unrelated", "x")
        local.clear()
        assert backend.keys() == ["unrelated"]

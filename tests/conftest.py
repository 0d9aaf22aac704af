"""
Job Tracker Test Configuration

Shared fixtures for all tests.
"""
from typing import Dict, List, Any

import pytest
import pytest_asyncio

from common.storage import MemoryBackend
from modules.tracker.database import dispose, get_engine, get_session_factory, init_db
from modules.tracker.local import LocalAdapter
from modules.tracker.remote import RemoteAdapter
from modules.tracker.store import AppStore

from tests.fixtures.tracker import TickingClock


# =============================================================================
# FIXTURES: Sample Data
# =============================================================================

@pytest.fixture
def acme_draft() -> Dict[str, Any]:
    """Application input in the camelCase shape the web client sends."""
    return {
        "companyName": "Acme",
        "position": "Engineer",
        "status": "applied",
        "priority": "medium",
        "tags": [],
        "notes": "",
        "dateApplied": "2024-01-01",
    }


@pytest.fixture
def sample_drafts() -> List[Dict[str, Any]]:
    """A small pipeline across several statuses."""
    return [
        {"company_name": "Etengo AG", "position": "Senior Python Developer",
         "status": "interview", "date_applied": "2026-03-02", "tags": ["python", "remote"]},
        {"company_name": "Hays AG", "position": "DevOps Engineer",
         "status": "applied", "date_applied": "2026-02-20", "priority": "high"},
        {"company_name": "SOLCOM", "position": "Data Engineer",
         "status": "rejected", "date_applied": "2026-02-11"},
        {"company_name": "Computer Futures", "position": "ML Engineer",
         "status": "offer", "date_applied": "2026-03-05", "salary": "95k"},
    ]


# =============================================================================
# FIXTURES: Persistence
# =============================================================================

@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def local(backend) -> LocalAdapter:
    return LocalAdapter(backend)


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Fresh SQLite database per test."""
    engine = get_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield engine
    await dispose(engine)


@pytest_asyncio.fixture
async def remote(engine) -> RemoteAdapter:
    return RemoteAdapter(get_session_factory(engine))


@pytest_asyncio.fixture
async def store(remote, local, clock) -> AppStore:
    """Store backed by a real SQLite remote and in-memory local storage."""
    return AppStore(remote=remote, local=local, clock=clock)

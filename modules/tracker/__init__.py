"""Job Application Tracker: state synchronization.

One in-memory store of applications, resumes and cover letters, kept in
sync with either a per-user SQL database (signed in) or on-device JSON
snapshots (signed out). The session monitor switches between the two.
"""

from .records import (
    Application,
    ApplicationDraft,
    ApplicationPatch,
    ApplicationStatus,
    CoverLetter,
    CoverLetterDraft,
    Priority,
    Resume,
    ResumeDraft,
)
from .auth import (
    ANONYMOUS,
    Anonymous,
    Authenticated,
    AuthEvent,
    AuthProvider,
    LocalAuthProvider,
)
from .store import AppStore, FailedWrite, State, reduce
from .remote import RemoteAdapter
from .local import LocalAdapter
from .monitor import MonitorState, SessionMonitor
from .config import TrackerConfig, load_config
from .context import Tracker, open_tracker

__all__ = [
    # Records
    "Application",
    "ApplicationDraft",
    "ApplicationPatch",
    "ApplicationStatus",
    "CoverLetter",
    "CoverLetterDraft",
    "Priority",
    "Resume",
    "ResumeDraft",
    # Sessions
    "ANONYMOUS",
    "Anonymous",
    "Authenticated",
    "AuthEvent",
    "AuthProvider",
    "LocalAuthProvider",
    # Store
    "AppStore",
    "FailedWrite",
    "State",
    "reduce",
    # Persistence
    "RemoteAdapter",
    "LocalAdapter",
    # Lifecycle
    "MonitorState",
    "SessionMonitor",
    "TrackerConfig",
    "load_config",
    "Tracker",
    "open_tracker",
]

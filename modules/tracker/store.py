"""State store: the single owner of the tracker's in-memory collections.

State is an immutable snapshot; every change goes through ``reduce`` via
``AppStore.dispatch``. Mutations are optimistic: the in-memory collection
changes first, then persistence follows.

Persistence policy:
- Authenticated session: each effective mutation schedules a remote write as
  an asyncio task and returns without waiting for it. Failed writes are
  logged and recorded in ``failed_writes``; nothing is retried or rolled
  back, so local and remote can diverge until the next ``reload()``.
  Writes reach the remote store one at a time, in the order issued.
- Anonymous session: once the store is initialized and not loading, every
  changed collection is written to local storage as a full snapshot.

Remote writes need a running event loop; anonymous use does not.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, Union

from .auth import ANONYMOUS, Authenticated, Session
from .local import LocalAdapter
from .records import (
    Application,
    ApplicationDraft,
    ApplicationPatch,
    CoverLetter,
    CoverLetterDraft,
    Resume,
    ResumeDraft,
    utcnow,
)
from .remote import RemoteAdapter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class State:
    applications: tuple[Application, ...] = ()
    resumes: tuple[Resume, ...] = ()
    cover_letters: tuple[CoverLetter, ...] = ()
    session: Session = ANONYMOUS
    loading: bool = True
    initialized: bool = False


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SetApplications:
    records: tuple[Application, ...]


@dataclass(frozen=True)
class AddApplication:
    record: Application


@dataclass(frozen=True)
class UpdateApplication:
    id: str
    patch: ApplicationPatch
    updated_at: datetime


@dataclass(frozen=True)
class DeleteApplication:
    id: str


@dataclass(frozen=True)
class SetResumes:
    records: tuple[Resume, ...]


@dataclass(frozen=True)
class AddResume:
    record: Resume


@dataclass(frozen=True)
class SetCoverLetters:
    records: tuple[CoverLetter, ...]


@dataclass(frozen=True)
class AddCoverLetter:
    record: CoverLetter


@dataclass(frozen=True)
class SetSession:
    session: Session


@dataclass(frozen=True)
class SetLoading:
    loading: bool


@dataclass(frozen=True)
class SetInitialized:
    initialized: bool


Action = Union[
    SetApplications, AddApplication, UpdateApplication, DeleteApplication,
    SetResumes, AddResume, SetCoverLetters, AddCoverLetter,
    SetSession, SetLoading, SetInitialized,
]


def reduce(state: State, action: Action) -> State:
    """Pure transition function. Returns ``state`` itself when nothing changes."""
    if isinstance(action, SetApplications):
        return replace(state, applications=tuple(action.records))
    if isinstance(action, AddApplication):
        return replace(state, applications=state.applications + (action.record,))
    if isinstance(action, UpdateApplication):
        if not any(app.id == action.id for app in state.applications):
            return state
        changes = {**action.patch.changes(), "updated_at": action.updated_at}
        return replace(state, applications=tuple(
            app.model_copy(update=changes) if app.id == action.id else app
            for app in state.applications
        ))
    if isinstance(action, DeleteApplication):
        remaining = tuple(app for app in state.applications if app.id != action.id)
        if len(remaining) == len(state.applications):
            return state
        return replace(state, applications=remaining)
    if isinstance(action, SetResumes):
        return replace(state, resumes=tuple(action.records))
    if isinstance(action, AddResume):
        return replace(state, resumes=state.resumes + (action.record,))
    if isinstance(action, SetCoverLetters):
        return replace(state, cover_letters=tuple(action.records))
    if isinstance(action, AddCoverLetter):
        return replace(state, cover_letters=state.cover_letters + (action.record,))
    if isinstance(action, SetSession):
        return state if state.session == action.session else replace(state, session=action.session)
    if isinstance(action, SetLoading):
        return state if state.loading == action.loading else replace(state, loading=action.loading)
    if isinstance(action, SetInitialized):
        if state.initialized == action.initialized:
            return state
        return replace(state, initialized=action.initialized)
    raise TypeError(f"Unknown action: {action!r}")


@dataclass(frozen=True)
class FailedWrite:
    """A remote write that did not land; local state was kept."""
    operation: str
    record_id: str
    failed_at: datetime


Listener = Callable[[State, State], None]


class AppStore:
    """Owns State; the only component allowed to change it.

    Construct one per running app and hand it to whatever renders it; see
    ``modules.tracker.context.open_tracker`` for the full lifecycle.
    """

    def __init__(
        self,
        remote: RemoteAdapter,
        local: LocalAdapter,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.remote = remote
        self.local = local
        self._clock = clock
        self._new_id = id_factory or (lambda: uuid.uuid4().hex)
        self._state = State()
        self._listeners: list[Listener] = []
        self._pending: set[asyncio.Task] = set()
        self._write_lock = asyncio.Lock()
        self.failed_writes: list[FailedWrite] = []

    # --- Read access ---

    @property
    def state(self) -> State:
        return self._state

    @property
    def applications(self) -> tuple[Application, ...]:
        return self._state.applications

    @property
    def resumes(self) -> tuple[Resume, ...]:
        return self._state.resumes

    @property
    def cover_letters(self) -> tuple[CoverLetter, ...]:
        return self._state.cover_letters

    @property
    def session(self) -> Session:
        return self._state.session

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def initialized(self) -> bool:
        return self._state.initialized

    @property
    def default_resume(self) -> Optional[Resume]:
        """Newest resume flagged as default. Several may carry the flag."""
        defaults = [r for r in self._state.resumes if r.is_default]
        return max(defaults, key=lambda r: r.created_at) if defaults else None

    @property
    def pending_writes(self) -> int:
        return sum(1 for task in self._pending if not task.done())

    def get_application(self, application_id: str) -> Optional[Application]:
        for app in self._state.applications:
            if app.id == application_id:
                return app
        return None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener(old, new) after every effective change."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    # --- Dispatch ---

    def dispatch(self, action: Action) -> State:
        old = self._state
        new = reduce(old, action)
        if new is old:
            return old
        self._state = new
        self._snapshot_locally(old, new)
        for listener in list(self._listeners):
            try:
                listener(old, new)
            except Exception as e:
                logger.error(f"State listener failed: {e!r}")
        return new

    def _snapshot_locally(self, old: State, new: State) -> None:
        if isinstance(new.session, Authenticated) or new.loading or not new.initialized:
            return
        if new.applications is not old.applications:
            self.local.save_applications(new.applications)
        if new.resumes is not old.resumes:
            self.local.save_resumes(new.resumes)
        if new.cover_letters is not old.cover_letters:
            self.local.save_cover_letters(new.cover_letters)

    # --- Full replace ---

    def set_applications(self, records: Iterable[Application]) -> None:
        self.dispatch(SetApplications(tuple(records)))

    def set_resumes(self, records: Iterable[Resume]) -> None:
        self.dispatch(SetResumes(tuple(records)))

    def set_cover_letters(self, records: Iterable[CoverLetter]) -> None:
        self.dispatch(SetCoverLetters(tuple(records)))

    def clear(self) -> None:
        self.set_applications(())
        self.set_resumes(())
        self.set_cover_letters(())

    # --- Mutations ---

    def _fresh_id(self, existing: Iterable[Any]) -> str:
        taken = {record.id for record in existing}
        candidate = self._new_id()
        while candidate in taken:
            candidate = self._new_id()
        return candidate

    def add_application(self, data: Union[ApplicationDraft, Mapping[str, Any]]) -> Application:
        if not isinstance(data, ApplicationDraft):
            data = ApplicationDraft.model_validate(data)
        fields = data.model_dump(include=set(ApplicationDraft.model_fields))
        now = self._clock()
        application = Application(
            **fields,
            id=self._fresh_id(self._state.applications),
            created_at=now,
            updated_at=now,
        )
        self.dispatch(AddApplication(application))
        self._persist_remote(
            "add application", application.id,
            lambda user_id: self.remote.insert_application(user_id, application),
        )
        return application

    def update_application(
        self,
        application_id: str,
        patch: Union[ApplicationPatch, Mapping[str, Any]],
    ) -> Optional[Application]:
        """Merge patch into the record; unknown ids are a silent no-op."""
        if not isinstance(patch, ApplicationPatch):
            patch = ApplicationPatch.model_validate(patch)
        if self.get_application(application_id) is None:
            logger.debug(f"update_application: no application {application_id}")
            return None
        updated_at = self._clock()
        self.dispatch(UpdateApplication(application_id, patch, updated_at))
        self._persist_remote(
            "update application", application_id,
            lambda user_id: self.remote.update_application(user_id, application_id, patch, updated_at),
        )
        return self.get_application(application_id)

    def delete_application(self, application_id: str) -> bool:
        """Remove the record; unknown ids are a silent no-op."""
        if self.get_application(application_id) is None:
            logger.debug(f"delete_application: no application {application_id}")
            return False
        self.dispatch(DeleteApplication(application_id))
        self._persist_remote(
            "delete application", application_id,
            lambda user_id: self.remote.delete_application(user_id, application_id),
        )
        return True

    def add_resume(self, data: Union[ResumeDraft, Mapping[str, Any]]) -> Resume:
        if not isinstance(data, ResumeDraft):
            data = ResumeDraft.model_validate(data)
        resume = Resume(
            **data.model_dump(include=set(ResumeDraft.model_fields)),
            id=self._fresh_id(self._state.resumes),
            created_at=self._clock(),
        )
        self.dispatch(AddResume(resume))
        self._persist_remote(
            "add resume", resume.id,
            lambda user_id: self.remote.insert_resume(user_id, resume),
        )
        return resume

    def add_cover_letter(self, data: Union[CoverLetterDraft, Mapping[str, Any]]) -> CoverLetter:
        if not isinstance(data, CoverLetterDraft):
            data = CoverLetterDraft.model_validate(data)
        cover_letter = CoverLetter(
            **data.model_dump(include=set(CoverLetterDraft.model_fields)),
            id=self._fresh_id(self._state.cover_letters),
            created_at=self._clock(),
        )
        self.dispatch(AddCoverLetter(cover_letter))
        self._persist_remote(
            "add cover letter", cover_letter.id,
            lambda user_id: self.remote.insert_cover_letter(user_id, cover_letter),
        )
        return cover_letter

    # --- Remote persistence ---

    def _persist_remote(
        self,
        operation: str,
        record_id: str,
        call: Callable[[str], Awaitable[bool]],
    ) -> None:
        session = self._state.session
        if not isinstance(session, Authenticated):
            return
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._run_write(operation, record_id, call, session.user_id))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run_write(
        self,
        operation: str,
        record_id: str,
        call: Callable[[str], Awaitable[bool]],
        user_id: str,
    ) -> None:
        try:
            async with self._write_lock:
                ok = await call(user_id)
        except Exception as e:
            logger.error(f"Remote {operation} raised for {record_id}: {e!r}")
            ok = False
        if not ok:
            self.failed_writes.append(FailedWrite(operation, record_id, self._clock()))
            logger.error(f"Remote {operation} failed for {record_id}; local state kept, no retry")

    async def flush(self) -> list[FailedWrite]:
        """Wait for in-flight remote writes; return failures seen meanwhile."""
        start = len(self.failed_writes)
        while True:
            pending = [task for task in self._pending if not task.done()]
            if not pending:
                break
            await asyncio.gather(*pending)
        return self.failed_writes[start:]

    # --- Loading ---

    async def load_remote(self, user_id: str) -> None:
        """Replace all three collections with the user's remote rows."""
        collections = await self.remote.load_all(user_id)
        self.set_applications(collections.applications)
        self.set_resumes(collections.resumes)
        self.set_cover_letters(collections.cover_letters)

    def load_local(self) -> None:
        """Load whatever local storage holds; absent keys leave collections as-is."""
        snapshot = self.local.load()
        if snapshot.applications is not None:
            self.set_applications(snapshot.applications)
        if snapshot.resumes is not None:
            self.set_resumes(snapshot.resumes)
        if snapshot.cover_letters is not None:
            self.set_cover_letters(snapshot.cover_letters)

    async def reload(self) -> None:
        """Re-read everything from the active persistence layer."""
        session = self._state.session
        if isinstance(session, Authenticated):
            await self.flush()
            await self.load_remote(session.user_id)
        else:
            self.load_local()

"""Remote adapter: records ↔ rows in the hosted tabular store.

Every query is scoped by user_id; writes are additionally scoped by record
id, so one user can never touch another user's rows. The adapter holds no
state between calls.

Error policy:
- fetch_* raise; load_all isolates them so one failing collection resolves
  to an empty list without affecting the other two.
- insert/update/delete never raise past this module: failures are logged
  and reported as False. An update or delete that matches no row counts as
  a failure.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, TypeVar

from pydantic import ValidationError
from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .database import session_scope
from .models import ApplicationRow, CoverLetterRow, ResumeRow
from .records import (
    Application,
    ApplicationPatch,
    Collections,
    CoverLetter,
    Priority,
    Resume,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Record field → column. Names coincide today; the map is the contract.
APPLICATION_COLUMNS: dict[str, str] = {
    "company_name": "company_name",
    "position": "position",
    "job_description": "job_description",
    "job_url": "job_url",
    "status": "status",
    "date_applied": "date_applied",
    "resume_used": "resume_used",
    "cover_letter_used": "cover_letter_used",
    "notes": "notes",
    "salary": "salary",
    "location": "location",
    "contact_person": "contact_person",
    "contact_email": "contact_email",
    "interview_date": "interview_date",
    "follow_up_date": "follow_up_date",
    "priority": "priority",
    "tags": "tags",
}


def _column_value(value: Any) -> Any:
    # enums are stored as their text value
    return getattr(value, "value", value)


def patch_to_columns(patch: ApplicationPatch) -> dict[str, Any]:
    """Translate only the fields present in the patch into column updates."""
    return {
        APPLICATION_COLUMNS[name]: _column_value(value)
        for name, value in patch.changes().items()
    }


def application_to_row(user_id: str, application: Application) -> ApplicationRow:
    values = {
        column: _column_value(getattr(application, name))
        for name, column in APPLICATION_COLUMNS.items()
    }
    return ApplicationRow(
        id=application.id,
        user_id=user_id,
        created_at=application.created_at,
        updated_at=application.updated_at,
        **values,
    )


def _require_row(result: Any, application_id: str) -> None:
    # the row is missing for this user, e.g. its insert never landed
    if result.rowcount == 0:
        raise LookupError(f"application {application_id} not found")


def row_to_application(row: ApplicationRow) -> Application:
    return Application(
        id=row.id,
        company_name=row.company_name,
        position=row.position,
        job_description=row.job_description or "",
        job_url=row.job_url,
        status=row.status,
        date_applied=row.date_applied,
        resume_used=row.resume_used,
        cover_letter_used=row.cover_letter_used,
        notes=row.notes or "",
        salary=row.salary,
        location=row.location,
        contact_person=row.contact_person,
        contact_email=row.contact_email,
        interview_date=row.interview_date,
        follow_up_date=row.follow_up_date,
        priority=row.priority or Priority.MEDIUM,
        tags=row.tags or [],
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def row_to_resume(row: ResumeRow) -> Resume:
    return Resume(
        id=row.id,
        name=row.name,
        file_name=row.file_name or "",
        tags=row.tags or [],
        is_default=bool(row.is_default),
        created_at=row.created_at,
    )


def row_to_cover_letter(row: CoverLetterRow) -> CoverLetter:
    return CoverLetter(
        id=row.id,
        name=row.name,
        file_name=row.file_name or "",
        tags=row.tags or [],
        created_at=row.created_at,
    )


class RemoteAdapter:
    """Request/response mapper over an async SQLAlchemy session factory."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    # --- Reads ---

    async def _fetch(self, row_cls, user_id: str, convert: Callable[[Any], T]) -> list[T]:
        async with session_scope(self.session_factory) as session:
            result = await session.scalars(
                select(row_cls)
                .where(row_cls.user_id == user_id)
                .order_by(row_cls.created_at.desc())
            )
            rows = list(result)

        records = []
        for row in rows:
            try:
                records.append(convert(row))
            except ValidationError as e:
                # e.g. a status outside the eight pipeline values
                logger.warning(f"Skipping unreadable {row_cls.__tablename__} row {row.id}: {e}")
        return records

    async def fetch_applications(self, user_id: str) -> list[Application]:
        return await self._fetch(ApplicationRow, user_id, row_to_application)

    async def fetch_resumes(self, user_id: str) -> list[Resume]:
        return await self._fetch(ResumeRow, user_id, row_to_resume)

    async def fetch_cover_letters(self, user_id: str) -> list[CoverLetter]:
        return await self._fetch(CoverLetterRow, user_id, row_to_cover_letter)

    async def load_all(self, user_id: str) -> Collections:
        """Fetch the three collections concurrently; failures resolve empty."""
        results = await asyncio.gather(
            self.fetch_applications(user_id),
            self.fetch_resumes(user_id),
            self.fetch_cover_letters(user_id),
            return_exceptions=True,
        )
        loaded = []
        for name, result in zip(("applications", "resumes", "cover_letters"), results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error(f"Error loading {name}: {result}")
                loaded.append([])
            else:
                loaded.append(result)

        collections = Collections(*loaded)
        logger.info(
            f"Loaded remote data for {user_id}: "
            f"{len(collections.applications)} applications, "
            f"{len(collections.resumes)} resumes, "
            f"{len(collections.cover_letters)} cover letters"
        )
        return collections

    # --- Writes ---

    async def _write(self, description: str, operation: Callable[[AsyncSession], Awaitable[None]]) -> bool:
        try:
            async with session_scope(self.session_factory) as session:
                await operation(session)
            return True
        except Exception as e:
            logger.error(f"Error {description}: {e}")
            return False

    async def insert_application(self, user_id: str, application: Application) -> bool:
        async def op(session: AsyncSession) -> None:
            session.add(application_to_row(user_id, application))

        return await self._write("adding application", op)

    async def update_application(
        self,
        user_id: str,
        application_id: str,
        patch: ApplicationPatch,
        updated_at: datetime,
    ) -> bool:
        values = patch_to_columns(patch)
        values["updated_at"] = updated_at

        async def op(session: AsyncSession) -> None:
            result = await session.execute(
                update(ApplicationRow)
                .where(ApplicationRow.id == application_id, ApplicationRow.user_id == user_id)
                .values(**values)
            )
            _require_row(result, application_id)

        return await self._write("updating application", op)

    async def delete_application(self, user_id: str, application_id: str) -> bool:
        async def op(session: AsyncSession) -> None:
            result = await session.execute(
                delete(ApplicationRow)
                .where(ApplicationRow.id == application_id, ApplicationRow.user_id == user_id)
            )
            _require_row(result, application_id)

        return await self._write("deleting application", op)

    async def insert_resume(self, user_id: str, resume: Resume) -> bool:
        async def op(session: AsyncSession) -> None:
            session.add(ResumeRow(
                id=resume.id,
                user_id=user_id,
                name=resume.name,
                file_name=resume.file_name,
                tags=resume.tags,
                is_default=resume.is_default,
                created_at=resume.created_at,
            ))

        return await self._write("adding resume", op)

    async def insert_cover_letter(self, user_id: str, cover_letter: CoverLetter) -> bool:
        async def op(session: AsyncSession) -> None:
            session.add(CoverLetterRow(
                id=cover_letter.id,
                user_id=user_id,
                name=cover_letter.name,
                file_name=cover_letter.file_name,
                tags=cover_letter.tags,
                created_at=cover_letter.created_at,
            ))

        return await self._write("adding cover letter", op)

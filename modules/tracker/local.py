"""Local adapter: full-snapshot persistence to on-device key-value storage.

Used when nobody is signed in. Three fixed keys hold JSON arrays of the
camelCase record shape:

    {prefix}_applications, {prefix}_resumes, {prefix}_coverLetters

Every save rewrites the whole collection. Read and write failures (corrupt
JSON, full disk) are logged and never raised. A single unreadable record is
skipped; the rest of its key still loads.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from pydantic import BaseModel, TypeAdapter, ValidationError

from common.storage import KeyValueBackend

from .records import Application, CoverLetter, Resume

logger = logging.getLogger(__name__)

_APPLICATIONS = TypeAdapter(list[Application])
_RESUMES = TypeAdapter(list[Resume])
_COVER_LETTERS = TypeAdapter(list[CoverLetter])


@dataclass
class LocalSnapshot:
    """What was found on disk; None means the key was absent or unreadable."""
    applications: Optional[list[Application]] = None
    resumes: Optional[list[Resume]] = None
    cover_letters: Optional[list[CoverLetter]] = None


class LocalAdapter:
    """Stateless mapper between record collections and three storage keys."""

    def __init__(self, backend: KeyValueBackend, key_prefix: str = "jobTracker"):
        self.backend = backend
        self.applications_key = f"{key_prefix}_applications"
        self.resumes_key = f"{key_prefix}_resumes"
        self.cover_letters_key = f"{key_prefix}_coverLetters"

    @property
    def keys(self) -> tuple[str, str, str]:
        return (self.applications_key, self.resumes_key, self.cover_letters_key)

    def _read(self, key: str, model: type[BaseModel]):
        try:
            raw = self.backend.get(key)
            if raw is None:
                return None
            items = json.loads(raw)
        except (OSError, ValueError) as e:
            logger.error(f"Error loading {key} from local storage: {e}")
            return None
        if not isinstance(items, list):
            logger.error(f"Error loading {key} from local storage: expected a JSON array")
            return None

        records = []
        for index, item in enumerate(items):
            try:
                records.append(model.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping unreadable record {index} in {key}: {e}")
        return records

    def _write(self, key: str, adapter: TypeAdapter, records: Sequence) -> bool:
        try:
            payload = adapter.dump_json(list(records), by_alias=True).decode("utf-8")
            self.backend.set(key, payload)
            return True
        except Exception as e:
            logger.error(f"Error saving {key} to local storage: {e}")
            return False

    def load(self) -> LocalSnapshot:
        snapshot = LocalSnapshot(
            applications=self._read(self.applications_key, Application),
            resumes=self._read(self.resumes_key, Resume),
            cover_letters=self._read(self.cover_letters_key, CoverLetter),
        )
        logger.debug(
            "Local snapshot: "
            + ", ".join(
                f"{name}={'-' if records is None else len(records)}"
                for name, records in (
                    ("applications", snapshot.applications),
                    ("resumes", snapshot.resumes),
                    ("cover_letters", snapshot.cover_letters),
                )
            )
        )
        return snapshot

    def save_applications(self, applications: Sequence[Application]) -> bool:
        return self._write(self.applications_key, _APPLICATIONS, applications)

    def save_resumes(self, resumes: Sequence[Resume]) -> bool:
        return self._write(self.resumes_key, _RESUMES, resumes)

    def save_cover_letters(self, cover_letters: Sequence[CoverLetter]) -> bool:
        return self._write(self.cover_letters_key, _COVER_LETTERS, cover_letters)

    def clear(self) -> None:
        for key in self.keys:
            try:
                self.backend.remove(key)
            except OSError as e:
                logger.error(f"Error removing {key} from local storage: {e}")

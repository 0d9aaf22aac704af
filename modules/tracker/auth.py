"""Session types and the auth provider seam.

A session is either Anonymous (local fallback mode) or Authenticated with a
user identity. The AuthProvider protocol is what the SessionMonitor consumes;
LocalAuthProvider is the in-process implementation used by the CLI and tests.
"""
import enum
import json
import logging
from dataclasses import asdict, dataclass
from typing import Awaitable, Callable, Optional, Protocol, Union, runtime_checkable

from common.storage import KeyValueBackend

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Anonymous:
    """No signed-in user."""


@dataclass(frozen=True)
class Authenticated:
    user_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None


Session = Union[Anonymous, Authenticated]

ANONYMOUS = Anonymous()


class AuthEvent(str, enum.Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


AuthCallback = Callable[[AuthEvent, Session], Awaitable[None]]


class Subscription:
    """Handle returned by subscribe(); call unsubscribe() on teardown."""

    def __init__(self, release: Callable[[], None]):
        self._release = release
        self.active = True

    def unsubscribe(self) -> None:
        if self.active:
            self.active = False
            self._release()


@runtime_checkable
class AuthProvider(Protocol):
    """What the session monitor needs from an identity service."""

    async def get_session(self) -> Session:
        """Resolve the current session (may be slow or fail)."""
        ...

    def subscribe(self, callback: AuthCallback) -> Subscription:
        """Register for sign-in / sign-out events."""
        ...


class LocalAuthProvider:
    """Identity kept in a key-value backend, like a browser auth client.

    The signed-in user survives restarts because it is stored under
    ``session_key``. sign_in / sign_out notify subscribers in subscription
    order and wait for each callback to finish.
    """

    def __init__(self, backend: KeyValueBackend, session_key: str = "jobTracker_session"):
        self.backend = backend
        self.session_key = session_key
        self._callbacks: list[AuthCallback] = []

    async def get_session(self) -> Session:
        raw = self.backend.get(self.session_key)
        if not raw:
            return ANONYMOUS
        try:
            return Authenticated(**json.loads(raw))
        except (ValueError, TypeError) as e:
            logger.warning(f"Stored session unreadable, treating as signed out: {e}")
            return ANONYMOUS

    def subscribe(self, callback: AuthCallback) -> Subscription:
        self._callbacks.append(callback)
        return Subscription(lambda: self._callbacks.remove(callback))

    async def sign_in(
        self,
        user_id: str,
        email: Optional[str] = None,
        display_name: Optional[str] = None,
    ) -> Authenticated:
        session = Authenticated(user_id=user_id, email=email, display_name=display_name)
        self.backend.set(self.session_key, json.dumps(asdict(session)))
        logger.info(f"Signed in as {user_id}")
        await self._emit(AuthEvent.SIGNED_IN, session)
        return session

    async def sign_out(self) -> None:
        self.backend.remove(self.session_key)
        logger.info("Signed out")
        await self._emit(AuthEvent.SIGNED_OUT, ANONYMOUS)

    async def _emit(self, event: AuthEvent, session: Session) -> None:
        for callback in list(self._callbacks):
            await callback(event, session)

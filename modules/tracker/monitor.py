"""Session monitor: decides which persistence layer feeds the store.

State machine:

    start ─► INITIALIZING ─┬─► AUTHENTICATED   session found, remote load done
                           └─► ANONYMOUS       no session, timeout or failure
    SIGNED_IN  event ─► AUTHENTICATED   reload all collections from remote
    SIGNED_OUT event ─► ANONYMOUS       clear collections, load local fallback

Startup is bounded twice: the session lookup by ``auth_timeout`` and the
remote load by ``load_timeout``. Either running out degrades to local mode
instead of hanging.
"""

import asyncio
import enum
import logging
from typing import Optional

from .auth import ANONYMOUS, AuthEvent, AuthProvider, Authenticated, Session, Subscription
from .store import AppStore, SetInitialized, SetLoading, SetSession

logger = logging.getLogger(__name__)


class MonitorState(str, enum.Enum):
    INITIALIZING = "initializing"
    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"


class SessionMonitor:
    """Watches auth transitions and reloads or resets the store."""

    def __init__(
        self,
        store: AppStore,
        auth: AuthProvider,
        auth_timeout: float = 5.0,
        load_timeout: float = 10.0,
    ):
        self.store = store
        self.auth = auth
        self.auth_timeout = auth_timeout
        self.load_timeout = load_timeout
        self.state: Optional[MonitorState] = None
        self._subscription: Optional[Subscription] = None
        self._stopped = False

    async def start(self) -> MonitorState:
        """Subscribe to auth events and run the initial load."""
        self._stopped = False
        self.state = MonitorState.INITIALIZING
        self._subscription = self.auth.subscribe(self._on_auth_event)
        await self._initialize()
        return self.state

    def stop(self) -> None:
        """Release the subscription; later events are ignored."""
        self._stopped = True
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    async def _initialize(self) -> None:
        store = self.store
        store.dispatch(SetLoading(True))
        try:
            session = await asyncio.wait_for(self.auth.get_session(), self.auth_timeout)
            if self._stopped:
                return
            store.dispatch(SetSession(session))
            if isinstance(session, Authenticated):
                await asyncio.wait_for(store.load_remote(session.user_id), self.load_timeout)
                self.state = MonitorState.AUTHENTICATED
            else:
                store.load_local()
                self.state = MonitorState.ANONYMOUS
            store.dispatch(SetInitialized(True))
        except Exception as e:
            logger.error(f"Error initializing tracker, falling back to local data: {e!r}")
            if self._stopped:
                return
            self._fall_back_to_local()
        finally:
            if not self._stopped:
                store.dispatch(SetLoading(False))
        logger.info(f"Session monitor ready: {self.state.value}")

    def _fall_back_to_local(self) -> None:
        # still loading here, so the cleared collections never reach disk
        self.store.dispatch(SetSession(ANONYMOUS))
        self.store.clear()
        self.store.load_local()
        self.store.dispatch(SetInitialized(True))
        self.state = MonitorState.ANONYMOUS

    async def _on_auth_event(self, event: AuthEvent, session: Session) -> None:
        if self._stopped:
            return
        if event is AuthEvent.SIGNED_IN and isinstance(session, Authenticated):
            await self._handle_signed_in(session)
        elif event is AuthEvent.SIGNED_OUT:
            self._handle_signed_out()

    async def _handle_signed_in(self, session: Authenticated) -> None:
        store = self.store
        store.dispatch(SetSession(session))
        store.dispatch(SetLoading(True))
        try:
            await store.load_remote(session.user_id)
        except Exception as e:
            logger.error(f"Error loading user data after sign in: {e!r}")
        finally:
            if not self._stopped:
                store.dispatch(SetLoading(False))
                store.dispatch(SetInitialized(True))
        self.state = MonitorState.AUTHENTICATED
        logger.info(f"Signed in: {session.user_id}")

    def _handle_signed_out(self) -> None:
        store = self.store
        store.dispatch(SetLoading(True))
        store.dispatch(SetSession(ANONYMOUS))
        store.clear()
        store.load_local()
        store.dispatch(SetLoading(False))
        store.dispatch(SetInitialized(True))
        self.state = MonitorState.ANONYMOUS
        logger.info("Signed out, using local data")

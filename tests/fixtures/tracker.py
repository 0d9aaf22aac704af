"""Test doubles shared by the tracker tests."""
import asyncio
from datetime import datetime, timedelta, timezone

from modules.tracker.auth import ANONYMOUS, Session, Subscription
from modules.tracker.store import AppStore, SetInitialized, SetLoading

START = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


class TickingClock:
    """Deterministic clock: every call returns a time one step later."""

    def __init__(self, start: datetime = START, step: timedelta = timedelta(seconds=1)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + self.step
        return current


class StaticAuthProvider:
    """Auth provider with a fixed session and an optional delay or error."""

    def __init__(self, session: Session = ANONYMOUS, delay: float = 0.0, error: Exception = None):
        self.session = session
        self.delay = delay
        self.error = error
        self.callbacks = []

    async def get_session(self) -> Session:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.session

    def subscribe(self, callback) -> Subscription:
        self.callbacks.append(callback)
        return Subscription(lambda: self.callbacks.remove(callback))

    async def emit(self, event, session) -> None:
        for callback in list(self.callbacks):
            await callback(event, session)


def mark_ready(store: AppStore) -> AppStore:
    """Put a store in the state the session monitor leaves it in."""
    store.dispatch(SetInitialized(True))
    store.dispatch(SetLoading(False))
    return store

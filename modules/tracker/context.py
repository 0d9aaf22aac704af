"""Tracker lifecycle: build everything, start the monitor, tear it down.

Usage:
    async with open_tracker(load_config()) as tracker:
        tracker.store.add_application({...})
        await tracker.store.flush()

On exit the monitor is stopped, in-flight remote writes are awaited and the
engine is disposed, in that order.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from common.storage import FileBackend, KeyValueBackend

from .auth import AuthProvider, LocalAuthProvider
from .config import TrackerConfig
from .database import dispose, get_engine, get_session_factory, init_db
from .local import LocalAdapter
from .monitor import SessionMonitor
from .remote import RemoteAdapter
from .store import AppStore

logger = logging.getLogger(__name__)


@dataclass
class Tracker:
    """Everything a front-end needs, wired together."""
    config: TrackerConfig
    engine: AsyncEngine
    store: AppStore
    auth: AuthProvider
    monitor: SessionMonitor


@asynccontextmanager
async def open_tracker(
    config: TrackerConfig,
    auth: Optional[AuthProvider] = None,
    backend: Optional[KeyValueBackend] = None,
) -> AsyncGenerator[Tracker, None]:
    """Construct and start a tracker; auth and backend default from config."""
    if backend is None:
        backend = FileBackend(config.local_storage.directory)
    if auth is None:
        auth = LocalAuthProvider(backend, session_key=f"{config.local_storage.key_prefix}_session")

    engine = get_engine(config.database.url, echo=config.database.echo)
    try:
        try:
            await init_db(engine)
        except Exception as e:
            # remote calls will fail and be logged; local mode still works
            logger.error(f"Database unavailable: {e}")
        store = AppStore(
            remote=RemoteAdapter(get_session_factory(engine)),
            local=LocalAdapter(backend, key_prefix=config.local_storage.key_prefix),
        )
        monitor = SessionMonitor(
            store,
            auth,
            auth_timeout=config.session.auth_timeout_s,
            load_timeout=config.session.load_timeout_s,
        )
        await monitor.start()
        tracker = Tracker(config=config, engine=engine, store=store, auth=auth, monitor=monitor)
        try:
            yield tracker
        finally:
            monitor.stop()
            failures = await store.flush()
            if failures:
                logger.warning(f"{len(failures)} remote write(s) failed during this session")
    finally:
        await dispose(engine)

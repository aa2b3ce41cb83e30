"""
Shared test configuration and fixtures.

Router tests run against AsyncMock stores specced on Store, so every call
the router forwards can be asserted on. Store and syncer tests use real
Store instances backed by MemoryAdapter.
"""

import io
import logging
from unittest.mock import AsyncMock

import pytest

from offline_store.config import OfflineGlobals
from offline_store.logging_utils import JsonLogFormatter, configure_logging
from offline_store.protocol import Record
from offline_store.routing.router import RoutingStore
from offline_store.store.base import APPLICATION, Store
from offline_store.store.memory import MemoryAdapter
from offline_store.sync.syncer import JournalSyncer, Syncer
from offline_store.sync.tracker import ChangeTracker


@pytest.fixture
def offline_globals() -> OfflineGlobals:
    """Offline support enabled, currently online."""
    return OfflineGlobals(offline_enabled=True, online=True)


@pytest.fixture
def online_store() -> AsyncMock:
    return AsyncMock(spec=Store)


@pytest.fixture
def offline_store() -> AsyncMock:
    return AsyncMock(spec=Store)


@pytest.fixture
def syncer() -> AsyncMock:
    return AsyncMock(spec=Syncer)


@pytest.fixture
def router(online_store, offline_store, syncer, offline_globals) -> RoutingStore:
    return RoutingStore(offline_store, syncer, offline_globals, online_store=online_store)


@pytest.fixture
def record() -> Record:
    return Record(model_name="post", id="1", attributes={"title": "Hello"})


@pytest.fixture
def remote_adapter() -> MemoryAdapter:
    """Adapter standing in for the remote service, seeded with two posts."""
    return MemoryAdapter(
        {
            "post": {
                "1": {"id": "1", "title": "Hello", "author": "ada"},
                "2": {"id": "2", "title": "World", "author": "grace"},
            }
        }
    )


@pytest.fixture
def local_adapter() -> MemoryAdapter:
    return MemoryAdapter()


@pytest.fixture
def real_online_store(remote_adapter) -> Store:
    return Store(name="online", adapters={APPLICATION: remote_adapter})


@pytest.fixture
def real_offline_store(local_adapter) -> Store:
    return Store(name="offline", adapters={APPLICATION: local_adapter})


@pytest.fixture
def journal_syncer(real_offline_store) -> JournalSyncer:
    return JournalSyncer(real_offline_store, ChangeTracker())


@pytest.fixture
def json_log():
    """Capture the package's log records as JSON lines at DEBUG."""
    stream = io.StringIO()
    logger = configure_logging(logging.DEBUG, stream)
    yield stream
    for handler in list(logger.handlers):
        if isinstance(handler.formatter, JsonLogFormatter):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)

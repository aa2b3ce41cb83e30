"""
Connectivity-aware routing store.

RoutingStore exposes the full store contract and forwards each call to
either the online store or the offline store:

1. An explicit per-call override wins (``useOnlineStore`` in an options
   mapping, or a trailing boolean, depending on the operation).
2. Otherwise the call goes online iff the connectivity provider says the
   process is online.

Fetches routed online go through a freshly decorated copy of the online
store's method so their results are synced down. Everything else is
forwarded verbatim. The router never awaits: it returns the downstream
awaitable as is, and never retries against the other store.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from ..config import ConnectivityProvider, OfflineGlobals
from ..exceptions import DecorationError, StoreResolutionError
from ..logging_utils import StoreLoggerAdapter
from ..protocol import Adapter, Serializer, StoreContract
from ..store.base import APPLICATION, Store
from ..store.memory import MemoryAdapter
from ..sync.decorators import decorate_adapter, decorate_api_call, decorate_serializer
from ..sync.syncer import JournalSyncer, Syncer
from ..sync.tracker import ChangeTracker
from .descriptors import CALL_DESCRIPTORS, CallDescriptor, decide

logger = logging.getLogger(__name__)


def default_online_store() -> Store:
    """Create the online store used when the host application supplies none.

    It has no adapters; register them with ``Store.register_adapter``.
    """
    return Store(name="online")


class RoutingStore(StoreContract):
    """Store façade routing between an online and an offline store.

    Example:
        >>> router = RoutingStore.create(online_store=online)
        >>> post = await router.find_record("post", "1")
        >>> local = await router.find_record("post", "1", {"useOnlineStore": False})
        >>> await router.delete_record(post, False)  # offline store only
    """

    def __init__(
        self,
        offline_store: StoreContract | None,
        syncer: Syncer | None,
        offline_globals: ConnectivityProvider | None,
        online_store: StoreContract | None = None,
        online_store_factory: Callable[[], StoreContract] | None = None,
    ) -> None:
        """Initialize the router.

        Args:
            offline_store: Store backed by local persistence
            syncer: Receives sync triggers from decorated online calls
            offline_globals: Connectivity state, polled on every call
            online_store: Store backed by the remote service
            online_store_factory: Builds the online store when none is given
                (default: ``default_online_store``)

        Raises:
            StoreResolutionError: If a collaborator is missing or the online
                store cannot be created
        """
        if offline_store is None:
            raise StoreResolutionError("offline store")
        if syncer is None:
            raise StoreResolutionError("syncer")
        if offline_globals is None:
            raise StoreResolutionError("connectivity provider")

        if online_store is None:
            factory = online_store_factory or default_online_store
            try:
                online_store = factory()
            except Exception as e:
                raise StoreResolutionError("online store", str(e)) from e
            if online_store is None:
                raise StoreResolutionError("online store", "factory returned None")

        self._online_store = online_store
        self._offline_store = offline_store
        self._syncer = syncer
        self._offline_globals = offline_globals
        self._log = StoreLoggerAdapter(logger, {"store": "router"})

    @classmethod
    def create(
        cls,
        online_store: StoreContract | None = None,
        offline_adapter: Adapter | None = None,
        offline_globals: ConnectivityProvider | None = None,
        journal_path: Path | None = None,
    ) -> RoutingStore:
        """Build a router with a memory-backed offline store and a JournalSyncer.

        Args:
            online_store: Online store (default: ``default_online_store()``)
            offline_adapter: Adapter for the offline store (default: MemoryAdapter)
            offline_globals: Connectivity state (default: from environment)
            journal_path: JSONL file for the change journal (default: in memory)
        """
        offline_store = Store(
            name="offline", adapters={APPLICATION: offline_adapter or MemoryAdapter()}
        )
        syncer = JournalSyncer(offline_store, ChangeTracker(journal_path))
        return cls(
            offline_store,
            syncer,
            offline_globals or OfflineGlobals.from_environment(),
            online_store=online_store,
        )

    @property
    def online_store(self) -> StoreContract:
        return self._online_store

    @property
    def offline_store(self) -> StoreContract:
        return self._offline_store

    @property
    def syncer(self) -> Syncer:
        return self._syncer

    @property
    def offline_globals(self) -> ConnectivityProvider:
        return self._offline_globals

    # Query-shaped operations

    def find_all(self, *args: Any) -> Awaitable[Any]:
        """Fetch every record of a model.

        Args (positional): model_name, options. ``options["useOnlineStore"]``
        selects the store explicitly.
        """
        return self._route("find_all", args)

    def find_record(self, *args: Any) -> Awaitable[Any]:
        """Fetch one record.

        Args (positional): model_name, record_id, options.
        ``options["useOnlineStore"]`` selects the store explicitly.
        """
        return self._route("find_record", args)

    def reload_record(self, *args: Any) -> Awaitable[Any]:
        """Fetch a loaded record again. Routed on online status only."""
        return self._route("reload_record", args)

    def query(self, *args: Any) -> Awaitable[Any]:
        """Query records.

        Args (positional): model_name, query. ``query["useOnlineStore"]``
        selects the store explicitly and is removed before the query runs.
        """
        return self._route("query", args)

    def query_record(self, *args: Any) -> Awaitable[Any]:
        """Query a single record. Same override handling as ``query``."""
        return self._route("query_record", args)

    # Pass-through operations: trailing boolean override, forwarded verbatim

    def create_record(self, *args: Any) -> Awaitable[Any]:
        """Args (positional): model_name, properties, use_online_store."""
        return self._route("create_record", args)

    def delete_record(self, *args: Any) -> Awaitable[Any]:
        """Args (positional): record, use_online_store."""
        return self._route("delete_record", args)

    def get_reference(self, *args: Any) -> Awaitable[Any]:
        """Args (positional): model_name, record_id, use_online_store."""
        return self._route("get_reference", args)

    def has_record_for_id(self, *args: Any) -> Awaitable[Any]:
        """Args (positional): model_name, record_id, use_online_store."""
        return self._route("has_record_for_id", args)

    def normalize(self, *args: Any) -> Awaitable[Any]:
        """Args (positional): model_name, payload, use_online_store."""
        return self._route("normalize", args)

    def peek_all(self, *args: Any) -> Awaitable[Any]:
        """Args (positional): model_name, use_online_store."""
        return self._route("peek_all", args)

    def peek_record(self, *args: Any) -> Awaitable[Any]:
        """Args (positional): model_name, record_id, use_online_store."""
        return self._route("peek_record", args)

    def push(self, *args: Any) -> Awaitable[Any]:
        """Args (positional): document, use_online_store."""
        return self._route("push", args)

    def push_payload(self, *args: Any) -> Awaitable[Any]:
        """Args (positional): model_name, payload, use_online_store."""
        return self._route("push_payload", args)

    def record_is_loaded(self, *args: Any) -> Awaitable[Any]:
        """Args (positional): model_name, record_id, use_online_store."""
        return self._route("record_is_loaded", args)

    def unload_all(self, *args: Any) -> Awaitable[Any]:
        """Args (positional): model_name, use_online_store."""
        return self._route("unload_all", args)

    def unload_record(self, *args: Any) -> Awaitable[Any]:
        """Args (positional): record, use_online_store."""
        return self._route("unload_record", args)

    # Adapter / serializer lookup

    def adapter_for(self, model_name: str, use_online_store: bool | None = None) -> Adapter:
        """Return the adapter for a model.

        With offline support disabled this is always the online store's
        adapter, undecorated. Otherwise the online adapter is returned
        decorated for sync bookkeeping, or the offline store's adapter.
        """
        return self._lookup("adapter_for", model_name, use_online_store, decorate_adapter)

    def serializer_for(self, model_name: str, use_online_store: bool | None = None) -> Serializer:
        """Return the serializer for a model. Same selection as ``adapter_for``."""
        return self._lookup("serializer_for", model_name, use_online_store, decorate_serializer)

    # Internals

    def _route(self, name: str, args: tuple[Any, ...]) -> Any:
        descriptor = CALL_DESCRIPTORS[name]
        override, args = descriptor.extract_override(args)
        use_online = decide(override, self._offline_globals.is_online)
        target = "online" if use_online else "offline"
        self._log.debug(
            f"Routing {name} to {target} store",
            extra={"operation": name, "target": target, "override": override},
        )

        if use_online and descriptor.decorated:
            return self._decorate_method_and_call(descriptor, args)

        store = self._online_store if use_online else self._offline_store
        return getattr(store, name)(*args)

    def _decorate_method_and_call(self, descriptor: CallDescriptor, args: tuple[Any, ...]) -> Any:
        method = getattr(self._online_store, descriptor.name, None)
        if method is None:
            raise DecorationError(descriptor.name, "online store has no such operation")

        # Query mappings are real parameters; only options slots carry bypass
        options_index = descriptor.options_index if descriptor.merge_bypass else None
        decorated = decorate_api_call(
            descriptor.shape, method, self._syncer, self._offline_globals, options_index
        )
        if not self._offline_globals.is_offline_enabled:
            args = descriptor.with_bypass(args)
        return decorated(*args)

    def _lookup(
        self,
        name: str,
        model_name: str,
        use_online_store: bool | None,
        decorate: Callable[..., Any],
    ) -> Any:
        resolved = getattr(self._online_store, name)(model_name)
        if not self._offline_globals.is_offline_enabled:
            return resolved

        use_online = bool(use_online_store) or (
            use_online_store is None and self._offline_globals.is_online
        )
        target = "online" if use_online else "offline"
        self._log.debug(
            f"Resolved {name}({model_name!r}) from {target} store",
            extra={"operation": name, "target": target, "override": use_online_store},
        )
        if use_online:
            return decorate(resolved, self._syncer, self._offline_globals)
        return getattr(self._offline_store, name)(model_name)

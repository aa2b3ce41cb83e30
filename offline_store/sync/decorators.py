"""
Decoration of online store operations, adapters and serializers.

Decorators compose: they return a new callable or proxy that calls the
original and then reports to the Syncer. Nothing here modifies the wrapped
store, adapter or serializer, and every decorated handle is built fresh by
the caller for each use.
"""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable, Mapping
from typing import TYPE_CHECKING, Any

from ..config import ConnectivityProvider
from ..exceptions import DecorationError
from ..protocol import BYPASS, ShapeClass
from .tracker import ChangeType

if TYPE_CHECKING:
    from .syncer import Syncer

# Adapter methods that fetch, by result shape.
ADAPTER_FETCH_METHODS: dict[str, ShapeClass] = {
    "find_record": ShapeClass.SINGLE,
    "query_record": ShapeClass.SINGLE,
    "find_all": ShapeClass.MULTIPLE,
    "query": ShapeClass.MULTIPLE,
}

# Adapter methods that write, with the change they represent.
ADAPTER_WRITE_METHODS: dict[str, tuple[ChangeType, ShapeClass]] = {
    "create_record": (ChangeType.CREATE, ShapeClass.SINGLE),
    "update_record": (ChangeType.UPDATE, ShapeClass.SINGLE),
    "delete_record": (ChangeType.DELETE, ShapeClass.SINGLE),
    "batch_update": (ChangeType.UPDATE, ShapeClass.BULK_WRITE),
}


def _sync_down_enabled(offline_globals: ConnectivityProvider) -> bool:
    return offline_globals.is_offline_enabled and getattr(
        offline_globals, "is_sync_down_when_online_enabled", True
    )


def _bypassed(
    options_index: int | None, args: tuple[Any, ...], kwargs: dict[str, Any]
) -> bool:
    if options_index is None:
        return False
    options = args[options_index] if len(args) > options_index else kwargs.get("options")
    return isinstance(options, Mapping) and bool(options.get(BYPASS))


def decorate_api_call(
    shape: ShapeClass,
    method: Callable[..., Awaitable[Any]],
    syncer: Syncer,
    offline_globals: ConnectivityProvider,
    options_index: int | None = None,
) -> Callable[..., Awaitable[Any]]:
    """Wrap an online store method so its result is synced down.

    The returned coroutine function awaits ``method`` with the same
    arguments, then hands the result to ``syncer.sync_down`` unless offline
    support or sync-down is disabled, or the options mapping carries a
    truthy ``bypass`` flag.

    Args:
        shape: Result shape handed to the syncer
        method: Online store operation
        syncer: Receives the result
        offline_globals: Connectivity state, read after each call
        options_index: Position of the options mapping that may carry
            ``bypass``; None means the call cannot be bypassed

    Raises:
        DecorationError: If ``method`` is not callable or ``shape`` is NONE
    """
    name = getattr(method, "__name__", repr(method))
    if not callable(method):
        raise DecorationError(name, "operation is not callable")
    if shape is ShapeClass.NONE:
        raise DecorationError(name, "operations of shape 'none' are not decorated")

    @functools.wraps(method)
    async def decorated(*args: Any, **kwargs: Any) -> Any:
        result = await method(*args, **kwargs)
        if _sync_down_enabled(offline_globals) and not _bypassed(options_index, args, kwargs):
            await syncer.sync_down(result, shape)
        return result

    return decorated


class DecoratedAdapter:
    """Proxy over an adapter that reports fetches and writes to a Syncer.

    Attributes other than the fetching and writing methods are returned
    from the wrapped adapter unchanged.
    """

    def __init__(
        self, adapter: Any, syncer: Syncer, offline_globals: ConnectivityProvider
    ) -> None:
        self._adapter = adapter
        self._syncer = syncer
        self._offline_globals = offline_globals

    @property
    def wrapped(self) -> Any:
        return self._adapter

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)

        attr = getattr(self._adapter, name)
        if name in ADAPTER_FETCH_METHODS:
            return self._wrap_fetch(attr, ADAPTER_FETCH_METHODS[name])
        if name in ADAPTER_WRITE_METHODS:
            return self._wrap_write(attr, *ADAPTER_WRITE_METHODS[name])
        return attr

    def _wrap_fetch(self, method: Callable[..., Awaitable[Any]], shape: ShapeClass) -> Any:
        @functools.wraps(method)
        async def fetch(store: Any, model_name: str, *args: Any, **kwargs: Any) -> Any:
            payload = await method(store, model_name, *args, **kwargs)
            if _sync_down_enabled(self._offline_globals):
                await self._syncer.sync_payload(model_name, payload, shape)
            return payload

        return fetch

    def _wrap_write(
        self,
        method: Callable[..., Awaitable[Any]],
        change_type: ChangeType,
        shape: ShapeClass,
    ) -> Any:
        @functools.wraps(method)
        async def write(store: Any, model_name: str, *args: Any, **kwargs: Any) -> Any:
            result = await method(store, model_name, *args, **kwargs)
            if self._offline_globals.is_offline_enabled:
                changed = result
                if change_type is ChangeType.DELETE:
                    # Deletes return nothing; the record id identifies the change
                    changed = args[0] if args else kwargs.get("record_id")
                if changed is not None:
                    await self._syncer.record_change(model_name, change_type, changed, shape)
            return result

        return write

    def __repr__(self) -> str:
        return f"DecoratedAdapter({self._adapter!r})"


class DecoratedSerializer:
    """Proxy over a serializer that reports outbound payloads to a Syncer."""

    def __init__(
        self, serializer: Any, syncer: Syncer, offline_globals: ConnectivityProvider
    ) -> None:
        self._serializer = serializer
        self._syncer = syncer
        self._offline_globals = offline_globals

    @property
    def wrapped(self) -> Any:
        return self._serializer

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self._serializer, name)

    def serialize(self, record: Any, *args: Any, **kwargs: Any) -> dict[str, Any]:
        payload = self._serializer.serialize(record, *args, **kwargs)
        if self._offline_globals.is_offline_enabled:
            self._syncer.track_serialized(record.model_name, payload)
        return payload

    def __repr__(self) -> str:
        return f"DecoratedSerializer({self._serializer!r})"


def decorate_adapter(
    adapter: Any, syncer: Syncer, offline_globals: ConnectivityProvider
) -> DecoratedAdapter:
    """Wrap an online adapter for sync bookkeeping.

    Raises:
        DecorationError: If ``adapter`` is None
    """
    if adapter is None:
        raise DecorationError("adapter", "no adapter to decorate")
    return DecoratedAdapter(adapter, syncer, offline_globals)


def decorate_serializer(
    serializer: Any, syncer: Syncer, offline_globals: ConnectivityProvider
) -> DecoratedSerializer:
    """Wrap an online serializer for sync bookkeeping.

    Raises:
        DecorationError: If ``serializer`` is None
    """
    if serializer is None:
        raise DecorationError("serializer", "no serializer to decorate")
    return DecoratedSerializer(serializer, syncer, offline_globals)

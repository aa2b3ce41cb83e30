"""
Synchronization bookkeeping for the online path.

A Syncer is told about everything that happens through decorated online
operations, adapters and serializers. JournalSyncer mirrors fetched and
written records into the offline store and journals the writes.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import deque
from typing import Any

from ..exceptions import SyncError
from ..protocol import Record, ShapeClass
from ..store.base import Store
from .tracker import ChangeTracker, ChangeType

logger = logging.getLogger(__name__)


class Syncer(ABC):
    """Receives synchronization triggers from decorated online calls."""

    @abstractmethod
    async def sync_down(self, result: Any, shape: ShapeClass) -> None:
        """Handle records returned by a decorated store operation."""
        ...

    @abstractmethod
    async def sync_payload(self, model_name: str, payload: Any, shape: ShapeClass) -> None:
        """Handle raw payloads fetched by a decorated adapter."""
        ...

    @abstractmethod
    async def record_change(
        self,
        model_name: str,
        change_type: ChangeType,
        payload: Any,
        shape: ShapeClass = ShapeClass.SINGLE,
    ) -> None:
        """Handle a write performed by a decorated adapter."""
        ...

    @abstractmethod
    def track_serialized(self, model_name: str, payload: dict[str, Any]) -> None:
        """Note a payload produced by a decorated serializer."""
        ...


def _items(value: Any, shape: ShapeClass) -> list[Any]:
    if shape is ShapeClass.NONE:
        raise SyncError("Cannot synchronize the result of an undecorated operation")
    if value is None:
        return []
    if shape is ShapeClass.SINGLE:
        return [value]
    return list(value)


class JournalSyncer(Syncer):
    """Syncer that mirrors online activity into an offline Store.

    - Records fetched online are upserted into the offline store's adapter
      and loaded into its identity map.
    - Writes made through an online adapter are applied to the offline
      store and appended to the ChangeTracker journal.
    - Serialized outbound payloads are kept in a bounded in-memory buffer.
    """

    def __init__(
        self,
        offline_store: Store,
        tracker: ChangeTracker | None = None,
        outbound_limit: int = 100,
    ) -> None:
        self.offline_store = offline_store
        self.tracker = tracker or ChangeTracker()
        self.outbound: deque[tuple[str, dict[str, Any]]] = deque(maxlen=outbound_limit)

    async def sync_down(self, result: Any, shape: ShapeClass) -> None:
        records = [r for r in _items(result, shape) if isinstance(r, Record)]
        for record in records:
            payload = self.offline_store.serializer_for(record.model_name).serialize(record)
            await self._upsert(record.model_name, payload)

        if records:
            logger.debug(f"Synced down {len(records)} record(s)")

    async def sync_payload(self, model_name: str, payload: Any, shape: ShapeClass) -> None:
        for item in _items(payload, shape):
            await self._upsert(model_name, item)

    async def record_change(
        self,
        model_name: str,
        change_type: ChangeType,
        payload: Any,
        shape: ShapeClass = ShapeClass.SINGLE,
    ) -> None:
        for item in _items(payload, shape):
            if change_type is ChangeType.DELETE:
                record_id = str(item["id"] if isinstance(item, dict) else item)
                await self._remove(model_name, record_id)
                await self.tracker.track(model_name, record_id, change_type)
            else:
                await self._upsert(model_name, item)
                await self.tracker.track(model_name, str(item["id"]), change_type, dict(item))

    def track_serialized(self, model_name: str, payload: dict[str, Any]) -> None:
        self.outbound.append((model_name, dict(payload)))

    async def _upsert(self, model_name: str, payload: dict[str, Any]) -> None:
        store = self.offline_store
        stored = await store.adapter_for(model_name).update_record(store, model_name, payload)
        await store.push_payload(model_name, stored)

    async def _remove(self, model_name: str, record_id: str) -> None:
        store = self.offline_store
        await store.adapter_for(model_name).delete_record(store, model_name, record_id)
        record = store.loaded_record(model_name, record_id)
        if record is not None:
            await store.unload_record(record)

"""
Record store.

A Store keeps an identity map of loaded records and talks to persistence
through per-model adapters and serializers. The online store and the
offline store behind a RoutingStore are both Store instances that differ
only in the adapters registered on them.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..exceptions import AdapterNotFoundError
from ..logging_utils import StoreLoggerAdapter
from ..protocol import Adapter, Record, Serializer, StoreContract
from .serializer import JSONSerializer

logger = logging.getLogger(__name__)

# Registry key used when no model-specific adapter/serializer exists.
APPLICATION = "application"


class RecordReference:
    """Lazy handle on a record that may or may not be loaded yet."""

    def __init__(self, store: Store, model_name: str, record_id: str) -> None:
        self.store = store
        self.model_name = model_name
        self.record_id = record_id

    def value(self) -> Record | None:
        """Return the record if it is loaded, without fetching."""
        return self.store.loaded_record(self.model_name, self.record_id)

    async def load(self) -> Record:
        """Return the record, fetching it if needed."""
        return await self.store.find_record(self.model_name, self.record_id)

    async def reload(self) -> Record:
        """Fetch the record again even if it is loaded."""
        return await self.store.find_record(self.model_name, self.record_id, {"reload": True})

    def __repr__(self) -> str:
        return f"RecordReference({self.model_name}:{self.record_id})"


class Store(StoreContract):
    """Identity-mapped record store over pluggable adapters.

    Adapters and serializers are looked up by model name first and fall
    back to the ``"application"`` entry. A store with no serializer
    registered uses a JSONSerializer.

    Operations with an override slot take a trailing ``use_online_store``
    argument and ignore it; only the router in front of the store reads it.
    """

    def __init__(
        self,
        name: str = "store",
        adapters: Mapping[str, Adapter] | None = None,
        serializers: Mapping[str, Serializer] | None = None,
    ) -> None:
        self.name = name
        self._adapters: dict[str, Adapter] = dict(adapters or {})
        self._serializers: dict[str, Serializer] = dict(serializers or {})
        self._default_serializer = JSONSerializer()
        self._records: dict[str, dict[str, Record]] = {}
        self._log = StoreLoggerAdapter(logger, {"store": name})

    def __repr__(self) -> str:
        return f"Store(name={self.name!r})"

    # Registry

    def register_adapter(self, model_name: str, adapter: Adapter) -> None:
        self._adapters[model_name] = adapter

    def register_serializer(self, model_name: str, serializer: Serializer) -> None:
        self._serializers[model_name] = serializer

    def adapter_for(self, model_name: str) -> Adapter:
        """Return the adapter for a model.

        Raises:
            AdapterNotFoundError: If neither the model nor "application" has one
        """
        adapter = self._adapters.get(model_name) or self._adapters.get(APPLICATION)
        if adapter is None:
            raise AdapterNotFoundError("adapter", model_name)
        return adapter

    def serializer_for(self, model_name: str) -> Serializer:
        return (
            self._serializers.get(model_name)
            or self._serializers.get(APPLICATION)
            or self._default_serializer
        )

    # Fetching

    async def find_all(self, model_name: str, options: Mapping[str, Any] | None = None) -> list[Record]:
        payload = await self.adapter_for(model_name).find_all(self, model_name)
        return self._push_response(model_name, payload, "find_all") or []

    async def find_record(
        self, model_name: str, record_id: str, options: Mapping[str, Any] | None = None
    ) -> Record:
        """Return a record, from the identity map unless ``options["reload"]`` is set.

        Raises:
            RecordNotFoundError: If the adapter has no such record
        """
        record_id = str(record_id)
        if not (options or {}).get("reload"):
            cached = self.loaded_record(model_name, record_id)
            if cached is not None:
                return cached

        self._log.debug(f"Fetching {model_name}:{record_id}")
        payload = await self.adapter_for(model_name).find_record(self, model_name, record_id)
        return self._push_response(model_name, payload, "find_record")

    async def reload_record(self, record: Record) -> Record:
        payload = await self.adapter_for(record.model_name).find_record(
            self, record.model_name, record.id
        )
        return self._push_response(record.model_name, payload, "find_record")

    async def query(self, model_name: str, query: Mapping[str, Any] | None = None) -> list[Record]:
        payload = await self.adapter_for(model_name).query(self, model_name, dict(query or {}))
        return self._push_response(model_name, payload, "query") or []

    async def query_record(
        self, model_name: str, query: Mapping[str, Any] | None = None
    ) -> Record | None:
        payload = await self.adapter_for(model_name).query_record(
            self, model_name, dict(query or {})
        )
        return self._push_response(model_name, payload, "query_record")

    # Writing

    async def create_record(
        self,
        model_name: str,
        properties: Mapping[str, Any] | None = None,
        use_online_store: bool | None = None,
    ) -> Record:
        payload = await self.adapter_for(model_name).create_record(
            self, model_name, dict(properties or {})
        )
        return self._push_response(model_name, payload, "create_record")

    async def delete_record(self, record: Record, use_online_store: bool | None = None) -> None:
        await self.adapter_for(record.model_name).delete_record(self, record.model_name, record.id)
        self._unload(record.model_name, record.id)

    # Identity map

    async def get_reference(
        self, model_name: str, record_id: str, use_online_store: bool | None = None
    ) -> RecordReference:
        return RecordReference(self, model_name, str(record_id))

    async def has_record_for_id(
        self, model_name: str, record_id: str, use_online_store: bool | None = None
    ) -> bool:
        return self.loaded_record(model_name, record_id) is not None

    async def record_is_loaded(
        self, model_name: str, record_id: str, use_online_store: bool | None = None
    ) -> bool:
        return self.loaded_record(model_name, record_id) is not None

    async def normalize(
        self, model_name: str, payload: dict[str, Any], use_online_store: bool | None = None
    ) -> dict[str, Any]:
        return self.serializer_for(model_name).normalize(model_name, payload)

    async def peek_all(self, model_name: str, use_online_store: bool | None = None) -> list[Record]:
        return list(self._records.get(model_name, {}).values())

    async def peek_record(
        self, model_name: str, record_id: str, use_online_store: bool | None = None
    ) -> Record | None:
        return self.loaded_record(model_name, record_id)

    async def push(
        self, document: dict[str, Any], use_online_store: bool | None = None
    ) -> Record | list[Record] | None:
        return self._push_document(document)

    async def push_payload(
        self, model_name: str, payload: Any, use_online_store: bool | None = None
    ) -> None:
        self._push_response(model_name, payload, "push_payload")

    async def unload_all(
        self, model_name: str | None = None, use_online_store: bool | None = None
    ) -> None:
        if model_name is None:
            self._records.clear()
        else:
            self._records.pop(model_name, None)

    async def unload_record(self, record: Record, use_online_store: bool | None = None) -> None:
        self._unload(record.model_name, record.id)

    def loaded_record(self, model_name: str, record_id: str) -> Record | None:
        """Synchronous identity-map lookup."""
        return self._records.get(model_name, {}).get(str(record_id))

    # Internals

    def _push_response(self, model_name: str, payload: Any, request_type: str) -> Any:
        document = self.serializer_for(model_name).normalize_response(
            model_name, payload, request_type
        )
        return self._push_document(document)

    def _push_document(self, document: dict[str, Any]) -> Record | list[Record] | None:
        data = document.get("data")
        if data is None:
            return None
        if isinstance(data, list):
            return [self._load(resource) for resource in data]
        return self._load(data)

    def _load(self, resource: dict[str, Any]) -> Record:
        model_name = resource["type"]
        record_id = str(resource["id"])
        attributes = dict(resource.get("attributes") or {})
        table = self._records.setdefault(model_name, {})

        record = table.get(record_id)
        if record is None:
            record = Record(model_name=model_name, id=record_id, attributes=attributes)
            table[record_id] = record
        else:
            record.attributes.update(attributes)
        return record

    def _unload(self, model_name: str, record_id: str) -> None:
        self._records.get(model_name, {}).pop(str(record_id), None)

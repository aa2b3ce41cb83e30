"""
Store, adapter and serializer contracts.

Both stores behind the router, online and offline, implement StoreContract.
Every operation except adapter/serializer lookup is a coroutine. Every
operation that has an override slot accepts a trailing ``use_online_store``
argument and ignores it, so the router can forward argument lists verbatim.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Key carrying the per-call routing override inside options/query mappings.
USE_ONLINE_STORE = "useOnlineStore"

# Key merged into options when offline bookkeeping must be skipped.
BYPASS = "bypass"


class ShapeClass(Enum):
    """Result cardinality of an operation, used to pick decoration behaviour.

    SINGLE: One record
    MULTIPLE: A collection of records
    BULK_WRITE: Several records written at once
    NONE: Not decorated
    """

    SINGLE = "single"
    MULTIPLE = "multiple"
    BULK_WRITE = "bulk-write"
    NONE = "none"


@dataclass
class Record:
    """A loaded record.

    Attributes:
        model_name: Model (type) name, e.g. "post"
        id: Record identifier, always a string
        attributes: Attribute values
    """

    model_name: str
    id: str
    attributes: dict[str, Any] = field(default_factory=dict)

    def to_document(self) -> dict[str, Any]:
        """Return the record as a normalized single-resource document."""
        return {
            "data": {
                "type": self.model_name,
                "id": self.id,
                "attributes": dict(self.attributes),
            }
        }


class Adapter(ABC):
    """Persistence adapter used by a store for one or more models.

    Adapters speak raw payloads (flat dicts holding an ``id``); the
    serializer turns them into normalized documents.
    """

    @abstractmethod
    async def find_record(self, store: Any, model_name: str, record_id: str) -> dict[str, Any]:
        """Fetch one payload.

        Raises:
            RecordNotFoundError: If no such record exists
        """
        ...

    @abstractmethod
    async def find_all(self, store: Any, model_name: str) -> list[dict[str, Any]]:
        """Fetch every payload of a model."""
        ...

    @abstractmethod
    async def query(
        self, store: Any, model_name: str, query: Mapping[str, Any]
    ) -> list[dict[str, Any]]:
        """Fetch payloads matching a query."""
        ...

    @abstractmethod
    async def query_record(
        self, store: Any, model_name: str, query: Mapping[str, Any]
    ) -> dict[str, Any] | None:
        """Fetch the first payload matching a query, or None."""
        ...

    @abstractmethod
    async def create_record(
        self, store: Any, model_name: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        """Persist a new payload and return it as stored."""
        ...

    @abstractmethod
    async def update_record(
        self, store: Any, model_name: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        """Persist an existing payload (insert if missing) and return it."""
        ...

    @abstractmethod
    async def delete_record(self, store: Any, model_name: str, record_id: str) -> None:
        """Remove a payload."""
        ...

    async def batch_update(
        self, store: Any, model_name: str, payloads: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        """Persist several payloads. Defaults to one update per payload."""
        return [await self.update_record(store, model_name, p) for p in payloads]


class Serializer(ABC):
    """Converts between raw payloads and normalized documents."""

    @abstractmethod
    def normalize(self, model_name: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Normalize a single payload into a single-resource document."""
        ...

    @abstractmethod
    def normalize_response(
        self,
        model_name: str,
        payload: dict[str, Any] | list[dict[str, Any]] | None,
        request_type: str,
    ) -> dict[str, Any]:
        """Normalize an adapter response into a document."""
        ...

    @abstractmethod
    def serialize(self, record: Record) -> dict[str, Any]:
        """Turn a record into a raw payload."""
        ...


class StoreContract(ABC):
    """Operation surface shared by the online store, the offline store
    and the router in front of them."""

    @abstractmethod
    async def find_all(self, model_name: str, options: Mapping[str, Any] | None = None) -> list[Record]:
        ...

    @abstractmethod
    async def find_record(
        self, model_name: str, record_id: str, options: Mapping[str, Any] | None = None
    ) -> Record:
        ...

    @abstractmethod
    async def reload_record(self, record: Record) -> Record:
        ...

    @abstractmethod
    async def query(self, model_name: str, query: Mapping[str, Any] | None = None) -> list[Record]:
        ...

    @abstractmethod
    async def query_record(
        self, model_name: str, query: Mapping[str, Any] | None = None
    ) -> Record | None:
        ...

    @abstractmethod
    async def create_record(
        self,
        model_name: str,
        properties: Mapping[str, Any] | None = None,
        use_online_store: bool | None = None,
    ) -> Record:
        ...

    @abstractmethod
    async def delete_record(self, record: Record, use_online_store: bool | None = None) -> None:
        ...

    @abstractmethod
    async def get_reference(
        self, model_name: str, record_id: str, use_online_store: bool | None = None
    ) -> Any:
        ...

    @abstractmethod
    async def has_record_for_id(
        self, model_name: str, record_id: str, use_online_store: bool | None = None
    ) -> bool:
        ...

    @abstractmethod
    async def normalize(
        self, model_name: str, payload: dict[str, Any], use_online_store: bool | None = None
    ) -> dict[str, Any]:
        ...

    @abstractmethod
    async def peek_all(self, model_name: str, use_online_store: bool | None = None) -> list[Record]:
        ...

    @abstractmethod
    async def peek_record(
        self, model_name: str, record_id: str, use_online_store: bool | None = None
    ) -> Record | None:
        ...

    @abstractmethod
    async def push(
        self, document: dict[str, Any], use_online_store: bool | None = None
    ) -> Record | list[Record] | None:
        ...

    @abstractmethod
    async def push_payload(
        self, model_name: str, payload: Any, use_online_store: bool | None = None
    ) -> None:
        ...

    @abstractmethod
    async def record_is_loaded(
        self, model_name: str, record_id: str, use_online_store: bool | None = None
    ) -> bool:
        ...

    @abstractmethod
    async def unload_all(
        self, model_name: str | None = None, use_online_store: bool | None = None
    ) -> None:
        ...

    @abstractmethod
    async def unload_record(self, record: Record, use_online_store: bool | None = None) -> None:
        ...

    @abstractmethod
    def adapter_for(self, model_name: str) -> Adapter:
        ...

    @abstractmethod
    def serializer_for(self, model_name: str) -> Serializer:
        ...

"""
In-memory persistence adapter.

Keeps one table per model. Used as the offline store's default adapter and
as a stand-in for a remote service in tests.
"""

from __future__ import annotations

import copy
import uuid
from collections.abc import Mapping
from typing import Any

from ..exceptions import RecordNotFoundError
from ..protocol import Adapter


class MemoryAdapter(Adapter):
    """Adapter storing payloads in process memory.

    Queries match by attribute equality on every key of the query mapping.
    Payloads are copied on the way in and out so callers never share state
    with the tables.
    """

    def __init__(self, tables: dict[str, dict[str, dict[str, Any]]] | None = None) -> None:
        self._tables: dict[str, dict[str, dict[str, Any]]] = {}
        for model_name, rows in (tables or {}).items():
            for row in rows.values():
                self._table(model_name)[str(row["id"])] = copy.deepcopy(row)

    def _table(self, model_name: str) -> dict[str, dict[str, Any]]:
        return self._tables.setdefault(model_name, {})

    def rows(self, model_name: str) -> list[dict[str, Any]]:
        """Return a copy of every row stored for a model."""
        return [copy.deepcopy(row) for row in self._table(model_name).values()]

    async def find_record(self, store: Any, model_name: str, record_id: str) -> dict[str, Any]:
        row = self._table(model_name).get(str(record_id))
        if row is None:
            raise RecordNotFoundError(model_name, str(record_id))
        return copy.deepcopy(row)

    async def find_all(self, store: Any, model_name: str) -> list[dict[str, Any]]:
        return self.rows(model_name)

    async def query(
        self, store: Any, model_name: str, query: Mapping[str, Any]
    ) -> list[dict[str, Any]]:
        return [row for row in self.rows(model_name) if _matches(row, query)]

    async def query_record(
        self, store: Any, model_name: str, query: Mapping[str, Any]
    ) -> dict[str, Any] | None:
        for row in self.rows(model_name):
            if _matches(row, query):
                return row
        return None

    async def create_record(
        self, store: Any, model_name: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        row = copy.deepcopy(payload)
        if row.get("id") is None:
            row["id"] = str(uuid.uuid4())
        row["id"] = str(row["id"])
        self._table(model_name)[row["id"]] = row
        return copy.deepcopy(row)

    async def update_record(
        self, store: Any, model_name: str, payload: dict[str, Any]
    ) -> dict[str, Any]:
        row = copy.deepcopy(payload)
        row["id"] = str(row["id"])
        existing = self._table(model_name).get(row["id"], {})
        existing.update(row)
        self._table(model_name)[row["id"]] = existing
        return copy.deepcopy(existing)

    async def delete_record(self, store: Any, model_name: str, record_id: str) -> None:
        self._table(model_name).pop(str(record_id), None)


def _matches(row: dict[str, Any], query: Mapping[str, Any]) -> bool:
    return all(row.get(key) == value for key, value in query.items())

"""
JSON serializer for flat payloads.

A raw payload is a flat dict with an ``id`` key; everything else is an
attribute. Normalized documents follow the JSON:API resource layout.
"""

from __future__ import annotations

from typing import Any

from ..protocol import Record, Serializer


class JSONSerializer(Serializer):
    """Serializer for flat ``{"id": ..., **attributes}`` payloads."""

    primary_key = "id"

    def normalize(self, model_name: str, payload: dict[str, Any]) -> dict[str, Any]:
        return {"data": self._resource(model_name, payload)}

    def normalize_response(
        self,
        model_name: str,
        payload: dict[str, Any] | list[dict[str, Any]] | None,
        request_type: str,
    ) -> dict[str, Any]:
        """Normalize an adapter response.

        Args:
            model_name: Model the request was made for
            payload: A single payload, a list of payloads or None
            request_type: Name of the adapter method that produced the payload

        Returns:
            Document whose ``data`` is a resource, a list of resources or None
        """
        if payload is None:
            return {"data": None}
        if isinstance(payload, list):
            return {"data": [self._resource(model_name, item) for item in payload]}
        return {"data": self._resource(model_name, payload)}

    def serialize(self, record: Record) -> dict[str, Any]:
        payload = dict(record.attributes)
        payload[self.primary_key] = record.id
        return payload

    def _resource(self, model_name: str, payload: dict[str, Any]) -> dict[str, Any]:
        attributes = {k: v for k, v in payload.items() if k != self.primary_key}
        record_id = payload.get(self.primary_key)
        return {
            "type": model_name,
            "id": None if record_id is None else str(record_id),
            "attributes": attributes,
        }

"""
Change journal for synchronization.

Records every change applied to the offline store on behalf of the online
path, in a JSONL file that survives restarts. Entries stay pending until
marked synced.
"""

import asyncio
import json
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os


class ChangeType(Enum):
    """Type of change being tracked."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class ChangeRecord:
    """Record of a single change.

    Attributes:
        change_id: Unique identifier for this change
        model_name: Model of the changed record
        record_id: ID of the changed record
        change_type: Type of change
        data: Payload (None for deletes)
        timestamp: When the change occurred
        retries: Number of failed sync attempts
        last_error: Last error message if sync failed
    """

    change_id: str
    model_name: str
    record_id: str
    change_type: ChangeType
    data: dict[str, Any] | None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    retries: int = 0
    last_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "change_id": self.change_id,
            "model_name": self.model_name,
            "record_id": self.record_id,
            "change_type": self.change_type.value,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
            "retries": self.retries,
            "last_error": self.last_error,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ChangeRecord":
        timestamp = data.get("timestamp")
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)
        elif timestamp is None:
            timestamp = datetime.now(UTC)

        return cls(
            change_id=data["change_id"],
            model_name=data["model_name"],
            record_id=data["record_id"],
            change_type=ChangeType(data["change_type"]),
            data=data.get("data"),
            timestamp=timestamp,
            retries=data.get("retries", 0),
            last_error=data.get("last_error"),
        )


class ChangeTracker:
    """Tracks and persists changes for synchronization.

    Pass ``queue_path=None`` to keep the journal in memory only.
    """

    def __init__(self, queue_path: Path | None = None):
        self.queue_path = queue_path
        self._changes: list[ChangeRecord] = []
        self._loaded = False
        self._lock = asyncio.Lock()

    async def _ensure_loaded(self) -> None:
        """Load changes from disk if not already loaded.

        Concurrent first callers wait on the lock; only one of them reads
        the file.
        """
        if self._loaded:
            return

        async with self._lock:
            if self._loaded:
                return

            loaded: list[ChangeRecord] = []
            if self.queue_path is not None and await aiofiles.os.path.exists(self.queue_path):
                try:
                    async with aiofiles.open(self.queue_path, encoding="utf-8") as f:
                        content = await f.read()
                    for line in content.strip().split("\n"):
                        if line:
                            loaded.append(ChangeRecord.from_dict(json.loads(line)))
                except (json.JSONDecodeError, KeyError, ValueError, OSError):
                    # Corrupted journal, start fresh
                    loaded = []

            self._changes = loaded
            self._loaded = True

    async def _persist(self) -> None:
        if self.queue_path is None:
            return

        async with self._lock:
            await aiofiles.os.makedirs(self.queue_path.parent, exist_ok=True)
            content = "".join(json.dumps(change.to_dict()) + "\n" for change in self._changes)
            async with aiofiles.open(self.queue_path, "w", encoding="utf-8") as f:
                await f.write(content)

    async def track(
        self,
        model_name: str,
        record_id: str,
        change_type: ChangeType,
        data: dict[str, Any] | None = None,
    ) -> ChangeRecord:
        """Append a change to the journal.

        Args:
            model_name: Model of the changed record
            record_id: ID of the changed record
            change_type: Type of change
            data: Payload (omit for deletes)

        Returns:
            Created ChangeRecord
        """
        await self._ensure_loaded()

        change = ChangeRecord(
            change_id=str(uuid.uuid4()),
            model_name=model_name,
            record_id=str(record_id),
            change_type=change_type,
            data=data,
        )

        self._changes.append(change)
        await self._persist()
        return change

    async def get_pending_changes(
        self,
        model_name: str | None = None,
        max_retries: int = 5,
    ) -> list[ChangeRecord]:
        """Get pending changes, oldest first.

        Args:
            model_name: Filter by model (optional)
            max_retries: Exclude changes with this many retries or more
        """
        await self._ensure_loaded()

        changes = self._changes
        if model_name:
            changes = [c for c in changes if c.model_name == model_name]
        return [c for c in changes if c.retries < max_retries]

    async def get_pending_count(self, model_name: str | None = None) -> int:
        changes = await self.get_pending_changes(model_name)
        return len(changes)

    async def mark_synced(self, change_id: str) -> bool:
        """Remove a change from the journal.

        Returns:
            True if change was found and removed
        """
        await self._ensure_loaded()

        original_count = len(self._changes)
        self._changes = [c for c in self._changes if c.change_id != change_id]

        if len(self._changes) < original_count:
            await self._persist()
            return True
        return False

    async def mark_failed(self, change_id: str, error: str) -> bool:
        """Increment the retry count of a change.

        Returns:
            True if change was found and updated
        """
        await self._ensure_loaded()

        for change in self._changes:
            if change.change_id == change_id:
                change.retries += 1
                change.last_error = error
                await self._persist()
                return True
        return False

    async def clear_model(self, model_name: str) -> int:
        """Drop every change for a model.

        Returns:
            Number of changes removed
        """
        await self._ensure_loaded()

        original_count = len(self._changes)
        self._changes = [c for c in self._changes if c.model_name != model_name]

        if len(self._changes) < original_count:
            await self._persist()
        return original_count - len(self._changes)

    async def clear_all(self) -> int:
        await self._ensure_loaded()

        count = len(self._changes)
        self._changes = []
        await self._persist()
        return count

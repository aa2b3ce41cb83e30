"""
Synchronization bookkeeping.

Decorators wrap online operations, adapters and serializers so that
fetched and written records are mirrored into the offline store by a
Syncer, with writes journaled by a ChangeTracker.
"""

from .decorators import (
    DecoratedAdapter,
    DecoratedSerializer,
    decorate_adapter,
    decorate_api_call,
    decorate_serializer,
)
from .syncer import JournalSyncer, Syncer
from .tracker import ChangeRecord, ChangeTracker, ChangeType

__all__ = [
    "decorate_api_call",
    "decorate_adapter",
    "decorate_serializer",
    "DecoratedAdapter",
    "DecoratedSerializer",
    "Syncer",
    "JournalSyncer",
    "ChangeTracker",
    "ChangeRecord",
    "ChangeType",
]

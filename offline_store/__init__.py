"""
Offline Store

Connectivity-aware data access: a routing store that sends every read,
write and query either to an online store or to an offline store, and keeps
the offline store in sync with what passes through the online path.

Provides:
- RoutingStore façade with per-call ``useOnlineStore`` overrides
- Identity-mapped Store over pluggable adapters and serializers
- Sync bookkeeping via decorated calls, adapters and serializers
- Connectivity flags from code, environment or YAML, plus a network reachability check

Usage:

    >>> from offline_store import OfflineGlobals, RoutingStore, Store, MemoryAdapter
    >>> online = Store(name="online", adapters={"application": my_remote_adapter})
    >>> router = RoutingStore.create(online_store=online, offline_globals=OfflineGlobals())
    >>> post = await router.find_record("post", "1")          # online, synced down
    >>> cached = await router.find_record("post", "1", {"useOnlineStore": False})
    >>> await router.delete_record(post, False)                # offline store only
"""

from .config import ConnectivityProvider, OfflineGlobals
from .connectivity import ConnectivityMonitor
from .exceptions import (
    AdapterNotFoundError,
    DecorationError,
    OfflineStoreError,
    RecordNotFoundError,
    StoreResolutionError,
    SyncError,
)
from .logging_utils import JsonLogFormatter, configure_logging
from .protocol import (
    BYPASS,
    USE_ONLINE_STORE,
    Adapter,
    Record,
    Serializer,
    ShapeClass,
    StoreContract,
)
from .routing import CALL_DESCRIPTORS, CallDescriptor, RoutingStore, decide
from .store import APPLICATION, JSONSerializer, MemoryAdapter, RecordReference, Store
from .sync import (
    ChangeRecord,
    ChangeTracker,
    ChangeType,
    JournalSyncer,
    Syncer,
    decorate_adapter,
    decorate_api_call,
    decorate_serializer,
)

__all__ = [
    # Routing
    "RoutingStore",
    "CallDescriptor",
    "CALL_DESCRIPTORS",
    "ShapeClass",
    "decide",
    # Contracts
    "StoreContract",
    "Adapter",
    "Serializer",
    "Record",
    "USE_ONLINE_STORE",
    "BYPASS",
    # Stores
    "Store",
    "RecordReference",
    "MemoryAdapter",
    "JSONSerializer",
    "APPLICATION",
    # Sync
    "Syncer",
    "JournalSyncer",
    "ChangeTracker",
    "ChangeRecord",
    "ChangeType",
    "decorate_api_call",
    "decorate_adapter",
    "decorate_serializer",
    # Connectivity
    "ConnectivityProvider",
    "OfflineGlobals",
    "ConnectivityMonitor",
    # Logging
    "JsonLogFormatter",
    "configure_logging",
    # Exceptions
    "OfflineStoreError",
    "StoreResolutionError",
    "DecorationError",
    "RecordNotFoundError",
    "AdapterNotFoundError",
    "SyncError",
]

__version__ = "0.1.0"

"""
Record stores.

Provides the identity-mapped Store used on both sides of the router, plus
the in-memory adapter and JSON serializer it ships with.
"""

from .base import APPLICATION, RecordReference, Store
from .memory import MemoryAdapter
from .serializer import JSONSerializer

__all__ = [
    "APPLICATION",
    "Store",
    "RecordReference",
    "MemoryAdapter",
    "JSONSerializer",
]

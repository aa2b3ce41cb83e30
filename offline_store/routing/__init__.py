"""
Routing between the online and offline stores.
"""

from .descriptors import CALL_DESCRIPTORS, CallDescriptor, ShapeClass, decide
from .router import RoutingStore, default_online_store

__all__ = [
    "RoutingStore",
    "default_online_store",
    "CallDescriptor",
    "CALL_DESCRIPTORS",
    "ShapeClass",
    "decide",
]

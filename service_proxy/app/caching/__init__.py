"""
Proxy caching package.

Holds the single-entry volatile cache and the read-through service that
layers it over the local snapshot and the upstream API.
"""

from .volatile_cache import VolatileCache, CacheEntry
from .read_through import ReadThroughService, ProxyResult, RESOURCE_KEY

__all__ = [
    "VolatileCache",
    "CacheEntry",
    "ReadThroughService",
    "ProxyResult",
    "RESOURCE_KEY",
]

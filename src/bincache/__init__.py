"""bincache: cross-process cache of prebuilt framework binaries."""

__version__ = "0.1.0"

from bincache.cache import BinariesCache, CacheConfig, EntryLock
from bincache.fetchers import create_fetcher
from bincache.models import Dependency, PinnedVersion, Platform

__all__ = [
    "BinariesCache",
    "CacheConfig",
    "Dependency",
    "EntryLock",
    "PinnedVersion",
    "Platform",
    "create_fetcher",
    "__version__",
]

"""Cross-process binaries cache.

Key components:
- BinariesCache: Locked, validated lookup and storage of archives
- CacheConfig: Configuration management
- EntryLock: Per-entry cross-process lock
- cache_file_path: Cache key to storage path mapping
- VersionFile / is_file_valid: Platform coverage validation
"""

from bincache.cache.config import CacheConfig, get_global_config, set_global_config
from bincache.cache.lock import EntryLock
from bincache.cache.manager import BinariesCache
from bincache.cache.paths import cache_file_path
from bincache.cache.version_file import VersionFile, is_file_valid

__all__ = [
    "BinariesCache",
    "CacheConfig",
    "EntryLock",
    "VersionFile",
    "cache_file_path",
    "is_file_valid",
    "get_global_config",
    "set_global_config",
]

"""Binaries cache: locked, validated access to prebuilt dependency archives."""

import logging
import shutil
from pathlib import Path
from typing import Iterable, Optional

import httpx

from bincache.binary_project import BinaryProject
from bincache.cache.config import CacheConfig
from bincache.cache.lock import EntryLock
from bincache.cache.paths import cache_file_path
from bincache.cache.version_file import is_file_valid
from bincache.errors import BinariesCacheError, CachePermissionError
from bincache.fetchers.base import BaseFetcher
from bincache.files import staged_file
from bincache.models import Dependency, PinnedVersion, Platform

logger = logging.getLogger(__name__)


class BinariesCache:
    """Resolves dependency versions to locked, valid archives in the cache.

    Every access to an entry goes through its ``EntryLock``, so processes
    racing on the same dependency, version and configuration serialize: the
    first one fetches, the others find a valid archive once they get the lock.

    Args:
        fetcher: Strategy used to populate missing or invalid entries
        config: Cache configuration (defaults apply if None)
    """

    def __init__(self, fetcher: BaseFetcher, config: Optional[CacheConfig] = None):
        self.fetcher = fetcher
        self.config = config or CacheConfig()

    @property
    def cache_dir(self) -> Path:
        return self.config.cache_dir

    def file_path(
        self,
        dependency: Dependency,
        pinned_version: PinnedVersion,
        configuration: str,
        toolchain_version: str,
        resolved_dependencies_hash: Optional[str] = None,
        binary_project: Optional[BinaryProject] = None,
    ) -> Path:
        return cache_file_path(
            self.cache_dir,
            dependency,
            pinned_version,
            configuration,
            toolchain_version,
            resolved_dependencies_hash,
            binary_project,
        )

    def resolve(
        self,
        dependency: Dependency,
        pinned_version: PinnedVersion,
        configuration: str,
        toolchain_version: str,
        resolved_dependencies_hash: Optional[str] = None,
        strict_match: Optional[bool] = None,
        platforms: Optional[Iterable[Platform]] = None,
        credentials: Optional[httpx.Auth] = None,
        binary_project: Optional[BinaryProject] = None,
    ) -> Optional[EntryLock]:
        """Get a locked archive for a dependency version, fetching it if needed.

        Args:
            dependency: Dependency to resolve
            pinned_version: Resolved version
            configuration: Build configuration
            toolchain_version: Toolchain version the binary must match
            resolved_dependencies_hash: Fingerprint of the dependency graph
            strict_match: Key the entry on the hash too (config default if None)
            platforms: Platforms the archive must cover (config default if None)
            credentials: HTTP credentials for the fetcher (config netrc if None)
            binary_project: Manifest of a binary-only dependency

        Returns:
            Held EntryLock on an existing archive, or None on a cache miss.
            The caller must release the lock once done with the archive.

        Raises:
            CacheLockError: If the entry lock is not acquired in time
            BinariesCacheError: If fetching fails fatally
        """
        if strict_match is None:
            strict_match = self.config.strict_match
        if platforms is None:
            platforms = self.config.platforms
        platforms = set(platforms)
        if credentials is None:
            credentials = self.config.credentials()

        path = self.file_path(
            dependency,
            pinned_version,
            configuration,
            toolchain_version,
            resolved_dependencies_hash if strict_match else None,
            binary_project,
        )

        lock = EntryLock.acquire(path, self.config.lock_timeout)
        keep_lock = False
        try:
            if is_file_valid(path, dependency, platforms):
                logger.info(f"Cache hit for {dependency.name} {pinned_version} at {path}")
                keep_lock = True
                return lock

            self._discard(path)
            self.fetcher.download(
                dependency,
                pinned_version,
                configuration,
                resolved_dependencies_hash,
                toolchain_version,
                path,
                credentials,
            )

            if path.is_file():
                logger.info(f"Cached {dependency.name} {pinned_version} at {path}")
                keep_lock = True
                return lock

            logger.info(f"Cache miss for {dependency.name} {pinned_version}")
            return None
        finally:
            if not keep_lock:
                lock.release()

    def _discard(self, path: Path) -> None:
        """Remove an entry that failed validation."""
        if not path.exists():
            return
        logger.info(f"Discarding invalid cached binary {path}")
        try:
            path.unlink()
        except PermissionError as e:
            raise CachePermissionError(f"Cannot remove cache file {path}: {e}") from e
        except OSError as e:
            raise BinariesCacheError(f"Cannot remove cache file {path}: {e}") from e

    def store_file(
        self,
        source: Path,
        dependency: Dependency,
        pinned_version: PinnedVersion,
        configuration: str,
        toolchain_version: str,
        resolved_dependencies_hash: Optional[str] = None,
        delete_source: bool = False,
    ) -> Path:
        """Store a locally built archive in the cache.

        Args:
            source: Archive to store
            dependency: Dependency the archive belongs to
            pinned_version: Version it was built from
            configuration: Build configuration
            toolchain_version: Toolchain it was built with
            resolved_dependencies_hash: Include in the key (strict matching)
            delete_source: Move the archive instead of copying it

        Returns:
            Path of the cache entry

        Raises:
            CacheLockError: If the entry lock is not acquired in time
            BinariesCacheError: If the archive cannot be written
        """
        path = self.file_path(
            dependency,
            pinned_version,
            configuration,
            toolchain_version,
            resolved_dependencies_hash,
        )
        with EntryLock.acquire(path, self.config.lock_timeout):
            with staged_file(path) as staging:
                try:
                    if delete_source:
                        shutil.move(str(source), str(staging))
                    else:
                        shutil.copy2(source, staging)
                except PermissionError as e:
                    raise CachePermissionError(f"Cannot write cache file {path}: {e}") from e
                except OSError as e:
                    logger.error(f"Error storing {source} in cache: {e}")
                    raise BinariesCacheError(f"Cannot store {source} in cache: {e}") from e
        logger.info(f"Stored {dependency.name} {pinned_version} at {path}")
        return path

"""Base fetcher interface.

A fetcher knows how to populate one cache path from a backing store. The cache
decides hit or miss from the file system alone, so the contract is:

- write the artifact to ``destination`` (atomically, via ``staged_file``), or
- return without writing anything, which the cache reports as a miss, or
- raise, which the cache propagates as a fatal error.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

import httpx

from bincache.events import EventObserver, send_event
from bincache.models import Dependency, PinnedVersion


class BaseFetcher(ABC):
    """Abstract base class for binary fetchers.

    Examples:
        Create a custom fetcher:
        >>> class MirrorFetcher(BaseFetcher):
        ...     def download(self, dependency, pinned_version, configuration,
        ...                  resolved_dependencies_hash, toolchain_version,
        ...                  destination, credentials=None):
        ...         with staged_file(destination) as staging:
        ...             mirror.copy(dependency.name, str(pinned_version), staging)
    """

    def __init__(self, event_observer: Optional[EventObserver] = None):
        self.event_observer = event_observer

    def send(self, event) -> None:
        send_event(self.event_observer, event)

    @abstractmethod
    def download(
        self,
        dependency: Dependency,
        pinned_version: PinnedVersion,
        configuration: str,
        resolved_dependencies_hash: Optional[str],
        toolchain_version: str,
        destination: Path,
        credentials: Optional[httpx.Auth] = None,
    ) -> None:
        """Populate ``destination`` with the binary for a dependency version.

        Args:
            dependency: Dependency to fetch
            pinned_version: Resolved version
            configuration: Build configuration
            resolved_dependencies_hash: Dependency-graph fingerprint
            toolchain_version: Toolchain version the binary must match
            destination: Cache path to write
            credentials: Optional HTTP credentials
        """
        pass

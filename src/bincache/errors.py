"""Exceptions raised by the binaries cache and its fetchers.

A cache miss is never an exception: ``BinariesCache.resolve`` returns None for
it. Everything below is fatal for the dependency being resolved.
"""

from typing import Optional

from bincache.models import Dependency


class BinariesCacheError(Exception):
    """Base exception for binaries cache errors."""

    pass


class CacheLockError(BinariesCacheError):
    """Raised when the lock for a cache entry cannot be acquired in time."""

    pass


class CachePermissionError(BinariesCacheError):
    """Raised when the cache directory cannot be created or written."""

    pass


class RequiredVersionNotFoundError(BinariesCacheError):
    """Raised when a binary manifest has no URL for the pinned version."""

    def __init__(self, dependency: Dependency, version_specifier: str):
        self.dependency = dependency
        self.version_specifier = version_specifier
        super().__init__(
            f"No available version for {dependency.name} satisfies the "
            f"requirement: {version_specifier}"
        )


class ReadFailedError(BinariesCacheError):
    """Raised when a URL could not be read at the transport level."""

    def __init__(self, url: str, cause: Exception):
        self.url = url
        self.cause = cause
        super().__init__(f"Failed to read {url}: {cause}")


class HTTPStatusError(BinariesCacheError):
    """Raised when a download answers with a non-2xx status."""

    def __init__(self, url: str, status_code: int):
        self.url = url
        self.status_code = status_code
        super().__init__(f"HTTP request to {url} failed with status code {status_code}")


class HostedReleaseError(BinariesCacheError):
    """Raised when a hosted-release lookup or download fails unrecoverably."""

    def __init__(self, dependency: Dependency, cause: Exception):
        self.dependency = dependency
        self.cause = cause
        super().__init__(f"GitHub API request for {dependency.name} failed: {cause}")


class ExternalCommandError(BinariesCacheError):
    """Raised when the external cache command exits with a non-zero status."""

    def __init__(self, command: str, returncode: int, stderr: Optional[str] = None):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        message = f"Cache command `{command}` failed with exit code {returncode}"
        if stderr:
            message += f": {stderr.strip()}"
        super().__init__(message)


class BinaryProjectError(BinariesCacheError):
    """Raised when a binary project manifest cannot be parsed."""

    pass

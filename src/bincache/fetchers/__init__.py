"""Fetchers populate cache entries from backing stores.

Available fetchers:
- StaticManifestFetcher: URLs listed in binary project manifests
- HostedReleaseFetcher: assets of GitHub releases
- ExternalCommandFetcher: a user-supplied shell command
- LocalFetcher: no backing store, only what is already cached
"""

from typing import Dict, Optional

from bincache.binary_project import BinaryProject
from bincache.cache.config import CacheConfig
from bincache.events import EventObserver
from bincache.fetchers.base import BaseFetcher
from bincache.fetchers.external_command import ExternalCommandFetcher, LocalFetcher
from bincache.fetchers.hosted_release import HostedReleaseFetcher
from bincache.fetchers.static_manifest import StaticManifestFetcher
from bincache.github import GitHubClient
from bincache.models import Dependency, DependencyKind


def create_fetcher(
    dependency: Dependency,
    config: CacheConfig,
    binary_projects: Optional[Dict[Dependency, BinaryProject]] = None,
    github_client: Optional[GitHubClient] = None,
    event_observer: Optional[EventObserver] = None,
) -> BaseFetcher:
    """Choose the fetcher for a dependency.

    A configured cache command takes precedence over everything else. Binary
    dependencies use their manifest, GitHub dependencies their releases, and
    other dependencies are only looked up locally.

    Args:
        dependency: Dependency to fetch
        config: Cache configuration
        binary_projects: Manifests of binary dependencies
        github_client: Client for release lookups (built from config if None)
        event_observer: Receives fetch events

    Returns:
        Fetcher instance
    """
    if config.cache_command:
        return ExternalCommandFetcher(config.cache_command, event_observer=event_observer)

    if dependency.kind is DependencyKind.BINARY:
        return StaticManifestFetcher(binary_projects or {}, event_observer=event_observer)

    if dependency.kind is DependencyKind.GITHUB:
        client = github_client or GitHubClient(token=config.github_token)
        return HostedReleaseFetcher(
            dependency.repository, client, event_observer=event_observer
        )

    return LocalFetcher(event_observer=event_observer)


__all__ = [
    "BaseFetcher",
    "StaticManifestFetcher",
    "HostedReleaseFetcher",
    "ExternalCommandFetcher",
    "LocalFetcher",
    "create_fetcher",
]

"""Fetcher for binaries attached to GitHub releases."""

import logging
import re
from pathlib import Path
from typing import FrozenSet, Iterable, Optional, Pattern, Union

import httpx

from bincache.errors import HostedReleaseError
from bincache.events import DownloadingBinaries, EventObserver, SkippedDownloadingBinaries
from bincache.fetchers.base import BaseFetcher
from bincache.files import staged_file
from bincache.github import (
    GitHubAPIError,
    GitHubClient,
    Release,
    ReleaseAsset,
    ReleaseNotFoundError,
)
from bincache.models import Dependency, PinnedVersion, Repository

logger = logging.getLogger(__name__)

BINARY_ASSET_PATTERN = re.compile(r"\.(xc)?framework")
BINARY_ASSET_CONTENT_TYPES = frozenset(
    {"application/zip", "application/x-zip-compressed", "application/octet-stream"}
)


class HostedReleaseFetcher(BaseFetcher):
    """Downloads the binary asset of the release tagged with the pinned version.

    A missing release, a draft or asset-less release, and API errors reported
    by GitHub all end as a miss, so that the dependency is built from source
    instead. Any other failure is fatal. If an authenticated attempt fails, the
    whole lookup is retried once without credentials.

    Args:
        repository: Repository whose releases are searched
        client: GitHub client
        asset_pattern: Regex an asset name must contain
        content_types: Accepted asset content types
        event_observer: Receives download and skip events
    """

    def __init__(
        self,
        repository: Repository,
        client: GitHubClient,
        asset_pattern: Union[str, Pattern[str]] = BINARY_ASSET_PATTERN,
        content_types: Iterable[str] = BINARY_ASSET_CONTENT_TYPES,
        event_observer: Optional[EventObserver] = None,
    ):
        super().__init__(event_observer)
        self.repository = repository
        self.client = client
        self.asset_pattern = re.compile(asset_pattern)
        self.content_types: FrozenSet[str] = frozenset(content_types)

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
        """Download the matching release asset into ``destination``.

        Raises:
            HostedReleaseError: For failures other than a missing release or
                a GitHub API error
        """
        try:
            self._download_matching_binary(
                self.client, dependency, pinned_version, destination
            )
            return
        except Exception as error:
            if not self.client.is_authenticated:
                self._handle_failure(dependency, error)
                return
            logger.warning(
                f"Authenticated release lookup for {dependency.name} failed ({error}), "
                "retrying without credentials"
            )

        try:
            self._download_matching_binary(
                self.client.unauthenticated(), dependency, pinned_version, destination
            )
        except Exception as error:
            self._handle_failure(dependency, error)

    def _handle_failure(self, dependency: Dependency, error: Exception) -> None:
        if isinstance(error, ReleaseNotFoundError):
            logger.info(f"No release of {dependency.name}: {error}")
            return
        if isinstance(error, GitHubAPIError):
            logger.info(f"Skipping binary download of {dependency.name}: {error.message}")
            self.send(SkippedDownloadingBinaries(dependency, error.message))
            return
        logger.error(f"Fetching binary of {dependency.name} failed: {error}")
        raise HostedReleaseError(dependency, error) from error

    def _download_matching_binary(
        self,
        client: GitHubClient,
        dependency: Dependency,
        pinned_version: PinnedVersion,
        destination: Path,
    ) -> None:
        release = client.release_for_tag(self.repository, pinned_version.commitish)
        if release.is_draft or not release.assets:
            logger.info(
                f"Release {release.tag} of {dependency.name} is a draft or has no assets"
            )
            return

        asset = self.matching_asset(release)
        if asset is None:
            logger.info(f"Release {release.tag} of {dependency.name} has no binary asset")
            return

        self.send(DownloadingBinaries(dependency, release.name_with_fallback))
        with staged_file(destination) as staging:
            client.download_asset(asset, staging)

    def matching_asset(self, release: Release) -> Optional[ReleaseAsset]:
        """Return the first asset that looks like a binary framework archive."""
        for asset in release.assets:
            if self.asset_pattern.search(asset.name) is None:
                continue
            if asset.content_type in self.content_types:
                return asset
        return None

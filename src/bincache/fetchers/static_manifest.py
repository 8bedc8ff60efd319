"""Fetcher for binary-only dependencies described by a manifest."""

import logging
from pathlib import Path
from typing import Dict, Optional

import httpx

from bincache.binary_project import BinaryProject
from bincache.errors import HTTPStatusError, RequiredVersionNotFoundError
from bincache.events import DownloadingBinaries, EventObserver
from bincache.fetchers.base import BaseFetcher
from bincache.files import staged_file
from bincache.http import HttpDownloader, is_success
from bincache.models import Dependency, PinnedVersion

logger = logging.getLogger(__name__)


class StaticManifestFetcher(BaseFetcher):
    """Downloads binaries from the URLs listed in binary project manifests.

    Args:
        binary_projects: Manifest of each binary dependency
        downloader: HTTP downloader (a default one is created when omitted)
        event_observer: Receives download events
    """

    def __init__(
        self,
        binary_projects: Dict[Dependency, BinaryProject],
        downloader: Optional[HttpDownloader] = None,
        event_observer: Optional[EventObserver] = None,
    ):
        super().__init__(event_observer)
        self.binary_projects = binary_projects
        self.downloader = downloader or HttpDownloader()

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
        """Download the manifest URL of this version into ``destination``.

        Raises:
            RequiredVersionNotFoundError: If the manifest has no URL for the version
            HTTPStatusError: If the server answers with a non-2xx status
            ReadFailedError: If the URL cannot be read
        """
        binary_project = self.binary_projects.get(dependency)
        source_url = None
        if binary_project is not None:
            source_url = binary_project.binary_url(
                pinned_version, configuration, toolchain_version
            )
        if source_url is None:
            raise RequiredVersionNotFoundError(dependency, pinned_version.version_specifier)

        self.send(DownloadingBinaries(dependency, str(pinned_version)))
        logger.info(f"Downloading {dependency.name} {pinned_version} from {source_url}")

        with staged_file(destination) as staging:
            status_code = self.downloader.download(source_url, staging, auth=credentials)
            if not is_success(status_code):
                logger.error(f"Download of {source_url} failed with status {status_code}")
                raise HTTPStatusError(source_url, status_code)

"""Fetchers backed by a user-supplied shell command."""

import logging
import os
import subprocess
from pathlib import Path
from typing import Dict, Optional

import httpx

from bincache.errors import ExternalCommandError
from bincache.events import DownloadingBinaries, EventObserver
from bincache.fetchers.base import BaseFetcher
from bincache.files import staged_file
from bincache.models import Dependency, PinnedVersion

logger = logging.getLogger(__name__)

ENV_DEPENDENCY_NAME = "BINCACHE_DEPENDENCY_NAME"
ENV_DEPENDENCY_HASH = "BINCACHE_DEPENDENCY_HASH"
ENV_DEPENDENCY_VERSION = "BINCACHE_DEPENDENCY_VERSION"
ENV_BUILD_CONFIGURATION = "BINCACHE_BUILD_CONFIGURATION"
ENV_TOOLCHAIN_VERSION = "BINCACHE_TOOLCHAIN_VERSION"
ENV_TARGET_FILE_PATH = "BINCACHE_TARGET_FILE_PATH"


class ExternalCommandFetcher(BaseFetcher):
    """Runs a shell command that writes the binary to a target path.

    The command receives the request through environment variables
    (``BINCACHE_DEPENDENCY_NAME``, ``BINCACHE_DEPENDENCY_HASH``,
    ``BINCACHE_DEPENDENCY_VERSION``, ``BINCACHE_BUILD_CONFIGURATION``,
    ``BINCACHE_TOOLCHAIN_VERSION`` and ``BINCACHE_TARGET_FILE_PATH``). The
    target is a staging path next to the cache entry; the file is moved into
    the entry only after the command exits successfully. A command that exits
    successfully without writing the target produces a miss.

    An empty command does nothing, which makes every lookup a miss.

    Examples:
        >>> fetcher = ExternalCommandFetcher('aws s3 cp "s3://binaries/$BINCACHE_DEPENDENCY_NAME.zip" "$BINCACHE_TARGET_FILE_PATH"')
    """

    def __init__(self, command: str, event_observer: Optional[EventObserver] = None):
        super().__init__(event_observer)
        self.command = command

    def environment(
        self,
        dependency_name: str,
        dependency_version: str,
        configuration: str,
        resolved_dependencies_hash: Optional[str],
        toolchain_version: str,
        target_file_path: Path,
    ) -> Dict[str, str]:
        environment = dict(os.environ)
        environment.update(
            {
                ENV_DEPENDENCY_NAME: dependency_name,
                ENV_DEPENDENCY_HASH: resolved_dependencies_hash or "",
                ENV_DEPENDENCY_VERSION: dependency_version,
                ENV_BUILD_CONFIGURATION: configuration,
                ENV_TOOLCHAIN_VERSION: toolchain_version,
                ENV_TARGET_FILE_PATH: str(target_file_path),
            }
        )
        return environment

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
        """Run the command to produce ``destination``.

        Raises:
            ExternalCommandError: If the command exits with a non-zero status
        """
        if not self.command:
            return

        with staged_file(destination) as staging:
            environment = self.environment(
                dependency.name,
                str(pinned_version),
                configuration,
                resolved_dependencies_hash,
                toolchain_version,
                staging,
            )
            self.send(DownloadingBinaries(dependency, str(pinned_version)))
            logger.info(f"Running cache command for {dependency.name} {pinned_version}")
            result = subprocess.run(
                self.command,
                shell=True,
                env=environment,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
            if result.returncode != 0:
                logger.error(
                    f"Cache command for {dependency.name} exited with {result.returncode}"
                )
                raise ExternalCommandError(self.command, result.returncode, result.stderr)
            if not staging.exists():
                logger.info(f"Cache command produced no binary for {dependency.name}")


class LocalFetcher(ExternalCommandFetcher):
    """Fetcher that never fetches: only binaries already in the cache are used."""

    def __init__(self, event_observer: Optional[EventObserver] = None):
        super().__init__("", event_observer)

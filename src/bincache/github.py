"""Minimal GitHub REST client for release lookups and asset downloads."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from urllib.parse import quote

import httpx

from bincache.http import DEFAULT_TIMEOUT, HttpDownloader, is_success
from bincache.models import Repository

logger = logging.getLogger(__name__)


class GitHubError(Exception):
    """Base exception for GitHub client errors."""

    pass


class ReleaseNotFoundError(GitHubError):
    """Raised when a repository has no release for the requested tag."""

    pass


class GitHubAPIError(GitHubError):
    """Raised when the API answers with a structured error."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{message} (HTTP {status_code})")


class AssetDownloadError(GitHubError):
    """Raised when a release asset cannot be downloaded."""

    pass


@dataclass(frozen=True)
class ReleaseAsset:
    id: int
    name: str
    content_type: str
    url: str

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "ReleaseAsset":
        return cls(
            id=data["id"],
            name=data["name"],
            content_type=data.get("content_type", ""),
            url=data["url"],
        )


@dataclass(frozen=True)
class Release:
    tag: str
    name: Optional[str]
    is_draft: bool
    assets: Tuple[ReleaseAsset, ...]

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Release":
        return cls(
            tag=data["tag_name"],
            name=data.get("name"),
            is_draft=bool(data.get("draft", False)),
            assets=tuple(ReleaseAsset.from_api(asset) for asset in data.get("assets", [])),
        )

    @property
    def name_with_fallback(self) -> str:
        return self.name or self.tag


class GitHubClient:
    """Talks to the GitHub (or GitHub Enterprise) REST API.

    Args:
        token: Access token sent when the client is authenticated
        authenticated: Whether to send the token at all
        http_client: httpx client shared by API calls and asset downloads
    """

    def __init__(
        self,
        token: Optional[str] = None,
        authenticated: bool = True,
        http_client: Optional[httpx.Client] = None,
    ):
        self.token = token
        self._authenticated = authenticated
        self.http_client = http_client or httpx.Client(
            follow_redirects=True, timeout=DEFAULT_TIMEOUT
        )
        self.downloader = HttpDownloader(self.http_client)

    @property
    def is_authenticated(self) -> bool:
        return self._authenticated and bool(self.token)

    def unauthenticated(self) -> "GitHubClient":
        """Return a client sharing this one's connection pool that sends no token."""
        return GitHubClient(self.token, authenticated=False, http_client=self.http_client)

    def _headers(self, accept: str = "application/vnd.github+json") -> Dict[str, str]:
        headers = {"Accept": accept}
        if self.is_authenticated:
            headers["Authorization"] = f"token {self.token}"
        return headers

    def release_for_tag(self, repository: Repository, tag: str) -> Release:
        """Fetch the release whose tag is ``tag``.

        Raises:
            ReleaseNotFoundError: If there is no such release
            GitHubAPIError: If the API answers with any other error status
            httpx.HTTPError: On transport failures
        """
        url = (
            f"{repository.api_url}/repos/{quote(repository.owner)}/"
            f"{quote(repository.name)}/releases/tags/{quote(tag, safe='')}"
        )
        logger.debug(f"Looking up release {tag} of {repository}")
        response = self.http_client.get(url, headers=self._headers())
        if response.status_code == 404:
            raise ReleaseNotFoundError(f"No release tagged {tag} in {repository}")
        if not is_success(response.status_code):
            raise GitHubAPIError(response.status_code, _error_message(response))
        return Release.from_api(response.json())

    def download_asset(self, asset: ReleaseAsset, destination: Path) -> None:
        """Download an asset's binary content to ``destination``.

        Raises:
            AssetDownloadError: If the download answers with a non-2xx status
            ReadFailedError: On transport failures
        """
        status_code = self.downloader.download(
            asset.url,
            destination,
            headers=self._headers(accept="application/octet-stream"),
        )
        if not is_success(status_code):
            raise AssetDownloadError(
                f"Downloading asset {asset.name} failed with status code {status_code}"
            )


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.reason_phrase

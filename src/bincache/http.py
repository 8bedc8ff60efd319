"""HTTP downloads for binary artifacts."""

import logging
import shutil
from pathlib import Path
from typing import Mapping, Optional
from urllib.parse import unquote, urlparse

import httpx

from bincache.errors import ReadFailedError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = httpx.Timeout(60.0, connect=15.0)
CHUNK_SIZE = 1024 * 1024


class HttpDownloader:
    """Streams GET responses to local files.

    Args:
        client: httpx client to use. One that follows redirects is created
            when omitted; tests pass a client built on ``httpx.MockTransport``.
    """

    def __init__(self, client: Optional[httpx.Client] = None):
        self.client = client or httpx.Client(
            follow_redirects=True, timeout=DEFAULT_TIMEOUT
        )

    def download(
        self,
        url: str,
        destination: Path,
        auth: Optional[httpx.Auth] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> int:
        """Download ``url`` into ``destination`` and return the status code.

        The body is written whatever the status is; callers decide what a
        non-2xx response means and discard the file accordingly.

        Raises:
            ReadFailedError: On connection, timeout or protocol failures
        """
        parsed = urlparse(url)
        if parsed.scheme == "file":
            return _copy_local(url, Path(unquote(parsed.path)), destination)

        logger.debug(f"GET {url}")
        try:
            with self.client.stream(
                "GET", url, auth=auth, headers=headers
            ) as response:
                with open(destination, "wb") as f:
                    for chunk in response.iter_bytes(CHUNK_SIZE):
                        f.write(chunk)
                return response.status_code
        except httpx.HTTPError as e:
            raise ReadFailedError(url, e) from e

    def close(self) -> None:
        self.client.close()


def is_success(status_code: int) -> bool:
    return 200 <= status_code <= 299


def _copy_local(url: str, source: Path, destination: Path) -> int:
    """Serve a ``file://`` URL, answering with HTTP-like status codes."""
    if not source.is_file():
        return 404
    try:
        shutil.copyfile(source, destination)
    except OSError as e:
        raise ReadFailedError(url, e) from e
    return 200

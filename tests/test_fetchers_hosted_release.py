"""Tests for the GitHub release fetcher."""

import tempfile
from pathlib import Path

import httpx
import pytest

from bincache.cache.config import CacheConfig
from bincache.cache.manager import BinariesCache
from bincache.errors import HostedReleaseError
from bincache.events import DownloadingBinaries, SkippedDownloadingBinaries
from bincache.fetchers import HostedReleaseFetcher
from bincache.github import GitHubClient
from bincache.models import Dependency, PinnedVersion

FOO = Dependency.github("example/Foo")
VERSION = PinnedVersion("v1.2.3")
RELEASE_PATH = "/repos/example/Foo/releases/tags/v1.2.3"
API = "https://api.github.com/repos/example/Foo/releases/assets"


def asset(asset_id, name, content_type):
    return {
        "id": asset_id,
        "name": name,
        "content_type": content_type,
        "url": f"{API}/{asset_id}",
    }


def release(assets, draft=False, name="Foo 1.2.3"):
    return {"tag_name": "v1.2.3", "name": name, "draft": draft, "assets": assets}


class FakeGitHub:
    """Serves one release and its assets, recording every request."""

    def __init__(self, release_body=None, release_status=200, asset_status=200):
        self.release_body = release_body
        self.release_status = release_status
        self.asset_status = asset_status
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        if request.url.path == RELEASE_PATH:
            if self.release_status != 200:
                return httpx.Response(self.release_status, json={"message": "API rate limit exceeded"})
            return httpx.Response(200, json=self.release_body)
        if request.url.path.startswith("/repos/example/Foo/releases/assets/"):
            asset_id = request.url.path.rsplit("/", 1)[-1]
            return httpx.Response(self.asset_status, content=f"asset-{asset_id}".encode())
        return httpx.Response(404, json={"message": "Not Found"})

    def paths(self):
        return [request.url.path for request in self.requests]


@pytest.fixture
def temp_dir():
    """Create a temporary directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def make_fetcher(handler, token=None, events=None):
    client = GitHubClient(
        token=token, http_client=httpx.Client(transport=httpx.MockTransport(handler))
    )
    return HostedReleaseFetcher(
        FOO.repository,
        client,
        event_observer=events.append if events is not None else None,
    )


def download(fetcher, destination):
    fetcher.download(FOO, VERSION, "Release", None, "5.0", destination)


class TestAssetSelection:
    """Test release filtering and asset matching."""

    def test_framework_zip_selected_readme_ignored(self, temp_dir):
        """Test that only the framework archive is downloaded."""
        github = FakeGitHub(
            release(
                [
                    asset(1, "Foo.framework.zip", "application/zip"),
                    asset(2, "README.md", "text/markdown"),
                ]
            )
        )
        events = []
        destination = temp_dir / "Foo.framework.zip"

        download(make_fetcher(github, events=events), destination)

        assert destination.read_bytes() == b"asset-1"
        assert github.paths() == [RELEASE_PATH, "/repos/example/Foo/releases/assets/1"]
        assert events == [DownloadingBinaries(FOO, "Foo 1.2.3")]

    def test_first_matching_asset_wins(self, temp_dir):
        """Test that enumeration order breaks ties."""
        github = FakeGitHub(
            release(
                [
                    asset(7, "Foo.xcframework.zip", "application/octet-stream"),
                    asset(8, "Foo.framework.zip", "application/zip"),
                ]
            )
        )
        destination = temp_dir / "out.zip"
        download(make_fetcher(github), destination)
        assert destination.read_bytes() == b"asset-7"

    def test_wrong_content_type_is_skipped(self, temp_dir):
        """Test that assets with an unaccepted content type are not used."""
        github = FakeGitHub(release([asset(1, "Foo.framework.zip", "text/plain")]))
        destination = temp_dir / "out.zip"
        download(make_fetcher(github), destination)
        assert not destination.exists()
        assert github.paths() == [RELEASE_PATH]

    def test_draft_release_is_skipped(self, temp_dir):
        """Test that draft releases are ignored."""
        github = FakeGitHub(
            release([asset(1, "Foo.framework.zip", "application/zip")], draft=True)
        )
        destination = temp_dir / "out.zip"
        download(make_fetcher(github), destination)
        assert not destination.exists()

    def test_release_without_assets_is_skipped(self, temp_dir):
        """Test that releases without assets are ignored."""
        github = FakeGitHub(release([]))
        destination = temp_dir / "out.zip"
        download(make_fetcher(github), destination)
        assert not destination.exists()

    def test_label_falls_back_to_tag(self, temp_dir):
        """Test that an unnamed release is labelled by its tag."""
        github = FakeGitHub(release([asset(1, "Foo.framework.zip", "application/zip")], name=None))
        events = []
        download(make_fetcher(github, events=events), temp_dir / "out.zip")
        assert events == [DownloadingBinaries(FOO, "v1.2.3")]


class TestErrorPolicy:
    """Test which failures are misses and which are fatal."""

    def test_missing_release_is_silent_miss(self, temp_dir):
        """Test that a missing release produces no file, error or event."""
        github = FakeGitHub(release_status=404)
        events = []
        destination = temp_dir / "out.zip"

        download(make_fetcher(github, events=events), destination)

        assert not destination.exists()
        assert events == []

    def test_api_error_is_reported_miss(self, temp_dir):
        """Test that API errors are reported as skipped downloads."""
        github = FakeGitHub(release_status=403)
        events = []
        destination = temp_dir / "out.zip"

        download(make_fetcher(github, events=events), destination)

        assert not destination.exists()
        assert events == [SkippedDownloadingBinaries(FOO, "API rate limit exceeded")]

    def test_transport_error_is_fatal(self, temp_dir):
        """Test that other failures raise with context."""

        def handler(request):
            raise httpx.ConnectError("connection reset", request=request)

        with pytest.raises(HostedReleaseError) as excinfo:
            download(make_fetcher(handler), temp_dir / "out.zip")
        assert excinfo.value.dependency == FOO

    def test_asset_download_failure_is_fatal(self, temp_dir):
        """Test that a failing asset download raises and leaves no file."""
        github = FakeGitHub(
            release([asset(1, "Foo.framework.zip", "application/zip")]), asset_status=500
        )
        with pytest.raises(HostedReleaseError):
            download(make_fetcher(github), temp_dir / "out.zip")
        assert list(temp_dir.iterdir()) == []


class TestAuthenticationFallback:
    """Test the unauthenticated retry."""

    def test_bad_token_retried_without_credentials(self, temp_dir):
        """Test that a lookup failing with credentials succeeds without them."""
        github = FakeGitHub(release([asset(1, "Foo.framework.zip", "application/zip")]))

        def handler(request):
            if "Authorization" in request.headers:
                github.requests.append(request)
                return httpx.Response(401, json={"message": "Bad credentials"})
            return github(request)

        events = []
        destination = temp_dir / "out.zip"
        download(make_fetcher(handler, token="expired", events=events), destination)

        assert destination.read_bytes() == b"asset-1"
        authorized = ["Authorization" in request.headers for request in github.requests]
        assert authorized == [True, False, False]
        assert not any(isinstance(event, SkippedDownloadingBinaries) for event in events)

    def test_token_is_sent_first(self, temp_dir):
        """Test that an authenticated client sends its token."""
        github = FakeGitHub(release([asset(1, "Foo.framework.zip", "application/zip")]))
        download(make_fetcher(github, token="secret"), temp_dir / "out.zip")
        assert github.requests[0].headers["Authorization"] == "token secret"
        assert len(github.requests) == 2

    def test_no_retry_without_credentials(self, temp_dir):
        """Test that unauthenticated failures are not retried."""
        github = FakeGitHub(release_status=403)
        download(make_fetcher(github), temp_dir / "out.zip")
        assert len(github.requests) == 1

    def test_retry_failure_is_classified(self, temp_dir):
        """Test that the unauthenticated attempt's failure decides the outcome."""
        calls = []

        def handler(request):
            calls.append(request)
            if "Authorization" in request.headers:
                return httpx.Response(401, json={"message": "Bad credentials"})
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(HostedReleaseError):
            download(make_fetcher(handler, token="expired"), temp_dir / "out.zip")
        assert len(calls) == 2


class TestHostedReleaseResolve:
    """Test release downloads through the cache."""

    def test_resolve_downloads_release_asset(self, temp_dir):
        """Test that resolve returns the downloaded asset locked."""
        github = FakeGitHub(release([asset(1, "Foo.framework.zip", "application/zip")]))
        cache = BinariesCache(make_fetcher(github), CacheConfig(cache_dir=temp_dir, lock_timeout=10))

        with cache.resolve(FOO, VERSION, "Release", "5.0") as lock:
            assert lock.path.read_bytes() == b"asset-1"

    def test_resolve_missing_release_is_miss(self, temp_dir):
        """Test that a missing release resolves to a miss."""
        github = FakeGitHub(release_status=404)
        cache = BinariesCache(make_fetcher(github), CacheConfig(cache_dir=temp_dir, lock_timeout=10))
        assert cache.resolve(FOO, VERSION, "Release", "5.0") is None

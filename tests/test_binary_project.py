"""Unit tests for binary project manifests."""

import tempfile
from pathlib import Path

import pytest

from bincache.binary_project import BinaryProject
from bincache.errors import BinaryProjectError
from bincache.models import PinnedVersion

MANIFEST = b"""{
    "1.0.0": "https://dl.example.com/Foo-1.0.0.zip",
    "1.1.0": {
        "url": "https://dl.example.com/Foo-1.1.0.zip",
        "variants": [
            {"configuration": "Debug", "toolchain": "5.0", "url": "https://dl.example.com/Foo-1.1.0-debug-5.0.zip"},
            {"configuration": "Debug", "url": "https://dl.example.com/Foo-1.1.0-debug.zip"},
            {"toolchain": "5.9", "url": "https://dl.example.com/Foo-1.1.0-5.9.zip"}
        ]
    }
}"""


@pytest.fixture
def project():
    return BinaryProject.from_json(MANIFEST)


class TestBinaryUrl:
    """Test URL lookup."""

    def test_plain_url(self, project):
        assert project.binary_url(PinnedVersion("1.0.0"), "Release", "5.0") == "https://dl.example.com/Foo-1.0.0.zip"

    def test_semantic_version_match(self, project):
        """Test that a tag-style version finds the plain manifest key."""
        assert project.binary_url(PinnedVersion("v1.0.0"), "Release", "5.0") == "https://dl.example.com/Foo-1.0.0.zip"

    def test_missing_version(self, project):
        assert project.binary_url(PinnedVersion("2.0.0"), "Release", "5.0") is None
        assert project.binary_url(PinnedVersion("main"), "Release", "5.0") is None

    @pytest.mark.parametrize(
        "configuration,toolchain,expected",
        [
            ("Debug", "5.0", "Foo-1.1.0-debug-5.0.zip"),
            ("Debug", "5.3", "Foo-1.1.0-debug.zip"),
            ("Release", "5.9", "Foo-1.1.0-5.9.zip"),
            ("Release", "5.0", "Foo-1.1.0.zip"),
        ],
    )
    def test_variants(self, project, configuration, toolchain, expected):
        """Test that the first matching variant wins over the default URL."""
        url = project.binary_url(PinnedVersion("1.1.0"), configuration, toolchain)
        assert url == f"https://dl.example.com/{expected}"


class TestParsing:
    """Test manifest validation."""

    @pytest.mark.parametrize(
        "data",
        [
            b"not json",
            b'["https://x.com/Foo.zip"]',
            b'{"1.0.0": 5}',
            b'{"1.0.0": {"variants": []}}',
            b'{"1.0.0": {"url": "https://x.com/a.zip", "variants": [{"configuration": "Debug"}]}}',
            b'{"1.0.0": "http://insecure.example.com/Foo.zip"}',
        ],
    )
    def test_invalid_manifests(self, data):
        with pytest.raises(BinaryProjectError):
            BinaryProject.from_json(data)

    def test_load(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "Foo.json"
            path.write_bytes(MANIFEST)
            assert set(BinaryProject.load(path).versions) == {"1.0.0", "1.1.0"}

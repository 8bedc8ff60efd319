"""Binary project manifests: the version to download-URL tables of binary-only dependencies.

A manifest is a JSON object keyed by version. Each value is either a URL or an
object with a default ``url`` and optional ``variants`` that override it for a
build configuration and/or toolchain version::

    {
        "1.2.0": "https://example.com/Foo-1.2.0.zip",
        "1.3.0": {
            "url": "https://example.com/Foo-1.3.0.zip",
            "variants": [
                {"configuration": "Debug", "url": "https://example.com/Foo-1.3.0-debug.zip"},
                {"toolchain": "5.0", "url": "https://example.com/Foo-1.3.0-swift5.zip"}
            ]
        }
    }
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlparse

import orjson

from bincache.errors import BinaryProjectError
from bincache.models import PinnedVersion, SemanticVersion

ALLOWED_SCHEMES = ("https", "file")


@dataclass(frozen=True)
class BinaryVariant:
    url: str
    configuration: Optional[str] = None
    toolchain: Optional[str] = None

    def matches(self, configuration: str, toolchain_version: str) -> bool:
        if self.configuration is not None and self.configuration != configuration:
            return False
        if self.toolchain is not None and self.toolchain != toolchain_version:
            return False
        return True


@dataclass(frozen=True)
class BinaryVersion:
    url: str
    variants: Tuple[BinaryVariant, ...] = ()

    def url_for(self, configuration: str, toolchain_version: str) -> str:
        for variant in self.variants:
            if variant.matches(configuration, toolchain_version):
                return variant.url
        return self.url


@dataclass(frozen=True)
class BinaryProject:
    """Parsed binary project manifest.

    Examples:
        >>> project = BinaryProject.from_json(b'{"1.0.0": "https://x.com/Foo.zip"}')
        >>> project.binary_url(PinnedVersion("v1.0.0"), "Release", "5.0")
        'https://x.com/Foo.zip'
    """

    versions: Dict[str, BinaryVersion] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: bytes) -> "BinaryProject":
        """Parse a manifest document.

        Raises:
            BinaryProjectError: If the document is not a valid manifest
        """
        try:
            document = orjson.loads(data)
        except orjson.JSONDecodeError as e:
            raise BinaryProjectError(f"Binary project manifest is not valid JSON: {e}") from e
        if not isinstance(document, dict):
            raise BinaryProjectError("Binary project manifest must be a JSON object")

        versions = {}
        for version, value in document.items():
            versions[str(version)] = _parse_version(str(version), value)
        return cls(versions)

    @classmethod
    def load(cls, path: Path) -> "BinaryProject":
        with open(path, "rb") as f:
            return cls.from_json(f.read())

    def binary_url(
        self, version: PinnedVersion, configuration: str, toolchain_version: str
    ) -> Optional[str]:
        """Return the download URL for a version, configuration and toolchain.

        Versions are matched by exact string first, then by semantic version
        (so ``v1.0.0`` finds ``1.0.0``).
        """
        entry = self.versions.get(version.commitish)
        if entry is None:
            wanted = version.semantic_version
            if wanted is None:
                return None
            for key, candidate in self.versions.items():
                if SemanticVersion.parse(key) == wanted:
                    entry = candidate
                    break
        if entry is None:
            return None
        return entry.url_for(configuration, toolchain_version)


def _parse_version(version: str, value: Any) -> BinaryVersion:
    if isinstance(value, str):
        return BinaryVersion(_checked_url(version, value))
    if not isinstance(value, dict) or not isinstance(value.get("url"), str):
        raise BinaryProjectError(f"Version {version} must map to a URL or an object with a url")

    variants = []
    for raw in value.get("variants", []):
        if not isinstance(raw, dict) or not isinstance(raw.get("url"), str):
            raise BinaryProjectError(f"Variant of version {version} is missing a url")
        variants.append(
            BinaryVariant(
                url=_checked_url(version, raw["url"]),
                configuration=raw.get("configuration"),
                toolchain=raw.get("toolchain"),
            )
        )
    return BinaryVersion(_checked_url(version, value["url"]), tuple(variants))


def _checked_url(version: str, url: str) -> str:
    scheme = urlparse(url).scheme
    if scheme not in ALLOWED_SCHEMES:
        raise BinaryProjectError(
            f"Binary URL for version {version} must use https, got: {url}"
        )
    return url

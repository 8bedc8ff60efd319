"""Version files: per-artifact records of the platforms a binary was built for.

A version file is stored inside each cached archive at
``Carthage/Build/.<name>.version``. It is a JSON document::

    {
        "commitish": "v1.2.3",
        "iOS": [{"name": "Foo", "hash": "...", "swiftToolchainVersion": "5.0"}],
        "Mac": [{"name": "Foo", "hash": "..."}]
    }

A platform is covered when its key is present.
"""

import logging
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import orjson

from bincache.archive import ArchiveError, extract_entry
from bincache.models import Dependency, Platform

logger = logging.getLogger(__name__)

VERSION_FILE_DIRECTORY = "Carthage/Build"


def version_file_relative_path(dependency_name: str) -> str:
    return f"{VERSION_FILE_DIRECTORY}/.{dependency_name}.version"


@dataclass(frozen=True)
class CachedFramework:
    name: str
    hash: str
    toolchain_version: Optional[str] = None
    linking: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        data = {"name": self.name, "hash": self.hash}
        if self.toolchain_version is not None:
            data["swiftToolchainVersion"] = self.toolchain_version
        if self.linking is not None:
            data["linking"] = self.linking
        return data


@dataclass
class VersionFile:
    """Parsed version file.

    Attributes:
        commitish: Version the artifact was built from
        frameworks: Frameworks built per platform
    """

    commitish: str
    frameworks: Dict[Platform, List[CachedFramework]] = field(default_factory=dict)

    @classmethod
    def from_bytes(cls, data: bytes) -> Optional["VersionFile"]:
        """Parse a version file, returning None if it is malformed."""
        try:
            document = orjson.loads(data)
        except orjson.JSONDecodeError:
            return None
        if not isinstance(document, dict) or not isinstance(document.get("commitish"), str):
            return None

        frameworks = {}
        for platform in Platform:
            entries = document.get(platform.version_file_key)
            if entries is None:
                continue
            parsed = _parse_frameworks(entries)
            if parsed is None:
                return None
            frameworks[platform] = parsed
        return cls(document["commitish"], frameworks)

    @classmethod
    def read(cls, path: Path) -> Optional["VersionFile"]:
        try:
            data = Path(path).read_bytes()
        except OSError as e:
            logger.warning(f"Cannot read version file {path}: {e}")
            return None
        return cls.from_bytes(data)

    def dumps(self) -> bytes:
        document: Dict[str, Any] = {"commitish": self.commitish}
        for platform, entries in self.frameworks.items():
            document[platform.version_file_key] = [entry.to_dict() for entry in entries]
        return orjson.dumps(document, option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS)

    def write(self, path: Path) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            f.write(self.dumps())

    def contains_all(self, platforms: Iterable[Platform]) -> bool:
        """Check that every requested platform is recorded.

        An empty request stands for all platforms.
        """
        wanted = set(platforms) or set(Platform)
        return all(platform in self.frameworks for platform in wanted)


def _parse_frameworks(entries: Any) -> Optional[List[CachedFramework]]:
    if not isinstance(entries, list):
        return None
    frameworks = []
    for entry in entries:
        if not isinstance(entry, dict):
            return None
        name, hash_ = entry.get("name"), entry.get("hash")
        if not isinstance(name, str) or not isinstance(hash_, str):
            return None
        frameworks.append(
            CachedFramework(
                name=name,
                hash=hash_,
                toolchain_version=entry.get("swiftToolchainVersion"),
                linking=entry.get("linking"),
            )
        )
    return frameworks


def is_file_valid(path: Path, dependency: Dependency, platforms: Iterable[Platform]) -> bool:
    """Check whether a cached archive can serve a request.

    Args:
        path: Cached archive
        dependency: Dependency the archive belongs to
        platforms: Platforms the request needs

    Returns:
        False if there is no file, or its version file is malformed or lacks a
        requested platform. True if the version file covers every requested
        platform, and also True if the archive carries no version file at all
        (archives made before version files existed are trusted).
    """
    path = Path(path)
    if not path.is_file():
        return False

    member = version_file_relative_path(dependency.name)
    with tempfile.TemporaryDirectory(prefix="bincache-") as scratch:
        try:
            extracted = extract_entry(path, member, Path(scratch))
        except ArchiveError as e:
            logger.debug(f"No version file in {path}, assuming all platforms: {e}")
            return True

        version_file = VersionFile.read(extracted)
        if version_file is None:
            logger.info(f"Invalid version file in {path}, ignoring cached binary")
            return False
        return version_file.contains_all(platforms)

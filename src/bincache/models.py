"""Value types shared by the cache, the fetchers and their collaborators."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Set
from urllib.parse import urlparse

GITHUB_SERVER = "https://github.com"

_SEMVER_PATTERN = re.compile(
    r"^v?(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z.-]+))?(?:\+([0-9A-Za-z.-]+))?$"
)


class Platform(str, Enum):
    """Target platforms an artifact can be built for.

    The enum value is the identifier used in configuration; ``version_file_key``
    is the key the platform is recorded under inside a version file.
    """

    IOS = "iOS"
    MACOS = "macOS"
    TVOS = "tvOS"
    WATCHOS = "watchOS"

    @property
    def version_file_key(self) -> str:
        return "Mac" if self is Platform.MACOS else self.value

    @classmethod
    def parse(cls, value: str) -> "Platform":
        """Parse a platform name case-insensitively.

        Accepts both the configuration identifier and the version file key
        (``Mac``).

        Raises:
            ValueError: If the name is not a known platform
        """
        lowered = value.strip().lower()
        for platform in cls:
            if lowered in (platform.value.lower(), platform.version_file_key.lower()):
                return platform
        raise ValueError(f"Unknown platform: {value!r}")

    @classmethod
    def parse_set(cls, values: Iterable[str]) -> Set["Platform"]:
        return {cls.parse(value) for value in values if value.strip()}


@dataclass(frozen=True)
class SemanticVersion:
    major: int
    minor: int
    patch: int
    pre_release: Optional[str] = None
    build_metadata: Optional[str] = None

    @classmethod
    def parse(cls, value: str) -> Optional["SemanticVersion"]:
        """Parse ``v?MAJOR.MINOR.PATCH[-pre][+build]``, or return None."""
        match = _SEMVER_PATTERN.match(value.strip())
        if match is None:
            return None
        major, minor, patch, pre_release, build = match.groups()
        return cls(int(major), int(minor), int(patch), pre_release, build)

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre_release:
            text += f"-{self.pre_release}"
        if self.build_metadata:
            text += f"+{self.build_metadata}"
        return text


@dataclass(frozen=True)
class PinnedVersion:
    """A resolved version: a semantic version tag or any commit-like reference."""

    commitish: str

    @property
    def semantic_version(self) -> Optional[SemanticVersion]:
        return SemanticVersion.parse(self.commitish)

    @property
    def version_specifier(self) -> str:
        """Version-specifier form used when reporting a missing version.

        Examples:
            >>> PinnedVersion("v1.2.3").version_specifier
            '== 1.2.3'
            >>> PinnedVersion("main").version_specifier
            '"main"'
        """
        semantic_version = self.semantic_version
        if semantic_version is not None:
            return f"== {semantic_version}"
        return f'"{self.commitish}"'

    def __str__(self) -> str:
        return self.commitish


@dataclass(frozen=True)
class Repository:
    """Coordinates of a repository hosted on GitHub or GitHub Enterprise."""

    owner: str
    name: str
    server: str = GITHUB_SERVER

    @classmethod
    def from_identifier(cls, identifier: str, server: str = GITHUB_SERVER) -> "Repository":
        """Build a repository from ``owner/name``.

        Raises:
            ValueError: If the identifier is not of the form ``owner/name``
        """
        parts = identifier.strip().strip("/").split("/")
        if len(parts) != 2 or not all(parts):
            raise ValueError(f"Invalid repository identifier: {identifier!r}")
        owner, name = parts
        if name.endswith(".git"):
            name = name[: -len(".git")]
        return cls(owner, name, server.rstrip("/"))

    @property
    def api_url(self) -> str:
        if self.server == GITHUB_SERVER:
            return "https://api.github.com"
        return f"{self.server}/api/v3"

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"


class DependencyKind(str, Enum):
    GITHUB = "github"
    GIT = "git"
    BINARY = "binary"


@dataclass(frozen=True)
class Dependency:
    """Identity of an external package: its kind and source location.

    Dependencies are compared by (kind, location), which is what cache keys
    and manifest tables are keyed on.

    Examples:
        >>> Dependency.github("ReactiveX/RxSwift").name
        'RxSwift'
        >>> Dependency.binary("https://example.com/specs/Foo.json").name
        'Foo'
    """

    kind: DependencyKind
    location: str
    server: str = field(default=GITHUB_SERVER, compare=False)

    @classmethod
    def github(cls, identifier: str, server: str = GITHUB_SERVER) -> "Dependency":
        repository = Repository.from_identifier(identifier, server)
        return cls(DependencyKind.GITHUB, str(repository), repository.server)

    @classmethod
    def git(cls, url: str) -> "Dependency":
        return cls(DependencyKind.GIT, url)

    @classmethod
    def binary(cls, url: str) -> "Dependency":
        return cls(DependencyKind.BINARY, url)

    @property
    def repository(self) -> Optional[Repository]:
        if self.kind is not DependencyKind.GITHUB:
            return None
        return Repository.from_identifier(self.location, self.server)

    @property
    def name(self) -> str:
        if self.kind is DependencyKind.GITHUB:
            return self.location.split("/")[-1]
        path = urlparse(self.location).path or self.location
        last_component = path.rstrip("/").split("/")[-1]
        if self.kind is DependencyKind.GIT:
            if last_component.endswith(".git"):
                last_component = last_component[: -len(".git")]
            return last_component
        stem, _, _ = last_component.rpartition(".")
        return stem or last_component

    def __str__(self) -> str:
        return f"{self.kind.value} {self.location}"


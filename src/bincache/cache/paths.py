"""Mapping of cache keys to storage paths."""

from pathlib import Path
from typing import Optional
from urllib.parse import unquote, urlparse

from bincache.binary_project import BinaryProject
from bincache.models import Dependency, PinnedVersion


def cache_file_path(
    cache_dir: Path,
    dependency: Dependency,
    version: PinnedVersion,
    configuration: str,
    toolchain_version: str,
    resolved_dependencies_hash: Optional[str] = None,
    binary_project: Optional[BinaryProject] = None,
) -> Path:
    """Compute the storage path of a cache entry.

    The layout is
    ``<cache_dir>/<toolchain>/<name>/<version>/<configuration>/<filename>``.
    The filename is, in order of preference:

    1. ``<name>-<hash>.framework.zip`` when a resolved dependencies hash is given
    2. the last path component of the manifest URL for this version, which
       keeps the archive's real extension (``.tar.gz``, ``.xcframework.zip``...)
    3. ``<name>.framework.zip``

    Args:
        cache_dir: Cache root directory
        dependency: Dependency the entry belongs to
        version: Pinned version
        configuration: Build configuration (e.g. 'Release')
        toolchain_version: Version of the toolchain the binary was built with
        resolved_dependencies_hash: Dependency-graph fingerprint (strict matching)
        binary_project: Manifest of a binary-only dependency

    Returns:
        Path of the cache entry

    Examples:
        >>> cache_file_path(Path("/c"), Dependency.github("o/Foo"),
        ...                 PinnedVersion("v1.2.3"), "Release", "5.0")
        PosixPath('/c/5.0/Foo/v1.2.3/Release/Foo.framework.zip')
    """
    name = dependency.name
    filename = f"{name}.framework.zip"
    if resolved_dependencies_hash is not None:
        filename = f"{name}-{resolved_dependencies_hash}.framework.zip"
    elif binary_project is not None:
        source_url = binary_project.binary_url(version, configuration, toolchain_version)
        if source_url is not None:
            filename = _last_path_component(source_url) or filename

    return (
        Path(cache_dir)
        / toolchain_version
        / name
        / str(version)
        / configuration
        / filename
    )


def _last_path_component(url: str) -> str:
    return unquote(urlparse(url).path).rstrip("/").split("/")[-1]

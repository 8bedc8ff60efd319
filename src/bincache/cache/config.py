"""Cache configuration management."""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Set

import httpx

from bincache.models import Platform

DEFAULT_CACHE_DIR = Path.home() / ".bincache" / "binaries"


@dataclass
class CacheConfig:
    """Configuration for the binaries cache.

    Attributes:
        cache_dir: Root directory of the cache. Entries live at
            ``<cache_dir>/<toolchain>/<name>/<version>/<configuration>/<file>``.
        lock_timeout: Seconds to wait for an entry lock (None = wait forever,
            0 = a single attempt)
        strict_match: Key entries on the resolved dependencies hash too
        platforms: Platforms an artifact must cover (empty = all platforms)
        cache_command: Shell command used to fetch binaries ('' = disabled)
        netrc_file: netrc file providing credentials for binary downloads
        github_token: Access token for GitHub release lookups
    """

    cache_dir: Path = DEFAULT_CACHE_DIR
    lock_timeout: Optional[float] = None
    strict_match: bool = False
    platforms: Set[Platform] = field(default_factory=set)
    cache_command: str = ""
    netrc_file: Optional[Path] = None
    github_token: Optional[str] = None

    def __post_init__(self):
        """Normalize paths and platform names."""
        if self.cache_dir is None:
            self.cache_dir = DEFAULT_CACHE_DIR
        self.cache_dir = Path(self.cache_dir).expanduser()
        if self.netrc_file is not None:
            self.netrc_file = Path(self.netrc_file).expanduser()
        self.platforms = {
            platform if isinstance(platform, Platform) else Platform.parse(platform)
            for platform in self.platforms
        }

    def credentials(self) -> Optional[httpx.Auth]:
        """Build HTTP credentials from the configured netrc file.

        Returns:
            ``httpx.NetRCAuth`` if the netrc file exists, otherwise None
        """
        if self.netrc_file is None or not self.netrc_file.is_file():
            return None
        return httpx.NetRCAuth(str(self.netrc_file))

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "CacheConfig":
        """Load configuration from file.

        Args:
            config_path: Path to config file. If None, uses default location.

        Returns:
            CacheConfig instance
        """
        if config_path is None:
            config_path = DEFAULT_CACHE_DIR.parent / "config.json"

        if not config_path.exists():
            return cls()

        with open(config_path, "r") as f:
            data = json.load(f)

        if "cache_dir" in data:
            data["cache_dir"] = Path(data["cache_dir"])
        if data.get("netrc_file"):
            data["netrc_file"] = Path(data["netrc_file"])
        if "platforms" in data:
            data["platforms"] = Platform.parse_set(data["platforms"])

        return cls(**data)

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save configuration to file.

        The GitHub token is never written.

        Args:
            config_path: Path to config file. If None, uses default location.
        """
        if config_path is None:
            config_path = self.cache_dir.parent / "config.json"

        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "cache_dir": str(self.cache_dir),
            "lock_timeout": self.lock_timeout,
            "strict_match": self.strict_match,
            "platforms": sorted(platform.value for platform in self.platforms),
            "cache_command": self.cache_command,
            "netrc_file": str(self.netrc_file) if self.netrc_file else None,
        }

        with open(config_path, "w") as f:
            json.dump(data, f, indent=2)

    @classmethod
    def from_env(cls) -> "CacheConfig":
        """Create configuration from environment variables.

        Environment variables:
            BINCACHE_DIR: Cache directory path
            BINCACHE_LOCK_TIMEOUT: Lock timeout in seconds
            BINCACHE_STRICT_MATCH: Enable strict matching (true/false)
            BINCACHE_PLATFORMS: Comma separated platform list
            BINCACHE_CACHE_COMMAND: External command used to fetch binaries
            BINCACHE_NETRC: netrc file with download credentials
            GITHUB_ACCESS_TOKEN: GitHub API token

        Returns:
            CacheConfig instance
        """
        config = cls()

        if os.getenv("BINCACHE_DIR"):
            config.cache_dir = Path(os.getenv("BINCACHE_DIR")).expanduser()

        if os.getenv("BINCACHE_LOCK_TIMEOUT"):
            config.lock_timeout = float(os.getenv("BINCACHE_LOCK_TIMEOUT"))

        if os.getenv("BINCACHE_STRICT_MATCH"):
            config.strict_match = os.getenv("BINCACHE_STRICT_MATCH", "").lower() == "true"

        if os.getenv("BINCACHE_PLATFORMS"):
            config.platforms = Platform.parse_set(
                os.getenv("BINCACHE_PLATFORMS").split(",")
            )

        if os.getenv("BINCACHE_CACHE_COMMAND"):
            config.cache_command = os.getenv("BINCACHE_CACHE_COMMAND")

        if os.getenv("BINCACHE_NETRC"):
            config.netrc_file = Path(os.getenv("BINCACHE_NETRC")).expanduser()

        if os.getenv("GITHUB_ACCESS_TOKEN"):
            config.github_token = os.getenv("GITHUB_ACCESS_TOKEN")

        return config


# Global cache configuration instance
_global_config: Optional[CacheConfig] = None


def get_global_config() -> CacheConfig:
    """Get global cache configuration.

    Returns:
        Global CacheConfig instance
    """
    global _global_config
    if _global_config is None:
        _global_config = CacheConfig.from_env()
    return _global_config


def set_global_config(config: CacheConfig) -> None:
    """Set global cache configuration.

    Args:
        config: CacheConfig instance to use globally
    """
    global _global_config
    _global_config = config

"""Configuration loader for clusterstrap."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

CONFIG_ENV_VAR = "CLUSTERSTRAP_CONFIG"
DEFAULT_CONFIG_NAME = "clusterstrap.yaml"


@dataclass(frozen=True)
class ReleaseSettings:
    """Versions and download locations shipped to every remote session."""

    locale: str = "en_US.UTF-8"
    mesos_release: str = "0.15.0"
    aurora_release: str = "0.4.3"
    aurora_repo: str = "https://github.com/apache/incubator-aurora.git"
    download_base: str = "http://downloads.mesosphere.io/aurora"
    mesos_egg_base: str = "http://downloads.mesosphere.io/master/ubuntu/13.04"

    @property
    def aurora_tarball(self) -> str:
        return f"aurora_{self.aurora_release}-{self.mesos_release}.tgz"

    @property
    def aurora_fetch(self) -> str:
        return f"{self.download_base}/{self.aurora_tarball}"

    def to_assignments(self) -> list[str]:
        """Serialize as ``name=value`` strings, in field order."""
        return [f"{f.name}={getattr(self, f.name)}" for f in fields(self)]


@dataclass(frozen=True)
class Config:
    """Main configuration for a clusterstrap run."""

    release: ReleaseSettings = field(default_factory=ReleaseSettings)
    log_dir: Path = field(default_factory=lambda: Path("logs"))
    no_logs: bool = False
    max_concurrency: int = 1
    sudo: bool = False
    source_path: Path | None = None  # Path to the original settings file


def find_config() -> Config:
    """Locate and load the settings file, falling back to built-in defaults."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return load_config(env_path)

    local = Path(DEFAULT_CONFIG_NAME)
    if local.exists():
        return load_config(local)

    return Config()


def load_config(config_path: str | Path) -> Config:
    """Load and validate configuration from a YAML file."""
    config_path = Path(config_path).expanduser().resolve()

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f)

    return _parse_config(raw or {}, source_path=config_path)


def _parse_release(raw: dict[str, Any]) -> ReleaseSettings:
    """Parse the release section."""
    release_raw = raw.get("release", {}) or {}
    if not isinstance(release_raw, dict):
        raise ConfigError("'release' must be a mapping")

    known = {f.name for f in fields(ReleaseSettings)}
    unknown = sorted(set(release_raw) - known)
    if unknown:
        raise ConfigError(f"Unknown release setting(s): {', '.join(unknown)}")

    # YAML reads 0.15 style versions as floats
    return ReleaseSettings(**{key: str(value) for key, value in release_raw.items()})


def _parse_config(raw: Any, source_path: Path | None = None) -> Config:
    """Parse raw YAML data into a Config object."""
    if not isinstance(raw, dict):
        raise ConfigError("Configuration must be a YAML mapping")

    release = _parse_release(raw)
    log_dir = Path(raw.get("log_dir", "logs")).expanduser().resolve()

    max_concurrency = raw.get("max_concurrency", 1)
    if not isinstance(max_concurrency, int) or isinstance(max_concurrency, bool) or max_concurrency < 1:
        raise ConfigError(
            f"'max_concurrency' must be a positive integer, got {max_concurrency!r}"
        )

    return Config(
        release=release,
        log_dir=log_dir,
        no_logs=bool(raw.get("no_logs", False)),
        max_concurrency=max_concurrency,
        sudo=bool(raw.get("sudo", False)),
        source_path=source_path,
    )

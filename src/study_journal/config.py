"""Configuration management for study-journal."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path


_DEFAULT_CONFIG_DIR = Path.home() / ".config" / "study-journal"

_ENV_REMOTE_URL = "STUDY_JOURNAL_REMOTE_URL"
_ENV_REMOTE_KEY = "STUDY_JOURNAL_REMOTE_KEY"


@dataclass
class RemoteConfig:
    """Configuration for the remote row-store mirror."""

    url: str = ""
    api_key: str = ""
    table: str = "calendar_days"
    timeout: int = 10  # seconds per HTTP request
    poll_interval: float = 5.0  # seconds between change checks

    @property
    def enabled(self) -> bool:
        return bool(self.url)


@dataclass
class ExportConfig:
    """Configuration for printable exports."""

    output_dir: Path = field(default_factory=lambda: _DEFAULT_CONFIG_DIR / "exports")
    open_browser: bool = True


@dataclass
class Config:
    cache_file: Path = field(
        default_factory=lambda: _DEFAULT_CONFIG_DIR / "local-cache.json"
    )
    verbose: bool = False
    remote: RemoteConfig = field(default_factory=RemoteConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    @classmethod
    def load(
        cls,
        overrides: dict | None = None,
        config_path: Path | None = None,
    ) -> Config:
        """Load config from TOML file, then environment, then CLI overrides."""
        config = cls()

        if config_path is None:
            config_path = _DEFAULT_CONFIG_DIR / "config.toml"
        if config_path.exists():
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
            config = cls._apply_dict(config, data)

        env_remote = {}
        if os.environ.get(_ENV_REMOTE_URL):
            env_remote["url"] = os.environ[_ENV_REMOTE_URL]
        if os.environ.get(_ENV_REMOTE_KEY):
            env_remote["api_key"] = os.environ[_ENV_REMOTE_KEY]
        if env_remote:
            config = cls._apply_dict(config, {"remote": env_remote})

        if overrides:
            config = cls._apply_dict(config, overrides)

        return config

    @classmethod
    def _apply_dict(cls, config: Config, data: dict) -> Config:
        if "cache_file" in data:
            config.cache_file = Path(data["cache_file"]).expanduser()
        if "verbose" in data:
            config.verbose = bool(data["verbose"])

        if "remote" in data:
            remote_data = data["remote"]
            if "url" in remote_data:
                config.remote.url = str(remote_data["url"]).rstrip("/")
            if "api_key" in remote_data:
                config.remote.api_key = str(remote_data["api_key"])
            if "table" in remote_data:
                config.remote.table = str(remote_data["table"])
            if "timeout" in remote_data:
                config.remote.timeout = int(remote_data["timeout"])
            if "poll_interval" in remote_data:
                config.remote.poll_interval = float(remote_data["poll_interval"])

        if "export" in data:
            export_data = data["export"]
            if "output_dir" in export_data:
                config.export.output_dir = Path(export_data["output_dir"]).expanduser()
            if "open_browser" in export_data:
                config.export.open_browser = bool(export_data["open_browser"])

        return config

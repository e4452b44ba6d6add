"""Cleaner config file I/O operations.

This module provides functions for loading and saving the cleaner
configuration in TOML format with validation using Pydantic models.
Files with a ``.json`` suffix are read as JSON, which keeps configs from
older deployments usable.
"""

import json
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

import tomli_w
from pydantic import ValidationError

from nexusctl.core.paths import get_config_path
from nexusctl.models.config import CleanerConfig, RepositoryConfig, RetentionRule, VolumeConfig

ENV_SERVER = "NX_SERVER"
ENV_USER = "NX_USER"
ENV_PASSWORD = "NX_PASSWORD"


class ConfigError(Exception):
    """Base exception for configuration-related errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


class ConfigValidationError(ConfigError):
    """Raised when the config content is invalid."""


@dataclass(frozen=True, slots=True)
class Credentials:
    """Server URL and API credentials for one run.

    Attributes:
        server_url: Base URL of the Nexus server.
        username: API user, or None for anonymous access.
        password: API password, or None for anonymous access.
    """

    server_url: str
    username: str | None = None
    password: str | None = None

    @property
    def has_auth(self) -> bool:
        """Check if both username and password are set."""
        return bool(self.username) and bool(self.password)


def load_config(path: Path | None = None) -> CleanerConfig:
    """Load and validate a cleaner config file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Validated CleanerConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML or JSON syntax is invalid.
        ConfigValidationError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        if config_path.suffix == ".json":
            data = json.loads(config_path.read_text(encoding="utf-8"))
        else:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigParseError(f"Invalid JSON syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return CleanerConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid config content: {e}") from e


def save_config(config: CleanerConfig, path: Path | None = None) -> Path:
    """Save a cleaner config to a TOML file.

    The file is written atomically through a temporary file in the same
    directory and os.replace().

    Args:
        config: The CleanerConfig to save.
        path: Target path. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = config_to_dict(config)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def require_config(config_path: Path | None = None) -> CleanerConfig:
    """Load config or exit with a helpful error message.

    Args:
        config_path: Optional custom config path.

    Returns:
        Loaded and validated CleanerConfig.

    Raises:
        typer.Exit: If the config cannot be loaded.
    """
    import typer

    from nexusctl.utils.formatting import print_error, print_info

    path = config_path or get_config_path()
    try:
        return load_config(path)
    except ConfigNotFoundError as e:
        print_error(f"Config not found: {path}")
        print_info("Run 'nexusctl config init' to create a default config.")
        raise typer.Exit(code=1) from e
    except ConfigError as e:
        print_error(f"Failed to load config: {e}")
        raise typer.Exit(code=1) from e


def resolve_credentials(server_url: str = "") -> Credentials:
    """Resolve server URL and credentials from the environment.

    NX_SERVER overrides the given server URL; NX_USER and NX_PASSWORD
    supply the API credentials.

    Args:
        server_url: Server URL from the config or command line.

    Returns:
        Credentials for the run.
    """
    return Credentials(
        server_url=os.environ.get(ENV_SERVER) or server_url,
        username=os.environ.get(ENV_USER) or None,
        password=os.environ.get(ENV_PASSWORD) or None,
    )


def default_config() -> CleanerConfig:
    """Build the starter config written by 'nexusctl config init'."""
    return CleanerConfig(
        server_url="https://nexus.example.com",
        repositories=[
            RepositoryConfig(
                name="NexusTest",
                min_age="90d",
                min_files=5,
                rules=[
                    RetentionRule(group="/Test-Autogen", min_age="5m", group_files_by="_"),
                    RetentionRule(group="/Test"),
                ],
            )
        ],
        volumes=[
            VolumeConfig(blobstore="default", min_free_size=4096),
            VolumeConfig(mountpoint="/", min_free_size=8192),
        ],
    )


def config_to_dict(config: CleanerConfig) -> dict[str, Any]:
    """Convert a CleanerConfig to a dictionary suitable for TOML serialization.

    None values are dropped since TOML has no null.
    """
    return {
        "server_url": config.server_url,
        "repositories": [
            {
                "name": repo.name,
                "min_age": repo.min_age,
                "min_files": repo.min_files,
                "rules": [_rule_to_dict(rule) for rule in repo.rules],
            }
            for repo in config.repositories
        ],
        "volumes": [
            {k: v for k, v in vol.model_dump().items() if v is not None}
            for vol in config.volumes
        ],
    }


def _rule_to_dict(rule: RetentionRule) -> dict[str, Any]:
    """Convert a RetentionRule to a dictionary, omitting defaults."""
    result: dict[str, Any] = {"group": rule.group}
    if rule.min_age:
        result["min_age"] = rule.min_age
    if rule.min_files:
        result["min_files"] = rule.min_files
    if rule.group_files_by:
        result["group_files_by"] = rule.group_files_by
    return result

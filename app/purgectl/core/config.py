"""Run configuration model and file I/O.

This module provides the immutable RunConfig model and functions for
loading and saving it as TOML with validation using Pydantic.

Values are merged with the following precedence (highest first):
1. Command-line flags
2. Environment variables (PURGECTL_*, resolved by the CLI)
3. Config file (~/.config/purgectl/config.toml)
4. Model defaults
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from purgectl.core.paths import ensure_config_dir, get_config_path

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 500

# Tenant value that expands to every tenant directory under the mount root
ALL_TENANTS = "all"


class RunConfig(BaseModel):
    """Configuration for a single deletion run.

    Constructed once at job start and never mutated.

    Attributes:
        mount_path: Root of the mounted file system. Nothing outside it is touched.
        tenants: Tenant sub-directories to scope the run to. Empty means the
            whole mount root; ``("all",)`` means every tenant directory.
        exclude: Glob patterns matched against base names; matches are kept.
        batch_size: Number of candidates processed per batch.
        max_duration: Run-duration budget in seconds (None = unbounded).
        dry_run: Report what would be deleted without touching anything.
        workers: Number of parallel deletion workers (1 = sequential).
        max_error_rate: Highest tolerated fraction of failed deletions
            before the run exits non-zero.
        record_history: Append the run summary to the history file.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    mount_path: Path
    tenants: tuple[str, ...] = ()
    exclude: tuple[str, ...] = ()
    batch_size: Annotated[
        int,
        Field(ge=1, description="Candidates per batch"),
    ] = DEFAULT_BATCH_SIZE
    max_duration: Annotated[
        float | None,
        Field(gt=0, description="Run-duration budget in seconds (None = unbounded)"),
    ] = None
    dry_run: bool = False
    workers: Annotated[
        int,
        Field(ge=1, le=64, description="Parallel deletion workers (1-64)"),
    ] = 1
    max_error_rate: Annotated[
        float,
        Field(ge=0.0, le=1.0, description="Tolerated failed-deletion fraction"),
    ] = 1.0
    record_history: bool = True

    @field_validator("exclude")
    @classmethod
    def validate_patterns(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Reject empty exclusion patterns."""
        for pattern in v:
            if not pattern.strip():
                msg = "exclusion patterns cannot be empty"
                raise ValueError(msg)
        return v

    @property
    def scope_label(self) -> str:
        """Short human-readable description of the configured scope."""
        if not self.tenants:
            return str(self.mount_path)
        return f"{self.mount_path} [{', '.join(self.tenants)}]"


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


class ConfigValidationError(ConfigError):
    """Raised when configuration values are invalid."""


def load_config_file(path: Path | None = None) -> dict[str, Any]:
    """Load raw configuration values from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default config path.

    Returns:
        Dictionary of configuration values as read from the file.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the file cannot be read.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e


def build_config(
    overrides: dict[str, Any] | None = None,
    path: Path | None = None,
    *,
    require_file: bool = False,
) -> RunConfig:
    """Build a validated RunConfig from the config file and overrides.

    Override values that are None are treated as "not given" and do not
    replace file values.

    Args:
        overrides: Values from flags or environment variables.
        path: Config file path. If None, uses the default config path.
        require_file: If True, a missing config file is an error.

    Returns:
        Validated, immutable RunConfig.

    Raises:
        ConfigNotFoundError: If require_file is True and the file is missing.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigValidationError: If the merged values are invalid.
    """
    try:
        data = load_config_file(path)
        logger.debug("Loaded config file %s", path or get_config_path())
    except ConfigNotFoundError:
        if require_file:
            raise
        data = {}

    for key, value in (overrides or {}).items():
        if value is not None:
            data[key] = value

    try:
        return RunConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid configuration: {e}") from e


def save_config(config: RunConfig, path: Path | None = None) -> Path:
    """Save a run configuration to a TOML file.

    The file is written atomically through a temporary file in the same
    directory. Unset optional values are omitted since TOML has no null.

    Args:
        config: The RunConfig to save.
        path: Destination path. If None, uses the default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    try:
        if config_path == get_config_path():
            ensure_config_dir()
        else:
            config_path.parent.mkdir(parents=True, exist_ok=True)
    except (OSError, RuntimeError) as e:
        raise ConfigError(f"Failed to write config: {e}") from e

    data = config.model_dump(mode="json", exclude_none=True)

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

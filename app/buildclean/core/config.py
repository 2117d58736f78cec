"""Cleanup configuration file I/O.

This module defines the Pydantic models for ``buildclean.toml`` and the
functions to load and save it. A configuration is converted into a
CleanupRequest with paths resolved against the configuration file's
directory.

Example file::

    [clean]
    default_targets = ["build", "dist"]
    fail_on_error = true

    [[fileset]]
    directory = "src"
    includes = ["**/*.pyc"]
"""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from buildclean.cleanup.models import CleanupRequest, FilesetSpec
from buildclean.core.paths import get_config_path


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the configuration file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the configuration file cannot be parsed."""


class ConfigValidationError(ConfigError):
    """Raised when the configuration content is invalid."""


class FilesetConfig(BaseModel):
    """A ``[[fileset]]`` entry.

    Attributes:
        directory: Root directory, relative to the configuration file.
        includes: Include patterns. Empty means everything.
        excludes: Exclude patterns.
        follow_symlinks: Traverse symbolic links to directories.
        use_default_excludes: Add the built-in VCS/editor excludes.
    """

    model_config = ConfigDict(extra="forbid")

    directory: Annotated[str, Field(description="Fileset root directory")]
    includes: Annotated[list[str], Field(default_factory=list, description="Include globs")]
    excludes: Annotated[list[str], Field(default_factory=list, description="Exclude globs")]
    follow_symlinks: bool = False
    use_default_excludes: bool = True

    @field_validator("directory")
    @classmethod
    def validate_directory(cls, v: str) -> str:
        """Reject blank directories."""
        if not v.strip():
            msg = "Fileset directory cannot be empty"
            raise ValueError(msg)
        return v


class CleanSettings(BaseModel):
    """The ``[clean]`` section.

    Attributes:
        default_targets: Directories deleted wholesale.
        exclude_default_directories: Only process filesets.
        fail_on_error: Fail the run if any path could not be deleted.
        retry_on_error: Retry locked or busy paths.
        skip: Skip the clean entirely.
        max_workers: Parallel subtrees. None picks a default.
    """

    model_config = ConfigDict(extra="forbid")

    default_targets: Annotated[
        list[str],
        Field(default_factory=list, description="Directories deleted wholesale"),
    ]
    exclude_default_directories: bool = False
    fail_on_error: bool = True
    retry_on_error: bool = True
    skip: bool = False
    max_workers: Annotated[int | None, Field(ge=1, description="Parallel subtrees")] = None


class CleanupConfig(BaseModel):
    """Root model of ``buildclean.toml``."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    clean: CleanSettings = Field(default_factory=CleanSettings)
    filesets: Annotated[
        list[FilesetConfig],
        Field(default_factory=list, alias="fileset", description="Filesets"),
    ]

    def to_request(self, base_dir: Path) -> CleanupRequest:
        """Build a CleanupRequest with paths resolved against base_dir.

        Args:
            base_dir: Directory relative paths are resolved against.

        Returns:
            CleanupRequest for this configuration.
        """
        return CleanupRequest(
            default_targets=tuple(
                _resolve(base_dir, t) if t.strip() else None for t in self.clean.default_targets
            ),
            filesets=tuple(
                FilesetSpec(
                    directory=_resolve(base_dir, fs.directory),
                    includes=tuple(fs.includes),
                    excludes=tuple(fs.excludes),
                    follow_symlinks=fs.follow_symlinks,
                    use_default_excludes=fs.use_default_excludes,
                )
                for fs in self.filesets
            ),
            exclude_default_directories=self.clean.exclude_default_directories,
            fail_on_error=self.clean.fail_on_error,
            retry_on_error=self.clean.retry_on_error,
            skip=self.clean.skip,
        )


def _resolve(base_dir: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else base_dir / path


def default_config() -> CleanupConfig:
    """Create the starter configuration written by ``buildclean init``."""
    return CleanupConfig(
        clean=CleanSettings(default_targets=["build", "dist"]),
        filesets=[
            FilesetConfig(
                directory=".",
                includes=["**/__pycache__/**", "**/*.pyc"],
            )
        ],
    )


def load_config(path: Path | None = None) -> CleanupConfig:
    """Load and validate a configuration from a TOML file.

    Args:
        path: Path to the configuration file. If None, uses the default path.

    Returns:
        Validated CleanupConfig object.

    Raises:
        ConfigNotFoundError: If the file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigValidationError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Configuration not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read configuration: {e}") from e

    try:
        return CleanupConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid configuration content: {e}") from e


def config_to_dict(config: CleanupConfig) -> dict[str, Any]:
    """Convert a configuration to a TOML-serializable dictionary.

    None values are dropped since TOML has no null.
    """
    return config.model_dump(by_alias=True, exclude_none=True)


def save_config(config: CleanupConfig, path: Path | None = None) -> Path:
    """Save a configuration to a TOML file.

    The file is written atomically through a temporary file in the same
    directory and os.replace(). The temporary file is removed on failure.

    Args:
        config: Configuration to save.
        path: Target path. If None, uses the default path.

    Returns:
        Path where the configuration was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(config_to_dict(config), f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write configuration: {e}") from e

    return config_path

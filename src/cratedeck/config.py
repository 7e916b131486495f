"""Configuration for cratedeck.

Configuration is loaded from (highest priority first):
- explicit keyword arguments
- environment variables
- a local `.env` file (if present)
- `config.yaml` in the user configuration directory

The YAML file is the only thing `save_settings` writes. Its location is
`$CRATEDECK_CONFIG_DIR`, else `$XDG_CONFIG_HOME/cratedeck`, else
`~/.config/cratedeck`.
"""

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Literal

import yaml
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsError,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from cratedeck.errors import ConfigError, RootDirectoryInvalid

logger = logging.getLogger(__name__)

APP_NAME = "cratedeck"
CONFIG_FILE_NAME = "config.yaml"
LOG_FILE_NAME = "cratedeck.log"
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


def config_dir() -> Path:
    """Directory holding `config.yaml` and the default log file."""

    override = os.environ.get("CRATEDECK_CONFIG_DIR", "").strip()
    if override:
        return Path(override).expanduser()
    xdg = os.environ.get("XDG_CONFIG_HOME", "").strip()
    base = Path(xdg).expanduser() if xdg else Path.home() / ".config"
    return base / APP_NAME


def config_file_path() -> Path:
    return config_dir() / CONFIG_FILE_NAME


class ManagerSettings(BaseSettings):
    """Settings for project discovery and creation.

    Environment variables:
    - CRATEDECK_ROOT_DIRECTORY
    - CRATEDECK_EDITOR_COMMAND
    - CRATEDECK_EDITOR_WAIT       (optional)
    - CRATEDECK_MANIFEST_MARKER   (optional)
    - CRATEDECK_DEFAULT_BRANCH    (optional)
    - CRATEDECK_GENERATOR_COMMAND (optional)
    - CRATEDECK_GENERATOR_VCS     (optional)
    - CRATEDECK_SCAN_WORKERS      (optional)
    - CRATEDECK_COMMAND_TIMEOUT_SECONDS (optional)
    - CRATEDECK_LOG_FILE          (optional)
    - CRATEDECK_LOG_LEVEL         (optional)

    Notes:
        Tests can point at a specific env file with
        `ManagerSettings(_env_file=path_to_env)`.
    """

    root_directory: Path | None = Field(
        default=None,
        description="Directory whose immediate children are the managed projects",
    )
    editor_command: str = Field(
        default="",
        description="Command used to open a project, e.g. 'code -n' or 'vim'",
    )
    editor_wait: bool = Field(
        default=False,
        description="Wait for the editor to exit (needed for terminal editors)",
    )

    manifest_marker: str = Field(
        default="Cargo.toml",
        min_length=1,
        description="File whose presence marks a directory as a project",
    )
    default_branch: str = Field(
        default="main",
        min_length=1,
        description="Value written to git's global init.defaultBranch before creation",
    )
    generator_command: str = Field(
        default="cargo",
        min_length=1,
        description="Executable used to generate new projects",
    )
    generator_vcs: Literal["git", "none"] = Field(
        default="git",
        description="Value passed to `cargo new --vcs`",
    )

    scan_workers: int = Field(
        default=8,
        ge=1,
        description="Upper bound on concurrent VCS inspections during a scan",
    )
    command_timeout_seconds: float = Field(
        default=120.0,
        gt=0,
        description="Timeout applied to git and generator invocations",
    )

    log_level: str = Field(
        default="INFO",
        description="Root logging level",
    )
    log_file: Path | None = Field(
        default=None,
        description="Log file path (defaults to cratedeck.log next to config.yaml)",
    )

    model_config = SettingsConfigDict(
        env_prefix="CRATEDECK_",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")
        return level

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        yaml_settings = YamlConfigSettingsSource(settings_cls, yaml_file=config_file_path())
        return (init_settings, env_settings, dotenv_settings, yaml_settings)

    @property
    def is_complete(self) -> bool:
        return self.root_directory is not None and bool(self.editor_command.strip())

    @property
    def resolved_log_file(self) -> Path:
        return self.log_file if self.log_file is not None else config_dir() / LOG_FILE_NAME

    def get_root_directory(self) -> Path:
        if self.root_directory is None:
            raise RootDirectoryInvalid(None, "root directory is not configured")
        return self.root_directory.expanduser()

    def get_editor_command(self) -> str:
        return self.editor_command.strip()


class SetupReason(str, Enum):
    MISSING_FILE = "missing_file"
    INCOMPLETE_DATA = "incomplete_data"


@dataclass(frozen=True, slots=True)
class LoadStatus:
    """Result of `load_settings`.

    Exactly one of `settings` (ready to use) or `setup_reason` is meaningful.
    """

    settings: ManagerSettings
    setup_reason: SetupReason | None = None

    @property
    def ready(self) -> bool:
        return self.setup_reason is None


def validate_root_directory(path: Path | None) -> Path:
    """Check `path` exists, is a directory and is readable and writable.

    Returns:
        The expanded path.

    Raises:
        RootDirectoryInvalid: with a human-readable reason.
    """

    if path is None or not str(path).strip():
        raise RootDirectoryInvalid(None, "root directory cannot be empty")
    path = path.expanduser()
    if not path.exists():
        raise RootDirectoryInvalid(path, "does not exist")
    if not path.is_dir():
        raise RootDirectoryInvalid(path, "is not a directory")

    try:
        os.listdir(path)
    except OSError as e:
        raise RootDirectoryInvalid(path, "is not readable") from e

    probe = path / f".{APP_NAME}-write-probe-{uuid.uuid4().hex}"
    try:
        probe.touch(exist_ok=False)
    except OSError as e:
        raise RootDirectoryInvalid(path, "is not writable") from e
    probe.unlink(missing_ok=True)
    return path


def load_settings(**overrides: object) -> LoadStatus:
    """Load settings and decide whether initial setup is still needed.

    Raises:
        ConfigError: the YAML file is malformed or holds invalid values.
    """

    try:
        settings = ManagerSettings(**overrides)  # type: ignore[arg-type]
    except (yaml.YAMLError, SettingsError) as e:
        raise ConfigError(f"Corrupt configuration file {config_file_path()}: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    if not settings.is_complete:
        reason = (
            SetupReason.INCOMPLETE_DATA
            if config_file_path().exists() or settings.root_directory is not None
            else SetupReason.MISSING_FILE
        )
        return LoadStatus(settings=settings, setup_reason=reason)

    try:
        validate_root_directory(settings.root_directory)
    except RootDirectoryInvalid as e:
        logger.warning("Config validation failed", extra={"reason": e.reason})
        return LoadStatus(settings=settings, setup_reason=SetupReason.INCOMPLETE_DATA)

    return LoadStatus(settings=settings)


def save_settings(root_directory: Path, editor_command: str) -> ManagerSettings:
    """Validate and persist the two user-provided values.

    The YAML file is written to a temporary sibling and then moved into
    place. Keys already present in the file are preserved.
    """

    if not editor_command.strip():
        raise ConfigError("Field 'editor_command' cannot be empty")
    root = validate_root_directory(root_directory).absolute()

    path = config_file_path()
    existing: dict[str, object] = {}
    if path.exists():
        try:
            loaded = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError:
            logger.warning(
                "Existing configuration is not valid YAML; overwriting",
                extra={"path": str(path)},
            )
            loaded = None
        if isinstance(loaded, dict):
            existing = loaded

    existing.update({"root_directory": str(root), "editor_command": editor_command.strip()})

    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(".yaml.tmp")
    tmp_path.write_text(yaml.safe_dump(existing, sort_keys=True), encoding="utf-8")
    tmp_path.replace(path)
    logger.info("Configuration saved", extra={"path": str(path)})

    return ManagerSettings(root_directory=root, editor_command=editor_command.strip())

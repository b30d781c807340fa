"""Configuration system for disk-lens.

Settings are pydantic models loaded from an optional YAML file in which
string values may reference environment variables as ``${NAME}``. Every
field has a default, so a missing or empty file means the defaults apply.
"""

import os
import re
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Annotated, Final

import yaml
from pydantic import BaseModel, Field, ValidationError

from disk_lens.core.exceptions import ConfigurationError, EnvironmentVariableError

__all__ = [
    "CONFIG_SEARCH_PATHS",
    "ENV_VAR_PATTERN",
    "ApplicationConfig",
    "ConfigurationError",
    "EnvironmentVariableError",
    "MainConfig",
    "ScanConfig",
    "VolumesConfig",
    "discover_config_file",
    "load_main_config",
    "resolve_env_var",
    "resolve_env_vars_in_dict",
]

# ${NAME} with an upper-case name
ENV_VAR_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$\{([A-Z0-9_]+)\}")

# Searched in order; the first existing file wins
CONFIG_SEARCH_PATHS: Final[tuple[Path, ...]] = (
    Path("disk-lens.yaml"),
    Path("disk-lens.yml"),
    Path("~/.disk-lens.yaml"),
    Path("~/.disk-lens.yml"),
)


class ScanConfig(BaseModel):
    """Configuration for directory scanning behavior."""

    max_concurrency: Annotated[
        Annotated[int, Field(gt=0)] | None,
        Field(
            description="Maximum simultaneous subtree aggregations (null for unbounded)",
        ),
    ] = None


class VolumesConfig(BaseModel):
    """Configuration for the volumes overview."""

    skip_fstypes: Annotated[
        Sequence[str],
        Field(
            description="Filesystem type labels to leave out of the volumes overview",
        ),
    ] = []


class ApplicationConfig(BaseModel):
    """Configuration for application-level settings."""

    log_level: Annotated[
        str,
        Field(
            description="Logging level",
            pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        ),
    ] = "WARNING"
    syslog_enabled: Annotated[
        bool,
        Field(
            description="Enable syslog integration",
        ),
    ] = False


class MainConfig(BaseModel):
    """Top-level configuration container.

    Aggregates all configuration sections:
    - scan: Directory scanning settings
    - volumes: Volumes overview settings
    - application: Application-level settings
    """

    scan: Annotated[ScanConfig, Field(description="Directory scanning configuration")] = ScanConfig()
    volumes: Annotated[VolumesConfig, Field(description="Volumes overview configuration")] = VolumesConfig()
    application: Annotated[
        ApplicationConfig,
        Field(description="Application-level configuration"),
    ] = ApplicationConfig()


def resolve_env_var(value: str) -> str:
    """Substitute every ``${NAME}`` reference in one string.

    Raises:
        EnvironmentVariableError: If a referenced variable is unset

    Examples:
        >>> os.environ["SCAN_LEVEL"] = "DEBUG"
        >>> resolve_env_var("level=${SCAN_LEVEL}")
        'level=DEBUG'
    """

    def substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in os.environ:
            msg = f"${{{name}}} is referenced but not set in the environment"
            raise EnvironmentVariableError(msg, {"variable": name})
        return os.environ[name]

    return ENV_VAR_PATTERN.sub(substitute, value)


def _resolve_node(node: object) -> object:
    match node:
        case str():
            return resolve_env_var(node)
        case dict():
            return {key: _resolve_node(value) for key, value in node.items()}  # pyright: ignore[reportUnknownVariableType]  # YAML mapping
        case list():
            return [_resolve_node(item) for item in node]  # pyright: ignore[reportUnknownVariableType]  # YAML sequence
        case _:
            return node


def resolve_env_vars_in_dict(data: Mapping[str, object]) -> dict[str, object]:
    """Return a copy of a parsed YAML mapping with references substituted.

    Strings are resolved at any nesting depth; keys and non-string scalars
    are left alone.
    """
    return {key: _resolve_node(value) for key, value in data.items()}


def discover_config_file() -> Path | None:
    """Find the first existing configuration file in the standard locations.

    Returns:
        Path to the configuration file, or None if none exists
    """
    for candidate in CONFIG_SEARCH_PATHS:
        try:
            path = candidate.expanduser()
        except RuntimeError:
            # Home directory cannot be determined
            continue
        if path.is_file():
            return path
    return None


def _describe_validation_error(config_path: Path, error: ValidationError) -> str:
    lines = [f"{config_path}: invalid settings"]
    for detail in error.errors():
        location = ".".join(str(part) for part in detail["loc"])
        lines.append(f"  {location}: {detail['msg']}")
    return "\n".join(lines)


def load_main_config(config_path: Path) -> MainConfig:
    """Load and validate configuration from a YAML file.

    An empty file yields the default configuration.

    Args:
        config_path: Path to the YAML configuration file

    Returns:
        Validated MainConfig instance

    Raises:
        ConfigurationError: If the file cannot be loaded or is invalid
    """
    if not config_path.exists():
        msg = f"{config_path}: no such configuration file (omit --config to use the defaults)"
        raise ConfigurationError(msg)

    try:
        with config_path.open("r") as f:
            raw_data: object = yaml.safe_load(f)  # pyright: ignore[reportAny]  # YAML boundary
    except yaml.YAMLError as e:
        raise ConfigurationError(f"{config_path}: invalid YAML: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"{config_path}: cannot read configuration: {e}") from e

    if raw_data is None:
        return MainConfig()

    if not isinstance(raw_data, dict):
        msg = f"{config_path}: top level must be a mapping of sections, not {type(raw_data).__name__}"
        raise ConfigurationError(msg)

    try:
        resolved_data = resolve_env_vars_in_dict(raw_data)  # pyright: ignore[reportUnknownArgumentType]  # YAML boundary
    except EnvironmentVariableError as e:
        raise ConfigurationError(f"{config_path}: {e}") from e

    try:
        return MainConfig.model_validate(resolved_data)
    except ValidationError as e:
        raise ConfigurationError(_describe_validation_error(config_path, e)) from e

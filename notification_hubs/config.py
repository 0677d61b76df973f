from __future__ import annotations

import logging
import os
import re
from pathlib import Path

import yaml
from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from notification_hubs.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "NOTIFICATION_HUB_"
CONFIG_PATH_ENV = "NOTIFICATION_HUB_CONFIG"

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def expand_env_vars(config_str: str) -> str:
    """
    Expand environment variables in the format ${VAR_NAME} within a YAML string.
    Skips expansion in YAML comments (lines starting with #).

    Args:
        config_str: YAML string potentially containing ${VAR_NAME} placeholders

    Returns:
        YAML string with all placeholders expanded to environment variable values

    Raises:
        KeyError: If a referenced environment variable is not set
    """
    def replace_var(match: re.Match[str]) -> str:
        var_name = match.group(1)
        try:
            return os.environ[var_name]
        except KeyError:
            msg = f"Environment variable '{var_name}' referenced in config but not set"
            raise KeyError(msg) from None

    lines = []
    for line in config_str.split("\n"):
        if line.lstrip().startswith("#"):
            lines.append(line)
        else:
            lines.append(_ENV_VAR_PATTERN.sub(replace_var, line))

    return "\n".join(lines)


def load_config_from_yaml(config_path: str | Path) -> dict:
    """
    Load a YAML configuration file and expand environment variables.

    The file may either hold the settings at its root or under a
    ``notification_hub`` mapping.

    Raises:
        ConfigurationError: If the file is missing, invalid, or references
            an unset environment variable
    """
    config_file = Path(config_path)
    if not config_file.exists():
        msg = f"Configuration file not found at {config_file}"
        raise ConfigurationError(msg, context={"config_file": str(config_file)})

    with open(config_file) as f:
        config_str = f.read()

    try:
        expanded_config = expand_env_vars(config_str)
    except KeyError as e:
        msg = f"Error expanding environment variables in {config_file.name}: {e}"
        raise ConfigurationError(msg, context={"config_file": str(config_file)}) from None

    try:
        config_dict = yaml.safe_load(expanded_config)
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in {config_file.name}: {e}"
        raise ConfigurationError(msg, context={"config_file": str(config_file)}) from None

    if config_dict is None:
        return {}
    if not isinstance(config_dict, dict):
        msg = f"{config_file.name} must contain a YAML mapping at root level"
        raise ConfigurationError(msg, context={"config_file": str(config_file)})

    section = config_dict.get("notification_hub", config_dict)
    if not isinstance(section, dict):
        msg = "notification_hub section must be a mapping"
        raise ConfigurationError(msg, context={"config_file": str(config_file)})
    return section


class HubSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        case_sensitive=False,
        extra="ignore",
    )

    # Connection
    connection_string: SecretStr  # Required
    hub_path: str  # Required

    # HTTP
    timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for hub HTTP requests",
    )

    # Observability
    log_level: str = "INFO"
    log_json: bool = True

    @field_validator("hub_path", mode="after")
    @classmethod
    def validate_hub_path(cls, v: str) -> str:
        """Hub path must name a hub, not be blank or a bare slash."""
        v = v.strip().strip("/")
        if not v:
            msg = "hub_path must not be empty"
            raise ValueError(msg)
        return v

    @field_validator("log_level", mode="after")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in logging.getLevelNamesMapping():
            msg = f"unknown log level '{v}'"
            raise ValueError(msg)
        return level


def load_settings(config_path: str | Path | None = None) -> HubSettings:
    """
    Load hub settings from environment variables and an optional YAML file.

    Values from the YAML file take precedence over ``NOTIFICATION_HUB_*``
    environment variables. When ``config_path`` is None the path is taken
    from ``NOTIFICATION_HUB_CONFIG`` if set.

    Args:
        config_path: Optional path to a YAML settings file

    Returns:
        Validated settings

    Raises:
        ConfigurationError: If the file cannot be read or settings are invalid
    """
    if config_path is None:
        config_path = os.environ.get(CONFIG_PATH_ENV)

    file_values = load_config_from_yaml(config_path) if config_path else {}

    try:
        settings = HubSettings(**file_values)
    except ValidationError as e:
        logger.error(
            "Configuration validation error",
            extra={"config_file": str(config_path) if config_path else None, "errors": e.error_count()},
        )
        msg = f"Invalid notification hub settings: {e}"
        raise ConfigurationError(msg, context={"config_file": str(config_path) if config_path else None}) from e

    logger.debug(
        "Settings loaded",
        extra={"hub_path": settings.hub_path, "config_file": str(config_path) if config_path else None},
    )
    return settings

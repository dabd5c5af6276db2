"""
Configuration loader for Telebridge.

Loads and merges configuration from:
1. Default values
2. The YAML configuration file (--conf, telebridge.yaml by default)
3. Environment variables (TELEBRIDGE_<SECTION>_<KEY>)
"""

import os
from pathlib import Path
from typing import Any, get_origin

import yaml
from pydantic import ValidationError

from telebridge.config.merger import deep_merge, set_nested_value
from telebridge.config.schema import Config

DEFAULT_CONFIG_PATH = Path("telebridge.yaml")

ENV_PREFIX = "TELEBRIDGE_"


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Read the bridge configuration file.

    A missing file is not an error: every setting can come from the
    environment instead.

    Raises:
        ConfigurationError: If the file is unreadable, not YAML, or not a mapping.
    """
    if not path.exists():
        return {}

    try:
        content = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigurationError(f"Expected a mapping at the top of {path}")
    return content


def apply_env_overrides(
    config: dict[str, Any],
    environ: dict[str, str] | None = None,
) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Environment variables follow the pattern TELEBRIDGE_<SECTION>_<KEY>=<value>,
    e.g. TELEBRIDGE_TELEGRAM_CHAT_ID or TELEBRIDGE_IRC_SERVER.

    Args:
        config: Configuration dictionary to modify.
        environ: Environment to read, defaults to os.environ.

    Returns:
        Configuration with environment overrides applied.
    """
    environ = os.environ if environ is None else environ
    sections = Config.model_fields.keys()

    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        # TELEBRIDGE_TELEGRAM_CHAT_ID -> telegram.chat_id
        section, _, field = key[len(ENV_PREFIX) :].lower().partition("_")
        if section not in sections or not field:
            continue

        config = set_nested_value(config, f"{section}.{field}", _parse_env_value(section, field, value))

    return config


def _parse_env_value(section: str, field: str, value: str) -> Any:
    """
    Parse an environment variable value for the given field.

    Scalars are left to pydantic to coerce; list fields are split on commas.
    """
    section_model = Config.model_fields[section].annotation
    field_info = getattr(section_model, "model_fields", {}).get(field)
    if field_info is not None and get_origin(field_info.annotation) is list:
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


def load_config(
    path: Path | None = None,
    skip_env: bool = False,
) -> Config:
    """
    Load and validate the bridge configuration.

    Loading order (later overrides earlier):
    1. Default values from Config model
    2. YAML configuration file
    3. Environment variables (TELEBRIDGE_*)

    Args:
        path: Configuration file path. Defaults to ./telebridge.yaml.
        skip_env: Skip environment variable overrides.

    Returns:
        Merged and validated Config object.

    Raises:
        ConfigurationError: If configuration is invalid or incomplete.
    """
    config_dict = Config().model_dump()

    file_config = load_yaml_file(path or DEFAULT_CONFIG_PATH)
    config_dict = deep_merge(config_dict, file_config)

    if not skip_env:
        config_dict = apply_env_overrides(config_dict)

    try:
        config = Config.model_validate(config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Configuration validation failed: {e}") from e

    missing = config.missing_required()
    if missing:
        raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")

    return config

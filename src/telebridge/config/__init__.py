"""Configuration loading and validation for Telebridge."""

from telebridge.config.loader import (
    DEFAULT_CONFIG_PATH,
    ConfigurationError,
    apply_env_overrides,
    load_config,
    load_yaml_file,
)
from telebridge.config.merger import deep_merge, set_nested_value
from telebridge.config.schema import Config, IRCConfig, TelegramConfig

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "Config",
    "ConfigurationError",
    "IRCConfig",
    "TelegramConfig",
    "apply_env_overrides",
    "deep_merge",
    "load_config",
    "load_yaml_file",
    "set_nested_value",
]

"""Format writer profile loading and validation."""

from embroidery.configs.loader import (
    ConfigError,
    FormatConfig,
    get_writer_settings,
    load_config,
    profile_to_settings,
)

__all__ = [
    "ConfigError",
    "FormatConfig",
    "get_writer_settings",
    "load_config",
    "profile_to_settings",
]

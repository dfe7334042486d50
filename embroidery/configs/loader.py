"""Configuration loader for format writer profiles.

Loads and validates ``formats.yaml`` into a frozen ``FormatConfig`` that
maps each format key to the ``EncoderSettings`` its writer uses.  The
stitch/jump limits, rounding and contingency policies per format come
from the config, not from the writers.

Distances are in **0.1 mm** (embroidery units) throughout.

Usage::

    from embroidery.configs.loader import load_config, get_writer_settings
    cfg = load_config()                       # default path
    cfg = load_config("/custom/formats.yaml") # explicit path
    pec = get_writer_settings("pec")          # cached default profile
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from embroidery.pattern_ir.commands import (
    COLOR_CHANGE,
    NEEDLE_SET,
    LongStitchContingency,
    SequinContingency,
    TieOffContingency,
    TieOnContingency,
)
from embroidery.transcoder.settings import EncoderSettings
from src.utils.validators import EncoderProfileV1, load_format_profiles

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "formats.yaml"

_THREAD_CHANGE = {"COLOR_CHANGE": COLOR_CHANGE, "NEEDLE_SET": NEEDLE_SET}


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FormatConfig:
    """Validated writer profiles keyed by lower-case format name."""

    profiles: dict[str, EncoderSettings]
    source: Path

    @property
    def formats(self) -> tuple[str, ...]:
        return tuple(sorted(self.profiles))

    def settings_for(self, fmt: str) -> EncoderSettings:
        """Writer settings for ``fmt`` (extension with or without dot).

        Raises
        ------
        ConfigError
            If no profile is configured for ``fmt``.
        """
        key = fmt.strip().lower().lstrip(".")
        try:
            return self.profiles[key]
        except KeyError:
            raise ConfigError(
                f"No writer profile for format '{fmt}' in {self.source}; "
                f"known: {', '.join(self.formats)}"
            ) from None


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


def profile_to_settings(profile: EncoderProfileV1) -> EncoderSettings:
    """Convert a validated profile into transcoder settings."""
    return EncoderSettings(
        max_stitch=profile.max_stitch,
        max_jump=profile.max_jump,
        full_jump=profile.full_jump,
        round=profile.round,
        needle_count=profile.needle_count,
        thread_change_command=_THREAD_CHANGE[profile.thread_change_command],
        sequin_contingency=SequinContingency[profile.sequin_contingency],
        long_stitch_contingency=LongStitchContingency[profile.long_stitch_contingency],
        tie_on_contingency=TieOnContingency[profile.tie_on_contingency],
        tie_off_contingency=TieOffContingency[profile.tie_off_contingency],
        writes_speeds=profile.writes_speeds,
        explicit_trim=profile.explicit_trim,
    )


def load_config(path: str | Path | None = None) -> FormatConfig:
    """Load and validate writer profiles from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to ``formats.yaml``.  ``None`` loads the default shipped
        alongside this module.

    Returns
    -------
    FormatConfig
        Frozen profile table.

    Raises
    ------
    ConfigError
        If the file fails schema validation.
    FileNotFoundError
        If *path* does not exist.
    """
    path = DEFAULT_CONFIG_PATH if path is None else Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading format profiles from %s", path)
    try:
        validated = load_format_profiles(path)
        profiles = {
            name: profile_to_settings(profile)
            for name, profile in validated.formats.items()
        }
    except ValueError as e:
        raise ConfigError(str(e)) from e

    logger.debug("Loaded %d writer profiles: %s", len(profiles), ", ".join(sorted(profiles)))
    return FormatConfig(profiles=profiles, source=path)


@lru_cache(maxsize=1)
def _default_config() -> FormatConfig:
    return load_config()


def get_writer_settings(fmt: str) -> EncoderSettings:
    """Default writer settings for ``fmt`` from the shipped profiles.

    The shipped file is parsed once per process.
    """
    return _default_config().settings_for(fmt)

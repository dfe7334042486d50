"""YAML schema validation for format writer profiles.

Provides centralized validation for the writer profile file using pydantic:
    - Encoder profile: stitch/jump limits, rounding, thread-change
      command, needle count and contingency policy names
    - Profiles file (format_profiles.v1): one encoder profile per format

All loaders go through these validators for fail-fast error detection
with actionable messages (offending keys, expected ranges).

Units:
    - Distances: 0.1 mm (embroidery units)
    - ``.inf`` in YAML disables a limit

Usage:
    from src.utils import validators

    profiles = validators.load_format_profiles("embroidery/configs/formats.yaml")
    pec = profiles.formats["pec"]
"""

import math
from pathlib import Path
from typing import Dict, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

THREAD_CHANGE_COMMANDS = ("COLOR_CHANGE", "NEEDLE_SET")
LONG_STITCH_CONTINGENCIES = ("NONE", "JUMP_NEEDLE", "SEW_TO")
SEQUIN_CONTINGENCIES = ("UTILIZE", "JUMP", "STITCH", "REMOVE")
TIE_CONTINGENCIES = ("NONE",)


# ============================================================================
# FORMAT PROFILES SCHEMA V1
# ============================================================================

class EncoderProfileV1(BaseModel):
    """Writer limits for one embroidery format.

    Contingency policies are given by name and upper-cased on load.
    """
    max_stitch: float = Field(math.inf, gt=0.0, description="Longest stitch (0.1 mm)")
    max_jump: float = Field(math.inf, gt=0.0, description="Longest jump (0.1 mm)")
    full_jump: bool = Field(False, description="Format distinguishes full jumps")
    round: bool = Field(False, description="Round coordinates to whole units")
    needle_count: int = Field(5, ge=1, le=255, description="Needles on the machine")
    thread_change_command: str = Field("COLOR_CHANGE")
    sequin_contingency: str = Field("JUMP")
    long_stitch_contingency: str = Field("JUMP_NEEDLE")
    tie_on_contingency: str = Field("NONE")
    tie_off_contingency: str = Field("NONE")
    writes_speeds: bool = Field(True, description="Keep SLOW/FAST commands")
    explicit_trim: bool = Field(False, description="TRIM before every color change")

    model_config = ConfigDict(extra="forbid")

    @field_validator('thread_change_command')
    @classmethod
    def validate_thread_change(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in THREAD_CHANGE_COMMANDS:
            raise ValueError(f"thread_change_command must be one of {THREAD_CHANGE_COMMANDS}, got '{v}'")
        return v

    @field_validator('long_stitch_contingency')
    @classmethod
    def validate_long_stitch(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in LONG_STITCH_CONTINGENCIES:
            raise ValueError(f"long_stitch_contingency must be one of {LONG_STITCH_CONTINGENCIES}, got '{v}'")
        return v

    @field_validator('sequin_contingency')
    @classmethod
    def validate_sequin(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in SEQUIN_CONTINGENCIES:
            raise ValueError(f"sequin_contingency must be one of {SEQUIN_CONTINGENCIES}, got '{v}'")
        return v

    @field_validator('tie_on_contingency', 'tie_off_contingency')
    @classmethod
    def validate_tie(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in TIE_CONTINGENCIES:
            raise ValueError(f"tie contingencies support only {TIE_CONTINGENCIES}, got '{v}'")
        return v

    @model_validator(mode='after')
    def validate_needles(self) -> 'EncoderProfileV1':
        """A needle-set profile needs at least two needles to change thread."""
        if self.thread_change_command == "NEEDLE_SET" and self.needle_count < 2:
            raise ValueError(
                f"NEEDLE_SET thread changes need needle_count >= 2, got {self.needle_count}"
            )
        return self


class FormatProfilesV1(BaseModel):
    """Container for per-format writer profiles (formats.yaml)."""
    schema_version: str = Field("format_profiles.v1", alias="schema", description="Schema version")
    formats: Dict[str, EncoderProfileV1] = Field(..., description="Profile per format key")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "format_profiles.v1":
            raise ValueError(f"Expected schema 'format_profiles.v1', got '{v}'")
        return v

    @field_validator('formats')
    @classmethod
    def validate_format_keys(cls, v: Dict[str, EncoderProfileV1]) -> Dict[str, EncoderProfileV1]:
        if not v:
            raise ValueError("formats must define at least one profile")
        normalized = {}
        for key, profile in v.items():
            name = key.strip().lower().lstrip('.')
            if not name:
                raise ValueError(f"Invalid format key: '{key}'")
            normalized[name] = profile
        return normalized


def load_format_profiles(path: Union[str, Path]) -> FormatProfilesV1:
    """Load and validate format writer profiles from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to formats.yaml

    Returns
    -------
    FormatProfilesV1
        Validated profiles

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ValueError
        If validation fails (with actionable error message)
    """
    from . import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Format profiles not found: {path}")

    data = fs.load_yaml(path)
    try:
        return FormatProfilesV1(**data)
    except Exception as e:
        raise ValueError(f"Format profiles validation failed at {path}: {e}") from e

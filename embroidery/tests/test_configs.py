"""Tests for the writer profile loader.

Validates that:
    - formats.yaml loads with the current schema and covers every codec
    - Profiles convert to EncoderSettings with the enum policies resolved
    - Per-format limits fit each format's delta encoding
    - Malformed files raise ConfigError with the offending key named

Tests avoid pinning tunable values (e.g. exact stitch limits) beyond
what the byte formats themselves require.
"""

from __future__ import annotations

import math
from pathlib import Path

import pytest

from embroidery.codecs import supported_formats
from embroidery.configs import (
    ConfigError,
    FormatConfig,
    get_writer_settings,
    load_config,
)
from embroidery.pattern_ir.commands import (
    COLOR_CHANGE,
    NEEDLE_SET,
    LongStitchContingency,
    SequinContingency,
    TieOnContingency,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def config() -> FormatConfig:
    """Load the default formats.yaml shipped with the package."""
    return load_config()


def _write_yaml(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "formats.yaml"
    path.write_text(text)
    return path


# ---------------------------------------------------------------------------
# Shipped profiles
# ---------------------------------------------------------------------------


class TestShippedProfiles:
    def test_every_codec_has_a_profile(self, config: FormatConfig) -> None:
        assert set(supported_formats()) <= set(config.formats)

    def test_pec_limits_fit_12_bit_deltas(self, config: FormatConfig) -> None:
        pec = config.settings_for("pec")
        assert pec.max_stitch <= 2047
        assert pec.max_jump <= 2047
        assert pec.thread_change_command == COLOR_CHANGE

    @pytest.mark.parametrize("fmt", ["jef", "u01"])
    def test_byte_delta_formats(self, config: FormatConfig, fmt: str) -> None:
        settings = config.settings_for(fmt)
        assert settings.max_stitch <= 127
        assert settings.max_jump <= 127
        assert settings.round is True

    def test_u01_uses_needle_set(self, config: FormatConfig) -> None:
        u01 = config.settings_for(".U01")
        assert u01.thread_change_command == NEEDLE_SET
        assert u01.needle_count >= 2

    def test_policies_resolved_to_enums(self, config: FormatConfig) -> None:
        jef = config.settings_for("jef")
        assert isinstance(jef.sequin_contingency, SequinContingency)
        assert isinstance(jef.long_stitch_contingency, LongStitchContingency)
        assert jef.tie_on_contingency is TieOnContingency.NONE

    def test_get_writer_settings_cached(self) -> None:
        assert get_writer_settings("pec") is get_writer_settings("pec")

    def test_unknown_format(self, config: FormatConfig) -> None:
        with pytest.raises(ConfigError, match="No writer profile for format 'dst'"):
            config.settings_for("dst")


# ---------------------------------------------------------------------------
# Custom files
# ---------------------------------------------------------------------------


class TestLoadConfig:
    def test_minimal_file_uses_defaults(self, tmp_path: Path) -> None:
        path = _write_yaml(tmp_path, "schema: format_profiles.v1\nformats:\n  PEC: {}\n")
        cfg = load_config(path)
        assert cfg.formats == ("pec",)
        assert cfg.source == path
        assert cfg.settings_for("pec").max_stitch == math.inf

    def test_inf_limit(self, tmp_path: Path) -> None:
        path = _write_yaml(
            tmp_path,
            "schema: format_profiles.v1\nformats:\n  jef:\n    max_jump: .inf\n    max_stitch: 64\n",
        )
        settings = load_config(path).settings_for("jef")
        assert settings.max_jump == math.inf
        assert settings.max_stitch == 64

    def test_policy_names_case_insensitive(self, tmp_path: Path) -> None:
        path = _write_yaml(
            tmp_path,
            "schema: format_profiles.v1\nformats:\n  pec:\n    long_stitch_contingency: sew_to\n",
        )
        settings = load_config(path).settings_for("pec")
        assert settings.long_stitch_contingency is LongStitchContingency.SEW_TO

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Configuration file not found"):
            load_config(tmp_path / "missing.yaml")

    @pytest.mark.parametrize(
        "body, message",
        [
            ("schema: format_profiles.v2\nformats:\n  pec: {}\n", "format_profiles.v1"),
            ("schema: format_profiles.v1\nformats: {}\n", "at least one profile"),
            ("schema: format_profiles.v1\nformats:\n  pec:\n    max_stitch: 0\n", "max_stitch"),
            ("schema: format_profiles.v1\nformats:\n  pec:\n    colour: red\n", "colour"),
            (
                "schema: format_profiles.v1\nformats:\n  pec:\n    sequin_contingency: EJECT\n",
                "sequin_contingency must be one of",
            ),
            (
                "schema: format_profiles.v1\nformats:\n  pec:\n    tie_on_contingency: THREE_SMALL\n",
                "tie contingencies support only",
            ),
            (
                "schema: format_profiles.v1\nformats:\n  u01:\n"
                "    thread_change_command: NEEDLE_SET\n    needle_count: 1\n",
                "needle_count >= 2",
            ),
        ],
    )
    def test_invalid_profiles(self, tmp_path: Path, body: str, message: str) -> None:
        path = _write_yaml(tmp_path, body)
        with pytest.raises(ConfigError, match=message):
            load_config(path)

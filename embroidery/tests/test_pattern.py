"""Tests for the Pattern IR: commands, threads and EmbPattern.

Validates packing of thread-change commands, thread parsing and
equality, and the append-only pattern API with its derived queries.
"""

from __future__ import annotations

import math

import pytest

from embroidery.pattern_ir import commands
from embroidery.pattern_ir.commands import (
    COLOR_CHANGE,
    END,
    JUMP,
    NEEDLE_SET,
    STITCH,
    STOP,
    TRIM,
    command_name,
    command_of,
    decode_embroidery_command,
    encode_thread_change,
)
from embroidery.pattern_ir.matrix import Matrix
from embroidery.pattern_ir.pattern import EmbPattern, PatternError
from embroidery.pattern_ir.thread import (
    ColorError,
    EmbThread,
    parse_color_hex,
    parse_color_string,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def square() -> EmbPattern:
    """Red then blue, three stitches around a 100-unit square corner."""
    p = EmbPattern()
    p.add_thread(EmbThread(0xFF0000))
    p.add_thread(EmbThread(0x0000FF))
    p.add_stitch_absolute(STITCH, 0, 0)
    p.add_stitch_absolute(STITCH, 100, 0)
    p.add_stitch_relative(COLOR_CHANGE)
    p.add_stitch_absolute(STITCH, 100, 100)
    p.end()
    return p


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class TestCommands:
    def test_low_byte_selects_kind(self) -> None:
        packed = encode_thread_change(NEEDLE_SET, thread=3, needle=7)
        assert command_of(packed) == NEEDLE_SET
        assert command_name(packed) == "NEEDLE_SET"

    def test_indices_stored_plus_one(self) -> None:
        packed = encode_thread_change(COLOR_CHANGE, thread=0, needle=1, order=2)
        assert packed == COLOR_CHANGE | (1 << 8) | (2 << 16) | (3 << 24)

    def test_decode_round_trip(self) -> None:
        packed = encode_thread_change(NEEDLE_SET, thread=254, needle=0)
        assert decode_embroidery_command(packed) == (NEEDLE_SET, 254, 0, None)

    def test_unset_fields_decode_as_none(self) -> None:
        assert decode_embroidery_command(STITCH) == (STITCH, None, None, None)

    def test_index_out_of_range(self) -> None:
        with pytest.raises(ValueError, match="thread index"):
            encode_thread_change(COLOR_CHANGE, thread=255)

    def test_unknown_kind_name(self) -> None:
        assert command_name(0x42) == "UNKNOWN"

    def test_contingency_codes(self) -> None:
        assert commands.LongStitchContingency.SEW_TO.value == 0xF2
        assert commands.SequinContingency.REMOVE.value == 0xF8
        assert commands.TieOnContingency.NONE.value == 0xD3
        assert commands.TieOffContingency.NONE.value == 0xD4


# ---------------------------------------------------------------------------
# Threads
# ---------------------------------------------------------------------------


class TestThread:
    def test_alpha_bits_dropped(self) -> None:
        assert EmbThread(0xFF123456).color == 0x123456

    def test_equality_by_color_only(self) -> None:
        a = EmbThread(0x00FF00, description="Green", brand="A")
        b = EmbThread(0x00FF00, description="Leaf", brand="B")
        assert a == b
        assert hash(a) == hash(b)
        assert a != EmbThread(0x00FE00)

    def test_components_and_hex(self) -> None:
        t = EmbThread.from_rgb(0x12, 0xAB, 0xEF)
        assert (t.red, t.green, t.blue) == (0x12, 0xAB, 0xEF)
        assert t.hex_color() == "#12abef"
        assert t.opaque_color == 0xFF12ABEF

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("#ff0000", 0xFF0000),
            ("#f00", 0xFF0000),
            ("#00ff0080", 0x00FF00),
            ("0000ff", 0x0000FF),
        ],
    )
    def test_parse_hex(self, text: str, expected: int) -> None:
        assert parse_color_hex(text) == expected

    def test_parse_named_color(self) -> None:
        assert parse_color_string("Dark Blue") == 0x00008B
        assert parse_color_string("red") == 0xFF0000

    def test_parse_random_in_range(self) -> None:
        assert 0 <= parse_color_string("random") <= 0xFFFFFF

    def test_parse_errors(self) -> None:
        with pytest.raises(ColorError, match="Invalid hex"):
            parse_color_hex("#12345")
        with pytest.raises(ColorError, match="Unknown color name"):
            parse_color_string("not-a-color")

    def test_nearest_index_skips_holes(self) -> None:
        palette = [None, EmbThread(0x000000), EmbThread(0xFF0000), None]
        assert EmbThread(0xEE1010).find_nearest_color_index(palette) == 2
        assert EmbThread(0xEE1010).find_nearest_color_index([None, None]) is None

    def test_delta_e_ranking(self) -> None:
        palette = [EmbThread(0x0000FF), EmbThread(0xFFFF00)]
        assert EmbThread(0x1010F0).find_closest_delta_e_index(palette) == 0
        assert EmbThread(0x808080).delta_e(0x808080) == pytest.approx(0.0)


# ---------------------------------------------------------------------------
# Pattern construction and queries
# ---------------------------------------------------------------------------


class TestPatternConstruction:
    def test_relative_stitches_accumulate(self) -> None:
        p = EmbPattern()
        p.stitch(10, 5)
        p.stitch(-3, 2)
        assert [s.as_tuple() for s in p.stitches] == [
            (10, 5, STITCH),
            (7, 7, STITCH),
        ]

    def test_add_thread_accepts_int_and_string(self) -> None:
        p = EmbPattern()
        p.add_thread(0x123456)
        p.add_thread("#00ff00")
        p.add_thread(EmbThread(0x0000FF))
        assert [t.color for t in p.threads] == [0x123456, 0x00FF00, 0x0000FF]

    def test_metadata(self) -> None:
        p = EmbPattern()
        p.add_metadata("name", "Rose")
        assert p.get_metadata("name") == "Rose"
        assert p.get_metadata("author", "n/a") == "n/a"

    def test_ensure_end(self) -> None:
        p = EmbPattern()
        p.ensure_end()
        assert [s.kind for s in p.stitches] == [END]
        p.end()
        p.end()
        p.ensure_end()
        assert [s.kind for s in p.stitches] == [END]

    def test_needle_change_packs_needle(self) -> None:
        p = EmbPattern()
        p.needle_change(4)
        assert decode_embroidery_command(p.stitches[0].command)[2] == 4

    def test_copy_is_deep(self, square: EmbPattern) -> None:
        clone = square.copy()
        clone.stitches[0].x = 999
        clone.threads.append(EmbThread(0))
        assert square.stitches[0].x == 0
        assert len(square.threads) == 2


class TestPatternQueries:
    def test_bounds(self, square: EmbPattern) -> None:
        assert square.bounds() == (0, 0, 100, 100)
        assert square.width() == 100
        assert square.height() == 100

    def test_bounds_empty(self) -> None:
        assert EmbPattern().bounds() == (0.0, 0.0, 0.0, 0.0)

    def test_bounds_skip_non_finite(self) -> None:
        p = EmbPattern()
        p.stitch_abs(5, 5)
        p.stitch_abs(math.nan, 50)
        assert p.bounds() == (5, 5, 5, 5)

    def test_counts(self, square: EmbPattern) -> None:
        assert square.count_stitches() == 3
        assert square.count_color_changes() == 1
        assert square.count_threads() == 2
        assert square.count_jumps() == 0

    def test_stitch_lengths(self, square: EmbPattern) -> None:
        assert square.total_stitch_length() == pytest.approx(200.0)
        assert square.max_stitch_length() == pytest.approx(100.0)
        assert square.avg_stitch_length() == pytest.approx(200.0 / 3)

    def test_colorblocks(self, square: EmbPattern) -> None:
        blocks = square.get_as_colorblocks()
        assert [len(points) for points, _ in blocks] == [2, 1]
        assert [thread.color for _, thread in blocks] == [0xFF0000, 0x0000FF]

    def test_filler_thread_past_list(self) -> None:
        p = EmbPattern()
        p.stitch(1, 1)
        p.color_change()
        p.stitch(1, 1)
        blocks = p.get_as_stitchblocks()
        assert len(blocks) == 2
        assert blocks[0][1] == p.get_thread_or_filler(0)

    def test_statistics(self, square: EmbPattern) -> None:
        stats = square.calculate_statistics(machine_speed_spm=600)
        assert stats.stitch_count == 3
        assert stats.total_length_mm == pytest.approx(20.0)
        assert stats.width_mm == pytest.approx(10.0)
        assert stats.estimated_time_minutes == pytest.approx(3 / 600)
        assert stats.density == pytest.approx(3.0)
        usage = stats.thread_usage
        assert [u.stitch_count for u in usage] == [2, 1]
        assert usage[1].length_mm == pytest.approx(10.0)


class TestPatternTransforms:
    def test_translate(self, square: EmbPattern) -> None:
        square.translate(10, -5)
        assert square.bounds() == (10, -5, 110, 95)

    def test_translate_ignores_non_finite(self, square: EmbPattern) -> None:
        square.translate(math.inf, 0)
        assert square.bounds() == (0, 0, 100, 100)

    def test_move_center_to_origin(self, square: EmbPattern) -> None:
        square.move_center_to_origin()
        assert square.bounds() == (-50, -50, 50, 50)

    def test_apply_matrix(self, square: EmbPattern) -> None:
        m = Matrix()
        m.post_scale(0.5)
        square.apply_matrix(m)
        assert square.bounds() == (0, 0, 50, 50)

    def test_split_long_stitches(self) -> None:
        p = EmbPattern()
        p.stitch_abs(0, 0)
        p.stitch_abs(100, 0)
        p.split_long_stitches(30)
        xs = [s.x for s in p.stitches]
        assert xs == pytest.approx([0, 25, 50, 75, 100])

    def test_split_rejects_bad_length(self) -> None:
        with pytest.raises(PatternError, match="Invalid max_length"):
            EmbPattern().split_long_stitches(0)

    def test_remove_duplicates(self) -> None:
        p = EmbPattern()
        p.stitch_abs(1, 1)
        p.stitch_abs(1, 1)
        p.trim()
        p.stitch_abs(2, 2)
        p.remove_duplicates()
        assert [s.kind for s in p.stitches] == [STITCH, TRIM, STITCH]

    def test_interpolate_trims_clips_jump_run(self) -> None:
        p = EmbPattern()
        p.stitch_abs(0, 0)
        for _ in range(3):
            p.jump(10, 0)
        p.stitch(0, 0)
        p.interpolate_trims(trim_at=3)
        assert [s.kind for s in p.stitches] == [STITCH, JUMP, TRIM, STITCH]
        assert p.stitches[2].x == 30

    def test_interpolate_trims_respects_distance(self) -> None:
        p = EmbPattern()
        for _ in range(3):
            p.jump(1, 0)
        p.interpolate_trims(trim_at=3, trim_distance=50.0)
        assert p.count_trims() == 0

    def test_duplicate_color_becomes_stop(self) -> None:
        p = EmbPattern()
        p.stitch(1, 1)
        p.color_change()
        p.color_change()
        p.stitch(1, 1)
        p.interpolate_duplicate_color_as_stop()
        assert [s.kind for s in p.stitches] == [STITCH, STOP, COLOR_CHANGE, STITCH]

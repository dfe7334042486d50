"""Tests for the palette quantizer and named thread palettes."""

from __future__ import annotations

import pytest

from embroidery.palettes import (
    JEF_THREADS,
    PEC_THREADS,
    PaletteError,
    PaletteLibrary,
    ThreadPalette,
    build_nonrepeat_palette,
    build_palette,
    build_unique_palette,
)
from embroidery.pattern_ir.pattern import EmbPattern
from embroidery.pattern_ir.thread import EmbThread


@pytest.fixture()
def reds() -> list:
    """Placeholder slot, two reds and a blue."""
    return [None, EmbThread(0xFF0000), EmbThread(0xCC0000), EmbThread(0x0000FF)]


def _threads(*colors: int) -> list[EmbThread]:
    return [EmbThread(c) for c in colors]


# ---------------------------------------------------------------------------
# Assignment strategies
# ---------------------------------------------------------------------------


class TestBuildPalette:
    def test_nearest_allows_collisions(self, reds: list) -> None:
        assert build_palette(reds, _threads(0xFE0000, 0xFD0000)) == [1, 1]

    def test_reserved_slot_skipped(self, reds: list) -> None:
        assert build_palette(reds, _threads(0xFE0000), reserved=(1,)) == [2]

    def test_empty_table(self) -> None:
        assert build_palette([None, None], _threads(0x123456)) == [None]


class TestNonRepeatPalette:
    def test_adjacent_distinct_threads_differ(self, reds: list) -> None:
        assert build_nonrepeat_palette(reds, _threads(0xFE0000, 0xFD0000)) == [1, 2]

    def test_same_color_may_repeat(self, reds: list) -> None:
        assert build_nonrepeat_palette(reds, _threads(0xFF0000, 0xFF0000)) == [1, 1]

    def test_repair_looks_one_step_back(self, reds: list) -> None:
        result = build_nonrepeat_palette(reds, _threads(0xFE0000, 0x0000FE, 0xFD0000))
        assert result == [1, 3, 1]

    def test_table_not_mutated(self, reds: list) -> None:
        before = list(reds)
        build_nonrepeat_palette(reds, _threads(0xFE0000, 0xFD0000, 0xFC0000))
        assert reds == before

    def test_jef_red_and_blue(self) -> None:
        assert build_nonrepeat_palette(JEF_THREADS, _threads(0xFF0000, 0x0000FF)) == [10, 12]


class TestUniquePalette:
    def test_distinct_colors_get_distinct_slots(self, reds: list) -> None:
        result = build_unique_palette(reds, _threads(0xFE0000, 0xFD0000, 0xFE0000))
        assert result == [1, 2, 1]

    def test_pec_reserved_unknown_slot(self) -> None:
        (index,) = build_unique_palette(PEC_THREADS, _threads(0x000000), reserved=(0,))
        assert index != 0
        assert PEC_THREADS[index].color == 0x000000

    def test_exhausted_table_reuses_slots(self) -> None:
        table = _threads(0xFF0000, 0x0000FF)
        result = build_unique_palette(table, _threads(0xFF0000, 0x0000FF, 0x00FF00))
        assert result[:2] == [0, 1]
        assert result[2] in (0, 1)

    def test_pec_red_and_blue(self) -> None:
        assert build_unique_palette(PEC_THREADS, _threads(0xFF0000, 0x0000FF), (0,)) == [5, 2]


# ---------------------------------------------------------------------------
# Named palettes
# ---------------------------------------------------------------------------


class TestThreadPalette:
    def test_len_ignores_placeholders(self, reds: list) -> None:
        assert len(ThreadPalette("reds", reds)) == 3

    def test_find_closest(self, reds: list) -> None:
        palette = ThreadPalette("reds", reds)
        assert palette.find_closest_index(0x1010EE) == 3
        assert palette.find_closest(EmbThread(0xD00000)).color == 0xCC0000

    def test_quantize_is_positional(self, reds: list) -> None:
        p = EmbPattern()
        for color in (0x0000EE, 0xEE0000, 0x0000EE):
            p.add_thread(EmbThread(color))
        p.stitch(1, 1)
        before = [s.as_tuple() for s in p.stitches]

        result = ThreadPalette("reds", reds).quantize_pattern(p)

        assert result is p
        assert [t.color for t in p.threads] == [0x0000FF, 0xFF0000, 0x0000FF]
        assert p.threads[0] is not reds[3]
        assert [s.as_tuple() for s in p.stitches] == before

    def test_empty_palette_raises(self) -> None:
        p = EmbPattern()
        p.add_thread(EmbThread(0xFF0000))
        with pytest.raises(PaletteError, match="empty palette 'none'"):
            ThreadPalette("none", [None]).quantize_pattern(p)


class TestPaletteLibrary:
    @pytest.mark.parametrize(
        "name, expected",
        [("JEF", "Janome JEF"), (" janome ", "Janome JEF"), ("pec", "Brother PEC"), ("Brother", "Brother PEC")],
    )
    def test_get_by_name(self, name: str, expected: str) -> None:
        assert PaletteLibrary.get_by_name(name).name == expected

    def test_unknown_name(self) -> None:
        assert PaletteLibrary.get_by_name("dst") is None

    def test_pec_palette_never_matches_unknown_slot(self) -> None:
        palette = PaletteLibrary.brother_pec()
        assert palette.threads[0] is None
        assert palette.find_closest_index(0x000000) != 0

    def test_all_palettes(self) -> None:
        assert [p.name for p in PaletteLibrary.all_palettes()] == ["Brother PEC", "Janome JEF"]

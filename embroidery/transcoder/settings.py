"""Encoder settings -- the target-machine limits one transcode honours.

An ``EncoderSettings`` is immutable and consumed by exactly one
``Transcoder`` call; it is never stored on a pattern.  Writers obtain
their default settings from ``embroidery.configs.loader`` and may be
handed an override by the caller.

Distances are in 0.1 mm.  ``math.inf`` disables a limit.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Optional

from embroidery.pattern_ir.commands import (
    COLOR_CHANGE,
    NEEDLE_SET,
    LongStitchContingency,
    SequinContingency,
    TieOffContingency,
    TieOnContingency,
)
from embroidery.pattern_ir.matrix import Matrix


@dataclass(frozen=True)
class EncoderSettings:
    """Transcoder configuration with documented defaults.

    Parameters
    ----------
    max_stitch, max_jump : float
        Longest stitch / jump the target accepts.  Default: unlimited.
    full_jump : bool
        Carried in writer profiles for formats that distinguish partial
        from full jumps.  The transcoder always emits every jump.
    round : bool
        Round coordinates to whole units before contingency logic.
    needle_count : int
        Needles available when color changes become ``NEEDLE_SET``.
    thread_change_command : int
        ``COLOR_CHANGE`` or ``NEEDLE_SET``.
    sequin_contingency, long_stitch_contingency : Enum
        Rewrite policies, see ``embroidery.pattern_ir.commands``.
    tie_on_contingency, tie_off_contingency : Enum
        Reserved; only ``NONE`` is accepted.
    writes_speeds : bool
        Keep ``SLOW``/``FAST`` commands; drop them otherwise.
    explicit_trim : bool
        Emit a ``TRIM`` before every color change.
    matrix : Matrix | None
        Transform applied to every coordinate first.  ``None`` is the
        identity.
    """

    max_stitch: float = math.inf
    max_jump: float = math.inf
    full_jump: bool = False
    round: bool = False
    needle_count: int = 5
    thread_change_command: int = COLOR_CHANGE
    sequin_contingency: SequinContingency = SequinContingency.JUMP
    long_stitch_contingency: LongStitchContingency = LongStitchContingency.JUMP_NEEDLE
    tie_on_contingency: TieOnContingency = TieOnContingency.NONE
    tie_off_contingency: TieOffContingency = TieOffContingency.NONE
    writes_speeds: bool = True
    explicit_trim: bool = False
    matrix: Optional[Matrix] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        for name in ("max_stitch", "max_jump"):
            value = getattr(self, name)
            if math.isnan(value) or value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        if self.needle_count < 1:
            raise ValueError(f"needle_count must be >= 1, got {self.needle_count}")
        if self.thread_change_command not in (COLOR_CHANGE, NEEDLE_SET):
            raise ValueError(
                "thread_change_command must be COLOR_CHANGE or NEEDLE_SET, "
                f"got {self.thread_change_command:#x}"
            )
        if not isinstance(self.tie_on_contingency, TieOnContingency):
            raise ValueError(f"Unsupported tie-on contingency: {self.tie_on_contingency!r}")
        if not isinstance(self.tie_off_contingency, TieOffContingency):
            raise ValueError(f"Unsupported tie-off contingency: {self.tie_off_contingency!r}")

    # ------------------------------------------------------------------
    # Derived copies
    # ------------------------------------------------------------------

    def replace(self, **changes: Any) -> EncoderSettings:
        return replace(self, **changes)

    def _with_matrix_op(self, op: str, *args: float) -> EncoderSettings:
        matrix = self.matrix.copy() if self.matrix is not None else Matrix()
        getattr(matrix, op)(*args)
        return replace(self, matrix=matrix)

    def translate(self, tx: float, ty: float) -> EncoderSettings:
        """New settings whose matrix additionally translates."""
        return self._with_matrix_op("post_translate", tx, ty)

    def scale(self, sx: float, sy: Optional[float] = None) -> EncoderSettings:
        return self._with_matrix_op("post_scale", sx, sx if sy is None else sy)

    def rotate(self, degrees: float) -> EncoderSettings:
        return self._with_matrix_op("post_rotate", degrees)

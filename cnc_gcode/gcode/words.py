"""G-code word formatting -- the pure helpers behind the program builder.

Everything here is side-effect free: unit scaling, number rendering,
coordinate words, opcode words and line-number words.  The builder in
:mod:`cnc_gcode.gcode.program` funnels every emitted value through these
functions so that the text format lives in one place.

Units convention:
    Callers express coordinates and feed rates in the program unit.
    Metric units are converted to millimetres at the formatting boundary::

        cm -> x10    dm -> x100    m -> x1000    mm / in / inch -> x1

    Inches are not rescaled: the controller reads raw numbers as inches
    once ``G20`` is active.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from numbers import Number
from typing import Any, Union

# ---------------------------------------------------------------------------
# Catalogues
# ---------------------------------------------------------------------------

UNIT_SCALE: dict[str, int] = {
    "mm": 1,
    "cm": 10,
    "dm": 100,
    "m": 1000,
    "in": 1,
    "inch": 1,
}
"""Multiplier from each recognized unit to the emitted number."""

INCH_UNITS = frozenset({"in", "inch"})

OPEN_MARKER = "%"
"""Program open / close tag."""

NAME_LETTER = "O"


class GCode(str, Enum):
    """Preparatory codes, zero-padded as they appear in the listing."""

    RAPID = "00"
    LINEAR = "01"
    INCH = "20"
    METRIC = "21"
    ABSOLUTE = "90"
    RELATIVE = "91"

    def word(self) -> str:
        return opcode("G", self.value)


class MCode(str, Enum):
    """Miscellaneous machine functions."""

    FORCED_STOP = "00"
    SPINDLE_CW = "03"
    SPINDLE_CCW = "04"
    SPINDLE_STOP = "05"
    COOLANT_MIST = "07"
    COOLANT_FLOOD = "08"
    COOLANT_STOP = "09"
    PROGRAM_END = "30"

    def word(self) -> str:
        return opcode("M", self.value)


class Positioning(Enum):
    """Distance mode of the program (G90 / G91)."""

    ABSOLUTE = 0
    RELATIVE = 1

    @classmethod
    def parse(cls, value: Any) -> "Positioning":
        """Parse ``absolute``/``relative``/``0``/``1`` into a member.

        Raises
        ------
        ValueError
            If *value* is not one of the recognized tokens.
        """
        if isinstance(value, cls):
            return value
        token = _integral_token(str(value).strip().lower())
        if token in ("absolute", "0"):
            return cls.ABSOLUTE
        if token in ("relative", "1"):
            return cls.RELATIVE
        raise ValueError(
            f"positioning must be 'absolute', 'relative', 0 or 1, got {value!r}"
        )

    @property
    def code(self) -> GCode:
        return GCode.ABSOLUTE if self is Positioning.ABSOLUTE else GCode.RELATIVE


def _integral_token(token: str) -> str:
    """Collapse numeric tokens such as ``1.0`` to ``1``."""
    try:
        number = float(token)
    except ValueError:
        return token
    if math.isfinite(number) and number.is_integer():
        return str(int(number))
    return token


# ---------------------------------------------------------------------------
# Position
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Position:
    """Target coordinate with optional axes.

    Missing axes are ``None`` and are left out of the emitted words, so a
    position may move a single axis.
    """

    x: float | None = None
    y: float | None = None
    z: float | None = None

    @classmethod
    def coerce(cls, value: "PositionLike") -> "Position":
        """Build a position from a triple, a partial sequence or a mapping.

        Sequences map positionally onto ``(x, y, z)``; mappings use the
        keys ``x``, ``y`` and ``z`` (case-insensitive).
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, Mapping):
            keyed = {str(k).lower(): v for k, v in value.items()}
            return cls(x=keyed.get("x"), y=keyed.get("y"), z=keyed.get("z"))
        if isinstance(value, Sequence) and not isinstance(value, str):
            if len(value) > 3:
                raise ValueError(
                    f"position takes at most 3 components, got {len(value)}"
                )
            padded = list(value) + [None] * (3 - len(value))
            return cls(x=padded[0], y=padded[1], z=padded[2])
        raise TypeError(
            f"position must be a sequence or mapping, got {type(value).__name__}"
        )

    def components(self) -> tuple[tuple[str, float], ...]:
        """Present axes as ``(letter, value)`` pairs in X, Y, Z order."""
        return tuple(
            (axis, value)
            for axis, value in (("X", self.x), ("Y", self.y), ("Z", self.z))
            if value is not None
        )


PositionLike = Union[Position, Sequence[Any], Mapping[str, Any]]

# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def is_known_unit(unit: str) -> bool:
    return unit in UNIT_SCALE


def unit_code(unit: str) -> GCode:
    """``G20`` for inches, ``G21`` for every other unit (scaled to mm)."""
    return GCode.INCH if unit in INCH_UNITS else GCode.METRIC


def scale(value: float, unit: str) -> float:
    """Convert *value* from *unit* to the emitted representation.

    Unrecognized units, and values that are not numbers, pass through
    unchanged.
    """
    if isinstance(value, bool) or not isinstance(value, Number):
        return value
    return value * UNIT_SCALE.get(unit, 1)


def format_number(value: Any) -> str:
    """Render a number in its natural decimal form.

    Integral floats drop the fractional part (``655.0`` -> ``655``),
    other floats use the digits of their shortest repr, never in exponent
    form (``5e-05`` -> ``0.00005``).  Non-finite floats render as
    ``nan`` / ``inf``.
    """
    if isinstance(value, bool):
        return str(int(value))
    if isinstance(value, float) and math.isfinite(value):
        if value.is_integer():
            return str(int(value))
        return format(Decimal(repr(value)), "f")
    return str(value)


def opcode(letter: str, code: Any) -> str:
    """Concatenate a word letter and its code (``G`` + ``00`` -> ``G00``)."""
    return f"{letter}{code}"


def position_words(position: PositionLike, unit: str) -> str:
    """Space-joined axis words for the present components of *position*."""
    pos = Position.coerce(position)
    return " ".join(
        opcode(axis, format_number(scale(value, unit)))
        for axis, value in pos.components()
    )


def feedrate_word(feedrate: float, unit: str) -> str:
    return opcode("F", format_number(scale(feedrate, unit)))


def line_number_word(number: int) -> str:
    """``N`` plus the counter zero-padded to width 3 (wider past 999)."""
    return opcode("N", f"{number:03d}")


def is_unnumbered(line: str) -> bool:
    """Open/close markers and the program-name line never get a number."""
    return line.startswith(OPEN_MARKER) or line.startswith(NAME_LETTER)

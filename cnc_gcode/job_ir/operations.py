"""Job IR operations -- the vocabulary between job files and G-code.

Every directive a job can issue is an immutable, slotted dataclass that
maps onto exactly one :class:`~cnc_gcode.gcode.program.GCodeProgram`
method.  Operations use **semantic** names (``DropMill``, not ``G00 Z0``)
and coordinates in the **program unit**; scaling happens in the builder.

Header and footer directives (unit, initial positioning, raise, rapid to
start, program end) are not operations: the builder emits them itself.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass, field

from cnc_gcode.gcode.words import Position, Positioning

# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Operation(ABC):
    """Base class for all job operations."""

    pass


# ---------------------------------------------------------------------------
# Mode operations
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SetPositioning(Operation):
    """Switch distance mode mid-program (G90 / G91)."""

    positioning: Positioning

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "positioning", Positioning.parse(self.positioning)
        )


# ---------------------------------------------------------------------------
# Motion operations  (coordinates in program units)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RapidMove(Operation):
    """Fast non-cutting move (G00).

    Parameters
    ----------
    position : Position
        Target; missing axes are not moved.
    feedrate : float | None
        Override feed rate.  ``None`` uses the program default.
    """

    position: Position
    feedrate: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", Position.coerce(self.position))


@dataclass(frozen=True, slots=True)
class LinearMove(Operation):
    """Cutting move at feed rate (G01).

    Parameters
    ----------
    position : Position
        End point; missing axes are not moved.
    feedrate : float | None
        Override feed rate.  ``None`` uses the program default.
    """

    position: Position
    feedrate: float | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", Position.coerce(self.position))


@dataclass(frozen=True, slots=True)
class DropMill(Operation):
    """Rapid down to *depth* along Z (0 by default)."""

    depth: float = 0


@dataclass(frozen=True, slots=True)
class RaiseMill(Operation):
    """Rapid up to *depth* along Z.  ``None`` means the program clearance."""

    depth: float | None = None


# ---------------------------------------------------------------------------
# Machine functions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class StartSpindle(Operation):
    clockwise: bool = True


@dataclass(frozen=True, slots=True)
class StopSpindle(Operation):
    pass


@dataclass(frozen=True, slots=True)
class StartCoolant(Operation):
    """Mist coolant by default, flood when *flood* is set."""

    flood: bool = False


@dataclass(frozen=True, slots=True)
class StopCoolant(Operation):
    pass


@dataclass(frozen=True, slots=True)
class Terminate(Operation):
    """End the program early.  *force* emits M00 without the shutdown moves."""

    force: bool = False


@dataclass(frozen=True, slots=True)
class RawLine(Operation):
    """Verbatim directive text, numbered like any other line."""

    text: str = field(default="")

    def __post_init__(self) -> None:
        if not self.text.strip():
            raise ValueError("RawLine text must be non-empty")
        if "\n" in self.text:
            raise ValueError("RawLine text must be a single line")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def polyline(
    points: list[tuple[float, ...]], feedrate: float | None = None,
) -> list[Operation]:
    """Linear moves through *points* in order.

    Parameters
    ----------
    points : list[tuple[float, ...]]
        Vertices as ``(x, y)`` or ``(x, y, z)``.
    feedrate : float | None
        Feed rate shared by every segment.
    """
    return [LinearMove(position=p, feedrate=feedrate) for p in points]

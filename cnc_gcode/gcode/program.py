"""Program builder -- directive calls to a numbered G-code listing.

A :class:`GCodeProgram` is fully initialized on construction: it writes
the open marker, the program name, unit and positioning codes, raises
the mill to clearance and rapids to the start position.  Directives are
then appended through its methods, and :meth:`GCodeProgram.eval`
terminates the program if needed and returns the listing::

    %
    O123
    N001 G21
    N002 G90
    N003 G00 Z100 F500
    N004 G00 X0 Y0 F500
    ...
    N0xx M05
    N0xx M09
    N0xx G00 Z100 F500
    N0xx M30
    %

Lifecycle:
    ``UNINITIALIZED -> OPEN`` during construction, ``OPEN -> CLOSED`` on
    :meth:`terminate` (explicit or implied by :meth:`eval`).  Directives on
    a closed program and a second :meth:`terminate` raise
    :class:`ProgramStateError`.  Once evaluated the listing is frozen and
    further :meth:`eval` calls return it unchanged.
"""

from __future__ import annotations

import logging
import math
from enum import Enum
from numbers import Number
from typing import Any

from cnc_gcode.configs.loader import ProgramConfig
from cnc_gcode.gcode.naming import NameFactory, seeded_names
from cnc_gcode.gcode.words import (
    NAME_LETTER,
    OPEN_MARKER,
    GCode,
    MCode,
    Position,
    PositionLike,
    Positioning,
    feedrate_word,
    is_unnumbered,
    line_number_word,
    opcode,
    position_words,
    unit_code,
)

logger = logging.getLogger(__name__)


class GCodeError(Exception):
    """Raised when a directive cannot be emitted."""

    pass


class ProgramStateError(GCodeError):
    """Raised when a directive does not fit the program lifecycle."""

    pass


class ProgramState(Enum):
    UNINITIALIZED = "uninitialized"
    OPEN = "open"
    CLOSED = "closed"


class GCodeProgram:
    """Stateful builder for one CNC program listing.

    Parameters
    ----------
    config : ProgramConfig | None
        Builder settings.  ``None`` uses the defaults.
    name_factory : NameFactory | None
        Called once when the config carries no name.  Defaults to
        ``seeded_names(0)`` so unnamed programs stay reproducible.
    **fields
        Individual :class:`ProgramConfig` fields, applied on top of
        *config*.

    Examples
    --------
    >>> prog = GCodeProgram(name="123", unit="cm", start=(0, 0))
    >>> prog.start_spindle()
    >>> prog.feed_linear((0, 65.5))
    >>> listing = prog.eval()
    """

    def __init__(
        self,
        config: ProgramConfig | None = None,
        *,
        name_factory: NameFactory | None = None,
        **fields: Any,
    ) -> None:
        if config is None:
            config = ProgramConfig.from_dict(fields)
        elif fields:
            config = config.override(**fields)

        self._cfg = config
        self._lines: list[str] = []
        self._line = 1 if config.line_numbering else 0
        self._state = ProgramState.UNINITIALIZED
        self._listing: str | None = None

        factory = name_factory or seeded_names()
        self.name: str = config.name or str(factory()).upper()
        self.unit: str = config.unit
        self.positioning: Positioning = config.positioning
        self.feedrate = config.feedrate
        self.clearance = config.clearance
        self.start: Position = config.start
        self.finish: Position = config.finish

        self._initialize()

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def config(self) -> ProgramConfig:
        return self._cfg

    @property
    def state(self) -> ProgramState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state is ProgramState.OPEN

    @property
    def line_numbering(self) -> bool:
        return self._cfg.line_numbering

    @property
    def line_number(self) -> int:
        """Number the next numbered line will receive (0 when disabled)."""
        return self._line

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def _initialize(self) -> None:
        self.add(OPEN_MARKER)
        self.add(opcode(NAME_LETTER, self.name))
        self.add(unit_code(self.unit).word())
        self._emit_positioning(self.positioning)
        self._state = ProgramState.OPEN
        self.raise_mill()
        self.feed_rapid(self.start, self.feedrate)
        logger.debug(
            "Opened program O%s (unit=%s, positioning=%s)",
            self.name, self.unit, self.positioning.name.lower(),
        )

    # ------------------------------------------------------------------
    # Directives
    # ------------------------------------------------------------------

    def set_positioning(self, positioning: Positioning | str | int) -> None:
        """Switch between absolute (G90) and relative (G91) positioning."""
        self._require_open()
        try:
            mode = Positioning.parse(positioning)
        except ValueError as e:
            raise GCodeError(str(e)) from e
        self._emit_positioning(mode)

    def drop_mill(self, depth: float = 0) -> None:
        """Rapid the mill down to *depth* along Z."""
        self.feed_rapid({"z": depth})

    def raise_mill(self, depth: float | None = None) -> None:
        """Rapid the mill up to *depth* (clearance by default)."""
        self.feed_rapid({"z": self.clearance if depth is None else depth})

    def start_spindle(self, clockwise: bool = True) -> None:
        self._require_open()
        self.add((MCode.SPINDLE_CW if clockwise else MCode.SPINDLE_CCW).word())

    def stop_spindle(self) -> None:
        self._require_open()
        self.add(MCode.SPINDLE_STOP.word())

    def start_coolant(self, flood: bool = False) -> None:
        """Mist coolant (M07) or flood coolant (M08)."""
        self._require_open()
        self.add((MCode.COOLANT_FLOOD if flood else MCode.COOLANT_MIST).word())

    def stop_coolant(self) -> None:
        self._require_open()
        self.add(MCode.COOLANT_STOP.word())

    def feed_rapid(
        self, position: PositionLike, feedrate: float | None = None,
    ) -> None:
        """Fast non-cutting move (G00)."""
        self._motion(GCode.RAPID, position, feedrate)

    def feed_linear(
        self, position: PositionLike, feedrate: float | None = None,
    ) -> None:
        """Cutting move at feed rate (G01)."""
        self._motion(GCode.LINEAR, position, feedrate)

    def terminate(self, force: bool = False) -> None:
        """Close the program.

        Unless *force* is set, the spindle and coolant are stopped and the
        mill raised before the program-end code (M30).  A forced stop
        emits M00 only.

        Raises
        ------
        ProgramStateError
            If the program is not open.
        """
        self._require_open()
        if not force:
            self.stop_spindle()
            self.stop_coolant()
            self.raise_mill()
        self.add((MCode.FORCED_STOP if force else MCode.PROGRAM_END).word())
        self._state = ProgramState.CLOSED
        logger.debug("Terminated program O%s (force=%s)", self.name, force)

    # ------------------------------------------------------------------
    # Buffer
    # ------------------------------------------------------------------

    def add(self, line: str) -> None:
        """Append *line*, prefixing a line number where applicable.

        The open marker and the program-name line are never numbered.

        Raises
        ------
        ProgramStateError
            If the listing has already been evaluated.
        """
        if self._listing is not None:
            raise ProgramStateError(
                f"Program O{self.name} was already evaluated"
            )
        if self._line and not is_unnumbered(line):
            line = f"{line_number_word(self._line)} {line}"
            self._line += 1
        self._lines.append(line)

    def eval(self) -> str:
        """Finish the program and return the listing.

        Terminates an open program, appends the close marker and joins
        the lines with ``\\n``.  Later calls return the same listing.
        """
        if self._listing is not None:
            return self._listing
        if self._state is ProgramState.OPEN:
            self.terminate()
        self.add(OPEN_MARKER)
        self._listing = "\n".join(self._lines)
        logger.debug(
            "Evaluated program O%s: %d lines", self.name, len(self._lines)
        )
        return self._listing

    def __str__(self) -> str:
        return self.eval()

    def __repr__(self) -> str:
        return (
            f"GCodeProgram(name={self.name!r}, unit={self.unit!r}, "
            f"state={self._state.value}, lines={len(self._lines)})"
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _emit_positioning(self, mode: Positioning) -> None:
        self.add(mode.code.word())
        self.positioning = mode

    def _motion(
        self, code: GCode, position: PositionLike, feedrate: float | None,
    ) -> None:
        self._require_open()
        try:
            pos = Position.coerce(position)
        except (TypeError, ValueError) as e:
            raise GCodeError(f"Invalid position {position!r}: {e}") from e
        feed = self.feedrate if feedrate is None else feedrate
        if self._cfg.strict:
            for axis, value in pos.components():
                _check_finite(axis, value)
            _check_finite("F", feed)

        words = [code.word()]
        coords = position_words(pos, self.unit)
        if coords:
            words.append(coords)
        words.append(feedrate_word(feed, self.unit))
        self.add(" ".join(words))

    def _require_open(self) -> None:
        if self._state is not ProgramState.OPEN:
            raise ProgramStateError(
                f"Program O{self.name} is {self._state.value}; "
                "directives require an open program"
            )


def _check_finite(label: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, Number):
        raise GCodeError(f"{label} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise GCodeError(f"{label} must be finite, got {value!r}")

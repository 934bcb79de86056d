"""G-code generator -- Job IR operations to a program listing.

Each call to :meth:`GCodeGenerator.generate` builds a fresh
:class:`GCodeProgram` (header emitted on construction), dispatches every
operation to the matching builder method and finalizes the program.
Operations after a :class:`Terminate` raise
:class:`ProgramStateError`; the builder owns the lifecycle rules.
"""

from __future__ import annotations

import logging

from cnc_gcode.configs.loader import ProgramConfig
from cnc_gcode.gcode.naming import NameFactory
from cnc_gcode.gcode.program import GCodeProgram
from cnc_gcode.job_ir.operations import (
    DropMill,
    LinearMove,
    Operation,
    RaiseMill,
    RapidMove,
    RawLine,
    SetPositioning,
    StartCoolant,
    StartSpindle,
    StopCoolant,
    StopSpindle,
    Terminate,
)

logger = logging.getLogger(__name__)


class GCodeGenerator:
    """Convert Job IR operations to G-code.

    Parameters
    ----------
    config : ProgramConfig | None
        Settings for every generated program.  ``None`` uses defaults.
    name_factory : NameFactory | None
        Passed to each :class:`GCodeProgram`; used when the config has no
        name.  Keep one generator per name sequence.
    """

    def __init__(
        self,
        config: ProgramConfig | None = None,
        name_factory: NameFactory | None = None,
    ) -> None:
        self._cfg = config if config is not None else ProgramConfig()
        self._name_factory = name_factory

    @property
    def config(self) -> ProgramConfig:
        return self._cfg

    def build(self, operations: list[Operation]) -> GCodeProgram:
        """Apply *operations* to a new program without finalizing it."""
        program = GCodeProgram(self._cfg, name_factory=self._name_factory)
        for op in operations:
            self._generate_op(op, program)
        return program

    def generate(self, operations: list[Operation]) -> str:
        """Generate the complete listing for *operations*.

        Returns
        -------
        str
            Listing from ``%`` to ``%``, newline-joined.

        Raises
        ------
        GCodeError
            If an operation cannot be emitted (strict-mode number checks,
            directives after termination).
        """
        program = self.build(operations)
        listing = program.eval()
        logger.info(
            "Generated program O%s from %d operations", program.name, len(operations)
        )
        return listing

    # ------------------------------------------------------------------
    # Internal: per-operation dispatch
    # ------------------------------------------------------------------

    def _generate_op(self, op: Operation, program: GCodeProgram) -> None:
        if isinstance(op, SetPositioning):
            program.set_positioning(op.positioning)
        elif isinstance(op, RapidMove):
            program.feed_rapid(op.position, op.feedrate)
        elif isinstance(op, LinearMove):
            program.feed_linear(op.position, op.feedrate)
        elif isinstance(op, DropMill):
            program.drop_mill(op.depth)
        elif isinstance(op, RaiseMill):
            program.raise_mill(op.depth)
        elif isinstance(op, StartSpindle):
            program.start_spindle(op.clockwise)
        elif isinstance(op, StopSpindle):
            program.stop_spindle()
        elif isinstance(op, StartCoolant):
            program.start_coolant(op.flood)
        elif isinstance(op, StopCoolant):
            program.stop_coolant()
        elif isinstance(op, Terminate):
            program.terminate(op.force)
        elif isinstance(op, RawLine):
            program.add(op.text)
        else:
            logger.warning("Unsupported operation: %s", type(op).__name__)

"""
G-code generation module.

Word formatting, the stateful program builder, and the generator that
replays Job IR operations through it.
"""

from cnc_gcode.gcode.generator import GCodeGenerator
from cnc_gcode.gcode.naming import seeded_names, sequential_names
from cnc_gcode.gcode.program import (
    GCodeError,
    GCodeProgram,
    ProgramState,
    ProgramStateError,
)
from cnc_gcode.gcode.words import GCode, MCode, Position, Positioning

__all__ = [
    "GCode",
    "GCodeError",
    "GCodeGenerator",
    "GCodeProgram",
    "MCode",
    "Position",
    "Positioning",
    "ProgramState",
    "ProgramStateError",
    "seeded_names",
    "sequential_names",
]

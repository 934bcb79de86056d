"""
CNC G-code Package.

Builds numbered, line-oriented CNC control programs from high-level
machining directives (moves, mill drop/raise, spindle and coolant).

Subpackages:
    gcode: Word formatting, program builder and Job IR generator
    job_ir: Intermediate representation for job directives
    configs: Program configuration and job file loading
    utils: Logging and filesystem helpers
"""

# gcode first: configs.loader imports gcode.words
from cnc_gcode.gcode import GCodeGenerator, GCodeProgram
from cnc_gcode.configs import ProgramConfig, load_config

__all__ = [
    "GCodeGenerator",
    "GCodeProgram",
    "ProgramConfig",
    "load_config",
    "configs",
    "gcode",
    "job_ir",
    "utils",
]

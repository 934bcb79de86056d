"""
Job IR (intermediate representation).

Immutable operations describing one machining job, independent of the
G-code text they produce.
"""

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
    polyline,
)

__all__ = [
    "DropMill",
    "LinearMove",
    "Operation",
    "RaiseMill",
    "RapidMove",
    "RawLine",
    "SetPositioning",
    "StartCoolant",
    "StartSpindle",
    "StopCoolant",
    "StopSpindle",
    "Terminate",
    "polyline",
]

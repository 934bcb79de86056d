"""Job file schema validation (job.v1).

A job file pairs program settings with an ordered list of directives::

    schema: job.v1
    program:
      name: "123"
      unit: cm
      start: [0, 0]
    directives:
      - op: start_spindle
      - op: drop_mill
      - op: feed_linear
        position: [0, 65.5]
      - op: feed_linear
        position: {x: 23.4}
        feedrate: 20

The ``program`` section is normalized by :class:`ProgramConfig`; the
directives are checked here with pydantic and converted to Job IR
operations.

Usage:
    from cnc_gcode.configs.schema import load_job
    job = load_job("job.yaml")
    config, operations = job.to_program_config(), job.to_operations()
"""

from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from cnc_gcode.configs.loader import ConfigError, ProgramConfig
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

OpName = Literal[
    "set_positioning",
    "feed_rapid",
    "feed_linear",
    "drop_mill",
    "raise_mill",
    "start_spindle",
    "stop_spindle",
    "start_coolant",
    "stop_coolant",
    "terminate",
    "raw",
]

PositionSpec = Union[List[Optional[float]], Dict[str, Optional[float]]]

_NEEDS_POSITION = ("feed_rapid", "feed_linear")


class DirectiveV1(BaseModel):
    """One directive entry of a job file."""
    model_config = ConfigDict(extra="forbid")

    op: OpName = Field(..., description="Builder operation name")
    position: Optional[PositionSpec] = Field(None, description="Target, list [x, y, z] or mapping")
    feedrate: Optional[float] = Field(None, description="Feed rate override, program units")
    depth: Optional[float] = Field(None, description="Z depth for drop_mill / raise_mill")
    clockwise: bool = Field(True, description="Spindle direction")
    flood: bool = Field(False, description="Flood instead of mist coolant")
    force: bool = Field(False, description="Forced stop (M00) on terminate")
    positioning: Optional[Union[str, int]] = Field(None, description="absolute | relative | 0 | 1")
    text: Optional[str] = Field(None, description="Verbatim line for op=raw")

    @field_validator('position')
    @classmethod
    def validate_position(cls, v: Optional[PositionSpec]) -> Optional[PositionSpec]:
        if v is None:
            return v
        if isinstance(v, list):
            if len(v) > 3:
                raise ValueError(f"position takes at most 3 components, got {len(v)}")
            return v
        bad = sorted(k for k in v if k.lower() not in ("x", "y", "z"))
        if bad:
            raise ValueError(f"position keys must be x, y or z, got {bad}")
        return v

    @model_validator(mode='after')
    def validate_required_fields(self) -> 'DirectiveV1':
        if self.op in _NEEDS_POSITION and self.position is None:
            raise ValueError(f"op '{self.op}' requires 'position'")
        if self.op == "set_positioning" and self.positioning is None:
            raise ValueError("op 'set_positioning' requires 'positioning'")
        if self.op == "raw" and not self.text:
            raise ValueError("op 'raw' requires 'text'")
        return self

    def to_operation(self) -> Operation:
        """Convert to the matching Job IR operation."""
        if self.op == "set_positioning":
            return SetPositioning(positioning=self.positioning)
        if self.op == "feed_rapid":
            return RapidMove(position=self.position, feedrate=self.feedrate)
        if self.op == "feed_linear":
            return LinearMove(position=self.position, feedrate=self.feedrate)
        if self.op == "drop_mill":
            return DropMill(depth=0 if self.depth is None else self.depth)
        if self.op == "raise_mill":
            return RaiseMill(depth=self.depth)
        if self.op == "start_spindle":
            return StartSpindle(clockwise=self.clockwise)
        if self.op == "stop_spindle":
            return StopSpindle()
        if self.op == "start_coolant":
            return StartCoolant(flood=self.flood)
        if self.op == "stop_coolant":
            return StopCoolant()
        if self.op == "terminate":
            return Terminate(force=self.force)
        return RawLine(text=self.text)


class JobV1(BaseModel):
    """Job file schema v1."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    schema_version: str = Field("job.v1", alias="schema", description="Schema version")
    program: Optional[Dict[str, Any]] = Field(None, description="ProgramConfig fields")
    directives: List[DirectiveV1] = Field(default_factory=list, description="Ordered directives")

    @field_validator('schema_version')
    @classmethod
    def validate_schema(cls, v: str) -> str:
        if v != "job.v1":
            raise ValueError(f"Expected schema 'job.v1', got '{v}'")
        return v

    def to_program_config(
        self, fallback: Optional[ProgramConfig] = None, **overrides: Any,
    ) -> ProgramConfig:
        """Program settings from the job, or *fallback* when it has none.

        *overrides* (e.g. ``strict=True``) are merged into the settings
        before they are normalized.
        """
        if self.program is None:
            config = fallback if fallback is not None else ProgramConfig()
            return config.override(**overrides) if overrides else config
        return ProgramConfig.from_dict({**self.program, **overrides})

    def to_operations(self) -> List[Operation]:
        try:
            return [d.to_operation() for d in self.directives]
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid directive: {e}") from e


# ============================================================================
# PUBLIC API
# ============================================================================

def load_job(path: Union[str, Path]) -> JobV1:
    """Load and validate a job file from YAML.

    Parameters
    ----------
    path : Union[str, Path]
        Path to a job.v1 YAML file

    Returns
    -------
    JobV1
        Validated job

    Raises
    ------
    FileNotFoundError
        If path doesn't exist
    ConfigError
        If the file is empty or fails validation
    """
    from cnc_gcode.utils import fs

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Job file not found: {path}")

    data = fs.load_yaml(path)
    if not isinstance(data, dict):
        raise ConfigError(f"Job file must contain a mapping: {path}")
    try:
        return JobV1(**data)
    except ValidationError as e:
        raise ConfigError(f"Job validation failed at {path}: {e}") from e

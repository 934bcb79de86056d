"""Configuration loader for the program builder.

Loads ``program.yaml`` into a typed, frozen :class:`ProgramConfig`.
Values are expressed in the program unit; conversion to machine numbers
happens only when words are formatted.

Two validation policies are supported:

* **permissive** (default) -- unknown units are emitted unscaled,
  unknown positioning tokens fall back to absolute, numbers are not
  range-checked.
* **strict** -- unknown unit/positioning tokens and non-finite numbers
  raise :class:`ConfigError`.

Usage::

    from cnc_gcode.configs.loader import load_config
    cfg = load_config()                        # default path
    cfg = load_config("/custom/program.yaml")  # explicit path
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict

from cnc_gcode.gcode.words import Position, Positioning, is_known_unit
from cnc_gcode.utils.fs import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_UNIT = "cm"
DEFAULT_FEEDRATE = 50
DEFAULT_CLEARANCE = 10


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# ---------------------------------------------------------------------------
# Dataclass
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ProgramConfig:
    """Program builder settings.

    Parameters
    ----------
    name : str | None
        Program identifier, upper-cased.  ``None`` lets the builder's name
        factory choose one.
    start, finish : Position | None
        Unscaled start / finish positions.  Default ``(0, 0, clearance)``.
    unit : str
        ``mm``, ``cm``, ``dm``, ``m``, ``in`` or ``inch``.
    positioning : Positioning
        Absolute or relative distance mode.  Accepts the same tokens as
        :meth:`Positioning.parse`.
    feedrate : float
        Default feed rate in program units per minute.
    clearance : float
        Safe retract height along Z, in program units.
    line_numbering : bool
        Prefix directives with ``N`` words.
    strict : bool
        Reject unknown tokens and non-finite numbers.
    """

    name: str | None = None
    start: Position | None = None
    finish: Position | None = None
    unit: str = DEFAULT_UNIT
    positioning: Positioning = Positioning.ABSOLUTE
    feedrate: float = DEFAULT_FEEDRATE
    clearance: float = DEFAULT_CLEARANCE
    line_numbering: bool = True
    strict: bool = False
    _raw: Dict[str, Any] = field(
        default_factory=dict, init=False, repr=False, compare=False,
    )

    def __post_init__(self) -> None:
        strict = bool(self.strict)
        set_ = object.__setattr__  # frozen

        # Settings as given, re-read by override()
        set_(self, "_raw", {f.name: getattr(self, f.name) for f in fields(self) if f.init})
        set_(self, "strict", strict)
        set_(self, "name", str(self.name).upper() if self.name else None)
        set_(self, "unit", _parse_unit(self.unit, strict))
        set_(self, "positioning", _parse_positioning(self.positioning, strict))
        set_(self, "feedrate", _parse_number(
            "feedrate", self.feedrate, DEFAULT_FEEDRATE, strict))
        set_(self, "clearance", _parse_number(
            "clearance", self.clearance, DEFAULT_CLEARANCE, strict))
        set_(self, "line_numbering",
             True if self.line_numbering is None else bool(self.line_numbering))
        set_(self, "start", _parse_position("start", self.start, self.clearance, strict))
        set_(self, "finish", _parse_position("finish", self.finish, self.clearance, strict))

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "ProgramConfig":
        """Build a config from a plain mapping (e.g. a YAML section).

        Raises
        ------
        ConfigError
            If *data* holds keys that are not program settings.
        """
        data = dict(data or {})
        cls._check_keys(data)
        return cls(**data)

    def override(self, **changes: Any) -> "ProgramConfig":
        """Return a copy with *changes* applied and re-normalized.

        The copy is built from the settings this config was created with,
        so a defaulted ``start``/``finish`` follows a new ``clearance`` and
        ``strict=True`` re-checks the original unit and positioning tokens.
        """
        self._check_keys(changes)
        return type(self)(**{**self._raw, **changes})

    @classmethod
    def _check_keys(cls, data: dict[str, Any]) -> None:
        known = {f.name for f in fields(cls) if f.init}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(
                f"Unknown program settings: {', '.join(unknown)} "
                f"(expected a subset of {', '.join(sorted(known))})"
            )


# ---------------------------------------------------------------------------
# Field parsers
# ---------------------------------------------------------------------------


def _parse_unit(raw: Any, strict: bool) -> str:
    if raw is None or raw == "":
        return DEFAULT_UNIT
    unit = str(raw).strip().lower()
    if not is_known_unit(unit):
        if strict:
            raise ConfigError(
                f"Unknown unit {raw!r}; expected one of mm, cm, dm, m, in, inch"
            )
        logger.debug("Unit %r not recognized, emitting values unscaled", raw)
    return unit


def _parse_positioning(raw: Any, strict: bool) -> Positioning:
    if raw is None or raw == "":
        return Positioning.ABSOLUTE
    try:
        return Positioning.parse(raw)
    except ValueError as e:
        if strict:
            raise ConfigError(str(e)) from e
        logger.warning("%s; falling back to absolute positioning", e)
        return Positioning.ABSOLUTE


def _parse_number(label: str, raw: Any, default: float, strict: bool) -> Any:
    if raw is None:
        return default
    if strict:
        _require_finite(label, raw)
    return raw


def _parse_position(
    label: str, raw: Any, clearance: float, strict: bool,
) -> Position:
    if raw is None:
        return Position(0, 0, clearance)
    try:
        pos = Position.coerce(raw)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid {label} position: {e}") from e
    if strict:
        for axis, value in pos.components():
            _require_finite(f"{label}.{axis.lower()}", value)
    return pos


def _require_finite(label: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{label} must be a number, got {value!r}")
    if not math.isfinite(value):
        raise ConfigError(f"{label} must be finite, got {value!r}")


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------


def load_config(path: str | Path | None = None) -> ProgramConfig:
    """Load and validate program configuration from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to a YAML file with a top-level ``program:`` section.
        ``None`` loads the default shipped alongside this module.

    Returns
    -------
    ProgramConfig
        Normalized, frozen configuration object.

    Raises
    ------
    ConfigError
        If the section is missing or fails validation.
    FileNotFoundError
        If *path* does not exist.
    """
    if path is None:
        path = Path(__file__).parent / "program.yaml"
    else:
        path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading configuration from %s", path)

    data = load_yaml(path)
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")
    if not isinstance(data, dict) or "program" not in data:
        raise ConfigError(f"Missing 'program' section in {path}")

    section = data["program"]
    if section is not None and not isinstance(section, dict):
        raise ConfigError(
            f"'program' section must be a mapping, got {type(section).__name__}"
        )
    return ProgramConfig.from_dict(section)

"""Program configuration loading and job file validation."""

from cnc_gcode.configs.loader import ConfigError, ProgramConfig, load_config
from cnc_gcode.configs.schema import DirectiveV1, JobV1, load_job

__all__ = [
    "ConfigError",
    "DirectiveV1",
    "JobV1",
    "ProgramConfig",
    "load_config",
    "load_job",
]

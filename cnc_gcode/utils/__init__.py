"""Cross-cutting utilities (lowest dependency layer).

No module in utils/ may import from gcode, job_ir or configs.

Convenience imports:
    from cnc_gcode.utils import fs
    from cnc_gcode.utils.logging_config import setup_logging, push_context
"""

from . import fs
from . import logging_config

from .logging_config import pop_context, push_context, setup_logging

__all__ = [
    'fs',
    'logging_config',
    'pop_context',
    'push_context',
    'setup_logging',
]

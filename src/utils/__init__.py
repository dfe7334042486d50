"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Color science (color)
    - Atomic I/O and YAML loading (fs)
    - Unified logging (logging_config)
    - Config validation (validators)

No module in utils/ may import from upper layers (embroidery).

Convenience imports:
    from src.utils import fs, color, validators
    from src.utils.logging_config import setup_logging, get_logger
"""

# Re-export commonly used modules for convenience
from . import color
from . import fs
from . import logging_config
from . import validators

# Common functions for direct import
from .logging_config import get_logger, log_context, push_context, setup_logging

__all__ = [
    # Modules
    'color',
    'fs',
    'logging_config',
    'validators',
    # Direct exports
    'setup_logging',
    'get_logger',
    'log_context',
    'push_context',
]

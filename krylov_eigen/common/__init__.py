"""
Common utilities: logging with verbosity control and timing summaries.

Example:
    >>> from krylov_eigen.common import get_global_logger
    >>> logger = get_global_logger()
    >>> logger.info("Starting the solve", lvl=1)
"""

import  importlib
from    typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .flog          import Logger, Colors, get_global_logger, log_timing_summary

# Lazy loading registry
_LAZY_IMPORTS = {
    'Logger'                    : ('.flog', 'Logger'),
    'Colors'                    : ('.flog', 'Colors'),
    'get_global_logger'         : ('.flog', 'get_global_logger'),
    'log_timing_summary'        : ('.flog', 'log_timing_summary'),
}

def __getattr__(name: str):
    if name not in _LAZY_IMPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_path, attr_name = _LAZY_IMPORTS[name]
    module = importlib.import_module(module_path, package=__name__)
    value  = getattr(module, attr_name)
    globals()[name] = value
    return value

__all__ = list(_LAZY_IMPORTS.keys())

# ------------------------------------------------------------------------------------------------
#! EOF

"""
Structured shifted-QR kernels.

Available kernels:
    - HessenbergQR  : Givens QR of a general upper Hessenberg matrix
    - TridiagQR     : banded Givens QR of a symmetric tridiagonal matrix
    - DoubleShiftQR : implicit Francis double-shift step (bulge chase)

All keep Q implicit (a rotation or reflector sequence) and apply it with
apply_QY / apply_QtY / apply_YQ / apply_YQt.

This module uses lazy imports to keep numba compilation off the import path.
"""

from typing import TYPE_CHECKING
import importlib

# -----------------------------------------------------------------------------------------------
# Lazy Import Configuration
# -----------------------------------------------------------------------------------------------

_LAZY_IMPORTS = {
    'HessenbergQR'              : ('.hessenberg',   'HessenbergQR'),
    'TridiagQR'                 : ('.tridiag',      'TridiagQR'),
    'DoubleShiftQR'             : ('.double_shift', 'DoubleShiftQR'),
    'RotationSequence'          : ('.sequences',    'RotationSequence'),
    'ReflectorSequence'         : ('.sequences',    'ReflectorSequence'),
    'StructuredQR'              : ('.structured',   'StructuredQR'),
    'choose_qr_kernel'          : ('.structured',   'choose_qr_kernel'),
    'qr_step'                   : ('.structured',   'qr_step'),
    'francis_shift'             : ('.shifts',       'francis_shift'),
    'exceptional_double_shift'  : ('.shifts',       'exceptional_double_shift'),
    'wilkinson_shift'           : ('.shifts',       'wilkinson_shift'),
    'exceptional_single_shift'  : ('.shifts',       'exceptional_single_shift'),
}

_LAZY_CACHE = {}

if TYPE_CHECKING:
    from .hessenberg    import HessenbergQR
    from .tridiag       import TridiagQR
    from .double_shift  import DoubleShiftQR
    from .sequences     import RotationSequence, ReflectorSequence
    from .structured    import StructuredQR, choose_qr_kernel, qr_step
    from .shifts        import francis_shift, exceptional_double_shift, wilkinson_shift, exceptional_single_shift

# -----------------------------------------------------------------------------------------------

def __getattr__(name: str):
    """
    Module-level __getattr__ for lazy imports.
    """
    if name in _LAZY_CACHE:
        return _LAZY_CACHE[name]

    if name not in _LAZY_IMPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module_path, attr_name  = _LAZY_IMPORTS[name]
    module                  = importlib.import_module(module_path, package=__name__)
    result                  = getattr(module, attr_name)
    _LAZY_CACHE[name]       = result
    return result

__all__ = list(_LAZY_IMPORTS.keys())

# ------------------------------------------------------------------------------------------------
#! EOF

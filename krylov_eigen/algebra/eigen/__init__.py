"""
Eigenvalue Solvers Module

Implicitly restarted Krylov eigensolvers for a few eigenpairs of large real operators.

Available Solvers:
    - Lanczos: For symmetric matrices (tridiagonal restarts with TridiagQR)
    - Arnoldi: For general non-symmetric matrices (HessenbergQR / DoubleShiftQR restarts)
    - SciPy wrappers: ARPACK eigsh / eigs, used as a reference

Front-ends:
    - eigs_sym, eigs_gen: functional interface to the native solvers
    - choose_eigensolver: Unified interface picking the solver by name or symmetry
    - decide_method: Automatically choose method based on problem characteristics

Dense helpers:
    - sym_tridiag_eigen, hessenberg_schur, hessenberg_eigen: eigenpairs of the small projected matrix

Standard Result:
    - EigenResult: Standardized return type (eigenvalues, eigenvectors, iterations, converged, ...)

This module uses lazy imports to minimize startup overhead.
"""

from typing import TYPE_CHECKING
import importlib

# -----------------------------------------------------------------------------------------------
# Lazy Import Configuration
# -----------------------------------------------------------------------------------------------

_LAZY_IMPORTS = {
    # Lanczos (symmetric)
    'LanczosEigensolver'            : ('.lanczos',   'LanczosEigensolver'),
    'LanczosEigensolverScipy'       : ('.lanczos',   'LanczosEigensolverScipy'),
    'eigs_sym'                      : ('.lanczos',   'eigs_sym'),
    # Arnoldi (general matrices)
    'ArnoldiEigensolver'            : ('.arnoldi',   'ArnoldiEigensolver'),
    'ArnoldiEigensolverScipy'       : ('.arnoldi',   'ArnoldiEigensolverScipy'),
    'eigs_gen'                      : ('.arnoldi',   'eigs_gen'),
    # Restart machinery
    'KrylovFactorization'           : ('.krylov',    'KrylovFactorization'),
    'RestartedKrylovSolver'         : ('.krylov',    'RestartedKrylovSolver'),
    'SortRule'                      : ('.selection', 'SortRule'),
    # Dense Ritz extraction
    'sym_tridiag_eigen'             : ('.dense',     'sym_tridiag_eigen'),
    'hessenberg_schur'              : ('.dense',     'hessenberg_schur'),
    'hessenberg_eigen'              : ('.dense',     'hessenberg_eigen'),
    # Factory interface
    'choose_eigensolver'            : ('.factory',   'choose_eigensolver'),
    'decide_method'                 : ('.factory',   'decide_method'),
    # Result type
    'EigenResult'                   : ('.result',    'EigenResult'),
    'EigenSolver'                   : ('.result',    'EigenSolver'),
}

_LAZY_CACHE = {}

# For type checking only
if TYPE_CHECKING:
    from .lanczos       import LanczosEigensolver, LanczosEigensolverScipy, eigs_sym
    from .arnoldi       import ArnoldiEigensolver, ArnoldiEigensolverScipy, eigs_gen
    from .krylov        import KrylovFactorization, RestartedKrylovSolver
    from .selection     import SortRule
    from .dense         import sym_tridiag_eigen, hessenberg_schur, hessenberg_eigen
    from .factory       import choose_eigensolver, decide_method
    from .result        import EigenResult, EigenSolver

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

def __dir__():
    return sorted(list(globals().keys()) + list(_LAZY_IMPORTS.keys()))

__all__ = list(_LAZY_IMPORTS.keys())

# ------------------------------------------------------------------------------------------------
#! EOF

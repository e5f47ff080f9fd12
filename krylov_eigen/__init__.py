# krylov_eigen/__init__.py

"""
Krylov Eigen - partial eigendecomposition of large real matrices.

The package computes a few eigenvalues (and eigenvectors) of large, possibly
non-symmetric, real matrices with implicitly restarted Krylov methods:

Modules:
--------
- algebra.qr    : Structured shifted-QR kernels (Hessenberg, symmetric tridiagonal,
                  Francis double shift) with an implicit orthogonal factor
- algebra.eigen : Implicitly restarted Lanczos (symmetric) and Arnoldi (general)
                  drivers, dense Ritz extraction and ARPACK reference solvers
- common        : Logging utilities

Examples:
---------
>>> import numpy as np
>>> from krylov_eigen import eigs_sym
>>> A       = np.random.default_rng(0).random((200, 200))
>>> A       = A + A.T
>>> result  = eigs_sym(A, k=5, m=20)
>>> result.eigenvalues

File    : krylov_eigen/__init__.py
Version : 0.1.0
License : MIT
"""

import importlib

# Package metadata
__version__         = "0.1.0"
__license__         = "MIT"

MODULE_DESCRIPTION  = "Implicitly restarted Arnoldi/Lanczos eigensolvers on structured QR kernels."

# Subpackages (not imported by default)
__all__             = ["algebra", "common", "eigs_sym", "eigs_gen"]

# Shortcuts to the functional front-ends
_SHORTCUTS          = {
    "eigs_sym"  : (".algebra.eigen.lanczos", "eigs_sym"),
    "eigs_gen"  : (".algebra.eigen.arnoldi", "eigs_gen"),
}

def get_module_description(module_name):
    """
    Get the description of a specific module in the krylov_eigen package.

    Parameters
    ----------
    module_name : str
        The name of the module.

    Returns
    -------
    str
        The description of the module.
    """
    descriptions = {
        "algebra"   : "Structured shifted-QR kernels and implicitly restarted Krylov eigensolvers.",
        "common"    : "Console and file logging with verbosity control and timing summaries.",
    }
    return descriptions.get(module_name, "Module not found.")

def list_available_modules():
    """
    List all available modules in the krylov_eigen package.
    """
    return ["algebra", "common"]

# Lazy import subpackages on attribute access (PEP 562)
def __getattr__(name):  # pragma: no cover - simple indirection
    if name in _SHORTCUTS:
        module_path, attr = _SHORTCUTS[name]
        return getattr(importlib.import_module(module_path, __name__), attr)
    if name in ("algebra", "common"):
        return importlib.import_module(f".{name}", __name__)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")

def __dir__():  # pragma: no cover
    return sorted(list(globals().keys()) + __all__)

# ------------------------------------------------------------------------------------------------
#! EOF

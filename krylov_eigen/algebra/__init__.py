"""
Linear algebra for the Krylov eigensolvers.

Subpackages:
    - qr    : structured shifted-QR kernels (Hessenberg, tridiagonal, double shift)
    - eigen : implicitly restarted Lanczos / Arnoldi drivers and reference solvers

Modules:
    - errors : error kinds shared by the kernels and the drivers
    - utils  : environment configuration and random-number management
"""

import importlib

_SUBMODULES = ("qr", "eigen", "errors", "utils")

def __getattr__(name: str):
    if name in _SUBMODULES:
        return importlib.import_module(f".{name}", __name__)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

__all__ = list(_SUBMODULES)

# ------------------------------------------------------------------------------------------------
#! EOF

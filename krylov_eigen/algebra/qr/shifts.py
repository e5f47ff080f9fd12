"""
Shift-selection strategies for the QR kernels.

Single shifts (symmetric tridiagonal case) are functions of the trailing 2x2 block
[[a, b], [b, c]]. Double shifts (general Hessenberg case) are pairs (s, t), the
trace and determinant of a target 2x2 eigenvalue cluster, and follow the
`ShiftStrategy` signature so they can be handed to `DoubleShiftQR.factor`.

The exceptional shifts are the ad hoc values LAPACK uses to break cycles of
non-deflating QR sweeps.
"""

from typing import Callable, Optional, Tuple
import math
import numpy as np
from numpy.typing import NDArray

ShiftStrategy = Callable[[NDArray, Optional[float], Optional[float]], Tuple[float, float]]

# Exceptional shift constants (dlahqr)
_EXC_DIAG   = 0.75
_EXC_DET    = -0.4375

# ----------------------------------------------------------------------------
#! Single shifts
# ----------------------------------------------------------------------------

def wilkinson_shift(a: float, b: float, c: float) -> float:
    """
    Eigenvalue of [[a, b], [b, c]] closer to c.
    """
    delta = 0.5 * (a - c)
    if b == 0.0:
        return c
    sign  = 1.0 if delta >= 0.0 else -1.0
    return c - b * b / (delta + sign * math.hypot(delta, b))

def exceptional_single_shift(a: float, b: float, c: float) -> float:
    """
    Shift pushed away from the trailing diagonal entry by the size of the coupling.
    """
    return c + _EXC_DIAG * abs(b)

# ----------------------------------------------------------------------------
#! Double shifts
# ----------------------------------------------------------------------------

def francis_shift(H: NDArray, s: Optional[float] = None, t: Optional[float] = None) -> Tuple[float, float]:
    """
    Trace and determinant of the trailing 2x2 block of H.
    The incoming (s, t) are ignored.
    """
    n = H.shape[0]
    if n < 2:
        return 2.0 * float(H[0, 0]), float(H[0, 0]) ** 2
    a, b = H[n - 2, n - 2], H[n - 2, n - 1]
    c, d = H[n - 1, n - 2], H[n - 1, n - 1]
    return float(a + d), float(a * d - b * c)

def exceptional_double_shift(H: NDArray, s: Optional[float] = None, t: Optional[float] = None) -> Tuple[float, float]:
    """
    LAPACK exceptional double shift built from the last two subdiagonal entries of H.
    The incoming (s, t) are ignored.
    """
    n = H.shape[0]
    if n < 2:
        return francis_shift(H)
    w   = abs(H[n - 1, n - 2])
    if n > 2:
        w += abs(H[n - 2, n - 3])
    h11 = _EXC_DIAG * w + H[n - 1, n - 1]
    return float(2.0 * h11), float(h11 * h11 - _EXC_DET * w * w)

def shift_pair(mu: complex) -> Tuple[float, float]:
    """(s, t) of the conjugate pair {mu, conj(mu)}."""
    return float(2.0 * np.real(mu)), float(np.abs(mu) ** 2)

# ----------------------------------------------------------------------------
#! EOF

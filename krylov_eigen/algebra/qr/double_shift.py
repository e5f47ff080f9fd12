"""
Implicit double-shift (Francis) QR step on a real upper Hessenberg matrix.

Given H and a shift pair (s, t), the trace and determinant of a target eigenvalue
pair {mu, conj(mu)}, one step is equivalent to

    M = H^2 - s H + t I = Q R,      H <- Q^T H Q,

without forming M and without complex arithmetic. The first column of M has
only three nonzeros; a 3x3 Householder reflector built from it introduces a bulge
below the subdiagonal, which further reflectors chase down and out of the matrix.
Q is kept as the sequence of reflectors.

Negligible subdiagonal entries, |h(i,i-1)| <= eps (|h(i-1,i-1)| + |h(i,i)|), are
set to zero first and each unreduced block is processed on its own, which keeps
Q block diagonal and equal (up to the sign of each column) to the Q of a dense
QR factorization of M.
"""

from typing import Optional
import numpy as np
from numpy.typing import NDArray

from ..errors import EigenError, EigenErrorMsg, DegenerateInputError
from .structured import as_square_matrix, check_hessenberg
from .sequences import ReflectorSequence
from .shifts import ShiftStrategy, francis_shift
from . import _kernels

# ----------------------------------------------------------------------------

_EPS    = np.finfo(np.float64).eps
_NEAR_0 = np.finfo(np.float64).tiny * 10.0

class DoubleShiftQR:
    """
    One implicit double-shift QR step.

    Args:
        H:
            Upper Hessenberg matrix (the step is performed immediately if given)
        s, t:
            Shift pair; when both are None the Francis shift of the trailing 2x2 block is used
        shift_strategy:
            Optional `strategy(H, s, t) -> (s, t)` replacing the pair, e.g. an exceptional shift
        check:
            Reject input with nonzeros below the first subdiagonal

    Example:
        >>> ds = DoubleShiftQR(H, s=2 * mu.real, t=abs(mu) ** 2)
        >>> H_next = ds.matrix_QtHQ()
        >>> ds.apply_YQ(V)
    """

    def __init__(self,
                H               : Optional[NDArray]         = None,
                s               : Optional[float]           = None,
                t               : Optional[float]           = None,
                shift_strategy  : Optional[ShiftStrategy]   = None,
                check           : bool                      = True):
        self._n         : int                           = 0
        self._s         : float                         = 0.0
        self._t         : float                         = 0.0
        self._QtHQ      : Optional[NDArray]             = None
        self._ref       : Optional[ReflectorSequence]   = None
        self._nblocks   : int                           = 0
        if H is not None:
            self.factor(H, s, t, shift_strategy=shift_strategy, check=check)

    # ----------------------------------------------------------------------------

    def factor(self,
            H,
            s               : Optional[float]           = None,
            t               : Optional[float]           = None,
            shift_strategy  : Optional[ShiftStrategy]   = None,
            check           : bool                      = True) -> 'DoubleShiftQR':
        """
        Perform the bulge chase on a copy of H with the shift pair (s, t).
        """
        mat = as_square_matrix(H)
        if check:
            check_hessenberg(mat)

        if shift_strategy is not None:
            s, t = shift_strategy(mat, s, t)
        elif s is None and t is None:
            s, t = francis_shift(mat)
        elif s is None or t is None:
            raise ValueError("DoubleShiftQR needs both s and t, or neither")
        s, t = float(s), float(t)
        if not (np.isfinite(s) and np.isfinite(t)):
            raise DegenerateInputError(f"shift pair must be finite, got s={s}, t={t}")

        n       = mat.shape[0]
        work    = np.triu(mat, -1)
        ref_u   = np.zeros((n, 3), dtype=np.float64)
        ref_nr  = np.ones(n, dtype=np.int64)
        nb      = _kernels.double_shift_factor(work, ref_u, ref_nr, s, t, _EPS, _NEAR_0)

        self._n         = n
        self._s         = s
        self._t         = t
        self._QtHQ      = work
        self._ref       = ReflectorSequence.freeze(ref_u, ref_nr)
        self._nblocks   = int(nb)
        return self

    # ----------------------------------------------------------------------------

    def _require(self) -> ReflectorSequence:
        if self._ref is None:
            raise EigenError(EigenErrorMsg.NOT_COMPUTED, "DoubleShiftQR: call factor() first")
        return self._ref

    @property
    def n(self) -> int:
        return self._n

    @property
    def shifts(self):
        """The (s, t) pair actually used."""
        return self._s, self._t

    @property
    def num_blocks(self) -> int:
        """Number of unreduced blocks H was split into."""
        return self._nblocks

    @property
    def reflectors(self) -> ReflectorSequence:
        """Read-only reflector sequence representing Q."""
        return self._require()

    # ----------------------------------------------------------------------------

    def matrix_QtHQ(self) -> NDArray:
        """Q^T H Q, upper Hessenberg (a copy)."""
        self._require()
        return self._QtHQ.copy()

    def matrix_Q(self) -> NDArray:
        return self._require().matrix_Q()

    def apply_QY(self, Y):
        """Y <- Q Y."""
        return self._require().apply_QY(Y)

    def apply_QtY(self, Y):
        """Y <- Q^T Y."""
        return self._require().apply_QtY(Y)

    def apply_YQ(self, Y):
        """Y <- Y Q."""
        return self._require().apply_YQ(Y)

    def apply_YQt(self, Y):
        """Y <- Y Q^T."""
        return self._require().apply_YQt(Y)

# ----------------------------------------------------------------------------
#! EOF

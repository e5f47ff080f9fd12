"""
QR factorization of a real upper Hessenberg matrix by Givens rotations.

For an n x n upper Hessenberg H (optionally shifted, H - mu I) the n-1 rotations
G_0, ..., G_{n-2}, applied top to bottom, eliminate the subdiagonal:

    G_{n-2}^T ... G_0^T (H - mu I) = R,     Q = G_0 G_1 ... G_{n-2}.

Q is kept as the rotation sequence. `matrix_RQ` is R Q computed by rotating the
columns of R, i.e. one step of the shifted QR algorithm, and `matrix_QtHQ`
adds the shift back: Q^T H Q = R Q + mu I.

Cost: O(n^2) for the factorization, O(n^2) for R Q and O(n * cols) per apply.
"""

from typing import Optional
import numpy as np
from numpy.typing import NDArray

from ..errors import EigenError, EigenErrorMsg
from .structured import ShiftLike, as_square_matrix, check_hessenberg, resolve_shift
from .sequences import RotationSequence
from . import _kernels

# ----------------------------------------------------------------------------

class HessenbergQR:
    """
    Givens QR of an upper Hessenberg matrix.

    Args:
        H:
            Upper Hessenberg matrix (factored immediately if given)
        shift:
            Either a number mu or a strategy `shift(H) -> mu`; H - mu I is factored
        check:
            Reject input with nonzeros below the first subdiagonal

    Example:
        >>> qr = HessenbergQR(H, shift=0.5)
        >>> H_next = qr.matrix_QtHQ()        # Q^T H Q
        >>> qr.apply_YQ(V)                   # V <- V Q in place
    """

    def __init__(self, H: Optional[NDArray] = None, shift: ShiftLike = 0.0, check: bool = True):
        self._n         : int                           = 0
        self._shift     : float                         = 0.0
        self._R         : Optional[NDArray]             = None
        self._rot       : Optional[RotationSequence]    = None
        if H is not None:
            self.factor(H, shift=shift, check=check)

    # ----------------------------------------------------------------------------

    def factor(self, H, shift: ShiftLike = 0.0, check: bool = True) -> 'HessenbergQR':
        """
        Factor H - shift * I = Q R. Entries below the first subdiagonal are ignored
        when `check` is False.
        """
        mat = as_square_matrix(H)
        if check:
            check_hessenberg(mat)
        mu  = resolve_shift(shift, mat)
        n   = mat.shape[0]

        R   = np.triu(mat, -1)
        R[np.diag_indices(n)] -= mu
        cos = np.ones(n - 1, dtype=np.float64)
        sin = np.zeros(n - 1, dtype=np.float64)
        _kernels.hessenberg_factor(R, cos, sin)

        self._n     = n
        self._shift = mu
        self._R     = R
        self._rot   = RotationSequence.freeze(cos, sin)
        return self

    # ----------------------------------------------------------------------------

    def _require(self) -> RotationSequence:
        if self._rot is None:
            raise EigenError(EigenErrorMsg.NOT_COMPUTED, "HessenbergQR: call factor() first")
        return self._rot

    @property
    def n(self) -> int:
        return self._n

    @property
    def shift(self) -> float:
        return self._shift

    @property
    def rotations(self) -> RotationSequence:
        """Read-only rotation sequence representing Q."""
        return self._require()

    # ----------------------------------------------------------------------------

    def matrix_R(self) -> NDArray:
        """Upper triangular factor R (a copy)."""
        self._require()
        return self._R.copy()

    def matrix_RQ(self) -> NDArray:
        """R Q, upper Hessenberg."""
        rot = self._require()
        RQ  = self._R.copy()
        _kernels.hessenberg_rq(RQ, rot.cos, rot.sin)
        return RQ

    def matrix_QtHQ(self) -> NDArray:
        """Q^T H Q = R Q + shift * I."""
        RQ = self.matrix_RQ()
        RQ[np.diag_indices(self._n)] += self._shift
        return RQ

    def matrix_Q(self) -> NDArray:
        return self._require().matrix_Q()

    # ----------------------------------------------------------------------------

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

"""
QR factorization of a real symmetric tridiagonal matrix.

Same contract as HessenbergQR, but only the bands are stored: the diagonal and
subdiagonal of the input, and the diagonal plus two superdiagonals of R. Each
rotation touches two rows of the band, so `factor`, `matrix_RQ` (as bands) and
the shifted step `Q^T T Q` cost O(n).

R Q keeps one subdiagonal and two superdiagonals. In exact arithmetic it is
symmetric tridiagonal again; `matrix_QtHQ` returns the symmetric tridiagonal
matrix built from its diagonal and subdiagonal.
"""

from typing import Optional, Tuple
import numpy as np
from numpy.typing import NDArray

from ..errors import EigenError, EigenErrorMsg, DegenerateInputError
from .structured import ShiftLike, as_square_matrix, check_tridiagonal, resolve_shift
from .sequences import RotationSequence
from . import _kernels

# ----------------------------------------------------------------------------

def _tridiag_dense(diag: NDArray, sub: NDArray, sup: Optional[NDArray] = None, sup2: Optional[NDArray] = None) -> NDArray:
    n   = diag.shape[0]
    out = np.diag(diag)
    if n > 1:
        out[np.arange(1, n), np.arange(n - 1)] = sub
        out[np.arange(n - 1), np.arange(1, n)] = sub if sup is None else sup
    if sup2 is not None and n > 2:
        out[np.arange(n - 2), np.arange(2, n)] = sup2
    return out

class TridiagQR:
    """
    Banded Givens QR of a symmetric tridiagonal matrix.

    Args:
        H:
            Symmetric tridiagonal matrix (factored immediately if given)
        shift:
            Either a number mu or a strategy `shift(H) -> mu`; H - mu I is factored
        check:
            Reject input that is not symmetric tridiagonal

    Example:
        >>> qr = TridiagQR(T, shift=mu)
        >>> d, e = qr.qthq_bands()           # diagonal / subdiagonal of Q^T T Q
    """

    def __init__(self, H: Optional[NDArray] = None, shift: ShiftLike = 0.0, check: bool = True):
        self._n     : int                           = 0
        self._shift : float                         = 0.0
        self._bands : Optional[Tuple[NDArray, ...]] = None
        self._rot   : Optional[RotationSequence]    = None
        if H is not None:
            self.factor(H, shift=shift, check=check)

    @classmethod
    def from_bands(cls, diag, sub, shift: float = 0.0) -> 'TridiagQR':
        """Factor the symmetric tridiagonal matrix given by its diagonal and subdiagonal."""
        return cls()._factor_bands(np.asarray(diag, dtype=np.float64), np.asarray(sub, dtype=np.float64), float(shift))

    # ----------------------------------------------------------------------------

    def factor(self, H, shift: ShiftLike = 0.0, check: bool = True) -> 'TridiagQR':
        """
        Factor H - shift * I = Q R. Only the diagonal and the subdiagonal of H are read
        when `check` is False.
        """
        mat = as_square_matrix(H)
        if check:
            check_tridiagonal(mat)
        mu  = resolve_shift(shift, mat)
        return self._factor_bands(np.diag(mat), np.diag(mat, -1), mu)

    def _factor_bands(self, diag: NDArray, sub: NDArray, mu: float) -> 'TridiagQR':
        n = diag.shape[0]
        if n < 1:
            raise DegenerateInputError("tridiagonal matrix must have dimension >= 1")
        if sub.shape[0] != n - 1:
            raise DegenerateInputError(f"subdiagonal of length {sub.shape[0]} does not fit a diagonal of length {n}")
        if not (np.all(np.isfinite(diag)) and np.all(np.isfinite(sub))):
            raise DegenerateInputError("tridiagonal matrix contains non-finite entries")

        rd  = diag - mu
        ru1 = sub.copy()
        ru2 = np.zeros(max(n - 2, 0), dtype=np.float64)
        cos = np.ones(n - 1, dtype=np.float64)
        sin = np.zeros(n - 1, dtype=np.float64)
        _kernels.tridiag_factor(rd, ru1, ru2, np.ascontiguousarray(sub), cos, sin)

        self._n     = n
        self._shift = mu
        self._bands = (rd, ru1, ru2)
        self._rot   = RotationSequence.freeze(cos, sin)
        return self

    # ----------------------------------------------------------------------------

    def _require(self) -> RotationSequence:
        if self._rot is None:
            raise EigenError(EigenErrorMsg.NOT_COMPUTED, "TridiagQR: call factor() first")
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

    def r_bands(self) -> Tuple[NDArray, NDArray, NDArray]:
        """Diagonal, first and second superdiagonal of R (copies)."""
        self._require()
        return tuple(b.copy() for b in self._bands)

    def rq_bands(self) -> Tuple[NDArray, NDArray, NDArray, NDArray]:
        """Diagonal, subdiagonal, first and second superdiagonal of R Q."""
        rot             = self._require()
        dg, u1, u2      = self.r_bands()
        lo              = np.zeros(self._n - 1, dtype=np.float64)
        _kernels.tridiag_rq(dg, u1, u2, lo, rot.cos, rot.sin)
        return dg, lo, u1, u2

    def qthq_bands(self) -> Tuple[NDArray, NDArray]:
        """Diagonal and subdiagonal of the symmetric tridiagonal Q^T H Q."""
        dg, lo, _, _    = self.rq_bands()
        return dg + self._shift, lo

    # ----------------------------------------------------------------------------

    def matrix_R(self) -> NDArray:
        """Upper triangular R with two superdiagonals (dense copy)."""
        rd, ru1, ru2 = self.r_bands()
        return _tridiag_dense(rd, np.zeros(self._n - 1), ru1, ru2)

    def matrix_RQ(self) -> NDArray:
        """R Q with one subdiagonal and two superdiagonals (dense)."""
        dg, lo, u1, u2 = self.rq_bands()
        return _tridiag_dense(dg, lo, u1, u2)

    def matrix_QtHQ(self) -> NDArray:
        """Q^T H Q as a symmetric tridiagonal matrix (dense)."""
        d, e = self.qthq_bands()
        return _tridiag_dense(d, e)

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

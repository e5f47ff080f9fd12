"""
Implicit orthogonal factors.

`RotationSequence` (Givens, used by HessenbergQR and TridiagQR) and
`ReflectorSequence` (Householder, used by DoubleShiftQR) hold the parameters of Q
as small read-only arrays and apply Q, Q^T from either side by walking the
sequence, without ever forming Q unless `matrix_Q` is asked for explicitly.

The four apply methods share one operand convention:

- 1-D operands are vectors, treated as columns for Q Y / Q^T Y and as rows for Y Q / Y Q^T.
- A writeable float64 or complex128 ndarray is modified in place and returned.
- Anything else is converted to a new float64 (complex128 for complex input) array,
  which is transformed and returned.
- A wrong length raises `DimensionMismatchError`.
"""

from typing import NamedTuple, Tuple
import numpy as np
from numpy.typing import NDArray

from ..errors import DimensionMismatchError
from . import _kernels

# ----------------------------------------------------------------------------
#! Operands
# ----------------------------------------------------------------------------

_INPLACE_DTYPES = (np.dtype(np.float64), np.dtype(np.complex128))

def prepare_operand(Y, n: int, side: str) -> Tuple[NDArray, NDArray]:
    """
    Validate `Y` against the factor dimension `n`.

    Parameters
    ----------
    Y :
        Vector or matrix to transform.
    n : int
        Order of Q.
    side : str
        'left' for Q Y / Q^T Y, 'right' for Y Q / Y Q^T.

    Returns
    -------
    (out, work)
        `out` is what the caller gets back, `work` is a 2-D view of `out` the
        kernels modify.
    """
    if isinstance(Y, np.ndarray) and Y.dtype in _INPLACE_DTYPES and Y.flags.writeable:
        out = Y
    else:
        arr = np.asarray(Y)
        out = np.array(arr, dtype=np.complex128 if np.iscomplexobj(arr) else np.float64)

    if out.ndim == 1:
        if out.shape[0] != n:
            raise DimensionMismatchError(f"vector of length {out.shape[0]} does not match Q of order {n}", expected=n, got=out.shape[0])
        work = out[:, None] if side == 'left' else out[None, :]
    elif out.ndim == 2:
        dim = out.shape[0] if side == 'left' else out.shape[1]
        if dim != n:
            what = "rows" if side == 'left' else "columns"
            raise DimensionMismatchError(f"operand with {dim} {what} does not match Q of order {n}", expected=n, got=dim)
        work = out
    else:
        raise DimensionMismatchError(f"operand must be a vector or a matrix, got {out.ndim} dimensions", expected="1 or 2 dimensions", got=out.ndim)
    return out, work

def _readonly(arr: NDArray) -> NDArray:
    view                = arr.view()
    view.flags.writeable = False
    return view

# ----------------------------------------------------------------------------
#! Givens rotations
# ----------------------------------------------------------------------------

class RotationSequence(NamedTuple):
    r"""
    Ordered Givens rotations representing Q = G_0 G_1 ... G_{n-2}.

    Attributes:
        cos: cosines, one per elimination step
        sin: sines, one per elimination step
    """
    cos : NDArray
    sin : NDArray

    @classmethod
    def freeze(cls, cos: NDArray, sin: NDArray) -> 'RotationSequence':
        return cls(_readonly(cos), _readonly(sin))

    @property
    def order(self) -> int:
        return self.cos.shape[0] + 1

    def __len__(self) -> int:
        return self.cos.shape[0]

    def apply_QY(self, Y):
        out, work = prepare_operand(Y, self.order, 'left')
        _kernels.rotate_rows(self.cos, self.sin, work, False)
        return out

    def apply_QtY(self, Y):
        out, work = prepare_operand(Y, self.order, 'left')
        _kernels.rotate_rows(self.cos, self.sin, work, True)
        return out

    def apply_YQ(self, Y):
        out, work = prepare_operand(Y, self.order, 'right')
        _kernels.rotate_cols(self.cos, self.sin, work, False)
        return out

    def apply_YQt(self, Y):
        out, work = prepare_operand(Y, self.order, 'right')
        _kernels.rotate_cols(self.cos, self.sin, work, True)
        return out

    def matrix_Q(self) -> NDArray:
        """Dense Q, for inspection and tests."""
        return self.apply_QY(np.eye(self.order))

# ----------------------------------------------------------------------------
#! Householder reflectors
# ----------------------------------------------------------------------------

class ReflectorSequence(NamedTuple):
    r"""
    Ordered Householder reflectors representing Q = P_0 P_1 ... P_{n-1}.

    Attributes:
        u   : (n, 3) unit vectors, row k acting on rows k .. k+nr[k]-1
        nr  : number of rows each reflector touches (1 means identity)
    """
    u   : NDArray
    nr  : NDArray

    @classmethod
    def freeze(cls, u: NDArray, nr: NDArray) -> 'ReflectorSequence':
        return cls(_readonly(u), _readonly(nr))

    @property
    def order(self) -> int:
        return self.nr.shape[0]

    def __len__(self) -> int:
        return self.nr.shape[0]

    def apply_QY(self, Y):
        out, work = prepare_operand(Y, self.order, 'left')
        _kernels.reflect_all_rows(self.u, self.nr, work, False)
        return out

    def apply_QtY(self, Y):
        out, work = prepare_operand(Y, self.order, 'left')
        _kernels.reflect_all_rows(self.u, self.nr, work, True)
        return out

    def apply_YQ(self, Y):
        out, work = prepare_operand(Y, self.order, 'right')
        _kernels.reflect_all_cols(self.u, self.nr, work, False)
        return out

    def apply_YQt(self, Y):
        out, work = prepare_operand(Y, self.order, 'right')
        _kernels.reflect_all_cols(self.u, self.nr, work, True)
        return out

    def matrix_Q(self) -> NDArray:
        """Dense Q, for inspection and tests."""
        return self.apply_QY(np.eye(self.order))

# ----------------------------------------------------------------------------
#! EOF

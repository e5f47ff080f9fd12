"""
Common ground of the structured QR kernels.

- `StructuredQR`: the capability every kernel offers, a factorization of a banded
  matrix whose orthogonal factor stays implicit. HessenbergQR, TridiagQR and
  DoubleShiftQR satisfy it structurally, they do not share a base class.
- Input validation (`as_square_matrix`, `check_hessenberg`, `check_tridiagonal`).
- `choose_qr_kernel` / `qr_step`: pick the kernel from the shape of the input. This is
  the entry point for callers holding a dense structured matrix; the Krylov drivers
  and the dense eigen routines know their structure and build kernels directly
  with `check=False`.
"""

from typing import Callable, Protocol, Tuple, Type, Union, runtime_checkable
import numpy as np
from numpy.typing import NDArray

from ..errors import DegenerateInputError, StructureError

# ----------------------------------------------------------------------------
#! Capability
# ----------------------------------------------------------------------------

ShiftLike = Union[float, Callable[[NDArray], float]]

@runtime_checkable
class StructuredQR(Protocol):
    """QR kernel over a structured (banded) matrix with an implicit Q."""

    def matrix_QtHQ(self) -> NDArray: ...
    def apply_QY(self, Y): ...
    def apply_QtY(self, Y): ...
    def apply_YQ(self, Y): ...
    def apply_YQt(self, Y): ...

# ----------------------------------------------------------------------------
#! Validation
# ----------------------------------------------------------------------------

def as_square_matrix(H, name: str = "H") -> NDArray:
    """
    Return `H` as a float64 2-D array, checking that it is square, non-empty and finite.
    """
    arr = np.asarray(H)
    if np.iscomplexobj(arr):
        raise TypeError(f"{name} must be real, got dtype {arr.dtype}")
    if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
        raise DegenerateInputError(f"{name} must be square, got shape {arr.shape}")
    if arr.shape[0] < 1:
        raise DegenerateInputError(f"{name} must have dimension >= 1, got shape {arr.shape}")
    arr = np.asarray(arr, dtype=np.float64)
    if not np.all(np.isfinite(arr)):
        raise DegenerateInputError(f"{name} contains non-finite entries")
    return arr

def check_hessenberg(H: NDArray, name: str = "H") -> None:
    """Raise StructureError if H has nonzeros below its first subdiagonal."""
    below = np.tril(H, -2)
    if np.any(below != 0.0):
        i, j = np.argwhere(below != 0.0)[0]
        raise StructureError(f"{name} is not upper Hessenberg: entry ({i}, {j}) = {H[i, j]:.3e}")

def check_tridiagonal(H: NDArray, tol: float = 1e-12, name: str = "H") -> None:
    """Raise StructureError unless H is symmetric tridiagonal (to relative tolerance `tol`)."""
    n       = H.shape[0]
    outside = np.tril(H, -2) + np.triu(H, 2)
    if np.any(outside != 0.0):
        i, j = np.argwhere(outside != 0.0)[0]
        raise StructureError(f"{name} is not tridiagonal: entry ({i}, {j}) = {H[i, j]:.3e}")
    if n > 1:
        sub     = np.diag(H, -1)
        sup     = np.diag(H, 1)
        scale   = max(np.max(np.abs(H)), np.finfo(np.float64).tiny)
        if np.max(np.abs(sub - sup)) > tol * scale:
            raise StructureError(f"{name} is not symmetric: max |H[i+1,i] - H[i,i+1]| = {np.max(np.abs(sub - sup)):.3e}")

def is_symmetric_tridiagonal(H: NDArray, tol: float = 1e-12) -> bool:
    try:
        check_tridiagonal(H, tol)
    except StructureError:
        return False
    return True

def resolve_shift(shift: ShiftLike, H: NDArray) -> float:
    """A shift is either a number or a strategy `shift(H) -> float`."""
    if callable(shift):
        shift = shift(H)
    shift = float(shift)
    if not np.isfinite(shift):
        raise DegenerateInputError(f"shift must be finite, got {shift}")
    return shift

# ----------------------------------------------------------------------------
#! Selection by structure
# ----------------------------------------------------------------------------

def choose_qr_kernel(H, tol: float = 1e-12) -> Type:
    """
    Kernel class for a single-shift QR step on H: TridiagQR for symmetric
    tridiagonal input, HessenbergQR for any other upper Hessenberg matrix.
    """
    from .hessenberg import HessenbergQR
    from .tridiag import TridiagQR

    mat = as_square_matrix(H)
    if is_symmetric_tridiagonal(mat, tol):
        return TridiagQR
    check_hessenberg(mat)
    return HessenbergQR

def qr_step(H, shift: ShiftLike = 0.0) -> Tuple[NDArray, StructuredQR]:
    """
    One shifted QR step H -> Q^T H Q with the kernel matching H's structure.

    Returns
    -------
    (QtHQ, kernel)
        The transformed matrix and the factorization, whose apply methods carry
        Q to other operands (e.g. an accumulated basis).
    """
    kernel = choose_qr_kernel(H)(H, shift=shift, check=False)
    return kernel.matrix_QtHQ(), kernel

# ----------------------------------------------------------------------------
#! EOF

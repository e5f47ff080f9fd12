"""
Dense eigensolvers for the small projected matrices of the Krylov drivers.

The Ritz values and vectors of a Krylov factorization are the eigenpairs of its
m x m projection matrix. They are computed here by repeated shifted-QR steps
built on the structured kernels:

- `sym_tridiag_eigen`: symmetric tridiagonal T (Lanczos). TridiagQR steps with a
  Wilkinson shift on the trailing unreduced block until every off-diagonal entry
  is negligible; the rotations are accumulated into the eigenvector matrix.
- `hessenberg_schur`: real Schur form T = Z^T H Z of an upper Hessenberg H (Arnoldi).
  DoubleShiftQR steps with the Francis shift on the trailing unreduced block,
  deflating 1x1 and 2x2 diagonal blocks.
- `hessenberg_eigen`: eigenvalues from the Schur form and eigenvectors by back
  substitution in complex arithmetic.

Both iterations substitute an exceptional shift every `exceptional_every` steps
without deflation and give up with `NumericalStagnationError` after
`max_steps_per_value * m` steps.
"""

from typing import List, Optional, Tuple
import math
import numpy as np
from numpy.typing import NDArray

from ..errors import NumericalStagnationError
from ..qr.structured import as_square_matrix, check_hessenberg, check_tridiagonal
from ..qr.tridiag import TridiagQR
from ..qr.double_shift import DoubleShiftQR
from ..qr.sequences import RotationSequence
from ..qr.shifts import wilkinson_shift, exceptional_single_shift, exceptional_double_shift

# ----------------------------------------------------------------------------

_EPS    = np.finfo(np.float64).eps
_SAFMIN = np.finfo(np.float64).tiny

def _negligible(h: float, a: float, b: float, near_0: float) -> bool:
    h = abs(h)
    return h <= near_0 or h <= _EPS * (abs(a) + abs(b))

# ----------------------------------------------------------------------------
#! Symmetric tridiagonal
# ----------------------------------------------------------------------------

def sym_tridiag_eigen(T,
                    compute_vectors     : bool = True,
                    check               : bool = True,
                    exceptional_every   : int  = 10,
                    max_steps_per_value : int  = 30) -> Tuple[NDArray, Optional[NDArray]]:
    """
    All eigenpairs of a symmetric tridiagonal matrix.

    Args:
        T:
            Symmetric tridiagonal matrix (only the diagonal and subdiagonal are read)
        compute_vectors:
            Also accumulate the orthonormal eigenvectors
        check:
            Validate the tridiagonal structure
        exceptional_every:
            Use an exceptional shift after this many steps without deflation
        max_steps_per_value:
            Step budget per eigenvalue

    Returns:
        (evals, evecs) with eigenvalues in ascending order and eigenvectors as columns
        (None when compute_vectors is False).
    """
    mat = as_square_matrix(T, "T")
    if check:
        check_tridiagonal(mat, tol=1e-10, name="T")
    return sym_tridiag_eigen_bands(np.diag(mat), np.diag(mat, -1), compute_vectors,
                                exceptional_every=exceptional_every, max_steps_per_value=max_steps_per_value)

def sym_tridiag_eigen_bands(diag,
                            sub,
                            compute_vectors     : bool = True,
                            exceptional_every   : int  = 10,
                            max_steps_per_value : int  = 30) -> Tuple[NDArray, Optional[NDArray]]:
    """Same as `sym_tridiag_eigen` for a matrix given by its diagonal and subdiagonal."""
    d       = np.array(diag, dtype=np.float64)
    e       = np.array(sub, dtype=np.float64)
    m       = d.shape[0]
    Z       = np.eye(m) if compute_vectors else None
    near_0  = _SAFMIN * m / _EPS

    end         = m - 1
    steps       = 0
    stagnant    = 0
    max_steps   = max_steps_per_value * m
    while end > 0:
        if _negligible(e[end - 1], d[end - 1], d[end], near_0):
            e[end - 1]  = 0.0
            end        -= 1
            stagnant    = 0
            continue

        start = end - 1
        while start > 0 and not _negligible(e[start - 1], d[start - 1], d[start], near_0):
            start -= 1
        if start > 0:
            e[start - 1] = 0.0

        steps      += 1
        stagnant   += 1
        if steps > max_steps:
            raise NumericalStagnationError(
                f"tridiagonal QR did not deflate rows {start}..{end} after {steps - 1} steps",
                iterations=steps - 1, block=(start, end))

        a, b, c = d[end - 1], e[end - 1], d[end]
        if stagnant % exceptional_every == 0:
            mu = exceptional_single_shift(a, b, c)
        else:
            mu = wilkinson_shift(a, b, c)

        qr                                  = TridiagQR.from_bands(d[start:end + 1], e[start:end], mu)
        d[start:end + 1], e[start:end]      = qr.qthq_bands()
        if Z is not None:
            qr.apply_YQ(Z[:, start:end + 1])

    order = np.argsort(d, kind='stable')
    return d[order], (Z[:, order] if Z is not None else None)

# ----------------------------------------------------------------------------
#! General upper Hessenberg
# ----------------------------------------------------------------------------

def _split_real_pair(T: NDArray, Z: Optional[NDArray], p: int) -> None:
    """
    Triangularize the 2x2 diagonal block at (p, p) when its eigenvalues are real.
    """
    a, b    = T[p, p], T[p, p + 1]
    c, d    = T[p + 1, p], T[p + 1, p + 1]
    if c == 0.0:
        return
    half    = 0.5 * (a - d)
    disc    = half * half + b * c
    if disc < 0.0:
        return

    root    = math.sqrt(disc)
    lam     = 0.5 * (a + d) + (root if half >= 0.0 else -root)
    v1      = (b, lam - a)
    v2      = (lam - d, c)
    x, y    = v1 if math.hypot(*v1) >= math.hypot(*v2) else v2
    r       = math.hypot(x, y)
    if r == 0.0:
        return

    rot = RotationSequence.freeze(np.array([x / r]), np.array([y / r]))
    rot.apply_QtY(T[p:p + 2, p:])
    rot.apply_YQ(T[:p + 2, p:p + 2])
    if Z is not None:
        rot.apply_YQ(Z[:, p:p + 2])
    T[p + 1, p] = 0.0

def hessenberg_schur(H,
                    compute_z           : bool = True,
                    check               : bool = True,
                    exceptional_every   : int  = 10,
                    max_steps_per_value : int  = 30) -> Tuple[NDArray, Optional[NDArray]]:
    """
    Real Schur form of an upper Hessenberg matrix.

    Returns:
        (T, Z) with T quasi upper triangular (1x1 blocks and 2x2 blocks holding
        complex-conjugate pairs, deflated subdiagonal entries exactly zero) and
        Z orthogonal such that H = Z T Z^T. Z is None when compute_z is False.
    """
    mat = as_square_matrix(H)
    if check:
        check_hessenberg(mat)
    T       = np.triu(mat, -1)
    n       = T.shape[0]
    Z       = np.eye(n) if compute_z else None
    near_0  = _SAFMIN * n / _EPS

    iu          = n - 1
    its         = 0
    steps       = 0
    max_steps   = max_steps_per_value * n
    while iu >= 0:
        il = iu
        while il > 0:
            if _negligible(T[il, il - 1], T[il - 1, il - 1], T[il, il], near_0):
                T[il, il - 1] = 0.0
                break
            il -= 1

        if il == iu:
            iu -= 1
            its = 0
            continue
        if il == iu - 1:
            _split_real_pair(T, Z, il)
            iu -= 2
            its = 0
            continue

        its    += 1
        steps  += 1
        if steps > max_steps:
            raise NumericalStagnationError(
                f"double-shift QR did not deflate rows {il}..{iu} after {steps - 1} steps",
                iterations=steps - 1, block=(il, iu))

        strategy    = exceptional_double_shift if its % exceptional_every == 0 else None
        ds          = DoubleShiftQR(T[il:iu + 1, il:iu + 1], shift_strategy=strategy, check=False)
        T[il:iu + 1, il:iu + 1] = ds.matrix_QtHQ()
        if iu + 1 < n:
            ds.apply_QtY(T[il:iu + 1, iu + 1:])
        if il > 0:
            ds.apply_YQ(T[:il, il:iu + 1])
        if Z is not None:
            ds.apply_YQ(Z[:, il:iu + 1])
    return T, Z

# ----------------------------------------------------------------------------

def _schur_blocks(T: NDArray) -> List[Tuple[int, int]]:
    """(start, size) of the diagonal blocks of a quasi-triangular T."""
    n       = T.shape[0]
    blocks  = []
    i       = 0
    while i < n:
        if i < n - 1 and T[i + 1, i] != 0.0:
            blocks.append((i, 2))
            i += 2
        else:
            blocks.append((i, 1))
            i += 1
    return blocks

def schur_eigenvalues(T: NDArray) -> NDArray:
    """Eigenvalues of a quasi-triangular T, conjugate pairs adjacent (positive imaginary part first)."""
    vals = np.empty(T.shape[0], dtype=np.complex128)
    for p, size in _schur_blocks(T):
        if size == 1:
            vals[p] = T[p, p]
            continue
        a, b    = T[p, p], T[p, p + 1]
        c, d    = T[p + 1, p], T[p + 1, p + 1]
        re      = 0.5 * (a + d)
        half    = 0.5 * (a - d)
        disc    = half * half + b * c
        if disc < 0.0:
            im              = math.sqrt(-disc)
            vals[p]         = complex(re, im)
            vals[p + 1]     = complex(re, -im)
        else:
            root            = math.sqrt(disc)
            vals[p]         = re + root
            vals[p + 1]     = re - root
    return vals

def _schur_vectors(T: NDArray, vals: NDArray) -> NDArray:
    """Eigenvectors of the quasi-triangular T by back substitution."""
    n       = T.shape[0]
    blocks  = _schur_blocks(T)
    smin    = max(_EPS * max(np.max(np.abs(T)), _SAFMIN), _SAFMIN * n / _EPS)
    Y       = np.zeros((n, n), dtype=np.complex128)

    for bi, (p, size) in enumerate(blocks):
        for k in range(p, p + size):
            if size == 2 and k == p + 1 and vals[k] == np.conj(vals[p]) and vals[p].imag != 0.0:
                Y[:, k] = np.conj(Y[:, p])
                continue

            lam = vals[k]
            y   = Y[:, k]
            if size == 1:
                y[p] = 1.0
            else:
                # null vector of the 2x2 block shifted by lam
                a, b, c, d = T[p, p], T[p, p + 1], T[p + 1, p], T[p + 1, p + 1]
                if abs(b) + abs(lam - a) >= abs(lam - d) + abs(c):
                    y[p], y[p + 1] = b, lam - a
                else:
                    y[p], y[p + 1] = lam - d, c

            for q, qsize in reversed(blocks[:bi]):
                if qsize == 1:
                    rhs = -np.dot(T[q, q + 1:], y[q + 1:])
                    den = T[q, q] - lam
                    if abs(den) < smin:
                        den = smin
                    y[q] = rhs / den
                else:
                    r0  = -np.dot(T[q, q + 2:], y[q + 2:])
                    r1  = -np.dot(T[q + 1, q + 2:], y[q + 2:])
                    a00 = T[q, q] - lam
                    a01 = T[q, q + 1]
                    a10 = T[q + 1, q]
                    a11 = T[q + 1, q + 1] - lam
                    det = a00 * a11 - a01 * a10
                    if abs(det) < smin * smin:
                        det = smin * smin
                    y[q]        = (r0 * a11 - a01 * r1) / det
                    y[q + 1]    = (a00 * r1 - a10 * r0) / det

            nrm = np.linalg.norm(y)
            if nrm > 0.0:
                y /= nrm
    return Y

def hessenberg_eigen(H,
                    compute_vectors     : bool = True,
                    check               : bool = True,
                    exceptional_every   : int  = 10,
                    max_steps_per_value : int  = 30) -> Tuple[NDArray, Optional[NDArray]]:
    """
    All eigenpairs of a real upper Hessenberg matrix.

    Returns:
        (evals, evecs): complex eigenvalues in the order they appear on the diagonal
        of the Schur form, complex-conjugate pairs adjacent and exactly conjugate;
        unit-norm complex eigenvectors as columns (None when compute_vectors is False).
    """
    T, Z = hessenberg_schur(H, compute_z=compute_vectors, check=check,
                            exceptional_every=exceptional_every, max_steps_per_value=max_steps_per_value)
    vals = schur_eigenvalues(T)
    if not compute_vectors:
        return vals, None

    V = Z @ _schur_vectors(T, vals)
    V /= np.linalg.norm(V, axis=0)[None, :]
    return vals, V

# ----------------------------------------------------------------------------
#! EOF

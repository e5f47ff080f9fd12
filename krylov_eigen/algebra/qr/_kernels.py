"""
Compiled loops behind the structured QR kernels.

The orthogonal factors are never stored densely. A Givens factor is a pair of
arrays (cos, sin), rotation i acting on the index pair (i, i+1) as

    G_i = [[c, -s],
           [s,  c]],     Q = G_0 G_1 ... G_{n-2}.

A Householder factor is an (n, 3) array of unit vectors u_k together with the
number of rows nr_k in {1, 2, 3} each reflector touches (nr_k = 1 is the identity),
reflector k acting on rows k .. k+nr_k-1 as P_k = I - 2 u_k u_k^T, Q = P_0 P_1 ... P_{n-1}.

All kernels work in place and accept float64 or complex128 operands.
"""

import math
import numba
import numpy as np

# ----------------------------------------------------------------------------
#! Givens rotations
# ----------------------------------------------------------------------------

@numba.njit(cache=True)
def givens(x, y):
    """
    Rotation (c, s) with [[c, s], [-s, c]] @ [x, y] = [r, 0].
    A zero `y` gives the identity rotation and r = x.
    """
    if y == 0.0:
        return 1.0, 0.0, x
    r = math.hypot(x, y)
    return x / r, y / r, r

@numba.njit(cache=True)
def rotate_rows(cos, sin, Y, transpose):
    """Y <- Q^T Y (transpose=True) or Y <- Q Y (transpose=False)."""
    nrot    = cos.shape[0]
    ncols   = Y.shape[1]
    for idx in range(nrot):
        if transpose:
            i = idx
            s = sin[i]
        else:
            i = nrot - 1 - idx
            s = -sin[i]
        c = cos[i]
        if s == 0.0 and c == 1.0:
            continue
        for j in range(ncols):
            a           = Y[i, j]
            b           = Y[i + 1, j]
            Y[i, j]     = c * a + s * b
            Y[i + 1, j] = -s * a + c * b

@numba.njit(cache=True)
def rotate_cols(cos, sin, Y, transpose):
    """Y <- Y Q (transpose=False) or Y <- Y Q^T (transpose=True)."""
    nrot    = cos.shape[0]
    nrows   = Y.shape[0]
    for idx in range(nrot):
        if transpose:
            i = nrot - 1 - idx
            s = -sin[i]
        else:
            i = idx
            s = sin[i]
        c = cos[i]
        if s == 0.0 and c == 1.0:
            continue
        for j in range(nrows):
            a           = Y[j, i]
            b           = Y[j, i + 1]
            Y[j, i]     = c * a + s * b
            Y[j, i + 1] = -s * a + c * b

# ----------------------------------------------------------------------------
#! Upper Hessenberg
# ----------------------------------------------------------------------------

@numba.njit(cache=True)
def hessenberg_factor(R, cos, sin):
    """
    Reduce the (shifted) upper Hessenberg matrix R to upper triangular form in place,
    storing the rotations in `cos`, `sin`. Entries below the first subdiagonal are
    not read.
    """
    n = R.shape[0]
    for i in range(n - 1):
        c, s, r     = givens(R[i, i], R[i + 1, i])
        cos[i]      = c
        sin[i]      = s
        R[i, i]     = r
        R[i + 1, i] = 0.0
        if s == 0.0 and c == 1.0:
            continue
        for j in range(i + 1, n):
            a           = R[i, j]
            b           = R[i + 1, j]
            R[i, j]     = c * a + s * b
            R[i + 1, j] = -s * a + c * b

@numba.njit(cache=True)
def hessenberg_rq(RQ, cos, sin):
    """RQ <- RQ Q for an upper triangular RQ, touching only the rows the rotation fills."""
    n = RQ.shape[0]
    for i in range(n - 1):
        c = cos[i]
        s = sin[i]
        for j in range(i + 2):
            a               = RQ[j, i]
            b               = RQ[j, i + 1]
            RQ[j, i]        = c * a + s * b
            RQ[j, i + 1]    = -s * a + c * b

# ----------------------------------------------------------------------------
#! Symmetric tridiagonal
# ----------------------------------------------------------------------------

@numba.njit(cache=True)
def tridiag_factor(rd, ru1, ru2, sub, cos, sin):
    """
    Banded QR of a symmetric tridiagonal matrix.

    On entry `rd` holds the (shifted) diagonal, `ru1` and `sub` the off-diagonal.
    On exit `rd`, `ru1`, `ru2` hold the diagonal and the two superdiagonals of R.
    """
    n = rd.shape[0]
    for i in range(n - 1):
        c, s, r     = givens(rd[i], sub[i])
        cos[i]      = c
        sin[i]      = s
        rd[i]       = r

        a           = ru1[i]
        b           = rd[i + 1]
        ru1[i]      = c * a + s * b
        rd[i + 1]   = -s * a + c * b

        if i < n - 2:
            ru2[i]      = s * sub[i + 1]
            ru1[i + 1]  = c * sub[i + 1]

@numba.njit(cache=True)
def tridiag_rq(dg, u1, u2, lo, cos, sin):
    """
    Bands of R Q for the banded R of `tridiag_factor`.

    On entry `dg`, `u1`, `u2` hold the bands of R and `lo` is zero. Each rotation is
    applied to rows max(0, i-1) .. i+1 only, so the result keeps one subdiagonal
    and two superdiagonals.
    """
    n = dg.shape[0]
    for i in range(n - 1):
        c = cos[i]
        s = sin[i]
        if i > 0:
            a           = u1[i - 1]
            b           = u2[i - 1]
            u1[i - 1]   = c * a + s * b
            u2[i - 1]   = -s * a + c * b
        a           = dg[i]
        b           = u1[i]
        dg[i]       = c * a + s * b
        u1[i]       = -s * a + c * b
        b           = dg[i + 1]
        lo[i]       = s * b
        dg[i + 1]   = c * b

# ----------------------------------------------------------------------------
#! Householder reflectors (double shift)
# ----------------------------------------------------------------------------

@numba.njit(cache=True)
def make_reflector(ref_u, ref_nr, k, x0, x1, x2, nr):
    """Reflector k mapping (x0, x1[, x2]) onto a multiple of e_1."""
    if nr == 2:
        x2 = 0.0
    ref_u[k, 0] = 0.0
    ref_u[k, 1] = 0.0
    ref_u[k, 2] = 0.0
    if x1 == 0.0 and x2 == 0.0:
        ref_nr[k] = 1
        return
    scale   = abs(x0) + abs(x1) + abs(x2)
    x0      = x0 / scale
    x1      = x1 / scale
    x2      = x2 / scale
    nrm     = math.sqrt(x0 * x0 + x1 * x1 + x2 * x2)
    u0      = x0 + nrm if x0 >= 0.0 else x0 - nrm
    unrm    = math.sqrt(u0 * u0 + x1 * x1 + x2 * x2)
    ref_u[k, 0] = u0 / unrm
    ref_u[k, 1] = x1 / unrm
    ref_u[k, 2] = x2 / unrm
    ref_nr[k]   = nr

@numba.njit(cache=True)
def reflect_rows(X, ref_u, ref_nr, k, c0, c1):
    """X[k:k+nr, c0:c1] <- P_k X[k:k+nr, c0:c1]."""
    nr = ref_nr[k]
    if nr < 2:
        return
    u0 = ref_u[k, 0]
    u1 = ref_u[k, 1]
    u2 = ref_u[k, 2]
    for j in range(c0, c1):
        if nr == 3:
            w            = 2.0 * (u0 * X[k, j] + u1 * X[k + 1, j] + u2 * X[k + 2, j])
            X[k, j]     -= w * u0
            X[k + 1, j] -= w * u1
            X[k + 2, j] -= w * u2
        else:
            w            = 2.0 * (u0 * X[k, j] + u1 * X[k + 1, j])
            X[k, j]     -= w * u0
            X[k + 1, j] -= w * u1

@numba.njit(cache=True)
def reflect_cols(X, ref_u, ref_nr, k, r0, r1):
    """X[r0:r1, k:k+nr] <- X[r0:r1, k:k+nr] P_k."""
    nr = ref_nr[k]
    if nr < 2:
        return
    u0 = ref_u[k, 0]
    u1 = ref_u[k, 1]
    u2 = ref_u[k, 2]
    for i in range(r0, r1):
        if nr == 3:
            w            = 2.0 * (X[i, k] * u0 + X[i, k + 1] * u1 + X[i, k + 2] * u2)
            X[i, k]     -= w * u0
            X[i, k + 1] -= w * u1
            X[i, k + 2] -= w * u2
        else:
            w            = 2.0 * (X[i, k] * u0 + X[i, k + 1] * u1)
            X[i, k]     -= w * u0
            X[i, k + 1] -= w * u1

@numba.njit(cache=True)
def reflect_all_rows(ref_u, ref_nr, Y, transpose):
    """Y <- Q^T Y (transpose=True) or Y <- Q Y (transpose=False)."""
    n       = ref_nr.shape[0]
    ncols   = Y.shape[1]
    for idx in range(n):
        k = idx if transpose else n - 1 - idx
        reflect_rows(Y, ref_u, ref_nr, k, 0, ncols)

@numba.njit(cache=True)
def reflect_all_cols(ref_u, ref_nr, Y, transpose):
    """Y <- Y Q (transpose=False) or Y <- Y Q^T (transpose=True)."""
    n       = ref_nr.shape[0]
    nrows   = Y.shape[0]
    for idx in range(n):
        k = n - 1 - idx if transpose else idx
        reflect_cols(Y, ref_u, ref_nr, k, 0, nrows)

@numba.njit(cache=True)
def _double_shift_block(H, ref_u, ref_nr, il, iu, s, t):
    n       = H.shape[0]
    bsize   = iu - il + 1
    if bsize == 1:
        ref_nr[il] = 1
        return

    # First column of H^2 - sH + tI restricted to the block
    x = H[il, il] * (H[il, il] - s) + H[il, il + 1] * H[il + 1, il] + t
    y = H[il + 1, il] * (H[il, il] + H[il + 1, il + 1] - s)

    if bsize == 2:
        make_reflector(ref_u, ref_nr, il, x, y, 0.0, 2)
        reflect_rows(H, ref_u, ref_nr, il, il, n)
        reflect_cols(H, ref_u, ref_nr, il, 0, iu + 1)
        ref_nr[il + 1] = 1
        return

    # Bulge introduction
    z = H[il + 2, il + 1] * H[il + 1, il]
    make_reflector(ref_u, ref_nr, il, x, y, z, 3)
    reflect_rows(H, ref_u, ref_nr, il, il, n)
    reflect_cols(H, ref_u, ref_nr, il, 0, min(iu, il + 3) + 1)

    # Bulge chase
    for i in range(1, bsize - 2):
        k = il + i
        make_reflector(ref_u, ref_nr, k, H[k, k - 1], H[k + 1, k - 1], H[k + 2, k - 1], 3)
        reflect_rows(H, ref_u, ref_nr, k, k - 1, n)
        H[k + 1, k - 1] = 0.0
        H[k + 2, k - 1] = 0.0
        reflect_cols(H, ref_u, ref_nr, k, 0, min(iu, k + 3) + 1)

    # The bulge leaves the block through the last 2x2 reflector
    k = iu - 1
    make_reflector(ref_u, ref_nr, k, H[k, k - 1], H[k + 1, k - 1], 0.0, 2)
    reflect_rows(H, ref_u, ref_nr, k, k - 1, n)
    H[k + 1, k - 1] = 0.0
    reflect_cols(H, ref_u, ref_nr, k, 0, iu + 1)
    ref_nr[iu] = 1

@numba.njit(cache=True)
def double_shift_factor(H, ref_u, ref_nr, s, t, prec, near_0):
    """
    One implicit double-shift QR step on the Hessenberg matrix H, in place.

    Negligible subdiagonal entries are set to zero first and every unreduced
    block gets its own bulge. Returns the number of blocks.
    """
    n           = H.shape[0]
    bounds      = np.empty(n + 1, dtype=np.int64)
    bounds[0]   = 0
    nb          = 1
    for i in range(1, n):
        h = abs(H[i, i - 1])
        if h <= near_0 or h <= prec * (abs(H[i - 1, i - 1]) + abs(H[i, i])):
            H[i, i - 1] = 0.0
            bounds[nb]  = i
            nb         += 1
    bounds[nb]  = n

    for b in range(nb):
        _double_shift_block(H, ref_u, ref_nr, bounds[b], bounds[b + 1] - 1, s, t)
    return nb

# ----------------------------------------------------------------------------
#! EOF

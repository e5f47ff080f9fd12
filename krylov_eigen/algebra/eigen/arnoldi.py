r"""
Implicitly restarted Arnoldi solver

Finds k eigenvalues (and eigenvectors) of a general real operator selected by a
sorting rule. The m-step Arnoldi factorization

    $$
    A V = V H + f e_m^T
    $$

is restarted with the unwanted Ritz values as shifts: a complex-conjugate pair
is removed by one Francis double-shift step (DoubleShiftQR) so all arithmetic
stays real, a real value by one shifted HessenbergQR step.

Also provides `ArnoldiEigensolverScipy`, the ARPACK path through
`scipy.sparse.linalg.eigs`.

References:
    [1] D. C. Sorensen, "Implicit application of polynomial filters in a k-step
        Arnoldi method", SIAM J. Matrix Anal. Appl. 13 (1992).
"""

from typing import Optional, Callable, Tuple, Union
from numpy.typing import NDArray
import numpy as np

from ..qr.hessenberg import HessenbergQR
from ..qr.double_shift import DoubleShiftQR
from ..qr.shifts import shift_pair
from ..utils import PY_EIGS_TOL, get_rng
from ...common.flog import Logger, get_global_logger
from .dense import hessenberg_eigen
from .krylov import RestartedKrylovSolver, KrylovFactorization
from .lanczos import _scipy_operator, _scipy_ncv, _scipy_result
from .result import EigenResult, EigenSolver
from .selection import SortRule, argsort_ritz

# ----------------------------------------------------------------------------------------

def _is_conjugate_pair(a: complex, b: complex) -> bool:
    return np.imag(a) != 0.0 and b == np.conj(a)

# ----------------------------------------------------------------------------------------
#! Native solver
# ----------------------------------------------------------------------------------------

class ArnoldiEigensolver(RestartedKrylovSolver):
    """
    Implicitly restarted Arnoldi eigensolver for general real operators.

    Args:
        k: Number of eigenvalues to compute, 1 <= k <= n - 2
        m: Arnoldi basis size, k + 2 <= m <= n (default: min(n, max(2*k+1, 20)))
        which: 'LM', 'SM', 'LR', 'SR', 'LI', 'SI' (or 'largest', 'smallest')
        tol: Relative convergence tolerance
        max_iter: Maximum number of implicit restarts

    Eigenvalues are returned as complex numbers, eigenvectors as complex unit vectors.

    Example:
        >>> solver = ArnoldiEigensolver(k=4, m=20, which='LM')
        >>> result = solver.solve(A)
    """

    _symmetric  = False
    _kind       = "Arnoldi"

    def _subspace_size(self, n: int) -> int:
        k = self.k
        if k > n - 2:
            raise ValueError(f"k={k} must satisfy 1 <= k <= n - 2 (n={n})")
        m = min(n, max(2 * k + 1, 20)) if self.m is None else self.m
        if not (k + 2 <= m <= n):
            raise ValueError(f"m={m} must satisfy k + 2 = {k + 2} <= m <= n={n}")
        return m

    def _ritz_pairs(self, H: NDArray) -> Tuple[NDArray, NDArray]:
        vals, vecs  = hessenberg_eigen(H, check=False)
        order       = argsort_ritz(vals, self.rule)
        return vals[order], vecs[:, order]

    def _restart_step(self, fac: KrylovFactorization, ritz_val: NDArray, k: int) -> Tuple[NDArray, NDArray]:
        m   = fac.m
        Q   = np.eye(m)
        H   = fac.H.copy()
        i   = k
        while i < m:
            mu = ritz_val[i]
            if i + 1 < m and _is_conjugate_pair(mu, ritz_val[i + 1]):
                s, t    = shift_pair(mu)
                step    = DoubleShiftQR(H, s, t, check=False)
                i      += 2
            else:
                step    = HessenbergQR(H, shift=float(np.real(mu)), check=False)
                i      += 1
            step.apply_YQ(Q)
            H = step.matrix_QtHQ()
        return H, Q

    def _adjust_bounds(self, nev_new: int, ritz_val: NDArray, m: int) -> int:
        if nev_new == 1 and m >= 6:
            nev_new = m // 2
        elif nev_new == 1 and m > 3:
            nev_new = 2
        nev_new = min(nev_new, m - 2)
        # never split a conjugate pair between kept and removed
        if _is_conjugate_pair(ritz_val[nev_new - 1], ritz_val[nev_new]):
            nev_new += 1
        return nev_new

# ----------------------------------------------------------------------------------------

def eigs_gen(A                      = None,
            k                       : int                   = 6,
            m                       : Optional[int]         = None,
            v0                      : Optional[NDArray]     = None,
            tol                     : Optional[float]       = None,
            max_iter                : Optional[int]         = None,
            which                   : Union[str, SortRule]  = 'LM',
            return_eigenvectors     : bool                  = True,
            *,
            matvec                  : Optional[Callable[[NDArray], NDArray]] = None,
            n                       : Optional[int]         = None,
            **kwargs) -> EigenResult:
    """
    k eigenpairs of a general real operator with the implicitly restarted Arnoldi method.

    Args:
        A: Dense matrix or an object with `shape` and `@`
        k, m, v0, tol, max_iter, which: see `ArnoldiEigensolver`
        return_eigenvectors: Assemble the Ritz vectors in the original space
        matvec, n: Matrix-free operator and its dimension (instead of A)
        **kwargs: raise_on_failure, seed, logger, verbose

    Returns:
        EigenResult with complex eigenvalues ordered by `which`.
    """
    solver = ArnoldiEigensolver(k=k, m=m, which=which, tol=tol, max_iter=max_iter, **kwargs)
    return solver.solve(A=A, matvec=matvec, v0=v0, n=n, return_eigenvectors=return_eigenvectors)

# ----------------------------------------------------------------------------------------
#! SciPy wrapper
# ----------------------------------------------------------------------------------------

class ArnoldiEigensolverScipy(EigenSolver):
    """
    SciPy wrapper for the Arnoldi eigenvalue solver.

    Uses scipy.sparse.linalg.eigs (Fortran ARPACK) with the same k, m (as ncv), which,
    tol, max_iter and v0 as `ArnoldiEigensolver`.

    Example:
        >>> solver = ArnoldiEigensolverScipy(k=6, which='LM')
        >>> result = solver.solve(A)
    """

    _symmetric  = False
    _kind       = "eigs"

    def __init__(self,
                k                   : int                   = 6,
                m                   : Optional[int]         = None,
                which               : Union[str, SortRule]  = 'LM',
                tol                 : Optional[float]       = None,
                max_iter            : Optional[int]         = None,
                v0                  : Optional[NDArray]     = None,
                seed                : Optional[int]         = None,
                raise_on_failure    : bool                  = False,
                logger              : Optional[Logger]      = None):
        self.k                  = int(k)
        self.m                  = m
        self.rule               = SortRule.parse(which, self._symmetric)
        self.tol                = PY_EIGS_TOL if tol is None else float(tol)
        self.max_iter           = max_iter
        self.v0                 = v0
        self.seed               = seed
        self.raise_on_failure   = raise_on_failure
        self.logger             = logger

    def solve(self,
            A                   = None,
            matvec              : Optional[Callable[[NDArray], NDArray]] = None,
            n                   : Optional[int]     = None,
            return_eigenvectors : bool              = True) -> EigenResult:
        """
        Solve for eigenvalues using SciPy's eigs.
        """
        from scipy.sparse.linalg import eigs, ArpackNoConvergence

        op, dim = _scipy_operator(A, matvec, n)
        if not (1 <= self.k <= dim - 2):
            raise ValueError(f"k={self.k} must satisfy 1 <= k <= n - 2 (n={dim})")
        ncv     = _scipy_ncv(self.k, self.m, dim, 2)
        v0      = self.v0 if self.v0 is not None else get_rng(self.seed).uniform(-0.5, 0.5, dim)
        logger  = self.logger if self.logger is not None else get_global_logger()

        try:
            vals, vecs  = eigs(op, k=self.k, which=self.rule.value, tol=self.tol, maxiter=self.max_iter,
                                v0=v0, ncv=ncv, return_eigenvectors=True)
            converged   = True
        except ArpackNoConvergence as e:
            vals, vecs  = np.asarray(e.eigenvalues), np.asarray(e.eigenvectors)
            converged   = False
        vals = np.asarray(vals, dtype=np.complex128)
        vecs = np.asarray(vecs, dtype=np.complex128).reshape(dim, -1)
        return _scipy_result(self, op, vals, vecs, converged, return_eigenvectors, logger)

# ----------------------------------------------------------------------------------------
#! EOF

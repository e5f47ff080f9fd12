r"""
Implicitly restarted Lanczos solver

Finds k eigenvalues (and eigenvectors) of a real symmetric operator selected by
a sorting rule, by restarting an m-step Lanczos factorization

    $$
    A V = V T + f e_m^T,
    $$

with T symmetric tridiagonal. Every restart applies one shifted TridiagQR step
per unwanted Ritz value ("exact shifts"), which filters those directions out of
the basis while keeping the factorization structure.

Also provides `LanczosEigensolverScipy`, the ARPACK path through
`scipy.sparse.linalg.eigsh`, used as a reference in tests and benchmarks.

References:
    [1] D. Calvetti, L. Reichel, D. C. Sorensen, "An implicitly restarted Lanczos
        method for large symmetric eigenvalue problems", ETNA 2 (1994).
"""

from typing import Optional, Callable, Tuple, Union
from numpy.typing import NDArray
import numpy as np

from ..qr.tridiag import TridiagQR
from ..errors import NotConvergedError
from ..utils import PY_EIGS_TOL, get_rng
from ...common.flog import Logger, get_global_logger
from .dense import sym_tridiag_eigen_bands
from .krylov import RestartedKrylovSolver, KrylovFactorization
from .result import EigenResult, EigenSolver
from .selection import SortRule, argsort_ritz, final_order

# ----------------------------------------------------------------------------------------
#! Native solver
# ----------------------------------------------------------------------------------------

class LanczosEigensolver(RestartedKrylovSolver):
    """
    Implicitly restarted Lanczos eigensolver for real symmetric operators.

    Args:
        k: Number of eigenvalues to compute, 1 <= k < n
        m: Lanczos basis size, k < m <= n (default: min(n, max(2*k+1, 20)))
        which: 'LM', 'SM', 'LA', 'SA', 'BE' (or 'largest', 'smallest', 'both')
        tol: Relative convergence tolerance
        max_iter: Maximum number of implicit restarts

    Example:
        >>> solver = LanczosEigensolver(k=5, m=20, which='SA')
        >>> result = solver.solve(A)
        >>> ground_energy = result.eigenvalues[0]
    """

    _symmetric  = True
    _kind       = "Lanczos"

    def _subspace_size(self, n: int) -> int:
        k = self.k
        if k >= n:
            raise ValueError(f"k={k} must satisfy 1 <= k < n={n}")
        m = min(n, max(2 * k + 1, 20)) if self.m is None else self.m
        if not (k < m <= n):
            raise ValueError(f"m={m} must satisfy k={k} < m <= n={n}")
        return m

    def _ritz_pairs(self, H: NDArray) -> Tuple[NDArray, NDArray]:
        vals, vecs  = sym_tridiag_eigen_bands(np.diag(H), np.diag(H, -1))
        order       = argsort_ritz(vals, self.rule)
        return vals[order], vecs[:, order]

    def _restart_step(self, fac: KrylovFactorization, ritz_val: NDArray, k: int) -> Tuple[NDArray, NDArray]:
        m       = fac.m
        Q       = np.eye(m)
        diag    = np.diag(fac.H).copy()
        sub     = np.diag(fac.H, -1).copy()
        for mu in ritz_val[k:]:
            qr          = TridiagQR.from_bands(diag, sub, mu)
            diag, sub   = qr.qthq_bands()
            qr.apply_YQ(Q)
        H_new = np.diag(diag) + np.diag(sub, -1) + np.diag(sub, 1)
        return H_new, Q

    def _adjust_bounds(self, nev_new: int, ritz_val: NDArray, m: int) -> int:
        if nev_new == 1 and m >= 6:
            nev_new = m // 2
        elif nev_new == 1 and m > 2:
            nev_new = 2
        return min(nev_new, m - 1)

# ----------------------------------------------------------------------------------------

def eigs_sym(A                      = None,
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
    k eigenpairs of a real symmetric operator with the implicitly restarted Lanczos method.

    Args:
        A: Dense symmetric matrix or an object with `shape` and `@`
        k, m, v0, tol, max_iter, which: see `LanczosEigensolver`
        return_eigenvectors: Assemble the Ritz vectors in the original space
        matvec, n: Matrix-free operator and its dimension (instead of A)
        **kwargs: raise_on_failure, seed, logger, verbose

    Returns:
        EigenResult with real eigenvalues ordered by `which`.

    Example:
        >>> res = eigs_sym(A, k=3, which='SA')
        >>> res.eigenvalues
    """
    solver = LanczosEigensolver(k=k, m=m, which=which, tol=tol, max_iter=max_iter, **kwargs)
    return solver.solve(A=A, matvec=matvec, v0=v0, n=n, return_eigenvectors=return_eigenvectors)

# ----------------------------------------------------------------------------------------
#! SciPy wrapper
# ----------------------------------------------------------------------------------------

def _scipy_operator(A, matvec, n):
    """Operator and dimension for ARPACK from either A or (matvec, n)."""
    from scipy.sparse.linalg import LinearOperator

    if A is not None:
        if not hasattr(A, 'shape'):
            A = np.asarray(A)
        if len(A.shape) != 2 or A.shape[0] != A.shape[1]:
            raise ValueError(f"A must be square, got shape {A.shape}")
        return A, A.shape[0]
    if matvec is None:
        raise ValueError("Either A or matvec must be provided")
    if n is None:
        raise ValueError("n must be provided when using matvec")
    op = LinearOperator((n, n), matvec=lambda x: np.asarray(matvec(np.ravel(x))), dtype=np.float64)
    return op, n

def _scipy_ncv(k: int, m: Optional[int], n: int, min_gap: int) -> int:
    ncv = min(n, max(2 * k + 1, 20)) if m is None else m
    if not (k + min_gap <= ncv <= n):
        raise ValueError(f"k={k} is too large for dim={n}. ARPACK requires k + {min_gap} <= ncv <= n, got ncv={ncv}.")
    return ncv

def _scipy_residuals(A, vals: NDArray, vecs: NDArray) -> NDArray:
    AV = np.column_stack([np.asarray(A @ vecs[:, i]).reshape(-1) for i in range(vecs.shape[1])]) \
        if vecs.shape[1] > 0 else np.zeros_like(vecs)
    return np.linalg.norm(AV - vecs * vals[None, :], axis=0)

def _scipy_result(solver, op, vals, vecs, converged, return_eigenvectors, logger: Logger) -> EigenResult:
    """Order the ARPACK output like the native solvers and apply the failure policy."""
    order   = final_order(vals, solver.rule)
    vals    = vals[order]
    vecs    = vecs[:, order]
    resid   = _scipy_residuals(op, vals, vecs)
    result  = EigenResult(
        eigenvalues     = vals,
        eigenvectors    = vecs if return_eigenvectors else None,
        subspacevectors = None,
        iterations      = None,
        converged       = converged,
        residual_norms  = resid,
        num_converged   = len(vals),
        num_matvec      = None,
    )
    if not converged:
        msg = f"ARPACK ({solver._kind}): only {len(vals)}/{solver.k} eigenvalues converged."
        if solver.raise_on_failure:
            raise NotConvergedError(msg, result=result, num_converged=len(vals), residual_norms=resid)
        logger.warning(msg, lvl=1)
    return result

class LanczosEigensolverScipy(EigenSolver):
    """
    SciPy wrapper for the Lanczos eigenvalue solver.

    Uses scipy.sparse.linalg.eigsh (Fortran ARPACK). It takes the same k, m (as ncv),
    which, tol, max_iter and v0 as `LanczosEigensolver` and is meant as a reference,
    results agree with the native solver to tolerance, not bitwise.

    Example:
        >>> solver = LanczosEigensolverScipy(k=10, m=30, which='LA')
        >>> result = solver.solve(A)
    """

    _symmetric  = True
    _kind       = "eigsh"

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
        Solve for eigenvalues using SciPy's eigsh.

        Returns:
            EigenResult with eigenvalues, eigenvectors and explicit residual norms
            (no Krylov basis, iteration count or operator-call count).
        """
        from scipy.sparse.linalg import eigsh, ArpackNoConvergence

        op, dim = _scipy_operator(A, matvec, n)
        if not (1 <= self.k < dim):
            raise ValueError(f"k={self.k} must satisfy 1 <= k < n={dim}")
        ncv     = _scipy_ncv(self.k, self.m, dim, 1)
        v0      = self.v0 if self.v0 is not None else get_rng(self.seed).uniform(-0.5, 0.5, dim)
        logger  = self.logger if self.logger is not None else get_global_logger()

        try:
            vals, vecs  = eigsh(op, k=self.k, which=self.rule.value, tol=self.tol, maxiter=self.max_iter,
                                v0=v0, ncv=ncv, return_eigenvectors=True)
            converged   = True
        except ArpackNoConvergence as e:
            vals, vecs  = np.asarray(e.eigenvalues), np.asarray(e.eigenvectors)
            converged   = False
        return _scipy_result(self, op, np.real(vals), np.real(vecs).reshape(dim, -1), converged, return_eigenvectors, logger)

# ----------------------------------------------------------------------------------------
#! EOF

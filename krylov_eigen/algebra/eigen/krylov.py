"""
Implicitly restarted Krylov iteration.

`KrylovFactorization` holds the m-step Arnoldi / Lanczos factorization

    A V = V H + f e_m^T,        V^T V = I,  V^T f = 0,

with V (n x m), H (m x m) upper Hessenberg (symmetric tridiagonal in the Lanczos
case) and the residual f. It is created fresh for every solve and owned by it.

`RestartedKrylovSolver` is the restart loop shared by the Lanczos and Arnoldi
drivers:

    1. build the factorization of size m from the starting vector,
    2. take the Ritz pairs of H, sorted by the selection rule,
    3. stop when the k wanted pairs pass |e_m^T y| ||f|| < tol * max(|theta|, eps^(2/3)),
    4. otherwise apply one shifted QR step per unwanted Ritz value to H
       (accumulating Q), compress V <- V Q to k' columns, update f and extend back to m.

The subclasses supply the Ritz extraction, the shifted-QR restart and the rule for k'.

References:
    [1] R. B. Lehoucq, D. C. Sorensen, "Deflation techniques for an implicitly restarted
        Arnoldi iteration", SIAM J. Matrix Anal. Appl. 17 (1996).
"""

from typing import Callable, Optional, Tuple, Union
import numpy as np
from numpy.typing import NDArray

from ..errors import (
    DimensionMismatchError, DegenerateInputError, StructureError,
    NotConvergedError, NumericalStagnationError
)
from ..utils import PY_EIGS_TOL, PY_EIGS_MAXITER, get_rng
from ...common.flog import Logger, get_global_logger
from .result import EigenResult, EigenSolver
from .selection import SortRule, argsort_ritz, final_order

# ----------------------------------------------------------------------------

_EPS        = np.finfo(np.float64).eps
_EPS23      = _EPS ** (2.0 / 3.0)
_SAFMIN     = np.finfo(np.float64).tiny
_NEAR_0     = _SAFMIN * 10.0
_MAX_REORTH = 5

MatVec      = Callable[[NDArray], NDArray]

# ----------------------------------------------------------------------------
#! Factorization
# ----------------------------------------------------------------------------

class KrylovFactorization:
    """
    Arnoldi / Lanczos factorization A V = V H + f e_m^T with full reorthogonalization.

    Args:
        op:
            Operator x -> A x
        n:
            Dimension of the operator
        m:
            Maximal basis size
        symmetric:
            Use the three-term Lanczos recurrence and keep H symmetric tridiagonal
        rng:
            Generator for replacement directions after a breakdown
    """

    def __init__(self, op: MatVec, n: int, m: int, symmetric: bool, rng: np.random.Generator):
        self.op         = op
        self.n          = n
        self.m          = m
        self.symmetric  = symmetric
        self.rng        = rng
        self.V          = np.zeros((n, m), dtype=np.float64)
        self.H          = np.zeros((m, m), dtype=np.float64)
        self.f          = np.zeros(n, dtype=np.float64)
        self.k          = 0
        self.num_matvec = 0
        self.breakdowns = 0
        self._anorm     = 0.0

    # ----------------------------------------------------------------------------

    @property
    def f_norm(self) -> float:
        return float(np.linalg.norm(self.f))

    def _apply(self, x: NDArray) -> NDArray:
        y = np.asarray(self.op(x))
        if np.iscomplexobj(y):
            raise TypeError(f"operator returned complex values (dtype {y.dtype}), only real operators are supported")
        y = np.asarray(y, dtype=np.float64).reshape(-1)
        if y.shape[0] != self.n:
            raise DimensionMismatchError(f"operator returned a vector of length {y.shape[0]}, expected {self.n}", expected=self.n, got=y.shape[0])
        if not np.all(np.isfinite(y)):
            raise DegenerateInputError("operator produced non-finite values")
        self.num_matvec += 1
        self._anorm      = max(self._anorm, float(np.linalg.norm(y)))
        return y

    def _reorthogonalize(self, f: NDArray, j: int) -> NDArray:
        """DGKS correction of f against V[:, :j], folding the coefficients into H."""
        Vj = self.V[:, :j]
        for _ in range(_MAX_REORTH):
            vf = Vj.T @ f
            if np.max(np.abs(vf)) <= _EPS * max(np.linalg.norm(f), _SAFMIN):
                break
            f = f - Vj @ vf
            if self.symmetric:
                self.H[j - 1, j - 1] += vf[j - 1]
                if j >= 2:
                    self.H[j - 2, j - 1] += vf[j - 2]
                    self.H[j - 1, j - 2]  = self.H[j - 2, j - 1]
            else:
                self.H[:j, j - 1] += vf
        return f

    def _fresh_direction(self, i: int) -> NDArray:
        """Random unit vector orthogonal to V[:, :i]."""
        Vi = self.V[:, :i]
        for _ in range(3):
            r   = self.rng.uniform(-0.5, 0.5, self.n)
            r  -= Vi @ (Vi.T @ r)
            r  -= Vi @ (Vi.T @ r)
            nrm = np.linalg.norm(r)
            if nrm > _EPS * np.sqrt(self.n):
                return r / nrm
        raise NumericalStagnationError(f"could not extend the Krylov basis beyond {i} vectors", iterations=i)

    # ----------------------------------------------------------------------------

    def init(self, v0: NDArray) -> None:
        """One-step factorization from the starting vector."""
        v               = v0 / np.linalg.norm(v0)
        w               = self._apply(v)
        self.V[:, 0]    = v
        self.H[:, :]    = 0.0
        self.H[0, 0]    = v @ w
        self.f          = self._reorthogonalize(w - self.H[0, 0] * v, 1)
        self.k          = 1

    def factorize_from(self, from_k: int, to_m: int) -> None:
        """Extend the factorization from `from_k` to `to_m` columns."""
        if from_k < 1 or from_k > self.k:
            raise ValueError(f"cannot extend a factorization of size {self.k} from {from_k}")
        if to_m > self.m:
            raise ValueError(f"cannot extend beyond the allocated basis size {self.m}")

        f = self.f
        for i in range(from_k, to_m):
            beta = np.linalg.norm(f)
            if beta <= _EPS * max(self._anorm, _SAFMIN):
                # invariant subspace found, continue with an unrelated direction
                v                   = self._fresh_direction(i)
                beta                = 0.0
                self.breakdowns    += 1
            else:
                v                   = f / beta

            self.V[:, i]        = v
            self.H[i, i - 1]    = beta
            if self.symmetric:
                self.H[i - 1, i] = beta

            w = self._apply(v)
            if self.symmetric:
                self.H[i, i]    = v @ w
                f               = w - self.H[i, i] * v - beta * self.V[:, i - 1]
            else:
                h               = self.V[:, :i + 1].T @ w
                self.H[:i + 1, i] = h
                f               = w - self.V[:, :i + 1] @ h
            f = self._reorthogonalize(f, i + 1)

        self.f = f
        self.k = to_m

    def compress(self, H_new: NDArray, Q: NDArray, k: int) -> None:
        """
        Keep k columns after the shifted QR steps H_new = Q^T H Q:
        V <- V Q[:, :k], f <- f Q[m-1, k-1] + (V Q)[:, k] H_new[k, k-1].
        """
        m                   = self.m
        self.V[:, :k + 1]   = self.V @ Q[:, :k + 1]
        self.f              = self.f * Q[m - 1, k - 1] + self.V[:, k] * H_new[k, k - 1]
        self.H[:, :]        = 0.0
        self.H[:k, :k]      = H_new[:k, :k]
        self.k              = k

# ----------------------------------------------------------------------------
#! Restart driver
# ----------------------------------------------------------------------------

class RestartedKrylovSolver(EigenSolver):
    """
    Implicitly restarted Krylov eigensolver for k eigenpairs of a real n x n operator.

    Args:
        k: Number of eigenvalues to compute
        m: Krylov subspace dimension (default: min(n, max(2*k+1, 20)))
        which: Selection rule, see `SortRule`
        tol: Relative convergence tolerance (default: PY_EIGS_TOL)
        max_iter: Maximum number of implicit restarts (default: PY_EIGS_MAXITER)
        raise_on_failure: Raise NotConvergedError instead of returning a partial result
        seed: Seed for the default starting vector and breakdown recovery
              (default: the package generator, PY_GLOBAL_SEED)
        logger: Logger for restart diagnostics (default: the global logger)
        verbose: Log a summary at info level after the solve
    """

    _symmetric  : bool  = False
    _kind       : str   = "Krylov"

    def __init__(self,
                k                   : int                   = 6,
                m                   : Optional[int]         = None,
                which               : Union[str, SortRule]  = 'LM',
                tol                 : Optional[float]       = None,
                max_iter            : Optional[int]         = None,
                raise_on_failure    : bool                  = False,
                seed                : Optional[int]         = None,
                logger              : Optional[Logger]      = None,
                verbose             : bool                  = False):
        if int(k) < 1:
            raise ValueError(f"k must be >= 1, got {k}")
        tol         = PY_EIGS_TOL if tol is None else float(tol)
        max_iter    = PY_EIGS_MAXITER if max_iter is None else int(max_iter)
        if not tol > 0.0:
            raise ValueError(f"tol must be positive, got {tol}")
        if max_iter < 0:
            raise ValueError(f"max_iter must be >= 0, got {max_iter}")

        self.k                  = int(k)
        self.m                  = None if m is None else int(m)
        self.rule               = SortRule.parse(which, self._symmetric)
        self.tol                = tol
        self.max_iter           = max_iter
        self.raise_on_failure   = raise_on_failure
        self.seed               = seed
        self.logger             = logger
        self.verbose            = verbose

    @property
    def which(self) -> str:
        return self.rule.value

    def _log(self) -> Logger:
        return self.logger if self.logger is not None else get_global_logger()

    # ----------------------------------------------------------------------------
    #! Input handling
    # ----------------------------------------------------------------------------

    def _resolve_operator(self, A, matvec: Optional[MatVec], n: Optional[int]) -> Tuple[MatVec, int]:
        if A is not None:
            if hasattr(A, 'shape') and not isinstance(A, np.ndarray) and hasattr(A, '__matmul__'):
                # LinearOperator, sparse matrix, ...
                shape = tuple(A.shape)
                if len(shape) != 2 or shape[0] != shape[1]:
                    raise DegenerateInputError(f"A must be square, got shape {shape}")
                if shape[0] < 1:
                    raise DegenerateInputError(f"A must have dimension >= 1, got shape {shape}")
                if np.issubdtype(np.dtype(getattr(A, 'dtype', np.float64)), np.complexfloating):
                    raise TypeError(f"A must be real, got dtype {A.dtype}")
                return (lambda x: A @ x), shape[0]

            arr = np.asarray(A)
            if np.iscomplexobj(arr):
                raise TypeError(f"A must be real, got dtype {arr.dtype}")
            if arr.ndim != 2 or arr.shape[0] != arr.shape[1]:
                raise DegenerateInputError(f"A must be square, got shape {arr.shape}")
            if arr.shape[0] < 1:
                raise DegenerateInputError(f"A must have dimension >= 1, got shape {arr.shape}")
            arr = np.asarray(arr, dtype=np.float64)
            if not np.all(np.isfinite(arr)):
                raise DegenerateInputError("A contains non-finite entries")
            if self._symmetric and not self._is_symmetric(arr, tol=1e-12):
                raise StructureError(f"{self._kind} requires a symmetric matrix, use the Arnoldi solver for general A")
            return (lambda x: arr @ x), arr.shape[0]

        if matvec is not None:
            if n is None:
                raise ValueError("n (dimension) must be provided when using matvec")
            if int(n) < 1:
                raise DegenerateInputError(f"n must be >= 1, got {n}")
            return matvec, int(n)

        raise ValueError("Either A or matvec must be provided")

    def _subspace_size(self, n: int) -> int:
        """Check k against n and resolve m."""
        raise NotImplementedError

    def _starting_vector(self, v0, n: int, rng: np.random.Generator) -> NDArray:
        if v0 is None:
            return rng.uniform(-0.5, 0.5, n)
        v = np.asarray(v0)
        if np.iscomplexobj(v):
            raise TypeError(f"v0 must be real, got dtype {v.dtype}")
        v = np.asarray(v, dtype=np.float64).reshape(-1) if v.ndim == 2 and 1 in v.shape else np.asarray(v, dtype=np.float64)
        if v.ndim != 1 or v.shape[0] != n:
            raise DimensionMismatchError(f"v0 must be a vector of length {n}, got shape {v.shape}", expected=n, got=v.shape)
        if not np.all(np.isfinite(v)):
            raise DegenerateInputError("v0 contains non-finite entries")
        if np.linalg.norm(v) == 0.0:
            raise DegenerateInputError("v0 must be nonzero")
        return v

    # ----------------------------------------------------------------------------
    #! Hooks
    # ----------------------------------------------------------------------------

    def _ritz_pairs(self, H: NDArray) -> Tuple[NDArray, NDArray]:
        """All Ritz values and unit Ritz vectors (basis coordinates) of H, sorted by the rule."""
        raise NotImplementedError

    def _restart_step(self, fac: KrylovFactorization, ritz_val: NDArray, k: int) -> Tuple[NDArray, NDArray]:
        """Shifted QR steps on fac.H removing ritz_val[k:]; returns (Q^T H Q, Q)."""
        raise NotImplementedError

    def _adjust_bounds(self, nev_new: int, ritz_val: NDArray, m: int) -> int:
        raise NotImplementedError

    # ----------------------------------------------------------------------------

    def _num_converged(self, ritz_val: NDArray, ritz_vec: NDArray, f_norm: float, k: int) -> int:
        thresh  = self.tol * np.maximum(np.abs(ritz_val[:k]), _EPS23)
        resid   = np.abs(ritz_vec[-1, :k]) * f_norm
        return int(np.sum(resid < thresh))

    def _nev_adjusted(self, ritz_val: NDArray, ritz_vec: NDArray, nconv: int, k: int, m: int) -> int:
        """Number of Ritz pairs kept at the restart."""
        nev_new  = k
        nev_new += int(np.sum(np.abs(ritz_vec[-1, k:]) < _NEAR_0))
        nev_new += min(nconv, (m - nev_new) // 2)
        return self._adjust_bounds(nev_new, ritz_val, m)

    @staticmethod
    def ritz_vector_to_original(ritz_vectors: NDArray, krylov_basis: NDArray) -> NDArray:
        """
        Transform Ritz vectors (eigenvectors of H, as columns) back to the original basis.
        """
        if krylov_basis.shape[1] != ritz_vectors.shape[0]:
            raise DimensionMismatchError("Krylov basis columns must match the Ritz vector size",
                                        expected=krylov_basis.shape[1], got=ritz_vectors.shape[0])
        X       = krylov_basis @ ritz_vectors
        norms   = np.linalg.norm(X, axis=0)
        norms[norms == 0.0] = 1.0
        return X / norms[None, :]

    # ----------------------------------------------------------------------------
    #! Solve
    # ----------------------------------------------------------------------------

    def solve(self,
            A                   = None,
            matvec              : Optional[MatVec]  = None,
            v0                  : Optional[NDArray] = None,
            n                   : Optional[int]     = None,
            return_eigenvectors : bool              = True) -> EigenResult:
        """
        Solve for the k wanted eigenpairs.

        Args:
            A: Dense matrix, or any object with `shape` and `@` (e.g. a LinearOperator)
            matvec: Matrix-vector product function (if A not provided)
            v0: Initial residual vector (random if None)
            n: Dimension of the problem (required if matvec provided without A)
            return_eigenvectors: Whether to assemble the Ritz vectors in the original space

        Returns:
            EigenResult with eigenvalues, eigenvectors and convergence info

        Raises:
            NotConvergedError: only when raise_on_failure is set
        """
        op, dim     = self._resolve_operator(A, matvec, n)
        k           = self.k
        m           = self._subspace_size(dim)
        rng         = get_rng(self.seed)
        start       = self._starting_vector(v0, dim, rng)
        logger      = self._log()

        fac         = KrylovFactorization(op, dim, m, self._symmetric, rng)
        fac.init(start)
        fac.factorize_from(1, m)
        ritz_val, ritz_vec = self._ritz_pairs(fac.H)

        logger.debug(f"{self._kind}: n={dim}, k={k}, m={m}, which={self.which}, tol={self.tol:.1e}", lvl=1)

        iterations  = 0
        nconv       = self._num_converged(ritz_val, ritz_vec, fac.f_norm, k)
        while nconv < k and iterations < self.max_iter:
            nev_adj         = self._nev_adjusted(ritz_val, ritz_vec, nconv, k, m)
            H_new, Q        = self._restart_step(fac, ritz_val, nev_adj)
            fac.compress(H_new, Q, nev_adj)
            fac.factorize_from(nev_adj, m)
            ritz_val, ritz_vec = self._ritz_pairs(fac.H)
            iterations     += 1
            nconv           = self._num_converged(ritz_val, ritz_vec, fac.f_norm, k)
            logger.debug(f"{self._kind} restart {iterations}: kept {nev_adj}, {nconv}/{k} converged, ||f||={fac.f_norm:.3e}", lvl=2)

        result = self._assemble(fac, ritz_val, ritz_vec, k, nconv, iterations, return_eigenvectors)

        if result.converged:
            logger.info(f"{self._kind}: {k} eigenvalues converged after {iterations} restarts "
                        f"({fac.num_matvec} operator calls).", lvl=1, verbose=self.verbose)
        else:
            msg = (f"{self._kind}: only {nconv}/{k} eigenvalues converged after {iterations} restarts "
                f"(max residual {np.max(result.residual_norms):.3e}); consider a larger m or tol.")
            if self.raise_on_failure:
                raise NotConvergedError(msg, result=result, iterations=iterations,
                                        num_converged=nconv, residual_norms=result.residual_norms)
            logger.warning(msg, lvl=1)
        return result

    def _assemble(self, fac, ritz_val, ritz_vec, k, nconv, iterations, return_eigenvectors) -> EigenResult:
        f_norm  = fac.f_norm
        order   = final_order(ritz_val[:k], self.rule)
        values  = ritz_val[:k][order]
        resid   = (np.abs(ritz_vec[-1, :k]) * f_norm)[order]
        vectors = None
        if return_eigenvectors:
            vectors = self.ritz_vector_to_original(ritz_vec[:, :k][:, order], fac.V)
        return EigenResult(
            eigenvalues     = values,
            eigenvectors    = vectors,
            subspacevectors = fac.V,
            iterations      = iterations,
            converged       = bool(nconv >= k),
            residual_norms  = resid,
            num_converged   = int(nconv),
            num_matvec      = int(fac.num_matvec),
        )

# ----------------------------------------------------------------------------
#! EOF

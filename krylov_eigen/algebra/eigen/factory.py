"""
Unified Eigenvalue Solver Interface

Factory function choosing between the native implicitly restarted solvers and
their ARPACK (SciPy) references, based on the method name or, for 'auto', on
the symmetry of the operator.
"""

import numpy as np
from numpy.typing import NDArray
from typing import Optional, Callable, Literal

from .result    import EigenResult, EigenSolver
from .lanczos   import LanczosEigensolver, LanczosEigensolverScipy
from .arnoldi   import ArnoldiEigensolver, ArnoldiEigensolverScipy

# ----------------------------------------------------------------------------------------

_METHODS = ('auto', 'lanczos', 'arnoldi', 'scipy-eigsh', 'scipy-eigs')

_NATIVE_OPTIONS = ('m', 'tol', 'max_iter', 'raise_on_failure', 'seed', 'logger', 'verbose')
_SCIPY_OPTIONS  = ('m', 'tol', 'max_iter', 'raise_on_failure', 'seed', 'logger')

# ----------------------------------------------------------------------------------------
#! Unified Eigenvalue Solver Factory Function
# ----------------------------------------------------------------------------------------

def choose_eigensolver(
        method          : Literal['auto', 'lanczos', 'arnoldi', 'scipy-eigsh', 'scipy-eigs'] = 'auto',
        A               : Optional[NDArray]                         = None,
        matvec          : Optional[Callable[[NDArray], NDArray]]    = None,
        n               : Optional[int]                             = None,
        k               : int                                       = 6,
        symmetric       : Optional[bool]                            = None,
        which           : str                                       = 'LM',
        use_scipy       : bool                                      = False,
        v0              : Optional[NDArray]                         = None,
        **kwargs) -> EigenResult:
    r"""
    Unified interface for the Krylov eigenvalue solvers.

    Parameters:
    -----------
        method: Which solver to use
            - 'lanczos'         : implicitly restarted Lanczos (symmetric)
            - 'arnoldi'         : implicitly restarted Arnoldi (general)
            - 'scipy-eigsh'     : ARPACK symmetric driver
            - 'scipy-eigs'      : ARPACK general driver
            - 'auto'            : Lanczos or Arnoldi depending on symmetry
        A :
            Matrix to diagonalize (optional if matvec provided)
        matvec :
            Matrix-vector product function (optional if A provided)
        n :
            Dimension of problem (required if matvec provided without A)
        k :
            Number of eigenvalues to compute
        symmetric :
            Whether the operator is symmetric. For 'auto' with a dense A it is
            detected when not given; matrix-free input defaults to general.
        which :
            Selection rule, see `SortRule`
        use_scipy :
            With 'auto', pick the ARPACK variant instead of the native solver
        **kwargs :
            m, tol, max_iter, raise_on_failure, seed, logger, verbose

    Returns:
        EigenResult with eigenvalues and eigenvectors

    Examples:
        >>> A = np.random.randn(200, 200)
        >>> result = choose_eigensolver('auto', A + A.T, k=4, which='LA')
    """
    method = method.lower()
    if method not in _METHODS:
        raise ValueError(f"Unknown method '{method}'. Choose from {list(_METHODS)}")
    if A is None and matvec is None:
        raise ValueError("Either A or matvec must be provided")

    if method == 'auto':
        if symmetric is None:
            symmetric = isinstance(A, np.ndarray) and EigenSolver._is_symmetric(A)
        dim     = A.shape[0] if A is not None else n
        method  = decide_method(dim, k, symmetric, use_scipy=use_scipy)

    if method in ('lanczos', 'arnoldi'):
        unknown = set(kwargs) - set(_NATIVE_OPTIONS)
        if unknown:
            raise TypeError(f"Unexpected options for '{method}': {sorted(unknown)}")
        cls     = LanczosEigensolver if method == 'lanczos' else ArnoldiEigensolver
        solver  = cls(k=k, which=which, **kwargs)
        return solver.solve(A=A, matvec=matvec, v0=v0, n=n)

    kwargs.pop('verbose', None)
    unknown = set(kwargs) - set(_SCIPY_OPTIONS)
    if unknown:
        raise TypeError(f"Unexpected options for '{method}': {sorted(unknown)}")
    cls     = LanczosEigensolverScipy if method == 'scipy-eigsh' else ArnoldiEigensolverScipy
    solver  = cls(k=k, which=which, v0=v0, **kwargs)
    return solver.solve(A=A, matvec=matvec, n=n)

# ----------------------------------------------------------------------------------------

def decide_method(n         : Optional[int],
                k           : int,
                symmetric   : bool = True,
                use_scipy   : bool = False) -> str:
    """
    Decide which eigenvalue method to use based on problem characteristics.

    Parameters:
    -----------
        n:
            Dimension of the operator
        k:
            Number of eigenvalues needed
        symmetric:
            Whether the operator is symmetric
        use_scipy:
            Prefer the ARPACK reference driver

    Returns:
        'lanczos', 'arnoldi', 'scipy-eigsh' or 'scipy-eigs'

    Example:
        >>> decide_method(n=10000, k=10, symmetric=True)
        'lanczos'
    """
    if n is None:
        raise ValueError("n (dimension) must be provided when using matvec")
    if symmetric and not (1 <= k < n):
        raise ValueError(f"k={k} must satisfy 1 <= k < n={n} for a symmetric operator")
    if not symmetric and not (1 <= k <= n - 2):
        raise ValueError(f"k={k} must satisfy 1 <= k <= n - 2 (n={n}) for a general operator")

    if symmetric:
        return 'scipy-eigsh' if use_scipy else 'lanczos'
    return 'scipy-eigs' if use_scipy else 'arnoldi'

# ----------------------------------------------------------------------------------------
#! EOF

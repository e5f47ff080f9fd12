import numpy as np
import scipy.sparse as sp

def create_random_matrix(n: int, seed: int = 123, symmetric: bool = True):
    """
    Random test matrix with entries drawn uniformly from [0, 1).

    Returns U + U^T when `symmetric`, otherwise U itself. Both have one dominant
    (Perron) eigenvalue of order n and a bulk of order sqrt(n).
    """
    rng = np.random.default_rng(seed)
    U   = rng.random((n, n))
    return U + U.T if symmetric else U

def create_convection_diffusion_matrix(n: int, c: float = 10.0):
    """
    Create a non-symmetric sparse matrix representing 1D convection-diffusion.
    -u'' + c u'
    Discretized on [0, 1] with finite differences.
    """
    h = 1.0 / (n + 1)

    # u_i term: 2/h^2, u_{i-1} term: -1/h^2 - c/2h, u_{i+1} term: -1/h^2 + c/2h
    diag_val    = 2.0 / h**2
    off_m1_val  = -1.0 / h**2 - c / (2*h)
    off_p1_val  = -1.0 / h**2 + c / (2*h)

    data    = [np.full(n, diag_val), np.full(n-1, off_m1_val), np.full(n-1, off_p1_val)]
    offsets = [0, -1, 1]
    return sp.diags(data, offsets, format='csr')

def precision_error(A, eigenvalues, eigenvectors) -> float:
    """max |A V - V Lambda| over all entries."""
    if eigenvectors is None:
        return float('nan')
    AV = A @ eigenvectors
    return float(np.max(np.abs(AV - eigenvectors * eigenvalues[None, :])))

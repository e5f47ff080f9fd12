"""
Eigenvalue Solver Result Types

Standardized result container for the Krylov eigensolvers.
"""

import numpy as np
from typing import Optional, NamedTuple
from numpy.typing import NDArray

class EigenSolver:
    """
    Marker class for eigenvalue solver types.
    """

    @staticmethod
    def _is_symmetric(A, tol=1e-12):
        """Check if the dense real matrix A is symmetric to relative tolerance `tol`."""
        A       = np.asarray(A)
        scale   = max(float(np.max(np.abs(A))), np.finfo(np.float64).tiny) if A.size else 1.0
        return np.allclose(A, A.T, rtol=0.0, atol=tol * scale)

    # ----------------------------------------------------------------------------

    def solve(self, *args, **kwargs) -> 'EigenResult':
        """
        Solve the eigenvalue problem.

        Returns:
            EigenResult: Standardized result container.
        """
        raise NotImplementedError("This method should be implemented by subclasses.")

# ---------------------------------------------------------------------------------

class EigenResult(NamedTuple):
    r"""
    Standardized result from eigenvalue solvers.

    Attributes:
        eigenvalues:
            Computed eigenvalues, ordered by the selection rule
        eigenvectors:
            Corresponding unit-norm eigenvectors as columns (None if not requested)
        subspacevectors:
            Krylov basis V of the final factorization (n x m)
        iterations:
            Number of implicit restarts performed
        converged:
            Whether all requested eigenpairs satisfied the convergence test
        residual_norms:
            Residual estimates ||A x - \lambda x|| = |beta * e_m^T y| for each eigenpair
        num_converged:
            Number of requested eigenpairs that satisfied the convergence test
        num_matvec:
            Number of operator applications
    """
    eigenvalues     : NDArray
    eigenvectors    : Optional[NDArray]
    subspacevectors : Optional[NDArray] = None
    iterations      : Optional[int]     = None
    converged       : bool              = True
    residual_norms  : Optional[NDArray] = None
    num_converged   : Optional[int]     = None
    num_matvec      : Optional[int]     = None

    def __repr__(self):
        n_eigs      = len(self.eigenvalues) if self.eigenvalues is not None else 0
        iter_str    = f"{self.iterations}" if self.iterations is not None else "N/A"
        nconv_str   = f"{self.num_converged}" if self.num_converged is not None else "N/A"
        return (f"EigenResult(n_eigenvalues={n_eigs}, "
                f"converged={self.converged}, num_converged={nconv_str}, iterations={iter_str})")

    def __str__(self):
        lines = [self.__repr__()]
        if self.eigenvalues is not None:
            lines.append(f"  eigenvalues    : {np.array2string(np.asarray(self.eigenvalues), precision=6)}")
        if self.residual_norms is not None:
            lines.append(f"  residual norms : {np.array2string(np.asarray(self.residual_norms), precision=2)}")
        if self.num_matvec is not None:
            lines.append(f"  operator calls : {self.num_matvec}")
        return "\n".join(lines)

# ---------------------------------------------------------------------------------
#! EOF

"""
Test suite for the implicitly restarted Lanczos eigenvalue solver.

Compares with full diagonalization and with the ARPACK wrapper, and validates
the convergence and failure behaviour.
"""

import numpy as np
import pytest
from scipy.sparse import diags
from scipy.sparse.linalg import aslinearoperator

from krylov_eigen.algebra.eigen import LanczosEigensolver, LanczosEigensolverScipy, eigs_sym
from krylov_eigen.algebra.errors import (
    NotConvergedError, DimensionMismatchError, DegenerateInputError, StructureError
)

# ----------------------------------
#! Helper functions to create test matrices
# ----------------------------------

def create_symmetric_matrix(n, condition_number=10.0, seed=42):
    """Create symmetric matrix with controlled spectrum."""
    np.random.seed(seed)
    eigenvalues     = np.linspace(1.0, condition_number, n)
    Q, _            = np.linalg.qr(np.random.randn(n, n))
    A               = Q @ np.diag(eigenvalues) @ Q.T
    A               = 0.5 * (A + A.T)  # Ensure exact symmetry
    return A

def create_random_symmetric(n, seed=123):
    """A = U + U^T with U uniform on [0, 1)."""
    np.random.seed(seed)
    U = np.random.rand(n, n)
    return U + U.T

def max_residual(A, vals, vecs):
    return np.max(np.linalg.norm(A @ vecs - vecs * vals[None, :], axis=0))

# ----------------------------------
#! Test classes
# ----------------------------------

class TestLanczosBasic:
    """Basic functionality tests."""

    def test_smallest_eigenvalues(self):
        n           = 100
        k           = 5
        A           = create_symmetric_matrix(n, condition_number=50.0)
        result      = LanczosEigensolver(k=k, m=20, which='SA', tol=1e-10).solve(A=A)
        evals_full  = np.linalg.eigvalsh(A)
        error       = np.max(np.abs(result.eigenvalues - evals_full[:k]))

        print(f"\nSmallest {k} eigenvalues:")
        print(f"  Lanczos: {result.eigenvalues}")
        print(f"  Full ED: {evals_full[:k]}")
        print(f"  Error: {error:.2e}, restarts: {result.iterations}, matvecs: {result.num_matvec}")

        assert result.converged
        assert error < 1e-8, f"Eigenvalue error too large: {error:.2e}"

    def test_largest_eigenvalues(self):
        n           = 100
        k           = 5
        A           = create_symmetric_matrix(n, condition_number=50.0)
        result      = LanczosEigensolver(k=k, m=20, which='largest').solve(A=A)
        evals_full  = np.linalg.eigvalsh(A)
        error       = np.max(np.abs(result.eigenvalues - evals_full[-k:][::-1]))
        assert result.converged
        assert error < 1e-8, f"Eigenvalue error too large: {error:.2e}"

    def test_largest_magnitude_random(self):
        n           = 100
        k           = 10
        A           = create_random_symmetric(n)
        result      = eigs_sym(A, k=k, m=20, which='LM')
        evals_full  = np.linalg.eigvalsh(A)
        expected    = evals_full[np.argsort(-np.abs(evals_full), kind='stable')][:k]
        error       = np.max(np.abs(np.sort(result.eigenvalues) - np.sort(expected)))
        print(f"\nLM on U + U^T (n={n}, k={k}): error {error:.2e}, restarts {result.iterations}")
        assert result.converged
        assert error < 1e-8, f"Eigenvalue error too large: {error:.2e}"

    def test_both_ends(self):
        A           = create_symmetric_matrix(80, condition_number=20.0)
        result      = eigs_sym(A, k=4, m=20, which='BE')
        evals_full  = np.linalg.eigvalsh(A)
        expected    = np.sort(np.concatenate([evals_full[:2], evals_full[-2:]]))
        assert np.allclose(result.eigenvalues, expected, atol=1e-8)

    def test_smallest_magnitude(self):
        A           = create_symmetric_matrix(60, condition_number=30.0) - 15.0 * np.eye(60)
        result      = eigs_sym(A, k=3, m=40, which='SM')
        evals_full  = np.linalg.eigvalsh(A)
        expected    = evals_full[np.argsort(np.abs(evals_full), kind='stable')][:3]
        assert np.allclose(np.sort(result.eigenvalues), np.sort(expected), atol=1e-8)

    def test_eigenvectors(self):
        A       = create_symmetric_matrix(100, condition_number=50.0)
        result  = eigs_sym(A, k=6, m=20, which='SA')
        X       = result.eigenvectors
        assert X.shape == (100, 6)
        assert np.allclose(X.T @ X, np.eye(6), atol=1e-8)
        assert max_residual(A, result.eigenvalues, X) < 1e-8
        assert np.all(result.residual_norms < 1e-8 * np.abs(result.eigenvalues))

    def test_large_problem(self):
        n           = 1000
        k           = 10
        A           = create_random_symmetric(n, seed=7)
        result      = eigs_sym(A, k=k, m=30, which='LA')
        evals_full  = np.linalg.eigvalsh(A)
        error       = np.max(np.abs(result.eigenvalues - evals_full[-k:][::-1]))
        print(f"\nLA on n={n}: error {error:.2e}, restarts {result.iterations}, matvecs {result.num_matvec}")
        assert result.converged
        assert error < 1e-6 * np.max(np.abs(evals_full))

    def test_values_only(self):
        A       = create_symmetric_matrix(50)
        result  = eigs_sym(A, k=3, which='LA', return_eigenvectors=False)
        assert result.eigenvectors is None
        assert result.eigenvalues.dtype == np.float64

# ----------------------------------

class TestLanczosOperators:
    """Matrix-free and operator input."""

    def test_matvec(self):
        n       = 200
        main    = np.arange(1.0, n + 1)
        off     = -1.0 * np.ones(n - 1)

        def matvec(x):
            y        = main * x
            y[:-1]  += off * x[1:]
            y[1:]   += off * x[:-1]
            return y

        result  = eigs_sym(matvec=matvec, n=n, k=4, m=40, which='LA')
        T       = np.diag(main) + np.diag(off, 1) + np.diag(off, -1)
        exact   = np.linalg.eigvalsh(T)[-4:][::-1]
        assert np.allclose(result.eigenvalues, exact, atol=1e-8)

    def test_sparse_and_linear_operator(self):
        n       = 150
        S       = diags([np.arange(1.0, n + 1)], [0], format='csr')
        r1      = eigs_sym(S, k=3, which='LA')
        r2      = eigs_sym(aslinearoperator(S), k=3, which='LA')
        assert np.allclose(r1.eigenvalues, [150.0, 149.0, 148.0], atol=1e-8)
        assert np.allclose(r2.eigenvalues, r1.eigenvalues, atol=1e-8)

    def test_reproducible_with_seed(self):
        A   = create_random_symmetric(100)
        r1  = eigs_sym(A, k=5, which='LA', seed=11)
        r2  = eigs_sym(A, k=5, which='LA', seed=11)
        assert np.array_equal(r1.eigenvalues, r2.eigenvalues)
        assert r1.num_matvec == r2.num_matvec

    def test_explicit_start_vector(self):
        A   = create_symmetric_matrix(80)
        v0  = np.ones(80)
        r1  = eigs_sym(A, k=3, which='SA', v0=v0)
        r2  = eigs_sym(A, k=3, which='SA', v0=2.0 * v0)
        assert np.allclose(r1.eigenvalues, r2.eigenvalues, atol=1e-12)

    def test_deficient_start_vector(self):
        n       = 40
        A       = np.diag(np.arange(1.0, n + 1))
        v0      = np.zeros(n)
        v0[:2]  = 1.0
        result  = eigs_sym(A, k=2, m=10, which='LA', v0=v0, seed=3)
        assert np.allclose(result.eigenvalues, [40.0, 39.0], atol=1e-8)

# ----------------------------------

class TestLanczosValidation:

    def test_k_out_of_range(self):
        A = create_symmetric_matrix(10)
        with pytest.raises(ValueError):
            eigs_sym(A, k=10)
        with pytest.raises(ValueError):
            eigs_sym(A, k=0)

    def test_m_out_of_range(self):
        A = create_symmetric_matrix(10)
        with pytest.raises(ValueError):
            eigs_sym(A, k=3, m=3)
        with pytest.raises(ValueError):
            eigs_sym(A, k=3, m=11)

    def test_invalid_which(self):
        with pytest.raises(ValueError):
            LanczosEigensolver(k=2, which='LR')

    def test_not_symmetric(self):
        np.random.seed(0)
        with pytest.raises(StructureError):
            eigs_sym(np.random.randn(10, 10), k=2)

    def test_not_square(self):
        with pytest.raises(DegenerateInputError):
            eigs_sym(np.ones((4, 5)), k=2)

    def test_complex_input(self):
        with pytest.raises(TypeError):
            eigs_sym(np.eye(6, dtype=np.complex128), k=2)

    def test_bad_start_vector(self):
        A = create_symmetric_matrix(10)
        with pytest.raises(DimensionMismatchError):
            eigs_sym(A, k=2, v0=np.ones(9))
        with pytest.raises(DegenerateInputError):
            eigs_sym(A, k=2, v0=np.zeros(10))

    def test_matvec_without_dimension(self):
        with pytest.raises(ValueError):
            eigs_sym(matvec=lambda x: x, k=2)

# ----------------------------------

class TestLanczosConvergence:

    def test_iteration_limit_reached_returns_partial(self):
        A       = create_random_symmetric(300, seed=5)
        result  = eigs_sym(A, k=10, m=12, which='SA', tol=1e-14, max_iter=1)
        assert not result.converged
        assert result.iterations == 1
        assert result.num_converged < 10
        assert len(result.eigenvalues) == 10

    def test_iteration_limit_reached_raises(self):
        A = create_random_symmetric(300, seed=5)
        with pytest.raises(NotConvergedError) as exc:
            eigs_sym(A, k=10, m=12, which='SA', tol=1e-14, max_iter=1, raise_on_failure=True)
        assert exc.value.result is not None
        assert exc.value.iterations == 1
        assert len(exc.value.residual_norms) == 10

# ----------------------------------

class TestLanczosScipy:
    """ARPACK reference path."""

    def test_agrees_with_native(self):
        A       = create_symmetric_matrix(200, condition_number=100.0)
        native  = eigs_sym(A, k=6, m=20, which='SA')
        ref     = LanczosEigensolverScipy(k=6, m=20, which='SA', tol=1e-10).solve(A)
        assert ref.converged
        assert np.allclose(native.eigenvalues, ref.eigenvalues, atol=1e-8)
        assert np.all(ref.residual_norms < 1e-6)

    def test_matvec(self):
        A       = create_symmetric_matrix(100)
        ref     = LanczosEigensolverScipy(k=3, which='LA').solve(matvec=lambda x: A @ x, n=100)
        assert np.allclose(ref.eigenvalues, np.linalg.eigvalsh(A)[-3:][::-1], atol=1e-8)

# ----------------------------------
#! EOF

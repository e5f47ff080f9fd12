"""
Test suite for the implicitly restarted Arnoldi eigenvalue solver.

Uses normal matrices with a prescribed spectrum (real values and conjugate
pairs), so that the exact eigenvalues are known.
"""

import numpy as np
import pytest

from krylov_eigen.algebra.eigen import ArnoldiEigensolver, ArnoldiEigensolverScipy, eigs_gen
from krylov_eigen.algebra.errors import NotConvergedError

# ----------------------------------
#! Helper functions to create test matrices
# ----------------------------------

def create_normal_matrix(seed=42):
    """
    A = Q B Q^T with B block diagonal: 30 rotation-scaling blocks a +- ib and 60
    real values. Returns the matrix and its exact eigenvalues.
    """
    np.random.seed(seed)
    a       = np.linspace(-8.0, 8.0, 30)
    b       = 1.0 + 0.1 * np.arange(30)
    reals   = np.concatenate([[-12.0], np.linspace(0.5, 6.0, 59)])
    n       = 2 * len(a) + len(reals)
    B       = np.zeros((n, n))
    for j in range(len(a)):
        B[2 * j:2 * j + 2, 2 * j:2 * j + 2] = [[a[j], b[j]], [-b[j], a[j]]]
    B[60:, 60:]     = np.diag(reals)
    Q, _            = np.linalg.qr(np.random.randn(n, n))
    exact           = np.concatenate([a + 1j * b, a - 1j * b, reals.astype(complex)])
    return Q @ B @ Q.T, exact

def select(exact, key, k):
    return np.sort_complex(exact[np.argsort(key(exact), kind='stable')][:k])

# ----------------------------------
#! Test classes
# ----------------------------------

class TestArnoldiSpectrum:

    def setup_method(self):
        self.A, self.exact = create_normal_matrix()

    def test_largest_magnitude(self):
        result  = eigs_gen(self.A, k=5, m=20, which='LM')
        ref     = select(self.exact, lambda z: -np.abs(z), 5)
        error   = np.max(np.abs(np.sort_complex(result.eigenvalues) - ref))
        print(f"\nLM k=5: {result.eigenvalues}")
        print(f"  Error: {error:.2e}, restarts: {result.iterations}, matvecs: {result.num_matvec}")
        assert result.converged
        assert error < 1e-8, f"Eigenvalue error too large: {error:.2e}"
        assert abs(result.eigenvalues[0] + 12.0) < 1e-8

    def test_largest_real(self):
        result  = eigs_gen(self.A, k=4, which='LR')
        ref     = select(self.exact, lambda z: -z.real, 4)
        assert np.allclose(np.sort_complex(result.eigenvalues), ref, atol=1e-8)

    def test_smallest_real(self):
        result  = eigs_gen(self.A, k=1, which='SR')
        assert result.eigenvalues.shape == (1,)
        assert np.allclose(result.eigenvalues, [-12.0], atol=1e-8)

    def test_largest_imaginary(self):
        result  = eigs_gen(self.A, k=2, which='LI')
        assert np.allclose(np.sort_complex(result.eigenvalues), [8.0 - 3.9j, 8.0 + 3.9j], atol=1e-8)
        # pair reported with the positive imaginary part first
        assert result.eigenvalues[0].imag > 0
        assert result.eigenvalues[1] == np.conj(result.eigenvalues[0])

    def test_eigenvectors(self):
        result  = eigs_gen(self.A, k=5, which='LM')
        X       = result.eigenvectors
        assert X.dtype == np.complex128 and X.shape == (120, 5)
        assert np.allclose(np.linalg.norm(X, axis=0), 1.0)
        residual = np.max(np.linalg.norm(self.A @ X - X * result.eigenvalues[None, :], axis=0))
        assert residual < 1e-7, f"Eigenvector residual too large: {residual:.2e}"

    def test_values_only(self):
        result  = eigs_gen(self.A, k=3, which='LM', return_eigenvectors=False)
        assert result.eigenvectors is None
        assert result.eigenvalues.dtype == np.complex128

# ----------------------------------

class TestArnoldiGeneral:

    def test_perron_root(self):
        np.random.seed(1)
        A       = np.random.rand(100, 100)
        result  = eigs_gen(A, k=1, m=20, which='LM')
        ref     = np.max(np.linalg.eigvals(A).real)
        assert result.converged
        assert abs(result.eigenvalues[0].imag) < 1e-10
        assert abs(result.eigenvalues[0].real - ref) < 1e-8 * ref

    def test_symmetric_input_gives_real_values(self):
        np.random.seed(2)
        U       = np.random.rand(80, 80)
        A       = U + U.T
        result  = eigs_gen(A, k=3, which='LR')
        assert np.allclose(result.eigenvalues.imag, 0.0, atol=1e-8)
        assert np.allclose(np.sort(result.eigenvalues.real), np.linalg.eigvalsh(A)[-3:], atol=1e-8)

    def test_matvec(self):
        A, exact    = create_normal_matrix(seed=3)
        result      = eigs_gen(matvec=lambda x: A @ x, n=120, k=1, which='SR')
        assert np.allclose(result.eigenvalues, [-12.0], atol=1e-8)

    def test_reproducible_with_seed(self):
        A, _    = create_normal_matrix(seed=4)
        r1      = ArnoldiEigensolver(k=3, which='LM', seed=5).solve(A)
        r2      = ArnoldiEigensolver(k=3, which='LM', seed=5).solve(A)
        assert np.array_equal(r1.eigenvalues, r2.eigenvalues)

# ----------------------------------

class TestArnoldiValidation:

    def test_k_too_large(self):
        with pytest.raises(ValueError):
            eigs_gen(np.eye(10), k=9)

    def test_m_too_small(self):
        np.random.seed(0)
        with pytest.raises(ValueError):
            eigs_gen(np.random.randn(30, 30), k=4, m=5)

    @pytest.mark.parametrize("which", ['LA', 'SA', 'BE'])
    def test_symmetric_rules_rejected(self, which):
        with pytest.raises(ValueError):
            ArnoldiEigensolver(k=2, which=which)

    def test_iteration_limit_reached(self):
        A, _ = create_normal_matrix(seed=6)
        with pytest.raises(NotConvergedError) as exc:
            eigs_gen(A, k=6, m=8, which='SM', tol=1e-14, max_iter=1, raise_on_failure=True)
        assert exc.value.iterations == 1
        assert exc.value.result.eigenvalues.shape == (6,)

# ----------------------------------

class TestArnoldiScipy:

    def test_agrees_with_native(self):
        A, exact    = create_normal_matrix(seed=7)
        native      = eigs_gen(A, k=5, m=20, which='LM')
        ref         = ArnoldiEigensolverScipy(k=5, m=20, which='LM', tol=1e-10).solve(A)
        assert ref.converged
        assert ref.eigenvalues.dtype == np.complex128
        assert np.allclose(np.sort_complex(native.eigenvalues), np.sort_complex(ref.eigenvalues), atol=1e-8)

    def test_ncv_too_small(self):
        with pytest.raises(ValueError):
            ArnoldiEigensolverScipy(k=4, m=5).solve(np.eye(30))

# ----------------------------------
#! EOF

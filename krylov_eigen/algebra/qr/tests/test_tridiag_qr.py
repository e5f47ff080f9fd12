"""
Test suite for the banded Givens QR of symmetric tridiagonal matrices.
"""

import numpy as np
import pytest

from krylov_eigen.algebra.qr import TridiagQR, HessenbergQR
from krylov_eigen.algebra.errors import EigenError, EigenErrorMsg, StructureError, DimensionMismatchError

# ----------------------------------
#! Helper functions to create test matrices
# ----------------------------------

def create_tridiagonal_matrix(n, seed=123):
    """Random symmetric tridiagonal matrix."""
    np.random.seed(seed)
    d = np.random.randn(n)
    e = np.random.randn(n - 1)
    return np.diag(d) + np.diag(e, 1) + np.diag(e, -1)

def bandwidths(M, tol=0.0):
    """(lower, upper) bandwidth of M."""
    rows, cols = np.nonzero(np.abs(M) > tol)
    return int(np.max(rows - cols, initial=0)), int(np.max(cols - rows, initial=0))

# ----------------------------------
#! Test classes
# ----------------------------------

class TestTridiagFactorization:

    n = 100

    @pytest.mark.parametrize("shift", [0.0, 1.3])
    def test_h_equals_qr(self, shift):
        T       = create_tridiagonal_matrix(self.n)
        qr      = TridiagQR(T, shift=shift)
        Q, R    = qr.matrix_Q(), qr.matrix_R()
        T_sh    = T - shift * np.eye(self.n)
        error   = np.linalg.norm(Q @ R - T_sh) / np.linalg.norm(T_sh)
        print(f"\n  shift={shift}: relative ||T - QR|| = {error:.2e}")
        assert error < 1e-10, f"Relative factorization error too large: {error:.2e}"
        assert np.max(np.abs(Q.T @ Q - np.eye(self.n))) < 1e-12

    def test_r_band_structure(self):
        R = TridiagQR(create_tridiagonal_matrix(self.n)).matrix_R()
        assert bandwidths(R) == (0, 2)

    def test_rq_band_structure(self):
        T       = create_tridiagonal_matrix(self.n)
        qr      = TridiagQR(T, shift=0.4)
        Q, R    = qr.matrix_Q(), qr.matrix_R()
        RQ      = qr.matrix_RQ()
        lo, up  = bandwidths(RQ)
        assert lo <= 1 and up <= 2
        # R Q is symmetric tridiagonal up to rounding, so the truncated band is negligible
        assert np.allclose(RQ, R @ Q, atol=1e-10)

    def test_qthq_symmetric_tridiagonal(self):
        T       = create_tridiagonal_matrix(self.n)
        qr      = TridiagQR(T, shift=-0.8)
        Q       = qr.matrix_Q()
        QtHQ    = qr.matrix_QtHQ()
        assert np.array_equal(QtHQ, QtHQ.T)
        assert bandwidths(QtHQ) == (1, 1)
        assert np.allclose(QtHQ, Q.T @ T @ Q, atol=1e-10)

    def test_agrees_with_hessenberg_kernel(self):
        T   = create_tridiagonal_matrix(40)
        a   = TridiagQR(T, shift=0.25)
        b   = HessenbergQR(T, shift=0.25)
        assert np.allclose(a.matrix_Q(), b.matrix_Q(), atol=1e-12)
        assert np.allclose(a.matrix_QtHQ(), b.matrix_QtHQ(), atol=1e-10)

    def test_from_bands(self):
        T   = create_tridiagonal_matrix(30)
        a   = TridiagQR.from_bands(np.diag(T), np.diag(T, -1), 0.5)
        b   = TridiagQR(T, shift=0.5)
        d, e = a.qthq_bands()
        assert np.allclose(np.diag(b.matrix_QtHQ()), d)
        assert np.allclose(np.diag(b.matrix_QtHQ(), -1), e)

    def test_eigenvalues_preserved(self):
        T       = create_tridiagonal_matrix(50)
        QtHQ    = TridiagQR(T, shift=T[-1, -1]).matrix_QtHQ()
        assert np.allclose(np.linalg.eigvalsh(QtHQ), np.linalg.eigvalsh(T), atol=1e-10)

    def test_size_two(self):
        T   = np.array([[2.0, 1.0], [1.0, 3.0]])
        qr  = TridiagQR(T, shift=1.0)
        Q   = qr.matrix_Q()
        assert np.allclose(Q @ qr.matrix_R(), T - np.eye(2))
        assert np.allclose(qr.matrix_QtHQ(), Q.T @ T @ Q)

# ----------------------------------

class TestTridiagApply:

    n = 100

    def setup_method(self):
        self.qr = TridiagQR(create_tridiagonal_matrix(self.n), shift=0.1)
        self.Q  = self.qr.matrix_Q()
        np.random.seed(11)

    def test_apply(self):
        Y   = np.random.randn(self.n, 7)
        W   = np.random.randn(self.n // 2, self.n)
        assert np.allclose(self.qr.apply_QY(Y.copy()), self.Q @ Y, atol=1e-12)
        assert np.allclose(self.qr.apply_QtY(Y.copy()), self.Q.T @ Y, atol=1e-12)
        assert np.allclose(self.qr.apply_YQ(W.copy()), W @ self.Q, atol=1e-12)
        assert np.allclose(self.qr.apply_YQt(W.copy()), W @ self.Q.T, atol=1e-12)

    def test_apply_vector(self):
        y = np.random.randn(self.n)
        assert np.allclose(self.qr.apply_YQ(y.copy()), y @ self.Q, atol=1e-12)

    def test_dimension_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            self.qr.apply_YQt(np.ones((4, self.n + 2)))

# ----------------------------------

class TestTridiagErrors:

    def test_not_computed(self):
        with pytest.raises(EigenError) as exc:
            TridiagQR().matrix_QtHQ()
        assert exc.value.code is EigenErrorMsg.NOT_COMPUTED

    def test_not_tridiagonal(self):
        T       = create_tridiagonal_matrix(6)
        T[0, 2] = 1.0
        with pytest.raises(StructureError):
            TridiagQR(T)

    def test_not_symmetric(self):
        T       = create_tridiagonal_matrix(6)
        T[2, 1] += 1.0
        with pytest.raises(StructureError):
            TridiagQR(T)

    def test_rotations_read_only(self):
        rot = TridiagQR(create_tridiagonal_matrix(5)).rotations
        with pytest.raises(ValueError):
            rot.cos[0] = 2.0

# ----------------------------------
#! EOF

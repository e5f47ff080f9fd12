"""
Test suite for the Givens QR of upper Hessenberg matrices.

Checks the factorization against the dense identities H - mu I = Q R, Q^T Q = I,
the RQ / QtHQ products, and the implicit applications of Q.
"""

import numpy as np
import pytest

from krylov_eigen.algebra.qr import HessenbergQR
from krylov_eigen.algebra.errors import (
    EigenError, EigenErrorMsg, DimensionMismatchError, DegenerateInputError, StructureError
)

# ----------------------------------
#! Helper functions to create test matrices
# ----------------------------------

def create_hessenberg_matrix(n, seed=123):
    """Random upper Hessenberg matrix: upper triangle plus a random subdiagonal."""
    np.random.seed(seed)
    H = np.triu(np.random.randn(n, n))
    H[np.arange(1, n), np.arange(n - 1)] = np.random.randn(n - 1)
    return H

# ----------------------------------
#! Test classes
# ----------------------------------

class TestHessenbergFactorization:
    """The factors reproduce H."""

    n = 100

    def test_q_orthogonal(self):
        H       = create_hessenberg_matrix(self.n)
        Q       = HessenbergQR(H).matrix_Q()
        error   = np.max(np.abs(Q.T @ Q - np.eye(self.n)))
        assert error < 1e-12, f"Q^T Q differs from I by {error:.2e}"

    def test_r_upper_triangular(self):
        H = create_hessenberg_matrix(self.n)
        R = HessenbergQR(H).matrix_R()
        assert np.all(np.tril(R, -1) == 0.0)

    @pytest.mark.parametrize("shift", [0.0, 0.7, -2.5])
    def test_h_equals_qr(self, shift):
        H       = create_hessenberg_matrix(self.n)
        qr      = HessenbergQR(H, shift=shift)
        Q, R    = qr.matrix_Q(), qr.matrix_R()
        H_sh    = H - shift * np.eye(self.n)
        error   = np.linalg.norm(Q @ R - H_sh) / np.linalg.norm(H_sh)
        print(f"\n  shift={shift}: relative ||H - QR|| = {error:.2e}")
        assert error < 1e-10, f"Relative factorization error too large: {error:.2e}"

    def test_rq_and_qthq(self):
        H       = create_hessenberg_matrix(self.n)
        qr      = HessenbergQR(H, shift=0.3)
        Q, R    = qr.matrix_Q(), qr.matrix_R()
        RQ      = qr.matrix_RQ()
        assert np.allclose(RQ, R @ Q, atol=1e-10)
        assert np.allclose(qr.matrix_QtHQ(), Q.T @ H @ Q, atol=1e-10)
        # still upper Hessenberg
        assert np.all(np.tril(RQ, -2) == 0.0)

    def test_accessors_idempotent(self):
        H   = create_hessenberg_matrix(20)
        qr  = HessenbergQR(H, shift=1.0)
        R1  = qr.matrix_R()
        R1[0, 0] = 1e9
        assert np.array_equal(qr.matrix_R(), HessenbergQR(H, shift=1.0).matrix_R())
        assert np.array_equal(qr.matrix_QtHQ(), qr.matrix_QtHQ())

    def test_callable_shift(self):
        H   = create_hessenberg_matrix(30)
        qr  = HessenbergQR(H, shift=lambda M: M[-1, -1])
        assert qr.shift == H[-1, -1]

    def test_input_not_modified(self):
        H       = create_hessenberg_matrix(30)
        H_copy  = H.copy()
        HessenbergQR(H, shift=0.5).matrix_QtHQ()
        assert np.array_equal(H, H_copy)

    def test_size_one(self):
        qr = HessenbergQR(np.array([[3.0]]), shift=1.0)
        assert np.allclose(qr.matrix_R(), [[2.0]])
        assert np.allclose(qr.matrix_QtHQ(), [[3.0]])
        assert np.allclose(qr.matrix_Q(), [[1.0]])

# ----------------------------------

class TestHessenbergApply:
    """Implicit Q against the dense Q."""

    n = 100

    def setup_method(self):
        self.H  = create_hessenberg_matrix(self.n)
        self.qr = HessenbergQR(self.H, shift=0.2)
        self.Q  = self.qr.matrix_Q()
        np.random.seed(7)

    def test_apply_matrix_left(self):
        Y       = np.random.randn(self.n, 13)
        QY      = self.qr.apply_QY(Y.copy())
        QtY     = self.qr.apply_QtY(Y.copy())
        assert np.allclose(QY, self.Q @ Y, atol=1e-12)
        assert np.allclose(QtY, self.Q.T @ Y, atol=1e-12)

    def test_apply_matrix_right(self):
        Y       = np.random.randn(self.n // 2, self.n)
        YQ      = self.qr.apply_YQ(Y.copy())
        YQt     = self.qr.apply_YQt(Y.copy())
        assert np.allclose(YQ, Y @ self.Q, atol=1e-12)
        assert np.allclose(YQt, Y @ self.Q.T, atol=1e-12)

    def test_apply_vectors(self):
        y = np.random.randn(self.n)
        assert np.allclose(self.qr.apply_QY(y.copy()), self.Q @ y, atol=1e-12)
        assert np.allclose(self.qr.apply_QtY(y.copy()), self.Q.T @ y, atol=1e-12)
        assert np.allclose(self.qr.apply_YQ(y.copy()), y @ self.Q, atol=1e-12)
        assert np.allclose(self.qr.apply_YQt(y.copy()), y @ self.Q.T, atol=1e-12)

    def test_apply_in_place(self):
        Y   = np.random.randn(self.n, 4)
        ref = self.Q.T @ Y
        out = self.qr.apply_QtY(Y)
        assert out is Y
        assert np.allclose(Y, ref, atol=1e-12)

    def test_apply_converts_other_input(self):
        Y   = np.random.randn(self.n, 3).astype(np.float32)
        out = self.qr.apply_QY(Y)
        assert out is not Y
        assert out.dtype == np.float64
        assert np.allclose(out, self.Q @ Y.astype(np.float64), atol=1e-5)

    def test_apply_complex(self):
        Y   = np.random.randn(self.n, 2) + 1j * np.random.randn(self.n, 2)
        out = self.qr.apply_QY(Y.copy())
        assert np.allclose(out, self.Q @ Y, atol=1e-12)

    def test_inverse_pair(self):
        Y   = np.random.randn(self.n, 5)
        Z   = self.qr.apply_QtY(self.qr.apply_QY(Y.copy()))
        assert np.allclose(Z, Y, atol=1e-12)

    def test_dimension_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            self.qr.apply_QY(np.ones((self.n + 1, 2)))
        with pytest.raises(DimensionMismatchError):
            self.qr.apply_YQ(np.ones((2, self.n - 1)))
        with pytest.raises(DimensionMismatchError):
            self.qr.apply_QtY(np.ones(3))

# ----------------------------------

class TestHessenbergErrors:

    def test_not_computed(self):
        qr = HessenbergQR()
        with pytest.raises(EigenError) as exc:
            qr.matrix_R()
        assert exc.value.code is EigenErrorMsg.NOT_COMPUTED
        with pytest.raises(EigenError):
            qr.apply_QY(np.ones(3))

    def test_not_square(self):
        with pytest.raises(DegenerateInputError):
            HessenbergQR(np.ones((3, 4)))

    def test_empty(self):
        with pytest.raises(DegenerateInputError):
            HessenbergQR(np.zeros((0, 0)))

    def test_non_finite(self):
        H       = create_hessenberg_matrix(5)
        H[0, 3] = np.nan
        with pytest.raises(DegenerateInputError):
            HessenbergQR(H)

    def test_not_hessenberg(self):
        H       = create_hessenberg_matrix(6)
        H[5, 0] = 1.0
        with pytest.raises(StructureError):
            HessenbergQR(H)
        # without the check the entry is ignored
        HessenbergQR(H, check=False)

# ----------------------------------
#! EOF

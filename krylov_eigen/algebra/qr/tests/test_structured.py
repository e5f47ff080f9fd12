"""
Tests for kernel selection by structure and the shift helpers.
"""

import numpy as np
import pytest

from krylov_eigen.algebra.qr import (
    HessenbergQR, TridiagQR, DoubleShiftQR, StructuredQR, choose_qr_kernel, qr_step,
    wilkinson_shift, francis_shift,
)
from krylov_eigen.algebra.qr.shifts import shift_pair
from krylov_eigen.algebra.errors import StructureError

# ----------------------------------

def create_tridiagonal_matrix(n, seed=0):
    np.random.seed(seed)
    e = np.random.randn(n - 1)
    return np.diag(np.random.randn(n)) + np.diag(e, 1) + np.diag(e, -1)

# ----------------------------------

class TestKernelSelection:

    def test_all_kernels_satisfy_capability(self):
        T = create_tridiagonal_matrix(6)
        for kernel in (HessenbergQR(T), TridiagQR(T), DoubleShiftQR(T, 1.0, 1.0)):
            assert isinstance(kernel, StructuredQR)

    def test_choose_tridiagonal(self):
        assert choose_qr_kernel(create_tridiagonal_matrix(8)) is TridiagQR

    def test_choose_hessenberg(self):
        H       = np.triu(np.ones((6, 6)), -1)
        assert choose_qr_kernel(H) is HessenbergQR

    def test_reject_full_matrix(self):
        with pytest.raises(StructureError):
            choose_qr_kernel(np.ones((5, 5)))

    def test_qr_step(self):
        T               = create_tridiagonal_matrix(20)
        QtHQ, kernel    = qr_step(T, shift=0.3)
        Q               = kernel.matrix_Q()
        assert isinstance(kernel, TridiagQR)
        assert np.allclose(QtHQ, Q.T @ T @ Q, atol=1e-10)

    def test_qr_step_matches_direct_kernel(self):
        np.random.seed(4)
        H               = np.triu(np.random.randn(12, 12), -1)
        QtHQ, kernel    = qr_step(H, shift=0.7)
        direct          = HessenbergQR(H, shift=0.7, check=False)
        assert isinstance(kernel, HessenbergQR)
        assert np.allclose(QtHQ, direct.matrix_QtHQ(), atol=1e-12)

# ----------------------------------

class TestShifts:

    def test_wilkinson_shift_is_eigenvalue(self):
        a, b, c = 2.0, 0.5, -1.0
        mu      = wilkinson_shift(a, b, c)
        ev      = np.linalg.eigvalsh(np.array([[a, b], [b, c]]))
        assert np.isclose(mu, ev[np.argmin(np.abs(ev - c))])

    def test_wilkinson_shift_decoupled(self):
        assert wilkinson_shift(3.0, 0.0, 1.0) == 1.0

    def test_francis_shift(self):
        H       = np.triu(np.arange(1.0, 17.0).reshape(4, 4), -1)
        s, t    = francis_shift(H)
        B       = H[2:, 2:]
        assert s == np.trace(B)
        assert np.isclose(t, np.linalg.det(B))

    def test_shift_pair(self):
        s, t = shift_pair(1.0 + 2.0j)
        assert s == 2.0
        assert np.isclose(t, 5.0)

# ----------------------------------
#! EOF

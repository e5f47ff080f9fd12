'''
General tests for import behavior of the krylov_eigen package.

Ensures that subpackages are lazily imported and key exports are available.

Tests:
- Lazy loading of subpackages
- Key class/function exports
- Package metadata presence

File        : tests/test_imports.py
License     : MIT
'''

import types

import pytest

# -------------------------------------------------------------------

def test_root_imports_lazy():
    import krylov_eigen
    assert isinstance(krylov_eigen, types.ModuleType)

    # Accessing attribute should trigger lazy import
    algebra = krylov_eigen.algebra
    assert isinstance(algebra, types.ModuleType)
    assert algebra.__name__ == "krylov_eigen.algebra"

def test_front_end_shortcuts():
    import krylov_eigen
    from krylov_eigen.algebra.eigen import eigs_sym, eigs_gen
    assert krylov_eigen.eigs_sym is eigs_sym
    assert krylov_eigen.eigs_gen is eigs_gen

def test_unknown_attribute():
    import krylov_eigen
    with pytest.raises(AttributeError):
        krylov_eigen.not_a_module

# -------------------------------------------------------------------

def test_qr_exports():
    from krylov_eigen.algebra import qr
    for name in qr.__all__:
        assert getattr(qr, name) is not None
    with pytest.raises(AttributeError):
        qr.SchurQR

def test_eigen_exports():
    from krylov_eigen.algebra import eigen
    for name in eigen.__all__:
        assert getattr(eigen, name) is not None
    assert issubclass(eigen.LanczosEigensolver, eigen.RestartedKrylovSolver)
    assert issubclass(eigen.ArnoldiEigensolver, eigen.EigenSolver)

def test_common_exports():
    from krylov_eigen.common import Logger, get_global_logger
    assert isinstance(get_global_logger(), Logger)

# -------------------------------------------------------------------

def test_package_metadata():
    import krylov_eigen as ke
    assert hasattr(ke, "__version__")
    assert ke.get_module_description("algebra") != "Module not found."
    assert ke.list_available_modules() == ["algebra", "common"]

# -------------------------------------------------------------------
#! End of file
# -------------------------------------------------------------------

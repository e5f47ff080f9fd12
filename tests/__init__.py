# Path: krylov_eigen/tests/__init__.py

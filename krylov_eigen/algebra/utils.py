# file        :   krylov_eigen/algebra/utils.py

'''
Configuration and random-number management for the eigensolvers.

All tunables are read from environment variables once, at import time, and
written back to the environment so that child processes inherit them:

- PY_GLOBAL_SEED   : seed of the default random generator (default 42). The generator
                     draws default starting vectors and the replacement vectors used
                     after a Krylov breakdown. Within one process the sequence of solves is
                     reproducible, a single solve is only reproducible when given
                     its own `seed` or run inside `rng_mgr.seed_scope`.
- PY_EIGS_TOL      : default relative convergence tolerance of the drivers (1e-10).
- PY_EIGS_MAXITER  : default maximum number of restarts of the drivers (1000).
- PY_BACKEND_INFO  : print the configuration banner on import.

Provides:
- RNGManager: owner of the default NumPy `Generator`, with `reseed`, `seed_scope`
  and `spawn_np_generators`.
- `get_rng`: the generator of the global manager.
'''

import os
from contextlib import contextmanager
from typing import Optional, List

import numpy as np
import numpy.random as np_random

# ---------------------------------------------------------------------
#! Environment variable names
# ---------------------------------------------------------------------

PY_GLOBAL_SEED_STR      : str               = "PY_GLOBAL_SEED"
PY_EIGS_TOL_STR         : str               = "PY_EIGS_TOL"
PY_EIGS_MAXITER_STR     : str               = "PY_EIGS_MAXITER"
PY_INFO_VERBOSE         : str               = "PY_BACKEND_INFO"

# ---------------------------------------------------------------------

DEFAULT_SEED            : int               = 42
DEFAULT_TOL             : float             = 1e-10
DEFAULT_MAXITER         : int               = 1000

# ---------------------------------------------------------------------

def _log_message(msg, lvl = 0, **kwargs):
    """
    Logs a configuration message through the global logger when PY_BACKEND_INFO is set.
    The logger is imported lazily so that this module stays importable on its own.
    """
    if os.getenv(PY_INFO_VERBOSE, "0").lower() not in ("1", "true", "yes", "on"):
        return
    from ..common.flog import get_global_logger
    get_global_logger().info(msg, lvl=lvl, **kwargs)

def _env_number(name: str, default, cast):
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = cast(raw)
    except ValueError as e:
        raise ValueError(f"Environment variable {name}={raw!r} is not a valid {cast.__name__}") from e
    if value <= 0:
        raise ValueError(f"Environment variable {name} must be positive, got {value}")
    return value

# ---------------------------------------------------------------------
#! SET VARIABLES
# ---------------------------------------------------------------------

PY_GLOBAL_SEED          : int               = int(os.environ.get(PY_GLOBAL_SEED_STR, DEFAULT_SEED))
os.environ[PY_GLOBAL_SEED_STR]              = str(PY_GLOBAL_SEED)

PY_EIGS_TOL             : float             = _env_number(PY_EIGS_TOL_STR, DEFAULT_TOL, float)
os.environ[PY_EIGS_TOL_STR]                 = repr(PY_EIGS_TOL)

PY_EIGS_MAXITER         : int               = _env_number(PY_EIGS_MAXITER_STR, DEFAULT_MAXITER, int)
os.environ[PY_EIGS_MAXITER_STR]             = str(PY_EIGS_MAXITER)

# ---------------------------------------------------------------------
#! Random number management
# ---------------------------------------------------------------------

class RNGManager:
    """
    Owns the default NumPy random generator of the package.

    Attributes:
        default_seed (int):
            Seed of the current generator.
        default_rng (np.random.Generator):
            The generator handed out by `get_rng`.
    """

    def __init__(self, default_seed: int = PY_GLOBAL_SEED):
        self.default_seed   : int                   = default_seed
        self.default_rng    : np_random.Generator   = self._create_numpy_rng(default_seed)

    @staticmethod
    def _create_numpy_rng(seed: Optional[int]) -> np_random.Generator:
        """
        Creates a NumPy random number generator (PCG64) for the given seed.
        """
        return np_random.default_rng(seed)

    def reseed(self, seed: int) -> np_random.Generator:
        """
        Replace the default generator by a freshly seeded one and return it.
        """
        self.default_seed   = int(seed)
        self.default_rng    = self._create_numpy_rng(self.default_seed)
        _log_message(f"RNGManager reseeded with {self.default_seed}.", 1)
        return self.default_rng

    @contextmanager
    def seed_scope(self, seed: int):
        """
        Temporarily set a deterministic seed and restore the previous generator on exit.
        Use it as:
        ```
        with rng_mgr.seed_scope(seed):
            # Your code here
        ```
        """
        old_rng  = self.default_rng
        old_seed = self.default_seed
        try:
            yield self.reseed(seed)
        finally:
            self.default_rng  = old_rng
            self.default_seed = old_seed

    @staticmethod
    def spawn_np_generators(root_seed: int, n: int) -> List[np_random.Generator]:
        """
        Create `n` independent NumPy generators using SeedSequence.
        Use one per independent solve to avoid correlated streams.
        """
        ss = np.random.SeedSequence(root_seed)
        return [np.random.Generator(np.random.PCG64(s)) for s in ss.spawn(n)]

# ---------------------------------------------------------------------

rng_mgr = RNGManager(default_seed=PY_GLOBAL_SEED)

def get_rng(seed: Optional[int] = None) -> np_random.Generator:
    """
    Return the package generator, or a fresh generator when `seed` is given.
    """
    if seed is not None:
        return np_random.default_rng(seed)
    return rng_mgr.default_rng

def print_config():
    """Log the active configuration."""
    _log_message("krylov_eigen configuration:", 0)
    _log_message(f"{PY_GLOBAL_SEED_STR:<16} = {PY_GLOBAL_SEED}", 1)
    _log_message(f"{PY_EIGS_TOL_STR:<16} = {PY_EIGS_TOL:g}", 1)
    _log_message(f"{PY_EIGS_MAXITER_STR:<16} = {PY_EIGS_MAXITER}", 1)

print_config()

# ---------------------------------------------------------------------
#! EOF

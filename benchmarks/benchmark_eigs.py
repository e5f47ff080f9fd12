"""
Native implicitly restarted solvers against ARPACK (scipy eigsh / eigs).

For each problem the wall time in milliseconds and the precision error
max |A V - V Lambda| of both paths are reported.
"""
import time
import numpy as np
from krylov_eigen.algebra.eigen import eigs_sym, eigs_gen, LanczosEigensolverScipy, ArnoldiEigensolverScipy
from krylov_eigen.common.flog import get_global_logger, log_timing_summary
from .utils import create_random_matrix, create_convection_diffusion_matrix, precision_error

def _timed(fn):
    start   = time.perf_counter()
    result  = fn()
    return result, (time.perf_counter() - start) * 1e3

def benchmark_pair(A, k, m, symmetric, label, seed=123):
    """
    Run the native solver and its ARPACK counterpart on the same problem.
    """
    n   = A.shape[0]
    v0  = np.random.default_rng(seed).uniform(-0.5, 0.5, n)
    if symmetric:
        native, t_native    = _timed(lambda: eigs_sym(A, k=k, m=m, v0=v0, which='LM'))
        ref, t_ref          = _timed(lambda: LanczosEigensolverScipy(k=k, m=m, which='LM', v0=v0).solve(A))
    else:
        native, t_native    = _timed(lambda: eigs_gen(A, k=k, m=m, v0=v0, which='LM'))
        ref, t_ref          = _timed(lambda: ArnoldiEigensolverScipy(k=k, m=m, which='LM', v0=v0).solve(A))

    return {
        "name"          : f"{label} (n={n}, k={k}, m={m})",
        "duration"      : t_native / 1e3,
        "native_ms"     : t_native,
        "arpack_ms"     : t_ref,
        "native_error"  : precision_error(A, native.eigenvalues, native.eigenvectors),
        "arpack_error"  : precision_error(A, ref.eigenvalues, ref.eigenvectors),
        "restarts"      : native.iterations,
        "matvecs"       : native.num_matvec,
        "converged"     : native.converged,
    }

def run_benchmarks(heavy=False):
    results = []

    configs = [
        (100, 10, 20),
        (1000, 10, 30),
    ]
    if heavy:
        configs.append((3000, 20, 50))

    for n, k, m in configs:
        results.append(benchmark_pair(create_random_matrix(n, symmetric=True), k, m, True, "Lanczos U + U^T"))
        results.append(benchmark_pair(create_random_matrix(n, symmetric=False), k, m, False, "Arnoldi U"))

    if heavy:
        A = create_convection_diffusion_matrix(2000)
        results.append(benchmark_pair(A, 6, 30, False, "Arnoldi Conv-Diff"))

    return results

def report(results, logger=None):
    """
    Log the comparison table and the native timing summary.
    """
    logger = logger if logger is not None else get_global_logger()
    logger.title("Native vs ARPACK", 80, '=', 0)
    logger.info(f"{'Problem':<42} | {'native ms':>10} | {'arpack ms':>10} | {'native err':>10} | {'arpack err':>10}")
    for res in results:
        logger.info(f"{res['name']:<42} | {res['native_ms']:>10.2f} | {res['arpack_ms']:>10.2f} | "
                    f"{res['native_error']:>10.2e} | {res['arpack_error']:>10.2e}")
        if not res["converged"]:
            logger.warning(f"{res['name']}: native solver did not converge", lvl=1)
    log_timing_summary(logger, {r["name"][:30]: r["duration"] for r in results},
                    title="Native solver timings", phase_col_width=30)

if __name__ == "__main__":
    report(run_benchmarks())

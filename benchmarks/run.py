"""
Minimal benchmark runner for krylov_eigen.
Run with: python3 -m benchmarks.run [--heavy]
"""
import argparse
import time

from krylov_eigen.common.flog import get_global_logger
from benchmarks import benchmark_eigs

def main():
    parser = argparse.ArgumentParser(description="Run krylov_eigen benchmarks.")
    parser.add_argument("--heavy", action="store_true", help="Run heavy benchmarks (longer duration).")
    args    = parser.parse_args()
    logger  = get_global_logger()

    logger.title(f"Running krylov_eigen Benchmarks (Heavy={args.heavy})", 80, '=', 0)

    start_total = time.perf_counter()
    results     = benchmark_eigs.run_benchmarks(heavy=args.heavy)
    benchmark_eigs.report(results, logger)

    for res in results:
        details = ", ".join(f"{k}={v}" for k, v in res.items() if k in ("restarts", "matvecs", "converged"))
        logger.info(f"{res['name']}: {details}", lvl=1)
    logger.info(f"Total time: {time.perf_counter() - start_total:.2f} s")

if __name__ == "__main__":
    main()

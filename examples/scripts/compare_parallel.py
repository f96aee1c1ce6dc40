"""
Compare sequential and parallel flux estimates.

Validates:
1. Reproducibility - two sequential runs with the same seed agree bit for bit
2. Consistency - the parallel estimate agrees within its statistical error
3. Performance - measures speedup on multiple cores
"""

import time

import numpy as np
import matplotlib.pyplot as plt

from muon_mc.core.config import RunConfig
from muon_mc.transport.integrator import FluxIntegrator


def make_config(n_events: int = 4000) -> RunConfig:
    return RunConfig(rock_thickness=50.0, elevation=45.0, kinetic_min=1.0,
                     kinetic_max=1.0E+02, n_events=n_events, seed=7)


def check_reproducibility():
    """Two sequential runs with the same seed."""
    print("=" * 70)
    print("TEST 1: Reproducibility")
    print("=" * 70)

    config = make_config(1000)
    first = FluxIntegrator(config).run()
    second = FluxIntegrator(config).run()

    print(f"  Run 1: {first.format()}")
    print(f"  Run 2: {second.format()}")
    passed = first.flux == second.flux and first.sigma == second.sigma
    print("\n  PASSED" if passed else "\n  FAILED")
    return passed


def check_parallel(n_processes: int = 4):
    """Sequential and parallel estimates."""
    print("\n" + "=" * 70)
    print("TEST 2: Parallel Consistency")
    print("=" * 70)

    config = make_config()
    integrator = FluxIntegrator(config)

    start = time.time()
    serial = integrator.run()
    time_serial = time.time() - start

    start = time.time()
    parallel = integrator.run_parallel(n_processes)
    time_parallel = time.time() - start

    print(f"  Serial:   {serial.format()} ({time_serial:.1f}s)")
    print(f"  Parallel: {parallel.format()} ({time_parallel:.1f}s)")
    print(f"  Speedup:  {time_serial / time_parallel:.2f}x")

    pull = (serial.flux - parallel.flux) / np.hypot(serial.sigma, parallel.sigma)
    print(f"  Pull:     {pull:.2f}")
    passed = abs(pull) < 4.0
    print("\n  PASSED" if passed else "\n  FAILED")
    return passed


def scaling(core_counts=(1, 2, 4, 8)):
    """Wall time for different core counts."""
    print("\n" + "=" * 70)
    print("TEST 3: Parallel Scaling")
    print("=" * 70)

    integrator = FluxIntegrator(make_config(8000))
    times = []
    for n_cores in core_counts:
        start = time.time()
        integrator.run_parallel(n_cores)
        times.append(time.time() - start)
        print(f"  {n_cores} cores: {times[-1]:.1f}s")

    speedups = times[0] / np.array(times)
    plt.figure(figsize=(8, 5))
    plt.plot(core_counts, speedups, 'bo-', markersize=8, linewidth=2, label='Actual')
    plt.plot(core_counts, core_counts, 'r--', linewidth=2, label='Ideal (linear)')
    plt.xlabel('Number of Cores')
    plt.ylabel('Speedup')
    plt.title('Parallel Scaling')
    plt.legend()
    plt.grid(True, alpha=0.3)
    plt.tight_layout()
    plt.savefig('parallel_scaling.png', dpi=150)
    print(f"\nPlot saved: parallel_scaling.png")
    return speedups


if __name__ == "__main__":
    if check_reproducibility() and check_parallel():
        scaling()

"""Generate convergence traces for the eigenvalue solvers.

This script generates JSON trace files for:
- Power iteration (per-iteration eigenvalue, residual and timing)
- Each solver through PlotWriter (per-iteration residual)

Output JSON files are suitable for web-based visualization.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from pathlib import Path

from eigensolve.algorithms import (
    Algorithm,
    Parameters,
    create_slow_convergence_matrix,
    create_solver,
    run_power_method,
)
from eigensolve.io import PlotWriter


def generate_power_method_trace(
    matrix_size: int = 256,
    condition_number: float = 100.0,
    seed: int = 42,
    output_dir: Path | None = None,
) -> None:
    """Generate the detailed power iteration trace.

    Args:
        matrix_size: Matrix dimension.
        condition_number: Ratio of largest to smallest eigenvalue.
        seed: Random seed for reproducibility.
        output_dir: Output directory (defaults to experiments/traces/).
    """
    if output_dir is None:
        output_dir = Path(__file__).parent / "traces"

    output_dir.mkdir(parents=True, exist_ok=True)

    print(f"Generating power method trace (n={matrix_size}, κ={condition_number})...")

    A = create_slow_convergence_matrix(matrix_size, condition_number, seed=seed)
    trace = run_power_method(A, parameters=Parameters(tolerance=1e-10, max_iterations=2000))

    output = {
        "metadata": {
            "algorithm": "power_method",
            "matrix_size": matrix_size,
            "condition_number": condition_number,
            "true_eigenvalue": condition_number,
            "seed": seed,
            "timestamp": datetime.now(UTC).isoformat(),
            "final_residual": trace.final_residual,
            "converged": trace.converged,
        },
        "summary": {
            "iterations": trace.iterations,
            "total_time_seconds": trace.total_time,
            "final_eigenvalue": trace.final_eigenvalue,
        },
        "trace": trace.history,
    }

    output_file = output_dir / "trace_power_method.json"
    with output_file.open("w") as f:
        json.dump(output, f, indent=2)

    print(f"  ✓ {trace.iterations} iterations, converged={trace.converged}")


def generate_solver_traces(
    matrix_size: int = 64,
    condition_number: float = 100.0,
    seed: int = 42,
    output_dir: Path | None = None,
) -> None:
    """Generate residual traces for every solver on the same matrix.

    The inverse power method targets the second eigenvalue, which power
    iteration only separates from the first at rate λ₂/λ₁.
    """
    if output_dir is None:
        output_dir = Path(__file__).parent / "traces"

    output_dir.mkdir(parents=True, exist_ok=True)

    print(f"\nGenerating solver traces (n={matrix_size}, κ={condition_number})...")

    A = create_slow_convergence_matrix(matrix_size, condition_number, seed=seed)
    parameters = Parameters(
        tolerance=1e-10,
        max_iterations=5000,
        shift=condition_number / 1.1 * 1.01,
    )

    for algorithm in Algorithm:
        print(f"  Running {algorithm.label}...", end=" ", flush=True)
        result = create_solver(algorithm).solve(A, parameters, warn=False)
        PlotWriter(output_dir / f"trace_{algorithm.value}.json").write(result)
        print(f"✓ {result.iterations} iterations, converged={result.converged}")


def main() -> None:
    """Generate all solver traces."""
    print("=" * 70)
    print("Eigensolve - Trace Data Generation")
    print("=" * 70)

    output_dir = Path(__file__).parent / "traces"

    generate_power_method_trace(output_dir=output_dir)
    generate_solver_traces(output_dir=output_dir)

    print("\n" + "=" * 70)
    print("✓ All traces generated successfully!")
    print("=" * 70)
    print(f"\nOutput directory: {output_dir.absolute()}")
    print("\nGenerated files:")
    for trace_file in sorted(output_dir.glob("trace_*.json")):
        size_kb = trace_file.stat().st_size / 1024
        print(f"  - {trace_file.name} ({size_kb:.1f} KB)")


if __name__ == "__main__":
    main()

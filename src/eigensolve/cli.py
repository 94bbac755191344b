"""
Command-line interface for Eigensolve.

Usage:
    eigensolve info           Show available algorithms and scalar kinds
    eigensolve solve FILE     Solve the eigenvalue problem described in FILE
    eigensolve demo           Compare all solvers on a generated matrix
"""

import sys
from pathlib import Path
from typing import Annotated

import numpy as np
import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from eigensolve import __version__
from eigensolve.algorithms import (
    Algorithm,
    Parameters,
    create_known_spectrum_matrix,
    create_solver,
)
from eigensolve.data import ScalarKind, get_eps, get_spec
from eigensolve.errors import EigenSolverError
from eigensolve.io import (
    ConsoleWriter,
    create_writer,
    format_scalar,
    open_reader,
    parse_scalar,
)

app = typer.Typer(
    name="eigensolve",
    help="Iterative eigenvalue solvers for real and complex matrices",
    add_completion=False,
)
console = Console()

_ALGORITHM_TARGETS: dict[Algorithm, str] = {
    Algorithm.POWER: "Largest |λ| and its eigenvector",
    Algorithm.QR: "Full spectrum",
    Algorithm.SHIFTED_INVERSE: "λ nearest the shift and its eigenvector",
}

_SUFFIX_FORMATS: dict[str, str] = {
    ".csv": "csv",
    ".json": "plot",
}


def setup_logging(verbose: bool) -> None:
    """Configure loguru for CLI output."""
    logger.remove()
    level = "DEBUG" if verbose else "INFO"
    logger.add(
        sys.stderr,
        level=level,
        format="<level>{level: <8}</level> | {message}",
    )
    logger.enable("eigensolve")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"eigensolve version {__version__}")
        raise typer.Exit()


@app.callback()  # type: ignore[misc]
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
) -> None:
    """Eigensolve - eigenvalue computations from the command line."""
    pass


@app.command()  # type: ignore[misc]
def info() -> None:
    """Display the available algorithms and scalar kinds."""
    table = Table(title="Available Algorithms")

    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Algorithm")
    table.add_column("Computes")

    for algorithm in Algorithm:
        table.add_row(algorithm.value, algorithm.label, _ALGORITHM_TARGETS[algorithm])

    console.print(table)

    kinds = Table(title="Scalar Kinds")

    kinds.add_column("Kind", style="cyan", no_wrap=True)
    kinds.add_column("Bits", justify="right")
    kinds.add_column("Machine ε", justify="right")

    for kind in ScalarKind:
        kinds.add_row(kind.value, str(get_spec(kind).bits), f"{get_eps(kind):.2e}")

    console.print(kinds)


@app.command()  # type: ignore[misc]
def solve(
    file: Annotated[
        Path,
        typer.Argument(help="Problem file (.csv, .txt or .dat)"),
    ],
    kind: Annotated[
        str | None,
        typer.Option("--kind", "-k", help="Scalar kind (real or complex)"),
    ] = None,
    algorithm: Annotated[
        str | None,
        typer.Option("--algorithm", "-a", help="Override the file's algorithm"),
    ] = None,
    tolerance: Annotated[
        float | None,
        typer.Option("--tolerance", "-t", help="Convergence tolerance"),
    ] = None,
    max_iterations: Annotated[
        int | None,
        typer.Option("--max-iter", "-i", help="Maximum iterations"),
    ] = None,
    shift: Annotated[
        str | None,
        typer.Option(
            "--shift", "-s", help="Shift for the inverse power method (real or complex, e.g. 1+2i)"
        ),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write results to this file"),
    ] = None,
    fmt: Annotated[
        str | None,
        typer.Option("--format", "-f", help="Output format: console, csv, text, plot"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Show debug logging"),
    ] = False,
) -> None:
    """Solve the eigenvalue problem described in FILE."""
    setup_logging(verbose)

    try:
        problem = open_reader(file, kind).read()

        overrides = {
            name: value
            for name, value in (
                ("tolerance", tolerance),
                ("max_iterations", max_iterations),
                ("shift", parse_scalar(shift) if shift is not None else None),
            )
            if value is not None
        }
        parameters = problem.parameters.with_changes(**overrides)
        chosen = Algorithm.parse(algorithm) if algorithm else problem.algorithm

        logger.info(
            "Solving {}x{} {} matrix with {}",
            problem.matrix.shape[0],
            problem.matrix.shape[1],
            problem.scalar_kind.value,
            chosen.label,
        )
        result = create_solver(chosen).solve(problem.matrix, parameters, warn=False)

        if fmt is None:
            fmt = "console" if output is None else _SUFFIX_FORMATS.get(output.suffix.lower(), "text")
        writer = ConsoleWriter(console) if fmt == "console" else create_writer(fmt, output)
        writer.write(result)
    except (EigenSolverError, FileNotFoundError) as err:
        console.print(f"[red]Error:[/] {err}")
        raise typer.Exit(code=1) from err

    if not result.converged:
        console.print("[yellow]Warning:[/] solver did not converge within the iteration budget")


@app.command()  # type: ignore[misc]
def demo(
    matrix_size: Annotated[
        int,
        typer.Option("--size", "-n", help="Matrix dimension"),
    ] = 6,
    seed: Annotated[
        int,
        typer.Option("--seed", help="Random seed"),
    ] = 42,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", help="Show debug logging"),
    ] = False,
) -> None:
    """Run every solver on a matrix with eigenvalues 1..n and compare."""
    setup_logging(verbose)

    if matrix_size < 2:
        console.print("[red]Error:[/] demo needs a matrix of size 2 or more")
        raise typer.Exit(code=1)

    eigenvalues = np.arange(1.0, matrix_size + 1.0)
    A = create_known_spectrum_matrix(eigenvalues, symmetric=False, seed=seed)
    shift = eigenvalues[matrix_size // 2] + 0.2

    console.print("[bold]Eigenvalue Solver Comparison[/]")
    console.print(f"  Matrix size: {matrix_size}×{matrix_size}")
    console.print(f"  True spectrum: 1 … {matrix_size}")
    console.print(f"  Shift: {shift}\n")

    table = Table(title="Solver Comparison")

    table.add_column("Algorithm", style="cyan", no_wrap=True)
    table.add_column("Eigenvalue(s)")
    table.add_column("Iterations", justify="right")
    table.add_column("Converged", justify="center")
    table.add_column("Time", justify="right")

    for algorithm in Algorithm:
        result = create_solver(algorithm).solve(A, Parameters(shift=shift), warn=False)
        values = sorted(result.eigenvalues.real) if algorithm is Algorithm.QR else [result.eigenvalue]
        table.add_row(
            algorithm.label,
            ", ".join(format_scalar(v, 8) for v in values),
            str(result.iterations),
            "✓" if result.converged else "✗",
            f"{result.total_time * 1e3:.2f} ms",
        )

    console.print(table)


if __name__ == "__main__":
    app()

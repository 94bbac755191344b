"""Result writers.

- CSVWriter: eigenvalue table followed by eigenvector components
- TextFileWriter: human-readable report
- ConsoleWriter: rich table on the terminal
- PlotWriter: JSON convergence trace (metadata, summary, per-iteration residuals)
"""

from __future__ import annotations

import csv
import json
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol

import numpy as np
from loguru import logger
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from eigensolve.algorithms.base import Algorithm
from eigensolve.errors import InvalidParameterError

if TYPE_CHECKING:
    from eigensolve.algorithms.base import EigenvalueResult


class ResultWriter(Protocol):
    """Sink for solver results."""

    def write(self, result: EigenvalueResult) -> None: ...


def format_scalar(value: Any, precision: int = 10) -> str:
    """Format a real or complex scalar ('1.5', '1.5 - 2i')."""
    if isinstance(value, complex) or np.iscomplexobj(value):
        z = complex(value)
        sign = "-" if z.imag < 0 else "+"
        return f"{z.real:.{precision}g} {sign} {abs(z.imag):.{precision}g}i"
    return f"{float(value):.{precision}g}"


def _is_complex(result: EigenvalueResult) -> bool:
    if any(isinstance(pair.eigenvalue, complex) for pair in result.pairs):
        return True
    return any(
        pair.eigenvector is not None and np.iscomplexobj(pair.eigenvector)
        for pair in result.pairs
    )


def _eigenvalue_label(result: EigenvalueResult) -> str:
    if result.algorithm is Algorithm.POWER:
        return "Dominant Eigenvalue"
    if result.algorithm is Algorithm.SHIFTED_INVERSE:
        return "Eigenvalue Nearest Shift"
    return "Eigenvalue"


class CSVWriter:
    """Comma separated results.

    One row per eigenpair, a blank line, then the eigenvector components
    (one column per eigenpair, real and imaginary columns for complex data).
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def write(self, result: EigenvalueResult) -> None:
        complex_ = _is_complex(result)
        n = max((len(p.eigenvector) for p in result.pairs if p.eigenvector is not None), default=0)

        with self.path.open("w", newline="") as f:
            writer = csv.writer(f)

            if complex_:
                writer.writerow(["Eigenvalue_Real", "Eigenvalue_Imag", "Iterations", "Converged"])
            else:
                writer.writerow(["Eigenvalue", "Iterations", "Converged"])

            for pair in result.pairs:
                if complex_:
                    z = complex(pair.eigenvalue)
                    values = [repr(z.real), repr(z.imag)]
                else:
                    values = [repr(float(pair.eigenvalue))]
                writer.writerow([*values, pair.iterations, "Yes" if pair.converged else "No"])

            writer.writerow([])

            if complex_:
                header = []
                for k in range(len(result.pairs)):
                    header += [f"Eigenvector{k + 1}_Real", f"Eigenvector{k + 1}_Imag"]
                writer.writerow(header)
            else:
                writer.writerow(["Eigenvector Components"])

            for i in range(n):
                row: list[str] = []
                for pair in result.pairs:
                    v = pair.eigenvector
                    if v is None:
                        row += ["", ""] if complex_ else [""]
                    elif complex_:
                        z = complex(v[i])
                        row += [repr(z.real), repr(z.imag)]
                    else:
                        row.append(repr(float(v[i])))
                writer.writerow(row)

        logger.info("Results written to {}", self.path)


class TextFileWriter:
    """Plain text report."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def write(self, result: EigenvalueResult) -> None:
        lines = [
            "     EIGENVALUE COMPUTATION RESULTS     ",
            f"Algorithm: {result.algorithm.label}",
            f"Convergence Status: {'CONVERGED' if result.converged else 'NOT CONVERGED'}",
            f"Number of Iterations: {result.iterations}",
            "",
        ]

        label = _eigenvalue_label(result)
        for k, pair in enumerate(result.pairs, start=1):
            title = label if len(result.pairs) == 1 else f"{label} {k}"
            status = "" if pair.converged else " (not converged)"
            lines.append(f"{title}: {format_scalar(pair.eigenvalue)}{status}")

            if pair.eigenvector is None:
                lines.append("Corresponding Eigenvector: not computed")
            else:
                lines.append("Corresponding Eigenvector:")
                lines += [
                    f"  v[{i}] = {format_scalar(x)}" for i, x in enumerate(pair.eigenvector)
                ]
            lines.append("")

        self.path.write_text("\n".join(lines))
        logger.info("Results written to {}", self.path)


class ConsoleWriter:
    """Rich table of eigenpairs on the terminal."""

    def __init__(self, console: Console | None = None, *, show_vectors: bool = True) -> None:
        self.console = console or Console()
        self.show_vectors = show_vectors

    def write(self, result: EigenvalueResult) -> None:
        table = Table(title=f"{result.algorithm.label} Results")

        table.add_column("#", justify="right", style="dim")
        table.add_column("Eigenvalue", style="cyan", no_wrap=True)
        table.add_column("Iterations", justify="right")
        table.add_column("Converged", justify="center")
        if self.show_vectors:
            table.add_column("Eigenvector")

        for k, pair in enumerate(result.pairs, start=1):
            row = [
                str(k),
                format_scalar(pair.eigenvalue),
                str(pair.iterations),
                "[green]✓[/]" if pair.converged else "[red]✗[/]",
            ]
            if self.show_vectors:
                row.append(
                    "not computed"
                    if pair.eigenvector is None
                    else escape("[" + ", ".join(format_scalar(x, 6) for x in pair.eigenvector) + "]")
                )
            table.add_row(*row)

        self.console.print(table)
        self.console.print(
            f"Total iterations: {result.iterations}  "
            f"Final residual: {result.final_residual:.3e}  "
            f"Time: {result.total_time * 1e3:.2f} ms"
        )


class PlotWriter:
    """JSON convergence trace for plotting.

    Output layout:
        metadata: algorithm, scalar kind, timestamp, convergence status
        summary: iterations, timing, eigenvalues
        trace: one {"iteration", "residual"} record per iteration
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def to_dict(self, result: EigenvalueResult) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = result.to_dict()
        return {
            "metadata": {
                "algorithm": result.algorithm.value,
                "label": result.algorithm.label,
                "scalar_kind": result.scalar_kind.value,
                "timestamp": datetime.now(UTC).isoformat(),
                "converged": result.converged,
                "final_residual": result.final_residual,
            },
            "summary": {
                "iterations": result.iterations,
                "total_time_seconds": result.total_time,
                "eigenvalues": [pair["eigenvalue"] for pair in data["pairs"]],
            },
            "trace": [
                {"iteration": i, "residual": residual}
                for i, residual in enumerate(result.history, start=1)
            ],
        }

    def write(self, result: EigenvalueResult) -> None:
        with self.path.open("w") as f:
            json.dump(self.to_dict(result), f, indent=2)
        logger.info("Convergence trace written to {}", self.path)


def create_writer(fmt: str = "console", path: str | Path | None = None) -> ResultWriter:
    """Factory function to create result writers.

    Args:
        fmt: Output format ('console', 'csv', 'text', 'plot').
        path: Output file (required for every format except 'console').

    Returns:
        ResultWriter instance.

    Raises:
        InvalidParameterError: If the format is unknown or a file format lacks a path.

    Example:
        >>> writer = create_writer("csv", "results.csv")
        >>> writer = create_writer("console")
    """
    file_writers: dict[str, type[CSVWriter | TextFileWriter | PlotWriter]] = {
        "csv": CSVWriter,
        "text": TextFileWriter,
        "plot": PlotWriter,
    }

    key = fmt.strip().lower()
    if key == "console":
        return ConsoleWriter()
    if key not in file_writers:
        msg = f"Unknown output format: {fmt}. Available: {['console', *file_writers]}"
        raise InvalidParameterError(msg)
    if path is None:
        raise InvalidParameterError(f"Output format '{key}' requires an output path")

    return file_writers[key](path)


__all__ = [
    "CSVWriter",
    "ConsoleWriter",
    "PlotWriter",
    "ResultWriter",
    "TextFileWriter",
    "create_writer",
    "format_scalar",
]

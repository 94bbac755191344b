"""Solver construction by algorithm name."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from eigensolve.algorithms.base import Algorithm, EigenvalueResult, EigenvalueSolver
from eigensolve.algorithms.inverse_power import ShiftedInversePowerMethod
from eigensolve.algorithms.power_method import PowerMethod
from eigensolve.algorithms.qr_method import QRMethod

if TYPE_CHECKING:
    from eigensolve.algorithms.base import CancellationToken
    from eigensolve.algorithms.parameters import Parameters
    from eigensolve.data.scalar_types import ScalarKind


def create_solver(algorithm: Algorithm | str = Algorithm.POWER) -> EigenvalueSolver[Any]:
    """Factory function to create eigenvalue solvers.

    Args:
        algorithm: Algorithm enum or name ('power', 'qr', 'shifted_inverse',
            'PowerMethod', ...).

    Returns:
        Fresh solver instance.

    Raises:
        InvalidParameterError: If the algorithm name is unknown.

    Example:
        >>> create_solver("QRMethod")
        QRMethod()
    """
    solvers: dict[Algorithm, type[EigenvalueSolver[Any]]] = {
        Algorithm.POWER: PowerMethod,
        Algorithm.QR: QRMethod,
        Algorithm.SHIFTED_INVERSE: ShiftedInversePowerMethod,
    }
    return solvers[Algorithm.parse(algorithm)]()


def solve(
    matrix: Any,
    parameters: Parameters | None = None,
    *,
    algorithm: Algorithm | str = Algorithm.POWER,
    kind: ScalarKind | str | None = None,
    cancel: CancellationToken | None = None,
    warn: bool = True,
) -> EigenvalueResult:
    """Solve ``matrix`` with a freshly created solver.

    See :meth:`EigenvalueSolver.solve` for the arguments.
    """
    return create_solver(algorithm).solve(
        matrix, parameters, kind=kind, cancel=cancel, warn=warn
    )


__all__ = [
    "create_solver",
    "solve",
]

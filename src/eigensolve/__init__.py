"""Eigensolve: iterative eigenvalue solvers for real and complex matrices."""

__version__ = "0.1.0"

from loguru import logger

from eigensolve.algorithms import (
    Algorithm,
    EigenvalueResult,
    Parameters,
    PowerMethod,
    QRMethod,
    ShiftedInversePowerMethod,
    create_solver,
    solve,
)
from eigensolve.data.scalar_types import ScalarKind
from eigensolve.errors import (
    DegenerateVectorError,
    EigenSolverError,
    InvalidParameterError,
    MatrixFormatError,
    MatrixShapeError,
    NonConvergenceWarning,
    SingularMatrixError,
)

# Silent unless an application (e.g. the CLI) enables it
logger.disable("eigensolve")

__all__ = [
    "__version__",
    "Algorithm",
    "DegenerateVectorError",
    "EigenSolverError",
    "EigenvalueResult",
    "InvalidParameterError",
    "MatrixFormatError",
    "MatrixShapeError",
    "NonConvergenceWarning",
    "Parameters",
    "PowerMethod",
    "QRMethod",
    "ScalarKind",
    "ShiftedInversePowerMethod",
    "SingularMatrixError",
    "create_solver",
    "solve",
]

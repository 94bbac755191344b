"""Exception and warning taxonomy for eigensolve.

Structural problems (bad shapes, bad parameters, malformed files) are raised
at entry. Numerical breakdowns raise ``DegenerateVectorError`` or
``SingularMatrixError``. Running out of iterations is never an exception: the
result carries ``converged=False`` and a ``NonConvergenceWarning`` is emitted.
"""


class EigenSolverError(Exception):
    """Base class for all eigensolve errors."""


class DegenerateVectorError(EigenSolverError, ArithmeticError):
    """A vector to be normalized has (near) zero norm."""


class SingularMatrixError(EigenSolverError, ArithmeticError):
    """An LU pivot fell below the stability threshold."""

    def __init__(self, message: str, *, pivot_index: int | None = None) -> None:
        super().__init__(message)
        self.pivot_index = pivot_index


class InvalidParameterError(EigenSolverError, ValueError):
    """A solver parameter is out of range or unknown."""


class MatrixShapeError(EigenSolverError, ValueError):
    """Matrix or vector has an unusable shape or content."""


class MatrixFormatError(EigenSolverError, ValueError):
    """An input file could not be parsed into a matrix problem."""


class NonConvergenceWarning(UserWarning):
    """Iteration budget exhausted before the tolerance was met."""


__all__ = [
    "DegenerateVectorError",
    "EigenSolverError",
    "InvalidParameterError",
    "MatrixFormatError",
    "MatrixShapeError",
    "NonConvergenceWarning",
    "SingularMatrixError",
]

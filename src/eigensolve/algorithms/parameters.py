"""Immutable solver configuration."""

from __future__ import annotations

import dataclasses
import math
import numbers
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np

from eigensolve.errors import InvalidParameterError

if TYPE_CHECKING:
    from numpy.typing import NDArray


DEFAULT_TOLERANCE: float = 1e-10
"""Default convergence tolerance."""

DEFAULT_MAX_ITERATIONS: int = 1000
"""Default iteration budget."""


@dataclass(frozen=True, slots=True)
class Parameters:
    """Numerical parameters consumed by every solver.

    Validated on construction: an invalid instance can never reach a solver.

    Example:
        >>> params = Parameters(tolerance=1e-8, shift=2.5)
        >>> params.with_changes(max_iterations=50).max_iterations
        50
    """

    tolerance: float = DEFAULT_TOLERANCE
    """Residual threshold below which a solve is converged."""

    max_iterations: int = DEFAULT_MAX_ITERATIONS
    """Iteration budget (global across QR deflation stages)."""

    shift: float | complex = 0.0
    """Target σ for ShiftedInversePowerMethod."""

    initial_vector: NDArray[Any] | None = field(default=None, compare=False)
    """Starting vector; a fixed-seed vector is used when None."""

    eigenvectors: bool = True
    """Whether QRMethod recovers eigenvectors after isolating eigenvalues."""

    def __post_init__(self) -> None:
        if isinstance(self.tolerance, bool) or not isinstance(self.tolerance, numbers.Real):
            msg = f"Tolerance must be a real number, got {self.tolerance!r}"
            raise InvalidParameterError(msg)
        if not math.isfinite(self.tolerance) or self.tolerance <= 0:
            msg = f"Tolerance must be positive and finite, got {self.tolerance}"
            raise InvalidParameterError(msg)
        object.__setattr__(self, "tolerance", float(self.tolerance))

        if isinstance(self.max_iterations, bool) or not isinstance(
            self.max_iterations, numbers.Integral
        ):
            msg = f"MaxIterations must be an integer, got {self.max_iterations!r}"
            raise InvalidParameterError(msg)
        if self.max_iterations <= 0:
            msg = f"MaxIterations must be positive, got {self.max_iterations}"
            raise InvalidParameterError(msg)
        object.__setattr__(self, "max_iterations", int(self.max_iterations))

        if isinstance(self.shift, bool) or not isinstance(self.shift, numbers.Number):
            msg = f"Shift must be a number, got {self.shift!r}"
            raise InvalidParameterError(msg)
        if not np.isfinite(self.shift):
            msg = f"Shift must be finite, got {self.shift}"
            raise InvalidParameterError(msg)
        shift = complex(self.shift)
        object.__setattr__(self, "shift", shift.real if shift.imag == 0 else shift)

        if self.initial_vector is not None:
            vector = np.array(self.initial_vector, copy=True)
            if vector.ndim != 1 or vector.size == 0:
                msg = f"Initial vector must be a non-empty 1-D array, got shape {vector.shape}"
                raise InvalidParameterError(msg)
            if not np.issubdtype(vector.dtype, np.number):
                msg = f"Initial vector must be numeric, got dtype {vector.dtype}"
                raise InvalidParameterError(msg)
            vector.setflags(write=False)
            object.__setattr__(self, "initial_vector", vector)

    def with_changes(self, **changes: Any) -> Parameters:
        """Return a validated copy with some fields replaced."""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for display and JSON serialization."""
        shift = self.shift
        vector = self.initial_vector
        if vector is not None and np.iscomplexobj(vector):
            initial: list[Any] | None = [[z.real, z.imag] for z in vector.tolist()]
        else:
            initial = None if vector is None else vector.tolist()
        return {
            "tolerance": self.tolerance,
            "max_iterations": self.max_iterations,
            "shift": [shift.real, shift.imag] if isinstance(shift, complex) else shift,
            "initial_vector": initial,
            "eigenvectors": self.eigenvectors,
        }


__all__ = [
    "DEFAULT_MAX_ITERATIONS",
    "DEFAULT_TOLERANCE",
    "Parameters",
]

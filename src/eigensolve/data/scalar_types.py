"""
Scalar Type Definitions - Single Source of Truth

This module defines the two scalar fields the solvers work over (real and
complex double precision) together with the numeric thresholds the kernels
use. The solvers make their real-versus-complex decisions through the helpers
here (detect_kind, promote, magnitude, conjugate, to_scalar), so one
implementation serves both fields.

References:
    - IEEE 754-2019 Standard for Floating-Point Arithmetic
    - Golub & Van Loan: "Matrix Computations" (4th ed.), Sections 3.2, 5.1, 7.3
    - Higham: "Accuracy and Stability of Numerical Algorithms" (2nd ed.)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, cast

import numpy as np
from numpy.typing import DTypeLike, NDArray

from eigensolve.errors import InvalidParameterError, MatrixShapeError


class ScalarKind(Enum):
    """Supported scalar fields."""

    REAL = "real"
    COMPLEX = "complex"


@dataclass(frozen=True, slots=True)
class ScalarSpec:
    """Specification for a scalar field."""

    kind: ScalarKind
    bits: int
    machine_epsilon: float
    components: int  # 1 for real, 2 for complex (re, im)

    @property
    def bytes(self) -> int:
        """Number of bytes per element."""
        return self.bits // 8

    @property
    def is_complex(self) -> bool:
        return self.components == 2


# =============================================================================
# SCALAR SPECIFICATIONS
# =============================================================================

_SCALAR_SPECS: dict[ScalarKind, ScalarSpec] = {
    ScalarKind.REAL: ScalarSpec(
        kind=ScalarKind.REAL,
        bits=64,
        machine_epsilon=2.22e-16,  # 2^(-52)
        components=1,
    ),
    ScalarKind.COMPLEX: ScalarSpec(
        kind=ScalarKind.COMPLEX,
        bits=128,
        machine_epsilon=2.22e-16,  # per component
        components=2,
    ),
}


# =============================================================================
# NUMERIC THRESHOLDS
# =============================================================================
# degenerate_norm: vectors with a smaller norm cannot be normalized
# pivot_rtol: LU pivots with |p| <= pivot_rtol * ||A||_inf are singular
# shift_perturbation: relative nudge applied to a shift that hit an eigenvalue
# cluster_rtol: eigenvalues this close (relative) are treated as one repeated value

_NUMERIC_THRESHOLDS: dict[ScalarKind, dict[str, float]] = {
    ScalarKind.REAL: {
        "degenerate_norm": 1e-14,
        "pivot_rtol": 1e-12,
        "shift_perturbation": 1e-8,
        "cluster_rtol": 1e-8,
    },
    ScalarKind.COMPLEX: {
        "degenerate_norm": 1e-14,
        "pivot_rtol": 1e-12,
        "shift_perturbation": 1e-8,
        "cluster_rtol": 1e-8,
    },
}


# =============================================================================
# PUBLIC API
# =============================================================================


def get_spec(kind: ScalarKind | str) -> ScalarSpec:
    """
    Get the capability record for a scalar kind.

    Args:
        kind: Scalar kind (enum or string like 'real', 'Complex', 'double')

    Returns:
        ScalarSpec with all kind properties

    Raises:
        InvalidParameterError: If kind is unknown

    Example:
        >>> get_spec("complex").bits
        128
    """
    if isinstance(kind, str):
        kind = _parse_kind(kind)
    return _SCALAR_SPECS[kind]


def get_dtype(kind: ScalarKind | str) -> DTypeLike:
    """
    Get the numpy dtype for a scalar kind.

    Example:
        >>> get_dtype("real")
        <class 'numpy.float64'>
    """
    if isinstance(kind, str):
        kind = _parse_kind(kind)

    dtype_map: dict[ScalarKind, Any] = {
        ScalarKind.REAL: np.float64,
        ScalarKind.COMPLEX: np.complex128,
    }
    return cast("DTypeLike", dtype_map[kind])


def get_eps(kind: ScalarKind | str) -> float:
    """Get machine epsilon for a scalar kind."""
    return get_spec(kind).machine_epsilon


def get_threshold(kind: ScalarKind | str, name: str) -> float:
    """
    Get a numeric threshold for a scalar kind.

    Args:
        kind: Scalar kind
        name: One of 'degenerate_norm', 'pivot_rtol', 'shift_perturbation',
            'cluster_rtol'

    Returns:
        Threshold value

    Example:
        >>> get_threshold("real", "pivot_rtol")
        1e-12
    """
    if isinstance(kind, str):
        kind = _parse_kind(kind)

    thresholds = _NUMERIC_THRESHOLDS[kind]
    if name not in thresholds:
        valid = list(thresholds.keys())
        raise ValueError(f"Unknown threshold: {name}. Valid: {valid}")

    return thresholds[name]


def list_scalar_kinds() -> list[ScalarKind]:
    """List scalar kinds in order of increasing generality."""
    return [ScalarKind.REAL, ScalarKind.COMPLEX]


def detect_kind(values: Any) -> ScalarKind:
    """Infer the scalar kind of an array or scalar."""
    if np.iscomplexobj(values):
        return ScalarKind.COMPLEX
    return ScalarKind.REAL


def magnitude(value: Any) -> float:
    """Modulus of a real or complex scalar."""
    return float(abs(value))


def conjugate(values: Any) -> Any:
    """Complex conjugate (identity for real data)."""
    if np.iscomplexobj(values):
        return np.conj(values)
    return values


def to_scalar(value: Any, kind: ScalarKind | None = None) -> float | complex:
    """Convert a numpy scalar to a plain Python float or complex.

    Real kinds always give ``float`` (the imaginary part, if any, is dropped).
    Without a kind the type of ``value`` decides.
    """
    if kind is None:
        kind = detect_kind(value)
    if kind is ScalarKind.REAL:
        return float(np.real(value))
    return complex(value)


def as_matrix(
    matrix: Any,
    kind: ScalarKind | str | None = None,
) -> NDArray[np.float64] | NDArray[np.complex128]:
    """Validate a square matrix and return a private working copy.

    Integer and boolean input promotes to float64; complex input (or an
    explicit ``kind="complex"``) gives complex128.

    Raises:
        MatrixShapeError: If the input is not a finite, non-empty square matrix.
    """
    if isinstance(kind, str):
        kind = _parse_kind(kind)

    array = np.asarray(matrix)
    if array.ndim != 2:
        raise MatrixShapeError(f"Matrix must be 2-D, got {array.ndim}-D input")
    rows, cols = array.shape
    if rows != cols:
        raise MatrixShapeError(f"Matrix must be square, got {rows}x{cols}")
    if rows == 0:
        raise MatrixShapeError("Matrix must have dimension n >= 1")

    if kind is None:
        kind = detect_kind(array)
    if kind is ScalarKind.REAL and np.iscomplexobj(array):
        raise MatrixShapeError("Complex matrix cannot be solved as real")

    working = np.array(array, dtype=get_dtype(kind), copy=True)
    if not np.all(np.isfinite(working)):
        raise MatrixShapeError("Matrix contains NaN or infinite entries")
    return working


def as_vector(
    vector: Any,
    n: int,
    dtype: DTypeLike = np.float64,
) -> NDArray[Any]:
    """Validate a length-n vector and return a copy in ``dtype``."""
    array = np.asarray(vector)
    if array.ndim != 1 or array.shape[0] != n:
        raise MatrixShapeError(
            f"Vector must have shape ({n},), got {array.shape}"
        )
    if np.iscomplexobj(array) and not np.issubdtype(np.dtype(dtype), np.complexfloating):
        dtype = np.complex128
    return np.array(array, dtype=dtype, copy=True)


def promote(kind: ScalarKind, value: Any) -> ScalarKind:
    """Return the kind needed to hold both ``kind`` data and ``value``.

    A complex value with zero imaginary part does not force promotion.
    """
    if kind is ScalarKind.COMPLEX:
        return kind
    if np.iscomplexobj(value) and np.any(np.imag(value) != 0):
        return ScalarKind.COMPLEX
    return ScalarKind.REAL


# =============================================================================
# INTERNAL HELPERS
# =============================================================================

_KIND_ALIASES: dict[str, ScalarKind] = {
    "real": ScalarKind.REAL,
    "double": ScalarKind.REAL,
    "float": ScalarKind.REAL,
    "float64": ScalarKind.REAL,
    "complex": ScalarKind.COMPLEX,
    "complex128": ScalarKind.COMPLEX,
}


def _parse_kind(name: str) -> ScalarKind:
    """Parse a string into a ScalarKind enum."""
    normalized = name.strip().lower().replace("-", "_")

    if normalized in _KIND_ALIASES:
        return _KIND_ALIASES[normalized]

    valid = [k.value for k in ScalarKind]
    raise InvalidParameterError(f"Unknown scalar kind: '{name}'. Valid: {valid}")


__all__ = [
    "ScalarKind",
    "ScalarSpec",
    "as_matrix",
    "as_vector",
    "conjugate",
    "detect_kind",
    "get_dtype",
    "get_eps",
    "get_spec",
    "get_threshold",
    "list_scalar_kinds",
    "magnitude",
    "promote",
    "to_scalar",
]

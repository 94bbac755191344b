"""Data module for scalar types and numeric thresholds."""

from eigensolve.data.scalar_types import (
    ScalarKind,
    ScalarSpec,
    as_matrix,
    as_vector,
    conjugate,
    detect_kind,
    get_dtype,
    get_eps,
    get_spec,
    get_threshold,
    list_scalar_kinds,
    magnitude,
    promote,
    to_scalar,
)

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

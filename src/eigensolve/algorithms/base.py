"""Eigenvalue solver contract and result types.

All solvers share one convergence loop: iterate up to ``max_iterations``,
compute a residual each step, stop once it drops below ``tolerance``.
Concrete solvers only supply the per-iteration update (``_step``), the state
it works on (``_start``) and the conversion of that state into eigenpairs
(``_finish``).

The set of algorithms is closed (see :class:`Algorithm`); dispatch on it
lives in :mod:`eigensolve.algorithms.factory`.
"""

from __future__ import annotations

import time
import warnings
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Generic, Protocol, TypeVar

import numpy as np
from loguru import logger

from eigensolve.algorithms.kernels import normalize
from eigensolve.algorithms.matrices import DEFAULT_SEED
from eigensolve.algorithms.parameters import Parameters
from eigensolve.data.scalar_types import (
    ScalarKind,
    as_matrix,
    as_vector,
    detect_kind,
    to_scalar,
)
from eigensolve.errors import InvalidParameterError, NonConvergenceWarning

if TYPE_CHECKING:
    from numpy.typing import NDArray


class Algorithm(Enum):
    """Supported eigenvalue algorithms."""

    POWER = "power"
    QR = "qr"
    SHIFTED_INVERSE = "shifted_inverse"

    @property
    def label(self) -> str:
        """Human-readable algorithm name."""
        return _ALGORITHM_LABELS[self]

    @classmethod
    def parse(cls, name: Algorithm | str) -> Algorithm:
        """Parse an algorithm name.

        Accepts enum values ('power', 'qr', 'shifted_inverse') and the class
        names ('PowerMethod', 'QRMethod', 'ShiftedInversePowerMethod'),
        case-insensitive.

        Raises:
            InvalidParameterError: If the name is unknown.
        """
        if isinstance(name, Algorithm):
            return name

        key = name.strip().lower().replace("-", "").replace("_", "").replace(" ", "")
        if key in _ALGORITHM_ALIASES:
            return _ALGORITHM_ALIASES[key]

        valid = [a.value for a in cls]
        raise InvalidParameterError(f"Unknown algorithm type: '{name}'. Valid: {valid}")


_ALGORITHM_LABELS: dict[Algorithm, str] = {
    Algorithm.POWER: "PowerMethod",
    Algorithm.QR: "QRMethod",
    Algorithm.SHIFTED_INVERSE: "ShiftedInversePowerMethod",
}

_ALGORITHM_ALIASES: dict[str, Algorithm] = {
    "power": Algorithm.POWER,
    "powermethod": Algorithm.POWER,
    "qr": Algorithm.QR,
    "qrmethod": Algorithm.QR,
    "shiftedinverse": Algorithm.SHIFTED_INVERSE,
    "shiftedinversepowermethod": Algorithm.SHIFTED_INVERSE,
    "inversepower": Algorithm.SHIFTED_INVERSE,
}


@dataclass(frozen=True, slots=True)
class Eigenpair:
    """One eigenvalue estimate with its eigenvector."""

    eigenvalue: float | complex
    """Eigenvalue estimate (float for real results)."""

    eigenvector: NDArray[Any] | None
    """Unit-norm eigenvector, or None when not computed."""

    iterations: int
    """Iterations spent until this pair was settled."""

    converged: bool
    """Whether the residual met the tolerance."""


@dataclass(frozen=True, slots=True)
class EigenvalueResult:
    """Outcome of a single ``solve`` call."""

    algorithm: Algorithm
    """Algorithm that produced the result."""

    scalar_kind: ScalarKind
    """Scalar kind of the input matrix."""

    pairs: tuple[Eigenpair, ...]
    """One pair for power/inverse power, up to n for QR."""

    iterations: int
    """Total iterations performed."""

    history: tuple[float, ...]
    """Residual after each iteration."""

    total_time: float
    """Wall clock time (seconds)."""

    @property
    def converged(self) -> bool:
        """True if every pair converged."""
        return bool(self.pairs) and all(pair.converged for pair in self.pairs)

    @property
    def eigenvalue(self) -> float | complex:
        """Eigenvalue of the first pair."""
        return self.pairs[0].eigenvalue

    @property
    def eigenvector(self) -> NDArray[Any] | None:
        """Eigenvector of the first pair."""
        return self.pairs[0].eigenvector

    @property
    def eigenvalues(self) -> NDArray[Any]:
        """All eigenvalues as an array (complex if any eigenvalue is)."""
        return np.array([pair.eigenvalue for pair in self.pairs])

    @property
    def final_residual(self) -> float:
        return self.history[-1] if self.history else 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "algorithm": self.algorithm.value,
            "scalar_kind": self.scalar_kind.value,
            "iterations": self.iterations,
            "converged": self.converged,
            "total_time": self.total_time,
            "pairs": [
                {
                    "eigenvalue": _jsonable(pair.eigenvalue),
                    "eigenvector": None
                    if pair.eigenvector is None
                    else [_jsonable(x) for x in pair.eigenvector.tolist()],
                    "iterations": pair.iterations,
                    "converged": pair.converged,
                }
                for pair in self.pairs
            ],
            "history": list(self.history),
        }


class CancellationToken(Protocol):
    """Anything with ``is_set()``, e.g. :class:`threading.Event`."""

    def is_set(self) -> bool: ...


StateT = TypeVar("StateT")


class EigenvalueSolver(ABC, Generic[StateT]):
    """Abstract base class for the eigenvalue algorithms.

    Subclasses must:
    1. Set the ``algorithm`` class attribute
    2. Implement _start(), _step() and _finish()

    Instances keep the residual history of their last solve for diagnostics;
    it is reset at the start of every call.
    """

    algorithm: ClassVar[Algorithm]

    def __init__(self) -> None:
        self._history: list[float] = []
        self._iterations = 0

    @property
    def history(self) -> tuple[float, ...]:
        """Residual history of the last solve."""
        return tuple(self._history)

    @property
    def iterations(self) -> int:
        """Iterations performed by the last solve."""
        return self._iterations

    def solve(
        self,
        matrix: Any,
        parameters: Parameters | None = None,
        *,
        kind: ScalarKind | str | None = None,
        cancel: CancellationToken | None = None,
        warn: bool = True,
    ) -> EigenvalueResult:
        """Run the algorithm on ``matrix``.

        Args:
            matrix: Square matrix (array-like). Never modified.
            parameters: Numerical parameters (defaults to ``Parameters()``).
            kind: Force the scalar kind; inferred from ``matrix`` if None.
            cancel: Checked before every iteration; when set, the solve stops
                and returns its best estimate marked unconverged.
            warn: Emit NonConvergenceWarning when the solve does not converge.

        Returns:
            EigenvalueResult owned by the caller.

        Raises:
            MatrixShapeError: If the matrix or initial vector is malformed.
            DegenerateVectorError: If an iterate collapses to zero.
            SingularMatrixError: If a required factorization breaks down.
        """
        if parameters is None:
            parameters = Parameters()

        A = as_matrix(matrix, kind)
        scalar_kind = detect_kind(A)
        n = A.shape[0]

        self._history = []
        self._iterations = 0
        start_time = time.perf_counter()

        logger.debug(
            "{} solve started (n={}, kind={}, tol={:.1e}, max_iter={})",
            self.algorithm.label,
            n,
            scalar_kind.value,
            parameters.tolerance,
            parameters.max_iterations,
        )

        if n == 1:
            pair = Eigenpair(
                eigenvalue=to_scalar(A[0, 0], scalar_kind),
                eigenvector=np.ones(1, dtype=A.dtype),
                iterations=0,
                converged=True,
            )
            return self._build_result(scalar_kind, (pair,), 0, start_time)

        state = self._start(A, parameters)

        early = self._early_exit(state)
        if early is not None:
            return self._build_result(scalar_kind, early, 0, start_time)

        iterations = 0
        converged = False
        for iteration in range(1, parameters.max_iterations + 1):
            if cancel is not None and cancel.is_set():
                logger.info("{} cancelled after {} iterations", self.algorithm.label, iterations)
                break

            residual = self._step(state)
            self._history.append(residual)
            iterations = iteration

            if residual < parameters.tolerance:
                converged = True
                break

        self._iterations = iterations
        pairs = self._finish(state, iterations, converged)
        result = self._build_result(scalar_kind, pairs, iterations, start_time)

        if result.converged:
            logger.debug(
                "{} converged after {} iterations", self.algorithm.label, iterations
            )
        else:
            msg = (
                f"{self.algorithm.label} failed to converge after {iterations} "
                f"iterations (last residual {result.final_residual:.3e})"
            )
            logger.warning(msg)
            if warn:
                warnings.warn(msg, NonConvergenceWarning, stacklevel=2)

        return result

    @abstractmethod
    def _start(self, A: NDArray[Any], parameters: Parameters) -> StateT:
        """Build the per-solve working state from a validated matrix copy."""

    @abstractmethod
    def _step(self, state: StateT) -> float:
        """Advance one iteration and return its residual."""

    @abstractmethod
    def _finish(
        self, state: StateT, iterations: int, converged: bool
    ) -> tuple[Eigenpair, ...]:
        """Convert the final state into eigenpairs."""

    def _early_exit(self, state: StateT) -> tuple[Eigenpair, ...] | None:  # noqa: ARG002
        """Return finished pairs to skip iteration entirely (default: never)."""
        return None

    def _build_result(
        self,
        scalar_kind: ScalarKind,
        pairs: tuple[Eigenpair, ...],
        iterations: int,
        start_time: float,
    ) -> EigenvalueResult:
        return EigenvalueResult(
            algorithm=self.algorithm,
            scalar_kind=scalar_kind,
            pairs=pairs,
            iterations=iterations,
            history=tuple(self._history),
            total_time=time.perf_counter() - start_time,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


def initial_vector(
    A: NDArray[Any],
    vector: NDArray[Any] | None = None,
    *,
    seed: int = DEFAULT_SEED,
) -> NDArray[Any]:
    """Normalized starting vector for the vector iterations.

    Uses ``vector`` when given, otherwise a ``seed``-ed
    standard normal vector (complex for complex matrices) so that runs are
    reproducible and the start is almost surely not orthogonal to the target
    eigenvector.
    """
    n = A.shape[0]
    if vector is not None:
        vector = as_vector(vector, n, A.dtype)
    else:
        rng = np.random.default_rng(seed)
        vector = rng.standard_normal(n).astype(A.dtype)
        if detect_kind(A) is ScalarKind.COMPLEX:
            vector = vector + 1j * rng.standard_normal(n)
    return normalize(vector)


def _jsonable(value: Any) -> Any:
    """Represent complex numbers as [re, im] pairs."""
    if isinstance(value, complex):
        return [value.real, value.imag]
    return value


__all__ = [
    "Algorithm",
    "CancellationToken",
    "Eigenpair",
    "EigenvalueResult",
    "EigenvalueSolver",
    "initial_vector",
]

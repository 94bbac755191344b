"""Power iteration with ping-pong buffer optimization.

Computes the eigenvalue of largest magnitude and its eigenvector for real or
complex matrices.

Key Optimizations:
- Ping-pong buffer pattern eliminates allocations in hot loop
- Self-timing for performance analysis

Convergence:
    The residual of step k is max(|λ_k - λ_{k-1}|, ||A v - λ_k v|| / max(|λ_k|, 1)).
    The second term matters when two eigenvalues share the largest magnitude
    (λ and -λ, or a complex-conjugate pair of a real matrix): the Rayleigh
    quotient then settles on a value that is not an eigenvalue, and only the
    eigenpair residual exposes it. Such runs end unconverged.

References:
- Golub & Van Loan: "Matrix Computations" (4th ed.), §7.3
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from eigensolve.algorithms.base import (
    Algorithm,
    Eigenpair,
    EigenvalueSolver,
    initial_vector as _initial_vector,
)
from eigensolve.algorithms.kernels import (
    eigenpair_residual,
    normalize,
    rayleigh_quotient,
    vector_norm,
)
from eigensolve.algorithms.parameters import Parameters
from eigensolve.data.scalar_types import as_matrix, detect_kind, magnitude, to_scalar

if TYPE_CHECKING:
    from numpy.typing import NDArray


@dataclass(frozen=True, slots=True)
class IterationResult:
    """Result of a single power iteration."""

    eigenvalue: float | complex
    """Rayleigh quotient estimate."""

    eigenvalue_change: float
    """|λ_k - λ_{k-1}| (inf on the first step)."""

    residual_norm: float
    """Normalized eigenpair residual ||A*x - λ*x|| / max(|λ|, 1)."""

    algorithm_time: float
    """Time for iteration (seconds)."""

    @property
    def residual(self) -> float:
        """Convergence residual compared against the tolerance."""
        return max(self.eigenvalue_change, self.residual_norm)


class PowerIteration:
    """Power method engine with ping-pong buffer optimization.

    Eliminates array allocations in hot loop by alternating between two
    pre-allocated vectors in an Nx2 matrix (column-major for BLAS efficiency).

    Example:
        >>> from eigensolve.algorithms.matrices import create_linear_spectrum_matrix
        >>> A = create_linear_spectrum_matrix(50, condition_number=10, seed=0)
        >>> engine = PowerIteration(A)
        >>> for i in range(500):
        ...     result = engine.iterate()
        ...     if result.residual < 1e-10:
        ...         break
    """

    __slots__ = (
        "_A",
        "_kind",
        "_n",
        "_vectors",
        "_current_idx",
        "_eigenvalue",
    )

    def __init__(
        self,
        A: NDArray[Any],
        *,
        initial_vector: NDArray[Any] | None = None,
    ) -> None:
        """Initialize power iteration engine.

        Args:
            A: Square input matrix (real or complex). Copied.
            initial_vector: Starting vector (optional, fixed-seed random if None).
        """
        self._A = as_matrix(A)
        self._kind = detect_kind(self._A)
        self._n = self._A.shape[0]

        start = _initial_vector(self._A, initial_vector)
        dtype = np.result_type(self._A, start)

        # Initialize ping-pong buffer (Nx2, column-major for BLAS)
        self._vectors = np.zeros((self._n, 2), dtype=dtype, order="F")
        self._vectors[:, 0] = start
        self._current_idx = 0
        self._eigenvalue: Any = None

    def iterate(self) -> IterationResult:
        """Execute single power iteration with self-timing.

        Algorithm:
            1. Matrix-vector multiply: y = A @ x
            2. Normalize: x_new = y / ||y||
            3. Rayleigh quotient: λ = x_new^H @ A @ x_new

        Returns:
            IterationResult with eigenvalue, residuals and timing.

        Raises:
            DegenerateVectorError: If A @ x vanishes (x in the null space).
        """
        start = time.perf_counter()

        # Ping-pong: alternate between vectors
        next_idx = 1 - self._current_idx
        current_vec = self._vectors[:, self._current_idx]
        next_vec = self._vectors[:, next_idx]

        next_vec[:] = normalize(self._A @ current_vec)

        eigenvalue = rayleigh_quotient(self._A, next_vec)
        if self._eigenvalue is None:
            change = float("inf")
        else:
            change = magnitude(eigenvalue - self._eigenvalue)
        residual_norm = eigenpair_residual(self._A, next_vec, eigenvalue)

        self._current_idx = next_idx
        self._eigenvalue = eigenvalue

        return IterationResult(
            eigenvalue=to_scalar(eigenvalue, self._kind),
            eigenvalue_change=change,
            residual_norm=residual_norm,
            algorithm_time=time.perf_counter() - start,
        )

    @property
    def eigenvalue(self) -> float | complex | None:
        """Latest Rayleigh quotient (None before the first iteration)."""
        if self._eigenvalue is None:
            return None
        return to_scalar(self._eigenvalue, self._kind)

    @property
    def current_vector(self) -> NDArray[Any]:
        """Return view of current eigenvector (no copy)."""
        return self._vectors[:, self._current_idx]

    @property
    def vector_norm(self) -> float:
        """Get norm of current eigenvector (should be ~1.0)."""
        return vector_norm(self._vectors[:, self._current_idx])


class PowerMethod(EigenvalueSolver[PowerIteration]):
    """Dominant eigenpair via repeated multiplication and normalization.

    Example:
        >>> result = PowerMethod().solve(np.diag([1.0, 2.0, 3.0]))
        >>> round(result.eigenvalue, 8)
        3.0
    """

    algorithm = Algorithm.POWER

    def _start(self, A: NDArray[Any], parameters: Parameters) -> PowerIteration:
        return PowerIteration(A, initial_vector=parameters.initial_vector)

    def _step(self, state: PowerIteration) -> float:
        return state.iterate().residual

    def _finish(
        self, state: PowerIteration, iterations: int, converged: bool
    ) -> tuple[Eigenpair, ...]:
        eigenvalue = state.eigenvalue
        return (
            Eigenpair(
                eigenvalue=float("nan") if eigenvalue is None else eigenvalue,
                eigenvector=state.current_vector.copy(),
                iterations=iterations,
                converged=converged,
            ),
        )


@dataclass(frozen=True, slots=True)
class PowerMethodTrace:
    """Complete trace of power method execution."""

    iterations: int
    """Number of iterations performed."""

    final_eigenvalue: float | complex
    """Final eigenvalue estimate."""

    final_residual: float
    """Final convergence residual."""

    converged: bool
    """Whether convergence criteria were met."""

    total_time: float
    """Total execution time (seconds)."""

    eigenvector: NDArray[Any]
    """Final unit eigenvector estimate."""

    history: list[dict]
    """Per-iteration metrics."""


def run_power_method(
    A: NDArray[Any],
    *,
    parameters: Parameters | None = None,
) -> PowerMethodTrace:
    """Run power method to convergence, recording per-iteration metrics.

    Convenience function for experiments and plotting; ``PowerMethod.solve``
    is the regular entry point.

    Args:
        A: Input matrix.
        parameters: Tolerance, budget and starting vector.

    Returns:
        PowerMethodTrace with complete execution history.
    """
    if parameters is None:
        parameters = Parameters()

    engine = PowerIteration(A, initial_vector=parameters.initial_vector)

    history: list[dict] = []
    start_time = time.perf_counter()
    cumulative_algo_time = 0.0
    converged = False

    for iteration in range(1, parameters.max_iterations + 1):
        iter_result = engine.iterate()
        cumulative_algo_time += iter_result.algorithm_time

        history.append(
            {
                "iteration": iteration,
                "eigenvalue": iter_result.eigenvalue,
                "eigenvalue_change": iter_result.eigenvalue_change,
                "residual_norm": iter_result.residual_norm,
                "algorithm_time": iter_result.algorithm_time,
                "cumulative_algorithm_time": cumulative_algo_time,
            }
        )

        if iter_result.residual < parameters.tolerance:
            converged = True
            break

    final = history[-1]

    return PowerMethodTrace(
        iterations=len(history),
        final_eigenvalue=final["eigenvalue"],
        final_residual=max(final["eigenvalue_change"], final["residual_norm"]),
        converged=converged,
        total_time=time.perf_counter() - start_time,
        eigenvector=engine.current_vector.copy(),
        history=history,
    )


__all__ = [
    "IterationResult",
    "PowerIteration",
    "PowerMethod",
    "PowerMethodTrace",
    "run_power_method",
]

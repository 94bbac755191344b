"""Shifted QR iteration with deflation.

Computes the full spectrum. Each step factors the active leading block
A - μI = QR and replaces it by RQ + μI, a unitary similarity that drives the
trailing row of the block towards zero. Once that row is negligible its
diagonal entry is an eigenvalue and the active block shrinks by one.

Shift Strategy:
    Wilkinson shift (eigenvalue of the trailing 2x2 block closest to the last
    diagonal entry), which converges quadratically in general and cubically
    for symmetric matrices. Every 10 steps without a deflation an exceptional
    shift breaks the cycles plain Wilkinson shifts can fall into.

Complex Eigenvalues:
    A real matrix with a complex-conjugate pair cannot deflate it in real
    arithmetic. When the Wilkinson shift of a real working matrix comes out
    non-real, the working matrix is promoted to complex and the iteration
    continues with complex shifts.

References:
- Golub & Van Loan: "Matrix Computations" (4th ed.), §7.5
- Trefethen & Bau: "Numerical Linear Algebra", Lecture 29
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np
from loguru import logger

from eigensolve.algorithms.base import Algorithm, Eigenpair, EigenvalueSolver, initial_vector
from eigensolve.algorithms.inverse_power import ShiftedInversePowerMethod
from eigensolve.algorithms.kernels import (
    dot,
    normalize,
    qr_decompose,
    vector_norm,
    wilkinson_shift,
)
from eigensolve.algorithms.matrices import DEFAULT_SEED
from eigensolve.algorithms.parameters import Parameters
from eigensolve.data.scalar_types import (
    ScalarKind,
    detect_kind,
    get_dtype,
    get_threshold,
    magnitude,
    promote,
    to_scalar,
)

if TYPE_CHECKING:
    from numpy.typing import NDArray


EXCEPTIONAL_SHIFT_PERIOD: int = 10
"""Steps without a deflation after which an exceptional shift is used."""

EXCEPTIONAL_SHIFT_FACTOR: float = 0.75
"""Weight of the trailing row norm in the exceptional shift."""


@dataclass(slots=True)
class QRState:
    """Working state of one QR solve."""

    matrix: NDArray[Any]
    """Untouched copy of the input, used for eigenvector recovery."""

    A: NDArray[Any]
    """Iterated matrix; its leading ``active`` block is still being reduced."""

    input_kind: ScalarKind
    parameters: Parameters
    active: int
    deflated_at: list[int] = field(default_factory=list)
    steps: int = 0
    since_deflation: int = 0

    @property
    def kind(self) -> ScalarKind:
        return detect_kind(self.A)


def trailing_residual(A: NDArray[Any], m: int) -> float:
    """Largest off-diagonal magnitude in row m-1 of the leading m×m block.

    Scaled by max(1, |A[m-1, m-1]|) like the eigenpair residual.
    """
    if m <= 1:
        return 0.0
    off_diagonal = float(np.max(np.abs(A[m - 1, : m - 1])))
    return off_diagonal / max(1.0, magnitude(A[m - 1, m - 1]))


class QRMethod(EigenvalueSolver[QRState]):
    """All eigenvalues via Wilkinson-shifted QR iteration with deflation.

    ``max_iterations`` is a budget shared by all deflation stages. Eigenvalues
    are reported in diagonal order of the final matrix; each pair records the
    global step at which it deflated.

    Example:
        >>> result = QRMethod().solve(np.diag([1.0, 2.0, 3.0]))
        >>> sorted(round(x, 8) for x in result.eigenvalues)
        [1.0, 2.0, 3.0]
    """

    algorithm = Algorithm.QR

    def _start(self, A: NDArray[Any], parameters: Parameters) -> QRState:
        n = A.shape[0]
        return QRState(
            matrix=A.copy(),
            A=A,
            input_kind=detect_kind(A),
            parameters=parameters,
            active=n,
            deflated_at=[0] * n,
        )

    def _step(self, state: QRState) -> float:
        state.steps += 1
        state.since_deflation += 1

        mu = self._shift(state)
        m = state.active
        block = state.A[:m, :m]
        identity = np.eye(m, dtype=state.A.dtype)

        Q, R = qr_decompose(block - mu * identity)
        state.A[:m, :m] = R @ Q + mu * identity

        self._deflate(state)
        return trailing_residual(state.A, state.active)

    def _shift(self, state: QRState) -> float | complex:
        m = state.active
        A = state.A

        if state.since_deflation % EXCEPTIONAL_SHIFT_PERIOD == 0:
            mu = A[m - 1, m - 1] + EXCEPTIONAL_SHIFT_FACTOR * vector_norm(A[m - 1, : m - 1])
            logger.debug("Exceptional shift {} at step {}", mu, state.steps)
            return to_scalar(mu, state.kind)

        mu = wilkinson_shift(A[m - 2 : m, m - 2 : m])
        kind = promote(state.kind, mu)
        if kind is not state.kind:
            logger.debug(
                "Trailing block has non-real eigenvalues at step {}: promoting to complex",
                state.steps,
            )
            state.A = state.A.astype(get_dtype(kind))
        return to_scalar(mu, kind)

    def _deflate(self, state: QRState) -> None:
        tolerance = state.parameters.tolerance
        while state.active > 1 and trailing_residual(state.A, state.active) < tolerance:
            state.active -= 1
            state.deflated_at[state.active] = state.steps
            state.since_deflation = 0
            logger.debug(
                "Deflated eigenvalue {} at step {} ({} remaining)",
                state.A[state.active, state.active],
                state.steps,
                state.active,
            )

        if state.active == 1:
            state.active = 0
            state.deflated_at[0] = state.steps

    def _finish(
        self, state: QRState, iterations: int, converged: bool
    ) -> tuple[Eigenpair, ...]:
        parameters = state.parameters
        recover = parameters.eigenvectors
        cluster = get_threshold(state.input_kind, "cluster_rtol")
        recovered: list[tuple[float | complex, NDArray[Any]]] = []
        pairs = []

        for i, value in enumerate(np.diag(state.A)):
            settled = i >= state.active
            eigenvalue = self._report(value, state.input_kind, parameters.tolerance)
            eigenvector = None
            if recover and settled:
                scale = cluster * max(1.0, magnitude(eigenvalue))
                previous = [v for mu, v in recovered if magnitude(eigenvalue - mu) <= scale]
                eigenvector = _eigenvector(state.matrix, eigenvalue, parameters, previous)
                if eigenvector is not None:
                    recovered.append((eigenvalue, eigenvector))
            pairs.append(
                Eigenpair(
                    eigenvalue=eigenvalue,
                    eigenvector=eigenvector,
                    iterations=state.deflated_at[i] if settled else iterations,
                    converged=settled,
                )
            )

        return tuple(pairs)

    @staticmethod
    def _report(value: Any, input_kind: ScalarKind, tolerance: float) -> float | complex:
        """Python scalar for a diagonal entry; near-real values of real input become floats."""
        value = complex(value)
        if input_kind is ScalarKind.REAL and magnitude(value.imag) <= tolerance * max(
            1.0, magnitude(value)
        ):
            return to_scalar(value, ScalarKind.REAL)
        return value


def _eigenvector(
    matrix: NDArray[Any],
    eigenvalue: float | complex,
    parameters: Parameters,
    previous: list[NDArray[Any]],
) -> NDArray[Any] | None:
    """Inverse iteration with the isolated eigenvalue as shift.

    ``previous`` holds the vectors already recovered for copies of a repeated
    eigenvalue. Each copy starts from its own seeded vector, orthogonalized
    against them, so a non-defective repeated eigenvalue yields independent
    eigenvectors. A defective one still returns its single eigenvector
    direction.
    """
    start = initial_vector(matrix, seed=DEFAULT_SEED + len(previous))
    for v in previous:
        start = start - dot(v, start) * v

    result = ShiftedInversePowerMethod().solve(
        matrix,
        parameters.with_changes(shift=eigenvalue, initial_vector=normalize(start)),
        warn=False,
    )
    return result.eigenvector


__all__ = [
    "EXCEPTIONAL_SHIFT_FACTOR",
    "EXCEPTIONAL_SHIFT_PERIOD",
    "QRMethod",
    "QRState",
    "trailing_residual",
]

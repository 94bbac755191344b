"""Numeric kernels shared by the eigenvalue solvers.

Pure functions over numpy arrays; nothing here keeps state. Every kernel
works for real (float64) and complex (complex128) data: inner products
conjugate their first argument and all comparisons use magnitudes.

Kernels:
- Vector norm, inner product, normalization and Rayleigh quotient
- Householder QR decomposition
- LU decomposition with partial pivoting and the matching triangular solve
- Wilkinson shift of a trailing 2x2 block

References:
- Golub & Van Loan: "Matrix Computations" (4th ed.), §3.2 (LU), §5.1-5.2 (Householder QR)
- Trefethen & Bau: "Numerical Linear Algebra", Lectures 10, 20-21, 27-29
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np

from eigensolve.data.scalar_types import conjugate, detect_kind, get_threshold, magnitude
from eigensolve.errors import DegenerateVectorError, MatrixShapeError, SingularMatrixError

if TYPE_CHECKING:
    from numpy.typing import NDArray


def dot(u: NDArray[Any], v: NDArray[Any]) -> Any:
    """Inner product u^H v (conjugates ``u``)."""
    return np.vdot(u, v)


def vector_norm(v: NDArray[Any]) -> float:
    """Euclidean norm (Hermitian for complex vectors)."""
    return float(np.sqrt(np.real(dot(v, v))))


def normalize(v: NDArray[Any], *, threshold: float | None = None) -> NDArray[Any]:
    """Return ``v`` scaled to unit norm.

    Args:
        v: Vector to normalize (not modified).
        threshold: Smallest acceptable norm. Defaults to the scalar kind's
            ``degenerate_norm`` threshold.

    Raises:
        DegenerateVectorError: If the norm is below ``threshold`` or NaN.
    """
    if threshold is None:
        threshold = get_threshold(detect_kind(v), "degenerate_norm")

    norm = vector_norm(v)
    if np.isnan(norm) or norm < threshold:
        msg = f"Cannot normalize vector with norm {norm:.3e} (threshold {threshold:.1e})"
        raise DegenerateVectorError(msg)

    return v / norm


def rayleigh_quotient(A: NDArray[Any], v: NDArray[Any]) -> Any:
    """Rayleigh quotient v^H A v / v^H v."""
    return dot(v, A @ v) / dot(v, v)


def eigenpair_residual(A: NDArray[Any], v: NDArray[Any], eigenvalue: Any) -> float:
    """Normalized eigenpair residual ||A v - λ v|| / (max(|λ|, 1) * ||v||).

    Relative to |λ| for large eigenvalues, absolute near zero.
    """
    residual = A @ v - eigenvalue * v
    scale = max(magnitude(eigenvalue), 1.0) * vector_norm(v)
    if scale == 0.0:
        return float("inf")
    return vector_norm(residual) / scale


def qr_decompose(M: NDArray[Any]) -> tuple[NDArray[Any], NDArray[Any]]:
    """Householder QR factorization M = Q R.

    Each step reflects the sub-column below the diagonal onto a multiple of
    the first unit vector, choosing the reflection sign (phase, for complex
    data) that avoids cancellation.

    Args:
        M: Square matrix (not modified).

    Returns:
        Tuple (Q, R) with Q orthogonal/unitary and R upper triangular.
    """
    R = np.array(M, dtype=np.result_type(M, np.float64), copy=True)
    n = R.shape[0]
    Q = np.eye(n, dtype=R.dtype)

    for k in range(n - 1):
        x = R[k:, k]
        x_norm = vector_norm(x)
        if x_norm == 0.0:
            continue

        alpha = x[0]
        phase = alpha / magnitude(alpha) if alpha != 0 else 1.0

        v = x.copy()
        v[0] += phase * x_norm
        v /= vector_norm(v)

        # H = I - 2 v v^H, applied from the left to R and from the right to Q
        R[k:, k:] -= 2.0 * np.outer(v, conjugate(v) @ R[k:, k:])
        Q[:, k:] -= 2.0 * np.outer(Q[:, k:] @ v, conjugate(v))

    return Q, np.triu(R)


def lu_decompose(
    M: NDArray[Any],
    *,
    pivot_rtol: float | None = None,
) -> tuple[NDArray[Any], NDArray[Any], NDArray[np.float64]]:
    """LU factorization with partial pivoting: P M = L U.

    Args:
        M: Square matrix (not modified).
        pivot_rtol: Pivots with |p| <= pivot_rtol * ||M||_inf are treated as
            zero. Defaults to the scalar kind's ``pivot_rtol`` threshold.

    Returns:
        Tuple (L, U, P): unit lower triangular L, upper triangular U and
        permutation matrix P.

    Raises:
        SingularMatrixError: If a pivot falls below the stability threshold.

    Example:
        >>> L, U, P = lu_decompose(np.array([[0.0, 1.0], [2.0, 3.0]]))
        >>> np.allclose(P @ np.array([[0.0, 1.0], [2.0, 3.0]]), L @ U)
        True
    """
    A = np.array(M, dtype=np.result_type(M, np.float64), copy=True)
    n = A.shape[0]

    if pivot_rtol is None:
        pivot_rtol = get_threshold(detect_kind(A), "pivot_rtol")

    matrix_norm = float(np.max(np.sum(np.abs(A), axis=1)))
    threshold = pivot_rtol * matrix_norm

    L = np.eye(n, dtype=A.dtype)
    perm = np.arange(n)

    for k in range(n):
        p = k + int(np.argmax(np.abs(A[k:, k])))
        pivot = A[p, k]
        if magnitude(pivot) <= threshold:
            msg = (
                f"Pivot {magnitude(pivot):.3e} at column {k} is below the stability "
                f"threshold {threshold:.3e}"
            )
            raise SingularMatrixError(msg, pivot_index=k)

        if p != k:
            A[[k, p], :] = A[[p, k], :]
            L[[k, p], :k] = L[[p, k], :k]
            perm[[k, p]] = perm[[p, k]]

        factors = A[k + 1 :, k] / A[k, k]
        L[k + 1 :, k] = factors
        A[k + 1 :, k:] -= np.outer(factors, A[k, k:])

    P = np.eye(n)[perm]
    return L, np.triu(A), P


def lu_solve(
    L: NDArray[Any],
    U: NDArray[Any],
    P: NDArray[np.float64],
    b: NDArray[Any],
) -> NDArray[Any]:
    """Solve M x = b given P M = L U from :func:`lu_decompose`."""
    b = np.asarray(b)
    n = L.shape[0]
    if b.shape != (n,):
        raise MatrixShapeError(f"Right-hand side must have shape ({n},), got {b.shape}")

    dtype = np.result_type(L, U, b, np.float64)

    # Forward substitution: L y = P b (unit diagonal)
    y = np.asarray(P @ b, dtype=dtype)
    for i in range(1, n):
        y[i] -= L[i, :i] @ y[:i]

    # Back substitution: U x = y
    x = np.empty(n, dtype=dtype)
    for i in range(n - 1, -1, -1):
        x[i] = (y[i] - U[i, i + 1 :] @ x[i + 1 :]) / U[i, i]

    return x


def wilkinson_shift(block: NDArray[Any]) -> complex:
    """Eigenvalue of the trailing 2x2 block closest to its last diagonal entry.

    Always returned as a complex number; the imaginary part is exactly zero
    when the 2x2 block of a real matrix has real eigenvalues.
    """
    a = complex(block[-2, -2])
    b = complex(block[-2, -1])
    c = complex(block[-1, -2])
    d = complex(block[-1, -1])

    half_trace = (a + d) / 2
    discriminant = complex(np.sqrt(complex(half_trace**2 - (a * d - b * c))))

    mu1 = half_trace + discriminant
    mu2 = half_trace - discriminant
    return mu1 if magnitude(d - mu1) <= magnitude(d - mu2) else mu2


__all__ = [
    "dot",
    "eigenpair_residual",
    "lu_decompose",
    "lu_solve",
    "normalize",
    "qr_decompose",
    "rayleigh_quotient",
    "vector_norm",
    "wilkinson_shift",
]

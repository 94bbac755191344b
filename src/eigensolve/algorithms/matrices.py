"""Matrix generation utilities with known spectra.

Used by the test-suite, the ``demo`` command and the trace experiments to
build matrices whose eigenvalues are known in advance.

Key Features:
- Reproducible generation with seed control
- Symmetric (orthogonal similarity) and non-symmetric (general similarity) constructions
- Complex spectra, including real matrices with complex-conjugate pairs

References:
- Golub & Van Loan: "Matrix Computations" (4th ed.), Section 7.3
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import NDArray


DEFAULT_SEED: int = 42
"""Default random seed for reproducible matrices and starting vectors."""


def _random_orthogonal(
    rng: np.random.Generator, n: int, *, complex_: bool = False
) -> NDArray[Any]:
    """Random orthogonal (or unitary) matrix via QR of a Gaussian matrix."""
    G = rng.standard_normal((n, n))
    if complex_:
        G = G + 1j * rng.standard_normal((n, n))
    Q, _ = np.linalg.qr(G)
    return Q


def create_known_spectrum_matrix(
    eigenvalues: Sequence[float | complex],
    *,
    symmetric: bool = True,
    seed: int | None = DEFAULT_SEED,
) -> NDArray[Any]:
    """Create a matrix with exactly the given eigenvalues.

    Mathematical Construction:
        symmetric:     A = Q @ diag(λ) @ Q^H   (Q orthogonal, unitary if λ complex)
        non-symmetric: A = S @ diag(λ) @ S^-1  (S = Q @ diag(d), d in [1, 2])

    The non-symmetric construction keeps cond(S) <= 2 so the eigenvalues
    survive round-off.

    Args:
        eigenvalues: Desired spectrum.
        symmetric: Build a symmetric/Hermitian (normal) matrix.
        seed: Random seed for reproducibility.

    Returns:
        n×n matrix, float64 for real spectra, complex128 otherwise.

    Example:
        >>> A = create_known_spectrum_matrix([1.0, 2.0, 3.0], seed=0)
        >>> np.allclose(sorted(np.linalg.eigvalsh(A)), [1.0, 2.0, 3.0])
        True
    """
    values = np.asarray(eigenvalues)
    n = values.shape[0]
    is_complex = bool(np.iscomplexobj(values) and np.any(np.imag(values) != 0))
    rng = np.random.default_rng(seed)

    Q = _random_orthogonal(rng, n, complex_=is_complex)
    if symmetric:
        A = Q @ np.diag(values) @ Q.conj().T
    else:
        S = Q @ np.diag(rng.uniform(1.0, 2.0, n))
        A = S @ np.diag(values) @ np.linalg.inv(S)

    if not is_complex:
        return np.real(A).astype(np.float64)
    return A.astype(np.complex128)


def create_linear_spectrum_matrix(
    n: int,
    condition_number: float,
    *,
    seed: int | None = None,
) -> NDArray[np.float64]:
    """Create SPD matrix with linearly spaced eigenvalues.

    Eigenvalue distribution: [1.0, ..., κ] (linearly spaced)

    Mathematical Construction:
        λ_i = 1 + (κ-1) * (i-1)/(n-1)  for i = 1, ..., n
        A = Q @ diag(λ) @ Q^T  where Q is random orthogonal

    Args:
        n: Matrix dimension.
        condition_number: Desired condition number κ = λ_max / λ_min.
        seed: Random seed for reproducibility.

    Returns:
        n×n symmetric positive definite matrix.
    """
    eigenvalues = np.linspace(1.0, condition_number, n)
    return create_known_spectrum_matrix(eigenvalues, seed=seed)


def create_slow_convergence_matrix(
    n: int,
    condition_number: float,
    *,
    eigenvalue_gap: float = 1.1,
    seed: int | None = None,
) -> NDArray[np.float64]:
    """Create SPD matrix with small gap between dominant eigenvalues.

    Eigenvalue distribution:
        λ₁ = κ (largest)
        λ₂ = κ / eigenvalue_gap (only ~10% smaller by default)
        λ₃...λₙ = geometric decay from λ₂ to 1.0

    Power iteration converges like (λ₂/λ₁)^k, so this matrix makes the
    difference between power iteration and the shifted methods visible.

    Args:
        n: Matrix dimension.
        condition_number: Desired condition number κ = λ_max / λ_min.
        eigenvalue_gap: Ratio λ₁/λ₂ (default 1.1 for 10% gap).
        seed: Random seed for reproducibility.

    Returns:
        n×n symmetric positive definite matrix with slow convergence.
    """
    eigenvalues = np.zeros(n)
    eigenvalues[0] = condition_number
    if n > 1:
        eigenvalues[1:] = np.geomspace(condition_number / eigenvalue_gap, 1.0, n - 1)

    return create_known_spectrum_matrix(eigenvalues, seed=seed)


def create_rotation_matrix(theta: float, *, scale: float = 1.0) -> NDArray[np.float64]:
    """Real 2×2 rotation-scaling matrix with eigenvalues scale·e^{±iθ}.

    The simplest real matrix whose eigenvalues form a complex-conjugate pair.
    """
    c, s = np.cos(theta), np.sin(theta)
    return scale * np.array([[c, -s], [s, c]])


__all__ = [
    "DEFAULT_SEED",
    "create_known_spectrum_matrix",
    "create_linear_spectrum_matrix",
    "create_rotation_matrix",
    "create_slow_convergence_matrix",
]

"""Tests for the shifted QR method."""

import numpy as np
import pytest

from eigensolve.algorithms.matrices import (
    _random_orthogonal,
    create_known_spectrum_matrix,
    create_rotation_matrix,
)
from eigensolve.algorithms.parameters import Parameters
from eigensolve.algorithms.qr_method import QRMethod, trailing_residual
from eigensolve.errors import NonConvergenceWarning


def _assert_spectrum(computed: np.ndarray, expected: list[complex], atol: float) -> None:
    """Every expected eigenvalue is matched by a distinct computed one."""
    remaining = list(computed)
    for value in expected:
        distances = [abs(c - value) for c in remaining]
        best = int(np.argmin(distances))
        assert distances[best] < atol, f"{value} not found in {computed}"
        remaining.pop(best)


def _real_matrix_with_conjugate_pair(seed: int = 7) -> np.ndarray:
    """Real 3x3 matrix with eigenvalues 1 ± 2i and 3."""
    block = np.array([[1.0, -2.0, 0.0], [2.0, 1.0, 0.0], [0.0, 0.0, 3.0]])
    Q = _random_orthogonal(np.random.default_rng(seed), 3)
    return Q @ block @ Q.T


class TestSymmetric:
    """Tests on symmetric matrices with real spectra."""

    def test_three_by_three(self) -> None:
        """Eigenvalues {1, 2, 3} are all found and all converge."""
        A = create_known_spectrum_matrix([1.0, 2.0, 3.0], seed=0)
        result = QRMethod().solve(A)

        assert result.converged
        assert len(result.pairs) == 3
        assert all(pair.converged for pair in result.pairs)
        assert np.allclose(sorted(result.eigenvalues), [1.0, 2.0, 3.0], atol=1e-9)

    def test_real_eigenvalues_are_floats(self) -> None:
        A = create_known_spectrum_matrix([1.0, 2.0, 3.0], seed=0)
        result = QRMethod().solve(A)
        assert all(isinstance(pair.eigenvalue, float) for pair in result.pairs)

    def test_larger_spectrum(self) -> None:
        """Eight well separated eigenvalues, including negative ones."""
        values = [-4.0, -1.5, 0.5, 1.0, 2.0, 3.5, 5.0, 9.0]
        A = create_known_spectrum_matrix(values, seed=11)
        result = QRMethod().solve(A)

        assert result.converged
        assert np.allclose(sorted(result.eigenvalues), values, atol=1e-8)

    def test_eigenvectors(self) -> None:
        """Each recovered eigenvector satisfies A v = λ v."""
        A = create_known_spectrum_matrix([1.0, 2.0, 3.0], seed=0)
        result = QRMethod().solve(A)

        for pair in result.pairs:
            assert pair.eigenvector is not None
            assert np.isclose(np.linalg.norm(pair.eigenvector), 1.0)
            residual = A @ pair.eigenvector - pair.eigenvalue * pair.eigenvector
            assert np.linalg.norm(residual) < 1e-6

    def test_eigenvectors_disabled(self) -> None:
        A = create_known_spectrum_matrix([1.0, 2.0, 3.0], seed=0)
        result = QRMethod().solve(A, Parameters(eigenvectors=False))
        assert all(pair.eigenvector is None for pair in result.pairs)

    def test_diagonal_order_and_single_step(self) -> None:
        """A diagonal matrix deflates in one step and keeps its diagonal order."""
        result = QRMethod().solve(np.diag([3.0, 1.0, 2.0]))

        assert result.converged
        assert result.iterations == 1
        assert np.allclose(result.eigenvalues, [3.0, 1.0, 2.0])
        assert all(pair.iterations == 1 for pair in result.pairs)

    def test_repeated_eigenvalue_has_independent_eigenvectors(self) -> None:
        """Each copy of a repeated eigenvalue gets its own eigenvector."""
        A = 2.0 * np.eye(3)
        result = QRMethod().solve(A)

        vectors = [pair.eigenvector for pair in result.pairs]
        assert all(v is not None for v in vectors)
        V = np.column_stack(vectors)
        assert np.allclose(V.conj().T @ V, np.eye(3), atol=1e-8)
        assert np.linalg.norm(A @ V - 2.0 * V) < 1e-10

    def test_repeated_eigenvalue_of_dense_symmetric_matrix(self) -> None:
        """Eigenvalue 1 of multiplicity two spans a two-dimensional eigenspace."""
        A = create_known_spectrum_matrix([1.0, 1.0, 3.0], seed=0)
        result = QRMethod().solve(A)

        ones = [pair.eigenvector for pair in result.pairs if abs(pair.eigenvalue - 1.0) < 1e-8]
        assert len(ones) == 2
        v1, v2 = ones
        assert v1 is not None and v2 is not None
        assert abs(np.vdot(v1, v2)) < 1e-6
        for v in (v1, v2):
            assert np.linalg.norm(A @ v - v) < 1e-6


class TestNonsymmetric:
    """Tests on general real and complex matrices."""

    def test_nonsymmetric_real_spectrum(self) -> None:
        values = [1.0, 2.0, 3.0, 4.0, 5.0]
        A = create_known_spectrum_matrix(values, symmetric=False, seed=5)
        result = QRMethod().solve(A)

        assert result.converged
        assert np.allclose(sorted(result.eigenvalues), values, atol=1e-7)

    def test_rotation_matrix_complex_pair(self) -> None:
        """Real 2x2 rotation-scaling matrix: eigenvalues 2·e^{±iπ/3}."""
        A = create_rotation_matrix(np.pi / 3, scale=2.0)
        result = QRMethod().solve(A)

        assert result.converged
        assert all(isinstance(pair.eigenvalue, complex) for pair in result.pairs)
        expected = [2 * np.exp(1j * np.pi / 3), 2 * np.exp(-1j * np.pi / 3)]
        _assert_spectrum(result.eigenvalues, expected, atol=1e-8)

    def test_real_matrix_with_conjugate_pair(self) -> None:
        """Mixed spectrum: the pair is complex, the real eigenvalue a float."""
        A = _real_matrix_with_conjugate_pair()
        result = QRMethod().solve(A)

        assert result.converged
        _assert_spectrum(result.eigenvalues, [1 + 2j, 1 - 2j, 3.0], atol=1e-8)
        real = [pair.eigenvalue for pair in result.pairs if isinstance(pair.eigenvalue, float)]
        assert len(real) == 1
        assert np.isclose(real[0], 3.0)

    def test_complex_pair_eigenvectors(self) -> None:
        """Complex eigenvectors of a real matrix satisfy A v = λ v."""
        A = create_rotation_matrix(np.pi / 3, scale=2.0)
        result = QRMethod().solve(A)

        for pair in result.pairs:
            assert pair.eigenvector is not None
            residual = A @ pair.eigenvector - pair.eigenvalue * pair.eigenvector
            assert np.linalg.norm(residual) < 1e-6

    def test_complex_input(self) -> None:
        """Complex matrix: all eigenvalues reported as complex."""
        values = [1.0 + 1.0j, -2.0, 3.0 - 0.5j, 0.5j]
        A = create_known_spectrum_matrix(values, symmetric=False, seed=2)
        result = QRMethod().solve(A)

        assert result.converged
        assert all(isinstance(pair.eigenvalue, complex) for pair in result.pairs)
        _assert_spectrum(result.eigenvalues, values, atol=1e-7)

    def test_input_not_modified(self) -> None:
        A = _real_matrix_with_conjugate_pair()
        original = A.copy()
        QRMethod().solve(A)
        assert np.array_equal(A, original)
        assert A.dtype == np.float64


class TestBudget:
    """Tests for iteration budget handling."""

    def test_exhausted_budget(self) -> None:
        """One step is not enough: unconverged entries are still reported."""
        A = create_known_spectrum_matrix([1.0, 2.0, 3.0, 4.0, 5.0], symmetric=False, seed=5)
        with pytest.warns(NonConvergenceWarning):
            result = QRMethod().solve(A, Parameters(max_iterations=1))

        assert not result.converged
        assert result.iterations == 1
        assert len(result.pairs) == 5
        unsettled = [pair for pair in result.pairs if not pair.converged]
        assert unsettled
        assert all(pair.eigenvector is None for pair in unsettled)
        assert all(pair.iterations == 1 for pair in unsettled)

    def test_budget_is_global(self) -> None:
        """Total iterations never exceed max_iterations across deflations."""
        A = create_known_spectrum_matrix([1.0, 2.0, 3.0, 4.0, 5.0], symmetric=False, seed=5)
        result = QRMethod().solve(A)
        assert result.iterations <= Parameters().max_iterations
        assert max(pair.iterations for pair in result.pairs) == result.iterations

    def test_history_ends_at_zero(self) -> None:
        """Residual of a fully deflated matrix is zero."""
        A = create_known_spectrum_matrix([1.0, 2.0, 3.0], seed=0)
        result = QRMethod().solve(A)
        assert len(result.history) == result.iterations
        assert result.history[-1] == 0.0


class TestTrailingResidual:
    """Tests for trailing_residual."""

    def test_single_entry_block(self) -> None:
        assert trailing_residual(np.eye(3), 1) == 0.0

    def test_scaled_by_diagonal(self) -> None:
        A = np.array([[1.0, 0.0], [0.5, 10.0]])
        assert np.isclose(trailing_residual(A, 2), 0.05)

    def test_absolute_for_small_diagonal(self) -> None:
        A = np.array([[1.0, 0.0], [0.5, 0.1]])
        assert np.isclose(trailing_residual(A, 2), 0.5)

"""Numerical algorithms module.

This module contains implementations of:
- Numeric kernels (norms, Householder QR, pivoted LU, Wilkinson shift)
- Power method for the dominant eigenpair
- Shifted QR iteration with deflation for the full spectrum
- Shifted inverse power method for the eigenpair nearest a target
- Matrix generation utilities with known spectra
"""

from eigensolve.algorithms.base import (
    Algorithm,
    CancellationToken,
    Eigenpair,
    EigenvalueResult,
    EigenvalueSolver,
    initial_vector,
)
from eigensolve.algorithms.factory import create_solver, solve
from eigensolve.algorithms.inverse_power import ShiftedInversePowerMethod
from eigensolve.algorithms.kernels import (
    dot,
    eigenpair_residual,
    lu_decompose,
    lu_solve,
    normalize,
    qr_decompose,
    rayleigh_quotient,
    vector_norm,
    wilkinson_shift,
)
from eigensolve.algorithms.matrices import (
    DEFAULT_SEED,
    create_known_spectrum_matrix,
    create_linear_spectrum_matrix,
    create_rotation_matrix,
    create_slow_convergence_matrix,
)
from eigensolve.algorithms.parameters import (
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_TOLERANCE,
    Parameters,
)
from eigensolve.algorithms.power_method import (
    IterationResult,
    PowerIteration,
    PowerMethod,
    PowerMethodTrace,
    run_power_method,
)
from eigensolve.algorithms.qr_method import QRMethod

__all__ = [
    # Solver contract
    "Algorithm",
    "CancellationToken",
    "Eigenpair",
    "EigenvalueResult",
    "EigenvalueSolver",
    "create_solver",
    "initial_vector",
    "solve",
    # Parameters
    "DEFAULT_MAX_ITERATIONS",
    "DEFAULT_TOLERANCE",
    "Parameters",
    # Kernels
    "dot",
    "eigenpair_residual",
    "lu_decompose",
    "lu_solve",
    "normalize",
    "qr_decompose",
    "rayleigh_quotient",
    "vector_norm",
    "wilkinson_shift",
    # Matrix generation
    "DEFAULT_SEED",
    "create_known_spectrum_matrix",
    "create_linear_spectrum_matrix",
    "create_rotation_matrix",
    "create_slow_convergence_matrix",
    # Solvers
    "IterationResult",
    "PowerIteration",
    "PowerMethod",
    "PowerMethodTrace",
    "QRMethod",
    "ShiftedInversePowerMethod",
    "run_power_method",
]

"""Shared linear-algebra helpers used across steering modules.

Conventions:
- Bipartite operators act on ``H_A (x) H_B`` with Alice's qubit first.
- A measurement set has shape ``(N, k, dA, dA)``: ``M[i, j]`` is outcome ``j``
  of measurement ``i``.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np


_PAULI_X = np.array([[0.0, 1.0], [1.0, 0.0]], dtype=complex)
_PAULI_Y = np.array([[0.0, -1.0j], [1.0j, 0.0]], dtype=complex)
_PAULI_Z = np.array([[1.0, 0.0], [0.0, -1.0]], dtype=complex)


def pauli_matrices() -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Return copies of the Pauli matrices ``(X, Y, Z)``."""
    return _PAULI_X.copy(), _PAULI_Y.copy(), _PAULI_Z.copy()


def bloch_operator(weight: float, vector: Sequence[float] | np.ndarray) -> np.ndarray:
    """Return ``(weight/2) (I + v . sigma)`` for a Bloch 3-vector ``v``."""
    vec = np.asarray(vector, dtype=float).reshape(-1)
    if vec.shape != (3,):
        raise ValueError("vector must have exactly 3 components.")
    sigma_dot_v = vec[0] * _PAULI_X + vec[1] * _PAULI_Y + vec[2] * _PAULI_Z
    return 0.5 * float(weight) * (np.eye(2, dtype=complex) + sigma_dot_v)


def bloch_vector(operator: np.ndarray) -> np.ndarray:
    """Return the Bloch vector ``(tr(X A), tr(Y A), tr(Z A)) / tr(A)`` of a qubit operator."""
    op = np.asarray(operator, dtype=complex)
    if op.shape != (2, 2):
        raise ValueError("operator must be a 2x2 matrix.")
    weight = float(np.real(np.trace(op)))
    if abs(weight) <= 1e-15:
        raise ValueError("operator has zero trace; Bloch vector undefined.")
    return np.real(
        np.array([np.trace(p @ op) for p in (_PAULI_X, _PAULI_Y, _PAULI_Z)])
    ) / weight


def hermitian_part(matrix: np.ndarray) -> np.ndarray:
    """Return ``(A + A^dagger) / 2``."""
    mat = np.asarray(matrix, dtype=complex)
    return 0.5 * (mat + mat.conj().swapaxes(-1, -2))


def partial_trace(matrix: np.ndarray, dims: Sequence[int], axis: int) -> np.ndarray:
    """Trace out subsystem ``axis`` of an operator on ``H_0 (x) ... (x) H_{n-1}``.

    ``dims`` lists the subsystem dimensions; their product must equal the
    matrix size.
    """
    mat = np.asarray(matrix)
    dims_t = tuple(int(d) for d in dims)
    total = int(np.prod(dims_t))
    if mat.shape != (total, total):
        raise ValueError(f"matrix must have shape ({total}, {total}) for dims {dims_t}.")
    n = len(dims_t)
    if not 0 <= axis < n:
        raise ValueError(f"axis must be in [0, {n}).")

    tensor = mat.reshape(dims_t + dims_t)
    traced = np.trace(tensor, axis1=axis, axis2=axis + n)
    remaining = int(total // dims_t[axis])
    return traced.reshape(remaining, remaining)


def embed_on_first(operator: np.ndarray, d_rest: int) -> np.ndarray:
    """Return ``operator (x) I_{d_rest}``."""
    return np.kron(np.asarray(operator, dtype=complex), np.eye(int(d_rest), dtype=complex))


def reduced_assemblage_element(
    rho_AB: np.ndarray,
    effect: np.ndarray,
    dB: int,
) -> np.ndarray:
    """Return ``Tr_A[(E (x) I) rho_AB]`` for one effect ``E`` on Alice's side."""
    dA = np.asarray(effect).shape[0]
    product = embed_on_first(effect, dB) @ np.asarray(rho_AB, dtype=complex)
    return partial_trace(product, dims=(dA, dB), axis=0)


def min_eigenvalue(matrix: np.ndarray) -> float:
    """Smallest eigenvalue of the Hermitian part of ``matrix``."""
    return float(np.linalg.eigvalsh(hermitian_part(matrix))[0])


def is_hermitian(matrix: np.ndarray, atol: float = 1e-9) -> bool:
    mat = np.asarray(matrix, dtype=complex)
    return bool(np.allclose(mat, mat.conj().T, atol=atol, rtol=0.0))


def validate_bipartite_state(
    rho_AB: np.ndarray,
    dA: int = 2,
    atol: float = 1e-9,
) -> tuple[np.ndarray, int]:
    """Check that ``rho_AB`` is a density matrix on ``C^dA (x) C^dB``.

    Returns ``(rho, dB)`` with ``rho`` as a fresh complex array.
    """
    rho = np.array(rho_AB, dtype=complex, copy=True)
    if rho.ndim != 2 or rho.shape[0] != rho.shape[1]:
        raise ValueError("rho_AB must be a square 2D matrix.")
    size = rho.shape[0]
    if size == 0 or size % int(dA) != 0:
        raise ValueError(f"rho_AB size {size} is not a multiple of dA={dA}.")
    if not is_hermitian(rho, atol=atol):
        raise ValueError("rho_AB must be Hermitian.")
    trace = np.trace(rho)
    if abs(trace - 1.0) > max(atol, 1e-12) * size:
        raise ValueError(f"rho_AB must have unit trace (got {trace.real:.12g}).")
    if min_eigenvalue(rho) < -max(atol, 1e-12) * size:
        raise ValueError("rho_AB must be positive semidefinite.")
    return rho, size // int(dA)


def validate_measurement_set(
    measurements: np.ndarray,
    atol: float = 1e-9,
    require_positive: bool = True,
) -> np.ndarray:
    """Check shape, Hermiticity and completeness of a measurement set.

    With ``require_positive=False`` the outcome operators may have negative
    eigenvalues (quasi-POVMs built from points outside the Bloch ball).
    """
    M = np.array(measurements, dtype=complex, copy=True)
    if M.ndim != 4:
        raise ValueError("measurements must have shape (N, k, d, d).")
    num_measurements, num_outcomes, d1, d2 = M.shape
    if num_measurements < 1 or num_outcomes < 1:
        raise ValueError("measurements must contain at least one measurement and one outcome.")
    if d1 != d2:
        raise ValueError("measurement operators must be square.")

    identity = np.eye(d1, dtype=complex)
    # Completeness tolerance scales with the number of summed outcomes.
    completeness_tol = max(float(atol), 1e-12) * max(1, num_outcomes) * 10.0
    for i in range(num_measurements):
        for j in range(num_outcomes):
            if not is_hermitian(M[i, j], atol=completeness_tol):
                raise ValueError(f"measurements[{i}][{j}] is not Hermitian.")
            if require_positive and min_eigenvalue(M[i, j]) < -completeness_tol:
                raise ValueError(f"measurements[{i}][{j}] is not positive semidefinite.")
        if not np.allclose(M[i].sum(axis=0), identity, atol=completeness_tol, rtol=0.0):
            raise ValueError(f"outcomes of measurement {i} do not sum to the identity.")
    return M

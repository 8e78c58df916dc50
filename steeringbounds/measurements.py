"""Parameterizations of qubit measurement sets.

Every function returns an array of shape ``(N, k, 2, 2)`` holding the outcome
operators ``M[i, j]``. All constructions are pure functions of their inputs.
"""

from __future__ import annotations

import warnings
from typing import Sequence

import numpy as np

from .linalg_utils import bloch_operator, bloch_vector, hermitian_part


QUBIT_DIM = 2
TRINE_OUTCOMES = 3
PARAMETERS_PER_TRINE = 3
PARAMETERS_PER_BLOCH_VECTOR = QUBIT_DIM**2 - 1


def num_trine_parameters(num_measurements: int) -> int:
    n = _positive_int(num_measurements, "num_measurements")
    return PARAMETERS_PER_TRINE * n


def num_general_povm_parameters(num_measurements: int, num_outcomes: int) -> int:
    n = _positive_int(num_measurements, "num_measurements")
    k = _outcome_count(num_outcomes)
    return PARAMETERS_PER_BLOCH_VECTOR * (k - 1) * n


def trine_measurements(x: Sequence[float] | np.ndarray, num_measurements: int) -> np.ndarray:
    """Build ``N`` trine measurements from angles ``(theta, phi, psi)`` per measurement.

    ``theta, phi`` fix an orthonormal basis ``{psi1, psi2}`` (Bloch-sphere
    angles of ``psi1``); ``psi`` is the relative phase of the second trine
    element. The third element is ``I - M0 - M1``.
    """
    params = _parameter_vector(x, num_trine_parameters(num_measurements))
    n = int(num_measurements)
    identity = np.eye(QUBIT_DIM, dtype=complex)
    M = np.zeros((n, TRINE_OUTCOMES, QUBIT_DIM, QUBIT_DIM), dtype=complex)

    for i, (theta, phi, psi) in enumerate(params.reshape(n, PARAMETERS_PER_TRINE)):
        psi1, psi2 = _trine_basis(theta, phi)
        second = np.cos(np.pi / 3) * psi1 + np.exp(1j * psi) * np.sin(np.pi / 3) * psi2

        M[i, 0] = (2.0 / 3.0) * np.outer(psi1, psi1.conj())
        M[i, 1] = (2.0 / 3.0) * np.outer(second, second.conj())
        M[i, 2] = identity - M[i, 0] - M[i, 1]
    return hermitian_part(M)


def trine_parameters(measurements: np.ndarray) -> np.ndarray:
    """Recover ``(theta, phi, psi)`` per measurement from a trine measurement set.

    ``trine_measurements(trine_parameters(M), N)`` reproduces ``M``. When
    ``psi1`` sits on a pole, ``phi`` is not identifiable and is set to zero;
    ``psi`` absorbs the resulting phase.
    """
    M = np.asarray(measurements, dtype=complex)
    if M.ndim != 4 or M.shape[1:] != (TRINE_OUTCOMES, QUBIT_DIM, QUBIT_DIM):
        raise ValueError("measurements must have shape (N, 3, 2, 2).")

    params = np.zeros((M.shape[0], PARAMETERS_PER_TRINE), dtype=float)
    for i in range(M.shape[0]):
        n = bloch_vector(M[i, 0])
        theta = float(np.arccos(np.clip(n[2], -1.0, 1.0)))
        phi = float(np.arctan2(n[1], n[0])) if np.hypot(n[0], n[1]) > 1e-12 else 0.0
        psi1, psi2 = _trine_basis(theta, phi)
        psi = float(np.angle(psi2.conj() @ M[i, 1] @ psi1))
        params[i] = (theta, phi, psi)
    return params.reshape(-1)


def general_povm_measurements(
    x: Sequence[float] | np.ndarray,
    num_measurements: int,
    num_outcomes: int,
    atol: float = 1e-12,
) -> np.ndarray:
    """Build ``N`` general ``k``-outcome qubit POVMs from ``3 (k-1)`` reals each.

    Each triple ``(g, a, b)`` gives the Bloch vector
    ``|g| (sin(pi a) cos(2 pi b), sin(pi a) sin(2 pi b), cos(pi a))``. The last
    vector is minus the sum of the others, which makes the Pauli parts cancel;
    weights ``2 gamma_j / sum(gamma)`` make the identity parts sum to ``I``.

    A Bloch vector of norm ``<= atol`` yields a zero operator. A measurement
    whose vectors all vanish decodes to the trivial POVM ``(I, 0, ..., 0)``.
    Either clamp emits a ``RuntimeWarning``.
    """
    k = _outcome_count(num_outcomes)
    params = _parameter_vector(x, num_general_povm_parameters(num_measurements, k))
    n = int(num_measurements)
    M = np.zeros((n, k, QUBIT_DIM, QUBIT_DIM), dtype=complex)

    triples = params.reshape(n, k - 1, PARAMETERS_PER_BLOCH_VECTOR)
    num_clamped = 0
    for i in range(n):
        gamma = np.abs(triples[i, :, 0])
        polar = np.pi * triples[i, :, 1]
        azimuth = 2.0 * np.pi * triples[i, :, 2]
        directions = np.stack(
            [np.sin(polar) * np.cos(azimuth), np.sin(polar) * np.sin(azimuth), np.cos(polar)],
            axis=1,
        )
        vectors = np.vstack([gamma[:, None] * directions, np.zeros((1, 3))])
        vectors[-1] = -vectors[:-1].sum(axis=0)
        weights = np.append(gamma, np.linalg.norm(vectors[-1]))

        total = float(weights.sum())
        if total <= atol:
            M[i, 0] = np.eye(QUBIT_DIM, dtype=complex)
            num_clamped += k
            continue

        for j in range(k):
            norm = np.linalg.norm(vectors[j])
            if norm <= atol:
                num_clamped += 1
                continue
            alpha = 2.0 * weights[j] / total
            M[i, j] = bloch_operator(alpha, vectors[j] / norm)

    if num_clamped:
        warnings.warn(
            f"Clamped {num_clamped} Bloch vector(s) with norm <= {atol:g} while decoding general POVMs.",
            RuntimeWarning,
            stacklevel=2,
        )
    return hermitian_part(M)


def projective_measurements(vectors: Sequence[Sequence[float]] | np.ndarray) -> np.ndarray:
    """Build 2-outcome operators ``(I +/- v . sigma) / 2`` for each row ``v``.

    Rows with two entries are read as ``(x, z)`` coordinates in the X-Z plane.
    Rows are not required to be unit vectors, so points outside the Bloch
    ball give quasi-POVMs with one negative eigenvalue.
    """
    vec = np.asarray(vectors, dtype=float)
    if vec.ndim == 1:
        vec = vec.reshape(1, -1)
    if vec.ndim != 2 or vec.shape[0] == 0 or vec.shape[1] not in (2, 3):
        raise ValueError("vectors must have shape (N, 2) or (N, 3).")
    if vec.shape[1] == 2:
        vec = np.column_stack([vec[:, 0], np.zeros(vec.shape[0]), vec[:, 1]])

    M = np.zeros((vec.shape[0], 2, QUBIT_DIM, QUBIT_DIM), dtype=complex)
    for i, v in enumerate(vec):
        M[i, 0] = bloch_operator(1.0, v)
        M[i, 1] = bloch_operator(1.0, -v)
    return M


def _trine_basis(theta: float, phi: float) -> tuple[np.ndarray, np.ndarray]:
    psi1 = np.array([np.cos(theta / 2), np.exp(1j * phi) * np.sin(theta / 2)], dtype=complex)
    psi2 = np.array([-np.exp(-1j * phi) * np.sin(theta / 2), np.cos(theta / 2)], dtype=complex)
    return psi1, psi2


def _parameter_vector(x: Sequence[float] | np.ndarray, expected: int) -> np.ndarray:
    params = np.asarray(x, dtype=float).reshape(-1)
    if params.size != expected:
        raise ValueError(f"parameter vector has length {params.size}, expected {expected}.")
    if not np.all(np.isfinite(params)):
        raise ValueError("parameter vector must be finite.")
    return params


def _positive_int(value: int, name: str) -> int:
    as_int = int(value)
    if as_int < 1:
        raise ValueError(f"{name} must be at least 1.")
    return as_int


def _outcome_count(num_outcomes: int) -> int:
    k = int(num_outcomes)
    if k < 2:
        raise ValueError("num_outcomes must be at least 2.")
    return k

"""Standard bipartite states used by demos and tests."""

from __future__ import annotations

import numpy as np


def pure_state_density(ket: object) -> np.ndarray:
    """Return ``|psi><psi|`` for a (not necessarily normalized) ket."""
    vec = np.asarray(ket, dtype=complex).reshape(-1, 1)
    norm = np.linalg.norm(vec)
    if norm <= 0:
        raise ValueError("Cannot build a density matrix from the zero vector.")
    vec = vec / norm
    return vec @ vec.conj().T


def maximally_mixed_state(dim: int) -> np.ndarray:
    """Return ``I / dim``."""
    dim_int = int(dim)
    if dim_int < 1:
        raise ValueError("dim must be positive.")
    return np.eye(dim_int, dtype=complex) / dim_int


def maximally_entangled_state(d: int = 2) -> np.ndarray:
    """Return ``|Phi+><Phi+|`` with ``|Phi+> = sum_i |ii> / sqrt(d)``."""
    d_int = int(d)
    if d_int < 2:
        raise ValueError("d must be at least 2.")
    ket = np.zeros(d_int * d_int, dtype=complex)
    ket[[i * d_int + i for i in range(d_int)]] = 1.0
    return pure_state_density(ket)


def werner_state(visibility: float, d: int = 2) -> np.ndarray:
    """Return the isotropic state ``v |Phi+><Phi+| + (1 - v) I / d^2``."""
    v = float(visibility)
    if not 0.0 <= v <= 1.0:
        raise ValueError("visibility must lie in [0, 1].")
    return v * maximally_entangled_state(d) + (1.0 - v) * maximally_mixed_state(int(d) ** 2)

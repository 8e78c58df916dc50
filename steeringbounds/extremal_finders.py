"""Polytope representation conversion with CDD and active-set backends.

Conventions:
- Polytope H-rep: ``A x <= b``.
- Polytope V-rep: vertex rows; only bounded regions are supported.
"""

from __future__ import annotations

from itertools import combinations

import cdd
import numpy as np


# ---------------------------------------------------------------------------
# CDD-specific code
# ---------------------------------------------------------------------------


def polytope_h_to_v_cdd(
    A: np.ndarray,
    b: np.ndarray,
    atol: float = 1e-9,
) -> np.ndarray:
    """Convert polytope H-rep ``A x <= b`` to its vertices with CDD."""
    A_le, b_le = _as_h_rep(A, b)
    n = A_le.shape[1]

    # CDD rows are [b | -A] meaning b - A x >= 0.
    H = np.hstack([b_le[:, None], -A_le])
    mat = cdd.matrix_from_array(H.tolist(), rep_type=cdd.RepType.INEQUALITY)
    poly = cdd.polyhedron_from_matrix(mat)
    gen = cdd.copy_generators(poly)
    G = np.asarray(gen.array, dtype=float).reshape(-1, n + 1)

    if set(getattr(gen, "lin_set", set())):
        raise ValueError("H-rep describes an unbounded region (lineality space found).")

    vertices = []
    for row in G:
        t = row[0]
        if abs(t) <= 1e-12:
            raise ValueError("H-rep describes an unbounded region (extreme ray found).")
        vertices.append(row[1:] / t)

    vertices_arr = np.asarray(vertices, dtype=float) if vertices else np.empty((0, n), dtype=float)
    return _canonicalize_point_rows(vertices_arr, atol=atol)


# ---------------------------------------------------------------------------
# Active-set code
# ---------------------------------------------------------------------------


def polytope_h_to_v_active_set(
    A: np.ndarray,
    b: np.ndarray,
    atol: float = 1e-9,
) -> np.ndarray:
    """Convert polytope H-rep ``A x <= b`` to its vertices by active-set search.

    Every ``n``-subset of constraints with full rank fixes a candidate point;
    candidates satisfying all inequalities are the vertices. Cost grows as
    ``C(m, n)``, which is cheap for planar polygons.
    """
    A_le, b_le = _as_h_rep(A, b)
    m, n = A_le.shape
    if m < n + 1:
        raise ValueError("A bounded polytope needs at least n + 1 inequalities.")

    candidates: list[np.ndarray] = []
    for idx in combinations(range(m), n):
        rows = list(idx)
        sub_A = A_le[rows, :]
        if np.linalg.matrix_rank(sub_A, tol=atol) != n:
            continue
        point = np.linalg.solve(sub_A, b_le[rows])
        slack = b_le - A_le @ point
        scale = max(1.0, float(np.max(np.abs(b_le))))
        if np.all(slack >= -atol * scale * 10.0):
            candidates.append(point)

    if not candidates:
        return np.empty((0, n), dtype=float)
    return _canonicalize_point_rows(np.asarray(candidates, dtype=float), atol=atol)


# ---------------------------------------------------------------------------
# Backend-agnostic utilities
# ---------------------------------------------------------------------------


def _as_h_rep(A: np.ndarray, b: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    A_arr = _as_2d(A, "A")
    b_arr = np.asarray(b, dtype=float).reshape(-1)
    if b_arr.shape[0] != A_arr.shape[0]:
        raise ValueError("A and b must have the same number of rows.")
    if A_arr.shape[1] == 0:
        raise ValueError("A must have at least one column.")
    return A_arr, b_arr


def _as_2d(array: np.ndarray, name: str) -> np.ndarray:
    arr = np.asarray(array, dtype=float)
    if arr.ndim == 1:
        return arr.reshape(1, -1)
    if arr.ndim != 2:
        raise ValueError(f"{name} must be a 2D array.")
    return arr


def _canonicalize_point_rows(rows: np.ndarray, atol: float) -> np.ndarray:
    """Zero tiny entries and drop duplicate points, preserving first occurrence."""
    if rows.size == 0:
        n = rows.shape[1] if rows.ndim == 2 else 0
        return np.empty((0, n), dtype=float)
    arr = np.asarray(rows, dtype=float)
    arr = np.where(np.abs(arr) <= atol, 0.0, arr)

    uniq: list[np.ndarray] = []
    for row in arr:
        if not any(np.allclose(row, q, atol=max(atol, 1e-9), rtol=0.0) for q in uniq):
            uniq.append(row)
    return np.asarray(uniq, dtype=float)

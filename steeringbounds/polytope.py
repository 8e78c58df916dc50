"""Lower bounds on critical visibility from a planar outer polytope.

This module works in three steps:
1. Build a polygon circumscribing the unit circle of the X-Z Bloch plane and
   enumerate its vertices with CDD, keeping one vertex per antipodal pair.
2. Turn every combination of distinct vertices into a set of 2-outcome
   quasi-POVMs ``(I +/- v . sigma) / 2``.
3. Solve the LHS visibility SDP for each set and keep the minimum.

The polygon contains the X-Z great circle, so every planar projective
measurement is a convex combination of vertex quasi-measurements and the
minimum is a lower bound on the critical visibility of planar 2-outcome
projective measurements. The argument is not re-derived here; compare
against known values when relying on it.
"""

from __future__ import annotations

import math
import warnings
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from itertools import combinations, islice
from typing import Callable, Iterable, Iterator

import numpy as np

from .extremal_finders import polytope_h_to_v_active_set, polytope_h_to_v_cdd
from .linalg_utils import validate_bipartite_state
from .measurements import projective_measurements
from .visibility import critical_visibility


DEFAULT_NUM_MEASUREMENTS = 5

ProgressCallback = Callable[[int, int, float], None]


@dataclass
class PolytopeBoundResult:
    """Result bundle for a polytope enumeration run."""

    visibility: float
    vertices: np.ndarray
    worst_combination: tuple[int, ...]
    worst_measurements: np.ndarray
    visibilities: np.ndarray
    num_evaluated: int
    num_combinations: int
    complete: bool


def planar_support_halfspaces(num: int) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(A, b)`` with rows ``(sin phi_i, cos phi_i) . x <= 1``, ``phi_i = 2 pi i / num``."""
    num_int = _even_vertex_count(num)
    phi = 2.0 * np.pi * np.arange(num_int) / num_int
    A = np.column_stack([np.sin(phi), np.cos(phi)])
    b = np.ones(num_int, dtype=float)
    return A, b


def planar_polytope_vertices(
    num: int,
    method: str = "cdd",
    decimals: int = 6,
    atol: float = 1e-9,
) -> np.ndarray:
    """Vertices of a ``num``-gon containing the X-Z great circle, one per antipodal pair.

    Returned rows are ``(x, z)`` coordinates, rounded to ``decimals`` places.
    Supported methods:
    - ``"cdd"``: pycddlib vertex enumeration.
    - ``"active_set"``: NumPy active-set enumeration.
    """
    A, b = planar_support_halfspaces(num)
    if method == "cdd":
        vertices = _planar_vertices_cdd(A, b, atol=atol)
    elif method == "active_set":
        vertices = polytope_h_to_v_active_set(A, b, atol=atol)
    else:
        raise ValueError("method must be one of {'cdd', 'active_set'}.")

    vertices = np.round(np.asarray(vertices, dtype=float), int(decimals)) + 0.0
    return _drop_antipodal_duplicates(vertices, atol=10.0 ** (-int(decimals)))


def num_vertex_combinations(num_vertices: int, num_measurements: int, anchor_first: bool = False) -> int:
    if anchor_first:
        return math.comb(int(num_vertices) - 1, int(num_measurements) - 1)
    return math.comb(int(num_vertices), int(num_measurements))


def vertex_combinations(
    num_vertices: int,
    num_measurements: int,
    anchor_first: bool = False,
) -> Iterator[tuple[int, ...]]:
    """Yield sets of distinct vertex indices, one index per measurement.

    The critical visibility does not depend on the order of measurements, so
    each unordered choice is produced once. With ``anchor_first=True`` vertex
    ``0`` is always measurement ``0``.
    """
    n_vert = int(num_vertices)
    n_meas = int(num_measurements)
    if n_meas < 1:
        raise ValueError("num_measurements must be at least 1.")
    if n_meas > n_vert:
        raise ValueError(
            f"Cannot choose {n_meas} distinct vertices out of {n_vert}; increase num."
        )
    if anchor_first:
        for rest in combinations(range(1, n_vert), n_meas - 1):
            yield (0,) + rest
    else:
        yield from combinations(range(n_vert), n_meas)


def polytope_lower_bound(
    rho_AB: np.ndarray,
    num: int,
    *,
    num_measurements: int = DEFAULT_NUM_MEASUREMENTS,
    method: str = "cdd",
    anchor_first: bool = False,
    max_combinations: int | None = None,
    stop_below: float | None = None,
    progress_callback: ProgressCallback | None = None,
    max_workers: int | None = None,
    solver: str | None = None,
    atol: float = 1e-9,
    verbose: bool = False,
) -> PolytopeBoundResult:
    """Minimum critical visibility over all vertex measurement sets of the polygon.

    ``max_combinations`` and ``stop_below`` end the run early; ``complete`` is
    then ``False`` and the value is only the minimum over the evaluated sets.
    ``progress_callback(done, total, current_min)`` runs after every solve.
    ``max_workers > 1`` solves combinations in worker processes.
    """
    validate_bipartite_state(rho_AB, atol=atol)
    vertices = planar_polytope_vertices(num, method=method, atol=atol)
    num_vertices = vertices.shape[0]
    total = num_vertex_combinations(num_vertices, num_measurements, anchor_first=anchor_first)
    combos = vertex_combinations(num_vertices, num_measurements, anchor_first=anchor_first)
    if max_combinations is not None:
        if int(max_combinations) < 1:
            raise ValueError("max_combinations must be at least 1.")
        total = min(total, int(max_combinations))
        combos = islice(combos, total)

    if verbose:
        print(
            f"Planar polytope: {num} support directions, {num_vertices} measurement vertices, "
            f"{total} combinations of {num_measurements} measurements."
        )
    report_every = max(1, total // 20)

    visibilities: list[float] = []
    best = math.inf
    best_combo: tuple[int, ...] = ()
    stopped_early = False
    for combo, eta in _iter_visibilities(rho_AB, vertices, combos, solver, atol, max_workers):
        visibilities.append(eta)
        if eta < best:
            best, best_combo = eta, combo
        done = len(visibilities)
        if progress_callback is not None:
            progress_callback(done, total, best)
        if verbose and (done % report_every == 0 or done == total):
            print(f"  [{done}/{total}] current minimum eta = {best:.6f}")
        if stop_below is not None and best < float(stop_below):
            stopped_early = done < total
            break

    num_evaluated = len(visibilities)
    complete = num_evaluated == num_vertex_combinations(
        num_vertices, num_measurements, anchor_first=anchor_first
    ) and not stopped_early
    if not complete:
        warnings.warn(
            f"Polytope enumeration stopped after {num_evaluated} combinations; "
            "the returned value is a minimum over the evaluated subset only.",
            RuntimeWarning,
            stacklevel=2,
        )

    return PolytopeBoundResult(
        visibility=float(best),
        vertices=vertices,
        worst_combination=best_combo,
        worst_measurements=projective_measurements(vertices[list(best_combo)]),
        visibilities=np.asarray(visibilities, dtype=float),
        num_evaluated=num_evaluated,
        num_combinations=num_vertex_combinations(num_vertices, num_measurements, anchor_first=anchor_first),
        complete=complete,
    )


def polytope_lower_bound_value(rho_AB: np.ndarray, num: int, **kwargs: object) -> float:
    """Return only the visibility of :func:`polytope_lower_bound`."""
    return polytope_lower_bound(rho_AB, num, **kwargs).visibility


def vertex_measurement_visibility(
    rho_AB: np.ndarray,
    vertices: np.ndarray,
    combo: tuple[int, ...],
    solver: str | None = None,
    atol: float = 1e-9,
) -> float:
    """Critical visibility of the quasi-POVM set built from ``vertices[combo]``."""
    measurements = projective_measurements(np.asarray(vertices)[list(combo)])
    return critical_visibility(
        rho_AB,
        measurements,
        solver=solver,
        require_positive=False,
        atol=atol,
    )


def _iter_visibilities(
    rho_AB: np.ndarray,
    vertices: np.ndarray,
    combos: Iterable[tuple[int, ...]],
    solver: str | None,
    atol: float,
    max_workers: int | None,
) -> Iterator[tuple[tuple[int, ...], float]]:
    if max_workers is None or int(max_workers) <= 1:
        for combo in combos:
            yield combo, vertex_measurement_visibility(rho_AB, vertices, combo, solver, atol)
        return

    workers = int(max_workers)
    batch_size = 4 * workers
    combo_iter = iter(combos)
    with ProcessPoolExecutor(max_workers=workers) as executor:
        while True:
            batch = list(islice(combo_iter, batch_size))
            if not batch:
                return
            futures = [
                executor.submit(vertex_measurement_visibility, rho_AB, vertices, combo, solver, atol)
                for combo in batch
            ]
            for combo, future in zip(batch, futures):
                yield combo, future.result()


def _planar_vertices_cdd(A: np.ndarray, b: np.ndarray, atol: float) -> np.ndarray:
    vertices = polytope_h_to_v_cdd(A, b, atol=atol)
    if vertices.size:
        return vertices

    # CDD can return an empty generator set on near-degenerate float input.
    vertices_fallback = polytope_h_to_v_active_set(A, b, atol=atol)
    if vertices_fallback.size:
        warnings.warn(
            "CDD returned no vertices for the planar polytope; using active-set fallback vertices.",
            RuntimeWarning,
            stacklevel=2,
        )
        return vertices_fallback

    raise RuntimeError("No vertices found for the planar polytope (CDD and active-set backends).")


def _drop_antipodal_duplicates(vertices: np.ndarray, atol: float) -> np.ndarray:
    """Keep the first vertex of every antipodal pair, in input order."""
    kept: list[np.ndarray] = []
    for row in vertices:
        if np.allclose(row, 0.0, atol=atol):
            continue
        if any(np.allclose(row, -q, atol=atol, rtol=0.0) for q in kept):
            continue
        kept.append(row)
    if len(kept) * 2 != vertices.shape[0]:
        warnings.warn(
            f"Planar polytope has {vertices.shape[0]} vertices but {len(kept)} antipodal "
            "representatives; the vertex set is not centrally symmetric.",
            RuntimeWarning,
            stacklevel=3,
        )
    return np.asarray(kept, dtype=float).reshape(-1, 2)


def _even_vertex_count(num: int) -> int:
    num_int = int(num)
    if num_int < 4 or num_int % 2 != 0:
        raise ValueError("num must be an even integer >= 4 so vertices pair into measurements.")
    return num_int

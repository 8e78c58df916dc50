"""Local search over parameterised measurement sets.

The objective is the critical visibility of the measurement set decoded from
a parameter vector. Nelder-Mead looks for the set whose assemblage is most
robust to white noise; the visibility of any set it returns is achievable,
hence an upper bound on the critical visibility of the state for that
measurement family. A single run may stop in a local optimum; improving the
bound means running again with fresh seeds (see
:func:`run_independent_searches`).
"""

from __future__ import annotations

import warnings
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from functools import partial
from typing import Callable, Literal

import numpy as np
from scipy.optimize import minimize

from .linalg_utils import validate_bipartite_state
from .measurements import (
    general_povm_measurements,
    num_general_povm_parameters,
    num_trine_parameters,
    trine_measurements,
)
from .visibility import critical_visibility


DEFAULT_XATOL = 1e-5
DEFAULT_FATOL = 1e-6
DEFAULT_MAX_ITERATIONS = 100000
DEFAULT_MAX_EVALUATIONS = 100000

Parameterizer = Callable[[np.ndarray], np.ndarray]
RandomSource = int | np.random.Generator | np.random.SeedSequence | None


@dataclass
class SearchResult:
    """Result bundle for one local search run."""

    measurements: np.ndarray
    visibility: float
    parameters: np.ndarray
    converged: bool
    num_evaluations: int
    num_iterations: int
    message: str
    family: str


def search_measurements(
    rho_AB: np.ndarray,
    parameterizer: Parameterizer,
    num_parameters: int,
    *,
    initial_scale: float = 1.0,
    rng: RandomSource = None,
    x0: np.ndarray | None = None,
    xatol: float = DEFAULT_XATOL,
    fatol: float = DEFAULT_FATOL,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    max_evaluations: int = DEFAULT_MAX_EVALUATIONS,
    solver: str | None = None,
    family: str = "custom",
    verbose: bool = False,
) -> SearchResult:
    """Minimise the critical visibility over ``parameterizer(x)`` with Nelder-Mead.

    The start point is ``x0`` when given, otherwise ``initial_scale * U[0, 1)``
    per coordinate drawn from ``rng``. Reaching ``max_iterations`` or
    ``max_evaluations`` is reported through ``converged=False``.
    """
    rho, _ = validate_bipartite_state(rho_AB)
    n_params = int(num_parameters)
    if n_params < 1:
        raise ValueError("num_parameters must be at least 1.")
    if x0 is None:
        start = float(initial_scale) * np.random.default_rng(rng).random(n_params)
    else:
        start = np.asarray(x0, dtype=float).reshape(-1)
        if start.size != n_params:
            raise ValueError(f"x0 has length {start.size}, expected {n_params}.")

    def objective(x: np.ndarray) -> float:
        return critical_visibility(rho, parameterizer(x), solver=solver)

    result = minimize(
        objective,
        start,
        method="Nelder-Mead",
        options={
            "xatol": float(xatol),
            "fatol": float(fatol),
            "maxiter": int(max_iterations),
            "maxfev": int(max_evaluations),
        },
    )

    parameters = np.asarray(result.x, dtype=float)
    converged = bool(result.success)
    message = str(result.message)
    if verbose:
        print(
            f"[{family}] eta = {float(result.fun):.6f} after {int(result.nit)} iterations, "
            f"{int(result.nfev)} evaluations: {message}"
        )
        if not converged:
            warnings.warn(
                f"Measurement search ({family}) stopped before meeting its tolerances: {message}",
                RuntimeWarning,
                stacklevel=2,
            )

    return SearchResult(
        measurements=parameterizer(parameters),
        visibility=float(result.fun),
        parameters=parameters,
        converged=converged,
        num_evaluations=int(result.nfev),
        num_iterations=int(result.nit),
        message=message,
        family=family,
    )


def search_trine_measurements(
    rho_AB: np.ndarray,
    num_measurements: int,
    **kwargs: object,
) -> SearchResult:
    """Search over ``N`` trine measurements; start angles uniform in ``[0, pi]``."""
    n = int(num_measurements)
    return search_measurements(
        rho_AB,
        partial(trine_measurements, num_measurements=n),
        num_trine_parameters(n),
        initial_scale=np.pi,
        family="trine",
        **kwargs,
    )


def search_general_povm_measurements(
    rho_AB: np.ndarray,
    num_measurements: int,
    num_outcomes: int,
    **kwargs: object,
) -> SearchResult:
    """Search over ``N`` general ``k``-outcome POVMs; start parameters uniform in ``[0, 1]``."""
    n = int(num_measurements)
    k = int(num_outcomes)
    return search_measurements(
        rho_AB,
        partial(general_povm_measurements, num_measurements=n, num_outcomes=k),
        num_general_povm_parameters(n, k),
        initial_scale=1.0,
        family="general_povm",
        **kwargs,
    )


def run_independent_searches(
    rho_AB: np.ndarray,
    family: Literal["trine", "general_povm"],
    num_runs: int,
    *,
    num_measurements: int,
    num_outcomes: int | None = None,
    seed: int | None = None,
    max_workers: int | None = None,
    **kwargs: object,
) -> list[SearchResult]:
    """Run ``num_runs`` searches from independently seeded start points.

    Seeds come from ``np.random.SeedSequence(seed).spawn``. Results are sorted
    by visibility, best (lowest) first.
    """
    runs = int(num_runs)
    if runs < 1:
        raise ValueError("num_runs must be at least 1.")
    if family == "trine":
        search = partial(search_trine_measurements, rho_AB, num_measurements, **kwargs)
    elif family == "general_povm":
        if num_outcomes is None:
            raise ValueError("num_outcomes is required for family='general_povm'.")
        search = partial(search_general_povm_measurements, rho_AB, num_measurements, num_outcomes, **kwargs)
    else:
        raise ValueError("family must be one of {'trine', 'general_povm'}.")

    seeds = np.random.SeedSequence(seed).spawn(runs)
    if max_workers is None or int(max_workers) <= 1:
        results = [search(rng=child) for child in seeds]
    else:
        with ProcessPoolExecutor(max_workers=int(max_workers)) as executor:
            futures = [executor.submit(search, rng=child) for child in seeds]
            results = [future.result() for future in futures]
    return sorted(results, key=lambda res: res.visibility)

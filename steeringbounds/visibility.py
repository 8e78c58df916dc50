"""Critical visibility of an assemblage under the local-hidden-state hypothesis.

For a state ``rho_AB`` and a measurement set ``M[i, j]`` on Alice's qubit, the
SDP reads

    maximize    eta
    subject to  sigma_l >= 0                                  for l < k**N
                sum_l D[i,j,l] sigma_l
                    == eta sigma_{j|i} + (1 - eta) tr(sigma_{j|i}) I / dB
                0 <= eta <= 1

with ``sigma_{j|i} = Tr_A[(M[i,j] (x) I) rho_AB]`` and ``D`` the
deterministic-strategy table. Each call builds and solves its own problem.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from typing import Any

import cvxpy as cp
import numpy as np

from .linalg_utils import (
    reduced_assemblage_element,
    validate_bipartite_state,
    validate_measurement_set,
)
from .strategies import deterministic_strategy_table


ACCEPTED_STATUSES = (cp.OPTIMAL, cp.OPTIMAL_INACCURATE)


class VisibilitySolverError(RuntimeError):
    """Raised when the SDP backend does not certify an optimal visibility."""

    def __init__(self, status: str | None, solver_name: str | None = None) -> None:
        self.status = status
        self.solver_name = solver_name
        super().__init__(
            f"LHS visibility SDP failed with status {status!r}"
            + (f" (solver {solver_name})." if solver_name else ".")
        )


@dataclass
class LHSVisibilityResult:
    """Result bundle for one LHS visibility solve."""

    visibility: float
    local_states: np.ndarray
    strategy_table: np.ndarray
    solver_status: str
    solver_name: str | None


def assemblage_from_measurements(rho_AB: np.ndarray, measurements: np.ndarray) -> np.ndarray:
    """Return the unnormalized assemblage ``sigma[i, j]`` with shape ``(N, k, dB, dB)``."""
    M = np.asarray(measurements, dtype=complex)
    rho = np.asarray(rho_AB, dtype=complex)
    dA = M.shape[-1]
    dB = rho.shape[0] // dA
    sigma = np.zeros(M.shape[:2] + (dB, dB), dtype=complex)
    for i, j in np.ndindex(*M.shape[:2]):
        sigma[i, j] = reduced_assemblage_element(rho, M[i, j], dB)
    return sigma


def solve_lhs_visibility(
    rho_AB: np.ndarray,
    measurements: np.ndarray,
    *,
    solver: str | None = None,
    require_positive: bool = True,
    atol: float = 1e-9,
    solver_options: dict[str, Any] | None = None,
) -> LHSVisibilityResult:
    """Solve the LHS visibility SDP and return the optimal LHS model.

    ``solver`` is any installed cvxpy solver name (``"MOSEK"``, ``"CLARABEL"``,
    ``"SCS"``, ...); ``None`` lets cvxpy choose. Set
    ``require_positive=False`` for quasi-POVM inputs.
    """
    M = validate_measurement_set(measurements, atol=atol, require_positive=require_positive)
    rho, dB = validate_bipartite_state(rho_AB, dA=M.shape[-1], atol=atol)
    num_measurements, num_outcomes = M.shape[:2]

    strategy_table = deterministic_strategy_table(num_measurements, num_outcomes)
    num_strategies = strategy_table.shape[2]
    targets = assemblage_from_measurements(rho, M)
    identity = np.eye(dB, dtype=complex)

    eta = cp.Variable(name="eta")
    local_states = [
        cp.Variable((dB, dB), hermitian=True, name=f"sigma_loc_{l}") for l in range(num_strategies)
    ]

    constraints: list[cp.Constraint] = [eta >= 0, eta <= 1]
    constraints += [sigma >> 0 for sigma in local_states]
    for i, j in np.ndindex(num_measurements, num_outcomes):
        target = targets[i, j]
        noise = (float(np.real(np.trace(target))) / dB) * identity
        selected = np.flatnonzero(strategy_table[i, j])
        constraints.append(
            sum(local_states[l] for l in selected) == eta * target + (1 - eta) * noise
        )

    problem = cp.Problem(cp.Maximize(eta), constraints)
    try:
        problem.solve(solver=solver, **(solver_options or {}))
    except cp.SolverError as exc:
        raise VisibilitySolverError("solver_error", solver) from exc

    status = problem.status
    solver_name = _solver_name(problem, solver)
    if status not in ACCEPTED_STATUSES or eta.value is None:
        raise VisibilitySolverError(status, solver_name)
    if status == cp.OPTIMAL_INACCURATE:
        warnings.warn(
            f"LHS visibility SDP solved inaccurately by {solver_name}.",
            RuntimeWarning,
            stacklevel=2,
        )

    return LHSVisibilityResult(
        visibility=float(np.clip(eta.value, 0.0, 1.0)),
        local_states=np.array([sigma.value for sigma in local_states], dtype=complex),
        strategy_table=strategy_table,
        solver_status=str(status),
        solver_name=solver_name,
    )


def critical_visibility(
    rho_AB: np.ndarray,
    measurements: np.ndarray,
    *,
    solver: str | None = None,
    require_positive: bool = True,
    atol: float = 1e-9,
    solver_options: dict[str, Any] | None = None,
) -> float:
    """Return only the critical visibility of ``rho_AB`` under ``measurements``."""
    return solve_lhs_visibility(
        rho_AB,
        measurements,
        solver=solver,
        require_positive=require_positive,
        atol=atol,
        solver_options=solver_options,
    ).visibility


def _solver_name(problem: cp.Problem, requested: str | None) -> str | None:
    stats = getattr(problem, "solver_stats", None)
    name = getattr(stats, "solver_name", None) if stats is not None else None
    return name or requested

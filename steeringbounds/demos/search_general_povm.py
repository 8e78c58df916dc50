"""Search demo: two 4-outcome general POVMs on a noisy maximally entangled state."""

from __future__ import annotations

from pathlib import Path

import sys


_REPO_ROOT = Path(__file__).resolve().parents[2]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

import numpy as np

from steeringbounds.quantum import werner_state
from steeringbounds.search import run_independent_searches


def main() -> None:
    np.set_printoptions(precision=4, suppress=True)
    print("\n=== General POVM search: N=2, k=4, Werner state v=0.9 ===")

    results = run_independent_searches(
        werner_state(0.9),
        "general_povm",
        3,
        num_measurements=2,
        num_outcomes=4,
        seed=5,
        max_evaluations=300,
    )
    for run, result in enumerate(results):
        print(
            f"run {run}: eta = {result.visibility:.6f}, converged = {result.converged}, "
            f"evaluations = {result.num_evaluations}"
        )
    print(f"Best upper bound: {results[0].visibility:.6f}")


if __name__ == "__main__":
    main()

"""Search demo: two trine measurements on the two-qubit maximally entangled state."""

from __future__ import annotations

from pathlib import Path

import sys


_REPO_ROOT = Path(__file__).resolve().parents[2]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

import numpy as np

from steeringbounds.quantum import maximally_entangled_state
from steeringbounds.search import search_trine_measurements


def main() -> None:
    np.set_printoptions(precision=4, suppress=True)
    print("\n=== Trine search: N=2, |Phi+> ===")

    result = search_trine_measurements(
        maximally_entangled_state(),
        2,
        rng=2017,
        max_evaluations=400,
        verbose=True,
    )
    print(f"Upper bound on critical visibility: {result.visibility:.6f}")
    print(f"Converged: {result.converged} ({result.message})")
    print("Best trine parameters (theta, phi, psi) per measurement:")
    print(result.parameters.reshape(-1, 3))


if __name__ == "__main__":
    main()

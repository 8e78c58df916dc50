"""Polytope demo: lower bound for planar projective measurements on a Werner state."""

from __future__ import annotations

from pathlib import Path

import sys


_REPO_ROOT = Path(__file__).resolve().parents[2]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))

import numpy as np

from steeringbounds.quantum import werner_state
from steeringbounds.polytope import polytope_lower_bound


def main() -> None:
    np.set_printoptions(precision=4, suppress=True)
    print("\n=== Planar polytope lower bound: N=3, Werner state with visibility 0.9 ===")

    result = polytope_lower_bound(
        werner_state(0.9),
        12,
        num_measurements=3,
        verbose=True,
    )
    print("Polytope vertices (x, z):")
    print(result.vertices)
    print(f"Lower bound on critical visibility: {result.visibility:.6f}")
    print(f"Worst vertex combination: {result.worst_combination}")


if __name__ == "__main__":
    main()

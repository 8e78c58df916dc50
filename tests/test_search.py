import unittest
from unittest.mock import patch

import numpy as np

from steeringbounds.measurements import num_general_povm_parameters
from steeringbounds.quantum import maximally_entangled_state
from steeringbounds.search import (
    run_independent_searches,
    search_general_povm_measurements,
    search_trine_measurements,
)
from steeringbounds.visibility import critical_visibility


def _first_outcome_weight(rho_AB, measurements, solver=None):
    """Cheap smooth stand-in for the SDP: <0|M[0,0]|0>, minimal at theta = pi."""
    return float(np.real(measurements[0, 0, 0, 0]))


class SearchDriverLogicTests(unittest.TestCase):
    def test_converges_on_smooth_objective(self) -> None:
        with patch("steeringbounds.search.critical_visibility", side_effect=_first_outcome_weight):
            result = search_trine_measurements(maximally_entangled_state(), 1, rng=0)
        self.assertTrue(result.converged)
        self.assertEqual(result.family, "trine")
        self.assertAlmostEqual(result.visibility, 0.0, delta=1e-5)
        self.assertEqual(result.measurements.shape, (1, 3, 2, 2))
        self.assertEqual(result.parameters.shape, (3,))

    def test_evaluation_cap_is_reported_as_not_converged(self) -> None:
        with patch("steeringbounds.search.critical_visibility", side_effect=_first_outcome_weight):
            result = search_trine_measurements(maximally_entangled_state(), 2, rng=0, max_evaluations=10)
        self.assertFalse(result.converged)
        self.assertGreaterEqual(result.num_evaluations, 10)

    def test_seeded_start_points_are_reproducible(self) -> None:
        starts = []

        def record(rho_AB, measurements, solver=None):
            starts.append(np.array(measurements))
            return 0.5

        with patch("steeringbounds.search.critical_visibility", side_effect=record):
            search_trine_measurements(maximally_entangled_state(), 1, rng=42, max_evaluations=1)
            first = starts[0]
            starts.clear()
            search_trine_measurements(maximally_entangled_state(), 1, rng=42, max_evaluations=1)
        np.testing.assert_allclose(starts[0], first)

    def test_explicit_start_point_length_is_checked(self) -> None:
        with self.assertRaisesRegex(ValueError, "x0 has length"):
            search_general_povm_measurements(maximally_entangled_state(), 2, 3, x0=np.zeros(5))

    def test_invalid_state_raises(self) -> None:
        with self.assertRaises(ValueError):
            search_trine_measurements(np.eye(3) / 3, 1)


class SearchWithOracleTests(unittest.TestCase):
    def test_reported_visibility_matches_returned_measurements(self) -> None:
        rho = maximally_entangled_state()
        result = search_trine_measurements(rho, 2, rng=1, max_evaluations=25)
        self.assertGreaterEqual(result.visibility, 0.0)
        self.assertLessEqual(result.visibility, 1.0)
        self.assertAlmostEqual(critical_visibility(rho, result.measurements), result.visibility, delta=1e-3)

    def test_search_never_ends_above_its_start(self) -> None:
        rho = maximally_entangled_state()
        n_params = num_general_povm_parameters(2, 2)
        x0 = np.random.default_rng(9).random(n_params)
        evaluated = []

        def tracking(rho_AB, measurements, solver=None):
            value = critical_visibility(rho_AB, measurements, solver=solver)
            evaluated.append(value)
            return value

        with patch("steeringbounds.search.critical_visibility", side_effect=tracking):
            result = search_general_povm_measurements(rho, 2, 2, x0=x0, max_evaluations=20)
        self.assertLessEqual(result.visibility, evaluated[0] + 1e-9)
        self.assertEqual(result.measurements.shape, (2, 2, 2, 2))


class SeededTrineSearchTests(unittest.TestCase):
    """Full-tolerance Nelder-Mead runs for two trines on |Phi+> (slow: ~30 s per run)."""

    REFERENCE_SEED = 0
    REFERENCE_VISIBILITY = 0.773893

    def test_seeded_run_reproduces_reference_value(self) -> None:
        result = search_trine_measurements(maximally_entangled_state(), 2, rng=self.REFERENCE_SEED)
        self.assertTrue(result.converged)
        self.assertAlmostEqual(result.visibility, self.REFERENCE_VISIBILITY, delta=1e-3)

    def test_other_seed_does_not_beat_reference(self) -> None:
        result = search_trine_measurements(maximally_entangled_state(), 2, rng=1)
        self.assertGreaterEqual(result.visibility, self.REFERENCE_VISIBILITY - 1e-3)


class IndependentSearchTests(unittest.TestCase):
    def test_runs_are_sorted_and_independent(self) -> None:
        with patch("steeringbounds.search.critical_visibility", side_effect=_first_outcome_weight):
            results = run_independent_searches(
                maximally_entangled_state(),
                "trine",
                3,
                num_measurements=1,
                seed=7,
                max_evaluations=5,
            )
        self.assertEqual(len(results), 3)
        visibilities = [res.visibility for res in results]
        self.assertEqual(visibilities, sorted(visibilities))
        starts = {tuple(np.round(res.parameters, 12)) for res in results}
        self.assertEqual(len(starts), 3)

    def test_general_povm_family_needs_outcome_count(self) -> None:
        with self.assertRaises(ValueError):
            run_independent_searches(maximally_entangled_state(), "general_povm", 2, num_measurements=1)
        with self.assertRaises(ValueError):
            run_independent_searches(maximally_entangled_state(), "tetrahedron", 2, num_measurements=1)


if __name__ == "__main__":
    unittest.main()

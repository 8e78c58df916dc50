import unittest
import warnings

import numpy as np

from steeringbounds.linalg_utils import bloch_vector, validate_measurement_set
from steeringbounds.measurements import (
    general_povm_measurements,
    num_general_povm_parameters,
    num_trine_parameters,
    projective_measurements,
    trine_measurements,
    trine_parameters,
)


class MeasurementPropertyMixin:
    def assert_valid_povms(self, M: np.ndarray, atol: float = 1e-10) -> None:
        identity = np.eye(2)
        for i in range(M.shape[0]):
            np.testing.assert_allclose(M[i].sum(axis=0), identity, atol=atol)
            for j in range(M.shape[1]):
                np.testing.assert_allclose(M[i, j], M[i, j].conj().T, atol=atol)
                self.assertGreaterEqual(np.linalg.eigvalsh(M[i, j])[0], -atol)


class TrineMeasurementTests(MeasurementPropertyMixin, unittest.TestCase):
    def test_random_parameters_give_valid_trines(self) -> None:
        rng = np.random.default_rng(3)
        for num_measurements in (1, 2, 4):
            x = np.pi * rng.random(num_trine_parameters(num_measurements))
            M = trine_measurements(x, num_measurements)
            self.assertEqual(M.shape, (num_measurements, 3, 2, 2))
            self.assert_valid_povms(M)

    def test_trine_elements_are_120_degrees_apart(self) -> None:
        M = trine_measurements([0.7, 1.9, 2.4], 1)
        vectors = [bloch_vector(M[0, j]) for j in range(3)]
        for j in range(3):
            self.assertAlmostEqual(np.linalg.norm(vectors[j]), 1.0, places=10)
            self.assertAlmostEqual(np.trace(M[0, j]).real, 2.0 / 3.0, places=10)
            self.assertAlmostEqual(float(vectors[j] @ vectors[(j + 1) % 3]), -0.5, places=10)

    def test_parameter_round_trip(self) -> None:
        rng = np.random.default_rng(8)
        x = np.pi * rng.random(num_trine_parameters(3))
        M = trine_measurements(x, 3)
        np.testing.assert_allclose(trine_measurements(trine_parameters(M), 3), M, atol=1e-10)

    def test_round_trip_at_pole(self) -> None:
        M = trine_measurements([np.pi, 1.2, 0.4, 0.0, 2.0, 1.0], 2)
        np.testing.assert_allclose(trine_measurements(trine_parameters(M), 2), M, atol=1e-10)

    def test_wrong_length_raises(self) -> None:
        with self.assertRaisesRegex(ValueError, "expected 6"):
            trine_measurements(np.zeros(5), 2)


class GeneralPOVMTests(MeasurementPropertyMixin, unittest.TestCase):
    def test_parameter_count(self) -> None:
        self.assertEqual(num_general_povm_parameters(2, 4), 18)
        self.assertEqual(num_general_povm_parameters(3, 2), 9)

    def test_random_parameters_give_valid_povms(self) -> None:
        rng = np.random.default_rng(21)
        for num_measurements, num_outcomes in ((1, 2), (2, 3), (3, 4)):
            x = rng.random(num_general_povm_parameters(num_measurements, num_outcomes))
            M = general_povm_measurements(x, num_measurements, num_outcomes)
            self.assertEqual(M.shape, (num_measurements, num_outcomes, 2, 2))
            self.assert_valid_povms(M)
            validate_measurement_set(M)

    def test_generic_parameters_decode_without_warning(self) -> None:
        with warnings.catch_warnings():
            warnings.simplefilter("error", RuntimeWarning)
            general_povm_measurements([0.4, 0.3, 0.8, 0.6, 0.1, 0.2], 1, 3)

    def test_two_outcomes_are_projective(self) -> None:
        M = general_povm_measurements([0.4, 0.3, 0.8], 1, 2)
        for j in range(2):
            np.testing.assert_allclose(M[0, j] @ M[0, j], M[0, j], atol=1e-10)

    def test_zero_vector_gives_zero_operator(self) -> None:
        with self.assertWarns(RuntimeWarning):
            M = general_povm_measurements([0.0, 0.2, 0.1, 0.5, 0.3, 0.7], 1, 3)
        np.testing.assert_allclose(M[0, 0], np.zeros((2, 2)), atol=1e-12)
        self.assert_valid_povms(M)

    def test_all_zero_weights_give_trivial_measurement(self) -> None:
        with self.assertWarnsRegex(RuntimeWarning, "Clamped 3 Bloch"):
            M = general_povm_measurements(np.zeros(6), 1, 3)
        np.testing.assert_allclose(M[0, 0], np.eye(2), atol=1e-12)
        np.testing.assert_allclose(M[0, 1:], np.zeros((2, 2, 2)), atol=1e-12)

    def test_invalid_arguments_raise(self) -> None:
        with self.assertRaises(ValueError):
            general_povm_measurements(np.zeros(5), 1, 3)
        with self.assertRaises(ValueError):
            general_povm_measurements(np.zeros(0), 1, 1)
        with self.assertRaises(ValueError):
            general_povm_measurements([np.nan, 0.1, 0.2], 1, 2)


class ProjectiveMeasurementTests(MeasurementPropertyMixin, unittest.TestCase):
    def test_planar_rows_live_in_xz_plane(self) -> None:
        M = projective_measurements([[1.0, 0.0], [0.0, 1.0]])
        X = np.array([[0, 1], [1, 0]], dtype=complex)
        Z = np.diag([1.0, -1.0]).astype(complex)
        np.testing.assert_allclose(M[0, 0] - M[0, 1], X, atol=1e-12)
        np.testing.assert_allclose(M[1, 0] - M[1, 1], Z, atol=1e-12)
        self.assert_valid_povms(M)

    def test_long_vectors_give_quasi_povms(self) -> None:
        M = projective_measurements([[1.0, 1.0]])
        np.testing.assert_allclose(M[0].sum(axis=0), np.eye(2), atol=1e-12)
        self.assertLess(np.linalg.eigvalsh(M[0, 0])[0], 0.0)


if __name__ == "__main__":
    unittest.main()

"""Deterministic local strategies for ``N`` measurements with ``k`` outcomes.

Strategy ``l`` (``0 <= l < k**N``) is the base-``k`` expansion of ``l`` written
with ``N`` digits, most significant digit first. Digit ``c`` at position ``i``
assigns outcome ``c`` to measurement ``i``.
"""

from __future__ import annotations

import numpy as np


def _check_sizes(num_measurements: int, num_outcomes: int) -> tuple[int, int]:
    n = int(num_measurements)
    k = int(num_outcomes)
    if n < 1:
        raise ValueError("num_measurements must be at least 1.")
    if k < 1:
        raise ValueError("num_outcomes must be at least 1.")
    return n, k


def num_strategies(num_measurements: int, num_outcomes: int) -> int:
    n, k = _check_sizes(num_measurements, num_outcomes)
    return k**n


def strategy_digits(index: int, num_outcomes: int, num_measurements: int) -> tuple[int, ...]:
    """Return the outcome assigned to each measurement by strategy ``index``."""
    n, k = _check_sizes(num_measurements, num_outcomes)
    idx = int(index)
    if not 0 <= idx < k**n:
        raise ValueError(f"strategy index must lie in [0, {k**n}).")
    digits = [0] * n
    for position in range(n - 1, -1, -1):
        idx, digits[position] = divmod(idx, k)
    return tuple(digits)


def strategy_digit_table(num_measurements: int, num_outcomes: int) -> np.ndarray:
    """Return all strategies as an integer table of shape ``(k**N, N)``."""
    n, k = _check_sizes(num_measurements, num_outcomes)
    indices = np.arange(k**n, dtype=int)
    # Column i holds the digit with place value k**(N-1-i).
    place_values = k ** np.arange(n - 1, -1, -1, dtype=int)
    return (indices[:, None] // place_values[None, :]) % k


def deterministic_strategy_table(num_measurements: int, num_outcomes: int) -> np.ndarray:
    """Return the indicator table ``D`` with shape ``(N, k, k**N)``.

    ``D[i, j, l] == 1`` exactly when strategy ``l`` assigns outcome ``j`` to
    measurement ``i``; every ``D[i, :, l]`` contains a single one.
    """
    n, k = _check_sizes(num_measurements, num_outcomes)
    digits = strategy_digit_table(n, k)
    table = np.zeros((n, k, k**n), dtype=int)
    strategy_idx = np.arange(k**n, dtype=int)
    for i in range(n):
        table[i, digits[:, i], strategy_idx] = 1
    return table

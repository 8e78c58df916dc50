"""Public package API for steering critical-visibility bounds."""

from .linalg_utils import (
    bloch_operator,
    bloch_vector,
    hermitian_part,
    partial_trace,
    pauli_matrices,
    validate_bipartite_state,
    validate_measurement_set,
)
from .extremal_finders import (
    polytope_h_to_v_active_set,
    polytope_h_to_v_cdd,
)
from .measurements import (
    general_povm_measurements,
    num_general_povm_parameters,
    num_trine_parameters,
    projective_measurements,
    trine_measurements,
    trine_parameters,
)
from .strategies import (
    deterministic_strategy_table,
    strategy_digit_table,
    strategy_digits,
)
from .visibility import (
    LHSVisibilityResult,
    VisibilitySolverError,
    assemblage_from_measurements,
    critical_visibility,
    solve_lhs_visibility,
)
from .search import (
    SearchResult,
    run_independent_searches,
    search_general_povm_measurements,
    search_measurements,
    search_trine_measurements,
)
from .polytope import (
    PolytopeBoundResult,
    planar_polytope_vertices,
    polytope_lower_bound,
    polytope_lower_bound_value,
    vertex_combinations,
)
from .quantum import (
    maximally_entangled_state,
    maximally_mixed_state,
    pure_state_density,
    werner_state,
)


__all__ = [
    "LHSVisibilityResult",
    "PolytopeBoundResult",
    "SearchResult",
    "VisibilitySolverError",
    "assemblage_from_measurements",
    "bloch_operator",
    "bloch_vector",
    "critical_visibility",
    "deterministic_strategy_table",
    "general_povm_measurements",
    "hermitian_part",
    "maximally_entangled_state",
    "maximally_mixed_state",
    "num_general_povm_parameters",
    "num_trine_parameters",
    "partial_trace",
    "pauli_matrices",
    "planar_polytope_vertices",
    "polytope_h_to_v_active_set",
    "polytope_h_to_v_cdd",
    "polytope_lower_bound",
    "polytope_lower_bound_value",
    "projective_measurements",
    "pure_state_density",
    "run_independent_searches",
    "search_general_povm_measurements",
    "search_measurements",
    "search_trine_measurements",
    "solve_lhs_visibility",
    "strategy_digit_table",
    "strategy_digits",
    "trine_measurements",
    "trine_parameters",
    "validate_bipartite_state",
    "validate_measurement_set",
    "vertex_combinations",
    "werner_state",
]

# framecore/config.py
"""
Engine configuration and defaults.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class EngineConfig:
    """Numerical tolerances and code constants used by the analysis engine."""

    # Geometry
    min_element_length: float = 1e-6  # m, shorter elements are rejected

    # Linear solvers
    sparse_threshold: float = 1e-12   # entries below this are not stored
    pivot_tolerance: float = 1e-12    # relative to max |a_ij| for dense elimination
    lu_pivot_tolerance: float = 1e-12
    cg_tolerance: float = 1e-10
    cg_max_iterations: int = 1000     # capped further at N
    cond_limit: float = 1e12
    sparse_dof_threshold: int = 600   # 'auto' switches to CG above this size

    # Physics
    gravity: float = 9.81             # m/s²

    # Seismic
    long_period_transition: float = 8.0  # Tl (s)
    drift_limit: float = 0.02

    # Stress checks
    concrete_strength_factor: float = 0.85
    concrete_allowable_factor: float = 0.6
    steel_allowable_factor: float = 0.6
    timber_allowable_factor: float = 0.4
    marginal_utilization: float = 0.8
    utilization_cap: float = 2.0

    # Modal
    default_modes: int = 6

    def __post_init__(self):
        if self.min_element_length <= 0:
            raise ValueError("min_element_length must be positive")
        if self.cg_max_iterations < 1:
            raise ValueError("cg_max_iterations must be at least 1")


# Global default instance (frozen, safe to share)
DEFAULT_CONFIG = EngineConfig()

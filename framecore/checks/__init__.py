# framecore/checks - Structural design checks
"""Design checks per steel (AISC 360), timber (NDS) and concrete (SNI 2847 / ACI 318) codes."""

from .base import (
    CheckType,
    DesignCheck,
    make_check,
    governing_check,
    count_failing,
)

from .design import check_element, design_checks

from .steel import (
    compression_capacity,
    tension_capacity,
    flexure_capacity,
    shear_capacity,
    interaction,
    slenderness_check,
    check_steel_element,
)

from .timber import (
    TimberCapacity,
    DOUGLAS_FIR_CAPACITY,
    capacity_from_material,
    axial_utilization,
    bending_utilization,
    combined_utilization,
    check_timber_element,
)

from .concrete import check_concrete_element

__all__ = [
    'CheckType',
    'DesignCheck',
    'make_check',
    'governing_check',
    'count_failing',
    'check_element',
    'design_checks',
    # Steel
    'compression_capacity',
    'tension_capacity',
    'flexure_capacity',
    'shear_capacity',
    'interaction',
    'slenderness_check',
    'check_steel_element',
    # Timber
    'TimberCapacity',
    'DOUGLAS_FIR_CAPACITY',
    'capacity_from_material',
    'axial_utilization',
    'bending_utilization',
    'combined_utilization',
    'check_timber_element',
    # Concrete
    'check_concrete_element',
]

# framecore/checks/timber.py
"""Timber design checks per NDS style allowable stresses."""

from dataclasses import dataclass
from typing import List

from .base import CheckType, DesignCheck, is_axial_member, make_check, not_applicable

NDS = "NDS 2018"


@dataclass(frozen=True)
class TimberCapacity:
    """Allowable stresses for timber member (Pa)."""
    f_c: float      # Compression parallel to grain
    f_t: float      # Tension parallel to grain
    f_b: float      # Bending
    f_v: float      # Shear


# Douglas Fir - Select Structural grade (typical values)
DOUGLAS_FIR_CAPACITY = TimberCapacity(
    f_c=11.0e6,     # 11 MPa compression
    f_t=8.3e6,      # 8.3 MPa tension
    f_b=14.5e6,     # 14.5 MPa bending
    f_v=1.4e6,      # 1.4 MPa shear
)

# Bending allowable as a fraction of the reference (ultimate) strength
BENDING_FRACTION = 0.4


def capacity_from_material(material) -> TimberCapacity:
    """
    Allowable stresses for a timber material.

    f_b = 0.4·f_u; compression, tension and shear keep the Douglas Fir
    ratios to bending. Without a reference strength the Douglas Fir
    values are used as-is.
    """
    fu = material.ultimate_strength
    if fu <= 0:
        return DOUGLAS_FIR_CAPACITY
    f_b = BENDING_FRACTION * fu
    scale = f_b / DOUGLAS_FIR_CAPACITY.f_b
    return TimberCapacity(
        f_c=DOUGLAS_FIR_CAPACITY.f_c * scale,
        f_t=DOUGLAS_FIR_CAPACITY.f_t * scale,
        f_b=f_b,
        f_v=DOUGLAS_FIR_CAPACITY.f_v * scale,
    )


def axial_utilization(N: float, A: float, capacity: TimberCapacity) -> float:
    """
    Axial stress utilization ratio.

    Args:
        N: Axial force (positive=tension, negative=compression)
        A: Cross-sectional area (m²)
        capacity: Timber capacity values

    Returns:
        Utilization ratio (< 1.0 = pass)
    """
    if A <= 0:
        return float('inf')

    stress = abs(N) / A
    allowable = capacity.f_c if N < 0 else capacity.f_t

    return stress / allowable


def bending_utilization(M: float, S: float, capacity: TimberCapacity) -> float:
    """Bending stress utilization |M|/S / F_b."""
    if S <= 0:
        return float('inf') if M != 0 else 0.0
    return abs(M) / S / capacity.f_b


def combined_utilization(
    N: float,
    My: float,
    Mz: float,
    A: float,
    Sy: float,
    Sz: float,
    capacity: TimberCapacity
) -> float:
    """
    Combined axial + biaxial bending interaction per NDS 3.9.

    For compression: (f_a/F_c)² + f_b1/F_b + f_b2/F_b ≤ 1.0
    For tension:      f_a/F_t   + f_b1/F_b + f_b2/F_b ≤ 1.0

    Args:
        N: Axial force (positive=tension, negative=compression)
        My, Mz: Bending moments about local y and z (N·m)
        A: Cross-sectional area (m²)
        Sy, Sz: Section moduli (m³)
        capacity: Timber capacity values

    Returns:
        Utilization ratio (< 1.0 = pass)
    """
    if A <= 0:
        return float('inf')

    f_a = abs(N) / A
    bending_ratio = bending_utilization(My, Sy, capacity) + bending_utilization(Mz, Sz, capacity)

    if N < 0:  # Compression + bending
        axial_ratio = (f_a / capacity.f_c) ** 2
    else:  # Tension + bending
        axial_ratio = f_a / capacity.f_t

    return axial_ratio + bending_ratio


def check_timber_element(element, forces) -> List[DesignCheck]:
    """
    Flexure, shear, axial and combined checks for a timber element.

    Args:
        element: model.Element
        forces: post.ElementForces

    Returns:
        Four DesignCheck records
    """
    eid = element.id
    p = element.properties
    capacity = capacity_from_material(element.material)
    N = forces.axial

    if N < 0:
        axial = make_check(eid, CheckType.AXIAL, N, capacity.f_c * p.A, f"{NDS} 3.6",
                           notes="compression parallel to grain")
    else:
        axial = make_check(eid, CheckType.AXIAL, N, capacity.f_t * p.A, f"{NDS} 3.8",
                           notes="tension parallel to grain")

    if is_axial_member(element):
        note = "axial member"
        return [
            not_applicable(eid, CheckType.FLEXURE, f"{NDS} 3.3", note),
            not_applicable(eid, CheckType.SHEAR, f"{NDS} 3.4", note),
            axial,
            make_check(eid, CheckType.COMBINED,
                       combined_utilization(N, 0.0, 0.0, p.A, p.Sy, p.Sz, capacity), 1.0,
                       f"{NDS} 3.9"),
        ]

    if bending_utilization(forces.moment_y, p.Sy, capacity) >= bending_utilization(forces.moment_z, p.Sz, capacity):
        flexure = make_check(eid, CheckType.FLEXURE, forces.moment_y, capacity.f_b * p.Sy,
                             f"{NDS} 3.3", notes="about local y")
    else:
        flexure = make_check(eid, CheckType.FLEXURE, forces.moment_z, capacity.f_b * p.Sz,
                             f"{NDS} 3.3", notes="about local z")

    if forces.shear_y * p.Avz >= forces.shear_z * p.Avy:
        shear = make_check(eid, CheckType.SHEAR, forces.shear_y, capacity.f_v * p.Avy, f"{NDS} 3.4")
    else:
        shear = make_check(eid, CheckType.SHEAR, forces.shear_z, capacity.f_v * p.Avz, f"{NDS} 3.4")

    combined = make_check(
        eid, CheckType.COMBINED,
        combined_utilization(N, forces.moment_y, forces.moment_z, p.A, p.Sy, p.Sz, capacity),
        1.0, f"{NDS} 3.9",
    )
    return [flexure, shear, axial, combined]

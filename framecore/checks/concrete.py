# framecore/checks/concrete.py
"""Concrete member checks per SNI 2847:2019 / ACI 318-19, gross-section simplification."""

import math
from typing import List

from .base import CheckType, DesignCheck, is_axial_member, make_check, not_applicable

SNI = "SNI 2847:2019"

PHI_COMPRESSION = 0.65
PHI_TENSION = 0.6     # plain concrete
PHI_SHEAR = 0.75

# Extreme fibre compression limit for flexure, fraction of f'c
FLEXURE_STRESS_LIMIT = 0.45


def _sqrt_fc(fc: float) -> float:
    """√f'c in Pa, with the code's MPa units inside the root."""
    return math.sqrt(fc / 1e6) * 1e6


def compression_capacity(A: float, fc: float) -> float:
    """φ·0.85·f'c·Ag"""
    return PHI_COMPRESSION * 0.85 * fc * A


def tension_capacity(A: float, fc: float) -> float:
    """φ·fr·Ag with modulus of rupture fr = 0.62·√f'c."""
    return PHI_TENSION * 0.62 * _sqrt_fc(fc) * A


def flexure_capacity(S: float, fc: float) -> float:
    """0.45·f'c·S"""
    return FLEXURE_STRESS_LIMIT * fc * S


def shear_capacity(Av: float, fc: float) -> float:
    """φ·0.17·√f'c·Av (Vc, one-way shear, λ = 1)"""
    return PHI_SHEAR * 0.17 * _sqrt_fc(fc) * Av


def check_concrete_element(element, forces) -> List[DesignCheck]:
    """
    Flexure, shear, axial and combined checks for a concrete element.

    Reinforcement is not modelled, so capacities come from the gross
    section and f'c (material.ultimate_strength). Combined uses the
    linear interaction P/Pc + My/Mcy + Mz/Mcz.
    """
    eid = element.id
    fc = element.material.ultimate_strength
    p = element.properties

    if fc <= 0:
        return [not_applicable(eid, t, SNI, "f'c not defined", passed=False) for t in CheckType]

    N = forces.axial
    if N < 0:
        Pc = compression_capacity(p.A, fc)
        axial = make_check(eid, CheckType.AXIAL, N, Pc, f"{SNI} 22.4", notes="compression")
    else:
        Pc = tension_capacity(p.A, fc)
        axial = make_check(eid, CheckType.AXIAL, N, Pc, f"{SNI} 14.5", notes="tension, plain concrete")

    def _r(demand: float, capacity: float) -> float:
        if capacity > 0:
            return demand / capacity
        return float('inf') if demand > 0 else 0.0

    if is_axial_member(element):
        note = "axial member"
        return [
            not_applicable(eid, CheckType.FLEXURE, f"{SNI} 22.3", note),
            not_applicable(eid, CheckType.SHEAR, f"{SNI} 22.5", note),
            axial,
            make_check(eid, CheckType.COMBINED, _r(abs(N), Pc), 1.0, f"{SNI} 22.4"),
        ]

    Mcy = flexure_capacity(p.Sy, fc)
    Mcz = flexure_capacity(p.Sz, fc)
    if _r(forces.moment_y, Mcy) >= _r(forces.moment_z, Mcz):
        flexure = make_check(eid, CheckType.FLEXURE, forces.moment_y, Mcy, f"{SNI} 22.3", notes="about local y")
    else:
        flexure = make_check(eid, CheckType.FLEXURE, forces.moment_z, Mcz, f"{SNI} 22.3", notes="about local z")

    Vcy = shear_capacity(p.Avy, fc)
    Vcz = shear_capacity(p.Avz, fc)
    if _r(forces.shear_y, Vcy) >= _r(forces.shear_z, Vcz):
        shear = make_check(eid, CheckType.SHEAR, forces.shear_y, Vcy, f"{SNI} 22.5.5")
    else:
        shear = make_check(eid, CheckType.SHEAR, forces.shear_z, Vcz, f"{SNI} 22.5.5")

    combined_value = _r(abs(N), Pc) + _r(forces.moment_y, Mcy) + _r(forces.moment_z, Mcz)
    combined = make_check(eid, CheckType.COMBINED, combined_value, 1.0, f"{SNI} 22.4")

    return [flexure, shear, axial, combined]

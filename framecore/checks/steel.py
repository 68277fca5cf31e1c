# framecore/checks/steel.py
"""Steel design checks per AISC 360 (American Institute of Steel Construction)."""

from typing import List, Tuple

import numpy as np

from .base import CheckType, DesignCheck, is_axial_member, make_check, not_applicable

AISC = "AISC 360-22"

PHI_COMPRESSION = 0.9
PHI_TENSION = 0.9
PHI_FLEXURE = 0.9
PHI_SHEAR = 0.9


def euler_critical_stress(E: float, r: float, KL: float) -> float:
    """
    Euler buckling critical stress.

    Fe = π²E / (KL/r)²

    Args:
        E: Elastic modulus (Pa)
        r: Radius of gyration (m)
        KL: Effective length (m)

    Returns:
        Fe: Euler buckling stress (Pa)
    """
    if r <= 0:
        return 0.0
    slenderness = KL / r
    if slenderness < 1e-6:
        return float('inf')
    return np.pi**2 * E / slenderness**2


def compression_capacity(A: float, r: float, Fy: float, E: float, L: float, K: float = 1.0) -> float:
    """
    AISC 360-22 Chapter E: Compression capacity.

    Uses the flexural buckling formula of AISC E3.

    Args:
        A: Gross area (m²)
        r: Governing (least) radius of gyration (m)
        Fy: Yield stress (Pa)
        E: Elastic modulus (Pa)
        L: Unbraced length (m)
        K: Effective length factor (1.0 = pinned-pinned)

    Returns:
        Pn: Nominal compression capacity (N)
    """
    Fe = euler_critical_stress(E, r, K * L)
    if Fe <= 0:
        return 0.0

    ratio = Fy / Fe

    if ratio <= 2.25:
        # Inelastic buckling (short/intermediate columns)
        Fcr = (0.658 ** ratio) * Fy
    else:
        # Elastic buckling (long columns)
        Fcr = 0.877 * Fe

    return Fcr * A


def tension_capacity(A: float, Fy: float) -> float:
    """
    AISC 360-22 D2-1: yielding on the gross section, Pn = Fy·Ag.
    (Rupture on the net section is not considered.)
    """
    return Fy * A


def flexure_capacity(S: float, Fy: float) -> float:
    """
    AISC 360-22 Chapter F, simplified to elastic yielding: Mn = Fy·S.
    """
    return Fy * S


def shear_capacity(Av: float, Fy: float) -> float:
    """
    AISC 360-22 G2-1 with Cv1 = 1: Vn = 0.6·Fy·Aw.
    """
    return 0.6 * Fy * Av


def slenderness_check(r: float, L: float, K: float = 1.0) -> Tuple[float, str]:
    """
    Slenderness ratio against AISC recommendations:
    KL/r <= 200 for compression members, <= 300 for tension members.

    Returns:
        slenderness: KL/r ratio
        status: 'PASS', 'WARNING', or 'FAIL'
    """
    if r <= 0:
        return float('inf'), 'FAIL'
    slenderness = K * L / r

    if slenderness <= 200:
        return slenderness, 'PASS'
    elif slenderness <= 300:
        return slenderness, 'WARNING'
    else:
        return slenderness, 'FAIL'


def interaction(Pr: float, Pc: float, Mry: float, Mcy: float, Mrz: float, Mcz: float) -> float:
    """
    AISC H1-1 for doubly symmetric members in biaxial bending.

    Pr/Pc >= 0.2:  Pr/Pc + 8/9·(Mry/Mcy + Mrz/Mcz)      (H1-1a)
    Pr/Pc <  0.2:  Pr/(2·Pc) + (Mry/Mcy + Mrz/Mcz)      (H1-1b)
    """
    p = Pr / Pc if Pc > 0 else (float('inf') if Pr > 0 else 0.0)
    my = Mry / Mcy if Mcy > 0 else (float('inf') if Mry > 0 else 0.0)
    mz = Mrz / Mcz if Mcz > 0 else (float('inf') if Mrz > 0 else 0.0)
    if p >= 0.2:
        return p + (8.0 / 9.0) * (my + mz)
    return p / 2.0 + (my + mz)


def check_steel_element(element, forces, length: float, K: float = 1.0) -> List[DesignCheck]:
    """
    Flexure, shear, axial and combined checks of a steel (or composite)
    element. Uses LRFD resistance factors of 0.9.

    Args:
        element: model.Element
        forces: post.ElementForces (axial positive = tension)
        length: Member length, used as the unbraced length
        K: Effective length factor

    Returns:
        Four DesignCheck records
    """
    eid = element.id
    Fy = element.material.yield_strength
    E = element.material.elastic_modulus
    p = element.properties

    if Fy <= 0:
        note = "yield strength not defined"
        return [not_applicable(eid, t, AISC, note, passed=False) for t in CheckType]

    N = forces.axial
    slenderness, slender_status = slenderness_check(p.r_min, length, K)
    if N < 0:
        Pc = PHI_COMPRESSION * compression_capacity(p.A, p.r_min, Fy, E, length, K)
        axial = make_check(eid, CheckType.AXIAL, N, Pc, f"{AISC} E3",
                           notes=f"compression, KL/r = {slenderness:.0f} ({slender_status})")
    else:
        Pc = PHI_TENSION * tension_capacity(p.A, Fy)
        axial = make_check(eid, CheckType.AXIAL, N, Pc, f"{AISC} D2", notes="tension")

    if is_axial_member(element):
        note = "axial member"
        return [
            not_applicable(eid, CheckType.FLEXURE, f"{AISC} F2", note),
            not_applicable(eid, CheckType.SHEAR, f"{AISC} G2", note),
            axial,
            make_check(eid, CheckType.COMBINED, interaction(abs(N), Pc, 0.0, 1.0, 0.0, 1.0), 1.0,
                       f"{AISC} H1-1"),
        ]

    Mcy = PHI_FLEXURE * flexure_capacity(p.Sy, Fy)
    Mcz = PHI_FLEXURE * flexure_capacity(p.Sz, Fy)
    ratio_y = forces.moment_y / Mcy if Mcy > 0 else float('inf')
    ratio_z = forces.moment_z / Mcz if Mcz > 0 else float('inf')
    if ratio_y >= ratio_z:
        flexure = make_check(eid, CheckType.FLEXURE, forces.moment_y, Mcy, f"{AISC} F2", notes="about local y")
    else:
        flexure = make_check(eid, CheckType.FLEXURE, forces.moment_z, Mcz, f"{AISC} F2", notes="about local z")

    Vcy = PHI_SHEAR * shear_capacity(p.Avy, Fy)
    Vcz = PHI_SHEAR * shear_capacity(p.Avz, Fy)
    if (forces.shear_y / Vcy if Vcy > 0 else 0.0) >= (forces.shear_z / Vcz if Vcz > 0 else 0.0):
        shear = make_check(eid, CheckType.SHEAR, forces.shear_y, Vcy, f"{AISC} G2")
    else:
        shear = make_check(eid, CheckType.SHEAR, forces.shear_z, Vcz, f"{AISC} G2")

    combined_value = interaction(abs(N), Pc, forces.moment_y, Mcy, forces.moment_z, Mcz)
    combined = make_check(eid, CheckType.COMBINED, combined_value, 1.0, f"{AISC} H1-1")

    return [flexure, shear, axial, combined]

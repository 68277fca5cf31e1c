import math

import numpy as np
import pytest

from framecore.checks import (
    CheckType,
    DOUGLAS_FIR_CAPACITY,
    capacity_from_material,
    check_concrete_element,
    check_element,
    check_steel_element,
    check_timber_element,
    combined_utilization,
    compression_capacity,
    count_failing,
    design_checks,
    governing_check,
    interaction,
    make_check,
    slenderness_check,
)
from framecore.model import Element, ElementType, Material, MaterialType
from framecore.post import ElementForces, ElementResult, SafetyCheck, StressResult


def forces(axial=0.0, shear_y=0.0, shear_z=0.0, moment_y=0.0, moment_z=0.0):
    return ElementForces(
        end_forces=np.zeros(12), axial=axial, shear_y=shear_y, shear_z=shear_z,
        torsion=0.0, moment_y=moment_y, moment_z=moment_z, elongation=0.0,
    )


def element(material, section, type=ElementType.COLUMN):
    return Element("e1", type, 0, 1, section, material)


def result_for(el, f, length=3.0):
    stresses = StressResult(0.0, 0.0, 0.0, 0.0, 0.0, 0.0)
    safety = SafetyCheck(True, 0.0, 1.0, 0.0, math.inf, "safe")
    return ElementResult(el.id, length, f, stresses, safety)


class TestSteel:

    def test_compression_capacity_short_column(self):
        """Very short column: Fy/Fe → 0 so Fcr → Fy."""
        Pn = compression_capacity(A=0.01, r=0.1, Fy=250e6, E=2e11, L=0.01)
        assert Pn == pytest.approx(250e6 * 0.01, rel=1e-4)

    def test_compression_capacity_elastic_buckling(self):
        A, r, E, L = 0.01, 0.02, 2e11, 10.0
        Fe = math.pi**2 * E / (L / r)**2
        assert compression_capacity(A, r, 250e6, E, L) == pytest.approx(0.877 * Fe * A)

    def test_slenderness_limits(self):
        assert slenderness_check(0.1, 10.0)[1] == 'PASS'
        assert slenderness_check(0.04, 10.0)[1] == 'WARNING'
        assert slenderness_check(0.01, 10.0)[1] == 'FAIL'

    def test_interaction_branches(self):
        assert interaction(50.0, 100.0, 10.0, 100.0, 0.0, 1.0) == pytest.approx(0.5 + 8 / 9 * 0.1)
        assert interaction(10.0, 100.0, 10.0, 100.0, 0.0, 1.0) == pytest.approx(0.05 + 0.1)

    def test_compression_check_uses_buckling_capacity(self, steel, section):
        el = element(steel, section)
        p = el.properties
        checks = check_steel_element(el, forces(axial=-1.0e6), length=4.0)

        axial = next(c for c in checks if c.check_type == CheckType.AXIAL)
        expected = 0.9 * compression_capacity(p.A, p.r_min, 250e6, 2e11, 4.0)
        assert axial.capacity == pytest.approx(expected)
        assert axial.ratio == pytest.approx(1.0e6 / expected)
        assert axial.passed

    def test_tension_and_flexure(self, steel, section):
        el = element(steel, section, ElementType.BEAM)
        checks = check_steel_element(el, forces(axial=1.0e5, moment_y=5.0e5), length=6.0)
        by_type = {c.check_type: c for c in checks}

        assert by_type[CheckType.AXIAL].capacity == pytest.approx(0.9 * 250e6 * 0.08)
        flexure = by_type[CheckType.FLEXURE]
        assert flexure.capacity == pytest.approx(0.9 * 250e6 * el.properties.Sy)
        assert flexure.notes == "about local y"
        assert len(checks) == 4

    def test_overloaded_beam_fails(self, steel, section):
        el = element(steel, section, ElementType.BEAM)
        checks = check_steel_element(el, forces(moment_y=1.0e8), length=6.0)
        assert count_failing(checks) >= 2
        assert governing_check(checks).ratio > 1.0

    def test_brace_only_axial(self, steel, section):
        el = element(steel, section, ElementType.BRACE)
        checks = check_steel_element(el, forces(axial=1.0e5, moment_y=1.0e8), length=5.0)
        by_type = {c.check_type: c for c in checks}

        assert not by_type[CheckType.FLEXURE].applicable
        assert not by_type[CheckType.SHEAR].applicable
        assert by_type[CheckType.AXIAL].applicable
        assert by_type[CheckType.COMBINED].passed

    def test_missing_yield_strength(self, section):
        mat = Material("S0", MaterialType.STEEL, 2e11, 7850.0)
        checks = check_steel_element(element(mat, section), forces(axial=1.0), length=3.0)
        assert all(not c.applicable and not c.passed for c in checks)


class TestTimber:

    def test_douglas_fir_fallback(self):
        mat = Material("T0", MaterialType.TIMBER, 11e9, 450.0)
        assert capacity_from_material(mat) == DOUGLAS_FIR_CAPACITY

    def test_capacity_scales_with_strength(self, timber):
        cap = capacity_from_material(timber)
        assert cap.f_b == pytest.approx(0.4 * 36.25e6)
        assert cap.f_c / cap.f_b == pytest.approx(DOUGLAS_FIR_CAPACITY.f_c / DOUGLAS_FIR_CAPACITY.f_b)

    def test_compression_interaction_squares_axial_term(self):
        cap = DOUGLAS_FIR_CAPACITY
        A = 0.01
        N = -0.5 * cap.f_c * A
        assert combined_utilization(N, 0.0, 0.0, A, 1.0, 1.0, cap) == pytest.approx(0.25)
        assert combined_utilization(-N, 0.0, 0.0, A, 1.0, 1.0, cap) == pytest.approx(0.5 * cap.f_c / cap.f_t)

    def test_check_timber_element(self, timber, section):
        el = element(timber, section, ElementType.BEAM)
        checks = check_timber_element(el, forces(axial=-1.0e4, moment_y=2.0e4, shear_z=1.0e4))
        by_type = {c.check_type: c for c in checks}
        cap = capacity_from_material(timber)

        assert by_type[CheckType.FLEXURE].capacity == pytest.approx(cap.f_b * el.properties.Sy)
        assert by_type[CheckType.AXIAL].capacity == pytest.approx(cap.f_c * 0.08)
        assert by_type[CheckType.SHEAR].demand == pytest.approx(1.0e4)
        assert all(c.code.startswith("NDS") for c in checks)


class TestConcrete:

    def test_compression_capacity(self, concrete, section):
        el = element(concrete, section)
        checks = check_concrete_element(el, forces(axial=-1.0e6))
        axial = next(c for c in checks if c.check_type == CheckType.AXIAL)

        assert axial.capacity == pytest.approx(0.65 * 0.85 * 30e6 * 0.08)
        assert axial.ratio == pytest.approx(1.0e6 / 1.326e6, rel=1e-6)

    def test_shear_uses_root_fc_in_mpa(self, concrete, section):
        el = element(concrete, section, ElementType.BEAM)
        checks = check_concrete_element(el, forces(shear_z=1.0e4))
        shear = next(c for c in checks if c.check_type == CheckType.SHEAR)
        assert shear.capacity == pytest.approx(0.75 * 0.17 * math.sqrt(30.0) * 1e6 * el.properties.Avz)

    def test_undefined_strength_fails(self, section):
        mat = Material("C0", MaterialType.CONCRETE, 25e9, 2400.0)
        checks = check_concrete_element(element(mat, section), forces())
        assert count_failing(checks) == 4


def test_make_check_zero_capacity():
    c = make_check("e", CheckType.AXIAL, 10.0, 0.0, "code")
    assert c.ratio == math.inf
    assert not c.passed
    assert make_check("e", CheckType.AXIAL, 0.0, 0.0, "code").passed


def test_dispatch_by_material(steel, timber, concrete, section):
    f = forces(axial=-1.0e3)
    for mat, prefix in ((steel, "AISC"), (timber, "NDS"), (concrete, "SNI")):
        el = element(mat, section)
        checks = check_element(el, result_for(el, f))
        assert len(checks) == 4
        assert all(c.code.startswith(prefix) for c in checks)


def test_composite_checked_as_steel(section):
    mat = Material("SC", MaterialType.COMPOSITE, 2e11, 7850.0, yield_strength=345e6)
    el = element(mat, section)
    checks = check_element(el, result_for(el, forces(axial=1.0e3)))
    assert all(c.code.startswith("AISC") for c in checks)


def test_design_checks_over_model(portal):
    from framecore.post import element_result

    d = np.zeros(portal.ndof)
    results = [element_result(portal, el, d) for el in portal.elements]
    checks = design_checks(portal, results)

    assert len(checks) == 4 * len(portal.elements)
    assert count_failing(checks) == 0

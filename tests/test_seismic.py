import numpy as np
import pytest

from framecore.errors import CalculationError
from framecore.model import MaterialType
from framecore.post import drift_limit
from framecore.seismic import (
    ImportanceClass,
    SeismicParameters,
    SiteClass,
    approximate_period,
    calculate_base_shear,
    calculate_response_spectrum,
    design_parameters,
    distribution_exponent,
    importance_factor,
    minimum_seismic_coefficient,
    period_coefficients,
    period_upper_limit,
    seismic_coefficient,
    site_coefficients,
    spectral_acceleration,
    vertical_distribution,
)


@pytest.fixture
def params():
    return SeismicParameters(ss=1.0, s1=0.4, site_class=SiteClass.SD, response_modification=8.0)


def test_site_coefficients_table_values():
    assert site_coefficients(SiteClass.SD, 1.0, 0.4) == pytest.approx((1.1, 1.9))
    assert site_coefficients("SC", 0.25, 0.1) == pytest.approx((1.2, 1.7))


def test_site_coefficients_interpolate_and_clamp():
    fa, _ = site_coefficients(SiteClass.SD, 0.625, 0.4)
    assert fa == pytest.approx(1.3)
    # outside the table the end values apply
    fa_low, fv_high = site_coefficients(SiteClass.SD, 0.1, 0.9)
    assert fa_low == pytest.approx(1.6)
    assert fv_high == pytest.approx(1.8)


def test_site_class_sf_needs_site_analysis():
    with pytest.raises(CalculationError):
        site_coefficients(SiteClass.SF, 1.0, 0.4)


def test_design_parameters(params):
    sp = design_parameters(params)

    assert sp.sms == pytest.approx(1.1)
    assert sp.sm1 == pytest.approx(0.76)
    assert sp.sds == pytest.approx(2 / 3 * 1.1)
    assert sp.sd1 == pytest.approx(2 / 3 * 0.76)
    assert sp.ts == pytest.approx(sp.sd1 / sp.sds)
    assert sp.t0 == pytest.approx(0.2 * sp.ts)
    assert sp.tl == 8.0


def test_spectrum_shape(params):
    sp = design_parameters(params)

    assert spectral_acceleration(0.0, params) == pytest.approx(0.4 * sp.sds)
    # continuous at Ts
    eps = 1e-9
    assert spectral_acceleration(sp.ts - eps, params) == pytest.approx(sp.sds, rel=1e-6)
    assert spectral_acceleration(sp.ts + eps, params) == pytest.approx(sp.sds, rel=1e-6)
    # long-period branch
    assert spectral_acceleration(10.0, params) == pytest.approx(sp.sd1 / 10.0)

    with pytest.raises(ValueError):
        spectral_acceleration(-0.1, params)


def test_spectrum_non_increasing_beyond_ts(params):
    sp = design_parameters(params)
    spectrum = calculate_response_spectrum(params, np.linspace(sp.ts, 12.0, 200))
    assert np.all(np.diff(spectrum.sa) <= 1e-12)


def test_default_spectrum_grid_includes_ts(params):
    spectrum = calculate_response_spectrum(params)
    ts = design_parameters(params).ts

    assert spectrum.periods[0] == 0.0
    assert spectrum.periods[-1] == pytest.approx(4.0)
    assert np.any(np.isclose(spectrum.periods, ts))
    assert len(spectrum.periods) == len(spectrum.sa)


def test_importance_factors():
    assert importance_factor(ImportanceClass.II) == 1.0
    assert importance_factor("IV") == 1.5


def test_base_shear_plateau(params):
    sp = design_parameters(params)
    W = 1.0e6
    V = calculate_base_shear(W, 1.0, params)
    assert V == pytest.approx(sp.sds / 8.0 * W)


def test_base_shear_floor(params):
    """At long periods the minimum coefficient governs."""
    W = 1.0e6
    cs_min = minimum_seismic_coefficient(params)
    assert cs_min == pytest.approx(0.044 * design_parameters(params).sds)

    assert calculate_base_shear(W, 10.0, params) == pytest.approx(cs_min * W)
    for T in (0.0, 0.3, 1.0, 3.0, 9.0, 20.0):
        assert calculate_base_shear(W, T, params) >= cs_min * W - 1e-9


def test_importance_raises_base_shear(params):
    low = seismic_coefficient(1.0, params)
    high = seismic_coefficient(1.0, params, ImportanceClass.IV)
    assert high == pytest.approx(1.5 * low)


def test_negative_weight_rejected(params):
    with pytest.raises(ValueError):
        calculate_base_shear(-1.0, 1.0, params)


def test_invalid_parameters():
    with pytest.raises(ValueError):
        SeismicParameters(ss=-0.1, s1=0.4)
    with pytest.raises(ValueError):
        SeismicParameters(ss=1.0, s1=0.4, response_modification=0.0)


def test_period_helpers():
    assert approximate_period(10.0) == pytest.approx(0.0466 * 10.0**0.9)
    assert period_upper_limit(1.0, 0.5) == pytest.approx(1.4)
    assert period_upper_limit(1.0, 0.1) == pytest.approx(1.7)
    assert distribution_exponent(0.3) == 1.0
    assert distribution_exponent(1.5) == pytest.approx(1.5)
    assert distribution_exponent(4.0) == 2.0


def test_vertical_distribution_sums_to_base_shear():
    forces = vertical_distribution(1000.0, [200.0, 200.0, 100.0], [3.0, 6.0, 9.0], period=0.4)

    assert forces.sum() == pytest.approx(1000.0)
    # k = 1: proportional to w·h
    np.testing.assert_allclose(forces, 1000.0 * np.array([600.0, 1200.0, 900.0]) / 2700.0)


def test_vertical_distribution_without_weight():
    with pytest.raises(CalculationError):
        vertical_distribution(1000.0, [0.0, 0.0], [3.0, 6.0], period=0.4)


def test_drift_limit_by_importance_class():
    assert drift_limit() == pytest.approx(0.020)
    assert drift_limit(ImportanceClass.III) == pytest.approx(0.015)
    assert drift_limit("IV") == pytest.approx(0.010)


def test_period_coefficients_by_lateral_system():
    assert period_coefficients(MaterialType.STEEL) == (0.0724, 0.8)
    assert period_coefficients("concrete") == (0.0466, 0.9)
    assert period_coefficients(MaterialType.TIMBER) == (0.0488, 0.75)
    assert period_coefficients(MaterialType.CONCRETE, braced=True) == (0.0731, 0.75)

# framecore/seismic.py
"""
SEISMIC RESPONSE: Design Spectrum, Seismic Coefficient, Base Shear
==================================================================

Equivalent lateral force procedure (ASCE 7-16 Ch. 11-12, SNI 1726:2019):

    Sms = Fa·Ss             Sm1 = Fv·S1
    Sds = 2/3·Sms           Sd1 = 2/3·Sm1
    Ts  = Sd1/Sds           T0  = 0.2·Ts

Design spectrum used here:

    T <= Ts          Sa = Sds·(0.4 + 0.6·T/Ts)
    Ts < T <= Tl     Sa = Sds
    T > Tl           Sa = Sd1/T

Sa(Ts) = Sds from both sides, so the curve is continuous at Ts and
non-increasing beyond it.

    Cs     = Sa(T)·Ie/R
    Cs_min = max(0.044·Sds·Ie, 0.01)
    V      = max(Cs, Cs_min)·W
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from .errors import CalculationError
from .model import MaterialType

logger = logging.getLogger(__name__)


class SiteClass(str, Enum):
    SA = "SA"   # hard rock
    SB = "SB"   # rock
    SC = "SC"   # very dense soil / soft rock
    SD = "SD"   # stiff soil
    SE = "SE"   # soft clay
    SF = "SF"   # requires site-specific analysis


class ImportanceClass(str, Enum):
    I = "I"
    II = "II"
    III = "III"
    IV = "IV"


IMPORTANCE_FACTORS: Dict[ImportanceClass, float] = {
    ImportanceClass.I: 1.0,
    ImportanceClass.II: 1.0,
    ImportanceClass.III: 1.25,
    ImportanceClass.IV: 1.5,
}

# Site coefficient tables (ASCE 7-16 Tables 11.4-1 / 11.4-2)
SS_GRID = np.array([0.25, 0.50, 0.75, 1.00, 1.25])
S1_GRID = np.array([0.1, 0.2, 0.3, 0.4, 0.5])

FA_TABLE: Dict[SiteClass, np.ndarray] = {
    SiteClass.SA: np.array([0.8, 0.8, 0.8, 0.8, 0.8]),
    SiteClass.SB: np.array([0.9, 0.9, 0.9, 0.9, 0.9]),
    SiteClass.SC: np.array([1.2, 1.2, 1.1, 1.0, 1.0]),
    SiteClass.SD: np.array([1.6, 1.4, 1.2, 1.1, 1.0]),
    SiteClass.SE: np.array([2.5, 1.7, 1.2, 0.9, 0.8]),
}

FV_TABLE: Dict[SiteClass, np.ndarray] = {
    SiteClass.SA: np.array([0.8, 0.8, 0.8, 0.8, 0.8]),
    SiteClass.SB: np.array([0.9, 0.9, 0.9, 0.9, 0.9]),
    SiteClass.SC: np.array([1.7, 1.6, 1.5, 1.4, 1.3]),
    SiteClass.SD: np.array([2.4, 2.2, 2.0, 1.9, 1.8]),
    SiteClass.SE: np.array([3.5, 3.2, 2.8, 2.4, 2.4]),
}

# Upper limit coefficient Cu vs Sd1 (ASCE 7-16 Table 12.8-1)
CU_SD1 = np.array([0.1, 0.15, 0.2, 0.3, 0.4])
CU_VALUES = np.array([1.7, 1.6, 1.5, 1.4, 1.4])

# Approximate period parameters Ct, x (ASCE 7-16 Table 12.8-2)
MOMENT_FRAME_PERIOD: Dict[MaterialType, Tuple[float, float]] = {
    MaterialType.STEEL: (0.0724, 0.8),
    MaterialType.COMPOSITE: (0.0724, 0.8),
    MaterialType.CONCRETE: (0.0466, 0.9),
}
BRACED_FRAME_PERIOD = (0.0731, 0.75)
OTHER_SYSTEM_PERIOD = (0.0488, 0.75)


@dataclass(frozen=True)
class SeismicParameters:
    """
    Site and system parameters.

    ss, s1 : mapped spectral accelerations (g) at 0.2 s and 1.0 s
    site_class : SiteClass
    response_modification : R
    long_period_transition : Tl (s)
    importance_class : occupancy/risk category, gives Ie
    """
    ss: float
    s1: float
    site_class: SiteClass = SiteClass.SD
    response_modification: float = 8.0
    long_period_transition: float = 8.0
    importance_class: ImportanceClass = ImportanceClass.II

    def __post_init__(self):
        if self.ss < 0 or self.s1 < 0:
            raise ValueError("Ss and S1 must be non-negative")
        if self.response_modification <= 0:
            raise ValueError("Response modification factor R must be positive")
        if self.long_period_transition <= 0:
            raise ValueError("Tl must be positive")
        object.__setattr__(self, 'site_class', SiteClass(self.site_class))
        object.__setattr__(self, 'importance_class', ImportanceClass(self.importance_class))


@dataclass(frozen=True)
class DesignSpectrum:
    """Derived design values of a SeismicParameters set."""
    fa: float
    fv: float
    sms: float
    sm1: float
    sds: float
    sd1: float
    t0: float
    ts: float
    tl: float


@dataclass(frozen=True)
class ResponseSpectrum:
    periods: np.ndarray
    sa: np.ndarray


def importance_factor(importance_class) -> float:
    return IMPORTANCE_FACTORS[ImportanceClass(importance_class)]


def site_coefficients(site_class, ss: float, s1: float) -> Tuple[float, float]:
    """
    Fa and Fv, linearly interpolated in Ss / S1 and clamped at the table ends.

    Raises:
        CalculationError: For site class SF (site response analysis required)
    """
    site_class = SiteClass(site_class)
    if site_class == SiteClass.SF:
        raise CalculationError("Site class SF requires a site-specific ground motion analysis")
    fa = float(np.interp(ss, SS_GRID, FA_TABLE[site_class]))
    fv = float(np.interp(s1, S1_GRID, FV_TABLE[site_class]))
    return fa, fv


def design_parameters(params: SeismicParameters) -> DesignSpectrum:
    fa, fv = site_coefficients(params.site_class, params.ss, params.s1)
    sms = fa * params.ss
    sm1 = fv * params.s1
    sds = 2.0 / 3.0 * sms
    sd1 = 2.0 / 3.0 * sm1
    if sds <= 0:
        raise CalculationError("Sds is zero; Ss must be positive to build a design spectrum")
    ts = sd1 / sds
    return DesignSpectrum(
        fa=fa, fv=fv, sms=sms, sm1=sm1, sds=sds, sd1=sd1,
        t0=0.2 * ts, ts=ts, tl=params.long_period_transition,
    )


def spectral_acceleration(period: float, params: SeismicParameters,
                          spectrum: Optional[DesignSpectrum] = None) -> float:
    """Design spectral acceleration Sa(T) in g."""
    if period < 0:
        raise ValueError("Period must be non-negative")
    sp = spectrum or design_parameters(params)
    if period <= sp.ts:
        if sp.ts <= 0:
            return sp.sds
        return sp.sds * (0.4 + 0.6 * period / sp.ts)
    if period <= sp.tl:
        return sp.sds
    return sp.sd1 / period


def calculate_response_spectrum(
    params: SeismicParameters,
    periods: Optional[Sequence[float]] = None,
) -> ResponseSpectrum:
    """
    Sa over a period grid (default 0 to 4 s in 0.05 s steps, plus Ts).
    """
    sp = design_parameters(params)
    if periods is None:
        grid = np.round(np.arange(0.0, 4.0 + 1e-9, 0.05), 10)
        grid = np.union1d(grid, [sp.ts])
    else:
        grid = np.asarray(periods, dtype=float)
    sa = np.array([spectral_acceleration(T, params, sp) for T in grid])
    return ResponseSpectrum(periods=grid, sa=sa)


def minimum_seismic_coefficient(params: SeismicParameters, importance_class=None,
                                spectrum: Optional[DesignSpectrum] = None) -> float:
    sp = spectrum or design_parameters(params)
    ie = importance_factor(importance_class or params.importance_class)
    return max(0.044 * sp.sds * ie, 0.01)


def seismic_coefficient(period: float, params: SeismicParameters, importance_class=None) -> float:
    """Cs = Sa(T)·Ie/R, never below Cs_min."""
    sp = design_parameters(params)
    ie = importance_factor(importance_class or params.importance_class)
    cs = spectral_acceleration(period, params, sp) * ie / params.response_modification
    cs_min = minimum_seismic_coefficient(params, importance_class, sp)
    return max(cs, cs_min)


def calculate_base_shear(weight: float, period: float, params: SeismicParameters,
                         importance_class=None) -> float:
    """
    Design base shear V = Cs·W.

    Args:
        weight: Effective seismic weight W (N)
        period: Fundamental period T (s)
        params: Site/system parameters
        importance_class: Overrides params.importance_class when given

    Returns:
        V in N, never below Cs_min·W
    """
    if weight < 0:
        raise ValueError("Seismic weight must be non-negative")
    cs = seismic_coefficient(period, params, importance_class)
    V = cs * weight
    logger.info("Base shear: T=%.3f s, Cs=%.4f, W=%.1f N, V=%.1f N", period, cs, weight, V)
    return V


def period_coefficients(material_type, braced: bool = False) -> Tuple[float, float]:
    """
    (Ct, x) for the approximate period of the lateral system.

    Any brace makes it a braced frame (eccentrically braced row). Timber
    falls under "all other structural systems".
    """
    if braced:
        return BRACED_FRAME_PERIOD
    return MOMENT_FRAME_PERIOD.get(MaterialType(material_type), OTHER_SYSTEM_PERIOD)


def approximate_period(height: float, ct: float = 0.0466, x: float = 0.9) -> float:
    """Ta = Ct·hn^x (defaults: concrete moment frame)."""
    if height < 0:
        raise ValueError("Height must be non-negative")
    return ct * height**x


def period_upper_limit(approximate: float, sd1: float) -> float:
    """Cu·Ta, the cap on a computed period used for design."""
    cu = float(np.interp(sd1, CU_SD1, CU_VALUES))
    return cu * approximate


def distribution_exponent(period: float) -> float:
    """k = 1 for T <= 0.5 s, 2 for T >= 2.5 s, linear between."""
    if period <= 0.5:
        return 1.0
    if period >= 2.5:
        return 2.0
    return 1.0 + (period - 0.5) / 2.0


def vertical_distribution(base_shear: float, weights: Sequence[float], heights: Sequence[float],
                          period: float) -> np.ndarray:
    """
    Story forces Fx = Cvx·V with Cvx = wx·hx^k / Σ wi·hi^k.

    Args:
        base_shear: V (N)
        weights: Seismic weight per level (N)
        heights: Height of each level above the base (m)
        period: Fundamental period, selects k

    Returns:
        Force per level (N), summing to V
    """
    w = np.asarray(weights, dtype=float)
    h = np.asarray(heights, dtype=float)
    if w.shape != h.shape:
        raise ValueError("weights and heights must have the same length")
    k = distribution_exponent(period)
    wh = w * np.power(np.maximum(h, 0.0), k)
    total = wh.sum()
    if total <= 0:
        raise CalculationError("Cannot distribute base shear: no weight above the base")
    return base_shear * wh / total

# framecore/section.py
"""
SECTION PROPERTIES: Shape Description → Stiffness Properties
============================================================

PURPOSE:
--------
Every element carries a Section: a shape tag plus primary dimensions.
The stiffness, mass and stress code never looks at dimensions directly,
it asks this module for a SectionProperties record instead:

    A       cross-section area                     (m²)
    Iy, Iz  second moments about local y and z     (m⁴)
    Sy, Sz  elastic section moduli                 (m³)
    J       torsional constant                     (m⁴)
    Avy/Avz shear areas                            (m²)

LOCAL AXES:
-----------
Local x runs along the member. For a rectangle, `width` (b) is measured
along local y and `height` (h) along local z, so

    Iy = b·h³/12    (bending about local y, strong axis for h > b)
    Iz = h·b³/12

SHAPES:
-------
    rectangular   b·h formulas, J ≈ b·h³/3 (thin-strip approximation,
                  overestimates J for stocky sections)
    circular      solid round, J = polar moment πr⁴/2 (exact)
    custom        overrides where given, rectangular formulas otherwise

The calculator never raises: a section with missing dimensions gets an
explicit all-zero property set and model validation reports it.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class SectionShape(str, Enum):
    RECTANGULAR = "rectangular"
    CIRCULAR = "circular"
    CUSTOM = "custom"


@dataclass(frozen=True)
class Section:
    """
    Cross-section description.

    Parameters:
    -----------
    name : str
        Section designation, unique within a model (e.g. "B300x600")
    shape : SectionShape
        Shape tag
    width, height : float
        Rectangle dimensions in m (b along local y, h along local z)
    diameter : float
        Circle diameter in m
    area, iy, iz, j : float, optional
        Caller-supplied overrides, used instead of the derived values
    """
    name: str
    shape: SectionShape = SectionShape.RECTANGULAR
    width: float = 0.0
    height: float = 0.0
    diameter: float = 0.0
    area: Optional[float] = None
    iy: Optional[float] = None
    iz: Optional[float] = None
    j: Optional[float] = None

    @classmethod
    def rectangular(cls, name: str, width: float, height: float) -> "Section":
        return cls(name=name, shape=SectionShape.RECTANGULAR, width=width, height=height)

    @classmethod
    def circular(cls, name: str, diameter: float) -> "Section":
        return cls(name=name, shape=SectionShape.CIRCULAR, diameter=diameter)

    @property
    def properties(self) -> "SectionProperties":
        return section_properties(self)


@dataclass(frozen=True)
class SectionProperties:
    """Derived cross-section properties (SI units)."""
    A: float
    Iy: float
    Iz: float
    Sy: float
    Sz: float
    J: float
    Avy: float
    Avz: float

    @property
    def ry(self) -> float:
        """Radius of gyration about local y."""
        return math.sqrt(self.Iy / self.A) if self.A > 0 else 0.0

    @property
    def rz(self) -> float:
        """Radius of gyration about local z."""
        return math.sqrt(self.Iz / self.A) if self.A > 0 else 0.0

    @property
    def r_min(self) -> float:
        return min(self.ry, self.rz)


ZERO_PROPERTIES = SectionProperties(A=0.0, Iy=0.0, Iz=0.0, Sy=0.0, Sz=0.0, J=0.0, Avy=0.0, Avz=0.0)


def _modulus(I: float, c: float) -> float:
    return I / c if c > 0 else 0.0


def rectangular_properties(b: float, h: float) -> SectionProperties:
    """Solid rectangle, b along local y and h along local z."""
    if b <= 0 or h <= 0:
        return ZERO_PROPERTIES
    A = b * h
    Iy = b * h**3 / 12.0
    Iz = h * b**3 / 12.0
    return SectionProperties(
        A=A,
        Iy=Iy,
        Iz=Iz,
        Sy=_modulus(Iy, h / 2.0),
        Sz=_modulus(Iz, b / 2.0),
        J=b * h**3 / 3.0,
        Avy=5.0 / 6.0 * A,
        Avz=5.0 / 6.0 * A,
    )


def circular_properties(d: float) -> SectionProperties:
    """Solid circle of diameter d."""
    if d <= 0:
        return ZERO_PROPERTIES
    r = d / 2.0
    A = math.pi * r**2
    I = math.pi * r**4 / 4.0
    S = _modulus(I, r)
    return SectionProperties(
        A=A, Iy=I, Iz=I, Sy=S, Sz=S,
        J=math.pi * r**4 / 2.0,
        Avy=0.9 * A,
        Avz=0.9 * A,
    )


def _apply_overrides(props: SectionProperties, section: Section) -> SectionProperties:
    A = section.area if section.area is not None else props.A
    Iy = section.iy if section.iy is not None else props.Iy
    Iz = section.iz if section.iz is not None else props.Iz
    J = section.j if section.j is not None else props.J

    # Moduli follow the overridden inertias when the extreme fibre distance is known
    if section.shape == SectionShape.CIRCULAR and section.diameter > 0:
        cy = cz = section.diameter / 2.0
    else:
        cy, cz = section.height / 2.0, section.width / 2.0
    Sy = _modulus(Iy, cy) if section.iy is not None else props.Sy
    Sz = _modulus(Iz, cz) if section.iz is not None else props.Sz

    # Without a shape to derive them from, estimate S from I and A (equivalent square)
    if Sy == 0.0 and Iy > 0 and A > 0:
        Sy = _modulus(Iy, math.sqrt(A) / 2.0)
    if Sz == 0.0 and Iz > 0 and A > 0:
        Sz = _modulus(Iz, math.sqrt(A) / 2.0)

    if section.area is not None:
        ratio = props.Avy / props.A if props.A > 0 else 5.0 / 6.0
        Avy = Avz = ratio * A
    else:
        Avy, Avz = props.Avy, props.Avz

    return SectionProperties(A=A, Iy=Iy, Iz=Iz, Sy=Sy, Sz=Sz, J=J, Avy=Avy, Avz=Avz)


def section_properties(section: Section) -> SectionProperties:
    """
    Compute the complete property set for a section.

    Overrides win over derived values for every shape. Custom shapes with
    no overrides fall back to the rectangular formulas; anything that
    cannot be derived is returned as zero rather than missing.
    """
    if section.shape == SectionShape.CIRCULAR:
        base = circular_properties(section.diameter)
    else:
        base = rectangular_properties(section.width, section.height)
    return _apply_overrides(base, section)

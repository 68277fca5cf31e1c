import math

import numpy as np

from framecore.section import (
    Section,
    SectionShape,
    ZERO_PROPERTIES,
    circular_properties,
    rectangular_properties,
    section_properties,
)


def test_rectangle_properties():
    """0.2 x 0.4 rectangle (b along local y, h along local z)."""
    p = section_properties(Section.rectangular("R", width=0.2, height=0.4))

    assert np.isclose(p.A, 0.08)
    assert np.isclose(p.Iy, 0.0010667, rtol=1e-4)
    assert np.isclose(p.Iz, 0.0002667, rtol=1e-3)
    assert np.isclose(p.Sy, p.Iy / 0.2)
    assert np.isclose(p.Sz, p.Iz / 0.1)
    assert np.isclose(p.Avy, 5.0 / 6.0 * 0.08)


def test_circle_properties():
    d = 0.3
    p = circular_properties(d)
    r = d / 2

    assert np.isclose(p.A, math.pi * r**2)
    assert np.isclose(p.Iy, math.pi * r**4 / 4)
    assert p.Iy == p.Iz
    assert np.isclose(p.J, math.pi * r**4 / 2)
    assert np.isclose(p.ry, r / 2)


def test_overrides_win():
    s = Section("custom", SectionShape.CUSTOM, area=0.01, iy=2e-5, iz=1e-5, j=3e-5)
    p = section_properties(s)

    assert p.A == 0.01
    assert p.Iy == 2e-5
    assert p.Iz == 1e-5
    assert p.J == 3e-5
    # moduli estimated from an equivalent square
    assert np.isclose(p.Sy, 2e-5 / (math.sqrt(0.01) / 2))


def test_invalid_dimensions_give_zero_properties():
    assert rectangular_properties(0.0, 0.4) == ZERO_PROPERTIES
    assert circular_properties(-1.0) == ZERO_PROPERTIES
    assert section_properties(Section("empty")).A == 0.0

"""Shared model builders for the framecore tests."""

import pytest

from framecore.model import (
    FIXED,
    Element,
    ElementType,
    LoadCase,
    LoadCaseKind,
    Material,
    MaterialType,
    NodalLoad,
    Node,
    LoadDirection,
    Section,
    StructuralModel,
)

E_STEEL = 2.0e11
RHO_STEEL = 7850.0


def steel_material() -> Material:
    return Material("S275", MaterialType.STEEL, elastic_modulus=E_STEEL, density=RHO_STEEL,
                    poisson_ratio=0.3, yield_strength=250e6, ultimate_strength=410e6)


def concrete_material() -> Material:
    return Material("C30", MaterialType.CONCRETE, elastic_modulus=25e9, density=2400.0,
                    poisson_ratio=0.2, ultimate_strength=30e6)


def timber_material() -> Material:
    return Material("GL24", MaterialType.TIMBER, elastic_modulus=11e9, density=450.0,
                    poisson_ratio=0.3, ultimate_strength=36.25e6)


def rect_section() -> Section:
    """0.2 x 0.4 rectangle: A = 0.08 m²."""
    return Section.rectangular("R200x400", width=0.2, height=0.4)


def cantilever_model(L: float = 5.0, load=None, material=None, axis=(1.0, 0.0, 0.0),
                     load_cases=()) -> StructuralModel:
    """Two-node cantilever fixed at node 0, free at node 1 placed at L·axis."""
    nodes = (
        Node(0, 0.0, 0.0, 0.0, restraints=FIXED),
        Node(1, L * axis[0], L * axis[1], L * axis[2], load=load),
    )
    elements = (
        Element(0, ElementType.BEAM, 0, 1, rect_section(), material or steel_material()),
    )
    return StructuralModel(nodes, elements, load_cases=load_cases, name="cantilever")


def two_bar_model(second_section: Section, P: float = 1.0e6, L: float = 2.0) -> StructuralModel:
    """Two collinear bars along X fixed at node 0; axial load P at node 2. Bar 0 uses rect_section()."""
    nodes = (
        Node(0, 0.0, 0.0, 0.0, restraints=FIXED),
        Node(1, L, 0.0, 0.0),
        Node(2, 2 * L, 0.0, 0.0, load=(P, 0.0, 0.0, 0.0, 0.0, 0.0)),
    )
    elements = (
        Element(0, ElementType.BEAM, 0, 1, rect_section(), steel_material()),
        Element(1, ElementType.BEAM, 1, 2, second_section, steel_material()),
    )
    return StructuralModel(nodes, elements, name="two-bar")


def stick_model(story_height: float = 3.0, n_stories: int = 2) -> StructuralModel:
    """Single column, fixed base, one node per floor level."""
    nodes = [Node(0, 0.0, 0.0, 0.0, restraints=FIXED)]
    elements = []
    for k in range(1, n_stories + 1):
        nodes.append(Node(k, 0.0, 0.0, k * story_height))
        elements.append(Element(k, ElementType.COLUMN, k - 1, k, rect_section(), steel_material()))
    return StructuralModel(tuple(nodes), tuple(elements), name="stick")


def portal_model() -> StructuralModel:
    """Fixed-base portal frame in the X-Z plane with a lateral and a gravity case."""
    steel = steel_material()
    section = rect_section()
    nodes = (
        Node("A", 0.0, 0.0, 0.0, restraints=FIXED),
        Node("B", 0.0, 0.0, 4.0),
        Node("C", 6.0, 0.0, 4.0),
        Node("D", 6.0, 0.0, 0.0, restraints=FIXED),
    )
    elements = (
        Element("c1", ElementType.COLUMN, "A", "B", section, steel),
        Element("b1", ElementType.BEAM, "B", "C", section, steel),
        Element("c2", ElementType.COLUMN, "D", "C", section, steel),
    )
    cases = (
        LoadCase("D", LoadCaseKind.DEAD, (
            NodalLoad("B", LoadDirection.Z, -20000.0),
            NodalLoad("C", LoadDirection.Z, -20000.0),
        )),
        LoadCase("W", LoadCaseKind.WIND, (NodalLoad("B", LoadDirection.X, 10000.0),)),
    )
    return StructuralModel(nodes, elements, load_cases=cases, name="portal")


@pytest.fixture
def steel():
    return steel_material()


@pytest.fixture
def section():
    return rect_section()


@pytest.fixture
def portal():
    return portal_model()


@pytest.fixture
def stick():
    return stick_model()


@pytest.fixture
def make_cantilever():
    return cantilever_model


@pytest.fixture
def make_stick():
    return stick_model


@pytest.fixture
def make_two_bar():
    return two_bar_model


@pytest.fixture
def concrete():
    return concrete_material()


@pytest.fixture
def timber():
    return timber_material()

# framecore/model.py
"""
STRUCTURAL MODEL: Nodes, Elements, Materials and Loads
======================================================

PURPOSE:
--------
Pure data for a 3D frame: the caller builds a StructuralModel once and
the engine only ever reads it. Every record is a frozen dataclass, so a
model compares by value and cannot be modified behind the solver's back.

COORDINATES AND DOFs:
---------------------
Global axes are right-handed with Z up. Each node carries 6 DOFs:

    0: ux   1: uy   2: uz   3: rx   4: ry   5: rz

The global DOF index of a node is based on its POSITION in
`StructuralModel.nodes`, not on its id, so ids may be any hashable
int or string.

LOADS:
------
Loads are a closed union of two record types:

    NodalLoad     point force/moment at a node, global axes
    ElementLoad   point, uniform or linear load along an element

Code that consumes loads handles both variants and raises TypeError
for anything else.
"""

import hashlib
import math
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Dict, List, Mapping, Optional, Tuple, Union

from .section import Section, SectionShape, SectionProperties, section_properties

NodeId = Union[int, str]
ElementId = Union[int, str]

DOF_PER_NODE = 6
DOF_LABELS = ('ux', 'uy', 'uz', 'rx', 'ry', 'rz')

# Common restraint masks
FREE = (False, False, False, False, False, False)
FIXED = (True, True, True, True, True, True)
PINNED = (True, True, True, False, False, False)
ROLLER = (False, False, True, False, False, False)

# Name of the implicit load case built from Node.load vectors
NODAL_CASE = "nodal"


class ElementType(str, Enum):
    BEAM = "beam"
    COLUMN = "column"
    BRACE = "brace"
    SLAB = "slab"
    WALL = "wall"


class MaterialType(str, Enum):
    CONCRETE = "concrete"
    STEEL = "steel"
    COMPOSITE = "composite"
    TIMBER = "timber"


class LoadDirection(str, Enum):
    """Force along (x, y, z) or moment about (rx, ry, rz) an axis."""
    X = "x"
    Y = "y"
    Z = "z"
    RX = "rx"
    RY = "ry"
    RZ = "rz"

    @property
    def dof(self) -> int:
        return _DIRECTION_DOF[self]

    @property
    def is_moment(self) -> bool:
        return self.dof >= 3


_DIRECTION_DOF = {
    LoadDirection.X: 0, LoadDirection.Y: 1, LoadDirection.Z: 2,
    LoadDirection.RX: 3, LoadDirection.RY: 4, LoadDirection.RZ: 5,
}


class LoadDistribution(str, Enum):
    POINT = "point"
    UNIFORM = "uniform"
    LINEAR = "linear"


class CoordinateSystem(str, Enum):
    GLOBAL = "global"
    LOCAL = "local"


class LoadCaseKind(str, Enum):
    DEAD = "dead"
    LIVE = "live"
    ROOF_LIVE = "roof_live"
    WIND = "wind"
    SEISMIC = "seismic"
    OTHER = "other"


@dataclass(frozen=True)
class Node:
    """
    A joint in 3D space.

    Parameters:
    -----------
    id : int or str
        Unique identifier
    x, y, z : float
        Global coordinates (m), z up
    restraints : tuple of 6 bool
        (ux, uy, uz, rx, ry, rz), True = restrained. Use FIXED, PINNED,
        ROLLER or FREE for the common cases.
    load : tuple of 6 float, optional
        Applied (Fx, Fy, Fz, Mx, My, Mz) in N and N·m. Collected into the
        implicit "nodal" load case.

    Examples:
    ---------
    >>> base = Node(0, 0.0, 0.0, 0.0, restraints=FIXED)
    >>> top = Node(1, 0.0, 0.0, 3.5)
    """
    id: NodeId
    x: float
    y: float
    z: float
    restraints: Tuple[bool, ...] = FREE
    load: Optional[Tuple[float, ...]] = None

    def __post_init__(self):
        object.__setattr__(self, 'restraints', tuple(bool(r) for r in self.restraints))
        if self.load is not None:
            object.__setattr__(self, 'load', tuple(float(v) for v in self.load))

    @property
    def coords(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    @property
    def is_restrained(self) -> bool:
        return any(self.restraints)


@dataclass(frozen=True)
class Material:
    """
    Linear-elastic material.

    `yield_strength` is fy for steel; `ultimate_strength` is f'c for
    concrete and the reference strength for timber. All stresses in Pa.
    """
    name: str
    type: MaterialType
    elastic_modulus: float
    density: float
    poisson_ratio: float = 0.3
    yield_strength: float = 0.0
    ultimate_strength: float = 0.0

    @property
    def shear_modulus(self) -> float:
        """G = E / (2(1+ν))"""
        return self.elastic_modulus / (2.0 * (1.0 + self.poisson_ratio))


@dataclass(frozen=True)
class Element:
    """
    Two-node 3D frame element (axial, biaxial bending, torsion).

    Local x runs from `start` to `end`; see elements.rotation_matrix for
    how local y and z are oriented.
    """
    id: ElementId
    type: ElementType
    start: NodeId
    end: NodeId
    section: Section
    material: Material

    @property
    def node_ids(self) -> Tuple[NodeId, NodeId]:
        return (self.start, self.end)

    @property
    def properties(self) -> SectionProperties:
        return section_properties(self.section)


@dataclass(frozen=True)
class NodalLoad:
    """Point force or moment at a node, along/about a global axis."""
    node_id: NodeId
    direction: LoadDirection
    magnitude: float

    @property
    def distribution(self) -> LoadDistribution:
        return LoadDistribution.POINT


@dataclass(frozen=True)
class ElementLoad:
    """
    Load along an element.

    Parameters:
    -----------
    element_id : element reference
    direction : LoadDirection
        x, y or z (forces only)
    magnitude : float
        N/m for uniform/linear (start intensity for linear), N for point
    distribution : LoadDistribution
    magnitude_end : float, optional
        End intensity for linear loads (defaults to `magnitude`)
    position : float
        Relative location 0..1 along the element for point loads
    coordinate_system : CoordinateSystem
        Whether `direction` refers to global or element-local axes
    """
    element_id: ElementId
    direction: LoadDirection
    magnitude: float
    distribution: LoadDistribution = LoadDistribution.UNIFORM
    magnitude_end: Optional[float] = None
    position: float = 0.5
    coordinate_system: CoordinateSystem = CoordinateSystem.GLOBAL


Load = Union[NodalLoad, ElementLoad]


@dataclass(frozen=True)
class LoadCase:
    """A named group of loads. `self_weight` adds ρ·A·g along -Z on every element."""
    name: str
    kind: LoadCaseKind = LoadCaseKind.OTHER
    loads: Tuple[Load, ...] = ()
    self_weight: bool = False

    def __post_init__(self):
        if not isinstance(self.loads, tuple):
            object.__setattr__(self, 'loads', tuple(self.loads))


@dataclass(frozen=True)
class LoadCombination:
    """Per-case scale factors, e.g. {'D': 1.2, 'L': 1.6}."""
    name: str
    factors: Tuple[Tuple[str, float], ...] = ()

    def __post_init__(self):
        if isinstance(self.factors, Mapping):
            object.__setattr__(self, 'factors', tuple(self.factors.items()))
        else:
            object.__setattr__(self, 'factors', tuple((str(k), float(v)) for k, v in self.factors))

    @classmethod
    def from_mapping(cls, name: str, factors: Mapping[str, float]) -> "LoadCombination":
        return cls(name=name, factors=tuple(factors.items()))

    def as_dict(self) -> Dict[str, float]:
        return dict(self.factors)


# SNI 1727 / ASCE 7 strength combinations, by load case kind
STANDARD_COMBINATIONS: Tuple[Tuple[str, Dict[LoadCaseKind, float]], ...] = (
    ("U1", {LoadCaseKind.DEAD: 1.4}),
    ("U2", {LoadCaseKind.DEAD: 1.2, LoadCaseKind.LIVE: 1.6, LoadCaseKind.ROOF_LIVE: 0.5}),
    ("U3", {LoadCaseKind.DEAD: 1.2, LoadCaseKind.WIND: 1.0, LoadCaseKind.LIVE: 1.0,
            LoadCaseKind.ROOF_LIVE: 0.5}),
    ("U4", {LoadCaseKind.DEAD: 1.2, LoadCaseKind.SEISMIC: 1.0, LoadCaseKind.LIVE: 1.0}),
    ("U5", {LoadCaseKind.DEAD: 0.9, LoadCaseKind.WIND: 1.0}),
    ("U6", {LoadCaseKind.DEAD: 0.9, LoadCaseKind.SEISMIC: 1.0}),
)


def standard_combinations(load_cases: Tuple[LoadCase, ...]) -> List[LoadCombination]:
    """
    Build the strength combinations that apply to the given cases.

    A combination is generated only when at least one of its non-dead
    kinds is present (U1 needs a dead case). Duplicates are dropped.
    """
    by_kind: Dict[LoadCaseKind, List[str]] = {}
    for case in load_cases:
        by_kind.setdefault(case.kind, []).append(case.name)

    if LoadCaseKind.DEAD not in by_kind:
        return []

    combos = []
    seen = set()
    for name, kind_factors in STANDARD_COMBINATIONS:
        factors = {}
        for kind, factor in kind_factors.items():
            for case_name in by_kind.get(kind, []):
                factors[case_name] = factor
        extra_kinds = [k for k in kind_factors if k != LoadCaseKind.DEAD]
        if extra_kinds and not any(k in by_kind for k in extra_kinds):
            continue
        key = tuple(sorted(factors.items()))
        if key in seen:
            continue
        seen.add(key)
        combos.append(LoadCombination(name=name, factors=tuple(factors.items())))
    return combos


def _conflicting_names(items) -> List[str]:
    first: Dict[str, object] = {}
    clashes: List[str] = []
    for item in items:
        if first.setdefault(item.name, item) != item and item.name not in clashes:
            clashes.append(item.name)
    return clashes


@dataclass(frozen=True)
class StructuralModel:
    """
    The complete input to an analysis.

    Sections and materials are referenced by value from each element;
    `sections` and `materials` list the distinct ones by name.
    """
    nodes: Tuple[Node, ...]
    elements: Tuple[Element, ...]
    load_cases: Tuple[LoadCase, ...] = ()
    load_combinations: Tuple[LoadCombination, ...] = ()
    name: str = "model"

    def __post_init__(self):
        # Accept lists from callers, store tuples
        for attr in ('nodes', 'elements', 'load_cases', 'load_combinations'):
            value = getattr(self, attr)
            if not isinstance(value, tuple):
                object.__setattr__(self, attr, tuple(value))

    @cached_property
    def node_index(self) -> Dict[NodeId, int]:
        """Node id → position (first occurrence wins for duplicate ids)."""
        index: Dict[NodeId, int] = {}
        for i, node in enumerate(self.nodes):
            index.setdefault(node.id, i)
        return index

    @cached_property
    def node_map(self) -> Dict[NodeId, Node]:
        return {node.id: node for node in reversed(self.nodes)}

    @cached_property
    def element_map(self) -> Dict[ElementId, Element]:
        return {el.id: el for el in reversed(self.elements)}

    @property
    def ndof(self) -> int:
        return DOF_PER_NODE * len(self.nodes)

    @property
    def sections(self) -> Tuple[Section, ...]:
        seen: Dict[str, Section] = {}
        for el in self.elements:
            seen.setdefault(el.section.name, el.section)
        return tuple(seen.values())

    @property
    def materials(self) -> Tuple[Material, ...]:
        seen: Dict[str, Material] = {}
        for el in self.elements:
            seen.setdefault(el.material.name, el.material)
        return tuple(seen.values())

    def section_conflicts(self) -> List[str]:
        """Section names shared by elements whose sections differ."""
        return _conflicting_names(el.section for el in self.elements)

    def material_conflicts(self) -> List[str]:
        """Material names shared by elements whose materials differ."""
        return _conflicting_names(el.material for el in self.elements)

    def node(self, node_id: NodeId) -> Node:
        return self.node_map[node_id]

    def element(self, element_id: ElementId) -> Element:
        return self.element_map[element_id]

    def load_case(self, name: str) -> LoadCase:
        for case in self.all_load_cases():
            if case.name == name:
                return case
        raise KeyError(f"Unknown load case '{name}'")

    def all_load_cases(self) -> Tuple[LoadCase, ...]:
        """Declared load cases plus the implicit nodal case when any node carries a load."""
        nodal = [
            NodalLoad(node.id, direction, value)
            for node in self.nodes if node.load is not None
            for direction, value in zip(LoadDirection, node.load) if value != 0.0
        ]
        if not nodal:
            return self.load_cases
        return self.load_cases + (LoadCase(NODAL_CASE, LoadCaseKind.OTHER, tuple(nodal)),)

    def restrained_dofs(self) -> List[int]:
        """Global indices of every restrained DOF, ascending."""
        dofs = []
        for i, node in enumerate(self.nodes):
            for local, fixed in enumerate(node.restraints):
                if fixed:
                    dofs.append(DOF_PER_NODE * i + local)
        return dofs

    def element_length(self, element: Element) -> float:
        ni = self.node(element.start)
        nj = self.node(element.end)
        return math.sqrt((nj.x - ni.x)**2 + (nj.y - ni.y)**2 + (nj.z - ni.z)**2)

    def fingerprint(self) -> str:
        """
        Stable sha256 of the model; changes whenever the model does.

        Hashes the canonical form with every element's section and material
        inlined, so two elements sharing a name with different values still count.
        """
        from .serialize import canonical_json
        return hashlib.sha256(canonical_json(self).encode('utf-8')).hexdigest()


__all__ = [
    'NodeId', 'ElementId', 'DOF_PER_NODE', 'DOF_LABELS',
    'FREE', 'FIXED', 'PINNED', 'ROLLER', 'NODAL_CASE',
    'ElementType', 'MaterialType', 'LoadDirection', 'LoadDistribution',
    'CoordinateSystem', 'LoadCaseKind',
    'Node', 'Material', 'Section', 'SectionShape', 'Element',
    'NodalLoad', 'ElementLoad', 'Load', 'LoadCase', 'LoadCombination',
    'STANDARD_COMBINATIONS', 'standard_combinations', 'StructuralModel',
]

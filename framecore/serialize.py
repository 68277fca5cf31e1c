# framecore/serialize.py
"""
Interchange schemas (pydantic) for models and results.

A StructuralModel round-trips through model_to_dict/model_from_dict (and
the JSON variants) to an equal value. Sections and materials are written
once at the top level and referenced by name from each element, so a
model that uses one name for two different sections (or materials) is
rejected with ValueError.
"""

import dataclasses
import json
import math
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

import numpy as np
from pydantic import BaseModel, Field, model_validator

from .model import (
    CoordinateSystem,
    Element,
    ElementLoad,
    ElementType,
    LoadCase,
    LoadCaseKind,
    LoadCombination,
    LoadDirection,
    LoadDistribution,
    Material,
    MaterialType,
    NodalLoad,
    Node,
    StructuralModel,
)
from .section import Section, SectionShape

Id = Union[int, str]


# =============================================================================
# Model schemas
# =============================================================================

class SectionSchema(BaseModel):
    name: str
    shape: SectionShape = SectionShape.RECTANGULAR
    width: float = Field(0.0, description="Rectangle width along local y (m)")
    height: float = Field(0.0, description="Rectangle height along local z (m)")
    diameter: float = Field(0.0, description="Circle diameter (m)")
    area: Optional[float] = None
    iy: Optional[float] = None
    iz: Optional[float] = None
    j: Optional[float] = None

    def to_domain(self) -> Section:
        return Section(**self.model_dump())

    @classmethod
    def from_domain(cls, section: Section) -> "SectionSchema":
        return cls(**dataclasses.asdict(section))


class MaterialSchema(BaseModel):
    name: str
    type: MaterialType
    elastic_modulus: float = Field(..., description="E (Pa)")
    density: float = Field(..., description="ρ (kg/m³)")
    poisson_ratio: float = 0.3
    yield_strength: float = Field(0.0, description="fy (Pa)")
    ultimate_strength: float = Field(0.0, description="f'c or reference strength (Pa)")

    def to_domain(self) -> Material:
        return Material(**self.model_dump())

    @classmethod
    def from_domain(cls, material: Material) -> "MaterialSchema":
        return cls(**dataclasses.asdict(material))


class NodeSchema(BaseModel):
    id: Id
    x: float
    y: float
    z: float
    restraints: List[bool] = Field(default_factory=lambda: [False] * 6)
    load: Optional[List[float]] = None

    def to_domain(self) -> Node:
        return Node(
            id=self.id, x=self.x, y=self.y, z=self.z,
            restraints=tuple(self.restraints),
            load=tuple(self.load) if self.load is not None else None,
        )

    @classmethod
    def from_domain(cls, node: Node) -> "NodeSchema":
        return cls(
            id=node.id, x=node.x, y=node.y, z=node.z,
            restraints=list(node.restraints),
            load=list(node.load) if node.load is not None else None,
        )


class ElementSchema(BaseModel):
    id: Id
    type: ElementType = ElementType.BEAM
    start: Id
    end: Id
    section: str = Field(..., description="Section name")
    material: str = Field(..., description="Material name")


class NodalLoadSchema(BaseModel):
    kind: Literal["nodal"] = "nodal"
    node_id: Id
    direction: LoadDirection
    magnitude: float

    def to_domain(self) -> NodalLoad:
        return NodalLoad(self.node_id, self.direction, self.magnitude)


class ElementLoadSchema(BaseModel):
    kind: Literal["element"] = "element"
    element_id: Id
    direction: LoadDirection
    magnitude: float
    distribution: LoadDistribution = LoadDistribution.UNIFORM
    magnitude_end: Optional[float] = None
    position: float = 0.5
    coordinate_system: CoordinateSystem = CoordinateSystem.GLOBAL

    def to_domain(self) -> ElementLoad:
        return ElementLoad(**self.model_dump(exclude={'kind'}))


LoadSchema = Annotated[Union[NodalLoadSchema, ElementLoadSchema], Field(discriminator='kind')]


def _load_schema(load) -> Union[NodalLoadSchema, ElementLoadSchema]:
    if isinstance(load, NodalLoad):
        return NodalLoadSchema(node_id=load.node_id, direction=load.direction, magnitude=load.magnitude)
    if isinstance(load, ElementLoad):
        return ElementLoadSchema(**dataclasses.asdict(load))
    raise TypeError(f"Unsupported load type {type(load).__name__}")


class LoadCaseSchema(BaseModel):
    name: str
    kind: LoadCaseKind = LoadCaseKind.OTHER
    loads: List[LoadSchema] = Field(default_factory=list)
    self_weight: bool = False

    def to_domain(self) -> LoadCase:
        return LoadCase(self.name, self.kind, tuple(load.to_domain() for load in self.loads),
                        self.self_weight)


class LoadCombinationSchema(BaseModel):
    name: str
    factors: Dict[str, float]

    def to_domain(self) -> LoadCombination:
        return LoadCombination(self.name, tuple(self.factors.items()))


class ModelSchema(BaseModel):
    """Interchange form of a StructuralModel."""
    name: str = "model"
    sections: List[SectionSchema] = Field(default_factory=list)
    materials: List[MaterialSchema] = Field(default_factory=list)
    nodes: List[NodeSchema]
    elements: List[ElementSchema] = Field(default_factory=list)
    load_cases: List[LoadCaseSchema] = Field(default_factory=list)
    load_combinations: List[LoadCombinationSchema] = Field(default_factory=list)

    @model_validator(mode='after')
    def _check_references(self):
        sections = {s.name for s in self.sections}
        materials = {m.name for m in self.materials}
        for el in self.elements:
            if el.section not in sections:
                raise ValueError(f"Element {el.id!r} references unknown section '{el.section}'")
            if el.material not in materials:
                raise ValueError(f"Element {el.id!r} references unknown material '{el.material}'")
        return self

    def to_domain(self) -> StructuralModel:
        sections = {s.name: s.to_domain() for s in self.sections}
        materials = {m.name: m.to_domain() for m in self.materials}
        return StructuralModel(
            nodes=tuple(n.to_domain() for n in self.nodes),
            elements=tuple(
                Element(el.id, el.type, el.start, el.end, sections[el.section], materials[el.material])
                for el in self.elements
            ),
            load_cases=tuple(c.to_domain() for c in self.load_cases),
            load_combinations=tuple(c.to_domain() for c in self.load_combinations),
            name=self.name,
        )

    @classmethod
    def from_domain(cls, model: StructuralModel, check_names: bool = True) -> "ModelSchema":
        """
        Raises:
            ValueError: One section or material name stands for different values
        """
        if check_names:
            clashes = model.section_conflicts() + model.material_conflicts()
            if clashes:
                raise ValueError(f"Names used for differing sections/materials: {', '.join(clashes)}")
        return cls(
            name=model.name,
            sections=[SectionSchema.from_domain(s) for s in model.sections],
            materials=[MaterialSchema.from_domain(m) for m in model.materials],
            nodes=[NodeSchema.from_domain(n) for n in model.nodes],
            elements=[
                ElementSchema(id=el.id, type=el.type, start=el.start, end=el.end,
                              section=el.section.name, material=el.material.name)
                for el in model.elements
            ],
            load_cases=[
                LoadCaseSchema(name=c.name, kind=c.kind, loads=[_load_schema(l) for l in c.loads],
                               self_weight=c.self_weight)
                for c in model.load_cases
            ],
            load_combinations=[
                LoadCombinationSchema(name=c.name, factors=c.as_dict())
                for c in model.load_combinations
            ],
        )


def model_to_dict(model: StructuralModel) -> Dict[str, Any]:
    return ModelSchema.from_domain(model).model_dump(mode='json')


def model_from_dict(data: Dict[str, Any]) -> StructuralModel:
    """
    Build a StructuralModel from its interchange dict.

    Raises:
        pydantic.ValidationError: Malformed input
    """
    return ModelSchema.model_validate(data).to_domain()


def model_to_json(model: StructuralModel, indent: Optional[int] = 2) -> str:
    return ModelSchema.from_domain(model).model_dump_json(indent=indent)


def model_from_json(text: str) -> StructuralModel:
    return ModelSchema.model_validate_json(text).to_domain()


def canonical_json(model: StructuralModel) -> str:
    """Compact, key-sorted JSON of a model with each element's section and material inlined."""
    data = ModelSchema.from_domain(model, check_names=False).model_dump(
        mode='json', exclude={'sections', 'materials'})
    for entry, element in zip(data['elements'], model.elements):
        entry['section'] = SectionSchema.from_domain(element.section).model_dump(mode='json')
        entry['material'] = MaterialSchema.from_domain(element.material).model_dump(mode='json')
    return json.dumps(data, sort_keys=True, separators=(',', ':'))


# =============================================================================
# Results
# =============================================================================

def _jsonable(value: Any) -> Any:
    """Recursively convert results to JSON-safe data; inf and nan become None."""
    if isinstance(value, Enum):
        return value.value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, np.ndarray):
        return _jsonable(value.tolist())
    if isinstance(value, (np.floating, float)):
        v = float(value)
        return v if math.isfinite(v) else None
    if isinstance(value, (np.integer,)):
        return int(value)
    if isinstance(value, (np.bool_,)):
        return bool(value)
    if isinstance(value, dict) or hasattr(value, 'items'):
        return {str(_jsonable(k)): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def results_to_dict(results) -> Dict[str, Any]:
    """Render AnalysisResults as plain JSON-compatible data."""
    data = _jsonable(results)
    data['success'] = results.success
    return data


def results_to_json(results, indent: Optional[int] = 2) -> str:
    return json.dumps(results_to_dict(results), indent=indent)

import math

import pytest

from framecore.errors import Severity, ValidationError
from framecore.model import (
    FIXED,
    Element,
    ElementLoad,
    ElementType,
    LoadCase,
    LoadCombination,
    LoadDirection,
    LoadDistribution,
    Material,
    MaterialType,
    NodalLoad,
    Node,
    Section,
    StructuralModel,
)
from framecore.validation import validate_model


def codes(report):
    return {issue.code for issue in report.issues}


def test_valid_model_has_no_errors(portal):
    report = validate_model(portal)
    assert report.ok
    assert report.errors == []
    report.raise_for_errors()


def test_no_supports_is_under_restrained(section, steel):
    model = StructuralModel(
        (Node(0, 0.0, 0.0, 0.0), Node(1, 3.0, 0.0, 0.0)),
        (Element(0, ElementType.BEAM, 0, 1, section, steel),),
    )
    report = validate_model(model)
    assert "UNDER_RESTRAINED" in codes(report)
    assert report.blocks_approval


def test_empty_model():
    report = validate_model(StructuralModel((), ()))
    assert {"NO_NODES", "NO_ELEMENTS"} <= codes(report)


def test_duplicates_and_missing_nodes(section, steel):
    model = StructuralModel(
        (Node(0, 0.0, 0.0, 0.0, restraints=FIXED), Node(1, 3.0, 0.0, 0.0), Node(1, 6.0, 0.0, 0.0)),
        (
            Element("a", ElementType.BEAM, 0, 1, section, steel),
            Element("a", ElementType.BEAM, 1, 7, section, steel),
        ),
    )
    found = codes(validate_model(model))
    assert {"DUPLICATE_NODE", "DUPLICATE_ELEMENT", "MISSING_NODE"} <= found


def test_zero_length_and_self_connected(section, steel):
    model = StructuralModel(
        (Node(0, 0.0, 0.0, 0.0, restraints=FIXED), Node(1, 0.0, 0.0, 0.0), Node(2, 1.0, 0.0, 0.0)),
        (
            Element(0, ElementType.BEAM, 0, 1, section, steel),
            Element(1, ElementType.BEAM, 2, 2, section, steel),
            Element(2, ElementType.BEAM, 0, 2, section, steel),
        ),
    )
    found = codes(validate_model(model))
    assert "ZERO_LENGTH" in found
    assert "SELF_CONNECTED" in found


def test_bad_material_and_section(section):
    bad = Material("bad", MaterialType.STEEL, elastic_modulus=0.0, density=-1.0, poisson_ratio=0.5)
    from framecore.section import Section
    model = StructuralModel(
        (Node(0, 0.0, 0.0, 0.0, restraints=FIXED), Node(1, 1.0, 0.0, 0.0)),
        (Element(0, ElementType.BEAM, 0, 1, Section("none"), bad),),
    )
    found = codes(validate_model(model))
    assert {"BAD_ELASTIC_MODULUS", "BAD_DENSITY", "BAD_POISSON_RATIO", "ZERO_AREA"} <= found


def test_non_finite_coordinates(make_cantilever):
    base = make_cantilever()
    model = StructuralModel((base.nodes[0], Node(1, math.nan, 0.0, 0.0)), base.elements)
    assert "NON_FINITE_COORDINATE" in codes(validate_model(model))


def test_unconnected_nodes(make_cantilever):
    base = make_cantilever()
    model = StructuralModel(
        base.nodes + (Node(2, 9.0, 0.0, 0.0), Node(3, 9.0, 9.0, 0.0, restraints=FIXED)),
        base.elements,
    )
    report = validate_model(model)
    unconnected = [i for i in report.issues if i.code == "UNCONNECTED_NODE"]

    assert {i.severity for i in unconnected} == {Severity.ERROR, Severity.WARNING}
    assert len(report.warnings) == 1


def test_load_problems(make_cantilever):
    case = LoadCase("D", loads=(
        NodalLoad(99, LoadDirection.Z, -10.0),
        ElementLoad("nope", LoadDirection.Z, -10.0),
        ElementLoad(0, LoadDirection.RX, 5.0),
        ElementLoad(0, LoadDirection.Z, -10.0, distribution=LoadDistribution.POINT, position=2.0),
        NodalLoad(1, LoadDirection.X, math.inf),
    ))
    found = codes(validate_model(make_cantilever(load_cases=(case,))))
    assert {"MISSING_LOAD_TARGET", "BAD_LOAD_DIRECTION", "BAD_LOAD_POSITION",
            "NON_FINITE_LOAD"} <= found


def test_zero_load_is_info_only(make_cantilever):
    case = LoadCase("D", loads=(NodalLoad(1, LoadDirection.Z, 0.0),))
    report = validate_model(make_cantilever(load_cases=(case,)))

    assert report.ok
    assert [i.severity for i in report.issues] == [Severity.INFO]
    assert report.issues[0].code == "ZERO_LOAD"


def test_combination_with_unknown_case(portal):
    model = StructuralModel(portal.nodes, portal.elements, portal.load_cases,
                            (LoadCombination("U", {"D": 1.2, "S": 1.0}),))
    report = validate_model(model)
    assert "UNKNOWN_LOAD_CASE" in codes(report)


def test_combination_may_reference_nodal_case(make_cantilever):
    base = make_cantilever(load=(0.0, 0.0, -1000.0, 0.0, 0.0, 0.0))
    model = StructuralModel(base.nodes, base.elements,
                            load_combinations=(LoadCombination("N", {"nodal": 1.5}),))
    assert validate_model(model).ok


def test_duplicate_load_cases(make_cantilever):
    cases = (LoadCase("D"), LoadCase("D"))
    assert "DUPLICATE_LOAD_CASE" in codes(validate_model(make_cantilever(load_cases=cases)))


def test_raise_for_errors_carries_all_issues(section, steel):
    model = StructuralModel(
        (Node(0, 0.0, 0.0, 0.0), Node(1, 0.0, 0.0, 0.0)),
        (Element(0, ElementType.BEAM, 0, 1, section, steel),),
    )
    report = validate_model(model)
    with pytest.raises(ValidationError) as excinfo:
        report.raise_for_errors()

    assert len(excinfo.value.issues) == len(report.issues) >= 2
    assert isinstance(excinfo.value, ValueError)


def test_section_name_used_twice_for_different_sections(make_two_bar, section):
    clash = make_two_bar(Section.rectangular(section.name, width=0.2, height=0.1))
    report = validate_model(clash)

    assert "DUPLICATE_SECTION" in codes(report)
    assert report.blocks_approval
    assert validate_model(make_two_bar(section)).ok


def test_material_name_used_twice_for_different_materials(section, steel):
    softer = Material(steel.name, MaterialType.STEEL, elastic_modulus=1.0e11, density=steel.density)
    model = StructuralModel(
        (Node(0, 0.0, 0.0, 0.0, restraints=FIXED), Node(1, 3.0, 0.0, 0.0), Node(2, 6.0, 0.0, 0.0)),
        (Element(0, ElementType.BEAM, 0, 1, section, steel),
         Element(1, ElementType.BEAM, 1, 2, section, softer)),
    )
    report = validate_model(model)
    assert "DUPLICATE_MATERIAL" in codes(report)
    assert "DUPLICATE_SECTION" not in codes(report)

import json

import pytest
from pydantic import ValidationError as SchemaError

from framecore import perform_analysis
from framecore.model import (
    ElementLoad,
    LoadCase,
    LoadCaseKind,
    LoadCombination,
    LoadDirection,
    LoadDistribution,
    Section,
    StructuralModel,
)
from framecore.serialize import (
    model_from_dict,
    model_from_json,
    model_to_dict,
    model_to_json,
    results_to_dict,
    results_to_json,
)


@pytest.fixture
def loaded_portal(portal):
    cases = portal.load_cases + (
        LoadCase("L", LoadCaseKind.LIVE, (
            ElementLoad("b1", LoadDirection.Z, -5000.0),
            ElementLoad("b1", LoadDirection.Z, -2000.0, distribution=LoadDistribution.LINEAR,
                        magnitude_end=-4000.0),
            ElementLoad("b1", LoadDirection.Y, 800.0, distribution=LoadDistribution.POINT, position=0.25),
        ), self_weight=True),
    )
    combos = (LoadCombination("U2", {"D": 1.2, "L": 1.6}),)
    return StructuralModel(portal.nodes, portal.elements, cases, combos, name="portal")


def test_dict_round_trip(loaded_portal):
    data = model_to_dict(loaded_portal)
    assert model_from_dict(data) == loaded_portal


def test_json_round_trip(loaded_portal, make_cantilever):
    assert model_from_json(model_to_json(loaded_portal)) == loaded_portal

    cantilever = make_cantilever(load=(0.0, 0.0, -1000.0, 0.0, 0.0, 0.0))
    assert model_from_json(model_to_json(cantilever)) == cantilever


def test_sections_and_materials_written_once(loaded_portal):
    data = model_to_dict(loaded_portal)
    assert [s["name"] for s in data["sections"]] == ["R200x400"]
    assert [m["name"] for m in data["materials"]] == ["S275"]
    assert data["elements"][0]["section"] == "R200x400"
    assert {load["kind"] for load in data["load_cases"][2]["loads"]} == {"element"}


def test_unknown_section_reference_rejected(loaded_portal):
    data = model_to_dict(loaded_portal)
    data["elements"][0]["section"] = "missing"
    with pytest.raises(SchemaError):
        model_from_dict(data)


def test_fingerprint_is_stable_and_sensitive(portal, loaded_portal):
    assert portal.fingerprint() == model_from_json(model_to_json(portal)).fingerprint()
    assert portal.fingerprint() != loaded_portal.fingerprint()
    assert len(portal.fingerprint()) == 64


def test_results_are_json_serializable(portal):
    results = perform_analysis(portal)
    data = results_to_dict(results)

    assert data["success"] is True
    assert data["status"] == "completed"
    assert {c["name"] for c in data["combinations"]} == {"D", "W"}
    # node ids become string keys
    assert set(data["combinations"][0]["displacements"]) == {"A", "B", "C", "D"}
    json.dumps(data)

    parsed = json.loads(results_to_json(results))
    assert parsed["summary"]["failing_checks"] == 0


def test_reused_section_name_is_not_written(make_two_bar):
    model = make_two_bar(Section.rectangular("R200x400", width=0.2, height=0.1))
    assert model.section_conflicts() == ["R200x400"]

    with pytest.raises(ValueError, match="R200x400"):
        model_to_dict(model)
    with pytest.raises(ValueError):
        model_to_json(model)


def test_fingerprint_sees_sections_behind_a_shared_name(make_two_bar):
    same = make_two_bar(Section.rectangular("R200x400", width=0.2, height=0.4))
    clash = make_two_bar(Section.rectangular("R200x400", width=0.2, height=0.1))

    assert same.section_conflicts() == []
    assert same != clash
    assert same.fingerprint() != clash.fingerprint()
    assert model_from_dict(model_to_dict(same)) == same

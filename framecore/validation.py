# framecore/validation.py
"""
MODEL VALIDATION
================

validate_model() walks the whole model and collects every problem it can
find instead of stopping at the first one, so a caller can show the full
list at once. Each problem is a ValidationIssue with a severity:

    error    analysis is blocked
    warning  analysis runs, result may be questionable
    info     worth knowing, harmless
"""

import logging
import math
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Tuple

from .config import DEFAULT_CONFIG, EngineConfig
from .errors import Severity, ValidationError, ValidationIssue
from .model import (
    DOF_PER_NODE,
    ElementLoad,
    LoadDistribution,
    NodalLoad,
    StructuralModel,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationReport:
    issues: Tuple[ValidationIssue, ...] = field(default_factory=tuple)

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.severity == Severity.WARNING]

    @property
    def blocks_approval(self) -> bool:
        return bool(self.errors)

    @property
    def ok(self) -> bool:
        return not self.blocks_approval

    def raise_for_errors(self) -> None:
        """Raise ValidationError carrying every issue when any error is present."""
        if self.blocks_approval:
            raise ValidationError(self.issues)


def _duplicates(ids) -> List:
    return [key for key, count in Counter(ids).items() if count > 1]


def validate_model(model: StructuralModel, config: EngineConfig = DEFAULT_CONFIG) -> ValidationReport:
    """
    Check a model for everything that would make the analysis meaningless.

    Args:
        model: StructuralModel to inspect
        config: Supplies the minimum element length

    Returns:
        ValidationReport with all issues found (possibly none)
    """
    issues: List[ValidationIssue] = []

    def error(where: str, message: str, code: str) -> None:
        issues.append(ValidationIssue(where, message, Severity.ERROR, code))

    def warning(where: str, message: str, code: str) -> None:
        issues.append(ValidationIssue(where, message, Severity.WARNING, code))

    def info(where: str, message: str, code: str) -> None:
        issues.append(ValidationIssue(where, message, Severity.INFO, code))

    # --- Nodes ---
    if not model.nodes:
        error("nodes", "Model has no nodes", "NO_NODES")
    for node_id in _duplicates(n.id for n in model.nodes):
        error(f"nodes[{node_id}]", f"Duplicate node id {node_id!r}", "DUPLICATE_NODE")
    for node in model.nodes:
        where = f"nodes[{node.id}]"
        if not all(math.isfinite(c) for c in node.coords):
            error(where, "Coordinates must be finite", "NON_FINITE_COORDINATE")
        if len(node.restraints) != DOF_PER_NODE:
            error(where, f"Restraint mask needs {DOF_PER_NODE} entries, got {len(node.restraints)}",
                  "BAD_RESTRAINT_MASK")
        if node.load is not None:
            if len(node.load) != DOF_PER_NODE:
                error(where, f"Nodal load needs {DOF_PER_NODE} entries, got {len(node.load)}",
                      "BAD_NODAL_LOAD")
            elif not all(math.isfinite(v) for v in node.load):
                error(where, "Nodal load values must be finite", "NON_FINITE_LOAD")

    # --- Elements ---
    if not model.elements:
        error("elements", "Model has no elements", "NO_ELEMENTS")
    for element_id in _duplicates(e.id for e in model.elements):
        error(f"elements[{element_id}]", f"Duplicate element id {element_id!r}", "DUPLICATE_ELEMENT")

    connected = set()
    for element in model.elements:
        where = f"elements[{element.id}]"
        missing = [nid for nid in element.node_ids if nid not in model.node_index]
        for nid in missing:
            error(where, f"References missing node {nid!r}", "MISSING_NODE")
        if element.start == element.end:
            error(where, "Start and end node are the same", "SELF_CONNECTED")
        elif not missing:
            length = model.element_length(element)
            if not math.isfinite(length) or length < config.min_element_length:
                error(where, f"Length {length:.3e} m is below {config.min_element_length:.1e} m",
                      "ZERO_LENGTH")
        connected.update(element.node_ids)

        material = element.material
        if not material.elastic_modulus > 0:
            error(where, f"Material '{material.name}': elastic modulus must be positive",
                  "BAD_ELASTIC_MODULUS")
        if not material.density > 0:
            error(where, f"Material '{material.name}': density must be positive", "BAD_DENSITY")
        if not -1.0 < material.poisson_ratio < 0.5:
            error(where, f"Material '{material.name}': Poisson ratio {material.poisson_ratio} "
                         "outside (-1, 0.5)", "BAD_POISSON_RATIO")
        if not element.properties.A > 0:
            error(where, f"Section '{element.section.name}' has zero area", "ZERO_AREA")

    for name in model.section_conflicts():
        error(f"sections[{name}]", f"Section name {name!r} is used for different sections",
              "DUPLICATE_SECTION")
    for name in model.material_conflicts():
        error(f"materials[{name}]", f"Material name {name!r} is used for different materials",
              "DUPLICATE_MATERIAL")

    for node in model.nodes:
        if node.id in connected:
            continue
        if all(node.restraints):
            warning(f"nodes[{node.id}]", "Node is not connected to any element", "UNCONNECTED_NODE")
        else:
            error(f"nodes[{node.id}]", "Free node is not connected to any element", "UNCONNECTED_NODE")

    if model.nodes and not any(node.is_restrained for node in model.nodes):
        error("nodes", "No restrained DOFs: structure is a mechanism", "UNDER_RESTRAINED")

    # --- Loads ---
    for case in model.load_cases:
        for k, load in enumerate(case.loads):
            where = f"load_cases[{case.name}].loads[{k}]"
            if isinstance(load, NodalLoad):
                if load.node_id not in model.node_index:
                    error(where, f"Load targets missing node {load.node_id!r}", "MISSING_LOAD_TARGET")
            elif isinstance(load, ElementLoad):
                if load.element_id not in model.element_map:
                    error(where, f"Load targets missing element {load.element_id!r}",
                          "MISSING_LOAD_TARGET")
                if load.direction.is_moment:
                    error(where, "Element loads must be forces (x, y or z)", "BAD_LOAD_DIRECTION")
                if load.distribution == LoadDistribution.POINT and not 0.0 <= load.position <= 1.0:
                    error(where, f"Point load position {load.position} outside 0..1", "BAD_LOAD_POSITION")
            else:
                raise TypeError(f"Unsupported load type {type(load).__name__}")

            if not math.isfinite(load.magnitude):
                error(where, "Load magnitude must be finite", "NON_FINITE_LOAD")
            elif load.magnitude == 0.0 and not getattr(load, 'magnitude_end', None):
                info(where, "Load has zero magnitude", "ZERO_LOAD")

    for name in _duplicates(c.name for c in model.load_cases):
        error(f"load_cases[{name}]", f"Duplicate load case name {name!r}", "DUPLICATE_LOAD_CASE")

    known_cases = {case.name for case in model.all_load_cases()}
    for combination in model.load_combinations:
        for case_name, _ in combination.factors:
            if case_name not in known_cases:
                error(f"load_combinations[{combination.name}]",
                      f"Unknown load case {case_name!r}", "UNKNOWN_LOAD_CASE")

    report = ValidationReport(tuple(issues))
    if issues:
        logger.info("Validation of '%s': %d error(s), %d warning(s)",
                    model.name, len(report.errors), len(report.warnings))
    return report

# framecore/checks/design.py
"""Run the design checks of each element's material family."""

from typing import Iterable, List

from ..model import MaterialType, StructuralModel
from .base import DesignCheck
from .concrete import check_concrete_element
from .steel import check_steel_element
from .timber import check_timber_element


def check_element(element, result) -> List[DesignCheck]:
    """Checks for one element given its post.ElementResult."""
    material_type = element.material.type
    if material_type in (MaterialType.STEEL, MaterialType.COMPOSITE):
        return check_steel_element(element, result.forces, result.length)
    if material_type == MaterialType.TIMBER:
        return check_timber_element(element, result.forces)
    if material_type == MaterialType.CONCRETE:
        return check_concrete_element(element, result.forces)
    raise ValueError(f"No design checks for material type {material_type!r}")


def design_checks(model: StructuralModel, element_results: Iterable) -> List[DesignCheck]:
    """
    Design checks for every element result.

    Args:
        model: The analysed model
        element_results: post.ElementResult records

    Returns:
        Flat list, four checks per element (flexure, shear, axial, combined)
    """
    checks: List[DesignCheck] = []
    for result in element_results:
        checks.extend(check_element(model.element(result.element_id), result))
    return checks

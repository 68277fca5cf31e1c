# loads.py - Load vectors: nodal loads, equivalent nodal loads for element loads, combinations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

import numpy as np

from .config import DEFAULT_CONFIG, EngineConfig
from .elements import element_geometry, rotation_matrix, transformation_matrix
from .kernel.assemble import assemble_global_F, element_dof_map
from .kernel.dof import DOF_3D_FRAME
from .model import (
    CoordinateSystem,
    Element,
    ElementId,
    ElementLoad,
    LoadCase,
    LoadCombination,
    LoadDirection,
    LoadDistribution,
    NodalLoad,
    StructuralModel,
)

logger = logging.getLogger(__name__)


def _place(f: np.ndarray, axis: int, Fi: float, Fj: float, Mi: float, Mj: float) -> None:
    """
    Add end forces for a load component along local `axis` into the 12-vector.

    Along y the end moments act about local z; along z they act about local
    y with opposite sign (same convention as the local stiffness matrix).
    """
    if axis == 0:
        f[0] += Fi
        f[6] += Fj
    elif axis == 1:
        f[1] += Fi
        f[7] += Fj
        f[5] += Mi
        f[11] += Mj
    else:
        f[2] += Fi
        f[8] += Fj
        f[4] -= Mi
        f[10] -= Mj


def equivalent_nodal_load_uniform(L: float, w_local: np.ndarray) -> np.ndarray:
    """
    Equivalent nodal loads for a uniform load in LOCAL coordinates.

    Each transverse component w gives wL/2 at each end plus fixed-end
    moments ±wL²/12; the axial component is split wL/2 to each end.

    Parameters:
    -----------
    L : float
        Element length (m)
    w_local : array (3,)
        Load intensity along local x, y, z (N/m)

    Returns:
    --------
    np.ndarray
        Shape (12,) [Fx_i, Fy_i, Fz_i, Mx_i, My_i, Mz_i, Fx_j, ..., Mz_j]

    Examples:
    ---------
    >>> f = equivalent_nodal_load_uniform(4.0, np.array([0.0, -1000.0, 0.0]))
    >>> f[1], f[5], f[11]
    (-2000.0, -1333.33..., 1333.33...)
    """
    f = np.zeros(12)
    for axis in range(3):
        w = float(w_local[axis])
        if w == 0.0:
            continue
        if axis == 0:
            _place(f, 0, w * L / 2.0, w * L / 2.0, 0.0, 0.0)
        else:
            _place(f, axis, w * L / 2.0, w * L / 2.0, w * L**2 / 12.0, -w * L**2 / 12.0)
    return f


def equivalent_nodal_load_linear(L: float, w1_local: np.ndarray, w2_local: np.ndarray) -> np.ndarray:
    """
    Equivalent nodal loads for a linearly varying (trapezoidal) load, w1 at the
    start node and w2 at the end node, LOCAL coordinates.

        Fi = L(7w1 + 3w2)/20     Mi =  L²(3w1 + 2w2)/60
        Fj = L(3w1 + 7w2)/20     Mj = -L²(2w1 + 3w2)/60
    """
    f = np.zeros(12)
    for axis in range(3):
        w1 = float(w1_local[axis])
        w2 = float(w2_local[axis])
        if w1 == 0.0 and w2 == 0.0:
            continue
        if axis == 0:
            _place(f, 0, L * (2 * w1 + w2) / 6.0, L * (w1 + 2 * w2) / 6.0, 0.0, 0.0)
        else:
            _place(
                f, axis,
                L * (7 * w1 + 3 * w2) / 20.0,
                L * (3 * w1 + 7 * w2) / 20.0,
                L**2 * (3 * w1 + 2 * w2) / 60.0,
                -L**2 * (2 * w1 + 3 * w2) / 60.0,
            )
    return f


def equivalent_nodal_load_point(L: float, P_local: np.ndarray, a: float) -> np.ndarray:
    """
    Equivalent nodal loads for a concentrated force at distance a from the
    start node (b = L - a), LOCAL coordinates.

        Fi = P·b²(3a + b)/L³     Mi =  P·a·b²/L²
        Fj = P·a²(a + 3b)/L³     Mj = -P·a²·b/L²
    """
    b = L - a
    f = np.zeros(12)
    for axis in range(3):
        P = float(P_local[axis])
        if P == 0.0:
            continue
        if axis == 0:
            _place(f, 0, P * b / L, P * a / L, 0.0, 0.0)
        else:
            _place(
                f, axis,
                P * b**2 * (3 * a + b) / L**3,
                P * a**2 * (a + 3 * b) / L**3,
                P * a * b**2 / L**2,
                -P * a**2 * b / L**2,
            )
    return f


def _direction_vector(direction: LoadDirection) -> np.ndarray:
    if direction.is_moment:
        raise ValueError(f"Element loads must be forces (x, y or z), got '{direction.value}'")
    e = np.zeros(3)
    e[direction.dof] = 1.0
    return e


def element_load_local(model: StructuralModel, load: ElementLoad, min_length: float = 1e-6) -> np.ndarray:
    """Equivalent nodal loads (12,) of one ElementLoad in the element's local axes."""
    element = model.element(load.element_id)
    L, axis = element_geometry(model, element, min_length)
    R = rotation_matrix(axis)

    e = _direction_vector(load.direction)
    if load.coordinate_system == CoordinateSystem.GLOBAL:
        e = R @ e

    if load.distribution == LoadDistribution.UNIFORM:
        return equivalent_nodal_load_uniform(L, load.magnitude * e)
    if load.distribution == LoadDistribution.LINEAR:
        w2 = load.magnitude if load.magnitude_end is None else load.magnitude_end
        return equivalent_nodal_load_linear(L, load.magnitude * e, w2 * e)
    if load.distribution == LoadDistribution.POINT:
        if not 0.0 <= load.position <= 1.0:
            raise ValueError(f"Point load position {load.position} outside 0..1")
        return equivalent_nodal_load_point(L, load.magnitude * e, load.position * L)
    raise ValueError(f"Unknown load distribution {load.distribution!r}")


def self_weight_local(model: StructuralModel, element: Element, gravity: float,
                      min_length: float = 1e-6) -> np.ndarray:
    """Equivalent nodal loads of ρ·A·g acting along global -Z."""
    L, axis = element_geometry(model, element, min_length)
    w = element.material.density * element.properties.A * gravity
    w_local = rotation_matrix(axis) @ np.array([0.0, 0.0, -w])
    return equivalent_nodal_load_uniform(L, w_local)


@dataclass
class LoadVector:
    """
    Global load vector F plus each loaded element's equivalent nodal loads in
    local coordinates (needed to recover true end forces later).
    """
    F: np.ndarray
    element_loads: Dict[ElementId, np.ndarray] = field(default_factory=dict)

    def scaled(self, factor: float) -> "LoadVector":
        return LoadVector(self.F * factor, {k: v * factor for k, v in self.element_loads.items()})

    def __add__(self, other: "LoadVector") -> "LoadVector":
        merged = dict(self.element_loads)
        for k, v in other.element_loads.items():
            merged[k] = merged[k] + v if k in merged else v.copy()
        return LoadVector(self.F + other.F, merged)


def build_load_vector(
    model: StructuralModel,
    case: LoadCase,
    config: EngineConfig = DEFAULT_CONFIG,
) -> LoadVector:
    """
    Assemble the global load vector of one load case.

    Nodal loads accumulate at their (node, direction) DOF, so several loads
    on the same DOF add up. Element loads are converted to equivalent nodal
    loads in local axes, rotated to global with Tᵀ and scatter-added.
    """
    F = np.zeros(model.ndof)
    local_loads: Dict[ElementId, np.ndarray] = {}
    contributions = []

    def _add_element(element: Element, f_local: np.ndarray) -> None:
        T = transformation_matrix(rotation_matrix(
            element_geometry(model, element, config.min_element_length)[1]))
        contributions.append((element_dof_map(model, element), T.T @ f_local))
        if element.id in local_loads:
            local_loads[element.id] = local_loads[element.id] + f_local
        else:
            local_loads[element.id] = f_local

    for load in case.loads:
        if isinstance(load, NodalLoad):
            node_index = model.node_index[load.node_id]
            F[DOF_3D_FRAME.idx(node_index, load.direction.dof)] += load.magnitude
        elif isinstance(load, ElementLoad):
            f_local = element_load_local(model, load, config.min_element_length)
            _add_element(model.element(load.element_id), f_local)
        else:
            raise TypeError(f"Unsupported load type {type(load).__name__}")

    if case.self_weight:
        for element in model.elements:
            _add_element(element, self_weight_local(model, element, config.gravity,
                                                    config.min_element_length))

    F += assemble_global_F(model.ndof, contributions)
    return LoadVector(F, local_loads)


def combination_load_vector(
    model: StructuralModel,
    combination: LoadCombination,
    config: EngineConfig = DEFAULT_CONFIG,
    case_vectors: Optional[Dict[str, LoadVector]] = None,
) -> LoadVector:
    """Σ factor · case vector over the combination's cases."""
    total = LoadVector(np.zeros(model.ndof))
    for case_name, factor in combination.factors:
        if case_vectors is not None and case_name in case_vectors:
            vector = case_vectors[case_name]
        else:
            vector = build_load_vector(model, model.load_case(case_name), config)
        total = total + vector.scaled(factor)
    return total


def unit_combinations(cases: Iterable[LoadCase]) -> list:
    """One factor-1.0 combination per case, used when no combinations are requested."""
    return [LoadCombination(name=case.name, factors=((case.name, 1.0),)) for case in cases]

# element end forces, stresses, allowable-stress check, displacements, reactions, drift

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np

from .config import DEFAULT_CONFIG, EngineConfig
from .elements import element_geometry, local_stiffness, rotation_matrix, transformation_matrix
from .errors import CalculationError
from .kernel.assemble import element_dof_map
from .kernel.dof import DOF_3D_FRAME
from .model import Element, Material, MaterialType, NodeId, StructuralModel
from .seismic import ImportanceClass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ElementForces:
    """
    Internal forces of one element.

    end_forces is the local 12-vector [Fx_i, Fy_i, Fz_i, Mx_i, My_i, Mz_i,
    Fx_j, ..., Mz_j] acting ON the element. The scalar fields are the
    governing values over both ends: axial is signed (tension positive),
    the rest are magnitudes.
    """
    end_forces: np.ndarray
    axial: float
    shear_y: float
    shear_z: float
    torsion: float
    moment_y: float
    moment_z: float
    elongation: float


@dataclass(frozen=True)
class StressResult:
    """Stresses in Pa. `bending` is the governing plane; `combined` = |axial| + bending."""
    axial: float
    bending_y: float
    bending_z: float
    bending: float
    shear: float
    combined: float


@dataclass(frozen=True)
class SafetyCheck:
    """Combined stress against the material's allowable stress."""
    safe: bool
    computed: float
    allowable: float
    utilization: float
    safety_factor: float
    status: str   # 'safe', 'marginal' or 'unsafe'


@dataclass(frozen=True)
class ElementResult:
    element_id: object
    length: float
    forces: ElementForces
    stresses: StressResult
    safety: SafetyCheck

    @property
    def utilization(self) -> float:
        return self.safety.utilization


def element_end_forces(
    model: StructuralModel,
    element: Element,
    d_global: np.ndarray,
    equivalent_loads: Optional[np.ndarray] = None,
    min_length: float = 1e-6,
) -> np.ndarray:
    """
    Element end forces in LOCAL coordinates from global displacements.

    1. Gather the element's 12 global displacements
    2. Rotate to local: d_local = T·d
    3. f = k_local·d_local
    4. Subtract the equivalent nodal loads of any element loads, giving
       the actual forces at the element ends

    Returns:
        Shape (12,) local end forces
    """
    L, axis = element_geometry(model, element, min_length)
    T = transformation_matrix(rotation_matrix(axis))
    d_local = T @ d_global[element_dof_map(model, element)]

    p = element.properties
    k_local = local_stiffness(element.material.elastic_modulus, element.material.shear_modulus,
                              p.A, p.Iy, p.Iz, p.J, L)
    f_local = k_local @ d_local

    if equivalent_loads is not None:
        f_local = f_local - equivalent_loads

    return f_local


def _governing_signed(a: float, b: float) -> float:
    return a if abs(a) >= abs(b) else b


def element_forces(
    model: StructuralModel,
    element: Element,
    d_global: np.ndarray,
    equivalent_loads: Optional[np.ndarray] = None,
    min_length: float = 1e-6,
) -> ElementForces:
    f = element_end_forces(model, element, d_global, equivalent_loads, min_length)
    f.setflags(write=False)

    _, axis = element_geometry(model, element, min_length)
    dofs = element_dof_map(model, element)
    elongation = float(axis @ (d_global[dofs[6:9]] - d_global[dofs[0:3]]))

    return ElementForces(
        end_forces=f,
        axial=float(_governing_signed(-f[0], f[6])),
        shear_y=float(max(abs(f[1]), abs(f[7]))),
        shear_z=float(max(abs(f[2]), abs(f[8]))),
        torsion=float(max(abs(f[3]), abs(f[9]))),
        moment_y=float(max(abs(f[4]), abs(f[10]))),
        moment_z=float(max(abs(f[5]), abs(f[11]))),
        elongation=elongation,
    )


def _ratio(value: float, prop: float, what: str, element_id) -> float:
    if value == 0.0:
        return 0.0
    if prop <= 0.0:
        raise CalculationError(f"Element {element_id}: {what} is zero, cannot compute stress")
    return value / prop


def element_stresses(element: Element, forces: ElementForces) -> StressResult:
    """
    axial   = N / A
    bending = |M| / S per plane, governing = max
    shear   = max(|Vy| / Avy, |Vz| / Avz)
    combined = |axial| + bending  (simplified interaction)
    """
    p = element.properties
    axial = _ratio(forces.axial, p.A, "area", element.id)
    bending_y = _ratio(forces.moment_y, p.Sy, "section modulus Sy", element.id)
    bending_z = _ratio(forces.moment_z, p.Sz, "section modulus Sz", element.id)
    shear = max(
        _ratio(forces.shear_y, p.Avy, "shear area", element.id),
        _ratio(forces.shear_z, p.Avz, "shear area", element.id),
    )
    bending = max(bending_y, bending_z)
    return StressResult(
        axial=axial,
        bending_y=bending_y,
        bending_z=bending_z,
        bending=bending,
        shear=shear,
        combined=abs(axial) + bending,
    )


def allowable_stress(material: Material, config: EngineConfig = DEFAULT_CONFIG) -> float:
    """
    Allowable stress by material type:
        concrete           0.85·f'c·0.6
        steel, composite   fy·0.6
        timber             0.4·f_u
    """
    if material.type == MaterialType.CONCRETE:
        return config.concrete_strength_factor * material.ultimate_strength * config.concrete_allowable_factor
    if material.type in (MaterialType.STEEL, MaterialType.COMPOSITE):
        return material.yield_strength * config.steel_allowable_factor
    if material.type == MaterialType.TIMBER:
        return material.ultimate_strength * config.timber_allowable_factor
    raise ValueError(f"Unknown material type {material.type!r}")


def safety_check(combined_stress: float, material: Material,
                 config: EngineConfig = DEFAULT_CONFIG) -> SafetyCheck:
    allowable = allowable_stress(material, config)
    computed = abs(combined_stress)
    if allowable > 0:
        utilization = computed / allowable
    else:
        # no strength defined: cannot pass
        utilization = config.utilization_cap if computed > 0 else 0.0
    safety_factor = allowable / computed if computed > 0 else float('inf')

    if utilization <= config.marginal_utilization:
        status = 'safe'
    elif utilization <= 1.0:
        status = 'marginal'
    else:
        status = 'unsafe'

    return SafetyCheck(
        safe=utilization <= 1.0,
        computed=computed,
        allowable=allowable,
        utilization=utilization,
        safety_factor=safety_factor,
        status=status,
    )


def element_result(
    model: StructuralModel,
    element: Element,
    d_global: np.ndarray,
    equivalent_loads: Optional[np.ndarray] = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> ElementResult:
    forces = element_forces(model, element, d_global, equivalent_loads, config.min_element_length)
    stresses = element_stresses(element, forces)
    return ElementResult(
        element_id=element.id,
        length=model.element_length(element),
        forces=forces,
        stresses=stresses,
        safety=safety_check(stresses.combined, element.material, config),
    )


def node_displacements(model: StructuralModel, d_global: np.ndarray) -> Dict[NodeId, np.ndarray]:
    """node id → [ux, uy, uz, rx, ry, rz]"""
    return {
        node.id: np.array(d_global[DOF_3D_FRAME.node_dofs(i)], dtype=float)
        for i, node in enumerate(model.nodes)
    }


def node_reactions(model: StructuralModel, R: np.ndarray) -> Dict[NodeId, np.ndarray]:
    """
    Reactions at supported nodes: node id → [Rx, Ry, Rz, Mx, My, Mz],
    zero at the node's unrestrained DOFs.
    """
    result = {}
    for i, node in enumerate(model.nodes):
        if not node.is_restrained:
            continue
        values = np.array(R[DOF_3D_FRAME.node_dofs(i)], dtype=float)
        mask = np.array(node.restraints, dtype=bool)
        values[~mask] = 0.0
        result[node.id] = values
    return result


@dataclass(frozen=True)
class StoryDrift:
    level: int
    elevation: float
    height: float
    drift: float
    ratio: float


# allowable story drift ratio per risk category, ASCE 7 Table 12.12-1 (other structures)
DRIFT_SCALE: Dict[ImportanceClass, float] = {
    ImportanceClass.I: 1.0,
    ImportanceClass.II: 1.0,
    ImportanceClass.III: 0.75,
    ImportanceClass.IV: 0.5,
}


def drift_limit(importance_class=ImportanceClass.II, config: EngineConfig = DEFAULT_CONFIG) -> float:
    """Allowable drift ratio: 0.020 for I/II, 0.015 for III, 0.010 for IV."""
    return config.drift_limit * DRIFT_SCALE[ImportanceClass(importance_class)]


def story_levels(model: StructuralModel, tolerance: float = 1e-3) -> List[float]:
    """Distinct node elevations (z), ascending, merged within `tolerance`."""
    levels: List[float] = []
    for z in sorted(node.z for node in model.nodes):
        if not levels or z - levels[-1] > tolerance:
            levels.append(z)
    return levels


def story_drifts(model: StructuralModel, d_global: np.ndarray, tolerance: float = 1e-3) -> List[StoryDrift]:
    """
    Inter-story drift ratios.

    Each level's lateral displacement is the mean (ux, uy) of its nodes
    (rigid floor assumption). Drift is the horizontal distance between
    consecutive levels; ratio = drift / story height.
    """
    levels = story_levels(model, tolerance)
    if len(levels) < 2:
        return []

    means = []
    for z in levels:
        idx = [i for i, n in enumerate(model.nodes) if abs(n.z - z) <= tolerance]
        ux = np.mean([d_global[DOF_3D_FRAME.idx(i, 0)] for i in idx])
        uy = np.mean([d_global[DOF_3D_FRAME.idx(i, 1)] for i in idx])
        means.append((ux, uy))

    drifts = []
    for k in range(1, len(levels)):
        height = levels[k] - levels[k - 1]
        drift = float(np.hypot(means[k][0] - means[k - 1][0], means[k][1] - means[k - 1][1]))
        drifts.append(StoryDrift(
            level=k,
            elevation=levels[k],
            height=height,
            drift=drift,
            ratio=drift / height if height > 0 else 0.0,
        ))
    return drifts

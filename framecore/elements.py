# framecore/elements.py
# 3D frame element: local stiffness, orientation, local→global transform

import numpy as np

from .errors import ValidationError, ValidationIssue
from .model import Element, StructuralModel

# Direction cosine below which a member counts as vertical
VERTICAL_TOLERANCE = 1e-6


def element_geometry(model: StructuralModel, e: Element, min_length: float = 1e-6):
    """
    Length and unit direction of an element.

    Returns:
        L: Euclidean distance start → end (m)
        axis: Unit vector along local x, shape (3,)

    Raises:
        ValidationError: If the element is shorter than min_length
    """
    ni = model.node(e.start)
    nj = model.node(e.end)
    delta = np.array([nj.x - ni.x, nj.y - ni.y, nj.z - ni.z], dtype=float)
    L = float(np.linalg.norm(delta))
    if not L > min_length:
        raise ValidationError([ValidationIssue(
            field=f"elements[{e.id}]",
            message=f"Element {e.id} has zero or near-zero length ({L:.3e} m).",
            code="ZERO_LENGTH",
        )])
    return L, delta / L


def rotation_matrix(axis: np.ndarray) -> np.ndarray:
    """
    3x3 direction cosine matrix; rows are the local x, y, z axes in global coords.

    local x = member axis
    local y = Z × x normalized (horizontal, perpendicular to the member)
    local z = x × y (points "up" for horizontal members)

    Vertical members (x parallel to Z) use global Y as local y.
    """
    x = np.asarray(axis, dtype=float)
    x = x / np.linalg.norm(x)
    up = np.array([0.0, 0.0, 1.0])

    y = np.cross(up, x)
    norm_y = np.linalg.norm(y)
    if norm_y < VERTICAL_TOLERANCE:
        y = np.array([0.0, 1.0, 0.0])
    else:
        y = y / norm_y
    z = np.cross(x, y)
    return np.vstack([x, y, z])


def transformation_matrix(R: np.ndarray) -> np.ndarray:
    """
    12x12 transform from global DOFs to local DOFs: blockdiag(R, R, R, R).
    d_local = T @ d_global, k_global = T.T @ k_local @ T
    """
    T = np.zeros((12, 12), dtype=float)
    for b in range(4):
        T[3*b:3*b + 3, 3*b:3*b + 3] = R
    return T


def local_stiffness(
    E: float, G: float, A: float, Iy: float, Iz: float, J: float, L: float
) -> np.ndarray:
    """
    Local stiffness matrix of a 3D Euler-Bernoulli frame element.
    DOF order: [ux_i, uy_i, uz_i, rx_i, ry_i, rz_i, ux_j, uy_j, uz_j, rx_j, ry_j, rz_j]

    Bending in the local x-y plane uses Iz (uy with rz), in the x-z plane
    uses Iy (uz with ry). The sign pattern of the x-z plane differs
    because a positive ry rotation moves the tip in -z.
    """
    k = np.zeros((12, 12), dtype=float)
    L2 = L * L
    L3 = L2 * L

    EA_L = E * A / L
    GJ_L = G * J / L

    # Axial
    k[0, 0] = k[6, 6] = EA_L
    k[0, 6] = k[6, 0] = -EA_L

    # Torsion
    k[3, 3] = k[9, 9] = GJ_L
    k[3, 9] = k[9, 3] = -GJ_L

    # Bending in x-y plane (about local z)
    a = 12 * E * Iz / L3
    b = 6 * E * Iz / L2
    c = 4 * E * Iz / L
    d = 2 * E * Iz / L
    k[1, 1] = k[7, 7] = a
    k[1, 7] = k[7, 1] = -a
    k[1, 5] = k[5, 1] = b
    k[1, 11] = k[11, 1] = b
    k[5, 7] = k[7, 5] = -b
    k[7, 11] = k[11, 7] = -b
    k[5, 5] = k[11, 11] = c
    k[5, 11] = k[11, 5] = d

    # Bending in x-z plane (about local y)
    a = 12 * E * Iy / L3
    b = 6 * E * Iy / L2
    c = 4 * E * Iy / L
    d = 2 * E * Iy / L
    k[2, 2] = k[8, 8] = a
    k[2, 8] = k[8, 2] = -a
    k[2, 4] = k[4, 2] = -b
    k[2, 10] = k[10, 2] = -b
    k[4, 8] = k[8, 4] = b
    k[8, 10] = k[10, 8] = b
    k[4, 4] = k[10, 10] = c
    k[4, 10] = k[10, 4] = d

    return k


def element_local_stiffness(model: StructuralModel, e: Element, min_length: float = 1e-6) -> np.ndarray:
    L, _ = element_geometry(model, e, min_length)
    p = e.properties
    return local_stiffness(e.material.elastic_modulus, e.material.shear_modulus,
                           p.A, p.Iy, p.Iz, p.J, L)


def element_transform(model: StructuralModel, e: Element, min_length: float = 1e-6) -> np.ndarray:
    _, axis = element_geometry(model, e, min_length)
    return transformation_matrix(rotation_matrix(axis))


def element_global_stiffness(model: StructuralModel, e: Element, min_length: float = 1e-6) -> np.ndarray:
    L, axis = element_geometry(model, e, min_length)
    p = e.properties
    k_local = local_stiffness(e.material.elastic_modulus, e.material.shear_modulus,
                              p.A, p.Iy, p.Iz, p.J, L)
    T = transformation_matrix(rotation_matrix(axis))
    k_global = T.T @ k_local @ T
    return k_global

# framecore/kernel/modal.py
"""Modal analysis: lumped mass matrix and natural frequencies / mode shapes."""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np
from scipy.linalg import LinAlgError, eigh, solve

from ..errors import CalculationError, SingularMatrixError
from ..model import DOF_PER_NODE, StructuralModel
from .dof import DOF_3D_FRAME

logger = logging.getLogger(__name__)

TRANSLATIONS = (0, 1, 2)


def build_lumped_mass_matrix(model: StructuralModel) -> np.ndarray:
    """
    Build the global lumped mass matrix.

    Each element's mass ρ·A·L is split evenly between its end nodes and
    added to their ux, uy, uz diagonal entries. Rotational inertia is
    neglected, so rotational diagonal entries stay zero.

    Args:
        model: Structural model

    Returns:
        M: Global mass matrix (ndof x ndof), diagonal
    """
    ndof = model.ndof
    M = np.zeros((ndof, ndof))

    for element in model.elements:
        L = model.element_length(element)
        node_mass = element.material.density * element.properties.A * L / 2.0

        for node_id in element.node_ids:
            node_index = model.node_index[node_id]
            for d in TRANSLATIONS:
                dof_idx = DOF_3D_FRAME.idx(node_index, d)
                M[dof_idx, dof_idx] += node_mass

    return M


def total_mass(model: StructuralModel) -> float:
    """Σ ρ·A·L over all elements (kg)."""
    return float(sum(
        el.material.density * el.properties.A * model.element_length(el)
        for el in model.elements
    ))


@dataclass(frozen=True)
class ModalResult:
    """
    Natural modes sorted by ascending frequency.

    mode_shapes has shape (n_modes, n_nodes, 6) and is mass-normalized
    (φᵀ·M·φ = 1). participation_factors and effective_mass have shape
    (n_modes, 3) for the global X, Y, Z directions.
    """
    omega: np.ndarray
    frequencies_hz: np.ndarray
    periods: np.ndarray
    mode_shapes: np.ndarray
    participation_factors: np.ndarray
    effective_mass: np.ndarray
    total_mass: float

    @property
    def n_modes(self) -> int:
        return len(self.omega)

    @property
    def fundamental_period(self) -> float:
        return float(self.periods[0]) if len(self.periods) else float('nan')

    def mass_participation_ratio(self) -> np.ndarray:
        """Cumulative effective mass / total mass per direction, shape (n_modes, 3)."""
        if self.total_mass <= 0:
            return np.zeros_like(self.effective_mass)
        return np.cumsum(self.effective_mass, axis=0) / self.total_mass


def natural_frequencies(
    K: np.ndarray,
    M: np.ndarray,
    fixed_dofs: Iterable[int],
    n_modes: int = 6
) -> ModalResult:
    """
    Compute natural frequencies and mode shapes.

    Solves K·φ = ω²·M·φ on the free DOFs. DOFs without mass (rotations
    under a lumped mass matrix) are removed by static condensation:

        K* = K_mm - K_m0 · K_00⁻¹ · K_0m,    φ_0 = -K_00⁻¹ · K_0m · φ_m

    and the reduced symmetric-definite problem K*·φ_m = ω²·M_mm·φ_m is
    solved with scipy.linalg.eigh.

    Args:
        K: Global stiffness matrix (no supports applied)
        M: Global mass matrix
        fixed_dofs: Restrained DOF indices (same list as the static solve)
        n_modes: Number of modes to return (capped at the number of mass DOFs)

    Returns:
        ModalResult

    Raises:
        CalculationError: No free DOF carries mass
        SingularMatrixError: The massless block or K* is singular (mechanism)
    """
    ndof = K.shape[0]
    fixed = set(int(i) for i in fixed_dofs)
    free = np.array([i for i in range(ndof) if i not in fixed], dtype=int)
    if len(free) == 0:
        raise CalculationError("No free DOFs - cannot compute modes")

    m_diag = np.diag(M)[free]
    scale = float(np.max(np.abs(m_diag))) if len(m_diag) else 0.0
    has_mass = m_diag > 1e-12 * max(scale, 1.0)
    mass_dofs = free[has_mass]
    massless = free[~has_mass]
    if len(mass_dofs) == 0:
        raise CalculationError("No free DOF carries mass - cannot compute modes")

    Kmm = K[np.ix_(mass_dofs, mass_dofs)]
    Mmm = M[np.ix_(mass_dofs, mass_dofs)]

    if len(massless):
        K00 = K[np.ix_(massless, massless)]
        K0m = K[np.ix_(massless, mass_dofs)]
        try:
            # T0 maps mass-DOF motion to the condensed massless DOFs
            T0 = -solve(K00, K0m, assume_a='sym')
        except LinAlgError as e:
            raise SingularMatrixError(f"Massless DOF block is singular: {e}") from e
        K_red = Kmm + K0m.T @ T0
        K_red = 0.5 * (K_red + K_red.T)
    else:
        T0 = np.zeros((0, len(mass_dofs)))
        K_red = Kmm

    n_actual = max(1, min(n_modes, len(mass_dofs)))
    try:
        eigenvalues, vectors = eigh(K_red, Mmm, subset_by_index=[0, n_actual - 1])
    except LinAlgError as e:
        raise SingularMatrixError(f"Eigenvalue solve failed: {e}") from e

    if eigenvalues[0] < -1e-8 * max(abs(eigenvalues[-1]), 1.0):
        raise SingularMatrixError(
            f"Negative eigenvalue {eigenvalues[0]:.3e}: structure is not stable"
        )

    omega = np.sqrt(np.maximum(eigenvalues, 0.0))
    frequencies_hz = omega / (2.0 * np.pi)
    with np.errstate(divide='ignore'):
        periods = np.where(frequencies_hz > 0, 1.0 / frequencies_hz, np.inf)

    # Expand to full-length vectors
    phi = np.zeros((ndof, n_actual))
    phi[mass_dofs, :] = vectors
    if len(massless):
        phi[massless, :] = T0 @ vectors

    # Consistent sign: largest component positive
    for k in range(n_actual):
        i = int(np.argmax(np.abs(phi[:, k])))
        if phi[i, k] < 0:
            phi[:, k] *= -1.0

    gamma, m_eff = _participation(phi, M, ndof)
    n_nodes = ndof // DOF_PER_NODE
    mode_shapes = phi.T.reshape(n_actual, n_nodes, DOF_PER_NODE)

    total = float(np.trace(M)) / 3.0
    logger.info("Modal: %d modes, T1 = %.4f s", n_actual, periods[0])
    return ModalResult(
        omega=omega,
        frequencies_hz=frequencies_hz,
        periods=periods,
        mode_shapes=mode_shapes,
        participation_factors=gamma,
        effective_mass=m_eff,
        total_mass=total,
    )


def _participation(phi: np.ndarray, M: np.ndarray, ndof: int):
    """
    Participation factor Γ = φᵀ·M·r / φᵀ·M·φ and effective mass Γ²·(φᵀ·M·φ)
    for unit ground motion r along global X, Y, Z.
    """
    n_modes = phi.shape[1]
    gamma = np.zeros((n_modes, 3))
    m_eff = np.zeros((n_modes, 3))
    for direction in TRANSLATIONS:
        r = np.zeros(ndof)
        r[direction::DOF_PER_NODE] = 1.0
        Mr = M @ r
        for k in range(n_modes):
            mk = float(phi[:, k] @ M @ phi[:, k])
            if mk <= 0:
                continue
            g = float(phi[:, k] @ Mr) / mk
            gamma[k, direction] = g
            m_eff[k, direction] = g * g * mk
    return gamma, m_eff


def modal_analysis(
    model: StructuralModel,
    K: np.ndarray,
    n_modes: int = 6,
    M: Optional[np.ndarray] = None,
) -> ModalResult:
    """Model-level helper: lumped mass + model supports + natural_frequencies."""
    if M is None:
        M = build_lumped_mass_matrix(model)
    return natural_frequencies(K, M, model.restrained_dofs(), n_modes)

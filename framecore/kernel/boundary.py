# framecore/kernel/boundary.py
"""
Support conditions by the unit-diagonal method.

For every restrained DOF r:

    K[r, :] = 0,  K[:, r] = 0,  K[r, r] = 1,  F[r] = 0

so the solve returns d[r] = 0 without changing the size of the system.
The same restrained-DOF list drives the eigen solve (see modal.py), so
static and modal analyses see identical supports.
"""

from typing import Iterable, List, Tuple

import numpy as np

from ..errors import ValidationError, ValidationIssue
from .sparse import SparseMatrix


def restrained_list(restrained_dofs: Iterable[int], ndof: int) -> List[int]:
    """Sorted unique restrained DOFs; raises ValidationError when there are none."""
    dofs = sorted(set(int(r) for r in restrained_dofs))
    if not dofs:
        raise ValidationError([ValidationIssue(
            field="nodes.restraints",
            message="Structure has no restrained DOFs and is under-restrained; "
                    "add at least one support.",
            code="UNDER_RESTRAINED",
        )])
    if dofs[0] < 0 or dofs[-1] >= ndof:
        raise IndexError(f"Restrained DOF outside 0..{ndof - 1}")
    return dofs


def apply_boundary_conditions(
    K: np.ndarray,
    F: np.ndarray,
    restrained_dofs: Iterable[int],
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Apply supports to a dense system.

    Args:
        K: Global stiffness (ndof x ndof), left unchanged
        F: Global load vector (ndof,), left unchanged
        restrained_dofs: Global indices of restrained DOFs

    Returns:
        (K_bc, F_bc) copies with supports applied

    Raises:
        ValidationError: If no DOF is restrained
    """
    ndof = K.shape[0]
    dofs = restrained_list(restrained_dofs, ndof)

    K_bc = np.array(K, dtype=float, copy=True)
    F_bc = np.array(F, dtype=float, copy=True)
    K_bc[dofs, :] = 0.0
    K_bc[:, dofs] = 0.0
    K_bc[dofs, dofs] = 1.0
    F_bc[dofs] = 0.0
    return K_bc, F_bc


def apply_boundary_conditions_sparse(
    K: SparseMatrix,
    F: np.ndarray,
    restrained_dofs: Iterable[int],
) -> Tuple[SparseMatrix, np.ndarray]:
    """Sparse counterpart of apply_boundary_conditions."""
    dofs = restrained_list(restrained_dofs, K.n_rows)
    restrained = set(dofs)

    K_bc = SparseMatrix(K.n_rows, K.n_cols, K.threshold)
    for (i, j), v in K.items():
        if i not in restrained and j not in restrained:
            K_bc[i, j] = v
    for r in dofs:
        K_bc[r, r] = 1.0

    F_bc = np.array(F, dtype=float, copy=True)
    F_bc[dofs] = 0.0
    return K_bc, F_bc


def free_dofs(ndof: int, restrained_dofs: Iterable[int]) -> np.ndarray:
    restrained = set(restrained_dofs)
    return np.array([i for i in range(ndof) if i not in restrained], dtype=int)

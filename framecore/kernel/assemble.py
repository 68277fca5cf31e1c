# framecore/kernel/assemble.py
"""
ASSEMBLY: Global Matrix Scatter-Add
===================================

PURPOSE:
--------
Builds the global stiffness matrix K (and load vector F) from element
contributions. Assembly does not care what the element is, it only needs

- the total number of DOFs
- for each element: its DOF map and its matrix in global coordinates

ALGORITHM:
----------
    K = zeros(ndof × ndof)
    for each element:
        for each (a, b) in ke:
            K[dof_map[a], dof_map[b]] += ke[a, b]

Elements sharing a node accumulate at the shared DOFs. Contributions are
always added in element order, so the same model assembles to the same
bits every time.

Two storage back-ends are provided: dense numpy arrays for small models
and SparseMatrix for large ones.

USAGE:
------
    contributions = stiffness_contributions(model)
    K = assemble_global_K(model.ndof, contributions)
    Ks = assemble_global_K_sparse(model.ndof, contributions)
"""

import logging
from typing import List, Optional, Tuple

import numpy as np

from ..elements import element_global_stiffness
from ..model import StructuralModel
from ..progress import NULL_REPORTER, ProgressReporter
from .dof import DOF_3D_FRAME
from .sparse import DEFAULT_THRESHOLD, SparseMatrix

logger = logging.getLogger(__name__)

Contribution = Tuple[List[int], np.ndarray]


def element_dof_map(model: StructuralModel, element) -> List[int]:
    """Global DOF indices (12) of an element's start and end nodes."""
    return DOF_3D_FRAME.element_dof_map([model.node_index[element.start],
                                         model.node_index[element.end]])


def stiffness_contributions(
    model: StructuralModel,
    min_length: float = 1e-6,
    reporter: ProgressReporter = NULL_REPORTER,
    progress_span: Tuple[float, float] = (0.0, 100.0),
) -> List[Contribution]:
    """
    Compute (dof_map, k_global) for every element.

    Checks for cancellation before each element and reports progress
    linearly across `progress_span`.
    """
    contributions: List[Contribution] = []
    n = len(model.elements)
    start, stop = progress_span
    step = max(1, n // 20)
    for count, element in enumerate(model.elements):
        reporter.check("stiffness assembly")
        dof_map = element_dof_map(model, element)
        ke = element_global_stiffness(model, element, min_length)
        contributions.append((dof_map, ke))
        if count % step == 0:
            reporter.report(start + (stop - start) * count / max(n, 1),
                            f"Element stiffness {count + 1}/{n}")
    return contributions


def assemble_global_K(
    ndof: int,
    contributions: List[Contribution]
) -> np.ndarray:
    """
    Assemble the dense global stiffness matrix from element contributions.

    Parameters:
    -----------
    ndof : int
        Total number of DOFs (6 × n_nodes)
    contributions : List[Tuple[List[int], np.ndarray]]
        (dof_map, ke) per element, ke in global coordinates with shape
        (len(dof_map), len(dof_map))

    Returns:
    --------
    np.ndarray
        K, shape (ndof, ndof), symmetric positive semi-definite
        (positive definite once supports are applied)
    """
    K = np.zeros((ndof, ndof), dtype=float)

    for dof_map, ke in contributions:
        n_element_dofs = len(dof_map)
        if ke.shape != (n_element_dofs, n_element_dofs):
            raise ValueError(
                f"Element ke shape {ke.shape} doesn't match dof_map length {n_element_dofs}"
            )
        idx = np.asarray(dof_map, dtype=int)
        # np.add.at handles repeated indices the same way the nested loop would
        np.add.at(K, np.ix_(idx, idx), ke)

    return K


def assemble_global_K_sparse(
    ndof: int,
    contributions: List[Contribution],
    threshold: float = DEFAULT_THRESHOLD,
) -> SparseMatrix:
    """Same scatter-add as assemble_global_K into a SparseMatrix."""
    K = SparseMatrix(ndof, ndof, threshold)
    for dof_map, ke in contributions:
        n_element_dofs = len(dof_map)
        if ke.shape != (n_element_dofs, n_element_dofs):
            raise ValueError(
                f"Element ke shape {ke.shape} doesn't match dof_map length {n_element_dofs}"
            )
        for a in range(n_element_dofs):
            ia = dof_map[a]
            for b in range(n_element_dofs):
                value = ke[a, b]
                if value != 0.0:
                    K.add(ia, dof_map[b], value)
    logger.debug("Sparse K assembled: %d DOFs, %d non-zeros", ndof, K.nnz)
    return K


def assemble_global_F(
    ndof: int,
    contributions: List[Contribution]
) -> np.ndarray:
    """
    Assemble a global load vector from element contributions
    (equivalent nodal loads from distributed loads).

    contributions: (dof_map, fe) with fe in global coordinates, shape (len(dof_map),)
    """
    F = np.zeros(ndof, dtype=float)

    for dof_map, fe in contributions:
        n_element_dofs = len(dof_map)
        if fe.shape != (n_element_dofs,):
            raise ValueError(
                f"Element fe shape {fe.shape} doesn't match dof_map length {n_element_dofs}"
            )
        for a in range(n_element_dofs):
            F[dof_map[a]] += fe[a]

    return F


def assemble_stiffness(
    model: StructuralModel,
    use_sparse: bool = False,
    min_length: float = 1e-6,
    threshold: float = DEFAULT_THRESHOLD,
    reporter: Optional[ProgressReporter] = None,
    progress_span: Tuple[float, float] = (0.0, 100.0),
):
    """Model-level convenience: contributions + scatter-add in one call."""
    reporter = reporter or NULL_REPORTER
    contributions = stiffness_contributions(model, min_length, reporter, progress_span)
    if use_sparse:
        return assemble_global_K_sparse(model.ndof, contributions, threshold)
    return assemble_global_K(model.ndof, contributions)

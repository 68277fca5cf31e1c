# framecore/kernel - Matrix plumbing for 3D frame analysis
"""
KERNEL: ASSEMBLY, SUPPORTS, SOLVERS, MODES
==========================================

The kernel only knows about DOF indices and matrices:

- A way to map (node_index, local_dof) → global_dof_index
- Element matrices in global coordinates + their DOF maps
- Restrained DOF lists
- Load vectors

Element formulation lives in framecore.elements; everything here works
on plain numpy arrays or SparseMatrix.
"""

from .dof import DOFManager, DOF_3D_FRAME
from .sparse import SparseMatrix
from .assemble import (
    assemble_global_K,
    assemble_global_K_sparse,
    assemble_global_F,
    assemble_stiffness,
    stiffness_contributions,
)
from .boundary import apply_boundary_conditions, apply_boundary_conditions_sparse
from .solve import (
    SolverMethod,
    gaussian_elimination,
    solve_linear,
    conjugate_gradient,
    sparse_lu_decompose,
    sparse_lu_solve,
    solve_system,
    CGResult,
    DenseSolution,
    SolveReport,
)
from .modal import build_lumped_mass_matrix, natural_frequencies, modal_analysis, ModalResult

__all__ = [
    'DOFManager', 'DOF_3D_FRAME', 'SparseMatrix',
    'assemble_global_K', 'assemble_global_K_sparse', 'assemble_global_F',
    'assemble_stiffness', 'stiffness_contributions',
    'apply_boundary_conditions', 'apply_boundary_conditions_sparse',
    'SolverMethod', 'gaussian_elimination', 'solve_linear', 'conjugate_gradient',
    'sparse_lu_decompose', 'sparse_lu_solve', 'solve_system',
    'CGResult', 'DenseSolution', 'SolveReport',
    'build_lumped_mass_matrix', 'natural_frequencies', 'modal_analysis', 'ModalResult',
]

# framecore/kernel/dof.py
"""
DOF MANAGER: Node Index → Global Degree of Freedom
==================================================

PURPOSE:
--------
Maps (node_index, local_dof) to a row/column of the global matrices.
A 3D frame node has 6 DOFs:

    0: ux   1: uy   2: uz   3: rx   4: ry   5: rz

so node i owns rows 6i .. 6i+5. Node INDEX is the node's position in
StructuralModel.nodes; DOFManager never sees node ids.

USAGE:
------
    dof = DOF_3D_FRAME
    dof.idx(2, 1)                 # → 13 (node 2, uy)
    dof.element_dof_map([0, 3])   # → [0..5, 18..23]
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple


@dataclass(frozen=True)
class DOFManager:
    """
    Degree-of-freedom indexing.

    Attributes:
    -----------
    dof_per_node : int
        Number of DOFs per node (6 for a 3D frame)

    Examples:
    ---------
    >>> dof = DOFManager(dof_per_node=6)
    >>> dof.idx(1, 0)  # Node 1, ux
    6
    >>> dof.ndof(4)
    24
    """
    dof_per_node: int

    def idx(self, node_index: int, local_dof: int) -> int:
        """
        Global DOF index for a node's local DOF.

        Parameters:
        -----------
        node_index : int
            Position of the node in the model (0-indexed)
        local_dof : int
            0=ux, 1=uy, 2=uz, 3=rx, 4=ry, 5=rz

        Returns:
        --------
        int
            Row/column in the global matrices
        """
        if not 0 <= local_dof < self.dof_per_node:
            raise IndexError(f"local_dof {local_dof} out of range for {self.dof_per_node} DOF/node")
        return self.dof_per_node * node_index + local_dof

    def ndof(self, n_nodes: int) -> int:
        """Total DOFs (size of K) for n_nodes."""
        return self.dof_per_node * n_nodes

    def node_dofs(self, node_index: int) -> List[int]:
        """
        All global DOF indices of one node.

        Examples:
        ---------
        >>> DOFManager(6).node_dofs(1)
        [6, 7, 8, 9, 10, 11]
        """
        base = self.dof_per_node * node_index
        return list(range(base, base + self.dof_per_node))

    def element_dof_map(self, node_indices: Sequence[int]) -> List[int]:
        """
        Flattened DOF list for an element, used to scatter/gather
        element matrices into/from the global ones.

        Examples:
        ---------
        >>> DOFManager(6).element_dof_map([0, 1])
        [0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11]
        """
        result = []
        for node_index in node_indices:
            result.extend(self.node_dofs(node_index))
        return result

    def locate(self, global_dof: int) -> Tuple[int, int]:
        """Inverse of idx: global DOF → (node_index, local_dof)."""
        return divmod(global_dof, self.dof_per_node)


DOF_3D_FRAME = DOFManager(dof_per_node=6)   # ux, uy, uz, rx, ry, rz

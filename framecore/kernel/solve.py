# framecore/kernel/solve.py
"""Linear system solvers: dense elimination, partitioned direct solve, sparse CG and sparse LU."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple, Union

import numpy as np
from scipy import sparse as sp

from ..config import DEFAULT_CONFIG, EngineConfig
from ..errors import ConvergenceError, SingularMatrixError
from ..progress import NULL_REPORTER, ProgressReporter
from .boundary import apply_boundary_conditions, apply_boundary_conditions_sparse, restrained_list
from .sparse import SparseMatrix

logger = logging.getLogger(__name__)

Matrix = Union[np.ndarray, SparseMatrix]


class SolverMethod(str, Enum):
    AUTO = "auto"
    DENSE = "dense"                    # Gaussian elimination with partial pivoting
    DIRECT = "direct"                  # partitioned numpy/LAPACK solve
    CONJUGATE_GRADIENT = "conjugate_gradient"
    SPARSE_LU = "sparse_lu"


# =============================================================================
# Dense path
# =============================================================================

@dataclass(frozen=True)
class DenseSolution:
    """Result of gaussian_elimination. A singular system gives x = 0 and singular=True."""
    x: np.ndarray
    singular: bool = False
    pivot_row: Optional[int] = None


def gaussian_elimination(
    A: np.ndarray,
    b: np.ndarray,
    pivot_tolerance: float = 1e-12,
) -> DenseSolution:
    """
    Solve A·x = b by Gaussian elimination with partial pivoting.

    Args:
        A: Square matrix (n x n), not modified
        b: Right-hand side (n,), not modified
        pivot_tolerance: A pivot is treated as zero when
            |pivot| < pivot_tolerance · max|A|

    Returns:
        DenseSolution. On a numerically singular pivot the solution is
        zero-filled and flagged instead of dividing by a near-zero value.
    """
    M = np.array(A, dtype=float, copy=True)
    rhs = np.array(b, dtype=float, copy=True)
    n = M.shape[0]
    if M.shape != (n, n) or rhs.shape != (n,):
        raise ValueError(f"Incompatible shapes {M.shape} and {rhs.shape}")
    if n == 0:
        return DenseSolution(np.zeros(0))

    scale = float(np.max(np.abs(M))) or 1.0
    threshold = pivot_tolerance * scale

    # Forward elimination
    for k in range(n):
        p = k + int(np.argmax(np.abs(M[k:, k])))
        if abs(M[p, k]) < threshold:
            logger.warning("Singular pivot at row %d (|a|=%.3e)", k, abs(M[p, k]))
            return DenseSolution(np.zeros(n), singular=True, pivot_row=k)
        if p != k:
            M[[k, p]] = M[[p, k]]
            rhs[[k, p]] = rhs[[p, k]]
        factors = M[k + 1:, k] / M[k, k]
        M[k + 1:, k:] -= np.outer(factors, M[k, k:])
        rhs[k + 1:] -= factors * rhs[k]

    # Back substitution
    x = np.zeros(n)
    for i in range(n - 1, -1, -1):
        x[i] = (rhs[i] - M[i, i + 1:] @ x[i + 1:]) / M[i, i]

    return DenseSolution(x)


def solve_linear(
    K: np.ndarray,
    F: np.ndarray,
    fixed_dofs: Iterable[int],
    cond_limit: float = 1e12
) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Solve K·d = F with fixed DOFs via partitioning.

    Args:
        K: Global stiffness matrix (ndof x ndof), without supports applied
        F: Global load vector (ndof,)
        fixed_dofs: Constrained DOF indices (displacement = 0)
        cond_limit: Max condition number of the free block

    Returns:
        d: Displacement vector (ndof,)
        R: Reaction vector (ndof,), R = K·d - F
        free: Array of free DOF indices

    Raises:
        SingularMatrixError: If the free block is singular or cond > cond_limit
    """
    ndof = K.shape[0]

    fixed = set(int(i) for i in fixed_dofs)
    free = np.array([i for i in range(ndof) if i not in fixed], dtype=int)

    d = np.zeros(ndof, dtype=float)
    if len(free):
        Kff = K[np.ix_(free, free)]
        Ff = F[free]

        cond = np.linalg.cond(Kff)
        if not np.isfinite(cond) or cond > cond_limit:
            raise SingularMatrixError(
                f"Unstable system (cond={cond:.2e}). Check supports. Need cond < {cond_limit:.0e}."
            )
        d[free] = np.linalg.solve(Kff, Ff)

    R = K @ d - F
    return d, R, free


# =============================================================================
# Sparse path
# =============================================================================

@dataclass(frozen=True)
class CGResult:
    """Conjugate Gradient outcome; `x` is the best estimate even when not converged."""
    x: np.ndarray
    iterations: int
    residual: float
    converged: bool

    def raise_for_convergence(self) -> None:
        if not self.converged:
            raise ConvergenceError(
                f"Conjugate gradient did not converge in {self.iterations} iterations "
                f"(relative residual {self.residual:.3e})",
                iterations=self.iterations,
                residual=self.residual,
                solution=self.x,
            )


def _as_operator(A):
    if isinstance(A, SparseMatrix):
        csr = A.to_csr()
        return csr.dot, csr.diagonal()
    if sp.issparse(A):
        csr = A.tocsr()
        return csr.dot, csr.diagonal()
    A = np.asarray(A, dtype=float)
    return A.dot, np.diag(A).copy()


def conjugate_gradient(
    A: Union[Matrix, sp.spmatrix],
    b: np.ndarray,
    tol: float = 1e-10,
    max_iterations: Optional[int] = None,
    x0: Optional[np.ndarray] = None,
    jacobi: bool = True,
    reporter: ProgressReporter = NULL_REPORTER,
) -> CGResult:
    """
    Conjugate Gradient for symmetric positive-definite systems.

    Convergence is declared when ||r|| / ||b|| < tol. With `jacobi` the
    iteration is preconditioned by diag(A), which removes the scale gap
    between stiffness rows and unit-diagonal support rows.

    Args:
        A: SPD matrix (SparseMatrix, scipy sparse or dense)
        b: Right-hand side
        tol: Relative residual tolerance (default 1e-10)
        max_iterations: Iteration cap (default min(N, 1000))
        x0: Starting guess (default zeros)
        jacobi: Use diagonal preconditioning
        reporter: Polled for cancellation once per iteration

    Raises:
        SingularMatrixError: If a search direction has p·Ap <= 0
            (matrix not positive definite)
    """
    matvec, diag = _as_operator(A)
    b = np.asarray(b, dtype=float)
    n = b.shape[0]
    if max_iterations is None:
        max_iterations = min(n, 1000)

    b_norm = float(np.linalg.norm(b))
    if b_norm == 0.0:
        return CGResult(np.zeros(n), 0, 0.0, True)

    x = np.zeros(n) if x0 is None else np.array(x0, dtype=float, copy=True)
    r = b - matvec(x)

    if jacobi and np.all(diag > 0):
        inv_diag = 1.0 / diag
    else:
        inv_diag = np.ones(n)

    z = inv_diag * r
    p = z.copy()
    rz = float(r @ z)
    residual = float(np.linalg.norm(r)) / b_norm
    iterations = 0

    while residual >= tol and iterations < max_iterations:
        reporter.check("conjugate gradient")
        Ap = matvec(p)
        pAp = float(p @ Ap)
        if pAp <= 0.0:
            raise SingularMatrixError(
                f"Matrix is not positive definite (p·Ap = {pAp:.3e} at iteration {iterations})"
            )
        alpha = rz / pAp
        x += alpha * p
        r -= alpha * Ap
        iterations += 1
        residual = float(np.linalg.norm(r)) / b_norm
        if residual < tol:
            break
        z = inv_diag * r
        rz_new = float(r @ z)
        p = z + (rz_new / rz) * p
        rz = rz_new

    converged = residual < tol
    logger.debug("CG: %d iterations, residual %.3e, converged=%s", iterations, residual, converged)
    return CGResult(x, iterations, residual, converged)


@dataclass
class SparseLU:
    """Doolittle factors: unit lower L (diagonal implicit) and upper U, stored per row."""
    n: int
    lower: List[Dict[int, float]] = field(default_factory=list)
    upper: List[Dict[int, float]] = field(default_factory=list)


def sparse_lu_decompose(A: SparseMatrix, pivot_tolerance: float = 1e-12) -> SparseLU:
    """
    Doolittle LU factorization without pivoting (A symmetric positive definite
    after supports are applied, so no row exchanges are needed).

    Rows are eliminated in ascending order and each row update walks the
    pivot row's columns in ascending order.

    Raises:
        SingularMatrixError: If |pivot| < pivot_tolerance · max|A|
    """
    n = A.n_rows
    if A.n_cols != n:
        raise ValueError(f"LU needs a square matrix, got {A.shape}")
    rows = A.rows()
    scale = max((abs(v) for row in rows for v in row.values()), default=0.0) or 1.0
    threshold = pivot_tolerance * scale

    col_rows: List[set] = [set() for _ in range(n)]
    for i, row in enumerate(rows):
        for j in row:
            col_rows[j].add(i)

    lower: List[Dict[int, float]] = [dict() for _ in range(n)]
    for k in range(n):
        pivot = rows[k].get(k, 0.0)
        if abs(pivot) < threshold:
            raise SingularMatrixError(f"Near-zero pivot {pivot:.3e} at row {k} in sparse LU")
        pivot_row = [(j, v) for j, v in sorted(rows[k].items()) if j > k]
        for i in sorted(r for r in col_rows[k] if r > k):
            factor = rows[i].pop(k) / pivot
            lower[i][k] = factor
            row_i = rows[i]
            for j, v in pivot_row:
                if j not in row_i:
                    col_rows[j].add(i)
                    row_i[j] = -factor * v
                else:
                    row_i[j] -= factor * v

    upper = [dict(sorted(row.items())) for row in rows]
    return SparseLU(n=n, lower=lower, upper=upper)


def sparse_lu_solve(lu: SparseLU, b: np.ndarray) -> np.ndarray:
    """Forward substitution L·y = b, then back substitution U·x = y."""
    b = np.asarray(b, dtype=float)
    if b.shape != (lu.n,):
        raise ValueError(f"Right-hand side shape {b.shape} does not match n={lu.n}")

    y = np.zeros(lu.n)
    for i in range(lu.n):
        s = b[i]
        for k, l_ik in sorted(lu.lower[i].items()):
            s -= l_ik * y[k]
        y[i] = s

    x = np.zeros(lu.n)
    for i in range(lu.n - 1, -1, -1):
        s = y[i]
        diag = 0.0
        for j, u_ij in lu.upper[i].items():
            if j == i:
                diag = u_ij
            else:
                s -= u_ij * x[j]
        x[i] = s / diag
    return x


# =============================================================================
# Dispatcher
# =============================================================================

@dataclass(frozen=True)
class SolveReport:
    """Displacements and reactions from solve_system plus solver diagnostics."""
    displacements: np.ndarray
    reactions: np.ndarray
    method: SolverMethod
    iterations: int = 0
    residual: float = 0.0
    converged: bool = True


def resolve_method(method: SolverMethod, ndof: int, config: EngineConfig = DEFAULT_CONFIG) -> SolverMethod:
    method = SolverMethod(method)
    if method != SolverMethod.AUTO:
        return method
    return SolverMethod.CONJUGATE_GRADIENT if ndof > config.sparse_dof_threshold else SolverMethod.DIRECT


def _matvec(K: Matrix, d: np.ndarray) -> np.ndarray:
    return K.to_csr().dot(d) if isinstance(K, SparseMatrix) else K @ d


def solve_system(
    K: Matrix,
    F: np.ndarray,
    restrained_dofs: Iterable[int],
    method: SolverMethod = SolverMethod.AUTO,
    config: EngineConfig = DEFAULT_CONFIG,
    reporter: ProgressReporter = NULL_REPORTER,
) -> SolveReport:
    """
    Apply supports, solve, and recover reactions R = K·d - F from the unsupported K.

    Args:
        K: Global stiffness without supports (dense or SparseMatrix)
        F: Global load vector
        restrained_dofs: Restrained DOF indices
        method: SolverMethod (AUTO picks DIRECT for small systems, CG above
            config.sparse_dof_threshold DOFs)

    Raises:
        ValidationError: No restrained DOFs
        SingularMatrixError: Mechanism / disconnected structure
        ConvergenceError: CG hit its iteration cap (carries the best estimate)
    """
    restrained = list(restrained_dofs)
    ndof = K.shape[0]
    method = resolve_method(method, ndof, config)
    logger.info("Solving %d DOFs with %s", ndof, method.value)

    if method == SolverMethod.DIRECT:
        K_dense = K.to_dense() if isinstance(K, SparseMatrix) else K
        restrained = restrained_list(restrained, ndof)
        d, R, _ = solve_linear(K_dense, F, restrained, config.cond_limit)
        return SolveReport(d, R, method)

    if method == SolverMethod.DENSE:
        K_dense = K.to_dense() if isinstance(K, SparseMatrix) else K
        K_bc, F_bc = apply_boundary_conditions(K_dense, F, restrained)
        solution = gaussian_elimination(K_bc, F_bc, config.pivot_tolerance)
        if solution.singular:
            raise SingularMatrixError(
                f"Stiffness matrix is singular at row {solution.pivot_row}. "
                "Check supports and connectivity."
            )
        d = solution.x
        return SolveReport(d, _matvec(K, d) - F, method)

    Ks = K if isinstance(K, SparseMatrix) else SparseMatrix.from_dense(K, config.sparse_threshold)
    K_bc, F_bc = apply_boundary_conditions_sparse(Ks, F, restrained)

    if method == SolverMethod.SPARSE_LU:
        lu = sparse_lu_decompose(K_bc, config.lu_pivot_tolerance)
        d = sparse_lu_solve(lu, F_bc)
        return SolveReport(d, _matvec(Ks, d) - F, method)

    if method == SolverMethod.CONJUGATE_GRADIENT:
        result = conjugate_gradient(
            K_bc, F_bc,
            tol=config.cg_tolerance,
            max_iterations=min(ndof, config.cg_max_iterations),
            reporter=reporter,
        )
        if not result.converged:
            logger.warning("CG stopped after %d iterations (residual %.3e)",
                           result.iterations, result.residual)
            result.raise_for_convergence()
        return SolveReport(result.x, _matvec(Ks, result.x) - F, method,
                           iterations=result.iterations, residual=result.residual)

    raise ValueError(f"Unknown solver method {method!r}")

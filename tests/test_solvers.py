import numpy as np
import pytest

from framecore.config import EngineConfig
from framecore.errors import ConvergenceError, SingularMatrixError
from framecore.kernel.assemble import assemble_stiffness
from framecore.kernel.solve import (
    SolverMethod,
    conjugate_gradient,
    gaussian_elimination,
    resolve_method,
    solve_linear,
    solve_system,
    sparse_lu_decompose,
    sparse_lu_solve,
)
from framecore.kernel.sparse import SparseMatrix
from framecore.loads import build_load_vector


def _spd_system(n=8, seed=0):
    rng = np.random.default_rng(seed)
    B = rng.normal(size=(n, n))
    A = B @ B.T + n * np.eye(n)
    b = rng.normal(size=n)
    return A, b


def test_gaussian_elimination_matches_numpy():
    A, b = _spd_system()
    solution = gaussian_elimination(A, b)

    assert not solution.singular
    np.testing.assert_allclose(solution.x, np.linalg.solve(A, b), rtol=1e-10)


def test_gaussian_elimination_pivots():
    # zero in the leading position requires a row swap
    A = np.array([[0.0, 2.0], [3.0, 1.0]])
    b = np.array([4.0, 5.0])
    solution = gaussian_elimination(A, b)
    np.testing.assert_allclose(solution.x, [1.0, 2.0])


def test_gaussian_elimination_flags_singular():
    A = np.array([[1.0, 2.0], [2.0, 4.0]])
    solution = gaussian_elimination(A, np.array([1.0, 2.0]))

    assert solution.singular
    assert solution.pivot_row == 1
    np.testing.assert_array_equal(solution.x, [0.0, 0.0])


def test_conjugate_gradient_matches_direct():
    A, b = _spd_system()
    result = conjugate_gradient(A, b, tol=1e-12, max_iterations=50)
    reference = gaussian_elimination(A, b).x

    assert result.converged
    assert result.iterations <= 50
    assert np.linalg.norm(result.x - reference) / np.linalg.norm(reference) < 1e-8


def test_conjugate_gradient_accepts_sparse_matrix():
    A, b = _spd_system(n=6, seed=3)
    result = conjugate_gradient(SparseMatrix.from_dense(A), b)
    np.testing.assert_allclose(result.x, np.linalg.solve(A, b), rtol=1e-8)


def test_conjugate_gradient_zero_rhs():
    A, _ = _spd_system(n=4)
    result = conjugate_gradient(A, np.zeros(4))

    assert result.converged
    assert result.iterations == 0
    np.testing.assert_array_equal(result.x, 0.0)


def test_conjugate_gradient_iteration_cap():
    A, b = _spd_system(n=8, seed=1)
    result = conjugate_gradient(A, b, tol=1e-14, max_iterations=1, jacobi=False)

    assert not result.converged
    assert result.iterations == 1
    with pytest.raises(ConvergenceError) as excinfo:
        result.raise_for_convergence()
    assert excinfo.value.iterations == 1
    assert excinfo.value.solution is not None


def test_conjugate_gradient_rejects_indefinite():
    A = np.array([[1.0, 0.0], [0.0, -1.0]])
    with pytest.raises(SingularMatrixError):
        conjugate_gradient(A, np.array([0.0, 1.0]), jacobi=False)


def test_sparse_lu_matches_numpy():
    A, b = _spd_system(n=7, seed=2)
    lu = sparse_lu_decompose(SparseMatrix.from_dense(A))
    np.testing.assert_allclose(sparse_lu_solve(lu, b), np.linalg.solve(A, b), rtol=1e-9)


def test_sparse_lu_singular():
    A = SparseMatrix.from_dense(np.array([[1.0, 1.0], [1.0, 1.0]]))
    with pytest.raises(SingularMatrixError):
        sparse_lu_decompose(A)


def test_solve_linear_reports_unstable_system():
    K = np.array([[1.0, -1.0], [-1.0, 1.0]])
    with pytest.raises(SingularMatrixError):
        solve_linear(K, np.array([0.0, 1.0]), fixed_dofs=[])


def test_auto_method_switches_on_size():
    config = EngineConfig(sparse_dof_threshold=100)
    assert resolve_method(SolverMethod.AUTO, 60, config) == SolverMethod.DIRECT
    assert resolve_method(SolverMethod.AUTO, 120, config) == SolverMethod.CONJUGATE_GRADIENT
    assert resolve_method("sparse_lu", 12, config) == SolverMethod.SPARSE_LU


@pytest.mark.parametrize("method", [
    SolverMethod.DENSE,
    SolverMethod.CONJUGATE_GRADIENT,
    SolverMethod.SPARSE_LU,
])
def test_solver_methods_agree(portal, method):
    K = assemble_stiffness(portal)
    F = build_load_vector(portal, portal.load_case("W")).F
    restrained = portal.restrained_dofs()

    reference = solve_system(K, F, restrained, SolverMethod.DIRECT)
    report = solve_system(K, F, restrained, method)

    assert report.method == method
    scale = np.max(np.abs(reference.displacements))
    np.testing.assert_allclose(report.displacements, reference.displacements,
                               atol=1e-5 * scale)
    # rigid-body translation is in the null space of K, so ΣRx = -ΣFx exactly
    assert np.isclose(report.reactions[0::6].sum(), -10000.0, atol=1e-3)


def test_solve_system_mechanism_is_singular(make_cantilever):
    """A member pinned at one end only can spin freely."""
    from framecore.model import PINNED, Node, StructuralModel

    base = make_cantilever()
    model = StructuralModel(
        (Node(0, 0.0, 0.0, 0.0, restraints=PINNED), base.nodes[1]),
        base.elements,
    )
    K = assemble_stiffness(model)
    F = np.zeros(model.ndof)
    F[7] = 1000.0

    for method in (SolverMethod.DIRECT, SolverMethod.DENSE, SolverMethod.SPARSE_LU):
        with pytest.raises(SingularMatrixError):
            solve_system(K, F, model.restrained_dofs(), method)

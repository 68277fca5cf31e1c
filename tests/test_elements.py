import numpy as np
import pytest

from framecore.elements import (
    element_geometry,
    element_global_stiffness,
    element_local_stiffness,
    local_stiffness,
    rotation_matrix,
    transformation_matrix,
)
from framecore.errors import ValidationError
from framecore.model import FIXED, Element, ElementType, Node, StructuralModel


def _model(p_start, p_end, section, steel):
    nodes = (Node(0, *p_start, restraints=FIXED), Node(1, *p_end))
    return StructuralModel(nodes, (Element(0, ElementType.BEAM, 0, 1, section, steel),))


def test_element_length_is_euclidean(section, steel):
    model = _model((1.0, 1.0, 1.0), (2.0, 3.0, 3.0), section, steel)
    L, axis = element_geometry(model, model.elements[0])

    assert np.isclose(L, 3.0)
    assert np.isclose(model.element_length(model.elements[0]), 3.0)
    np.testing.assert_allclose(axis, [1 / 3, 2 / 3, 2 / 3])


def test_zero_length_element_rejected(section, steel):
    model = _model((1.0, 2.0, 3.0), (1.0, 2.0, 3.0), section, steel)

    with pytest.raises(ValidationError) as excinfo:
        element_geometry(model, model.elements[0])
    assert excinfo.value.issues[0].code == "ZERO_LENGTH"

    with pytest.raises(ValueError):
        element_global_stiffness(model, model.elements[0])


def test_local_stiffness_symmetric():
    k = local_stiffness(E=2e11, G=7.7e10, A=0.08, Iy=1.0667e-3, Iz=2.667e-4, J=1e-3, L=4.0)
    np.testing.assert_allclose(k, k.T, rtol=1e-12, atol=0.0)


def test_local_stiffness_terms():
    E, A, I, L = 2e11, 0.08, 1e-3, 5.0
    k = local_stiffness(E=E, G=8e10, A=A, Iy=I, Iz=I, J=1e-3, L=L)

    assert np.isclose(k[0, 0], E * A / L)
    assert np.isclose(k[0, 6], -E * A / L)
    assert np.isclose(k[1, 1], 12 * E * I / L**3)
    assert np.isclose(k[1, 5], 6 * E * I / L**2)
    assert np.isclose(k[2, 4], -6 * E * I / L**2)
    assert np.isclose(k[5, 11], 2 * E * I / L)


def test_rigid_body_translation_has_no_force():
    k = local_stiffness(E=2e11, G=8e10, A=0.08, Iy=1e-3, Iz=2e-4, J=5e-4, L=3.0)
    for direction in range(3):
        d = np.zeros(12)
        d[direction] = d[6 + direction] = 1.0
        np.testing.assert_allclose(k @ d, 0.0, atol=1e-3)


class TestRotation:

    def test_rotation_is_orthonormal(self):
        R = rotation_matrix(np.array([1.0, 2.0, 0.5]))
        np.testing.assert_allclose(R @ R.T, np.eye(3), atol=1e-12)
        assert np.isclose(np.linalg.det(R), 1.0)

    def test_horizontal_member_local_z_points_up(self):
        R = rotation_matrix(np.array([1.0, 0.0, 0.0]))
        np.testing.assert_allclose(R[1], [0.0, 1.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(R[2], [0.0, 0.0, 1.0], atol=1e-12)

    def test_vertical_member_uses_global_y(self):
        R = rotation_matrix(np.array([0.0, 0.0, 1.0]))
        np.testing.assert_allclose(R[1], [0.0, 1.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(R[2], [-1.0, 0.0, 0.0], atol=1e-12)

    def test_global_stiffness_rotation_invariant(self, section, steel):
        """k_global = Tᵀ k T with orthogonal T keeps the eigenvalues of k_local."""
        model = _model((0.0, 0.0, 0.0), (2.0, 3.0, 1.5), section, steel)
        el = model.elements[0]
        k_local = element_local_stiffness(model, el)
        k_global = element_global_stiffness(model, el)

        np.testing.assert_allclose(k_global, k_global.T, rtol=1e-10, atol=1e-3)
        np.testing.assert_allclose(
            np.sort(np.linalg.eigvalsh(k_global)),
            np.sort(np.linalg.eigvalsh(k_local)),
            rtol=1e-8, atol=1e-2,
        )

    def test_transformation_is_block_diagonal(self):
        R = rotation_matrix(np.array([0.3, -0.4, 0.8]))
        T = transformation_matrix(R)
        np.testing.assert_allclose(T[6:9, 6:9], R)
        np.testing.assert_allclose(T @ T.T, np.eye(12), atol=1e-12)

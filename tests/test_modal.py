import numpy as np
import pytest

from framecore.errors import CalculationError
from framecore.kernel.assemble import assemble_stiffness
from framecore.kernel.modal import build_lumped_mass_matrix, modal_analysis, natural_frequencies

E = 2.0e11
A = 0.08
IY = 0.2 * 0.4**3 / 12
IZ = 0.4 * 0.2**3 / 12


def test_cantilever_lumped_mass_frequencies(make_cantilever):
    """
    With one lumped mass m = ρAL/2 at the tip, each direction is a single
    degree of freedom: ω² = k/m with the tip stiffness in that direction.
    """
    L = 5.0
    model = make_cantilever(L=L)
    m = 7850.0 * A * L / 2

    K = assemble_stiffness(model)
    result = modal_analysis(model, K, n_modes=3)

    expected = np.sort([
        np.sqrt(3 * E * IZ / L**3 / m),   # sway in y
        np.sqrt(3 * E * IY / L**3 / m),   # sway in z
        np.sqrt(E * A / L / m),           # axial
    ])
    np.testing.assert_allclose(result.omega, expected, rtol=1e-6)
    np.testing.assert_allclose(result.periods, 2 * np.pi / expected, rtol=1e-6)
    assert np.isclose(result.fundamental_period, 2 * np.pi / expected[0], rtol=1e-6)


def test_frequencies_ascending_and_mass_normalized(stick):
    K = assemble_stiffness(stick)
    M = build_lumped_mass_matrix(stick)
    result = natural_frequencies(K, M, stick.restrained_dofs(), n_modes=4)

    assert result.n_modes == 4
    assert np.all(np.diff(result.omega) >= 0)
    for k in range(result.n_modes):
        phi = result.mode_shapes[k].reshape(-1)
        assert np.isclose(phi @ M @ phi, 1.0, rtol=1e-8)


def test_mode_shapes_zero_at_supports(stick):
    result = modal_analysis(stick, assemble_stiffness(stick), n_modes=2)
    assert result.mode_shapes.shape == (2, 3, 6)
    np.testing.assert_allclose(result.mode_shapes[:, 0, :], 0.0)


def test_effective_mass_sums_to_free_mass(make_cantilever):
    model = make_cantilever(L=5.0)
    result = modal_analysis(model, assemble_stiffness(model), n_modes=3)
    free_mass = 7850.0 * A * 5.0 / 2

    np.testing.assert_allclose(result.effective_mass.sum(axis=0), free_mass, rtol=1e-8)
    ratio = result.mass_participation_ratio()
    assert ratio.shape == (3, 3)
    # ratios are against total mass, supports included
    np.testing.assert_allclose(ratio[-1], 0.5, rtol=1e-8)


def test_n_modes_capped_at_mass_dofs(make_cantilever):
    model = make_cantilever()
    result = modal_analysis(model, assemble_stiffness(model), n_modes=20)
    assert result.n_modes == 3


def test_no_mass_raises(make_cantilever):
    model = make_cantilever()
    K = assemble_stiffness(model)
    with pytest.raises(CalculationError):
        natural_frequencies(K, np.zeros_like(K), model.restrained_dofs())

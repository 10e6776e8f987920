import numpy as np
import pytest

from src.collocation.config import CollocationConfig
from src.collocation.grid import CollocationGrid
from src.economy.shocks import IncomeProcess


# --- Fixtures ---

@pytest.fixture
def income():
    y = np.array([0.9, 1.0, 1.1])
    P = np.array([
        [0.7, 0.2, 0.1],
        [0.2, 0.6, 0.2],
        [0.1, 0.2, 0.7],
    ])
    return IncomeProcess(y, P)


@pytest.fixture
def config():
    return CollocationConfig(ny=3, nb=5, b_low=-0.2, b_up=0.2)


@pytest.fixture
def grid(config, income):
    return CollocationGrid.build(config, income)


# --- Tests ---

def test_node_ordering_is_income_major(grid):
    """Node iy * nb + ib sits at (b_grid[ib], y_grid[iy])."""
    assert grid.n_nodes == 15
    for iy in range(grid.ny):
        for ib in range(grid.nb):
            b, y = grid.nodes[iy * grid.nb + ib]
            assert b == grid.b_grid[ib]
            assert y == grid.y_grid[iy]


def test_linear_basis_matrices_are_identities(grid):
    assert np.allclose(grid.phi.matrix.toarray(), np.eye(15))
    assert np.allclose(grid.phi_d.matrix.toarray(), np.eye(3))


def test_expectation_operator(grid, income):
    expected = np.kron(income.prob_matrix, np.eye(5))
    assert np.allclose(grid.expectation.toarray(), expected)


def test_phi_zero_reads_value_at_zero_debt(grid):
    """With 0 on the grid, phi_zero picks the middle debt column."""
    rng = np.random.default_rng(3)
    omega = rng.normal(size=grid.n_nodes)

    v_zero = grid.phi_zero @ omega

    assert np.allclose(v_zero, omega.reshape(3, 5)[:, 2])


@pytest.mark.parametrize("debt_basis", ["spline", "chebyshev"])
def test_smooth_bases_collocate_exactly(income, debt_basis):
    config = CollocationConfig(ny=3, nb=7, b_low=-0.3, b_up=0.3, debt_basis=debt_basis)
    grid = CollocationGrid.build(config, income)

    rng = np.random.default_rng(4)
    v = rng.normal(size=grid.n_nodes)
    omega = grid.phi.solve(v)

    assert np.allclose(grid.phi @ omega, v, atol=1e-10)
    # Evaluating at the node debts reproduces the same rows
    assert np.allclose(grid.basis_at(grid.nodes[:, 0]) @ omega, v, atol=1e-10)


def test_zero_debt_off_the_nodes(income):
    """phi_zero interpolates when 0 is not a debt node."""
    config = CollocationConfig(ny=3, nb=4, b_low=-0.3, b_up=0.3)
    grid = CollocationGrid.build(config, income)

    # Linear in debt: V(b, y_iy) = iy + 2 b
    omega = np.concatenate([iy + 2 * grid.b_grid for iy in range(3)])

    assert np.allclose(grid.phi_zero @ omega, [0.0, 1.0, 2.0])


def test_size_mismatch(income):
    with pytest.raises(ValueError, match="config.ny"):
        CollocationGrid.build(CollocationConfig(ny=5, nb=5), income)

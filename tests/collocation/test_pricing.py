import numpy as np
import pytest

from src.collocation.config import CollocationConfig
from src.collocation.grid import CollocationGrid
from src.collocation.pricing import PriceInterpolator, update_default_and_price
from src.economy.shocks import IncomeProcess

R = 0.017


# --- Fixtures ---

@pytest.fixture
def grid():
    y = np.array([0.9, 1.0, 1.1])
    P = np.array([
        [0.7, 0.2, 0.1],
        [0.2, 0.6, 0.2],
        [0.1, 0.2, 0.7],
    ])
    config = CollocationConfig(ny=3, nb=5, b_low=-0.2, b_up=0.2)
    return CollocationGrid.build(config, IncomeProcess(y, P))


def _price(grid, omega_c, omega_d):
    return update_default_and_price(
        grid.phi, grid.phi_d, omega_c, omega_d, grid.prob_matrix, R, grid.nb
    )


# --- 1. Default sets and prices ---

def test_no_default_gives_risk_free_price(grid):
    prices = _price(grid, np.zeros(15), -np.ones(3))

    assert np.all(prices.default_states == 0.0)
    assert np.all(prices.defprob == 0.0)
    assert np.allclose(prices.q, 1 / (1 + R))


def test_certain_default_gives_zero_price(grid):
    prices = _price(grid, np.zeros(15), np.ones(3))

    assert np.all(prices.default_states == 1.0)
    assert np.allclose(prices.defprob, 1.0)
    assert np.allclose(prices.q, 0.0)


def test_default_probability_weights_next_income(grid):
    """
    Default only in the low-income state at the highest debt.
    Pr(default | y, b_0) is then the probability of moving to low income.
    """
    omega_c = np.zeros(15)
    omega_c[0] = -2.0  # (iy=0, ib=0)
    prices = _price(grid, omega_c, -np.ones(3))

    expected_defprob = grid.prob_matrix[:, 0]
    assert prices.default_states[0, 0] == 1.0
    assert prices.default_states.sum() == 1.0
    assert np.allclose(prices.defprob[:, 0], expected_defprob)
    assert np.allclose(prices.defprob[:, 1:], 0.0)
    assert np.allclose(prices.q[:, 0], (1 - expected_defprob) / (1 + R))


def test_prices_stay_in_bounds(grid):
    rng = np.random.default_rng(5)
    for _ in range(20):
        prices = _price(grid, rng.normal(size=15), rng.normal(size=3))
        assert np.all((prices.defprob >= 0) & (prices.defprob <= 1))
        assert np.all((prices.q >= 0) & (prices.q <= 1 / (1 + R)))


def test_pricing_is_idempotent(grid):
    rng = np.random.default_rng(6)
    omega_c, omega_d = rng.normal(size=15), rng.normal(size=3)

    first = _price(grid, omega_c, omega_d)
    second = _price(grid, omega_c, omega_d)

    for a, b in zip(first, second):
        assert np.array_equal(a, b)


# --- 2. Interpolation of the schedule ---

@pytest.fixture
def pricer():
    b_grid = np.array([-0.2, 0.0, 0.2])
    y_grid = np.array([0.9, 1.1])
    q = np.array([
        [0.2, 0.8, 0.9],
        [0.6, 0.9, 0.95],
    ])
    return PriceInterpolator(b_grid, y_grid, q)


def test_interpolator_exact_at_nodes(pricer):
    iy = np.array([0, 0, 0, 1, 1, 1])
    b = np.tile(pricer.b_grid, 2)

    assert np.allclose(pricer(iy, b), pricer.q.ravel())


def test_interpolator_linear_between_nodes(pricer):
    assert np.isclose(pricer(0, -0.1), 0.5)
    assert np.isclose(pricer(1, 0.1), 0.925)


def test_interpolator_clamps_outside_grid(pricer):
    assert np.isclose(pricer(0, -1.0), 0.2)
    assert np.isclose(pricer(1, 0.5), 0.95)


def test_refresh_checks_shape(pricer):
    with pytest.raises(ValueError, match="shape"):
        pricer.refresh(np.ones((3, 3)))

    pricer.refresh(np.full((2, 3), 0.5))
    assert np.isclose(pricer(1, 0.1), 0.5)

import numpy as np
import pytest

from src.economy.parameters import ShockParams
from src.economy.shocks import IncomeProcess, initialize_markov_process


# --- Fixtures ---

@pytest.fixture
def shock_params():
    return ShockParams()


# --- 1. Discretization ---

@pytest.mark.parametrize("method", ["tauchen", "rouwenhorst"])
def test_transition_matrix_is_row_stochastic(method):
    """Every row of Pi sums to one and every entry is a probability."""
    y_grid, P = initialize_markov_process(ShockParams(method=method), ny=15)

    assert P.shape == (15, 15)
    assert np.all(P >= 0)
    assert np.all(P <= 1)
    assert np.allclose(P.sum(axis=1), 1.0, atol=1e-12, rtol=0)


def test_income_grid_is_symmetric_in_logs(shock_params):
    """With mu = 0 the log-income grid is centered on zero."""
    y_grid, _ = initialize_markov_process(shock_params, ny=11)

    log_y = np.log(y_grid)
    assert np.all(np.diff(y_grid) > 0), "Income grid must be increasing"
    assert np.allclose(log_y, -log_y[::-1])
    assert np.isclose(log_y[5], 0.0)


def test_tauchen_grid_width(shock_params):
    """Tauchen spans +/- n_std unconditional standard deviations."""
    y_grid, _ = initialize_markov_process(shock_params, ny=7)

    std_log_y = shock_params.eta / np.sqrt(1 - shock_params.rho ** 2)
    assert np.isclose(np.log(y_grid[-1]), shock_params.n_std * std_log_y)


@pytest.mark.parametrize("method", ["tauchen", "rouwenhorst"])
def test_grid_centered_on_unconditional_mean(method):
    y_grid, _ = initialize_markov_process(ShockParams(mu=0.1, method=method), ny=9)

    assert np.isclose(np.mean(np.log(y_grid)), 0.1)


def test_discretization_needs_two_states(shock_params):
    with pytest.raises(ValueError, match="ny >= 2"):
        initialize_markov_process(shock_params, ny=1)


# --- 2. IncomeProcess container ---

def test_from_shock_params(shock_params):
    income = IncomeProcess.from_shock_params(shock_params, ny=9)

    assert income.size == 9
    assert income.prob_matrix.shape == (9, 9)
    assert np.isclose(income.mean(), np.mean(income.y_grid))


def test_single_state_chain_is_allowed():
    income = IncomeProcess(np.array([1.0]), np.array([[1.0]]))

    assert income.size == 1
    assert income.mean() == 1.0


def test_income_process_is_read_only_copy():
    y = np.array([0.9, 1.0, 1.1])
    P = np.full((3, 3), 1 / 3)
    income = IncomeProcess(y, P)

    # Caller's arrays stay writable
    y[0] = 0.5
    assert income.y_grid[0] == 0.9

    with pytest.raises(ValueError):
        income.y_grid[0] = 2.0


@pytest.mark.parametrize(
    "y, P, match",
    [
        ([0.9, 1.1], [[0.5, 0.4], [0.5, 0.5]], "sum to 1"),
        ([0.9, 1.1], [[1.2, -0.2], [0.5, 0.5]], r"\[0, 1\]"),
        ([1.1, 0.9], [[0.5, 0.5], [0.5, 0.5]], "increasing"),
        ([-1.0, 1.0], [[0.5, 0.5], [0.5, 0.5]], "positive"),
        ([0.9, 1.0, 1.1], [[0.5, 0.5], [0.5, 0.5]], "shape"),
    ],
)
def test_income_process_validation(y, P, match):
    with pytest.raises(ValueError, match=match):
        IncomeProcess(np.array(y), np.array(P))

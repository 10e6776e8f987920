"""
Unit tests for the economic parameter containers.

Validates the Arellano (2008) defaults, the __post_init__ validators, and the
with_overrides helper (key checking and change logging).
"""

import logging

import numpy as np
import pytest
from dataclasses import replace

from src.economy.parameters import EconomicParams, ShockParams


# --- Fixtures ---

@pytest.fixture
def default_params():
    """Fresh EconomicParams with the baseline calibration."""
    return EconomicParams()


# --- 1. Defaults ---

def test_arellano_calibration_defaults(default_params):
    assert default_params.beta == 0.953
    assert default_params.gamma == 2.0
    assert default_params.r == 0.017
    assert default_params.theta == 0.282
    assert default_params.default_cost == 0.969

    shocks = ShockParams()
    assert shocks.rho == 0.945
    assert shocks.eta == 0.025
    assert shocks.mu == 0.0
    assert shocks.method == "tauchen"


def test_risk_free_price(default_params):
    assert np.isclose(default_params.risk_free_price, 1 / 1.017)


# --- 2. Validation (__post_init__) ---

def test_input_validation_logic(default_params):
    """The validators must name the offending field."""
    with pytest.raises(ValueError, match="beta"):
        replace(default_params, beta=1.2)

    with pytest.raises(ValueError, match="gamma"):
        replace(default_params, gamma=0.0)

    with pytest.raises(ValueError, match="r must"):
        replace(default_params, r=-0.01)

    with pytest.raises(ValueError, match="theta"):
        replace(default_params, theta=1.5)

    with pytest.raises(ValueError, match="default_cost"):
        replace(default_params, default_cost=0.0)


def test_shock_validation_logic():
    base = ShockParams()

    with pytest.raises(ValueError, match="eta"):
        replace(base, eta=-0.1)

    with pytest.raises(ValueError, match="rho"):
        replace(base, rho=1.0)

    with pytest.raises(ValueError, match="n_std"):
        replace(base, n_std=0.0)

    with pytest.raises(ValueError, match="method"):
        replace(base, method="fixed")


def test_params_are_frozen(default_params):
    with pytest.raises(Exception):
        default_params.beta = 0.9


# --- 3. with_overrides ---

def test_with_overrides_rejects_unknown_keys():
    with pytest.raises(ValueError, match="Invalid override keys"):
        EconomicParams.with_overrides(sigma=0.1)

    with pytest.raises(ValueError, match="Invalid override keys"):
        ShockParams.with_overrides(beta=0.9)


def test_with_overrides_logs_changes(caplog):
    caplog.set_level(logging.INFO, logger="src.economy.parameters")

    params = EconomicParams.with_overrides(gamma=3.0, beta=0.953)

    assert params.gamma == 3.0
    assert "gamma: 2.0 -> 3.0" in caplog.text
    # Unchanged values are not reported
    assert "beta" not in caplog.text


def test_with_overrides_keeps_base():
    base = ShockParams(rho=0.9)
    updated = ShockParams.with_overrides(base, log_changes=False, eta=0.05)

    assert updated.rho == 0.9
    assert updated.eta == 0.05
    assert base.eta == 0.025

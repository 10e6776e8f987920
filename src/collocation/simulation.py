"""
simulation.py

Runs batches of solved economies and simulates solved economies forward.

This module strictly separates the "Solving" phase (the fixed-point iteration)
from the "Analysis" phase (default frequencies, spreads, simulated paths).
"""

import dataclasses
import logging
import time
from typing import Any, Dict, Optional

import numpy as np
import pandas as pd
import quantecon as qe

from src.collocation.arellano import ArellanoCollocation, CollocationState, SolveStatus
from src.collocation.config import CollocationConfig
from src.collocation.pricing import PriceInterpolator
from src.economy.logic import default_endowment
from src.economy.parameters import EconomicParams, ShockParams

logger = logging.getLogger(__name__)


def _split_overrides(overrides: Dict[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Route scenario overrides to the dataclass that owns each field."""
    owners = {
        "params": {f.name for f in dataclasses.fields(EconomicParams)},
        "shock_params": {f.name for f in dataclasses.fields(ShockParams)},
        "config": {f.name for f in dataclasses.fields(CollocationConfig)},
    }
    routed: Dict[str, Dict[str, Any]] = {name: {} for name in owners}
    for key, value in overrides.items():
        owner = next((name for name, fields in owners.items() if key in fields), None)
        if owner is None:
            raise ValueError(f"Unknown override key: {key}")
        routed[owner][key] = value
    return routed


def run_parameter_sweep(
    scenarios: Dict[str, Dict[str, Any]],
    base_params: Optional[EconomicParams] = None,
    base_shock_params: Optional[ShockParams] = None,
    base_config: Optional[CollocationConfig] = None,
    solver_kwargs: Optional[Dict[str, Any]] = None
) -> Dict[str, Dict[str, Any]]:
    """
    Solves one economy per scenario.

    Args:
        scenarios: Scenario name -> overrides. Keys may be any field of
            EconomicParams, ShockParams or CollocationConfig,
            e.g. {"low_vol": {"eta": 0.0125}}.
        base_params: Baseline economic parameters.
        base_shock_params: Baseline income process parameters.
        base_config: Baseline grid and solver settings.
        solver_kwargs: Extra arguments for ArellanoCollocation.solve.

    Returns:
        Dict[str, Dict[str, Any]]:
            {
                "ScenarioName": {
                    "params": EconomicParams,
                    "shock_params": ShockParams,
                    "config": CollocationConfig,
                    "model": ArellanoCollocation,
                    "result": SolveResult,
                    "duration": float
                },
                ...
            }
    """
    base_params = base_params or EconomicParams()
    base_shock_params = base_shock_params or ShockParams()
    base_config = base_config or CollocationConfig()
    solver_kwargs = solver_kwargs or {}

    results = {}
    total_scenarios = len(scenarios)
    logger.info(f"Starting parameter sweep over {total_scenarios} scenario(s)")

    for i, (name, overrides) in enumerate(scenarios.items(), 1):
        start_time = time.time()
        logger.info(f"[{i}/{total_scenarios}] Running scenario '{name}'")

        # 1. Update parameters (immutable replacement to prevent side effects)
        routed = _split_overrides(overrides)
        params = dataclasses.replace(base_params, **routed["params"])
        shock_params = dataclasses.replace(base_shock_params, **routed["shock_params"])
        config = dataclasses.replace(base_config, **routed["config"])

        # 2. Instantiate and solve
        model = ArellanoCollocation(params, shock_params, config)
        result = model.solve(**solver_kwargs)

        duration = time.time() - start_time
        logger.info(f"   > '{name}' {result.status.value} after {result.iterations} iterations ({duration:.2f}s)")

        results[name] = {
            "params": params,
            "shock_params": shock_params,
            "config": config,
            "model": model,
            "result": result,
            "duration": duration,
        }

    return results


def summarize_sweep(
    results: Dict[str, Dict[str, Any]],
    sim_periods: int = 10000,
    seed: Optional[int] = 0
) -> pd.DataFrame:
    """
    One row per scenario with convergence diagnostics, pricing moments and
    the equilibrium default frequency.

    mean_defprob and max_defprob average over the whole (y, b') grid,
    including debt levels the sovereign never chooses. default_frequency is
    the share of simulated periods in which the sovereign defaults, i.e. the
    default probability weighted by the equilibrium distribution of income
    and debt. It is NaN for diverged scenarios.

    Args:
        results: Output of run_parameter_sweep.
        sim_periods: Length of the simulation behind default_frequency.
        seed: Seed of that simulation (shared by all scenarios).

    Returns:
        DataFrame indexed by scenario with columns status, converged,
        iterations, distance, default_frequency, mean_defprob, max_defprob,
        mean_q, max_spread, duration.
    """
    rows = []
    for name, data in results.items():
        result = data["result"]
        params = data["params"]

        if result.status is SolveStatus.DIVERGED:
            default_frequency = np.nan
        else:
            path = simulate_economy(data["model"], result.state, T=sim_periods, seed=seed)
            default_frequency = float(path["default"].mean())

        # Spread over the risk-free rate; q is floored where debt is certain to default
        safe_q = np.maximum(result.q, 1e-4)
        spread = (1.0 / safe_q - 1.0) - params.r

        rows.append({
            "scenario": name,
            "status": result.status.value,
            "converged": result.converged,
            "iterations": result.iterations,
            "distance": result.distance,
            "default_frequency": default_frequency,
            "mean_defprob": float(np.mean(result.defprob)),
            "max_defprob": float(np.max(result.defprob)),
            "mean_q": float(np.mean(result.q)),
            "max_spread": float(np.max(spread)),
            "duration": data["duration"],
        })

    return pd.DataFrame(rows).set_index("scenario")


def simulate_economy(
    model: ArellanoCollocation,
    state: CollocationState,
    T: int,
    y_init: Optional[int] = None,
    b_init: float = 0.0,
    seed: Optional[int] = None
) -> pd.DataFrame:
    """
    Simulates the solved economy forward.

    With market access the sovereign defaults when V_d(y) > V_c(b, y);
    otherwise it follows the debt policy, interpolated linearly in b between
    the debt nodes. A defaulting sovereign consumes h(y) and stays excluded,
    regaining access (at zero debt) with probability theta at the end of each
    excluded period.

    Args:
        model: Solved economy.
        state: Solution state (coefficients, prices, policy).
        T: Number of periods.
        y_init: Initial income index (node closest to mean income if None).
        b_init: Initial asset position.
        seed: Seed for the income chain and the re-entry draws.

    Returns:
        DataFrame indexed by period with columns
        y, output, b, b_next, q, c, excluded, default.
    """
    if T < 1:
        raise ValueError(f"T must be >= 1. Got {T}")

    grid = model.grid
    params = model.params
    y_grid, b_grid = grid.y_grid, grid.b_grid

    if y_init is None:
        y_init = int(np.clip(np.searchsorted(y_grid, y_grid.mean()), 0, grid.ny - 1))

    mc = qe.MarkovChain(grid.prob_matrix, y_grid)
    y_idx = mc.simulate_indices(T, init=y_init, random_state=seed)
    rng = np.random.default_rng(seed)

    policy = state.policy_b.reshape(grid.ny, grid.nb)
    v_d = model.default_values(state)
    h = default_endowment(y_grid, params)
    pricer = PriceInterpolator(b_grid, y_grid, state.q)

    records = []
    b = float(b_init)
    excluded = False

    for t in range(T):
        iy = int(y_idx[t])
        y = float(y_grid[iy])
        defaults_now = False

        if not excluded:
            row = grid.basis_at(np.array([b]), grid.income_basis.evaluate(np.array([y])))
            v_c = float((row @ state.omega_c)[0])
            defaults_now = bool(v_d[iy] > v_c)
            excluded = defaults_now

        if excluded:
            records.append({
                "y": y, "output": float(h[iy]), "b": b, "b_next": 0.0,
                "q": np.nan, "c": float(h[iy]), "excluded": True, "default": defaults_now,
            })
            b = 0.0
            if rng.random() < params.theta:
                excluded = False
        else:
            b_next = float(np.interp(b, b_grid, policy[iy]))
            q = float(pricer(iy, b_next))
            records.append({
                "y": y, "output": y, "b": b, "b_next": b_next,
                "q": q, "c": y + b - q * b_next, "excluded": False, "default": False,
            })
            b = b_next

    frame = pd.DataFrame(records)
    frame.index.name = "t"
    return frame

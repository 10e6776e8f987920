# ---
# jupyter:
#   jupytext:
#     text_representation:
#       extension: .py
#       format_name: percent
#       format_version: '1.3'
#       jupytext_version: 1.16.1
#   kernelspec:
#     display_name: Python 3
#     language: python
#     name: python3
# ---

# %% [markdown]
# # Arellano (2008) by Collocation
#
# Solves the sovereign default model with the projection solver and inspects:
# - convergence history of the three coefficient vectors
# - bond prices and default probabilities on a finer debt grid
# - a simulated path and comparative statics in income volatility
#
# Fast debug mode for iteration; full mode for the baseline calibration.

# %%
# =============================================================================
# 0. IMPORTS & SETUP
# =============================================================================
import sys
from pathlib import Path

project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import numpy as np

from src.economy import EconomicParams, ShockParams
from src.collocation import (
    ArellanoCollocation,
    CollocationConfig,
    evaluate_on_grid,
    run_parameter_sweep,
    simulate_economy,
    summarize_sweep,
)
from src.utils.logging_config import setup_logging

OUTPUT_DIR = Path("./outputs/arellano_collocation")
OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

setup_logging('INFO', log_file=str(OUTPUT_DIR / "run.log"))

# %%
# =============================================================================
# 1. CONFIGURATION
# =============================================================================

RUN_MODE = "debug"  # "debug" (fast) or "full" (baseline grid)
SEED = 42

if RUN_MODE == "debug":
    CONFIG = CollocationConfig(ny=9, nb=15, tol=1e-7, log_every=25)
else:
    CONFIG = CollocationConfig()

PARAMS = EconomicParams()
SHOCKS = ShockParams()

print(CONFIG.summary(PARAMS, SHOCKS).to_string(index=False))

# %%
# =============================================================================
# 2. SOLVE
# =============================================================================

model = ArellanoCollocation(PARAMS, SHOCKS, CONFIG)
result = model.solve()

print(f"Status: {result.status.value}, iterations: {result.iterations}, distance: {result.distance:.3e}")
history = result.history_frame()
history.to_csv(OUTPUT_DIR / "history.csv")

# %%
# =============================================================================
# 3. FINER GRID
# =============================================================================

b_fine = np.linspace(CONFIG.b_low, CONFIG.b_up, 201)
fine = evaluate_on_grid(model, result.state, b_fine)

low, high = 0, model.ny - 1
print(f"Max default probability (low y):  {fine.defprob[low].max():.3f}")
print(f"Max default probability (high y): {fine.defprob[high].max():.3f}")
print(f"Min bond price (low y):           {fine.q[low].min():.3f}")

# %%
# =============================================================================
# 4. SIMULATION
# =============================================================================

path = simulate_economy(model, result.state, T=500, seed=SEED)
print(f"Default frequency: {path['default'].mean():.4f}")
print(f"Share of periods excluded: {path['excluded'].mean():.4f}")
print(f"Mean debt-to-output with access: {(-path.loc[~path['excluded'], 'b'] / path['output']).mean():.4f}")
path.to_csv(OUTPUT_DIR / "simulation.csv")

# %%
# =============================================================================
# 5. COMPARATIVE STATICS: INCOME VOLATILITY
# =============================================================================

sweep = run_parameter_sweep(
    {"baseline": {}, "half_eta": {"eta": SHOCKS.eta / 2}},
    base_params=PARAMS,
    base_shock_params=SHOCKS,
    base_config=CONFIG,
)
print(summarize_sweep(sweep).to_string())

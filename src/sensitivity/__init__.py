"""
Sensitivity sweeps over precomputed parameters.

- PairedSensitivitySweep: swept values advance together by index
- ExhaustiveSensitivitySweep: cartesian product of swept values, optionally
  run concurrently
- SensitivitySweepResults: label -> results, with extrema and bulk mutation

**Usage:**
```python
sweep = ExhaustiveSensitivitySweep(simulation)
sweep_results = sweep.simulate_parallel(1000, random_seed=7)

label, best = sweep_results.highest_mean
sweep_results.recompute_expression("B * Rm")
sweep_results.regenerate_parallel(5000)
```
"""

from src.sensitivity.sweep import (
    ExhaustiveSensitivitySweep,
    PairedSensitivitySweep,
    SensitivitySweep,
    combination_label,
)
from src.sensitivity.sweep_results import SensitivitySweepResults

__all__ = [
    "SensitivitySweep",
    "PairedSensitivitySweep",
    "ExhaustiveSensitivitySweep",
    "SensitivitySweepResults",
    "combination_label",
]

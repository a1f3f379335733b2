"""
Monte Carlo simulation of algebraic expressions over named parameters.

This module provides the composition core:
- Parameters: constant, discrete, distribution, precomputed, conditional,
  nested-simulation, random bag and qualitative-interpretation columns
- Simulation: expression + parameters, resolved into a raw trial matrix
- SimulationResults: outcome vector with recompute/add/remove/regenerate
  and on-demand summary statistics

**Usage:**
```python
from scipy import stats
from src.simulation import (
    Simulation, DiscreteParameter, DistributionParameter, ConstantParameter,
)

die = [(face, 1 / 6) for face in range(1, 7)]
sim = Simulation("DiceRoll1 + DiceRoll2 + Bonus * Noise", [
    DiscreteParameter("DiceRoll1", die),
    DiscreteParameter("DiceRoll2", die),
    ConstantParameter("Bonus", 0.5),
    DistributionParameter("Noise", stats.norm(0, 1)),
])

results = sim.simulate(100000, random_seed=42)
results.mean, results.variance
results.recompute_expression("DiceRoll1 + DiceRoll2")
results.remove_parameter("Noise")
```
"""

from src.simulation.bags import RandomBagReplacement
from src.simulation.constraints import ConstraintResolution, ParameterConstraint
from src.simulation.exceptions import (
    DuplicateCombinationError,
    DuplicateParameterError,
    EmptyBagError,
    ExpressionSyntaxError,
    InvalidConstraintError,
    InvalidParameterError,
    InvalidParameterNameError,
    InvalidProbabilityError,
    InvalidSummaryStatisticError,
    MissingPrecomputedParameterError,
    MissingSymbolError,
    NestingDepthError,
    ParameterInExpressionError,
    PrecomputedValueCountError,
    RandomBagItemCountError,
    SimulationError,
)
from src.simulation.expression import Expression
from src.simulation.parameters import (
    ComparisonOperator,
    ConditionalOutcome,
    ConditionalParameter,
    ConstantParameter,
    DiscreteOutcome,
    DiscreteParameter,
    DistributionParameter,
    NestedSimulationParameter,
    Parameter,
    PrecomputedParameter,
    RandomBagParameter,
)
from src.simulation.qualitative_parameters import QualitativeInterpretationParameter
from src.simulation.results import ConfidenceInterval, SimulationResults
from src.simulation.sampler import DistributionSampler
from src.simulation.settings import DEFAULT_SETTINGS, SimulationSettings
from src.simulation.simulator import Simulation
from src.simulation.statistics import SummaryStatistic

__all__ = [
    # Composition
    "Simulation",
    "SimulationResults",
    "ConfidenceInterval",
    "Expression",
    "DistributionSampler",
    "SummaryStatistic",
    "SimulationSettings",
    "DEFAULT_SETTINGS",
    # Parameters
    "Parameter",
    "ConstantParameter",
    "DiscreteOutcome",
    "DiscreteParameter",
    "DistributionParameter",
    "PrecomputedParameter",
    "ComparisonOperator",
    "ConditionalOutcome",
    "ConditionalParameter",
    "NestedSimulationParameter",
    "RandomBagParameter",
    "RandomBagReplacement",
    "QualitativeInterpretationParameter",
    "ParameterConstraint",
    "ConstraintResolution",
    # Errors
    "SimulationError",
    "InvalidProbabilityError",
    "PrecomputedValueCountError",
    "MissingPrecomputedParameterError",
    "InvalidParameterError",
    "ParameterInExpressionError",
    "InvalidParameterNameError",
    "DuplicateParameterError",
    "InvalidConstraintError",
    "InvalidSummaryStatisticError",
    "ExpressionSyntaxError",
    "MissingSymbolError",
    "DuplicateCombinationError",
    "NestingDepthError",
    "EmptyBagError",
    "RandomBagItemCountError",
]

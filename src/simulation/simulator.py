"""
Monte Carlo simulation of an expression over named parameters.

A Simulation couples an algebraic expression with an ordered list of
parameters. Each call to ``simulate(n)``:
- validates every precomputed sequence against ``n`` (no partial work on
  failure)
- resolves each parameter to a column of ``n`` trial values
- evaluates the expression on every trial row

Constant, precomputed, and conditional-over-deterministic columns are the
same on every call; discrete and distribution columns are redrawn.

Example:
    sim = Simulation("C*P", [
        ConstantParameter("C", 10),
        PrecomputedParameter("P", [10, 20, 30]),
    ])
    sim.simulate(3).results     # array([100., 200., 300.])
"""

import logging
from typing import Iterable, Optional, Tuple, Union

from src.simulation.exceptions import MissingSymbolError
from src.simulation.expression import Expression, as_expression
from src.simulation.parameters import Parameter
from src.simulation.resolution import (
    resolve_matrix,
    validate_parameter_list,
    validate_trial_counts,
)
from src.simulation.results import SimulationResults
from src.simulation.sampler import DistributionSampler
from src.simulation.settings import DEFAULT_SETTINGS, SimulationSettings

logger = logging.getLogger(__name__)


class Simulation:
    """
    Immutable expression + parameter composition.

    Attributes
    ----------
    expression : Expression
        Parsed expression evaluated for every trial.
    parameters : Tuple[Parameter, ...]
        Parameters in column order. Names are unique.
    settings : SimulationSettings
        Tolerances and limits used while simulating.
    """

    def __init__(
        self,
        expression: Union[str, Expression],
        parameters: Iterable[Parameter],
        settings: Optional[SimulationSettings] = None,
    ) -> None:
        """
        Initialize simulation.

        Parameters
        ----------
        expression : str or Expression
            Infix expression over the parameter names.
        parameters : Iterable[Parameter]
            Parameters, one column each.
        settings : SimulationSettings, optional
            Defaults to DEFAULT_SETTINGS.

        Raises
        ------
        ExpressionSyntaxError
            If the expression cannot be parsed.
        DuplicateParameterError
            If two parameters share a name.
        MissingSymbolError
            If the expression uses a name that is not a parameter.
        """
        self.expression = as_expression(expression)
        self.parameters: Tuple[Parameter, ...] = tuple(validate_parameter_list(parameters))
        self.settings = settings or DEFAULT_SETTINGS

        names = {p.name for p in self.parameters}
        missing = [v for v in self.expression.variables if v not in names]
        if missing:
            raise MissingSymbolError(
                f"Expression '{self.expression}' uses {missing}, which are not parameters "
                f"of this simulation"
            )

    @classmethod
    def from_parameter(
        cls,
        parameter: Parameter,
        settings: Optional[SimulationSettings] = None,
    ) -> "Simulation":
        """One-parameter simulation whose outcome is the parameter's own column."""
        return cls(parameter.name, [parameter], settings=settings)

    def with_parameters(self, parameters: Iterable[Parameter]) -> "Simulation":
        """Same expression and settings over a different parameter list."""
        return Simulation(self.expression, parameters, settings=self.settings)

    def simulate(
        self,
        n_trials: int,
        random_seed: Optional[int] = None,
        sampler: Optional[DistributionSampler] = None,
    ) -> SimulationResults:
        """
        Run the simulation.

        Parameters
        ----------
        n_trials : int
            Number of trials (rows).
        random_seed : int, optional
            Seed for reproducibility. Ignored if ``sampler`` is given.
        sampler : DistributionSampler, optional
            Source of randomness; a fresh one is created if None.

        Returns
        -------
        SimulationResults
            Raw matrix of shape (n_trials, n_parameters) and outcome vector
            of shape (n_trials,).

        Raises
        ------
        PrecomputedValueCountError
            If any precomputed parameter does not have ``n_trials`` values.
        """
        if n_trials < 0:
            raise ValueError(f"n_trials must be >= 0. Got {n_trials}")

        if sampler is None:
            sampler = DistributionSampler(random_seed)

        validate_trial_counts(self.parameters, n_trials, self.settings)
        logger.debug("Simulating '%s' for %d trials", self.expression, n_trials)

        matrix = resolve_matrix(self.parameters, n_trials, sampler, self.settings)
        return SimulationResults(
            self.parameters,
            matrix,
            self.expression,
            sampler=sampler,
            settings=self.settings,
        )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"Simulation(expression='{self.expression}', "
            f"parameters={[p.name for p in self.parameters]})"
        )

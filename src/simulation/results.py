"""
Simulation results and their mutation contract.

A SimulationResults object owns the parameter list, the raw trial matrix
(one column per parameter, one row per trial), the expression and the
outcome vector derived from them. It is mutated in place:

- recompute_expression(expr): new expression, outcome vector recomputed
  from the existing matrix; nothing is resampled
- add_parameter(p):          one new column simulated for the existing
                             trial count; outcome unchanged until the
                             expression uses it
- remove_parameter(p):       column dropped, unless the expression still
                             references it
- regenerate([n]):           whole matrix and outcome vector resampled

Every operation validates before mutating, so a failed call leaves the
object untouched. recompute_expression and regenerate return ``self``
(not a copy); use ``copy()`` or ``with_expression()`` to keep the previous
state.

Summary statistics are computed from the current outcome vector on every
access, so they never go stale.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray
from scipy import stats

from src.simulation import statistics
from src.simulation.exceptions import (
    DuplicateParameterError,
    InvalidParameterError,
    InvalidSummaryStatisticError,
    ParameterInExpressionError,
)
from src.simulation.expression import Expression, as_expression
from src.simulation.parameters import Parameter
from src.simulation.resolution import (
    evaluate_outcomes,
    resolve_column,
    resolve_matrix,
    validate_parameter_list,
    validate_trial_counts,
)
from src.simulation.sampler import DistributionSampler
from src.simulation.settings import DEFAULT_SETTINGS, SimulationSettings
from src.simulation.statistics import SummaryStatistic

logger = logging.getLogger(__name__)


class ConfidenceInterval:
    """Normal-theory confidence interval for the mean outcome."""

    def __init__(self, level: float, lower_bound: float, upper_bound: float) -> None:
        self.level = level
        self.lower_bound = lower_bound
        self.upper_bound = upper_bound

    def __contains__(self, value: float) -> bool:
        return self.lower_bound <= value <= self.upper_bound

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"ConfidenceInterval(level={self.level}, lower_bound={self.lower_bound:.6g}, "
            f"upper_bound={self.upper_bound:.6g})"
        )


class SimulationResults:
    """
    Outcome of a simulation run.

    Attributes
    ----------
    sampler : DistributionSampler
        Randomness used by add_parameter and regenerate.
    settings : SimulationSettings
        Settings used for resampling.
    """

    def __init__(
        self,
        parameters: Sequence[Parameter],
        raw_data: NDArray[np.float64],
        expression: Union[str, Expression],
        sampler: Optional[DistributionSampler] = None,
        settings: Optional[SimulationSettings] = None,
    ) -> None:
        """
        Initialize results and compute the outcome vector.

        Parameters
        ----------
        parameters : Sequence[Parameter]
            Parameters in column order.
        raw_data : NDArray[np.float64]
            Raw trial matrix, shape (n_trials, n_parameters)
        expression : str or Expression
            Expression evaluated on every row.
        sampler : DistributionSampler, optional
            Randomness for later resampling. A fresh sampler if None.
        settings : SimulationSettings, optional
            Defaults to DEFAULT_SETTINGS.
        """
        parameters = validate_parameter_list(parameters)
        raw_data = np.array(raw_data, dtype=np.float64)

        if raw_data.ndim != 2 or raw_data.shape[1] != len(parameters):
            raise ValueError(
                f"raw_data must have shape (n_trials, {len(parameters)}). Got {raw_data.shape}"
            )

        self.sampler = sampler or DistributionSampler()
        self.settings = settings or DEFAULT_SETTINGS
        self._parameters: List[Parameter] = parameters
        self._raw_data = raw_data
        self._expression = as_expression(expression)
        self._results = evaluate_outcomes(self._expression, self._parameters, self._raw_data)

    # ------------------------------------------------------------------
    # Data access
    # ------------------------------------------------------------------

    @property
    def parameters(self) -> List[Parameter]:
        """Parameters in column order (a copy of the list)."""
        return list(self._parameters)

    @property
    def parameter_names(self) -> List[str]:
        return [p.name for p in self._parameters]

    @property
    def raw_data(self) -> NDArray[np.float64]:
        """Copy of the raw matrix, shape (n_trials, n_parameters)."""
        return self._raw_data.copy()

    @property
    def results(self) -> NDArray[np.float64]:
        """Copy of the outcome vector, shape (n_trials,)."""
        return self._results.copy()

    @property
    def n_trials(self) -> int:
        return self._raw_data.shape[0]

    @property
    def expression(self) -> Expression:
        return self._expression

    @expression.setter
    def expression(self, expression: Union[str, Expression]) -> None:
        self.recompute_expression(expression)

    def column(self, name: str) -> NDArray[np.float64]:
        """Copy of the raw column for parameter ``name``."""
        return self._raw_data[:, self._index_of(name)].copy()

    def _index_of(self, name: str) -> int:
        for i, parameter in enumerate(self._parameters):
            if parameter.name == name:
                return i
        raise InvalidParameterError(f"{name} was not used as a parameter in this simulation")

    # ------------------------------------------------------------------
    # Summary statistics
    # ------------------------------------------------------------------

    @property
    def minimum(self) -> float:
        return statistics.minimum(self._results)

    @property
    def lower_quartile(self) -> float:
        return statistics.lower_quartile(self._results)

    @property
    def mean(self) -> float:
        return statistics.mean(self._results)

    @property
    def median(self) -> float:
        return statistics.median(self._results)

    @property
    def upper_quartile(self) -> float:
        return statistics.upper_quartile(self._results)

    @property
    def maximum(self) -> float:
        return statistics.maximum(self._results)

    @property
    def variance(self) -> float:
        return statistics.variance(self._results)

    @property
    def standard_deviation(self) -> float:
        return statistics.standard_deviation(self._results)

    @property
    def skewness(self) -> float:
        return statistics.skewness(self._results)

    @property
    def kurtosis(self) -> float:
        return statistics.kurtosis(self._results)

    def get_summary_statistic(self, statistic: Union[SummaryStatistic, str]) -> float:
        """
        Look up one summary statistic by enum member or name.

        Raises
        ------
        InvalidSummaryStatisticError
            If ``statistic`` is not a known summary statistic.
        """
        try:
            statistic = SummaryStatistic(statistic)
        except ValueError as exc:
            raise InvalidSummaryStatisticError(
                f"Cannot return {statistic}. Valid statistics: "
                f"{[s.value for s in SummaryStatistic]}"
            ) from exc
        return statistics.compute_statistic(self._results, statistic)

    def summary(self) -> Dict[str, float]:
        """All summary statistics of the current outcome vector."""
        return statistics.describe(self._results)

    def confidence_interval(self, level: float = 0.95) -> ConfidenceInterval:
        """
        Confidence interval of the mean, assuming normally distributed outcomes.

        Parameters
        ----------
        level : float
            Confidence level in (0, 1). Default 0.95.
        """
        if not (0.0 < level < 1.0):
            raise ValueError(f"level must be in (0, 1). Got {level}")

        z = stats.norm.ppf(0.5 + level / 2.0)
        half_width = z * self.standard_deviation / np.sqrt(self.n_trials)
        return ConfidenceInterval(level, self.mean - half_width, self.mean + half_width)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def recompute_expression(self, expression: Union[str, Expression]) -> "SimulationResults":
        """
        Replace the expression and recompute the outcome vector.

        The raw matrix is not resampled. Returns this same object.
        """
        expression, outcomes = self._prepare_expression(expression)
        self._commit_expression(expression, outcomes)
        return self

    def _prepare_expression(
        self,
        expression: Union[str, Expression],
    ) -> Tuple[Expression, NDArray[np.float64]]:
        expression = as_expression(expression)
        return expression, evaluate_outcomes(expression, self._parameters, self._raw_data)

    def _commit_expression(self, expression: Expression, outcomes: NDArray[np.float64]) -> None:
        self._expression = expression
        self._results = outcomes

    def with_expression(self, expression: Union[str, Expression]) -> "SimulationResults":
        """Recomputed copy under a new expression; this object is left unchanged."""
        return self.copy().recompute_expression(expression)

    def copy(self) -> "SimulationResults":
        """Independent copy sharing parameter definitions and sampler."""
        duplicate = object.__new__(SimulationResults)
        duplicate.sampler = self.sampler
        duplicate.settings = self.settings
        duplicate._parameters = list(self._parameters)
        duplicate._raw_data = self._raw_data.copy()
        duplicate._expression = self._expression
        duplicate._results = self._results.copy()
        return duplicate

    def add_parameter(self, parameter: Parameter) -> None:
        """
        Simulate one new parameter for the existing trial count and append it.

        Raises
        ------
        DuplicateParameterError
            If a parameter with the same name already exists.
        PrecomputedValueCountError
            If a precomputed parameter does not match the trial count.
        """
        column = self._prepare_column(parameter, self.sampler)
        self._commit_column(parameter, column)

    def _prepare_column(
        self,
        parameter: Parameter,
        sampler: DistributionSampler,
    ) -> NDArray[np.float64]:
        validate_parameter_list([parameter])
        if parameter.name in self.parameter_names:
            raise DuplicateParameterError(
                f"{parameter.name} is already a parameter in this simulation"
            )
        validate_trial_counts([parameter], self.n_trials, self.settings)
        return resolve_column(parameter, self.n_trials, sampler, self.settings)

    def _commit_column(self, parameter: Parameter, column: NDArray[np.float64]) -> None:
        self._raw_data = np.column_stack([self._raw_data, column])
        self._parameters.append(parameter)
        logger.debug("Added parameter %s (%d columns)", parameter.name, len(self._parameters))

    def remove_parameter(self, parameter: Union[Parameter, str]) -> None:
        """
        Drop a parameter and its column, keeping the order of the rest.

        Parameters
        ----------
        parameter : Parameter or str
            Parameter (or its name) to remove.

        Raises
        ------
        InvalidParameterError
            If the parameter is not part of these results.
        ParameterInExpressionError
            If the current expression still references it.
        """
        index = self._check_removable(parameter)
        self._commit_removal(index)

    def _check_removable(self, parameter: Union[Parameter, str]) -> int:
        name = parameter if isinstance(parameter, str) else parameter.name
        index = self._index_of(name)
        if self._expression.references(name):
            raise ParameterInExpressionError(
                f"Cannot remove {name} because it is currently being used in the expression "
                f"'{self._expression}'. Provide a new expression that does not use the "
                f"parameter before trying to remove it"
            )
        return index

    def _commit_removal(self, index: int) -> None:
        removed = self._parameters.pop(index)
        self._raw_data = np.delete(self._raw_data, index, axis=1)
        logger.debug("Removed parameter %s", removed.name)

    def regenerate(self, n_trials: Optional[int] = None) -> "SimulationResults":
        """
        Resample the whole simulation and replace matrix and outcome vector.

        Parameters
        ----------
        n_trials : int, optional
            New trial count; defaults to the current one.

        Returns
        -------
        SimulationResults
            This same object.
        """
        matrix, outcomes = self._prepare_regeneration(n_trials, self.sampler)
        self._commit_regeneration(matrix, outcomes)
        return self

    def _prepare_regeneration(
        self,
        n_trials: Optional[int],
        sampler: DistributionSampler,
    ) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
        if n_trials is None:
            n_trials = self.n_trials
        if n_trials < 0:
            raise ValueError(f"n_trials must be >= 0. Got {n_trials}")

        validate_trial_counts(self._parameters, n_trials, self.settings)
        matrix = resolve_matrix(self._parameters, n_trials, sampler, self.settings)
        outcomes = evaluate_outcomes(self._expression, self._parameters, matrix)
        return matrix, outcomes

    def _commit_regeneration(
        self,
        matrix: NDArray[np.float64],
        outcomes: NDArray[np.float64],
    ) -> None:
        self._raw_data = matrix
        self._results = outcomes

    def __len__(self) -> int:
        return self.n_trials

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"SimulationResults(expression='{self._expression}', "
            f"parameters={self.parameter_names}, n_trials={self.n_trials})"
        )

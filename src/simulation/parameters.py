"""
Simulation parameters: how one named column of trial values is produced.

The parameter kinds form a closed set (``resolution.PARAMETER_TYPES``); the
simulator resolves each kind in one exhaustive branch:

- ConstantParameter:         one value repeated for every trial
- DiscreteParameter:         finite outcomes with probabilities, sampled by
                             inverse CDF over precomputed cumulative
                             probabilities
- DistributionParameter:     one draw per trial from a scipy.stats
                             distribution
- PrecomputedParameter:      a fixed sequence, one value per trial
- ConditionalParameter:      rules over another parameter's values
- NestedSimulationParameter: the outcome vector of an embedded simulation
- RandomBagParameter:        draws from a multiset of values under a
                             replacement rule

QualitativeInterpretationParameter, which maps drawn labels to numbers,
lives in ``qualitative_parameters`` with the label-valued kinds.

Names must be usable as expression variables: non-empty identifiers that
do not start with a digit and are not reserved function names.
"""

from enum import Enum
import keyword
from typing import TYPE_CHECKING, Any, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from src.simulation.bags import RandomBag, RandomBagReplacement
from src.simulation.constraints import ParameterConstraint
from src.simulation.exceptions import (
    InvalidParameterNameError,
    InvalidProbabilityError,
)
from src.simulation.expression import RESERVED_NAMES
from src.simulation.settings import DEFAULT_SETTINGS, SimulationSettings
from src.simulation.statistics import SummaryStatistic

if TYPE_CHECKING:
    from src.simulation.simulator import Simulation


def validate_parameter_name(name: str) -> str:
    """
    Check that ``name`` can be used as an expression variable.

    Raises
    ------
    InvalidParameterNameError
        If the name is empty, starts with a digit, is not an identifier,
        or clashes with a reserved function/constant name.
    """
    if not isinstance(name, str) or not name:
        raise InvalidParameterNameError("Parameter name must be a non-empty string")
    if name[0].isdigit():
        raise InvalidParameterNameError(f"Parameter name '{name}' must not start with a digit")
    if not name.isidentifier() or keyword.iskeyword(name):
        raise InvalidParameterNameError(
            f"Parameter name '{name}' must be a valid identifier (letters, digits, underscores)"
        )
    if name in RESERVED_NAMES:
        raise InvalidParameterNameError(
            f"Parameter name '{name}' is reserved for an expression function or constant"
        )
    return name


class Parameter:
    """Base class of all parameter kinds."""

    def __init__(self, name: str) -> None:
        self.name = validate_parameter_name(name)

    def __repr__(self) -> str:
        """String representation."""
        return f"{type(self).__name__}(name='{self.name}')"


class ConstantParameter(Parameter):
    """A parameter with the same value in every trial."""

    def __init__(self, name: str, value: float) -> None:
        super().__init__(name)
        self.value = float(value)

    def __repr__(self) -> str:
        """String representation."""
        return f"ConstantParameter(name='{self.name}', value={self.value})"


class DiscreteOutcome:
    """
    One possible outcome of a discrete parameter.

    Raises
    ------
    InvalidProbabilityError
        If ``probability`` is outside [0, 1].
    """

    def __init__(self, value: float, probability: float) -> None:
        if not (0.0 <= probability <= 1.0):
            raise InvalidProbabilityError(
                f"Probability of {probability} is not between 0 and 1"
            )
        self.value = float(value)
        self.probability = float(probability)

    def __repr__(self) -> str:
        """String representation."""
        return f"DiscreteOutcome(value={self.value}, probability={self.probability})"


def cumulative_probabilities(
    probabilities: Sequence[float],
    tolerance: float = DEFAULT_SETTINGS.probability_tolerance,
) -> NDArray[np.float64]:
    """
    Running sum of outcome probabilities in declaration order.

    The last entry is forced to exactly 1.0 so that every variate in [0, 1]
    selects some outcome despite floating-point rounding.

    Parameters
    ----------
    probabilities : Sequence[float]
        Outcome probabilities, each in [0, 1].
    tolerance : float
        Allowed deviation of the total from 1. Default 0.01.

    Raises
    ------
    InvalidProbabilityError
        If there are no outcomes, any probability is outside [0, 1], or the
        total lies outside [1 - tolerance, 1 + tolerance].
    """
    probabilities = np.asarray(probabilities, dtype=np.float64)

    if probabilities.size == 0:
        raise InvalidProbabilityError("At least one outcome is required")
    if np.any((probabilities < 0.0) | (probabilities > 1.0)):
        raise InvalidProbabilityError("All outcome probabilities must be in [0, 1]")

    total = float(probabilities.sum())
    if total < 1.0 - tolerance or total > 1.0 + tolerance:
        raise InvalidProbabilityError(f"Total probability of {total} does not equal 100%")

    cumulative = np.cumsum(probabilities)
    cumulative[-1] = 1.0
    return cumulative


class DiscreteParameter(Parameter):
    """
    A parameter with a finite set of weighted outcomes.

    Attributes
    ----------
    outcomes : List[DiscreteOutcome]
        Outcomes in declaration order.
    values : NDArray[np.float64]
        Outcome values, shape (k,)
    cumulative_probabilities : NDArray[np.float64]
        Precomputed running probability sums, shape (k,), last entry 1.0.
    """

    def __init__(
        self,
        name: str,
        outcomes: Sequence[Union[DiscreteOutcome, Tuple[float, float]]],
        settings: Optional[SimulationSettings] = None,
    ) -> None:
        """
        Initialize discrete parameter.

        Parameters
        ----------
        name : str
            Expression variable name.
        outcomes : Sequence[DiscreteOutcome or (value, probability)]
            Possible outcomes. Probabilities must sum to 1 within tolerance.
        settings : SimulationSettings, optional
            Supplies the probability tolerance.
        """
        super().__init__(name)
        settings = settings or DEFAULT_SETTINGS

        self.outcomes: List[DiscreteOutcome] = [
            o if isinstance(o, DiscreteOutcome) else DiscreteOutcome(*o) for o in outcomes
        ]
        self.values = np.array([o.value for o in self.outcomes], dtype=np.float64)
        self.cumulative_probabilities = cumulative_probabilities(
            [o.probability for o in self.outcomes],
            tolerance=settings.probability_tolerance,
        )

    def __repr__(self) -> str:
        """String representation."""
        return f"DiscreteParameter(name='{self.name}', outcomes={self.outcomes})"


class DistributionParameter(Parameter):
    """
    A parameter sampled from a frozen scipy.stats distribution.

    Attributes
    ----------
    distribution : scipy.stats frozen distribution
        Continuous or discrete distribution descriptor.
    constraint : ParameterConstraint or None
        Optional bounds applied to every sample.
    """

    def __init__(
        self,
        name: str,
        distribution,
        constraint: Optional[ParameterConstraint] = None,
    ) -> None:
        super().__init__(name)
        if not hasattr(distribution, "rvs"):
            raise TypeError(
                f"distribution must be a frozen scipy.stats distribution. Got {type(distribution).__name__}"
            )
        self.distribution = distribution
        self.constraint = constraint

    def __repr__(self) -> str:
        """String representation."""
        dist_name = getattr(getattr(self.distribution, "dist", None), "name", "distribution")
        return f"DistributionParameter(name='{self.name}', distribution={dist_name})"


class PrecomputedParameter(Parameter):
    """
    A parameter whose per-trial values are known in advance.

    A simulation using it must run exactly ``len(values)`` trials. In a
    sensitivity sweep, precomputed parameters are the swept parameters.
    """

    def __init__(self, name: str, values: Sequence[float]) -> None:
        super().__init__(name)
        values = np.array(values, dtype=np.float64)
        if values.ndim != 1:
            raise ValueError(f"values must be one-dimensional. Got shape {values.shape}")
        values.setflags(write=False)
        self.values = values

    def __len__(self) -> int:
        return len(self.values)

    def __repr__(self) -> str:
        """String representation."""
        return f"PrecomputedParameter(name='{self.name}', n_values={len(self.values)})"


class ComparisonOperator(Enum):
    """Comparison between a reference value (left) and a threshold (right)."""

    EQUAL = "="
    NOT_EQUAL = "!="
    LESS_THAN = "<"
    LESS_THAN_OR_EQUAL = "<="
    GREATER_THAN = ">"
    GREATER_THAN_OR_EQUAL = ">="

    @classmethod
    def _missing_(cls, value):
        aliases = {"==": "=", "≠": "!=", "<>": "!=", "≤": "<=", "≥": ">="}
        if value in aliases:
            return cls(aliases[value])
        return None


class ConditionalOutcome:
    """
    One rule of a conditional parameter.

    The rule holds when ``reference <operator> threshold`` is true. With a
    non-zero ``tolerance``, equality means ``|reference - threshold| <= tolerance``.
    """

    result_type: Any = float

    def __init__(
        self,
        operator: Union[ComparisonOperator, str],
        threshold: float,
        result: Any,
        tolerance: float = 0.0,
    ) -> None:
        if tolerance < 0:
            raise ValueError(f"tolerance must be >= 0. Got {tolerance}")
        self.operator = ComparisonOperator(operator)
        self.threshold = float(threshold)
        self.result = self.result_type(result)
        self.tolerance = float(tolerance)

    def matches(self, reference: NDArray[np.float64]) -> NDArray[np.bool_]:
        """Evaluate the rule against every reference value."""
        op = self.operator
        if op is ComparisonOperator.EQUAL:
            return np.abs(reference - self.threshold) <= self.tolerance
        if op is ComparisonOperator.NOT_EQUAL:
            return np.abs(reference - self.threshold) > self.tolerance
        if op is ComparisonOperator.LESS_THAN:
            return reference < self.threshold
        if op is ComparisonOperator.LESS_THAN_OR_EQUAL:
            return reference <= self.threshold
        if op is ComparisonOperator.GREATER_THAN:
            return reference > self.threshold
        return reference >= self.threshold

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"{type(self).__name__}('{self.operator.value}', threshold={self.threshold}, "
            f"result={self.result!r})"
        )


class ConditionalParameter(Parameter):
    """
    A parameter derived from another parameter's per-trial values.

    For each trial the rules are checked in order against the reference
    value; the first rule that holds supplies the value, otherwise
    ``default`` is used. The reference is resolved as its own one-parameter
    simulation unless it already is a nested simulation.

    Attributes
    ----------
    reference : Parameter
        Parameter whose values are compared.
    outcomes : List[ConditionalOutcome]
        Rules in evaluation order.
    default : float
        Value used when no rule holds.
    """

    def __init__(
        self,
        name: str,
        reference: Parameter,
        default: float,
        outcomes: Sequence[Union[ConditionalOutcome, Tuple]],
    ) -> None:
        super().__init__(name)
        if not isinstance(reference, Parameter):
            raise TypeError(f"reference must be a Parameter. Got {type(reference).__name__}")
        self.reference = reference
        self.default = float(default)
        self.outcomes: List[ConditionalOutcome] = [
            o if isinstance(o, ConditionalOutcome) else ConditionalOutcome(*o) for o in outcomes
        ]

    def apply(self, reference_values: NDArray[np.float64]) -> NDArray[np.float64]:
        """Map reference values to conditional values, first matching rule wins."""
        values = np.full(len(reference_values), self.default, dtype=np.float64)
        unassigned = np.ones(len(reference_values), dtype=bool)
        for outcome in self.outcomes:
            hit = unassigned & outcome.matches(reference_values)
            values[hit] = outcome.result
            unassigned &= ~hit
        return values

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"ConditionalParameter(name='{self.name}', reference='{self.reference.name}', "
            f"n_rules={len(self.outcomes)}, default={self.default})"
        )


class NestedSimulationParameter(Parameter):
    """
    A parameter backed by a complete embedded simulation.

    With ``return_type=None`` the embedded simulation is run for the same
    number of trials and its outcome vector becomes this column. With a
    SummaryStatistic, each outer trial runs the embedded simulation
    ``summary_run_count`` times and takes that statistic of the run.

    Attributes
    ----------
    simulation : Simulation
        Embedded simulation.
    return_type : SummaryStatistic or None
        None for the raw outcome vector.
    summary_run_count : int or None
        Inner trial count for summary statistics; None uses the settings.
    constraint : ParameterConstraint or None
        Bounds applied to the raw outcome vector (return_type None only).
    """

    def __init__(
        self,
        name: str,
        simulation: "Simulation",
        return_type: Optional[SummaryStatistic] = None,
        summary_run_count: Optional[int] = None,
        constraint: Optional[ParameterConstraint] = None,
    ) -> None:
        super().__init__(name)
        if return_type is not None:
            return_type = SummaryStatistic(return_type)
        if summary_run_count is not None and summary_run_count < 1:
            raise ValueError(f"summary_run_count must be >= 1. Got {summary_run_count}")
        self.simulation = simulation
        self.return_type = return_type
        self.summary_run_count = summary_run_count
        self.constraint = constraint

    def __repr__(self) -> str:
        """String representation."""
        returns = "results" if self.return_type is None else self.return_type.value
        return (
            f"NestedSimulationParameter(name='{self.name}', "
            f"expression='{self.simulation.expression}', returns={returns})"
        )


class RandomBagParameter(Parameter, RandomBag):
    """
    A parameter drawn from a bag of numeric values.

    Each value is held ``count`` times; the replacement rule decides whether
    drawn values go back into the bag (see ``bags``).

        bag = RandomBagParameter("Marble", {1: 3, 5: 1}, RandomBagReplacement.NEVER)
        bag.add(10)
        bag.number_of_items   # 5
    """

    def __init__(
        self,
        name: str,
        contents: Optional[Mapping[float, int]] = None,
        replacement: Union[RandomBagReplacement, str] = RandomBagReplacement.AFTER_EACH_PICK,
    ) -> None:
        Parameter.__init__(self, name)
        RandomBag.__init__(self, contents, replacement)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"RandomBagParameter(name='{self.name}', n_items={self.number_of_items}, "
            f"replacement={self.replacement.value})"
        )

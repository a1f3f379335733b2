"""
Label-valued (qualitative) parameters and the bridge back to numbers.

A qualitative parameter yields one string label per trial:

- QualitativeDiscreteParameter:    weighted labels, sampled by inverse CDF
- QualitativeConditionalParameter: rules over a numeric parameter's values
- QualitativeRandomBagParameter:   draws from a bag of labels

Labels cannot enter an expression directly. QualitativeInterpretationParameter
turns them into a numeric column through a label -> value dictionary, so a
qualitative outcome can drive a quantitative simulation:

    weather = QualitativeDiscreteParameter("Weather", [("Sun", 0.7), ("Rain", 0.3)])
    visitors = QualitativeInterpretationParameter(
        "Visitors", weather, {"Sun": 1200, "Rain": 300}
    )
    Simulation("Visitors * TicketPrice", [visitors, ConstantParameter("TicketPrice", 8)])
"""

from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from src.simulation.bags import RandomBag, RandomBagReplacement
from src.simulation.exceptions import InvalidParameterNameError, InvalidProbabilityError
from src.simulation.parameters import ConditionalOutcome, Parameter, cumulative_probabilities
from src.simulation.settings import DEFAULT_SETTINGS, SimulationSettings


class QualitativeOutcome:
    """
    One possible label and its probability.

    Raises
    ------
    InvalidProbabilityError
        If ``probability`` is outside [0, 1].
    """

    def __init__(self, value: str, probability: float) -> None:
        if not (0.0 <= probability <= 1.0):
            raise InvalidProbabilityError(
                f"Probability of {probability} is not between 0 and 1"
            )
        self.value = str(value)
        self.probability = float(probability)

    def __repr__(self) -> str:
        """String representation."""
        return f"QualitativeOutcome(value='{self.value}', probability={self.probability})"


class QualitativeParameter:
    """
    Base class of the label-valued parameter kinds.

    Names are free-form; they never appear in an expression.
    """

    def __init__(self, name: str) -> None:
        if not isinstance(name, str) or not name:
            raise InvalidParameterNameError("Parameter name must be a non-empty string")
        self.name = name

    @property
    def possible_outcomes(self) -> List[str]:
        """Every label this parameter can yield, in declaration order."""
        raise NotImplementedError

    def __repr__(self) -> str:
        """String representation."""
        return f"{type(self).__name__}(name='{self.name}')"


class QualitativeDiscreteParameter(QualitativeParameter):
    """
    Weighted labels.

    Attributes
    ----------
    outcomes : List[QualitativeOutcome]
        Outcomes in declaration order.
    labels : NDArray
        Outcome labels as an object array, shape (k,)
    cumulative_probabilities : NDArray[np.float64]
        Running probability sums; last entry forced to 1.0.
    """

    def __init__(
        self,
        name: str,
        outcomes: Sequence[Union[QualitativeOutcome, Tuple[str, float]]],
        settings: Optional[SimulationSettings] = None,
    ) -> None:
        """
        Initialize qualitative discrete parameter.

        Raises
        ------
        InvalidProbabilityError
            If the probabilities do not sum to 1 within tolerance.
        ValueError
            If two outcomes share a label.
        """
        super().__init__(name)
        settings = settings or DEFAULT_SETTINGS
        self.outcomes: List[QualitativeOutcome] = [
            o if isinstance(o, QualitativeOutcome) else QualitativeOutcome(*o) for o in outcomes
        ]

        labels = [o.value for o in self.outcomes]
        if len(set(labels)) != len(labels):
            raise ValueError(f"Outcome labels must be unique. Got {labels}")

        self.labels = np.array(labels, dtype=object)
        self.cumulative_probabilities = cumulative_probabilities(
            [o.probability for o in self.outcomes],
            tolerance=settings.probability_tolerance,
        )

    @property
    def possible_outcomes(self) -> List[str]:
        return [o.value for o in self.outcomes]

    def __repr__(self) -> str:
        """String representation."""
        return f"QualitativeDiscreteParameter(name='{self.name}', outcomes={self.possible_outcomes})"


class QualitativeConditionalOutcome(ConditionalOutcome):
    """One rule of a qualitative conditional parameter; ``result`` is a label."""

    result_type = str


class QualitativeConditionalParameter(QualitativeParameter):
    """
    Labels chosen by rules over a numeric parameter's per-trial values.

    The first rule that holds supplies the label, otherwise ``default``.
    """

    def __init__(
        self,
        name: str,
        reference: Parameter,
        default: str,
        outcomes: Sequence[Union[QualitativeConditionalOutcome, Tuple]],
    ) -> None:
        super().__init__(name)
        if not isinstance(reference, Parameter):
            raise TypeError(f"reference must be a Parameter. Got {type(reference).__name__}")
        self.reference = reference
        self.default = str(default)
        self.outcomes: List[QualitativeConditionalOutcome] = [
            o if isinstance(o, QualitativeConditionalOutcome) else QualitativeConditionalOutcome(*o)
            for o in outcomes
        ]

    @property
    def possible_outcomes(self) -> List[str]:
        return list(dict.fromkeys([o.result for o in self.outcomes] + [self.default]))

    def apply(self, reference_values: NDArray[np.float64]) -> NDArray:
        """Map reference values to labels, first matching rule wins."""
        labels = np.full(len(reference_values), self.default, dtype=object)
        unassigned = np.ones(len(reference_values), dtype=bool)
        for outcome in self.outcomes:
            hit = unassigned & outcome.matches(reference_values)
            labels[hit] = outcome.result
            unassigned &= ~hit
        return labels

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"QualitativeConditionalParameter(name='{self.name}', "
            f"reference='{self.reference.name}', n_rules={len(self.outcomes)}, "
            f"default='{self.default}')"
        )


class QualitativeRandomBagParameter(QualitativeParameter, RandomBag):
    """Labels drawn from a bag under a replacement rule."""

    item_dtype = object

    def __init__(
        self,
        name: str,
        contents: Optional[Mapping[str, int]] = None,
        replacement: Union[RandomBagReplacement, str] = RandomBagReplacement.AFTER_EACH_PICK,
    ) -> None:
        QualitativeParameter.__init__(self, name)
        RandomBag.__init__(self, contents, replacement)

    def _coerce_item(self, item) -> str:
        return str(item)

    @property
    def possible_outcomes(self) -> List[str]:
        return list(self._contents)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"QualitativeRandomBagParameter(name='{self.name}', "
            f"n_items={self.number_of_items}, replacement={self.replacement.value})"
        )


class QualitativeInterpretationParameter(Parameter):
    """
    A numeric parameter interpreting the labels of a qualitative parameter.

    Every trial draws a label and looks it up in ``interpretation``; labels
    without an entry take ``default``.

    Attributes
    ----------
    qualitative : QualitativeParameter
        Source of labels. A plain outcome list is wrapped in a
        QualitativeDiscreteParameter of the same name.
    interpretation : Dict[str, float]
        Label -> numeric value.
    default : float
        Value of labels missing from ``interpretation``.
    """

    def __init__(
        self,
        name: str,
        qualitative: Union[QualitativeParameter, Sequence],
        interpretation: Mapping[str, float],
        default: float = 0.0,
        settings: Optional[SimulationSettings] = None,
    ) -> None:
        super().__init__(name)
        if not isinstance(qualitative, QualitativeParameter):
            qualitative = QualitativeDiscreteParameter(name, qualitative, settings=settings)
        self.qualitative = qualitative
        self.interpretation: Dict[str, float] = {
            str(label): float(value) for label, value in interpretation.items()
        }
        self.default = float(default)

    def interpret(self, labels: NDArray) -> NDArray[np.float64]:
        """Numeric value of every label, shape (n_trials,)"""
        return np.array(
            [self.interpretation.get(label, self.default) for label in labels],
            dtype=np.float64,
        )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"QualitativeInterpretationParameter(name='{self.name}', "
            f"qualitative='{self.qualitative.name}', default={self.default})"
        )

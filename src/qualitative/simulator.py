"""
Qualitative (label-valued) Monte Carlo simulation.

A qualitative simulation draws one label per trial from a single
qualitative parameter: weighted outcomes, rules over a numeric parameter,
or a random bag of labels. A plain outcome list is shorthand for weighted
outcomes:

    sim = QualitativeSimulation([
        QualitativeOutcome("Heads", 0.5),
        QualitativeOutcome("Tails", 0.5),
    ])
    results = sim.simulate(1000, random_seed=42)
    results.outcome_counts        # {'Heads': 497, 'Tails': 503}
    results.most_common_outcome   # ('Tails', 503)
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from src.simulation.qualitative_parameters import (
    QualitativeDiscreteParameter,
    QualitativeOutcome,
    QualitativeParameter,
)
from src.simulation.resolution import resolve_labels, validate_trial_counts
from src.simulation.sampler import DistributionSampler
from src.simulation.settings import DEFAULT_SETTINGS, SimulationSettings

logger = logging.getLogger(__name__)


class QualitativeSimulation:
    """
    Simulation over the labels of one qualitative parameter.

    Attributes
    ----------
    parameter : QualitativeParameter
        Source of labels.
    settings : SimulationSettings
        Tolerances and nesting limit.
    """

    def __init__(
        self,
        parameter: Union[QualitativeParameter, Sequence[Union[QualitativeOutcome, Tuple[str, float]]]],
        settings: Optional[SimulationSettings] = None,
    ) -> None:
        """
        Initialize qualitative simulation.

        Parameters
        ----------
        parameter : QualitativeParameter or Sequence
            A qualitative parameter, or outcomes (QualitativeOutcome or
            ``(label, probability)``) for a QualitativeDiscreteParameter.

        Raises
        ------
        InvalidProbabilityError
            If outcome probabilities do not sum to 1 within tolerance.
        ValueError
            If two outcomes share a label.
        """
        self.settings = settings or DEFAULT_SETTINGS
        if not isinstance(parameter, QualitativeParameter):
            parameter = QualitativeDiscreteParameter("outcomes", parameter, settings=self.settings)
        self.parameter = parameter

    @property
    def possible_outcomes(self) -> List[str]:
        """Every label the simulation can yield, in declaration order."""
        return self.parameter.possible_outcomes

    def simulate(
        self,
        n_trials: int,
        random_seed: Optional[int] = None,
        sampler: Optional[DistributionSampler] = None,
    ) -> "QualitativeResults":
        """
        Draw ``n_trials`` labels.

        Parameters
        ----------
        n_trials : int
            Number of trials.
        random_seed : int, optional
            Seed for reproducibility. Ignored if ``sampler`` is given.
        sampler : DistributionSampler, optional
            Source of randomness.

        Raises
        ------
        EmptyBagError, RandomBagItemCountError
            If a random bag cannot supply ``n_trials`` labels.
        PrecomputedValueCountError
            If a conditional reference is precomputed with another length.
        """
        if n_trials < 0:
            raise ValueError(f"n_trials must be >= 0. Got {n_trials}")
        if sampler is None:
            sampler = DistributionSampler(random_seed)
        return QualitativeResults(self, self._draw(n_trials, sampler), sampler)

    def _draw(self, n_trials: int, sampler: DistributionSampler) -> NDArray:
        validate_trial_counts([self.parameter], n_trials, self.settings)
        logger.debug("Drawing %d labels from %s", n_trials, self.parameter)
        return resolve_labels(self.parameter, n_trials, sampler, self.settings)

    def __repr__(self) -> str:
        """String representation."""
        return f"QualitativeSimulation(parameter={self.parameter})"


class QualitativeResults:
    """Labels drawn by a qualitative simulation, with frequency summaries."""

    def __init__(
        self,
        simulation: QualitativeSimulation,
        results: NDArray,
        sampler: DistributionSampler,
    ) -> None:
        self.simulation = simulation
        self.sampler = sampler
        self._results = results

    @property
    def results(self) -> NDArray:
        """Copy of the drawn labels, shape (n_trials,)."""
        return self._results.copy()

    @property
    def n_trials(self) -> int:
        return len(self._results)

    @property
    def outcome_counts(self) -> Dict[str, int]:
        """Label -> number of trials, in declaration order (zero counts included)."""
        return {
            label: int(np.count_nonzero(self._results == label))
            for label in self.simulation.possible_outcomes
        }

    @property
    def outcome_frequencies(self) -> Dict[str, float]:
        """Label -> share of trials."""
        counts = self.outcome_counts
        if self.n_trials == 0:
            return {label: 0.0 for label in counts}
        return {label: count / self.n_trials for label, count in counts.items()}

    @property
    def most_common_outcome(self) -> Tuple[str, int]:
        counts = self.outcome_counts
        target = max(counts.values())
        return next((label, count) for label, count in counts.items() if count == target)

    @property
    def least_common_outcome(self) -> Tuple[str, int]:
        counts = self.outcome_counts
        target = min(counts.values())
        return next((label, count) for label, count in counts.items() if count == target)

    def regenerate(self, n_trials: Optional[int] = None) -> "QualitativeResults":
        """
        Redraw every label. Returns this same object.

        A draw that fails validation leaves the current labels in place.
        """
        if n_trials is None:
            n_trials = self.n_trials
        if n_trials < 0:
            raise ValueError(f"n_trials must be >= 0. Got {n_trials}")
        self._results = self.simulation._draw(n_trials, self.sampler)
        return self

    def __repr__(self) -> str:
        """String representation."""
        return f"QualitativeResults(n_trials={self.n_trials}, counts={self.outcome_counts})"

"""
Sensitivity sweeps over precomputed parameters.

A sweep takes a simulation whose precomputed parameters are the swept
parameters. For each combination of swept values, every swept parameter
is replaced by a constant fixed at its assigned value, the simulation is
run, and the results are stored under the combination label
(``"B=0.5; Rf=0.015"``).

Two strategies:
- PairedSensitivitySweep: values move in lockstep; combination i uses the
  i-th value of every swept parameter (all sequences must have equal
  length)
- ExhaustiveSensitivitySweep: the cartesian product of every swept
  parameter's values

    sim = Simulation("Rf + B * (Rm - Rf)", [
        PrecomputedParameter("B", [0.5, 1.0, 1.5]),
        DistributionParameter("Rm", stats.norm(0.08, 0.035)),
        PrecomputedParameter("Rf", [0.015, 0.02, 0.025]),
    ])
    ExhaustiveSensitivitySweep(sim).simulate(1000)    # 9 combinations
    PairedSensitivitySweep(sim).simulate(1000)        # 3 combinations
"""

import itertools
import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from src.simulation.exceptions import (
    DuplicateCombinationError,
    MissingPrecomputedParameterError,
    PrecomputedValueCountError,
)
from src.simulation.parameters import ConstantParameter, Parameter, PrecomputedParameter
from src.simulation.results import SimulationResults
from src.simulation.sampler import DistributionSampler
from src.simulation.simulator import Simulation
from src.sensitivity.executor import run_labelled_tasks
from src.sensitivity.sweep_results import SensitivitySweepResults

logger = logging.getLogger(__name__)

Assignment = List[Tuple[str, float]]


def format_value(value: float) -> str:
    """Shortest positional representation, without a trailing ``.0``."""
    return np.format_float_positional(float(value), trim="-")


def combination_label(assignment: Sequence[Tuple[str, float]]) -> str:
    """Canonical label of one combination: ``"name=value"`` pairs joined by ``"; "``."""
    return "; ".join(f"{name}={format_value(value)}" for name, value in assignment)


class SensitivitySweep:
    """
    Base class of sweep strategies.

    Attributes
    ----------
    simulation : Simulation
        Simulation being swept. Never modified.
    swept_parameters : List[PrecomputedParameter]
        Precomputed parameters in declaration order.
    """

    def __init__(self, simulation: Simulation) -> None:
        """
        Initialize sweep.

        Raises
        ------
        MissingPrecomputedParameterError
            If the simulation has no precomputed parameter.
        DuplicateCombinationError
            If two combinations would share a label.
        """
        swept = [p for p in simulation.parameters if isinstance(p, PrecomputedParameter)]
        if not swept:
            raise MissingPrecomputedParameterError(
                f"The simulation must contain at least one PrecomputedParameter in order to "
                f"create a {type(self).__name__}"
            )

        self.simulation = simulation
        self.swept_parameters: List[PrecomputedParameter] = swept
        self._validate()

        labels = [combination_label(a) for a in self.combinations()]
        if len(set(labels)) != len(labels):
            duplicates = sorted({label for label in labels if labels.count(label) > 1})
            raise DuplicateCombinationError(
                f"Swept values produce duplicate combinations: {duplicates}"
            )

    def _validate(self) -> None:
        """Strategy-specific checks, run before combinations are generated."""

    def combinations(self) -> List[Assignment]:
        """Every combination as an ordered list of ``(name, value)`` pairs."""
        raise NotImplementedError

    @property
    def n_combinations(self) -> int:
        return len(self.combinations())

    @property
    def labels(self) -> List[str]:
        return [combination_label(a) for a in self.combinations()]

    def _substituted_parameters(self, assignment: Assignment) -> List[Parameter]:
        values = dict(assignment)
        return [
            ConstantParameter(p.name, values[p.name]) if p.name in values else p
            for p in self.simulation.parameters
        ]

    def _run_combination(
        self,
        assignment: Assignment,
        n_trials: int,
        sampler: DistributionSampler,
    ) -> SimulationResults:
        logger.debug("Running combination %s", combination_label(assignment))
        simulation = self.simulation.with_parameters(self._substituted_parameters(assignment))
        return simulation.simulate(n_trials, sampler=sampler)

    def simulate(
        self,
        n_trials: int,
        random_seed: Optional[int] = None,
    ) -> SensitivitySweepResults:
        """
        Run every combination sequentially.

        Parameters
        ----------
        n_trials : int
            Trials per combination.
        random_seed : int, optional
            Seed for reproducibility. Each combination draws from its own
            child sampler, so results match ``simulate_parallel`` for the
            same seed.

        Returns
        -------
        SensitivitySweepResults
            Label -> results, in generation order.
        """
        combinations = self.combinations()
        samplers = DistributionSampler(random_seed).spawn(len(combinations))
        logger.info(
            "Running %s with %d combinations of %d trials",
            type(self).__name__, len(combinations), n_trials,
        )

        results: Dict[str, SimulationResults] = {}
        for assignment, sampler in zip(combinations, samplers):
            results[combination_label(assignment)] = self._run_combination(
                assignment, n_trials, sampler
            )

        logger.info("Finished %s", type(self).__name__)
        return SensitivitySweepResults(results)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"{type(self).__name__}(swept={[p.name for p in self.swept_parameters]}, "
            f"n_combinations={self.n_combinations})"
        )


class PairedSensitivitySweep(SensitivitySweep):
    """
    Sweep where all swept parameters advance together by index.

    Raises
    ------
    PrecomputedValueCountError
        If swept parameters have sequences of different lengths.
    """

    def _validate(self) -> None:
        first = self.swept_parameters[0]
        for parameter in self.swept_parameters[1:]:
            if len(parameter.values) != len(first.values):
                raise PrecomputedValueCountError(
                    f"{parameter.name} has {len(parameter.values)} precomputed values but "
                    f"{first.name} has {len(first.values)} precomputed values. If a simulation "
                    f"contains multiple sets of precomputed values, each set must have the "
                    f"same number of values"
                )

    @property
    def n_factors(self) -> int:
        return len(self.swept_parameters[0].values)

    def combinations(self) -> List[Assignment]:
        return [
            [(p.name, float(p.values[i])) for p in self.swept_parameters]
            for i in range(self.n_factors)
        ]


class ExhaustiveSensitivitySweep(SensitivitySweep):
    """Sweep over the cartesian product of every swept parameter's values."""

    def combinations(self) -> List[Assignment]:
        names = [p.name for p in self.swept_parameters]
        return [
            list(zip(names, (float(v) for v in values)))
            for values in itertools.product(*(p.values for p in self.swept_parameters))
        ]

    def simulate_parallel(
        self,
        n_trials: int,
        random_seed: Optional[int] = None,
        max_workers: Optional[int] = None,
    ) -> SensitivitySweepResults:
        """
        Run every combination on its own worker thread.

        Each worker builds a private constant-substituted parameter list and
        draws from its own child sampler. The call returns only after all
        workers finish; entries are ordered lexicographically by label.

        Parameters
        ----------
        n_trials : int
            Trials per combination.
        random_seed : int, optional
            Seed for reproducibility.
        max_workers : int, optional
            Worker threads; defaults to ``simulation.settings.max_workers``.

        Raises
        ------
        Exception
            If any worker fails, after all workers have finished.
        """
        combinations = self.combinations()
        samplers = DistributionSampler(random_seed).spawn(len(combinations))
        if max_workers is None:
            max_workers = self.simulation.settings.max_workers

        logger.info(
            "Running %s concurrently with %d combinations of %d trials",
            type(self).__name__, len(combinations), n_trials,
        )

        tasks = {
            combination_label(assignment): (
                lambda a=assignment, s=sampler: self._run_combination(a, n_trials, s)
            )
            for assignment, sampler in zip(combinations, samplers)
        }
        results = run_labelled_tasks(tasks, max_workers=max_workers)

        logger.info("Finished %s", type(self).__name__)
        return SensitivitySweepResults(results)

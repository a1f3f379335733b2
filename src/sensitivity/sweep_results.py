"""
Keyed collection of sweep results.

Maps each combination label to the SimulationResults of that combination
and offers:
- extrema across combinations (highest/lowest mean, median and standard
  deviation; best and worst single outcome), ties resolved by the first
  match in iteration order
- bulk mutation applying the SimulationResults operation to every entry

Bulk operations validate or compute every entry before committing any of
them, so a failure leaves the whole collection unchanged.
"""

import logging
from typing import Callable, Dict, Iterator, List, Optional, Tuple, Union

import numpy as np

from src.simulation.expression import Expression
from src.simulation.parameters import Parameter
from src.simulation.results import SimulationResults
from src.sensitivity.executor import run_labelled_tasks

logger = logging.getLogger(__name__)

Entry = Tuple[str, SimulationResults]


class SensitivitySweepResults:
    """
    Results of a sensitivity sweep, keyed by combination label.

    Behaves as a read-only mapping: ``len``, ``[]``, ``in``, iteration over
    labels, ``keys``, ``values`` and ``items``.
    """

    def __init__(self, results: Dict[str, SimulationResults]) -> None:
        self._results: Dict[str, SimulationResults] = dict(results)

    # ------------------------------------------------------------------
    # Mapping interface
    # ------------------------------------------------------------------

    @property
    def results(self) -> Dict[str, SimulationResults]:
        """Label -> results (a copy of the mapping, sharing the entries)."""
        return dict(self._results)

    def __len__(self) -> int:
        return len(self._results)

    def __getitem__(self, label: str) -> SimulationResults:
        return self._results[label]

    def __contains__(self, label: object) -> bool:
        return label in self._results

    def __iter__(self) -> Iterator[str]:
        return iter(self._results)

    def keys(self) -> List[str]:
        return list(self._results.keys())

    def values(self) -> List[SimulationResults]:
        return list(self._results.values())

    def items(self) -> List[Entry]:
        return list(self._results.items())

    # ------------------------------------------------------------------
    # Extrema
    # ------------------------------------------------------------------

    def _extreme(self, key: Callable[[SimulationResults], float], highest: bool) -> Entry:
        if not self._results:
            raise ValueError("No sweep results to compare")
        # NaN statistics (e.g. log of a negative swept value) never win
        values = [(label, result, key(result)) for label, result in self._results.items()]
        values = [v for v in values if not np.isnan(v[2])]
        if not values:
            raise ValueError("No comparable sweep results (all statistics are NaN)")
        target = max(v for _, _, v in values) if highest else min(v for _, _, v in values)
        return next((label, result) for label, result, value in values if value == target)

    @property
    def highest_mean(self) -> Entry:
        return self._extreme(lambda r: r.mean, highest=True)

    @property
    def lowest_mean(self) -> Entry:
        return self._extreme(lambda r: r.mean, highest=False)

    @property
    def highest_median(self) -> Entry:
        return self._extreme(lambda r: r.median, highest=True)

    @property
    def lowest_median(self) -> Entry:
        return self._extreme(lambda r: r.median, highest=False)

    @property
    def highest_standard_deviation(self) -> Entry:
        return self._extreme(lambda r: r.standard_deviation, highest=True)

    @property
    def lowest_standard_deviation(self) -> Entry:
        return self._extreme(lambda r: r.standard_deviation, highest=False)

    @property
    def best_possible_outcome(self) -> Entry:
        """Combination containing the largest single outcome."""
        return self._extreme(lambda r: r.maximum, highest=True)

    @property
    def worst_possible_outcome(self) -> Entry:
        """Combination containing the smallest single outcome."""
        return self._extreme(lambda r: r.minimum, highest=False)

    def summary(self) -> Dict[str, Dict[str, float]]:
        """Label -> descriptive statistics of that combination."""
        return {label: result.summary() for label, result in self._results.items()}

    # ------------------------------------------------------------------
    # Bulk mutation
    # ------------------------------------------------------------------

    def recompute_expression(self, expression: Union[str, Expression]) -> "SensitivitySweepResults":
        """Recompute every entry under a new expression. Returns this object."""
        staged = {
            label: result._prepare_expression(expression)
            for label, result in self._results.items()
        }
        for label, (parsed, outcomes) in staged.items():
            self._results[label]._commit_expression(parsed, outcomes)
        return self

    def add_parameter(self, parameter: Parameter) -> None:
        """Simulate and append ``parameter`` in every entry."""
        staged = {
            label: result._prepare_column(parameter, result.sampler)
            for label, result in self._results.items()
        }
        for label, column in staged.items():
            self._results[label]._commit_column(parameter, column)

    def remove_parameter(self, parameter: Union[Parameter, str]) -> None:
        """
        Remove ``parameter`` from every entry.

        Raises
        ------
        InvalidParameterError
            If any entry lacks the parameter.
        ParameterInExpressionError
            If any entry's expression still references it.
        """
        staged = {
            label: result._check_removable(parameter)
            for label, result in self._results.items()
        }
        for label, index in staged.items():
            self._results[label]._commit_removal(index)

    def regenerate(self, n_trials: Optional[int] = None) -> "SensitivitySweepResults":
        """Resample every entry sequentially. Returns this object."""
        staged = {
            label: result._prepare_regeneration(n_trials, result.sampler)
            for label, result in self._results.items()
        }
        self._commit_regeneration(staged)
        return self

    def regenerate_parallel(
        self,
        n_trials: Optional[int] = None,
        max_workers: Optional[int] = None,
    ) -> "SensitivitySweepResults":
        """
        Resample every entry, one worker per label.

        Blocks until every worker has finished. Nothing is committed if any
        worker fails.
        """
        logger.info("Regenerating %d sweep entries concurrently", len(self._results))
        tasks = {
            label: (lambda r=result: r._prepare_regeneration(n_trials, r.sampler))
            for label, result in self._results.items()
        }
        staged = run_labelled_tasks(tasks, max_workers=max_workers)
        self._commit_regeneration(staged)
        return self

    def _commit_regeneration(self, staged) -> None:
        for label, (matrix, outcomes) in staged.items():
            self._results[label]._commit_regeneration(matrix, outcomes)

    def __repr__(self) -> str:
        """String representation."""
        return f"SensitivitySweepResults(n_combinations={len(self._results)})"

"""
Engine-wide settings.

A single settings object carries the engine tunables: the probability-sum
tolerance for discrete outcome sets, the maximum depth of nested
simulations, the worker count used by concurrent sweeps and the inner run
count for summary-statistic parameters.
"""

from typing import Optional


class SimulationSettings:
    """Tunable settings shared by simulations, sweeps and results."""

    def __init__(
        self,
        probability_tolerance: float = 0.01,
        max_nesting_depth: int = 32,
        max_workers: Optional[int] = None,
        summary_run_count: int = 10000,
    ) -> None:
        """
        Initialize settings.

        Parameters
        ----------
        probability_tolerance : float
            Allowed deviation of an outcome set's total probability from 1.
            Default 0.01, i.e. totals in [0.99, 1.01] are accepted.
        max_nesting_depth : int
            Maximum depth of nested/conditional simulation resolution.
            Default 32.
        max_workers : int, optional
            Worker threads for concurrent sweeps. None lets the executor
            pick its default.
        summary_run_count : int
            Inner simulation size used per trial by summary-statistic
            nested parameters. Default 10000.
        """
        if not (0.0 <= probability_tolerance < 1.0):
            raise ValueError(
                f"probability_tolerance must be in [0, 1). Got {probability_tolerance}"
            )
        if max_nesting_depth < 1:
            raise ValueError(f"max_nesting_depth must be >= 1. Got {max_nesting_depth}")
        if max_workers is not None and max_workers < 1:
            raise ValueError(f"max_workers must be >= 1. Got {max_workers}")
        if summary_run_count < 1:
            raise ValueError(f"summary_run_count must be >= 1. Got {summary_run_count}")

        self.probability_tolerance = probability_tolerance
        self.max_nesting_depth = max_nesting_depth
        self.max_workers = max_workers
        self.summary_run_count = summary_run_count

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"SimulationSettings(probability_tolerance={self.probability_tolerance}, "
            f"max_nesting_depth={self.max_nesting_depth}, "
            f"max_workers={self.max_workers}, "
            f"summary_run_count={self.summary_run_count})"
        )


DEFAULT_SETTINGS = SimulationSettings()

"""
Bounds on simulated parameter values.

A constraint is attached to a distribution or nested-simulation parameter
and is applied to its column right after sampling. Out-of-bounds values are
resolved according to the constraint's resolution rule:

- CLOSEST_BOUND: clamp to the violated bound
- DEFAULT_VALUE: replace with the default value
- RESIMULATE:    redraw single values up to ``max_resimulations`` times,
                 then fall back to the default value
"""

from enum import Enum
from typing import Callable, Optional

import numpy as np
from numpy.typing import NDArray

from src.simulation.exceptions import InvalidConstraintError


class ConstraintResolution(Enum):
    """How a constraint violation is resolved."""

    CLOSEST_BOUND = "closest_bound"
    DEFAULT_VALUE = "default_value"
    RESIMULATE = "resimulate"


class ParameterConstraint:
    """
    Lower/upper bounds on a parameter column.

    Attributes
    ----------
    lower_bound : float or None
        Smallest accepted value, or None for no lower bound.
    upper_bound : float or None
        Largest accepted value, or None for no upper bound.
    resolution : ConstraintResolution
        What to do with a violating value.
    max_resimulations : int
        Redraw attempts per violating value under RESIMULATE.
    default_value : float or None
        Replacement value for DEFAULT_VALUE, and fallback for RESIMULATE.
    """

    def __init__(
        self,
        lower_bound: Optional[float] = None,
        upper_bound: Optional[float] = None,
        resolution: ConstraintResolution = ConstraintResolution.CLOSEST_BOUND,
        max_resimulations: int = 10,
        default_value: Optional[float] = None,
    ) -> None:
        """
        Initialize constraint.

        Raises
        ------
        InvalidConstraintError
            If neither bound is given, the bounds are inverted, or a default
            value is missing for DEFAULT_VALUE/RESIMULATE resolution.
        """
        resolution = ConstraintResolution(resolution)

        if lower_bound is None and upper_bound is None:
            raise InvalidConstraintError("A constraint must have at least one bound")
        if lower_bound is not None and upper_bound is not None and lower_bound > upper_bound:
            raise InvalidConstraintError(
                f"lower_bound ({lower_bound}) must not exceed upper_bound ({upper_bound})"
            )
        if resolution is not ConstraintResolution.CLOSEST_BOUND and default_value is None:
            raise InvalidConstraintError(
                f"A constraint resolved by {resolution.value} must have a default value"
            )
        if max_resimulations < 0:
            raise InvalidConstraintError(
                f"max_resimulations must be >= 0. Got {max_resimulations}"
            )

        self.lower_bound = lower_bound
        self.upper_bound = upper_bound
        self.resolution = resolution
        self.max_resimulations = max_resimulations
        self.default_value = default_value

    def satisfied_by(self, value: float) -> bool:
        """Whether a single value lies within the bounds."""
        if self.lower_bound is not None and value < self.lower_bound:
            return False
        if self.upper_bound is not None and value > self.upper_bound:
            return False
        return True

    def apply(
        self,
        values: NDArray[np.float64],
        redraw: Callable[[], float],
    ) -> NDArray[np.float64]:
        """
        Resolve every out-of-bounds value in a column.

        Parameters
        ----------
        values : NDArray[np.float64]
            Sampled column, shape (n,). Not modified.
        redraw : Callable[[], float]
            Produces one fresh sample; only used under RESIMULATE.

        Returns
        -------
        NDArray[np.float64]
            Constrained copy of the column.
        """
        values = np.array(values, dtype=np.float64)

        if self.resolution is ConstraintResolution.CLOSEST_BOUND:
            lower = -np.inf if self.lower_bound is None else self.lower_bound
            upper = np.inf if self.upper_bound is None else self.upper_bound
            return np.clip(values, lower, upper)

        violating = np.ones(len(values), dtype=bool)
        if self.lower_bound is not None:
            violating &= values >= self.lower_bound
        if self.upper_bound is not None:
            violating &= values <= self.upper_bound
        violating = ~violating

        if self.resolution is ConstraintResolution.DEFAULT_VALUE:
            values[violating] = self.default_value
            return values

        for index in np.flatnonzero(violating):
            replacement = self.default_value
            for _ in range(self.max_resimulations):
                candidate = redraw()
                if self.satisfied_by(candidate):
                    replacement = candidate
                    break
            values[index] = replacement

        return values

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"ParameterConstraint(lower_bound={self.lower_bound}, "
            f"upper_bound={self.upper_bound}, resolution={self.resolution.value}, "
            f"max_resimulations={self.max_resimulations}, "
            f"default_value={self.default_value})"
        )

"""
Random sampling for simulation parameters.

Distribution descriptors are frozen ``scipy.stats`` distributions, e.g.
``stats.norm(0.08, 0.035)`` or ``stats.poisson(3)``. Discrete distributions
yield integral samples, which are widened to float64 when they become a
simulation column.

Each sampler owns a ``numpy.random.Generator`` seeded from a
``SeedSequence``; independent child samplers for concurrent workers are
obtained with ``spawn``.
"""

from typing import List, Optional

import numpy as np
from numpy.typing import NDArray
from scipy import stats


class DistributionSampler:
    """
    Source of randomness for a simulation run.

    Attributes
    ----------
    seed_sequence : np.random.SeedSequence
        Entropy source of this sampler; children are spawned from it.
    rng : np.random.Generator
        Generator used for every draw.
    """

    def __init__(
        self,
        random_seed: Optional[int] = None,
        seed_sequence: Optional[np.random.SeedSequence] = None,
    ) -> None:
        """
        Initialize sampler.

        Parameters
        ----------
        random_seed : int, optional
            Seed for reproducibility. Ignored when ``seed_sequence`` is given.
        seed_sequence : np.random.SeedSequence, optional
            Explicit seed sequence, used by ``spawn``.
        """
        if seed_sequence is None:
            seed_sequence = np.random.SeedSequence(random_seed)
        self.seed_sequence = seed_sequence
        self.rng = np.random.default_rng(seed_sequence)

    def uniform(self, n: int) -> NDArray[np.float64]:
        """Draw ``n`` U(0, 1) variates."""
        return self.rng.uniform(0.0, 1.0, size=n)

    def sample(self, distribution, n: int) -> NDArray:
        """
        Draw ``n`` samples from a frozen scipy.stats distribution.

        Returns
        -------
        NDArray
            Integral samples for discrete distributions, float64 otherwise.
        """
        samples = np.asarray(distribution.rvs(size=n, random_state=self.rng))
        if self.is_discrete(distribution):
            return samples.astype(np.int64)
        return samples.astype(np.float64)

    def sample_one(self, distribution) -> float:
        """Draw a single sample, widened to float."""
        return float(self.sample(distribution, 1)[0])

    @staticmethod
    def is_discrete(distribution) -> bool:
        """Whether ``distribution`` is a discrete scipy.stats distribution."""
        return isinstance(getattr(distribution, "dist", None), stats.rv_discrete)

    def spawn(self, n_children: int) -> List["DistributionSampler"]:
        """Create ``n_children`` statistically independent samplers."""
        return [
            DistributionSampler(seed_sequence=child)
            for child in self.seed_sequence.spawn(n_children)
        ]

    def __repr__(self) -> str:
        """String representation."""
        return f"DistributionSampler(entropy={self.seed_sequence.entropy})"


def select_outcomes(
    uniforms: NDArray[np.float64],
    cumulative_probabilities: NDArray[np.float64],
) -> NDArray[np.int64]:
    """
    Inverse-CDF selection over a discrete outcome set.

    For each variate, picks the first outcome (in declaration order) whose
    cumulative probability is >= the variate.

    Parameters
    ----------
    uniforms : NDArray[np.float64]
        Variates in [0, 1].
    cumulative_probabilities : NDArray[np.float64]
        Non-decreasing cumulative probabilities, last equal to 1.0.

    Returns
    -------
    NDArray[np.int64]
        Index of the selected outcome for every variate.
    """
    indices = np.searchsorted(cumulative_probabilities, uniforms, side="left")
    return np.minimum(indices, len(cumulative_probabilities) - 1).astype(np.int64)

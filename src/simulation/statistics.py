"""
Descriptive statistics over an outcome vector.

Conventions:
- variance and standard deviation are sample estimates (N - 1)
- skewness and kurtosis are bias-corrected; kurtosis is excess kurtosis
- quartiles use the approximately median-unbiased estimator
  (numpy ``method="median_unbiased"``)
- statistics that are undefined for the sample size (any statistic of an
  empty vector, variance below 2 values, skewness below 3, kurtosis
  below 4) are NaN
"""

from enum import Enum
from typing import Dict

import numpy as np
from numpy.typing import NDArray
from scipy import stats


class SummaryStatistic(Enum):
    """Single-number summaries of an outcome vector."""

    MINIMUM = "minimum"
    LOWER_QUARTILE = "lower_quartile"
    MEAN = "mean"
    MEDIAN = "median"
    UPPER_QUARTILE = "upper_quartile"
    MAXIMUM = "maximum"
    VARIANCE = "variance"
    STANDARD_DEVIATION = "standard_deviation"
    SKEWNESS = "skewness"
    KURTOSIS = "kurtosis"


def minimum(values: NDArray[np.float64]) -> float:
    if len(values) == 0:
        return float("nan")
    return float(np.min(values))


def maximum(values: NDArray[np.float64]) -> float:
    if len(values) == 0:
        return float("nan")
    return float(np.max(values))


def mean(values: NDArray[np.float64]) -> float:
    if len(values) == 0:
        return float("nan")
    return float(np.mean(values))


def median(values: NDArray[np.float64]) -> float:
    if len(values) == 0:
        return float("nan")
    return float(np.median(values))


def lower_quartile(values: NDArray[np.float64]) -> float:
    if len(values) == 0:
        return float("nan")
    return float(np.quantile(values, 0.25, method="median_unbiased"))


def upper_quartile(values: NDArray[np.float64]) -> float:
    if len(values) == 0:
        return float("nan")
    return float(np.quantile(values, 0.75, method="median_unbiased"))


def variance(values: NDArray[np.float64]) -> float:
    if len(values) < 2:
        return float("nan")
    return float(np.var(values, ddof=1))


def standard_deviation(values: NDArray[np.float64]) -> float:
    if len(values) < 2:
        return float("nan")
    return float(np.std(values, ddof=1))


def skewness(values: NDArray[np.float64]) -> float:
    if len(values) < 3:
        return float("nan")
    return float(stats.skew(values, bias=False))


def kurtosis(values: NDArray[np.float64]) -> float:
    if len(values) < 4:
        return float("nan")
    return float(stats.kurtosis(values, fisher=True, bias=False))


_STATISTICS = {
    SummaryStatistic.MINIMUM: minimum,
    SummaryStatistic.LOWER_QUARTILE: lower_quartile,
    SummaryStatistic.MEAN: mean,
    SummaryStatistic.MEDIAN: median,
    SummaryStatistic.UPPER_QUARTILE: upper_quartile,
    SummaryStatistic.MAXIMUM: maximum,
    SummaryStatistic.VARIANCE: variance,
    SummaryStatistic.STANDARD_DEVIATION: standard_deviation,
    SummaryStatistic.SKEWNESS: skewness,
    SummaryStatistic.KURTOSIS: kurtosis,
}


def compute_statistic(values: NDArray[np.float64], statistic: SummaryStatistic) -> float:
    """
    Compute one summary statistic.

    Raises
    ------
    KeyError
        If ``statistic`` is not a SummaryStatistic member.
    """
    return _STATISTICS[statistic](np.asarray(values, dtype=np.float64))


def describe(values: NDArray[np.float64]) -> Dict[str, float]:
    """
    Compute every summary statistic.

    Parameters
    ----------
    values : NDArray[np.float64]
        Outcome vector, shape (n,)

    Returns
    -------
    Dict[str, float]
        Statistic name -> value, in SummaryStatistic order.
    """
    values = np.asarray(values, dtype=np.float64)
    return {stat.value: func(values) for stat, func in _STATISTICS.items()}

"""
Quantitative simulation templates.

    dice_roll(6, 2).simulate(10000).mean     # ~7.0
    capm(
        ConstantParameter("Rf", 0.02),
        ConstantParameter("B", 1.0),
        DistributionParameter("Rm", stats.norm(0.08, 0.025)),
    ).simulate(10000).mean                    # ~0.08
"""

from typing import Optional

from scipy import stats

from src.simulation.parameters import DistributionParameter, Parameter
from src.simulation.settings import SimulationSettings
from src.simulation.simulator import Simulation


def dice_roll(
    number_of_sides: int,
    number_of_dice: int = 1,
    settings: Optional[SimulationSettings] = None,
) -> Simulation:
    """
    Sum of ``number_of_dice`` fair dice with ``number_of_sides`` sides.

    Each die is a discrete uniform parameter ``die0``, ``die1``, ... over
    1..number_of_sides.
    """
    if number_of_sides < 1:
        raise ValueError(f"number_of_sides must be >= 1. Got {number_of_sides}")
    if number_of_dice < 1:
        raise ValueError(f"number_of_dice must be >= 1. Got {number_of_dice}")

    names = [f"die{i}" for i in range(number_of_dice)]
    parameters = [
        DistributionParameter(name, stats.randint(1, number_of_sides + 1)) for name in names
    ]
    return Simulation(" + ".join(names), parameters, settings=settings)


def capm(
    risk_free_rate: Parameter,
    beta: Parameter,
    market_return: Parameter,
    settings: Optional[SimulationSettings] = None,
) -> Simulation:
    """
    Capital asset pricing model: ``Rf + B * (Rm - Rf)``.

    The expression uses the names of the three parameters, which may be of
    any kind.
    """
    rf, b, rm = risk_free_rate.name, beta.name, market_return.name
    return Simulation(
        f"{rf} + ({b} * ({rm} - {rf}))",
        [risk_free_rate, beta, market_return],
        settings=settings,
    )

"""
Ready-made simulations for common scenarios.

Quantitative templates return a configured Simulation, which can be run
directly or embedded in a NestedSimulationParameter. Qualitative templates
run their simulation immediately and return the QualitativeResults, since
a qualitative simulation has exactly one parameter.
"""

from src.templates.qualitative import coin_flip, deck_of_cards, dice_roll_labels
from src.templates.quantitative import capm, dice_roll

__all__ = [
    "dice_roll",
    "capm",
    "coin_flip",
    "dice_roll_labels",
    "deck_of_cards",
]

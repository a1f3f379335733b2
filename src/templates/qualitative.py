"""
Qualitative simulation templates, each backed by a random bag of labels.
"""

from typing import Optional

from src.qualitative.simulator import QualitativeResults, QualitativeSimulation
from src.simulation.bags import RandomBagReplacement
from src.simulation.qualitative_parameters import QualitativeRandomBagParameter

SUITS = ("C", "D", "H", "S")
RANKS = ("A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K")


def coin_flip(number_of_flips: int, random_seed: Optional[int] = None) -> QualitativeResults:
    """Flip a fair coin; labels ``Heads`` and ``Tails``."""
    coin = QualitativeRandomBagParameter(
        "coin_flip", {"Heads": 1, "Tails": 1}, RandomBagReplacement.AFTER_EACH_PICK
    )
    return QualitativeSimulation(coin).simulate(number_of_flips, random_seed=random_seed)


def dice_roll_labels(
    number_of_sides: int,
    number_of_rolls: int,
    random_seed: Optional[int] = None,
) -> QualitativeResults:
    """Roll one fair die; labels ``"1"`` .. ``str(number_of_sides)``."""
    die = QualitativeRandomBagParameter("dice_roll", replacement=RandomBagReplacement.AFTER_EACH_PICK)
    for side in range(1, number_of_sides + 1):
        die.add(side)
    return QualitativeSimulation(die).simulate(number_of_rolls, random_seed=random_seed)


def deck_of_cards(number_of_cards: int, random_seed: Optional[int] = None) -> QualitativeResults:
    """
    Deal from a standard 52-card deck without putting cards back.

    Labels are rank followed by suit, e.g. ``"10H"`` or ``"QS"``.

    Raises
    ------
    RandomBagItemCountError
        If more than 52 cards are requested.
    """
    deck = QualitativeRandomBagParameter("deck", replacement=RandomBagReplacement.NEVER)
    for suit in SUITS:
        for rank in RANKS:
            deck.add(rank + suit)
    return QualitativeSimulation(deck).simulate(number_of_cards, random_seed=random_seed)

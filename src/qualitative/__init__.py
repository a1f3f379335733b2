"""
Qualitative simulation: one label per trial drawn from a qualitative
parameter (weighted outcomes, rules over a numeric parameter, or a random
bag of labels).
"""

from src.qualitative.simulator import QualitativeResults, QualitativeSimulation
from src.simulation.bags import RandomBagReplacement
from src.simulation.qualitative_parameters import (
    QualitativeConditionalOutcome,
    QualitativeConditionalParameter,
    QualitativeDiscreteParameter,
    QualitativeInterpretationParameter,
    QualitativeOutcome,
    QualitativeParameter,
    QualitativeRandomBagParameter,
)

__all__ = [
    "QualitativeOutcome",
    "QualitativeSimulation",
    "QualitativeResults",
    "QualitativeParameter",
    "QualitativeDiscreteParameter",
    "QualitativeConditionalOutcome",
    "QualitativeConditionalParameter",
    "QualitativeRandomBagParameter",
    "QualitativeInterpretationParameter",
    "RandomBagReplacement",
]

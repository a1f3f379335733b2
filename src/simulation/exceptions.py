"""
Exceptions raised by the simulation engine.

Every failure in this package is a local, synchronous validation failure
raised at the point of violation. Nothing is retried or recovered
automatically; callers catch and decide (e.g. skip a blocked removal).

Most errors also derive from ValueError so that code written against
plain ValueError keeps working.
"""


class SimulationError(Exception):
    """Base class for all simulation engine errors."""


class InvalidProbabilityError(SimulationError, ValueError):
    """A probability is outside [0, 1] or an outcome set does not sum to 1."""


class PrecomputedValueCountError(SimulationError, ValueError):
    """A precomputed sequence has the wrong length for the requested run."""


class MissingPrecomputedParameterError(SimulationError, ValueError):
    """A sensitivity sweep was built from a simulation with nothing to sweep."""


class InvalidParameterError(SimulationError, ValueError):
    """A parameter is not part of the results it is being removed from."""


class ParameterInExpressionError(SimulationError, ValueError):
    """A parameter cannot be removed while the expression still uses it."""


class InvalidParameterNameError(SimulationError, ValueError):
    """A parameter name cannot be used as an expression variable."""


class DuplicateParameterError(SimulationError, ValueError):
    """Two parameters in one simulation share a name."""


class InvalidConstraintError(SimulationError, ValueError):
    """A parameter constraint is missing bounds or a required default."""


class InvalidSummaryStatisticError(SimulationError, ValueError):
    """The requested summary statistic does not exist."""


class ExpressionSyntaxError(SimulationError, ValueError):
    """An expression string could not be parsed."""


class MissingSymbolError(SimulationError, ValueError):
    """An expression variable has no value in the symbol table."""


class DuplicateCombinationError(SimulationError, ValueError):
    """Two sweep combinations would be stored under the same label."""


class NestingDepthError(SimulationError, RuntimeError):
    """Nested simulations are deeper than the configured limit."""


class EmptyBagError(SimulationError, ValueError):
    """A random bag was drawn from while holding no items."""


class RandomBagItemCountError(SimulationError, ValueError):
    """More items were requested from a no-replacement bag than it holds."""

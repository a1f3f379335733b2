"""
Algebraic expression evaluation over a symbol table.

Expressions are written in ordinary infix notation (``"Rf + B * (Rm - Rf)"``,
``"C*P"``, ``"x^2 + sqrt(y)"``), parsed once with sympy, and evaluated with a
numpy-backed lambdified function:

    expr = Expression("DiceRoll1 + DiceRoll2")
    expr.variables             # ('DiceRoll1', 'DiceRoll2')
    expr.evaluate({"DiceRoll1": 3, "DiceRoll2": 4})   # 7.0

Every identifier that is not a known function or constant is treated as a
variable, so parameter names never collide with sympy's own singletons
(``E``, ``I``, ``N``, ``S``, ...). ``^`` is exponentiation.

Evaluation accepts scalars or equal-length columns; each output row depends
only on the same row of every input column.
"""

import keyword
import re
from tokenize import TokenError
from typing import Dict, Mapping, Tuple, Union

import numpy as np
from numpy.typing import NDArray
import sympy
from sympy.parsing.sympy_parser import (
    convert_xor,
    parse_expr,
    standard_transformations,
)

from src.simulation.exceptions import ExpressionSyntaxError, MissingSymbolError


_FUNCTIONS: Dict[str, object] = {
    "sin": sympy.sin,
    "cos": sympy.cos,
    "tan": sympy.tan,
    "asin": sympy.asin,
    "acos": sympy.acos,
    "atan": sympy.atan,
    "atan2": sympy.atan2,
    "sinh": sympy.sinh,
    "cosh": sympy.cosh,
    "tanh": sympy.tanh,
    "exp": sympy.exp,
    "log": sympy.log,
    "ln": sympy.log,
    "sqrt": sympy.sqrt,
    "abs": sympy.Abs,
    "Abs": sympy.Abs,
    "floor": sympy.floor,
    "ceiling": sympy.ceiling,
    "ceil": sympy.ceiling,
    "sign": sympy.sign,
    "min": sympy.Min,
    "Min": sympy.Min,
    "max": sympy.Max,
    "Max": sympy.Max,
    "pi": sympy.pi,
}

RESERVED_NAMES = frozenset(_FUNCTIONS)

_IDENTIFIER = re.compile(r"\b[A-Za-z_][A-Za-z0-9_]*\b")
_TRANSFORMATIONS = standard_transformations + (convert_xor,)


class Expression:
    """
    Parsed algebraic expression.

    Attributes
    ----------
    text : str
        Expression as written by the caller.
    variables : Tuple[str, ...]
        Names of the variables referenced by the expression, sorted.
    """

    def __init__(self, text: str) -> None:
        """
        Parse an infix expression.

        Parameters
        ----------
        text : str
            Infix algebraic expression.

        Raises
        ------
        ExpressionSyntaxError
            If the expression is empty or malformed.
        """
        if not isinstance(text, str) or not text.strip():
            raise ExpressionSyntaxError("Expression must be a non-empty string")

        local_dict = dict(_FUNCTIONS)
        for name in set(_IDENTIFIER.findall(text)):
            if name not in _FUNCTIONS and not keyword.iskeyword(name):
                local_dict[name] = sympy.Symbol(name)

        try:
            parsed = parse_expr(text, local_dict=local_dict, transformations=_TRANSFORMATIONS)
        except (SyntaxError, TokenError, TypeError, AttributeError, NameError, sympy.SympifyError) as exc:
            raise ExpressionSyntaxError(f"Could not parse expression '{text}': {exc}") from exc

        if not isinstance(parsed, sympy.Expr):
            raise ExpressionSyntaxError(
                f"Expression '{text}' does not evaluate to a number. Got {type(parsed).__name__}"
            )

        self.text = text
        self._expr = parsed
        self._symbols = tuple(sorted(parsed.free_symbols, key=lambda s: s.name))
        self.variables: Tuple[str, ...] = tuple(s.name for s in self._symbols)
        self._function = sympy.lambdify(self._symbols, parsed, modules="numpy")

    def references(self, name: str) -> bool:
        """Whether ``name`` is used as a variable in this expression."""
        return name in self.variables

    def evaluate(
        self,
        symbols: Mapping[str, Union[float, NDArray[np.float64]]],
    ) -> Union[float, NDArray[np.float64]]:
        """
        Evaluate the expression for one symbol table.

        Parameters
        ----------
        symbols : Mapping[str, float or NDArray]
            Values for every variable. Values may be scalars or columns of
            equal length; extra names are ignored.

        Returns
        -------
        float or NDArray[np.float64]
            Scalar result for scalar input, otherwise one result per row.

        Raises
        ------
        MissingSymbolError
            If a variable used by the expression has no value.
        """
        missing = [name for name in self.variables if name not in symbols]
        if missing:
            raise MissingSymbolError(
                f"Expression '{self.text}' uses {missing} but no values were supplied for them"
            )

        args = [np.asarray(symbols[name], dtype=np.float64) for name in self.variables]
        with np.errstate(all="ignore"):
            values = np.asarray(self._function(*args), dtype=np.float64)

        if values.ndim == 0:
            return float(values)
        return values

    def evaluate_columns(
        self,
        symbols: Mapping[str, NDArray[np.float64]],
        n_rows: int,
    ) -> NDArray[np.float64]:
        """
        Evaluate the expression row by row over a set of columns.

        Always returns exactly ``n_rows`` values, broadcasting expressions
        that do not depend on any column.
        """
        values = self.evaluate(symbols)
        return np.array(np.broadcast_to(values, (n_rows,)), dtype=np.float64)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Expression):
            return NotImplemented
        return self.text == other.text

    def __hash__(self) -> int:
        return hash(self.text)

    def __str__(self) -> str:
        return self.text

    def __repr__(self) -> str:
        """String representation."""
        return f"Expression('{self.text}', variables={list(self.variables)})"


def as_expression(expression: Union[str, Expression]) -> Expression:
    """Return ``expression`` parsed, reusing it if it already is an Expression."""
    if isinstance(expression, Expression):
        return expression
    return Expression(expression)

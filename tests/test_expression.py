"""
Unit tests for expression parsing and evaluation.

Tests cover:
- Parsing and variable discovery
- Scalar and column evaluation
- Error handling (syntax, missing symbols)
"""

import pytest
import numpy as np
from numpy.testing import assert_allclose, assert_array_equal

from src.simulation.exceptions import ExpressionSyntaxError, MissingSymbolError
from src.simulation.expression import Expression, RESERVED_NAMES, as_expression


class TestExpressionParsing:
    """Tests for Expression construction."""

    def test_variables_are_discovered(self) -> None:
        """Test that every referenced name becomes a variable."""
        expr = Expression("Rf + B * (Rm - Rf)")
        assert expr.variables == ("B", "Rf", "Rm")

    def test_functions_are_not_variables(self) -> None:
        """Test that known functions and constants are not variables."""
        expr = Expression("sqrt(x) + exp(y) + pi")
        assert expr.variables == ("x", "y")

    def test_sympy_singleton_names_are_variables(self) -> None:
        """Test that names such as E, I, N and S are plain variables."""
        expr = Expression("E + I + N + S")
        assert expr.variables == ("E", "I", "N", "S")
        assert expr.evaluate({"E": 1, "I": 2, "N": 3, "S": 4}) == 10.0

    def test_caret_is_power(self) -> None:
        """Test that ^ means exponentiation."""
        assert Expression("x^2").evaluate({"x": 3.0}) == 9.0

    def test_malformed_expression_raises_error(self) -> None:
        """Test that malformed syntax fails at construction."""
        with pytest.raises(ExpressionSyntaxError):
            Expression("x + * 2")

    def test_unbalanced_parentheses_raise_error(self) -> None:
        """Test that unbalanced parentheses fail at construction."""
        with pytest.raises(ExpressionSyntaxError):
            Expression("(x + 1")

    def test_empty_expression_raises_error(self) -> None:
        """Test that an empty expression is rejected."""
        with pytest.raises(ExpressionSyntaxError):
            Expression("   ")

    def test_relational_expression_raises_error(self) -> None:
        """Test that a non-numeric expression is rejected."""
        with pytest.raises(ExpressionSyntaxError, match="does not evaluate to a number"):
            Expression("x < y")

    def test_references(self) -> None:
        """Test name lookup against variables, not substrings."""
        expr = Expression("Bx + 1")
        assert expr.references("Bx")
        assert not expr.references("B")

    def test_as_expression_reuses_instance(self) -> None:
        """Test that already-parsed expressions are passed through."""
        expr = Expression("a + b")
        assert as_expression(expr) is expr
        assert as_expression("a + b") == expr

    def test_reserved_names(self) -> None:
        """Test that function names are reserved."""
        assert "sqrt" in RESERVED_NAMES
        assert "pi" in RESERVED_NAMES
        assert "x" not in RESERVED_NAMES


class TestExpressionEvaluation:
    """Tests for Expression.evaluate."""

    def test_scalar_evaluation(self) -> None:
        """Test evaluation with scalar symbols."""
        expr = Expression("DiceRoll1 + DiceRoll2")
        assert expr.evaluate({"DiceRoll1": 3, "DiceRoll2": 4}) == 7.0

    def test_column_evaluation(self) -> None:
        """Test row-wise evaluation over columns."""
        expr = Expression("C*P")
        values = expr.evaluate({"C": np.full(3, 10.0), "P": np.array([1.0, 2.0, 3.0])})
        assert_array_equal(values, [10.0, 20.0, 30.0])

    def test_extra_symbols_are_ignored(self) -> None:
        """Test that unused names in the symbol table do no harm."""
        assert Expression("a * 2").evaluate({"a": 2, "unused": 100}) == 4.0

    def test_missing_symbol_raises_error(self) -> None:
        """Test that a missing variable is reported."""
        with pytest.raises(MissingSymbolError, match="b"):
            Expression("a + b").evaluate({"a": 1.0})

    def test_constant_expression_broadcasts(self) -> None:
        """Test that column evaluation always yields n rows."""
        values = Expression("2 + 3").evaluate_columns({}, 4)
        assert_array_equal(values, [5.0, 5.0, 5.0, 5.0])

    def test_min_max_are_elementwise(self) -> None:
        """Test that min/max act per row."""
        expr = Expression("max(a, b) - min(a, b)")
        values = expr.evaluate({"a": np.array([1.0, 5.0]), "b": np.array([4.0, 2.0])})
        assert_allclose(values, [3.0, 3.0])

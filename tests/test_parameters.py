"""
Unit tests for parameter construction and validation.

Tests cover:
- Name validation
- Discrete outcome probabilities and cumulative probabilities
- Conditional rules
- Constraints
"""

import pytest
import numpy as np
from numpy.testing import assert_allclose, assert_array_equal
from scipy import stats

from src.simulation.constraints import ConstraintResolution, ParameterConstraint
from src.simulation.exceptions import (
    InvalidConstraintError,
    InvalidParameterNameError,
    InvalidProbabilityError,
)
from src.simulation.parameters import (
    ComparisonOperator,
    ConditionalOutcome,
    ConditionalParameter,
    ConstantParameter,
    DiscreteOutcome,
    DiscreteParameter,
    DistributionParameter,
    PrecomputedParameter,
    cumulative_probabilities,
)
from src.simulation.settings import SimulationSettings


class TestParameterNames:
    """Tests for parameter name validation."""

    def test_valid_names(self) -> None:
        """Test that identifiers are accepted."""
        for name in ["B", "Rf", "dice_roll_1", "_hidden", "x2"]:
            assert ConstantParameter(name, 1.0).name == name

    def test_empty_name_raises_error(self) -> None:
        """Test that an empty name is rejected."""
        with pytest.raises(InvalidParameterNameError, match="non-empty"):
            ConstantParameter("", 1.0)

    def test_leading_digit_raises_error(self) -> None:
        """Test that names starting with a digit are rejected."""
        with pytest.raises(InvalidParameterNameError, match="digit"):
            ConstantParameter("1x", 1.0)

    def test_non_identifier_raises_error(self) -> None:
        """Test that names with operators or spaces are rejected."""
        with pytest.raises(InvalidParameterNameError, match="identifier"):
            ConstantParameter("a-b", 1.0)

    def test_reserved_name_raises_error(self) -> None:
        """Test that function names cannot be parameter names."""
        with pytest.raises(InvalidParameterNameError, match="reserved"):
            ConstantParameter("sqrt", 1.0)

    def test_name_errors_are_value_errors(self) -> None:
        """Test that name errors can be caught as ValueError."""
        with pytest.raises(ValueError):
            ConstantParameter("9lives", 1.0)


class TestDiscreteParameter:
    """Tests for discrete outcomes and cumulative probabilities."""

    def test_cumulative_probabilities(self) -> None:
        """Test running sums in declaration order."""
        param = DiscreteParameter("X", [(1, 0.2), (2, 0.3), (3, 0.5)])
        assert_allclose(param.cumulative_probabilities, [0.2, 0.5, 1.0])
        assert_array_equal(param.values, [1.0, 2.0, 3.0])

    def test_last_cumulative_probability_is_exactly_one(self) -> None:
        """Test that the last cumulative probability is clamped to 1.0."""
        param = DiscreteParameter("Die", [(face, 1 / 6) for face in range(1, 7)])
        assert param.cumulative_probabilities[-1] == 1.0

        param = DiscreteParameter("X", [(0, 0.5), (1, 0.495)])
        assert param.cumulative_probabilities[-1] == 1.0

    def test_accepts_outcome_objects(self) -> None:
        """Test construction from DiscreteOutcome instances."""
        param = DiscreteParameter("X", [DiscreteOutcome(5, 0.4), DiscreteOutcome(6, 0.6)])
        assert len(param.outcomes) == 2

    def test_probability_out_of_range_raises_error(self) -> None:
        """Test that a single probability outside [0, 1] is rejected."""
        with pytest.raises(InvalidProbabilityError, match="between 0 and 1"):
            DiscreteOutcome(1.0, 1.5)
        with pytest.raises(InvalidProbabilityError):
            DiscreteOutcome(1.0, -0.1)

    def test_total_below_tolerance_raises_error(self) -> None:
        """Test that totals below 0.99 are rejected."""
        with pytest.raises(InvalidProbabilityError, match="does not equal 100%"):
            DiscreteParameter("X", [(1, 0.5), (2, 0.48)])

    def test_total_above_tolerance_raises_error(self) -> None:
        """Test that totals above 1.01 are rejected."""
        with pytest.raises(InvalidProbabilityError):
            DiscreteParameter("X", [(1, 0.5), (2, 0.52)])

    def test_total_within_tolerance_accepted(self) -> None:
        """Test that totals in [0.99, 1.01] are accepted."""
        DiscreteParameter("X", [(1, 0.5), (2, 0.495)])
        DiscreteParameter("Y", [(1, 0.5), (2, 0.505)])

    def test_custom_tolerance(self) -> None:
        """Test that the tolerance comes from settings."""
        strict = SimulationSettings(probability_tolerance=0.0001)
        with pytest.raises(InvalidProbabilityError):
            DiscreteParameter("X", [(1, 0.5), (2, 0.495)], settings=strict)

    def test_empty_outcomes_raise_error(self) -> None:
        """Test that at least one outcome is required."""
        with pytest.raises(InvalidProbabilityError):
            cumulative_probabilities([])


class TestPrecomputedParameter:
    """Tests for precomputed parameters."""

    def test_values_are_stored_read_only(self) -> None:
        """Test that the stored sequence cannot be modified in place."""
        param = PrecomputedParameter("P", [1, 2, 3])
        assert len(param) == 3
        with pytest.raises(ValueError):
            param.values[0] = 10.0

    def test_multidimensional_values_raise_error(self) -> None:
        """Test that only one-dimensional sequences are accepted."""
        with pytest.raises(ValueError, match="one-dimensional"):
            PrecomputedParameter("P", [[1, 2], [3, 4]])


class TestConditionalParameter:
    """Tests for conditional rules."""

    def test_operator_aliases(self) -> None:
        """Test that symbolic aliases map to operators."""
        assert ComparisonOperator("≠") is ComparisonOperator.NOT_EQUAL
        assert ComparisonOperator("==") is ComparisonOperator.EQUAL
        assert ComparisonOperator("≤") is ComparisonOperator.LESS_THAN_OR_EQUAL
        assert ComparisonOperator("≥") is ComparisonOperator.GREATER_THAN_OR_EQUAL

    def test_unknown_operator_raises_error(self) -> None:
        """Test that unknown operators are rejected."""
        with pytest.raises(ValueError):
            ConditionalOutcome("~", 1.0, 2.0)

    def test_first_matching_rule_wins(self) -> None:
        """Test rule order and default value."""
        reference = PrecomputedParameter("R", [1, 2, 3, 4, 5])
        param = ConditionalParameter("C", reference, 30.0, [
            ("<", 3, 10),
            ("<=", 3, 20),
        ])
        values = param.apply(np.array([1.0, 2.0, 3.0, 4.0, 5.0]))
        assert_array_equal(values, [10.0, 10.0, 20.0, 30.0, 30.0])

    def test_all_operators(self) -> None:
        """Test every comparison operator against a threshold of 2."""
        reference = np.array([1.0, 2.0, 3.0])
        expected = {
            "=": [False, True, False],
            "!=": [True, False, True],
            "<": [True, False, False],
            "<=": [True, True, False],
            ">": [False, False, True],
            ">=": [False, True, True],
        }
        for op, mask in expected.items():
            assert_array_equal(ConditionalOutcome(op, 2.0, 1.0).matches(reference), mask)

    def test_equality_tolerance(self) -> None:
        """Test that tolerance widens equality."""
        outcome = ConditionalOutcome("=", 2.0, 1.0, tolerance=0.1)
        assert_array_equal(outcome.matches(np.array([1.95, 2.2])), [True, False])

    def test_reference_must_be_parameter(self) -> None:
        """Test that the reference is type-checked."""
        with pytest.raises(TypeError):
            ConditionalParameter("C", "R", 0.0, [])


class TestParameterConstraint:
    """Tests for constraint validation and application."""

    def test_requires_a_bound(self) -> None:
        """Test that a constraint needs at least one bound."""
        with pytest.raises(InvalidConstraintError, match="at least one bound"):
            ParameterConstraint()

    def test_requires_default_for_default_resolution(self) -> None:
        """Test that DEFAULT_VALUE needs a default value."""
        with pytest.raises(InvalidConstraintError, match="default value"):
            ParameterConstraint(lower_bound=0.0, resolution=ConstraintResolution.DEFAULT_VALUE)

    def test_requires_default_for_resimulation(self) -> None:
        """Test that RESIMULATE needs a fallback value."""
        with pytest.raises(InvalidConstraintError):
            ParameterConstraint(upper_bound=1.0, resolution="resimulate")

    def test_inverted_bounds_raise_error(self) -> None:
        """Test that lower > upper is rejected."""
        with pytest.raises(InvalidConstraintError):
            ParameterConstraint(lower_bound=2.0, upper_bound=1.0)

    def test_closest_bound(self) -> None:
        """Test clamping to the violated bound."""
        constraint = ParameterConstraint(lower_bound=0.0, upper_bound=1.0)
        values = constraint.apply(np.array([-1.0, 0.5, 2.0]), redraw=lambda: 0.0)
        assert_array_equal(values, [0.0, 0.5, 1.0])

    def test_default_value(self) -> None:
        """Test replacement by the default value."""
        constraint = ParameterConstraint(
            lower_bound=0.0, resolution=ConstraintResolution.DEFAULT_VALUE, default_value=7.0
        )
        values = constraint.apply(np.array([-1.0, 0.5]), redraw=lambda: 0.0)
        assert_array_equal(values, [7.0, 0.5])

    def test_resimulate_uses_redraw(self) -> None:
        """Test that redraws replace violating values."""
        constraint = ParameterConstraint(
            upper_bound=1.0, resolution=ConstraintResolution.RESIMULATE, default_value=-5.0
        )
        draws = iter([3.0, 0.25])
        values = constraint.apply(np.array([2.0, 0.5]), redraw=lambda: next(draws))
        assert_array_equal(values, [0.25, 0.5])

    def test_resimulate_falls_back_to_default(self) -> None:
        """Test the fallback after max_resimulations failed redraws."""
        constraint = ParameterConstraint(
            upper_bound=1.0,
            resolution=ConstraintResolution.RESIMULATE,
            max_resimulations=3,
            default_value=-5.0,
        )
        values = constraint.apply(np.array([2.0]), redraw=lambda: 10.0)
        assert_array_equal(values, [-5.0])

    def test_input_not_modified(self) -> None:
        """Test that the sampled column is not changed in place."""
        original = np.array([-1.0, 2.0])
        ParameterConstraint(lower_bound=0.0).apply(original, redraw=lambda: 0.0)
        assert_array_equal(original, [-1.0, 2.0])


class TestDistributionParameter:
    """Tests for distribution parameters."""

    def test_requires_frozen_distribution(self) -> None:
        """Test that non-distributions are rejected."""
        with pytest.raises(TypeError, match="scipy.stats"):
            DistributionParameter("X", 5.0)

    def test_accepts_constraint(self) -> None:
        """Test that a constraint is stored."""
        constraint = ParameterConstraint(lower_bound=0.0)
        param = DistributionParameter("X", stats.norm(0, 1), constraint=constraint)
        assert param.constraint is constraint

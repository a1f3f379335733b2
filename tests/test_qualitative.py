"""
Unit tests for qualitative simulations.

Tests cover:
- Outcome validation
- Label frequencies
- Most/least common outcomes and regeneration
- Conditional and random bag label sources
- Interpreting labels as a numeric column
"""

import pytest
import numpy as np
from numpy.testing import assert_array_equal

from src.qualitative import (
    QualitativeConditionalOutcome,
    QualitativeConditionalParameter,
    QualitativeDiscreteParameter,
    QualitativeInterpretationParameter,
    QualitativeOutcome,
    QualitativeRandomBagParameter,
    QualitativeResults,
    QualitativeSimulation,
    RandomBagReplacement,
)
from src.simulation import (
    ConstantParameter,
    DiscreteParameter,
    PrecomputedParameter,
    Simulation,
)
from src.simulation.exceptions import (
    EmptyBagError,
    InvalidParameterNameError,
    InvalidProbabilityError,
    PrecomputedValueCountError,
    RandomBagItemCountError,
)


@pytest.fixture
def weather() -> QualitativeSimulation:
    return QualitativeSimulation([
        ("Sunny", 0.6),
        ("Cloudy", 0.3),
        ("Rainy", 0.1),
    ])


class TestQualitativeSimulation:
    """Tests for QualitativeSimulation construction."""

    def test_probability_out_of_range(self) -> None:
        """Test that single probabilities must be in [0, 1]."""
        with pytest.raises(InvalidProbabilityError):
            QualitativeOutcome("Heads", 1.2)

    def test_total_probability_checked(self) -> None:
        """Test that probabilities must sum to 1 within tolerance."""
        with pytest.raises(InvalidProbabilityError):
            QualitativeSimulation([("Heads", 0.5), ("Tails", 0.4)])

    def test_duplicate_labels_raise_error(self) -> None:
        """Test that labels are unique."""
        with pytest.raises(ValueError, match="unique"):
            QualitativeSimulation([("Heads", 0.5), ("Heads", 0.5)])

    def test_cumulative_probabilities(self, weather: QualitativeSimulation) -> None:
        """Test that the last cumulative probability is 1."""
        assert weather.parameter.cumulative_probabilities[-1] == 1.0


class TestQualitativeResults:
    """Tests for QualitativeResults."""

    def test_frequencies(self, weather: QualitativeSimulation) -> None:
        """Test that frequencies match probabilities."""
        results = weather.simulate(100000, random_seed=42)
        frequencies = results.outcome_frequencies

        assert list(frequencies) == ["Sunny", "Cloudy", "Rainy"]
        assert abs(frequencies["Sunny"] - 0.6) < 0.01
        assert abs(frequencies["Cloudy"] - 0.3) < 0.01
        assert abs(frequencies["Rainy"] - 0.1) < 0.01

    def test_counts_sum_to_trials(self, weather: QualitativeSimulation) -> None:
        """Test that every trial is counted once."""
        results = weather.simulate(500, random_seed=1)
        assert sum(results.outcome_counts.values()) == 500
        assert results.results.shape == (500,)

    def test_most_and_least_common(self, weather: QualitativeSimulation) -> None:
        """Test the most and least frequent labels."""
        results = weather.simulate(10000, random_seed=3)
        assert results.most_common_outcome[0] == "Sunny"
        assert results.least_common_outcome[0] == "Rainy"

    def test_zero_probability_label_counted(self) -> None:
        """Test that never-drawn labels appear with count zero."""
        sim = QualitativeSimulation([("A", 1.0), ("B", 0.0)])
        results = sim.simulate(100, random_seed=0)
        assert results.outcome_counts == {"A": 100, "B": 0}
        assert results.least_common_outcome == ("B", 0)

    def test_ties_resolved_by_declaration_order(self) -> None:
        """Test that equal counts pick the first declared label."""
        sim = QualitativeSimulation([("A", 0.5), ("B", 0.5)])
        results = QualitativeResults(sim, np.array(["B", "A"], dtype=object), None)
        assert results.most_common_outcome == ("A", 1)
        assert results.least_common_outcome == ("A", 1)

    def test_seed_reproducibility(self, weather: QualitativeSimulation) -> None:
        """Test that equal seeds give equal labels."""
        first = weather.simulate(200, random_seed=9).results
        second = weather.simulate(200, random_seed=9).results
        assert list(first) == list(second)

    def test_regenerate(self, weather: QualitativeSimulation) -> None:
        """Test redrawing with a new trial count."""
        results = weather.simulate(100, random_seed=5)
        returned = results.regenerate(30)
        assert returned is results
        assert results.n_trials == 30
        assert sum(results.outcome_counts.values()) == 30


@pytest.fixture
def temperature() -> QualitativeConditionalParameter:
    """Labels over the readings 10, 20, 30, 40."""
    return QualitativeConditionalParameter(
        "Temperature",
        PrecomputedParameter("T", [10, 20, 30, 40]),
        "Mild",
        [("<", 15, "Cold"), (">", 35, "Hot")],
    )


class TestQualitativeParameters:
    """Tests for the qualitative parameter kinds."""

    def test_discrete_parameter_as_simulation(self) -> None:
        """Test that an explicit parameter behaves like an outcome list."""
        coin = QualitativeDiscreteParameter("Coin", [("Heads", 0.5), ("Tails", 0.5)])
        results = QualitativeSimulation(coin).simulate(1000, random_seed=6)

        assert results.simulation.possible_outcomes == ["Heads", "Tails"]
        assert abs(results.outcome_frequencies["Heads"] - 0.5) < 0.1

    def test_name_required(self) -> None:
        """Test that qualitative parameters need a non-empty name."""
        with pytest.raises(InvalidParameterNameError):
            QualitativeDiscreteParameter("", [("A", 1.0)])

    def test_conditional_labels(self, temperature: QualitativeConditionalParameter) -> None:
        """Test rule evaluation with a default label."""
        results = QualitativeSimulation(temperature).simulate(4)

        assert list(results.results) == ["Cold", "Mild", "Mild", "Hot"]
        assert temperature.possible_outcomes == ["Cold", "Hot", "Mild"]
        assert results.outcome_counts == {"Cold": 1, "Hot": 1, "Mild": 2}

    def test_conditional_first_rule_wins(self) -> None:
        """Test that overlapping rules are checked in order."""
        param = QualitativeConditionalParameter(
            "Size",
            ConstantParameter("X", 10.0),
            "Large",
            [
                QualitativeConditionalOutcome("<", 25, "Medium"),
                QualitativeConditionalOutcome("<", 15, "Small"),
            ],
        )
        results = QualitativeSimulation(param).simulate(3)
        assert list(results.results) == ["Medium", "Medium", "Medium"]

    def test_conditional_reference_count_checked(
        self, temperature: QualitativeConditionalParameter
    ) -> None:
        """Test that a precomputed reference must match the trial count."""
        with pytest.raises(PrecomputedValueCountError):
            QualitativeSimulation(temperature).simulate(3)

    def test_bag_without_replacement(self) -> None:
        """Test that a full draw empties the bag exactly."""
        bag = QualitativeRandomBagParameter(
            "Marbles", {"Red": 3, "Blue": 1}, RandomBagReplacement.NEVER
        )
        results = QualitativeSimulation(bag).simulate(4, random_seed=2)

        assert bag.possible_outcomes == ["Red", "Blue"]
        assert results.outcome_counts == {"Red": 3, "Blue": 1}

    def test_bag_overdrawn(self) -> None:
        """Test that a bag without replacement cannot be overdrawn."""
        bag = QualitativeRandomBagParameter("Marbles", {"Red": 1}, "never")
        with pytest.raises(RandomBagItemCountError):
            QualitativeSimulation(bag).simulate(2)

    def test_empty_bag(self) -> None:
        """Test that an empty label bag is rejected."""
        bag = QualitativeRandomBagParameter("Marbles")
        with pytest.raises(EmptyBagError):
            QualitativeSimulation(bag).simulate(1)

    def test_failed_regenerate_keeps_labels(self) -> None:
        """Test that a rejected redraw leaves the labels in place."""
        bag = QualitativeRandomBagParameter("Cards", {"A": 1, "B": 1}, "never")
        results = QualitativeSimulation(bag).simulate(2, random_seed=1)
        before = list(results.results)

        with pytest.raises(RandomBagItemCountError):
            results.regenerate(3)
        assert list(results.results) == before


class TestQualitativeInterpretation:
    """Tests for turning labels into a numeric column."""

    def test_labels_mapped_with_default(
        self, temperature: QualitativeConditionalParameter
    ) -> None:
        """Test dictionary lookup and the default for unmapped labels."""
        param = QualitativeInterpretationParameter(
            "Heating", temperature, {"Cold": 5.0, "Hot": -1.0}, default=0.0
        )
        results = Simulation("Heating", [param]).simulate(4)
        assert_array_equal(results.results, [5.0, 0.0, 0.0, -1.0])

    def test_outcome_list_drives_quantitative_simulation(self) -> None:
        """Test that weighted labels feed an expression."""
        visitors = QualitativeInterpretationParameter(
            "Visitors",
            [("Sun", 0.5), ("Rain", 0.5)],
            {"Sun": 1000, "Rain": 200},
        )
        sim = Simulation("Visitors * Price", [visitors, ConstantParameter("Price", 2.0)])
        results = sim.simulate(2000, random_seed=3)

        assert set(np.unique(results.column("Visitors"))) == {200.0, 1000.0}
        assert set(np.unique(results.results)) == {400.0, 2000.0}
        assert abs(results.mean - 1200.0) < 100.0

    def test_conditional_over_sampled_reference(self) -> None:
        """Test labels derived from a sampled numeric parameter."""
        roll = DiscreteParameter("Roll", [(1, 0.5), (6, 0.5)])
        outcome = QualitativeConditionalParameter("Outcome", roll, "Lose", [(">=", 6, "Win")])
        payout = QualitativeInterpretationParameter("Payout", outcome, {"Win": 10.0})
        results = Simulation("Payout", [payout]).simulate(500, random_seed=9)

        assert set(np.unique(results.results)) == {0.0, 10.0}

    def test_bag_validated_through_interpretation(self) -> None:
        """Test that an interpreted bag is checked before sampling."""
        bag = QualitativeRandomBagParameter("Tickets", {"Win": 1, "Lose": 2}, "never")
        prize = QualitativeInterpretationParameter("Prize", bag, {"Win": 100.0})
        sim = Simulation("Prize", [prize])

        assert sorted(sim.simulate(3, random_seed=0).results) == [0.0, 0.0, 100.0]
        with pytest.raises(RandomBagItemCountError):
            sim.simulate(4)

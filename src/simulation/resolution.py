"""
Parameter resolution: turning parameters into trial columns.

Resolution of one simulation run:
1. Validate trial counts for every precomputed parameter and random bag,
   including those reached through conditional references, qualitative
   interpretations and nested simulations. Any mismatch aborts the run
   before sampling anything.
2. Resolve each parameter, in declaration order, to a column of
   ``n_trials`` float64 values (the raw matrix has one column per
   parameter).
3. Evaluate the expression over the rows of the matrix.

Discrete, distribution and random bag parameters consume the sampler in
declaration order; constant, precomputed, and conditional-over-deterministic columns
are identical on every run.
"""

import logging
from typing import Iterable, List, Sequence

import numpy as np
from numpy.typing import NDArray

from src.simulation.bags import RandomBag
from src.simulation.exceptions import (
    DuplicateParameterError,
    NestingDepthError,
    PrecomputedValueCountError,
)
from src.simulation.expression import Expression
from src.simulation.parameters import (
    ConditionalParameter,
    ConstantParameter,
    DiscreteParameter,
    DistributionParameter,
    NestedSimulationParameter,
    Parameter,
    PrecomputedParameter,
    RandomBagParameter,
)
from src.simulation.qualitative_parameters import (
    QualitativeConditionalParameter,
    QualitativeDiscreteParameter,
    QualitativeInterpretationParameter,
    QualitativeParameter,
    QualitativeRandomBagParameter,
)
from src.simulation.sampler import DistributionSampler, select_outcomes
from src.simulation.settings import SimulationSettings
from src.simulation.statistics import compute_statistic

logger = logging.getLogger(__name__)

PARAMETER_TYPES = (
    ConstantParameter,
    DiscreteParameter,
    DistributionParameter,
    PrecomputedParameter,
    ConditionalParameter,
    NestedSimulationParameter,
    RandomBagParameter,
    QualitativeInterpretationParameter,
)


def validate_parameter_list(parameters: Iterable[Parameter]) -> List[Parameter]:
    """
    Check kinds and name uniqueness of a parameter list.

    Raises
    ------
    TypeError
        If an entry is not one of the supported parameter kinds.
    DuplicateParameterError
        If two parameters share a name.
    """
    parameters = list(parameters)
    seen = set()
    for parameter in parameters:
        if not isinstance(parameter, PARAMETER_TYPES):
            raise TypeError(
                f"Unsupported parameter type {type(parameter).__name__}. "
                f"Expected one of {[t.__name__ for t in PARAMETER_TYPES]}"
            )
        if parameter.name in seen:
            raise DuplicateParameterError(
                f"Parameter name '{parameter.name}' is used more than once"
            )
        seen.add(parameter.name)
    return parameters


def validate_trial_counts(
    parameters: Sequence[Parameter],
    n_trials: int,
    settings: SimulationSettings,
    depth: int = 0,
) -> None:
    """
    Check every precomputed sequence and random bag reachable from
    ``parameters`` (numeric or qualitative).

    Raises
    ------
    PrecomputedValueCountError
        If a precomputed parameter does not have exactly the number of
        values its simulation will run.
    EmptyBagError
        If a random bag holds no items.
    RandomBagItemCountError
        If a no-replacement bag holds fewer items than the run draws.
    NestingDepthError
        If nesting exceeds ``settings.max_nesting_depth``.
    """
    if depth > settings.max_nesting_depth:
        raise NestingDepthError(
            f"Nested simulations exceed the maximum depth of {settings.max_nesting_depth}"
        )

    for parameter in parameters:
        if isinstance(parameter, PrecomputedParameter):
            if len(parameter.values) != n_trials:
                raise PrecomputedValueCountError(
                    f"{parameter.name} has {len(parameter.values)} precomputed values but the "
                    f"simulation being run expects {n_trials} values"
                )
        elif isinstance(parameter, RandomBag):
            parameter.check_draw_count(n_trials)
        elif isinstance(parameter, (ConditionalParameter, QualitativeConditionalParameter)):
            validate_trial_counts([parameter.reference], n_trials, settings, depth + 1)
        elif isinstance(parameter, QualitativeInterpretationParameter):
            validate_trial_counts([parameter.qualitative], n_trials, settings, depth + 1)
        elif isinstance(parameter, NestedSimulationParameter):
            inner_trials = n_trials
            if parameter.return_type is not None:
                inner_trials = parameter.summary_run_count or settings.summary_run_count
            validate_trial_counts(
                parameter.simulation.parameters, inner_trials, settings, depth + 1
            )


def resolve_column(
    parameter: Parameter,
    n_trials: int,
    sampler: DistributionSampler,
    settings: SimulationSettings,
    depth: int = 0,
) -> NDArray[np.float64]:
    """
    Resolve one parameter to its column of trial values.

    Returns
    -------
    NDArray[np.float64]
        Column of shape (n_trials,)
    """
    if depth > settings.max_nesting_depth:
        raise NestingDepthError(
            f"Nested simulations exceed the maximum depth of {settings.max_nesting_depth}"
        )

    logger.debug("Resolving %s for %d trials", parameter, n_trials)

    if isinstance(parameter, ConstantParameter):
        return np.full(n_trials, parameter.value, dtype=np.float64)

    if isinstance(parameter, DiscreteParameter):
        uniforms = sampler.uniform(n_trials)
        indices = select_outcomes(uniforms, parameter.cumulative_probabilities)
        return parameter.values[indices]

    if isinstance(parameter, DistributionParameter):
        samples = sampler.sample(parameter.distribution, n_trials).astype(np.float64)
        if parameter.constraint is not None:
            samples = parameter.constraint.apply(
                samples, lambda: sampler.sample_one(parameter.distribution)
            )
        return samples

    if isinstance(parameter, PrecomputedParameter):
        if len(parameter.values) != n_trials:
            raise PrecomputedValueCountError(
                f"{parameter.name} has {len(parameter.values)} precomputed values but the "
                f"simulation being run expects {n_trials} values"
            )
        return np.array(parameter.values, dtype=np.float64)

    if isinstance(parameter, ConditionalParameter):
        reference_values = resolve_column(
            parameter.reference, n_trials, sampler, settings, depth + 1
        )
        return parameter.apply(reference_values)

    if isinstance(parameter, NestedSimulationParameter):
        return _resolve_nested(parameter, n_trials, sampler, settings, depth)

    if isinstance(parameter, RandomBagParameter):
        return parameter.draw(n_trials, sampler)

    if isinstance(parameter, QualitativeInterpretationParameter):
        labels = resolve_labels(parameter.qualitative, n_trials, sampler, settings, depth + 1)
        return parameter.interpret(labels)

    raise TypeError(f"Unsupported parameter type {type(parameter).__name__}")


def _resolve_nested(
    parameter: NestedSimulationParameter,
    n_trials: int,
    sampler: DistributionSampler,
    settings: SimulationSettings,
    depth: int,
) -> NDArray[np.float64]:
    simulation = parameter.simulation

    def run(trials: int) -> NDArray[np.float64]:
        matrix = resolve_matrix(simulation.parameters, trials, sampler, settings, depth + 1)
        return evaluate_outcomes(simulation.expression, simulation.parameters, matrix)

    if parameter.return_type is None:
        outcomes = run(n_trials)
        if parameter.constraint is not None:
            outcomes = parameter.constraint.apply(outcomes, lambda: float(run(1)[0]))
        return outcomes

    run_count = parameter.summary_run_count or settings.summary_run_count
    return np.array(
        [compute_statistic(run(run_count), parameter.return_type) for _ in range(n_trials)],
        dtype=np.float64,
    )


def resolve_matrix(
    parameters: Sequence[Parameter],
    n_trials: int,
    sampler: DistributionSampler,
    settings: SimulationSettings,
    depth: int = 0,
) -> NDArray[np.float64]:
    """
    Resolve every parameter into the raw trial matrix.

    Returns
    -------
    NDArray[np.float64]
        Matrix of shape (n_trials, n_parameters); column order matches
        ``parameters``.
    """
    columns = [
        resolve_column(parameter, n_trials, sampler, settings, depth)
        for parameter in parameters
    ]
    if not columns:
        return np.empty((n_trials, 0), dtype=np.float64)
    return np.column_stack(columns).astype(np.float64)


def evaluate_outcomes(
    expression: Expression,
    parameters: Sequence[Parameter],
    matrix: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Evaluate the expression for every trial row of the raw matrix.

    Each parameter name maps to its own column, so row i of the result only
    depends on row i of the matrix.

    Returns
    -------
    NDArray[np.float64]
        Outcome vector of shape (n_trials,)
    """
    symbols = {parameter.name: matrix[:, i] for i, parameter in enumerate(parameters)}
    return expression.evaluate_columns(symbols, matrix.shape[0])


def resolve_labels(
    parameter: QualitativeParameter,
    n_trials: int,
    sampler: DistributionSampler,
    settings: SimulationSettings,
    depth: int = 0,
) -> NDArray:
    """
    Resolve one qualitative parameter to its labels.

    Returns
    -------
    NDArray
        Object array of labels, shape (n_trials,)
    """
    if depth > settings.max_nesting_depth:
        raise NestingDepthError(
            f"Nested simulations exceed the maximum depth of {settings.max_nesting_depth}"
        )

    logger.debug("Resolving %s for %d trials", parameter, n_trials)

    if isinstance(parameter, QualitativeDiscreteParameter):
        indices = select_outcomes(sampler.uniform(n_trials), parameter.cumulative_probabilities)
        return parameter.labels[indices]

    if isinstance(parameter, QualitativeRandomBagParameter):
        return parameter.draw(n_trials, sampler)

    if isinstance(parameter, QualitativeConditionalParameter):
        reference_values = resolve_column(
            parameter.reference, n_trials, sampler, settings, depth + 1
        )
        return parameter.apply(reference_values)

    raise TypeError(f"Unsupported qualitative parameter type {type(parameter).__name__}")

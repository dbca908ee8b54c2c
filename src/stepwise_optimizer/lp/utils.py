import logging
import math
from typing import List

import numpy as np

from ..errors import InvalidProblem
from ..schemas import AuxiliaryVariable, ConstraintType, Problem, SimplexSettings, StandardForm

logger = logging.getLogger(__name__)

_FLIPPED = {ConstraintType.LE: ConstraintType.GE, ConstraintType.GE: ConstraintType.LE}


def validate_problem(problem: Problem) -> None:
    num_vars = len(problem.objective)
    num_constraints = len(problem.constraints)

    if num_vars == 0:
        raise InvalidProblem("Objective has no decision variables.")
    if num_constraints == 0:
        raise InvalidProblem("Problem has no constraints; there is no row to pivot on.")
    if len(problem.rhs) != num_constraints:
        raise InvalidProblem(
            f"Expected {num_constraints} right-hand side values, got {len(problem.rhs)}."
        )
    if len(problem.constraint_types) != num_constraints:
        raise InvalidProblem(
            f"Expected {num_constraints} constraint types, got {len(problem.constraint_types)}."
        )

    if not all(math.isfinite(coef) for coef in problem.objective):
        raise InvalidProblem("Objective contains non-finite coefficients.")
    for idx, row in enumerate(problem.constraints):
        if len(row) != num_vars:
            raise InvalidProblem(
                f"Constraint {idx} has {len(row)} coefficients, expected {num_vars}."
            )
        if not all(math.isfinite(coef) for coef in row) or not math.isfinite(problem.rhs[idx]):
            raise InvalidProblem(f"Constraint {idx} contains non-finite values.")


def build_standard_form(problem: Problem, settings: SimplexSettings) -> StandardForm:
    """
    Widen the problem with slack, surplus and artificial columns.
    Minimisation is turned into maximisation of the negated objective; the
    extractor negates the final value back. A row with a negative right-hand
    side is multiplied by -1 first (`<=` and `>=` swap) so the starting basis
    is feasible. Auxiliary columns are numbered left to right in the order
    they are introduced.
    """

    validate_problem(problem)

    objective: List[float] = [float(coef) for coef in problem.objective]
    if problem.type == "min":
        objective = [-coef for coef in objective]

    num_original = len(objective)
    variable_types: List[AuxiliaryVariable] = []
    penalty = -settings.big_m if settings.artificial_method == "big_m" else 0.0
    slack_count = 0
    artificial_count = 0

    constraints = [[float(coef) for coef in row] for row in problem.constraints]
    rhs = [float(value) for value in problem.rhs]
    constraint_types = list(problem.constraint_types)
    negated_rows: List[int] = []
    for idx, value in enumerate(rhs):
        if value < 0:
            constraints[idx] = [-coef for coef in constraints[idx]]
            rhs[idx] = -value
            constraint_types[idx] = _FLIPPED.get(constraint_types[idx], constraint_types[idx])
            negated_rows.append(idx)

    def add_column(kind: str, constraint_index: int, objective_coef: float) -> None:
        variable_types.append(
            AuxiliaryVariable(kind=kind, constraint_index=constraint_index, column=len(objective))
        )
        objective.append(objective_coef)

    for idx, cmp in enumerate(constraint_types):
        match cmp:
            case ConstraintType.LE:
                add_column("slack", idx, 0.0)
                slack_count += 1
            case ConstraintType.GE:
                add_column("surplus", idx, 0.0)
                add_column("artificial", idx, penalty)
                slack_count += 1
                artificial_count += 1
            case ConstraintType.EQ:
                add_column("artificial", idx, penalty)
                artificial_count += 1
            case _:
                raise InvalidProblem(f"Constraint {idx} has unrecognised type {cmp!r}.")

    logger.debug(
        "Standard form: %d original, %d slack/surplus, %d artificial columns",
        num_original,
        slack_count,
        artificial_count,
    )

    return StandardForm(
        original_type=problem.type,
        num_original_variables=num_original,
        num_variables=len(objective),
        num_constraints=len(problem.constraints),
        objective=objective,
        constraints=constraints,
        rhs=rhs,
        constraint_types=constraint_types,
        variable_types=variable_types,
        slack_count=slack_count,
        artificial_count=artificial_count,
        artificial_method=settings.artificial_method,
        negated_rows=negated_rows,
    )


def build_initial_tableau(standard_form: StandardForm) -> np.ndarray:
    """
    One row per constraint plus the objective row (`Z - cX = 0`), RHS last.
    Penalised artificial columns are priced out of the objective row so the
    starting basis is canonical.
    """

    m = standard_form.num_constraints
    n = standard_form.num_variables
    n_orig = standard_form.num_original_variables

    tableau = np.zeros((m + 1, n + 1), dtype=float)
    for idx, row in enumerate(standard_form.constraints):
        tableau[idx, :n_orig] = row
        tableau[idx, -1] = standard_form.rhs[idx]
    for aux in standard_form.variable_types:
        tableau[aux.constraint_index, aux.column] = aux.coefficient

    tableau[-1, :n] = -np.asarray(standard_form.objective, dtype=float)

    for aux in standard_form.artificial_variables():
        weight = tableau[-1, aux.column]
        if weight != 0.0:
            tableau[-1] -= weight * tableau[aux.constraint_index]

    return tableau

import logging
from typing import Any, List, Mapping, Optional, Tuple

import numpy as np
from pydantic import ValidationError

from ..errors import InvalidProblem
from ..schemas import (
    IterationRecord,
    PivotRule,
    Problem,
    SimplexResult,
    SimplexSettings,
    Solution,
    StandardForm,
    Status,
)
from .utils import build_initial_tableau, build_standard_form

logger = logging.getLogger(__name__)


def simplex_solve(
    problem: Problem | Mapping[str, Any], settings: Optional[SimplexSettings] = None
) -> SimplexResult:
    """
    Dense-tableau primal simplex that records every pivot.
    Iteration 0 is the initial tableau; each later record holds the tableau
    after one pivot. Bad input and numerical faults come back as
    `error=True` results instead of exceptions.
    """

    opts = settings or SimplexSettings()

    try:
        if not isinstance(problem, Problem):
            problem = Problem.model_validate(problem)
        standard_form = build_standard_form(problem, opts)
        tableau = build_initial_tableau(standard_form)
    except (InvalidProblem, ValidationError) as exc:
        logger.info("Rejected problem: %s", exc)
        return SimplexResult(error=True, message=str(exc), iterations=[])

    iterations: List[IterationRecord] = [
        IterationRecord(iteration=0, phase="initial", tableau=tableau.tolist())
    ]

    try:
        with np.errstate(divide="raise", invalid="raise"):
            status, tableau = _run_simplex(tableau, opts, iterations)
            if status == "optimal" and _artificial_in_basis(tableau, standard_form, opts.epsilon):
                status = "infeasible"
            solution = extract_solution(tableau, standard_form, status, opts.epsilon)
    except (ArithmeticError, ValueError, IndexError) as exc:
        logger.warning("Simplex aborted after %d records: %s", len(iterations), exc)
        return SimplexResult(
            error=True,
            message=f"Internal failure during iteration: {exc}",
            iterations=iterations,
            standard_form=standard_form,
        )

    logger.info("Simplex finished with status %s after %d pivots", status, len(iterations) - 1)
    return SimplexResult(
        status=status,
        solution=solution,
        iterations=iterations,
        standard_form=standard_form,
    )


def _run_simplex(
    tableau: np.ndarray, opts: SimplexSettings, iterations: List[IterationRecord]
) -> Tuple[Status, np.ndarray]:
    count = 0
    while count < opts.max_iterations:
        if is_optimal(tableau, opts.epsilon):
            iterations[-1].is_optimal = True
            return "optimal", tableau

        count += 1

        col = select_entering_column(tableau, opts.epsilon, opts.pivot_rule)
        if col is None:
            iterations[-1].is_optimal = True
            return "optimal", tableau

        row = select_leaving_row(tableau, col, opts.epsilon, opts.pivot_rule)
        if row is None:
            iterations.append(
                IterationRecord(
                    iteration=count,
                    phase="unbounded",
                    tableau=tableau.tolist(),
                    entering_variable=col,
                    unbounded=True,
                )
            )
            return "unbounded", tableau

        element = float(tableau[row, col])
        leaving = basic_variable_in_row(tableau, row, opts.epsilon)
        tableau = pivot(tableau, row, col)
        logger.debug(
            "Pivot %d: row %d, col %d, element %.6g, leaving %s", count, row, col, element, leaving
        )

        iterations.append(
            IterationRecord(
                iteration=count,
                phase="iteration",
                tableau=tableau.tolist(),
                pivot_row=row,
                pivot_col=col,
                pivot_element=element,
                entering_variable=col,
                leaving_variable=leaving,
            )
        )

    # the last permitted pivot may itself have reached the optimum
    if is_optimal(tableau, opts.epsilon):
        iterations[-1].is_optimal = True
        return "optimal", tableau

    logger.warning("Iteration cap of %d reached before optimality", opts.max_iterations)
    return "max_iterations", tableau


def is_optimal(tableau: np.ndarray, epsilon: float) -> bool:
    return bool(np.all(tableau[-1, :-1] >= -epsilon))


def select_entering_column(
    tableau: np.ndarray, epsilon: float, pivot_rule: PivotRule = "dantzig"
) -> Optional[int]:
    """
    Dantzig: most negative objective-row entry below -epsilon; an entry has
    to beat the current best by more than epsilon, so near ties stay with the
    leftmost column. Bland: leftmost entry below -epsilon.
    """

    objective_row = tableau[-1, :-1]
    if pivot_rule == "bland":
        candidates = np.flatnonzero(objective_row < -epsilon)
        return int(candidates[0]) if candidates.size else None

    best_value = 0.0
    best_col: Optional[int] = None
    for col, value in enumerate(objective_row):
        if value < best_value - epsilon:
            best_value = float(value)
            best_col = col
    return best_col


def select_leaving_row(
    tableau: np.ndarray, pivot_col: int, epsilon: float, pivot_rule: PivotRule = "dantzig"
) -> Optional[int]:
    """Minimum-ratio test over rows whose pivot-column coefficient exceeds epsilon."""

    ratios: List[Tuple[float, int]] = []
    for row in range(tableau.shape[0] - 1):
        coef = tableau[row, pivot_col]
        if coef > epsilon:
            ratio = float(tableau[row, -1] / coef)
            if ratio >= 0:
                ratios.append((ratio, row))

    if not ratios:
        return None

    if pivot_rule == "bland":
        theta = min(ratio for ratio, _ in ratios)
        tied = [row for ratio, row in ratios if ratio - theta <= epsilon]

        def basic_index(row: int) -> float:
            col = basic_variable_in_row(tableau, row, epsilon)
            return float("inf") if col is None else col

        return min(tied, key=basic_index)

    # min() keeps the first of equal ratios, i.e. the topmost row
    return min(ratios, key=lambda item: item[0])[1]


def pivot(tableau: np.ndarray, pivot_row: int, pivot_col: int) -> np.ndarray:
    """Gauss-Jordan step on a copy: unit pivot entry, zeros elsewhere in the pivot column."""

    result = np.array(tableau, dtype=float, copy=True)
    result[pivot_row] = result[pivot_row] / result[pivot_row, pivot_col]
    for row in range(result.shape[0]):
        if row == pivot_row:
            continue
        factor = result[row, pivot_col]
        if factor != 0.0:
            result[row] = result[row] - factor * result[pivot_row]
    return result


def _unit_row(column: np.ndarray, epsilon: float) -> Optional[int]:
    ones = np.abs(column - 1.0) < epsilon
    zeros = np.abs(column) <= epsilon
    if np.count_nonzero(ones) == 1 and np.all(ones | zeros):
        return int(np.argmax(ones))
    return None


def basic_variable_in_row(tableau: np.ndarray, row: int, epsilon: float) -> Optional[int]:
    """
    Leftmost column that is a unit vector over the constraint rows with its 1
    in `row` and a zero objective-row entry. Columns that merely look like a
    unit vector but still carry a reduced cost are not basic.
    """

    constraint_rows = tableau[:-1]
    for col in range(tableau.shape[1] - 1):
        if abs(tableau[-1, col]) > epsilon:
            continue
        if _unit_row(constraint_rows[:, col], epsilon) == row:
            return col
    return None


def row_basis(tableau: np.ndarray, epsilon: float) -> List[Optional[int]]:
    """Basic column of every constraint row; each row is claimed by at most one column."""
    return [basic_variable_in_row(tableau, row, epsilon) for row in range(tableau.shape[0] - 1)]


def _artificial_in_basis(tableau: np.ndarray, standard_form: StandardForm, epsilon: float) -> bool:
    artificial_columns = {aux.column for aux in standard_form.artificial_variables()}
    for row, col in enumerate(row_basis(tableau, epsilon)):
        if col in artificial_columns and abs(tableau[row, -1]) > epsilon:
            return True
    return False


def extract_solution(
    tableau: np.ndarray, standard_form: StandardForm, status: Status, epsilon: float
) -> Solution:
    """
    Read the decision variables off the tableau. Every constraint row gives
    its right-hand side to the one column basic there; original columns that
    are basic nowhere (including noisy ones) read as 0.
    """

    n_orig = standard_form.num_original_variables
    values = [0.0] * n_orig
    for row, col in enumerate(row_basis(tableau, epsilon)):
        if col is not None and col < n_orig:
            values[col] = float(tableau[row, -1])

    if status in ("infeasible", "max_iterations") and standard_form.artificial_count:
        # the objective cell may still hold big-M penalty terms
        objective_value = float(np.dot(standard_form.objective[:n_orig], values))
    else:
        objective_value = float(tableau[-1, -1])
    if standard_form.original_type == "min":
        objective_value = -objective_value
    if abs(objective_value) < 1e-12:
        objective_value = 0.0

    return Solution(variables=values, objective_value=objective_value, status=status)

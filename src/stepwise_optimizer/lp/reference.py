from __future__ import annotations

import math
from typing import Any, Dict, Optional, Tuple

import numpy as np
from scipy.optimize import linprog

from ..schemas import ConstraintType, Problem, SimplexResult, SimplexSettings, Solution, Status
from .simplex import simplex_solve
from .utils import validate_problem


def solve_reference(problem: Problem) -> SimplexResult:
    """Solve the same problem with SciPy's HiGHS backend, for cross-checking the tableau engine."""

    validate_problem(problem)
    c = np.asarray(problem.objective, dtype=float)
    A_ub, b_ub, A_eq, b_eq = _build_constraint_matrices(problem)

    sense_factor = 1.0 if problem.type == "min" else -1.0
    res = linprog(
        c * sense_factor,
        A_ub=A_ub if A_ub.size else None,
        b_ub=b_ub if b_ub.size else None,
        A_eq=A_eq if A_eq.size else None,
        b_eq=b_eq if b_eq.size else None,
        bounds=[(0, None)] * len(c),
        method="highs",
    )

    status = _map_status(res.status)
    if not res.success:
        return SimplexResult(status=status, solution=None, message=res.message)

    solution = Solution(
        variables=[float(value) for value in res.x],
        objective_value=float(res.fun * sense_factor),
        status=status,
    )
    return SimplexResult(status=status, solution=solution, message=res.message or "")


def cross_check(problem: Problem, settings: Optional[SimplexSettings] = None) -> Dict[str, Any]:
    opts = settings or SimplexSettings()
    engine = simplex_solve(problem, opts)
    reference = solve_reference(problem)

    agrees = engine.status == reference.status
    if agrees and engine.solution is not None and reference.solution is not None:
        agrees = math.isclose(
            engine.solution.objective_value,
            reference.solution.objective_value,
            rel_tol=opts.epsilon,
            abs_tol=opts.epsilon,
        )

    return {
        "engine": engine.model_dump(exclude={"iterations"}),
        "reference": reference.model_dump(exclude={"iterations"}),
        "agrees": agrees,
    }


def _build_constraint_matrices(problem: Problem) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    n = len(problem.objective)
    A_ub = []
    b_ub = []
    A_eq = []
    b_eq = []

    for row, rhs, cmp in zip(problem.constraints, problem.rhs, problem.constraint_types):
        if cmp == ConstraintType.LE:
            A_ub.append(list(row))
            b_ub.append(rhs)
        elif cmp == ConstraintType.GE:
            A_ub.append([-value for value in row])
            b_ub.append(-rhs)
        else:
            A_eq.append(list(row))
            b_eq.append(rhs)

    return (
        np.array(A_ub, dtype=float) if A_ub else np.empty((0, n)),
        np.array(b_ub, dtype=float) if b_ub else np.empty(0),
        np.array(A_eq, dtype=float) if A_eq else np.empty((0, n)),
        np.array(b_eq, dtype=float) if b_eq else np.empty(0),
    )


def _map_status(code: int) -> Status:
    mapping: Dict[int, Status] = {
        0: "optimal",
        1: "max_iterations",
        2: "infeasible",
        3: "unbounded",
    }
    return mapping.get(code, "max_iterations")

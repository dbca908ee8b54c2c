import logging
import math
from typing import List, Optional, Sequence, Tuple

from ..errors import InvalidProblem
from ..lp.utils import validate_problem
from ..schemas import (
    EPSILON,
    ConstraintType,
    GraphicResult,
    GraphicStep,
    Problem,
    Solution,
    Vertex,
    VertexEvaluation,
)

logger = logging.getLogger(__name__)


def can_solve(problem: Problem) -> Tuple[bool, str]:
    num_vars = len(problem.objective)
    if num_vars != 2:
        return False, (
            "The graphical method only handles problems with 2 variables; "
            f"this problem has {num_vars}."
        )
    return True, ""


def solve_graphic(problem: Problem, epsilon: float = EPSILON) -> GraphicResult:
    """
    Two-variable vertex enumeration: intersect every pair of constraint
    lines (axes included), keep the feasible corners, and evaluate the
    objective at each one.
    """

    ok, reason = can_solve(problem)
    if not ok:
        return GraphicResult(error=True, message=reason)

    try:
        validate_problem(problem)
    except InvalidProblem as exc:
        return GraphicResult(error=True, message=str(exc))

    steps: List[GraphicStep] = [GraphicStep(step=1, title="Problem identification")]

    vertices = find_vertices(problem, epsilon)
    steps.append(GraphicStep(step=2, title="Feasible region vertices", vertices=list(vertices)))

    evaluations = evaluate_objective(problem, vertices)
    steps.append(GraphicStep(step=3, title="Objective evaluation", evaluations=list(evaluations)))

    if not evaluations:
        logger.info("Graphical method found no feasible vertex")
        return GraphicResult(
            error=True,
            message="No feasible vertices were found; the problem may be infeasible.",
            vertices=vertices,
            steps=steps,
        )

    if problem.type == "max":
        best = max(evaluations, key=lambda item: item.z)
    else:
        best = min(evaluations, key=lambda item: item.z)
    steps.append(GraphicStep(step=4, title="Optimal solution", optimal_point=best))

    return GraphicResult(
        status="optimal",
        vertices=vertices,
        evaluations=evaluations,
        optimal_point=best,
        solution=Solution(variables=[best.x, best.y], objective_value=best.z, status="optimal"),
        steps=steps,
    )


def find_intersection(
    first: Sequence[float],
    first_rhs: float,
    second: Sequence[float],
    second_rhs: float,
    epsilon: float = EPSILON,
) -> Optional[Vertex]:
    """Cramer's rule for two lines; None when they are parallel."""

    a1, b1 = first
    a2, b2 = second
    det = a1 * b2 - a2 * b1
    if abs(det) < epsilon:
        return None
    x = (first_rhs * b2 - second_rhs * b1) / det
    y = (a1 * second_rhs - a2 * first_rhs) / det
    return Vertex(x=x, y=y)


def is_feasible(
    point: Vertex,
    constraints: Sequence[Sequence[float]],
    rhs: Sequence[float],
    types: Sequence[ConstraintType],
    epsilon: float = EPSILON,
) -> bool:
    if point.x < -epsilon or point.y < -epsilon:
        return False

    for (a, b), limit, cmp in zip(constraints, rhs, types):
        value = a * point.x + b * point.y
        if cmp == ConstraintType.LE and value > limit + epsilon:
            return False
        if cmp == ConstraintType.GE and value < limit - epsilon:
            return False
        if cmp == ConstraintType.EQ and abs(value - limit) > epsilon:
            return False
    return True


def find_vertices(problem: Problem, epsilon: float = EPSILON) -> List[Vertex]:
    constraints = [list(row) for row in problem.constraints] + [[1.0, 0.0], [0.0, 1.0]]
    rhs = list(problem.rhs) + [0.0, 0.0]
    types = list(problem.constraint_types) + [ConstraintType.GE, ConstraintType.GE]

    vertices: List[Vertex] = []
    for i in range(len(constraints)):
        for j in range(i + 1, len(constraints)):
            point = find_intersection(constraints[i], rhs[i], constraints[j], rhs[j], epsilon)
            if point is None or not is_feasible(point, constraints, rhs, types, epsilon):
                continue
            duplicate = any(
                abs(v.x - point.x) < epsilon and abs(v.y - point.y) < epsilon for v in vertices
            )
            if not duplicate:
                vertices.append(point)

    vertices.sort(key=lambda v: math.atan2(v.y, v.x))
    return vertices


def evaluate_objective(problem: Problem, vertices: Sequence[Vertex]) -> List[VertexEvaluation]:
    c1, c2 = problem.objective
    return [VertexEvaluation(x=v.x, y=v.y, z=c1 * v.x + c2 * v.y) for v in vertices]

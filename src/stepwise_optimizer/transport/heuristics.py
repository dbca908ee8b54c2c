import logging
from typing import Dict, List, Optional, Sequence, Tuple

from ..errors import InvalidProblem
from ..schemas import EPSILON, AllocationStep, TransportationProblem, TransportationResult

logger = logging.getLogger(__name__)


def validate_transportation(problem: TransportationProblem, epsilon: float = EPSILON) -> None:
    m = len(problem.supply)
    n = len(problem.demand)
    if m == 0 or n == 0:
        raise InvalidProblem("Transportation problem needs at least one origin and one destination.")
    if len(problem.costs) != m:
        raise InvalidProblem(f"Expected {m} cost rows, got {len(problem.costs)}.")
    for idx, row in enumerate(problem.costs):
        if len(row) != n:
            raise InvalidProblem(f"Cost row {idx} has {len(row)} entries, expected {n}.")
    if any(value < 0 for value in [*problem.supply, *problem.demand]):
        raise InvalidProblem("Supply and demand must be non-negative.")
    if abs(sum(problem.supply) - sum(problem.demand)) > epsilon:
        raise InvalidProblem(
            f"Unbalanced problem: total supply {sum(problem.supply)} "
            f"differs from total demand {sum(problem.demand)}."
        )


def total_cost(allocation: Sequence[Sequence[float]], costs: Sequence[Sequence[float]]) -> float:
    return float(
        sum(qty * cost for alloc_row, cost_row in zip(allocation, costs) for qty, cost in zip(alloc_row, cost_row))
    )


def _start(problem: TransportationProblem) -> Tuple[List[float], List[float], List[List[float]]]:
    supply = [float(value) for value in problem.supply]
    demand = [float(value) for value in problem.demand]
    allocation = [[0.0] * len(demand) for _ in supply]
    return supply, demand, allocation


def _assign(
    i: int,
    j: int,
    supply: List[float],
    demand: List[float],
    allocation: List[List[float]],
    costs: Sequence[Sequence[float]],
    **penalties,
) -> AllocationStep:
    quantity = min(supply[i], demand[j])
    allocation[i][j] = quantity
    step = AllocationStep(
        origin=i,
        destination=j,
        quantity=quantity,
        cost=costs[i][j],
        remaining_supply=list(supply),
        remaining_demand=list(demand),
        **penalties,
    )
    supply[i] -= quantity
    demand[j] -= quantity
    return step


def northwest_corner(problem: TransportationProblem, epsilon: float = EPSILON) -> TransportationResult:
    """Start at the top-left cell and move right or down as lines are exhausted."""

    validate_transportation(problem, epsilon)
    supply, demand, allocation = _start(problem)
    steps: List[AllocationStep] = []

    i, j = 0, 0
    while i < len(supply) and j < len(demand):
        steps.append(_assign(i, j, supply, demand, allocation, problem.costs))
        if supply[i] <= epsilon:
            i += 1
        if demand[j] <= epsilon:
            j += 1

    return TransportationResult(
        method="northwest_corner",
        allocation=allocation,
        total_cost=total_cost(allocation, problem.costs),
        steps=steps,
    )


def least_cost(problem: TransportationProblem, epsilon: float = EPSILON) -> TransportationResult:
    """Fill cells cheapest first; equal costs keep row-major order."""

    validate_transportation(problem, epsilon)
    supply, demand, allocation = _start(problem)
    steps: List[AllocationStep] = []

    cells = sorted(
        ((i, j) for i in range(len(supply)) for j in range(len(demand))),
        key=lambda cell: problem.costs[cell[0]][cell[1]],
    )
    for i, j in cells:
        if supply[i] <= epsilon or demand[j] <= epsilon:
            continue
        steps.append(_assign(i, j, supply, demand, allocation, problem.costs))

    return TransportationResult(
        method="least_cost",
        allocation=allocation,
        total_cost=total_cost(allocation, problem.costs),
        steps=steps,
    )


def _penalty(active_costs: List[float]) -> float:
    # -1 marks an exhausted line; a lone cost is its own penalty
    if not active_costs:
        return -1.0
    if len(active_costs) == 1:
        return active_costs[0]
    lowest, second = sorted(active_costs)[:2]
    return second - lowest


def vogel_approximation(problem: TransportationProblem, epsilon: float = EPSILON) -> TransportationResult:
    """
    Vogel's approximation: allocate where the gap between the two cheapest
    remaining options of a row or column is largest. Rows win ties against
    columns, and the first line with the maximum penalty is chosen.
    """

    validate_transportation(problem, epsilon)
    costs = problem.costs
    supply, demand, allocation = _start(problem)
    steps: List[AllocationStep] = []
    m, n = len(supply), len(demand)

    while any(value > epsilon for value in supply) and any(value > epsilon for value in demand):
        open_rows = [i for i in range(m) if supply[i] > epsilon]
        open_cols = [j for j in range(n) if demand[j] > epsilon]

        row_penalties = [
            _penalty([costs[i][j] for j in open_cols]) if i in open_rows else -1.0 for i in range(m)
        ]
        column_penalties = [
            _penalty([costs[i][j] for i in open_rows]) if j in open_cols else -1.0 for j in range(n)
        ]
        max_row = max(row_penalties)
        max_col = max(column_penalties)

        if max_row >= max_col:
            i = row_penalties.index(max_row)
            j = _cheapest(open_cols, lambda col: costs[i][col])
        else:
            j = column_penalties.index(max_col)
            i = _cheapest(open_rows, lambda row: costs[row][j])

        if i is None or j is None:
            break
        steps.append(
            _assign(
                i,
                j,
                supply,
                demand,
                allocation,
                costs,
                row_penalties=row_penalties,
                column_penalties=column_penalties,
                max_penalty=max(max_row, max_col),
            )
        )

    return TransportationResult(
        method="vogel",
        allocation=allocation,
        total_cost=total_cost(allocation, costs),
        steps=steps,
    )


def _cheapest(candidates: List[int], cost_of) -> Optional[int]:
    if not candidates:
        return None
    return min(candidates, key=cost_of)


def solve_all(problem: TransportationProblem, epsilon: float = EPSILON) -> Dict[str, TransportationResult]:
    results = {
        "northwest_corner": northwest_corner(problem, epsilon),
        "least_cost": least_cost(problem, epsilon),
        "vogel": vogel_approximation(problem, epsilon),
    }
    logger.debug(
        "Transportation costs: %s",
        {name: result.total_cost for name, result in results.items()},
    )
    return results

#!/usr/bin/env python3
import time

from stepwise_optimizer.lp.reference import solve_reference
from stepwise_optimizer.lp.simplex import simplex_solve
from stepwise_optimizer.schemas import Problem, SimplexSettings
from scripts.generate_instances import generate_random_problem


def production_example() -> Problem:
    return Problem(
        type="max",
        objective=[40, 30],
        constraints=[[1, 1], [2, 1], [1, 2]],
        rhs=[12, 16, 15],
        constraint_types=["<=", "<=", "<="],
    )


def main() -> None:
    settings = SimplexSettings()
    cases = [("production", production_example())]
    for seed in range(3):
        cases.append((f"random-{seed}", generate_random_problem(3, 3, seed)))

    print("name,status,objective,reference,pivots,time_ms")
    for name, problem in cases:
        start = time.perf_counter()
        result = simplex_solve(problem, settings)
        elapsed_ms = (time.perf_counter() - start) * 1000
        reference = solve_reference(problem)
        objective = result.solution.objective_value if result.solution else None
        expected = reference.solution.objective_value if reference.solution else None
        print(
            f"{name},{result.status},{objective},{expected},{len(result.iterations) - 1},{elapsed_ms:.2f}"
        )


if __name__ == "__main__":
    main()

"""Stepwise Optimizer: linear programming solvers that record how they got there."""

from .errors import InvalidProblem
from .lp.simplex import simplex_solve
from .schemas import Problem, SimplexResult, SimplexSettings, Solution

__all__ = [
    "InvalidProblem",
    "Problem",
    "SimplexResult",
    "SimplexSettings",
    "Solution",
    "simplex_solve",
]

"""Tableau simplex engine and its SciPy cross-check."""

from .simplex import simplex_solve, pivot, extract_solution, row_basis
from .utils import build_standard_form, build_initial_tableau
from .reference import solve_reference, cross_check

__all__ = [
    "simplex_solve",
    "pivot",
    "extract_solution",
    "row_basis",
    "build_standard_form",
    "build_initial_tableau",
    "solve_reference",
    "cross_check",
]

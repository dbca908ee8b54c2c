"""Initial-solution heuristics for balanced transportation problems."""

from .heuristics import northwest_corner, least_cost, vogel_approximation, solve_all, total_cost

__all__ = ["northwest_corner", "least_cost", "vogel_approximation", "solve_all", "total_cost"]

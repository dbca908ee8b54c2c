"""Two-variable graphical method."""

from .solver import solve_graphic, can_solve, find_intersection

__all__ = ["solve_graphic", "can_solve", "find_intersection"]

from __future__ import annotations

import logging
import os

from mcp.server.fastmcp import FastMCP

from .formatters import DECIMAL_PLACES, format_number
from .graphic.solver import solve_graphic
from .lp.reference import cross_check
from .lp.simplex import simplex_solve
from .schemas import Problem, SimplexSettings, TransportationProblem
from .transport.heuristics import solve_all

app = FastMCP("Stepwise Optimizer")


@app.tool()
def solve_simplex(problem: Problem, settings: SimplexSettings | None = None) -> dict:
    """Solve a linear program with the tableau simplex method and return every iteration."""
    opts = settings or SimplexSettings()
    return simplex_solve(problem, opts).model_dump()


@app.tool()
def solve_graphic_method(problem: Problem) -> dict:
    """Solve a two-variable linear program by enumerating feasible vertices."""
    return solve_graphic(problem).model_dump()


@app.tool()
def solve_transportation(problem: TransportationProblem) -> dict:
    """Build initial transportation plans with northwest corner, least cost and Vogel."""
    return {name: result.model_dump() for name, result in solve_all(problem).items()}


@app.tool()
def cross_check_reference(problem: Problem, settings: SimplexSettings | None = None) -> dict:
    """Compare the tableau engine against SciPy's HiGHS solver."""
    return cross_check(problem, settings)


@app.tool()
def format_value(value: float, decimals: int = DECIMAL_PLACES) -> str:
    """Format a number the way tableaus are displayed (space-grouped, near-zero as 0)."""
    return format_number(value, decimals)


def main() -> None:
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO"))
    if os.environ.get("MCP_TRANSPORT", "stdio") == "stdio":
        app.run(transport="stdio")
        return

    app.settings.host = os.environ.get("HOST", "127.0.0.1")
    app.settings.port = int(os.environ.get("PORT", "8081"))
    app.run(transport="streamable-http")


if __name__ == "__main__":
    main()

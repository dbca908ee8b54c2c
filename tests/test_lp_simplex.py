import numpy as np
import pytest

from stepwise_optimizer.lp import simplex as simplex_module
from stepwise_optimizer.lp.simplex import (
    basic_variable_in_row,
    extract_solution,
    pivot,
    select_entering_column,
    select_leaving_row,
    simplex_solve,
)
from stepwise_optimizer.lp.utils import build_initial_tableau, build_standard_form
from stepwise_optimizer.schemas import Problem, SimplexSettings

EPS = 1e-4


def make_problem(sense, objective, constraints, rhs, types) -> Problem:
    return Problem(
        type=sense,
        objective=objective,
        constraints=constraints,
        rhs=rhs,
        constraint_types=types,
    )


def basic_problem() -> Problem:
    return make_problem("max", [3, 5], [[1, 0], [0, 2]], [4, 12], ["<=", "<="])


def production_problem() -> Problem:
    return make_problem("max", [40, 30], [[1, 1], [2, 1], [1, 2]], [12, 16, 15], ["<=", "<=", "<="])


def equality_problem() -> Problem:
    return make_problem("max", [3, 2], [[1, 1], [1, 0]], [4, 3], ["=", "<="])


def lower_bound_problem() -> Problem:
    return make_problem("max", [5, 4], [[1, 0], [1, 1]], [2, 10], [">=", "<="])


def assert_feasible(problem: Problem, values):
    for row, rhs, cmp in zip(problem.constraints, problem.rhs, problem.constraint_types):
        lhs = sum(coef * value for coef, value in zip(row, values))
        if cmp.value == "<=":
            assert lhs <= rhs + EPS
        elif cmp.value == ">=":
            assert lhs >= rhs - EPS
        else:
            assert lhs == pytest.approx(rhs, abs=EPS)
    assert all(value >= -EPS for value in values)


def test_basic_maximisation():
    result = simplex_solve(basic_problem())

    assert result.error is False
    assert result.status == "optimal"
    assert result.solution.objective_value == pytest.approx(42.0)
    assert result.solution.variables == pytest.approx([4.0, 6.0])
    assert result.iterations[-1].is_optimal is True


def test_production_problem():
    result = simplex_solve(production_problem())

    assert result.status == "optimal"
    assert result.solution.objective_value == pytest.approx(1100 / 3, rel=1e-6)
    assert result.solution.variables == pytest.approx([17 / 3, 14 / 3], rel=1e-6)
    assert_feasible(production_problem(), result.solution.variables)


def test_minimisation_over_upper_bounds_stays_at_origin():
    problem = make_problem("min", [2, 3], [[1, 1], [1, 0], [0, 1]], [10, 6, 8], ["<=", "<=", "<="])
    result = simplex_solve(problem)

    assert result.status == "optimal"
    assert result.solution.objective_value == pytest.approx(0.0, abs=EPS)
    assert result.solution.variables == pytest.approx([0.0, 0.0], abs=EPS)
    assert len(result.iterations) == 1


def test_unbounded_problem():
    problem = make_problem("max", [1, 1], [[-1, 0]], [0], ["<="])
    result = simplex_solve(problem)

    assert result.error is False
    assert result.status == "unbounded"
    assert result.iterations[-1].unbounded is True
    assert result.iterations[-1].phase == "unbounded"
    assert result.solution.status == "unbounded"


def test_equality_constraint_is_met():
    result = simplex_solve(equality_problem())

    assert result.status == "optimal"
    assert result.solution.objective_value == pytest.approx(11.0)
    assert result.solution.variables == pytest.approx([3.0, 1.0])
    x1, x2 = result.solution.variables
    assert abs(x1 + x2 - 4) < EPS


def test_greater_equal_lower_bound_is_respected():
    result = simplex_solve(lower_bound_problem())

    assert result.status == "optimal"
    assert result.solution.variables[0] >= 2 - EPS
    assert result.solution.objective_value == pytest.approx(50.0)
    assert_feasible(lower_bound_problem(), result.solution.variables)


def test_zero_cost_artificials_reproduce_equality_result():
    result = simplex_solve(equality_problem(), SimplexSettings(artificial_method="none"))

    assert result.status == "optimal"
    assert result.solution.objective_value == pytest.approx(11.0)


def test_big_m_drives_minimisation_to_lower_bound():
    problem = make_problem("min", [1], [[1]], [2], [">="])
    result = simplex_solve(problem)

    assert result.status == "optimal"
    assert result.solution.variables == pytest.approx([2.0])
    assert result.solution.objective_value == pytest.approx(2.0)


@pytest.mark.parametrize("method", ["big_m", "none"])
def test_contradictory_bounds_are_infeasible(method):
    problem = make_problem("max", [1], [[1], [1]], [1, 2], ["<=", ">="])
    result = simplex_solve(problem, SimplexSettings(artificial_method=method))

    assert result.error is False
    assert result.status == "infeasible"


def test_first_pivot_is_recorded():
    result = simplex_solve(basic_problem())
    first = result.iterations[1]

    assert first.iteration == 1
    assert first.phase == "iteration"
    assert first.pivot_row == 1
    assert first.pivot_col == 1
    assert first.entering_variable == 1
    assert first.leaving_variable == 3
    assert first.pivot_element == pytest.approx(2.0)


def test_initial_record_is_untouched_tableau():
    result = simplex_solve(production_problem())
    initial = result.iterations[0]

    assert initial.iteration == 0
    assert initial.phase == "initial"
    assert initial.tableau[-1] == [-40.0, -30.0, 0.0, 0.0, 0.0, 0.0]
    assert initial.tableau[1] == [2.0, 1.0, 0.0, 1.0, 0.0, 16.0]


def test_snapshots_are_independent():
    result = simplex_solve(production_problem())
    before = [row[:] for row in result.iterations[0].tableau]

    result.iterations[1].tableau[0][0] = 999.0

    assert result.iterations[0].tableau == before
    assert result.iterations[2].tableau[0][0] != 999.0


@pytest.mark.parametrize(
    "problem_factory", [basic_problem, production_problem, equality_problem, lower_bound_problem]
)
def test_objective_cell_never_decreases(problem_factory):
    result = simplex_solve(problem_factory())
    values = [record.tableau[-1][-1] for record in result.iterations]

    assert all(later >= earlier - EPS for earlier, later in zip(values, values[1:]))


def test_resolve_is_identical():
    first = simplex_solve(production_problem())
    second = simplex_solve(production_problem())

    assert len(first.iterations) == len(second.iterations)
    assert first.solution == second.solution
    assert first.model_dump() == second.model_dump()


def test_iteration_cap_reports_max_iterations():
    result = simplex_solve(production_problem(), SimplexSettings(max_iterations=1))

    assert result.status == "max_iterations"
    assert result.solution.status == "max_iterations"
    assert len(result.iterations) - 1 <= 1
    # the best tableau so far is still read
    assert result.solution.objective_value == pytest.approx(320.0)


def test_default_cap_bounds_record_count():
    result = simplex_solve(production_problem())
    assert max(record.iteration for record in result.iterations) <= 100


def test_bland_rule_reaches_the_same_optimum():
    dantzig = simplex_solve(production_problem())
    bland = simplex_solve(production_problem(), SimplexSettings(pivot_rule="bland"))

    assert bland.status == "optimal"
    assert bland.solution.objective_value == pytest.approx(dantzig.solution.objective_value)


def test_mapping_payload_is_accepted():
    payload = {
        "type": "max",
        "objective": [3, 5],
        "constraints": [[1, 0], [0, 2]],
        "rhs": [4, 12],
        "constraint_types": ["≤", "≤"],
    }
    result = simplex_solve(payload)

    assert result.status == "optimal"
    assert result.solution.objective_value == pytest.approx(42.0)


def test_unknown_relation_in_payload_is_an_error_result():
    payload = {
        "type": "max",
        "objective": [1],
        "constraints": [[1]],
        "rhs": [1],
        "constraint_types": ["<>"],
    }
    result = simplex_solve(payload)

    assert result.error is True
    assert result.message
    assert result.iterations == []
    assert result.status is None


def test_zero_constraints_is_an_error_result():
    problem = make_problem("max", [1, 1], [], [], [])
    result = simplex_solve(problem)

    assert result.error is True
    assert "no constraints" in result.message
    assert result.iterations == []


def test_internal_fault_keeps_partial_log(monkeypatch):
    def broken_pivot(tableau, row, col):
        raise ZeroDivisionError("pivot element vanished")

    monkeypatch.setattr(simplex_module, "pivot", broken_pivot)
    result = simplex_solve(basic_problem())

    assert result.error is True
    assert "pivot element vanished" in result.message
    assert len(result.iterations) == 1
    assert result.iterations[0].phase == "initial"


def test_pivot_returns_new_tableau():
    tableau = np.array([[2.0, 1.0, 1.0, 0.0, 10.0], [3.0, 2.0, 0.0, 1.0, 15.0], [-3.0, -2.0, 0.0, 0.0, 0.0]])
    original = tableau.copy()

    result = pivot(tableau, 0, 0)

    np.testing.assert_array_equal(tableau, original)
    np.testing.assert_allclose(result[0], [1.0, 0.5, 0.5, 0.0, 5.0])
    np.testing.assert_allclose(result[1], [0.0, 0.5, -1.5, 1.0, 0.0])
    np.testing.assert_allclose(result[2], [0.0, -0.5, 1.5, 0.0, 15.0])


def test_entering_column_prefers_leftmost_on_ties():
    tableau = np.array([[1.0, 1.0, 1.0, 4.0], [-5.0, -5.0, -1.0, 0.0]])
    assert select_entering_column(tableau, EPS) == 0

    nearly_tied = np.array([[1.0, 1.0, 1.0, 4.0], [-5.0, -5.00001, -1.0, 0.0]])
    assert select_entering_column(nearly_tied, EPS) == 0

    optimal = np.array([[1.0, 1.0, 4.0], [0.0, -0.00001, 0.0]])
    assert select_entering_column(optimal, EPS) is None


def test_bland_entering_takes_first_negative():
    tableau = np.array([[1.0, 1.0, 1.0, 4.0], [-1.0, -5.0, 0.0, 0.0]])
    assert select_entering_column(tableau, EPS, "bland") == 0


def test_leaving_row_takes_topmost_minimum_ratio():
    tableau = np.array(
        [
            [2.0, 1.0, 0.0, 0.0, 4.0],
            [1.0, 0.0, 1.0, 0.0, 2.0],
            [-1.0, 0.0, 0.0, 1.0, 3.0],
            [-1.0, 0.0, 0.0, 0.0, 0.0],
        ]
    )
    assert select_leaving_row(tableau, 0, EPS) == 0
    assert select_leaving_row(tableau, 0, EPS, "bland") == 0

    no_positive = np.array([[-1.0, 1.0, 3.0], [-1.0, 0.0, 0.0]])
    assert select_leaving_row(no_positive, 0, EPS) is None


def test_basic_variable_in_row():
    tableau = np.array([[1.0, 0.0, 2.0, 5.0], [0.0, 1.0, 1.0, 3.0], [0.0, 0.0, 1.0, 8.0]])
    assert basic_variable_in_row(tableau, 0, EPS) == 0
    assert basic_variable_in_row(tableau, 1, EPS) == 1


def test_noisy_column_reads_as_non_basic():
    problem = basic_problem()
    form = build_standard_form(problem, SimplexSettings())
    tableau = build_initial_tableau(form)
    # column 0 has a 1 in row 0 and a stray 0.5 in row 1
    tableau[1, 0] = 0.5

    solution = extract_solution(tableau, form, "optimal", EPS)
    assert solution.variables[0] == 0.0


def test_alternative_optima_give_each_row_one_variable():
    problem = make_problem("max", [1, 1], [[1, 1]], [4], ["<="])
    result = simplex_solve(problem)

    assert result.status == "optimal"
    assert result.solution.variables == pytest.approx([4.0, 0.0])
    assert result.solution.objective_value == pytest.approx(4.0)
    assert_feasible(problem, result.solution.variables)


def test_unit_column_with_reduced_cost_is_not_basic():
    problem = make_problem("max", [0.5, 1], [[1, 1]], [4], ["<="])
    result = simplex_solve(problem)

    assert result.solution.variables == pytest.approx([0.0, 4.0])
    assert result.solution.objective_value == pytest.approx(4.0)


def test_negative_rhs_lower_bound_becomes_upper_bound():
    problem = make_problem("max", [1], [[-1]], [-3], [">="])
    result = simplex_solve(problem)

    assert result.status == "optimal"
    assert result.solution.variables == pytest.approx([3.0])
    assert result.solution.objective_value == pytest.approx(3.0)


def test_negative_rhs_upper_bound_is_infeasible():
    problem = make_problem("max", [-1, -1], [[1, 1]], [-1], ["<="])
    result = simplex_solve(problem)

    assert result.error is False
    assert result.status == "infeasible"
    assert all(value >= -EPS for value in result.solution.variables)
    assert result.solution.objective_value == pytest.approx(0.0, abs=EPS)


@pytest.mark.parametrize("method", ["big_m", "none"])
def test_infeasible_objective_excludes_penalty(method):
    problem = make_problem("max", [1], [[1], [1]], [1, 2], ["<=", ">="])
    result = simplex_solve(problem, SimplexSettings(artificial_method=method))

    assert result.solution.variables == pytest.approx([1.0])
    assert result.solution.objective_value == pytest.approx(1.0)


def test_optimum_reached_on_last_permitted_pivot():
    result = simplex_solve(basic_problem(), SimplexSettings(max_iterations=2))

    assert result.status == "optimal"
    assert len(result.iterations) == 3
    assert result.iterations[-1].is_optimal is True
    assert result.solution.objective_value == pytest.approx(42.0)

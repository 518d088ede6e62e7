from decimal import Decimal

import pytest

from knapsack_errors import InvariantViolation, ProblemSizeError
from knapsack_model import ProblemInstance
from knapsack_parser import parse_line
from knapsack_solvers import (
    SOLVERS,
    branch_and_bound_solver,
    brute_force_solver,
    dynamic_programming_solver,
    get_solver,
    greedy_approximation_solver,
    run_solver,
    solve_many,
)

EXACT = ["brute_force", "dynamic_programming", "branch_and_bound"]


@pytest.mark.parametrize("name", EXACT)
def test_exact_solvers_concrete_scenario(name, four_items):
    result = run_solver(name, four_items)
    assert result.solution.labels == (2, 4)
    assert result.total_price == Decimal("90")
    assert result.total_weight == Decimal("7.5")
    assert str(result) == "2,4"


def test_greedy_prefers_single_expensive_item(single_item_wins):
    assert greedy_approximation_solver(single_item_wins) == frozenset({2})
    result = run_solver("greedy", single_item_wins)
    assert result.total_price == Decimal("9")


def test_greedy_keeps_the_bag_when_it_is_better(four_items):
    assert greedy_approximation_solver(four_items) == frozenset({2, 4})


def test_greedy_skips_items_that_do_not_fit():
    inst = ProblemInstance.build("10", [(1, "6", "60"), (2, "5", "45"), (3, "4", "8")])
    # efficiency order 1, 2, 3: item 2 overflows but item 3 still goes in
    assert greedy_approximation_solver(inst) == frozenset({1, 3})


@pytest.mark.parametrize("name", sorted(SOLVERS))
def test_nothing_fits(name, nothing_fits):
    result = run_solver(name, nothing_fits)
    assert result.solution.labels == ()
    assert str(result) == "-"
    assert result.total_price == 0
    assert result.total_weight == 0


@pytest.mark.parametrize("name", sorted(SOLVERS))
def test_missing_instance_is_err(name):
    result = run_solver(name, None)
    assert result.solution is None
    assert result.total_price is None
    assert str(result) == "ERR"


@pytest.mark.parametrize("name", EXACT)
def test_sample_lines(name, sample_lines, sample_solutions):
    got = [str(run_solver(name, parse_line(i, line))) for i, line in enumerate(sample_lines, start=1)]
    assert got == sample_solutions


def test_equal_price_prefers_lighter_subset():
    inst = ProblemInstance.build("7", [(1, "6", "30"), (2, "3", "15"), (3, "2", "15")])
    # {1} and {2,3} both cost 30; {2,3} is lighter
    assert brute_force_solver(inst) == frozenset({2, 3})
    assert branch_and_bound_solver(inst) == frozenset({2, 3})
    # DP only takes an item when it strictly improves, so the first sorted item stays
    assert dynamic_programming_solver(inst) == frozenset({1})


def test_brute_force_breaks_full_ties_by_first_subset():
    inst = ProblemInstance.build("5", [(1, "5", "10"), (2, "5", "10")])
    assert brute_force_solver(inst) == frozenset({1})


def test_dynamic_programming_tie_policy():
    # price desc / weight asc sort + strict take: the lighter equal-price item is kept
    inst = ProblemInstance.build("5", [(1, "5", "10"), (2, "4", "10")])
    assert dynamic_programming_solver(inst) == frozenset({2})


def test_dynamic_programming_capacity_bound():
    ok = ProblemInstance.build("100", [(1, "0.01", "5"), (2, "50", "10")])
    assert dynamic_programming_solver(ok) == frozenset({1, 2})

    too_fine = ProblemInstance.build("100", [(1, "0.001", "5"), (2, "50", "10")])
    with pytest.raises(ProblemSizeError):
        dynamic_programming_solver(too_fine)
    # other strategies are not bounded by the table size
    assert branch_and_bound_solver(too_fine) == frozenset({1, 2})


def test_dynamic_programming_empty_instance():
    assert dynamic_programming_solver(ProblemInstance.build("0", [])) == frozenset()


def test_branch_and_bound_single_item():
    inst = ProblemInstance.build("3", [(1, "2.5", "7")])
    assert branch_and_bound_solver(inst) == frozenset({1})


def test_solvers_accept_keyword_instance():
    items = [(1, "5.3", "10"), (2, "4", "40"), (3, "6.7", "30"), (4, "3.5", "50")]
    assert dynamic_programming_solver(capacity="10", items=items) == frozenset({2, 4})
    assert branch_and_bound_solver(capacity="10", items=items) == frozenset({2, 4})
    with pytest.raises(TypeError):
        brute_force_solver()


def test_solvers_are_idempotent(sample_lines):
    for line_no, line in enumerate(sample_lines, start=1):
        inst = parse_line(line_no, line)
        for name, fn in SOLVERS.items():
            assert fn(inst) == fn(inst), name


def test_get_solver_unknown_name():
    assert get_solver("greedy") is greedy_approximation_solver
    with pytest.raises(KeyError):
        get_solver("simulated_annealing")


def test_run_solver_logs(four_items):
    result = run_solver("dynamic_programming", four_items)
    assert result.solver == "dynamic_programming"
    assert result.logs["params"]["method"] == "dynamic_programming"
    assert result.logs["final_price"] == Decimal("90")
    assert result.logs["solution_size"] == 2
    assert result.logs["infeasible"] is False
    assert result.logs["sanity_warnings"] == []


def test_run_solver_flags_infeasible_solution(four_items):
    take_all = lambda inst: frozenset(inst.index)  # noqa: E731
    result = run_solver(take_all, four_items)
    assert result.logs["infeasible"] is True
    assert result.logs["sanity_warnings"]
    with pytest.raises(InvariantViolation):
        run_solver(take_all, four_items, strict=True)


def test_run_solver_rejects_unknown_labels(four_items):
    with pytest.raises(InvariantViolation):
        run_solver(lambda inst: frozenset({99}), four_items)


def test_solve_many_keeps_order(sample_lines, sample_solutions):
    instances = [parse_line(i, line) for i, line in enumerate(sample_lines, start=1)] + [None]
    sequential = solve_many(instances, "branch_and_bound")
    threaded = solve_many(instances, "branch_and_bound", workers=4)
    assert [str(r) for r in sequential] == sample_solutions + ["ERR"]
    assert [str(r) for r in threaded] == sample_solutions + ["ERR"]


def test_solve_many_fallback():
    too_fine = ProblemInstance.build("100", [(1, "0.001", "5"), (2, "50", "10")])
    with pytest.raises(ProblemSizeError):
        solve_many([too_fine], "dynamic_programming")
    results = solve_many([too_fine], "dynamic_programming", fallback="branch_and_bound")
    assert results[0].solver == "branch_and_bound"
    assert str(results[0]) == "1,2"

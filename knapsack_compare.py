"""
Cross-validation of the four strategies on a single instance.

brute_force is the oracle: dynamic_programming and branch_and_bound must match
its price exactly, greedy must be within a factor of 2, and every solution must
be feasible.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from knapsack_errors import ProblemSizeError
from knapsack_model import ProblemInstance
from knapsack_solvers import SOLVERS, SolverResult, run_solver

ORACLE = "brute_force"
EXACT = ("dynamic_programming", "branch_and_bound")
APPROXIMATE = ("greedy",)


@dataclass(frozen=True)
class Comparison:
    results: Dict[str, SolverResult]
    skipped: Dict[str, str] = field(default_factory=dict)
    problems: List[str] = field(default_factory=list)

    @property
    def agrees(self) -> bool:
        return not self.problems

    @property
    def optimum(self) -> Optional[Decimal]:
        oracle = self.results.get(ORACLE)
        return None if oracle is None else oracle.total_price


def compare_solvers(instance: ProblemInstance) -> Comparison:
    results: Dict[str, SolverResult] = {}
    skipped: Dict[str, str] = {}
    problems: List[str] = []

    for name in SOLVERS:
        try:
            results[name] = run_solver(name, instance)
        except ProblemSizeError as e:
            logging.getLogger(__name__).info("%s skipped: %s", name, e)
            skipped[name] = str(e)

    best = results[ORACLE].total_price
    for name, res in results.items():
        if res.logs.get("infeasible"):
            problems.append(f"{name}: weight {res.total_weight} exceeds capacity {instance.capacity}")
        if name in EXACT and res.total_price != best:
            problems.append(f"{name}: price {res.total_price} != optimum {best}")
        if name in APPROXIMATE and res.total_price * 2 < best:
            problems.append(f"{name}: price {res.total_price} is below half of optimum {best}")

    for msg in problems:
        logging.getLogger(__name__).error("instance %s: %s", instance, msg)
    return Comparison(results=results, skipped=skipped, problems=problems)

"""
Implementations of the exact-decimal 0/1 knapsack solvers.

Each solver adheres to the same interface:
solver(instance: ProblemInstance) -> FrozenSet[int]

Returns the labels of the selected items. run_solver() wraps any of them and
produces a SolverResult:
1.  solution (Solution | None): selected labels, total weight/price, canonical string.
    None means no instance was available; str(result) is then "ERR".
2.  logs (Dict): run data (runtime, final_price, final_weight, sanity warnings).

The four strategies must agree on the optimal price (greedy: within a factor of 2),
so brute_force_solver doubles as the oracle for the other three.
"""

import heapq
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import Decimal
from functools import wraps
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Sequence, Tuple, Union

import numpy as np

from knapsack_errors import InvariantViolation, ProblemSizeError
from knapsack_model import Item, ProblemInstance, Solution
from knapsack_rules import MAX_INT_WEIGHT_FOR_DP, ZERO, decimal_scale, divide, scale_to_int

SolverFn = Callable[[ProblemInstance], FrozenSet[int]]


# --- compatibility decorator: accept an instance or capacity=/items= ---
def accept_instance(func):
    """
    Decorator that allows calling solver(capacity=..., items=[...]) in addition to
    solver(instance). When no instance is given, a ProblemInstance is built from the
    keyword arguments (with the usual validation) before calling the wrapped solver.
    """
    @wraps(func)
    def wrapper(instance: Optional[ProblemInstance] = None, *, capacity=None, items=None):
        if instance is None:
            if capacity is None:
                raise TypeError(f"{func.__name__}() needs an instance or capacity=/items=")
            instance = ProblemInstance.build(capacity, items or ())
        return func(instance)
    return wrapper
# ----------------------------------------------------------------------


def _base_logs(message, runtime, final_price=None, final_weight=None,
               solution_size=None, params=None, extra=None,
               capacity=None, strict=False):
    """
    Standardized logs for solver runs with sanity checks.

    Args:
      message (str): human readable status.
      runtime (float): elapsed seconds.
      final_price (Decimal|None): total price of the returned solution.
      final_weight (Decimal|None): total weight of the returned solution.
      solution_size (int|None): number of items in returned solution.
      params (dict|None): solver parameters for reproducibility.
      extra (dict|None): any extra fields.
      capacity (Decimal|None): instance capacity; when provided we sanity-check final_weight <= capacity.
      strict (bool): if True, raise InvariantViolation on sanity violation. Default False.

    Returns:
      dict: structured log containing inputs above plus 'sanity_warnings' (list) and 'infeasible' (bool).
    """
    logs = {
        "message": str(message),
        "runtime": float(runtime) if runtime is not None else None,
        "final_price": final_price,
        "final_weight": final_weight,
        "solution_size": None if solution_size is None else int(solution_size),
        "params": params or {},
        "extra": extra or {},
        "timestamp": time.time(),
        "sanity_warnings": [],
        "infeasible": False
    }

    # 1) final_weight vs capacity check
    if final_weight is not None and capacity is not None and final_weight > capacity:
        msg = f"final_weight ({final_weight}) exceeds capacity ({capacity})"
        if strict:
            raise InvariantViolation(msg)
        # keep the observed weight, only flag it
        logs["sanity_warnings"].append(msg + " -> marked infeasible in logs")
        logs["infeasible"] = True

    # 2) prices are positive, so a non-empty selection has a positive price
    if final_price is not None and solution_size and final_price <= 0:
        msg = f"final_price ({final_price}) not positive for {solution_size} item(s)"
        if strict:
            raise InvariantViolation(msg)
        logs["sanity_warnings"].append(msg)

    return logs


# ==============================================================================
# --- Brute force (oracle) ---
# ==============================================================================

@accept_instance
def brute_force_solver(instance: ProblemInstance) -> FrozenSet[int]:
    """
    Exhaustive search over all 2^n subsets (n <= 15, so at most 32768).

    Bit j of the counter says whether item j belongs to the subset. Inside a subset
    an item that would overflow the capacity is skipped, the rest still count.
    Winner: highest price, then lowest weight, then the first counter value.
    """
    items = instance.items
    count = len(items)

    best: FrozenSet[int] = frozenset()
    best_price = ZERO
    best_weight = ZERO

    for mask in range(1 << count):
        weight = ZERO
        price = ZERO
        subset = []
        for j, it in enumerate(items):
            if not (mask >> j) & 1:
                continue
            nxt = weight + it.weight
            if nxt <= instance.capacity:
                weight = nxt
                price += it.price
                subset.append(it.label)

        if price > best_price or (price == best_price and weight < best_weight):
            best_price = price
            best_weight = weight
            best = frozenset(subset)

    return best


# ==============================================================================
# --- Greedy 1/2-approximation ---
# ==============================================================================

@accept_instance
def greedy_approximation_solver(instance: ProblemInstance) -> FrozenSet[int]:
    """
    Greedy by efficiency (price/weight), ties by higher price.

    Items that do not fit are skipped. The bag is then compared with the single
    most expensive item and the better of the two is returned; without that last
    comparison the result can be arbitrarily bad.
    """
    ordered = sorted(instance.items, key=lambda it: (-it.efficiency, -it.price))

    chosen = []
    weight = ZERO
    price = ZERO
    max_item: Optional[Item] = None

    for it in ordered:
        nxt = weight + it.weight
        if nxt <= instance.capacity:
            weight = nxt
            price += it.price
            chosen.append(it.label)
        # keep an eye on the most expensive item, fits or not
        if max_item is None or it.price > max_item.price:
            max_item = it

    logger = logging.getLogger(__name__)
    logger.debug("greedy: bag price=%s weight=%s labels=%s", price, weight, chosen)

    if max_item is not None and max_item.price > price:
        logger.debug("greedy: single item %d (price %s) beats the bag", max_item.label, max_item.price)
        return frozenset([max_item.label])
    return frozenset(chosen)


# ==============================================================================
# --- Dynamic programming ---
# ==============================================================================

def _check_dp_capacity(int_capacity: int) -> None:
    if int_capacity > MAX_INT_WEIGHT_FOR_DP:
        raise ProblemSizeError(
            f"The integer maximum weight {int_capacity} exceeds the configured amount "
            f"{MAX_INT_WEIGHT_FOR_DP}. The DP table would use an unacceptable amount of CPU & memory."
        )


@accept_instance
def dynamic_programming_solver(instance: ProblemInstance) -> FrozenSet[int]:
    """
    Pseudo-polynomial 0/1 knapsack DP over integer-scaled weights.

    Weights may be fractional, so capacity and weights are first multiplied by
    10^scale (scale = most decimal digits among them). Raises ProblemSizeError when
    the integer capacity is above MAX_INT_WEIGHT_FOR_DP.

    Items are sorted by price desc, weight asc, and an item is only taken when it
    strictly improves on leaving it. Together these decide which of several
    equal-price optimal subsets is recovered.
    """
    items = instance.items
    scale = max([decimal_scale(instance.capacity)] + [decimal_scale(it.weight) for it in items])
    multiplier = 10 ** scale
    int_capacity = scale_to_int(instance.capacity, multiplier)
    _check_dp_capacity(int_capacity)

    ordered = sorted(items, key=lambda it: (-it.price, it.weight))
    int_weights = [scale_to_int(it.weight, multiplier) for it in ordered]
    n = len(ordered)

    logging.getLogger(__name__).debug(
        "DP: n=%d multiplier=%d int_capacity=%d cells=%d", n, multiplier, int_capacity, (n + 1) * (int_capacity + 1))

    # keep[i, w] is True when the best price for items 1..i within w takes item i
    keep = np.zeros((n + 1, int_capacity + 1), dtype=bool)
    # only row i-1 of the price table is needed to fill row i
    prev: List[Decimal] = [ZERO] * (int_capacity + 1)

    for i in range(1, n + 1):
        w_i = int_weights[i - 1]
        p_i = ordered[i - 1].price
        row = list(prev)
        for w in range(w_i, int_capacity + 1):
            take = p_i + prev[w - w_i]
            if take > prev[w]:
                row[w] = take
                keep[i, w] = True
        prev = row

    # backtrack from (n, W)
    chosen = []
    remaining = int_capacity
    for i in range(n, 0, -1):
        if keep[i, remaining]:
            chosen.append(ordered[i - 1].label)
            remaining -= int_weights[i - 1]
    return frozenset(chosen)


# ==============================================================================
# --- Branch and bound (best-first) ---
# ==============================================================================

@dataclass(frozen=True)
class _Node:
    level: int
    weight: Decimal
    price: Decimal
    bound: Decimal
    labels: Tuple[int, ...] = ()


def _node_priority(node: _Node) -> Tuple[Decimal, Decimal, Decimal]:
    # higher bound, then higher price, then lower weight
    return (-node.bound, -node.price, node.weight)


class _PriorityQueue:
    """Min-heap ordered by key(obj); insertion order breaks full ties."""

    def __init__(self, key: Callable[[Any], Any]):
        self._key = key
        self._heap: List[Tuple[Any, int, Any]] = []
        self._seq = 0

    def push(self, obj: Any) -> None:
        heapq.heappush(self._heap, (self._key(obj), self._seq, obj))
        self._seq += 1

    def pop(self) -> Any:
        return heapq.heappop(self._heap)[2]

    def __len__(self) -> int:
        return len(self._heap)


def _fractional_bound(ordered: Sequence[Item], start: int, remaining: Decimal) -> Decimal:
    """Greedy upper bound on the price obtainable from ordered[start:] within `remaining`."""
    extra = ZERO
    for it in ordered[start:]:
        if it.weight > remaining:
            extra += it.price * divide(remaining, it.weight)
            break
        remaining -= it.weight
        extra += it.price
    return extra


@accept_instance
def branch_and_bound_solver(instance: ProblemInstance) -> FrozenSet[int]:
    """
    Best-first branch and bound over the binary take/leave tree.

    Items are sorted by efficiency desc (ties: lower price first). Each tree level
    decides one item. Nodes are explored by highest bound, where the bound is the
    node price plus the fractional relaxation of the remaining items. A subtree is pruned if
      - taking the item violates the weight constraint, or
      - its bound is below the best price found so far.
    """
    ordered = sorted(instance.items, key=lambda it: (-it.efficiency, it.price))
    n = len(ordered)
    capacity = instance.capacity

    queue = _PriorityQueue(key=_node_priority)
    queue.push(_Node(level=-1, weight=ZERO, price=ZERO, bound=ZERO))

    best_price = ZERO
    best_weight = ZERO
    best_labels: Tuple[int, ...] = ()
    nodes = 0

    while queue:
        parent = queue.pop()
        nodes += 1

        if parent.level >= n - 1 or parent.bound < best_price:
            continue

        i = parent.level + 1
        item = ordered[i]
        children = [_Node(i, parent.weight, parent.price, ZERO, parent.labels)]
        take_weight = parent.weight + item.weight
        if take_weight <= capacity:
            children.append(_Node(i, take_weight, parent.price + item.price, ZERO,
                                  parent.labels + (item.label,)))

        for child in children:
            bound = child.price + _fractional_bound(ordered, i + 1, capacity - child.weight)
            if bound < best_price:
                continue
            child = _Node(child.level, child.weight, child.price, bound, child.labels)
            queue.push(child)
            if child.price > best_price or (child.price == best_price and child.weight < best_weight):
                best_price = child.price
                best_weight = child.weight
                best_labels = child.labels

    logging.getLogger(__name__).debug(
        "branch_and_bound: nodes_explored=%d best_price=%s best_weight=%s", nodes, best_price, best_weight)
    return frozenset(best_labels)


# ==============================================================================
# --- Registry and result wrapper ---
# ==============================================================================

SOLVERS: Dict[str, SolverFn] = {
    "brute_force": brute_force_solver,
    "dynamic_programming": dynamic_programming_solver,
    "greedy": greedy_approximation_solver,
    "branch_and_bound": branch_and_bound_solver,
}


def get_solver(name: str) -> SolverFn:
    try:
        return SOLVERS[name]
    except KeyError:
        raise KeyError(f"unknown solver {name!r}; expected one of {sorted(SOLVERS)}") from None


def _solver_name(solver: SolverFn) -> str:
    for name, fn in SOLVERS.items():
        if fn is solver:
            return name
    return getattr(solver, "__name__", repr(solver))


@dataclass(frozen=True)
class SolverResult:
    """Solution of one instance (None when there was no instance) plus run logs."""
    solver: str
    solution: Optional[Solution]
    logs: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def total_price(self) -> Optional[Decimal]:
        return None if self.solution is None else self.solution.total_price

    @property
    def total_weight(self) -> Optional[Decimal]:
        return None if self.solution is None else self.solution.total_weight

    def __str__(self) -> str:
        return "ERR" if self.solution is None else self.solution.canonical


def run_solver(solver: Union[str, SolverFn], instance: Optional[ProblemInstance],
               strict: bool = False) -> SolverResult:
    """
    Solve one (optional) instance and wrap the labels into a Solution.

    Args:
      solver: a SOLVERS name or a solver function.
      instance: the problem, or None when the input line was discarded.
      strict: raise InvariantViolation instead of only flagging sanity problems.

    Raises:
      ProblemSizeError: the strategy refuses the instance (DP table too large).
      InvariantViolation: the solver returned unknown labels (or strict sanity failure).
    """
    fn = get_solver(solver) if isinstance(solver, str) else solver
    name = _solver_name(fn)
    if instance is None:
        return SolverResult(solver=name, solution=None,
                            logs=_base_logs("no instance", 0.0, params={"method": name}))

    start = time.perf_counter()
    labels = fn(instance)
    solution = Solution.from_labels(instance.index, labels)
    logs = _base_logs(
        f"{name} finished",
        time.perf_counter() - start,
        final_price=solution.total_price,
        final_weight=solution.total_weight,
        solution_size=len(solution.labels),
        params={"method": name, "n_items": len(instance)},
        capacity=instance.capacity,
        strict=strict,
    )
    for warning in logs["sanity_warnings"]:
        logging.getLogger(__name__).warning("%s: %s", name, warning)
    return SolverResult(solver=name, solution=solution, logs=logs)


def solve_many(instances: Sequence[Optional[ProblemInstance]],
               solver: Union[str, SolverFn] = "branch_and_bound",
               workers: int = 1, strict: bool = False,
               fallback: Optional[Union[str, SolverFn]] = None) -> List[SolverResult]:
    """
    Solve independent instances, results in input order.

    Instances share no mutable state, so with workers > 1 they are simply
    dispatched to a thread pool. When `fallback` is given, an instance refused by
    `solver` with ProblemSizeError is solved with `fallback` instead; any other
    error propagates.
    """
    def solve_one(inst: Optional[ProblemInstance]) -> SolverResult:
        try:
            return run_solver(solver, inst, strict=strict)
        except ProblemSizeError as e:
            if fallback is None:
                raise
            logging.getLogger(__name__).warning("%s Falling back to %s.", e, _solver_name(
                get_solver(fallback) if isinstance(fallback, str) else fallback))
            return run_solver(fallback, inst, strict=strict)

    if workers <= 1 or len(instances) <= 1:
        return [solve_one(inst) for inst in instances]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(solve_one, instances))

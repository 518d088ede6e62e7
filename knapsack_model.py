"""
Data model for exact-decimal 0/1 knapsack instances.

- Item:            validated (label, weight, price) triple with derived efficiency
- ProblemInstance: capacity + ordered items + label -> item lookup
- Solution:        selected labels + aggregate weight/price + canonical string

All three are immutable once constructed and validate their invariants at
construction time.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple, Union

from knapsack_errors import InstanceFormatError, InvariantViolation, ItemFormatError
from knapsack_rules import (
    CURRENCY_SIGN,
    MAX_ITEM_PRICE,
    MAX_ITEM_WEIGHT,
    MAX_ITEMS_PER_LINE,
    MAX_PACKAGE_WEIGHT,
    ZERO,
    DecimalLike,
    divide,
    to_decimal,
)


def _plain(value: Decimal) -> str:
    return format(value, "f")


@dataclass(frozen=True)
class Item:
    """
    A single candidate item.

    Attributes
    ----------
    label : int
        1-based position of the item on its input line.
    weight : Decimal
        0 < weight <= MAX_ITEM_WEIGHT.
    price : Decimal
        0 < price <= MAX_ITEM_PRICE.
    efficiency : Decimal
        price / weight rounded half-up to SCALE digits (not part of equality).
    """
    label: int
    weight: Decimal
    price: Decimal
    efficiency: Decimal = field(init=False, compare=False, repr=False)

    def __post_init__(self) -> None:
        label = self.label
        if isinstance(label, bool) or not isinstance(label, int):
            raise ItemFormatError(None, f"Item number must be an integer, got {label!r}")
        try:
            weight = to_decimal(self.weight)
            price = to_decimal(self.price)
        except (TypeError, ValueError) as e:
            raise ItemFormatError(label, str(e)) from e

        if label <= 0:
            raise ItemFormatError(label, "Item number must be positive")
        if label > MAX_ITEMS_PER_LINE:
            raise ItemFormatError(
                label, f"Item number = {label} is greater than the maximum allowed {MAX_ITEMS_PER_LINE}")
        if weight <= 0:
            raise ItemFormatError(label, "Item weight must be positive")
        if price <= 0:
            raise ItemFormatError(label, "Item price must be positive")
        if weight > MAX_ITEM_WEIGHT:
            raise ItemFormatError(label, f"Item weight {_plain(weight)} exceeds {MAX_ITEM_WEIGHT}")
        if price > MAX_ITEM_PRICE:
            raise ItemFormatError(label, f"Item price {_plain(price)} exceeds {MAX_ITEM_PRICE}")

        object.__setattr__(self, "weight", weight)
        object.__setattr__(self, "price", price)
        object.__setattr__(self, "efficiency", divide(price, weight))

    def triple(self) -> str:
        return f"{self.label}, {_plain(self.weight)}, {CURRENCY_SIGN}{_plain(self.price)}"

    def __str__(self) -> str:
        return f"({self.triple()})"


ItemLike = Union[Item, Tuple[int, DecimalLike, DecimalLike]]


def _as_item(obj: ItemLike) -> Item:
    if isinstance(obj, Item):
        return obj
    label, weight, price = obj
    return Item(label, weight, price)


@dataclass(frozen=True)
class ProblemInstance:
    """
    Immutable knapsack problem: one capacity and at most 15 items.

    Build it with ProblemInstance.build(...), which validates the bounds and
    drops items heavier than the capacity. Solvers share it read-only.
    """
    capacity: Decimal
    items: Tuple[Item, ...]
    index: Mapping[int, Item] = field(compare=False, repr=False)

    def __post_init__(self) -> None:
        for it in self.items:
            if it.weight > self.capacity:
                raise InvariantViolation(f"item {it.label} is heavier than capacity {self.capacity}")
        if set(self.index) != {it.label for it in self.items}:
            raise InvariantViolation("index keys must match the item labels")

    @classmethod
    def build(cls, capacity: DecimalLike, items: Iterable[ItemLike]) -> "ProblemInstance":
        """
        Validate and construct an instance.

        Args:
          capacity: package weight limit, 0 <= capacity <= MAX_PACKAGE_WEIGHT.
          items: Item objects or (label, weight, price) tuples, in line order.

        Raises:
          InstanceFormatError on bad capacity, too many items or duplicate labels.
          ItemFormatError on an invalid item.
        """
        try:
            cap = to_decimal(capacity)
        except (TypeError, ValueError) as e:
            raise InstanceFormatError(f"Invalid package weight: {e}") from e
        if cap < 0:
            raise InstanceFormatError("Max package weight must not be negative")
        if cap > MAX_PACKAGE_WEIGHT:
            raise InstanceFormatError(
                f"Max package weight {_plain(cap)} exceeds {MAX_PACKAGE_WEIGHT}")

        raw = list(items)
        if len(raw) > MAX_ITEMS_PER_LINE:
            raise InstanceFormatError(
                f"At most {MAX_ITEMS_PER_LINE} items are allowed per line, but received {len(raw)}")
        all_items = [_as_item(obj) for obj in raw]

        seen = set()
        for it in all_items:
            if it.label in seen:
                raise InstanceFormatError(f"Duplicate item number: {it.label}")
            seen.add(it.label)

        # items that can never fit are left out of the instance
        kept = tuple(it for it in all_items if it.weight <= cap)
        dropped = len(all_items) - len(kept)
        if dropped:
            logging.getLogger(__name__).debug(
                "capacity %s: dropped %d item(s) heavier than the capacity", cap, dropped)

        index = MappingProxyType({it.label: it for it in kept})
        return cls(capacity=cap, items=kept, index=index)

    def __len__(self) -> int:
        return len(self.items)

    def __str__(self) -> str:
        return f"{_plain(self.capacity)} : " + " ".join(str(it) for it in self.items)


@dataclass(frozen=True)
class Solution:
    """
    Selected items of one instance.

    Attributes
    ----------
    labels : tuple[int]
        Unique labels, ascending.
    total_weight, total_price : Decimal
        Sums over the selected items, computed once at construction.
    canonical : str
        Comma-joined labels ("1,4") or "-" when nothing is selected.
    """
    labels: Tuple[int, ...] = ()
    total_weight: Decimal = ZERO
    total_price: Decimal = ZERO
    canonical: str = "-"

    @classmethod
    def from_labels(cls, index: Mapping[int, Item], labels: Optional[Iterable[int]]) -> "Solution":
        if index is None:
            raise InvariantViolation("index map cannot be None")
        if not labels:
            return cls()
        chosen = tuple(sorted(set(labels)))
        unknown = [lbl for lbl in chosen if lbl not in index]
        if unknown:
            raise InvariantViolation(f"labels {unknown} are not part of the instance")

        weight = ZERO
        price = ZERO
        for lbl in chosen:
            weight += index[lbl].weight
            price += index[lbl].price
        return cls(
            labels=chosen,
            total_weight=weight,
            total_price=price,
            canonical=",".join(str(lbl) for lbl in chosen),
        )

    def describe(self) -> str:
        return (f"Price = {_plain(self.total_price)}, weight = {_plain(self.total_weight)}, "
                f"result = ({self.canonical}).")

    def __str__(self) -> str:
        return self.canonical

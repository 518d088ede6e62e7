import dataclasses
from decimal import Decimal

import pytest

from knapsack_errors import InstanceFormatError, InvariantViolation, ItemFormatError
from knapsack_model import Item, ProblemInstance, Solution


def test_item_efficiency_and_str():
    item = Item(1, "5.3", "10")
    assert item.weight == Decimal("5.3")
    assert item.efficiency == Decimal("1.88679245")
    assert str(item) == "(1, 5.3, €10)"


def test_item_equality_is_numeric():
    a = Item(1, Decimal("1.0"), Decimal("2"))
    b = Item(1, Decimal("1"), Decimal("2.00"))
    assert a == b
    assert hash(a) == hash(b)
    assert a != Item(2, "1", "2")


def test_item_is_immutable():
    item = Item(1, "1", "1")
    with pytest.raises(dataclasses.FrozenInstanceError):
        item.price = Decimal(5)


@pytest.mark.parametrize("label, weight, price", [
    (0, "1", "1"),
    (16, "1", "1"),
    (1, "0", "1"),
    (1, "1", "0"),
    (1, "-3", "1"),
    (1, "100.01", "1"),
    (1, "1", "100.5"),
    (1, "x", "1"),
])
def test_item_out_of_range(label, weight, price):
    with pytest.raises(ItemFormatError):
        Item(label, weight, price)


@pytest.mark.parametrize("label", ["3", 2.0, True])
def test_item_label_must_be_int(label):
    with pytest.raises(ItemFormatError) as info:
        Item(label, "1", "1")
    assert info.value.item_no is None
    assert str(info.value) == f"Item: Error - Item number must be an integer, got {label!r}."


def test_item_bounds_are_inclusive():
    item = Item(15, "100", "100")
    assert item.efficiency == 1


def test_build_drops_items_heavier_than_capacity():
    inst = ProblemInstance.build("8", [(1, "15.3", "34"), (2, "8", "1"), (3, "2", "5")])
    assert [it.label for it in inst.items] == [2, 3]
    assert set(inst.index) == {2, 3}
    assert len(inst) == 2


def test_build_rejects_bad_instances():
    with pytest.raises(InstanceFormatError):
        ProblemInstance.build("100.5", [(1, "1", "1")])
    with pytest.raises(InstanceFormatError):
        ProblemInstance.build("-1", [])
    with pytest.raises(InstanceFormatError):
        ProblemInstance.build("10", [(1, "1", "1"), (1, "2", "2")])
    with pytest.raises(InstanceFormatError):
        ProblemInstance.build("10", [(i % 15 + 1, "1", "1") for i in range(16)])


def test_index_is_read_only(four_items):
    with pytest.raises(TypeError):
        four_items.index[9] = Item(9, "1", "1")


def test_solution_from_labels(four_items):
    sol = Solution.from_labels(four_items.index, {4, 2})
    assert sol.labels == (2, 4)
    assert sol.canonical == "2,4"
    assert str(sol) == "2,4"
    assert sol.total_price == Decimal("90")
    assert sol.total_weight == Decimal("7.5")
    assert sol.describe() == "Price = 90, weight = 7.5, result = (2,4)."


@pytest.mark.parametrize("labels", [None, set(), frozenset(), []])
def test_empty_solution(four_items, labels):
    sol = Solution.from_labels(four_items.index, labels)
    assert sol.labels == ()
    assert sol.canonical == "-"
    assert sol.total_price == 0
    assert sol.total_weight == 0


def test_solution_rejects_unknown_labels(four_items):
    with pytest.raises(InvariantViolation):
        Solution.from_labels(four_items.index, {2, 7})
    with pytest.raises(InvariantViolation):
        Solution.from_labels(None, {1})

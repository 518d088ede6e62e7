import pytest

from knapsack_model import ProblemInstance

SAMPLE_LINES = [
    "81 : (1,53.38,€45) (2,88.62,€98) (3,78.48,€3) (4,72.30,€76) (5,30.18,€9) (6,46.34,€48)",
    "8 : (1,15.3,€34)",
    "75 : (1,85.31,€29) (2,14.55,€74) (3,3.98,€16) (4,26.24,€55) (5,63.69,€52) (6,76.25,€75) "
    "(7,60.02,€74) (8,93.18,€35) (9,89.95,€78)",
    "56 : (1,90.72,€13) (2,33.80,€40) (3,43.15,€10) (4,37.97,€16) (5,46.81,€36) (6,48.77,€79) "
    "(7,81.80,€45) (8,19.36,€79) (9,6.76,€64)",
]
SAMPLE_SOLUTIONS = ["4", "-", "2,7", "8,9"]


@pytest.fixture
def four_items():
    return ProblemInstance.build("10", [
        (1, "5.3", "10"),
        (2, "4", "40"),
        (3, "6.7", "30"),
        (4, "3.5", "50"),
    ])


@pytest.fixture
def single_item_wins():
    return ProblemInstance.build("10", [(1, "1", "1"), (2, "10", "9")])


@pytest.fixture
def nothing_fits():
    return ProblemInstance.build("5", [(1, "6", "10"), (2, "7.25", "20")])


@pytest.fixture
def sample_lines():
    return list(SAMPLE_LINES)


@pytest.fixture
def sample_solutions():
    return list(SAMPLE_SOLUTIONS)

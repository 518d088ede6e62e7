"""
I/O helpers for loading knapsack problem instances from text.

Line format (whitespace is ignored):

    W : (1,w1,€p1) (2,w2,€p2) ... (m,wm,€pm)

- W   : maximum package weight, a non-negative decimal
- n   : item label, must equal the item's 1-based position on the line
- w   : item weight, a decimal
- €p  : item price, a decimal preceded by the euro sign

A malformed line never stops the file: parse_lines() logs it and yields None
in its place, which the solvers report as "ERR".
"""

import logging
import os
import re
from typing import Iterable, List, Optional

from knapsack_errors import FileFormatError, FormatError, InstanceFormatError, ItemFormatError, LineFormatError
from knapsack_model import Item, ProblemInstance
from knapsack_rules import CURRENCY_SIGN, FILE_ENCODING, MAX_FILE_SIZE_BYTES, MAX_ITEMS_PER_LINE

_INT_REGEX = r"[1-9]\d*"
_DECIMAL_REGEX = r"(?:\d+(?:\.\d+)?|\.\d+)"
_PARENTHESIS_REGEX = r"(?:\((.*?)\))"

DECIMAL_PATTERN = re.compile(r"^" + _DECIMAL_REGEX + r"$")
SINGLE_ITEM_PATTERN = re.compile(_PARENTHESIS_REGEX)
ALL_ITEMS_PATTERN = re.compile(r"^" + _PARENTHESIS_REGEX + r"+$")

LABEL_PATTERN = re.compile(r"^" + _INT_REGEX + r"$")
WEIGHT_PATTERN = DECIMAL_PATTERN
PRICE_PATTERN = re.compile(r"^" + CURRENCY_SIGN + _DECIMAL_REGEX + r"$")

_WHITESPACE = re.compile(r"\s+")


def _strip(text: str) -> str:
    return _WHITESPACE.sub("", text)


def parse_item(item_no: int, triple: Optional[str]) -> Item:
    """
    Parse "n,w,€p" into an Item whose label must equal `item_no`.

    Raises:
      ItemFormatError: wrong shape, bad number, label mismatch or out of range.
    """
    if triple is None:
        raise ItemFormatError(item_no, "item cannot be None")

    parts = _strip(triple).split(",")
    if len(parts) != 3:
        raise ItemFormatError(item_no, f"Expected 3 components, but received {len(parts)}")

    label, weight, price = parts
    if not LABEL_PATTERN.match(label):
        raise ItemFormatError(item_no, "Item number must be a positive integer")
    if not WEIGHT_PATTERN.match(weight):
        raise ItemFormatError(item_no, "Item weight must be a number")
    if not PRICE_PATTERN.match(price):
        raise ItemFormatError(item_no, f"Item price must be a number, preceded with {CURRENCY_SIGN}")

    if int(label) != item_no:
        raise ItemFormatError(item_no, "Item number does not match its position")

    # range checks (0 < w <= 100, ...) live in Item itself
    return Item(item_no, weight, price[len(CURRENCY_SIGN):])


def parse_line(line_no: int, line: Optional[str]) -> ProblemInstance:
    """
    Parse one input line into a ProblemInstance.

    Raises:
      LineFormatError: any problem with the line or one of its items.
    """
    if line is None:
        raise LineFormatError(line_no, "Line cannot be None")

    stripped = _strip(line)
    if not stripped:
        raise LineFormatError(line_no, "Line cannot be blank")

    sections = stripped.split(":")
    if len(sections) != 2:
        raise LineFormatError(line_no, "The line is not in a:b format")

    capacity, triples = sections
    if not DECIMAL_PATTERN.match(capacity):
        raise LineFormatError(line_no, "Maximum weight must be a positive number")
    if not ALL_ITEMS_PATTERN.match(triples):
        raise LineFormatError(line_no, "Items must be separated by matching pairs of parentheses")

    groups = SINGLE_ITEM_PATTERN.findall(triples)
    if len(groups) > MAX_ITEMS_PER_LINE:
        raise LineFormatError(
            line_no, f"At most {MAX_ITEMS_PER_LINE} items are allowed per line, but received {len(groups)}")

    items = []
    for item_no, triple in enumerate(groups, start=1):
        try:
            items.append(parse_item(item_no, triple))
        except ItemFormatError as e:
            raise LineFormatError.from_item_error(line_no, e) from e

    try:
        instance = ProblemInstance.build(capacity, items)
    except InstanceFormatError as e:
        raise LineFormatError(line_no, str(e)) from e

    logging.getLogger(__name__).debug("Line #%d: capacity=%s items=%d kept=%d",
                                      line_no, instance.capacity, len(items), len(instance))
    return instance


def parse_lines(lines: Iterable[Optional[str]]) -> List[Optional[ProblemInstance]]:
    """Parse lines (1-based numbering); malformed lines are logged and become None."""
    instances: List[Optional[ProblemInstance]] = []
    for line_no, line in enumerate(lines, start=1):
        try:
            instances.append(parse_line(line_no, line))
        except FormatError as e:
            logging.getLogger(__name__).warning("%s This line was discarded.", e)
            instances.append(None)
    return instances


def parse_file(path: str) -> List[Optional[ProblemInstance]]:
    """
    Load every line of a UTF-8 text file as a problem instance.

    Raises:
      FileFormatError: the file is empty or larger than MAX_FILE_SIZE_BYTES,
        or is not valid UTF-8.
      OSError: the file cannot be read.
    """
    size = os.path.getsize(path)
    if size > MAX_FILE_SIZE_BYTES:
        raise FileFormatError(
            f"Input file size = {size}, which is greater than the maximum allowable size {MAX_FILE_SIZE_BYTES}")

    try:
        with open(path, "r", encoding=FILE_ENCODING) as f:
            lines = f.read().splitlines()
    except UnicodeDecodeError as e:
        raise FileFormatError(f"{path}: not valid {FILE_ENCODING}: {e}") from e
    if not lines:
        raise FileFormatError(f"{path}: file is empty.")

    return parse_lines(lines)

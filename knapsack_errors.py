"""
Common exceptions for the knapsack modules.
"""

from typing import Optional


class KnapsackError(Exception):
    """Root of every error raised by this package."""


class FormatError(KnapsackError, ValueError):
    """Raised when input (an item, a line, a file) is malformed."""


class ItemFormatError(FormatError):
    """Raised when a single item triple violates the expected format or ranges."""

    def __init__(self, item_no: Optional[int], msg: str):
        if item_no is None:
            super().__init__(f"Item: Error - {msg}.")
        else:
            super().__init__(f"Item #{item_no}: Error - {msg}.")
        self.item_no = item_no
        self.msg = msg


class LineFormatError(FormatError):
    """Raised when an input line is malformed, e.g. not in the form a:b."""

    def __init__(self, line_no: int, msg: str, item_no=None):
        if item_no is None:
            text = f"Line #{line_no}: Error - {msg}."
        else:
            text = f"Line #{line_no}, item {item_no}: Error - {msg}."
        super().__init__(text)
        self.line_no = line_no
        self.item_no = item_no
        self.msg = msg

    @classmethod
    def from_item_error(cls, line_no: int, err: ItemFormatError) -> "LineFormatError":
        return cls(line_no, err.msg, item_no=err.item_no)


class InstanceFormatError(FormatError):
    """Raised when capacity / item list of a problem instance is out of bounds."""


class FileFormatError(FormatError):
    """Raised when the input file is empty or larger than the allowed size."""


class ProblemSizeError(KnapsackError):
    """Raised when an instance is too large for a given strategy (DP table bound)."""


class InvariantViolation(KnapsackError, AssertionError):
    """Raised on programming defects: these are never silently corrected."""

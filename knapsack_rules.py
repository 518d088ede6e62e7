"""
Constraint rules and exact decimal helpers shared by every knapsack module.

Notes:
- All weight/price/efficiency arithmetic uses decimal.Decimal. Floats are
  refused at the boundary (to_decimal) so tie-breaks compare exact values.
- Every division goes through divide(), which always takes an explicit
  scale and rounding mode.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, ROUND_HALF_EVEN, ROUND_DOWN
from fractions import Fraction
from typing import Union

from knapsack_errors import InvariantViolation

# --- Problem bounds ---
MAX_PACKAGE_WEIGHT = Decimal(100)
MAX_ITEM_WEIGHT = Decimal(100)
MAX_ITEM_PRICE = Decimal(100)
MAX_ITEMS_PER_LINE = 15

# digits kept after the decimal point when dividing
SCALE = 8
ROUNDING = ROUND_HALF_UP

# DP uses an O(N*W) table; W (the integer capacity) is capped here
MAX_INT_WEIGHT_FOR_DP = 10000

# --- Input files ---
MAX_FILE_SIZE_BYTES = 1_000_000
FILE_ENCODING = "utf-8"
CURRENCY_SIGN = "€"

ZERO = Decimal(0)

DecimalLike = Union[Decimal, int, str]


def to_decimal(value: DecimalLike) -> Decimal:
    """Convert an int/str/Decimal to a finite Decimal. Floats are rejected."""
    if isinstance(value, bool) or isinstance(value, float):
        raise TypeError(f"expected Decimal, int or str, got {type(value).__name__}")
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, int):
        d = Decimal(value)
    elif isinstance(value, str):
        try:
            d = Decimal(value.strip())
        except InvalidOperation as e:
            raise ValueError(f"not a decimal number: {value!r}") from e
    else:
        raise TypeError(f"expected Decimal, int or str, got {type(value).__name__}")
    if not d.is_finite():
        raise ValueError(f"decimal value must be finite, got {value!r}")
    return d


def decimal_scale(value: Decimal) -> int:
    """Digits after the decimal point, e.g. 8.95 -> 2, 100 -> 0."""
    exponent = value.as_tuple().exponent
    return max(0, -exponent)


def _round_ratio(num: int, den: int, rounding: str) -> int:
    # den > 0 here
    sign = -1 if num < 0 else 1
    q, r = divmod(abs(num), den)
    if r:
        if rounding == ROUND_HALF_UP:
            if 2 * r >= den:
                q += 1
        elif rounding == ROUND_HALF_EVEN:
            if 2 * r > den or (2 * r == den and q % 2 == 1):
                q += 1
        elif rounding != ROUND_DOWN:
            raise ValueError(f"unsupported rounding mode: {rounding}")
    return sign * q


def divide(numerator: Decimal, denominator: Decimal,
           scale: int = SCALE, rounding: str = ROUNDING) -> Decimal:
    """
    Exact decimal division rounded to `scale` digits after the point.

    The quotient is computed on integer ratios, so the result is rounded once
    (no intermediate context precision is involved).

    Args:
      numerator, denominator (Decimal): operands; denominator must be non-zero.
      scale (int): digits kept after the decimal point.
      rounding (str): one of ROUND_HALF_UP, ROUND_HALF_EVEN, ROUND_DOWN.

    Returns:
      Decimal with exactly `scale` fraction digits.
    """
    if scale < 0:
        raise ValueError("scale must be >= 0")
    den_ratio = Fraction(denominator)
    if den_ratio == 0:
        raise ZeroDivisionError("decimal division by zero")
    ratio = Fraction(numerator) / den_ratio
    scaled = ratio * (10 ** scale)
    q = _round_ratio(scaled.numerator, scaled.denominator, rounding)
    # string construction is exact, unlike arithmetic under the context
    return Decimal(f"{q}E-{scale}")


def scale_to_int(value: Decimal, multiplier: int) -> int:
    """Return value * multiplier as an exact int, or raise InvariantViolation."""
    product = Fraction(value) * multiplier
    if product.denominator != 1:
        raise InvariantViolation(
            f"{value} * {multiplier} is not integral; the weight scale was computed incorrectly"
        )
    return product.numerator

"""
Esolang Runtime - Value Semantics

Stack values are a tagged union of number (float) and string. Numbers
follow IEEE-754 double rules with the conversions the browser hosts of
these languages used: shortest round-trip printing, prefix float parsing,
truncating substring/repeat arguments and UTF-16 char codes.

Every arithmetic result passes through check_number(), which replaces
NaN and out-of-range values by sentinel strings.
"""

from decimal import Decimal
from typing import Optional, Union
import math
import re
import sys

from .errors import OperatorFault


Value = Union[float, str]

MAX_NUMBER = sys.float_info.max
MAX_STRING_LENGTH = 2 ** 28

NAN_SENTINEL = "N/A"
INFINITY_SENTINEL = "Infinity"
NEG_INFINITY_SENTINEL = "-Infinity"

_FLOAT_PREFIX = re.compile(r'[+-]?(?:Infinity|(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?)')


def is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def check_number(number: float) -> Value:
    """Normalize an arithmetic result into a number or a sentinel string"""
    if math.isnan(number):
        return NAN_SENTINEL
    if number > MAX_NUMBER:
        return INFINITY_SENTINEL
    if number < -MAX_NUMBER:
        return NEG_INFINITY_SENTINEL
    return float(number)


# ============================================================================
# Conversions
# ============================================================================

def format_number(number: float) -> str:
    """Shortest round-trip decimal form, without exponent for 1e-7 <= |x| < 1e21"""
    number = float(number)
    if math.isnan(number):
        return "NaN"
    if math.isinf(number):
        return INFINITY_SENTINEL if number > 0 else NEG_INFINITY_SENTINEL
    if number == 0:
        return "0"

    sign = "-" if number < 0 else ""
    parts = Decimal(repr(abs(number))).normalize().as_tuple()
    digits = ''.join(str(d) for d in parts.digits)
    k = len(digits)
    n = parts.exponent + k

    if k <= n <= 21:
        return sign + digits + '0' * (n - k)
    if 0 < n <= 21:
        return sign + digits[:n] + '.' + digits[n:]
    if -6 < n <= 0:
        return sign + '0.' + '0' * (-n) + digits

    e = n - 1
    mantissa = digits[0] if k == 1 else digits[0] + '.' + digits[1:]
    return f"{sign}{mantissa}e{'+' if e > 0 else '-'}{abs(e)}"


def format_value(value: Value) -> str:
    if isinstance(value, str):
        return value
    return format_number(value)


def parse_float(text: str) -> float:
    """Parse the longest numeric prefix; NaN when there is none"""
    match = _FLOAT_PREFIX.match(text.lstrip())
    if match is None:
        return math.nan
    literal = match.group(0)
    if literal.endswith('Infinity'):
        return -math.inf if literal.startswith('-') else math.inf
    return float(literal)


def is_truthy(value: Value) -> bool:
    if isinstance(value, str):
        return value != ""
    return not (value == 0 or math.isnan(value))


def to_integer(number: float) -> float:
    """Truncate toward zero; NaN becomes 0, infinities are kept"""
    if math.isnan(number):
        return 0
    if math.isinf(number):
        return number
    return math.trunc(number)


def substring(text: str, start: float, end: Optional[float] = None) -> str:
    """Clamped, order-insensitive substring"""
    length = len(text)
    start = min(max(to_integer(start), 0), length)
    end = length if end is None else min(max(to_integer(end), 0), length)
    if start > end:
        start, end = end, start
    return text[int(start):int(end)]


def repeat(text: str, count: float) -> str:
    count = to_integer(count)
    if count < 0 or math.isinf(count) or len(text) * count > MAX_STRING_LENGTH:
        raise OperatorFault("Invalid string length")
    return text * int(count)


def from_char_code(number: float) -> str:
    return chr(int(to_integer(number)) % 0x10000)


def divide(left: float, right: float) -> float:
    if right == 0:
        if left == 0 or math.isnan(left):
            return math.nan
        same_sign = (left > 0) == (math.copysign(1.0, right) > 0)
        return math.inf if same_sign else -math.inf
    return left / right


def remainder(left: float, right: float) -> float:
    """Remainder with the sign of the dividend"""
    if right == 0 or math.isinf(left) or math.isnan(left) or math.isnan(right):
        return math.nan
    return math.fmod(left, right)


def compare(left: Value, right: Value) -> int:
    """-1/0/1 by natural order; across types a string sorts below a number"""
    if isinstance(left, str) == isinstance(right, str):
        if left < right:
            return -1
        if left > right:
            return 1
        return 0
    return -1 if isinstance(left, str) else 1


def digit_count(number: float) -> int:
    value = abs(math.floor(number))
    count = 1
    while value >= 10:
        count += 1
        value = value // 10
    return count


__all__ = [
    'Value', 'MAX_NUMBER', 'NAN_SENTINEL', 'INFINITY_SENTINEL', 'NEG_INFINITY_SENTINEL',
    'is_number', 'check_number', 'format_number', 'format_value', 'parse_float',
    'is_truthy', 'to_integer', 'substring', 'repeat', 'from_char_code',
    'divide', 'remainder', 'compare', 'digit_count',
]

"""Value model helpers for pandi. pandi has a single numeric type, represented by Python floats; nil is None, booleans
are bools and strings are strs. Every other runtime value is a callable or an instance (see callables.py).

Note that Python's bool is a subclass of int, so these helpers never treat booleans as numbers.
"""

import math


def is_number(value):
    """Whether value is a pandi number."""
    return isinstance(value, float)


def is_truthy(value):
    """nil and false are falsy, everything else (including 0 and "") is truthy."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def is_equal(a, b):
    """Equality never faults: values of different kinds are unequal. Numbers, strings and booleans compare by value,
    callables and instances by identity. Numbers are equal when they are the same IEEE value, so unlike in Python
    nan == nan and 0 != -0.
    """
    if a is None and b is None:
        return True
    if a is None or b is None:
        return False
    if type(a) is not type(b):
        return False
    if isinstance(a, float):
        # by bit pattern: nan equals itself, 0 and -0 differ
        if math.isnan(a) or math.isnan(b):
            return math.isnan(a) and math.isnan(b)
        return a == b and math.copysign(1.0, a) == math.copysign(1.0, b)
    if isinstance(a, (bool, str)):
        return a == b
    return a is b


def divide(left, right):
    """IEEE 754 division: x/0 is a signed infinity and 0/0 is nan, where Python floats would raise instead."""
    if right == 0.0:
        if left == 0.0 or math.isnan(left):
            return math.nan
        return math.copysign(math.inf, left) * math.copysign(1.0, right)
    return left / right


def stringify(value):
    """Textual form used by print. Integral numbers are shown without a trailing '.0'."""
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isinf(value) or math.isnan(value):
            return repr(value)
        if value.is_integer():
            text = str(int(value))
            return "-0" if text == "0" and math.copysign(1.0, value) < 0 else text
        return repr(value)
    return str(value)

"""
The Missing sentinel.

A correlation that cannot be computed (too few observations, zero variance)
is reported as a Missing value rather than NaN, so callers can tell an
undefined result apart from a correlation of exactly zero.
"""

import math
from typing import Any, Optional


class Missing:
    """
    An undefined result, optionally carrying the reason it is undefined.

    All Missing instances compare equal to each other regardless of reason,
    and are falsy.
    """

    __slots__ = ('_reason',)

    def __init__(self, reason: Optional[str] = None):
        self._reason = reason

    @property
    def reason(self) -> Optional[str]:
        """Why the value is undefined, if known."""
        return self._reason

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Missing)

    def __ne__(self, other: Any) -> bool:
        return not self.__eq__(other)

    def __hash__(self) -> int:
        return hash(Missing)

    def __bool__(self) -> bool:
        return False

    def __float__(self) -> float:
        return math.nan

    def __repr__(self) -> str:
        if self._reason:
            return f"Missing({self._reason!r})"
        return "Missing"


MISSING = Missing()

# Reasons used across the engines
INSUFFICIENT = "insufficient observations"
ZERO_VARIANCE = "zero variance"
NON_FINITE = "non-finite intermediate"
NO_PAIRS = "no concordant or discordant pairs"


def is_missing(value: Any) -> bool:
    """
    Check whether a value is a missing marker.

    Args:
        value: Value to check

    Returns:
        True for Missing, None and float NaN
    """
    if value is None or isinstance(value, Missing):
        return True
    if isinstance(value, float):
        return math.isnan(value)
    try:
        return bool(math.isnan(value))
    except (TypeError, ValueError):
        return False


def to_float_or_missing(value: float, reason: str = NON_FINITE):
    """
    Convert a float result to a plain float, or Missing if it is not finite.

    Args:
        value: Computed value
        reason: Reason attached when the value is not finite

    Returns:
        float or Missing
    """
    value = float(value)
    if not math.isfinite(value):
        return Missing(reason)
    return value

"""
Default scaled types and constant conversions.

    scaled_int   - ScaledValue[1024, int32]
    scaled_uint  - ScaledValue[1024, uint32]
    per100(n)    - n percent, per1000(n) and per10000(n) likewise
    fixp(x)      - exact scaled_int for a constant literal such as fixp(0.35)

1024 is coarse, but it keeps products of typical game quantities inside int32.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import functools
import logging
import math
from decimal import Decimal
from fractions import Fraction

# Local ----------------------------------------------------------------------------------------------------------------
from .core import ScaledValue, round_half_away
from .formatters import fmt_operand
from .reprs import INT32, UINT32, cdiv

logger = logging.getLogger(__name__)

scaled_int = ScaledValue[1024, INT32]
scaled_uint = ScaledValue[1024, UINT32]

FIXP_DEN = 10000

# One step of margin below the int32 range of literal * FIXP_DEN
_FIXP_MAX = INT32.max // FIXP_DEN - 1
_FIXP_MIN = cdiv(INT32.min, FIXP_DEN) + 1


# Methods --------------------------------------------------------------------------------------------------------------

def per100(num: int, *, unsigned: bool = False) -> ScaledValue:
    """
    num percent as scaled_int (scaled_uint if unsigned).

    Examples:
        >>> per100(25).raw
        256
    """
    return (scaled_uint if unsigned else scaled_int).from_scaled_raw(num, 100)


def per1000(num: int, *, unsigned: bool = False) -> ScaledValue:
    return (scaled_uint if unsigned else scaled_int).from_scaled_raw(num, 1000)


def per10000(num: int, *, unsigned: bool = False) -> ScaledValue:
    return (scaled_uint if unsigned else scaled_int).from_scaled_raw(num, 10000)


@functools.lru_cache(maxsize=None, typed=True)
def fixp(literal: int | float | Fraction | Decimal) -> ScaledValue:
    """
    Convert a constant literal to scaled_int without run-time floating point.

    The literal's exact value (a float literal is an exact binary fraction) is rounded
    to 1/10000, ties away from zero, and the result converted with from_rational.
    Results are cached, so every distinct literal is converted once.

    Literals outside roughly +/-214747 give the sentinel scaled_int(-1) and log a warning.

    Raises:
        TypeError: For str, bool and other non-numeric input.
        ValueError: For NaN and infinities.

    Examples:
        >>> fixp(0.5).raw
        512
        >>> fixp(5.2).raw
        5325
    """
    if isinstance(literal, bool) or not isinstance(literal, (int, float, Fraction, Decimal)):
        raise TypeError(f"fixp() requires a numeric literal: {fmt_operand(literal)}")
    if isinstance(literal, float) and not math.isfinite(literal):
        raise ValueError(f"fixp() requires a finite literal: {fmt_operand(literal)}")
    if isinstance(literal, Decimal) and not literal.is_finite():
        raise ValueError(f"fixp() requires a finite literal: {fmt_operand(literal)}")

    if literal >= _FIXP_MAX or literal <= _FIXP_MIN:
        logger.warning("fixp literal %s outside (%d, %d), using sentinel -1", literal, _FIXP_MIN, _FIXP_MAX)
        return scaled_int(-1)

    num = round_half_away(Fraction(literal) * FIXP_DEN)
    return scaled_int.from_rational(num, FIXP_DEN)

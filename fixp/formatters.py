"""
Debug formatting of scaled values and of operands in exception messages.
"""

# Standard library -----------------------------------------------------------------------------------------------------
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from .core import ScaledValue


# Methods --------------------------------------------------------------------------------------------------------------

def fmt_operand(obj: Any, max_repr: int = 40) -> str:
    """
    Format a value as a type-value pair for exception messages.

    Examples:
        >>> fmt_operand(0.5)
        '<float: 0.5>'
        >>> fmt_operand("x" * 50, max_repr=8)
        "<str: 'xxxxxx...>"
    """
    try:
        value_repr = repr(obj)
    except Exception as e:
        value_repr = f"<repr failed: {type(e).__name__}>"
    if len(value_repr) > max_repr:
        value_repr = value_repr[:max_repr - 1] + "..."
    return f"<{type(obj).__name__}: {value_repr}>"


def fmt_scaled(value: "ScaledValue", den: int | None = None) -> str:
    """
    Format a scaled value for debugging, the representation selected by den.

    Args:
        value: The scaled value.
        den: 1 for a rounded integer ("ca. " prefix when the value is not integral),
             100 for percent, 1000 for permille, any other positive int for a fraction
             over den. Defaults to the value's own SCALE.

    Returns:
        The formatted string.

    Examples:
        >>> from fixp.literals import per100
        >>> fmt_scaled(per100(25), 100)
        '25 percent'
        >>> fmt_scaled(per100(25), 1)
        'ca. 0'
        >>> fmt_scaled(per100(25))
        '256/1024'
    """
    if den is None:
        den = value.SCALE
    if not isinstance(den, int) or isinstance(den, bool) or den <= 0:
        raise ValueError(f"den must be a positive int: {fmt_operand(den)}")

    if den == 1:
        return f"{'' if value.is_integer() else 'ca. '}{value.to_int()}"
    if den == 100:
        return f"{value.percent()} percent"
    if den == 1000:
        return f"{value.permille()} permille"
    return f"{value.rescaled_raw(den)}/{den}"

"""
Lookup tables of the power approximation in fixp.powers.

    POW2_FRAC_256[f]        == round(256 * 2 ** (f / 128)) - 256          f in [0, 128]
    UNIT_POW_256[b-1][f-1]  == round(256 * (b / 64) ** (f / 128)) - 1     b in [1, 64], f in [1, 128]

Ties round up. Every entry is decided with exact integer arithmetic, a float estimate
only seeds the search, so the tables are identical on every platform. f == 128 is
included because rounding a fractional exponent to 1/128 can reach it.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import logging

logger = logging.getLogger(__name__)

TABLE_SCALE = 256
FRAC_STEPS = 128
BASE_STEPS = 64


# Methods --------------------------------------------------------------------------------------------------------------

def round_power(scale: int, num: int, den: int, exp_num: int, exp_den: int) -> int:
    """
    Exact round(scale * (num / den) ** (exp_num / exp_den)), ties up.

    Examples:
        >>> round_power(256, 2, 1, 64, 128)  # 256 * sqrt(2) == 362.04
        362
    """
    # m == floor(2 * y) is the largest m with m**exp_den * den**exp_num <= (2*scale)**exp_den * num**exp_num
    lhs_factor = den ** exp_num
    rhs = (2 * scale) ** exp_den * num ** exp_num
    m = int(2 * scale * (num / den) ** (exp_num / exp_den))
    while m > 0 and m ** exp_den * lhs_factor > rhs:
        m -= 1
    while (m + 1) ** exp_den * lhs_factor <= rhs:
        m += 1
    return (m + 1) // 2


def _build_pow2_frac() -> tuple[int, ...]:
    return tuple(
        round_power(TABLE_SCALE, 2, 1, f, FRAC_STEPS) - TABLE_SCALE
        for f in range(FRAC_STEPS + 1)
    )


def _build_unit_pow() -> tuple[tuple[int, ...], ...]:
    return tuple(
        tuple(
            round_power(TABLE_SCALE, b, BASE_STEPS, f, FRAC_STEPS) - 1
            for f in range(1, FRAC_STEPS + 1)
        )
        for b in range(1, BASE_STEPS + 1)
    )


POW2_FRAC_256 = _build_pow2_frac()
UNIT_POW_256 = _build_unit_pow()

logger.debug(
    "power tables ready: %d powers of two, %d x %d unit interval powers",
    len(POW2_FRAC_256), len(UNIT_POW_256), len(UNIT_POW_256[0]),
)

"""
Deterministic powers and roots of scaled values.

Integer exponents use iterated multiplication. Fractional exponents use a closed,
table-driven approximation so results never depend on a platform math library:

    b ** x == b ** e * (2 ** f) ** k * (b / 2 ** k) ** f

where e is the integer part of x, f its fractional part quantized to 1/128, and 2 ** k
the smallest power of two not below b. The last factor is looked up with the residual
base quantized to 1/64. Expect a relative error of a few percent at most.
"""

# Local ----------------------------------------------------------------------------------------------------------------
from .core import ScaledValue
from .powtables import BASE_STEPS, FRAC_STEPS, POW2_FRAC_256, UNIT_POW_256
from .reprs import UINT32, cdiv, repr_conf

_Frac128 = ScaledValue[128, UINT32]
_Unit256 = ScaledValue[256, UINT32]
_Base64 = ScaledValue[64, UINT32]


# Methods --------------------------------------------------------------------------------------------------------------

def pow_int(base: ScaledValue, exponent: int) -> ScaledValue:
    """base ** exponent, exact up to the rounding of each multiplication."""
    if exponent < 0:
        return 1 / _pow_int_non_negative(base, -exponent)
    return _pow_int_non_negative(base, exponent)


def pow_scaled(base: ScaledValue, exponent: ScaledValue) -> ScaledValue:
    """
    Approximate base ** exponent for a non-negative base.

    Raises:
        ValueError: If base is negative and range checks are enabled. With checks
                    disabled a negative base yields 0.
        ZeroDivisionError: If exponent is negative and the positive power is 0.
    """
    _check_non_negative(base, "pow")
    if exponent.is_negative():
        return 1 / _pow_scaled_non_negative(base, -exponent)
    return _pow_scaled_non_negative(base, exponent)


def sqrt(base: ScaledValue) -> ScaledValue:
    """Approximate square root, base ** (1/2)."""
    _check_non_negative(base, "sqrt")
    return _pow_scaled_non_negative(base, type(base)(1, 2))


def _check_non_negative(base: ScaledValue, op: str):
    if repr_conf.checked and base.is_negative():
        raise ValueError(f"{op}() requires a non-negative base, got {base.to_float()}")


def _pow_int_non_negative(base: ScaledValue, exponent: int) -> ScaledValue:
    # Expected exponents are small, a plain loop is enough
    result = type(base)(1)
    for _ in range(exponent):
        result *= base
    return result


def _check_index(index: int, lo: int, hi: int, what: str):
    if repr_conf.checked and not lo <= index <= hi:
        raise IndexError(f"{what} {index} outside table range [{lo}, {hi}]")


def _pow_scaled_non_negative(base: ScaledValue, exponent: ScaledValue) -> ScaledValue:
    cls = type(base)

    # No accuracy below 1/64, also keeps the residual base index >= 1 for any SCALE
    if base.raw * BASE_STEPS < cls.SCALE:
        return cls(0)

    # Unsigned working type rounds to nearest
    work = ScaledValue[cls.SCALE, cls.REPR.unsigned()]

    exp_int = cdiv(exponent.raw, cls.SCALE)
    frac = _Frac128(exponent - exp_int).raw
    _check_index(frac, 0, FRAC_STEPS, "fractional exponent")

    # (2 ** f) ** k while finding the smallest 2 ** k >= base
    pow_of_two = work(_Unit256.from_raw(POW2_FRAC_256[frac]).increment())
    product_of_powers = work(1)
    base_div = 1
    while base > base_div:
        base_div *= 2
        product_of_powers *= pow_of_two

    # (base / 2 ** k) ** f, residual base in (0, 1]
    last_factor = _Unit256(1)
    last_base = _Base64(cls.from_raw(cdiv(base.raw, base_div))).raw
    _check_index(last_base, 1, BASE_STEPS, "residual base")
    if frac != 0 and last_base != BASE_STEPS:
        last_factor = _Unit256.from_raw(UNIT_POW_256[last_base - 1][frac - 1] + 1)

    result = work(pow_int(base, exp_int)) * product_of_powers * work(last_factor)
    return cls(result)

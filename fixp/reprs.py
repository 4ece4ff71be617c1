"""
Fixed-width integer representations for scaled values.

Python integers are unbounded, so the width of the stored raw integer is modelled
explicitly: every raw result passes through ``fit()``, which either raises ``RangeError``
(range checks enabled) or wraps the value to the representation's width the way
fixed-width storage does (range checks disabled).
"""

# Standard library -----------------------------------------------------------------------------------------------------
import os
from dataclasses import dataclass

# Third-party ----------------------------------------------------------------------------------------------------------
from frozendict import frozendict


# Configuration --------------------------------------------------------------------------------------------------------

def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    value = value.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"{name} must be a boolean flag (1/0, true/false, yes/no, on/off), got: {value!r}")


class ReprConf:
    """
    Range policy for raw results.

    Attributes:
        checked (bool): When True, a raw result outside [MIN, MAX] raises RangeError.
                        When False, it wraps to the representation width.
                        Defaults to the FIXP_CHECKED environment flag, else to __debug__.
    """
    checked: bool = _env_flag("FIXP_CHECKED", default=__debug__)


repr_conf = ReprConf()


# Classes --------------------------------------------------------------------------------------------------------------

class RangeError(OverflowError):
    """Raw value would leave the [MIN, MAX] range of its integer representation."""


@dataclass(frozen=True)
class IntRepr:
    """
    A fixed-width two's complement integer type.

    Attributes:
        bits (int)    : Storage width, one of 8, 16, 32, 64.
        signed (bool) : Signed or unsigned.
    """

    bits: int
    signed: bool = True

    def __post_init__(self):
        if self.bits not in _STRUCT_CODES:
            raise ValueError(f"bits must be one of {tuple(_STRUCT_CODES)}, got {self.bits}")

    def __str__(self) -> str:
        return self.name

    @property
    def name(self) -> str:
        return f"{'' if self.signed else 'u'}int{self.bits}"

    @property
    def min(self) -> int:
        return -(1 << (self.bits - 1)) if self.signed else 0

    @property
    def max(self) -> int:
        return (1 << (self.bits - 1)) - 1 if self.signed else (1 << self.bits) - 1

    @property
    def digits(self) -> int:
        """Number of value bits, excluding the sign bit."""
        return self.bits - 1 if self.signed else self.bits

    @property
    def struct_format(self) -> str:
        """Little-endian struct format of one field of this type."""
        code = _STRUCT_CODES[self.bits]
        return "<" + (code if self.signed else code.upper())

    @property
    def size(self) -> int:
        return self.bits // 8

    def contains(self, value: int) -> bool:
        return self.min <= value <= self.max

    def wrap(self, value: int) -> int:
        """Reduce value modulo 2**bits into [min, max]."""
        value &= (1 << self.bits) - 1
        if self.signed and value > self.max:
            value -= 1 << self.bits
        return value

    def unsigned(self) -> "IntRepr":
        """The unsigned type of the same width."""
        return self if not self.signed else IntRepr(self.bits, signed=False)


_STRUCT_CODES = {8: "b", 16: "h", 32: "i", 64: "q"}

INT8 = IntRepr(8)
UINT8 = IntRepr(8, signed=False)
INT16 = IntRepr(16)
UINT16 = IntRepr(16, signed=False)
INT32 = IntRepr(32)
UINT32 = IntRepr(32, signed=False)
INT64 = IntRepr(64)
UINT64 = IntRepr(64, signed=False)

REPRS = frozendict({r.name: r for r in (INT8, UINT8, INT16, UINT16, INT32, UINT32, INT64, UINT64)})


# Methods --------------------------------------------------------------------------------------------------------------

def get_repr(value: "IntRepr | str") -> IntRepr:
    """
    Resolve an IntRepr instance or its name.

    Examples:
        >>> get_repr("uint32") is UINT32
        True
    """
    if isinstance(value, IntRepr):
        return value
    if isinstance(value, str):
        try:
            return REPRS[value]
        except KeyError:
            raise ValueError(f"unknown integer representation {value!r}, expected one of {tuple(REPRS)}") from None
    raise TypeError(f"integer representation must be IntRepr or str, got {type(value).__name__}")


def cdiv(num: int, den: int) -> int:
    """
    Integer division truncating toward zero.

    Python's ``//`` floors, which differs from fixed-width integer division for operands
    of opposite sign. A zero ``den`` raises ZeroDivisionError.

    Examples:
        >>> cdiv(-7, 2)
        -3
        >>> -7 // 2
        -4
    """
    quotient = abs(num) // abs(den)
    return quotient if (num < 0) == (den < 0) else -quotient


def fit(value: int, int_repr: IntRepr, what: str = "raw value") -> int:
    """
    Apply the range policy to a raw result.

    Returns value unchanged when it is representable. Otherwise raises RangeError if
    range checks are enabled, or returns the width-wrapped value if they are disabled.
    """
    if int_repr.min <= value <= int_repr.max:
        return value
    if repr_conf.checked:
        raise RangeError(f"{what} {value} out of {int_repr} range [{int_repr.min}, {int_repr.max}]")
    return int_repr.wrap(value)

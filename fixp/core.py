"""
Deterministic fixed-point values for lockstep simulations.

A ScaledValue stores a single fixed-width integer ``raw`` and represents ``raw / SCALE``.
Concrete types are created by parameterizing the generic class with a scale and an
integer representation, e.g. ``ScaledValue[1024, INT32]``; every concrete pair is a
distinct class, and values of different classes never mix implicitly.

Rounding rules:
    - Unsigned representations round to nearest in multiplication, division and scale
      conversion. Signed representations truncate toward zero there.
    - to_int() always rounds to nearest (signed ties away from zero).

These rules define the exact raw results that peers must agree on; they are not
interchangeable.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import math
import struct
from decimal import Decimal
from fractions import Fraction
from typing import Any, ClassVar, Self

# Local ----------------------------------------------------------------------------------------------------------------
from .formatters import fmt_operand, fmt_scaled
from .reprs import INT32, IntRepr, RangeError, cdiv, fit, get_repr, repr_conf


# Classes --------------------------------------------------------------------------------------------------------------

class ScaledValue:
    """
    Fixed-point number ``raw / SCALE`` stored in a fixed-width integer.

    Parameterize before use: ``ScaledValue[scale]`` (int32 storage) or
    ``ScaledValue[scale, repr]`` with an IntRepr or its name ("uint32", "int64", ...).

    Construction:
        T(i)               - from int, exact: raw = SCALE * i
        T(num, den)        - from the rational num/den, rounded to nearest
        T(other)           - explicit conversion from another scaled type
        T.from_raw(raw)    - from a raw integer

    Instances are immutable; arithmetic operators return new values. Operands are values
    of the same concrete type or plain ints. Floats are rejected, use fixp() for literals.

    Examples:
        >>> T = ScaledValue[1024, "int32"]
        >>> (T(3) / 2).raw
        1536
        >>> str(T(1, 4))
        '256/1024'
    """

    __slots__ = ("_raw",)

    SCALE: ClassVar[int]
    REPR: ClassVar[IntRepr]
    MIN: ClassVar[int]
    MAX: ClassVar[int]
    SIGNED: ClassVar[bool]

    _types: ClassVar[dict[tuple[int, IntRepr], type["ScaledValue"]]] = {}

    def __class_getitem__(cls, params) -> type["ScaledValue"]:
        if cls is not ScaledValue:
            raise TypeError(f"{cls.__name__} is already parameterized")
        if not isinstance(params, tuple):
            params = (params, INT32)
        if len(params) != 2:
            raise TypeError(f"expected ScaledValue[scale, repr], got {len(params)} parameters")

        scale, int_repr = params
        if isinstance(scale, bool) or not isinstance(scale, int):
            raise TypeError(f"scale must be an int: {fmt_operand(scale)}")
        if scale <= 0:
            raise ValueError(f"scale must be positive, got {scale}")
        int_repr = get_repr(int_repr)

        key = (scale, int_repr)
        concrete = cls._types.get(key)
        if concrete is None:
            name = f"ScaledValue[{scale}, {int_repr}]"
            concrete = type(name, (ScaledValue,), {
                "__slots__": (),
                "__module__": __name__,
                "__qualname__": name,
                "SCALE": scale,
                "REPR": int_repr,
                "MIN": int_repr.min,
                "MAX": int_repr.max,
                "SIGNED": int_repr.signed,
            })
            concrete = cls._types.setdefault(key, concrete)
        return concrete

    def __init__(self, value: "int | ScaledValue" = 0, den: int | None = None):
        cls = type(self)
        cls._require_concrete()

        if isinstance(value, ScaledValue):
            if den is not None:
                raise TypeError("den is not accepted when converting a scaled value")
            raw = cls._converted_raw(value)
        elif _is_int(value):
            if den is None:
                raw = fit(cls.SCALE * value, cls.REPR, f"int {value} scaled by {cls.SCALE} to")
            elif _is_int(den):
                raw = fit(round_half_away(Fraction(value * cls.SCALE, den)), cls.REPR, f"{value}/{den} as")
            else:
                raise TypeError(f"den must be an int: {fmt_operand(den)}")
        else:
            raise TypeError(
                f"{cls.__name__} requires an int or a scaled value, got {fmt_operand(value)}. "
                f"Wrap constant float literals in fixp()"
            )
        object.__setattr__(self, "_raw", raw)

    def __setattr__(self, name: str, value: Any):
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str):
        raise AttributeError(f"{type(self).__name__} is immutable")

    # Construction -----------------------------------------------------------------------------------------------------

    @classmethod
    def from_int(cls, i: int) -> Self:
        """Exact conversion, raw = SCALE * i."""
        if not _is_int(i):
            raise TypeError(f"from_int() requires an int: {fmt_operand(i)}")
        return cls(i)

    @classmethod
    def from_rational(cls, num: int, den: int) -> Self:
        """The rational num/den rounded to the nearest raw value, ties away from zero."""
        if not (_is_int(num) and _is_int(den)):
            raise TypeError(f"from_rational() requires int operands: {fmt_operand(num)}, {fmt_operand(den)}")
        return cls(num, den)

    @classmethod
    def from_fraction(cls, value: int | Fraction | Decimal) -> Self:
        """
        Exact constant conversion of an int, Fraction or Decimal, rounded to the nearest raw
        value with ties away from zero. No floating point is involved.
        """
        if isinstance(value, bool) or not isinstance(value, (int, Fraction, Decimal)):
            raise TypeError(f"from_fraction() requires int, Fraction or Decimal: {fmt_operand(value)}")
        cls._require_concrete()
        raw = round_half_away(Fraction(value) * cls.SCALE)
        return cls._new(fit(raw, cls.REPR, f"{value} as"))

    @classmethod
    def from_raw(cls, raw: int) -> Self:
        if not _is_int(raw):
            raise TypeError(f"raw must be an int: {fmt_operand(raw)}")
        cls._require_concrete()
        return cls._new(fit(raw, cls.REPR))

    @classmethod
    def from_scaled_raw(cls, num: int, den: int) -> Self:
        """
        Interpret num as a raw count at scale den and convert it to this type.

        Uses the scale conversion rule, so signed types truncate: per100(33) has raw 337
        at scale 1024 (33 * 1024 / 100 == 337.92).
        """
        cls._require_concrete()
        return cls(ScaledValue[den, cls.REPR].from_raw(num))

    @classmethod
    def from_bytes(cls, data: bytes) -> Self:
        """Read the raw integer from its fixed-size little-endian field."""
        cls._require_concrete()
        (raw,) = struct.unpack(cls.REPR.struct_format, data)
        return cls._new(raw)

    @classmethod
    def _new(cls, raw: int) -> Self:
        obj = object.__new__(cls)
        object.__setattr__(obj, "_raw", raw)
        return obj

    @classmethod
    def _require_concrete(cls):
        if cls is ScaledValue:
            raise TypeError("ScaledValue must be parameterized first, e.g. ScaledValue[1024, 'int32']")

    @classmethod
    def _converted_raw(cls, other: "ScaledValue") -> int:
        if other.SCALE == cls.SCALE:
            return fit(other.raw, cls.REPR, f"{type(other).__name__} raw value")
        return cls._rescale(other.raw, other.SCALE, cls.SCALE)

    @classmethod
    def _rescale(cls, num: int, from_scale: int, to_scale: int) -> int:
        """num * to_scale / from_scale; unsigned rounds to nearest, signed truncates."""
        num *= to_scale
        if not cls.SIGNED:
            num += from_scale // 2
        return fit(cdiv(num, from_scale), cls.REPR, f"rescaled {from_scale} -> {to_scale}")

    def _round_rescale(self, num: int, from_scale: int, to_scale: int) -> int:
        """num * to_scale / from_scale rounded to nearest, signed ties away from zero."""
        num *= to_scale
        half = from_scale // 2
        if not self.SIGNED or num >= 0:
            num += half
        else:
            num -= half
        return cdiv(num, from_scale)

    # Conversion -------------------------------------------------------------------------------------------------------

    @property
    def raw(self) -> int:
        return self._raw

    def to_int(self) -> int:
        """Round to the nearest int; signed ties away from zero, unsigned ties up."""
        half = self.SCALE // 2
        if not self.SIGNED or self._raw > 0:
            return cdiv(self._raw + half, self.SCALE)
        return cdiv(self._raw - half, self.SCALE)

    def to_float(self) -> float:
        """For display and testing only."""
        return self._raw / self.SCALE

    to_double = to_float

    def is_integer(self) -> bool:
        return self._raw % self.SCALE == 0

    def percent(self) -> int:
        return self._round_rescale(self._raw, self.SCALE, 100)

    def permille(self) -> int:
        return self._round_rescale(self._raw, self.SCALE, 1000)

    def round_to_multiple(self, multiple: int) -> int:
        """The multiple of a positive int nearest to this value."""
        if not _is_int(multiple) or multiple <= 0:
            raise ValueError(f"multiple must be a positive int: {fmt_operand(multiple)}")
        return self._round_rescale(self._raw, self.SCALE * multiple, 1) * multiple

    def rescaled_raw(self, to_scale: int) -> int:
        """The raw count this value has at scale to_scale, by the conversion rounding rule."""
        return self._rescale(self._raw, self.SCALE, to_scale)

    def mul_div(self, multiplier: int, divisor: int) -> Self:
        """Multiply by multiplier/divisor, rounding like a scale conversion."""
        return self._new(self._rescale(self._raw, divisor, multiplier))

    def to_bytes(self) -> bytes:
        """The raw integer as one fixed-size little-endian field."""
        return struct.pack(self.REPR.struct_format, self._raw)

    def fmt(self, den: int | None = None) -> str:
        """Debug string: den 1 for int, 100 for percent, 1000 for permille, else num/den."""
        return fmt_scaled(self, den)

    def __float__(self) -> float:
        return self.to_float()

    def __round__(self, ndigits: int | None = None) -> int:
        if ndigits is not None:
            raise TypeError(f"{type(self).__name__} only rounds to int")
        return self.to_int()

    def __str__(self) -> str:
        return self.fmt()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(raw={self._raw})"

    def __reduce__(self):
        return _restore, (self.SCALE, self.REPR.name, self._raw)

    def __copy__(self) -> Self:
        return self

    def __deepcopy__(self, memo) -> Self:
        return self

    # Arithmetic -------------------------------------------------------------------------------------------------------

    def _coerce(self, other: Any, op: str):
        cls = type(self)
        if type(other) is cls:
            return other
        if _is_int(other):
            return cls(other)
        if isinstance(other, ScaledValue):
            raise TypeError(
                f"unsupported operand types for {op}: {cls.__name__} and {type(other).__name__}, "
                f"convert explicitly"
            )
        if isinstance(other, float):
            raise TypeError(
                f"unsupported operand for {op}: {fmt_operand(other)}, wrap constant float literals in fixp()"
            )
        return NotImplemented

    def __add__(self, other: "int | ScaledValue") -> Self:
        other = self._coerce(other, "+")
        if other is NotImplemented:
            return NotImplemented
        return self._new(fit(self._raw + other._raw, self.REPR, "sum"))

    __radd__ = __add__

    def __sub__(self, other: "int | ScaledValue") -> Self:
        other = self._coerce(other, "-")
        if other is NotImplemented:
            return NotImplemented
        return self._new(fit(self._raw - other._raw, self.REPR, "difference"))

    def __rsub__(self, other: int) -> Self:
        other = self._coerce(other, "-")
        if other is NotImplemented:
            return NotImplemented
        return self._new(fit(other._raw - self._raw, self.REPR, "difference"))

    def __mul__(self, other: "int | ScaledValue") -> Self:
        other = self._coerce(other, "*")
        if other is NotImplemented:
            return NotImplemented
        return self._new(self._mul_raw(self._raw, other._raw))

    __rmul__ = __mul__

    def __truediv__(self, other: "int | ScaledValue") -> Self:
        other = self._coerce(other, "/")
        if other is NotImplemented:
            return NotImplemented
        return self._new(self._div_raw(self._raw, other._raw))

    def __rtruediv__(self, other: int) -> Self:
        other = self._coerce(other, "/")
        if other is NotImplemented:
            return NotImplemented
        return self._new(self._div_raw(other._raw, self._raw))

    def _mul_raw(self, a: int, b: int) -> int:
        cls = type(self)
        if cls.REPR.digits <= 32:
            # Widened intermediate
            num = a * b
            if not cls.SIGNED:
                num += cls.SCALE // 2
            return fit(cdiv(num, cls.SCALE), cls.REPR, "product")
        # No widening beyond REPR; the unscaled product itself must fit
        num = fit(a * b, cls.REPR, "unscaled product")
        if not cls.SIGNED:
            num = fit(num + cls.SCALE // 2, cls.REPR, "unscaled product")
        return cdiv(num, cls.SCALE)

    def _div_raw(self, a: int, b: int) -> int:
        cls = type(self)
        num = a * cls.SCALE
        # Widened, but the scaled dividend must still fit REPR while checks are on
        if repr_conf.checked and not cls.REPR.contains(num):
            raise RangeError(f"scaled dividend {num} out of {cls.REPR} range [{cls.MIN}, {cls.MAX}]")
        if not cls.SIGNED:
            num += b // 2
        # Zero divisor is not guarded, ZeroDivisionError propagates
        return fit(cdiv(num, b), cls.REPR, "quotient")

    def increment(self) -> Self:
        return self + 1

    def decrement(self) -> Self:
        return self - 1

    def __neg__(self) -> Self:
        return self._new(fit(-self._raw, self.REPR, "negation"))

    def __pos__(self) -> Self:
        return self

    def __abs__(self) -> Self:
        return self._new(fit(abs(self._raw), self.REPR, "absolute value"))

    def abs(self) -> Self:
        return abs(self)

    def is_positive(self) -> bool:
        return self._raw > 0

    def is_negative(self) -> bool:
        return self.SIGNED and self._raw < 0

    def __bool__(self) -> bool:
        return self._raw != 0

    # Comparison -------------------------------------------------------------------------------------------------------

    def _cmp_raw(self, other: Any):
        cls = type(self)
        if type(other) is cls:
            return other._raw
        if _is_int(other):
            # Exact: the int is scaled up, raw is never truncated
            return other * cls.SCALE
        if isinstance(other, ScaledValue):
            raise TypeError(f"cannot compare {cls.__name__} with {type(other).__name__}, convert explicitly")
        if isinstance(other, float):
            raise TypeError(f"cannot compare {cls.__name__} with {fmt_operand(other)}, use fixp()")
        return NotImplemented

    def __eq__(self, other: Any) -> bool:
        key = self._cmp_raw(other)
        if key is NotImplemented:
            return NotImplemented
        return self._raw == key

    def __ne__(self, other: Any) -> bool:
        key = self._cmp_raw(other)
        if key is NotImplemented:
            return NotImplemented
        return self._raw != key

    def __lt__(self, other: Any) -> bool:
        key = self._cmp_raw(other)
        if key is NotImplemented:
            return NotImplemented
        return self._raw < key

    def __le__(self, other: Any) -> bool:
        key = self._cmp_raw(other)
        if key is NotImplemented:
            return NotImplemented
        return self._raw <= key

    def __gt__(self, other: Any) -> bool:
        key = self._cmp_raw(other)
        if key is NotImplemented:
            return NotImplemented
        return self._raw > key

    def __ge__(self, other: Any) -> bool:
        key = self._cmp_raw(other)
        if key is NotImplemented:
            return NotImplemented
        return self._raw >= key

    def __hash__(self) -> int:
        # Consistent with equality against ints
        return hash(Fraction(self._raw, self.SCALE))

    def approx_equals(self, value: "int | ScaledValue", epsilon: "int | ScaledValue") -> bool:
        """True iff abs(self - value) <= epsilon. Float operands are rejected."""
        return abs(self - value) <= epsilon

    # Bounds -----------------------------------------------------------------------------------------------------------

    def clamp(self, lo: "int | ScaledValue", hi: "int | ScaledValue") -> Self:
        """
        This value limited to [lo, hi]; bounds are ints or values of the same type.

        Values are immutable, so the clamped value is returned.
        """
        if repr_conf.checked and hi < lo:
            raise ValueError(f"clamp bounds out of order: lo={lo}, hi={hi}")
        return self.increase_to(lo).decrease_to(hi)

    def increase_to(self, lo: "int | ScaledValue") -> Self:
        return self._bound(lo, "increase_to") if self < lo else self

    def decrease_to(self, hi: "int | ScaledValue") -> Self:
        return self._bound(hi, "decrease_to") if self > hi else self

    clamped = clamp
    increased_to = increase_to
    decreased_to = decrease_to

    def _bound(self, bound: Any, op: str) -> Self:
        value = self._coerce(bound, op)
        if value is NotImplemented:
            raise TypeError(f"{op}() bound must be an int or {type(self).__name__}: {fmt_operand(bound)}")
        return value

    # Powers -----------------------------------------------------------------------------------------------------------

    def pow(self, exponent: "int | ScaledValue") -> Self:
        """
        Integer exponents are exact (iterated multiplication). Exponents of the same scaled
        type use the table-driven approximation and require a non-negative base.
        """
        from .powers import pow_int, pow_scaled

        if _is_int(exponent):
            return pow_int(self, exponent)
        if type(exponent) is type(self):
            return pow_scaled(self, exponent)
        raise TypeError(
            f"exponent must be an int or {type(self).__name__}: {fmt_operand(exponent)}, "
            f"wrap constant float literals in fixp()"
        )

    def __pow__(self, exponent: "int | ScaledValue", modulo: None = None) -> Self:
        if modulo is not None:
            return NotImplemented
        return self.pow(exponent)

    def sqrt(self) -> Self:
        from .powers import sqrt

        return sqrt(self)

    # Random -----------------------------------------------------------------------------------------------------------

    def bernoulli_success(self, rng, tag: str | None = None, *log_data: int) -> bool:
        """
        Bernoulli trial with success probability raw / SCALE.

        Probabilities at or below 0 and at or above 1 are decided without drawing, so the
        shared random stream is only consumed by trials that can go either way.

        Args:
            rng: A RandomSource; get_int(SCALE, tag, *log_data) draws from [0, SCALE).
            tag: Optional label for the draw in diagnostic logs.
            log_data: Optional ints logged with the draw.
        """
        if self._raw <= 0:
            return False
        if self._raw >= self.SCALE:
            return True
        return rng.get_int(self.SCALE, tag, *log_data) < self._raw


# Methods --------------------------------------------------------------------------------------------------------------

def round_half_away(value: Fraction) -> int:
    """
    Round a rational to the nearest int, ties away from zero.

    Examples:
        >>> round_half_away(Fraction(5, 2)), round_half_away(Fraction(-5, 2))
        (3, -3)
    """
    magnitude = math.floor(abs(value) + Fraction(1, 2))
    return magnitude if value >= 0 else -magnitude


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _restore(scale: int, repr_name: str, raw: int) -> ScaledValue:
    return ScaledValue[scale, repr_name].from_raw(raw)

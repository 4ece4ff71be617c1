#
# FIXP - Powers Tests
#

# Standard library -----------------------------------------------------------------------------------------------------
import math

# Third-party ----------------------------------------------------------------------------------------------------------
import pytest

# Local ----------------------------------------------------------------------------------------------------------------
from fixp.core import ScaledValue
from fixp.literals import fixp, scaled_int, scaled_uint
from fixp.powers import _check_index
from fixp.powtables import BASE_STEPS, FRAC_STEPS, POW2_FRAC_256, UNIT_POW_256, round_power
from fixp.reprs import UINT32


# Tests ----------------------------------------------------------------------------------------------------------------

class TestRoundPower:

    @pytest.mark.parametrize(
        "args, expected",
        [
            pytest.param((256, 2, 1, 64, 128), 362, id="sqrt2"),
            pytest.param((2, 1, 4, 1, 1), 1, id="tie-up"),
            pytest.param((1, 9, 4, 1, 2), 2, id="exact-root-tie"),
            pytest.param((4, 1, 1, 1, 1), 4, id="identity"),
            pytest.param((256, 1, 64, 128, 128), 4, id="smallest-base"),
        ],
    )
    def test_round_power(self, args, expected):
        assert round_power(*args) == expected


class TestTables:

    def test_pow2_shape_and_ends(self):
        assert len(POW2_FRAC_256) == FRAC_STEPS + 1
        assert POW2_FRAC_256[0] == 0
        assert POW2_FRAC_256[FRAC_STEPS] == 256
        assert POW2_FRAC_256[64] == 106

    def test_pow2_increasing(self):
        assert all(a < b for a, b in zip(POW2_FRAC_256, POW2_FRAC_256[1:]))

    def test_unit_shape(self):
        assert len(UNIT_POW_256) == BASE_STEPS
        assert all(len(row) == FRAC_STEPS for row in UNIT_POW_256)

    def test_unit_known_entries(self):
        # Base 1 is 1 for every exponent
        assert set(UNIT_POW_256[BASE_STEPS - 1]) == {255}
        # round(256 * sqrt(1/2)) == 181
        assert UNIT_POW_256[31][63] == 180
        assert UNIT_POW_256[0][FRAC_STEPS - 1] == 3

    def test_unit_monotone(self):
        for b in range(BASE_STEPS):
            row = UNIT_POW_256[b]
            assert all(x >= y for x, y in zip(row, row[1:]))
        for f in range(FRAC_STEPS):
            column = [row[f] for row in UNIT_POW_256]
            assert all(x <= y for x, y in zip(column, column[1:]))


class TestTableIndex:

    @pytest.mark.parametrize(
        "index, lo, hi",
        [
            pytest.param(0, 1, BASE_STEPS, id="residual-base-zero"),
            pytest.param(BASE_STEPS + 1, 1, BASE_STEPS, id="residual-base-above"),
            pytest.param(FRAC_STEPS + 1, 0, FRAC_STEPS, id="fraction-above"),
            pytest.param(-1, 0, FRAC_STEPS, id="fraction-negative"),
        ],
    )
    def test_out_of_range_raises(self, index, lo, hi):
        with pytest.raises(IndexError, match="outside table range"):
            _check_index(index, lo, hi, "index")

    def test_in_range(self):
        _check_index(1, 1, BASE_STEPS, "index")
        _check_index(FRAC_STEPS, 0, FRAC_STEPS, "index")

    def test_unchecked_skips(self, unchecked):
        _check_index(0, 1, BASE_STEPS, "index")


class TestPowInt:

    def test_small_powers(self):
        assert scaled_int(2).pow(0) == 1
        assert scaled_int(2).pow(1) == 2
        assert scaled_int(3) ** 3 == 27
        assert scaled_int(-2) ** 3 == -8

    @pytest.mark.parametrize("raw", [-5000, -1, 0, 337, 1536, 5325])
    def test_identities(self, raw):
        x = scaled_int.from_raw(raw)
        assert x.pow(0) == 1
        assert x.pow(1) == x
        assert x.pow(2) == x * x

    @pytest.mark.parametrize(
        "exponent, raw",
        [
            pytest.param(-1, 512, id="reciprocal"),
            pytest.param(-2, 256, id="reciprocal-square"),
        ],
    )
    def test_negative_exponent(self, exponent, raw):
        assert scaled_int(2).pow(exponent).raw == raw

    def test_zero_to_negative_raises(self):
        with pytest.raises(ZeroDivisionError):
            scaled_int(0) ** -1

    def test_overflow(self):
        with pytest.raises(OverflowError):
            scaled_int(100) ** 4


class TestPowScaled:

    def test_worked_example(self):
        assert (fixp(5.2) ** fixp(2.1)).raw == 32867

    @pytest.mark.parametrize(
        "base, exponent, raw",
        [
            pytest.param(fixp(0.5), fixp(2.1), 239, id="half-to-2.1"),
            pytest.param(fixp(1.5), fixp(2.1), 2407, id="1.5-to-2.1"),
            pytest.param(scaled_int(10), fixp(0.25), 1814, id="10-to-quarter"),
        ],
    )
    def test_known_results(self, base, exponent, raw):
        assert base.pow(exponent).raw == raw

    def test_integral_exponent_is_exact(self):
        assert scaled_int(3) ** scaled_int(2) == 9
        assert fixp(1.5) ** scaled_int(2) == fixp(1.5) ** 2

    def test_zero_exponent(self):
        assert fixp(3.7) ** scaled_int(0) == 1

    def test_sqrt(self):
        assert scaled_int(4).sqrt().raw == 2048
        assert scaled_int(4).sqrt() == scaled_int(4) ** fixp(0.5)

    def test_negative_exponent(self):
        assert (scaled_int(4) ** -fixp(0.5)).raw == 512

    def test_near_zero_base_gives_zero(self):
        assert (scaled_int.from_raw(15) ** fixp(0.5)).raw == 0
        assert scaled_int(0).sqrt() == 0

    @pytest.mark.parametrize(
        "cls",
        [
            pytest.param(ScaledValue[10], id="scale-10"),
            pytest.param(ScaledValue[48], id="scale-48"),
            pytest.param(ScaledValue[63, UINT32], id="scale-63-unsigned"),
        ],
    )
    def test_zero_base_small_scale(self, cls):
        assert cls(0).sqrt().raw == 0
        assert (cls(0) ** cls(1, 2)).raw == 0
        assert (cls(0) ** cls(3, 2)).raw == 0

    def test_small_scale(self):
        small = ScaledValue[10]
        assert small(4).sqrt() == 2
        assert small(9) ** small(1) == 9

    def test_near_zero_base_negative_exponent_raises(self):
        with pytest.raises(ZeroDivisionError):
            scaled_int(0) ** -fixp(0.5)

    def test_unsigned_base(self):
        assert scaled_uint(4).sqrt() == 2
        assert type(scaled_uint(4).sqrt()) is scaled_uint

    def test_result_type(self):
        assert type(fixp(5.2) ** fixp(2.1)) is scaled_int

    def test_negative_base_raises(self):
        with pytest.raises(ValueError, match="non-negative"):
            scaled_int(-4) ** fixp(0.5)
        with pytest.raises(ValueError, match="non-negative"):
            scaled_int(-4).sqrt()

    def test_negative_base_unchecked_gives_zero(self, unchecked):
        assert (scaled_int(-4) ** fixp(0.5)).raw == 0

    @pytest.mark.parametrize(
        "exponent",
        [
            pytest.param(0.5, id="float"),
            pytest.param(scaled_uint(1), id="other-scaled-type"),
            pytest.param("2", id="str"),
        ],
    )
    def test_invalid_exponent_raises(self, exponent):
        with pytest.raises(TypeError):
            scaled_int(2).pow(exponent)

    def test_three_argument_pow_unsupported(self):
        with pytest.raises(TypeError):
            pow(scaled_int(2), 2, 5)


class TestApproximation:

    BASES = [fixp(0.5), fixp(1.5), scaled_int(2), fixp(3.7), fixp(5.2), scaled_int(10), scaled_int(25), scaled_int(100)]
    EXPONENTS = [fixp(0.25), fixp(0.5), fixp(0.75), fixp(1.5), fixp(2.1)]

    @pytest.mark.parametrize("base", BASES, ids=str)
    @pytest.mark.parametrize("exponent", EXPONENTS, ids=str)
    def test_within_five_percent(self, base, exponent):
        expected = math.pow(base.to_float(), exponent.to_float())
        actual = (base ** exponent).to_float()
        assert actual == pytest.approx(expected, rel=0.05)

    @pytest.mark.parametrize("raw", [1024, 2000, 4096, 9999, 65536, 1 << 20])
    def test_sqrt_squares_back(self, raw):
        value = scaled_int.from_raw(raw)
        root = value.sqrt()
        assert (root * root).to_float() == pytest.approx(value.to_float(), rel=0.05)

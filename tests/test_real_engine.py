"""Tests de la aritmética básica de ``RealValue``."""

import pytest
from mpmath import mp

from engine_config import PrecisionConfig
from real_engine import RealValue


def real(text, radix=10):
    return RealValue.from_string(text, radix)


class TestArithmetic:
    """Suma, resta, producto, división y módulo en base 10."""

    def test_add_is_exact(self):
        value = real("0.1")
        value.add(real("0.2"))
        assert value.to_string() == "0.3"

    def test_add_different_orders(self):
        value = real("1e20")
        value.add(real("1e-10"))
        assert value.to_string() == "100000000000000000000.0000000001"

    def test_add_drops_negligible_operand(self):
        value = real("1e40")
        value.add(real("1"))
        assert value.to_string() == "1e40"

    def test_subtract_to_zero(self):
        value = real("12.5")
        value.subtract(real("12.5"))
        assert value.is_zero
        assert not value.is_negative

    def test_subtract_sign(self):
        value = real("1.5")
        value.subtract(real("4"))
        assert value.to_string() == "-2.5"

    def test_multiply(self):
        value = real("1.5")
        value.multiply_by(real("-2"))
        assert value.to_string() == "-3"

    def test_divide_rounds_last_digit(self):
        third = real("1")
        third.divide_by(real("3"))
        assert third.to_string() == "0." + "3" * 32
        two_thirds = real("2")
        two_thirds.divide_by(real("3"))
        assert two_thirds.to_string() == "0." + "6" * 31 + "7"

    def test_divide_exact(self):
        value = real("1")
        value.divide_by(real("8"))
        assert value.to_string() == "0.125"

    def test_division_identity(self):
        a, b = real("355.113"), real("-0.0113")
        quotient = a.duplicate()
        quotient.divide_by(b)
        quotient.multiply_by(b)
        quotient.subtract(a)
        assert quotient.is_zero or quotient.order < a.order - 30

    def test_addition_associative_for_exact_values(self):
        a, b, c = real("1.25"), real("-3.5"), real("1000.125")
        left = a.duplicate()
        left.add(b)
        left.add(c)
        right = b.duplicate()
        right.add(c)
        right.add(a)
        assert left.compare_with(right) == 0

    def test_multiplication_commutes_and_associates(self):
        a, b, c = real("1.25"), real("-3.5"), real("1000.125")
        left = a.duplicate()
        left.multiply_by(b)
        right = b.duplicate()
        right.multiply_by(a)
        assert left.compare_with(right) == 0
        left.multiply_by(c)
        right = b.duplicate()
        right.multiply_by(c)
        right.multiply_by(a)
        assert left.compare_with(right) == 0
        assert left.to_string() == "-4375.546875"

    @pytest.mark.parametrize(
        "dividend, divisor, expected",
        [("7.5", "2", "1.5"), ("-7", "3", "-1"), ("7", "-3", "1"), ("2", "7", "2"), ("1e30", "7", "1")],
    )
    def test_modulo(self, dividend, divisor, expected):
        value = real(dividend)
        value.modulo_by(real(divisor))
        assert value.to_string() == expected

    def test_aliasing(self):
        value = real("2.5")
        value.add(value)
        assert value.to_string() == "5"
        value.multiply_by(value)
        assert value.to_string() == "25"
        value.divide_by(value)
        assert value.to_string() == "1"


class TestSpecialValues:
    def test_divide_by_zero_is_invalid(self):
        value = real("1")
        value.divide_by(real("0"))
        assert not value.valid
        assert value.to_string() == "NaN"

    def test_invalid_propagates(self):
        broken = real("1")
        broken.divide_by(real("0"))
        value = real("3")
        value.add(broken)
        assert not value.valid
        broken.add(real("3"))
        assert not broken.valid

    def test_invalid_sorts_first(self):
        broken = real("zz")
        assert broken.compare_with(real("-1e100")) == -1
        assert real("0").compare_with(broken) == 1
        assert broken.compare_with(real("q")) == 0

    def test_overflow_is_invalid(self):
        value = real("1e32767")
        assert value.valid
        value.multiply_by(real("10"))
        assert not value.valid

    def test_underflow_is_zero(self):
        value = real("1e-32767")
        value.divide_by(real("10"))
        assert value.valid
        assert value.is_zero

    def test_scale_by_radix(self):
        value = real("1.5")
        value.scale_by_radix(3)
        assert value.to_string() == "1500"


class TestParts:
    def test_whole_and_fractional_part(self):
        whole = real("-3.75")
        whole.whole_part()
        assert whole.to_string() == "-3"
        fraction = real("-3.75")
        fraction.fractional_part()
        assert fraction.to_string() == "-0.75"

    def test_small_whole_part_is_zero(self):
        value = real("0.999")
        value.whole_part()
        assert value.is_zero

    def test_to_int(self):
        assert real("-12.9").to_int() == -12
        assert real("1e20").to_int() == 10**20

    def test_is_integral(self):
        assert real("12").is_integral
        assert not real("12.5").is_integral


class TestRadixAndPrecision:
    def test_operand_converted_to_receiver_radix(self):
        value = real("10")
        value.add(RealValue.from_int(16, 16))
        assert value.radix == 10
        assert value.to_string() == "26"

    def test_precision_mismatch_raises(self):
        other = RealValue.from_int(1, 10, PrecisionConfig(num_limbs=4))
        with pytest.raises(ValueError):
            real("1").add(other)

    def test_config_validation(self):
        with pytest.raises(ValueError):
            PrecisionConfig(num_limbs=1)
        with pytest.raises(ValueError):
            PrecisionConfig(limb_bits=17)
        with pytest.raises(ValueError):
            PrecisionConfig(limb_bits=5)

    def test_narrowest_limbs_hold_base_36(self):
        value = RealValue.from_string("ZZ", 36, PrecisionConfig(limb_bits=6))
        assert value.layout.value_precision == 1
        value.add(RealValue.from_int(1, 36, PrecisionConfig(limb_bits=6)))
        assert value.to_string() == "100"

    def test_with_precision_rounds(self):
        third = real("1")
        third.divide_by(real("3"))
        short = third.with_precision(PrecisionConfig(num_limbs=2))
        assert short.to_string() == "0.33333333"


class TestConversions:
    def test_from_float_is_exact_binary_value(self):
        value = RealValue.from_float(0.1)
        with mp.workdps(60):
            assert abs(value.to_mpf() - mp.mpf(0.1)) < mp.mpf(10) ** -32

    def test_from_float_nan(self):
        assert not RealValue.from_float(float("nan")).valid

    def test_double_value(self):
        assert real("-2.5e-3").double_value == -0.0025

    def test_mantissa_and_exponent_strings(self):
        value = real("6.02e200")
        assert value.mantissa_string == "6.02"
        assert value.exponent_string == "200"
        assert value.has_exponent

    def test_serialize_roundtrip(self):
        value = real("-123.456e7")
        value.user_point = 3
        data = value.serialize()
        restored = RealValue.deserialize(data)
        assert restored.limbs == value.limbs
        assert restored.exponent == value.exponent
        assert restored.user_point == 3
        assert restored.to_string() == value.to_string()

    def test_deserialize_rejects_mismatched_layout(self):
        data = real("1").serialize()
        data["value_precision"] = 3
        with pytest.raises(ValueError):
            RealValue.deserialize(data)


class TestIntegerFunctions:
    def test_hex_literal(self):
        value = real("FF", 16)
        assert value.valid
        assert value.to_int() == 255

    @pytest.mark.parametrize("n, expected", [("0", "1"), ("5", "120"), ("20", "2432902008176640000")])
    def test_factorial(self, n, expected):
        value = real(n)
        value.factorial()
        assert value.to_string() == expected

    @pytest.mark.parametrize("n", ["2.5", "-1"])
    def test_factorial_outside_domain(self, n):
        value = real(n)
        value.factorial()
        assert not value.valid

    def test_permutations_and_combinations(self):
        value = real("10")
        value.n_pr(real("3"))
        assert value.to_string() == "720"
        value = real("52")
        value.n_cr(real("5"))
        assert value.to_string() == "2598960"
        value = real("3")
        value.n_cr(real("5"))
        assert not value.valid

    def test_sum(self):
        value = real("100")
        value.sum()
        assert value.to_string() == "5050"

    def test_truncated_quotient_identity(self):
        a, b = real("17.5"), real("-4")
        quotient = a.duplicate()
        quotient.divide_by(b)
        quotient.whole_part()
        quotient.multiply_by(b)
        remainder = a.duplicate()
        remainder.modulo_by(b)
        quotient.add(remainder)
        assert quotient.compare_with(a) == 0


class TestBitwise:
    def test_not_with_width(self):
        value = real("0")
        value.bitnot_with_complement(8)
        assert value.to_string() == "255"

    def test_not_unbounded(self):
        value = real("5")
        value.bitnot_with_complement(0)
        assert value.to_string() == "-6"

    def test_binary_operations(self):
        for method, expected in (("and_with", "8"), ("or_with", "14"), ("xor_with", "6")):
            value = real("12")
            getattr(value, method)(real("10"))
            assert value.to_string() == expected

    def test_width_truncates_high_bits(self):
        value = real("-1")
        value.and_with(real("1000"), 8)
        assert value.to_string() == str(1000 & 0xFF)

    def test_fraction_is_truncated(self):
        value = real("7.9")
        value.or_with(real("8"))
        assert value.to_string() == "15"

    def test_invalid_operand(self):
        value = real("3")
        value.xor_with(real("?"))
        assert not value.valid


class TestEngineering:
    """Desplazamientos de tres dígitos con el punto de usuario."""

    def test_exp3_up_consumes_typed_fraction(self):
        value = real("1.23456")
        assert value.user_point == 5
        value.exp3_up()
        assert value.to_string() == "1234.56"
        assert value.user_point == 2
        value.exp3_up()
        assert value.to_string() == "1234560"
        assert value.user_point == 0

    def test_exp3_down_caps_user_point(self):
        value = real("1234")
        value.exp3_down(10)
        assert value.to_string() == "1.234"
        assert value.user_point == 3
        value.exp3_down(4)
        assert value.to_string() == "0.001234"
        assert value.user_point == 4

    def test_exp3_uses_value_radix(self):
        value = real("1", 16)
        value.exp3_up()
        assert value.to_string() == "1000"
        value.exp3_down(8)
        value.exp3_down(8)
        assert value.to_string() == "0.001"

    def test_exp3_leaves_invalid_alone(self):
        value = real("?")
        value.exp3_up()
        value.exp3_down(8)
        assert not value.valid

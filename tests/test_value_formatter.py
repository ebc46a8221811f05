"""Tests del formato limitado para pantalla."""

import pytest

import value_formatter
from real_engine import RealValue


def real(text, radix=10):
    return RealValue.from_string(text, radix)


def third():
    value = real("1")
    value.divide_by(real("3"))
    return value


class TestLimitedString:
    def test_fixed_places_fit_exactly(self):
        assert real("1234.5").limited_string(6, 1) == ("1234.5", "")

    def test_fixed_places_pad_with_zeros(self):
        assert real("2.5").limited_string(10, 3).mantissa == "2.500"

    def test_rounds_to_available_room(self):
        assert third().limited_string(10).mantissa == "0.33333333"
        two_thirds = real("2")
        two_thirds.divide_by(real("3"))
        assert two_thirds.limited_string(10).mantissa == "0.66666667"

    def test_negative_sign_counts(self):
        value = third()
        value.negate()
        assert value.limited_string(6).mantissa == "-0.333"

    def test_large_integer_switches_to_scientific(self):
        parts = real("123456789").limited_string(6)
        assert parts == ("1.235", "8")
        assert value_formatter.join_exponent(parts.mantissa, parts.exponent, 10) == "1.235e8"

    @pytest.mark.parametrize("limit, places, expected", [(6, 5, ("1.235", "8")), (10, 2, ("1.23", "8")), (3, 4, ("1", "8"))])
    def test_scientific_with_fixed_places_stays_within_limit(self, limit, places, expected):
        parts = real("123456789").limited_string(limit, places)
        assert parts == expected
        assert len(parts.mantissa) + len(parts.exponent) <= limit

    def test_tiny_value_switches_to_scientific(self):
        assert real("1e-20").limited_string(10) == ("1", "-20")

    def test_rounding_carry_updates_integer_part(self):
        assert real("9.9999").limited_string(4).mantissa == "10"

    def test_fill_limit(self):
        assert real("5").limited_string(6, fill_limit=True).mantissa == "5.0000"

    def test_zero(self):
        assert real("0").limited_string(8).mantissa == "0"
        assert real("0").limited_string(8, 2).mantissa == "0.00"

    def test_invalid(self):
        assert real("x").limited_string(8).mantissa == value_formatter.INVALID_TEXT

    def test_hex_exponent_uses_radix_digits(self):
        parts = real("1@20", 16).limited_string(8)
        assert parts == ("1", "20")
        assert value_formatter.join_exponent(parts.mantissa, parts.exponent, 16) == "1@20"


class TestComplement:
    """Con ancho de complemento los enteros se muestran como patrón sin signo."""

    @pytest.mark.parametrize(
        "text, radix, bits, expected",
        [("-1", 10, 8, "255"), ("-1", 16, 16, "FFFF"), ("300", 10, 8, "44"), ("-2", 2, 4, "1110")],
    )
    def test_masked_pattern(self, text, radix, bits, expected):
        assert real(text, radix).limited_string(20, complement=bits).mantissa == expected

    def test_fraction_ignores_complement(self):
        assert real("-1.5").limited_string(20, complement=8).mantissa == "-1.5"


class TestHelpers:
    def test_round_digits_carry(self):
        assert value_formatter.round_digits([9, 9, 9], 1, 2, 10) == ([1], 2)

    def test_short_string(self):
        assert RealValue.pi().to_short_string(8) == "3.141593"

    @pytest.mark.parametrize(
        "mantissa, radix, expected",
        [
            ("1234567.89", 10, "1,234,567.89"),
            ("-1000", 10, "-1,000"),
            ("11110000", 2, "1111,0000"),
            ("123", 10, "123"),
        ],
    )
    def test_insert_thousands(self, mantissa, radix, expected):
        assert value_formatter.insert_thousands(mantissa, radix) == expected

    def test_insert_thousands_custom_point(self):
        assert value_formatter.insert_thousands("1234.5", 10, ".", ",") == "1.234,5"

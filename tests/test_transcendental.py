"""Tests de las funciones trascendentes reales contra mpmath."""

import pytest
from mpmath import mp

from engine_config import PrecisionConfig, TrigMode
from real_engine import RealValue

DIGITS = 28


def real(text, radix=10):
    return RealValue.from_string(text, radix)


def assert_close(value, expected, digits=DIGITS):
    """Error relativo por debajo de ``10**-digits`` (absoluto si se espera cero)."""
    assert value.valid
    with mp.workdps(60):
        expected = mp.mpf(expected)
        error = abs(value.to_mpf() - expected)
        scale = abs(expected) if expected else 1
        assert error <= scale * mp.mpf(10) ** -digits, (value, expected)


def applied(text, method, *args):
    value = real(text)
    getattr(value, method)(*args)
    return value


class TestConstants:
    def test_pi(self):
        with mp.workdps(60):
            assert_close(RealValue.pi(), mp.pi)

    def test_e(self):
        with mp.workdps(60):
            assert_close(applied("1", "power_of_e"), mp.e)

    @pytest.mark.parametrize("radix", [2, 16, 36])
    def test_pi_in_other_radices(self, radix):
        with mp.workdps(60):
            value = RealValue.pi(radix)
            digits = value.layout.max_digits
            tolerance = mp.mpf(radix) ** -(digits - 3)
            assert abs(value.to_mpf() - mp.pi) < tolerance

    def test_more_limbs_more_digits(self):
        precision = PrecisionConfig(num_limbs=16)
        with mp.workdps(80):
            value = RealValue.pi(10, precision)
            assert abs(value.to_mpf() - mp.pi) < mp.mpf(10) ** -60


class TestExpLog:
    @pytest.mark.parametrize("text", ["0.5", "-5.5", "20", "1e-12", "-100.25"])
    def test_exp(self, text):
        with mp.workdps(60):
            assert_close(applied(text, "power_of_e"), mp.exp(mp.mpf(text)))

    @pytest.mark.parametrize("text", ["2", "10", "0.001234", "1e300", "7.389"])
    def test_ln(self, text):
        with mp.workdps(60):
            assert_close(applied(text, "ln"), mp.log(mp.mpf(text)))

    @pytest.mark.parametrize(
        "text", ["0.99999999999999999999", "1.0000000000000000001", "0.9", "0.5", "1.999", "99.999999999999999"]
    )
    def test_ln_keeps_relative_precision_near_one(self, text):
        with mp.workdps(60):
            assert_close(applied(text, "ln"), mp.log(mp.mpf(text)))

    def test_power_near_one(self):
        value = real("1.0000000001")
        value.raise_to_power(real("3.5"))
        with mp.workdps(60):
            assert_close(value, mp.power(mp.mpf("1.0000000001"), mp.mpf("3.5")))

    def test_ln_of_one_is_zero(self):
        assert applied("1", "ln").is_zero

    @pytest.mark.parametrize("text", ["0", "-2"])
    def test_ln_outside_domain(self, text):
        assert not applied(text, "ln").valid

    def test_exp_overflow(self):
        assert not applied("1e6", "power_of_e").valid
        assert applied("-1e6", "power_of_e").is_zero

    def test_log_of_base(self):
        value = real("1000")
        value.log_of_base(real("10"))
        assert_close(value, 3)


class TestPowersAndRoots:
    def test_integer_power_is_exact(self):
        assert applied("2", "raise_to_int_power", 10).to_string() == "1024"
        assert applied("2", "raise_to_int_power", -2).to_string() == "0.25"
        assert applied("-3", "raise_to_int_power", 3).to_string() == "-27"

    def test_zero_to_negative_power(self):
        assert not applied("0", "raise_to_int_power", -1).valid

    def test_real_power(self):
        value = real("2")
        value.raise_to_power(real("0.5"))
        with mp.workdps(60):
            assert_close(value, mp.sqrt(2))

    def test_negative_base_fractional_exponent_is_invalid(self):
        value = real("-8")
        value.raise_to_power(real("0.5"))
        assert not value.valid

    def test_negative_base_integral_exponent(self):
        value = real("-2")
        value.raise_to_power(real("3"))
        assert value.to_string() == "-8"

    @pytest.mark.parametrize("text", ["2", "0.0001", "12345678.9", "1e-301"])
    def test_sqrt(self, text):
        with mp.workdps(60):
            assert_close(applied(text, "sqrt"), mp.sqrt(mp.mpf(text)))

    def test_sqrt_negative_is_invalid(self):
        assert not applied("-4", "sqrt").valid

    @pytest.mark.parametrize("text", ["-27", "2", "1e-10"])
    def test_cbrt(self, text):
        with mp.workdps(60):
            expected = mp.cbrt(abs(mp.mpf(text)))
            if text.startswith("-"):
                expected = -expected
            assert_close(applied(text, "cbrt"), expected)

    @pytest.mark.parametrize("text", ["3", "-0.007", "123456789"])
    def test_inverse(self, text):
        with mp.workdps(60):
            assert_close(applied(text, "inverse"), 1 / mp.mpf(text))

    def test_inverse_of_zero(self):
        assert not applied("0", "inverse").valid


class TestTrigonometry:
    """Identidades y valores exactos en los tres modos angulares."""

    @pytest.mark.parametrize(
        "mode, angle",
        [(TrigMode.RADIANS, "0.7"), (TrigMode.DEGREES, "40"), (TrigMode.GRADIANS, "50"), (TrigMode.RADIANS, "-1234.5")],
    )
    def test_pythagorean_identity(self, mode, angle):
        sine = applied(angle, "sin_with_trig_mode", mode)
        cosine = applied(angle, "cos_with_trig_mode", mode)
        sine.multiply_by(sine)
        cosine.multiply_by(cosine)
        sine.add(cosine)
        assert_close(sine, 1)

    def test_sin_degrees(self):
        assert_close(applied("30", "sin_with_trig_mode", TrigMode.DEGREES), mp.mpf("0.5"))

    @pytest.mark.parametrize("mode, angle", [(TrigMode.DEGREES, "180"), (TrigMode.DEGREES, "-720"), (TrigMode.GRADIANS, "200")])
    def test_exact_zero_at_half_turns(self, mode, angle):
        assert applied(angle, "sin_with_trig_mode", mode).is_zero

    def test_tan_at_right_angle_is_invalid(self):
        assert not applied("90", "tan_with_trig_mode", TrigMode.DEGREES).valid

    def test_tan_radians(self):
        with mp.workdps(60):
            assert_close(applied("1.2", "tan_with_trig_mode", TrigMode.RADIANS), mp.tan(mp.mpf("1.2")))

    def test_asin_degrees(self):
        assert_close(applied("0.5", "sin_with_trig_mode", TrigMode.DEGREES, True), 30)

    def test_acos_gradians(self):
        assert_close(applied("0", "cos_with_trig_mode", TrigMode.GRADIANS, True), 100)

    def test_atan_radians(self):
        with mp.workdps(60):
            assert_close(applied("-3", "tan_with_trig_mode", TrigMode.RADIANS, True), mp.atan(-3))

    def test_asin_outside_domain(self):
        assert not applied("1.5", "sin_with_trig_mode", TrigMode.RADIANS, True).valid

    @pytest.mark.parametrize("y, x", [("1", "1"), ("1", "-1"), ("-1", "-1"), ("-2", "0.5"), ("3", "0")])
    def test_atan2(self, y, x):
        value = real(y)
        value.atan2(real(x))
        with mp.workdps(60):
            assert_close(value, mp.atan2(mp.mpf(y), mp.mpf(x)))


class TestHyperbolic:
    @pytest.mark.parametrize(
        "name, inv, function",
        [
            ("sin", False, mp.sinh),
            ("cos", False, mp.cosh),
            ("tan", False, mp.tanh),
            ("sin", True, mp.asinh),
            ("tan", True, mp.atanh),
        ],
    )
    @pytest.mark.parametrize("text", ["0.75", "-0.3", "1e-5"])
    def test_against_mpmath(self, name, inv, function, text):
        value = applied(text, f"{name}_with_trig_mode", TrigMode.RADIANS, inv, True)
        with mp.workdps(60):
            assert_close(value, function(mp.mpf(text)))

    @pytest.mark.parametrize(
        "name, inv, function",
        [
            ("sin", False, mp.sinh),
            ("tan", False, mp.tanh),
            ("sin", True, mp.asinh),
            ("tan", True, mp.atanh),
        ],
    )
    @pytest.mark.parametrize("text", ["1e-20", "-2.5e-15", "0.4999"])
    def test_small_arguments_keep_relative_precision(self, name, inv, function, text):
        value = applied(text, f"{name}_with_trig_mode", TrigMode.RADIANS, inv, True)
        with mp.workdps(60):
            assert_close(value, function(mp.mpf(text)))

    def test_acosh(self):
        value = applied("2.5", "cos_with_trig_mode", TrigMode.RADIANS, True, True)
        with mp.workdps(60):
            assert_close(value, mp.acosh(mp.mpf("2.5")))

    def test_atanh_of_one_is_invalid(self):
        assert not applied("1", "tan_with_trig_mode", TrigMode.RADIANS, True, True).valid

    def test_tanh_large_argument(self):
        assert_close(applied("1000", "tan_with_trig_mode", TrigMode.RADIANS, False, True), 1)

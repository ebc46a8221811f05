"""Tests de la tabla de operadores, el evaluador y el motor de la calculadora."""

import pytest
from mpmath import mp

from calculator_engine import CalculatorEngine
from complex_engine import ComplexValue
from engine_config import TrigMode
from formula_evaluator import FormulaEvaluator
from operators import OPERATORS, OperationContext, OperatorCategory, apply_operator


def evaluate(expression, radix=10, mode=TrigMode.RADIANS, complement=0):
    evaluator = FormulaEvaluator(radix)
    return evaluator.evaluate(expression, OperationContext(mode, complement))


class TestOperatorTable:
    def test_precedence_follows_category(self):
        assert OPERATORS["+"].precedence < OPERATORS["*"].precedence < OPERATORS["^"].precedence
        assert OPERATORS["sin"].precedence < OPERATORS["!"].precedence

    def test_arity_and_associativity(self):
        assert OPERATORS["ncr"].arity == 2
        assert OPERATORS["sqrt"].arity == 1
        assert OPERATORS["²"].category is OperatorCategory.UNARY_POST
        assert OperatorCategory.EXPONENTIAL.right_associative
        assert not OperatorCategory.ADDITIVE.right_associative

    def test_apply_operator_in_place(self):
        left = ComplexValue.from_int(6)
        apply_operator(OPERATORS["-"], left, ComplexValue.from_int(8))
        assert left.to_string() == "-2"

    def test_binary_operator_needs_two_operands(self):
        with pytest.raises(ValueError):
            apply_operator(OPERATORS["*"], ComplexValue.from_int(1))

    def test_bitwise_uses_context_complement(self):
        value = ComplexValue.from_int(5)
        apply_operator(OPERATORS["nand"], value, ComplexValue.from_int(3), OperationContext(complement=8))
        assert value.to_string() == "254"


class TestEvaluation:
    """Precedencia, asociatividad y multiplicación implícita."""

    @pytest.mark.parametrize(
        "expression, expected",
        [
            ("2+3*4", "14"),
            ("(1+2)*3", "9"),
            ("2^3^2", "512"),
            ("-2^2", "-4"),
            ("2*-3", "-6"),
            ("2(3+1)", "8"),
            ("7 % 4", "3"),
            ("5!", "120"),
            ("3!²", "36"),
            ("4⁻¹", "0.25"),
            ("10 ncr 3", "120"),
            ("5 npr 2", "20"),
            ("12 and 10", "8"),
            ("12 or 3", "15"),
            ("12 xor 10", "6"),
            ("2 root 16", "4"),
            ("sigma(100)", "5050"),
            ("int(-3.75)", "-3"),
            ("frac(2.5)", "0.5"),
            ("2×3÷4", "1.5"),
            ("+5", "5"),
        ],
    )
    def test_expressions(self, expression, expected):
        assert evaluate(expression).to_string() == expected

    def test_complex_literal(self):
        assert evaluate("(1+2i)*(3-4i)").to_string() == "11+2i"
        assert evaluate("re(3+4i)").to_string() == "3"
        assert evaluate("im(3+4i)").to_string() == "4"
        assert evaluate("conj(3+4i)").to_string() == "3-4i"

    def test_sqrt_of_negative(self):
        assert evaluate("sqrt(-4)").to_string() == "0+2i"
        assert evaluate("√(-4)").to_string() == "0+2i"

    def test_functions_use_context_mode(self):
        value = evaluate("sin(30)", mode=TrigMode.DEGREES)
        assert abs(value.real_part.double_value - 0.5) < 1e-15
        assert evaluate("cos(100)", mode=TrigMode.GRADIANS).is_zero

    def test_argument_in_mode_units(self):
        value = evaluate("arg(1+i)", mode=TrigMode.DEGREES)
        assert abs(value.real_part.double_value - 45) < 1e-12

    def test_constants(self):
        with mp.workdps(40):
            assert abs(evaluate("2pi").real_part.to_mpf() - 2 * mp.pi) < mp.mpf(10) ** -28
            assert abs(evaluate("ln(e)").real_part.to_mpf() - 1) < mp.mpf(10) ** -28

    def test_logarithms(self):
        assert abs(evaluate("log(1000)").real_part.double_value - 3) < 1e-15
        assert abs(evaluate("log2(1024)").real_part.double_value - 10) < 1e-15

    def test_hexadecimal(self):
        assert evaluate("FF+1", radix=16).to_string() == "100"
        assert evaluate("A*A", radix=16).to_string() == "64"

    @pytest.mark.parametrize(
        "expression, radix, expected",
        [
            ("2e3", 10, "2000"),
            ("1.5e-2", 10, "0.015"),
            ("3E+2*2", 10, "600"),
            ("2e3+1", 10, "2001"),
            ("1@2", 16, "100"),
            ("A@-1", 16, "0.A"),
        ],
    )
    def test_exponent_literals(self, expression, radix, expected):
        assert evaluate(expression, radix=radix).to_string() == expected

    def test_trailing_e_is_the_constant(self):
        with mp.workdps(40):
            assert abs(evaluate("2e").real_part.to_mpf() - 2 * mp.e) < mp.mpf(10) ** -28
            assert abs(evaluate("2exp(0)").real_part.to_mpf() - 2) < mp.mpf(10) ** -28

    def test_not_with_complement(self):
        assert evaluate("not(0)", complement=8).to_string() == "255"

    def test_division_by_zero_is_invalid(self):
        assert not evaluate("1/0").valid

    @pytest.mark.parametrize("expression", ["", "   ", "2 $ 3", "(1+2", "1+2)", "2+", "foo(2)", "__import__"])
    def test_malformed_expressions(self, expression):
        with pytest.raises(ValueError):
            evaluate(expression)


class TestCalculatorEngine:
    def test_display_rounding(self):
        engine = CalculatorEngine()
        assert engine.evaluate("1/3") == "0.333333333333333"
        assert engine.evaluate("1/0") == "NaN"

    def test_scientific_display(self):
        engine = CalculatorEngine()
        assert engine.evaluate("10^40") == "1e40"

    def test_exponent_literal_display(self):
        assert CalculatorEngine().evaluate("2e3") == "2000"

    def test_complex_display(self):
        engine = CalculatorEngine()
        assert engine.evaluate("sqrt(-9)") == "0+3i"

    def test_angle_mode(self):
        engine = CalculatorEngine()
        assert engine.angle_mode == "rad"
        engine.angle_mode = "deg"
        assert engine.evaluate("sin(180)") == "0"
        with pytest.raises(ValueError):
            engine.angle_mode = "turns"

    def test_radix_change(self):
        engine = CalculatorEngine()
        engine.radix = 16
        assert engine.evaluate("A+1") == "B"
        with pytest.raises(ValueError):
            engine.radix = 40

    def test_complement(self):
        engine = CalculatorEngine()
        engine.complement = 8
        assert engine.evaluate("0-1") == "255"
        with pytest.raises(ValueError):
            engine.complement = -1

    def test_exp3_shifts_last_result(self):
        engine = CalculatorEngine()
        with pytest.raises(ValueError):
            engine.exp3_up()
        engine.evaluate("1.5")
        assert engine.exp3_up() == "1500"
        assert engine.exp3_down() == "1.5"
        assert engine.exp3_down() == "0.0015"

    def test_request_more_precision(self):
        engine = CalculatorEngine()
        with pytest.raises(ValueError):
            engine.request_more_precision()
        engine.evaluate("1/3")
        assert engine.request_more_precision() == "0." + "3" * 48
        assert engine.last_value.precision.num_limbs == 12
        engine.evaluate("1/3")
        assert engine.precision.num_limbs == 8

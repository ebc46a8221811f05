"""Tabla de operadores de la calculadora.

Cada operador pertenece a una categoría; la precedencia, la aridad y la
asociatividad se derivan de la categoría en lugar de codificarse en un
entero compartido.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from complex_engine import ComplexValue
from engine_config import TrigMode
from transcendental import from_radians


class OperatorCategory(Enum):
    ADDITIVE = "additive"
    MULTIPLICATIVE = "multiplicative"
    EXPONENTIAL = "exponential"
    UNARY_PRE = "unary_pre"
    UNARY_POST = "unary_post"

    @property
    def precedence(self) -> int:
        return _PRECEDENCE[self]

    @property
    def arity(self) -> int:
        return 1 if self in (OperatorCategory.UNARY_PRE, OperatorCategory.UNARY_POST) else 2

    @property
    def right_associative(self) -> bool:
        return self is OperatorCategory.EXPONENTIAL


_PRECEDENCE = {
    OperatorCategory.ADDITIVE: 1,
    OperatorCategory.MULTIPLICATIVE: 2,
    OperatorCategory.EXPONENTIAL: 3,
    OperatorCategory.UNARY_PRE: 4,
    OperatorCategory.UNARY_POST: 5,
}


@dataclass(frozen=True)
class OperationContext:
    mode: TrigMode = TrigMode.RADIANS
    complement: int = 0


Apply = Callable[[ComplexValue, Optional[ComplexValue], OperationContext], None]


@dataclass(frozen=True)
class Operator:
    name: str
    category: OperatorCategory
    apply: Apply

    @property
    def precedence(self) -> int:
        return self.category.precedence

    @property
    def arity(self) -> int:
        return self.category.arity


# ── Construcción de las funciones de aplicación ──────────────────


def _method(name: str) -> Apply:
    def apply(left, right, _context):
        if right is None:
            getattr(left, name)()
        else:
            getattr(left, name)(right)

    return apply


def _bitwise(name: str, negate_result: bool = False) -> Apply:
    def apply(left, right, context):
        getattr(left, name)(right, context.complement)
        if negate_result:
            left.bitnot_with_complement(context.complement)

    return apply


def _trig(name: str, inv: bool = False, hyp: bool = False) -> Apply:
    def apply(value, _right, context):
        getattr(value, f"{name}_with_trig_mode")(context.mode, inv, hyp)

    return apply


def _power_of(base: int) -> Apply:
    def apply(value, _right, _context):
        result = ComplexValue.from_int(base, value.radix, value.precision)
        result.raise_to_power(value)
        value.assign(result)

    return apply


def _log_base(base: int) -> Apply:
    def apply(value, _right, _context):
        value.log_of_base(ComplexValue.from_int(base, value.radix, value.precision))

    return apply


def _int_power(n: int) -> Apply:
    def apply(value, _right, _context):
        value.raise_to_int_power(n)

    return apply


def _root(degree, radicand, _context):
    """``n root x``: raíz n-ésima de x."""
    exponent = degree.duplicate()
    exponent.inverse()
    result = radicand.duplicate()
    result.raise_to_power(exponent)
    degree.assign(result)


def _real_part(value, _right, _context):
    value.assign(ComplexValue(value.real_part))


def _imaginary_part(value, _right, _context):
    value.assign(ComplexValue(value.imaginary_part))


def _argument(value, _right, context):
    value.assign(ComplexValue(from_radians(value.angle, context.mode)))


def _bitnot(value, _right, context):
    value.bitnot_with_complement(context.complement)


_A = OperatorCategory.ADDITIVE
_M = OperatorCategory.MULTIPLICATIVE
_E = OperatorCategory.EXPONENTIAL
_PRE = OperatorCategory.UNARY_PRE
_POST = OperatorCategory.UNARY_POST

_TABLE = [
    Operator("+", _A, _method("add")),
    Operator("-", _A, _method("subtract")),
    Operator("or", _A, _bitwise("or_with")),
    Operator("xor", _A, _bitwise("xor_with")),
    Operator("nor", _A, _bitwise("or_with", negate_result=True)),
    Operator("xnor", _A, _bitwise("xor_with", negate_result=True)),
    Operator("*", _M, _method("multiply_by")),
    Operator("∙", _M, _method("multiply_by")),
    Operator("/", _M, _method("divide_by")),
    Operator("%", _M, _method("modulo_by")),
    Operator("and", _M, _bitwise("and_with")),
    Operator("nand", _M, _bitwise("and_with", negate_result=True)),
    Operator("ncr", _M, _method("n_cr")),
    Operator("npr", _M, _method("n_pr")),
    Operator("^", _E, _method("raise_to_power")),
    Operator("root", _E, _root),
    Operator("neg", _PRE, _method("negate")),
    Operator("sin", _PRE, _trig("sin")),
    Operator("cos", _PRE, _trig("cos")),
    Operator("tan", _PRE, _trig("tan")),
    Operator("asin", _PRE, _trig("sin", inv=True)),
    Operator("acos", _PRE, _trig("cos", inv=True)),
    Operator("atan", _PRE, _trig("tan", inv=True)),
    Operator("sinh", _PRE, _trig("sin", hyp=True)),
    Operator("cosh", _PRE, _trig("cos", hyp=True)),
    Operator("tanh", _PRE, _trig("tan", hyp=True)),
    Operator("asinh", _PRE, _trig("sin", inv=True, hyp=True)),
    Operator("acosh", _PRE, _trig("cos", inv=True, hyp=True)),
    Operator("atanh", _PRE, _trig("tan", inv=True, hyp=True)),
    Operator("re", _PRE, _real_part),
    Operator("im", _PRE, _imaginary_part),
    Operator("abs", _PRE, _method("abs")),
    Operator("arg", _PRE, _argument),
    Operator("conj", _PRE, _method("conjugate")),
    Operator("not", _PRE, _bitnot),
    Operator("int", _PRE, _method("whole_part")),
    Operator("frac", _PRE, _method("fractional_part")),
    Operator("ln", _PRE, _method("ln")),
    Operator("log", _PRE, _log_base(10)),
    Operator("log2", _PRE, _log_base(2)),
    Operator("sqrt", _PRE, _method("sqrt")),
    Operator("cbrt", _PRE, _method("cbrt")),
    Operator("exp", _PRE, _method("power_of_e")),
    Operator("tenpow", _PRE, _power_of(10)),
    Operator("twopow", _PRE, _power_of(2)),
    Operator("sigma", _PRE, _method("sum")),
    Operator("!", _POST, _method("factorial")),
    Operator("²", _POST, _int_power(2)),
    Operator("³", _POST, _int_power(3)),
    Operator("⁻¹", _POST, _method("inverse")),
]

OPERATORS: dict[str, Operator] = {op.name: op for op in _TABLE}

WORD_OPERATORS = {
    name for name, op in OPERATORS.items()
    if name.isalpha() and op.category is not OperatorCategory.UNARY_PRE
}
FUNCTION_NAMES = {
    name for name, op in OPERATORS.items()
    if op.category is OperatorCategory.UNARY_PRE and name != "neg"
}


def apply_operator(
    operator: Operator,
    left: ComplexValue,
    right: ComplexValue | None = None,
    context: OperationContext = OperationContext(),
) -> None:
    """Aplica el operador modificando ``left`` en sitio."""
    if operator.arity == 2 and right is None:
        raise ValueError(f"'{operator.name}' necesita dos operandos")
    operator.apply(left, right, context)

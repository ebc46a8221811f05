"""Extensión del motor real al plano complejo.

``ComplexValue`` compone dos ``RealValue`` propios: la parte real y una parte
imaginaria que solo se materializa la primera vez que una operación produce
un imaginario distinto de cero. A partir de ahí ``has_imaginary`` queda
activo aunque el imaginario vuelva a ser cero, hasta ``reset_imaginary``.

Cuando el operando es real y la función está definida en los reales se usa
el resultado real directamente. Si el dominio real falla (raíz o logaritmo
de un negativo, arcoseno fuera de [-1, 1], etc.) se calcula el valor
principal complejo en lugar de marcar el valor como inválido.
"""

from __future__ import annotations

import logging

import value_formatter
from engine_config import DEFAULT_PRECISION, DEFAULT_RADIX, PrecisionConfig, TrigMode
from real_engine import ENGINEERING_STEP, RealValue
from transcendental import from_radians, to_radians

logger = logging.getLogger(__name__)

IMAGINARY_UNIT = "i"

_RADIANS = TrigMode.RADIANS


# ── Operaciones sobre pares (real, imaginario) ───────────────────


def _plus(a: RealValue, b: RealValue) -> RealValue:
    result = a.duplicate()
    result.add(b)
    return result


def _minus(a: RealValue, b: RealValue) -> RealValue:
    result = a.duplicate()
    result.subtract(b)
    return result


def _times(a: RealValue, b: RealValue) -> RealValue:
    result = a.duplicate()
    result.multiply_by(b)
    return result


def _over(a: RealValue, b: RealValue) -> RealValue:
    result = a.duplicate()
    result.divide_by(b)
    return result


def _call(value: RealValue, operation: str, *args) -> RealValue:
    result = value.duplicate()
    getattr(result, operation)(*args)
    return result


def _negated(value: RealValue) -> RealValue:
    return _call(value, "negate")


def _c_add(x, y):
    return _plus(x[0], y[0]), _plus(x[1], y[1])


def _c_sub(x, y):
    return _minus(x[0], y[0]), _minus(x[1], y[1])


def _c_mul(x, y):
    a, b = x
    c, d = y
    return (
        _minus(_times(a, c), _times(b, d)),
        _plus(_times(a, d), _times(b, c)),
    )


def _c_norm(x) -> RealValue:
    return _plus(_times(x[0], x[0]), _times(x[1], x[1]))


def _c_div(x, y):
    """Multiplica por el conjugado y divide por el módulo al cuadrado."""
    a, b = x
    c, d = y
    denominator = _c_norm(y)
    if denominator.is_zero:
        logger.debug("División compleja por cero")
        return _call(a, "invalidate"), _call(b, "invalidate")
    return (
        _over(_plus(_times(a, c), _times(b, d)), denominator),
        _over(_minus(_times(b, c), _times(a, d)), denominator),
    )


def _c_abs(x) -> RealValue:
    return _call(_c_norm(x), "sqrt")


def _c_arg(x) -> RealValue:
    return _call(x[1], "atan2", x[0])


def _c_exp(x):
    a, b = x
    scale = _call(a, "power_of_e")
    return (
        _times(scale, _call(b, "cos_with_trig_mode", _RADIANS)),
        _times(scale, _call(b, "sin_with_trig_mode", _RADIANS)),
    )


def _c_ln(x):
    modulus = _c_abs(x)
    if modulus.is_zero:
        return _call(x[0], "invalidate"), _call(x[1], "invalidate")
    return _call(modulus, "ln"), _c_arg(x)


def _c_sqrt(x):
    """Raíz principal por el ángulo mitad, en la forma sin cancelaciones."""
    a, b = x
    if a.is_zero and b.is_zero:
        return a.duplicate(), b.duplicate()
    two = a.like(2)
    modulus = _c_abs(x)
    if not a.is_negative:
        real = _call(_over(_plus(modulus, a), two), "sqrt")
        imaginary = _over(b, _times(real, two))
        return real, imaginary
    imaginary = _call(_over(_minus(modulus, a), two), "sqrt")
    if b.is_negative:
        imaginary.negate()
    real = _over(b, _times(imaginary, two))
    return real, imaginary


def _c_sin(x):
    a, b = x
    return (
        _times(_call(a, "sin_with_trig_mode", _RADIANS), _call(b, "cos_with_trig_mode", _RADIANS, False, True)),
        _times(_call(a, "cos_with_trig_mode", _RADIANS), _call(b, "sin_with_trig_mode", _RADIANS, False, True)),
    )


def _c_cos(x):
    a, b = x
    return (
        _times(_call(a, "cos_with_trig_mode", _RADIANS), _call(b, "cos_with_trig_mode", _RADIANS, False, True)),
        _negated(_times(_call(a, "sin_with_trig_mode", _RADIANS), _call(b, "sin_with_trig_mode", _RADIANS, False, True))),
    )


def _c_sinh(x):
    a, b = x
    return (
        _times(_call(a, "sin_with_trig_mode", _RADIANS, False, True), _call(b, "cos_with_trig_mode", _RADIANS)),
        _times(_call(a, "cos_with_trig_mode", _RADIANS, False, True), _call(b, "sin_with_trig_mode", _RADIANS)),
    )


def _c_cosh(x):
    a, b = x
    return (
        _times(_call(a, "cos_with_trig_mode", _RADIANS, False, True), _call(b, "cos_with_trig_mode", _RADIANS)),
        _times(_call(a, "sin_with_trig_mode", _RADIANS, False, True), _call(b, "sin_with_trig_mode", _RADIANS)),
    )


def _c_times_i(x):
    return _negated(x[1]), x[0].duplicate()


def _c_scale(x, factor: RealValue):
    return _times(x[0], factor), _times(x[1], factor)


def _c_one(like: RealValue):
    return like.like(1), like.like(0)


def _c_asin(x):
    """asin z = -i ln(iz + sqrt(1 - z^2))."""
    one_minus_square = _c_sub(_c_one(x[0]), _c_mul(x, x))
    inner = _c_add(_c_times_i(x), _c_sqrt(one_minus_square))
    real, imaginary = _c_ln(inner)
    return imaginary, _negated(real)


def _c_atan(x):
    """atan z = (i/2) (ln(1 - iz) - ln(1 + iz))."""
    iz = _c_times_i(x)
    one = _c_one(x[0])
    difference = _c_sub(_c_ln(_c_sub(one, iz)), _c_ln(_c_add(one, iz)))
    half = _c_times_i(difference)
    return _c_scale(half, _over(x[0].like(1), x[0].like(2)))


def _c_asinh(x):
    root = _c_sqrt(_c_add(_c_mul(x, x), _c_one(x[0])))
    return _c_ln(_c_add(x, root))


def _c_acosh(x):
    one = _c_one(x[0])
    root = _c_mul(_c_sqrt(_c_add(x, one)), _c_sqrt(_c_sub(x, one)))
    return _c_ln(_c_add(x, root))


def _c_atanh(x):
    one = _c_one(x[0])
    difference = _c_sub(_c_ln(_c_add(one, x)), _c_ln(_c_sub(one, x)))
    return _c_scale(difference, _over(x[0].like(1), x[0].like(2)))


def _c_int_power(x, n: int):
    result = _c_one(x[0])
    base = x
    remaining = abs(n)
    while remaining:
        if remaining & 1:
            result = _c_mul(result, base)
        remaining >>= 1
        if remaining:
            base = _c_mul(base, base)
    if n < 0:
        result = _c_div(_c_one(x[0]), result)
    return result


_INVERSE_HYPERBOLIC = {"sin": _c_asinh, "cos": _c_acosh, "tan": _c_atanh}


def _forward(name: str, sine, cosine):
    if name == "sin":
        return sine
    if name == "cos":
        return cosine
    return _c_div(sine, cosine)


def _quarter_turn(mode: TrigMode, like: RealValue) -> RealValue:
    if mode is TrigMode.DEGREES:
        return like.like(90)
    if mode is TrigMode.GRADIANS:
        return like.like(100)
    return _over(RealValue.pi(like.radix, like.precision), like.like(2))


def _c_from_radians(x, mode: TrigMode):
    return from_radians(x[0], mode), from_radians(x[1], mode)


def _c_to_radians(x, mode: TrigMode):
    return to_radians(x[0], mode), to_radians(x[1], mode)


# ── Valor complejo ───────────────────────────────────────────────


class ComplexValue:
    """Par (real, imaginario) de ``RealValue`` con la misma base."""

    __slots__ = ("_real", "_imaginary", "_has_imaginary")

    def __init__(
        self,
        real: RealValue | None = None,
        imaginary: RealValue | None = None,
        radix: int = DEFAULT_RADIX,
        precision: PrecisionConfig = DEFAULT_PRECISION,
    ):
        self._real = real.duplicate() if real is not None else RealValue(radix, precision)
        self._imaginary = None
        self._has_imaginary = False
        if imaginary is not None:
            imaginary = imaginary.duplicate()
            imaginary.convert_to_radix(self._real.radix)
            self._store(self._real, imaginary)

    # ── Constructores ────────────────────────────────────────────

    @classmethod
    def from_string(cls, text: str, radix: int = DEFAULT_RADIX, precision: PrecisionConfig = DEFAULT_PRECISION) -> "ComplexValue":
        return cls(RealValue.from_string(text, radix, precision))

    @classmethod
    def from_int(cls, number: int, radix: int = DEFAULT_RADIX, precision: PrecisionConfig = DEFAULT_PRECISION) -> "ComplexValue":
        return cls(RealValue.from_int(number, radix, precision))

    @classmethod
    def from_float(cls, number: float, radix: int = DEFAULT_RADIX, precision: PrecisionConfig = DEFAULT_PRECISION) -> "ComplexValue":
        return cls(RealValue.from_float(number, radix, precision))

    @classmethod
    def from_polar(cls, magnitude: RealValue, angle: RealValue, mode: TrigMode = _RADIANS) -> "ComplexValue":
        real = _times(magnitude, _call(angle, "cos_with_trig_mode", mode))
        imaginary = _times(magnitude, _call(angle, "sin_with_trig_mode", mode))
        return cls(real, imaginary)

    @classmethod
    def pi(cls, radix: int = DEFAULT_RADIX, precision: PrecisionConfig = DEFAULT_PRECISION) -> "ComplexValue":
        return cls(RealValue.pi(radix, precision))

    @classmethod
    def one(cls, radix: int = DEFAULT_RADIX, precision: PrecisionConfig = DEFAULT_PRECISION) -> "ComplexValue":
        return cls.from_int(1, radix, precision)

    @classmethod
    def zero(cls, radix: int = DEFAULT_RADIX, precision: PrecisionConfig = DEFAULT_PRECISION) -> "ComplexValue":
        return cls(None, None, radix, precision)

    @classmethod
    def i(cls, radix: int = DEFAULT_RADIX, precision: PrecisionConfig = DEFAULT_PRECISION) -> "ComplexValue":
        return cls(RealValue(radix, precision), RealValue.from_int(1, radix, precision))

    def duplicate(self) -> "ComplexValue":
        copy = ComplexValue.__new__(ComplexValue)
        copy._real = self._real.duplicate()
        copy._imaginary = self._imaginary.duplicate() if self._imaginary is not None else None
        copy._has_imaginary = self._has_imaginary
        return copy

    __copy__ = duplicate

    # ── Estado ───────────────────────────────────────────────────

    def _imag(self) -> RealValue:
        if self._imaginary is not None:
            return self._imaginary
        return RealValue(self._real.radix, self._real.precision)

    def _pair(self):
        return self._real.duplicate(), self._imag().duplicate()

    def _store(self, real: RealValue, imaginary: RealValue | None = None):
        if imaginary is not None and imaginary.radix != real.radix:
            imaginary.convert_to_radix(real.radix)
        if not real.valid or (imaginary is not None and not imaginary.valid):
            real.invalidate()
            if self._has_imaginary:
                imaginary = self._imag().duplicate()
                imaginary.invalidate()
            else:
                imaginary = None
        self._real = real
        if imaginary is None:
            if self._has_imaginary:
                self._imaginary = RealValue(real.radix, real.precision)
            return
        if self._has_imaginary or not imaginary.is_zero:
            self._imaginary = imaginary
            self._has_imaginary = True

    def _store_pair(self, pair):
        self._store(pair[0], pair[1])

    def _invalidate(self):
        real = self._real.duplicate()
        real.invalidate()
        self._store(real)

    def reset_imaginary(self):
        """Vuelve a tratar el valor como real puro si el imaginario es cero."""
        if self._imaginary is None or self._imaginary.is_zero:
            self._imaginary = None
            self._has_imaginary = False

    def _coerce(self, other) -> "ComplexValue":
        if isinstance(other, RealValue):
            return ComplexValue(other)
        if other is self:
            return other.duplicate()
        return other

    # ── Propiedades ──────────────────────────────────────────────

    @property
    def radix(self) -> int:
        return self._real.radix

    @property
    def precision(self) -> PrecisionConfig:
        return self._real.precision

    @property
    def valid(self) -> bool:
        return self._real.valid and (self._imaginary is None or self._imaginary.valid)

    @property
    def has_imaginary(self) -> bool:
        return self._has_imaginary

    @property
    def is_real(self) -> bool:
        return self._imaginary is None or self._imaginary.is_zero

    @property
    def is_zero(self) -> bool:
        return self._real.is_zero and self.is_real

    @property
    def is_negative(self) -> bool:
        return self._real.is_negative

    @property
    def has_exponent(self) -> bool:
        return self._real.has_exponent

    @property
    def imaginary_has_exponent(self) -> bool:
        return self._imaginary is not None and self._imaginary.has_exponent

    @property
    def user_point(self) -> int:
        return self._real.user_point

    @user_point.setter
    def user_point(self, position: int):
        self._real.user_point = position

    @property
    def real_part(self) -> RealValue:
        return self._real.duplicate()

    @property
    def imaginary_part(self) -> RealValue:
        return self._imag().duplicate()

    @property
    def magnitude(self) -> RealValue:
        if self.is_real:
            return _call(self._real, "abs")
        return _c_abs(self._pair())

    @property
    def angle(self) -> RealValue:
        """Argumento en radianes, en (-pi, pi]."""
        return _c_arg(self._pair())

    # ── Utilidades ───────────────────────────────────────────────

    def assign(self, other):
        other = self._coerce(other)
        self._real = other._real.duplicate()
        self._imaginary = other._imaginary.duplicate() if other._imaginary is not None else None
        self._has_imaginary = other._has_imaginary

    def convert_to_radix(self, new_radix: int):
        self._real.convert_to_radix(new_radix)
        if self._imaginary is not None:
            self._imaginary.convert_to_radix(new_radix)

    def exp3_up(self):
        self._real.exp3_up()
        if self._imaginary is not None:
            self._imaginary.scale_by_radix(ENGINEERING_STEP)

    def exp3_down(self, display_digits: int):
        self._real.exp3_down(display_digits)
        if self._imaginary is not None:
            self._imaginary.scale_by_radix(-ENGINEERING_STEP)

    def compare_with(self, other) -> int:
        """Orden lexicográfico (real, imaginario)."""
        other = self._coerce(other)
        order = self._real.compare_with(other._real)
        if order or (self.is_real and other.is_real):
            return order
        return self._imag().compare_with(other._imag())

    def negate(self):
        self._real.negate()
        if self._imaginary is not None:
            self._imaginary.negate()

    def conjugate(self):
        if self._imaginary is not None:
            self._imaginary.negate()

    def abs(self):
        self._store(self.magnitude, self._real.like(0))

    # ── Aritmética ───────────────────────────────────────────────

    def add(self, other):
        other = self._coerce(other)
        self._store_pair(_c_add(self._pair(), other._pair()))

    def subtract(self, other):
        other = self._coerce(other)
        self._store_pair(_c_sub(self._pair(), other._pair()))

    def multiply_by(self, other):
        other = self._coerce(other)
        if self.is_real and other.is_real:
            self._store(_times(self._real, other._real), self._real.like(0))
            return
        self._store_pair(_c_mul(self._pair(), other._pair()))

    def divide_by(self, other):
        other = self._coerce(other)
        if self.is_real and other.is_real:
            self._store(_over(self._real, other._real), self._real.like(0))
            return
        self._store_pair(_c_div(self._pair(), other._pair()))

    def _real_only(self, operation: str, *others):
        others = [self._coerce(o) for o in others]
        if not (self.is_real and all(o.is_real for o in others)):
            self._invalidate()
            return
        self._store(_call(self._real, operation, *[o._real for o in others]))

    def modulo_by(self, other):
        self._real_only("modulo_by", other)

    # ── Funciones trascendentes ──────────────────────────────────

    def power_of_e(self):
        if self.is_real:
            self._store(_call(self._real, "power_of_e"))
            return
        self._store_pair(_c_exp(self._pair()))

    def ln(self):
        if self.is_real and not self._real.is_negative:
            self._store(_call(self._real, "ln"))
            return
        self._store_pair(_c_ln(self._pair()))

    def sqrt(self):
        if self.is_real and not self._real.is_negative:
            self._store(_call(self._real, "sqrt"))
            return
        self._store_pair(_c_sqrt(self._pair()))

    def cbrt(self):
        if self.is_real:
            self._store(_call(self._real, "cbrt"))
            return
        pair = self._pair()
        modulus = _call(_c_abs(pair), "cbrt")
        third = _over(_c_arg(pair), pair[0].like(3))
        self._store(
            _times(modulus, _call(third, "cos_with_trig_mode", _RADIANS)),
            _times(modulus, _call(third, "sin_with_trig_mode", _RADIANS)),
        )

    def inverse(self):
        if self.is_real:
            self._store(_call(self._real, "inverse"))
            return
        self._store_pair(_c_div(_c_one(self._real), self._pair()))

    def raise_to_int_power(self, n: int):
        if self.is_real:
            self._store(_call(self._real, "raise_to_int_power", n))
            return
        self._store_pair(_c_int_power(self._pair(), n))

    def raise_to_power(self, other):
        other = self._coerce(other)
        base = self._pair()
        exponent = other._pair()
        if self.is_real and other.is_real:
            if not self._real.is_negative or other._real.is_integral:
                self._store(_call(self._real, "raise_to_power", other._real))
                return
        if other.is_real and other._real.is_integral:
            self._store_pair(_c_int_power(base, other._real.to_int()))
            return
        if self.is_zero:
            if other._real.is_negative or other._real.is_zero:
                self._invalidate()
            return
        logger.debug("Potencia resuelta en el plano complejo")
        self._store_pair(_c_exp(_c_mul(exponent, _c_ln(base))))

    def log_of_base(self, base):
        base = self._coerce(base)
        if self.is_real and base.is_real and not self._real.is_negative and not base._real.is_negative:
            self._store(_call(self._real, "log_of_base", base._real))
            return
        self._store_pair(_c_div(_c_ln(self._pair()), _c_ln(base._pair())))

    def _in_unit_interval(self) -> bool:
        magnitude = _call(self._real, "abs")
        return magnitude.compare_with(self._real.like(1)) <= 0

    def sin_with_trig_mode(self, mode: TrigMode, inv: bool = False, hyp: bool = False):
        self._trig("sin", mode, inv, hyp)

    def cos_with_trig_mode(self, mode: TrigMode, inv: bool = False, hyp: bool = False):
        self._trig("cos", mode, inv, hyp)

    def tan_with_trig_mode(self, mode: TrigMode, inv: bool = False, hyp: bool = False):
        self._trig("tan", mode, inv, hyp)

    def _real_domain(self, name: str, inv: bool, hyp: bool) -> bool:
        if not self.is_real:
            return False
        if not inv:
            return True
        if not hyp:
            return name == "tan" or self._in_unit_interval()
        if name == "sin":
            return True
        if name == "cos":
            return self._real.compare_with(self._real.like(1)) >= 0
        magnitude = _call(self._real, "abs")
        return magnitude.compare_with(self._real.like(1)) < 0

    def _trig(self, name: str, mode: TrigMode, inv: bool, hyp: bool):
        if not self.valid:
            return
        if self._real_domain(name, inv, hyp):
            self._store(_call(self._real, f"{name}_with_trig_mode", mode, inv, hyp))
            return
        logger.debug("%s resuelto en el plano complejo (inv=%s, hyp=%s)", name, inv, hyp)
        pair = self._pair()
        if hyp and inv:
            result = _INVERSE_HYPERBOLIC[name](pair)
        elif hyp:
            result = _forward(name, _c_sinh(pair), _c_cosh(pair))
        elif not inv:
            radians = _c_to_radians(pair, mode)
            result = _forward(name, _c_sin(radians), _c_cos(radians))
        elif name == "tan":
            result = _c_from_radians(_c_atan(pair), mode)
        else:
            result = _c_from_radians(_c_asin(pair), mode)
            if name == "cos":
                result = _minus(_quarter_turn(mode, pair[0]), result[0]), _negated(result[1])
        self._store_pair(result)

    # ── Funciones sobre la parte real ────────────────────────────

    def factorial(self):
        self._real_only("factorial")

    def n_pr(self, r):
        self._real_only("n_pr", r)

    def n_cr(self, r):
        self._real_only("n_cr", r)

    def sum(self):
        self._real_only("sum")

    def whole_part(self):
        self._store(_call(self._real, "whole_part"), _call(self._imag(), "whole_part"))

    def fractional_part(self):
        self._store(_call(self._real, "fractional_part"), _call(self._imag(), "fractional_part"))

    def bitnot_with_complement(self, complement: int):
        self._bitwise("bitnot_with_complement", None, complement)

    def _bitwise(self, operation: str, other, complement: int):
        if other is not None:
            other = self._coerce(other)
        if not self.is_real or (other is not None and not other.is_real):
            self._invalidate()
            return
        args = [other._real] if other is not None else []
        self._store(_call(self._real, operation, *args, complement))

    def and_with(self, other, complement: int = 0):
        self._bitwise("and_with", other, complement)

    def or_with(self, other, complement: int = 0):
        self._bitwise("or_with", other, complement)

    def xor_with(self, other, complement: int = 0):
        self._bitwise("xor_with", other, complement)

    # ── Formato ──────────────────────────────────────────────────

    @property
    def imaginary_mantissa_string(self) -> str:
        return self.limited_string(self._real.layout.max_digits + 2).imaginary_mantissa

    @property
    def imaginary_exponent_string(self) -> str:
        return self.limited_string(self._real.layout.max_digits + 2).imaginary_exponent

    def limited_string(
        self,
        length_limit: int,
        fixed_places: int = 0,
        fill_limit: bool = False,
        complement: int = 0,
    ) -> value_formatter.LimitedString:
        if not self.valid:
            return value_formatter.LimitedString(value_formatter.INVALID_TEXT)
        mantissa, exponent = value_formatter.limited_real(
            self._real, length_limit, fixed_places, fill_limit, complement
        )
        if self.is_real:
            return value_formatter.LimitedString(mantissa, exponent)
        imaginary_mantissa, imaginary_exponent = value_formatter.limited_real(
            self._imaginary, length_limit, fixed_places, fill_limit
        )
        return value_formatter.LimitedString(mantissa, exponent, imaginary_mantissa, imaginary_exponent)

    @staticmethod
    def join_parts(real_text: str, imaginary_text: str) -> str:
        if imaginary_text.startswith("-"):
            return f"{real_text}-{imaginary_text[1:]}{IMAGINARY_UNIT}"
        return f"{real_text}+{imaginary_text}{IMAGINARY_UNIT}"

    def to_string(self) -> str:
        if not self.valid:
            return value_formatter.INVALID_TEXT
        if self.is_real:
            return self._real.to_string()
        return self.join_parts(self._real.to_string(), self._imaginary.to_string())

    def to_short_string(self, precision: int) -> str:
        if not self.valid or self.is_real:
            return self._real.to_short_string(precision)
        return self.join_parts(
            self._real.to_short_string(precision),
            self._imaginary.to_short_string(precision),
        )

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"ComplexValue({self.to_string()!r}, radix={self.radix})"

    # ── Serialización ────────────────────────────────────────────

    def serialize(self) -> dict:
        return {
            "real": self._real.serialize(),
            "imaginary": self._imaginary.serialize() if self._imaginary is not None else None,
            "has_imaginary": self._has_imaginary,
        }

    @classmethod
    def deserialize(cls, data: dict) -> "ComplexValue":
        value = cls.__new__(cls)
        value._real = RealValue.deserialize(data["real"])
        imaginary = data.get("imaginary")
        value._imaginary = RealValue.deserialize(imaginary) if imaginary is not None else None
        value._has_imaginary = bool(data.get("has_imaginary"))
        return value

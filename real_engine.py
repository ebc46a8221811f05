"""Valor real de precisión fija en base arbitraria.

``RealValue`` guarda signo, exponente, punto de usuario, validez y una
mantisa de ``num_limbs`` limbs. El valor representado es
``(-1)**negativo * M * radix**exponente`` con ``M`` normalizado a exactamente
``max_digits`` dígitos (o cero).

Todas las operaciones aritméticas y trascendentes modifican el receptor y
devuelven ``None``. Para conservar un valor hay que duplicarlo antes. Cada
operación lee por completo el estado del operando antes de escribir, por lo
que ``x.add(x)`` está bien definido.

Los casos numéricos límite (división por cero, dominio, desbordamiento) no
lanzan excepciones: el valor queda inválido y la invalidez se propaga.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from mpmath import mp

import value_formatter
import transcendental
from engine_config import DEFAULT_PRECISION, DEFAULT_RADIX, PrecisionConfig, TrigMode, check_radix
from limb_store import LimbLayout, get_layout
from radix_codec import convert_magnitude, digits_of, format_digits, int_to_text, parse_digits

logger = logging.getLogger(__name__)

# Limbs extra con los que trabajan las funciones trascendentes.
GUARD_LIMBS = 2

# Potencias enteras mayores se calculan con exp(y * ln x).
INT_POWER_LIMIT = 1 << 31

# Dígitos que mueve cada paso de notación de ingeniería.
ENGINEERING_STEP = 3


class RealValue:
    """Número real en base 2..36 con precisión fijada por ``PrecisionConfig``."""

    __slots__ = (
        "_config",
        "_layout",
        "_limbs",
        "_exponent",
        "_negative",
        "_valid",
        "_user_point",
    )

    def __init__(self, radix: int = DEFAULT_RADIX, precision: PrecisionConfig = DEFAULT_PRECISION):
        check_radix(radix)
        self._config = precision
        self._layout = get_layout(radix, precision.num_limbs, precision.limb_bits)
        self._limbs = self._layout.zeros()
        self._exponent = 0
        self._negative = False
        self._valid = True
        self._user_point = 0

    # ── Constructores ────────────────────────────────────────────

    @classmethod
    def from_string(
        cls,
        text: str,
        radix: int = DEFAULT_RADIX,
        precision: PrecisionConfig = DEFAULT_PRECISION,
    ) -> "RealValue":
        value = cls(radix, precision)
        parsed = parse_digits(text, value._layout)
        if not parsed.valid:
            logger.debug("Cadena no válida en base %d: %r", radix, text)
            value._set_invalid()
            return value
        value._store(parsed.limbs, parsed.exponent, parsed.negative)
        value._user_point = parsed.user_point
        return value

    @classmethod
    def from_int(
        cls,
        number: int,
        radix: int = DEFAULT_RADIX,
        precision: PrecisionConfig = DEFAULT_PRECISION,
    ) -> "RealValue":
        value = cls(radix, precision)
        value._store_int(number)
        return value

    @classmethod
    def from_float(
        cls,
        number: float,
        radix: int = DEFAULT_RADIX,
        precision: PrecisionConfig = DEFAULT_PRECISION,
    ) -> "RealValue":
        """Conversión exacta del doble binario, redondeada a la precisión."""
        value = cls(radix, precision)
        converted = mp.mpf(number)
        if not mp.isfinite(converted):
            value._set_invalid()
            return value
        mantissa, exponent = converted.man_exp
        if mantissa == 0:
            return value
        work = value._working()
        work._store_int(mantissa)
        scale = work.like(2)
        scale.raise_to_int_power(exponent)
        work.multiply_by(scale)
        value._assign_result(work)
        return value

    @classmethod
    def from_parts(
        cls,
        mantissa,
        exponent: int,
        negative: bool,
        radix: int = DEFAULT_RADIX,
        user_point: int = 0,
        precision: PrecisionConfig = DEFAULT_PRECISION,
        valid: bool = True,
    ) -> "RealValue":
        """Constructor canónico: mantisa (lista de limbs o entero), exponente, signo."""
        value = cls(radix, precision)
        if not valid:
            value._set_invalid()
            return value
        layout = value._layout
        if isinstance(mantissa, int):
            limbs = layout.from_int(mantissa)
        else:
            limbs = list(mantissa)
            if any(limb < 0 or limb >= layout.value_limit for limb in limbs):
                raise ValueError("Limb fuera del rango de la base")
        value._store(limbs, exponent, negative)
        value._user_point = user_point
        return value

    @classmethod
    def pi(cls, radix: int = DEFAULT_RADIX, precision: PrecisionConfig = DEFAULT_PRECISION) -> "RealValue":
        value = cls(radix, precision)
        value._assign_result(transcendental.pi_value(value._working()))
        return value

    def like(self, number: int) -> "RealValue":
        """Entero con la misma base y precisión que este valor."""
        return RealValue.from_int(number, self.radix, self._config)

    def duplicate(self) -> "RealValue":
        copy = RealValue.__new__(RealValue)
        copy._config = self._config
        copy._layout = self._layout
        copy._limbs = list(self._limbs)
        copy._exponent = self._exponent
        copy._negative = self._negative
        copy._valid = self._valid
        copy._user_point = self._user_point
        return copy

    __copy__ = duplicate

    def with_precision(self, precision: PrecisionConfig) -> "RealValue":
        """Copia reexpresada con otro número de limbs (redondeando si hace falta)."""
        copy = RealValue(self.radix, precision)
        if not self._valid:
            copy._set_invalid()
            return copy
        copy._store(self._limbs, self._exponent, self._negative)
        return copy

    # ── Propiedades ──────────────────────────────────────────────

    @property
    def radix(self) -> int:
        return self._layout.radix

    @property
    def precision(self) -> PrecisionConfig:
        return self._config

    @property
    def layout(self) -> LimbLayout:
        return self._layout

    @property
    def limbs(self) -> tuple:
        return tuple(self._limbs)

    @property
    def exponent(self) -> int:
        return self._exponent

    @property
    def value_precision(self) -> int:
        return self._layout.value_precision

    @property
    def value_limit(self) -> int:
        return self._layout.value_limit

    @property
    def exponent_precision(self) -> int:
        return len(int_to_text(self._config.max_exponent, self.radix))

    @property
    def valid(self) -> bool:
        return self._valid

    @property
    def is_zero(self) -> bool:
        return self._valid and self._layout.is_zero(self._limbs)

    @property
    def is_negative(self) -> bool:
        return self._negative

    @property
    def user_point(self) -> int:
        return self._user_point

    @user_point.setter
    def user_point(self, position: int):
        self._user_point = max(0, int(position))

    @property
    def order(self) -> int:
        """Exponente científico: el valor está en ``[radix**order, radix**(order+1))``."""
        if self.is_zero or not self._valid:
            return 0
        return self._exponent + self._layout.max_digits - 1

    @property
    def is_integral(self) -> bool:
        if not self._valid:
            return False
        if self._exponent >= 0 or self.is_zero:
            return True
        return self._layout.truncate_digits(self._limbs, -self._exponent) == self._limbs

    @property
    def has_exponent(self) -> bool:
        """Indica si ``to_string`` necesita campo de exponente."""
        if not self._valid or self.is_zero:
            return False
        limit = self._layout.max_digits
        return not -limit < self.order + 1 <= limit

    @property
    def mantissa_length(self) -> int:
        return len(self.digits()[0])

    def digits(self) -> tuple[list[int], int]:
        """Dígitos significativos y longitud de la parte entera."""
        return digits_of(self._limbs, self._exponent, self._layout)

    # ── Estado interno ───────────────────────────────────────────

    def _set_invalid(self):
        self._limbs = self._layout.zeros()
        self._exponent = 0
        self._negative = False
        self._valid = False
        self._user_point = 0

    def _set_zero(self):
        self._limbs = self._layout.zeros()
        self._exponent = 0
        self._negative = False

    def _store(self, limbs: list[int], exponent: int, negative: bool):
        limbs, exponent = self._layout.normalize(limbs, exponent)
        self._user_point = 0
        if self._layout.is_zero(limbs):
            self._set_zero()
            return
        scientific = exponent + self._layout.max_digits - 1
        if scientific > self._config.max_exponent:
            logger.debug("Desbordamiento de exponente (%d) en base %d", scientific, self.radix)
            self._set_invalid()
            return
        if scientific < -self._config.max_exponent:
            self._set_zero()
            return
        self._limbs = limbs
        self._exponent = exponent
        self._negative = negative

    def _store_int(self, number: int):
        self._store(self._layout.from_int(abs(number)), 0, number < 0)

    def _working(self) -> "RealValue":
        work_config = replace(self._config, num_limbs=self._config.num_limbs + GUARD_LIMBS)
        return self.with_precision(work_config)

    def _assign_result(self, result: "RealValue"):
        if not result._valid:
            self._set_invalid()
            return
        if result.radix != self.radix:
            result = result.duplicate()
            result.convert_to_radix(self.radix)
        self._valid = True
        self._store(result._limbs, result._exponent, result._negative)

    def _operand(self, other: "RealValue") -> "RealValue":
        if other._config.cache_key != self._config.cache_key:
            raise ValueError("Los operandos tienen configuraciones de precisión distintas")
        if other.radix != self.radix:
            other = other.duplicate()
            other.convert_to_radix(self.radix)
        return other

    def _poisoned_by(self, other: "RealValue") -> bool:
        if self._valid and other._valid:
            return False
        self._set_invalid()
        return True

    def _compare_magnitude(self, other: "RealValue") -> int:
        if self.is_zero:
            return 0 if other.is_zero else -1
        if other.is_zero:
            return 1
        if self._exponent != other._exponent:
            return 1 if self._exponent > other._exponent else -1
        return self._layout.compare(self._limbs, other._limbs)

    # ── Utilidades públicas ──────────────────────────────────────

    def assign(self, other: "RealValue"):
        """Copia valor, base y precisión de ``other``."""
        self._config = other._config
        self._layout = other._layout
        self._limbs = list(other._limbs)
        self._exponent = other._exponent
        self._negative = other._negative
        self._valid = other._valid
        self._user_point = other._user_point

    def convert_to_radix(self, new_radix: int):
        check_radix(new_radix)
        if new_radix == self.radix:
            return
        target = get_layout(new_radix, self._config.num_limbs, self._config.limb_bits)
        if not self._valid:
            self._layout = target
            self._set_invalid()
            return
        limbs, exponent = convert_magnitude(self._limbs, self._exponent, self._layout, target)
        negative = self._negative
        self._layout = target
        self._store(limbs, exponent, negative)

    def compare_with(self, other: "RealValue") -> int:
        """Orden total: -1, 0 o 1. Un valor inválido es menor que cualquier válido."""
        other = self._operand(other)
        if not self._valid or not other._valid:
            return (self._valid > other._valid) - (self._valid < other._valid)
        if self._negative != other._negative:
            return -1 if self._negative else 1
        magnitude = self._compare_magnitude(other)
        return -magnitude if self._negative else magnitude

    def invalidate(self):
        self._set_invalid()

    def scale_by_radix(self, power: int):
        """Multiplica exactamente por ``radix ** power`` desplazando el exponente."""
        if not self._valid or self.is_zero:
            return
        self._store(self._limbs, self._exponent + power, self._negative)

    # ── Notación de ingeniería ───────────────────────────────────

    def exp3_up(self):
        """Desplaza la coma tres posiciones a la derecha (multiplica por radix³).

        Los dígitos fraccionarios tecleados se consumen de tres en tres.
        """
        if not self._valid:
            return
        point = self._user_point
        self.scale_by_radix(ENGINEERING_STEP)
        self._user_point = max(0, point - ENGINEERING_STEP)

    def exp3_down(self, display_digits: int):
        """Desplaza la coma tres posiciones a la izquierda (divide por radix³).

        El punto de usuario gana tres decimales sin pasar de ``display_digits``.
        """
        if not self._valid:
            return
        point = self._user_point
        self.scale_by_radix(-ENGINEERING_STEP)
        self._user_point = max(0, min(point + ENGINEERING_STEP, display_digits))

    def abs(self):
        self._negative = False

    def negate(self):
        if self._valid and not self.is_zero:
            self._negative = not self._negative

    # ── Aritmética ───────────────────────────────────────────────

    def add(self, other: "RealValue"):
        other = self._operand(other)
        if self._poisoned_by(other):
            return
        self._signed_add(other._limbs, other._exponent, other._negative)

    def subtract(self, other: "RealValue"):
        other = self._operand(other)
        if self._poisoned_by(other):
            return
        negative = not other._negative and not other.is_zero
        self._signed_add(other._limbs, other._exponent, negative)

    def _signed_add(self, limbs: list[int], exponent: int, negative: bool):
        layout = self._layout
        if layout.is_zero(limbs):
            return
        if self.is_zero:
            self._store(list(limbs), exponent, negative)
            return

        a_limbs, a_exponent, a_negative = self._limbs, self._exponent, self._negative
        high = max(a_exponent, exponent)
        low = min(a_exponent, exponent)
        base = max(low, high - (layout.max_digits + 2))

        def aligned(source, source_exponent):
            if source_exponent >= base:
                return layout.shift_left(source, source_exponent - base)
            shifted, _ = layout.shift_right(source, base - source_exponent)
            return shifted

        x = aligned(a_limbs, a_exponent)
        y = aligned(limbs, exponent)
        if a_negative == negative:
            self._store(layout.add(x, y), base, negative)
            return
        order = layout.compare(x, y)
        if order == 0:
            self._set_zero()
        elif order > 0:
            self._store(layout.subtract(x, y), base, a_negative)
        else:
            self._store(layout.subtract(y, x), base, negative)

    def multiply_by(self, other: "RealValue"):
        other = self._operand(other)
        if self._poisoned_by(other):
            return
        product = self._layout.multiply(self._limbs, other._limbs)
        self._store(
            product,
            self._exponent + other._exponent,
            self._negative != other._negative,
        )

    def divide_by(self, other: "RealValue"):
        other = self._operand(other)
        if self._poisoned_by(other):
            return
        if other.is_zero:
            logger.debug("División por cero")
            self._set_invalid()
            return
        if self.is_zero:
            return
        layout = self._layout
        extra = layout.max_digits + 2
        quotient, _ = layout.divide(layout.shift_left(self._limbs, extra), other._limbs)
        self._store(
            quotient,
            self._exponent - other._exponent - extra,
            self._negative != other._negative,
        )

    def modulo_by(self, other: "RealValue"):
        """Resto truncado (con el signo del dividendo), calculado exactamente."""
        other = self._operand(other)
        if self._poisoned_by(other):
            return
        if other.is_zero:
            logger.debug("Módulo por cero")
            self._set_invalid()
            return
        if self._compare_magnitude(other) < 0:
            return
        layout = self._layout
        numerator = layout.shift_left(self._limbs, self._exponent - other._exponent)
        _, remainder = layout.divide(numerator, other._limbs)
        self._store(remainder, other._exponent, self._negative)

    def whole_part(self):
        """Trunca hacia cero."""
        if not self._valid or self._exponent >= 0:
            return
        if self.order < 0:
            self._set_zero()
            return
        limbs = self._layout.truncate_digits(self._limbs, -self._exponent)
        self._store(limbs, self._exponent, self._negative)

    def fractional_part(self):
        """``x - whole_part(x)``; conserva el signo de ``x``."""
        if not self._valid:
            return
        whole = self.duplicate()
        whole.whole_part()
        self.subtract(whole)

    # ── Enteros ──────────────────────────────────────────────────

    def to_int(self) -> int:
        """Parte entera truncada hacia cero como entero de Python."""
        if not self._valid:
            raise ValueError("Valor inválido")
        magnitude = self._layout.to_int(self._limbs)
        if self._exponent >= 0:
            magnitude *= self.radix**self._exponent
        else:
            magnitude //= self.radix ** (-self._exponent)
        return -magnitude if self._negative else magnitude

    def _natural(self) -> int | None:
        if not self.is_integral or self._negative:
            return None
        return self.to_int()

    def factorial(self):
        """n! para enteros no negativos; cualquier otro valor queda inválido."""
        n = self._natural()
        if n is None:
            logger.debug("Factorial fuera de dominio")
            self._set_invalid()
            return
        result = self.like(1)
        for k in range(2, n + 1):
            result.multiply_by(self.like(k))
            if not result._valid:
                break
        self.assign(result)

    def n_pr(self, r: "RealValue"):
        """Variaciones: n! / (n - r)! como producto descendente."""
        r = self._operand(r)
        if self._poisoned_by(r):
            return
        n, k = self._natural(), r._natural()
        if n is None or k is None or k > n:
            self._set_invalid()
            return
        result = self.like(1)
        for factor in range(n, n - k, -1):
            result.multiply_by(self.like(factor))
            if not result._valid:
                break
        self.assign(result)

    def n_cr(self, r: "RealValue"):
        """Combinaciones acumulando C(n, i) * (n - i) / (i + 1), siempre entero."""
        r = self._operand(r)
        if self._poisoned_by(r):
            return
        n, k = self._natural(), r._natural()
        if n is None or k is None or k > n:
            self._set_invalid()
            return
        k = min(k, n - k)
        result = self.like(1)
        for i in range(k):
            result.multiply_by(self.like(n - i))
            result.divide_by(self.like(i + 1))
            if not result._valid:
                break
        self.assign(result)

    def sum(self):
        """Suma triangular 1 + 2 + ... + n."""
        n = self._natural()
        if n is None:
            self._set_invalid()
            return
        self._store_int(n * (n + 1) // 2)

    # ── Operaciones de bits ──────────────────────────────────────

    def _bitwise(self, other, operation, complement: int):
        if other is not None:
            other = self._operand(other)
            if self._poisoned_by(other):
                return
        elif not self._valid:
            return
        left = self.to_int()
        right = other.to_int() if other is not None else None
        result = operation(left, right)
        if complement:
            result &= (1 << complement) - 1
        self._store_int(result)

    def bitnot_with_complement(self, complement: int):
        """NOT de bits; con ``complement`` > 0 se enmascara a ese ancho."""
        self._bitwise(None, lambda a, _: ~a, complement)

    def and_with(self, other: "RealValue", complement: int = 0):
        self._bitwise(other, lambda a, b: a & b, complement)

    def or_with(self, other: "RealValue", complement: int = 0):
        self._bitwise(other, lambda a, b: a | b, complement)

    def xor_with(self, other: "RealValue", complement: int = 0):
        self._bitwise(other, lambda a, b: a ^ b, complement)

    # ── Funciones trascendentes ──────────────────────────────────

    def _apply(self, kernel, *args):
        if not self._valid:
            return
        self._assign_result(kernel(self._working(), *args))

    def power_of_e(self):
        self._apply(transcendental.exp_value)

    def ln(self):
        self._apply(transcendental.ln_value)

    def raise_to_int_power(self, n: int):
        if not self._valid:
            return
        if n < 0 and self.is_zero:
            self._set_invalid()
            return
        self._apply(transcendental.int_power_value, n)

    def raise_to_power(self, other: "RealValue"):
        """x**y real; una base negativa con exponente no entero queda inválida."""
        other = self._operand(other)
        if self._poisoned_by(other):
            return
        if other.is_integral and abs(other.to_int()) < INT_POWER_LIMIT:
            self.raise_to_int_power(other.to_int())
            return
        if self.is_zero:
            if other._negative:
                self._set_invalid()
            return
        if self._negative:
            logger.debug("Potencia no entera de base negativa en el dominio real")
            self._set_invalid()
            return
        self._apply(transcendental.general_power_value, other._working())

    def sqrt(self):
        self._apply(transcendental.sqrt_value)

    def cbrt(self):
        self._apply(transcendental.cbrt_value)

    def inverse(self):
        self._apply(transcendental.inverse_value)

    def log_of_base(self, base: "RealValue"):
        base = self._operand(base)
        if self._poisoned_by(base):
            return
        self._apply(transcendental.log_base_value, base._working())

    def atan2(self, x: "RealValue"):
        """Sustituye ``self`` (ordenada) por el ángulo de ``(x, self)`` en radianes."""
        x = self._operand(x)
        if self._poisoned_by(x):
            return
        self._apply(transcendental.atan2_value, x._working())

    def sin_with_trig_mode(self, mode: TrigMode, inv: bool = False, hyp: bool = False):
        self._apply(transcendental.trig_kernel("sin", inv, hyp), mode)

    def cos_with_trig_mode(self, mode: TrigMode, inv: bool = False, hyp: bool = False):
        self._apply(transcendental.trig_kernel("cos", inv, hyp), mode)

    def tan_with_trig_mode(self, mode: TrigMode, inv: bool = False, hyp: bool = False):
        self._apply(transcendental.trig_kernel("tan", inv, hyp), mode)

    # ── Conversión y formato ─────────────────────────────────────

    def to_mpf(self):
        if not self._valid:
            return mp.nan
        magnitude = self._layout.to_int(self._limbs)
        with mp.workdps(self._layout.max_digits * 2 + 10):
            value = mp.mpf(magnitude) * mp.power(self.radix, self._exponent)
        return -value if self._negative else value

    @property
    def double_value(self) -> float:
        return float(self.to_mpf())

    @property
    def mantissa_string(self) -> str:
        return value_formatter.limited_string(self, self._layout.max_digits + 2).mantissa

    @property
    def exponent_string(self) -> str:
        return value_formatter.limited_string(self, self._layout.max_digits + 2).exponent

    def to_string(self) -> str:
        if not self._valid:
            return value_formatter.INVALID_TEXT
        return format_digits(self._limbs, self._exponent, self._negative, self._layout)

    def to_short_string(self, precision: int) -> str:
        return value_formatter.to_short_string(self, precision)

    def limited_string(
        self,
        length_limit: int,
        fixed_places: int = 0,
        fill_limit: bool = False,
        complement: int = 0,
    ) -> "value_formatter.LimitedString":
        return value_formatter.limited_string(self, length_limit, fixed_places, fill_limit, complement)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"RealValue({self.to_string()!r}, radix={self.radix})"

    # ── Serialización ────────────────────────────────────────────

    def serialize(self) -> dict:
        return {
            "radix": self.radix,
            "negative": self._negative,
            "exponent": self._exponent,
            "user_point": self._user_point,
            "valid": self._valid,
            "num_limbs": self._config.num_limbs,
            "limb_bits": self._config.limb_bits,
            "max_exponent": self._config.max_exponent,
            "max_iterations": self._config.max_iterations,
            "value_precision": self.value_precision,
            "value_limit": self.value_limit,
            "exponent_precision": self.exponent_precision,
            "mantissa": list(self._limbs),
        }

    @classmethod
    def deserialize(cls, data: dict) -> "RealValue":
        precision = PrecisionConfig(
            num_limbs=data["num_limbs"],
            limb_bits=data["limb_bits"],
            max_exponent=data["max_exponent"],
            max_iterations=data["max_iterations"],
        )
        value = cls(data["radix"], precision)
        if (
            data["value_precision"] != value.value_precision
            or data["value_limit"] != value.value_limit
            or len(data["mantissa"]) != precision.num_limbs
        ):
            raise ValueError("Parámetros de precisión incompatibles")
        if not data["valid"]:
            value._set_invalid()
            return value
        value._limbs = list(data["mantissa"])
        value._exponent = data["exponent"]
        value._negative = data["negative"]
        value._user_point = data["user_point"]
        return value

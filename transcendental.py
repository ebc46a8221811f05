"""Núcleos iterativos de las funciones trascendentes reales.

Cada función recibe un ``RealValue`` (normalmente ya con limbs de guarda) y
devuelve un valor nuevo sin modificar el argumento. Las series se evalúan
término a término hasta que el término no alcanza la última posición
representable del acumulado, y las iteraciones de Newton hasta que dos
aproximaciones sucesivas coinciden salvo en los dos últimos dígitos. En
ambos casos ``max_iterations`` acota el trabajo.
"""

from __future__ import annotations

import logging
import math

from engine_config import TrigMode

logger = logging.getLogger(__name__)

# Reducciones de argumento antes de evaluar las series.
EXP_HALVINGS = 8
ATAN_HALVINGS = 3

# Dígitos finales que pueden diferir en la prueba de punto fijo de Newton.
NEWTON_SLACK_DIGITS = 2

_CONSTANTS: dict = {}


# ── Utilidades ───────────────────────────────────────────────────


def _invalid(like):
    result = like.duplicate()
    result.invalidate()
    return result


def _cached(name: str, like, builder):
    key = (name, like.radix, like.precision.cache_key)
    value = _CONSTANTS.get(key)
    if value is None:
        value = builder(like)
        _CONSTANTS[key] = value
    return value.duplicate()


def _negligible(term, total) -> bool:
    if term.is_zero:
        return True
    if total.is_zero:
        return False
    return term.order < total.order - term.layout.max_digits


def _converged(current, previous) -> bool:
    diff = current.duplicate()
    diff.subtract(previous)
    if diff.is_zero:
        return True
    return diff.order < current.order - (current.layout.max_digits - NEWTON_SLACK_DIGITS)


def _iterations(like) -> range:
    return range(1, like.precision.max_iterations + 1)


def _cap_reached(name: str):
    logger.debug("Límite de iteraciones alcanzado en %s", name)


def _sign_compare(value, number: int) -> int:
    return value.compare_with(value.like(number))


# ── Constantes ───────────────────────────────────────────────────


def e_value(like):
    return _cached("e", like, lambda v: _exp_series(v.like(1)))


def ln2_value(like):
    return _cached("ln2", like, lambda v: _ln_series(v.like(2)))


def ln_radix_value(like):
    return _cached("ln_radix", like, lambda v: _ln_reduced(v.like(v.radix)))


def pi_value(like):
    """Fórmula de Machin: pi = 16 atan(1/5) - 4 atan(1/239)."""

    def build(v):
        fifth = v.like(1)
        fifth.divide_by(v.like(5))
        result = _atan_series(fifth)
        result.multiply_by(v.like(16))
        small = v.like(1)
        small.divide_by(v.like(239))
        correction = _atan_series(small)
        correction.multiply_by(v.like(4))
        result.subtract(correction)
        return result

    return _cached("pi", like, build)


# ── Exponencial y logaritmo ──────────────────────────────────────


def _exp_series(fraction):
    """exp para |x| < 1: reduce a la mitad, suma Taylor y eleva al cuadrado."""
    x = fraction.duplicate()
    x.divide_by(x.like(1 << EXP_HALVINGS))
    total = x.like(1)
    term = x.like(1)
    for i in _iterations(x):
        term.multiply_by(x)
        term.divide_by(x.like(i))
        if _negligible(term, total):
            break
        total.add(term)
    else:
        _cap_reached("exp")
    for _ in range(EXP_HALVINGS):
        total.multiply_by(total)
    return total


def exp_value(x):
    if not x.valid:
        return x.duplicate()
    if x.is_zero:
        return x.like(1)
    whole = x.duplicate()
    whole.whole_part()
    n = whole.to_int()
    limit = int(x.precision.max_exponent * math.log(x.radix)) + 2
    if n > limit:
        return _invalid(x)
    if n < -limit:
        return x.like(0)

    fraction = x.duplicate()
    fraction.subtract(whole)
    result = _exp_series(fraction)
    if n:
        result.multiply_by(int_power_value(e_value(x), n))
    return result


def _atanh_series(z):
    """atanh z = z + z³/3 + z⁵/5 + ...; pensada para |z| <= 1/2."""
    z_squared = z.duplicate()
    z_squared.multiply_by(z)
    total = z.duplicate()
    power = z.duplicate()
    for k in _iterations(z):
        power.multiply_by(z_squared)
        term = power.duplicate()
        term.divide_by(z.like(2 * k + 1))
        if _negligible(term, total):
            break
        total.add(term)
    else:
        _cap_reached("atanh")
    return total


def _ln_series(y):
    """ln y = 2 atanh((y - 1) / (y + 1)); rápido para y cerca de 1."""
    z = y.duplicate()
    z.subtract(y.like(1))
    if z.is_zero:
        return z
    denominator = y.duplicate()
    denominator.add(y.like(1))
    z.divide_by(denominator)
    total = _atanh_series(z)
    total.multiply_by(z.like(2))
    return total


def _below_half(x) -> bool:
    """|x| < 1/2, comparando 2|x| con 1 para no depender de la base."""
    doubled = x.duplicate()
    doubled.abs()
    doubled.multiply_by(x.like(2))
    return _sign_compare(doubled, 1) < 0


def _ln_reduced(y):
    """ln para y >= 1, sacando potencias de dos hasta dejar y en [1, 2)."""
    y = y.duplicate()
    two = y.like(2)
    halvings = 0
    while y.compare_with(two) >= 0:
        y.divide_by(two)
        halvings += 1
    result = _ln_series(y)
    if halvings:
        correction = ln2_value(y)
        correction.multiply_by(y.like(halvings))
        result.add(correction)
    return result


def ln_value(x):
    if not x.valid or x.is_zero or x.is_negative:
        return _invalid(x)
    if _sign_compare(x, 1) == 0:
        return x.like(0)
    # En [1/2, 2) la serie converge sola y no hay correcciones que se cancelen.
    if not _below_half(x) and _sign_compare(x, 2) < 0:
        return _ln_series(x)
    shift = x.order
    y = x.duplicate()
    y.scale_by_radix(-shift)
    result = _ln_reduced(y)
    if shift:
        correction = ln_radix_value(x)
        correction.multiply_by(x.like(shift))
        result.add(correction)
    return result


def log_base_value(x, base):
    result = ln_value(x)
    result.divide_by(ln_value(base))
    return result


# ── Potencias y raíces ───────────────────────────────────────────


def int_power_value(x, n: int):
    """Exponenciación por cuadrados sucesivos."""
    if not x.valid:
        return x.duplicate()
    if n == 0:
        return x.like(1)
    base = x.duplicate()
    remaining = abs(n)
    result = x.like(1)
    while remaining:
        if remaining & 1:
            result.multiply_by(base)
        remaining >>= 1
        if remaining:
            base.multiply_by(base)
        if not result.valid or result.is_zero:
            break
    if n < 0:
        reciprocal = x.like(1)
        reciprocal.divide_by(result)
        return reciprocal
    return result


def general_power_value(x, y):
    result = ln_value(x)
    result.multiply_by(y)
    return exp_value(result)


def _radix_power(like, power: int):
    result = like.like(1)
    result.scale_by_radix(power)
    return result


def sqrt_value(x):
    if not x.valid or x.is_negative:
        return _invalid(x)
    if x.is_zero:
        return x.duplicate()
    two = x.like(2)
    guess = _radix_power(x, x.order // 2 + 1)
    for _ in _iterations(x):
        following = x.duplicate()
        following.divide_by(guess)
        following.add(guess)
        following.divide_by(two)
        done = _converged(following, guess)
        guess = following
        if done:
            break
    else:
        _cap_reached("sqrt")
    return guess


def cbrt_value(x):
    if not x.valid:
        return x.duplicate()
    if x.is_zero:
        return x.duplicate()
    magnitude = x.duplicate()
    magnitude.abs()
    two = x.like(2)
    three = x.like(3)
    guess = _radix_power(x, magnitude.order // 3 + 1)
    for _ in _iterations(x):
        following = magnitude.duplicate()
        following.divide_by(guess)
        following.divide_by(guess)
        doubled = guess.duplicate()
        doubled.multiply_by(two)
        following.add(doubled)
        following.divide_by(three)
        done = _converged(following, guess)
        guess = following
        if done:
            break
    else:
        _cap_reached("cbrt")
    if x.is_negative:
        guess.negate()
    return guess


def inverse_value(x):
    """1/x con Newton: y <- y (2 - x y), partiendo de radix**-(orden+1)."""
    if not x.valid or x.is_zero:
        return _invalid(x)
    magnitude = x.duplicate()
    magnitude.abs()
    two = x.like(2)
    guess = _radix_power(x, -magnitude.order - 1)
    for _ in _iterations(x):
        correction = magnitude.duplicate()
        correction.multiply_by(guess)
        correction.negate()
        correction.add(two)
        following = guess.duplicate()
        following.multiply_by(correction)
        done = _converged(following, guess)
        guess = following
        if done:
            break
    else:
        _cap_reached("inverse")
    if x.is_negative:
        guess.negate()
    return guess


# ── Trigonometría ────────────────────────────────────────────────


def _half_turn(mode: TrigMode, like):
    if mode is TrigMode.DEGREES:
        return like.like(180)
    if mode is TrigMode.GRADIANS:
        return like.like(200)
    return pi_value(like)


def _quarter_turn(mode: TrigMode, like):
    quarter = _half_turn(mode, like)
    quarter.divide_by(like.like(2))
    return quarter


def to_radians(angle, mode: TrigMode):
    if mode is TrigMode.RADIANS:
        return angle.duplicate()
    result = angle.duplicate()
    result.multiply_by(pi_value(angle))
    result.divide_by(_half_turn(mode, angle))
    return result


def from_radians(angle, mode: TrigMode):
    if mode is TrigMode.RADIANS or not angle.valid:
        return angle.duplicate()
    result = angle.duplicate()
    result.multiply_by(_half_turn(mode, angle))
    result.divide_by(pi_value(angle))
    return result


def _sin_series(x, alternate: bool = True):
    total = x.duplicate()
    term = x.duplicate()
    x_squared = x.duplicate()
    x_squared.multiply_by(x)
    for k in _iterations(x):
        term.multiply_by(x_squared)
        term.divide_by(x.like((2 * k) * (2 * k + 1)))
        if alternate:
            term.negate()
        if _negligible(term, total):
            break
        total.add(term)
    else:
        _cap_reached("sin")
    return total


def sin_value(x, mode: TrigMode):
    """Reduce el ángulo en la unidad del modo a [-cuarto, cuarto] y usa Taylor.

    Reducir en grados o gradianes hace exactos los ceros en múltiplos de
    media vuelta.
    """
    if not x.valid:
        return x.duplicate()
    half = _half_turn(mode, x)
    full = half.duplicate()
    full.multiply_by(x.like(2))
    quarter = _quarter_turn(mode, x)

    angle = x.duplicate()
    angle.modulo_by(full)
    negative_half = half.duplicate()
    negative_half.negate()
    if angle.compare_with(half) > 0:
        angle.subtract(full)
    elif angle.compare_with(negative_half) < 0:
        angle.add(full)

    if angle.compare_with(quarter) > 0:
        reflected = half.duplicate()
        reflected.subtract(angle)
        angle = reflected
    else:
        negative_quarter = quarter.duplicate()
        negative_quarter.negate()
        if angle.compare_with(negative_quarter) < 0:
            reflected = negative_half
            reflected.subtract(angle)
            angle = reflected

    if angle.is_zero:
        return angle
    return _sin_series(to_radians(angle, mode))


def cos_value(x, mode: TrigMode):
    shifted = x.duplicate()
    shifted.add(_quarter_turn(mode, x))
    return sin_value(shifted, mode)


def tan_value(x, mode: TrigMode):
    cosine = cos_value(x, mode)
    if cosine.is_zero:
        return _invalid(x)
    result = sin_value(x, mode)
    result.divide_by(cosine)
    return result


def _atan_series(a):
    total = a.duplicate()
    power = a.duplicate()
    a_squared = a.duplicate()
    a_squared.multiply_by(a)
    for k in _iterations(a):
        power.multiply_by(a_squared)
        power.negate()
        term = power.duplicate()
        term.divide_by(a.like(2 * k + 1))
        if _negligible(term, total):
            break
        total.add(term)
    else:
        _cap_reached("atan")
    return total


def atan_value(x):
    """Arcotangente en radianes."""
    if not x.valid or x.is_zero:
        return x.duplicate()
    one = x.like(1)
    a = x.duplicate()
    a.abs()
    invert = a.compare_with(one) > 0
    if invert:
        reciprocal = one.duplicate()
        reciprocal.divide_by(a)
        a = reciprocal

    # atan(a) = 2 atan(a / (1 + sqrt(1 + a^2)))
    for _ in range(ATAN_HALVINGS):
        denominator = a.duplicate()
        denominator.multiply_by(a)
        denominator.add(one)
        denominator = sqrt_value(denominator)
        denominator.add(one)
        a.divide_by(denominator)

    result = _atan_series(a)
    result.multiply_by(x.like(1 << ATAN_HALVINGS))
    if invert:
        complement = pi_value(x)
        complement.divide_by(x.like(2))
        complement.subtract(result)
        result = complement
    if x.is_negative:
        result.negate()
    return result


def atan2_value(y, x):
    """Ángulo de (x, y) en radianes, en (-pi, pi]."""
    if not x.valid or not y.valid:
        return _invalid(y)
    if x.is_zero:
        if y.is_zero:
            return y.like(0)
        result = pi_value(y)
        result.divide_by(y.like(2))
        if y.is_negative:
            result.negate()
        return result
    ratio = y.duplicate()
    ratio.divide_by(x)
    result = atan_value(ratio)
    if x.is_negative:
        if y.is_negative:
            result.subtract(pi_value(y))
        else:
            result.add(pi_value(y))
    return result


def asin_value(x, mode: TrigMode):
    if not x.valid:
        return x.duplicate()
    magnitude = x.duplicate()
    magnitude.abs()
    bound = _sign_compare(magnitude, 1)
    if bound > 0:
        return _invalid(x)
    if bound == 0:
        result = _quarter_turn(mode, x)
        if x.is_negative:
            result.negate()
        return result
    one = x.like(1)
    below = one.duplicate()
    below.subtract(x)
    above = one.duplicate()
    above.add(x)
    below.multiply_by(above)
    ratio = x.duplicate()
    ratio.divide_by(sqrt_value(below))
    return from_radians(atan_value(ratio), mode)


def acos_value(x, mode: TrigMode):
    arcsine = asin_value(x, mode)
    if not arcsine.valid:
        return arcsine
    result = _quarter_turn(mode, x)
    result.subtract(arcsine)
    return result


def atan_mode_value(x, mode: TrigMode):
    return from_radians(atan_value(x), mode)


# ── Hiperbólicas ─────────────────────────────────────────────────


def _exp_pair(x):
    grow = exp_value(x)
    shrink = x.like(1)
    shrink.divide_by(grow)
    return grow, shrink


def sinh_value(x, mode: TrigMode | None = None):
    if x.valid and not x.is_zero and x.order < 0:
        return _sin_series(x, alternate=False)
    grow, shrink = _exp_pair(x)
    grow.subtract(shrink)
    grow.divide_by(x.like(2))
    return grow


def cosh_value(x, mode: TrigMode | None = None):
    grow, shrink = _exp_pair(x)
    grow.add(shrink)
    grow.divide_by(x.like(2))
    return grow


def tanh_value(x, mode: TrigMode | None = None):
    """(1 - e^(-2|x|)) / (1 + e^(-2|x|)); nunca desborda."""
    if not x.valid:
        return x.duplicate()
    if not x.is_zero and _below_half(x):
        # s / sqrt(1 + s²) con s = sinh x evita restar 1 - e^(-2|x|).
        result = sinh_value(x)
        radicand = result.duplicate()
        radicand.multiply_by(result)
        radicand.add(x.like(1))
        result.divide_by(sqrt_value(radicand))
        return result
    scaled = x.duplicate()
    scaled.abs()
    scaled.multiply_by(x.like(-2))
    decay = exp_value(scaled)
    result = x.like(1)
    result.subtract(decay)
    denominator = x.like(1)
    denominator.add(decay)
    result.divide_by(denominator)
    if x.is_negative:
        result.negate()
    return result


def asinh_value(x, mode: TrigMode | None = None):
    if not x.valid:
        return x.duplicate()
    magnitude = x.duplicate()
    magnitude.abs()
    radicand = magnitude.duplicate()
    radicand.multiply_by(magnitude)
    radicand.add(x.like(1))
    root = sqrt_value(radicand)
    if _below_half(x):
        # asinh x = atanh(x / sqrt(1 + x²)), con el cociente por debajo de 1/2.
        if x.is_zero:
            return x.like(0)
        ratio = x.duplicate()
        ratio.divide_by(root)
        return _atanh_series(ratio)
    root.add(magnitude)
    result = ln_value(root)
    if x.is_negative:
        result.negate()
    return result


def acosh_value(x, mode: TrigMode | None = None):
    if not x.valid or _sign_compare(x, 1) < 0:
        return _invalid(x)
    below = x.duplicate()
    below.subtract(x.like(1))
    above = x.duplicate()
    above.add(x.like(1))
    below.multiply_by(above)
    argument = sqrt_value(below)
    argument.add(x)
    return ln_value(argument)


def atanh_value(x, mode: TrigMode | None = None):
    if not x.valid:
        return x.duplicate()
    if x.is_zero:
        return x.like(0)
    if _below_half(x):
        return _atanh_series(x)
    magnitude = x.duplicate()
    magnitude.abs()
    if _sign_compare(magnitude, 1) >= 0:
        return _invalid(x)
    numerator = x.like(1)
    numerator.add(x)
    denominator = x.like(1)
    denominator.subtract(x)
    numerator.divide_by(denominator)
    result = ln_value(numerator)
    result.divide_by(x.like(2))
    return result


_TRIG_KERNELS = {
    ("sin", False, False): sin_value,
    ("cos", False, False): cos_value,
    ("tan", False, False): tan_value,
    ("sin", True, False): asin_value,
    ("cos", True, False): acos_value,
    ("tan", True, False): atan_mode_value,
    ("sin", False, True): sinh_value,
    ("cos", False, True): cosh_value,
    ("tan", False, True): tanh_value,
    ("sin", True, True): asinh_value,
    ("cos", True, True): acosh_value,
    ("tan", True, True): atanh_value,
}


def trig_kernel(name: str, inv: bool, hyp: bool):
    """Función ``f(x, mode)`` para la combinación de ``inv``/``hyp``."""
    return _TRIG_KERNELS[(name, bool(inv), bool(hyp))]

"""Conversión entre cadenas de dígitos, mantisas en limbs y bases."""

from __future__ import annotations

import math
from typing import NamedTuple

from limb_store import LimbLayout

DIGIT_CHARS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
FRACTION_SEPARATOR = "."


class ParsedDigits(NamedTuple):
    limbs: list
    exponent: int
    negative: bool
    valid: bool
    user_point: int


def exponent_marker(radix: int) -> str:
    """``e`` mientras no sea un dígito válido; ``@`` en bases mayores que 10."""
    return "e" if radix <= 10 else "@"


def digit_value(char: str, radix: int) -> int:
    """Valor de un carácter de dígito, o -1 si no pertenece a la base."""
    value = DIGIT_CHARS.find(char.upper())
    if value < 0 or value >= radix:
        return -1
    return value


def _parse_plain_digits(text: str, radix: int) -> list[int] | None:
    digits = []
    for char in text:
        value = digit_value(char, radix)
        if value < 0:
            return None
        digits.append(value)
    return digits


def _parse_exponent(text: str, radix: int) -> int | None:
    negative = text[:1] == "-"
    if text[:1] in "+-":
        text = text[1:]
    digits = _parse_plain_digits(text, radix)
    if not digits:
        return None
    value = 0
    for digit in digits:
        value = value * radix + digit
    return -value if negative else value


def _invalid(layout: LimbLayout) -> ParsedDigits:
    return ParsedDigits(layout.zeros(), 0, False, False, 0)


def parse_digits(text: str, layout: LimbLayout) -> ParsedDigits:
    """Interpreta ``[+-]digitos[.digitos][marcador[+-]digitos]`` en la base.

    Los dígitos fuera de la base o una sintaxis mal formada producen un cero
    inválido en lugar de una excepción.
    """
    radix = layout.radix
    body = text.strip()
    negative = False
    if body[:1] in ("+", "-"):
        negative = body[0] == "-"
        body = body[1:]

    marker = exponent_marker(radix)
    exponent = 0
    split_at = body.lower().find(marker)
    if split_at >= 0:
        parsed_exponent = _parse_exponent(body[split_at + 1 :], radix)
        if parsed_exponent is None:
            return _invalid(layout)
        exponent = parsed_exponent
        body = body[:split_at]

    if body.count(FRACTION_SEPARATOR) > 1:
        return _invalid(layout)
    whole_text, _, fraction_text = body.partition(FRACTION_SEPARATOR)
    whole = _parse_plain_digits(whole_text, radix)
    fraction = _parse_plain_digits(fraction_text, radix)
    if whole is None or fraction is None or not (whole or fraction):
        return _invalid(layout)

    user_point = len(fraction)
    limbs, exponent = layout.normalize(
        layout.from_digits(whole + fraction),
        exponent - len(fraction),
    )
    if layout.is_zero(limbs):
        negative = False
    return ParsedDigits(limbs, exponent, negative, True, user_point)


def digits_of(limbs: list[int], exponent: int, layout: LimbLayout) -> tuple[list[int], int]:
    """Dígitos significativos sin ceros finales y posición del punto.

    El valor es ``0.d1d2d3... * radix ** int_length``.
    """
    digits = layout.to_digits(limbs)
    if not digits:
        return [], 1
    int_length = len(digits) + exponent
    while digits and digits[-1] == 0:
        digits.pop()
    return digits, int_length


def digits_to_text(digits: list[int]) -> str:
    return "".join(DIGIT_CHARS[d] for d in digits)


def int_to_text(value: int, radix: int) -> str:
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    chars = []
    while value:
        value, digit = divmod(value, radix)
        chars.append(DIGIT_CHARS[digit])
    return sign + "".join(reversed(chars))


def positional_text(digits: list[int], int_length: int) -> str:
    """Notación posicional con punto, sin ceros sobrantes."""
    if not digits:
        return "0"
    if int_length <= 0:
        return "0" + FRACTION_SEPARATOR + "0" * (-int_length) + digits_to_text(digits)
    if int_length >= len(digits):
        return digits_to_text(digits) + "0" * (int_length - len(digits))
    return (
        digits_to_text(digits[:int_length])
        + FRACTION_SEPARATOR
        + digits_to_text(digits[int_length:])
    )


def scientific_parts(digits: list[int], int_length: int, radix: int) -> tuple[str, str]:
    mantissa = digits_to_text(digits[:1])
    if len(digits) > 1:
        mantissa += FRACTION_SEPARATOR + digits_to_text(digits[1:])
    return mantissa, int_to_text(int_length - 1, radix)


def format_digits(
    limbs: list[int],
    exponent: int,
    negative: bool,
    layout: LimbLayout,
) -> str:
    """Inversa de :func:`parse_digits` con la forma canónica más corta."""
    digits, int_length = digits_of(limbs, exponent, layout)
    if not digits:
        return "0"
    sign = "-" if negative else ""
    if -layout.max_digits < int_length <= layout.max_digits:
        return sign + positional_text(digits, int_length)
    mantissa, exponent_text = scientific_parts(digits, int_length, layout.radix)
    return sign + mantissa + exponent_marker(layout.radix) + exponent_text


def convert_magnitude(
    limbs: list[int],
    exponent: int,
    source: LimbLayout,
    target: LimbLayout,
) -> tuple[list[int], int]:
    """Reexpresa ``limbs * source.radix ** exponent`` en la base destino.

    La parte entera se convierte por divisiones sucesivas entre la nueva
    base; la fraccionaria por multiplicaciones sucesivas. Se generan solo
    los dígitos que caben en la precisión destino más uno de redondeo.
    """
    digits, int_length = digits_of(limbs, exponent, source)
    if not digits:
        return target.zeros(), 0
    new_radix = target.radix

    if int_length > 0:
        whole_digits = digits[:int_length] + [0] * max(0, int_length - len(digits))
        fraction_digits = digits[int_length:]
    else:
        whole_digits = []
        fraction_digits = [0] * (-int_length) + digits

    produced = []
    whole = source.from_digits(whole_digits) if whole_digits else [0]
    while not source.is_zero(whole):
        whole, remainder = source.divide_small(whole, new_radix)
        produced.append(remainder)
    produced.reverse()
    new_int_length = len(produced)

    wanted = target.max_digits + 1
    significant = new_int_length
    scale = len(fraction_digits)
    fraction = source.from_digits(fraction_digits) if fraction_digits else [0]
    leading = 0
    if significant == 0:
        leading = int(math.ceil((1 - int_length) * math.log(source.radix) / math.log(new_radix))) + 1
    steps = 0
    while significant < wanted and not source.is_zero(fraction) and steps < wanted + leading:
        fraction = source.multiply_small(fraction, new_radix)
        high, _ = source.shift_right(fraction, scale)
        digit = source.to_int(high)
        if digit:
            fraction = source.subtract(fraction, source.shift_left(high, scale))
        produced.append(digit)
        if significant or digit:
            significant += 1
        steps += 1

    fraction_count = len(produced) - new_int_length
    return target.normalize(target.from_digits(produced), -fraction_count)

"""Formato de valores para la pantalla de la calculadora.

``limited_string`` produce mantisa y exponente que juntos no superan la
longitud pedida, con redondeo a posiciones fijas, relleno de ceros y
truncado al ancho de complemento. Cuando la parte entera no cabe se pasa a
notación científica en lugar de truncarla.
"""

from __future__ import annotations

from typing import NamedTuple

from radix_codec import (
    FRACTION_SEPARATOR,
    digits_to_text,
    exponent_marker,
    int_to_text,
)

INVALID_TEXT = "NaN"
THOUSANDS_SEPARATOR = ","


class LimitedString(NamedTuple):
    mantissa: str
    exponent: str = ""
    imaginary_mantissa: str = ""
    imaginary_exponent: str = ""


def round_digits(digits: list[int], int_length: int, keep: int, radix: int) -> tuple[list[int], int]:
    """Redondea a ``keep`` dígitos significativos (mitad hacia arriba).

    Devuelve los dígitos sin ceros finales y la nueva longitud entera, que
    crece en uno si el acarreo se propaga hasta el primer dígito.
    """
    if keep < 0 or (keep == 0 and (not digits or digits[0] * 2 < radix)):
        return [], int_length
    if len(digits) <= keep:
        return list(digits), int_length
    kept = list(digits[:keep])
    if digits[keep] * 2 >= radix:
        i = keep - 1
        while i >= 0 and kept[i] == radix - 1:
            kept[i] = 0
            i -= 1
        if i < 0:
            kept = [1] + kept
            int_length += 1
        else:
            kept[i] += 1
    while kept and kept[-1] == 0:
        kept.pop()
    return kept, int_length


def _render_fixed(digits: list[int], int_length: int, places: int, pad: bool) -> str:
    if int_length > 0:
        whole = digits[:int_length] + [0] * max(0, int_length - len(digits))
    else:
        whole = [0]
    fraction = ([0] * max(0, -int_length) + digits[max(int_length, 0):])[:places]
    if pad:
        fraction += [0] * (places - len(fraction))
    else:
        while fraction and fraction[-1] == 0:
            fraction.pop()
    text = digits_to_text(whole)
    if fraction:
        text += FRACTION_SEPARATOR + digits_to_text(fraction)
    return text


def _fill(text: str, room: int) -> str:
    if len(text) >= room:
        return text
    if FRACTION_SEPARATOR not in text:
        if len(text) + 2 > room:
            return text
        text += FRACTION_SEPARATOR
    return text + "0" * (room - len(text))


def _fixed(digits, int_length, room, places, fill, radix) -> str | None:
    if int_length > room:
        return None
    fraction_places = places or max(0, room - max(int_length, 1) - 1)
    rounded, new_length = round_digits(digits, int_length, int_length + fraction_places, radix)
    if not rounded:
        return None
    text = _render_fixed(rounded, new_length, fraction_places, pad=bool(places))
    if len(text) > room:
        return None
    if fill and not places:
        text = _fill(text, room)
    return text


def _scientific(digits, int_length, room, places, fill, radix) -> tuple[str, str]:
    exponent_text = int_to_text(int_length - 1, radix)
    for _ in range(2):
        mantissa_room = room - len(exponent_text)
        # Las cifras fijas nunca pueden salirse del espacio de la mantisa.
        significant = max(1, mantissa_room - 1)
        if places:
            significant = min(places + 1, significant)
        rounded, new_length = round_digits(digits, int_length, significant, radix)
        updated = int_to_text(new_length - 1, radix)
        if updated == exponent_text:
            break
        exponent_text = updated

    mantissa = digits_to_text(rounded[:1])
    rest = rounded[1:]
    if places:
        rest = rest + [0] * (min(places, significant - 1) - len(rest))
    if rest:
        mantissa += FRACTION_SEPARATOR + digits_to_text(rest)
    if fill and not places:
        mantissa = _fill(mantissa, room - len(exponent_text))
    return mantissa, exponent_text


def limited_real(value, length_limit: int, fixed_places: int = 0, fill_limit: bool = False, complement: int = 0) -> tuple[str, str]:
    """Mantisa y exponente de un ``RealValue`` dentro de ``length_limit`` caracteres."""
    if not value.valid:
        return INVALID_TEXT, ""
    radix = value.radix
    negative = value.is_negative
    if complement and value.is_integral:
        pattern = value.to_int() & ((1 << complement) - 1)
        text = int_to_text(pattern, radix)
        digits = [] if pattern == 0 else [int(c, 36) for c in text]
        int_length = len(digits)
        while digits and digits[-1] == 0:
            digits.pop()
        negative = False
    else:
        digits, int_length = value.digits()

    sign = "-" if negative else ""
    room = max(2, length_limit - len(sign))
    if not digits:
        zero = "0"
        if fixed_places:
            zero = _render_fixed([], 1, fixed_places, pad=True)
        elif fill_limit:
            zero = _fill(zero, room)
        return zero, ""

    fixed = _fixed(digits, int_length, room, fixed_places, fill_limit, radix)
    if fixed is not None:
        return sign + fixed, ""
    mantissa, exponent = _scientific(digits, int_length, room, fixed_places, fill_limit, radix)
    return sign + mantissa, exponent


def limited_string(value, length_limit: int, fixed_places: int = 0, fill_limit: bool = False, complement: int = 0) -> LimitedString:
    mantissa, exponent = limited_real(value, length_limit, fixed_places, fill_limit, complement)
    return LimitedString(mantissa, exponent)


def join_exponent(mantissa: str, exponent: str, radix: int) -> str:
    if not exponent:
        return mantissa
    return mantissa + exponent_marker(radix) + exponent


def to_short_string(value, precision: int) -> str:
    mantissa, exponent = limited_real(value, precision)
    return join_exponent(mantissa, exponent, value.radix)


def group_size(radix: int) -> int:
    return 4 if radix in (2, 16) else 3


def insert_thousands(
    mantissa: str,
    radix: int = 10,
    separator: str = THOUSANDS_SEPARATOR,
    decimal_point: str = FRACTION_SEPARATOR,
) -> str:
    """Agrupa la parte entera y sustituye el separador decimal."""
    sign = ""
    if mantissa[:1] == "-":
        sign, mantissa = "-", mantissa[1:]
    whole, point, fraction = mantissa.partition(FRACTION_SEPARATOR)
    size = group_size(radix)
    groups = []
    while len(whole) > size:
        groups.insert(0, whole[-size:])
        whole = whole[:-size]
    groups.insert(0, whole)
    result = sign + separator.join(groups)
    if point:
        result += decimal_point + fraction
    return result

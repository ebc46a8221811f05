"""Almacenamiento en limbs de la mantisa y aritmética entera por dígitos.

Una mantisa es una lista de enteros en orden little-endian (el limb 0 es el
menos significativo). Cada limb agrupa ``value_precision`` dígitos de la base
y siempre es menor que ``value_limit = radix ** value_precision``. El límite
se elige para que ``value_limit ** 2`` quepa en la palabra del anfitrión, así
que los productos parciales limb por limb nunca desbordan.
"""

from __future__ import annotations

from functools import lru_cache

from engine_config import DEFAULT_LIMB_BITS, check_radix


class LimbLayout:
    """Parámetros de empaquetado para una base y un número de limbs."""

    __slots__ = (
        "radix",
        "num_limbs",
        "value_precision",
        "value_limit",
        "max_digits",
        "powers",
    )

    def __init__(self, radix: int, num_limbs: int, limb_bits: int = DEFAULT_LIMB_BITS):
        check_radix(radix)
        ceiling = 1 << limb_bits
        if radix > ceiling:
            raise ValueError(f"Base {radix} no cabe en limbs de {limb_bits} bits")
        precision = 1
        limit = radix
        while limit * radix <= ceiling:
            limit *= radix
            precision += 1

        self.radix = radix
        self.num_limbs = num_limbs
        self.value_precision = precision
        self.value_limit = limit
        self.max_digits = num_limbs * precision
        self.powers = tuple(radix**i for i in range(precision + 1))

    def __repr__(self) -> str:
        return (
            f"LimbLayout(radix={self.radix}, num_limbs={self.num_limbs}, "
            f"value_precision={self.value_precision})"
        )

    # ── Construcción y consulta ──────────────────────────────────

    def zeros(self, count: int | None = None) -> list[int]:
        return [0] * (self.num_limbs if count is None else count)

    @staticmethod
    def is_zero(limbs: list[int]) -> bool:
        return not any(limbs)

    @staticmethod
    def top_index(limbs: list[int]) -> int:
        for i in range(len(limbs) - 1, -1, -1):
            if limbs[i]:
                return i
        return -1

    def digit_count(self, limbs: list[int]) -> int:
        top = self.top_index(limbs)
        if top < 0:
            return 0
        value = limbs[top]
        count = 0
        while count < self.value_precision and value >= self.powers[count]:
            count += 1
        return top * self.value_precision + count

    def digit_at(self, limbs: list[int], position: int) -> int:
        index, offset = divmod(position, self.value_precision)
        if position < 0 or index >= len(limbs):
            return 0
        return (limbs[index] // self.powers[offset]) % self.radix

    def set_digit(self, limbs: list[int], position: int, digit: int) -> None:
        index, offset = divmod(position, self.value_precision)
        old = self.digit_at(limbs, position)
        limbs[index] += (digit - old) * self.powers[offset]

    def from_digits(self, digits: list[int]) -> list[int]:
        """Empaqueta dígitos (el más significativo primero) en limbs."""
        count = max(1, -(-len(digits) // self.value_precision))
        limbs = [0] * count
        for position, digit in enumerate(reversed(digits)):
            index, offset = divmod(position, self.value_precision)
            limbs[index] += digit * self.powers[offset]
        return limbs

    def to_digits(self, limbs: list[int]) -> list[int]:
        """Desempaqueta en dígitos, el más significativo primero, sin ceros a la izquierda."""
        count = self.digit_count(limbs)
        return [self.digit_at(limbs, pos) for pos in range(count - 1, -1, -1)]

    def from_int(self, value: int) -> list[int]:
        if value < 0:
            raise ValueError("Se esperaba un entero no negativo")
        limbs = []
        while value:
            value, limb = divmod(value, self.value_limit)
            limbs.append(limb)
        return limbs or [0]

    def to_int(self, limbs: list[int]) -> int:
        result = 0
        for limb in reversed(limbs):
            result = result * self.value_limit + limb
        return result

    @staticmethod
    def resize(limbs: list[int], count: int) -> list[int]:
        if len(limbs) >= count:
            return limbs[:count]
        return limbs + [0] * (count - len(limbs))

    # ── Aritmética por limbs ─────────────────────────────────────

    @staticmethod
    def compare(a: list[int], b: list[int]) -> int:
        for i in range(max(len(a), len(b)) - 1, -1, -1):
            x = a[i] if i < len(a) else 0
            y = b[i] if i < len(b) else 0
            if x != y:
                return 1 if x > y else -1
        return 0

    def add(self, a: list[int], b: list[int]) -> list[int]:
        limit = self.value_limit
        size = max(len(a), len(b))
        result = [0] * (size + 1)
        carry = 0
        for i in range(size):
            total = (a[i] if i < len(a) else 0) + (b[i] if i < len(b) else 0) + carry
            if total >= limit:
                result[i] = total - limit
                carry = 1
            else:
                result[i] = total
                carry = 0
        result[size] = carry
        return result

    def add_small(self, a: list[int], value: int) -> list[int]:
        return self.add(a, [value])

    def subtract(self, a: list[int], b: list[int]) -> list[int]:
        """Resta ``a - b`` con préstamo; requiere ``a >= b``."""
        limit = self.value_limit
        result = [0] * len(a)
        borrow = 0
        for i in range(len(a)):
            diff = a[i] - (b[i] if i < len(b) else 0) - borrow
            if diff < 0:
                result[i] = diff + limit
                borrow = 1
            else:
                result[i] = diff
                borrow = 0
        if borrow or any(b[len(a):]):
            raise ArithmeticError("Resta de limbs con sustraendo mayor")
        return result

    def multiply(self, a: list[int], b: list[int]) -> list[int]:
        """Producto escolar; cada producto parcial cabe en la palabra doble."""
        limit = self.value_limit
        result = [0] * (len(a) + len(b))
        for i, x in enumerate(a):
            if not x:
                continue
            carry = 0
            for j, y in enumerate(b):
                carry, result[i + j] = divmod(result[i + j] + x * y + carry, limit)
            k = i + len(b)
            while carry:
                carry, result[k] = divmod(result[k] + carry, limit)
                k += 1
        return result

    def multiply_small(self, a: list[int], factor: int) -> list[int]:
        limit = self.value_limit
        result = [0] * (len(a) + 1)
        carry = 0
        for i, x in enumerate(a):
            carry, result[i] = divmod(x * factor + carry, limit)
        result[len(a)] = carry
        return result

    def divide_small(self, a: list[int], divisor: int) -> tuple[list[int], int]:
        limit = self.value_limit
        result = [0] * len(a)
        remainder = 0
        for i in range(len(a) - 1, -1, -1):
            result[i], remainder = divmod(remainder * limit + a[i], divisor)
        return result, remainder

    def shift_left(self, a: list[int], digits: int) -> list[int]:
        """Multiplica por ``radix ** digits``."""
        whole, part = divmod(digits, self.value_precision)
        shifted = [0] * whole + list(a)
        if part:
            shifted = self.multiply_small(shifted, self.powers[part])
        return shifted

    def shift_right(self, a: list[int], digits: int) -> tuple[list[int], int]:
        """Divide por ``radix ** digits`` truncando.

        Devuelve el cociente y el dígito descartado más significativo, que
        basta para redondear a la mitad hacia arriba.
        """
        if digits <= 0:
            return list(a), 0
        dropped = self.digit_at(a, digits - 1)
        whole, part = divmod(digits, self.value_precision)
        shifted = list(a[whole:]) or [0]
        if part:
            shifted, _ = self.divide_small(shifted, self.powers[part])
        return shifted, dropped

    def truncate_digits(self, a: list[int], digits: int) -> list[int]:
        """Pone a cero los ``digits`` dígitos menos significativos."""
        result = list(a)
        whole, part = divmod(digits, self.value_precision)
        for i in range(min(whole, len(result))):
            result[i] = 0
        if part and whole < len(result):
            result[whole] -= result[whole] % self.powers[part]
        return result

    def divide(self, a: list[int], b: list[int]) -> tuple[list[int], list[int]]:
        """División larga: un dígito de cociente por iteración.

        El dígito se estima con los limbs superiores del resto y el limb
        superior del divisor; la estimación nunca se queda corta y se corrige
        con restas de prueba.
        """
        top = self.top_index(b)
        if top < 0:
            raise ZeroDivisionError("División de limbs por cero")
        divisor = list(b[: top + 1])
        width = top + 2
        top_divisor = divisor[top]
        radix = self.radix
        limit = self.value_limit

        remainder = [0] * width
        quotient = [0] * max(1, len(a))
        for position in range(self.digit_count(a) - 1, -1, -1):
            remainder = self.multiply_small(remainder, radix)[:width]
            remainder[0] += self.digit_at(a, position)

            leading = remainder[top + 1] * limit + remainder[top]
            if leading < top_divisor:
                continue
            digit = min(leading // top_divisor, radix - 1)
            trial = self.multiply_small(divisor, digit)
            while self.compare(trial, remainder) > 0:
                digit -= 1
                trial = self.subtract(trial, divisor)
            if digit:
                remainder = self.subtract(remainder, trial)
                self.set_digit(quotient, position, digit)
        return quotient, remainder

    def normalize(self, a: list[int], exponent: int) -> tuple[list[int], int]:
        """Ajusta ``a * radix**exponent`` a exactamente ``max_digits`` dígitos.

        Redondea a la mitad hacia arriba con el primer dígito descartado. El
        cero se representa con todos los limbs a cero y exponente 0.
        """
        count = self.digit_count(a)
        if count == 0:
            return self.zeros(), 0
        target = self.max_digits
        if count > target:
            drop = count - target
            a, dropped = self.shift_right(a, drop)
            exponent += drop
            if dropped * 2 >= self.radix:
                a = self.add_small(a, 1)
                if self.digit_count(a) > target:
                    a, _ = self.shift_right(a, 1)
                    exponent += 1
        elif count < target:
            a = self.shift_left(a, target - count)
            exponent -= target - count
        return self.resize(a, self.num_limbs), exponent


@lru_cache(maxsize=None)
def get_layout(radix: int, num_limbs: int, limb_bits: int = DEFAULT_LIMB_BITS) -> LimbLayout:
    return LimbLayout(radix, num_limbs, limb_bits)

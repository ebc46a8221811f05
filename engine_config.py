"""Configuración de precisión y modos angulares del motor numérico."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


DEFAULT_RADIX = 10
MIN_RADIX = 2
MAX_RADIX = 36

# Mitad de una palabra de 32 bits: el producto de dos limbs más el acarreo
# cabe en la palabra completa.
HOST_WORD_BITS = 32
DEFAULT_LIMB_BITS = HOST_WORD_BITS // 2
# 2 ** 6 = 64 es la menor potencia de dos que aloja un dígito de base 36.
MIN_LIMB_BITS = 6

DEFAULT_NUM_LIMBS = 8
DEFAULT_MAX_EXPONENT = 32767
DEFAULT_MAX_ITERATIONS = 400


class TrigMode(Enum):
    """Unidad angular usada por las funciones trigonométricas."""

    DEGREES = "deg"
    RADIANS = "rad"
    GRADIANS = "grad"

    @classmethod
    def from_name(cls, name: str) -> "TrigMode":
        for mode in cls:
            if mode.value == name:
                return mode
        raise ValueError("El modo debe ser 'rad', 'deg' o 'grad'")


@dataclass(frozen=True)
class PrecisionConfig:
    """Número de limbs y límites de iteración compartidos por los valores.

    Cada limb guarda tantos dígitos de la base como quepan en ``limb_bits``
    bits, de modo que el producto de dos limbs no desborda una palabra de
    ``2 * limb_bits`` bits. Con 16 bits la base máxima teórica es 65536; el
    motor la restringe a [2, 36] por el alfabeto de dígitos.
    """

    num_limbs: int = DEFAULT_NUM_LIMBS
    limb_bits: int = DEFAULT_LIMB_BITS
    max_exponent: int = DEFAULT_MAX_EXPONENT
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    _cache_key: tuple = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.num_limbs < 2:
            raise ValueError("num_limbs debe ser al menos 2")
        if not MIN_LIMB_BITS <= self.limb_bits <= HOST_WORD_BITS // 2:
            raise ValueError(f"limb_bits debe estar entre {MIN_LIMB_BITS} y {HOST_WORD_BITS // 2}")
        if self.max_exponent < 1:
            raise ValueError("max_exponent debe ser positivo")
        object.__setattr__(
            self,
            "_cache_key",
            (self.num_limbs, self.limb_bits, self.max_exponent),
        )

    @property
    def cache_key(self) -> tuple:
        return self._cache_key


DEFAULT_PRECISION = PrecisionConfig()


def check_radix(radix: int) -> int:
    if not isinstance(radix, int) or not MIN_RADIX <= radix <= MAX_RADIX:
        raise ValueError(f"Base fuera de rango: {radix}")
    return radix

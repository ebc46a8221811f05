"""
Motor de cálculo para la calculadora científica.

Este módulo provee la clase CalculatorEngine, que evalúa expresiones con
el motor complejo de base arbitraria y da formato al resultado para la
pantalla.

Contrato de interfaz:
    - evaluate(expression: str) -> str
    - angle_mode: propiedad 'rad' | 'deg' | 'grad'
    - radix: base de entrada y salida (2..36)
    - request_more_precision() -> str
"""

from __future__ import annotations

import logging
from dataclasses import replace

import value_formatter
from complex_engine import ComplexValue
from engine_config import DEFAULT_PRECISION, DEFAULT_RADIX, PrecisionConfig, TrigMode, check_radix
from formula_evaluator import FormulaEvaluator
from operators import OperationContext

logger = logging.getLogger(__name__)

DISPLAY_LENGTH = 17
PRECISION_STEP_LIMBS = 4


class CalculatorEngine:
    """Evalúa expresiones con funciones científicas en cualquier base."""

    def __init__(
        self,
        radix: int = DEFAULT_RADIX,
        precision: PrecisionConfig = DEFAULT_PRECISION,
        display_length: int = DISPLAY_LENGTH,
    ):
        self._evaluator = FormulaEvaluator(check_radix(radix), precision)
        self._context = OperationContext()
        self._display_length = display_length
        self._initial_precision = precision

        self._last_expression: str | None = None
        self._last_value: ComplexValue | None = None

    # ── Propiedades ──────────────────────────────────────────────

    @property
    def angle_mode(self) -> str:
        return self._context.mode.value

    @angle_mode.setter
    def angle_mode(self, mode: str):
        self._context = replace(self._context, mode=TrigMode.from_name(mode))

    @property
    def complement(self) -> int:
        return self._context.complement

    @complement.setter
    def complement(self, bits: int):
        if bits < 0:
            raise ValueError("El complemento debe ser 0 o un ancho positivo")
        self._context = replace(self._context, complement=bits)

    @property
    def radix(self) -> int:
        return self._evaluator.radix

    @radix.setter
    def radix(self, radix: int):
        self._evaluator.radix = check_radix(radix)
        if self._last_value is not None:
            self._last_value.convert_to_radix(radix)

    @property
    def precision(self) -> PrecisionConfig:
        return self._evaluator.precision

    @property
    def last_value(self) -> ComplexValue | None:
        return self._last_value.duplicate() if self._last_value is not None else None

    # ── Evaluación principal ─────────────────────────────────────

    def evaluate(self, expression: str) -> str:
        """Evalúa la expresión y devuelve el resultado como cadena.

        Raises:
            ValueError: expresión inválida o función desconocida.
        """
        self._last_expression = expression
        self._evaluator.precision = self._initial_precision
        self._last_value = self._evaluator.evaluate(expression, self._context)
        return self._format_result(self._last_value)

    def can_expand_precision(self) -> bool:
        return self._last_expression is not None

    def request_more_precision(self) -> str:
        """Reevalúa la última expresión con más limbs y devuelve todos los dígitos."""
        if not self._last_expression:
            raise ValueError("No hay cálculo previo")

        expanded = replace(
            self._evaluator.precision,
            num_limbs=self._evaluator.precision.num_limbs + PRECISION_STEP_LIMBS,
        )
        logger.debug("Ampliando precisión a %d limbs", expanded.num_limbs)
        self._evaluator.precision = expanded
        self._last_value = self._evaluator.evaluate(self._last_expression, self._context)
        return self._last_value.to_string()

    def exp3_up(self) -> str:
        """Multiplica el último resultado por radix³ y lo vuelve a mostrar."""
        self._require_last_value().exp3_up()
        return self._format_result(self._last_value)

    def exp3_down(self) -> str:
        """Divide el último resultado por radix³ y lo vuelve a mostrar."""
        self._require_last_value().exp3_down(self._display_length)
        return self._format_result(self._last_value)

    def _require_last_value(self) -> ComplexValue:
        if self._last_value is None:
            raise ValueError("No hay cálculo previo")
        return self._last_value

    # ── Formato del resultado ────────────────────────────────────

    def _format_result(self, value: ComplexValue) -> str:
        if not value.valid:
            return value_formatter.INVALID_TEXT
        parts = value.limited_string(self._display_length, complement=self.complement)
        text = value_formatter.join_exponent(parts.mantissa, parts.exponent, value.radix)
        if not parts.imaginary_mantissa:
            return text
        imaginary = value_formatter.join_exponent(
            parts.imaginary_mantissa, parts.imaginary_exponent, value.radix
        )
        return ComplexValue.join_parts(text, imaginary)

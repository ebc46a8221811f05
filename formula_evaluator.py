"""Parseo y evaluación de expresiones para la calculadora científica."""

from __future__ import annotations

import re

from complex_engine import ComplexValue
from engine_config import DEFAULT_PRECISION, DEFAULT_RADIX, PrecisionConfig
from operators import (
    FUNCTION_NAMES,
    OPERATORS,
    WORD_OPERATORS,
    OperationContext,
    Operator,
    OperatorCategory,
    apply_operator,
)
from radix_codec import digit_value, exponent_marker

_CONSTANTS = ("pi", "π", "e", "i")


class FormulaEvaluator:
    """Transforma expresiones de UI y evalúa su valor con ``ComplexValue``."""

    _ALLOWED_CHARS = re.compile(r"^[\w\s+\-*/^().!%@π×÷−√∙²³⁻¹]*$")
    _SYMBOLS = "+-*/^%!()∙²³"

    def __init__(self, radix: int = DEFAULT_RADIX, precision: PrecisionConfig = DEFAULT_PRECISION):
        self.radix = radix
        self.precision = precision

    def evaluate(self, expression: str, context: OperationContext = OperationContext()) -> ComplexValue:
        if not expression or not expression.strip():
            raise ValueError("Expresión vacía")

        self._validate_raw_expression(expression)
        processed = self._preprocess(expression)
        tokens = self._insert_implicit_mult(self._tokenize(processed))
        return self._run(self._to_postfix(tokens), context)

    def _validate_raw_expression(self, expression: str):
        if not self._ALLOWED_CHARS.fullmatch(expression):
            raise ValueError("Expresión contiene caracteres inválidos")
        if "__" in expression or any(c in expression for c in "[]{};:"):
            raise ValueError("Expresión contiene operadores no permitidos")

    def _preprocess(self, expr: str) -> str:
        expr = expr.strip()

        expr = expr.replace("×", "*")
        expr = expr.replace("÷", "/")
        expr = expr.replace("−", "-")
        expr = expr.replace("**", "^")
        expr = expr.replace("√(", "sqrt(")
        return expr

    # ── Tokens ───────────────────────────────────────────────────

    def _match_word(self, expr: str, start: int) -> str | None:
        match = re.match(r"[a-zA-Z]+[0-9]?", expr[start:])
        if not match:
            return None
        for candidate in (match.group(0), re.match(r"[a-zA-Z]+", match.group(0)).group(0)):
            word = candidate.lower()
            rest = expr[start + len(candidate):].lstrip()
            if word in FUNCTION_NAMES and rest.startswith("("):
                return candidate
            if word in WORD_OPERATORS:
                return candidate
        return None

    def _is_digit(self, char: str) -> bool:
        return char == "." or digit_value(char, self.radix) >= 0

    def _exponent_length(self, expr: str, start: int) -> int:
        """Longitud de un sufijo ``e[+-]dígitos`` (``@`` en bases > 10), o 0."""
        if expr[start:start + 1].lower() != exponent_marker(self.radix):
            return 0
        j = start + 1
        if expr[j:j + 1] in ("+", "-"):
            j += 1
        end = j
        while end < len(expr) and digit_value(expr[end], self.radix) >= 0:
            end += 1
        return end - start if end > j else 0

    def _tokenize(self, expr: str) -> list:
        tokens = []
        i = 0
        while i < len(expr):
            char = expr[i]
            if char.isspace():
                i += 1
                continue
            if expr.startswith("⁻¹", i):
                tokens.append(("op", "⁻¹"))
                i += 2
                continue
            if char in self._SYMBOLS:
                tokens.append(("op", char))
                i += 1
                continue
            word = self._match_word(expr, i)
            if word is not None:
                tokens.append(("op", word.lower()))
                i += len(word)
                continue
            if self._is_digit(char):
                j = i
                while j < len(expr) and self._is_digit(expr[j]):
                    j += 1
                j += self._exponent_length(expr, j)
                tokens.append(("num", expr[i:j]))
                i = j
                continue
            constant = next((c for c in _CONSTANTS if expr.startswith(c, i)), None)
            if constant is not None:
                tokens.append(("const", constant))
                i += len(constant)
                continue
            raise ValueError(f"Identificador no permitido: {expr[i:]}")
        return tokens

    @staticmethod
    def _ends_operand(token) -> bool:
        kind, text = token
        if kind in ("num", "const"):
            return True
        return text == ")" or (text in OPERATORS and OPERATORS[text].category is OperatorCategory.UNARY_POST)

    @staticmethod
    def _starts_operand(token) -> bool:
        kind, text = token
        if kind in ("num", "const"):
            return True
        return text == "(" or (text in OPERATORS and OPERATORS[text].category is OperatorCategory.UNARY_PRE)

    def _insert_implicit_mult(self, tokens: list) -> list:
        result = []
        for token in tokens:
            if result and self._ends_operand(result[-1]) and self._starts_operand(token):
                result.append(("op", "∙"))
            if token == ("op", "-") and (not result or not self._ends_operand(result[-1])):
                token = ("op", "neg")
            elif token == ("op", "+") and (not result or not self._ends_operand(result[-1])):
                continue
            result.append(token)
        return result

    # ── Evaluación ───────────────────────────────────────────────

    @staticmethod
    def _to_postfix(tokens: list) -> list:
        output = []
        stack = []
        for kind, text in tokens:
            if kind != "op":
                output.append((kind, text))
            elif text == "(":
                stack.append(text)
            elif text == ")":
                while stack and stack[-1] != "(":
                    output.append(("op", stack.pop()))
                if not stack:
                    raise ValueError("Paréntesis desbalanceados")
                stack.pop()
                if stack and stack[-1] in FUNCTION_NAMES:
                    output.append(("op", stack.pop()))
            else:
                operator = OPERATORS[text]
                if operator.category is OperatorCategory.UNARY_POST:
                    output.append(("op", text))
                    continue
                while stack and stack[-1] != "(" and operator.category is not OperatorCategory.UNARY_PRE:
                    top = OPERATORS[stack[-1]]
                    if top.name == "neg" and operator.category.right_associative:
                        break
                    if top.precedence > operator.precedence or (
                        top.precedence == operator.precedence and not operator.category.right_associative
                    ):
                        output.append(("op", stack.pop()))
                    else:
                        break
                stack.append(text)
        while stack:
            text = stack.pop()
            if text == "(":
                raise ValueError("Paréntesis desbalanceados")
            output.append(("op", text))
        return output

    def _operand(self, kind: str, text: str) -> ComplexValue:
        if kind == "num":
            return ComplexValue.from_string(text, self.radix, self.precision)
        if text in ("pi", "π"):
            return ComplexValue.pi(self.radix, self.precision)
        if text == "e":
            value = ComplexValue.one(self.radix, self.precision)
            value.power_of_e()
            return value
        return ComplexValue.i(self.radix, self.precision)

    def _run(self, postfix: list, context: OperationContext) -> ComplexValue:
        stack: list[ComplexValue] = []
        for kind, text in postfix:
            if kind != "op":
                stack.append(self._operand(kind, text))
                continue
            operator: Operator = OPERATORS[text]
            if len(stack) < operator.arity:
                raise ValueError("Error de sintaxis")
            right = stack.pop() if operator.arity == 2 else None
            apply_operator(operator, stack[-1], right, context)
        if len(stack) != 1:
            raise ValueError("Error de sintaxis")
        return stack[0]

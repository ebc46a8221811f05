"""Punto de entrada de la calculadora científica (línea de órdenes)."""

import logging
import sys

from calculator_engine import CalculatorEngine
from engine_config import PrecisionConfig


NUM_LIMBS = 8
DISPLAY_LENGTH = 24


def _handle_command(engine: CalculatorEngine, line: str) -> str:
    command, _, argument = line[1:].partition(" ")
    if command in ("rad", "deg", "grad"):
        engine.angle_mode = command
        return f"modo {command}"
    if command == "base":
        engine.radix = int(argument)
        return f"base {engine.radix}"
    if command == "bits":
        engine.complement = int(argument or 0)
        return f"complemento {engine.complement}"
    if command == "more":
        return engine.request_more_precision()
    if command == "e3up":
        return engine.exp3_up()
    if command == "e3down":
        return engine.exp3_down()
    raise ValueError(f"Orden desconocida: {command}")


def main():
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")
    engine = CalculatorEngine(
        precision=PrecisionConfig(num_limbs=NUM_LIMBS),
        display_length=DISPLAY_LENGTH,
    )
    for raw in sys.stdin:
        line = raw.strip()
        if not line:
            continue
        try:
            if line.startswith(":"):
                print(_handle_command(engine, line))
            else:
                print(engine.evaluate(line))
        except ValueError as exc:
            print(f"Error: {exc}")


if __name__ == "__main__":
    main()

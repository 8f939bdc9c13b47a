"""
Calculation engine.

Pure dispatch from (operand1, operand2, operator) to a float result. Nothing
here touches history; callers record successful results themselves.
"""
import operator as _op
from typing import Callable, Dict

DIVISION_BY_ZERO_MESSAGE = "Cannot divide by zero"

OPERATORS = ("add", "subtract", "multiply", "divide")

SYMBOLS = {
    "add": "+",
    "subtract": "−",
    "multiply": "×",
    "divide": "÷",
}


class CalculationError(Exception):
    """Base class for user-facing calculation failures."""

    @property
    def message(self) -> str:
        return str(self)


class DivisionByZero(CalculationError, ArithmeticError):
    def __init__(self):
        super().__init__(DIVISION_BY_ZERO_MESSAGE)


class InvalidOperator(CalculationError, ValueError):
    def __init__(self, operator):
        self.operator = operator
        super().__init__(f"Invalid operator: {operator}")


def _divide(operand1: float, operand2: float) -> float:
    # -0.0 == 0 as well
    if operand2 == 0:
        raise DivisionByZero()
    return operand1 / operand2


_DISPATCH: Dict[str, Callable[[float, float], float]] = {
    "add": _op.add,
    "subtract": _op.sub,
    "multiply": _op.mul,
    "divide": _divide,
}


def is_operator(value) -> bool:
    return isinstance(value, str) and value in _DISPATCH


def calculate(operand1: float, operand2: float, operator: str) -> float:
    """
    Apply `operator` to the two operands.

    Raises:
        DivisionByZero: operator is "divide" and operand2 is zero
        InvalidOperator: operator is not one of OPERATORS
    """
    if not is_operator(operator):
        raise InvalidOperator(operator)
    return float(_DISPATCH[operator](float(operand1), float(operand2)))

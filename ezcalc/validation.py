"""
Request validation for calculator input.

Operands must be present and parse as finite numbers. The operator must be
present; strict validation also checks it against the known operators.
"""
import math
import re
from typing import List, Mapping, NamedTuple

OPERATOR_PATTERN = re.compile(r"^(add|subtract|multiply|divide)$")

OPERAND_MESSAGES = {
    "operand1": "First operand is required",
    "operand2": "Second operand is required",
}
OPERATOR_REQUIRED = "Operator is required"
OPERATOR_INVALID = "Operator must be one of: add, subtract, multiply, divide"


class ValidationError(Exception):
    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class CalculationRequest(NamedTuple):
    operand1: float
    operand2: float
    operator: str

    @classmethod
    def parse(cls, data: Mapping, strict: bool = False) -> "CalculationRequest":
        """
        Validate raw form or JSON input.

        Raises:
            ValidationError: listing every problem found
        """
        errors = []
        operands = {}
        for field, required_message in OPERAND_MESSAGES.items():
            value, error = _parse_operand(data.get(field), field, required_message)
            if error:
                errors.append(error)
            operands[field] = value

        operator = data.get("operator")
        if isinstance(operator, str):
            operator = operator.strip()
        if operator is None or operator == "":
            errors.append(OPERATOR_REQUIRED)
        elif not isinstance(operator, str):
            errors.append(OPERATOR_INVALID)
        elif strict and not OPERATOR_PATTERN.match(operator):
            errors.append(OPERATOR_INVALID)

        if errors:
            raise ValidationError(errors)
        return cls(operands["operand1"], operands["operand2"], operator)


def _parse_operand(raw, field, required_message):
    if raw is None or (isinstance(raw, str) and raw.strip() == ""):
        return None, required_message
    # bool is an int subclass; true/false are not numbers here
    if isinstance(raw, bool):
        return None, f"{field} must be a number"
    try:
        value = float(raw.strip() if isinstance(raw, str) else raw)
    except (TypeError, ValueError):
        return None, f"{field} must be a number"
    if not math.isfinite(value):
        return None, f"{field} must be a finite number"
    return value, None

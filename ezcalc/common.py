import logging
import math
from datetime import datetime
from typing import NamedTuple

Operator = str


class CalculationRecord(NamedTuple):
    id: int
    operand1: float
    operand2: float
    operator: Operator
    result: float
    timestamp: datetime

    def to_dict(self):
        return {
            "id": self.id,
            "operand1": self.operand1,
            "operand2": self.operand2,
            "operator": self.operator,
            "result": json_float(self.result),
            "timestamp": self.timestamp.isoformat(),
        }


def json_float(value: float):
    """
    Floats that overflowed to inf, or nan, have no JSON literal; send them as
    the strings "inf", "-inf" and "nan".
    """
    if math.isfinite(value):
        return value
    return str(value)


def get_logger(name):
    formatter = logging.Formatter("%(levelname)s: %(message)s")
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    tm_logger = logging.getLogger(name)
    tm_logger.setLevel(logging.INFO)
    if not tm_logger.handlers:
        tm_logger.addHandler(handler)
    return tm_logger


def format_number(value: float) -> str:
    """
    Render a float for display: integral values without the trailing ".0".

    Example: 15.0 -> "15", 26.25 -> "26.25"
    """
    if not math.isfinite(value):
        return str(value)
    if value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)

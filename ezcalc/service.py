"""
Calculator service: compute, then persist.

The two steps are kept separate so that an engine failure never reaches the
history store, and a history failure never hides a computed result.
"""
from typing import List, NamedTuple, Optional

from ezcalc import engine
from ezcalc.common import CalculationRecord, get_logger
from ezcalc.configure import DEFAULT_HISTORY_LIMIT
from ezcalc.db import StorageError

HISTORY_SAVE_FAILED = "Result could not be saved to history."


class CalculationOutcome(NamedTuple):
    operand1: float
    operand2: float
    operator: str
    result: float
    record: Optional[CalculationRecord] = None
    history_error: Optional[str] = None

    @property
    def history_saved(self) -> bool:
        return self.record is not None


class CalculatorService:
    def __init__(self, store, logger=None, history_limit=DEFAULT_HISTORY_LIMIT):
        self.store = store
        self.logger = logger or get_logger(__name__)
        self.history_limit = history_limit

    def calculate(self, operand1, operand2, operator) -> CalculationOutcome:
        """
        Run the engine and record the result.

        Engine errors (DivisionByZero, InvalidOperator) propagate and nothing
        is recorded. A StorageError while recording is logged and reported on
        the outcome; the computed result is still returned.
        """
        self.logger.debug("calculating %s %s %s", operand1, operator, operand2)
        try:
            result = engine.calculate(operand1, operand2, operator)
        except engine.CalculationError as exc:
            self.logger.warning(
                "calculation_rejected error=%s operand1=%s operand2=%s operator=%s",
                exc,
                operand1,
                operand2,
                operator,
            )
            raise

        try:
            record = self.store.record(operand1, operand2, operator, result)
        except StorageError as exc:
            self.logger.error(
                "history_write_failed result=%s error=%s", result, exc
            )
            return CalculationOutcome(
                float(operand1),
                float(operand2),
                operator,
                result,
                history_error=HISTORY_SAVE_FAILED,
            )

        self.logger.info(
            "calculation_success %s %s %s = %s", operand1, operator, operand2, result
        )
        return CalculationOutcome(
            float(operand1), float(operand2), operator, result, record=record
        )

    def recent_history(self, limit=None) -> List[CalculationRecord]:
        if limit is None:
            limit = self.history_limit
        return self.store.recent_history(limit)

    def clear_history(self) -> int:
        self.logger.info("clearing_history")
        return self.store.clear_all()

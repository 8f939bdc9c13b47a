"""
Tests for calculator input validation.
"""
import pytest

from ezcalc.validation import (
    OPERATOR_INVALID,
    OPERATOR_REQUIRED,
    CalculationRequest,
    ValidationError,
)


class TestCalculationRequest:
    def test_parses_form_strings(self):
        req = CalculationRequest.parse({"operand1": "10", "operand2": " 2.5 ", "operator": "divide"})
        assert req == CalculationRequest(10.0, 2.5, "divide")

    def test_parses_json_numbers(self):
        req = CalculationRequest.parse({"operand1": 1, "operand2": -3.5, "operator": "add"}, strict=True)
        assert req == (1.0, -3.5, "add")

    def test_missing_everything(self):
        with pytest.raises(ValidationError) as excinfo:
            CalculationRequest.parse({})
        assert excinfo.value.errors == [
            "First operand is required",
            "Second operand is required",
            OPERATOR_REQUIRED,
        ]

    def test_blank_operand_is_missing(self):
        with pytest.raises(ValidationError) as excinfo:
            CalculationRequest.parse({"operand1": "  ", "operand2": "1", "operator": "add"})
        assert excinfo.value.errors == ["First operand is required"]

    @pytest.mark.parametrize("raw", ["abc", "1,5", [1], {"x": 1}, True])
    def test_non_numeric_operand(self, raw):
        with pytest.raises(ValidationError) as excinfo:
            CalculationRequest.parse({"operand1": raw, "operand2": "1", "operator": "add"})
        assert excinfo.value.errors == ["operand1 must be a number"]

    @pytest.mark.parametrize("raw", ["nan", "inf", "-Infinity"])
    def test_non_finite_operand(self, raw):
        with pytest.raises(ValidationError) as excinfo:
            CalculationRequest.parse({"operand1": "1", "operand2": raw, "operator": "add"})
        assert excinfo.value.errors == ["operand2 must be a finite number"]

    def test_lenient_mode_passes_unknown_operator(self):
        req = CalculationRequest.parse({"operand1": "1", "operand2": "2", "operator": "bogus"})
        assert req.operator == "bogus"

    def test_strict_mode_rejects_unknown_operator(self):
        with pytest.raises(ValidationError) as excinfo:
            CalculationRequest.parse(
                {"operand1": "1", "operand2": "2", "operator": "bogus"}, strict=True
            )
        assert excinfo.value.errors == [OPERATOR_INVALID]

    def test_non_string_operator(self):
        with pytest.raises(ValidationError) as excinfo:
            CalculationRequest.parse({"operand1": 1, "operand2": 2, "operator": 5})
        assert excinfo.value.errors == [OPERATOR_INVALID]

    def test_operator_whitespace_stripped(self):
        req = CalculationRequest.parse(
            {"operand1": 1, "operand2": 2, "operator": " add "}, strict=True
        )
        assert req.operator == "add"

    def test_error_message_joins_errors(self):
        with pytest.raises(ValidationError, match="First operand is required; Operator is required"):
            CalculationRequest.parse({"operand2": "1"})

"""Tests for header and column validation utilities."""

import polars as pl

from eas_pipeline.contracts.config import EAS_FILE_COLUMNS
from eas_pipeline.contracts.validation import validate_header, validate_required_columns


class TestValidateHeader:
    """Tests for validate_header."""

    def test_exact_header_is_valid(self):
        assert validate_header(list(EAS_FILE_COLUMNS), EAS_FILE_COLUMNS) == []

    def test_column_order_is_not_significant(self):
        reordered = ["Value", "CalendarMonth", "CalendarYear", "AdjustmentType", "FundingLine"]

        assert validate_header(reordered, EAS_FILE_COLUMNS) == []

    def test_missing_column(self):
        errors = validate_header(list(EAS_FILE_COLUMNS[:-1]), EAS_FILE_COLUMNS)

        assert errors == ["Missing column: 'Value'"]

    def test_extra_column(self):
        errors = validate_header([*EAS_FILE_COLUMNS, "Comment"], EAS_FILE_COLUMNS)

        assert errors == ["Unexpected column: 'Comment'"]

    def test_case_mismatch(self):
        """Names must match case exactly."""
        columns = ["fundingline", *EAS_FILE_COLUMNS[1:]]

        errors = validate_header(columns, EAS_FILE_COLUMNS)

        assert "Missing column: 'FundingLine'" in errors
        assert "Unexpected column: 'fundingline'" in errors

    def test_duplicate_column(self):
        errors = validate_header([*EAS_FILE_COLUMNS, "Value"], EAS_FILE_COLUMNS)

        assert errors == ["Duplicate column: 'Value'"]


class TestValidateRequiredColumns:
    """Tests for validate_required_columns."""

    def test_all_present(self):
        lf = pl.LazyFrame({"payment_id": [1], "funding_line": ["x"]})

        assert validate_required_columns(lf, ["payment_id", "funding_line"]) == []

    def test_missing_with_context(self):
        lf = pl.LazyFrame({"payment_id": [1]})

        errors = validate_required_columns(lf, ["payment_id", "funding_line"], context="payment_types")

        assert errors == ["[payment_types] Missing required column: 'funding_line'"]

"""
Schema validation functions for the EAS submission pipeline.

Provides utilities for validating file headers and LazyFrame columns
against expected definitions without materializing data. This enables
early detection of shape mismatches at pipeline boundaries.

Key functions:
- validate_header: Check a file header against the expected column names
- validate_required_columns: Check for required columns
"""

from __future__ import annotations

from collections import Counter
from typing import Sequence

import polars as pl


def validate_header(
    columns: Sequence[str],
    expected_columns: Sequence[str],
) -> list[str]:
    """
    Validate a file header against the expected column names.

    Names must match exactly (spelling and case). Every expected column
    must be present once and no other column may appear. Column order
    is not significant.

    Args:
        columns: Column names read from the file
        expected_columns: Column names the header must contain

    Returns:
        List of validation error messages (empty if valid)

    Example:
        >>> validate_header(["FundingLine", "Value"], ["FundingLine", "Value"])
        []
    """
    errors: list[str] = []
    counts = Counter(columns)
    expected = set(expected_columns)

    for column in expected_columns:
        if column not in counts:
            errors.append(f"Missing column: '{column}'")

    for column, count in counts.items():
        if column not in expected:
            errors.append(f"Unexpected column: '{column}'")
        elif count > 1:
            errors.append(f"Duplicate column: '{column}'")

    return errors


def validate_required_columns(
    lf: pl.LazyFrame,
    required_columns: list[str],
    context: str = "",
) -> list[str]:
    """
    Validate that required columns are present in LazyFrame.

    Does not check types, only presence.

    Args:
        lf: LazyFrame to validate
        required_columns: List of column names that must be present
        context: Context string for error messages

    Returns:
        List of error messages for missing columns (empty if all present)
    """
    actual_columns = set(lf.collect_schema().names())
    missing = [col for col in required_columns if col not in actual_columns]

    context_prefix = f"[{context}] " if context else ""
    return [f"{context_prefix}Missing required column: '{col}'" for col in missing]

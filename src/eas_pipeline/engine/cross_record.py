"""
Cross record validator for EAS files.

Detects problems only visible across the whole row set. Runs once per
file, independently of the business rule validator, and reports at most
one aggregate error per violated rule.

Rules:
    Duplicate_01  A funding line / adjustment type / calendar year /
                  calendar month combination appears more than once.
                  Inside the academic year this key is equivalent to the
                  collection period.

Usage:
    from eas_pipeline.engine.cross_record import CrossRecordValidator

    result = CrossRecordValidator().validate(rows)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

import polars as pl

from eas_pipeline.contracts.errors import (
    RULE_DUPLICATE_RECORD,
    ValidationResult,
    dataset_error,
)
from eas_pipeline.data.schemas import DUPLICATE_RECORD_KEY

if TYPE_CHECKING:
    from eas_pipeline.contracts.records import RawRow

logger = logging.getLogger(__name__)

DUPLICATE_RECORD_MESSAGE = (
    "The file contains duplicate FundingLine, AdjustmentType, CalendarYear "
    "and CalendarMonth combinations."
)


class CrossRecordValidator:
    """
    Validate the row set as a whole.

    Implements CrossRecordValidatorProtocol. Rows involved in a violation
    are reported in the result's rejected_rows so that none of them is
    built into the submission.
    """

    def validate(self, rows: Sequence[RawRow]) -> ValidationResult:
        """
        Validate the row set.

        Args:
            rows: All parsed rows, valid and invalid

        Returns:
            ValidationResult with zero or one error per cross record rule
        """
        result = ValidationResult()
        if not rows:
            return result

        duplicates = self._find_duplicates(rows)
        if duplicates:
            keys = [
                (first.funding_line, first.adjustment_type, first.calendar_year, first.calendar_month)
                for first, *_ in duplicates
            ]
            logger.warning("Found %d duplicated combinations: %s", len(keys), keys)
            result.add_error(dataset_error(RULE_DUPLICATE_RECORD, DUPLICATE_RECORD_MESSAGE))
            for group in duplicates:
                result.rejected_rows.update(group)

        return result

    def _find_duplicates(self, rows: Sequence[RawRow]) -> list[list[RawRow]]:
        """Group rows sharing a duplicate key, in order of first appearance."""
        frame = pl.DataFrame(
            {
                "row_index": list(range(len(rows))),
                "funding_line": [row.funding_line for row in rows],
                "adjustment_type": [row.adjustment_type for row in rows],
                "calendar_year": [row.calendar_year for row in rows],
                "calendar_month": [row.calendar_month for row in rows],
            },
            schema={
                "row_index": pl.Int64,
                "funding_line": pl.String,
                "adjustment_type": pl.String,
                "calendar_year": pl.Int64,
                "calendar_month": pl.Int64,
            },
        )

        groups = (
            frame.group_by(DUPLICATE_RECORD_KEY, maintain_order=True)
            .agg(pl.col("row_index"))
            .filter(pl.col("row_index").list.len() > 1)
        )

        return [
            [rows[index] for index in indices]
            for indices in groups.get_column("row_index").to_list()
        ]

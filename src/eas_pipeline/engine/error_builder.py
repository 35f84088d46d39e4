"""
Error normalization and logging for the EAS submission pipeline.

Merges business rule and cross record results into one ordered error
list, and prepares that list for the validation error log:

- merge_validation_results: Merge validator outputs, preserving order
- create_source_file: The single source file record of a run
- attach_source_file: Flatten errors to log records referencing the source file
- log_validation_errors: Log the source file once, then every error

Usage:
    merged = merge_validation_results(row_results, cross_record_result)
    source_file_id = await log_validation_errors(store, context, merged.errors)
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Sequence

from eas_pipeline.contracts.errors import ValidationResult
from eas_pipeline.contracts.records import LoggedValidationError, SourceFile

if TYPE_CHECKING:
    from eas_pipeline.contracts.errors import ValidationError
    from eas_pipeline.contracts.protocols import SubmissionStoreProtocol
    from eas_pipeline.contracts.records import FileContext

logger = logging.getLogger(__name__)


def merge_validation_results(
    row_results: Sequence[ValidationResult],
    cross_record_result: ValidationResult | None = None,
) -> ValidationResult:
    """
    Merge validator outputs into one result.

    Business rule errors come first in row order, then cross record
    errors. No deduplication is applied. Rejected rows are the union of
    every input's rejected rows.

    Args:
        row_results: Business rule results, in input row order
        cross_record_result: Cross record result, if any

    Returns:
        ValidationResult holding the ordered errors and all rejected rows
    """
    merged = ValidationResult()
    for result in row_results:
        merged = merged.merge(result)
    if cross_record_result is not None:
        merged = merged.merge(cross_record_result)
    return merged


def create_source_file(context: FileContext) -> SourceFile:
    """Create the source file record for a run."""
    return SourceFile(
        provider_id=context.provider_id,
        reporting_date=context.reporting_date,
        file_name=context.file_name,
        file_preparation_date=context.file_preparation_date,
    )


def attach_source_file(
    errors: Sequence[ValidationError],
    source_file_id: int,
    created_on: datetime | None = None,
    row_id_factory: Callable[[], uuid.UUID] = uuid.uuid4,
) -> list[LoggedValidationError]:
    """
    Flatten errors into log records referencing a logged source file.

    Args:
        errors: Normalized validation errors
        source_file_id: Id returned when the source file was logged
        created_on: Timestamp written on every record (default: now, UTC)
        row_id_factory: Generator of per-record ids

    Returns:
        One LoggedValidationError per error, same order
    """
    created_on = created_on or datetime.now(timezone.utc)
    return [
        LoggedValidationError(
            row_id=row_id_factory(),
            source_file_id=source_file_id,
            rule_id=error.rule_id,
            severity=error.severity.value,
            error_message=error.message,
            created_on=created_on,
            funding_line=error.funding_line,
            adjustment_type=error.adjustment_type,
            calendar_year=error.calendar_year,
            calendar_month=error.calendar_month,
            value=error.value,
        )
        for error in errors
    ]


async def log_validation_errors(
    store: SubmissionStoreProtocol,
    context: FileContext,
    errors: Sequence[ValidationError],
) -> int:
    """
    Log a run's validation errors.

    The source file is logged exactly once and every error references it.

    Args:
        store: Persistence gateway
        context: Run context
        errors: Normalized validation errors

    Returns:
        Id of the logged source file
    """
    source_file_id = await store.log_source_file(create_source_file(context))
    records = attach_source_file(errors, source_file_id)
    await store.log_validation_errors(records)
    logger.info(
        "Logged %d validation errors for %s (source file %d)",
        len(records),
        context.file_name,
        source_file_id,
    )
    return source_file_id

"""
Error handling contracts for the EAS submission pipeline.

Provides structured error representation using the Result pattern:
- ValidationError: Immutable validation outcome with the row's business key
- ValidationResult: Accumulated errors for one validated subject

Row-level and dataset-level problems are collected as ValidationError
values and never raised. Fatal conditions use the exception hierarchy
rooted at EasPipelineError:
- FileFormatError: The file could not be parsed (Fileformat_01)
- PaymentTypeResolutionError: A validated row has no catalog entry at build time
- ReferenceDataError: The reference data snapshot is internally inconsistent
- SubmissionPersistenceError: The store rejected a submission batch
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

from eas_pipeline.domain.enums import ErrorSeverity, RuleScope

if TYPE_CHECKING:
    from eas_pipeline.contracts.records import RawRow


@dataclass(frozen=True)
class ValidationError:
    """
    Immutable representation of a validation error or warning.

    Attributes:
        rule_id: Rule identifier (e.g., "FundingLine_01", "Fileformat_01")
        message: Human-readable description of the issue
        severity: ERROR rejects the row, WARNING does not
        scope: Whether the error concerns the file, a row, or the row set
        funding_line: Row key - funding line (row-scoped only)
        adjustment_type: Row key - adjustment type (row-scoped only)
        calendar_year: Row key - calendar year (row-scoped only)
        calendar_month: Row key - calendar month (row-scoped only)
        value: Row key - value (row-scoped only)
        line_number: Source line of the offending row (row-scoped only)
    """

    rule_id: str
    message: str
    severity: ErrorSeverity
    scope: RuleScope = RuleScope.ROW
    funding_line: str | None = None
    adjustment_type: str | None = None
    calendar_year: int | None = None
    calendar_month: int | None = None
    value: Decimal | None = None
    line_number: int | None = None

    def __str__(self) -> str:
        """Human-readable error representation."""
        parts = [f"[{self.rule_id}] {self.severity.name}: {self.message}"]

        if self.line_number is not None:
            parts.append(f"Line: {self.line_number}")
        if self.funding_line is not None:
            parts.append(f"FundingLine: {self.funding_line}")
        if self.adjustment_type is not None:
            parts.append(f"AdjustmentType: {self.adjustment_type}")
        if self.calendar_year is not None and self.calendar_month is not None:
            parts.append(f"Period: {self.calendar_year}-{self.calendar_month:02d}")

        return " | ".join(parts)

    @property
    def is_error(self) -> bool:
        return self.severity == ErrorSeverity.ERROR


@dataclass
class ValidationResult:
    """
    Errors accumulated while validating one subject (a row or the row set).

    Attributes:
        errors: Errors and warnings in the order the rules raised them
        rejected_rows: Rows excluded from the submission by these errors
    """

    errors: list[ValidationError] = field(default_factory=list)
    rejected_rows: set[RawRow] = field(default_factory=set)

    @property
    def is_valid(self) -> bool:
        """True when no ERROR-severity issue was recorded."""
        return not any(e.is_error for e in self.errors)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warning-level issues."""
        return [e for e in self.errors if e.severity == ErrorSeverity.WARNING]

    def add_error(self, error: ValidationError) -> None:
        """Add an error to the result."""
        self.errors.append(error)

    def merge(self, other: ValidationResult) -> ValidationResult:
        """Combine two results, keeping this result's errors first."""
        return ValidationResult(
            errors=self.errors + other.errors,
            rejected_rows=self.rejected_rows | other.rejected_rows,
        )


# =============================================================================
# RULE IDENTIFIERS
# =============================================================================

# File format
RULE_FILE_FORMAT = "Fileformat_01"

# Calendar
RULE_CALENDAR_MONTH = "CalendarMonth_01"
RULE_CALENDAR_YEAR = "CalendarYear_01"
RULE_PERIOD_IN_ACADEMIC_YEAR = "CalendarYearCalendarMonth_01"
RULE_PERIOD_NOT_IN_FUTURE = "CalendarYearCalendarMonth_02"

# Funding line and contracts
RULE_PAYMENT_TYPE_EXISTS = "FundingLine_01"
RULE_FUNDING_LINE_PERMITTED = "FundingLine_02"
RULE_CONTRACT_WINDOW = "ContractAllocation_01"

# Value
RULE_VALUE_RANGE = "Value_01"
RULE_VALUE_MISSING = "Value_02"

# Cross record
RULE_DUPLICATE_RECORD = "Duplicate_01"

FILE_FORMAT_MESSAGE = (
    "The file format is incorrect.  Please check the field headers are as per "
    "the Guidance document."
)


# =============================================================================
# ERROR FACTORY FUNCTIONS
# =============================================================================


def file_format_error() -> ValidationError:
    """Create the single error reported for a malformed file."""
    return ValidationError(
        rule_id=RULE_FILE_FORMAT,
        message=FILE_FORMAT_MESSAGE,
        severity=ErrorSeverity.ERROR,
        scope=RuleScope.FILE,
    )


def row_error(
    rule_id: str,
    message: str,
    row: RawRow,
    severity: ErrorSeverity = ErrorSeverity.ERROR,
) -> ValidationError:
    """Create a row-scoped error carrying the row's business key."""
    return ValidationError(
        rule_id=rule_id,
        message=message,
        severity=severity,
        scope=RuleScope.ROW,
        funding_line=row.funding_line,
        adjustment_type=row.adjustment_type,
        calendar_year=row.calendar_year,
        calendar_month=row.calendar_month,
        value=row.value,
        line_number=row.line_number,
    )


def dataset_error(
    rule_id: str,
    message: str,
    severity: ErrorSeverity = ErrorSeverity.ERROR,
) -> ValidationError:
    """Create a dataset-scoped error (no row key)."""
    return ValidationError(
        rule_id=rule_id,
        message=message,
        severity=severity,
        scope=RuleScope.DATASET,
    )


# =============================================================================
# EXCEPTIONS
# =============================================================================


class EasPipelineError(Exception):
    """Base exception for fatal pipeline failures."""


class FileFormatError(EasPipelineError):
    """Raised when a submitted file cannot be parsed."""

    def __init__(self, error: ValidationError, file_name: str | None = None) -> None:
        self.error = error
        self.file_name = file_name
        source = f" (file: {file_name})" if file_name else ""
        super().__init__(f"{error.message}{source}")


class PaymentTypeResolutionError(EasPipelineError):
    """Raised when a row cannot be resolved to a payment type at build time."""

    def __init__(self, funding_line: str, adjustment_type: str) -> None:
        self.funding_line = funding_line
        self.adjustment_type = adjustment_type
        super().__init__(
            f"Funding Line : {funding_line} , AdjustmentType combination : "
            f"{adjustment_type} does not exist."
        )


class ReferenceDataError(EasPipelineError):
    """Raised when reference data fails an integrity check."""


class SubmissionPersistenceError(EasPipelineError):
    """Raised when a submission batch cannot be stored."""

"""
Record types for the EAS submission pipeline.

Immutable dataclasses describing the entities that flow through a run:

Inputs:
- FileContext: Run context supplied by the caller (provider, file, dates)
- RawRow: One parsed line of the submitted EAS file

Reference data (read-only snapshot per run):
- PaymentType: Catalog entry resolving (funding line, adjustment type)
- ContractAllocation: A provider's time-bounded funding agreement
- FundingLineContractTypeMapping: Which contract types permit a funding line

Outputs:
- SubmissionHeader: One per distinct collection period
- SubmissionValue: One per valid row
- SourceFile: The logged file record every validation error references
- LoggedValidationError: A validation error flattened for the error log

None of these are mutated after creation.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID


# =============================================================================
# Inputs
# =============================================================================


@dataclass(frozen=True)
class FileContext:
    """
    Run context for one submitted file.

    Supplied by the caller, never derived by the pipeline.

    Attributes:
        provider_id: Provider UKPRN
        file_name: Name of the submitted file
        file_preparation_date: When the provider prepared the file
        reporting_date: Date the file is reported against; selects the
                        provider's active contract allocations
    """

    provider_id: str
    file_name: str
    file_preparation_date: datetime
    reporting_date: datetime


@dataclass(frozen=True)
class RawRow:
    """
    One parsed row of an EAS file.

    Attributes:
        funding_line: Funding line name
        adjustment_type: Adjustment type name
        calendar_year: Calendar year of the adjustment
        calendar_month: Calendar month of the adjustment (1-12 when valid)
        value: Adjustment value, None when the cell was empty
        line_number: 1-based line in the source file, for error reporting
    """

    funding_line: str
    adjustment_type: str
    calendar_year: int
    calendar_month: int
    value: Decimal | None = None
    line_number: int | None = None

    @property
    def payment_key(self) -> tuple[str, str]:
        """Key used to resolve the row against the payment type catalog."""
        return (self.funding_line, self.adjustment_type)


# =============================================================================
# Reference Data
# =============================================================================


@dataclass(frozen=True)
class PaymentType:
    """
    Payment type catalog entry.

    Identity is the (funding_line, adjustment_type) pair, which must be
    unique across the catalog.
    """

    payment_id: int
    funding_line: str
    adjustment_type: str
    payment_name: str = ""

    @property
    def key(self) -> tuple[str, str]:
        return (self.funding_line, self.adjustment_type)


@dataclass(frozen=True)
class ContractAllocation:
    """
    A provider's funded contract window.

    Attributes:
        contract_allocation_number: Contract reference
        funding_stream_period_code: Contract type (e.g. "AEBC1819")
        start_date: First day of the window
        end_date: Last day of the window (inclusive)
    """

    contract_allocation_number: str
    funding_stream_period_code: str
    start_date: date
    end_date: date

    def covers(self, when: date | datetime) -> bool:
        """Check whether the window covers a date (bounds inclusive)."""
        day = when.date() if isinstance(when, datetime) else when
        return self.start_date <= day <= self.end_date

    def overlaps(self, first_day: date, last_day: date) -> bool:
        """Check whether the window overlaps the closed range [first_day, last_day]."""
        return self.start_date <= last_day and self.end_date >= first_day


@dataclass(frozen=True)
class FundingLineContractTypeMapping:
    """Permits a funding line under a contract type."""

    funding_line: str
    funding_stream_period_code: str


# =============================================================================
# Outputs
# =============================================================================


@dataclass(frozen=True)
class SubmissionHeader:
    """
    Submission header for one collection period.

    Every header of a run shares the run's submission_id.
    """

    submission_id: UUID
    collection_period: int
    provider_id: str
    updated_on: datetime
    provider_name: str = ""
    declaration_checked: bool = True
    nil_return: bool = False


@dataclass(frozen=True)
class SubmissionValue:
    """Resolved payment value for one row of the submission."""

    submission_id: UUID
    collection_period: int
    payment_id: int
    payment_value: Decimal


@dataclass(frozen=True)
class SourceFile:
    """
    Logged record of the file a set of validation errors came from.

    Created once per run and referenced by every logged error.
    """

    provider_id: str
    reporting_date: datetime
    file_name: str
    file_preparation_date: datetime


@dataclass(frozen=True)
class LoggedValidationError:
    """
    Validation error as written to the error log.

    Row key fields are None for file-scoped and dataset-scoped errors.
    """

    row_id: UUID
    source_file_id: int
    rule_id: str
    severity: str
    error_message: str
    created_on: datetime
    funding_line: str | None = None
    adjustment_type: str | None = None
    calendar_year: int | None = None
    calendar_month: int | None = None
    value: Decimal | None = None

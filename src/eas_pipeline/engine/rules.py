"""
Business rules for EAS rows.

Each rule is a pure function of a row and an immutable RuleContext. A rule
returns a ValidationError when the row breaks it, or None when the row
passes or the rule does not apply (for example, date rules on a row whose
month is invalid).

BUSINESS_RULES fixes the evaluation order, which is also the order
errors are reported in for a row.

Rules:
    CalendarMonth_01              Month must be 1-12
    CalendarYear_01               Year must be a year of the academic year
    CalendarYearCalendarMonth_01  Month must lie inside the academic year
    CalendarYearCalendarMonth_02  Month must not be after the reporting month
    FundingLine_01                Funding line / adjustment type must be in the catalog
    ContractAllocation_01         Month must be covered by an active contract window
    FundingLine_02                Funding line must be permitted by a held contract type
    Value_01                      Value must be within bounds and precision
    Value_02                      Missing value (warning, built as zero)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Callable

from eas_pipeline.contracts.errors import (
    RULE_CALENDAR_MONTH,
    RULE_CALENDAR_YEAR,
    RULE_CONTRACT_WINDOW,
    RULE_FUNDING_LINE_PERMITTED,
    RULE_PAYMENT_TYPE_EXISTS,
    RULE_PERIOD_IN_ACADEMIC_YEAR,
    RULE_PERIOD_NOT_IN_FUTURE,
    RULE_VALUE_MISSING,
    RULE_VALUE_RANGE,
    ValidationError,
    row_error,
)
from eas_pipeline.domain.enums import ErrorSeverity
from eas_pipeline.engine.periods import is_valid_month, month_bounds

if TYPE_CHECKING:
    from eas_pipeline.contracts.bundles import ReferenceDataBundle
    from eas_pipeline.contracts.config import PipelineConfig
    from eas_pipeline.contracts.records import ContractAllocation, RawRow


@dataclass(frozen=True)
class RuleContext:
    """
    Immutable inputs shared by every rule for one run.

    Attributes:
        config: Pipeline configuration
        reporting_date: The file's reporting date
        payment_keys: (funding line, adjustment type) pairs in the catalog
        contract_allocations: Provider allocations active at the reporting date
        permitted_funding_lines: Funding lines permitted by those allocations
    """

    config: PipelineConfig
    reporting_date: datetime
    payment_keys: frozenset[tuple[str, str]]
    contract_allocations: tuple[ContractAllocation, ...]
    permitted_funding_lines: frozenset[str]

    @classmethod
    def from_reference_data(
        cls,
        reference_data: ReferenceDataBundle,
        reporting_date: datetime,
        config: PipelineConfig,
    ) -> RuleContext:
        return cls(
            config=config,
            reporting_date=reporting_date,
            payment_keys=frozenset(reference_data.payment_type_lookup()),
            contract_allocations=tuple(reference_data.contract_allocations),
            permitted_funding_lines=reference_data.permitted_funding_lines(),
        )


Rule = Callable[["RawRow", RuleContext], "ValidationError | None"]


def _has_valid_date(row: RawRow) -> bool:
    return is_valid_month(row.calendar_month) and 1 <= row.calendar_year <= 9999


# =============================================================================
# Calendar Rules
# =============================================================================


def check_calendar_month(row: RawRow, context: RuleContext) -> ValidationError | None:
    if is_valid_month(row.calendar_month):
        return None
    return row_error(RULE_CALENDAR_MONTH, "The CalendarMonth is not valid.", row)


def check_calendar_year(row: RawRow, context: RuleContext) -> ValidationError | None:
    if row.calendar_year in context.config.calendar_years:
        return None
    first, second = context.config.calendar_years
    return row_error(
        RULE_CALENDAR_YEAR,
        f"The CalendarYear is not valid. It must be {first} or {second}.",
        row,
    )


def check_period_in_academic_year(row: RawRow, context: RuleContext) -> ValidationError | None:
    if not _has_valid_date(row):
        return None
    first_day, _ = month_bounds(row.calendar_year, row.calendar_month)
    config = context.config
    if config.academic_year_start <= first_day <= config.academic_year_end:
        return None
    return row_error(
        RULE_PERIOD_IN_ACADEMIC_YEAR,
        "The CalendarMonth and CalendarYear must be within the "
        f"{config.academic_year_code} academic year.",
        row,
    )


def check_period_not_in_future(row: RawRow, context: RuleContext) -> ValidationError | None:
    if not _has_valid_date(row):
        return None
    reporting = context.reporting_date
    if (row.calendar_year, row.calendar_month) <= (reporting.year, reporting.month):
        return None
    return row_error(
        RULE_PERIOD_NOT_IN_FUTURE,
        "The CalendarMonth and CalendarYear must not be in the future.",
        row,
    )


# =============================================================================
# Funding Line and Contract Rules
# =============================================================================


def check_payment_type_exists(row: RawRow, context: RuleContext) -> ValidationError | None:
    if row.payment_key in context.payment_keys:
        return None
    return row_error(
        RULE_PAYMENT_TYPE_EXISTS,
        "The FundingLine and AdjustmentType combination is not valid.",
        row,
    )


def check_contract_window(row: RawRow, context: RuleContext) -> ValidationError | None:
    if not _has_valid_date(row):
        return None
    first_day, last_day = month_bounds(row.calendar_year, row.calendar_month)
    if any(a.overlaps(first_day, last_day) for a in context.contract_allocations):
        return None
    return row_error(
        RULE_CONTRACT_WINDOW,
        "The CalendarMonth and CalendarYear are not within the provider's "
        "contract allocation period.",
        row,
    )


def check_funding_line_permitted(row: RawRow, context: RuleContext) -> ValidationError | None:
    if row.funding_line in context.permitted_funding_lines:
        return None
    return row_error(
        RULE_FUNDING_LINE_PERMITTED,
        "The FundingLine is not valid for any of the provider's contract types.",
        row,
    )


# =============================================================================
# Value Rules
# =============================================================================


def check_value_range(row: RawRow, context: RuleContext) -> ValidationError | None:
    if row.value is None:
        return None
    config = context.config
    exponent = row.value.as_tuple().exponent
    within_precision = isinstance(exponent, int) and -exponent <= config.value_decimal_places
    if config.value_min <= row.value <= config.value_max and within_precision:
        return None
    return row_error(
        RULE_VALUE_RANGE,
        f"The Value must be between {config.value_min} and {config.value_max} "
        f"with no more than {config.value_decimal_places} decimal places.",
        row,
    )


def check_value_present(row: RawRow, context: RuleContext) -> ValidationError | None:
    if row.value is not None:
        return None
    return row_error(
        RULE_VALUE_MISSING,
        "The Value is blank and will be submitted as zero.",
        row,
        severity=ErrorSeverity.WARNING,
    )


BUSINESS_RULES: tuple[Rule, ...] = (
    check_calendar_month,
    check_calendar_year,
    check_period_in_academic_year,
    check_period_not_in_future,
    check_payment_type_exists,
    check_contract_window,
    check_funding_line_permitted,
    check_value_range,
    check_value_present,
)

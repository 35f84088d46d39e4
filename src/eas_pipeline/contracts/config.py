"""
Configuration contracts for the EAS submission pipeline.

Provides an immutable PipelineConfig holding the academic year the
pipeline validates against, the expected file header and the accepted
value bounds.

Factory methods .for_academic_year() and .eas_1819() provide
self-documenting configuration with the correct academic year window.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

# Column names of an EAS file, exactly as they must appear in the header
EAS_FILE_COLUMNS: tuple[str, ...] = (
    "FundingLine",
    "AdjustmentType",
    "CalendarYear",
    "CalendarMonth",
    "Value",
)

# Academic years run August to July
ACADEMIC_YEAR_START_MONTH = 8


@dataclass(frozen=True)
class PipelineConfig:
    """
    Master configuration for a pipeline run.

    Attributes:
        academic_year_start: First day of the academic year (1 August)
        expected_columns: Column names the file header must contain
        value_min: Lowest accepted adjustment value
        value_max: Highest accepted adjustment value
        value_decimal_places: Maximum number of decimal places in a value

    Usage:
        config = PipelineConfig.eas_1819()
        config.academic_year_end      # date(2019, 7, 31)
        config.calendar_years         # (2018, 2019)
    """

    academic_year_start: date
    expected_columns: tuple[str, ...] = EAS_FILE_COLUMNS
    value_min: Decimal = field(default_factory=lambda: Decimal("-99999999.99"))
    value_max: Decimal = field(default_factory=lambda: Decimal("99999999.99"))
    value_decimal_places: int = 2

    def __post_init__(self) -> None:
        if self.academic_year_start.day != 1:
            raise ValueError(
                f"academic_year_start must be the first day of a month, "
                f"got {self.academic_year_start}"
            )
        if self.value_min > self.value_max:
            raise ValueError("value_min must not exceed value_max")

    @property
    def academic_year_end(self) -> date:
        """Last day of the academic year (31 July)."""
        start = self.academic_year_start
        return date(start.year + 1, start.month, 1) - timedelta(days=1)

    @property
    def calendar_years(self) -> tuple[int, int]:
        """Calendar years spanned by the academic year."""
        return (self.academic_year_start.year, self.academic_year_start.year + 1)

    @property
    def academic_year_code(self) -> str:
        """Short code of the academic year (e.g. "1819")."""
        first, second = self.calendar_years
        return f"{first % 100:02d}{second % 100:02d}"

    @classmethod
    def for_academic_year(cls, start_year: int, **overrides: object) -> PipelineConfig:
        """
        Create configuration for the academic year starting in August of start_year.

        Args:
            start_year: Calendar year the academic year starts in
            **overrides: Any other PipelineConfig field

        Returns:
            PipelineConfig for the academic year
        """
        return cls(
            academic_year_start=date(start_year, ACADEMIC_YEAR_START_MONTH, 1),
            **overrides,
        )

    @classmethod
    def eas_1819(cls) -> PipelineConfig:
        """Configuration for the 2018/19 academic year."""
        return cls.for_academic_year(2018)

"""
Collection period derivation.

Collection periods number the months of an academic year from 1 (August)
to 12 (July). Months outside the academic year continue the count in
both directions, so the derivation is total and two distinct valid
(year, month) pairs never share a period.

    2018/19: Aug 2018 -> 1, Feb 2019 -> 7, Mar 2019 -> 8, Jul 2019 -> 12

Usage:
    from eas_pipeline.engine.periods import get_collection_period

    period = get_collection_period(2019, 2, config)   # 7
"""

from __future__ import annotations

import calendar
from datetime import date
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from eas_pipeline.contracts.config import PipelineConfig


def get_collection_period(calendar_year: int, calendar_month: int, config: PipelineConfig) -> int:
    """
    Derive the collection period of a calendar month.

    Args:
        calendar_year: Calendar year
        calendar_month: Calendar month (1-12)
        config: Pipeline configuration giving the academic year start

    Returns:
        Collection period number, 1-12 inside the academic year
    """
    start = config.academic_year_start
    return (calendar_year - start.year) * 12 + (calendar_month - start.month) + 1


def is_valid_month(calendar_month: int) -> bool:
    return 1 <= calendar_month <= 12


def month_bounds(calendar_year: int, calendar_month: int) -> tuple[date, date]:
    """
    First and last day of a calendar month.

    Raises:
        ValueError: If the month or year is not a valid calendar month
    """
    last_day = calendar.monthrange(calendar_year, calendar_month)[1]
    return date(calendar_year, calendar_month, 1), date(calendar_year, calendar_month, last_day)

"""
This module contains the schemas for all data inputs of the eas_pipeline.

Key Data Inputs:
- EAS file                  # Provider-submitted adjustments, read as strings then typed

Reference/Lookup Data:
- Payment_types             # (funding line, adjustment type) -> payment id catalog
- Contract_allocations      # Provider contract windows by contract type
- Funding_line_mappings     # Funding line -> contract type (funding stream period code)

Column names of reference files are normalized to lowercase with
underscores before these schemas are enforced.
"""

import polars as pl

from eas_pipeline.contracts.config import EAS_FILE_COLUMNS

EAS_FILE_SCHEMA = {
    "FundingLine": pl.String,
    "AdjustmentType": pl.String,
    "CalendarYear": pl.Int64,
    "CalendarMonth": pl.Int64,
    "Value": pl.String,  # kept textual, converted to Decimal to preserve exact values
}

PAYMENT_TYPE_SCHEMA = {
    "payment_id": pl.Int64,
    "payment_name": pl.String,
    "funding_line": pl.String,
    "adjustment_type": pl.String,
}

CONTRACT_ALLOCATION_SCHEMA = {
    "provider_id": pl.String,
    "contract_allocation_number": pl.String,
    "funding_stream_period_code": pl.String,
    "start_date": pl.Date,
    "end_date": pl.Date,
}

FUNDING_LINE_MAPPING_SCHEMA = {
    "funding_line": pl.String,
    "funding_stream_period_code": pl.String,
}

# Rows sharing this key are duplicates
DUPLICATE_RECORD_KEY = ["funding_line", "adjustment_type", "calendar_year", "calendar_month"]

"""
Shared fixtures for EAS pipeline tests.

Reference data models a provider holding a 2018/19 apprenticeship
contract only: the adult education funding line is in the catalog but
not permitted for this provider.
"""

from __future__ import annotations

import io
from datetime import date, datetime
from decimal import Decimal
from typing import Sequence

import pytest

from eas_pipeline.contracts.bundles import ReferenceDataBundle
from eas_pipeline.contracts.config import EAS_FILE_COLUMNS, PipelineConfig
from eas_pipeline.contracts.records import (
    ContractAllocation,
    FileContext,
    FundingLineContractTypeMapping,
    PaymentType,
    RawRow,
)
from eas_pipeline.engine.loader import InMemoryReferenceData

PROVIDER_ID = "10023139"

APPRENTICESHIPS = "16-18 Apprenticeships"
ADULT_EDUCATION = "Adult Education - Eligible for MCA/GLA funding (non-procured)"

EXCESS_LEARNING_SUPPORT = "Excess Learning Support"
AUTHORISED_CLAIMS = "Authorised Claims"


def make_csv(
    rows: Sequence[Sequence[object]],
    columns: Sequence[str] = EAS_FILE_COLUMNS,
) -> io.StringIO:
    """Render rows as an EAS file stream."""
    lines = [",".join(columns)]
    for row in rows:
        lines.append(",".join("" if cell is None else str(cell) for cell in row))
    return io.StringIO("\n".join(lines) + "\n")


def make_row(
    funding_line: str = APPRENTICESHIPS,
    adjustment_type: str = EXCESS_LEARNING_SUPPORT,
    calendar_year: int = 2019,
    calendar_month: int = 2,
    value: str | None = "12.22",
    line_number: int | None = None,
) -> RawRow:
    return RawRow(
        funding_line=funding_line,
        adjustment_type=adjustment_type,
        calendar_year=calendar_year,
        calendar_month=calendar_month,
        value=None if value is None else Decimal(value),
        line_number=line_number,
    )


# =============================================================================
# Reference Data
# =============================================================================


@pytest.fixture
def config() -> PipelineConfig:
    return PipelineConfig.eas_1819()


@pytest.fixture
def payment_types() -> list[PaymentType]:
    return [
        PaymentType(1, APPRENTICESHIPS, EXCESS_LEARNING_SUPPORT, "16-18 Apps ELS"),
        PaymentType(2, APPRENTICESHIPS, AUTHORISED_CLAIMS, "16-18 Apps Claims"),
        PaymentType(3, ADULT_EDUCATION, EXCESS_LEARNING_SUPPORT, "AEB ELS"),
    ]


@pytest.fixture
def contract_allocations() -> list[ContractAllocation]:
    return [
        ContractAllocation(
            contract_allocation_number="APPS-1819-001",
            funding_stream_period_code="APPS1819",
            start_date=date(2018, 8, 1),
            end_date=date(2019, 7, 31),
        ),
    ]


@pytest.fixture
def funding_line_mappings() -> list[FundingLineContractTypeMapping]:
    return [
        FundingLineContractTypeMapping(APPRENTICESHIPS, "APPS1819"),
        FundingLineContractTypeMapping(ADULT_EDUCATION, "AEBC1819"),
    ]


@pytest.fixture
def reference_bundle(
    payment_types: list[PaymentType],
    contract_allocations: list[ContractAllocation],
    funding_line_mappings: list[FundingLineContractTypeMapping],
) -> ReferenceDataBundle:
    return ReferenceDataBundle(
        payment_types=tuple(payment_types),
        contract_allocations=tuple(contract_allocations),
        funding_line_mappings=tuple(funding_line_mappings),
    )


@pytest.fixture
def reference_data(
    payment_types: list[PaymentType],
    contract_allocations: list[ContractAllocation],
    funding_line_mappings: list[FundingLineContractTypeMapping],
) -> InMemoryReferenceData:
    return InMemoryReferenceData(
        payment_types=payment_types,
        contract_allocations={PROVIDER_ID: contract_allocations},
        funding_line_mappings=funding_line_mappings,
    )


@pytest.fixture
def file_context() -> FileContext:
    return FileContext(
        provider_id=PROVIDER_ID,
        file_name=f"EASDATA-{PROVIDER_ID}-20190405-090000.csv",
        file_preparation_date=datetime(2019, 4, 5, 9, 0, 0),
        reporting_date=datetime(2019, 4, 5, 9, 0, 0),
    )

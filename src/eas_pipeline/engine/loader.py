"""
Reference data loaders for the EAS submission pipeline.

Provides implementations of ReferenceDataProtocol and the per-run
snapshot that the validators and builder read from.

Classes:
    InMemoryReferenceData: Serve reference data held in memory
    FileReferenceData: Load reference data from CSV or Parquet files

Functions:
    create_reference_snapshot: Fetch once per run, check integrity and
                               restrict contracts to the reporting date

Usage:
    from eas_pipeline.engine.loader import FileReferenceData, create_reference_snapshot

    source = FileReferenceData(base_path="/path/to/reference")
    snapshot = await create_reference_snapshot(source, context)
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Sequence

import polars as pl

from eas_pipeline.contracts.bundles import ReferenceDataBundle
from eas_pipeline.contracts.errors import ReferenceDataError
from eas_pipeline.contracts.records import (
    ContractAllocation,
    FundingLineContractTypeMapping,
    PaymentType,
)
from eas_pipeline.contracts.validation import validate_required_columns
from eas_pipeline.data.schemas import (
    CONTRACT_ALLOCATION_SCHEMA,
    FUNDING_LINE_MAPPING_SCHEMA,
    PAYMENT_TYPE_SCHEMA,
)

if TYPE_CHECKING:
    from eas_pipeline.contracts.protocols import ReferenceDataProtocol
    from eas_pipeline.contracts.records import FileContext

logger = logging.getLogger(__name__)


def enforce_schema(
    lf: pl.LazyFrame,
    schema: dict[str, pl.DataType],
    strict: bool = False,
) -> pl.LazyFrame:
    """
    Enforce a schema on a LazyFrame by casting columns to expected types.

    String columns headed for a Date type are parsed as ISO dates.

    Args:
        lf: LazyFrame to enforce schema on
        schema: Dictionary mapping column names to expected Polars types
        strict: If True, raise errors on invalid casts. If False (default),
                invalid values become null.

    Returns:
        LazyFrame with columns cast to expected types
    """
    current_schema = lf.collect_schema()

    cast_exprs = []
    for col_name, expected_type in schema.items():
        if col_name not in current_schema:
            continue

        current_type = current_schema[col_name]
        if current_type == expected_type:
            continue

        if expected_type == pl.Date and current_type == pl.String:
            cast_exprs.append(
                pl.col(col_name).str.to_date("%Y-%m-%d", strict=strict).alias(col_name)
            )
        else:
            cast_exprs.append(
                pl.col(col_name).cast(expected_type, strict=strict).alias(col_name)
            )

    if not cast_exprs:
        return lf

    return lf.with_columns(cast_exprs)


def normalize_columns(lf: pl.LazyFrame) -> pl.LazyFrame:
    """
    Normalize column names to lowercase with underscores.

    Args:
        lf: LazyFrame with columns to normalize

    Returns:
        LazyFrame with normalized column names
    """
    return lf.rename(lambda col: col.strip().lower().replace(" ", "_"))


class DataLoadError(Exception):
    """Exception raised when reference data cannot be loaded."""

    def __init__(self, message: str, source: str | None = None) -> None:
        """
        Initialize DataLoadError.

        Args:
            message: Error message
            source: Source file that caused the error
        """
        self.source = source
        super().__init__(f"{message}" + (f" (source: {source})" if source else ""))


# =============================================================================
# In-memory Source
# =============================================================================


class InMemoryReferenceData:
    """
    Serve reference data held in memory.

    Implements ReferenceDataProtocol.

    Attributes:
        payment_types: Payment type catalog
        contract_allocations: Allocations keyed by provider id
        funding_line_mappings: Funding line to contract type mappings
    """

    def __init__(
        self,
        payment_types: Sequence[PaymentType] = (),
        contract_allocations: dict[str, Sequence[ContractAllocation]] | None = None,
        funding_line_mappings: Sequence[FundingLineContractTypeMapping] = (),
    ) -> None:
        self.payment_types = list(payment_types)
        self.contract_allocations = {
            provider_id: list(allocations)
            for provider_id, allocations in (contract_allocations or {}).items()
        }
        self.funding_line_mappings = list(funding_line_mappings)

    async def get_payment_types(self) -> list[PaymentType]:
        return list(self.payment_types)

    async def get_contract_allocations(self, provider_id: str) -> list[ContractAllocation]:
        return list(self.contract_allocations.get(provider_id, []))

    async def get_funding_line_contract_type_mappings(
        self,
    ) -> list[FundingLineContractTypeMapping]:
        return list(self.funding_line_mappings)


# =============================================================================
# File Source
# =============================================================================


@dataclass
class DataSourceConfig:
    """
    Reference file paths relative to a base directory.

    Files ending in .parquet are read as Parquet, anything else as CSV.

    Attributes:
        payment_types_file: Payment type catalog
        contract_allocations_file: Contract allocations of every provider
        funding_line_mappings_file: Funding line to contract type mappings
    """

    payment_types_file: str = "payment_types.csv"
    contract_allocations_file: str = "contract_allocations.csv"
    funding_line_mappings_file: str = "funding_line_contract_type_mappings.csv"


class FileReferenceData:
    """
    Load reference data from CSV or Parquet files.

    Implements ReferenceDataProtocol. Column names are normalized and
    schemas from data.schemas are enforced. Files are read in a worker
    thread so the event loop is not blocked.

    Attributes:
        base_path: Base directory containing reference files
        config: Reference file layout
    """

    def __init__(
        self,
        base_path: str | Path,
        config: DataSourceConfig | None = None,
    ) -> None:
        self.base_path = Path(base_path)
        self.config = config or DataSourceConfig()

        if not self.base_path.exists():
            raise DataLoadError(f"Base path does not exist: {self.base_path}")

    async def get_payment_types(self) -> list[PaymentType]:
        frame = await asyncio.to_thread(
            self._load, self.config.payment_types_file, PAYMENT_TYPE_SCHEMA
        )
        return [
            PaymentType(
                payment_id=record["payment_id"],
                funding_line=record["funding_line"],
                adjustment_type=record["adjustment_type"],
                payment_name=record.get("payment_name") or "",
            )
            for record in frame.iter_rows(named=True)
        ]

    async def get_contract_allocations(self, provider_id: str) -> list[ContractAllocation]:
        frame = await asyncio.to_thread(
            self._load, self.config.contract_allocations_file, CONTRACT_ALLOCATION_SCHEMA
        )
        frame = frame.filter(pl.col("provider_id") == provider_id)
        return [
            ContractAllocation(
                contract_allocation_number=record["contract_allocation_number"],
                funding_stream_period_code=record["funding_stream_period_code"],
                start_date=record["start_date"],
                end_date=record["end_date"],
            )
            for record in frame.iter_rows(named=True)
        ]

    async def get_funding_line_contract_type_mappings(
        self,
    ) -> list[FundingLineContractTypeMapping]:
        frame = await asyncio.to_thread(
            self._load, self.config.funding_line_mappings_file, FUNDING_LINE_MAPPING_SCHEMA
        )
        return [
            FundingLineContractTypeMapping(
                funding_line=record["funding_line"],
                funding_stream_period_code=record["funding_stream_period_code"],
            )
            for record in frame.iter_rows(named=True)
        ]

    def _load(self, relative_path: str, schema: dict[str, pl.DataType]) -> pl.DataFrame:
        """
        Load one reference file with schema enforcement.

        Args:
            relative_path: Path relative to base_path
            schema: Schema to enforce on the loaded data

        Returns:
            Materialized DataFrame

        Raises:
            DataLoadError: If the file is missing, unreadable, or lacks columns
        """
        full_path = self.base_path / relative_path
        if not full_path.exists():
            raise DataLoadError(f"File not found: {full_path}", source=relative_path)

        try:
            if full_path.suffix.lower() == ".parquet":
                lf = pl.scan_parquet(full_path)
            else:
                lf = pl.scan_csv(full_path, infer_schema=False)
            lf = normalize_columns(lf)

            required = [col for col in schema if col != "payment_name"]
            missing = validate_required_columns(lf, required, context=relative_path)
            if missing:
                raise DataLoadError("; ".join(missing), source=relative_path)

            return enforce_schema(lf, schema, strict=True).collect()
        except DataLoadError:
            raise
        except Exception as e:
            raise DataLoadError(f"Failed to load reference file: {e}", source=relative_path) from e


# =============================================================================
# Snapshot
# =============================================================================


async def create_reference_snapshot(
    source: ReferenceDataProtocol,
    context: FileContext,
) -> ReferenceDataBundle:
    """
    Take the immutable reference data snapshot for one run.

    Contract allocations are restricted to those whose window covers the
    file's reporting date.

    Args:
        source: Reference data feed
        context: Run context (provider id, reporting date)

    Returns:
        ReferenceDataBundle

    Raises:
        ReferenceDataError: If the payment type catalog repeats a
                            (funding line, adjustment type) pair
    """
    payment_types = await source.get_payment_types()
    allocations = await source.get_contract_allocations(context.provider_id)
    mappings = await source.get_funding_line_contract_type_mappings()

    counts = Counter(payment_type.key for payment_type in payment_types)
    duplicated = sorted(key for key, count in counts.items() if count > 1)
    if duplicated:
        raise ReferenceDataError(
            f"Payment type catalog has duplicate funding line / adjustment type pairs: {duplicated}"
        )

    active = tuple(a for a in allocations if a.covers(context.reporting_date))
    logger.info(
        "Reference snapshot for provider %s: %d payment types, %d of %d allocations active",
        context.provider_id,
        len(payment_types),
        len(active),
        len(allocations),
    )
    return ReferenceDataBundle(
        payment_types=tuple(payment_types),
        contract_allocations=active,
        funding_line_mappings=tuple(mappings),
    )

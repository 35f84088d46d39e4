"""
Data transfer bundles for the EAS submission pipeline.

Defines immutable dataclass containers for passing data between
pipeline components. Each bundle represents the output of one
component and input to the next:

    EasFileParser -> ParsedFileBundle
                            |
    create_reference_snapshot -> ReferenceDataBundle
                            |
        BusinessRuleValidator + CrossRecordValidator
                            |
                  merge_validation_results -> ValidationOutcomeBundle
                                                    |
                                  SubmissionBuilder -> SubmissionBundle
                                                    |
                                        store -> PipelineResultBundle

Phase 1 (parse and validate) always completes and yields a
ValidationOutcomeBundle. Phase 2 (build) is all-or-nothing.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from eas_pipeline.contracts.errors import ValidationError
    from eas_pipeline.contracts.records import (
        ContractAllocation,
        FundingLineContractTypeMapping,
        PaymentType,
        RawRow,
        SubmissionHeader,
        SubmissionValue,
    )


@dataclass(frozen=True)
class ParsedFileBundle:
    """
    Output from the schema parser.

    Exactly one of rows or error is meaningful: a malformed file yields
    no rows and a single Fileformat_01 error.

    Attributes:
        rows: Parsed rows in file order
        error: The file format error, if parsing failed
    """

    rows: tuple[RawRow, ...] = ()
    error: ValidationError | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass(frozen=True)
class ReferenceDataBundle:
    """
    Immutable reference data snapshot taken once per run.

    Attributes:
        payment_types: Payment type catalog
        contract_allocations: Provider allocations whose window covers
                              the file's reporting date
        funding_line_mappings: Funding line to contract type mappings
    """

    payment_types: tuple[PaymentType, ...] = ()
    contract_allocations: tuple[ContractAllocation, ...] = ()
    funding_line_mappings: tuple[FundingLineContractTypeMapping, ...] = ()

    def payment_type_lookup(self) -> dict[tuple[str, str], PaymentType]:
        """Map (funding line, adjustment type) -> payment type."""
        return {payment_type.key: payment_type for payment_type in self.payment_types}

    def permitted_funding_lines(self) -> frozenset[str]:
        """Funding lines permitted by the contract types the provider holds."""
        contract_types = {
            allocation.funding_stream_period_code
            for allocation in self.contract_allocations
        }
        return frozenset(
            mapping.funding_line
            for mapping in self.funding_line_mappings
            if mapping.funding_stream_period_code in contract_types
        )


@dataclass(frozen=True)
class ValidationOutcomeBundle:
    """
    Output of phase 1 (parse and validate).

    Attributes:
        rows: All parsed rows
        valid_rows: Rows that passed both validators
        errors: Normalized errors, business rule errors first then cross record
        failed_file_validation: True when the file could not be parsed
    """

    rows: tuple[RawRow, ...] = ()
    valid_rows: tuple[RawRow, ...] = ()
    errors: tuple[ValidationError, ...] = ()
    failed_file_validation: bool = False

    @property
    def has_outcome(self) -> bool:
        """True when there is something to build or log."""
        return bool(self.valid_rows) or bool(self.errors)


@dataclass(frozen=True)
class SubmissionBundle:
    """
    Output of the submission builder.

    Attributes:
        submission_id: Identifier shared by every header and value
        headers: One header per distinct collection period
        values: One value per valid row, in row order
    """

    submission_id: UUID
    headers: tuple[SubmissionHeader, ...] = ()
    values: tuple[SubmissionValue, ...] = ()

    @property
    def collection_periods(self) -> tuple[int, ...]:
        return tuple(header.collection_period for header in self.headers)


@dataclass(frozen=True)
class PipelineResultBundle:
    """
    Final result of a pipeline run.

    Attributes:
        outcome: Phase 1 validation outcome
        submission: The persisted submission, None when nothing was built
        source_file_id: Id of the logged source file, None when no errors were logged
    """

    outcome: ValidationOutcomeBundle
    submission: SubmissionBundle | None = None
    source_file_id: int | None = None

    @property
    def errors(self) -> tuple[ValidationError, ...]:
        return self.outcome.errors

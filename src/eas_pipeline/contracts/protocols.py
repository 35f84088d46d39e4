"""
Protocol definitions for EAS submission pipeline components.

Defines interfaces using Python's Protocol (PEP 544) for structural
typing. Components implementing these protocols can be:
- Easily mocked for unit testing
- Swapped for different implementations (in-memory, file, database)

Pipeline stages:
    SchemaParserProtocol -> BusinessRuleValidatorProtocol
        + CrossRecordValidatorProtocol -> SubmissionBuilderProtocol

External collaborators (I/O, asynchronous):
    ReferenceDataProtocol: payment types, contracts, funding line mappings
    SubmissionStoreProtocol: submissions and the validation error log
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, Sequence, TextIO, runtime_checkable

if TYPE_CHECKING:
    from eas_pipeline.contracts.bundles import (
        ParsedFileBundle,
        ReferenceDataBundle,
        SubmissionBundle,
    )
    from eas_pipeline.contracts.config import PipelineConfig
    from eas_pipeline.contracts.errors import ValidationResult
    from eas_pipeline.contracts.records import (
        ContractAllocation,
        FileContext,
        FundingLineContractTypeMapping,
        LoggedValidationError,
        PaymentType,
        RawRow,
        SourceFile,
        SubmissionHeader,
        SubmissionValue,
    )


# =============================================================================
# Pipeline Stages
# =============================================================================


@runtime_checkable
class SchemaParserProtocol(Protocol):
    """
    Protocol for the schema parser.

    Turns a seekable character stream into typed rows, or a single
    file-scoped Fileformat_01 error. Never returns both.
    """

    def parse(self, stream: TextIO) -> ParsedFileBundle:
        """
        Parse a submitted file.

        Args:
            stream: Seekable text stream; rewound before reading

        Returns:
            ParsedFileBundle with rows, or with the file format error
        """
        ...


@runtime_checkable
class BusinessRuleValidatorProtocol(Protocol):
    """
    Protocol for per-row business rule validation.

    Each row is validated independently and exhaustively.
    """

    def validate(
        self,
        rows: Sequence[RawRow],
        reference_data: ReferenceDataBundle,
        context: FileContext,
        config: PipelineConfig,
    ) -> list[ValidationResult]:
        """
        Validate every row.

        Returns:
            One ValidationResult per row that raised any error or warning,
            in input row order
        """
        ...


@runtime_checkable
class CrossRecordValidatorProtocol(Protocol):
    """
    Protocol for dataset-level validation.

    Runs exactly once per file over the full row set.
    """

    def validate(self, rows: Sequence[RawRow]) -> ValidationResult:
        """
        Validate the row set as a whole.

        Returns:
            ValidationResult with at most one error per violated rule; the
            RawRow records involved are in rejected_rows
        """
        ...


@runtime_checkable
class SubmissionBuilderProtocol(Protocol):
    """
    Protocol for building submission records from valid rows.

    All-or-nothing: raises PaymentTypeResolutionError rather than
    returning a partial submission.
    """

    def build(
        self,
        rows: Sequence[RawRow],
        payment_types: Sequence[PaymentType],
        context: FileContext,
    ) -> SubmissionBundle:
        ...


# =============================================================================
# External Collaborators
# =============================================================================


@runtime_checkable
class ReferenceDataProtocol(Protocol):
    """
    Protocol for read-only reference data feeds.

    Implementations may load from:
    - Memory (tests, embedding)
    - Files (CSV, Parquet)
    - Databases or services
    """

    async def get_payment_types(self) -> list[PaymentType]:
        """Return the full payment type catalog."""
        ...

    async def get_contract_allocations(self, provider_id: str) -> list[ContractAllocation]:
        """Return every contract allocation held by a provider."""
        ...

    async def get_funding_line_contract_type_mappings(
        self,
    ) -> list[FundingLineContractTypeMapping]:
        """Return the funding line to contract type mapping table."""
        ...


@runtime_checkable
class SubmissionStoreProtocol(Protocol):
    """
    Protocol for durable storage of submissions and validation errors.

    The pipeline never retries these calls; failures propagate.
    """

    async def persist_submission(
        self,
        headers: Sequence[SubmissionHeader],
        values: Sequence[SubmissionValue],
    ) -> None:
        """
        Store a submission atomically.

        Either every header and value of the submission lands or none do.

        Raises:
            SubmissionPersistenceError: If the batch is rejected
        """
        ...

    async def log_source_file(self, source_file: SourceFile) -> int:
        """Store the source file record and return its id."""
        ...

    async def log_validation_errors(self, errors: Sequence[LoggedValidationError]) -> None:
        """Store validation errors that reference a logged source file."""
        ...

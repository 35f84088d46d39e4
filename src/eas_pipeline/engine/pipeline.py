"""
Pipeline Orchestrator for EAS submissions.

Orchestrates one file run, wiring together:
    EasFileParser -> reference snapshot -> BusinessRuleValidator
        + CrossRecordValidator -> error normalization
        -> SubmissionBuilder -> SubmissionStore

The run is split in two phases:
- Phase 1 (validate) always completes: parse, snapshot, validate, normalize
- Phase 2 (build and store) is all-or-nothing: payment ids are resolved
  for every valid row before anything is persisted

Cancellation is checked before the reference snapshot is taken and
again before the store is written to.

Usage:
    from eas_pipeline.engine.pipeline import create_pipeline

    pipeline = create_pipeline(reference_data=source, store=store)
    result = await pipeline.run(stream, context)
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, TextIO

from eas_pipeline.contracts.bundles import (
    PipelineResultBundle,
    ValidationOutcomeBundle,
)
from eas_pipeline.contracts.config import PipelineConfig
from eas_pipeline.contracts.errors import FileFormatError, PaymentTypeResolutionError
from eas_pipeline.engine.business_rules import BusinessRuleValidator
from eas_pipeline.engine.builder import SubmissionBuilder
from eas_pipeline.engine.cross_record import CrossRecordValidator
from eas_pipeline.engine.error_builder import (
    log_validation_errors,
    merge_validation_results,
)
from eas_pipeline.engine.loader import create_reference_snapshot
from eas_pipeline.engine.parser import EasFileParser

if TYPE_CHECKING:
    from eas_pipeline.contracts.bundles import ReferenceDataBundle, SubmissionBundle
    from eas_pipeline.contracts.protocols import (
        BusinessRuleValidatorProtocol,
        CrossRecordValidatorProtocol,
        ReferenceDataProtocol,
        SchemaParserProtocol,
        SubmissionBuilderProtocol,
        SubmissionStoreProtocol,
    )
    from eas_pipeline.contracts.records import FileContext

logger = logging.getLogger(__name__)


def _check_cancelled(cancel_event: asyncio.Event | None, stage: str) -> None:
    if cancel_event is not None and cancel_event.is_set():
        logger.info("Run cancelled before %s", stage)
        raise asyncio.CancelledError(f"Cancelled before {stage}")


class PipelineOrchestrator:
    """
    Orchestrate the validate-and-build pipeline for one file at a time.

    Holds no per-run state: every run takes its own reference snapshot
    and owns its rows, errors and submission, so one orchestrator may
    serve concurrent runs.

    Usage:
        orchestrator = PipelineOrchestrator(
            reference_data=FileReferenceData(base_path),
            store=InMemorySubmissionStore(),
            config=PipelineConfig.eas_1819(),
        )
        result = await orchestrator.run(stream, context)
    """

    def __init__(
        self,
        reference_data: ReferenceDataProtocol,
        store: SubmissionStoreProtocol,
        config: PipelineConfig | None = None,
        parser: SchemaParserProtocol | None = None,
        business_rule_validator: BusinessRuleValidatorProtocol | None = None,
        cross_record_validator: CrossRecordValidatorProtocol | None = None,
        builder: SubmissionBuilderProtocol | None = None,
    ) -> None:
        """
        Initialize pipeline with components.

        Components can be injected for testing or customization; defaults
        are created from config otherwise.

        Args:
            reference_data: Reference data feed
            store: Persistence gateway
            config: Pipeline configuration (default: 2018/19 academic year)
            parser: Schema parser
            business_rule_validator: Row-level validator
            cross_record_validator: Dataset-level validator
            builder: Submission builder
        """
        self._config = config or PipelineConfig.eas_1819()
        self._reference_data = reference_data
        self._store = store
        self._parser = parser or EasFileParser(self._config)
        self._business_rule_validator = business_rule_validator or BusinessRuleValidator()
        self._cross_record_validator = cross_record_validator or CrossRecordValidator()
        self._builder = builder or SubmissionBuilder(self._config)

    @property
    def config(self) -> PipelineConfig:
        return self._config

    # =========================================================================
    # Public API
    # =========================================================================

    async def validate(
        self,
        stream: TextIO,
        context: FileContext,
        cancel_event: asyncio.Event | None = None,
    ) -> ValidationOutcomeBundle:
        """
        Run phase 1: parse and validate a file.

        Nothing is persisted.

        Args:
            stream: Seekable text stream of the submitted file
            context: Run context
            cancel_event: Optional cancellation signal

        Returns:
            ValidationOutcomeBundle; a malformed file yields
            failed_file_validation=True and the single Fileformat_01 error
        """
        outcome, _ = await self._validate(stream, context, cancel_event)
        return outcome

    async def run(
        self,
        stream: TextIO,
        context: FileContext,
        cancel_event: asyncio.Event | None = None,
    ) -> PipelineResultBundle:
        """
        Run the full pipeline for one file.

        Args:
            stream: Seekable text stream of the submitted file
            context: Run context
            cancel_event: Optional cancellation signal

        Returns:
            PipelineResultBundle with the outcome and the persisted submission

        Raises:
            FileFormatError: If the file could not be parsed (error logged first)
            PaymentTypeResolutionError: If a valid row has no payment type;
                validation errors are logged, no submission is persisted
            asyncio.CancelledError: If cancel_event is set at a checkpoint
        """
        logger.info("Processing %s for provider %s", context.file_name, context.provider_id)
        outcome, reference_data = await self._validate(stream, context, cancel_event)

        if outcome.failed_file_validation:
            await log_validation_errors(self._store, context, outcome.errors)
            raise FileFormatError(outcome.errors[0], file_name=context.file_name)

        if not outcome.has_outcome:
            logger.info("Nothing to build or log for %s", context.file_name)
            return PipelineResultBundle(outcome=outcome)

        submission = await self._build(outcome, reference_data, context)

        _check_cancelled(cancel_event, "commit")

        if submission is not None:
            await self._store.persist_submission(submission.headers, submission.values)

        source_file_id = None
        if outcome.errors:
            source_file_id = await log_validation_errors(self._store, context, outcome.errors)

        return PipelineResultBundle(
            outcome=outcome,
            submission=submission,
            source_file_id=source_file_id,
        )

    # =========================================================================
    # Private Methods - Stage Execution
    # =========================================================================

    async def _validate(
        self,
        stream: TextIO,
        context: FileContext,
        cancel_event: asyncio.Event | None,
    ) -> tuple[ValidationOutcomeBundle, ReferenceDataBundle | None]:
        parsed = self._parser.parse(stream)
        if parsed.failed:
            return (
                ValidationOutcomeBundle(errors=(parsed.error,), failed_file_validation=True),
                None,
            )

        _check_cancelled(cancel_event, "contract resolution")
        reference_data = await create_reference_snapshot(self._reference_data, context)

        rows = parsed.rows
        row_results = self._business_rule_validator.validate(
            rows, reference_data, context, self._config
        )
        cross_record_result = self._cross_record_validator.validate(rows)

        merged = merge_validation_results(row_results, cross_record_result)
        errors = merged.errors
        valid_rows = tuple(row for row in rows if row not in merged.rejected_rows)

        logger.info(
            "Validated %s: %d rows, %d valid, %d errors (%d warnings)",
            context.file_name,
            len(rows),
            len(valid_rows),
            len(errors),
            len(merged.warnings),
        )
        return (
            ValidationOutcomeBundle(rows=rows, valid_rows=valid_rows, errors=tuple(errors)),
            reference_data,
        )

    async def _build(
        self,
        outcome: ValidationOutcomeBundle,
        reference_data: ReferenceDataBundle | None,
        context: FileContext,
    ) -> SubmissionBundle | None:
        if not outcome.valid_rows or reference_data is None:
            return None

        try:
            return self._builder.build(
                outcome.valid_rows, reference_data.payment_types, context
            )
        except PaymentTypeResolutionError as e:
            logger.error("Build aborted for %s: %s", context.file_name, e)
            # Keep the already collected validation errors
            if outcome.errors:
                await log_validation_errors(self._store, context, outcome.errors)
            raise


# =============================================================================
# Factory Functions
# =============================================================================


def create_pipeline(
    reference_data: ReferenceDataProtocol,
    store: SubmissionStoreProtocol | None = None,
    config: PipelineConfig | None = None,
) -> PipelineOrchestrator:
    """
    Create a pipeline orchestrator with default components.

    Args:
        reference_data: Reference data feed
        store: Persistence gateway (default: InMemorySubmissionStore)
        config: Pipeline configuration (default: 2018/19 academic year)

    Returns:
        PipelineOrchestrator ready for use
    """
    from eas_pipeline.engine.store import InMemorySubmissionStore

    return PipelineOrchestrator(
        reference_data=reference_data,
        store=store or InMemorySubmissionStore(),
        config=config,
    )

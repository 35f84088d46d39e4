"""
Unit tests for Pipeline Orchestrator.

Tests the PipelineOrchestrator component including:
- Phase 1 validation without persistence
- Full run: build, persist and error logging
- Fatal outcomes (file format, unresolved payment type)
- Cancellation checkpoints
"""

from __future__ import annotations

import asyncio
import io
from decimal import Decimal

import pytest

from eas_pipeline.contracts.config import PipelineConfig
from eas_pipeline.contracts.errors import (
    RULE_DUPLICATE_RECORD,
    RULE_FILE_FORMAT,
    RULE_PAYMENT_TYPE_EXISTS,
    RULE_VALUE_MISSING,
    FileFormatError,
    PaymentTypeResolutionError,
)
from eas_pipeline.engine.business_rules import BusinessRuleValidator
from eas_pipeline.engine.loader import InMemoryReferenceData
from eas_pipeline.engine.pipeline import PipelineOrchestrator, create_pipeline
from eas_pipeline.engine.store import InMemorySubmissionStore
from tests.conftest import (
    APPRENTICESHIPS,
    AUTHORISED_CLAIMS,
    EXCESS_LEARNING_SUPPORT,
    make_csv,
)


# =============================================================================
# Test Fixtures
# =============================================================================


@pytest.fixture
def store() -> InMemorySubmissionStore:
    return InMemorySubmissionStore()


@pytest.fixture
def pipeline(reference_data, store) -> PipelineOrchestrator:
    return create_pipeline(reference_data, store=store)


@pytest.fixture
def two_period_file():
    return make_csv([
        [APPRENTICESHIPS, EXCESS_LEARNING_SUPPORT, 2019, 2, "12.22"],
        [APPRENTICESHIPS, AUTHORISED_CLAIMS, 2019, 3, "21.22"],
    ])


class CancellingReferenceData(InMemoryReferenceData):
    """Reference feed that signals cancellation while the snapshot is taken."""

    def __init__(self, source: InMemoryReferenceData, cancel_event: asyncio.Event) -> None:
        super().__init__(
            source.payment_types,
            source.contract_allocations,
            source.funding_line_mappings,
        )
        self.cancel_event = cancel_event
        self.calls = 0

    async def get_payment_types(self):
        self.calls += 1
        self.cancel_event.set()
        return await super().get_payment_types()


# =============================================================================
# Construction
# =============================================================================


class TestConstruction:
    """Tests for component wiring."""

    def test_create_pipeline_defaults(self, reference_data):
        pipeline = create_pipeline(reference_data)

        assert isinstance(pipeline, PipelineOrchestrator)
        assert pipeline.config == PipelineConfig.eas_1819()

    def test_custom_config(self, reference_data, store):
        config = PipelineConfig.for_academic_year(2019)

        pipeline = create_pipeline(reference_data, store=store, config=config)

        assert pipeline.config.calendar_years == (2019, 2020)


# =============================================================================
# Phase 1
# =============================================================================


class TestValidate:
    """Tests for validate (phase 1 only)."""

    def test_nothing_persisted(self, pipeline, store, two_period_file, file_context):
        outcome = asyncio.run(pipeline.validate(two_period_file, file_context))

        assert len(outcome.valid_rows) == 2
        assert outcome.errors == ()
        assert store.headers == {}
        assert store.source_files == {}

    def test_malformed_file(self, pipeline, file_context):
        stream = make_csv([["x", "y", 2019]], columns=["FundingLine", "AdjustmentType", "CalendarYear"])

        outcome = asyncio.run(pipeline.validate(stream, file_context))

        assert outcome.failed_file_validation
        assert [e.rule_id for e in outcome.errors] == [RULE_FILE_FORMAT]
        assert outcome.rows == ()

    def test_duplicates_excluded_from_valid_rows(self, pipeline, file_context):
        stream = make_csv([
            [APPRENTICESHIPS, EXCESS_LEARNING_SUPPORT, 2019, 2, "1.00"],
            [APPRENTICESHIPS, EXCESS_LEARNING_SUPPORT, 2019, 2, "2.00"],
            [APPRENTICESHIPS, AUTHORISED_CLAIMS, 2019, 3, "3.00"],
        ])

        outcome = asyncio.run(pipeline.validate(stream, file_context))

        assert [row.line_number for row in outcome.valid_rows] == [4]
        assert [e.rule_id for e in outcome.errors] == [RULE_DUPLICATE_RECORD]

    def test_errors_ordered_rows_then_dataset(self, pipeline, file_context):
        stream = make_csv([
            [APPRENTICESHIPS, "Unknown Adjustment", 2019, 2, "1.00"],
            [APPRENTICESHIPS, "Unknown Adjustment", 2019, 2, "1.00"],
        ])

        outcome = asyncio.run(pipeline.validate(stream, file_context))

        assert [e.rule_id for e in outcome.errors] == [
            RULE_PAYMENT_TYPE_EXISTS,
            RULE_PAYMENT_TYPE_EXISTS,
            RULE_DUPLICATE_RECORD,
        ]
        assert outcome.valid_rows == ()


# =============================================================================
# Full Run
# =============================================================================


class TestRun:
    """Tests for run."""

    def test_clean_file_persists_without_error_log(
        self, pipeline, store, two_period_file, file_context
    ):
        result = asyncio.run(pipeline.run(two_period_file, file_context))

        submission = result.submission
        assert submission is not None
        assert submission.collection_periods == (7, 8)
        headers, values = store.get_submission(submission.submission_id)
        assert [h.collection_period for h in headers] == [7, 8]
        assert [v.payment_value for v in values] == [Decimal("12.22"), Decimal("21.22")]
        assert result.source_file_id is None
        assert store.source_files == {}

    def test_mixed_file_persists_valid_rows_and_logs_errors(self, pipeline, store, file_context):
        stream = make_csv([
            [APPRENTICESHIPS, EXCESS_LEARNING_SUPPORT, 2019, 2, "12.22"],
            [APPRENTICESHIPS, "Unknown Adjustment", 2019, 3, "5.00"],
            [APPRENTICESHIPS, AUTHORISED_CLAIMS, 2019, 3, None],
        ])

        result = asyncio.run(pipeline.run(stream, file_context))

        headers, values = store.get_submission(result.submission.submission_id)
        assert [(v.collection_period, v.payment_id, v.payment_value) for v in values] == [
            (7, 1, Decimal("12.22")),
            (8, 2, Decimal("0")),
        ]
        logged = store.errors_for_source_file(result.source_file_id)
        assert [e.rule_id for e in logged] == [RULE_PAYMENT_TYPE_EXISTS, RULE_VALUE_MISSING]
        assert [e.severity for e in logged] == ["E", "W"]
        assert len(store.source_files) == 1

    def test_file_format_failure_logged_then_raised(self, pipeline, store, file_context):
        stream = make_csv([[APPRENTICESHIPS, EXCESS_LEARNING_SUPPORT, "x", 2, "1.00"]])

        with pytest.raises(FileFormatError) as exc_info:
            asyncio.run(pipeline.run(stream, file_context))

        assert exc_info.value.error.rule_id == RULE_FILE_FORMAT
        assert exc_info.value.file_name == file_context.file_name
        assert store.headers == {}
        assert [e.rule_id for e in store.validation_errors] == [RULE_FILE_FORMAT]
        assert store.validation_errors[0].funding_line is None

    def test_short_row_persists_nothing(self, pipeline, store, file_context):
        """A row missing its Value field fails the file instead of building a zero."""
        stream = io.StringIO(
            "FundingLine,AdjustmentType,CalendarYear,CalendarMonth,Value\n"
            f"{APPRENTICESHIPS},{EXCESS_LEARNING_SUPPORT},2019,2,12.22\n"
            f"{APPRENTICESHIPS},{EXCESS_LEARNING_SUPPORT},2019,3\n"
        )

        with pytest.raises(FileFormatError):
            asyncio.run(pipeline.run(stream, file_context))

        assert store.headers == {}
        assert store.values == {}
        assert [e.rule_id for e in store.validation_errors] == [RULE_FILE_FORMAT]

    def test_header_only_file_does_nothing(self, pipeline, store, file_context):
        result = asyncio.run(pipeline.run(make_csv([]), file_context))

        assert result.submission is None
        assert result.source_file_id is None
        assert store.headers == {}
        assert store.source_files == {}

    def test_all_rows_rejected_logs_without_submission(self, pipeline, store, file_context):
        stream = make_csv([[APPRENTICESHIPS, "Unknown Adjustment", 2019, 2, "1.00"]])

        result = asyncio.run(pipeline.run(stream, file_context))

        assert result.submission is None
        assert store.headers == {}
        assert len(store.validation_errors) == 1

    def test_build_abort_logs_errors_and_persists_nothing(
        self, reference_data, store, file_context
    ):
        """A row that passed validation but has no payment type aborts the build."""
        pipeline = PipelineOrchestrator(
            reference_data=reference_data,
            store=store,
            business_rule_validator=BusinessRuleValidator(rules=()),
        )
        stream = make_csv([
            [APPRENTICESHIPS, EXCESS_LEARNING_SUPPORT, 2019, 2, "1.00"],
            [APPRENTICESHIPS, EXCESS_LEARNING_SUPPORT, 2019, 2, "1.00"],
            [APPRENTICESHIPS, "Unknown Adjustment", 2019, 3, "5.00"],
        ])

        with pytest.raises(PaymentTypeResolutionError):
            asyncio.run(pipeline.run(stream, file_context))

        assert store.headers == {}
        assert store.values == {}
        assert [e.rule_id for e in store.validation_errors] == [RULE_DUPLICATE_RECORD]

    def test_reruns_build_new_submissions(self, pipeline, store, file_context):
        def run_once():
            stream = make_csv([[APPRENTICESHIPS, EXCESS_LEARNING_SUPPORT, 2019, 2, "12.22"]])
            return asyncio.run(pipeline.run(stream, file_context)).submission

        first = run_once()
        second = run_once()

        assert first.submission_id != second.submission_id
        assert len(store.headers) == 2


# =============================================================================
# Cancellation
# =============================================================================


class TestCancellation:
    """Tests for cancellation checkpoints."""

    def test_cancelled_before_contract_resolution(
        self, reference_data, store, two_period_file, file_context
    ):
        cancel_event = asyncio.Event()
        cancel_event.set()
        source = CancellingReferenceData(reference_data, asyncio.Event())
        pipeline = create_pipeline(source, store=store)

        with pytest.raises(asyncio.CancelledError):
            asyncio.run(pipeline.run(two_period_file, file_context, cancel_event=cancel_event))

        assert source.calls == 0
        assert store.headers == {}

    def test_cancelled_before_commit(self, reference_data, store, file_context):
        """Nothing is persisted or logged once cancellation is observed."""
        cancel_event = asyncio.Event()
        pipeline = create_pipeline(CancellingReferenceData(reference_data, cancel_event), store=store)
        stream = make_csv([
            [APPRENTICESHIPS, EXCESS_LEARNING_SUPPORT, 2019, 2, "12.22"],
            [APPRENTICESHIPS, "Unknown Adjustment", 2019, 3, "5.00"],
        ])

        with pytest.raises(asyncio.CancelledError):
            asyncio.run(pipeline.run(stream, file_context, cancel_event=cancel_event))

        assert store.headers == {}
        assert store.source_files == {}
        assert store.validation_errors == []

    def test_file_format_failure_ignores_cancellation(self, pipeline, store, file_context):
        """Parse failures are reported before any checkpoint is reached."""
        cancel_event = asyncio.Event()
        cancel_event.set()

        with pytest.raises(FileFormatError):
            asyncio.run(pipeline.run(make_csv([], columns=["Value"]), file_context, cancel_event))

        assert len(store.validation_errors) == 1

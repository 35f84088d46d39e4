"""
Submission builder for the EAS submission pipeline.

Transforms validated rows into submission headers and values that share
one generated submission id:

    1. Generate one SubmissionId for the run
    2. Derive each row's collection period
    3. One header per distinct period, in order of first appearance
    4. Resolve each row's PaymentId by exact (funding line, adjustment type) match
    5. Any unresolved row aborts the whole build
    6. One value per row, zero when the row has no value

Usage:
    from eas_pipeline.engine.builder import SubmissionBuilder

    submission = SubmissionBuilder(config).build(valid_rows, payment_types, context)
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Callable, Sequence

from eas_pipeline.contracts.bundles import SubmissionBundle
from eas_pipeline.contracts.config import PipelineConfig
from eas_pipeline.contracts.errors import PaymentTypeResolutionError
from eas_pipeline.contracts.records import SubmissionHeader, SubmissionValue
from eas_pipeline.engine.periods import get_collection_period

if TYPE_CHECKING:
    from eas_pipeline.contracts.records import FileContext, PaymentType, RawRow

logger = logging.getLogger(__name__)


class SubmissionBuilder:
    """
    Build submission records from valid rows.

    Implements SubmissionBuilderProtocol. The build is all-or-nothing:
    payment ids are resolved for every row before any record is returned.

    Attributes:
        config: Pipeline configuration (collection period numbering)
        submission_id_factory: Generator of submission ids
        clock: Source of the headers' updated_on timestamp
    """

    def __init__(
        self,
        config: PipelineConfig | None = None,
        submission_id_factory: Callable[[], uuid.UUID] = uuid.uuid4,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.config = config or PipelineConfig.eas_1819()
        self.submission_id_factory = submission_id_factory
        self.clock = clock

    def build(
        self,
        rows: Sequence[RawRow],
        payment_types: Sequence[PaymentType],
        context: FileContext,
    ) -> SubmissionBundle:
        """
        Build the submission for a run.

        Args:
            rows: Rows that passed both validators
            payment_types: Payment type catalog snapshot
            context: Run context (provider id)

        Returns:
            SubmissionBundle with headers and values

        Raises:
            PaymentTypeResolutionError: If any row has no catalog entry
        """
        submission_id = self.submission_id_factory()
        periods = [
            get_collection_period(row.calendar_year, row.calendar_month, self.config)
            for row in rows
        ]

        # Resolve everything before emitting anything
        payment_ids = self._resolve_payment_ids(rows, payment_types)

        updated_on = self.clock()
        headers = tuple(
            SubmissionHeader(
                submission_id=submission_id,
                collection_period=period,
                provider_id=context.provider_id,
                updated_on=updated_on,
            )
            for period in dict.fromkeys(periods)
        )
        values = tuple(
            SubmissionValue(
                submission_id=submission_id,
                collection_period=period,
                payment_id=payment_id,
                payment_value=row.value if row.value is not None else Decimal("0"),
            )
            for row, period, payment_id in zip(rows, periods, payment_ids)
        )

        logger.info(
            "Built submission %s: %d periods, %d values",
            submission_id,
            len(headers),
            len(values),
        )
        return SubmissionBundle(submission_id=submission_id, headers=headers, values=values)

    @staticmethod
    def _resolve_payment_ids(
        rows: Sequence[RawRow],
        payment_types: Sequence[PaymentType],
    ) -> list[int]:
        lookup = {payment_type.key: payment_type.payment_id for payment_type in payment_types}
        payment_ids: list[int] = []
        for row in rows:
            payment_id = lookup.get(row.payment_key)
            if payment_id is None:
                raise PaymentTypeResolutionError(row.funding_line, row.adjustment_type)
            payment_ids.append(payment_id)
        return payment_ids

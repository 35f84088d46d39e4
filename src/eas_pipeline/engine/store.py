"""
In-memory submission store.

Implements SubmissionStoreProtocol for tests and embedded use. Persisting
a submission is atomic: the batch is checked and staged in full before
anything becomes visible, so a rejected batch leaves the store unchanged.

Usage:
    from eas_pipeline.engine.store import InMemorySubmissionStore

    store = InMemorySubmissionStore()
    await store.persist_submission(headers, values)
    store.get_submission(submission_id)
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from typing import TYPE_CHECKING, Sequence

from eas_pipeline.contracts.errors import SubmissionPersistenceError

if TYPE_CHECKING:
    from uuid import UUID

    from eas_pipeline.contracts.records import (
        LoggedValidationError,
        SourceFile,
        SubmissionHeader,
        SubmissionValue,
    )

logger = logging.getLogger(__name__)


class InMemorySubmissionStore:
    """
    Hold submissions, source files and validation errors in memory.

    Attributes:
        headers: Stored headers keyed by submission id
        values: Stored values keyed by submission id
        source_files: Logged source files keyed by id (ids start at 1)
        validation_errors: Logged validation errors in log order
    """

    def __init__(self) -> None:
        self.headers: dict[UUID, list[SubmissionHeader]] = {}
        self.values: dict[UUID, list[SubmissionValue]] = {}
        self.source_files: dict[int, SourceFile] = {}
        self.validation_errors: list[LoggedValidationError] = []
        self._lock = asyncio.Lock()

    async def persist_submission(
        self,
        headers: Sequence[SubmissionHeader],
        values: Sequence[SubmissionValue],
    ) -> None:
        """
        Store a submission atomically.

        Raises:
            SubmissionPersistenceError: If the batch mixes submissions, a value
                has no matching header, or the submission already exists
        """
        staged_headers: dict[UUID, list[SubmissionHeader]] = defaultdict(list)
        staged_values: dict[UUID, list[SubmissionValue]] = defaultdict(list)
        header_keys: set[tuple[UUID, int]] = set()

        for header in headers:
            key = (header.submission_id, header.collection_period)
            if key in header_keys:
                raise SubmissionPersistenceError(
                    f"Duplicate header for submission {key[0]} period {key[1]}"
                )
            header_keys.add(key)
            staged_headers[header.submission_id].append(header)

        for value in values:
            if (value.submission_id, value.collection_period) not in header_keys:
                raise SubmissionPersistenceError(
                    f"Value for submission {value.submission_id} period "
                    f"{value.collection_period} has no header"
                )
            staged_values[value.submission_id].append(value)

        async with self._lock:
            existing = set(staged_headers) & set(self.headers)
            if existing:
                raise SubmissionPersistenceError(
                    f"Submission already exists: {sorted(str(s) for s in existing)}"
                )
            for submission_id, submission_headers in staged_headers.items():
                self.headers[submission_id] = submission_headers
                self.values[submission_id] = staged_values.get(submission_id, [])

        logger.info("Persisted %d headers and %d values", len(headers), len(values))

    async def log_source_file(self, source_file: SourceFile) -> int:
        async with self._lock:
            source_file_id = len(self.source_files) + 1
            self.source_files[source_file_id] = source_file
        return source_file_id

    async def log_validation_errors(self, errors: Sequence[LoggedValidationError]) -> None:
        async with self._lock:
            unknown = {e.source_file_id for e in errors} - set(self.source_files)
            if unknown:
                raise SubmissionPersistenceError(
                    f"Validation errors reference unknown source files: {sorted(unknown)}"
                )
            self.validation_errors.extend(errors)

    def get_submission(self, submission_id: UUID) -> tuple[list[SubmissionHeader], list[SubmissionValue]]:
        """Return the headers and values of a stored submission (empty if unknown)."""
        return (
            list(self.headers.get(submission_id, [])),
            list(self.values.get(submission_id, [])),
        )

    def errors_for_source_file(self, source_file_id: int) -> list[LoggedValidationError]:
        return [e for e in self.validation_errors if e.source_file_id == source_file_id]

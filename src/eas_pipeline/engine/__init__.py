"""
EAS validate-and-build engine components.

This package contains the production implementations of the pipeline
stages:

    EasFileParser -> BusinessRuleValidator + CrossRecordValidator
        -> error normalization -> SubmissionBuilder

Each component implements a protocol from eas_pipeline.contracts.protocols.

Modules:
    parser: Schema parsing of submitted files
    periods: Collection period derivation
    rules: Business rule functions
    business_rules: Row-level validation
    cross_record: Dataset-level validation
    error_builder: Error normalization and logging
    builder: Submission building
    loader: Reference data feeds and per-run snapshot
    store: In-memory persistence gateway
    pipeline: Pipeline orchestration
"""

from .parser import EasFileParser
from .business_rules import BusinessRuleValidator
from .cross_record import CrossRecordValidator
from .builder import SubmissionBuilder
from .loader import FileReferenceData, InMemoryReferenceData, create_reference_snapshot
from .store import InMemorySubmissionStore
from .pipeline import PipelineOrchestrator, create_pipeline

__all__ = [
    "EasFileParser",
    "BusinessRuleValidator",
    "CrossRecordValidator",
    "SubmissionBuilder",
    "FileReferenceData",
    "InMemoryReferenceData",
    "create_reference_snapshot",
    "InMemorySubmissionStore",
    "PipelineOrchestrator",
    "create_pipeline",
]

"""
Contracts module for the EAS submission pipeline.

Provides interfaces, data transfer objects, and validation utilities
for the pipeline. This module enables:
- Isolated unit testing of each component
- Clear data flow boundaries between parse, validate and build
- Swappable reference data and storage collaborators

Submodules:
- records: Immutable input, reference and output records
- bundles: Data transfer dataclasses for pipeline stages
- config: PipelineConfig
- errors: ValidationError, ValidationResult and pipeline exceptions
- protocols: Protocol definitions for component interfaces
- validation: Header and column validation utilities
"""

# Configuration contracts
from eas_pipeline.contracts.config import EAS_FILE_COLUMNS, PipelineConfig

# Error handling contracts
from eas_pipeline.contracts.errors import (
    RULE_CALENDAR_MONTH,
    RULE_CALENDAR_YEAR,
    RULE_CONTRACT_WINDOW,
    RULE_DUPLICATE_RECORD,
    RULE_FILE_FORMAT,
    RULE_FUNDING_LINE_PERMITTED,
    RULE_PAYMENT_TYPE_EXISTS,
    RULE_PERIOD_IN_ACADEMIC_YEAR,
    RULE_PERIOD_NOT_IN_FUTURE,
    RULE_VALUE_MISSING,
    RULE_VALUE_RANGE,
    EasPipelineError,
    FileFormatError,
    PaymentTypeResolutionError,
    ReferenceDataError,
    SubmissionPersistenceError,
    ValidationError,
    ValidationResult,
    dataset_error,
    file_format_error,
    row_error,
)

# Records
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

# Data bundle contracts
from eas_pipeline.contracts.bundles import (
    ParsedFileBundle,
    PipelineResultBundle,
    ReferenceDataBundle,
    SubmissionBundle,
    ValidationOutcomeBundle,
)

# Protocol definitions
from eas_pipeline.contracts.protocols import (
    BusinessRuleValidatorProtocol,
    CrossRecordValidatorProtocol,
    ReferenceDataProtocol,
    SchemaParserProtocol,
    SubmissionBuilderProtocol,
    SubmissionStoreProtocol,
)

# Validation utilities
from eas_pipeline.contracts.validation import (
    validate_header,
    validate_required_columns,
)

__all__ = [
    # Configuration
    "EAS_FILE_COLUMNS",
    "PipelineConfig",
    # Errors
    "EasPipelineError",
    "FileFormatError",
    "PaymentTypeResolutionError",
    "ReferenceDataError",
    "SubmissionPersistenceError",
    "ValidationError",
    "ValidationResult",
    "dataset_error",
    "file_format_error",
    "row_error",
    # Rule identifiers
    "RULE_CALENDAR_MONTH",
    "RULE_CALENDAR_YEAR",
    "RULE_CONTRACT_WINDOW",
    "RULE_DUPLICATE_RECORD",
    "RULE_FILE_FORMAT",
    "RULE_FUNDING_LINE_PERMITTED",
    "RULE_PAYMENT_TYPE_EXISTS",
    "RULE_PERIOD_IN_ACADEMIC_YEAR",
    "RULE_PERIOD_NOT_IN_FUTURE",
    "RULE_VALUE_MISSING",
    "RULE_VALUE_RANGE",
    # Records
    "ContractAllocation",
    "FileContext",
    "FundingLineContractTypeMapping",
    "LoggedValidationError",
    "PaymentType",
    "RawRow",
    "SourceFile",
    "SubmissionHeader",
    "SubmissionValue",
    # Bundles
    "ParsedFileBundle",
    "PipelineResultBundle",
    "ReferenceDataBundle",
    "SubmissionBundle",
    "ValidationOutcomeBundle",
    # Protocols
    "BusinessRuleValidatorProtocol",
    "CrossRecordValidatorProtocol",
    "ReferenceDataProtocol",
    "SchemaParserProtocol",
    "SubmissionBuilderProtocol",
    "SubmissionStoreProtocol",
    # Validation
    "validate_header",
    "validate_required_columns",
]

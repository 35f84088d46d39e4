"""
Domain enums for the EAS submission pipeline.

Defines core enumerations used throughout the validate-and-build pipeline:
- ErrorSeverity: Error vs Warning, stored as the single-letter codes the
  validation error log expects
- RuleScope: Whether a rule applies to the whole file, a single row,
  or the row set as a whole
"""

from enum import Enum


class ErrorSeverity(Enum):
    """
    Severity levels for validation errors.

    Values match the codes written to the validation error log.
    Only ERROR excludes a row from the submission.
    """

    # Row is rejected and will not be built into the submission
    ERROR = "E"

    # Informational - row is still built
    WARNING = "W"


class RuleScope(Enum):
    """
    Scope of a validation rule.

    FILE rules describe the shape of the whole file (e.g. Fileformat_01)
    and never carry a row key. ROW rules are evaluated independently per
    row. DATASET rules are only visible across records.
    """

    FILE = "file"
    ROW = "row"
    DATASET = "dataset"

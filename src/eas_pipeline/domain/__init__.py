"""
Domain module for the EAS submission pipeline.

Contains core enumerations used throughout the validate-and-build pipeline.
"""

from eas_pipeline.domain.enums import (
    ErrorSeverity,
    RuleScope,
)

__all__ = [
    "ErrorSeverity",
    "RuleScope",
]

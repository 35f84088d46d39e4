"""
Business rule validator for EAS rows.

Validates each row independently against the payment type catalog, the
provider's active contract windows and the funding line mapping table.
Every rule in BUSINESS_RULES is evaluated for every row; a row that fails
one rule is still checked against the rest.

Usage:
    from eas_pipeline.engine.business_rules import BusinessRuleValidator

    validator = BusinessRuleValidator()
    results = validator.validate(rows, reference_data, context, config)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Sequence

from eas_pipeline.contracts.errors import ValidationResult
from eas_pipeline.engine.rules import BUSINESS_RULES, Rule, RuleContext

if TYPE_CHECKING:
    from eas_pipeline.contracts.bundles import ReferenceDataBundle
    from eas_pipeline.contracts.config import PipelineConfig
    from eas_pipeline.contracts.records import FileContext, RawRow

logger = logging.getLogger(__name__)


class BusinessRuleValidator:
    """
    Evaluate business rules row by row.

    Implements BusinessRuleValidatorProtocol. Pure: rows and reference
    data are never modified.
    """

    def __init__(self, rules: Sequence[Rule] = BUSINESS_RULES) -> None:
        self._rules = tuple(rules)

    def validate(
        self,
        rows: Sequence[RawRow],
        reference_data: ReferenceDataBundle,
        context: FileContext,
        config: PipelineConfig,
    ) -> list[ValidationResult]:
        """
        Validate every row.

        Args:
            rows: Parsed rows, in file order
            reference_data: Reference data snapshot for the run
            context: Run context (reporting date)
            config: Pipeline configuration

        Returns:
            One ValidationResult per row that raised any error or warning,
            in input row order
        """
        rule_context = RuleContext.from_reference_data(
            reference_data, context.reporting_date, config
        )

        results: list[ValidationResult] = []
        for row in rows:
            result = self.validate_row(row, rule_context)
            if result.errors:
                results.append(result)

        logger.info(
            "Business rules raised issues on %d of %d rows", len(results), len(rows)
        )
        return results

    def validate_row(self, row: RawRow, rule_context: RuleContext) -> ValidationResult:
        """Evaluate every rule against one row."""
        result = ValidationResult()
        for rule in self._rules:
            error = rule(row, rule_context)
            if error is not None:
                result.add_error(error)
        if not result.is_valid:
            result.rejected_rows.add(row)
        return result
